from __future__ import annotations

import os

import pytest

import cartpole_pixels.train as train_mod
from cartpole_pixels.environment import PixelCartPole
from cartpole_pixels.errors import ConfigurationError
from cartpole_pixels.utils import read_history

from conftest import FakeCartPoleEnv


@pytest.fixture
def fake_make_env(monkeypatch):
    envs = []

    def _make_env(env_name, screen_width, *, view_fraction=None, device=None, **kwargs):
        env = PixelCartPole(FakeCartPoleEnv(), 32, view_fraction=view_fraction, device=device)
        envs.append(env)
        return env

    monkeypatch.setattr(train_mod, "make_env", _make_env)
    return envs


def run_args(tmp_path, *extra):
    return train_mod.build_args([
        "--episodes", "3",
        "--batch-size", "4",
        "--replay-size", "50",
        "--eval-episodes", "1",
        "--log-interval", "1",
        "--save-interval", "2",
        "--target-update-rate-init", "1",
        "--cpu",
        "--save-dir", str(tmp_path / "ckpt"),
        "--logs-dir", str(tmp_path / "logs"),
        "--model-prefix", str(tmp_path / "ckpt" / "cartpole"),
        "--plot-file", str(tmp_path / "logs" / "durations.png"),
        "--csv-file", str(tmp_path / "logs" / "history.csv"),
        *extra,
    ])


def test_train_single_end_to_end(tmp_path, fake_make_env):
    result = train_mod.train_single(run_args(tmp_path))

    assert result["episodes"] == 3
    assert result["syncs"] == [2, 3]
    assert os.path.exists(tmp_path / "ckpt" / "cartpole-model.pt")
    assert os.path.exists(tmp_path / "ckpt" / "cartpole-weights.pt")
    assert os.path.exists(tmp_path / "ckpt" / "checkpoint_ep2.pt")
    assert os.path.exists(tmp_path / "logs" / "history.csv")
    assert os.path.exists(tmp_path / "logs" / "durations.png")
    assert fake_make_env[0]._env.closed


def test_train_single_resume(tmp_path, fake_make_env):
    train_mod.train_single(run_args(tmp_path))
    resume_from = str(tmp_path / "ckpt" / "checkpoint_ep2.pt")

    result = train_mod.train_single(run_args(tmp_path, "--resume", resume_from))
    # Resumed at episode 2, ran 3 more.
    assert result["episodes"] == 3
    assert result["global_step"] == 2 * 6 + 3 * 6

    # History keeps the resumed episode numbers.
    df = read_history(str(tmp_path / "logs" / "history.csv"))
    assert df["episode"].tolist() == [3, 4, 5]
    assert df["duration"].tolist() == [6, 6, 6]


def test_train_single_resume_restores_sync_schedule(tmp_path, fake_make_env):
    train_mod.train_single(run_args(tmp_path))
    resume_from = str(tmp_path / "ckpt" / "checkpoint_ep2.pt")

    result = train_mod.train_single(run_args(tmp_path, "--resume", resume_from))
    # Interval 1 with floor 1: synced at 2 before the save, then every episode.
    assert result["syncs"] == [2, 3, 4, 5]


def test_train_single_rejects_bad_config(tmp_path, fake_make_env):
    with pytest.raises(ConfigurationError):
        train_mod.train_single(run_args(tmp_path, "--batch-size", "0"))
    assert fake_make_env == []
