from __future__ import annotations

import torch
import torch.nn as nn

from cartpole_pixels.training.network import QNetwork, snapshot_parameters
from cartpole_pixels.training.sync import TargetSyncScheduler, hard_update


def make_pair():
    policy = nn.Sequential(nn.Linear(3, 4), nn.BatchNorm1d(4), nn.Linear(4, 2))
    target = nn.Sequential(nn.Linear(3, 4), nn.BatchNorm1d(4), nn.Linear(4, 2))
    return policy, target


def perturb(net: nn.Module) -> None:
    with torch.no_grad():
        for p in net.parameters():
            p.add_(1.0)
    # Touch batch-norm running stats too.
    net.train()
    net(torch.randn(8, 3))


def states_equal(a: nn.Module, b: nn.Module) -> bool:
    sa, sb = a.state_dict(), b.state_dict()
    return sa.keys() == sb.keys() and all(torch.equal(sa[k], sb[k]) for k in sa)


def test_initial_schedule():
    sched = TargetSyncScheduler(interval=20, decay=5)
    assert sched.next_sync_episode == 21
    assert not sched.every_episode
    assert not sched.is_due(20)
    assert sched.is_due(21)


def test_sync_episodes_tighten_and_floor():
    policy, target = make_pair()
    sched = TargetSyncScheduler(interval=20, decay=5, min_interval=1)

    synced = [ep for ep in range(1, 61) if sched.maybe_sync(ep, policy, target)]

    assert synced[:6] == [21, 36, 46, 51, 52, 53]
    assert synced == [21, 36, 46, 51] + list(range(52, 61))
    assert sched.sync_history == synced
    assert sched.interval == 1


def test_target_is_exact_snapshot_and_frozen_between_syncs():
    policy, target = make_pair()
    sched = TargetSyncScheduler(interval=3, decay=1)

    last_snapshot = None
    for ep in range(1, 12):
        perturb(policy)
        if sched.maybe_sync(ep, policy, target):
            assert states_equal(policy, target)
            last_snapshot = {k: v.clone() for k, v in target.state_dict().items()}
        elif last_snapshot is not None:
            assert all(torch.equal(target.state_dict()[k], v) for k, v in last_snapshot.items())
            assert not states_equal(policy, target)

    assert sched.sync_history == [4, 6, 7, 8, 9, 10, 11]


def test_sync_copies_instead_of_aliasing():
    policy, target = make_pair()
    hard_update(policy, target)
    perturb(policy)
    assert not states_equal(policy, target)


def test_negative_interval_syncs_every_episode():
    policy, target = make_pair()
    sched = TargetSyncScheduler(interval=-1, decay=5)
    for ep in range(1, 8):
        perturb(policy)
        assert sched.maybe_sync(ep, policy, target)
        assert states_equal(policy, target)
    assert sched.sync_history == list(range(1, 8))


def test_state_dict_round_trip():
    policy, target = make_pair()
    sched = TargetSyncScheduler(interval=20, decay=5)
    for ep in range(1, 40):
        sched.maybe_sync(ep, policy, target)

    restored = TargetSyncScheduler(interval=20, decay=5)
    restored.load_state_dict(sched.state_dict())
    assert restored.interval == sched.interval == 10
    assert restored.next_sync_episode == sched.next_sync_episode == 46
    assert restored.sync_history == [21, 36]


def test_qnetwork_pair_sync():
    policy, target = QNetwork(32, 40, 2), QNetwork(32, 40, 2)
    assert not all(torch.equal(a, b) for a, b in zip(snapshot_parameters(policy), snapshot_parameters(target)))
    hard_update(policy, target)
    assert all(torch.equal(a, b) for a, b in zip(snapshot_parameters(policy), snapshot_parameters(target)))
