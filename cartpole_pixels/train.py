"""DQN Training for CartPole from pixels.

This is a *thin* CLI entry point.

All of the "beef" lives in `training/` and `environment/`:
  - replay buffer:     training/replay.py
  - network:           training/network.py
  - epsilon schedule:  training/schedules.py
  - action selection:  training/policy.py
  - loss / update:     training/loss.py
  - target sync:       training/sync.py
  - checkpoints:       training/checkpoint.py
  - evaluation:        training/eval.py
  - core loop:         training/core.py
  - screen capture:    environment/screen.py

So when you read this file, you should mostly see:
  1) parse args
  2) create env + models + buffer + sync schedule
  3) call train()
  4) save model, plot, CSV
"""

from __future__ import annotations

import argparse
import os
import random

import numpy as np

try:
    import torch
except ImportError:
    print("PyTorch is required. Install with: pip install torch")
    raise

from .config import AGENT_CONFIG, ENV_CONFIG, PATHS, TRAIN_CONFIG, validate_config
from .environment import make_env
from .training.checkpoint import load_checkpoint, save_model
from .training.core import TrainState, train
from .training.eval import evaluate
from .training.loss import make_optimizer
from .training.network import build_networks
from .training.replay import ReplayBuffer
from .training.sync import TargetSyncScheduler
from .utils import export_csv, plot_durations, setup_directories


def train_single(args: argparse.Namespace) -> dict:
    """Standard DQN training run."""

    validate_config(
        replay_size=args.replay_size,
        batch_size=args.batch_size,
        eps_decay=args.eps_decay,
        gamma=args.gamma,
        screen_width=args.screen_width,
    )

    # --- Reproducibility seeds ----------------------------------------------
    random.seed(args.seed)
    np.random.seed(args.seed)
    torch.manual_seed(args.seed)

    # --- Device --------------------------------------------------------------
    device = torch.device("cuda" if torch.cuda.is_available() and not args.cpu else "cpu")

    setup_directories({"save_dir": args.save_dir, "logs_dir": args.logs_dir})

    # --- Env + networks ------------------------------------------------------
    env = make_env(args.env, args.screen_width, view_fraction=args.view_fraction, device=device)
    env.reset(seed=args.seed)
    screen_h, screen_w = env.screen_shape()

    policy_net, target_net = build_networks(screen_h, screen_w, env.n_actions, device)
    optimizer = make_optimizer(args.optimizer, policy_net.parameters(), args.lr)

    replay = ReplayBuffer(args.replay_size, rng=random.Random(args.seed))
    scheduler = TargetSyncScheduler(
        interval=args.target_update_rate_init,
        decay=args.target_update_decay,
        min_interval=args.min_target_interval,
    )

    ts = TrainState(
        policy_net=policy_net,
        target_net=target_net,
        optimizer=optimizer,
        replay=replay,
        scheduler=scheduler,
        device=device,
        rng=random.Random(args.seed),
    )

    # --- Resume (optional) ---------------------------------------------------
    if args.resume and os.path.exists(args.resume):
        ckpt = load_checkpoint(args.resume, policy_net, target_net, optimizer, device, scheduler)
        ts.episode = int(ckpt["episode"])
        ts.history_start = ts.episode + 1
        ts.global_step = int(ckpt["global_step"])
        ts.best_duration = int(ckpt.get("best_duration", 0))
        print(f"  Resumed from {args.resume} (episode {ts.episode}, step {ts.global_step})")

    # --- Pretty run header ---------------------------------------------------
    param_count = sum(p.numel() for p in policy_net.parameters())
    sync_desc = (
        "every episode"
        if scheduler.every_episode
        else f"first @ep {scheduler.next_sync_episode}, interval {args.target_update_rate_init} "
        f"-{args.target_update_decay}/sync (min {scheduler.min_interval})"
    )
    print("=" * 70)
    print("  DQN TRAINING — CartPole from pixels")
    print("=" * 70)
    print(f"  Device:            {device}")
    print(f"  Screen:            {screen_h}×{screen_w}")
    print(f"  Network params:    {param_count:,}")
    print(f"  Episodes:          {args.episodes}")
    print(f"  Optimizer:         {args.optimizer} (lr={args.lr})")
    print(f"  Replay:            {args.replay_size:,} (batch {args.batch_size})")
    print(f"  Epsilon:           {args.eps_start} → {args.eps_end} (decay {args.eps_decay} steps)")
    print(f"  Target sync:       {sync_desc}")
    print("=" * 70 + "\n")

    # --- Train ---------------------------------------------------------------
    result = train(
        ts,
        env,
        n_episodes=args.episodes,
        max_steps=args.max_steps,
        eps_start=args.eps_start,
        eps_end=args.eps_end,
        eps_decay=args.eps_decay,
        gamma=args.gamma,
        batch_size=args.batch_size,
        grad_clip_value=args.grad_clip_value,
        log_interval=args.log_interval,
        save_interval=args.save_interval,
        save_dir=args.save_dir,
        seed=args.seed,
    )

    # --- Final prints + final eval ------------------------------------------
    print("\n" + "=" * 70)
    print("  TRAINING COMPLETE")
    print("=" * 70)
    print(f"  Episodes:       {result['episodes']}")
    print(f"  Global steps:   {result['global_step']:,}")
    print(f"  Best duration:  {result['best_duration']}")
    print(f"  Avg last 100:   {result['mean_last_100']:.1f}")
    print(f"  Target syncs:   {len(result['syncs'])}")
    print(f"  Time:           {result['elapsed']:.1f}s ({result['elapsed']/60:.1f} min)")

    if args.eval_episodes > 0:
        print(f"\n  ── Final Evaluation ({args.eval_episodes} episodes, greedy) ──")
        final = evaluate(policy_net, env, n_episodes=args.eval_episodes, max_steps=args.max_steps)
        print(
            f"  AvgDuration={final['mean_duration']:.1f} │ "
            f"Range=[{final['min_duration']}, {final['max_duration']}]"
        )

    env.close()

    model_file, weights_file = save_model(policy_net, args.model_prefix)
    print(f"  [Final model → {model_file}, {weights_file}]")

    plot_durations(ts.episode_durations, save_path=args.plot_file, start_episode=ts.history_start)
    export_csv(
        args.csv_file,
        ts.episode_durations,
        ts.episode_losses,
        ts.episode_epsilons,
        start_episode=ts.history_start,
    )
    print(f"  [History → {args.csv_file}]\nDone!")

    return result


# ─────────────────────────────────────────────────────────────────────────────
# CLI
# ─────────────────────────────────────────────────────────────────────────────

def add_train_arguments(p: argparse.ArgumentParser) -> argparse.ArgumentParser:
    # Environment
    env = p.add_argument_group("Environment")
    env.add_argument("--env", type=str, default=ENV_CONFIG["env_name"], help="Gymnasium env id")
    env.add_argument("--screen-width", type=int, default=ENV_CONFIG["screen_width"], help="Preprocessed screen size")
    env.add_argument("--view-fraction", type=float, default=ENV_CONFIG["view_fraction"], help="Crop width around the cart")
    env.add_argument("--max-steps", type=int, default=ENV_CONFIG["max_steps"], help="Max steps per episode")

    # DQN hyperparameters
    dqn = p.add_argument_group("DQN Hyperparameters")
    dqn.add_argument("--optimizer", type=str, default=AGENT_CONFIG["optimizer"], choices=["rmsprop", "adam"])
    dqn.add_argument("--lr", type=float, default=AGENT_CONFIG["learning_rate"], help="Learning rate")
    dqn.add_argument("--gamma", type=float, default=AGENT_CONFIG["discount_factor"], help="Discount factor")
    dqn.add_argument("--batch-size", type=int, default=AGENT_CONFIG["batch_size"], help="Replay batch size")
    dqn.add_argument("--replay-size", type=int, default=AGENT_CONFIG["replay_size"], help="Buffer capacity")
    dqn.add_argument("--grad-clip-value", type=float, default=AGENT_CONFIG["grad_clip_value"])
    dqn.add_argument(
        "--target-update-rate-init",
        type=int,
        default=AGENT_CONFIG["target_update_rate_init"],
        help="Episodes before first target sync (negative: sync every episode)",
    )
    dqn.add_argument("--target-update-decay", type=int, default=AGENT_CONFIG["target_update_decay"])
    dqn.add_argument("--min-target-interval", type=int, default=AGENT_CONFIG["min_target_interval"])

    # Exploration
    exp = p.add_argument_group("Exploration")
    exp.add_argument("--eps-start", type=float, default=AGENT_CONFIG["eps_start"], help="Initial epsilon")
    exp.add_argument("--eps-end", type=float, default=AGENT_CONFIG["eps_end"], help="Final epsilon")
    exp.add_argument("--eps-decay", type=float, default=AGENT_CONFIG["eps_decay"], help="Decay constant (steps)")

    # Training
    trn = p.add_argument_group("Training")
    trn.add_argument("--episodes", type=int, default=TRAIN_CONFIG["n_episodes"], help="Training episodes")
    trn.add_argument("--resume", type=str, default=None, help="Checkpoint to resume from")

    # Logging & saving
    log = p.add_argument_group("Logging & Saving")
    log.add_argument("--log-interval", type=int, default=TRAIN_CONFIG["log_interval"])
    log.add_argument("--save-interval", type=int, default=TRAIN_CONFIG["save_interval"])
    log.add_argument("--eval-episodes", type=int, default=TRAIN_CONFIG["eval_episodes"])
    log.add_argument("--save-dir", type=str, default=PATHS["save_dir"])
    log.add_argument("--logs-dir", type=str, default=PATHS["logs_dir"])
    log.add_argument("--model-prefix", type=str, default=PATHS["model_prefix"])
    log.add_argument("--plot-file", type=str, default=PATHS["plot_file"])
    log.add_argument("--csv-file", type=str, default=PATHS["csv_file"])

    # Misc
    misc = p.add_argument_group("Misc")
    misc.add_argument("--seed", type=int, default=42)
    misc.add_argument("--cpu", action="store_true", help="Force CPU")

    return p


def build_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="DQN Training for CartPole from pixels",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m cartpole_pixels.train                                 # Defaults
  python -m cartpole_pixels.train --episodes 300                  # Shorter run
  python -m cartpole_pixels.train --optimizer adam --lr 1e-4      # Swap optimizer
  python -m cartpole_pixels.train --target-update-rate-init -1    # Sync every episode
  python -m cartpole_pixels.train --resume checkpoints/best_model.pt
""",
    )
    add_train_arguments(p)
    return p.parse_args(argv)


if __name__ == "__main__":
    train_single(build_args())
