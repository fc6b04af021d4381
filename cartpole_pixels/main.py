"""
Main entry point for CartPole-from-pixels DQN.
==============================================

Commands:
    train   - Train a DQN agent (see train.py for all flags)
    watch   - Load a saved model pair and run greedy episodes
    plot    - Re-plot episode durations from a CSV history

Usage:
    python -m cartpole_pixels.main train --episodes 300
    python -m cartpole_pixels.main watch --model-prefix checkpoints/cartpole --render
    python -m cartpole_pixels.main plot --csv-file logs/history.csv
    python -m cartpole_pixels.main --help
"""

from __future__ import annotations

import argparse

from .config import ENV_CONFIG, PATHS


def train_command(args):
    """Run training."""
    from .train import train_single

    train_single(args)


def watch_command(args):
    """Watch a trained agent."""
    import torch

    from .environment import make_env
    from .training.checkpoint import load_model
    from .training.eval import evaluate

    device = torch.device("cuda" if torch.cuda.is_available() and not args.cpu else "cpu")
    policy_net = load_model(args.model_prefix, device)
    print(f"Loaded model from {args.model_prefix}-model.pt / {args.model_prefix}-weights.pt")

    env = make_env(args.env, args.screen_width, view_fraction=args.view_fraction, device=device)
    result = evaluate(
        policy_net,
        env,
        n_episodes=args.episodes,
        max_steps=args.max_steps,
        render=args.render,
        seed=args.seed,
    )
    env.close()

    for i, d in enumerate(result["durations"]):
        print(f"[WATCH] Episode {i} duration = {d}")
    print(
        f"AvgDuration={result['mean_duration']:.1f} │ "
        f"Range=[{result['min_duration']}, {result['max_duration']}]"
    )


def plot_command(args):
    """Plot a saved CSV history."""
    from .utils import plot_durations, read_history

    df = read_history(args.csv_file)
    start = int(df["episode"].iloc[0]) if len(df) else 1
    plot_durations(
        df["duration"].tolist(),
        window=args.window,
        save_path=args.plot_file,
        start_episode=start,
    )


def build_parser() -> argparse.ArgumentParser:
    from .train import add_train_arguments

    parser = argparse.ArgumentParser(
        description="DQN on CartPole from rendered pixels",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m cartpole_pixels.main train                 # Train with defaults
  python -m cartpole_pixels.main watch --render        # Watch the saved agent
  python -m cartpole_pixels.main plot                  # Re-plot durations
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")
    subparsers.required = True

    # Train command
    train_parser = subparsers.add_parser("train", help="Train a DQN agent")
    add_train_arguments(train_parser)
    train_parser.set_defaults(func=train_command)

    # Watch command
    watch_parser = subparsers.add_parser("watch", help="Watch a trained agent")
    watch_parser.add_argument("--model-prefix", type=str, default=PATHS["model_prefix"])
    watch_parser.add_argument("--env", type=str, default=ENV_CONFIG["env_name"])
    watch_parser.add_argument("--screen-width", type=int, default=ENV_CONFIG["screen_width"])
    watch_parser.add_argument("--view-fraction", type=float, default=ENV_CONFIG["view_fraction"])
    watch_parser.add_argument("--max-steps", type=int, default=ENV_CONFIG["max_steps"])
    watch_parser.add_argument("--episodes", type=int, default=5, help="Number of episodes (default: 5)")
    watch_parser.add_argument("--render", action="store_true", help="Show frames in a window")
    watch_parser.add_argument("--seed", type=int, default=None)
    watch_parser.add_argument("--cpu", action="store_true", help="Force CPU")
    watch_parser.set_defaults(func=watch_command)

    # Plot command
    plot_parser = subparsers.add_parser("plot", help="Plot a CSV history")
    plot_parser.add_argument("--csv-file", type=str, default=PATHS["csv_file"])
    plot_parser.add_argument("--plot-file", type=str, default=PATHS["plot_file"])
    plot_parser.add_argument("--window", type=int, default=100)
    plot_parser.set_defaults(func=plot_command)

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
