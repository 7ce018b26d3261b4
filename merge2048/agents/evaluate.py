"""
Evaluation Script for 2048 Agents.

Runs an agent through a series of evaluation episodes and aggregates the key
performance metrics (Win Rate, Average Score, Max Tile). The episode runner is
shared by the DQN evaluation below and by the baseline agents.

Usage:
    python -m merge2048.agents.evaluate --model_path logs/Default/reward-raw_score_state-log2/dqn_baseline_final.zip --state log2
"""

import argparse
import numpy as np
from tqdm import tqdm

from stable_baselines3 import DQN
from stable_baselines3.common.monitor import Monitor

from merge2048.agents.config import EVAL_EPISODES, MAX_STEPS_PER_EPISODE
from merge2048.environments.session_env import REWARD_MODES, Session2048Env
from merge2048.environments.wrapper import Log2Wrapper
from merge2048.game.config import BOARD_SIZES, DEFAULT_BOARD_SIZE, WIN_TILE
from merge2048.game.modes import Difficulty, GameConfiguration, GameMode


def add_game_arguments(parser):
    """Flags describing the game itself, shared by every agent script."""
    parser.add_argument("--size", type=int, choices=BOARD_SIZES, default=DEFAULT_BOARD_SIZE,
                        help="Board side length.")
    parser.add_argument("--target", type=int, default=WIN_TILE,
                        help="Tile value that wins the game.")
    mode_help = "; ".join(f"{kind}: {GameMode.from_name(kind).description}" for kind in GameMode.KINDS)
    parser.add_argument("--mode", choices=GameMode.KINDS, default=GameMode.CLASSIC,
                        help=f"Win/loss rules ({mode_help}).")
    parser.add_argument("--budget", type=int, default=None,
                        help="Seconds (timed) or moves (limited_moves). Mode default if omitted.")
    # argparse %-formats help strings
    difficulty_help = "; ".join(f"{d.value}: {d.description}" for d in Difficulty).replace("%", "%%")
    parser.add_argument("--difficulty", choices=[d.value for d in Difficulty], default=Difficulty.NORMAL.value,
                        help=f"Spawn odds preset ({difficulty_help}).")
    parser.add_argument("--seconds_per_step", type=float, default=1.0,
                        help="Clock advanced per step in timed mode.")
    return parser


def configuration_from_args(args):
    return GameConfiguration(
        target_value=args.target,
        board_size=args.size,
        mode=GameMode.from_name(args.mode, args.budget),
        difficulty=Difficulty(args.difficulty),
    )


def make_env(configuration=None, state="raw_values", reward_mode="raw_score", policy_type="mlp",
             seconds_per_step=0.0, render_mode=None):
    """Builds the session env, applying the Log2Wrapper for the 'log2' state."""
    env = Session2048Env(configuration, render_mode=render_mode, reward_mode=reward_mode,
                         seconds_per_step=seconds_per_step)
    if state == "log2":
        env = Log2Wrapper(env, policy_type=policy_type)
    return env


def run_episodes(env, policy, n_episodes=EVAL_EPISODES, max_steps=MAX_STEPS_PER_EPISODE, seed=None,
                 progress=True):
    """
    Plays `n_episodes` full games and aggregates their results.

    Args:
        env (gymnasium.Env): A (possibly wrapped) Session2048Env.
        policy (callable): `policy(observation, env) -> action`.
        n_episodes (int): Number of games.
        max_steps (int): Per-episode cap; episodes reaching it are cut short.
        seed (int): Seed for the first reset; later resets continue the stream.
        progress (bool): Show a tqdm progress bar.

    Returns:
        dict: per-episode `scores` and `max_tiles` plus their aggregates.
    """
    target = env.unwrapped.configuration.target_value

    all_scores = []
    all_max_tiles = []
    wins = 0

    for episode in tqdm(range(n_episodes), desc="Evaluating", disable=not progress):
        obs, info = env.reset(seed=seed if episode == 0 else None)
        done = False
        current_step = 0

        while not done:
            action = policy(obs, env)
            obs, reward, terminated, truncated, info = env.step(action)
            current_step += 1

            done = terminated or truncated or current_step >= max_steps

        score = info.get("score", 0)
        max_tile = info.get("max_tile", 0)

        all_scores.append(score)
        all_max_tiles.append(max_tile)

        if max_tile >= target:
            wins += 1

    return {
        "scores": all_scores,
        "max_tiles": all_max_tiles,
        "avg_score": float(np.mean(all_scores)),
        "avg_max_tile": float(np.mean(all_max_tiles)),
        "win_rate": wins / n_episodes,
        "best_score": int(np.max(all_scores)),
        "highest_max_tile": int(np.max(all_max_tiles)),
    }


def print_metrics(metrics):
    print("Avg Score:", metrics["avg_score"])
    print("Avg Max Tile:", metrics["avg_max_tile"])
    print("Win Rate:", metrics["win_rate"])
    print("Best Score:", metrics["best_score"])
    print("Highest Max Tile:", metrics["highest_max_tile"])


def main(argv=None):
    """
    Loads a saved DQN model and evaluates it.

    Process:
    1. Reconstructs the environment configuration (board, mode, Raw/Log2 state).
    2. Loads the checkpointed model.
    3. Runs N evaluation episodes with deterministic actions.
    4. Reports aggregate metrics including the Win Rate.
    """
    parser = argparse.ArgumentParser(description="Evaluates a trained DQN agent for 2048.")
    parser.add_argument("--model_path", type=str, required=True)  # path to zipped model
    parser.add_argument("--state", type=str, choices=["raw_values", "log2"], default="raw_values")
    parser.add_argument("--reward", type=str, choices=REWARD_MODES, default="raw_score")
    parser.add_argument("--n_episodes", type=int, default=EVAL_EPISODES)
    parser.add_argument("--seed", type=int, default=None)
    add_game_arguments(parser)
    args = parser.parse_args(argv)

    configuration = configuration_from_args(args)
    env = make_env(configuration, state=args.state, reward_mode=args.reward,
                   seconds_per_step=args.seconds_per_step)
    env = Monitor(env, filename=None)
    model = DQN.load(args.model_path, env=env)

    def policy(obs, _env):
        action, _ = model.predict(obs, deterministic=True)
        return int(action)

    print(f"*** Starting Evaluation ***")
    print(f"Model: {args.model_path}")
    print(f"Config: {configuration}, State: {args.state}, Episodes: {args.n_episodes}\n")

    metrics = run_episodes(env, policy, n_episodes=args.n_episodes, seed=args.seed)
    print_metrics(metrics)
    env.close()
    return metrics


if __name__ == "__main__":
    main()
