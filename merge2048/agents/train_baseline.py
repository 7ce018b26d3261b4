"""
Training Entry Point: DQN baseline on the session environment.

Trains a Stable-Baselines3 DQN (MLP policy) against `Session2048Env`, with
Monitor logging, periodic checkpoints and final episode score / max tile
written to TensorBoard.

Example Usage:
    python -m merge2048.agents.train_baseline --group="States" --reward="raw_score" --state="log2"
    python -m merge2048.agents.train_baseline --size 3 --target 256 --timesteps 50000 --log_name smoke_test

View Logs:
    tensorboard --logdir=logs
"""

import argparse
import os
import time

from stable_baselines3 import DQN
from stable_baselines3.common.callbacks import BaseCallback, CheckpointCallback
from stable_baselines3.common.logger import TensorBoardOutputFormat
from stable_baselines3.common.monitor import Monitor

from merge2048.agents.config import (
    BASE_LOG_DIR,
    BATCH_SIZE,
    BUFFER_SIZE,
    CHECKPOINT_FREQ,
    DEVICE,
    EPISODE_INFO_KEYWORDS,
    EXPLORATION_FINAL_EPS,
    EXPLORATION_FRACTION,
    GAMMA,
    GRADIENT_STEPS,
    LEARNING_RATE,
    NET_ARCH,
    TARGET_UPDATE_INTERVAL,
    TOTAL_TIMESTEPS,
    TRAIN_FREQ,
)
from merge2048.agents.evaluate import add_game_arguments, configuration_from_args, make_env
from merge2048.environments.session_env import REWARD_MODES


def build_parser():
    parser = argparse.ArgumentParser(description="Trains a DQN agent for 2048.")
    parser.add_argument(
        "--group",
        type=str,
        default="DefaultGroup",
        help="High-level experiment group (e.g., 'RewardExperiments')."
    )
    parser.add_argument(
        "--reward",
        type=str,
        choices=REWARD_MODES,
        default="raw_score",
        help="Name of the reward structure."
    )
    parser.add_argument(
        "--state",
        type=str,
        choices=["raw_values", "log2"],
        default="raw_values",
        help="Name of the state representation."
    )
    parser.add_argument(
        "--timesteps",
        type=int,
        default=TOTAL_TIMESTEPS,
        help="Total number of timesteps to train for."
    )
    parser.add_argument(
        "--log_name",
        type=str,
        default="dqn_baseline",
        help="Name prefix for checkpoints and the final model."
    )
    parser.add_argument(
        "--checkpoint_freq",
        type=int,
        default=CHECKPOINT_FREQ,
        help="Save a model checkpoint every N steps."
    )
    add_game_arguments(parser)
    return parser


def build_model(env, log_dir=None):
    """DQN with the baseline hyperparameters from `agents.config`."""
    return DQN(
        "MlpPolicy",
        env,
        verbose=1,
        tensorboard_log=log_dir,
        buffer_size=BUFFER_SIZE,
        learning_rate=LEARNING_RATE,
        batch_size=BATCH_SIZE,
        gamma=GAMMA,
        train_freq=TRAIN_FREQ,
        gradient_steps=GRADIENT_STEPS,
        target_update_interval=TARGET_UPDATE_INTERVAL,
        exploration_fraction=EXPLORATION_FRACTION,
        exploration_final_eps=EXPLORATION_FINAL_EPS,
        policy_kwargs=dict(net_arch=list(NET_ARCH)),
        device=DEVICE,
    )


class EpisodeLogCallback(BaseCallback):
    """
    Writes the final score and max tile of every finished episode
    to tensorboard under 'rollout/'.
    """
    def __init__(self, verbose=0):
        super().__init__(verbose)
        self.writer = None

    def _on_training_start(self) -> None:
        for formatter in self.logger.output_formats:
            if isinstance(formatter, TensorBoardOutputFormat):
                self.writer = formatter.writer
                break

        if self.writer is None:
            raise RuntimeError(
                "TensorBoardOutputFormat not found. "
                "Ensure you have set tensorboard_log in your model."
            )

    def _on_step(self) -> bool:
        if self.locals['dones'][0]:
            info = self.locals['infos'][0]
            if 'score' in info:
                self.writer.add_scalar('rollout/score', info['score'], self.n_calls)
            if 'max_tile' in info:
                self.writer.add_scalar('rollout/max_tile', info['max_tile'], self.n_calls)
        return True


def train(args):
    run_name_tags = f"size-{args.size}_mode-{args.mode}_reward-{args.reward}_state-{args.state}"
    log_dir = os.path.join(BASE_LOG_DIR, args.group, run_name_tags)
    os.makedirs(log_dir, exist_ok=True)

    # --- Environment Setup ---
    configuration = configuration_from_args(args)
    print(f"Setting up environment... Logging to {log_dir}")
    print(f"Configuration: {configuration}")
    print(f"Using state representation: {args.state}")

    env = make_env(configuration, state=args.state, reward_mode=args.reward,
                   seconds_per_step=args.seconds_per_step)
    env = Monitor(env, log_dir, info_keywords=EPISODE_INFO_KEYWORDS)
    print("Environment setup complete.")

    # --- Model Setup ---
    print("Initializing DQN model...")
    model = build_model(env, log_dir)
    print("Model initialized.")

    callbacks = [
        CheckpointCallback(
            save_freq=args.checkpoint_freq,
            save_path=os.path.join(log_dir, "checkpoints"),
            name_prefix=args.log_name
        ),
        EpisodeLogCallback(),
    ]

    # --- Training ---
    print("--- Starting Training ---")
    print(f"Total Timesteps: {args.timesteps}")
    print(f"TensorBoard logs: {log_dir}")
    print("---------------------------")
    start_time = time.time()

    model.learn(total_timesteps=args.timesteps, callback=callbacks, reset_num_timesteps=False)

    print(f"Training finished in {time.time() - start_time:.2f} seconds.")

    final_model_path = os.path.join(log_dir, f"{args.log_name}_final.zip")
    model.save(final_model_path)
    print(f"Final model saved to {final_model_path}")
    env.close()
    return final_model_path


def main(argv=None):
    args = build_parser().parse_args(argv)
    return train(args)


if __name__ == "__main__":
    main()
