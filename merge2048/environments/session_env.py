import gymnasium
from gymnasium import spaces
import numpy as np

from merge2048.game.high_scores import HighScoreStore
from merge2048.game.modes import GameConfiguration
from merge2048.game.session import GameSession, GameStatus
from merge2048.game.tile import Direction

REWARD_MODES = ("raw_score", "log_merge", "potential_log")


class Session2048Env(gymnasium.Env):
    """
    A Gymnasium environment around a `GameSession`.

    Actions are the `Direction` indices (0:Up, 1:Down, 2:Left, 3:Right) and
    observations the raw (size, size) grid of tile values. Every reset builds a
    fresh session seeded from the env's own `np_random`, so `reset(seed=...)`
    reproduces the same opening board.

    Args:
        configuration (GameConfiguration): Board size, target and mode.
        render_mode (str): None, 'human' (print) or 'ansi' (return text).
        reward_mode (str): 'raw_score', 'log_merge' or 'potential_log'.
        seconds_per_step (float): Clock advanced per step in timed mode.
        continue_after_win (bool): Keep playing past the target instead of terminating.
    """
    metadata = {"render_modes": ["human", "ansi"]}

    def __init__(self, configuration=None, render_mode=None, reward_mode="raw_score",
                 seconds_per_step=0.0, continue_after_win=False):
        super().__init__()

        if reward_mode not in REWARD_MODES:
            raise ValueError(f"Unknown reward_mode: {reward_mode}. Must be one of {REWARD_MODES}.")
        if render_mode is not None and render_mode not in self.metadata["render_modes"]:
            raise ValueError(f"Unknown render_mode: {render_mode}.")

        self.configuration = configuration if configuration is not None else GameConfiguration()
        self.reward_mode = reward_mode
        self.seconds_per_step = seconds_per_step
        self.continue_after_win = continue_after_win
        self.render_mode = render_mode

        # Best score survives resets
        self.high_scores = HighScoreStore()
        self.session = None

        size = self.configuration.board_size
        self.action_space = spaces.Discrete(len(Direction))
        self.observation_space = spaces.Box(low=0,
                                            high=np.iinfo(np.int32).max,
                                            shape=(size, size),
                                            dtype=np.int32)

    def _get_observation(self):
        return self.session.board.to_array(dtype=np.int32)

    def _get_episode_info(self):
        return {
            "score": self.session.score,
            "max_tile": int(self.session.board.max_tile_value),
            "moves": self.session.moves_made,
            "status": self.session.status.value,
        }

    def reset(self, seed=None, options=None):
        super().reset(seed=seed)

        self.session = GameSession(self.configuration, high_scores=self.high_scores, rng=self.np_random)

        observation = self._get_observation()
        info = self._get_episode_info()

        if self.render_mode == "human":
            self.render()
        return observation, info

    def step(self, action):
        direction = Direction(int(action))
        score_before_move = self.session.score

        result = self.session.move(direction)
        if self.seconds_per_step:
            self.session.tick(self.seconds_per_step)

        # initialize additive reward components
        potential_bonus = 0.0
        cost_of_living_penalty = 0.0

        merged_tiles = [self.session.board.tile(tile_id).value for tile_id in result.merged_tile_ids]
        num_empty_cells = len(self.session.board.empty_positions)

        if not result.did_move:
            reward = -1.0  # Punish moves that change nothing
        else:
            if self.reward_mode in ("log_merge", "potential_log"):
                base_reward = float(np.sum(np.log2(merged_tiles))) if merged_tiles else 0.0
            else:
                base_reward = float(result.score_gained)

            if self.reward_mode == "potential_log":
                # Small bonus for every empty cell, small penalty for a move without merges
                potential_bonus = 0.01 * num_empty_cells
                if not merged_tiles:
                    cost_of_living_penalty = -0.1

            reward = base_reward + potential_bonus + cost_of_living_penalty

        if self.session.status is GameStatus.WON and self.continue_after_win:
            self.session.continue_after_win()

        terminated = self.session.status is not GameStatus.PLAYING
        truncated = False

        info = {
            "moved": result.did_move,
            "num_empty_cells": num_empty_cells,
            "potential_bonus": float(potential_bonus),
            "cost_of_living_penalty": float(cost_of_living_penalty),
            "merged_tiles": merged_tiles,
            "raw_score_delta": self.session.score - score_before_move,
            "reward_mode": self.reward_mode,
        }
        info.update(self._get_episode_info())

        if self.render_mode == "human":
            self.render()

        return self._get_observation(), reward, terminated, truncated, info

    def action_masks(self):
        """Boolean mask [Up, Down, Left, Right] of moves that change the board."""
        valid = set(self.session.board.valid_moves())
        return np.array([direction in valid for direction in Direction], dtype=bool)

    def render(self):
        if self.render_mode == "ansi":
            return str(self.session)
        if self.render_mode == "human":
            print(self.session)
