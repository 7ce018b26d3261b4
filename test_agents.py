import contextlib
import io
import os
import tempfile
import unittest
import numpy as np

from merge2048.agents.baseline_agent import (
    GreedyAgent,
    RandomBaselineAgent,
    main as baseline_main,
    play_game,
    policy_from_agent,
)
from merge2048.agents.evaluate import configuration_from_args, main as evaluate_main, make_env, run_episodes
from merge2048.agents.train_baseline import build_model, build_parser
from merge2048.environments.session_env import Session2048Env
from merge2048.environments.wrapper import Log2Wrapper
from merge2048.game.board import Board
from merge2048.game.modes import GameConfiguration, GameMode
from merge2048.game.session import GameSession
from merge2048.game.tile import Direction


def session_with_board(values):
    session = GameSession(GameConfiguration(board_size=len(values)), seed=0)
    session.board = Board.from_array(np.array(values))
    return session


ONLY_DOWN = [
    [2, 4, 8, 16],
    [0, 0, 0, 0],
    [0, 0, 0, 0],
    [0, 0, 0, 0]
]

LOCKED = [
    [2, 4, 2],
    [4, 2, 4],
    [2, 4, 2]
]


class TestBaselineAgents(unittest.TestCase):

    """Action Selection Tests"""
    def test_random_agent_only_picks_valid_moves(self):
        agent = RandomBaselineAgent(seed=0)
        session = session_with_board(ONLY_DOWN)
        for _ in range(10):
            self.assertIs(agent.choose_action(session), Direction.DOWN)

    def test_agents_return_none_on_locked_board(self):
        session = session_with_board(LOCKED)
        self.assertIsNone(RandomBaselineAgent(seed=0).choose_action(session))
        self.assertIsNone(GreedyAgent().choose_action(session))

    def test_greedy_agent_prefers_score(self):
        session = session_with_board([
            [2, 0, 0, 0],
            [2, 0, 0, 0],
            [0, 0, 0, 0],
            [0, 0, 0, 0]
        ])
        # LEFT changes nothing, UP and DOWN both score 4, UP comes first
        self.assertIs(GreedyAgent().choose_action(session), Direction.UP)

    def test_greedy_agent_tie_break(self):
        session = session_with_board([
            [2, 2, 0, 0],
            [0, 0, 0, 0],
            [0, 0, 0, 0],
            [4, 0, 0, 4]
        ])
        self.assertIs(GreedyAgent().choose_action(session), Direction.LEFT)

    def test_greedy_agent_does_not_mutate(self):
        session = session_with_board(ONLY_DOWN)
        before = session.board.copy()
        GreedyAgent().choose_action(session)
        self.assertEqual(session.board, before)

    """Full Game Tests"""
    def test_play_game_until_game_over(self):
        session = play_game(GreedyAgent(), GameConfiguration(board_size=3), seed=0, print_board=False)
        self.assertTrue(session.is_game_over)
        self.assertGreater(session.score, 0)
        self.assertGreater(session.moves_made, 0)

    def test_play_game_stops_on_win(self):
        session = play_game(GreedyAgent(), GameConfiguration(target_value=8), seed=1, print_board=False)
        self.assertTrue(session.has_won)
        self.assertGreaterEqual(session.board.max_tile_value, 8)

    def test_play_game_limited_moves(self):
        config = GameConfiguration(mode=GameMode.limited_moves(5))
        session = play_game(RandomBaselineAgent(seed=2), config, seed=2, print_board=False)
        self.assertTrue(session.is_game_over)
        self.assertEqual(session.moves_made, 5)
        self.assertEqual(session.moves_remaining, 0)

    def test_play_game_is_quiet_by_default(self):
        output = io.StringIO()
        with contextlib.redirect_stdout(output):
            play_game(GreedyAgent(), GameConfiguration(board_size=3), seed=0)
        self.assertEqual(output.getvalue(), "")

    def test_play_game_respects_max_steps(self):
        config = GameConfiguration(mode=GameMode.zen())
        session = play_game(GreedyAgent(), config, seed=3, print_board=False, max_steps=10)
        self.assertEqual(session.moves_made, 10)

    def test_main_runs_games(self):
        scores = baseline_main(["--agent", "greedy", "--games", "2", "--size", "3", "--seed", "0"])
        self.assertEqual(len(scores), 2)


class TestEvaluation(unittest.TestCase):

    def test_run_episodes_aggregates_metrics(self):
        env = Session2048Env(GameConfiguration(board_size=3))
        policy = policy_from_agent(RandomBaselineAgent(seed=0))
        metrics = run_episodes(env, policy, n_episodes=3, seed=0, progress=False)

        self.assertEqual(len(metrics["scores"]), 3)
        self.assertEqual(len(metrics["max_tiles"]), 3)
        self.assertEqual(metrics["best_score"], max(metrics["scores"]))
        self.assertAlmostEqual(metrics["avg_score"], float(np.mean(metrics["scores"])))
        self.assertGreaterEqual(metrics["win_rate"], 0.0)
        self.assertLessEqual(metrics["win_rate"], 1.0)

    def test_run_episodes_counts_wins(self):
        env = Session2048Env(GameConfiguration(target_value=4, two_probability=1.0))
        policy = policy_from_agent(GreedyAgent())
        metrics = run_episodes(env, policy, n_episodes=2, seed=0, progress=False)
        self.assertEqual(metrics["win_rate"], 1.0)

    def test_run_episodes_caps_steps(self):
        env = Session2048Env(GameConfiguration(mode=GameMode.zen()))
        policy = policy_from_agent(GreedyAgent())
        metrics = run_episodes(env, policy, n_episodes=1, max_steps=5, seed=0, progress=False)
        self.assertEqual(len(metrics["scores"]), 1)
        self.assertEqual(env.unwrapped.session.moves_made, 5)

    def test_make_env_log2(self):
        env = make_env(GameConfiguration(board_size=5), state="log2")
        self.assertIsInstance(env, Log2Wrapper)
        self.assertEqual(env.observation_space.shape, (5, 5))


class TestTrainingSetup(unittest.TestCase):

    def test_parser_defaults(self):
        args = build_parser().parse_args([])
        self.assertEqual(args.reward, "raw_score")
        self.assertEqual(args.state, "raw_values")
        self.assertEqual(args.size, 4)
        self.assertEqual(args.mode, "classic")

    def test_configuration_from_args(self):
        args = build_parser().parse_args(["--size", "5", "--mode", "limited_moves", "--budget", "30",
                                          "--target", "1024", "--difficulty", "hard"])
        config = configuration_from_args(args)
        self.assertEqual(config.board_size, 5)
        self.assertEqual(config.target_value, 1024)
        self.assertEqual(config.mode, GameMode.limited_moves(30))
        self.assertAlmostEqual(config.spawn_probability, 0.8)

    def test_help_lists_mode_and_difficulty_descriptions(self):
        help_text = " ".join(build_parser().format_help().split())
        self.assertIn("limited_moves: Reach the target in 50 moves", help_text)
        self.assertIn("timed: Reach the target in 120 seconds", help_text)
        self.assertIn("easy: 95% chance for 2s", help_text)

    def test_evaluate_main_loads_saved_model(self):
        with tempfile.TemporaryDirectory() as tmp:
            model = build_model(make_env(GameConfiguration(board_size=3), state="log2"))
            model_path = os.path.join(tmp, "dqn_baseline_final")
            model.save(model_path)

            # Timed mode bounds the episode even if the policy keeps picking a no-op move
            metrics = evaluate_main(["--model_path", model_path + ".zip", "--state", "log2", "--size", "3",
                                     "--mode", "timed", "--budget", "5", "--seconds_per_step", "1",
                                     "--n_episodes", "1", "--seed", "0"])

        self.assertEqual(len(metrics["scores"]), 1)
        self.assertIn("win_rate", metrics)

    def test_build_model(self):
        env = make_env(GameConfiguration(board_size=3), state="log2")
        model = build_model(env)
        self.assertEqual(model.action_space.n, 4)
        action, _ = model.predict(env.reset(seed=0)[0], deterministic=True)
        self.assertIn(int(action), range(4))


if __name__ == "__main__":
    unittest.main()
