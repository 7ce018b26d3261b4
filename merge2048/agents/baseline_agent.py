"""
Baseline agents that play 2048 through a `GameSession`.

- RandomBaselineAgent: picks uniformly among the moves that change the board.
- GreedyAgent: picks the move with the best immediate score, looking one move
  ahead with `Board.preview`.

Usage:
    python -m merge2048.agents.baseline_agent --agent greedy --games 20 --size 4
"""

import argparse
import time

import numpy as np
from tqdm import tqdm

from merge2048.agents.config import MAX_STEPS_PER_EPISODE
from merge2048.agents.evaluate import add_game_arguments, configuration_from_args
from merge2048.game.modes import GameMode
from merge2048.game.session import GameSession, GameStatus
from merge2048.game.tile import Direction


class RandomBaselineAgent:

    def __init__(self, seed=None):
        self.rng = np.random.default_rng(seed)

    def choose_action(self, session):
        '''
        Picks a random valid move, or None when nothing moves.
        '''
        valid_actions = session.board.valid_moves()
        if not valid_actions:
            return None
        return valid_actions[int(self.rng.integers(len(valid_actions)))]


class GreedyAgent:

    # Tie-break order: corner strategies favour left and up
    PREFERENCE = (Direction.LEFT, Direction.UP, Direction.RIGHT, Direction.DOWN)

    def choose_action(self, session):
        best_action = None
        best_score = -1

        for action in self.PREFERENCE:
            _, result = session.board.preview(action)
            if result.did_move and result.score_gained > best_score:
                best_action = action
                best_score = result.score_gained

        return best_action


def policy_from_agent(agent):
    """Adapts an agent to the `policy(observation, env)` form used by `run_episodes`."""
    def policy(_obs, env):
        action = agent.choose_action(env.unwrapped.session)
        return int(action) if action is not None else int(Direction.UP)
    return policy


def play_game(agent, configuration=None, seed=None, print_board=False, delay=0.0,
              continue_after_win=False, seconds_per_move=0.0, max_steps=MAX_STEPS_PER_EPISODE):
    '''
    Plays a full game with the given agent, until no valid move is left,
    the target is reached (unless `continue_after_win`) or `max_steps` runs out.

    Returns:
        GameSession: the finished session.
    '''
    session = GameSession(configuration, seed=seed)
    steps = 0

    while session.status is not GameStatus.GAME_OVER and steps < max_steps:
        if session.has_won:
            if print_board:
                print(f"Congrats, Agent reached {session.configuration.target_value} block!")
            if not continue_after_win:
                break
            session.continue_after_win()
            continue

        if print_board:  # if true, print board every turn
            print(session)
            print("-" * 20)
            time.sleep(delay)

        action = agent.choose_action(session)
        if action is None:
            break  # that means no valid move

        session.move(action)
        if seconds_per_move:
            session.tick(seconds_per_move)
        steps += 1

    if print_board:
        print("Final Board:")
        print(session)
        print(f"Final Score: {session.score}")
        print("=" * 30)
    return session


def main(argv=None):
    parser = argparse.ArgumentParser(description="Plays 2048 with a baseline agent.")
    parser.add_argument("--agent", choices=["random", "greedy"], default="random")
    parser.add_argument("--games", type=int, default=1)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--print_board", action="store_true")
    parser.add_argument("--delay", type=float, default=0.2)
    parser.add_argument("--continue_after_win", action="store_true")
    add_game_arguments(parser)
    args = parser.parse_args(argv)

    configuration = configuration_from_args(args)
    agent = RandomBaselineAgent(args.seed) if args.agent == "random" else GreedyAgent()
    seed_sequence = np.random.SeedSequence(args.seed)
    seconds_per_move = args.seconds_per_step if args.mode == GameMode.TIMED else 0.0

    scores = []
    for child_seed in tqdm(seed_sequence.spawn(args.games), desc=f"{args.agent} agent", disable=args.print_board):
        session = play_game(agent, configuration, seed=child_seed, print_board=args.print_board,
                            delay=args.delay, continue_after_win=args.continue_after_win,
                            seconds_per_move=seconds_per_move)
        scores.append(session.score)

    print(f"\nAverage Score after {args.games} games: {np.mean(scores):.2f}")
    print(f"Best Score: {max(scores)}")
    return scores


if __name__ == "__main__":
    main()
