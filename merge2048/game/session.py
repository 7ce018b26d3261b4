"""
Game Session for 2048.

Wraps a `Board` with everything a playable game needs on top of the move
rules: score and best score, undo history, win/loss status and the budgets of
the restricted modes (move count, countdown clock).

Rules applied after every move that changes the board (no-op moves are
discarded without touching history or budgets):
1.  Counters: `moves_made` goes up, `moves_remaining` goes down in limited mode.
2.  Score: the move's score is added and the best score persisted if beaten.
3.  Spawn: exactly one new tile, using the configuration's spawn odds.
4.  Win: the first time the target tile appears (and the mode allows winning).
5.  Loss: budget spent short of the target, or no move left on the board
    (skipped in zen mode).

Listeners registered with `add_listener` are told about `tile_move`,
`tile_merge`, `win` and `game_over` as they happen.
"""

from collections import deque
from enum import Enum

import numpy as np

from merge2048.game.board import Board, MoveResult
from merge2048.game.config import HIGH_SCORE_KEY, MAX_HISTORY_SIZE, STARTING_TILES
from merge2048.game.high_scores import HighScoreStore
from merge2048.game.modes import GameConfiguration, GameMode
from merge2048.game.tile import Direction


class GameStatus(Enum):
    PLAYING = "playing"
    WON = "won"
    GAME_OVER = "game_over"


class GameState:
    """Undo snapshot. Always holds its own copy of the board."""

    def __init__(self, board, score, status, moves_made=0, moves_remaining=None, target_reached=False):
        self.board = board
        self.score = score
        self.status = status
        self.moves_made = moves_made
        self.moves_remaining = moves_remaining
        self.target_reached = target_reached

    def _key(self):
        return (self.board, self.score, self.status, self.moves_made, self.moves_remaining, self.target_reached)

    def __eq__(self, other):
        if not isinstance(other, GameState):
            return NotImplemented
        return self._key() == other._key()

    __hash__ = None


class GameSession:
    """
    A single game of 2048 and its bookkeeping.

    Args:
        configuration (GameConfiguration): Board size, target, mode and spawn odds.
        high_scores (HighScoreStore): Where the best score is loaded from and saved to.
        rng (np.random.Generator): Random source for spawns. Built from `seed` if omitted.
        seed (int): Seed for the default random source.
        high_score_key (str): Name the best score is stored under.
    """

    def __init__(self, configuration=None, high_scores=None, rng=None, seed=None,
                 high_score_key=HIGH_SCORE_KEY):
        self.configuration = configuration if configuration is not None else GameConfiguration()
        self.high_scores = high_scores if high_scores is not None else HighScoreStore()
        self.high_score_key = high_score_key
        self.rng = rng if rng is not None else np.random.default_rng(seed)

        self.high_score = self.high_scores.load(self.high_score_key)
        self.history = deque(maxlen=MAX_HISTORY_SIZE)
        self._listeners = []

        self.new_game()

    # --- Properties ---

    @property
    def mode(self):
        return self.configuration.mode

    @property
    def can_undo(self):
        return bool(self.history) and self.status is not GameStatus.GAME_OVER

    @property
    def is_game_over(self):
        return self.status is GameStatus.GAME_OVER

    @property
    def has_won(self):
        return self.status is GameStatus.WON

    @property
    def budget_exhausted(self):
        return self.moves_remaining is not None and self.moves_remaining <= 0

    # --- Events ---

    def add_listener(self, callback):
        """Registers `callback(event_name, session)`."""
        self._listeners.append(callback)

    def remove_listener(self, callback):
        self._listeners.remove(callback)

    def _emit(self, event):
        for callback in list(self._listeners):
            callback(event, self)

    # --- Game Actions ---

    def new_game(self, configuration=None):
        """Starts over, optionally with a new configuration."""
        if configuration is not None:
            self.configuration = configuration

        mode = self.configuration.mode
        self.board = Board(self.configuration.board_size)
        self.score = 0
        self.status = GameStatus.PLAYING
        self.moves_made = 0
        self.moves_remaining = mode.budget if mode.kind == GameMode.LIMITED_MOVES else None
        self.time_remaining = float(mode.budget) if mode.kind == GameMode.TIMED else None
        self._target_reached = False
        self.history.clear()

        for _ in range(STARTING_TILES):
            self._spawn_tile()

    def move(self, direction):
        """
        Plays one move.

        Returns:
            MoveResult: `did_move=False` when the move changed nothing or the
            session is not accepting moves.
        """
        direction = Direction.parse(direction)
        if self.status is not GameStatus.PLAYING or (self.budget_exhausted and not self._on_target()):
            return MoveResult.no_move()

        snapshot = self._snapshot()
        result = self.board.move(direction)

        if not result.did_move:
            return result

        self.history.append(snapshot)

        self.moves_made += 1
        if self.moves_remaining is not None:
            self.moves_remaining = max(0, self.moves_remaining - 1)

        self.score += result.score_gained
        self._update_high_score()

        self._spawn_tile()

        self._emit("tile_move")
        if result.score_gained > 0:
            self._emit("tile_merge")

        self._update_status()
        return result

    def undo(self):
        """
        Restores the state saved before the last move.

        The countdown clock is not rewound; it follows wall time.

        Returns:
            bool: False when there is nothing to undo or the game is over.
        """
        if not self.can_undo:
            return False

        state = self.history.pop()
        self.board = state.board.copy()
        self.score = state.score
        self.status = state.status
        self.moves_made = state.moves_made
        self.moves_remaining = state.moves_remaining
        self._target_reached = state.target_reached
        return True

    def continue_after_win(self):
        """Resumes play after the win overlay."""
        if self.status is not GameStatus.WON:
            return

        self.status = GameStatus.PLAYING
        # A board that locked up on the winning move ends here
        self._check_loss()

    def tick(self, seconds=1.0):
        """Advances the countdown clock in timed mode."""
        if self.time_remaining is None or self.status is not GameStatus.PLAYING:
            return

        self.time_remaining = max(0.0, self.time_remaining - seconds)
        if self.time_remaining <= 0:
            self._set_status(GameStatus.GAME_OVER)

    # --- Private Helpers ---

    def _snapshot(self):
        return GameState(self.board.copy(), self.score, self.status,
                         self.moves_made, self.moves_remaining, self._target_reached)

    def _spawn_tile(self):
        return self.board.spawn_random_tile(self.configuration.spawn_probability, self.rng)

    def _update_high_score(self):
        if self.score > self.high_score:
            self.high_score = self.score
            self.high_scores.save(self.high_score_key, self.high_score)

    def _set_status(self, status):
        if status is self.status:
            return
        self.status = status
        if status is GameStatus.WON:
            self._emit("win")
        elif status is GameStatus.GAME_OVER:
            self._emit("game_over")

    def _on_target(self):
        return self.board.max_tile_value >= self.configuration.target_value

    def _update_status(self):
        if self.mode.allows_win and self._on_target() and not self._target_reached:
            self._target_reached = True
            self._set_status(GameStatus.WON)
            return

        self._check_loss()

    def _check_loss(self):
        if not self.mode.allows_loss:
            return

        if self.budget_exhausted and not self._on_target():
            self._set_status(GameStatus.GAME_OVER)
        elif not self.board.can_move():
            self._set_status(GameStatus.GAME_OVER)

    def __str__(self):
        mode = self.mode
        difficulty = self.configuration.difficulty
        lines = [f"{mode.display_name} ({difficulty.display_name}): {mode.description}",
                 f"Score: {self.score}  Best: {self.high_score}  Status: {self.status.value}"]
        if self.moves_remaining is not None:
            lines.append(f"Moves left: {self.moves_remaining}")
        if self.time_remaining is not None:
            lines.append(f"Time left: {self.time_remaining:.0f}s")
        lines.append(str(self.board))
        return "\n".join(lines)


if __name__ == "__main__":
    # --- Interactive Terminal Mode ---
    session = GameSession()
    print("Welcome to 2048!")
    print("Use W (up), A (left), S (down), D (right) to play.")
    print("U to undo, C to continue after a win, N for a new game, Q to quit.")

    move_map = {
        'w': Direction.UP,
        's': Direction.DOWN,
        'a': Direction.LEFT,
        'd': Direction.RIGHT,
    }

    while True:
        print(session)

        if session.has_won:
            print(f"Congratulations! You've reached {session.configuration.target_value}! Press C to keep going.")
        elif session.is_game_over:
            print("Game Over! Press N for a new game or Q to quit.")

        command = input("Enter your move (w/a/s/d/u/c/n/q): ").lower().strip()

        if command == 'q':
            break
        elif command == 'u':
            if not session.undo():
                print("Nothing to undo.")
        elif command == 'c':
            session.continue_after_win()
        elif command == 'n':
            session.new_game()
        elif command in move_map:
            if not session.move(move_map[command]).did_move:
                print("Invalid move. Try another direction.")
        else:
            print("Invalid input. Please use w, a, s, d, u, c, n or q.")
