from enum import Enum

from merge2048.game.config import (
    BOARD_SIZES,
    DEFAULT_BOARD_SIZE,
    DEFAULT_TWO_PROBABILITY,
    EASY_TWO_PROBABILITY,
    HARD_TWO_PROBABILITY,
    LIMITED_MOVES_COUNT,
    TIMED_MODE_SECONDS,
    WIN_TILE,
)


class Difficulty(Enum):
    """Difficulty levels only change how often a '4' spawns."""
    EASY = "easy"
    NORMAL = "normal"
    HARD = "hard"

    @property
    def two_probability(self):
        return {
            Difficulty.EASY: EASY_TWO_PROBABILITY,
            Difficulty.NORMAL: DEFAULT_TWO_PROBABILITY,
            Difficulty.HARD: HARD_TWO_PROBABILITY,
        }[self]

    @property
    def display_name(self):
        return self.value.capitalize()

    @property
    def description(self):
        return f"{round(self.two_probability * 100)}% chance for 2s"


class GameMode:
    """
    How a session can be won or lost.

    - classic: play until the target is reached or the board locks up.
    - timed: reach the target before the clock (driven by `tick`) runs out.
    - limited_moves: reach the target within a fixed number of moves.
    - zen: no win and no loss, just play.
    """
    CLASSIC = "classic"
    TIMED = "timed"
    LIMITED_MOVES = "limited_moves"
    ZEN = "zen"

    KINDS = (CLASSIC, TIMED, LIMITED_MOVES, ZEN)

    def __init__(self, kind=CLASSIC, budget=None):
        if kind not in self.KINDS:
            raise ValueError(f"Unknown game mode: {kind}. Must be one of {self.KINDS}.")

        if kind in (self.TIMED, self.LIMITED_MOVES):
            if budget is None or budget <= 0:
                raise ValueError(f"Mode '{kind}' needs a positive budget, got {budget}.")
        else:
            budget = None

        self.kind = kind
        self.budget = budget

    @classmethod
    def classic(cls):
        return cls(cls.CLASSIC)

    @classmethod
    def timed(cls, seconds=TIMED_MODE_SECONDS):
        return cls(cls.TIMED, seconds)

    @classmethod
    def limited_moves(cls, count=LIMITED_MOVES_COUNT):
        return cls(cls.LIMITED_MOVES, count)

    @classmethod
    def zen(cls):
        return cls(cls.ZEN)

    @classmethod
    def from_name(cls, name, budget=None):
        """Builds a mode from its CLI name, using the default budget when none is given."""
        if name == cls.TIMED:
            return cls.timed() if budget is None else cls.timed(budget)
        if name == cls.LIMITED_MOVES:
            return cls.limited_moves() if budget is None else cls.limited_moves(budget)
        return cls(name)

    @property
    def allows_win(self):
        return self.kind != self.ZEN

    @property
    def allows_loss(self):
        return self.kind != self.ZEN

    @property
    def display_name(self):
        return {
            self.CLASSIC: "Classic",
            self.TIMED: "Timed",
            self.LIMITED_MOVES: "Limited Moves",
            self.ZEN: "Zen",
        }[self.kind]

    @property
    def description(self):
        if self.kind == self.TIMED:
            return f"Reach the target in {self.budget} seconds"
        if self.kind == self.LIMITED_MOVES:
            return f"Reach the target in {self.budget} moves"
        if self.kind == self.ZEN:
            return "Relax and play without limits"
        return "Play until you reach the target or can't move"

    def __eq__(self, other):
        if not isinstance(other, GameMode):
            return NotImplemented
        return (self.kind, self.budget) == (other.kind, other.budget)

    def __hash__(self):
        return hash((self.kind, self.budget))

    def __repr__(self):
        if self.budget is None:
            return f"GameMode({self.kind!r})"
        return f"GameMode({self.kind!r}, budget={self.budget})"


class GameConfiguration:
    """
    Everything fixed for the lifetime of a session.

    Args:
        target_value (int): Tile value that wins the game.
        board_size (int): Side length, one of `BOARD_SIZES`.
        mode (GameMode): Win/loss rules. Defaults to classic.
        difficulty (Difficulty): Spawn odds preset.
        two_probability (float): Overrides the difficulty's spawn odds.
    """

    def __init__(self, target_value=WIN_TILE, board_size=DEFAULT_BOARD_SIZE, mode=None,
                 difficulty=Difficulty.NORMAL, two_probability=None):
        if board_size not in BOARD_SIZES:
            raise ValueError(f"Unsupported board size: {board_size}. Must be one of {BOARD_SIZES}.")
        if target_value < 4 or target_value & (target_value - 1):
            raise ValueError(f"Target value must be a power of two >= 4, got {target_value}.")
        if two_probability is not None and not 0.0 <= two_probability <= 1.0:
            raise ValueError(f"Spawn probability must be within [0, 1], got {two_probability}.")

        self.target_value = target_value
        self.board_size = board_size
        self.mode = mode if mode is not None else GameMode.classic()
        self.difficulty = Difficulty(difficulty)
        self.two_probability = two_probability

    @property
    def spawn_probability(self):
        """Probability that a spawned tile is a '2'."""
        if self.two_probability is not None:
            return self.two_probability
        return self.difficulty.two_probability

    def __eq__(self, other):
        if not isinstance(other, GameConfiguration):
            return NotImplemented
        return (self.target_value, self.board_size, self.mode, self.spawn_probability) == \
            (other.target_value, other.board_size, other.mode, other.spawn_probability)

    __hash__ = None

    def __repr__(self):
        return (f"GameConfiguration(target_value={self.target_value}, board_size={self.board_size}, "
                f"mode={self.mode!r}, spawn_probability={self.spawn_probability})")
