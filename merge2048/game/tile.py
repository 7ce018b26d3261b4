import uuid
from enum import IntEnum


class Direction(IntEnum):
    """
    The four swipe directions.

    The integer values are the action indices used by the environments
    (0:Up, 1:Down, 2:Left, 3:Right).
    """
    UP = 0
    DOWN = 1
    LEFT = 2
    RIGHT = 3

    @classmethod
    def parse(cls, value):
        """Accepts a Direction, an action index or a name such as 'left'."""
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ValueError(f"Unknown direction: {value!r}") from None
        return cls(value)


class Tile:
    """
    A single numbered tile.

    `id` is stable for the tile's whole lifetime: it survives slides and
    survives as the absorbing side of a merge. `is_new` and `was_merged` are
    presentation hints only and are reset at the start of every move.
    """

    def __init__(self, value, row, col, tile_id=None, is_new=True, was_merged=False):
        self.id = tile_id if tile_id is not None else uuid.uuid4().hex
        self.value = value
        self.row = row
        self.col = col
        self.is_new = is_new
        self.was_merged = was_merged

    @property
    def position(self):
        return self.row, self.col

    def move_to(self, row, col):
        """Moves the tile in-place, keeping its id."""
        self.row = row
        self.col = col
        self.is_new = False
        self.was_merged = False

    def copy(self):
        return Tile(self.value, self.row, self.col, tile_id=self.id,
                    is_new=self.is_new, was_merged=self.was_merged)

    def __eq__(self, other):
        if not isinstance(other, Tile):
            return NotImplemented
        return (self.id, self.value, self.row, self.col) == (other.id, other.value, other.row, other.col)

    def __hash__(self):
        return hash(self.id)

    def __repr__(self):
        return f"Tile(value={self.value}, row={self.row}, col={self.col}, id={self.id[:8]})"
