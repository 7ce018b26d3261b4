"""
Board Engine for 2048.

This module owns the grid state and the move rules. It is split in two layers:

1.  Numba JIT Kernel: `merge_line` compacts and merges a single row/column of
    values and reports, for every output slot, which input tile survived there.
    It knows nothing about tiles or identities.
2.  Identity Layer: `Board.move` feeds each line through the kernel and maps
    the result back onto real `Tile` objects, so a tile that slides or absorbs
    a neighbour keeps its id across the move. Presentation layers rely on that
    continuity to animate tiles rather than re-create them.

`Board.preview` performs the same computation on a copy, which lets agents
"imagine" a move without touching the live board.
"""

import numpy as np
from numba import njit

from merge2048.game.config import BOARD_SIZES, DEFAULT_BOARD_SIZE, DEFAULT_TWO_PROBABILITY
from merge2048.game.tile import Direction, Tile


@njit(fastmath=True)
def merge_line(line):
    """
    Core Logic: Compresses and merges a 1D array of tile values.

    Values are pulled toward index 0. Each pair merges at most once per move
    and the scan never reconsiders a freshly merged tile:
    - [2, 0, 2, 4] -> [4, 4, 0, 0]
    - [2, 2, 2, 2] -> [4, 4, 0, 0] (two merges, never [8, 0, 0, 0])
    - [2, 2, 2]    -> [4, 2, 0]

    Args:
        line (np.array): 1D int64 array, 0 for an empty cell.

    Returns:
        (np.array, np.array, np.array, int):
            merged values (padded with zeros),
            survivor index into the compacted input for every slot (-1 = empty),
            merge flag for every slot,
            score gained on this line.
    """
    length = line.shape[0]
    temp = np.zeros(length, dtype=np.int64)

    # 1. Compress Phase: Remove zeros/gaps
    count = 0
    for i in range(length):
        if line[i] != 0:
            temp[count] = line[i]
            count += 1

    # 2. Merge Phase: Combine identical neighbours
    result = np.zeros(length, dtype=np.int64)
    sources = np.zeros(length, dtype=np.int64) - 1
    merged = np.zeros(length, dtype=np.bool_)
    score = 0
    write_idx = 0
    read_idx = 0

    while read_idx < count:
        current_val = temp[read_idx]
        sources[write_idx] = read_idx

        if read_idx + 1 < count and temp[read_idx + 1] == current_val:
            merged_val = current_val * 2
            result[write_idx] = merged_val
            merged[write_idx] = True
            score += merged_val
            read_idx += 2  # Skip the consumed tile
        else:
            result[write_idx] = current_val
            read_idx += 1

        write_idx += 1

    return result, sources, merged, score


class MoveResult:
    """
    Outcome of a single move.

    `merged_tile_ids` holds the surviving side of every merge and
    `moved_tile_ids` every tile whose position or value changed. Both are for
    animation only; game rules use `did_move` and `score_gained`.
    """

    def __init__(self, did_move, score_gained, merged_tile_ids=(), moved_tile_ids=()):
        self.did_move = did_move
        self.score_gained = score_gained
        self.merged_tile_ids = frozenset(merged_tile_ids)
        self.moved_tile_ids = frozenset(moved_tile_ids)

    @classmethod
    def no_move(cls):
        return cls(False, 0)

    def __repr__(self):
        return (f"MoveResult(did_move={self.did_move}, score_gained={self.score_gained}, "
                f"merged={len(self.merged_tile_ids)}, moved={len(self.moved_tile_ids)})")


class Board:
    """
    A square 2048 board and the tiles on it.

    Tiles are indexed twice: by id (`_tiles`) and by position (`_grid`). The
    board is the sole owner of its tiles; use `copy()` whenever a snapshot is
    needed so that no two boards ever share a `Tile` object.
    """

    def __init__(self, size=DEFAULT_BOARD_SIZE, tiles=None):
        if size not in BOARD_SIZES:
            raise ValueError(f"Unsupported board size: {size}. Must be one of {BOARD_SIZES}.")

        self.size = size
        self._tiles = {}
        self._grid = [[None] * size for _ in range(size)]

        for tile in tiles or ():
            self._place(tile)

    @classmethod
    def from_array(cls, values):
        """
        Builds a board from a square grid of values (0 = empty).

        Tiles created this way are not flagged as new.
        """
        grid = np.asarray(values)
        if grid.ndim != 2 or grid.shape[0] != grid.shape[1]:
            raise ValueError(f"Board values must be a square grid, got shape {grid.shape}.")

        tiles = []
        for row, col in zip(*np.nonzero(grid)):
            tiles.append(Tile(int(grid[row, col]), int(row), int(col), is_new=False))
        return cls(grid.shape[0], tiles)

    def _place(self, tile):
        if not (0 <= tile.row < self.size and 0 <= tile.col < self.size):
            raise ValueError(f"Tile position {tile.position} is outside a {self.size}x{self.size} board.")
        if tile.value < 2 or tile.value & (tile.value - 1):
            raise ValueError(f"Tile value must be a power of two >= 2, got {tile.value}.")
        if self._grid[tile.row][tile.col] is not None:
            raise ValueError(f"Position {tile.position} is already occupied.")
        if tile.id in self._tiles:
            raise ValueError(f"Duplicate tile id: {tile.id}")

        self._tiles[tile.id] = tile
        self._grid[tile.row][tile.col] = tile.id

    # --- Queries ---

    @property
    def tiles(self):
        """All tiles in row-major order."""
        return [self._tiles[tile_id] for row in self._grid for tile_id in row if tile_id is not None]

    def tile(self, tile_id):
        return self._tiles.get(tile_id)

    def tile_at(self, row, col):
        tile_id = self._grid[row][col]
        return self._tiles[tile_id] if tile_id is not None else None

    @property
    def empty_positions(self):
        return [(row, col)
                for row in range(self.size)
                for col in range(self.size)
                if self._grid[row][col] is None]

    @property
    def is_full(self):
        return len(self._tiles) == self.size * self.size

    @property
    def max_tile_value(self):
        return max((tile.value for tile in self._tiles.values()), default=0)

    def to_array(self, dtype=np.int64):
        """Returns the board as a (size, size) grid of values, 0 for empty."""
        grid = np.zeros((self.size, self.size), dtype=dtype)
        for tile in self._tiles.values():
            grid[tile.row, tile.col] = tile.value
        return grid

    def can_move(self):
        """True if any cell is empty or two orthogonal neighbours share a value."""
        if not self.is_full:
            return True

        grid = self.to_array()
        horizontal = np.any(grid[:, :-1] == grid[:, 1:])
        vertical = np.any(grid[:-1, :] == grid[1:, :])
        return bool(horizontal or vertical)

    # --- Mutations ---

    def spawn_random_tile(self, two_probability=DEFAULT_TWO_PROBABILITY, rng=None):
        """
        Places a new tile on a random empty cell.

        Args:
            two_probability (float): Chance that the tile is a '2' (otherwise '4').
            rng (np.random.Generator): Random source. A fresh unseeded one is
                used when omitted.

        Returns:
            Tile or None: The new tile, or None when the board is full.
        """
        empty = self.empty_positions
        if not empty:
            return None

        if rng is None:
            rng = np.random.default_rng()

        row, col = empty[int(rng.integers(len(empty)))]
        value = 2 if rng.random() < two_probability else 4

        tile = Tile(value, row, col)
        self._place(tile)
        return tile

    def clear_animation_flags(self):
        for tile in self._tiles.values():
            tile.is_new = False
            tile.was_merged = False

    def move(self, direction):
        """
        Slides every line toward `direction`, merging equal neighbours.

        Returns:
            MoveResult: whether anything changed, the score gained and the ids
            involved. A result with `did_move=False` leaves every tile where
            it was.
        """
        direction = Direction.parse(direction)
        self.clear_animation_flags()

        total_score = 0
        did_move = False
        merged_ids = set()
        moved_ids = set()

        for index in range(self.size):
            positions = self._line_positions(index, direction)
            line = [self._grid[row][col] for row, col in positions]
            compacted = [tile_id for tile_id in line if tile_id is not None]

            values = np.array([self._tiles[tile_id].value if tile_id is not None else 0
                               for tile_id in line], dtype=np.int64)
            new_values, sources, merge_flags, score = merge_line(values)

            if not np.array_equal(new_values, values):
                did_move = True
            total_score += int(score)

            # (survivor id, new value, target position, merged) for every occupied slot
            survivors = []
            for slot in range(len(compacted)):
                source = sources[slot]
                if source < 0:
                    break
                survivors.append((compacted[source], int(new_values[slot]),
                                  positions[slot], bool(merge_flags[slot])))

            line_merged, line_moved = self._apply_line(positions, compacted, survivors)
            merged_ids |= line_merged
            moved_ids |= line_moved

        return MoveResult(did_move, total_score, merged_ids, moved_ids)

    def _line_positions(self, index, direction):
        """Board coordinates of one line, starting at the edge tiles slide toward."""
        span = range(self.size)
        if direction is Direction.LEFT:
            return [(index, col) for col in span]
        if direction is Direction.RIGHT:
            return [(index, col) for col in reversed(span)]
        if direction is Direction.UP:
            return [(row, index) for row in span]
        return [(row, index) for row in reversed(span)]

    def _apply_line(self, positions, compacted, survivors):
        """Writes one processed line back as a single batch against the id map."""
        surviving_ids = {tile_id for tile_id, _, _, _ in survivors}

        for row, col in positions:
            self._grid[row][col] = None

        for tile_id in compacted:
            if tile_id not in surviving_ids:
                del self._tiles[tile_id]

        merged_ids = set()
        moved_ids = set()
        for tile_id, value, (row, col), merged in survivors:
            tile = self._tiles[tile_id]
            if (row, col) != tile.position or value != tile.value:
                moved_ids.add(tile_id)

            tile.move_to(row, col)
            if merged:
                tile.value = value
                tile.was_merged = True
                merged_ids.add(tile_id)

            self._grid[row][col] = tile_id

        return merged_ids, moved_ids

    # --- Look-ahead ---

    def copy(self):
        """Independent deep copy; tiles keep their ids."""
        return Board(self.size, [tile.copy() for tile in self._tiles.values()])

    def preview(self, direction):
        """
        Calculates the result of a move *without* mutating this board.

        Returns:
            (Board, MoveResult): the board after the move (no spawn) and the result.
        """
        board = self.copy()
        result = board.move(direction)
        return board, result

    def valid_moves(self):
        """Directions that would change the board."""
        return [direction for direction in Direction if self.preview(direction)[1].did_move]

    # --- Dunder ---

    def _state_key(self):
        return {tile_id: (tile.value, tile.row, tile.col) for tile_id, tile in self._tiles.items()}

    def __eq__(self, other):
        # Presentation flags are not compared.
        if not isinstance(other, Board):
            return NotImplemented
        return self.size == other.size and self._state_key() == other._state_key()

    __hash__ = None

    def __len__(self):
        return len(self._tiles)

    def __str__(self):
        return str(self.to_array())
