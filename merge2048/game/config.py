"""
Game Rule Configuration for 2048.

Central constants shared by the board engine, the game session and the
environments. Changing a value here changes the default for every new game;
individual sessions can still override the board size, target and spawn odds
through a `GameConfiguration`.
"""

# --- Board ---
# Square boards only. Anything outside this set is rejected at construction.
BOARD_SIZES = (3, 4, 5, 6)
DEFAULT_BOARD_SIZE = 4

# Number of tiles placed on a fresh board.
STARTING_TILES = 2

# --- Spawning ---
# Probability that a spawned tile is a '2' (otherwise a '4').
DEFAULT_TWO_PROBABILITY = 0.9
EASY_TWO_PROBABILITY = 0.95
HARD_TWO_PROBABILITY = 0.80

# --- Win Condition ---
# The objective tile. Reaching it for the first time moves the session to WON.
WIN_TILE = 2048

# --- Session ---
# Undo history cap; the oldest snapshot is dropped first.
MAX_HISTORY_SIZE = 50

# Default budgets for the restricted modes.
TIMED_MODE_SECONDS = 120
LIMITED_MOVES_COUNT = 50

# Key under which the best score is persisted.
HIGH_SCORE_KEY = "highScore"
