GRID_ROWS = 8
GRID_COLS = 8

# Shortest run that counts as a match.
MIN_RUN_LENGTH = 3

# Score thresholds for levels 1..3; anything at or above the last is level 4.
LEVEL_THRESHOLDS = (100, 250, 500)

# Seconds added to the clock after a successful swap, keyed by level.
TIME_BONUS_BY_LEVEL = {
    1: 5.0,
    2: 3.0,
    3: 1.0,
    4: 0.5,
}

# Session clock in seconds at the start of a game.
START_TIME = 5.0

# Number of entries the scoreboard reports.
SCOREBOARD_SIZE = 10

# Attempts made by random_layout before giving up on a match-free board.
LAYOUT_MAX_ATTEMPTS = 200
