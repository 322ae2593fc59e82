import os

# === Discord ===
COMMAND_PREFIX = "!"

# 0 means "any channel"
HIGHLOW_CHANNEL_ID = int(os.getenv("HIGHLOW_CHANNEL_ID", "0"))
TEST_GENERAL_CHANNEL_ID = int(os.getenv("TEST_GENERAL_CHANNEL_ID", "0"))

SCORES_FILE = os.getenv("HIGHLOW_SCORES_FILE", "scores.json")

# === Deck ===
NUMBER_MIN = 0
NUMBER_MAX = 10
NUMBER_COPIES = 4
MULTIPLY_COPIES = 4
SQRT_COPIES = 4
NUMBERS_PER_HAND = 3

# === Round ===
TARGET_VALUES = (1, 20)
MIN_BET = 1
MAX_BET = 10
STARTING_CREDITS = 20

ROUND_DURATION = 180            # seconds before a forced submit
SUBMISSION_UNLOCK_TIME = 10     # seconds before !submit is accepted
RESULTS_DISPLAY_DURATION = 5    # pause between rounds

# None disables the deadline
SOLVER_TIME_LIMIT = float(os.getenv("HIGHLOW_SOLVER_TIME_LIMIT", "5.0")) or None
