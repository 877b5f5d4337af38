"""Constants and lookup tables for the golf league engine."""

# Neutral slope rating used by the course handicap and differential formulas
NEUTRAL_SLOPE = 113

# Attestations required before a round counts toward standings
ATTESTATION_THRESHOLD = 2

# Default attestation method (attestor scans the submitter's QR code)
ATTESTATION_METHOD_QR = 'qr_scan'

# Points awarded per finishing rank, separately for gross and net
POINTS_BY_RANK = {
    1: 100,
    2: 85,
    3: 75,
    4: 65,
    5: 55,
    6: 50,
    7: 45,
    8: 40,
    9: 35,
    10: 30,
}

# 11th place and beyond
POINTS_DEFAULT = 20

# Prize splits keyed by placement label
MONTHLY_PRIZE_PERCENTAGES = {
    '1st Gross': 0.35,
    '2nd Gross': 0.15,
    '3rd Gross': 0.10,
    '1st Net': 0.25,
    '2nd Net': 0.10,
    '3rd Net': 0.05,
}

CHAMPIONSHIP_PRIZE_PERCENTAGES = {
    '1st Gross': 0.30,
    '2nd Gross': 0.15,
    '3rd Gross': 0.10,
    '1st Net': 0.25,
    '2nd Net': 0.12,
    '3rd Net': 0.08,
}

# Accepted ranges for a round submission (inclusive)
COURSE_RATING_RANGE = (55.0, 80.0)
SLOPE_RATING_RANGE = (55, 155)
GROSS_SCORE_RANGE = (55, 200)
MAX_NOTES_LENGTH = 300
MIN_COURSE_NAME_LENGTH = 2

# Month key format, e.g. "2024-05"
MONTH_KEY_FORMAT = '%Y-%m'

# JSON document per collection in the data directory
COLLECTION_FILES = {
    'users': 'users.json',
    'seasons': 'seasons.json',
    'registrations': 'registrations.json',
    'rounds': 'rounds.json',
    'points': 'points.json',
}

# Exclusive lock taken around every read-modify-write of the data directory
LOCK_FILE = '.league.lock'
LOCK_TIMEOUT_SECONDS = 10.0
LOCK_POLL_SECONDS = 0.05
