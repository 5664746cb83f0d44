"""
FILE: stabilizer/core/constants.py
PURPOSE: Constants used throughout the application
EXPORTS:
  - Task statuses, domains and category kinds
  - Habit types, schedule types, log statuses and ranges
  - Scoring weights and bonuses for the stack builder
  - Default values (capacity, estimates, stack size)
  - Win tags, grouping periods and weekly-review limits
DEPENDENCIES:
  - None (stdlib only)
NOTES:
  - Centralized constants to avoid magic strings
  - Missing estimates default to 15 in selection but 30 in scoring (intentional)
"""

# Task status constants
STATUS_BACKLOG = "BACKLOG"
STATUS_TODAY = "TODAY"
STATUS_IN_PROGRESS = "IN_PROGRESS"
STATUS_PENDING = "PENDING"
STATUS_DONE = "DONE"
STATUS_ARCHIVED = "ARCHIVED"
VALID_STATUSES = (
    STATUS_BACKLOG,
    STATUS_TODAY,
    STATUS_IN_PROGRESS,
    STATUS_PENDING,
    STATUS_DONE,
    STATUS_ARCHIVED,
)
CLOSED_STATUSES = (STATUS_DONE, STATUS_ARCHIVED)
STARTABLE_STATUSES = (STATUS_BACKLOG, STATUS_TODAY, STATUS_PENDING)

# Task domains
DOMAIN_LIFE_ADMIN = "LIFE_ADMIN"
DOMAIN_BUSINESS = "BUSINESS"
VALID_DOMAINS = (DOMAIN_LIFE_ADMIN, DOMAIN_BUSINESS)
DEFAULT_DOMAIN = DOMAIN_LIFE_ADMIN

# Category kinds (custom kinds are allowed, they just weigh nothing)
KIND_LEGAL = "LEGAL"
KIND_MONEY = "MONEY"
KIND_MAINTENANCE = "MAINTENANCE"
KIND_CAREGIVER = "CAREGIVER"
KIND_WEIGHTS = {
    KIND_LEGAL: 40,
    KIND_MONEY: 30,
    KIND_MAINTENANCE: 10,
    KIND_CAREGIVER: 5,
}

# Scoring bonuses
DUE_SOON_DAYS = 3
DUE_SOON_BONUS = 35
DUE_WEEK_DAYS = 7
DUE_WEEK_BONUS = 25
SOFT_DEADLINE_DAYS = 7
SOFT_DEADLINE_BONUS = 15
IN_PROGRESS_BONUS = 20
PINNED_BONUS = 50
QUICK_WIN_MINUTES = 15
QUICK_WIN_BONUS = 12
SHORT_TASK_MINUTES = 30
SHORT_TASK_BONUS = 8
MONEY_IMPACT_DIVISOR = 20
MONEY_IMPACT_CAP = 20
EXCLUDED_SCORE = -1

# Selection defaults
DEFAULT_MAX_TASKS = 5
MAX_PER_KIND = 2
SELECTION_DEFAULT_ESTIMATE = 15
SCORING_DEFAULT_ESTIMATE = 30
DEFAULT_CAPACITY_MINUTES = 120

# Priority (1 = highest)
VALID_PRIORITIES = (1, 2, 3, 4)
DEFAULT_PRIORITY = 2

# Log-task backfill
MAX_LOG_DURATION_MINUTES = 8 * 60

# Habit constants
HABIT_CHECK = "CHECK"
HABIT_COUNT = "COUNT"
HABIT_TIME = "TIME"
VALID_HABIT_TYPES = (HABIT_CHECK, HABIT_COUNT, HABIT_TIME)

SCHEDULE_DAILY = "DAILY"
SCHEDULE_WEEKDAYS = "WEEKDAYS"
SCHEDULE_EVERY_N_DAYS = "EVERY_N_DAYS"
SCHEDULE_TIMES_PER_WEEK = "TIMES_PER_WEEK"
VALID_SCHEDULE_TYPES = (
    SCHEDULE_DAILY,
    SCHEDULE_WEEKDAYS,
    SCHEDULE_EVERY_N_DAYS,
    SCHEDULE_TIMES_PER_WEEK,
)

LOG_DONE = "DONE"
LOG_PARTIAL = "PARTIAL"
LOG_SKIP = "SKIP"
LOG_NONE = "NONE"
VALID_LOG_STATUSES = (LOG_DONE, LOG_PARTIAL, LOG_SKIP, LOG_NONE)

RANGE_WEEK = "WEEK"
RANGE_MONTH = "MONTH"
RANGE_THREE_MONTHS = "THREE_MONTHS"
VALID_RANGES = (RANGE_WEEK, RANGE_MONTH, RANGE_THREE_MONTHS)
THREE_MONTHS_DAYS = 90

DEFAULT_STREAK_LOOKBACK_DAYS = 365
MAX_STREAK_WEEKS = 52

# Wins log
WIN_TAGS = ("life", "biz", "vitality", "community")

PERIOD_WEEK = "WEEK"
PERIOD_MONTH = "MONTH"
PERIOD_QUARTER = "QUARTER"
PERIOD_YEAR = "YEAR"
VALID_WIN_PERIODS = (PERIOD_WEEK, PERIOD_MONTH, PERIOD_QUARTER, PERIOD_YEAR)

# Weekly review
REVIEW_LOOKBACK_DAYS = 7
MAX_ESTIMATE_MISMATCHES = 5
