"""
Application constants.
Centralizes status values, reminder timing and scoring weights.
"""

# Task statuses
TASK_STATUS_PENDING = "PENDING"
TASK_STATUS_IN_PROGRESS = "IN_PROGRESS"
TASK_STATUS_COMPLETED = "COMPLETED"

# Reminder types
REMINDER_TYPE_NOTIFICATION = "NOTIFICATION"
REMINDER_TYPE_URGENT = "URGENT"

# Notification payload types
NOTIFICATION_TYPE_REMINDER = "reminder"
NOTIFICATION_TYPE_TASK_COMPLETED = "task_completed"
NOTIFICATION_TYPE_STREAK_MILESTONE = "streak_milestone"
NOTIFICATION_TYPE_CONNECTION = "connection"

# Reminder scheduling (seconds / hours / days)
DUE_CHECK_WINDOW_SECONDS = 60
REMINDER_RETENTION_DAYS = 30
URGENT_THRESHOLD_HOURS = 2
URGENT_DELAY_MINUTES = 30
DEFAULT_REMINDER_LEAD_HOURS = 12
URGENT_TITLE_PREFIX = "URGENT: "

# Score weights (sum to 1.0)
SCORE_WEIGHT_TASKS = "0.4"
SCORE_WEIGHT_STREAK = "0.25"
SCORE_WEIGHT_FOCUS = "0.2"
SCORE_WEIGHT_JOURNAL = "0.15"
FOCUS_MINUTES_CAP = 120
SCORE_PRECISION = "0.001"

# Streaks
STREAK_MILESTONE_DAYS = 7
STREAK_PROFILE_ROWS = 30

# Dashboard
HEATMAP_DAYS = 364
WEEKLY_VIEW_DAYS = 7
MONTHLY_VIEW_WEEKS = 4

# Defaults for environment configuration
DEFAULT_DATABASE_URL = "sqlite:///./selfos.db"
DEFAULT_TIMEZONE = "UTC"
DEFAULT_DAY_START = "00:00"
DEFAULT_LOG_DIRECTORY_PROD = "/var/log/selfos"
DEFAULT_LOG_DIRECTORY_DEV = "./logs"
