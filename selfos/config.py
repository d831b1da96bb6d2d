"""
Environment configuration.
Values are read once at import time; defaults live in selfos.constants.
"""
import os

from selfos.constants import (
    DEFAULT_DATABASE_URL,
    DEFAULT_TIMEZONE,
    DEFAULT_DAY_START,
    DEFAULT_LOG_DIRECTORY_PROD,
)

DATABASE_URL = os.getenv("SELFOS_DATABASE_URL", DEFAULT_DATABASE_URL)

# Day boundary used for every per-day bucket (metrics, streaks, dashboard)
TIMEZONE = os.getenv("SELFOS_TIMEZONE", DEFAULT_TIMEZONE)
DAY_START = os.getenv("SELFOS_DAY_START", DEFAULT_DAY_START)

# In production keep this in the environment or a secret store
API_KEY = os.getenv("SELFOS_API_KEY", "your-secret-key-change-me")

LOG_DIR = os.getenv("SELFOS_LOG_DIR", DEFAULT_LOG_DIRECTORY_PROD)
LOG_FILE = os.getenv("SELFOS_LOG_FILE", "app.log")
