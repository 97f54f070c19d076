"""Application config - every constant the service reads lives here."""
import os
from typing import List

# Supabase
SUPABASE_URL = os.environ.get("SUPABASE_URL", "")
SUPABASE_KEY = os.environ.get("SUPABASE_KEY", "")
SUPABASE_SERVICE_ROLE_KEY = os.environ.get("SUPABASE_SERVICE_ROLE_KEY", "")

DIARY_TABLE = "diary_entries"
PROFILE_TABLE = "user_profiles"
STORAGE_BUCKET = "diary-media"

# Session
AUTH_SECRET = os.environ.get("AUTH_SECRET", os.environ.get("NEXTAUTH_SECRET", "change-me-in-production"))
SESSION_ALGORITHM = "HS256"
SESSION_MAX_AGE_SECONDS = int(os.environ.get("SESSION_MAX_AGE_SECONDS", str(30 * 24 * 60 * 60)))
SESSION_COOKIE_NAME = "moondiary.session-token"
# Cleared on account deletion, including names left behind by older clients
LEGACY_SESSION_COOKIE_NAMES: List[str] = [
    "authjs.session-token",
    "__Secure-authjs.session-token",
    "next-auth.session-token",
    "__Secure-next-auth.session-token",
]

# App
APP_ENV = os.environ.get("APP_ENV", "development")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
FRONTEND_URL = os.environ.get("FRONTEND_URL", "http://localhost:3000")
CORS_ORIGINS: List[str] = [
    origin.strip()
    for origin in os.environ.get("CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]

# Accounts
NICKNAME_MAX_LENGTH = 20
PASSWORD_MIN_LENGTH = 6
DEFAULT_NICKNAME = "사용자"

# Media
MAX_MEDIA_SIZE = 100 * 1024 * 1024  # 100MB
ALLOWED_MEDIA_PREFIXES = ("image/", "video/")
MEDIA_CACHE_CONTROL = "3600"
VIDEO_URL_MARKERS = (".mp4", ".mov", ".webm", "video")

# Feed / calendar
FEED_PAGE_SIZE = 10
YEAR_PICKER_SPAN = 5  # current year ±5

# Statistics heuristics. These are rule-of-thumb cut-offs, not statistically derived.
NEGATIVE_RATIO_THRESHOLD = 0.4
POSITIVE_RATIO_THRESHOLD = 0.5
NEUTRAL_RATIO_THRESHOLD = 0.4
FULL_MOON_RATIO_THRESHOLD = 0.4
TREND_WINDOW_DAYS = 14
TREND_DELTA_THRESHOLD = 0.15
SHORT_SUMMARY_MAX_ENTRIES = 5  # below this the summary asks for more entries
FREQUENCY_MIN_ENTRIES = 10
FREQUENCY_STEADY_PER_WEEK = 4.0
FREQUENCY_REGULAR_PER_WEEK = 2.0
TRAILING_MONTHS = 12

# Demo account (seed_demo.py)
DEMO_USER_EMAIL = os.environ.get("DEMO_USER_EMAIL", "demo@moondiary.app")
DEMO_USER_PASSWORD = os.environ.get("DEMO_USER_PASSWORD", "moondiary-demo")
DEMO_USER_NICKNAME = os.environ.get("DEMO_USER_NICKNAME", "달빛여행자")
