import os
from pathlib import Path

# Base directory
BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Database
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR}/hackteams.db")

# Security
SESSION_EXPIRE_DAYS = int(os.getenv("SESSION_EXPIRE_DAYS", "7"))
VERIFICATION_CODE_EXPIRE_MINUTES = 15

# Team rules
DELETE_EMPTY_TEAMS = _env_bool("DELETE_EMPTY_TEAMS", True)
ONE_TEAM_PER_HACKATHON = _env_bool("ONE_TEAM_PER_HACKATHON", True)
DEFAULT_MAX_MEMBERS = int(os.getenv("DEFAULT_MAX_MEMBERS", "4"))
MAX_TEAM_SIZE = int(os.getenv("MAX_TEAM_SIZE", "10"))

# User search
SEARCH_DEFAULT_LIMIT = 10
SEARCH_MAX_LIMIT = 50
SEARCH_MIN_QUERY_LENGTH = 2

# Object storage (S3-compatible). Without a bucket an in-memory store is used.
STORAGE_BUCKET = os.getenv("STORAGE_BUCKET")
STORAGE_ENDPOINT = os.getenv("STORAGE_ENDPOINT")
STORAGE_REGION = os.getenv("STORAGE_REGION", "us-east-1")
STORAGE_ACCESS_KEY_ID = os.getenv("STORAGE_ACCESS_KEY_ID")
STORAGE_SECRET_ACCESS_KEY = os.getenv("STORAGE_SECRET_ACCESS_KEY")
STORAGE_PUBLIC_BASE_URL = os.getenv("STORAGE_PUBLIC_BASE_URL")
AVATAR_FOLDER = os.getenv("AVATAR_FOLDER", "profile_images")
MAX_AVATAR_BYTES = int(os.getenv("MAX_AVATAR_BYTES", str(5 * 1024 * 1024)))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
