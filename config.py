"""
Application configuration

Values come from the process environment, optionally seeded from a .env file
next to this module.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent / ".env")


def get_env(var_name: str, default=None, required: bool = False):
    value = os.environ.get(var_name, default)
    if required and value in (None, ""):
        raise RuntimeError(f"Missing required environment variable: {var_name}")
    return value


DATABASE_URL = get_env("DATABASE_URL", "mongodb://localhost:27017")
DATABASE_NAME = get_env("DATABASE_NAME", "rental")
DB_TIMEOUT_MS = int(get_env("DB_TIMEOUT_MS", 5000))

JWT_SECRET = get_env("JWT_SECRET", "change-me")
TOKEN_TTL_HOURS = 24

PORT = int(get_env("PORT", 5001))
LOG_LEVEL = get_env("LOG_LEVEL", "INFO")

# Inline base64 images make product payloads large
MAX_BODY_SIZE = int(get_env("MAX_BODY_SIZE", 10 * 1024 * 1024))

CORS_ORIGINS = [o.strip() for o in get_env("CORS_ORIGINS", "*").split(",") if o.strip()]
