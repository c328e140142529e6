"""
Storefront - Centralized Configuration
=======================================
All environment variables and constants are loaded here.
No other module should call os.getenv() directly.
"""

import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


# ==========================================
# 🗄️ Database
# ==========================================
DB_USER = os.getenv("DB_USER")
DB_PASSWORD = os.getenv("DB_PASSWORD")
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = os.getenv("DB_PORT", "5432")
DB_NAME = os.getenv("DB_NAME")

if os.getenv("DATABASE_URL"):
    DATABASE_URL = os.getenv("DATABASE_URL")
elif all([DB_USER, DB_PASSWORD, DB_NAME]):
    DATABASE_URL = f"postgresql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
else:
    # Local development fallback
    DATABASE_URL = "sqlite:///./storefront.db"


# ==========================================
# 🔐 Sessions & Cookies
# ==========================================
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "session_id")
SESSION_TTL_HOURS = int(os.getenv("SESSION_TTL_HOURS", "24"))
SESSION_SWEEP_INTERVAL_MINUTES = int(os.getenv("SESSION_SWEEP_INTERVAL_MINUTES", "60"))
SESSION_BACKEND = os.getenv("SESSION_BACKEND", "memory").lower()  # memory | redis

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

COOKIE_SECURE = _env_bool("COOKIE_SECURE", "true")
COOKIE_SAMESITE = os.getenv("COOKIE_SAMESITE", "lax")

# bcrypt cost factor
PASSWORD_HASH_ROUNDS = int(os.getenv("PASSWORD_HASH_ROUNDS", "10"))


# ==========================================
# 🔧 App
# ==========================================
DEBUG = _env_bool("DEBUG", "false")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
REQUEST_TIMEOUT_SECONDS = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "30"))
