"""
Storefront - Security Utilities
================================
Password hashing, credential format rules, session tokens and cookie settings.
"""

import logging
import re
import secrets
import string

import bcrypt

from config.settings import (
    PASSWORD_HASH_ROUNDS, SESSION_TTL_HOURS,
    COOKIE_SECURE, COOKIE_SAMESITE,
)

logger = logging.getLogger("storefront.security")


# ==========================================
# Credential format rules
# ==========================================

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

PASSWORD_MIN_LENGTH = 8
# bcrypt only accepts the first 72 bytes and newer releases refuse longer input
PASSWORD_MAX_BYTES = 72
PASSWORD_SYMBOLS = "@$!%*?&"
_PASSWORD_ALPHABET = frozenset(string.ascii_letters + string.digits + PASSWORD_SYMBOLS)


def is_valid_email(email: str) -> bool:
    """local@domain.tld, where each part is one or more non-space, non-@ characters."""
    if not isinstance(email, str):
        return False
    return _EMAIL_RE.fullmatch(email) is not None


def is_valid_password(password: str) -> bool:
    """
    Password policy:
      - at least 8 characters, at most 72 bytes
      - at least one lowercase, one uppercase, one digit
      - at least one symbol from @$!%*?&
      - no characters outside letters, digits and those symbols
    """
    if not isinstance(password, str) or len(password) < PASSWORD_MIN_LENGTH:
        return False
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        return False

    # ASCII only: "é".islower() is True but it is not an allowed character
    has_lower = any(c in string.ascii_lowercase for c in password)
    has_upper = any(c in string.ascii_uppercase for c in password)
    has_digit = any(c in string.digits for c in password)
    has_symbol = any(c in PASSWORD_SYMBOLS for c in password)
    only_allowed = all(c in _PASSWORD_ALPHABET for c in password)

    return has_lower and has_upper and has_digit and has_symbol and only_allowed


# ==========================================
# Password hashing (bcrypt)
# ==========================================

def hash_password(password: str, rounds: int = None) -> str:
    salt = bcrypt.gensalt(rounds=rounds or PASSWORD_HASH_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        logger.warning("Stored password hash could not be parsed")
        return False


# ==========================================
# Session tokens & cookies
# ==========================================

def new_session_token() -> str:
    """Generate an opaque, URL-safe session token (256 bits)."""
    return secrets.token_urlsafe(32)


def get_session_cookie_kwargs() -> dict:
    """Standard cookie settings for the session token."""
    return dict(
        httponly=True,
        secure=COOKIE_SECURE,
        samesite=COOKIE_SAMESITE,
        path="/",
        max_age=SESSION_TTL_HOURS * 60 * 60,
    )
