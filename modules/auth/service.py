"""
Auth Module - Service Layer
=============================
Registration, login and logout.

Every successful register/login guarantees the account has a cart and
opens a new session in the injected session store.
"""

import logging
from typing import Tuple

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from common.exceptions import ValidationError, ConflictError
from common.helpers import mask_token
from common.security import is_valid_email, is_valid_password, hash_password, verify_password
from modules.auth.sessions import SessionStore
from modules.cart.service import cart_service
from modules.user.models import User

logger = logging.getLogger("storefront.auth")

# Same message whether the email is unknown or the password is wrong
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"

# Checked against when the email is unknown so both failures cost one bcrypt round
_dummy_hash = None


def _get_dummy_hash() -> str:
    global _dummy_hash
    if _dummy_hash is None:
        _dummy_hash = hash_password("Dummy-password-1!")
    return _dummy_hash


class CredentialService:
    """Handles account credentials and session creation."""

    def __init__(self, session_store: SessionStore):
        self.sessions = session_store

    def find_by_email(self, db: Session, email: str):
        return db.query(User).filter(User.email == email).first()

    def register(self, db: Session, email: str, password: str) -> Tuple[User, str]:
        """
        Create an account with an empty cart and open a session for it.

        Returns:
            (user, session_token)

        Raises:
            ValidationError (InvalidEmail / InvalidPassword)
            ConflictError (AccountExists)
        """
        if not is_valid_email(email):
            raise ValidationError("Invalid email", kind="InvalidEmail")
        if not is_valid_password(password):
            raise ValidationError("Invalid password", kind="InvalidPassword")

        if self.find_by_email(db, email):
            raise ConflictError("User already exists", kind="AccountExists")

        user = User(email=email, password_hash=hash_password(password))
        try:
            db.add(user)
            db.flush()
            cart_service.ensure_cart(db, user.id)
            db.commit()
        except IntegrityError:
            # Race condition: another request registered this email first
            db.rollback()
            raise ConflictError("User already exists", kind="AccountExists")
        except Exception:
            db.rollback()
            raise

        token = self.sessions.create(user.id)
        logger.info("Registered account %s (session %s)", user.id, mask_token(token))
        return user, token

    def login(self, db: Session, email: str, password: str) -> Tuple[User, str]:
        """
        Check credentials and open a session.

        Accounts created before carts were per-user get their cart here.

        Raises:
            ValidationError (InvalidCredentials)
        """
        user = self.find_by_email(db, email) if isinstance(email, str) else None
        password_hash = user.password_hash if user else _get_dummy_hash()
        password_ok = verify_password(password, password_hash)
        if not user or not password_ok:
            logger.info("Failed login attempt")
            raise ValidationError(INVALID_CREDENTIALS_MESSAGE, kind="InvalidCredentials")

        if not cart_service.find_cart(db, user.id):
            try:
                cart_service.ensure_cart(db, user.id)
                db.commit()
            except IntegrityError:
                # A parallel login created it
                db.rollback()

        token = self.sessions.create(user.id)
        logger.info("Account %s logged in (session %s)", user.id, mask_token(token))
        return user, token

    def logout(self, token: str) -> None:
        self.sessions.destroy(token)
        logger.info("Session %s closed", mask_token(token))
