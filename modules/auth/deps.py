"""
Auth Module - Dependencies
===========================
FastAPI dependencies for session authentication.
These are injected into route handlers via Depends().
"""

import uuid

from fastapi import Request, Depends
from sqlalchemy.orm import Session as DBSession

from config.database import get_db
from config.settings import SESSION_COOKIE_NAME
from common.exceptions import AuthError
from modules.auth.sessions import Session, SessionStore
from modules.user.models import User


def get_session_store(request: Request) -> SessionStore:
    """The process-wide store built in create_app()."""
    return request.app.state.session_store


def require_session(request: Request, store: SessionStore = Depends(get_session_store)) -> Session:
    """
    Auth gate for protected routes.

    1. no cookie                      -> 401 Unauthenticated
    2. store does not know the token  -> 401 InvalidSession, cookie cleared
    3. session older than the TTL     -> 401 SessionExpired, session destroyed, cookie cleared
    4. otherwise attach the account id to request.state and continue
    """
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if not token:
        raise AuthError("Unauthorized", kind="Unauthenticated")

    session = store.validate(token)
    if session is None:
        raise AuthError("Invalid session", kind="InvalidSession", clear_cookie=True)

    # validate() already enforces the TTL; a custom backend might not
    if session.is_expired(store.clock(), store.ttl):
        store.destroy(token)
        raise AuthError("Session expired", kind="SessionExpired", clear_cookie=True)

    request.state.account_id = session.account_id
    request.state.session_token = token
    return session


def require_account_id(session: Session = Depends(require_session)) -> uuid.UUID:
    return session.account_id


def get_current_user(
    session: Session = Depends(require_session),
    store: SessionStore = Depends(get_session_store),
    db: DBSession = Depends(get_db),
) -> User:
    """Load the authenticated account. A session for a deleted account is treated as invalid."""
    user = db.get(User, session.account_id)
    if not user:
        store.destroy(session.token)
        raise AuthError("Invalid session", kind="InvalidSession", clear_cookie=True)
    return user


def get_credential_service(request: Request):
    """CredentialService bound to the same store, built in create_app()."""
    return request.app.state.credential_service
