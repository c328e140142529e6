"""
Auth Module - Routes
=====================
Register, login, logout and current identity (JSON).

The session token travels in an http-only cookie set here and cleared on
logout (the auth gate clears it when the session is invalid or expired).
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from config.database import get_db
from config.settings import SESSION_COOKIE_NAME
from common.security import get_session_cookie_kwargs
from modules.auth.deps import require_session, get_current_user, get_credential_service
from modules.auth.service import CredentialService
from modules.auth.sessions import Session as AuthSession

router = APIRouter(prefix="/auth", tags=["auth"])


class CredentialsIn(BaseModel):
    email: str = Field(..., max_length=255)
    password: str = Field(..., max_length=255)


def _with_session_cookie(response: JSONResponse, token: str) -> JSONResponse:
    response.set_cookie(SESSION_COOKIE_NAME, token, **get_session_cookie_kwargs())
    return response


@router.post("/register", status_code=201)
def register(
    payload: CredentialsIn,
    db: Session = Depends(get_db),
    credentials: CredentialService = Depends(get_credential_service),
):
    """Create an account (and its cart), then log it in."""
    _, token = credentials.register(db, payload.email, payload.password)
    return _with_session_cookie(JSONResponse({"success": True}, status_code=201), token)


@router.post("/login")
def login(
    payload: CredentialsIn,
    db: Session = Depends(get_db),
    credentials: CredentialService = Depends(get_credential_service),
):
    _, token = credentials.login(db, payload.email, payload.password)
    return _with_session_cookie(JSONResponse({"success": True}, status_code=200), token)


@router.post("/logout")
def logout(
    session: AuthSession = Depends(require_session),
    credentials: CredentialService = Depends(get_credential_service),
):
    credentials.logout(session.token)
    response = JSONResponse({"success": True}, status_code=200)
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")
    return response


@router.get("")
def current_identity(user=Depends(get_current_user)):
    return {"data": {"id": str(user.id), "email": user.email}}
