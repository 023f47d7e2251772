"""
Session gate.

A session is a record in the "sessions" collection plus a signed token
(python-jose, HS256) naming it by ``jti`` and carrying the user id and
username. The token travels in the "sessionId" cookie set at login, or in an
``Authorization: Bearer`` header. Expired or tampered tokens, and tokens
whose record was deleted at logout, are anonymous.
"""
import logging
import os
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, Response, status
from jose import JWTError, jwt
from pymongo.database import Database

from database import SESSIONS_COLLECTION, get_db

logger = logging.getLogger(__name__)

SECRET_KEY = os.getenv("SESSION_SECRET", "focusflow-secret-key-change-in-production")
ALGORITHM = "HS256"
SESSION_COOKIE = "sessionId"
SESSION_LIFETIME = timedelta(hours=24)
SECURE_COOKIES = os.getenv("APP_ENV", "development") == "production"


def create_session_token(user: dict, jti: str, expires_delta: Optional[timedelta] = None) -> str:
    now = datetime.now(timezone.utc)
    claims = {
        "sub": str(user["_id"]),
        "username": user["username"],
        "jti": jti,
        "iat": now,
        "exp": now + (expires_delta or SESSION_LIFETIME),
    }
    return jwt.encode(claims, SECRET_KEY, algorithm=ALGORITHM)


def read_session_token(token: str) -> Optional[dict]:
    """Signature and expiry check only; see load_session for the stored record."""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as exc:
        logger.debug("Rejected session token: %s", exc)
        return None
    if not payload.get("sub") or not payload.get("username") or not payload.get("jti"):
        return None
    return {"user_id": payload["sub"], "username": payload["username"], "jti": payload["jti"]}


def open_session(db: Database, user: dict, expires_delta: Optional[timedelta] = None) -> str:
    lifetime = expires_delta or SESSION_LIFETIME
    now = datetime.now(timezone.utc)
    jti = secrets.token_urlsafe(16)
    db[SESSIONS_COLLECTION].insert_one({
        "jti": jti,
        "user_id": str(user["_id"]),
        "username": user["username"],
        "created_at": now,
        "expires_at": now + lifetime,
    })
    return create_session_token(user, jti, lifetime)


def load_session(db: Database, token: str) -> Optional[dict]:
    claims = read_session_token(token)
    if claims is None:
        return None
    if db[SESSIONS_COLLECTION].find_one({"jti": claims["jti"]}) is None:
        logger.debug("Session %s was closed", claims["jti"])
        return None
    return {"user_id": claims["user_id"], "username": claims["username"]}


def close_session(db: Database, token: Optional[str]) -> bool:
    claims = read_session_token(token) if token else None
    if claims is None:
        return False
    return db[SESSIONS_COLLECTION].delete_one({"jti": claims["jti"]}).deleted_count > 0


def request_token(request: Request, authorization: Optional[str] = Header(None)) -> Optional[str]:
    token = request.cookies.get(SESSION_COOKIE)
    if not token and authorization and authorization.startswith("Bearer "):
        token = authorization.split(" ", 1)[1]
    return token or None


def start_session(response: Response, db: Database, user: dict):
    response.set_cookie(
        SESSION_COOKIE,
        open_session(db, user),
        max_age=int(SESSION_LIFETIME.total_seconds()),
        httponly=True,
        secure=SECURE_COOKIES,
        samesite="strict",
    )


def end_session(response: Response, db: Database, token: Optional[str]):
    if close_session(db, token):
        logger.info("Session closed")
    response.delete_cookie(SESSION_COOKIE, httponly=True, secure=SECURE_COOKIES, samesite="strict")


def get_session(token: Optional[str] = Depends(request_token), db: Database = Depends(get_db)) -> Optional[dict]:
    if not token:
        return None
    return load_session(db, token)


def require_auth(session: Optional[dict] = Depends(get_session)) -> dict:
    if session is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return session
