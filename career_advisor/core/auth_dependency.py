"""
Session resolution for route handlers.

A session is a JWT issued by /api/auth/login, sent either as a bearer token
or in the "session" cookie. Outside production a missing session falls back
to the demo user so flows stay testable without logging in.
"""
import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from career_advisor.core import config
from career_advisor.core.errors import AuthenticationRequired
from career_advisor.core.fallback import log_store_failure_once
from career_advisor.core.security import decode_access_token
from career_advisor.db.session import get_db
from career_advisor.db.models.user import User

logger = logging.getLogger(__name__)

DEMO_USER_ID = "demo-user"
DEMO_USER_EMAIL = "demo@example.com"
SESSION_COOKIE = "session"

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def get_session_user_id(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
) -> Optional[str]:
    """User id from the bearer token or session cookie, or None."""
    token = token or request.cookies.get(SESSION_COOKIE)
    if not token:
        return None
    user_id = decode_access_token(token)
    if user_id is None:
        logger.debug("Ignoring invalid or expired session token")
    return user_id


def is_demo_user(user_id: str) -> bool:
    return user_id == DEMO_USER_ID


def ensure_demo_user(db: Session) -> None:
    """Create the demo user row so user-scoped writes have an owner."""
    try:
        if db.get(User, DEMO_USER_ID) is None:
            db.add(User(id=DEMO_USER_ID, email=DEMO_USER_EMAIL, first_name="Demo", last_name="User"))
            db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        log_store_failure_once("Demo user setup", e)


def get_user_id_or_demo(
    user_id: Optional[str] = Depends(get_session_user_id),
    db: Session = Depends(get_db),
) -> str:
    """
    Session user id, or the demo user id outside production.

    Raises:
        AuthenticationRequired: No session in production
    """
    if user_id:
        return user_id
    if config.is_production():
        raise AuthenticationRequired()
    logger.info("No session, using demo user")
    ensure_demo_user(db)
    return DEMO_USER_ID


def require_user_id(user_id: Optional[str] = Depends(get_session_user_id)) -> str:
    """Session user id; never substitutes the demo user."""
    if not user_id:
        raise AuthenticationRequired()
    return user_id


def get_current_user_obj(
    user_id: str = Depends(require_user_id),
    db: Session = Depends(get_db)
) -> User:
    """Current User row for routes that need the account itself."""
    user = db.get(User, user_id)
    if not user:
        raise AuthenticationRequired("Unauthorized")
    return user
