import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from career_advisor.core.auth_dependency import SESSION_COOKIE
from career_advisor.core.errors import AuthenticationRequired, ValidationFailed
from career_advisor.core.security import hash_password, verify_password, create_access_token
from career_advisor.db.session import get_db
from career_advisor.db.models.user import User
from career_advisor.schemas.auth import LoginRequest, SignupRequest, TokenResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


# ✅ USER SIGNUP
@router.post("/signup", status_code=201)
def signup(payload: SignupRequest, db: Session = Depends(get_db)):
    email = payload.email.lower()
    existing_user = db.query(User).filter(User.email == email).first()
    if existing_user:
        raise ValidationFailed("Email already registered")

    user = User(
        email=email,
        first_name=payload.first_name,
        last_name=payload.last_name,
        password_hash=hash_password(payload.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info(f"User signed up: user_id={user.id}")
    return {
        "message": "User created successfully",
        "user_id": user.id
    }


# ✅ LOGIN: JWT AS BEARER TOKEN AND SESSION COOKIE
@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, response: Response, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == payload.email.lower()).first()

    if not user or not verify_password(payload.password, user.password_hash):
        logger.warning("Login failed: invalid credentials")
        raise AuthenticationRequired("Invalid credentials")

    token = create_access_token({"sub": user.id})
    response.set_cookie(SESSION_COOKIE, token, httponly=True, samesite="lax")

    return TokenResponse(access_token=token, user_id=user.id)
