"""
User signup, login and session endpoints.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from talentdesk.core import config
from talentdesk.core.auth_dependency import get_current_user
from talentdesk.core.db_retry import execute_with_retry
from talentdesk.core.logging_config import sanitize_log_data
from talentdesk.core.rate_limit import RateLimiter
from talentdesk.core.security import hash_password, verify_password, create_access_token
from talentdesk.db.session import get_db
from talentdesk.db.models.user import User
from talentdesk.schemas.auth import SignupRequest, LoginRequest, LoginResponse, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["Auth"])


@router.post("/signup", status_code=status.HTTP_201_CREATED)
def signup(payload: SignupRequest, db: Session = Depends(get_db)):
    logger.debug(f"Signup request: {sanitize_log_data(payload.model_dump())}")
    email = payload.email.lower()

    existing = execute_with_retry(lambda: db.query(User).filter(User.email == email).first(), db=db)
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already in use")

    user = User(
        first_name=payload.first_name,
        last_name=payload.last_name,
        email=email,
        phone=payload.phone,
        password_hash=hash_password(payload.password),
    )

    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already in use")

    logger.info(f"User created: user_id={user.id}")

    return {"user": UserResponse.model_validate(user)}


@router.post(
    "/login",
    response_model=LoginResponse,
    dependencies=[Depends(RateLimiter("login", config.LOGIN_RATE_LIMIT))],
)
def login(payload: LoginRequest, response: Response, db: Session = Depends(get_db)):
    email = payload.email.strip().lower()
    user = execute_with_retry(lambda: db.query(User).filter(User.email == email).first(), db=db)

    if not user or not verify_password(payload.password, user.password_hash):
        logger.info("Login rejected: invalid credentials")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    token = create_access_token({"sub": user.id})
    response.set_cookie(
        key=config.SESSION_COOKIE_NAME,
        value=token,
        max_age=config.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        samesite="lax",
    )

    logger.info(f"User logged in: user_id={user.id}")

    return LoginResponse(token=token, user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserResponse)
def me(user: User = Depends(get_current_user)):
    return UserResponse.model_validate(user)


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(config.SESSION_COOKIE_NAME)
    return {"success": True}
