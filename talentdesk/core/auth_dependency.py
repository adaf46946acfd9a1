from typing import Optional
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from talentdesk.core.config import SESSION_COOKIE_NAME
from talentdesk.core.security import decode_access_token
from talentdesk.db.session import get_db
from talentdesk.db.models.user import User

# Bearer header is optional; browsers authenticate with the session cookie instead
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/user/login", auto_error=False)


def get_session_token(request: Request, bearer: Optional[str] = Depends(oauth2_scheme)) -> Optional[str]:
    """Pick the token from the Authorization header, falling back to the session cookie."""
    return bearer or request.cookies.get(SESSION_COOKIE_NAME)


def get_current_user(
    token: Optional[str] = Depends(get_session_token),
    db: Session = Depends(get_db)
) -> User:
    """Resolve the logged-in User or raise 401."""
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    user_id = decode_access_token(token)
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired session")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return user
