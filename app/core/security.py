from typing import Optional

import bcrypt
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.session import USER_KEY, logout_session
from app.models.user import User


# bcrypt only looks at the first 72 bytes; newer releases raise past that
MAX_PASSWORD_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:MAX_PASSWORD_BYTES]


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed_password.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
) -> Optional[User]:
    """
    Resolve the session identity into a User, or None for anonymous requests.
    A session pointing at a user that no longer exists is treated as logged out.
    """
    user_id = request.session.get(USER_KEY)
    if user_id is None:
        return None

    user = db.get(User, user_id)
    if user is None:
        logout_session(request)
    return user
