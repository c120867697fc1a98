from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import AuthError
from app.core.logger import logger
from app.core.security import get_password_hash, verify_password
from app.models.user import User
from app.schemas.user import UserCreate, UserLogin


def register_user(db: Session, user_in: UserCreate) -> User:
    if db.query(User).filter(User.email == user_in.email).first():
        raise AuthError("E-mail already exists", "/account/signup")

    if db.query(User).filter(User.username == user_in.username).first():
        raise AuthError("A user with the given username is already registered", "/account/signup")

    user = User(
        username=user_in.username,
        email=user_in.email,
        hashed_password=get_password_hash(user_in.password),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        # lost a race with a concurrent signup for the same name/email
        db.rollback()
        raise AuthError("A user with the given username or e-mail already exists", "/account/signup") from e
    db.refresh(user)

    logger.info(f"User registered: id={user.id} username={user.username}")
    return user


def authenticate_user(db: Session, credentials: UserLogin) -> Optional[User]:
    user = db.query(User).filter(User.username == credentials.username).first()
    if user is None:
        logger.warning(f"Authentication failed: User not found - {credentials.username}")
        return None

    if not verify_password(credentials.password, user.hashed_password):
        logger.warning(f"Authentication failed: Invalid password - {credentials.username}")
        return None

    return user
