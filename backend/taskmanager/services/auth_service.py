import logging
from datetime import datetime, timedelta
from typing import Optional, Tuple
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from taskmanager.core.config import Settings
from taskmanager.core.errors import ConflictError, InternalError, UnauthorizedError
from taskmanager.core.security import (
    create_access_token,
    decode_access_token,
    get_password_hash,
    verify_password,
)
from taskmanager.models.user import User

logger = logging.getLogger(__name__)


class AuthService:
    """
    Registration, login and session-token handling.

    Built once by create_app() with the application Settings, which carry the
    signing secret, algorithm and token lifetime.
    """

    def __init__(self, settings: Settings) -> None:
        self._secret_key = settings.JWT_SECRET
        self._algorithm = settings.JWT_ALGORITHM
        self._token_lifetime = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    def issue_token(self, user_id: int, now: Optional[datetime] = None) -> str:
        """Sign a token for the user; 'sub' carries the user id as a string (JWT standard)"""
        return create_access_token(
            data={"sub": str(user_id)},
            secret_key=self._secret_key,
            algorithm=self._algorithm,
            expires_delta=self._token_lifetime,
            now=now,
        )

    def verify_token(self, token: str) -> dict:
        """Return the claim set, or raise jose.JWTError if the token does not verify"""
        return decode_access_token(token, self._secret_key, self._algorithm)

    def register(self, db: Session, username: str, password: str) -> Tuple[User, str]:
        try:
            existing_user = db.query(User).filter(User.username == username).first()
            if existing_user:
                raise ConflictError("User already exists")

            db_user = User(username=username, hashed_password=get_password_hash(password))
            db.add(db_user)
            db.commit()
            # Refresh to load store-assigned fields (id, created_at)
            db.refresh(db_user)
        except IntegrityError:
            # Two concurrent registrations can both pass the lookup above;
            # the unique constraint rejects the second insert
            db.rollback()
            raise ConflictError("User already exists")
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception("Error registering user")
            raise InternalError("Error registering user", error=str(e))

        logger.info(f"Registered user {db_user.username} (ID: {db_user.id})")
        return db_user, self.issue_token(db_user.id)

    def login(self, db: Session, username: str, password: str) -> Tuple[User, str]:
        try:
            user = db.query(User).filter(User.username == username).first()
        except SQLAlchemyError as e:
            logger.exception("Login failed")
            raise InternalError("Login failed", error=str(e))

        # Same message for unknown user and wrong password - no username enumeration
        if not user or not verify_password(password, user.hashed_password):
            logger.info(f"Failed login for username {username!r}")
            raise UnauthorizedError("Invalid credentials")

        return user, self.issue_token(user.id)
