import logging
from datetime import datetime
from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from pydantic import BaseModel, ConfigDict, field_serializer
from sqlalchemy.orm import Session
from taskmanager.core.config import Settings
from taskmanager.core.database import get_db
from taskmanager.core.errors import UnauthorizedError
from taskmanager.models.user import User
from taskmanager.services.auth_service import AuthService
from taskmanager.services.task_service import TaskService
from taskmanager.utils.datetime_utils import isoformat_utc

logger = logging.getLogger(__name__)

# Bearer scheme - extracts the token from the Authorization header
# auto_error=False so a missing header reaches get_current_user and gets our own message
bearer_scheme = HTTPBearer(auto_error=False)

NO_TOKEN_MESSAGE = "Unauthorized: No token provided"
USER_NOT_FOUND_MESSAGE = "Unauthorized: User not found"


class CurrentUser(BaseModel):
    """Identity attached to protected requests. Never carries the password hash."""
    id: int
    username: str
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_serializer('created_at')
    def serialize_created_at(self, value: Optional[datetime], _info):
        return isoformat_utc(value)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_task_service(request: Request) -> TaskService:
    return request.app.state.task_service


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
) -> Optional[CurrentUser]:
    """
    Resolve the caller from the bearer token.

    Used as a dependency by every protected route. Raises UnauthorizedError
    when the header is missing or the token does not verify; the verification
    message from python-jose is passed through to the client.

    A verified token whose user has since disappeared yields None unless
    REQUIRE_EXISTING_USER is set.
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError(NO_TOKEN_MESSAGE)

    try:
        payload = auth_service.verify_token(credentials.credentials)
    except JWTError as e:
        logger.info(f"Rejected token: {e}")
        raise UnauthorizedError(str(e) or "Invalid token")

    user_id_str = payload.get("sub")
    if user_id_str is None:
        raise UnauthorizedError("Invalid token: missing subject")

    # Token stores ID as string, but database uses integer
    try:
        user_id = int(user_id_str)
    except (ValueError, TypeError):
        raise UnauthorizedError("Invalid token: malformed subject")

    # Select only public columns so the password hash never leaves the store
    row = (
        db.query(User.id, User.username, User.created_at)
        .filter(User.id == user_id)
        .first()
    )
    if row is None:
        logger.warning(f"Verified token for missing user {user_id}")
        if settings.REQUIRE_EXISTING_USER:
            raise UnauthorizedError(USER_NOT_FOUND_MESSAGE)
        return None

    return CurrentUser.model_validate(row)
