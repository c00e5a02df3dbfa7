from typing import Optional
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session
from taskmanager.core.database import get_db
from taskmanager.api.dependencies import (
    CurrentUser,
    get_auth_service,
    get_current_user,
)
from taskmanager.core.security import BCRYPT_MAX_PASSWORD_BYTES
from taskmanager.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


class Credentials(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class RegisterCredentials(Credentials):
    @field_validator('password')
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        # bcrypt ignores everything past 72 bytes, so longer passwords would
        # match any other password sharing the same prefix
        if len(value.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes")
        return value


class AuthResponse(BaseModel):
    id: int
    username: str
    token: str


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    credentials: RegisterCredentials,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Register a new user and return a session token"""
    user, token = auth_service.register(db, credentials.username, credentials.password)
    return AuthResponse(id=user.id, username=user.username, token=token)


@router.post("/login", response_model=AuthResponse)
def login(
    credentials: Credentials,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Login and get a session token"""
    user, token = auth_service.login(db, credentials.username, credentials.password)
    return AuthResponse(id=user.id, username=user.username, token=token)


@router.get("/me", response_model=Optional[CurrentUser])
def get_current_user_info(current_user: Optional[CurrentUser] = Depends(get_current_user)):
    """Get the identity attached to the bearer token"""
    return current_user
