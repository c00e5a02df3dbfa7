from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import jwt
from passlib.context import CryptContext

# CryptContext handles password hashing using bcrypt (salted, slow by design)
# 'deprecated="auto"' lets passlib flag hashes from older schemes for rehashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# bcrypt only reads the first 72 bytes of a password
BCRYPT_MAX_PASSWORD_BYTES = 72


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash using constant-time comparison"""
    # Nothing longer than the bcrypt limit can have been stored, and bcrypt
    # would otherwise compare only the leading 72 bytes
    if len(plain_password.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt"""
    # bcrypt generates a random salt and embeds it in the hash string
    return pwd_context.hash(password)


def create_access_token(
    data: dict,
    secret_key: str,
    algorithm: str,
    expires_delta: timedelta,
    now: Optional[datetime] = None,
) -> str:
    """Create a JWT access token with expiration"""
    # Copy data to avoid mutating the original dict
    to_encode = data.copy()

    issued_at = now or datetime.now(timezone.utc)
    to_encode.update({"exp": issued_at + expires_delta})

    return jwt.encode(to_encode, secret_key, algorithm=algorithm)


def decode_access_token(token: str, secret_key: str, algorithm: str) -> dict:
    """
    Decode and verify a JWT token.

    Signature and expiration are checked by python-jose. Any failure raises
    jose.JWTError (ExpiredSignatureError, JWTClaimsError, ...) so callers can
    report the verification message.
    """
    return jwt.decode(token, secret_key, algorithms=[algorithm])
