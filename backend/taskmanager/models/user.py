from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from taskmanager.core.database import Base


class User(Base):
    """
    User model representing API accounts.

    Stores login credentials only. Passwords are stored as hashes (never plaintext).
    Records are created at registration and never updated or deleted by the API.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    # Username is unique and indexed for fast lookups during login
    username = Column(String, unique=True, index=True, nullable=False)
    # Password is hashed using bcrypt - never store plaintext passwords
    hashed_password = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
