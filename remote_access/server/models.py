"""Database models for the remote access server."""
from sqlalchemy import Column, DateTime, Integer, String

from .database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    login = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    failed_login_attempts = Column(Integer, default=0)
    lock_until = Column(DateTime, nullable=True)
