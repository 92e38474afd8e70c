"""Pydantic schemas for request and response bodies."""
from datetime import datetime
from typing import Dict, Union

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    login: str = Field(..., min_length=1, max_length=64, pattern=r"^[A-Za-z0-9_.-]+$")
    password: str


class LoginRequest(BaseModel):
    login: str
    password: str


class UserOut(BaseModel):
    id: int
    login: str


class LoginResponse(BaseModel):
    token: str
    user: UserOut


class FileUpload(BaseModel):
    content_b64: str = Field(..., description="Base64 encoded file content")


class FileOut(BaseModel):
    path: str
    content_b64: str
    size: int


class AccessRecordOut(BaseModel):
    timestamp: datetime
    kind: str
    fields: Dict[str, Union[bool, str]]
