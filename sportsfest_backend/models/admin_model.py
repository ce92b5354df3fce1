# sportsfest_backend/models/admin_model.py
# Admin accounts and their login sessions (opaque bearer tokens).

from typing import Optional
from datetime import datetime
from enum import Enum
from sqlmodel import SQLModel, Field
from pydantic import BaseModel


class AdminRole(str, Enum):
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


class Admin(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(index=True, unique=True)
    password_hash: str
    role: AdminRole = Field(default=AdminRole.ADMIN)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class AdminSession(SQLModel, table=True):
    """A token handed out by /auth/login; valid until expires_at."""
    token: str = Field(primary_key=True)
    admin_id: int = Field(foreign_key="admin.id", index=True)
    expires_at: datetime


class AdminRegister(BaseModel):
    username: str
    password: str
    role: AdminRole = AdminRole.ADMIN


class AdminLogin(BaseModel):
    username: str
    password: str
