# sportsfest_backend/core/auth.py
# Admin accounts: bcrypt password hashes and opaque bearer tokens.

import secrets
from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from sportsfest_backend.core.config import ADMIN_TOKEN_TTL_HOURS, TEST_MODE
from sportsfest_backend.core.database import get_db
from sportsfest_backend.core.logger import get_logger
from sportsfest_backend.models.admin_model import (
    Admin,
    AdminLogin,
    AdminRegister,
    AdminRole,
    AdminSession,
)

router = APIRouter()
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
bearer = HTTPBearer(auto_error=False)

log = get_logger("core.auth")


async def _admin_for_token(db: AsyncSession, token: str) -> Optional[Admin]:
    session = await db.get(AdminSession, token)
    if session is None:
        return None
    if session.expires_at < datetime.utcnow():
        await db.delete(session)
        await db.commit()
        return None
    return await db.get(Admin, session.admin_id)


async def require_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    db: AsyncSession = Depends(get_db),
) -> Admin:
    """Guard for every route that changes a match."""
    if credentials is None:
        raise HTTPException(status_code=401, detail="Missing bearer token")

    admin = await _admin_for_token(db, credentials.credentials)
    if admin is None:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return admin


# === REGISTER ===

@router.post("/register")
async def register_admin(
    data: AdminRegister,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    db: AsyncSession = Depends(get_db),
):
    """
    The very first admin can register freely and becomes SUPER_ADMIN.
    After that, only a logged-in SUPER_ADMIN may add admins (unless TEST_MODE).
    """
    admin_count = (await db.execute(select(func.count()).select_from(Admin))).scalar_one()
    role = data.role

    if admin_count == 0:
        role = AdminRole.SUPER_ADMIN
    elif not TEST_MODE:
        caller = await _admin_for_token(db, credentials.credentials) if credentials else None
        if caller is None or caller.role != AdminRole.SUPER_ADMIN:
            raise HTTPException(status_code=403, detail="Only a super admin can register admins")

    existing = (await db.execute(select(Admin).where(Admin.username == data.username))).scalars().first()
    if existing:
        raise HTTPException(status_code=400, detail="Admin already exists")

    new_admin = Admin(username=data.username, password_hash=pwd_context.hash(data.password), role=role)
    db.add(new_admin)
    await db.commit()

    log.info(f"👤 Registered admin '{data.username}' ({role.value})")
    return {"message": "Admin registered", "username": data.username, "role": role.value}


# === LOGIN ===

@router.post("/login")
async def login_admin(data: AdminLogin, db: AsyncSession = Depends(get_db)):
    admin = (await db.execute(select(Admin).where(Admin.username == data.username))).scalars().first()
    if not admin or not pwd_context.verify(data.password, admin.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    expires_at = datetime.utcnow() + timedelta(hours=ADMIN_TOKEN_TTL_HOURS)
    token = secrets.token_urlsafe(32)
    db.add(AdminSession(token=token, admin_id=admin.id, expires_at=expires_at))
    await db.commit()

    return {
        "access_token": token,
        "token_type": "bearer",
        "expires_at": expires_at.isoformat(),
        "role": admin.role.value,
    }
