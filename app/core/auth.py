# app/core/auth.py
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from app.database import get_db
from app.models.user import User
from app.config import settings

reusable_oauth2 = HTTPBearer()

STAFF_ROLES = ("admin", "trainer")

async def get_current_user(
    db: AsyncSession = Depends(get_db),
    token: HTTPAuthorizationCredentials = Depends(reusable_oauth2)
):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(
            token.credentials,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
        user_id: str = payload.get("sub")
        if user_id is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    result = await db.execute(select(User).where(User.id == int(user_id)))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        raise credentials_exception
    return user


async def get_current_admin(
    current_user = Depends(get_current_user)
):
    if current_user.role != "admin":
        raise HTTPException(403, "Admin access required")
    if current_user.gym_id is None:
        raise HTTPException(400, "User must be associated with a gym")
    return current_user


async def get_current_staff(
    current_user = Depends(get_current_user)
):
    if current_user.role not in STAFF_ROLES:
        raise HTTPException(403, "Admin or trainer access required")
    if current_user.gym_id is None:
        raise HTTPException(400, "User must be associated with a gym")
    return current_user


async def get_current_member_user(
    current_user = Depends(get_current_user)
):
    if current_user.role != "member":
        raise HTTPException(403, "Member access required")
    return current_user
