from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.future import select
from sqlalchemy.ext.asyncio import AsyncSession
from rental_quotes.schemas.auth import LoginIn, TokenOut
from rental_quotes.models.user import User
from rental_quotes.db.session import get_db
from rental_quotes.core.security import create_access_token, hash_password, verify_password
from rental_quotes.core.enums import UserRole
from rental_quotes.core.audit_log import log_login

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=TokenOut)
async def register(payload: LoginIn, db: AsyncSession = Depends(get_db)):
    res = await db.execute(select(User).where(User.username == payload.username))
    existing_user = res.scalars().first()
    if existing_user:
        raise HTTPException(status_code=400, detail="Username already taken")

    new_user = User(username=payload.username, password_hash=hash_password(payload.password), role=UserRole.AGENT)
    db.add(new_user)
    await db.commit()
    await db.refresh(new_user)

    await log_login(db, int(new_user.id), payload.username)

    return TokenOut(access_token=create_access_token(str(new_user.id), new_user.role))


@router.post("/login", response_model=TokenOut)
async def login(form_data: OAuth2PasswordRequestForm = Depends(), db: AsyncSession = Depends(get_db)):
    res = await db.execute(select(User).where(User.username == form_data.username))
    user = res.scalars().first()
    if not user or not user.is_active or not verify_password(form_data.password, user.password_hash):
        raise HTTPException(status_code=400, detail="Invalid credentials")

    await log_login(db, int(user.id), form_data.username)

    return TokenOut(access_token=create_access_token(str(user.id), user.role))
