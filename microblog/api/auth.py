"""
Authentication endpoints: register, login, logout, current principal and password change
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from microblog.core import auth as auth_core
from microblog.core.security import get_current_principal, oauth2_scheme
from microblog.core.tokens import TokenService, get_token_service
from microblog.db.database import get_db
from microblog.schemas.auth import AuthResponse, MessageResponse, Principal
from microblog.schemas.user import ChangePassword, UserCreate, UserRead

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def register(
    user_in: UserCreate,
    db: AsyncSession = Depends(get_db)
):
    """Create a new USER account"""
    return await auth_core.register(db, user_in)


@router.post("/token", response_model=AuthResponse)
@router.post("/login", response_model=AuthResponse)
async def login(
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
    token_service: TokenService = Depends(get_token_service)
):
    access_token = await auth_core.login(db, token_service, form_data.username, form_data.password)
    response.headers["Authorization"] = f"Bearer {access_token}"
    return {
        "access_token": access_token,
        "token_type": "bearer",
        "expires_at": token_service.expires_at(access_token),
    }


@router.post("/logout", response_model=MessageResponse)
async def logout(
    token: Optional[str] = Depends(oauth2_scheme),
    token_service: TokenService = Depends(get_token_service)
):
    """Blacklist the presented token until its natural expiry"""
    await auth_core.logout(token_service, token)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=Principal)
async def read_current_principal(
    principal: Principal = Depends(get_current_principal)
):
    return principal


@router.patch("/change-password", response_model=MessageResponse)
async def change_password(
    request: ChangePassword,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    await auth_core.change_password(db, principal, request.current_password, request.new_password)
    return {"message": "Password changed successfully"}
