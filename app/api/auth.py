"""
GreenPantry API — Auth API routes
"""
from fastapi import APIRouter, Depends, status

from app.api.deps import get_auth_service, get_current_user
from app.core.security import CurrentUser
from app.schemas.auth import AuthResponse, LoginRequest, RefreshRequest, RegisterRequest
from app.schemas.common import MessageResponse
from app.services.auth_service import AuthService

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, service: AuthService = Depends(get_auth_service)):
    """Create an account and sign it in."""
    return await service.register(payload)


@router.post("/login", response_model=AuthResponse)
async def login(payload: LoginRequest, service: AuthService = Depends(get_auth_service)):
    """Validate credentials and issue JWT tokens."""
    return await service.login(payload)


@router.post("/refresh", response_model=AuthResponse)
async def refresh_token(payload: RefreshRequest, service: AuthService = Depends(get_auth_service)):
    """Exchange the current refresh token for a new token pair."""
    return await service.refresh(payload.refresh_token)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    user: CurrentUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    await service.logout(user.id)
    return MessageResponse(message="Logged out successfully")
