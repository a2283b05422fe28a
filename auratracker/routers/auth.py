import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from auratracker.database import get_db
from auratracker.dependencies import Principal, get_current_principal, is_guest_id
from auratracker.errors import AuraTrackerError
from auratracker.models.user import User
from auratracker.schemas.auth import (
    AuthCheckResponse,
    AuthResponse,
    UserLogin,
    UserLogout,
    UserRegister,
    UserResponse,
)
from auratracker.services.auth_service import (
    check_auth_tables,
    create_access_token,
    login_user,
    logout_user,
    new_guest_name,
    register_user,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(user: User) -> AuthResponse:
    token = create_access_token(str(user.id), user.username, user.display_name)
    return AuthResponse(
        user=UserResponse(
            id=str(user.id),
            username=user.username,
            display_name=user.display_name,
            avatar_url=user.avatar_url,
        ),
        access_token=token,
    )


@router.post("/register", response_model=AuthResponse)
async def register(body: UserRegister, db: AsyncSession = Depends(get_db)):
    try:
        user = await register_user(
            db, username=body.username, game_code=body.game_code, display_name=body.display_name
        )
    except AuraTrackerError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    logger.info("Registered user %s", user.username)
    return _auth_response(user)


@router.post("/login", response_model=AuthResponse)
async def login(body: UserLogin, db: AsyncSession = Depends(get_db)):
    try:
        user = await login_user(db, username=body.username, game_code=body.game_code)
    except AuraTrackerError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return _auth_response(user)


@router.post("/guest", response_model=AuthResponse)
async def guest_login():
    """Issue an ephemeral guest identity.  Guests can vote and comment but not edit."""
    name = new_guest_name()
    token = create_access_token(name, name, name, guest=True)
    return AuthResponse(
        user=UserResponse(id=name, username=name, display_name=name, is_guest=True),
        access_token=token,
    )


@router.post("/logout")
async def logout(body: UserLogout, db: AsyncSession = Depends(get_db)):
    # Guests have no server-side session
    if body.user_id is None or is_guest_id(body.user_id):
        return {"success": True}
    if not body.game_code:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Game code is required")
    try:
        user_id = int(body.user_id)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid user id")
    try:
        await logout_user(db, game_code=body.game_code, user_id=user_id)
    except AuraTrackerError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return {"success": True}


@router.get("/check", response_model=AuthCheckResponse)
async def check(db: AsyncSession = Depends(get_db)):
    errors = await check_auth_tables(db)
    return AuthCheckResponse(
        has_auth=all(message is None for message in errors.values()),
        errors=errors,
    )


@router.get("/me", response_model=UserResponse)
async def me(principal: Principal = Depends(get_current_principal)):
    return UserResponse(
        id=principal.id,
        username=principal.username,
        display_name=principal.display_name,
        is_guest=principal.is_guest,
    )
