import random
import time
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from auratracker.config import settings
from auratracker.errors import ConflictError, NotFoundError
from auratracker.models.game import Game
from auratracker.models.user import GameSession, User


def create_access_token(
    subject: str, username: str, display_name: str, guest: bool = False
) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    payload = {
        "sub": subject,
        "username": username,
        "display_name": display_name,
        "guest": guest,
        "exp": expire,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> dict[str, Any] | None:
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
    if payload.get("sub") is None or payload.get("username") is None:
        return None
    return payload


def new_guest_name() -> str:
    # Last six digits of the clock, plus jitter so two guests in the same
    # millisecond still differ
    stamp = int(time.time() * 1000) + random.randint(0, 999)
    return f"Guest_{str(stamp)[-6:]}"


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def _get_game_by_code(db: AsyncSession, code: str) -> Game:
    result = await db.execute(select(Game).where(Game.code == code.strip().upper()))
    game = result.scalar_one_or_none()
    if game is None:
        raise NotFoundError("Game not found")
    return game


async def _touch_session(db: AsyncSession, game_id: int, user_id: int) -> GameSession:
    result = await db.execute(
        select(GameSession).where(GameSession.game_id == game_id, GameSession.user_id == user_id)
    )
    session = result.scalar_one_or_none()
    if session is None:
        session = GameSession(game_id=game_id, user_id=user_id)
        db.add(session)
    else:
        session.last_active = datetime.now(timezone.utc)
    return session


async def register_user(
    db: AsyncSession, username: str, game_code: str, display_name: str | None = None
) -> User:
    """Create a user and open a session for them in the given game."""
    username = username.strip()
    if await get_user_by_username(db, username) is not None:
        raise ConflictError(
            "Username already taken. Choose a different username or log in if it is yours."
        )
    game = await _get_game_by_code(db, game_code)

    user = User(
        username=username,
        display_name=(display_name or "").strip() or username,
    )
    db.add(user)
    await db.flush()
    await _touch_session(db, game.id, user.id)
    await db.commit()
    await db.refresh(user)
    return user


async def login_user(db: AsyncSession, username: str, game_code: str) -> User:
    user = await get_user_by_username(db, username.strip())
    if user is None:
        raise NotFoundError("Username not found. Register to create a new account.")

    user.last_login = datetime.now(timezone.utc)
    game = await _get_game_by_code(db, game_code)
    await _touch_session(db, game.id, user.id)
    await db.commit()
    await db.refresh(user)
    return user


async def logout_user(db: AsyncSession, game_code: str, user_id: int) -> None:
    game = await _get_game_by_code(db, game_code)
    await db.execute(
        delete(GameSession).where(GameSession.game_id == game.id, GameSession.user_id == user_id)
    )
    await db.commit()


async def check_auth_tables(db: AsyncSession) -> dict[str, str | None]:
    """Probe the tables the auth flow depends on.

    Returns {table_name: error_message_or_None}.
    """
    errors: dict[str, str | None] = {}
    for key, model in (("users", User), ("gameSessions", GameSession)):
        try:
            await db.execute(select(func.count()).select_from(model))
            errors[key] = None
        except SQLAlchemyError as exc:
            await db.rollback()
            errors[key] = str(exc.__cause__ or exc)
    return errors
