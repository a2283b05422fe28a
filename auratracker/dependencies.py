from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from auratracker.services.auth_service import decode_access_token

GUEST_PREFIX = "Guest_"

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    """The caller identity for one request, decoded from the bearer token."""

    id: str
    username: str
    display_name: str
    is_guest: bool


async def get_optional_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Principal | None:
    if credentials is None:
        return None
    claims = decode_access_token(credentials.credentials)
    if claims is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )
    return Principal(
        id=claims["sub"],
        username=claims["username"],
        display_name=claims.get("display_name") or claims["username"],
        is_guest=bool(claims.get("guest", False)),
    )


async def get_current_principal(
    principal: Principal | None = Depends(get_optional_principal),
) -> Principal:
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return principal


def is_guest_id(user_id: str | int | None) -> bool:
    return isinstance(user_id, str) and user_id.startswith(GUEST_PREFIX)


async def require_member(
    principal: Principal | None = Depends(get_optional_principal),
) -> Principal | None:
    """Refuse write access to guest identities.

    Anonymous callers (no token) pass through; only a guest token is refused.
    """
    if principal is not None and principal.is_guest:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Guests cannot modify the game",
        )
    return principal
