from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UserRegister(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(min_length=1)
    display_name: Optional[str] = Field(default=None, alias="displayName")
    game_code: str = Field(min_length=1, alias="gameCode")


class UserLogin(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(min_length=1)
    game_code: str = Field(min_length=1, alias="gameCode")


class UserLogout(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    game_code: Optional[str] = Field(default=None, alias="gameCode")
    user_id: Optional[str | int] = Field(default=None, alias="userId")


class UserResponse(BaseModel):
    id: str
    username: str
    display_name: str
    avatar_url: Optional[str] = None
    is_guest: bool = False


class AuthResponse(BaseModel):
    user: UserResponse
    access_token: str
    token_type: str = "bearer"


class AuthCheckResponse(BaseModel):
    has_auth: bool = Field(serialization_alias="hasAuth")
    errors: dict[str, Optional[str]]
