"""Provider payloads produced by individual token exchanges."""

from typing import Optional

from pydantic import BaseModel, Field


class OAuthToken(BaseModel):
    """Microsoft OAuth access/refresh token pair."""

    access_token: str
    refresh_token: str
    expires_in: int  # seconds


class XboxToken(BaseModel):
    """Xbox Live user token or XSTS token with its user hash."""

    token: str
    user_hash: str
    not_after: Optional[str] = None


class GameToken(BaseModel):
    """Game-service access token obtained with an XSTS identity token."""

    access_token: str
    expires_in: int  # seconds
    username: Optional[str] = None


class GameProfile(BaseModel):
    """Player profile returned by the game service."""

    id: str
    name: str


class PasswordSession(BaseModel):
    """Session issued by the password provider."""

    id: Optional[int] = None
    uuid: str
    username: str
    access_token: str = Field(repr=False)
