"""Persisted authentication account model."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class AccountType(str, Enum):
    """Identity provider an account belongs to."""

    PASSWORD = "password"
    MICROSOFT = "microsoft"


class MicrosoftState(BaseModel):
    """OAuth credentials kept alongside a Microsoft account."""

    access_token: str = Field(repr=False)
    refresh_token: str = Field(repr=False)
    expires_at: int  # epoch ms, stamped by compute_expiry


class AuthAccount(BaseModel):
    """Authenticated account record."""

    # Identifiers
    id: str  # profile UUID
    type: AccountType
    username: str
    display_name: str

    # Credentials. For Microsoft accounts access_token is the game-service token.
    access_token: str = Field(repr=False)
    expires_at: Optional[int] = None  # epoch ms, None for password accounts

    microsoft: Optional[MicrosoftState] = Field(default=None, repr=False)


class AccountDatabase(BaseModel):
    """Shape of the persisted account store."""

    selected_account: Optional[str] = None
    client_token: Optional[str] = None
    accounts: dict[str, AuthAccount] = Field(default_factory=dict)
