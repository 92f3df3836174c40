"""Tagged results passed between exchange steps and flows."""

from dataclasses import dataclass, field
from typing import Generic, Optional, TypeVar, Union

from ..auth.errors import AuthErrorKind
from .tokens import GameProfile, GameToken, OAuthToken, PasswordSession, XboxToken

T = TypeVar("T")


@dataclass(frozen=True)
class ExchangeResult(Generic[T]):
    """Success or normalized failure of one exchange (or a whole flow)."""

    ok: bool
    data: Optional[T] = None
    error: Optional[AuthErrorKind] = None
    error_code: Optional[str] = None  # raw provider code, None when no provider answered

    @classmethod
    def success(cls, data: T) -> "ExchangeResult[T]":
        return cls(ok=True, data=data)

    @classmethod
    def failure(
        cls, kind: AuthErrorKind, error_code: Optional[str] = None
    ) -> "ExchangeResult[T]":
        return cls(ok=False, error=kind, error_code=error_code)

    def forward(self) -> "ExchangeResult":
        """Re-tag a failure for a caller expecting a different payload type."""
        return ExchangeResult(ok=False, error=self.error, error_code=self.error_code)


@dataclass(frozen=True)
class ChainedFlowResult:
    """All payloads of one Microsoft flow execution."""

    oauth: Optional[OAuthToken]  # None when the OAuth step was skipped
    oauth_access_token: str
    xbl: XboxToken
    xsts: XboxToken
    game_token: GameToken
    profile: GameProfile


@dataclass(frozen=True)
class LoginComplete:
    """Password login finished with a session."""

    session: PasswordSession


@dataclass(frozen=True)
class AwaitingSecondFactor:
    """Password login suspended until the user supplies a one-time code."""

    username: str
    password: str = field(repr=False)


FlowResult = ExchangeResult[ChainedFlowResult]
PasswordLoginResult = ExchangeResult[Union[LoginComplete, AwaitingSecondFactor]]
