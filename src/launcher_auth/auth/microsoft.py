"""Microsoft account authentication chain.

A game-service session is obtained through five dependent exchanges::

    OAuth token -> Xbox Live user token -> XSTS token -> game token -> profile

Each step consumes the previous step's payload. The chain stops at the first
failure and hands that step's normalized error back to the caller; nothing is
persisted here.
"""

import logging
from enum import Enum
from typing import Any, Optional

from ..config import MicrosoftConfig
from ..models.results import ChainedFlowResult, ExchangeResult, FlowResult
from ..models.tokens import GameProfile, GameToken, OAuthToken, XboxToken
from .errors import MICROSOFT_ERROR_CODES, AuthErrorKind
from .exchange import ExchangeRequest, TokenExchangeClient
from .oauth import MicrosoftOAuthClient

logger = logging.getLogger(__name__)


class AuthMode(str, Enum):
    """Entry point of the Microsoft chain."""

    FULL = "full"  # entry code is an authorization code
    MS_REFRESH = "ms_refresh"  # entry code is an OAuth refresh token
    MC_REFRESH = "mc_refresh"  # entry code is a still valid OAuth access token


class MicrosoftAuthFlow:
    """Runs the Microsoft OAuth to game-service exchange chain."""

    def __init__(
        self,
        oauth_client: MicrosoftOAuthClient,
        exchange_client: TokenExchangeClient,
        config: MicrosoftConfig,
    ):
        """
        Initialize Microsoft auth flow.

        Args:
            oauth_client: Client for the OAuth token endpoint
            exchange_client: Client for the Xbox Live and game-service exchanges
            config: Microsoft endpoint configuration
        """
        self.oauth_client = oauth_client
        self.exchange_client = exchange_client
        self.config = config

    def run(self, entry_code: str, mode: AuthMode) -> FlowResult:
        """
        Execute the chain from the given entry point.

        Args:
            entry_code: Authorization code, refresh token or access token depending on mode
            mode: Entry mode

        Returns:
            Tagged result with every intermediate payload, or the first step's error.
            The OAuth pair is None when mode is MC_REFRESH.
        """
        logger.info(f"Starting Microsoft auth flow ({mode.value})")

        oauth: Optional[OAuthToken] = None
        if mode is AuthMode.MC_REFRESH:
            oauth_access_token = entry_code
        else:
            if mode is AuthMode.FULL:
                oauth_result = self.oauth_client.exchange_code(entry_code)
            else:
                oauth_result = self.oauth_client.refresh(entry_code)
            if not oauth_result.ok:
                return self._abort("OAuth token", oauth_result)
            oauth = oauth_result.data
            oauth_access_token = oauth.access_token

        xbl_result = self.get_xbl_token(oauth_access_token)
        if not xbl_result.ok:
            return self._abort("Xbox Live token", xbl_result)

        xsts_result = self.get_xsts_token(xbl_result.data)
        if not xsts_result.ok:
            return self._abort("XSTS token", xsts_result)

        game_result = self.get_game_token(xsts_result.data)
        if not game_result.ok:
            return self._abort("game token", game_result)

        profile_result = self.get_profile(game_result.data.access_token)
        if not profile_result.ok:
            return self._abort("profile", profile_result)

        logger.info(f"Microsoft auth flow ({mode.value}) complete for {profile_result.data.name}")
        return ExchangeResult.success(
            ChainedFlowResult(
                oauth=oauth,
                oauth_access_token=oauth_access_token,
                xbl=xbl_result.data,
                xsts=xsts_result.data,
                game_token=game_result.data,
                profile=profile_result.data,
            )
        )

    def get_xbl_token(self, oauth_access_token: str) -> ExchangeResult[XboxToken]:
        """Exchange an OAuth access token for an Xbox Live user token."""
        result = self.exchange_client.exchange(
            ExchangeRequest(
                step="Xbox Live authenticate",
                method="POST",
                url=self.config.xbl_auth_url,
                token=oauth_access_token,
                error_table=MICROSOFT_ERROR_CODES,
                json={
                    "Properties": {
                        "AuthMethod": "RPS",
                        "SiteName": "user.auth.xboxlive.com",
                        "RpsTicket": f"d={oauth_access_token}",
                    },
                    "RelyingParty": "http://auth.xboxlive.com",
                    "TokenType": "JWT",
                },
            )
        )
        return self._parse(result, self._xbox_token)

    def get_xsts_token(self, xbl_token: XboxToken) -> ExchangeResult[XboxToken]:
        """Exchange an Xbox Live user token for an XSTS token scoped to the game service."""
        result = self.exchange_client.exchange(
            ExchangeRequest(
                step="XSTS authorize",
                method="POST",
                url=self.config.xsts_auth_url,
                token=xbl_token.token,
                error_table=MICROSOFT_ERROR_CODES,
                json={
                    "Properties": {
                        "SandboxId": "RETAIL",
                        "UserTokens": [xbl_token.token],
                    },
                    "RelyingParty": self.config.xsts_relying_party,
                    "TokenType": "JWT",
                },
            )
        )
        return self._parse(result, self._xbox_token)

    def get_game_token(self, xsts_token: XboxToken) -> ExchangeResult[GameToken]:
        """Exchange an XSTS token for a game-service access token."""
        result = self.exchange_client.exchange(
            ExchangeRequest(
                step="game service login",
                method="POST",
                url=self.config.game_login_url,
                token=xsts_token.token,
                error_table=MICROSOFT_ERROR_CODES,
                json={
                    "identityToken": f"XBL3.0 x={xsts_token.user_hash};{xsts_token.token}"
                },
            )
        )
        return self._parse(
            result,
            lambda body: GameToken(
                access_token=body["access_token"],
                expires_in=int(body["expires_in"]),
                username=body.get("username"),
            ),
        )

    def get_profile(self, game_access_token: str) -> ExchangeResult[GameProfile]:
        """Fetch the player profile with a game-service access token."""
        result = self.exchange_client.exchange(
            ExchangeRequest(
                step="profile fetch",
                method="GET",
                url=self.config.profile_url,
                token=game_access_token,
                error_table=MICROSOFT_ERROR_CODES,
                headers={"Authorization": f"Bearer {game_access_token}"},
            )
        )
        return self._parse(result, lambda body: GameProfile(id=body["id"], name=body["name"]))

    @staticmethod
    def _xbox_token(body: dict[str, Any]) -> XboxToken:
        return XboxToken(
            token=body["Token"],
            user_hash=body["DisplayClaims"]["xui"][0]["uhs"],
            not_after=body.get("NotAfter"),
        )

    @staticmethod
    def _parse(result: ExchangeResult[dict[str, Any]], build) -> ExchangeResult:
        if not result.ok:
            return result.forward()
        try:
            return ExchangeResult.success(build(result.data))
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.error(f"Malformed provider payload: missing or invalid {e}")
            return ExchangeResult.failure(AuthErrorKind.UNKNOWN)

    @staticmethod
    def _abort(step: str, result: ExchangeResult) -> FlowResult:
        logger.error(
            f"Microsoft auth flow stopped at {step} step: "
            f"{result.error.value} ({result.error_code})"
        )
        return result.forward()
