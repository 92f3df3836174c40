"""MSAL-based OAuth token exchange for Microsoft accounts."""

import logging
from typing import Any, Optional

import msal
import requests

from ..config import MicrosoftConfig
from ..models.results import ExchangeResult
from ..models.tokens import OAuthToken
from ..utils.exceptions import ConfigurationError
from .errors import MICROSOFT_ERROR_CODES, AuthErrorKind, map_error

logger = logging.getLogger(__name__)


class MicrosoftOAuthClient:
    """Exchanges authorization codes and refresh tokens with Azure AD."""

    def __init__(self, config: MicrosoftConfig, timeout: Optional[float] = None):
        """
        Initialize Microsoft OAuth client.

        Args:
            config: Microsoft configuration
            timeout: HTTP timeout handed to MSAL
        """
        self.config = config
        self.timeout = timeout
        self._app: Optional[msal.PublicClientApplication] = None

    @property
    def app(self) -> msal.PublicClientApplication:
        """
        Lazy-load the MSAL application (construction performs authority discovery).

        Raises:
            ConfigurationError: If MSAL rejects the configured authority or client
        """
        if self._app is None:
            logger.debug("Initializing MSAL public client application")
            try:
                self._app = msal.PublicClientApplication(
                    client_id=self.config.client_id,
                    authority=self.config.authority,
                    timeout=self.timeout,
                )
            except ValueError as e:
                raise ConfigurationError(f"Invalid Microsoft OAuth configuration: {e}") from e
        return self._app

    def get_authorization_url(self, state: Optional[str] = None) -> str:
        """
        Build the interactive consent URL.

        Args:
            state: Optional opaque state echoed back with the code

        Returns:
            URL to open in a browser window
        """
        return self.app.get_authorization_request_url(
            self.config.scopes,
            redirect_uri=self.config.redirect_uri,
            state=state,
            prompt="select_account",
        )

    def exchange_code(self, auth_code: str) -> ExchangeResult[OAuthToken]:
        """Exchange an authorization code for an access/refresh token pair."""
        if not auth_code:
            return ExchangeResult.failure(AuthErrorKind.UNKNOWN)
        return self._acquire(
            "authorization code",
            lambda: self.app.acquire_token_by_authorization_code(
                auth_code,
                scopes=self.config.scopes,
                redirect_uri=self.config.redirect_uri,
            ),
        )

    def refresh(self, refresh_token: str) -> ExchangeResult[OAuthToken]:
        """Exchange a refresh token for a new access/refresh token pair."""
        if not refresh_token:
            return ExchangeResult.failure(AuthErrorKind.UNKNOWN)
        return self._acquire(
            "refresh token",
            lambda: self.app.acquire_token_by_refresh_token(
                refresh_token, scopes=self.config.scopes
            ),
        )

    def _acquire(self, grant: str, call) -> ExchangeResult[OAuthToken]:
        try:
            result: dict[str, Any] = call()
        except requests.RequestException as e:
            logger.error(f"OAuth {grant} exchange: transport error: {e}")
            return ExchangeResult.failure(AuthErrorKind.UNKNOWN)
        except ConfigurationError as e:
            logger.error(f"OAuth {grant} exchange: {e}")
            return ExchangeResult.failure(AuthErrorKind.UNKNOWN, "configuration_error")

        if "access_token" not in result:
            code = result.get("error")
            kind = map_error(MICROSOFT_ERROR_CODES, code)
            logger.warning(
                f"OAuth {grant} exchange failed: {code} "
                f"({result.get('error_description', 'no description')}) -> {kind.value}"
            )
            return ExchangeResult.failure(kind, code)

        if "refresh_token" not in result:
            # offline_access was not granted, the account could never be refreshed
            logger.error(f"OAuth {grant} exchange returned no refresh token")
            return ExchangeResult.failure(AuthErrorKind.UNKNOWN, "missing_refresh_token")

        logger.debug(f"OAuth {grant} exchange succeeded")
        return ExchangeResult.success(
            OAuthToken(
                access_token=result["access_token"],
                refresh_token=result["refresh_token"],
                expires_in=int(result.get("expires_in", 0)),
            )
        )
