"""Password login against the launcher's identity federation site."""

import logging
from typing import Any, Optional

from ..config import PasswordProviderConfig
from ..models.results import (
    AwaitingSecondFactor,
    ExchangeResult,
    LoginComplete,
    PasswordLoginResult,
)
from ..models.tokens import PasswordSession
from .errors import PASSWORD_ERROR_CODES, AuthErrorKind
from .exchange import ExchangeRequest, TokenExchangeClient

logger = logging.getLogger(__name__)

# Provider answers that say nothing about the credentials themselves
_TRANSIENT = (AuthErrorKind.RATE_LIMITED, AuthErrorKind.PROVIDER_UNAVAILABLE)


class PasswordAuthFlow:
    """Username/password login with an optional second-factor step.

    Login is a two-call contract. The first call omits the one-time code; when
    the provider asks for a second factor the result is an
    ``AwaitingSecondFactor`` state, and the caller resumes with the code once
    the user has typed it.
    """

    def __init__(
        self,
        exchange_client: TokenExchangeClient,
        config: PasswordProviderConfig,
    ):
        self.exchange_client = exchange_client
        self.config = config

    def login(
        self,
        username: str,
        password: str,
        second_factor_code: Optional[str] = None,
    ) -> PasswordLoginResult:
        """
        Authenticate with username and password.

        Args:
            username: Account email or name
            password: Account password
            second_factor_code: One-time code, only on the resumed call

        Returns:
            LoginComplete, AwaitingSecondFactor, or a normalized failure
        """
        if not username or not password:
            return ExchangeResult.failure(AuthErrorKind.INVALID_CREDENTIALS, "missing_credentials")

        payload = {"email": username, "password": password}
        if second_factor_code:
            payload["code"] = second_factor_code

        result = self.exchange_client.exchange(
            ExchangeRequest(
                step="password login",
                method="POST",
                url=self.config.url(self.config.login_path),
                token=password,
                error_table=PASSWORD_ERROR_CODES,
                json=payload,
            )
        )

        if not result.ok:
            if result.error is AuthErrorKind.REQUIRES_SECOND_FACTOR:
                return self._second_factor(username, password, second_factor_code)
            if result.error in _TRANSIENT or result.error_code is None:
                return result.forward()
            return ExchangeResult.failure(AuthErrorKind.INVALID_CREDENTIALS, result.error_code)

        body = result.data
        status = body.get("status", "success")
        if status == "pending" and body.get("requires_2fa"):
            return self._second_factor(username, password, second_factor_code)
        if status != "success":
            logger.error(f"Unexpected password login status: {status}")
            return ExchangeResult.failure(AuthErrorKind.INVALID_CREDENTIALS, str(status))

        session = self._session(body)
        if session is None:
            return ExchangeResult.failure(AuthErrorKind.UNKNOWN)
        logger.info(f"Password login succeeded for {session.username}")
        return ExchangeResult.success(LoginComplete(session=session))

    def resume(self, pending: AwaitingSecondFactor, code: str) -> PasswordLoginResult:
        """Finish a login suspended on a second-factor challenge."""
        if not code:
            return ExchangeResult.failure(AuthErrorKind.INVALID_CREDENTIALS, "missing_code")
        return self.login(pending.username, pending.password, code)

    def validate(self, access_token: str) -> ExchangeResult[bool]:
        """
        Check a session token with the provider.

        Returns:
            success(True) if valid, success(False) if the provider rejected it,
            a failure for transport or provider-side problems
        """
        result = self.exchange_client.exchange(
            ExchangeRequest(
                step="password session validate",
                method="POST",
                url=self.config.url(self.config.verify_path),
                token=access_token,
                error_table=PASSWORD_ERROR_CODES,
                json={"access_token": access_token},
            )
        )
        if result.ok:
            return ExchangeResult.success(True)
        if result.error is AuthErrorKind.INVALID_CREDENTIALS:
            return ExchangeResult.success(False)
        return result.forward()

    def refresh(
        self, access_token: str, client_token: Optional[str] = None
    ) -> ExchangeResult[PasswordSession]:
        """Exchange a stale session token for a fresh one."""
        payload = {"access_token": access_token}
        if client_token:
            payload["client_token"] = client_token
        result = self.exchange_client.exchange(
            ExchangeRequest(
                step="password session refresh",
                method="POST",
                url=self.config.url(self.config.refresh_path),
                token=access_token,
                error_table=PASSWORD_ERROR_CODES,
                json=payload,
            )
        )
        if not result.ok:
            return result.forward()
        session = self._session(result.data)
        if session is None:
            return ExchangeResult.failure(AuthErrorKind.UNKNOWN)
        return ExchangeResult.success(session)

    def invalidate(self, access_token: str) -> ExchangeResult[bool]:
        """Revoke a session token on the provider side."""
        result = self.exchange_client.exchange(
            ExchangeRequest(
                step="password session invalidate",
                method="POST",
                url=self.config.url(self.config.logout_path),
                token=access_token,
                error_table=PASSWORD_ERROR_CODES,
                json={"access_token": access_token},
            )
        )
        if not result.ok:
            return result.forward()
        return ExchangeResult.success(True)

    @staticmethod
    def _second_factor(
        username: str, password: str, code: Optional[str]
    ) -> PasswordLoginResult:
        if code:
            # Challenged again although a code was sent: the code was wrong
            logger.warning("Second-factor code rejected")
            return ExchangeResult.failure(AuthErrorKind.INVALID_CREDENTIALS, "invalid_code")
        logger.info("Password login requires a second factor")
        return ExchangeResult.success(AwaitingSecondFactor(username=username, password=password))

    @staticmethod
    def _session(body: dict[str, Any]) -> Optional[PasswordSession]:
        try:
            return PasswordSession(
                id=body.get("id"),
                uuid=body["uuid"],
                username=body["username"],
                access_token=body["access_token"],
            )
        except (KeyError, ValueError) as e:
            logger.error(f"Malformed password provider session payload: {e}")
            return None
