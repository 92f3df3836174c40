"""Account lifecycle: add, remove and validate launcher accounts."""

import logging
from typing import Optional, Union

import requests

from ..accounts.store import AccountStore
from ..config import AppConfig
from ..models.account import AccountType, AuthAccount, MicrosoftState
from ..models.results import AwaitingSecondFactor, PasswordLoginResult
from ..utils.date_utils import now_ms
from ..utils.exceptions import AccountNotFoundError, AuthenticationError
from .errors import AuthErrorKind
from .exchange import TokenExchangeClient
from .expiry import compute_expiry
from .microsoft import AuthMode, MicrosoftAuthFlow
from .oauth import MicrosoftOAuthClient
from .password import PasswordAuthFlow
from .validator import CredentialValidator

logger = logging.getLogger(__name__)


class AuthManager:
    """Entry point used by the launcher to manage its accounts.

    Flows report failures as tagged results; this class turns them into
    ``AuthenticationError`` for callers and hands successful results to the
    account store. Nothing is stored unless a flow completed.
    """

    def __init__(
        self,
        store: AccountStore,
        microsoft_flow: MicrosoftAuthFlow,
        password_flow: PasswordAuthFlow,
        validator: Optional[CredentialValidator] = None,
    ):
        """
        Initialize auth manager.

        Args:
            store: Loaded account store
            microsoft_flow: Microsoft exchange chain
            password_flow: Password provider flow
            validator: Credential validator (built from the flows if omitted)
        """
        self.store = store
        self.microsoft_flow = microsoft_flow
        self.password_flow = password_flow
        self.validator = validator or CredentialValidator(store, microsoft_flow, password_flow)

    @classmethod
    def from_config(cls, config: AppConfig, store: AccountStore) -> "AuthManager":
        """Wire the flows from application configuration."""
        exchange_client = TokenExchangeClient(requests.Session(), timeout=config.request_timeout)
        oauth_client = MicrosoftOAuthClient(config.microsoft, timeout=config.request_timeout)
        return cls(
            store,
            MicrosoftAuthFlow(oauth_client, exchange_client, config.microsoft),
            PasswordAuthFlow(exchange_client, config.password_provider),
        )

    def get_microsoft_login_url(self, state: Optional[str] = None) -> str:
        """URL of the interactive Microsoft consent page that yields an auth code."""
        return self.microsoft_flow.oauth_client.get_authorization_url(state)

    def add_microsoft_account(self, auth_code: str) -> AuthAccount:
        """
        Add a Microsoft account from an OAuth authorization code.

        Args:
            auth_code: Code returned by the consent page

        Returns:
            The stored (and selected) account

        Raises:
            AuthenticationError: If any step of the chain fails
        """
        result = self.microsoft_flow.run(auth_code, AuthMode.FULL)
        if not result.ok:
            raise AuthenticationError(result.error, error_code=result.error_code)

        chain = result.data
        now = now_ms()
        account = self.store.add_account(
            AuthAccount(
                id=chain.profile.id,
                type=AccountType.MICROSOFT,
                username=chain.profile.name,
                display_name=chain.profile.name,
                access_token=chain.game_token.access_token,
                expires_at=compute_expiry(now, chain.game_token.expires_in),
                microsoft=MicrosoftState(
                    access_token=chain.oauth.access_token,
                    refresh_token=chain.oauth.refresh_token,
                    expires_at=compute_expiry(now, chain.oauth.expires_in),
                ),
            )
        )
        self.store.persist()
        return account

    def add_password_account(
        self,
        username: str,
        password: str,
        second_factor_code: Optional[str] = None,
    ) -> Union[AuthAccount, AwaitingSecondFactor]:
        """
        Log in with the password provider and store the account.

        Returns:
            The stored account, or an AwaitingSecondFactor state to pass to
            complete_second_factor once the user has the one-time code

        Raises:
            AuthenticationError: If the login is rejected
        """
        return self._store_password_login(
            self.password_flow.login(username, password, second_factor_code)
        )

    def complete_second_factor(self, pending: AwaitingSecondFactor, code: str) -> AuthAccount:
        """
        Resume a login suspended on a second-factor challenge.

        Raises:
            AuthenticationError: If the code is rejected
        """
        outcome = self._store_password_login(self.password_flow.resume(pending, code))
        if isinstance(outcome, AwaitingSecondFactor):
            raise AuthenticationError(AuthErrorKind.INVALID_CREDENTIALS)
        return outcome

    def remove_microsoft_account(self, account_id: str) -> None:
        """
        Remove a Microsoft account. Signing out of Microsoft in the browser is
        left to the caller.

        Raises:
            AccountNotFoundError: If the id is unknown
        """
        self._require(account_id, AccountType.MICROSOFT)
        self.store.remove_account(account_id)
        self.store.persist()

    def remove_password_account(self, account_id: str) -> None:
        """
        Remove a password account after a best-effort provider logout.

        Raises:
            AccountNotFoundError: If the id is unknown
        """
        account = self._require(account_id, AccountType.PASSWORD)
        result = self.password_flow.invalidate(account.access_token)
        if not result.ok:
            logger.warning(
                f"Could not invalidate session for {account.display_name} "
                f"({result.error.value}), removing locally anyway"
            )
        self.store.remove_account(account_id)
        self.store.persist()

    def validate_selected(self) -> bool:
        """Check the selected account and refresh it silently if possible."""
        return self.validator.validate_selected()

    def _store_password_login(
        self, result: PasswordLoginResult
    ) -> Union[AuthAccount, AwaitingSecondFactor]:
        if not result.ok:
            raise AuthenticationError(result.error, error_code=result.error_code)
        if isinstance(result.data, AwaitingSecondFactor):
            return result.data

        session = result.data.session
        account = self.store.add_account(
            AuthAccount(
                id=session.uuid,
                type=AccountType.PASSWORD,
                username=session.username,
                display_name=session.username,
                access_token=session.access_token,
            )
        )
        if self.store.client_token is None:
            self.store.client_token = session.access_token
        self.store.persist()
        return account

    def _require(self, account_id: str, account_type: AccountType) -> AuthAccount:
        account = self.store.get_account(account_id)
        if account is None or account.type is not account_type:
            raise AccountNotFoundError(f"No {account_type.value} account with id {account_id}")
        return account
