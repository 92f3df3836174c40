"""Validation and silent refresh of the selected account."""

import logging
from typing import Callable

from ..accounts.store import AccountStore
from ..models.account import AccountType, AuthAccount, MicrosoftState
from ..utils.date_utils import now_ms
from ..utils.exceptions import AccountStoreError
from .expiry import compute_expiry, is_expired
from .microsoft import AuthMode, MicrosoftAuthFlow
from .password import PasswordAuthFlow

logger = logging.getLogger(__name__)


class CredentialValidator:
    """Decides whether the selected account is usable and refreshes it if not.

    Every check returns a plain boolean: True means the stored credentials can
    be used right away (whether or not a refresh happened), False means the
    user has to log in again. Stored state is only touched after a refresh
    fully succeeds.

    Calls for the same account are expected to be serialized by the caller;
    concurrent refreshes race on the persisted record.
    """

    def __init__(
        self,
        store: AccountStore,
        microsoft_flow: MicrosoftAuthFlow,
        password_flow: PasswordAuthFlow,
        clock: Callable[[], int] = now_ms,
    ):
        """
        Initialize credential validator.

        Args:
            store: Account store (source of truth, re-read on every call)
            microsoft_flow: Microsoft exchange chain
            password_flow: Password provider flow
            clock: Returns the current time in epoch milliseconds
        """
        self.store = store
        self.microsoft_flow = microsoft_flow
        self.password_flow = password_flow
        self.clock = clock

    def validate_selected(self) -> bool:
        """Validate the selected account, refreshing it when needed."""
        current = self.store.get_selected_account()
        if current is None:
            logger.warning("No account selected, nothing to validate")
            return False

        if current.type is AccountType.MICROSOFT:
            return self.validate_microsoft(current)
        return self.validate_password(current)

    def validate_password(self, account: AuthAccount) -> bool:
        """Validate a password-provider session, with one refresh attempt."""
        response = self.password_flow.validate(account.access_token)
        if not response.ok:
            logger.error(f"Could not validate session for {account.display_name}: {response.error.value}")
            return False

        if response.data:
            logger.info(f"Access token for {account.display_name} is valid")
            return True

        refreshed = self.password_flow.refresh(account.access_token, self.store.client_token)
        if not refreshed.ok:
            logger.error(f"Session refresh failed for {account.display_name}: {refreshed.error.value}")
            logger.info(f"Access token for {account.display_name} is no longer valid")
            return False

        if not self._commit(account, access_token=refreshed.data.access_token):
            return False
        logger.info(f"Access token for {account.display_name} refreshed")
        return True

    def validate_microsoft(self, account: AuthAccount) -> bool:
        """
        Validate a Microsoft account.

        A live game token needs no network call. Once it has expired the OAuth
        token decides the refresh path: if that is still live only the
        downstream chain is re-run, otherwise the OAuth pair is refreshed too.
        """
        now = self.clock()
        if not is_expired(now, account.expires_at):
            return True

        ms = account.microsoft
        if ms is None:
            logger.error(f"Microsoft account {account.display_name} has no OAuth state")
            return False

        if is_expired(now, ms.expires_at):
            # Both expired, refresh everything from the refresh token
            result = self.microsoft_flow.run(ms.refresh_token, AuthMode.MS_REFRESH)
            if not result.ok:
                logger.error(f"Microsoft refresh failed for {account.display_name}: {result.error.value}")
                return False
            chain = result.data
            fields = dict(
                access_token=chain.game_token.access_token,
                expires_at=compute_expiry(now, chain.game_token.expires_in),
                microsoft=MicrosoftState(
                    access_token=chain.oauth.access_token,
                    refresh_token=chain.oauth.refresh_token,
                    expires_at=compute_expiry(now, chain.oauth.expires_in),
                ),
            )
        else:
            # Only the game token expired, reuse the OAuth access token
            result = self.microsoft_flow.run(ms.access_token, AuthMode.MC_REFRESH)
            if not result.ok:
                logger.error(f"Game token refresh failed for {account.display_name}: {result.error.value}")
                return False
            chain = result.data
            fields = dict(
                access_token=chain.game_token.access_token,
                expires_at=compute_expiry(now, chain.game_token.expires_in),
            )

        if not self._commit(account, **fields):
            return False
        logger.info(f"Microsoft account {account.display_name} refreshed")
        return True

    def _commit(self, account: AuthAccount, **fields) -> bool:
        """Apply and save refreshed fields; on a save failure restore the previous record."""
        previous = self.store.get_account(account.id)
        try:
            self.store.update_account(account.id, **fields)
            self.store.persist()
        except AccountStoreError as e:
            logger.error(f"Could not save refreshed credentials for {account.display_name}: {e}")
            if previous is not None:
                self.store.add_account(previous, select=False)
            return False
        return True
