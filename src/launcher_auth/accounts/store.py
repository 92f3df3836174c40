"""Key-value store of authenticated accounts."""

import logging
from typing import Any, Optional

from msal_extensions.persistence import BasePersistence, PersistenceNotFound
from pydantic import ValidationError

from ..models.account import AccountDatabase, AuthAccount
from ..utils.exceptions import AccountNotFoundError, AccountStoreError

logger = logging.getLogger(__name__)


class AccountStore:
    """Holds account records and the selected-account pointer.

    The store is the single source of truth for account state. Records handed
    out are copies; changes go through ``update_account`` and reach disk on
    ``persist``. A single ``selected_account`` id means at most one account is
    ever selected.
    """

    def __init__(self, persistence: BasePersistence):
        self.persistence = persistence
        self._db = AccountDatabase()

    def load(self) -> "AccountStore":
        """
        Load the store from persistence. A missing store starts empty.

        Raises:
            AccountStoreError: If the persisted data cannot be read
        """
        try:
            raw = self.persistence.load()
        except PersistenceNotFound:
            logger.info("No persisted account store yet, starting empty")
            self._db = AccountDatabase()
            return self

        if not raw:
            self._db = AccountDatabase()
            return self

        try:
            self._db = AccountDatabase.model_validate_json(raw)
        except ValidationError as e:
            raise AccountStoreError(f"Corrupt account store: {e}") from e

        if self._db.selected_account not in self._db.accounts:
            self._db.selected_account = next(iter(self._db.accounts), None)
        logger.debug(f"Loaded {len(self._db.accounts)} account(s)")
        return self

    def persist(self) -> None:
        """Write the store to persistence."""
        try:
            self.persistence.save(self._db.model_dump_json(indent=2))
        except OSError as e:
            raise AccountStoreError(f"Failed to persist account store: {e}") from e
        logger.debug("Account store persisted")

    def add_account(self, account: AuthAccount, select: bool = True) -> AuthAccount:
        """Add or replace an account record, selecting it by default."""
        self._db.accounts[account.id] = account.model_copy(deep=True)
        if select or self._db.selected_account is None:
            self._db.selected_account = account.id
        logger.info(f"Stored {account.type.value} account {account.display_name}")
        return account.model_copy(deep=True)

    def remove_account(self, account_id: str) -> None:
        """
        Remove an account. If it was selected, the first remaining account
        becomes selected.

        Raises:
            AccountNotFoundError: If the id is unknown
        """
        if account_id not in self._db.accounts:
            raise AccountNotFoundError(f"No account with id {account_id}")
        del self._db.accounts[account_id]
        if self._db.selected_account == account_id:
            self._db.selected_account = next(iter(self._db.accounts), None)
        logger.info(f"Removed account {account_id}")

    def get_account(self, account_id: str) -> Optional[AuthAccount]:
        account = self._db.accounts.get(account_id)
        return account.model_copy(deep=True) if account else None

    def get_selected_account(self) -> Optional[AuthAccount]:
        if self._db.selected_account is None:
            return None
        return self.get_account(self._db.selected_account)

    def select_account(self, account_id: str) -> AuthAccount:
        if account_id not in self._db.accounts:
            raise AccountNotFoundError(f"No account with id {account_id}")
        self._db.selected_account = account_id
        return self.get_account(account_id)

    def list_accounts(self) -> list[AuthAccount]:
        return [a.model_copy(deep=True) for a in self._db.accounts.values()]

    def update_account(self, account_id: str, **fields: Any) -> AuthAccount:
        """
        Update fields of an account in place. Identity fields cannot change.

        Raises:
            AccountNotFoundError: If the id is unknown
            AccountStoreError: If a field is unknown, immutable or invalid
        """
        current = self._db.accounts.get(account_id)
        if current is None:
            raise AccountNotFoundError(f"No account with id {account_id}")

        unknown = set(fields) - set(AuthAccount.model_fields)
        if unknown:
            raise AccountStoreError(f"Unknown account field(s): {', '.join(sorted(unknown))}")
        if "id" in fields or "type" in fields:
            raise AccountStoreError("Account id and type cannot be updated")

        try:
            updated = AuthAccount.model_validate({**current.model_dump(), **fields})
        except ValidationError as e:
            raise AccountStoreError(f"Invalid account update: {e}") from e

        self._db.accounts[account_id] = updated
        return updated.model_copy(deep=True)

    @property
    def client_token(self) -> Optional[str]:
        return self._db.client_token

    @client_token.setter
    def client_token(self, value: Optional[str]) -> None:
        self._db.client_token = value
