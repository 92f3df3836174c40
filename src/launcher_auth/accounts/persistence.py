"""Account store persistence using msal-extensions."""

import logging
import sys
from pathlib import Path
from typing import Optional

from msal_extensions import (
    FilePersistence,
    KeychainPersistence,
    LibsecretPersistence,
)
from msal_extensions.persistence import BasePersistence

from ..utils.exceptions import AccountStoreError

logger = logging.getLogger(__name__)


class StorePersistenceManager:
    """Picks the platform persistence backing the account store."""

    def __init__(
        self,
        store_location: Path,
        store_name: str = "accounts",
        encrypted: bool = True,
    ):
        """
        Initialize store persistence manager.

        Args:
            store_location: Directory for store files
            store_name: Base name of the store file
            encrypted: Whether to keep the store in the OS secret store
        """
        self.store_location = store_location
        self.store_name = store_name
        self.encrypted = encrypted
        self._persistence: Optional[BasePersistence] = None

    def get_persistence(self) -> BasePersistence:
        """
        Get or create the persistence backend.

        Returns:
            Configured msal-extensions persistence

        Raises:
            AccountStoreError: If the backend cannot be initialized
        """
        if self._persistence is not None:
            return self._persistence

        try:
            self.store_location.mkdir(parents=True, exist_ok=True)

            if not self.encrypted:
                persistence = FilePersistence(
                    str(self.store_location / f"{self.store_name}.json")
                )
            elif sys.platform == "darwin":
                persistence = KeychainPersistence(
                    str(self.store_location / f"{self.store_name}.bin"),
                    "launcher_auth",
                    self.store_name,
                )
            elif sys.platform.startswith("linux"):
                try:
                    persistence = LibsecretPersistence(
                        str(self.store_location / f"{self.store_name}.bin"),
                        schema_name="launcher_auth",
                        attributes={"app": self.store_name},
                    )
                except (ImportError, RuntimeError, ValueError) as e:
                    # No usable secret service (headless session, missing PyGObject)
                    logger.warning(f"libsecret unavailable, falling back to plain file: {e}")
                    persistence = FilePersistence(
                        str(self.store_location / f"{self.store_name}.bin")
                    )
            else:
                persistence = FilePersistence(
                    str(self.store_location / f"{self.store_name}.bin")
                )

            self._persistence = persistence
            logger.info(f"Account store persistence initialized at {self.store_location}")
            return self._persistence

        except OSError as e:
            raise AccountStoreError(f"Failed to initialize account store persistence: {e}") from e
