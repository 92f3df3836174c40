"""CLI entry point for the launcher authentication core."""

import argparse
import getpass
import sys
from pathlib import Path

from .accounts.persistence import StorePersistenceManager
from .accounts.store import AccountStore
from .auth.manager import AuthManager
from .config import config
from .models.account import AccountType
from .models.results import AwaitingSecondFactor
from .utils.date_utils import format_expiry
from .utils.exceptions import AuthenticationError, LauncherAuthError
from .utils.logging import setup_logging


def _add_password_account(manager: AuthManager, username: str, logger) -> int:
    password = getpass.getpass(f"Password for {username}: ")
    outcome = manager.add_password_account(username, password)
    if isinstance(outcome, AwaitingSecondFactor):
        code = input("Two-factor code: ").strip()
        outcome = manager.complete_second_factor(outcome, code)
    logger.info(f"Added account {outcome.display_name} ({outcome.id})")
    return 0


def _list_accounts(store: AccountStore) -> int:
    selected = store.get_selected_account()
    accounts = store.list_accounts()
    if not accounts:
        print("No accounts")
        return 0
    for account in accounts:
        marker = "*" if selected and selected.id == account.id else " "
        print(
            f"{marker} {account.id}  {account.display_name:<20} "
            f"{account.type.value:<10} expires {format_expiry(account.expires_at)}"
        )
    return 0


def main() -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Launcher auth - manage Microsoft and password accounts"
    )
    parser.add_argument(
        "--login-url",
        action="store_true",
        help="Print the Microsoft consent URL that yields an authorization code",
    )
    parser.add_argument(
        "--add-microsoft",
        metavar="AUTH_CODE",
        help="Add a Microsoft account from an authorization code",
    )
    parser.add_argument(
        "--add-password",
        metavar="USERNAME",
        help="Add a password account (prompts for password and 2FA code)",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List stored accounts",
    )
    parser.add_argument(
        "--select",
        metavar="ACCOUNT_ID",
        help="Select the account used by the launcher",
    )
    parser.add_argument(
        "--remove",
        metavar="ACCOUNT_ID",
        help="Remove an account",
    )
    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate the selected account, refreshing it if needed",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Verbose output",
    )

    args = parser.parse_args()

    log_level = "DEBUG" if args.verbose else config.log_level
    logger = setup_logging(level=log_level, log_file=config.log_file)

    try:
        persistence = StorePersistenceManager(
            store_location=Path(config.account_store_path),
            store_name=config.account_store_name,
            encrypted=config.account_store_encrypted,
        ).get_persistence()
        store = AccountStore(persistence).load()
        manager = AuthManager.from_config(config, store)

        if args.login_url:
            print(manager.get_microsoft_login_url())
            return 0

        if args.add_microsoft:
            account = manager.add_microsoft_account(args.add_microsoft)
            logger.info(f"Added Microsoft account {account.display_name} ({account.id})")
            return 0

        if args.add_password:
            return _add_password_account(manager, args.add_password, logger)

        if args.select:
            account = store.select_account(args.select)
            store.persist()
            logger.info(f"Selected {account.display_name}")
            return 0

        if args.remove:
            account = store.get_account(args.remove)
            if account is not None and account.type is AccountType.MICROSOFT:
                manager.remove_microsoft_account(args.remove)
                print("Remember to sign out of Microsoft in your browser.")
            else:
                manager.remove_password_account(args.remove)
            logger.info(f"Removed account {args.remove}")
            return 0

        if args.validate:
            if manager.validate_selected():
                logger.info("Selected account is ready to use")
                return 0
            logger.error("Selected account needs to log in again")
            return 1

        if args.list:
            return _list_accounts(store)

        parser.print_help()
        return 0

    except AuthenticationError as e:
        logger.error(f"{e.title}: {e}")
        return 1
    except LauncherAuthError as e:
        logger.error(f"Error: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Cancelled")
        return 130


if __name__ == "__main__":
    sys.exit(main())
