"""
Unit tests for the account lifecycle manager
"""
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from launcher_auth.auth.errors import AuthErrorKind
from launcher_auth.auth.manager import AuthManager
from launcher_auth.auth.microsoft import MicrosoftAuthFlow
from launcher_auth.auth.password import PasswordAuthFlow
from launcher_auth.config import AppConfig
from launcher_auth.models.account import AccountType
from launcher_auth.models.results import AwaitingSecondFactor, ExchangeResult
from launcher_auth.utils.exceptions import AccountNotFoundError, AuthenticationError

from conftest import MS, PW, FakeSession, add_chain_routes, password_session_body, reload_store

NOW = 1_700_000_000_000
LOGIN_URL = PW.url(PW.login_path)
PENDING_BODY = {"status": "pending", "reason": "2fa", "requires_2fa": True}


@pytest.fixture
def manager(store, microsoft_flow, password_flow) -> AuthManager:
    return AuthManager(store, microsoft_flow, password_flow)


class TestMicrosoftAccounts:
    """Test adding and removing Microsoft accounts"""

    @patch("launcher_auth.auth.manager.now_ms", return_value=NOW)
    def test_add_microsoft_account(self, _now, manager: AuthManager, session: FakeSession, store_path: Path):
        add_chain_routes(session, profile_id="uuid-1", profile_name="Steve", game_expires_in=86400)
        account = manager.add_microsoft_account("auth-code")

        assert account.id == "uuid-1"
        assert account.type is AccountType.MICROSOFT
        assert account.display_name == "Steve"
        assert account.access_token == "mc-token"
        assert account.expires_at == NOW + (86400 - 10) * 1000
        assert account.microsoft.refresh_token == "ms-refresh"
        assert account.microsoft.expires_at == NOW + (3600 - 10) * 1000

        reloaded = reload_store(store_path)
        assert reloaded.get_selected_account().id == "uuid-1"

    def test_add_then_validate_needs_no_network(self, manager: AuthManager, session: FakeSession):
        add_chain_routes(session)
        manager.add_microsoft_account("auth-code")
        calls_after_add = len(session.calls)

        assert manager.validate_selected() is True
        assert len(session.calls) == calls_after_add

    def test_failed_flow_raises_and_stores_nothing(
        self, manager: AuthManager, oauth_client: Mock, store_path: Path
    ):
        oauth_client.exchange_code.return_value = ExchangeResult.failure(
            AuthErrorKind.INVALID_CREDENTIALS, "invalid_grant"
        )
        with pytest.raises(AuthenticationError) as exc_info:
            manager.add_microsoft_account("bad-code")

        assert exc_info.value.kind is AuthErrorKind.INVALID_CREDENTIALS
        assert exc_info.value.error_code == "invalid_grant"
        assert manager.store.list_accounts() == []
        assert not store_path.exists()

    def test_failed_flow_keeps_existing_account(self, manager: AuthManager, session: FakeSession):
        add_chain_routes(session, profile_id="uuid-1")
        before = manager.add_microsoft_account("auth-code")

        session.routes[MS.xsts_auth_url] = []
        session.add(MS.xsts_auth_url, status=401, body={"XErr": 2148916233})
        with pytest.raises(AuthenticationError):
            manager.add_microsoft_account("auth-code-2")

        assert manager.store.get_account("uuid-1") == before

    def test_login_url(self, manager: AuthManager, oauth_client: Mock):
        assert manager.get_microsoft_login_url("state-1") == "https://login.example/authorize"
        oauth_client.get_authorization_url.assert_called_once_with("state-1")

    def test_remove_microsoft_account(self, manager: AuthManager, session: FakeSession, store_path: Path):
        add_chain_routes(session, profile_id="uuid-1")
        manager.add_microsoft_account("auth-code")
        manager.remove_microsoft_account("uuid-1")

        assert reload_store(store_path).list_accounts() == []

    def test_remove_unknown_microsoft_account(self, manager: AuthManager):
        with pytest.raises(AccountNotFoundError):
            manager.remove_microsoft_account("nope")


class TestPasswordAccounts:
    """Test adding and removing password accounts"""

    def test_add_password_account(self, manager: AuthManager, session: FakeSession, store_path: Path):
        session.add(LOGIN_URL, body=password_session_body(uuid="uuid-pw"))
        account = manager.add_password_account("alex@example.com", "hunter2")

        assert account.id == "uuid-pw"
        assert account.type is AccountType.PASSWORD
        assert account.expires_at is None
        assert account.microsoft is None

        reloaded = reload_store(store_path)
        assert reloaded.client_token == "pw-token"
        assert reloaded.get_selected_account().id == "uuid-pw"

    def test_client_token_not_overwritten(self, manager: AuthManager, session: FakeSession):
        manager.store.client_token = "existing"
        session.add(LOGIN_URL, body=password_session_body())
        manager.add_password_account("alex@example.com", "hunter2")
        assert manager.store.client_token == "existing"

    def test_second_factor_round_trip(self, manager: AuthManager, session: FakeSession):
        session.add(LOGIN_URL, body=PENDING_BODY)
        session.add(LOGIN_URL, body=password_session_body(uuid="uuid-pw"))

        pending = manager.add_password_account("alex@example.com", "hunter2")
        assert isinstance(pending, AwaitingSecondFactor)
        assert manager.store.list_accounts() == []

        account = manager.complete_second_factor(pending, "123456")
        assert account.id == "uuid-pw"

    def test_second_factor_wrong_code(self, manager: AuthManager, session: FakeSession):
        session.add(LOGIN_URL, body=PENDING_BODY)
        session.add(LOGIN_URL, status=422, body={"status": "error", "reason": "invalid_code"})

        pending = manager.add_password_account("alex@example.com", "hunter2")
        with pytest.raises(AuthenticationError) as exc_info:
            manager.complete_second_factor(pending, "000000")

        assert exc_info.value.kind is AuthErrorKind.INVALID_CREDENTIALS
        assert manager.store.list_accounts() == []

    def test_rejected_login(self, manager: AuthManager, session: FakeSession):
        session.add(LOGIN_URL, status=422, body={"status": "error", "reason": "invalid_credentials"})
        with pytest.raises(AuthenticationError) as exc_info:
            manager.add_password_account("alex@example.com", "wrong")
        assert exc_info.value.title == "Login failed"

    def test_remove_password_account_logs_out(self, manager: AuthManager, session: FakeSession, store_path: Path):
        session.add(LOGIN_URL, body=password_session_body(uuid="uuid-pw"))
        session.add(PW.url(PW.logout_path), body={})
        manager.add_password_account("alex@example.com", "hunter2")

        manager.remove_password_account("uuid-pw")

        assert session.urls()[-1] == PW.url(PW.logout_path)
        assert reload_store(store_path).list_accounts() == []

    def test_remove_survives_failed_logout(self, manager: AuthManager, session: FakeSession):
        session.add(LOGIN_URL, body=password_session_body(uuid="uuid-pw"))
        session.add(PW.url(PW.logout_path), status=503, body={})
        manager.add_password_account("alex@example.com", "hunter2")

        manager.remove_password_account("uuid-pw")
        assert manager.store.get_account("uuid-pw") is None

    def test_remove_wrong_type(self, manager: AuthManager, session: FakeSession):
        session.add(LOGIN_URL, body=password_session_body(uuid="uuid-pw"))
        manager.add_password_account("alex@example.com", "hunter2")
        with pytest.raises(AccountNotFoundError):
            manager.remove_microsoft_account("uuid-pw")


def test_from_config_wires_flows(store):
    manager = AuthManager.from_config(AppConfig(), store)
    assert isinstance(manager.microsoft_flow, MicrosoftAuthFlow)
    assert isinstance(manager.password_flow, PasswordAuthFlow)
    assert manager.validator.store is store
