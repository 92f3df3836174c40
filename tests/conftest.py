"""
Pytest configuration and fixtures
"""
from pathlib import Path
from typing import Any, Optional
from unittest.mock import Mock

import pytest
import requests
from msal_extensions import FilePersistence

from launcher_auth.accounts.store import AccountStore
from launcher_auth.auth.exchange import TokenExchangeClient
from launcher_auth.auth.microsoft import MicrosoftAuthFlow
from launcher_auth.auth.oauth import MicrosoftOAuthClient
from launcher_auth.auth.password import PasswordAuthFlow
from launcher_auth.config import MicrosoftConfig, PasswordProviderConfig
from launcher_auth.models.results import ExchangeResult
from launcher_auth.models.tokens import OAuthToken

MS = MicrosoftConfig()
PW = PasswordProviderConfig()


def make_response(status: int = 200, body: Any = None) -> Mock:
    """Build a stand-in for requests.Response"""
    response = Mock(spec=requests.Response)
    response.status_code = status
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body
    return response


class FakeSession:
    """Routes requests by URL to queued responses and records every call"""

    def __init__(self):
        self.routes: dict[str, list[Any]] = {}
        self.calls: list[dict[str, Any]] = []

    def add(self, url: str, status: int = 200, body: Any = None) -> None:
        self.routes.setdefault(url, []).append(make_response(status, body))

    def fail(self, url: str, error: Exception) -> None:
        self.routes.setdefault(url, []).append(error)

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        queue = self.routes.get(url)
        if not queue:
            raise AssertionError(f"Unexpected request to {url}")
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return item

    def urls(self) -> list[str]:
        return [call["url"] for call in self.calls]


def xbox_body(token: str, uhs: str = "uhs123") -> dict:
    return {
        "IssueInstant": "2026-10-18T10:00:00Z",
        "NotAfter": "2026-10-19T02:00:00Z",
        "Token": token,
        "DisplayClaims": {"xui": [{"uhs": uhs}]},
    }


def add_chain_routes(
    session: FakeSession,
    game_token: str = "mc-token",
    game_expires_in: int = 86400,
    profile_id: str = "0f3a9c2e7d514b6f8e2c1a9b3d4e5f60",
    profile_name: str = "Steve",
) -> None:
    """Queue successful responses for the four Xbox/game steps"""
    session.add(MS.xbl_auth_url, body=xbox_body("xbl-token"))
    session.add(MS.xsts_auth_url, body=xbox_body("xsts-token"))
    session.add(
        MS.game_login_url,
        body={
            "username": "a1b2c3",
            "roles": [],
            "access_token": game_token,
            "token_type": "Bearer",
            "expires_in": game_expires_in,
        },
    )
    session.add(MS.profile_url, body={"id": profile_id, "name": profile_name, "skins": []})


def oauth_success(
    access_token: str = "ms-access",
    refresh_token: str = "ms-refresh",
    expires_in: int = 3600,
) -> ExchangeResult:
    return ExchangeResult.success(
        OAuthToken(access_token=access_token, refresh_token=refresh_token, expires_in=expires_in)
    )


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def exchange_client(session: FakeSession) -> TokenExchangeClient:
    return TokenExchangeClient(session, timeout=5)


@pytest.fixture
def oauth_client() -> Mock:
    client = Mock(spec=MicrosoftOAuthClient)
    client.exchange_code.return_value = oauth_success()
    client.refresh.return_value = oauth_success("ms-access-2", "ms-refresh-2", 3600)
    client.get_authorization_url.return_value = "https://login.example/authorize"
    return client


@pytest.fixture
def microsoft_flow(oauth_client: Mock, exchange_client: TokenExchangeClient) -> MicrosoftAuthFlow:
    return MicrosoftAuthFlow(oauth_client, exchange_client, MS)


@pytest.fixture
def password_flow(exchange_client: TokenExchangeClient) -> PasswordAuthFlow:
    return PasswordAuthFlow(exchange_client, PW)


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "accounts.json"


@pytest.fixture
def store(store_path: Path) -> AccountStore:
    return AccountStore(FilePersistence(str(store_path))).load()


def reload_store(store_path: Path) -> AccountStore:
    return AccountStore(FilePersistence(str(store_path))).load()


def find_calls(session: FakeSession, url: str) -> list[dict]:
    return [call for call in session.calls if call["url"] == url]


def password_session_body(
    uuid: str = "6a1f0e4c2b3d4a5e9f8a7b6c5d4e3f21",
    username: str = "Alex",
    access_token: str = "pw-token",
    user_id: Optional[int] = 42,
) -> dict:
    return {
        "id": user_id,
        "username": username,
        "uuid": uuid,
        "access_token": access_token,
        "email_verified": True,
        "money": 0,
        "banned": False,
    }
