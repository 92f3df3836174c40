"""Configuration management for the launcher authentication core."""

from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class MicrosoftConfig(BaseSettings):
    """Microsoft OAuth and Xbox Live endpoint configuration."""

    # Azure app registered for the launcher (public client)
    client_id: str = Field(
        default="1ce6e35a-126f-48fd-97fb-8d3d6eb3e1a0", validation_alias="AZURE_CLIENT_ID"
    )
    authority: str = Field(
        default="https://login.microsoftonline.com/consumers",
        validation_alias="MS_AUTHORITY",
    )
    redirect_uri: str = Field(
        default="https://login.microsoftonline.com/common/oauth2/nativeclient",
        validation_alias="MS_REDIRECT_URI",
    )
    # offline_access is reserved and added by MSAL itself
    scopes: list[str] = Field(default=["XboxLive.signin"])

    xbl_auth_url: str = Field(
        default="https://user.auth.xboxlive.com/user/authenticate",
        validation_alias="XBL_AUTH_URL",
    )
    xsts_auth_url: str = Field(
        default="https://xsts.auth.xboxlive.com/xsts/authorize",
        validation_alias="XSTS_AUTH_URL",
    )
    xsts_relying_party: str = Field(
        default="rp://api.minecraftservices.com/",
        validation_alias="XSTS_RELYING_PARTY",
    )
    game_login_url: str = Field(
        default="https://api.minecraftservices.com/authentication/login_with_xbox",
        validation_alias="GAME_LOGIN_URL",
    )
    profile_url: str = Field(
        default="https://api.minecraftservices.com/minecraft/profile",
        validation_alias="GAME_PROFILE_URL",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )


class PasswordProviderConfig(BaseSettings):
    """Password identity provider configuration."""

    base_url: str = Field(
        default="https://galaxyquest.fr", validation_alias="PASSWORD_AUTH_URL"
    )
    login_path: str = "/api/auth/authenticate"
    verify_path: str = "/api/auth/verify"
    refresh_path: str = "/api/auth/refresh"
    logout_path: str = "/api/auth/logout"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    def url(self, path: str) -> str:
        return self.base_url.rstrip("/") + path


class AppConfig(BaseSettings):
    """Application configuration."""

    microsoft: MicrosoftConfig = Field(default_factory=MicrosoftConfig)
    password_provider: PasswordProviderConfig = Field(
        default_factory=PasswordProviderConfig
    )

    # Account store
    account_store_path: Path = Field(
        default=Path(".launcher_auth"), validation_alias="ACCOUNT_STORE_PATH"
    )
    account_store_name: str = Field(
        default="accounts", validation_alias="ACCOUNT_STORE_NAME"
    )
    account_store_encrypted: bool = Field(
        default=True, validation_alias="ACCOUNT_STORE_ENCRYPTED"
    )

    # Network
    request_timeout: float = Field(default=15.0, validation_alias="REQUEST_TIMEOUT")

    # Logging
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: Optional[Path] = Field(default=None, validation_alias="LOG_FILE")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        env_parse_none_str="",  # Treat empty string as None
    )


# Global config instance
config = AppConfig()
