# Configuration for the authorization server and the client driver.
# Created: 2026-10-19
#
# Values come from AUTHCODE_* environment variables, optionally overlaid by
# ~/.authcode/config.json (see Settings.load()).

from __future__ import annotations

import json
import logging
import os
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class ClientConfig(BaseModel):
    """A registered OAuth2 client, as written in config."""

    client_id: str
    client_secret: str
    redirect_uris: list[str] = Field(default_factory=list)


class UserConfig(BaseModel):
    """A resource owner account, as written in config."""

    username: str
    password: str


def _default_clients() -> list[ClientConfig]:
    return [
        ClientConfig(
            client_id="abc123",
            client_secret="sooper-secret",
            redirect_uris=["http://localhost:4000/callback"],
        )
    ]


def _default_users() -> list[UserConfig]:
    return [UserConfig(username="alice", password="password123")]


def get_config_dir() -> Path:
    """Return the config directory, creating it if needed."""
    override = os.getenv("AUTHCODE_CONFIG_DIR")
    path = Path(override) if override else Path.home() / ".authcode"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_path() -> Path:
    return get_config_dir() / "config.json"


class Settings(BaseSettings):
    """Runtime settings for both the provider and the client app."""

    model_config = SettingsConfigDict(env_prefix="AUTHCODE_", extra="ignore")

    # Provider
    provider_host: str = "127.0.0.1"
    provider_port: int = 3000
    provider_url: str = "http://localhost:3000"
    clients: list[ClientConfig] = Field(default_factory=_default_clients)
    users: list[UserConfig] = Field(default_factory=_default_users)
    code_ttl_seconds: int = Field(default=600, ge=0)
    token_bytes: int = Field(default=32, ge=16)

    # Client app
    client_host: str = "127.0.0.1"
    client_port: int = 4000
    client_id: str = "abc123"
    client_secret: str = "sooper-secret"
    client_redirect_uri: str = "http://localhost:4000/callback"
    state_ttl_seconds: int = Field(default=600, ge=0)
    http_timeout: float = Field(default=15.0, gt=0)

    # Ambient
    audit_enabled: bool = True
    log_level: str = "INFO"

    @classmethod
    def load(cls, path: Path | None = None) -> Settings:
        """Build settings from the environment, overlaid by the JSON config file.

        Keys in the file win over defaults but not over explicit environment
        variables, matching pydantic-settings init-kwarg precedence.
        """
        path = path or get_config_path()
        data: dict = {}
        if path.exists():
            try:
                data = json.loads(path.read_text())
            except (json.JSONDecodeError, OSError) as exc:
                logger.warning("Failed to read config from %s: %s", path, exc)
                data = {}
        environ = {key.upper() for key in os.environ}
        env_keys = {
            name
            for name in cls.model_fields
            if f"{cls.model_config['env_prefix']}{name}".upper() in environ
        }
        overlay = {k: v for k, v in data.items() if k in cls.model_fields and k not in env_keys}
        return cls(**overlay)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings instance."""
    return Settings.load()
