"""
FastAPI dependencies (shared across routes).

Collaborators are built once from the process-wide settings and shared
read-only by every request.  Tests swap them via ``app.dependency_overrides``.
"""

from __future__ import annotations

from functools import lru_cache

from config.settings import Settings, config
from connectors.encryption import TokenCipher
from connectors.reactor import ReactorClient
from connectors.slack import SlackConnector
from core.relay import EventRelay


def get_settings() -> Settings:
    return config


@lru_cache(maxsize=1)
def get_cipher() -> TokenCipher:
    return TokenCipher.from_settings(config)


@lru_cache(maxsize=1)
def get_slack() -> SlackConnector:
    return SlackConnector(
        config.slack_app_client_id,
        config.slack_app_client_secret,
        api_base=config.slack_api_base,
        timeout=config.http_timeout,
    )


@lru_cache(maxsize=1)
def get_reactor() -> ReactorClient:
    return ReactorClient(
        config.reactor_api_prefix,
        config.reactor_auth_token,
        timeout=config.http_timeout,
    )


@lru_cache(maxsize=1)
def get_relay() -> EventRelay:
    return EventRelay(get_slack(), get_reactor(), get_cipher())
