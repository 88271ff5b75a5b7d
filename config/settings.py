"""
Application settings loaded from environment variables.

Everything without a default is required: a missing value makes the import
of this module fail, which aborts the process before it starts serving.
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── Reactor backend ─────────────────────────────────────────────────
    reactor_api_prefix: str             # e.g. https://reactor.example.com
    reactor_auth_token: str             # shared secret sent as Authorization

    # ── Token state encryption (RSA) ────────────────────────────────────
    passphrase: str                     # unlocks private_key_pem
    public_key_pem: str
    private_key_pem: str

    # ── Slack app ───────────────────────────────────────────────────────
    slack_app_client_id: str
    slack_app_client_secret: str
    slack_api_base: str = "https://slack.com/api"

    # ── Server ──────────────────────────────────────────────────────────
    port: int = 8090
    host: str = "127.0.0.1"
    debug: bool = False

    http_timeout: float = 120.0
    upload_limit_bytes: int = 10 * 1024 * 1024   # 10 MiB

    model_config = {
        "env_file": ".env",
        "case_sensitive": False,
        "frozen": True,
        "extra": "ignore",
    }

    @field_validator("public_key_pem", "private_key_pem")
    @classmethod
    def _unescape_pem(cls, value: str) -> str:
        # single-line env vars carry the PEM with literal "\n"
        return value.replace("\\n", "\n").strip() + "\n"

    @field_validator("reactor_api_prefix", "slack_api_base")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


config = Settings()
