"""
SlackConnector — OAuth2 v2 exchange plus the handful of Web API calls the
bridge needs (profile, chat.postMessage, private file download, files.upload).

Every call opens a short-lived ``httpx.AsyncClient`` bounded by the configured
timeout.  Nothing is retried.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from connectors.base import BaseConnector
from utils.schemas import OAuthResult

logger = logging.getLogger(__name__)

_DEFAULT_API_BASE = "https://slack.com/api"


class SlackError(RuntimeError):
    """Slack could not be reached or answered with something unusable."""


class SlackAuthError(SlackError):
    """``oauth.v2.access`` answered ``ok: false`` — the code is invalid."""


class SlackConnector(BaseConnector):
    """OAuth2 connector and Web API client for Slack."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        *,
        api_base: str = _DEFAULT_API_BASE,
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    def _url(self, method: str) -> str:
        return f"{self._api_base}/{method}"

    # ── OAuth ───────────────────────────────────────────────────────────

    async def exchange_code(self, code: str) -> OAuthResult:
        """Exchange an OAuth code for the app token and the installing user."""
        try:
            async with self._client() as client:
                resp = await client.post(
                    self._url("oauth.v2.access"),
                    data={
                        "client_id": self._client_id,
                        "client_secret": self._client_secret,
                        "code": code,
                    },
                )
        except httpx.HTTPError as exc:
            raise SlackError("Failed to get access token") from exc

        body = _json_or_raise(resp, "Failed to get access token")
        if not body.get("ok"):
            logger.info("oauth.v2.access rejected code: %s", body.get("error", "unknown"))
            raise SlackAuthError("Invalid code")

        authed_user = body.get("authed_user") or {}
        user_id = authed_user.get("id")
        user_token = authed_user.get("access_token")
        access_token = body.get("access_token")
        if not user_id or not user_token or not access_token:
            raise SlackAuthError("Invalid code")
        return OAuthResult(user_id=user_id, access_token=access_token, user_token=user_token)

    async def fetch_profile(self, access_token: str) -> str:
        """Return the user's ``real_name`` from ``users.profile.get``."""
        try:
            async with self._client() as client:
                resp = await client.get(
                    self._url("users.profile.get"),
                    headers=_bearer(access_token),
                )
        except httpx.HTTPError as exc:
            raise SlackError("Failed to get user's profile") from exc

        body = _json_or_raise(resp, "Failed to get user's name")
        profile = body.get("profile")
        name = profile.get("real_name") if isinstance(profile, dict) else None
        if not isinstance(name, str):
            raise SlackError("Failed to get user's name")
        return name

    async def handle_callback(self, code: str) -> Dict[str, Any]:
        """Exchange the code and fetch the profile in one go."""
        result = await self.exchange_code(code)
        name = await self.fetch_profile(result.user_token)
        return {
            "access_token": result.access_token,
            "account_id": result.user_id,
            "account_label": name,
        }

    # ── Messaging ───────────────────────────────────────────────────────

    async def post_message(self, access_token: str, channel: str, text: str) -> bool:
        """
        Post *text* to *channel* (a user ID opens the DM with that user).

        Returns Slack's ``ok`` flag.  Raises ``SlackError`` only when the
        request itself fails.
        """
        try:
            async with self._client() as client:
                resp = await client.post(
                    self._url("chat.postMessage"),
                    headers=_bearer(access_token),
                    json={"channel": channel, "text": text},
                )
        except httpx.HTTPError as exc:
            raise SlackError("Failed to post message to slack") from exc

        try:
            body = resp.json()
        except ValueError:
            logger.warning("chat.postMessage returned non-JSON (HTTP %d)", resp.status_code)
            return False
        ok = isinstance(body, dict) and bool(body.get("ok"))
        if not ok:
            logger.warning(
                "chat.postMessage failed: %s",
                body.get("error", "unknown") if isinstance(body, dict) else "malformed",
            )
        return ok

    async def fetch_file(self, access_token: str, url: str) -> bytes:
        """Download a private file (``url_private``) with the app token."""
        try:
            async with self._client() as client:
                resp = await client.get(url, headers=_bearer(access_token))
        except httpx.HTTPError as exc:
            raise SlackError("Failed to fetch file") from exc

        if not resp.is_success:
            raise SlackError(f"Failed to fetch file (HTTP {resp.status_code})")
        return resp.content

    async def upload_file(
        self,
        access_token: str,
        channel: str,
        data: bytes,
        filename: str,
        content_type: str,
    ) -> bool:
        """
        Upload one file into *channel*.  Best effort: never raises.
        """
        try:
            async with self._client() as client:
                resp = await client.post(
                    self._url("files.upload"),
                    headers=_bearer(access_token),
                    data={"channels": channel},
                    files={"file": (filename, data, content_type)},
                )
        except httpx.HTTPError as exc:
            logger.warning("files.upload failed for %s: %s", filename, exc.__class__.__name__)
            return False

        if not resp.is_success:
            logger.warning("files.upload failed for %s: HTTP %d", filename, resp.status_code)
            return False
        return True


def _bearer(access_token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {access_token}"}


def _json_or_raise(resp: httpx.Response, message: str) -> Dict[str, Any]:
    if resp.status_code != 200:
        raise SlackError(message)
    try:
        body = resp.json()
    except ValueError as exc:
        raise SlackError(message) from exc
    if not isinstance(body, dict):
        raise SlackError(message)
    return body
