"""
ReactorClient — calls into the reactor backend's private functions.

Authenticated with the static ``REACTOR_AUTH_TOKEN`` shared between this
bridge and the reactor (never an end user's token).  The reactor is the
source of truth for which Slack user has a live session; nothing here is
cached.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import httpx

from utils.schemas import FilePayload

logger = logging.getLogger(__name__)


class ReactorError(RuntimeError):
    """The reactor could not be reached or rejected the call."""


class ReactorClient:
    def __init__(
        self,
        api_prefix: str,
        auth_token: str,
        *,
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_prefix = api_prefix.rstrip("/")
        self._headers = {"Authorization": auth_token}
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._timeout,
            transport=self._transport,
            headers=self._headers,
        )

    def _url(self, func: str) -> str:
        return f"{self._api_prefix}/api/_funcs/{func}"

    async def post_event(self, user: str, text: str) -> None:
        """Forward a plain text message."""
        await self._post("_post", json={"user": user, "text": text})

    async def upload_event(self, user: str, text: str, files: List[FilePayload]) -> None:
        """Forward a message with attachments as multipart form data."""
        parts = [("file", (f.name, f.data, f.content_type)) for f in files]
        await self._post("_upload", data={"user": user, "text": text}, files=parts)

    async def get_author_state(self, user: str) -> Optional[str]:
        """
        Look up the encrypted token the reactor holds for *user*.

        Returns ``None`` when the reactor is unreachable or has no state.
        """
        try:
            async with self._client() as client:
                resp = await client.post(self._url("_author_state"), json={"author": user})
        except httpx.HTTPError as exc:
            logger.warning("Author state lookup failed: %s", exc.__class__.__name__)
            return None

        if not resp.is_success:
            logger.info("No author state for %s (HTTP %d)", user, resp.status_code)
            return None
        return resp.text

    async def _post(self, func: str, **kwargs) -> None:
        try:
            async with self._client() as client:
                resp = await client.post(self._url(func), **kwargs)
        except httpx.HTTPError as exc:
            raise ReactorError(f"{func}: {exc.__class__.__name__}") from exc

        if not resp.is_success:
            raise ReactorError(f"{func}: HTTP {resp.status_code}")
