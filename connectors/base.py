"""
BaseConnector — abstract interface for OAuth2 chat-platform connectors.

Slack is the only provider today; another platform would subclass this and
implement the callback exchange.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict


class BaseConnector(ABC):
    """Abstract base for all OAuth2 connectors."""

    # ── OAuth flow ──────────────────────────────────────────────────────

    @abstractmethod
    async def handle_callback(self, code: str) -> Dict[str, Any]:
        """
        Exchange the authorization code for the token the bridge acts with.

        Parameters
        ----------
        code : str
            Authorization code from the OAuth redirect.

        Returns
        -------
        dict with keys:
            access_token, account_id, account_label
        """
        ...
