"""
EventRelay — forwards human Slack messages to the reactor.

Forwarding is fire-and-forget: ``dispatch`` spawns a task that is detached
from the webhook request, so Slack gets its 200 immediately.  There is no
result channel; failures end up in the log and nowhere else.  Delivery that
must not be lost would need an outbox with retries, which this service does
not have.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Set

from connectors.encryption import InvalidStateError, TokenCipher
from connectors.reactor import ReactorClient, ReactorError
from connectors.slack import SlackConnector, SlackError
from utils.schemas import FilePayload, InboundEvent

logger = logging.getLogger(__name__)


class EventRelay:
    def __init__(
        self,
        slack: SlackConnector,
        reactor: ReactorClient,
        cipher: TokenCipher,
    ) -> None:
        self._slack = slack
        self._reactor = reactor
        self._cipher = cipher
        self._pending: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def dispatch(self, event: InboundEvent) -> asyncio.Task:
        """Start forwarding *event* in the background and return at once."""
        task = asyncio.create_task(self.forward(event))
        # the event loop only keeps weak references to tasks
        self._pending.add(task)
        task.add_done_callback(self._on_done)
        return task

    async def drain(self) -> None:
        """Wait for every forward started so far."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _on_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Event forwarding crashed", exc_info=exc)

    async def forward(self, event: InboundEvent) -> None:
        """Deliver one event to the reactor.  Never raises on delivery failure."""
        try:
            if not event.files:
                await self._reactor.post_event(event.user, event.text)
                logger.debug("Forwarded message from %s", event.user)
                return
            await self._forward_with_files(event)
        except ReactorError as exc:
            logger.warning("Forwarding to reactor failed for %s: %s", event.user, exc)

    async def _forward_with_files(self, event: InboundEvent) -> None:
        state = await self._reactor.get_author_state(event.user)
        if state is None:
            logger.info("Dropping files from %s: no author state", event.user)
            return

        try:
            access_token = self._cipher.decrypt(state)
        except InvalidStateError:
            logger.warning("Dropping files from %s: author state did not decrypt", event.user)
            return

        payloads: List[FilePayload] = []
        for f in event.files:
            try:
                data = await self._slack.fetch_file(access_token, f.url_private)
            except SlackError as exc:
                logger.warning("Skipping file %r from %s: %s", f.name, event.user, exc)
                continue
            payloads.append(FilePayload(name=f.name, content_type=f.mimetype, data=data))

        if payloads:
            await self._reactor.upload_event(event.user, event.text, payloads)
            logger.debug("Forwarded %d file(s) from %s", len(payloads), event.user)
        elif event.text:
            # every download failed; at least deliver the words
            await self._reactor.post_event(event.user, event.text)
