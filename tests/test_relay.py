"""
Tests for EventRelay — forwarding human Slack messages to the reactor.
"""

import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock

from connectors.reactor import ReactorError
from connectors.slack import SlackError
from core.relay import EventRelay
from utils.schemas import InboundEvent, SlackFile


def _file(name: str) -> SlackFile:
    return SlackFile(name=name, mimetype="text/plain", url_private=f"https://files.slack.test/{name}")


def _mocks():
    slack = MagicMock()
    slack.fetch_file = AsyncMock(return_value=b"data")
    reactor = MagicMock()
    reactor.post_event = AsyncMock()
    reactor.upload_event = AsyncMock()
    reactor.get_author_state = AsyncMock(return_value=None)
    return slack, reactor


class TestForward:
    @pytest.mark.asyncio
    async def test_text_only_posts_event(self, cipher):
        slack, reactor = _mocks()
        relay = EventRelay(slack, reactor, cipher)

        await relay.forward(InboundEvent(user="U1", text="hello"))

        reactor.post_event.assert_awaited_once_with("U1", "hello")
        reactor.get_author_state.assert_not_called()
        reactor.upload_event.assert_not_called()

    @pytest.mark.asyncio
    async def test_files_use_author_token(self, cipher):
        slack, reactor = _mocks()
        reactor.get_author_state.return_value = cipher.encrypt("xoxb-bot")
        relay = EventRelay(slack, reactor, cipher)

        await relay.forward(InboundEvent(user="U1", text="see", files=[_file("a.txt"), _file("b.txt")]))

        reactor.get_author_state.assert_awaited_once_with("U1")
        assert [c.args for c in slack.fetch_file.await_args_list] == [
            ("xoxb-bot", "https://files.slack.test/a.txt"),
            ("xoxb-bot", "https://files.slack.test/b.txt"),
        ]
        user, text, payloads = reactor.upload_event.await_args.args
        assert (user, text) == ("U1", "see")
        assert [p.name for p in payloads] == ["a.txt", "b.txt"]
        assert payloads[0].content_type == "text/plain"
        assert payloads[0].data == b"data"
        reactor.post_event.assert_not_called()

    @pytest.mark.asyncio
    async def test_one_failed_download_does_not_stop_others(self, cipher):
        slack, reactor = _mocks()
        reactor.get_author_state.return_value = cipher.encrypt("xoxb-bot")
        slack.fetch_file.side_effect = [SlackError("404"), b"second"]
        relay = EventRelay(slack, reactor, cipher)

        await relay.forward(InboundEvent(user="U1", text="", files=[_file("a"), _file("b")]))

        payloads = reactor.upload_event.await_args.args[2]
        assert [(p.name, p.data) for p in payloads] == [("b", b"second")]

    @pytest.mark.asyncio
    async def test_all_downloads_failed_still_delivers_text(self, cipher):
        slack, reactor = _mocks()
        reactor.get_author_state.return_value = cipher.encrypt("xoxb-bot")
        slack.fetch_file.side_effect = SlackError("403")
        relay = EventRelay(slack, reactor, cipher)

        await relay.forward(InboundEvent(user="U1", text="caption", files=[_file("a")]))

        reactor.upload_event.assert_not_called()
        reactor.post_event.assert_awaited_once_with("U1", "caption")

    @pytest.mark.asyncio
    async def test_no_author_state_aborts_silently(self, cipher):
        slack, reactor = _mocks()
        relay = EventRelay(slack, reactor, cipher)

        await relay.forward(InboundEvent(user="U1", text="x", files=[_file("a")]))

        slack.fetch_file.assert_not_called()
        reactor.upload_event.assert_not_called()
        reactor.post_event.assert_not_called()

    @pytest.mark.asyncio
    async def test_undecryptable_state_aborts_silently(self, cipher):
        slack, reactor = _mocks()
        reactor.get_author_state.return_value = "not-a-state"
        relay = EventRelay(slack, reactor, cipher)

        await relay.forward(InboundEvent(user="U1", text="x", files=[_file("a")]))

        slack.fetch_file.assert_not_called()
        reactor.upload_event.assert_not_called()

    @pytest.mark.asyncio
    async def test_reactor_failure_is_swallowed(self, cipher):
        slack, reactor = _mocks()
        reactor.post_event.side_effect = ReactorError("_post: HTTP 502")
        relay = EventRelay(slack, reactor, cipher)

        await relay.forward(InboundEvent(user="U1", text="x"))

        reactor.post_event.assert_awaited_once()


class TestDispatch:
    @pytest.mark.asyncio
    async def test_dispatch_returns_before_delivery(self, cipher):
        slack, reactor = _mocks()
        release = asyncio.Event()

        async def slow_post(user, text):
            await release.wait()

        reactor.post_event.side_effect = slow_post
        relay = EventRelay(slack, reactor, cipher)

        task = relay.dispatch(InboundEvent(user="U1", text="x"))
        await asyncio.sleep(0)

        assert not task.done()
        assert relay.pending == 1

        release.set()
        await relay.drain()

        assert task.done()
        assert relay.pending == 0
        reactor.post_event.assert_awaited_once_with("U1", "x")

    @pytest.mark.asyncio
    async def test_unexpected_crash_is_contained(self, cipher):
        slack, reactor = _mocks()
        reactor.post_event.side_effect = RuntimeError("boom")
        relay = EventRelay(slack, reactor, cipher)

        relay.dispatch(InboundEvent(user="U1", text="x"))
        await relay.drain()

        assert relay.pending == 0
