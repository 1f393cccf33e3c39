import logging
import time
from unittest.mock import AsyncMock, Mock

import pytest
from websockets.exceptions import ConnectionClosedError

from fakes import FakeConnector, event, make_jwt
from surfbot.credentials import CredentialRefresher, CredentialStore
from surfbot.models import TokenPair
from surfbot.session import (
    ChatSession,
    End,
    MessageChunk,
    Reasoning,
    SessionExchange,
    SessionOutcome,
    SessionRequest,
    SessionState,
)


def stub_refresher(token: str = "tok") -> Mock:
    refresher = Mock()
    refresher.access_token = AsyncMock(return_value=token)
    return refresher


class TestSessionOutcome:
    @pytest.mark.asyncio
    async def test_first_resolution_wins(self):
        outcome = SessionOutcome()
        assert outcome.resolve("first") is True
        assert outcome.resolve("second") is False
        assert outcome.reject(RuntimeError("late")) is False
        assert outcome.result() == "first"

    @pytest.mark.asyncio
    async def test_first_rejection_wins(self):
        outcome = SessionOutcome()
        error = OSError("boom")
        assert outcome.reject(error) is True
        assert outcome.resolve("text") is False
        with pytest.raises(OSError):
            outcome.result()


class TestSessionExchange:
    @pytest.mark.asyncio
    async def test_chunk_retires_indicator(self, console):
        exchange = SessionExchange(SessionRequest(text="q"), console)
        exchange.handle(Reasoning("thinking"))
        assert exchange.indicator.active
        exchange.handle(Reasoning("still thinking"))
        assert exchange.indicator.active

        exchange.handle(MessageChunk("hello"))
        assert not exchange.indicator.active
        assert exchange.response == "hello"
        assert exchange.state is SessionState.STREAMING

    @pytest.mark.asyncio
    async def test_end_settles_and_ignores_later_events(self, console):
        exchange = SessionExchange(SessionRequest(text="q"), console)
        exchange.handle(MessageChunk("a"))
        exchange.handle(End())
        exchange.handle(MessageChunk("b"))
        exchange.handle(End())

        assert exchange.state is SessionState.RESOLVED
        assert exchange.outcome.result() == "a"
        assert exchange.response == "a"

    @pytest.mark.asyncio
    async def test_end_retires_indicator(self, console):
        exchange = SessionExchange(SessionRequest(text="q"), console)
        exchange.handle(Reasoning("hmm"))
        exchange.handle(End())
        assert not exchange.indicator.active
        assert exchange.outcome.result() == ""


class TestChatSession:
    @pytest.mark.asyncio
    async def test_full_exchange(self, console, make_connector):
        connector = make_connector([
            event("connected"),
            event("chat_start", title="t"),
            event("reasoning", text_chunk="思考中"),
            event("message_chunk", content="你好"),
            event("message_chunk", content="世界"),
            event("end"),
        ])
        session = ChatSession(stub_refresher(), host="h.test", console=console, connector=connector)

        answer = await session.ask("问题", "sid-1", "V2_THINKING")

        assert answer == "你好世界"
        assert connector.urls == [
            "wss://h.test/muninn/v4/chat/sessions/sid-1/ws"
            "?token=tok&session_type=V2_THINKING&platform=WEB"
        ]
        assert connector.connection.closed

    @pytest.mark.asyncio
    async def test_sends_single_request(self, console, make_connector):
        connector = make_connector([event("end")])
        session = ChatSession(stub_refresher(), console=console, connector=connector)

        await session.ask("What is BTC doing?", "sid", "V2")

        assert len(connector.connection.sent) == 1
        payload = connector.sent_payload()
        assert payload["type"] == "chat_request"
        assert len(payload["request_id"]) == 20
        assert payload["request_id"].isalnum()
        assert payload["messages"] == [
            {
                "role": "user",
                "content": [{"type": "text", "text": "What is BTC doing?"}],
            }
        ]

    @pytest.mark.asyncio
    async def test_accumulates_chunks_across_other_events(self, console, make_connector):
        connector = make_connector([
            event("message_chunk", content="a"),
            event("reasoning", text_chunk="x"),
            event("custom", event_data={"type": "RETRIEVER_DONE", "title": "[docs]"}),
            event("message_chunk", content="b"),
            event("tool_calls", tool_name="search"),
            "not json",
            "[1, 2]",
            event("message_chunk", content="c"),
            event("end"),
        ])
        session = ChatSession(stub_refresher(), console=console, connector=connector)

        assert await session.ask("q", "sid") == "abc"

    @pytest.mark.asyncio
    async def test_duplicate_end_only_first_counts(self, console, make_connector):
        connector = make_connector([
            event("message_chunk", content="first"),
            event("end"),
            event("message_chunk", content="second"),
            event("end"),
        ])
        session = ChatSession(stub_refresher(), console=console, connector=connector)

        assert await session.ask("q", "sid") == "first"
        assert connector.connection.received == 2

    @pytest.mark.asyncio
    async def test_close_before_end_resolves_partial(self, console, make_connector):
        connector = make_connector([
            event("chat_start"),
            event("message_chunk", content="partial"),
        ])
        session = ChatSession(stub_refresher(), console=console, connector=connector)

        assert await session.ask("q", "sid") == "partial"

    @pytest.mark.asyncio
    async def test_close_without_content_resolves_empty(self, console, make_connector):
        connector = make_connector([event("connected")])
        session = ChatSession(stub_refresher(), console=console, connector=connector)

        assert await session.ask("q", "sid") == ""

    @pytest.mark.asyncio
    async def test_abnormal_close_resolves_partial(self, console, make_connector):
        connector = make_connector([
            event("reasoning", text_chunk="thinking"),
            event("message_chunk", content="half"),
            ConnectionClosedError(None, None),
        ])
        session = ChatSession(stub_refresher(), console=console, connector=connector)

        assert await session.ask("q", "sid") == "half"

    @pytest.mark.asyncio
    async def test_connect_failure_rejects(self, console):
        connector = FakeConnector(error=OSError("connection refused"))
        session = ChatSession(stub_refresher(), console=console, connector=connector)

        with pytest.raises(OSError, match="connection refused"):
            await session.ask("q", "sid")

    @pytest.mark.asyncio
    async def test_transport_error_mid_stream_rejects(self, console, make_connector):
        connector = make_connector([
            event("reasoning", text_chunk="thinking"),
            RuntimeError("socket broke"),
        ])
        session = ChatSession(stub_refresher(), console=console, connector=connector)

        with pytest.raises(RuntimeError, match="socket broke"):
            await session.ask("q", "sid")

    @pytest.mark.asyncio
    async def test_expired_token_refreshed_before_connect(self, console, make_connector):
        store = CredentialStore(
            access_token=make_jwt({"exp": int(time.time()) - 10}),
            refresh_token="R1",
            device_id="dev",
        )
        client = Mock()
        client.refresh_tokens = AsyncMock(
            return_value=TokenPair(access_token="A2", refresh_token="R2")
        )
        refresher = CredentialRefresher(store, client)
        connector = make_connector([event("end")])
        session = ChatSession(refresher, host="h.test", console=console, connector=connector)

        await session.ask("q", "sid", "V2")

        client.refresh_tokens.assert_awaited_once()
        assert "?token=A2&session_type=V2&platform=WEB" in connector.urls[0]
        assert store.refresh_token == "R2"

    @pytest.mark.asyncio
    async def test_log_records_carry_session_context(self, console, make_connector, caplog):
        connector = make_connector(["not json", event("end")])
        session = ChatSession(stub_refresher(), console=console, connector=connector)

        with caplog.at_level(logging.WARNING, logger="surfbot.session.driver"):
            await session.ask("q", "sid-42", "V2")

        [record] = [r for r in caplog.records if "malformed" in r.getMessage()]
        assert record.session_id == "sid-42"
        assert record.request_id == connector.sent_payload()["request_id"]
