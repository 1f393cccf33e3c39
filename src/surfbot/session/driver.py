"""Streaming chat session against the Surf assistant.

One ``ChatSession.ask`` call opens one WebSocket, sends one request and reads
the tagged event stream until the exchange settles. Settlement goes through a
single-assignment ``SessionOutcome``: whichever of ``end``, a transport error
or a transport close happens first decides the result.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, AsyncContextManager, Callable

from rich.console import Console
from rich.markup import escape
from websockets.asyncio.client import connect as websocket_connect
from websockets.exceptions import ConnectionClosed

from surfbot.api import session_url
from surfbot.config import DEFAULT_SURF_HOST
from surfbot.credentials import CredentialRefresher
from surfbot.models import SessionType
from surfbot.session.channels import ContentChannel, ThinkingIndicator
from surfbot.session.events import (
    ChatStart,
    Connected,
    Custom,
    End,
    MalformedEventError,
    MessageChunk,
    Reasoning,
    SessionEvent,
    SessionRequest,
    parse_event,
)

logger = logging.getLogger(__name__)

Connector = Callable[[str], AsyncContextManager[Any]]


class SessionState(Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    STREAMING = "streaming"
    RESOLVED = "resolved"


class SessionOutcome:
    """Single-assignment result cell; only the first settlement counts."""

    def __init__(self) -> None:
        self._future: asyncio.Future[str] = asyncio.get_running_loop().create_future()

    @property
    def settled(self) -> bool:
        return self._future.done()

    def resolve(self, text: str) -> bool:
        if self._future.done():
            return False
        self._future.set_result(text)
        return True

    def reject(self, error: BaseException) -> bool:
        if self._future.done():
            return False
        self._future.set_exception(error)
        return True

    def result(self) -> str:
        return self._future.result()


def default_connector(url: str) -> AsyncContextManager[Any]:
    return websocket_connect(url, max_size=None, open_timeout=30)


class ChatSession:
    def __init__(
        self,
        refresher: CredentialRefresher,
        *,
        host: str = DEFAULT_SURF_HOST,
        console: Console | None = None,
        connector: Connector = default_connector,
    ):
        self.refresher = refresher
        self.host = host
        self.console = console or Console()
        self.connector = connector

    async def ask(
        self, message: str, session_id: str, session_type: SessionType | str = "V2"
    ) -> str:
        access_token = await self.refresher.access_token()
        url = session_url(session_id, access_token, session_type, host=self.host)
        exchange = SessionExchange(
            SessionRequest(text=message), self.console, session_id=session_id
        )
        return await exchange.run(self.connector, url)


class SessionExchange:
    """State for a single request/response over one connection."""

    def __init__(self, request: SessionRequest, console: Console, session_id: str = ""):
        self.request = request
        self.log_context = {"session_id": session_id, "request_id": request.request_id}
        self.console = console
        self.state = SessionState.CONNECTING
        self.response = ""
        self.indicator = ThinkingIndicator(console)
        self.content = ContentChannel(console)
        self.outcome = SessionOutcome()

    async def run(self, connector: Connector, url: str) -> str:
        try:
            async with connector(url) as connection:
                await connection.send(self.request.to_json())
                self.state = SessionState.OPEN
                self._narrate("[green]✓[/] [dim]Request sent[/]")
                logger.debug(
                    f"Sent request {self.request.request_id}", extra=self.log_context
                )

                async for raw in connection:
                    self._receive(raw)
                    if self.outcome.settled:
                        break
        except ConnectionClosed as e:
            logger.debug(f"Connection closed: {e}", extra=self.log_context)
        except Exception as e:
            self.indicator.retire()
            self._narrate(f"[red]✗[/] [dim]Connection error: {escape(str(e))}[/]")
            self._settle_error(e)
        finally:
            self.indicator.retire()
            if not self.outcome.settled:
                self._narrate("[dim]○ Connection closed[/]")
            self._settle(self.response)

        return self.outcome.result()

    def _receive(self, raw: str | bytes) -> None:
        try:
            event = parse_event(raw)
        except MalformedEventError as e:
            logger.warning(f"Skipping malformed event: {e}", extra=self.log_context)
            return
        self.handle(event)

    def handle(self, event: SessionEvent) -> None:
        if self.state is SessionState.RESOLVED:
            return

        if isinstance(event, Connected):
            self._narrate("[green]✓[/] [dim]Connected to Surf session[/]")
        elif isinstance(event, ChatStart):
            self.state = SessionState.STREAMING
            self._narrate(f"[cyan]◆[/] [dim]Chat started: {escape(event.title)}[/]")
        elif isinstance(event, MessageChunk):
            self.state = SessionState.STREAMING
            if self.indicator.retire():
                self.content.line_break()
            if event.content:
                self.response += event.content
                self.content.write(event.content)
        elif isinstance(event, Reasoning):
            self.state = SessionState.STREAMING
            if event.text_chunk:
                if self.indicator.active:
                    self.indicator.update(event.text_chunk)
                else:
                    self.indicator.activate(event.text_chunk)
        elif isinstance(event, End):
            self.indicator.retire()
            self.content.line_break()
            self._narrate("[green]✓[/] [dim]Answer complete[/]")
            self._settle(self.response)
        elif isinstance(event, Custom):
            if event.retriever_done:
                self._narrate(f"[blue]🔍[/] [dim]Retrieval done: {escape(event.title)}[/]")
        else:
            logger.debug(f"Ignoring event {event.event_type}", extra=self.log_context)

    def _settle(self, text: str) -> None:
        if self.outcome.resolve(text):
            self.state = SessionState.RESOLVED

    def _settle_error(self, error: BaseException) -> None:
        if self.outcome.reject(error):
            self.state = SessionState.RESOLVED

    def _narrate(self, markup: str) -> None:
        self.console.print(markup, highlight=False)
