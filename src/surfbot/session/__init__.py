from surfbot.session.channels import ContentChannel, ThinkingIndicator
from surfbot.session.driver import (
    ChatSession,
    SessionExchange,
    SessionOutcome,
    SessionState,
)
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
    UnknownEvent,
    parse_event,
)

__all__ = [
    "ChatSession",
    "SessionExchange",
    "SessionOutcome",
    "SessionState",
    "ContentChannel",
    "ThinkingIndicator",
    "ChatStart",
    "Connected",
    "Custom",
    "End",
    "MalformedEventError",
    "MessageChunk",
    "Reasoning",
    "SessionEvent",
    "SessionRequest",
    "UnknownEvent",
    "parse_event",
]
