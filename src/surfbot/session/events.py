from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, TypeAlias

from surfbot.identifiers import generate_request_id

RETRIEVER_DONE = "RETRIEVER_DONE"


class MalformedEventError(Exception):
    pass


@dataclass(frozen=True, slots=True)
class SessionRequest:
    text: str
    request_id: str = field(default_factory=generate_request_id)
    type: str = "chat_request"

    def to_payload(self) -> dict:
        return {
            "request_id": self.request_id,
            "type": self.type,
            "messages": [
                {
                    "role": "user",
                    "content": [{"type": "text", "text": self.text}],
                }
            ],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_payload(), ensure_ascii=False)


@dataclass(frozen=True, slots=True)
class Connected:
    pass


@dataclass(frozen=True, slots=True)
class ChatStart:
    title: str = ""


@dataclass(frozen=True, slots=True)
class MessageChunk:
    content: str


@dataclass(frozen=True, slots=True)
class Reasoning:
    text_chunk: str


@dataclass(frozen=True, slots=True)
class End:
    pass


@dataclass(frozen=True, slots=True)
class Custom:
    event_data: dict

    @property
    def retriever_done(self) -> bool:
        return self.event_data.get("type") == RETRIEVER_DONE

    @property
    def title(self) -> str:
        return str(self.event_data.get("title") or "")


@dataclass(frozen=True, slots=True)
class UnknownEvent:
    event_type: str
    data: Any = None


SessionEvent: TypeAlias = (
    Connected | ChatStart | MessageChunk | Reasoning | End | Custom | UnknownEvent
)


def _text(data: dict, key: str) -> str:
    value = data.get(key)
    return value if isinstance(value, str) else ""


def parse_event(raw: str | bytes) -> SessionEvent:
    try:
        message = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedEventError(f"Undecodable event: {e}") from e
    if not isinstance(message, dict):
        raise MalformedEventError(f"Event is not an object: {type(message).__name__}")

    event_type = message.get("event_type")
    data = message.get("data")
    if not isinstance(data, dict):
        data = {}

    if event_type == "connected":
        return Connected()
    if event_type == "chat_start":
        return ChatStart(title=_text(data, "title"))
    if event_type == "message_chunk":
        return MessageChunk(content=_text(data, "content"))
    if event_type == "reasoning":
        return Reasoning(text_chunk=_text(data, "text_chunk"))
    if event_type == "end":
        return End()
    if event_type == "custom":
        event_data = data.get("event_data")
        return Custom(event_data=event_data if isinstance(event_data, dict) else {})
    return UnknownEvent(event_type=str(event_type), data=message.get("data"))
