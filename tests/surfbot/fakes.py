import base64
import json
from types import SimpleNamespace


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def make_jwt(payload: dict) -> str:
    header = _b64url(json.dumps({"alg": "HS256", "typ": "JWT"}).encode())
    body = _b64url(json.dumps(payload).encode())
    return f"{header}.{body}.signature"


def llm_response(content: str) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))]
    )


def event(event_type: str, **data) -> str:
    return json.dumps({"event_type": event_type, "data": data}, ensure_ascii=False)


class FakeConnection:
    """Scripted WebSocket: yields messages, raising any exception instances."""

    def __init__(self, messages: list):
        self.messages = list(messages)
        self.sent: list[str] = []
        self.closed = False
        self.received = 0

    async def send(self, data: str) -> None:
        self.sent.append(data)

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for message in self.messages:
            if isinstance(message, BaseException):
                raise message
            self.received += 1
            yield message

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info) -> bool:
        self.closed = True
        return False


class FailingConnect:
    def __init__(self, error: BaseException):
        self.error = error

    async def __aenter__(self):
        raise self.error

    async def __aexit__(self, *exc_info) -> bool:
        return False


class FakeConnector:
    def __init__(
        self,
        connection: FakeConnection | None = None,
        error: BaseException | None = None,
    ):
        self.connection = connection
        self.error = error
        self.urls: list[str] = []

    def __call__(self, url: str):
        self.urls.append(url)
        if self.error is not None:
            return FailingConnect(self.error)
        return self.connection

    def sent_payload(self) -> dict:
        return json.loads(self.connection.sent[0])
