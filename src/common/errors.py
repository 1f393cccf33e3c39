import json
from typing import Any

import httpx


def _from_response_body(response: httpx.Response) -> str | None:
    try:
        body: Any = response.json()
    except ValueError:
        text = response.text.strip()
        return text or None

    if isinstance(body, dict):
        for key in ("message", "error"):
            value = body.get(key)
            if value:
                return value if isinstance(value, str) else json.dumps(value)
    if body:
        return json.dumps(body, ensure_ascii=False)
    return None


def describe_error(error: BaseException) -> str:
    """Best human-readable message for an error, preferring the remote body."""
    if isinstance(error, httpx.HTTPStatusError):
        detail = _from_response_body(error.response)
        if detail:
            return detail
        if error.response.reason_phrase:
            return error.response.reason_phrase

    message = str(error)
    if message:
        return message

    cause = error.__cause__ or error.__context__
    if cause is not None and cause is not error:
        return describe_error(cause)
    return type(error).__name__
