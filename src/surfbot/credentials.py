import base64
import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

import httpx

from common.errors import describe_error
from surfbot.api import SurfAPIError, SurfClient
from surfbot.envfile import update_tokens
from surfbot.models import TokenPair

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_BUFFER_SECONDS = 300


class CredentialRefreshError(Exception):
    pass


def token_expiry(token: str) -> float:
    """Read ``exp`` from a JWT payload without verifying the signature."""
    segment = token.split(".")[1]
    segment += "=" * (-len(segment) % 4)
    payload = json.loads(base64.urlsafe_b64decode(segment.encode("ascii")))
    exp = payload["exp"]
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        raise ValueError(f"exp is not numeric: {exp!r}")
    return float(exp)


def is_token_expiring_soon(
    token: str,
    buffer_seconds: int = DEFAULT_REFRESH_BUFFER_SECONDS,
    now: float | None = None,
) -> bool:
    try:
        exp = token_expiry(token)
    except Exception:
        return True
    current = time.time() if now is None else now
    return current >= exp - buffer_seconds


@dataclass
class CredentialStore:
    access_token: str
    refresh_token: str
    device_id: str
    env_file: Path | None = None

    def replace(self, pair: TokenPair) -> None:
        self.access_token = pair.access_token
        self.refresh_token = pair.refresh_token
        if self.env_file is not None:
            update_tokens(self.env_file, pair.access_token, pair.refresh_token)


class CredentialRefresher:
    def __init__(
        self,
        store: CredentialStore,
        client: SurfClient,
        buffer_seconds: int = DEFAULT_REFRESH_BUFFER_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.client = client
        self.buffer_seconds = buffer_seconds
        self.clock = clock

    def needs_refresh(self) -> bool:
        return is_token_expiring_soon(
            self.store.access_token, self.buffer_seconds, now=self.clock()
        )

    async def access_token(self) -> str:
        if self.needs_refresh():
            await self.refresh()
        return self.store.access_token

    async def refresh(self) -> TokenPair:
        logger.info("Access token is expiring, refreshing")
        try:
            pair = await self.client.refresh_tokens(
                self.store.access_token,
                self.store.refresh_token,
                self.store.device_id,
            )
        except (httpx.HTTPError, SurfAPIError) as e:
            raise CredentialRefreshError(
                f"Token refresh failed: {describe_error(e)}"
            ) from e

        try:
            self.store.replace(pair)
        except OSError as e:
            raise CredentialRefreshError(f"Could not persist refreshed tokens: {e}") from e
        logger.info("Access token refreshed")
        return pair
