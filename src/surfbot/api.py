import logging

import httpx

from surfbot.config import DEFAULT_SURF_HOST
from surfbot.models import SessionType, TokenPair

logger = logging.getLogger(__name__)

WEB_ORIGIN = "https://asksurf.ai"
DAILY_QUESTIONS_URL = (
    "https://cms.cyber.co/api/daily-questions"
    "?populate=*&sort=date:desc&pagination[limit]=1"
)


class SurfAPIError(Exception):
    pass


def session_url(
    session_id: str,
    access_token: str,
    session_type: SessionType | str,
    host: str = DEFAULT_SURF_HOST,
) -> str:
    # Query is interpolated verbatim; the service expects the raw token.
    return (
        f"wss://{host}/muninn/v4/chat/sessions/{session_id}/ws"
        f"?token={access_token}&session_type={session_type}&platform=WEB"
    )


class SurfClient:
    def __init__(
        self,
        host: str = DEFAULT_SURF_HOST,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.host = host
        self.timeout = timeout
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def refresh_tokens(
        self, access_token: str, refresh_token: str, device_id: str
    ) -> TokenPair:
        response = await self.client.post(
            f"https://{self.host}/muninn/v2/auth/refresh",
            json={"refresh_token": refresh_token},
            headers={
                "Authorization": f"Bearer {access_token}",
                "Origin": WEB_ORIGIN,
                "Referer": f"{WEB_ORIGIN}/",
                "x-device-id": device_id,
            },
        )
        response.raise_for_status()

        try:
            data = response.json()["data"]
            return TokenPair(
                access_token=data["access_token"],
                refresh_token=data["refresh_token"],
            )
        except (ValueError, KeyError, TypeError) as e:
            raise SurfAPIError(f"Unexpected refresh response: {response.text[:200]}") from e

    async def fetch_daily_questions(self, language: str = "zh") -> list[str]:
        response = await self.client.get(DAILY_QUESTIONS_URL)
        response.raise_for_status()

        try:
            entries = response.json()["data"][0]["attributes"]["questions"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise SurfAPIError("Unexpected daily questions response") from e

        questions: list[str] = []
        for entry in entries:
            text = (entry.get("question") or {}).get(language)
            if isinstance(text, str) and text.strip():
                questions.append(text.strip())
        logger.info(f"Fetched {len(questions)} daily questions")
        return questions
