from surfbot.api import SurfClient


class DailyQuestionSource:
    """Curated daily questions published by the Surf CMS."""

    def __init__(self, client: SurfClient, language: str = "zh"):
        self.client = client
        self.language = language

    async def questions(self, count: int) -> list[str]:
        questions = await self.client.fetch_daily_questions(self.language)
        return questions[:count]
