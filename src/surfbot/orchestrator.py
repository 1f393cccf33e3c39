import asyncio
import logging
import random
from typing import Protocol

from rich.console import Console
from rich.markup import escape

from common.errors import describe_error
from common.retry import Sleep
from surfbot.api import SurfClient
from surfbot.config import SurfConfig
from surfbot.credentials import CredentialRefresher, CredentialStore
from surfbot.identifiers import generate_session_id
from surfbot.models import RunReport, utc_now
from surfbot.news import NewsAggregator
from surfbot.questions import DailyQuestionSource, QuestionSynthesizer
from surfbot.session import ChatSession

logger = logging.getLogger(__name__)


class QuestionAsker(Protocol):
    async def ask(self, message: str, session_id: str, session_type: str = "V2") -> str: ...


class RunOrchestrator:
    def __init__(
        self,
        config: SurfConfig,
        refresher: CredentialRefresher,
        aggregator: NewsAggregator,
        synthesizer: QuestionSynthesizer,
        session: QuestionAsker,
        *,
        daily_source: DailyQuestionSource | None = None,
        client: SurfClient | None = None,
        console: Console | None = None,
        rng: random.Random | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.config = config
        self.refresher = refresher
        self.aggregator = aggregator
        self.synthesizer = synthesizer
        self.session = session
        self.daily_source = daily_source
        self.client = client
        self.console = console or Console()
        self.rng = rng or random.Random()
        self.sleep = sleep

    def pick_question_count(self) -> int:
        low, high = self.config.question_count_range
        return self.rng.randint(low, high)

    def pick_interval_seconds(self) -> float:
        low, high = self.config.question_interval_range
        return self.rng.uniform(low * 60, high * 60)

    async def aclose(self) -> None:
        await self.aggregator.aclose()
        if self.client is not None:
            await self.client.aclose()

    async def run(self) -> RunReport:
        report = RunReport()
        try:
            await self._run(report)
        except Exception as e:
            report.error = describe_error(e)
            logger.exception(f"Run failed: {report.error}")
            self.console.print(f"[red]✗[/] [bold]Run failed:[/] {escape(report.error)}")
        report.finished_at = utc_now()
        return report

    async def _run(self, report: RunReport) -> None:
        count = self.pick_question_count()
        report.question_count = count
        logger.info(f"Starting run with {count} question(s)")

        await self.refresher.access_token()
        questions = (await self._questions(count))[:count]
        report.questions = list(questions)

        self.console.print()
        self.console.print("[bold cyan]=== Surf AI chat ===[/]")
        self.console.print(f"[dim]{len(questions)} question(s)[/]")

        for index, question in enumerate(questions, 1):
            self.console.print()
            self.console.print(f"[bold blue]--- Question {index}/{len(questions)} ---[/]")
            self.console.print(f"[yellow]?[/] [bold]Question:[/] [dim]{escape(question)}[/]")
            self.console.print()

            answer = await self.session.ask(
                question, generate_session_id(), self.config.session_type
            )
            report.answers.append(answer)
            logger.info(f"Question {index}/{len(questions)} answered ({len(answer)} chars)")

            if index < len(questions):
                wait = self.pick_interval_seconds()
                if wait > 0:
                    logger.info(f"Waiting {wait / 60:.1f} minutes before the next question")
                    self.console.print(f"[dim]Next question in {wait / 60:.1f} minutes[/]")
                    await self.sleep(wait)

        self.console.print()
        self.console.print("[bold green]✓ All questions answered[/]")

    async def _questions(self, count: int) -> list[str]:
        if self.config.question_source == "daily" and self.daily_source is not None:
            return await self.daily_source.questions(count)
        items = await self.aggregator.collect()
        return await self.synthesizer.synthesize(items, count)


def build_orchestrator(config: SurfConfig, console: Console | None = None) -> RunOrchestrator:
    console = console or Console()
    client = SurfClient(host=config.host)
    store = CredentialStore(
        access_token=config.access_token,
        refresh_token=config.refresh_token,
        device_id=config.device_id,
        env_file=config.env_file,
    )
    refresher = CredentialRefresher(
        store, client, buffer_seconds=config.token_refresh_buffer_seconds
    )
    return RunOrchestrator(
        config,
        refresher,
        NewsAggregator.from_config(config.news),
        QuestionSynthesizer(config.llm),
        ChatSession(refresher, host=config.host, console=console),
        daily_source=DailyQuestionSource(client),
        client=client,
        console=console,
    )
