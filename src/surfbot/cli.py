import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime, timezone

from dotenv import load_dotenv
from rich.console import Console

from surfbot.config import DEFAULT_ENV_FILE, SESSION_TYPES, ConfigError, SurfConfig
from surfbot.envfile import create_env_file
from surfbot.identifiers import generate_session_id
from surfbot.orchestrator import RunOrchestrator, build_orchestrator
from surfbot.scheduler import CronScheduler

# Set through ``extra=`` by the session driver and the news aggregator.
CONTEXT_FIELDS = ("session_id", "request_id", "source")

NOISY_LOGGERS = ("httpx", "httpcore", "praw", "prawcore", "LiteLLM", "websockets")


class JsonFormatter(logging.Formatter):
    """One JSON object per line, carrying session context when present."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, ensure_ascii=False)


def setup_logging(verbose: bool = False, quiet: bool = False, log_format: str = "text") -> None:
    level = logging.WARNING if quiet else logging.DEBUG if verbose else logging.INFO

    handler = logging.StreamHandler()
    if log_format == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    logging.basicConfig(level=level, handlers=[handler])

    # Library chatter stays at warning even under --verbose.
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def load_config(args: argparse.Namespace) -> SurfConfig:
    load_dotenv(args.env_file)
    config = SurfConfig.from_env(env_file=args.env_file)
    config.validate()
    return config


async def run_once(orchestrator: RunOrchestrator) -> bool:
    try:
        report = await orchestrator.run()
    finally:
        await orchestrator.aclose()
    return report.succeeded


def cmd_init(args: argparse.Namespace) -> int:
    if create_env_file(args.env_file):
        print(f"Created: {args.env_file}")
    else:
        print(f"Already exists: {args.env_file}")
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    logger = logging.getLogger(__name__)
    try:
        config = load_config(args)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    orchestrator = build_orchestrator(config, Console())
    return 0 if asyncio.run(run_once(orchestrator)) else 1


def cmd_ask(args: argparse.Namespace) -> int:
    logger = logging.getLogger(__name__)
    try:
        config = load_config(args)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    console = Console()
    orchestrator = build_orchestrator(config, console)
    session_type = args.session_type or config.session_type

    async def ask() -> str:
        try:
            return await orchestrator.session.ask(
                args.question, generate_session_id(), session_type
            )
        finally:
            await orchestrator.aclose()

    try:
        answer = asyncio.run(ask())
    except Exception as e:
        logger.error(f"Session failed: {e}")
        return 1

    console.print()
    console.print("[bold green]=== Answer ===[/]")
    console.print(answer, markup=False)
    return 0


def cmd_schedule(args: argparse.Namespace) -> int:
    logger = logging.getLogger(__name__)
    try:
        config = load_config(args)
        orchestrator = build_orchestrator(config, Console())
        scheduler = CronScheduler(
            orchestrator.run, config.schedule.cron, config.schedule.timezone
        )
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    async def serve() -> None:
        try:
            if args.run_now:
                await orchestrator.run()
            await scheduler.run_forever()
        finally:
            await orchestrator.aclose()

    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        logger.info("Scheduler stopped")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(
        prog="surfbot",
        description="Surfbot - ask Surf AI daily questions drawn from crypto news",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose logging"
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Minimal logging (warnings/errors only)"
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default="text",
        help="Log format (default: text)",
    )
    parser.add_argument(
        "--env-file",
        default=DEFAULT_ENV_FILE,
        metavar="PATH",
        help="Configuration file holding tokens and settings (default: .env)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    schedule_parser = subparsers.add_parser(
        "schedule", help="Run on the SCHEDULE_CRON timer until interrupted"
    )
    schedule_parser.add_argument(
        "--run-now", action="store_true", help="Do one run immediately before scheduling"
    )
    schedule_parser.set_defaults(func=cmd_schedule)

    run_parser = subparsers.add_parser("run", help="Do one full run now")
    run_parser.set_defaults(func=cmd_run)

    ask_parser = subparsers.add_parser("ask", help="Ask a single question")
    ask_parser.add_argument("question", help="Question text")
    ask_parser.add_argument(
        "--session-type",
        choices=SESSION_TYPES,
        help="Chat mode (default: SESSION_TYPE from the env file)",
    )
    ask_parser.set_defaults(func=cmd_ask)

    init_parser = subparsers.add_parser("init", help="Create a starter env file")
    init_parser.set_defaults(func=cmd_init)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 0

    setup_logging(args.verbose, args.quiet, args.log_format)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
