from rich.console import Console
from rich.status import Status
from rich.text import Text


class ThinkingIndicator:
    """Ephemeral spinner shown while the assistant streams reasoning."""

    def __init__(self, console: Console, prefix: str = "[thinking]"):
        self.console = console
        self.prefix = prefix
        self._status: Status | None = None

    @property
    def active(self) -> bool:
        return self._status is not None

    def _render(self, text: str) -> Text:
        rendered = Text(f"{self.prefix} ", style="dim")
        rendered.append(" ".join(text.split()), style="magenta")
        return rendered

    def activate(self, text: str) -> None:
        if self._status is not None:
            self.update(text)
            return
        self._status = self.console.status(self._render(text), spinner="dots")
        self._status.start()

    def update(self, text: str) -> None:
        if self._status is None:
            self.activate(text)
            return
        self._status.update(self._render(text))

    def retire(self) -> bool:
        """Stop the spinner; returns True if one was showing."""
        if self._status is None:
            return False
        status, self._status = self._status, None
        status.stop()
        return True


class ContentChannel:
    """Permanent output: answer text streamed as it arrives."""

    def __init__(self, console: Console):
        self.console = console

    def write(self, text: str) -> None:
        self.console.print(text, end="", markup=False, highlight=False, soft_wrap=True)

    def line_break(self) -> None:
        self.console.print()
