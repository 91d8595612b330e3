"""Rewrite outcomes produced by the command rules."""

from dataclasses import dataclass
from typing import Callable, Optional, Union

from .args import Command


class Abort(Exception):
    """Raised by a rule when a precondition fails.

    Raised before any side effect happens; the dispatcher turns it into an
    Emit outcome.
    """

    def __init__(self, message: str, exit_code: int = 1):
        """Initialize abort.

        Args:
            message: User-facing message (may span several lines)
            exit_code: Process exit code
        """
        self.message = message
        self.exit_code = exit_code
        super().__init__(message)


@dataclass(frozen=True)
class Message:
    """A status line printed between steps."""

    text: str

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class Download:
    """Fetch a URL into a local file."""

    url: str
    path: str

    def __str__(self) -> str:
        return f"download {self.url} -o {self.path}"


Step = Union[Command, Download, Message]


@dataclass(frozen=True)
class Forward:
    """Run steps in order; the last command's exit code is the result."""

    steps: tuple[Step, ...]

    @classmethod
    def of(cls, *steps: Step) -> "Forward":
        return cls(tuple(steps))

    @property
    def commands(self) -> list[Command]:
        return [step for step in self.steps if isinstance(step, Command)]


@dataclass(frozen=True)
class Emit:
    """Print text and exit without invoking git."""

    text: str
    exit_code: int = 0
    stderr: bool = False


@dataclass(frozen=True)
class ApiCall:
    """A side-effecting API call deferred until the rewrite is complete.

    `invoke` performs the call and may return a status line to print.
    """

    action: str
    description: str
    invoke: Callable[[], Optional[str]]


@dataclass(frozen=True)
class ApiSequence:
    """API calls run strictly in order, followed by an optional outcome."""

    calls: tuple[ApiCall, ...]
    then: Optional[Union[Forward, Emit]] = None


Outcome = Union[Forward, Emit, ApiSequence]
