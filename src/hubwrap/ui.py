"""Rich terminal output helpers for hub."""

from rich.console import Console
from rich.text import Text

console = Console(highlight=False, emoji=False)
err_console = Console(stderr=True, highlight=False, emoji=False)


def status(message: str) -> None:
    """Print a status line on stdout, verbatim.

    Args:
        message: Message to display
    """
    console.print(message, markup=False, soft_wrap=True)


def error(message: str) -> None:
    """Print an error message on stderr.

    Args:
        message: Message to display
    """
    err_console.print(Text(message, style="red"), soft_wrap=True)

