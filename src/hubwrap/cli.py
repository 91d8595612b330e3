"""Main CLI entry point for hub."""

import logging
import os

import click
from rich.logging import RichHandler

from . import ui
from .api import GitHubAPI
from .args import parse_argv
from .commands import rewrite
from .config import ConfigError, HubConfig
from .context import Context
from .git_wrapper import GitError
from .runner import Runner

logger = logging.getLogger(__name__)


def _setup_logging(debug: bool = False) -> None:
    """Route diagnostics to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=ui.err_console, show_path=False)],
    )


@click.command(
    context_settings={
        "ignore_unknown_options": True,
        "allow_interspersed_args": False,
        "help_option_names": [],
    }
)
@click.option("--debug", is_flag=True, hidden=True, envvar="HUB_DEBUG", help="Log git queries and API requests")
@click.argument("argv", nargs=-1, type=click.UNPROCESSED)
def main(debug: bool, argv: tuple[str, ...]) -> None:
    """hub: git + hub = github.

    Every argument is handed to git, after GitHub-aware rewriting.
    """
    _setup_logging(debug)

    try:
        config = HubConfig.load()
        command = parse_argv(list(argv), os.environ.get("GIT", "git"))
        logger.debug("parsed: %s", command)

        ctx = Context.for_command(command)
        api = GitHubAPI(ctx, config)
        outcome = rewrite(command, ctx, api)
        code = Runner(noop=command.noop, session=api.session).run(outcome)
    except ConfigError as e:
        ui.error(str(e))
        code = 1
    except GitError as e:
        ui.error(e.message)
        code = e.returncode

    raise SystemExit(code)


if __name__ == "__main__":
    main()
