"""Rewrite rules for hub commands.

Each rule takes the parsed command, the repository context and the API
client, and returns an Outcome. Subcommands without a rule are forwarded to
git unchanged.

Rules:
- clone, submodule, remote:   expand [[HOST:]OWNER/]NAME shorthand
- fetch, cherry-pick, push:   add remotes on demand, push to many remotes
- am, apply:                  download patches from pull/commit/gist URLs
- init, create, fork:         create repositories and wire up remotes
- pull-request, checkout:     open and check out pull requests
- browse, compare:            open repository pages in a web browser
"""

import logging
import shlex
from dataclasses import replace
from typing import Callable, Optional

from .. import __version__
from ..api import ApiError, GitHubAPI
from ..args import Command
from ..context import Context
from ..outcome import Abort, Emit, Forward, Message, Outcome
from .browse import browse, compare
from .clone import clone, remote, submodule
from .create import create, fork, init
from .fetch import cherry_pick, fetch, push
from .patches import am, apply
from .pull_request import checkout, pull_request

logger = logging.getLogger(__name__)

Rule = Callable[[Command, Context, GitHubAPI], Outcome]


def version(command: Command, ctx: Context, api: GitHubAPI) -> Outcome:
    """git version, followed by hub's own version."""
    return Forward.of(command, Message(f"hub version {__version__}"))


RULES: dict[str, Rule] = {
    "clone": clone,
    "submodule": submodule,
    "remote": remote,
    "fetch": fetch,
    "cherry-pick": cherry_pick,
    "push": push,
    "am": am,
    "apply": apply,
    "init": init,
    "create": create,
    "fork": fork,
    "pull-request": pull_request,
    "checkout": checkout,
    "browse": browse,
    "compare": compare,
    "version": version,
}


def expand_alias(command: Command, ctx: Context) -> Command:
    """Replace a git alias with its expansion when it names a hub rule.

    Shell aliases (starting with "!") and aliases for plain git commands
    are left for git to expand.
    """
    if command.subcommand is None:
        return command
    expansion = ctx.config(f"alias.{command.subcommand}")
    if not expansion or expansion.startswith("!"):
        return command
    try:
        words = shlex.split(expansion)
    except ValueError:
        return command
    if not words or words[0] not in RULES:
        return command
    logger.debug("alias %s -> %s", command.subcommand, expansion)
    return replace(command, subcommand=words[0], args=tuple(words[1:]) + command.args)


def find_rule(subcommand: Optional[str]) -> Optional[Rule]:
    if subcommand is None:
        return None
    return RULES.get(subcommand)


def rewrite(command: Command, ctx: Context, api: GitHubAPI) -> Outcome:
    """Turn a parsed command into an Outcome.

    Preconditions and read-only API failures never escape: they become an
    Emit on stderr with exit code 1.
    """
    if command.subcommand is None:
        return Forward.of(command.git("help"))

    command = expand_alias(command, ctx)
    rule = find_rule(command.subcommand)
    if rule is None:
        logger.debug("no rule for %s, forwarding", command.subcommand)
        return Forward.of(command)

    try:
        return rule(command, ctx, api)
    except Abort as e:
        return Emit(e.message, e.exit_code, stderr=True)
    except ApiError as e:
        return Emit(str(e), 1, stderr=True)
