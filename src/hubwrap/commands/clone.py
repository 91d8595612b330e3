"""Shorthand expansion for clone, submodule add and remote add/set-url."""

import logging
import re
from typing import Iterable, Optional

from ..api import GitHubAPI
from ..args import Command
from ..context import Context
from ..outcome import Forward, Outcome
from ..project import NAME_RE, OWNER_RE, SHORTHAND_RE, is_url_like

logger = logging.getLogger(__name__)

# clone/submodule flags whose value is the next argument
HAS_VALUE_RE = re.compile(r"^(--(upload-pack|template|depth|origin|branch|reference)|-[ubo])$")

REMOTE_TARGET_RE = re.compile(rf"^(?P<owner>{OWNER_RE})(?:/(?P<name>{NAME_RE}))?$")

# remote add flags whose value is the next argument
REMOTE_VALUE_FLAGS = ("-t", "-m")


def strip_private_flag(args: Iterable[str]) -> tuple[list[str], bool]:
    """Remove every -p and report whether one was present."""
    args = list(args)
    private = "-p" in args
    return [arg for arg in args if arg != "-p"], private


def positional_indexes(args: list[str], value_flags: Iterable[str] = ()) -> list[int]:
    """Indexes of positional arguments, skipping the values of value_flags."""
    value_flags = tuple(value_flags)
    indexes = []
    skip = False
    for i, arg in enumerate(args):
        if skip:
            skip = False
        elif arg.startswith("-"):
            skip = arg in value_flags
        else:
            indexes.append(i)
    return indexes


def expand_shorthand(
    arg: str,
    ctx: Context,
    private: bool = False,
    own_repo_ssh: bool = False,
) -> Optional[str]:
    """Clone URL for a [[HOST:]OWNER/]NAME argument, or None to leave it alone.

    URLs, paths and names of existing directories are never expanded. A HOST
    prefix is only honoured for known GitHub hosts.
    """
    if is_url_like(arg):
        return None
    match = SHORTHAND_RE.match(arg)
    if not match:
        return None
    if (ctx.working_dir / arg).is_dir():
        return None

    host = match.group("host")
    if host:
        if host.lower() not in {h.lower() for h in ctx.known_hosts}:
            return None
        host = host.lower()

    project = ctx.github_project(name=match.group("name"), owner=match.group("owner"), host=host)
    if own_repo_ssh and project.owner == ctx.github_user(project.host):
        private = True
    url = ctx.clone_url(project, private)
    logger.debug("expanded %s -> %s", arg, url)
    return url


def _expand_first_repo(
    args: list[str],
    start: int,
    ctx: Context,
    private: bool,
    own_repo_ssh: bool,
) -> Optional[list[str]]:
    i = start
    while i < len(args):
        arg = args[i]
        if arg.startswith("-"):
            i += 2 if HAS_VALUE_RE.match(arg) else 1
            continue
        url = expand_shorthand(arg, ctx, private, own_repo_ssh)
        if url is None:
            return None
        return args[:i] + [url] + args[i + 1:]
    return None


def clone(command: Command, ctx: Context, api: GitHubAPI) -> Outcome:
    """clone [-p] [OPTIONS] [[HOST:]OWNER/]NAME [DIR]

    Cloning one of the user's own repositories always uses ssh.
    """
    args, private = strip_private_flag(command.args)
    expanded = _expand_first_repo(args, 0, ctx, private, own_repo_ssh=True)
    if expanded is None:
        return Forward.of(command)
    return Forward.of(command.with_args(*expanded))


def submodule(command: Command, ctx: Context, api: GitHubAPI) -> Outcome:
    """submodule add [-p] [OPTIONS] [[HOST:]OWNER/]NAME PATH"""
    args = list(command.args)
    if "add" not in args:
        return Forward.of(command)
    args, private = strip_private_flag(args)
    expanded = _expand_first_repo(args, args.index("add") + 1, ctx, private, own_repo_ssh=False)
    if expanded is None:
        return Forward.of(command)
    return Forward.of(command.with_args(*expanded))


def remote(command: Command, ctx: Context, api: GitHubAPI) -> Outcome:
    """remote add/set-url [-p] [-f] [NAME] OWNER[/REPO]

    With a single argument the remote is named after the owner, and
    `remote add origin` points origin to the user's own copy of the
    current repository.
    """
    if not command.args or command.args[0] not in ("add", "set-url"):
        return Forward.of(command)

    rest, private = strip_private_flag(command.args[1:])
    indexes = positional_indexes(rest, REMOTE_VALUE_FLAGS)
    if not indexes or len(indexes) > 2:
        return Forward.of(command)

    target_index = indexes[-1]
    target = rest[target_index]
    match = REMOTE_TARGET_RE.match(target)
    if not match or is_url_like(target):
        return Forward.of(command)

    owner, name = match.group("owner"), match.group("name")
    if len(indexes) == 1:
        if owner == "origin" and name is None:
            project = ctx.github_project()
        else:
            project = ctx.github_project(name=name, owner=owner)
        rest[target_index] = owner
        rest.append(ctx.clone_url(project, private))
    else:
        project = ctx.github_project(name=name, owner=owner)
        rest[target_index] = ctx.clone_url(project, private)

    return Forward.of(command.with_args(command.args[0], *rest))
