"""init -g, create and fork: new repositories and the remotes pointing to them."""

import logging
import os
import re
from dataclasses import replace
from typing import Optional

from ..api import GitHubAPI
from ..args import Command, GlobalFlag
from ..context import Context
from ..outcome import Abort, ApiCall, ApiSequence, Forward, Message, Outcome
from ..project import NAME_RE, OWNER_RE

logger = logging.getLogger(__name__)

CREATE_USAGE = "Usage: git create [NAME] [-p] [-d DESCRIPTION] [-h HOMEPAGE]"
CREATE_NAME_RE = re.compile(rf"^(?:{OWNER_RE}/)?{NAME_RE}$")


def init(command: Command, ctx: Context, api: GitHubAPI) -> Outcome:
    """init -g [DIR]: initialize, then add origin for the user's own repository.

    The repository is named after the target directory.
    """
    if "-g" not in command.args:
        return Forward.of(command)

    args = [a for a in command.args if a != "-g"]
    words = [a for a in args if not a.startswith("-")]
    target = words[-1] if words else None
    path = os.path.abspath(os.path.join(str(ctx.working_dir), target or "."))

    project = ctx.github_project(name=os.path.basename(path), host=ctx.default_host)
    add_origin = command.git("remote", "add", "origin", ctx.own_repo_url(project))
    if target:
        add_origin = replace(
            add_origin,
            global_flags=add_origin.global_flags + (GlobalFlag("-C", target),),
        )
    return Forward.of(command.with_args(*args), add_origin)


def _parse_create_args(args: list[str]) -> tuple[Optional[str], bool, Optional[str], Optional[str]]:
    name = description = homepage = None
    private = False
    remaining = list(args)
    while remaining:
        arg = remaining.pop(0)
        if arg == "-p":
            private = True
        elif arg in ("-d", "-h"):
            if not remaining:
                raise Abort(CREATE_USAGE)
            if arg == "-d":
                description = remaining.pop(0)
            else:
                homepage = remaining.pop(0)
        elif name is None and CREATE_NAME_RE.match(arg):
            name = arg
        else:
            raise Abort(f"invalid argument: {arg}")
    return name, private, description, homepage


def create(command: Command, ctx: Context, api: GitHubAPI) -> Outcome:
    """create [NAME|OWNER/NAME] [-p] [-d DESCRIPTION] [-h HOMEPAGE]

    Creates the repository unless it already exists, then points origin to
    it. An existing origin remote is left alone.
    """
    if not ctx.is_repo:
        raise Abort("'create' must be run from inside a git repository")

    host = ctx.project_host
    user = ctx.require_user(host)
    ctx.require_token(host)
    name, private, description, homepage = _parse_create_args(list(command.args))

    project = ctx.github_project(name=name, host=host)
    if ctx.remote("origin"):
        set_origin = command.git("remote", "-v")
    else:
        set_origin = command.git("remote", "add", "-f", "origin", ctx.own_repo_url(project))

    if api.repo_exists(project):
        return Forward.of(
            Message(f"{project} already exists on {project.host}"),
            set_origin,
            Message(f"set remote origin: {project}"),
        )

    def invoke() -> None:
        api.create_repo(
            project,
            private=private,
            description=description,
            homepage=homepage,
            in_organization=project.owner != user,
        )

    return ApiSequence(
        (ApiCall("creating repository", f"Would create repository {project} on {project.host}", invoke),),
        then=Forward.of(set_origin, Message(f"created repository: {project}")),
    )


def fork(command: Command, ctx: Context, api: GitHubAPI) -> Outcome:
    """fork [--no-remote]

    Forks the origin repository under the user's account and adds a remote
    named after the user.
    """
    if not ctx.is_repo:
        raise Abort("fatal: Not a git repository")
    project = ctx.main_project
    if project is None:
        raise Abort("Error: repository under 'origin' remote is not a GitHub project")

    user = ctx.require_user(project.host)
    ctx.require_token(project.host)
    forked = project.owned_by(user)
    if api.repo_exists(forked):
        raise Abort(f"Error creating fork: {forked} already exists on {forked.host}")

    def invoke() -> None:
        repo = api.fork_repo(project)
        if repo:
            logger.debug("forked into %s/%s", repo.owner, repo.name)

    then = None
    if "--no-remote" not in command.args:
        then = Forward.of(
            command.git("remote", "add", "-f", user, ctx.own_repo_url(forked)),
            Message(f"new remote: {user}"),
        )
    return ApiSequence(
        (ApiCall("creating fork", f"Would fork {project} to {forked}", invoke),),
        then=then,
    )
