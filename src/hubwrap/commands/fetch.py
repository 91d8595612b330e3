"""fetch, cherry-pick and push: add GitHub remotes on demand."""

import logging
import re

from ..api import GitHubAPI
from ..args import Command
from ..context import Context
from ..outcome import Abort, Forward, Outcome
from ..project import OWNER_ONLY_RE, OWNER_SHA_RE, SHA_RE, GitHubUrl

logger = logging.getLogger(__name__)

COMMA_LIST_RE = re.compile(r"^[\w-]+(,[\w-]+)+$")
COMMIT_PATH_RE = rf"commit/(?P<sha>{SHA_RE})"


def fetch(command: Command, ctx: Context, api: GitHubAPI) -> Outcome:
    """fetch [--multiple] OWNER[,OWNER...]

    Each name that looks like a user, is not a configured remote or remote
    group, and has a fork on the host gets a remote added before the fetch.
    Names that fail any check are still passed to git as typed.
    """
    args = list(command.args)
    if "--multiple" in args:
        names = [a for a in args[args.index("--multiple") + 1:] if not a.startswith("-")]
    else:
        words = command.words()
        if not words:
            return Forward.of(command)
        first = words[0]
        if COMMA_LIST_RE.match(first):
            names = first.split(",")
            i = args.index(first)
            args[i:i + 1] = ["--multiple", *names]
        else:
            names = [first]

    steps = []
    for name in names:
        if not OWNER_ONLY_RE.match(name):
            continue
        if name in ctx.remote_names or ctx.remotes_group(name):
            continue
        project = ctx.github_project(owner=name)
        if api.repo_exists(project):
            logger.debug("fork %s exists, adding remote", project)
            steps.append(command.git("remote", "add", name, ctx.clone_url(project)))
        else:
            logger.debug("no fork %s, skipping", project)

    return Forward.of(*steps, command.with_args(*args))


def cherry_pick(command: Command, ctx: Context, api: GitHubAPI) -> Outcome:
    """cherry-pick COMMIT-URL | OWNER@SHA

    Fetches from the remote for that repository, adding it if needed, then
    cherry-picks the bare SHA.
    """
    args = list(command.args)
    words = command.words()
    if "-m" in args or "--mainline" in args or not words:
        return Forward.of(command)

    ref = words[-1]
    url = GitHubUrl.parse(ref, ctx.known_hosts)
    match = url.match(COMMIT_PATH_RE) if url else None
    if url and match:
        project, sha = url.project, match.group("sha")
    else:
        match = OWNER_SHA_RE.match(ref)
        if not match:
            return Forward.of(command)
        project, sha = ctx.github_project(owner=match.group("owner")), match.group("sha")

    existing = ctx.remote_for_project(project)
    if existing:
        first = command.git("fetch", existing.name)
    else:
        first = command.git("remote", "add", "-f", project.owner, ctx.clone_url(project))

    i = len(args) - 1 - args[::-1].index(ref)
    args[i] = sha
    return Forward.of(first, command.with_args(*args))


def push(command: Command, ctx: Context, api: GitHubAPI) -> Outcome:
    """push REMOTE,REMOTE[,...] [BRANCH]

    Pushes the branch (default: the current branch) to each remote in turn.
    """
    words = command.words()
    if not words or "," not in words[0]:
        return Forward.of(command)

    remotes = [r for r in words[0].split(",") if r]
    if len(words) > 1:
        branch = words[1]
    else:
        current = ctx.current_branch
        if current is None:
            raise Abort("fatal: You are not currently on a branch.")
        branch = current.short_name

    flags = [a for a in command.args if a.startswith("-")]
    return Forward.of(*(command.with_args(*flags, name, branch) for name in remotes))
