"""pull-request and checkout of pull request URLs."""

import logging
import re
from typing import Optional

import click

from ..api import GitHubAPI
from ..args import Command
from ..context import Branch, Context
from ..outcome import Abort, ApiCall, ApiSequence, Forward, Outcome
from ..project import NAME_RE, OWNER_RE, GitHubProject, GitHubUrl

logger = logging.getLogger(__name__)

PULL_REQUEST_USAGE = "Usage: git pull-request [-f] [TITLE|-i ISSUE] [-b BASE] [-h HEAD]"

# [OWNER[/REPO]:]BRANCH
GITHUB_REF_RE = re.compile(rf"^(?:(?P<owner>{OWNER_RE})(?:/(?P<name>{NAME_RE}))?:)?(?P<branch>.+)$")

EDITOR_HELP = """
# Requesting a pull to {base} from {head}
#
# Write a message for this pull request. The first block
# of text is the title and the rest is description.{changes}
"""


def from_github_ref(ref: str, project: GitHubProject) -> tuple[GitHubProject, str, bool]:
    """Split [OWNER[/REPO]:]BRANCH against a default project.

    Returns the project, the branch name and whether an owner was given.
    """
    match = GITHUB_REF_RE.match(ref)
    if not match or not match.group("owner"):
        return project, ref, False
    project = project.owned_by(match.group("owner"))
    if match.group("name"):
        project = GitHubProject(project.owner, match.group("name"), project.host)
    return project, match.group("branch"), True


def edit_title_and_body(base: str, head: str, commits: list[str]) -> tuple[Optional[str], Optional[str]]:
    """Ask for a title and body in the user's editor.

    Lines starting with # are dropped. The first paragraph is the title.
    """
    changes = ""
    if commits:
        changes = "\n#\n# Changes:\n#\n" + "\n".join(f"# {line}" for line in commits)
    text = click.edit(EDITOR_HELP.format(base=base, head=head, changes=changes))
    if text is None:
        return None, None

    lines = [line for line in text.splitlines() if not line.startswith("#")]
    content = "\n".join(lines).strip()
    if not content:
        return None, None
    title, _, body = content.partition("\n\n")
    title = " ".join(title.split())
    return title or None, body.strip() or None


def pull_request(command: Command, ctx: Context, api: GitHubAPI) -> Outcome:
    """pull-request [-f] [TITLE|-i ISSUE|ISSUE-URL] [-b BASE] [-h HEAD]

    Opens a pull request from the current (or given) head into the base
    branch of the origin repository. Nothing is sent when the head equals
    the base or when commits are unpushed, unless -f is given.
    """
    base_project = ctx.main_project
    if base_project is None:
        raise Abort("Aborted: the origin remote doesn't point to a GitHub repository.")
    head_project = ctx.current_project or base_project

    force = explicit_owner = False
    base: Optional[str] = None
    head: Optional[str] = None
    title: Optional[str] = None
    issue: Optional[str] = None

    args = list(command.args)
    while args:
        arg = args.pop(0)
        if arg == "-f":
            force = True
        elif arg in ("-b", "-h", "-i"):
            if not args:
                raise Abort(PULL_REQUEST_USAGE)
            value = args.pop(0)
            if arg == "-b":
                base_project, base, _ = from_github_ref(value, base_project)
            elif arg == "-h":
                head_project, head, explicit_owner = from_github_ref(value, head_project)
            else:
                issue = value
        else:
            url = GitHubUrl.parse(arg, ctx.known_hosts)
            match = url.match(r"issues/(\d+)") if url else None
            if url and match:
                issue = match.group(1)
                base_project = url.project
            elif title is None:
                title = arg
            else:
                raise Abort(f"invalid argument: {arg}")

    base = base or ctx.default_branch.short_name

    current = ctx.current_branch
    tracked: Optional[Branch] = None
    if head is None:
        if current is None:
            raise Abort("Aborted: not currently on any branch.")
        upstream = ctx.upstream(current)
        if upstream and upstream.is_remote:
            tracked = upstream
        head = (tracked or current).short_name

    # Without tracking, assume the branch is published in the user's fork
    user = ctx.require_user(head_project.host)
    if head_project.owner != user and tracked is None and not explicit_owner:
        head_project = head_project.owned_by(user)

    if head_project == base_project and head == base:
        raise Abort(
            f'Aborted: head branch is the same as base ("{base}")\n'
            "(use `-h <branch>` to specify an explicit pull request head)"
        )

    commits: list[str] = []
    if tracked is not None and not force:
        remote_branch = f"{tracked.remote_name}/{head}"
        commits = ctx.unpushed_commits(remote_branch)
        if commits:
            raise Abort(
                f"Aborted: {len(commits)} commits are not yet pushed to {remote_branch}\n"
                "(use `-f` to force submit a pull request anyway)"
            )

    head_label = f"{head_project.owner}:{head}"
    body: Optional[str] = None
    if title is None and issue is None:
        title, body = edit_title_and_body(f"{base_project.owner}:{base}", head_label, commits)
        if not title:
            raise Abort("Aborting due to empty pull request title")

    logger.debug("pull request %s:%s <- %s", base_project, base, head_label)

    def invoke() -> Optional[str]:
        pull = api.create_pull_request(base_project, base, head_label, title, body, issue)
        return pull.html_url

    return ApiSequence(
        (
            ApiCall(
                "creating pull request",
                f"Would request a pull to {base_project.owner}:{base} from {head_label}",
                invoke,
            ),
        ),
    )


def checkout(command: Command, ctx: Context, api: GitHubAPI) -> Outcome:
    """checkout PULL-URL [BRANCH]

    Fetches the pull request's head branch, adding a remote for its owner
    when needed, and checks it out into BRANCH (default OWNER-BRANCH).
    """
    args = list(command.args)
    words = command.words()
    if not words:
        return Forward.of(command)

    url = GitHubUrl.parse(words[0], ctx.known_hosts)
    match = url.match(r"pull/(\d+)") if url else None
    if not url or not match:
        return Forward.of(command)

    pull = api.pull_request(url.project, match.group(1))
    owner, branch = pull.head_owner, pull.head_branch
    if not owner or not branch:
        raise Abort(f"Error: unexpected pull request head {pull.head_label!r}")

    local_branch = f"{owner}-{branch}"
    if len(words) > 1:
        local_branch = words[1]
        args.remove(words[1])

    if owner in ctx.remote_names:
        steps = [
            command.git("remote", "set-branches", "--add", owner, branch),
            command.git("fetch", owner, f"+refs/heads/{branch}:refs/remotes/{owner}/{branch}"),
        ]
    else:
        head_project = url.project.owned_by(owner)
        steps = [
            command.git(
                "remote", "add", "-f", "-t", branch, owner,
                ctx.clone_url(head_project, pull.head_private),
            ),
        ]

    i = args.index(words[0])
    args[i:i + 1] = ["--track", "-B", local_branch, f"{owner}/{branch}"]
    return Forward.of(*steps, command.with_args(*args))
