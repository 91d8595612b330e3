"""browse and compare: open repository pages in a web browser."""

import logging
import re
import shlex
from typing import Optional

from ..api import GitHubAPI
from ..args import Command, external
from ..context import Branch, Context
from ..outcome import Abort, Forward, Message, Outcome

logger = logging.getLogger(__name__)

BROWSE_USAGE = "Usage: hub browse [<USER>/]<REPOSITORY>"
COMPARE_USAGE = "Usage: hub compare [USER] [<START>...]<END>"
PRIVATE_WARNING = "Warning: the `-p` flag has no effect anymore"
NO_BROWSER = "Please set $BROWSER to a web launcher to use this command."

BROWSER_CANDIDATES = (
    "xdg-open",
    "cygstart",
    "x-www-browser",
    "firefox",
    "opera",
    "mozilla",
    "netscape",
)

# START..END with simple ref names; anything fancier keeps its two dots
RANGE_RE = re.compile(r"^(\w{1,2}|\w[\w.-]+\w)\.\.(\w{1,2}|\w[\w.-]+\w)$")


def browser_launcher(ctx: Context, api: GitHubAPI) -> list[str]:
    """Command used to open URLs.

    Raises:
        Abort: If no launcher can be found
    """
    browser = ctx.env.get("BROWSER")
    if browser:
        return shlex.split(browser)
    if ctx.platform == "darwin":
        return ["open"]
    if ctx.platform == "win32":
        return ["cmd", "/c", "start"]
    for candidate in BROWSER_CANDIDATES:
        if ctx.which(candidate):
            return [candidate]
    if api.config.browser.launcher:
        return shlex.split(api.config.browser.launcher)
    raise Abort(NO_BROWSER)


def _strip_browse_flags(args: tuple[str, ...]) -> tuple[list[str], bool, bool]:
    print_only = "-u" in args
    private = "-p" in args
    return [a for a in args if a not in ("-u", "-p")], print_only, private


def _open_url(url: str, print_only: bool, private: bool, ctx: Context, api: GitHubAPI) -> Outcome:
    steps = []
    if private:
        steps.append(Message(PRIVATE_WARNING))
    if print_only:
        steps.append(Message(url))
    else:
        launcher = browser_launcher(ctx, api)
        logger.debug("opening %s with %s", url, launcher[0])
        steps.append(external(launcher, url))
    return Forward.of(*steps)


def browse(command: Command, ctx: Context, api: GitHubAPI) -> Outcome:
    """browse [-u] [[USER/]REPOSITORY] [--] [SUBPAGE]

    Without a repository, opens the current project on the branch it tracks.
    """
    args, print_only, private = _strip_browse_flags(command.args)
    dest = args.pop(0) if args else None
    if dest == "--":
        dest = None
    elif args and args[0] == "--":
        args.pop(0)

    branch: Optional[Branch] = None
    if dest:
        project = ctx.github_project(name=dest)
    else:
        project = ctx.current_project
        if project is None:
            raise Abort(BROWSE_USAGE)
        current = ctx.current_branch
        upstream = ctx.upstream(current) if current else None
        if upstream and upstream.is_remote:
            branch = upstream

    subpage = args.pop(0) if args else None
    if subpage == "commits":
        name = branch.short_name if branch else ctx.default_branch.short_name
        path: Optional[str] = f"/commits/{name}"
    elif subpage in (None, "tree"):
        path = None
        if branch and not ctx.is_default_branch(branch):
            path = f"/tree/{branch.short_name}"
    else:
        path = f"/{subpage}"

    return _open_url(project.web_url(path), print_only, private, ctx, api)


def compare(command: Command, ctx: Context, api: GitHubAPI) -> Outcome:
    """compare [-u] [USER] [[START...]END]

    Without a range, compares the tracked branch when it is not the default
    branch. START..END is turned into START...END for plain ref names.
    """
    args, print_only, private = _strip_browse_flags(command.args)

    if args:
        range_spec = args.pop()
        match = RANGE_RE.match(range_spec)
        if match:
            range_spec = f"{match.group(1)}...{match.group(2)}"
        user = args.pop(0) if args else None
        project = ctx.github_project(owner=user) if user else ctx.current_project
    else:
        current = ctx.current_branch
        upstream = ctx.upstream(current) if current else None
        if not upstream or not upstream.is_remote or ctx.is_default_branch(upstream):
            raise Abort(COMPARE_USAGE)
        range_spec = upstream.short_name
        project = ctx.current_project

    if project is None:
        raise Abort(COMPARE_USAGE)
    return _open_url(project.web_url(f"/compare/{range_spec}"), print_only, private, ctx, api)
