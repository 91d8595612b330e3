"""am and apply: turn pull request, commit and gist URLs into local patches."""

import os
import re
from typing import Optional

from ..api import GitHubAPI
from ..args import Command
from ..context import Context
from ..outcome import Download, Forward, Outcome
from ..project import SHA_RE, GitHubUrl, is_gist_url

PATCH_PATH_RE = rf"(pull/\d+|commit/{SHA_RE})(/|$)"


def patch_download(arg: str, ctx: Context) -> Optional[Download]:
    """Download step for a patch URL, or None for anything else.

    Pull request and commit URLs map to their .patch form, gists to their
    raw .txt form. The file lands in $TMPDIR (default /tmp).
    """
    if is_gist_url(arg, ctx.known_hosts):
        extension, prefix = ".txt", "gist-"
    else:
        url = GitHubUrl.parse(arg, ctx.known_hosts)
        if url is None or not url.match(PATCH_PATH_RE):
            return None
        extension, prefix = ".patch", ""

    url = arg.split("#", 1)[0].rstrip("/")
    url = re.sub(r"(/pull/\d+)/.*$", r"\1", url)
    name = url.rsplit("/", 1)[-1]
    if name.endswith(extension):
        name = name[: -len(extension)]
    else:
        url += extension

    tmpdir = ctx.env.get("TMPDIR") or "/tmp"
    return Download(url, os.path.join(tmpdir, f"{prefix}{name}{extension}"))


def am(command: Command, ctx: Context, api: GitHubAPI) -> Outcome:
    """am/apply [OPTIONS] PATCH-URL [OPTIONS]"""
    args = list(command.args)
    for i, arg in enumerate(args):
        if arg.startswith("-"):
            continue
        download = patch_download(arg, ctx)
        if download:
            args[i] = download.path
            return Forward.of(download, command.with_args(*args))
    return Forward.of(command)


apply = am
