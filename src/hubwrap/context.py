"""Per-invocation repository context, lazily read from git."""

import logging
import os
import re
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Mapping, Optional

from .args import Command, config_overrides
from .git_wrapper import GitReader
from .outcome import Abort
from .project import (
    MAIN_HOST,
    GitHubProject,
    Protocol,
    SshConfig,
    parse_remote_url,
    select_protocol,
)

logger = logging.getLogger(__name__)

CONFIG_HELP_URL = "http://help.github.com/set-your-user-name-email-and-github-token/"


@dataclass(frozen=True)
class Branch:
    """A git ref such as refs/heads/feature or refs/remotes/origin/master."""

    name: str

    @property
    def short_name(self) -> str:
        return re.sub(r"^refs/(?:remotes/)?.+?/", "", self.name, count=1)

    @property
    def is_remote(self) -> bool:
        return self.name.startswith("refs/remotes/")

    @property
    def remote_name(self) -> Optional[str]:
        match = re.match(r"^refs/remotes/(.+?)/", self.name)
        return match.group(1) if match else None


@dataclass(frozen=True)
class Remote:
    """A configured git remote and the GitHub project it points to."""

    name: str
    urls: tuple[str, ...]
    project: Optional[GitHubProject]


_UNSET = object()


class Context:
    """Lazily populated facts about the current repository.

    Each fact is computed at most once; None is a valid cached value.
    """

    def __init__(
        self,
        reader: GitReader,
        env: Optional[Mapping[str, str]] = None,
        working_dir: Optional[Path] = None,
        ssh_config: Optional[SshConfig] = None,
        which: Callable[[str], Optional[str]] = shutil.which,
        platform: str = sys.platform,
    ):
        """Initialize context.

        Args:
            reader: Git query reader
            env: Environment variables (default: os.environ)
            working_dir: Directory the command runs in (default: cwd)
            ssh_config: SSH host alias configuration
            which: Executable lookup used for browser detection
            platform: sys.platform value used for browser detection
        """
        self.reader = reader
        self.env = dict(os.environ if env is None else env)
        self.working_dir = working_dir or reader.working_dir
        self._ssh_config = ssh_config
        self.which = which
        self.platform = platform
        self._facts: dict[str, object] = {}

    @classmethod
    def for_command(
        cls,
        command: Command,
        reader: Optional[GitReader] = None,
        **kwargs,
    ) -> "Context":
        """Build the context for a parsed command.

        Repository-level global flags are applied to the reader, and
        `-c key=value` pairs seed the config cache.
        """
        if reader is None:
            reader = GitReader(list(command.program))
        flags: list[str] = []
        for flag in command.global_flags:
            flags.extend(flag.tokens())
        reader.add_exec_flags(flags)
        for key, value in config_overrides(command):
            reader.stub_config_value(key, value)
        return cls(reader, **kwargs)

    def _memo(self, key: str, compute: Callable[[], object]):
        value = self._facts.get(key, _UNSET)
        if value is _UNSET:
            value = compute()
            self._facts[key] = value
        return value

    # =========================================================================
    # Raw queries
    # =========================================================================

    def config(self, key: str) -> Optional[str]:
        return self.reader.read_config(key)

    def config_all(self, key: str) -> list[str]:
        value = self.reader.read_config(key, get_all=True)
        return value.splitlines() if value else []

    def config_bool(self, key: str) -> bool:
        return self.reader.read_config(key, as_bool=True) == "true"

    @property
    def is_repo(self) -> bool:
        return self.reader.read(["rev-parse", "-q", "--git-dir"]) is not None

    @property
    def ssh_config(self) -> SshConfig:
        if self._ssh_config is None:
            self._ssh_config = SshConfig()
        return self._ssh_config

    # =========================================================================
    # Hosts and credentials
    # =========================================================================

    @property
    def default_host(self) -> str:
        return self.env.get("GITHUB_HOST") or MAIN_HOST

    @property
    def known_hosts(self) -> list[str]:
        def compute() -> list[str]:
            hosts = self.config_all("hub.host")
            for host in (self.default_host, MAIN_HOST):
                if host not in hosts:
                    hosts.append(host)
            return hosts

        return self._memo("known_hosts", compute)

    def _host_key(self, host: Optional[str], setting: str) -> str:
        host = host or self.default_host
        if host == MAIN_HOST:
            return f"github.{setting}"
        return f'github."{host}".{setting}'

    def github_user(self, host: Optional[str] = None) -> Optional[str]:
        """Login for a host; GITHUB_USER overrides git config."""
        return self.env.get("GITHUB_USER") or self.config(self._host_key(host, "user"))

    def github_token(self, host: Optional[str] = None) -> Optional[str]:
        """API token for a host; GITHUB_TOKEN overrides git config."""
        return self.env.get("GITHUB_TOKEN") or self.config(self._host_key(host, "token"))

    def require_user(self, host: Optional[str] = None) -> str:
        user = self.github_user(host)
        if not user:
            raise Abort(f"** No GitHub user set. See {CONFIG_HELP_URL}")
        return user

    def require_token(self, host: Optional[str] = None) -> str:
        token = self.github_token(host)
        if not token:
            raise Abort(f"** No GitHub token set. See {CONFIG_HELP_URL}")
        return token

    @property
    def https_preferred(self) -> bool:
        """hub.protocol=https, or the older hub.http-clone=true."""
        return self.config("hub.protocol") == "https" or self.config_bool("hub.http-clone")

    def protocol_for(self, project: GitHubProject, private: bool = False) -> Protocol:
        return select_protocol(project.host, private, self.https_preferred)

    def clone_url(self, project: GitHubProject, private: bool = False) -> str:
        return project.clone_url(self.protocol_for(project, private))

    def own_repo_url(self, project: GitHubProject) -> str:
        """URL for a repository the user owns: https when preferred, else ssh."""
        protocol = Protocol.HTTPS if self.https_preferred else Protocol.SSH
        return project.clone_url(protocol)

    # =========================================================================
    # Remotes and branches
    # =========================================================================

    @property
    def remote_names(self) -> list[str]:
        def compute() -> list[str]:
            output = self.reader.read(["remote"])
            names = output.splitlines() if output else []
            if "origin" in names:
                names.remove("origin")
                names.insert(0, "origin")
            return names

        return self._memo("remote_names", compute)

    def remote_urls(self, name: str) -> list[str]:
        return self.config_all(f"remote.{name}.url")

    def remote(self, name: str) -> Optional[Remote]:
        def compute() -> Optional[Remote]:
            if name not in self.remote_names:
                return None
            urls = self.remote_urls(name)
            project = None
            for url in urls:
                project = parse_remote_url(url, self.known_hosts, self.ssh_config)
                if project:
                    break
            logger.debug("remote %s -> %s", name, project or "not a GitHub project")
            return Remote(name, tuple(urls), project)

        return self._memo(f"remote {name}", compute)

    @property
    def remotes(self) -> list[Remote]:
        return [r for r in (self.remote(name) for name in self.remote_names) if r]

    def remote_for_project(self, project: GitHubProject) -> Optional[Remote]:
        """Find a configured remote pointing to the same repository."""
        for remote in self.remotes:
            p = remote.project
            if p and (p.owner.lower(), p.name.lower(), p.host) == (
                project.owner.lower(),
                project.name.lower(),
                project.host,
            ):
                return remote
        return None

    def remotes_group(self, name: str) -> Optional[str]:
        return self.config(f"remotes.{name}")

    @property
    def current_branch(self) -> Optional[Branch]:
        ref = self.reader.read(["symbolic-ref", "-q", "HEAD"])
        return Branch(ref) if ref else None

    def upstream(self, branch: Branch) -> Optional[Branch]:
        ref = self.reader.read(
            ["rev-parse", "--symbolic-full-name", f"{branch.short_name}@{{upstream}}"]
        )
        return Branch(ref) if ref else None

    @property
    def default_branch(self) -> Branch:
        ref = self.reader.read(["symbolic-ref", "-q", "refs/remotes/origin/HEAD"])
        name = Branch(ref).short_name if ref else "master"
        return Branch(f"refs/heads/{name}")

    def is_default_branch(self, branch: Branch) -> bool:
        return branch.short_name == self.default_branch.short_name

    # =========================================================================
    # Projects
    # =========================================================================

    @property
    def main_project(self) -> Optional[GitHubProject]:
        """Project of the first remote (origin first)."""
        remotes = self.remotes
        return remotes[0].project if remotes else None

    @property
    def upstream_project(self) -> Optional[GitHubProject]:
        branch = self.current_branch
        if branch is None:
            return None
        upstream = self.upstream(branch)
        if upstream is None or not upstream.is_remote:
            return None
        remote = self.remote(upstream.remote_name or "")
        return remote.project if remote else None

    @property
    def current_project(self) -> Optional[GitHubProject]:
        return self.upstream_project or self.main_project

    @property
    def repo_name(self) -> str:
        project = self.main_project
        if project:
            return project.name
        return self.working_dir.name

    @property
    def project_host(self) -> str:
        """Host of the main project inside a repository, else the default host."""
        main = self.main_project if self.is_repo else None
        return main.host if main else self.default_host

    def github_project(
        self,
        name: Optional[str] = None,
        owner: Optional[str] = None,
        host: Optional[str] = None,
    ) -> GitHubProject:
        """Resolve a possibly partial reference into a project.

        `owner` may carry "owner/name" and `name` may carry "owner/name".
        The name defaults to the current repository name and the owner to the
        authenticated user of the host. The host defaults to project_host.

        Raises:
            Abort: If the owner is needed but no user is configured
        """
        if owner and "/" in owner:
            owner, name = owner.split("/", 1)
        elif name and "/" in name:
            owner, name = name.split("/", 1)

        host = host or self.project_host
        if not name:
            name = self.repo_name
        if not owner:
            owner = self.require_user(host)
        return GitHubProject(owner=owner, name=name, host=host)

    def unpushed_commits(self, remote_branch: str) -> list[str]:
        """Commits on HEAD that are not on remote_branch."""
        output = self.reader.read(
            ["rev-list", "--cherry-pick", "--right-only", "--no-merges", f"{remote_branch}..."]
        )
        return output.splitlines() if output else []
