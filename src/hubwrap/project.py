"""GitHub repository references: parsing, protocol selection and URL building."""

import fnmatch
import re
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional
from urllib.parse import urlsplit

MAIN_HOST = "github.com"

NAME_RE = r"\w[\w.-]*"
OWNER_RE = r"[a-zA-Z0-9][a-zA-Z0-9-]*"
SHA_RE = r"[a-f0-9]{7,40}"

# [[HOST:]OWNER/]NAME
SHORTHAND_RE = re.compile(
    rf"^(?:(?P<host>[\w.-]+):)?(?:(?P<owner>{OWNER_RE})/)?(?P<name>{NAME_RE})$"
)
OWNER_ONLY_RE = re.compile(rf"^{OWNER_RE}$")
OWNER_SHA_RE = re.compile(rf"^(?P<owner>{OWNER_RE})@(?P<sha>{SHA_RE})$")

# scheme://..., user@host:..., ./path, ../path, /path
URL_LIKE_RE = re.compile(r"^(?:[a-zA-Z][\w+.-]*://|[^/@]+@|\.{1,2}/|/)")


class Protocol(Enum):
    """Transport used in clone URLs."""

    GIT = "git"
    SSH = "ssh"
    HTTPS = "https"


def select_protocol(
    host: str,
    private: bool = False,
    https_preferred: bool = False,
) -> Protocol:
    """Choose the clone protocol for a repository.

    Private access always means ssh. Otherwise a configured https preference
    wins, then git:// on github.com. Enterprise hosts do not serve the git
    daemon, so they default to ssh.
    """
    if private:
        return Protocol.SSH
    if https_preferred:
        return Protocol.HTTPS
    if host == MAIN_HOST:
        return Protocol.GIT
    return Protocol.SSH


def is_url_like(arg: str) -> bool:
    """Check if an argument is already a URL or a path."""
    return bool(URL_LIKE_RE.match(arg))


@dataclass(frozen=True)
class GitHubProject:
    """A repository hosted on GitHub or a GitHub Enterprise host."""

    owner: str
    name: str
    host: str = MAIN_HOST

    @property
    def name_with_owner(self) -> str:
        return f"{self.owner}/{self.name}"

    def owned_by(self, owner: str) -> "GitHubProject":
        return replace(self, owner=owner)

    def clone_url(self, protocol: Protocol) -> str:
        """Build a clone URL for this repository."""
        path = self.name_with_owner
        if not path.endswith(".git"):
            path += ".git"
        if protocol is Protocol.SSH:
            return f"git@{self.host}:{path}"
        return f"{protocol.value}://{self.host}/{path}"

    def web_url(self, path: Optional[str] = None) -> str:
        """Build the web URL for a page of this repository.

        Wiki repositories (``NAME.wiki``) map subpages into the wiki section:
        ``/commits/...`` becomes ``/wiki/_history`` and ``/x`` becomes
        ``/wiki/_x``.
        """
        project_name = self.name_with_owner
        path = path or ""
        if project_name.endswith(".wiki"):
            project_name = project_name[: -len(".wiki")]
            if path != "/wiki":
                if path.startswith("/commits/"):
                    path = "/_history"
                else:
                    path = re.sub(r"\w+", lambda m: "_" + m.group(0), path, count=1)
                path = "/wiki" + path
        return f"https://{self.host}/{project_name}{path}"

    def __str__(self) -> str:
        return self.name_with_owner


class SshConfig:
    """Host aliases read from OpenSSH configuration files."""

    CONFIG_FILES = ["~/.ssh/config", "/etc/ssh_config", "/etc/ssh/ssh_config"]

    def __init__(self, files: Optional[Iterable[str]] = None):
        """Initialize SSH config.

        Args:
            files: Config files to read (default: CONFIG_FILES)
        """
        self._settings: list[tuple[list[str], dict[str, str]]] = []
        for name in self.CONFIG_FILES if files is None else files:
            path = Path(name).expanduser()
            if path.is_file():
                self._parse(path.read_text(errors="replace"))

    def _parse(self, text: str) -> None:
        settings: Optional[dict[str, str]] = None
        for raw in text.splitlines():
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            parts = re.split(r"\s*=\s*|\s+", line, maxsplit=1)
            if len(parts) != 2:
                continue
            key, value = parts[0].lower(), parts[1]
            if key == "host":
                settings = {}
                self._settings.append((value.split(), settings))
            elif settings is not None:
                settings.setdefault(key, value)

    def get_value(self, hostname: str, key: str) -> Optional[str]:
        key = key.lower()
        for patterns, settings in self._settings:
            if any(fnmatch.fnmatch(hostname, p) for p in patterns) and key in settings:
                return settings[key]
        return None

    def resolve_host(self, hostname: str) -> str:
        """Real hostname behind an alias, or the name itself."""
        return self.get_value(hostname, "HostName") or hostname


def _split_remote_url(url: str) -> Optional[tuple[str, str, bool]]:
    """Split a remote URL into (host, path, is_ssh)."""
    if "://" in url:
        parts = urlsplit(url)
        if not parts.hostname:
            return None
        return parts.hostname, parts.path, parts.scheme in ("ssh", "git+ssh")

    # scp-like syntax: [user@]host:path
    match = re.match(r"^(?:[^@/]+@)?(?P<host>[^:/]+):(?P<path>.+)$", url)
    if match:
        return match.group("host"), match.group("path"), True
    return None


def parse_remote_url(
    url: str,
    known_hosts: Iterable[str],
    ssh_config: Optional[SshConfig] = None,
) -> Optional[GitHubProject]:
    """Recognize a git remote URL pointing to a known GitHub host.

    Args:
        url: Remote URL (git://, https://, ssh://, or scp-like)
        known_hosts: Hosts considered GitHub installations
        ssh_config: SSH configuration used to resolve host aliases

    Returns:
        GitHubProject or None if the URL is not a GitHub repository
    """
    split = _split_remote_url(url.strip())
    if split is None:
        return None
    host, path, is_ssh = split
    if is_ssh and ssh_config is not None:
        host = ssh_config.resolve_host(host)
    host = host.lower()
    if host not in {h.lower() for h in known_hosts}:
        return None

    segments = [s for s in path.split("/") if s]
    if len(segments) < 2:
        return None
    owner, name = segments[0], segments[1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    return GitHubProject(owner=owner, name=name, host=host)


@dataclass(frozen=True)
class GitHubUrl:
    """A web URL of a page inside a GitHub repository."""

    project: GitHubProject
    project_path: str

    @classmethod
    def parse(cls, url: str, known_hosts: Iterable[str]) -> Optional["GitHubUrl"]:
        """Parse a web URL such as https://github.com/OWNER/NAME/pull/42.

        The URL fragment is dropped. Returns None for unknown hosts and for
        URLs that do not name a repository.
        """
        if not re.match(r"^https?://", url):
            return None
        parts = urlsplit(url)
        host = (parts.hostname or "").lower()
        if host not in {h.lower() for h in known_hosts}:
            return None
        segments = parts.path.lstrip("/").split("/", 2)
        if len(segments) < 2 or not segments[0] or not segments[1]:
            return None
        name = segments[1]
        if name.endswith(".git"):
            name = name[: -len(".git")]
        project_path = segments[2] if len(segments) > 2 else ""
        return cls(GitHubProject(segments[0], name, host), project_path)

    def match(self, pattern: str) -> Optional[re.Match]:
        return re.match(pattern, self.project_path)


def is_gist_url(url: str, known_hosts: Iterable[str]) -> bool:
    """Check for https://gist.HOST/ID style URLs."""
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.hostname:
        return False
    host = parts.hostname.lower()
    return host.startswith("gist.") and host[len("gist."):] in {h.lower() for h in known_hosts}
