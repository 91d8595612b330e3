"""Shared fixtures: a stubbed git reader, a fake HTTP session and a hub harness."""

import shlex
from pathlib import Path
from typing import Optional, Union
from unittest.mock import MagicMock

import pytest

from hubwrap.api import GitHubAPI
from hubwrap.args import Command, parse_argv, quote_arg
from hubwrap.commands import rewrite
from hubwrap.config import HubConfig
from hubwrap.context import Context
from hubwrap.git_wrapper import GitReader
from hubwrap.outcome import ApiSequence, Emit, Forward, Outcome
from hubwrap.project import SshConfig
from hubwrap.runner import Runner

# Bound before any test patches Context.for_command
build_context = Context.for_command

DEFAULT_STUBS = {
    "remote": "mislav\norigin",
    "symbolic-ref -q HEAD": "refs/heads/master",
    "config --get github.user": "tpw",
    "config --get github.token": "abc123",
    "config --get-all remote.origin.url": "git://github.com/defunkt/hub.git",
    "config --get-all remote.mislav.url": "git://github.com/mislav/hub.git",
    "rev-parse --symbolic-full-name master@{upstream}": "refs/remotes/origin/master",
    "config --get --bool hub.http-clone": "false",
    "config --get hub.protocol": None,
    "config --get-all hub.host": None,
    "rev-parse -q --git-dir": ".git",
    "symbolic-ref -q refs/remotes/origin/HEAD": None,
}


class FakeGitReader(GitReader):
    """GitReader that never runs git: every query must be stubbed.

    Alias lookups are the exception and read as unset.
    """

    def __init__(self, stubs: Optional[dict] = None):
        super().__init__(["git"], working_dir=Path("/path/to/hub"))
        for key, value in (stubs or {}).items():
            self.stub(key, value)

    def stub(self, key: str, value: Optional[str]) -> None:
        self.stub_command_output(key.split(" "), value)

    def _run(self, args: list[str]) -> Optional[str]:
        key = " ".join(args)
        if key.startswith("config --get alias."):
            return None
        raise AssertionError(f"`git {key}` not stubbed")


class FakeSession:
    """Stand-in for requests.Session that serves canned responses."""

    def __init__(self):
        self.headers: dict[str, str] = {}
        self.requests: list[dict] = []
        self.responses: dict[tuple[str, str], MagicMock] = {}

    def stub(
        self,
        method: str,
        url: str,
        status: int = 200,
        reason: str = "OK",
        body: str = "",
        content_type: Optional[str] = None,
    ) -> None:
        response = MagicMock()
        response.status_code = status
        response.reason = reason
        response.text = body
        response.headers = {"Content-Type": content_type} if content_type else {}
        self.responses[(method, url)] = response

    def request(self, method: str, url: str, auth=None, data=None) -> MagicMock:
        self.requests.append({"method": method, "url": url, "auth": auth, "data": data})
        if (method, url) not in self.responses:
            raise AssertionError(f"unexpected request: {method} {url}")
        return self.responses[(method, url)]


class Hub:
    """Runs hub command lines against stubbed git and HTTP."""

    def __init__(self):
        self.reader = FakeGitReader(DEFAULT_STUBS)
        self.session = FakeSession()
        self.env: dict[str, str] = {}
        self.config = HubConfig()
        self.working_dir = Path("/path/to/hub")
        self.available_commands = {"open"}
        self.platform = "linux"
        self.executed: list[str] = []
        self.exit_codes: dict[str, int] = {}

    # Stubs --------------------------------------------------------------

    def stub(self, key: str, value: Optional[str]) -> None:
        self.reader.stub(key, value)

    def stub_branch(self, ref: Optional[str]) -> None:
        self.stub("symbolic-ref -q HEAD", ref)

    def stub_tracking(self, local: str, remote: str, branch: Optional[str] = None) -> None:
        value = f"refs/remotes/{remote}/{branch}" if branch else remote
        self.stub(f"rev-parse --symbolic-full-name {local}@{{upstream}}", value)

    def stub_tracking_nothing(self, local: str = "master") -> None:
        self.stub(f"rev-parse --symbolic-full-name {local}@{{upstream}}", None)

    def stub_repo_url(self, url: Optional[str], remote: str = "origin") -> None:
        self.stub(f"config --get-all remote.{remote}.url", url)

    def stub_no_remotes(self) -> None:
        self.stub("remote", None)

    def stub_no_git_repo(self) -> None:
        self.stub("rev-parse -q --git-dir", None)

    def stub_https_is_preferred(self) -> None:
        self.stub("config --get hub.protocol", "https")

    def stub_hub_host(self, host: str) -> None:
        self.stub("config --get-all hub.host", host)

    def stub_github_user(self, user: Optional[str], host: Optional[str] = None) -> None:
        key = f'github."{host}".user' if host else "github.user"
        self.stub(f"config --get {key}", user)

    def stub_github_token(self, token: Optional[str], host: Optional[str] = None) -> None:
        key = f'github."{host}".token' if host else "github.token"
        self.stub(f"config --get {key}", token)

    def stub_alias(self, name: str, value: str) -> None:
        self.stub(f"config --get alias.{name}", value)

    def stub_remotes_group(self, name: str, value: Optional[str]) -> None:
        self.stub(f"config --get remotes.{name}", value)

    def stub_existing_fork(self, owner: str, name: str = "hub", host: str = "github.com") -> None:
        self.session.stub("GET", f"https://{host}/api/v2/yaml/repos/show/{owner}/{name}")

    def stub_nonexisting_fork(self, owner: str, name: str = "hub", host: str = "github.com") -> None:
        self.session.stub(
            "GET",
            f"https://{host}/api/v2/yaml/repos/show/{owner}/{name}",
            status=404,
            reason="Not Found",
        )

    # Running ------------------------------------------------------------

    def context(self, command: Optional[Command] = None, ssh_config: Optional[SshConfig] = None) -> Context:
        return build_context(
            command or Command("status"),
            reader=self.reader,
            env=self.env,
            working_dir=self.working_dir,
            ssh_config=ssh_config or SshConfig(files=[]),
            which=lambda name: f"/usr/bin/{name}" if name in self.available_commands else None,
            platform=self.platform,
        )

    def rewrite(self, line: Union[str, list[str]]) -> Outcome:
        argv = shlex.split(line) if isinstance(line, str) else list(line)
        command = parse_argv(argv, self.env.get("GIT", "git"))
        ctx = self.context(command)
        api = GitHubAPI(ctx, self.config, session=self.session)
        return rewrite(command, ctx, api)

    def commands(self, line: Union[str, list[str]]) -> list[str]:
        """Display form of every command a Forward outcome would run."""
        outcome = self.rewrite(line)
        if isinstance(outcome, ApiSequence):
            outcome = outcome.then
        assert isinstance(outcome, Forward), f"expected commands, got {outcome!r}"
        return [str(c) for c in outcome.commands]

    def command(self, line: Union[str, list[str]]) -> str:
        commands = self.commands(line)
        assert len(commands) == 1, commands
        return commands[0]

    def emitted(self, line: Union[str, list[str]]) -> Emit:
        outcome = self.rewrite(line)
        assert isinstance(outcome, Emit), f"expected an emit, got {outcome!r}"
        return outcome

    def assert_forwarded(self, line: str) -> None:
        assert self.command(line) == f"git {line}"

    def _fake_run(self, argv: list[str]) -> MagicMock:
        display = " ".join(quote_arg(arg) for arg in argv)
        self.executed.append(display)
        return MagicMock(returncode=self.exit_codes.get(display, 0))

    def run(self, line: Union[str, list[str]]) -> int:
        """Rewrite and run a command line, recording executed commands."""
        outcome = self.rewrite(line)
        argv = shlex.split(line) if isinstance(line, str) else line
        return Runner(noop="--noop" in argv, run=self._fake_run, session=MagicMock()).run(outcome)


@pytest.fixture
def hub() -> Hub:
    """A hub harness with the default repository stubs."""
    return Hub()
