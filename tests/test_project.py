"""Tests for project references, remote URLs and protocol selection."""

import pytest

from hubwrap.project import (
    GitHubProject,
    GitHubUrl,
    Protocol,
    SshConfig,
    is_gist_url,
    is_url_like,
    parse_remote_url,
    select_protocol,
)

HOSTS = ["github.com", "git.my.org"]


class TestSelectProtocol:
    """Tests for clone protocol selection."""

    def test_public_github(self) -> None:
        """Test git:// on github.com."""
        assert select_protocol("github.com") is Protocol.GIT

    def test_private(self) -> None:
        """Test that private always means ssh."""
        assert select_protocol("github.com", private=True, https_preferred=True) is Protocol.SSH

    def test_https_preferred(self) -> None:
        """Test the https preference on any host."""
        assert select_protocol("github.com", https_preferred=True) is Protocol.HTTPS
        assert select_protocol("git.my.org", https_preferred=True) is Protocol.HTTPS

    def test_enterprise_default(self) -> None:
        """Test ssh on enterprise hosts."""
        assert select_protocol("git.my.org") is Protocol.SSH


class TestGitHubProject:
    """Tests for GitHubProject URLs."""

    def test_clone_urls(self) -> None:
        """Test each protocol."""
        project = GitHubProject("defunkt", "hub")
        assert project.clone_url(Protocol.GIT) == "git://github.com/defunkt/hub.git"
        assert project.clone_url(Protocol.SSH) == "git@github.com:defunkt/hub.git"
        assert project.clone_url(Protocol.HTTPS) == "https://github.com/defunkt/hub.git"

    def test_clone_url_keeps_git_suffix(self) -> None:
        """Test that .git is not doubled."""
        assert GitHubProject("a", "b.git").clone_url(Protocol.GIT) == "git://github.com/a/b.git"

    def test_web_url(self) -> None:
        """Test repository pages."""
        project = GitHubProject("defunkt", "hub", "git.my.org")
        assert project.web_url() == "https://git.my.org/defunkt/hub"
        assert project.web_url("/issues") == "https://git.my.org/defunkt/hub/issues"

    @pytest.mark.parametrize(
        "path,expected",
        [
            (None, "/wiki"),
            ("/wiki", "/wiki"),
            ("/commits/master", "/wiki/_history"),
            ("/pages", "/wiki/_pages"),
            ("/compare/1.0...fix", "/wiki/_compare/1.0...fix"),
        ],
    )
    def test_wiki_web_url(self, path, expected) -> None:
        """Test that wiki repositories map into the wiki section."""
        project = GitHubProject("defunkt", "hub.wiki")
        assert project.web_url(path) == f"https://github.com/defunkt/hub{expected}"

    def test_owned_by(self) -> None:
        """Test switching owners."""
        assert GitHubProject("a", "hub", "git.my.org").owned_by("b") == GitHubProject("b", "hub", "git.my.org")
        assert str(GitHubProject("a", "hub")) == "a/hub"


class TestParseRemoteUrl:
    """Tests for recognizing GitHub remotes."""

    @pytest.mark.parametrize(
        "url",
        [
            "git://github.com/defunkt/hub.git",
            "https://github.com/defunkt/hub.git",
            "https://github.com/defunkt/hub",
            "git@github.com:defunkt/hub.git",
            "ssh://git@github.com/defunkt/hub.git",
            "GIT@GITHUB.COM:defunkt/hub.git",
        ],
    )
    def test_github_urls(self, url) -> None:
        """Test the URL forms git accepts."""
        assert parse_remote_url(url, HOSTS) == GitHubProject("defunkt", "hub")

    def test_enterprise_url(self) -> None:
        """Test a configured enterprise host."""
        assert parse_remote_url("git@git.my.org:mislav/hub.git", HOSTS) == GitHubProject(
            "mislav", "hub", "git.my.org"
        )

    @pytest.mark.parametrize(
        "url",
        ["git@example.com:defunkt/hub.git", "/path/to/repo.git", "https://github.com/defunkt", "../hub"],
    )
    def test_not_github(self, url) -> None:
        """Test other hosts and paths."""
        assert parse_remote_url(url, HOSTS) is None

    def test_ssh_alias(self, tmp_path) -> None:
        """Test that aliases are only resolved for ssh URLs."""
        config = tmp_path / "ssh_config"
        config.write_text("# work\nHost gh work-*\n    HostName=github.com\n")
        ssh = SshConfig(files=[str(config)])
        assert parse_remote_url("gh:defunkt/hub.git", HOSTS, ssh) == GitHubProject("defunkt", "hub")
        assert parse_remote_url("git@work-1:defunkt/hub.git", HOSTS, ssh) == GitHubProject("defunkt", "hub")
        assert parse_remote_url("https://gh/defunkt/hub.git", HOSTS, ssh) is None


class TestGitHubUrl:
    """Tests for web URLs inside repositories."""

    def test_pull_url(self) -> None:
        """Test the project and path of a pull request URL."""
        url = GitHubUrl.parse("https://github.com/defunkt/hub/pull/73/files#diff", HOSTS)
        assert url.project == GitHubProject("defunkt", "hub")
        assert url.project_path == "pull/73/files"
        assert url.match(r"pull/(\d+)").group(1) == "73"

    def test_repository_root(self) -> None:
        """Test a URL without a subpage."""
        url = GitHubUrl.parse("http://git.my.org/mislav/hub.git", HOSTS)
        assert url.project == GitHubProject("mislav", "hub", "git.my.org")
        assert url.project_path == ""

    def test_rejected(self) -> None:
        """Test unknown hosts, non-web URLs and bare owners."""
        assert GitHubUrl.parse("https://example.com/defunkt/hub", HOSTS) is None
        assert GitHubUrl.parse("git://github.com/defunkt/hub.git", HOSTS) is None
        assert GitHubUrl.parse("https://github.com/defunkt", HOSTS) is None


class TestHelpers:
    """Tests for URL classification helpers."""

    @pytest.mark.parametrize(
        "arg",
        ["git://github.com/a/b.git", "git@github.com:a/b.git", "./test", "../copy", "/path", "file:///repo"],
    )
    def test_url_like(self, arg) -> None:
        """Test URLs and paths."""
        assert is_url_like(arg)

    @pytest.mark.parametrize("arg", ["rtomayko/ronn", "resque", "git.my.org:another/repo", "hook.js"])
    def test_not_url_like(self, arg) -> None:
        """Test shorthand references."""
        assert not is_url_like(arg)

    def test_gist_url(self) -> None:
        """Test gist hosts of known GitHub hosts."""
        assert is_gist_url("https://gist.github.com/8da7fb575debd88c54cf", HOSTS)
        assert is_gist_url("https://gist.git.my.org/1234", HOSTS)
        assert not is_gist_url("https://github.com/defunkt/hub", HOSTS)
        assert not is_gist_url("https://gist.example.com/1234", HOSTS)
