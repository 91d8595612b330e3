"""Client for the GitHub hosting API."""

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

import requests
import yaml

from . import __version__
from .config import HubConfig
from .context import Context
from .project import GitHubProject

logger = logging.getLogger(__name__)

TOKEN_HINT = "Check your token configuration (`git config github.token`)"


class ApiError(Exception):
    """Raised when an API call fails."""

    def __init__(
        self,
        action: str,
        reason: str,
        status: Optional[int] = None,
        details: Optional[list[str]] = None,
    ):
        """Initialize API error.

        Args:
            action: What was being done, e.g. "creating repository"
            reason: Status line reason or transport error
            status: HTTP status code, None for transport failures
            details: Extra lines extracted from the response body
        """
        self.action = action
        self.reason = reason
        self.status = status
        self.details = details or []
        super().__init__(format_api_error(self))


def format_api_error(error: "ApiError") -> str:
    """Render an API failure as a summary line plus detail lines."""
    summary = f"Error {error.action}: {error.reason}"
    if error.status is not None:
        summary += f" (HTTP {error.status})"
    return "\n".join([summary, *error.details])


@dataclass
class ApiResponse:
    """Status and decoded body of an API response."""

    status: int
    data: Any = None


@dataclass
class Repository:
    """Repository record returned by create and fork."""

    owner: str
    name: str
    private: bool = False


@dataclass
class PullRequest:
    """Pull request record."""

    html_url: Optional[str] = None
    head_label: Optional[str] = None
    head_private: bool = False

    @property
    def head_owner(self) -> Optional[str]:
        return self.head_label.split(":", 1)[0] if self.head_label else None

    @property
    def head_branch(self) -> Optional[str]:
        if not self.head_label or ":" not in self.head_label:
            return None
        return self.head_label.split(":", 1)[1]


def secure_transport_available() -> bool:
    """Check whether the interpreter was built with TLS support."""
    try:
        import ssl  # noqa: F401
    except ImportError:
        return False
    return True


def _mapping(value: Any) -> dict:
    """Treat anything but a decoded object as empty."""
    return value if isinstance(value, dict) else {}


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


class GitHubAPI:
    """Wrapper for the hosting API (v2 endpoints)."""

    def __init__(
        self,
        context: Context,
        config: Optional[HubConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        """Initialize API client.

        Args:
            context: Repository context providing per-host credentials
            config: Tool settings (transport policy)
            session: HTTP session (default: a new requests.Session)
        """
        self.context = context
        self.config = config or HubConfig()
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", f"hub {__version__}")

    def scheme(self, action: str) -> str:
        if secure_transport_available():
            return "https"
        if self.config.api.allow_insecure_http:
            logger.warning("TLS support unavailable; using plain HTTP")
            return "http"
        raise ApiError(action, "secure transport unavailable")

    def url(self, host: str, path: str, action: str) -> str:
        return f"{self.scheme(action)}://{host}/api/v2/{path}"

    def _auth(self, host: str) -> Optional[tuple[str, str]]:
        user = self.context.github_user(host)
        token = self.context.github_token(host)
        if user and token:
            return (f"{user}/token", token)
        return None

    def request(
        self,
        method: str,
        host: str,
        path: str,
        action: str,
        data: Optional[dict[str, str]] = None,
        decode: bool = True,
    ) -> ApiResponse:
        """Issue an API request.

        Args:
            method: HTTP method
            host: API host
            path: Path below /api/v2/, starting with "json/" or "yaml/"
            action: Description used in error messages
            data: Form fields for the request body
            decode: Parse the response body

        Returns:
            ApiResponse for 2xx responses

        Raises:
            ApiError: For non-2xx responses and transport failures
        """
        url = self.url(host, path, action)
        logger.debug("API %s %s", method, url)
        try:
            response = self.session.request(
                method,
                url,
                auth=self._auth(host),
                data=data,
            )
        except requests.RequestException as e:
            raise ApiError(action, str(e)) from e

        status = response.status_code
        if not 200 <= status < 300:
            raise ApiError(
                action,
                (response.reason or "").strip() or "request failed",
                status,
                self._error_details(response),
            )

        body = response.text if decode else ""
        return ApiResponse(status, self._decode(path, body, action))

    def check_exists(self, host: str, path: str, action: str) -> bool:
        """Status-only existence check: 2xx means present, 404 absent."""
        try:
            self.request("GET", host, path, action, decode=False)
        except ApiError as e:
            if e.status == 404:
                return False
            raise
        return True

    @staticmethod
    def _decode(path: str, body: str, action: str) -> Any:
        if not body or not body.strip():
            return None
        try:
            if path.startswith("yaml/"):
                return yaml.safe_load(body)
            return json.loads(body)
        except (ValueError, yaml.YAMLError) as e:
            raise ApiError(action, f"invalid response body: {e}") from e

    @staticmethod
    def _error_details(response: requests.Response) -> list[str]:
        details: list[str] = []
        if response.status_code == 401:
            details.append(TOKEN_HINT)
        content_type = (response.headers or {}).get("Content-Type", "")
        if "json" in content_type:
            try:
                data = json.loads(response.text or "")
            except ValueError:
                data = None
            error = data.get("error") if isinstance(data, dict) else None
            if isinstance(error, list):
                details.extend(str(e) for e in error)
            elif error:
                details.append(str(error))
        return details

    # =========================================================================
    # Endpoints
    # =========================================================================

    def repo_exists(self, project: GitHubProject) -> bool:
        return self.check_exists(
            project.host,
            f"yaml/repos/show/{project.owner}/{project.name}",
            "checking repository",
        )

    def create_repo(
        self,
        project: GitHubProject,
        private: bool = False,
        description: Optional[str] = None,
        homepage: Optional[str] = None,
        in_organization: bool = False,
    ) -> Repository:
        """Create a repository for the user or an organization."""
        data = {"name": project.name_with_owner if in_organization else project.name}
        if private:
            data["public"] = "0"
        if description:
            data["description"] = description
        if homepage:
            data["homepage"] = homepage
        self.request("POST", project.host, "json/repos/create", "creating repository", data)
        return Repository(project.owner, project.name, private)

    def fork_repo(self, project: GitHubProject) -> Optional[Repository]:
        response = self.request(
            "POST",
            project.host,
            f"yaml/repos/fork/{project.owner}/{project.name}",
            "creating fork",
        )
        repo = response.data.get("repository") if isinstance(response.data, dict) else None
        if not isinstance(repo, dict):
            return None
        return Repository(
            owner=str(repo.get("owner", "")),
            name=str(repo.get("name", "")),
            private=bool(repo.get("private", False)),
        )

    def create_pull_request(
        self,
        project: GitHubProject,
        base: str,
        head: str,
        title: Optional[str] = None,
        body: Optional[str] = None,
        issue: Optional[str] = None,
    ) -> PullRequest:
        data = {"pull[base]": base, "pull[head]": head}
        if issue:
            data["pull[issue]"] = issue
        else:
            data["pull[title]"] = title or ""
            if body:
                data["pull[body]"] = body
        response = self.request(
            "POST",
            project.host,
            f"json/pulls/{project.owner}/{project.name}",
            "creating pull request",
            data,
        )
        pull = _mapping(_mapping(response.data).get("pull"))
        return PullRequest(html_url=_text(pull.get("html_url")))

    def pull_request(self, project: GitHubProject, number: str) -> PullRequest:
        response = self.request(
            "GET",
            project.host,
            f"json/pulls/{project.owner}/{project.name}/{number}",
            "fetching pull request",
        )
        pull = _mapping(_mapping(response.data).get("pull"))
        head = _mapping(pull.get("head"))
        repository = _mapping(head.get("repository"))
        return PullRequest(
            html_url=_text(pull.get("html_url")),
            head_label=_text(head.get("label")),
            head_private=bool(repository.get("private", False)),
        )
