"""
GitHub REST API client.
"""

import base64
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

import requests

from .errors import AuthenticationError, NotFoundError, UpstreamError, ValidationError
from .models import Repository
from .settings import get_github_api_url, get_http_timeout

logger = logging.getLogger(__name__)


class GitHubClient:
    """Thin wrapper over the endpoints the wizard needs."""

    def __init__(self, access_token: str, base_url: Optional[str] = None, timeout: Optional[float] = None):
        if not access_token:
            raise AuthenticationError("No GitHub access token provided")
        self.base_url = (base_url or get_github_api_url()).rstrip("/")
        self.timeout = timeout or get_http_timeout()
        self.session = requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        })

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            return self.session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"GitHub request failed: GET {path}: {e}")
            raise UpstreamError("Could not reach GitHub")

    def _check(self, response: requests.Response, what: str) -> None:
        if response.status_code == 401:
            raise AuthenticationError("GitHub rejected the access token")
        if response.status_code >= 400:
            logger.error(f"GitHub {what} failed with HTTP {response.status_code}")
            raise UpstreamError(f"Failed to fetch {what}")

    def get_authenticated_user(self) -> Dict[str, Any]:
        """Return ``login`` and ``email`` of the token's owner."""
        response = self._get("/user")
        self._check(response, "user")
        data = response.json()
        return {"login": data.get("login"), "email": data.get("email")}

    def list_repositories(self) -> List[Repository]:
        """Repositories of the authenticated account, most recently updated first."""
        response = self._get("/user/repos", params={"sort": "updated", "per_page": 100})
        self._check(response, "repositories")
        repos = [Repository.from_dict(item) for item in response.json()]
        logger.info(f"Fetched {len(repos)} repositories")
        return repos

    def get_repository(self, owner: str, repo: str) -> Repository:
        """A single repository by owner and name."""
        response = self._get(f"/repos/{owner}/{repo}")
        if response.status_code == 404:
            raise NotFoundError(f"Repository {owner}/{repo} not found")
        self._check(response, "repository")
        return Repository.from_dict(response.json())

    def get_file_content(self, owner: str, repo: str, path: str) -> Optional[str]:
        """
        Decoded text of a file, or None when it cannot be fetched.

        Directories, missing files and network errors all return None.
        """
        try:
            response = self._get(f"/repos/{owner}/{repo}/contents/{path}")
        except UpstreamError:
            return None
        if response.status_code != 200:
            return None

        data = response.json()
        if not isinstance(data, dict) or "content" not in data:
            return None
        try:
            return base64.b64decode(data["content"]).decode("utf-8")
        except (ValueError, UnicodeDecodeError):
            logger.debug(f"Could not decode {owner}/{repo}:{path}")
            return None

    def list_directory(self, owner: str, repo: str, path: str = "") -> List[str]:
        """Names of the entries in a directory; empty on any failure."""
        suffix = f"/{path}" if path else ""
        try:
            response = self._get(f"/repos/{owner}/{repo}/contents{suffix}")
        except UpstreamError:
            return []
        if response.status_code != 200:
            return []

        data = response.json()
        if not isinstance(data, list):
            return []
        return [item.get("name") for item in data if item.get("name")]


def parse_repo_url(url: str) -> Tuple[str, str]:
    """
    Split a GitHub URL (or ``owner/repo``) into owner and repository name.

    Raises:
        ValidationError: If the URL does not name a repository
    """
    cleaned = url.strip()
    for prefix in ("https://github.com/", "http://github.com/", "git@github.com:"):
        if cleaned.startswith(prefix):
            cleaned = cleaned[len(prefix):]
            break
    if cleaned.endswith(".git"):
        cleaned = cleaned[:-4]

    parts = [p for p in cleaned.split("/") if p]
    if len(parts) < 2 or "://" in cleaned:
        raise ValidationError(f"Not a GitHub repository: {url}")
    return parts[0], parts[1]


_CLONE_URL = re.compile(r"(https://[^\s/@]+(?::\d+)?/\S+|git@[\w.-]+:\S+)")


def validate_clone_url(url: str) -> str:
    """
    Require an ``https://`` or ``git@host:`` clone URL.

    Raises:
        ValidationError: For any other scheme, or anything git could read as an option
    """
    if not isinstance(url, str) or not _CLONE_URL.fullmatch(url.strip()):
        raise ValidationError(f"Unsupported repository URL: {url!r}")
    return url.strip()
