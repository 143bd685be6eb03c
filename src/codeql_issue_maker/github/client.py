"""Minimal GitHub REST client for the issues endpoints this action uses."""

from __future__ import annotations

import threading
from typing import Any, Optional

import requests

from ..exceptions import InvalidConfigError, IssueTrackerError, MissingInputError
from ..logging_config import get_logger
from ..models import IssueData, TrackedIssue

logger = get_logger(__name__)

DEFAULT_API_URL = "https://api.github.com"
HTTP_TIMEOUT = 30
PER_PAGE = 100


class GitHubClient:
    """Lists and creates issues in one repository.

    Args:
        token: Token with ``issues: write`` permission
        repository: ``owner/name``
        api_url: REST API base URL (GitHub Enterprise Server uses ``/api/v3``)
        session: Optional preconfigured session, mainly for tests. It is used
            as given by every thread, so it must be safe to share.

    Without ``session`` each thread gets its own ``requests.Session``;
    issue creation runs on a thread pool and sessions are not thread-safe.
    """

    def __init__(
        self,
        token: str,
        repository: Optional[str],
        api_url: str = DEFAULT_API_URL,
        timeout: int = HTTP_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        if not token:
            raise MissingInputError("token")
        if not repository or repository.count("/") != 1 or not all(repository.split("/")):
            raise InvalidConfigError("repository", repository, "expected owner/name")

        self.repository = repository
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        self._shared_session = session
        if session is not None:
            session.headers.update(self.headers)
        self._local = threading.local()

    def _session(self) -> requests.Session:
        if self._shared_session is not None:
            return self._shared_session
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.update(self.headers)
            self._local.session = session
        return session

    @property
    def issues_url(self) -> str:
        return f"{self.api_url}/repos/{self.repository}/issues"

    def _request(self, method: str, url: str, operation: str, **kwargs: Any) -> requests.Response:
        kwargs.setdefault("timeout", self.timeout)
        try:
            response = self._session().request(method, url, **kwargs)
        except requests.RequestException as e:
            raise IssueTrackerError(operation, str(e)) from e

        if response.status_code >= 400:
            try:
                detail = response.json().get("message", response.text)
            except ValueError:
                detail = response.text
            raise IssueTrackerError(operation, str(detail), status_code=response.status_code)

        return response

    def list_issues(self, label: str, state: str = "all") -> list[TrackedIssue]:
        """Every issue carrying ``label`` in ``state``, following pagination.

        Pull requests share the issues endpoint and are skipped.
        """
        url: Optional[str] = self.issues_url
        params: Optional[dict[str, Any]] = {"labels": label, "state": state, "per_page": PER_PAGE}
        issues: list[TrackedIssue] = []

        while url:
            response = self._request("GET", url, "list issues", params=params)
            for item in response.json():
                if "pull_request" in item:
                    continue
                issues.append(
                    TrackedIssue(
                        number=int(item["number"]),
                        title=item.get("title", ""),
                        state=item.get("state", "open"),
                    )
                )
            # The "next" link already carries the query string
            url = response.links.get("next", {}).get("url")
            params = None

        logger.debug(f"Fetched {len(issues)} existing issues labelled {label!r}")
        return issues

    def create_issue(self, issue: IssueData) -> int:
        """Create ``issue`` and return its number."""
        response = self._request(
            "POST", self.issues_url, f"create issue {issue.title!r}", json=issue.to_payload()
        )
        return int(response.json()["number"])
