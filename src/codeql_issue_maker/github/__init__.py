"""GitHub issue tracking for CodeQL findings."""

from .client import GitHubClient
from .issues import compute_fingerprint, create_issues_from_sarif

__all__ = ["GitHubClient", "compute_fingerprint", "create_issues_from_sarif"]
