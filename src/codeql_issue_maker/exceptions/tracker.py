"""Issue tracker exceptions."""

from typing import Optional

from .base import CodeQLIssueMakerError


class IssueTrackerError(CodeQLIssueMakerError):
    """Raised when the GitHub issues API returns an error."""

    def __init__(self, operation: str, reason: str, status_code: Optional[int] = None):
        details = {"operation": operation, "reason": reason}
        if status_code is not None:
            details["status"] = str(status_code)
        super().__init__(f"GitHub API request failed: {operation}", details=details)
        self.operation = operation
        self.reason = reason
        self.status_code = status_code
