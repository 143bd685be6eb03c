"""Exception hierarchy for codeql-issue-maker."""

from .analysis import (
    AnalysisError,
    AnalysisFailedError,
    CodeQLInstallError,
    CommandError,
    DatabaseCreationError,
    FileAccessError,
    MalformedReportError,
)
from .base import CodeQLIssueMakerError
from .config import (
    ConfigNotFoundError,
    ConfigurationError,
    InvalidConfigError,
    MissingInputError,
)
from .tracker import IssueTrackerError

__all__ = [
    "CodeQLIssueMakerError",
    "AnalysisError",
    "FileAccessError",
    "CommandError",
    "CodeQLInstallError",
    "DatabaseCreationError",
    "AnalysisFailedError",
    "MalformedReportError",
    "ConfigurationError",
    "ConfigNotFoundError",
    "InvalidConfigError",
    "MissingInputError",
    "IssueTrackerError",
]
