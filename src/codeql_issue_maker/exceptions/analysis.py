"""Analysis-related exceptions: file staging, CodeQL processes, SARIF reports."""

from pathlib import Path
from typing import Optional, Sequence, Union

from .base import CodeQLIssueMakerError


class AnalysisError(CodeQLIssueMakerError):
    """Base class for analysis-related errors."""
    pass


class FileAccessError(AnalysisError):
    """Raised when a file cannot be read, copied or written."""

    def __init__(self, filepath: Union[str, Path], reason: str):
        super().__init__(
            f"Cannot access file: {filepath}",
            details={"filepath": str(filepath), "reason": reason},
        )
        self.filepath = Path(filepath)
        self.reason = reason


class CommandError(AnalysisError):
    """Raised when an external command exits non-zero or cannot be started."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: Optional[int],
        stderr: str = "",
    ):
        details = {"command": " ".join(command)}
        if returncode is not None:
            details["exit_code"] = str(returncode)
        if stderr:
            details["stderr"] = stderr
        super().__init__(f"Command failed: {command[0] if command else '<empty>'}", details=details)
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr


class CodeQLInstallError(AnalysisError):
    """Raised when the CodeQL CLI can be neither located nor downloaded."""

    def __init__(self, reason: str):
        super().__init__(f"CodeQL download failed: {reason}", details={"reason": reason})
        self.reason = reason


class DatabaseCreationError(AnalysisError):
    """Raised when ``codeql database create`` fails."""

    def __init__(self, db_path: Union[str, Path], reason: str):
        super().__init__(
            f"Failed to create CodeQL database: {db_path}",
            details={"db_path": str(db_path), "reason": reason},
        )
        self.db_path = Path(db_path)
        self.reason = reason


class AnalysisFailedError(AnalysisError):
    """Raised when both the selected and the fallback query suites fail."""

    def __init__(self, query_pack: str, fallback_pack: str, reason: str):
        super().__init__(
            "CodeQL analysis failed with primary and fallback query packs",
            details={"query_pack": query_pack, "fallback_pack": fallback_pack, "reason": reason},
        )
        self.query_pack = query_pack
        self.fallback_pack = fallback_pack
        self.reason = reason


class MalformedReportError(AnalysisError):
    """Raised when a SARIF file exists but cannot be parsed."""

    def __init__(self, path: Union[str, Path], reason: str):
        super().__init__(
            f"Failed to process SARIF file: {path}",
            details={"path": str(path), "reason": reason},
        )
        self.path = Path(path)
        self.reason = reason
