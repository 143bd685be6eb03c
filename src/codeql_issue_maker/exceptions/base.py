"""Root of the errors that fail an action run."""

from typing import Dict, Optional


class CodeQLIssueMakerError(Exception):
    """An error that stops the run and becomes its ``::error::`` annotation.

    ``message`` says which stage failed; ``details`` carries the values
    needed to reproduce it (paths, commands, HTTP status). Only the last
    non-empty line of a multi-line detail is shown in ``str()``, which is
    where CodeQL and the API put the actual failure. The full value stays
    in ``details`` for debug logging.
    """

    def __init__(self, message: str, details: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if not self.details:
            return self.message
        details_str = ", ".join(f"{k}={_last_line(v)}" for k, v in self.details.items())
        return f"{self.message} ({details_str})"


def _last_line(value: str) -> str:
    lines = [line.strip() for line in str(value).splitlines() if line.strip()]
    return lines[-1] if lines else ""
