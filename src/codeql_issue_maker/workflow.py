"""GitHub Actions runner interface: inputs and workflow commands."""

from __future__ import annotations

import os
import sys
from contextlib import contextmanager
from typing import Iterator, Mapping, Optional, TextIO

from .exceptions import MissingInputError


class GitHubActionsFormatter:
    """Format output for GitHub Actions workflow commands.

    Produces annotations that appear inline on PR diffs:
    ::error file=path,line=42::Message here
    """

    @staticmethod
    def _location(path: Optional[str], line: Optional[int]) -> str:
        if not path:
            return ""
        loc = f" file={path}"
        if line:
            loc += f",line={line}"
        return loc

    @staticmethod
    def error(message: str, path: Optional[str] = None, line: Optional[int] = None) -> str:
        return f"::error{GitHubActionsFormatter._location(path, line)}::{escape_data(message)}"

    @staticmethod
    def notice(message: str, path: Optional[str] = None, line: Optional[int] = None) -> str:
        return f"::notice{GitHubActionsFormatter._location(path, line)}::{escape_data(message)}"

    @staticmethod
    def group(title: str) -> str:
        return f"::group::{title}"

    @staticmethod
    def endgroup() -> str:
        return "::endgroup::"


def escape_data(message: str) -> str:
    """Escape characters the runner treats as command delimiters."""
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def is_github_actions(env: Optional[Mapping[str, str]] = None) -> bool:
    """Check if running in GitHub Actions."""
    environ = os.environ if env is None else env
    return environ.get("GITHUB_ACTIONS") == "true"


def get_input(
    name: str, required: bool = False, env: Optional[Mapping[str, str]] = None
) -> str:
    """Read an action input the way the runner exposes it.

    The runner sets ``INPUT_<NAME>`` with the name upper-cased and spaces
    replaced by underscores; hyphens are kept. The underscored form is
    accepted too so inputs can be set by hand in a shell.

    Raises:
        MissingInputError: If ``required`` and the input is empty
    """
    environ = os.environ if env is None else env
    key = f"INPUT_{name.replace(' ', '_').upper()}"
    value = environ.get(key)
    if value is None:
        value = environ.get(key.replace("-", "_"), "")
    value = value.strip()

    if required and not value:
        raise MissingInputError(name)
    return value


def set_failed(message: str, stream: Optional[TextIO] = None) -> None:
    """Emit an error annotation for a failed run."""
    emit(GitHubActionsFormatter.error(message), stream)


def emit(command: str, stream: Optional[TextIO] = None) -> None:
    print(command, file=stream or sys.stdout, flush=True)


@contextmanager
def workflow_group(
    title: str, env: Optional[Mapping[str, str]] = None, stream: Optional[TextIO] = None
) -> Iterator[None]:
    """Fold everything logged inside the block under ``title`` in the run log.

    Outside GitHub Actions this does nothing.
    """
    enabled = is_github_actions(env)
    if enabled:
        emit(GitHubActionsFormatter.group(title), stream)
    try:
        yield
    finally:
        if enabled:
            emit(GitHubActionsFormatter.endgroup(), stream)
