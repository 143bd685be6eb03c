"""Thin wrapper around ``subprocess`` for CodeQL and archive tools."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Mapping, Optional, Sequence, Union

from ..exceptions import CommandError
from ..logging_config import get_logger

logger = get_logger(__name__)

STDERR_TAIL_LINES = 20


def _tail(text: str, lines: int = STDERR_TAIL_LINES) -> str:
    return "\n".join(text.strip().splitlines()[-lines:])


def run_command(
    args: Sequence[Union[str, Path]],
    *,
    cwd: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
    check: bool = True,
) -> subprocess.CompletedProcess[str]:
    """Run ``args`` and capture its output.

    Output is logged at DEBUG. With ``check`` a non-zero exit raises
    CommandError; a missing executable always does.
    """
    command = [str(a) for a in args]
    logger.debug(f"Running: {' '.join(command)}")

    try:
        result = subprocess.run(
            command,
            cwd=str(cwd) if cwd is not None else None,
            env=dict(env) if env is not None else None,
            capture_output=True,
            text=True,
        )
    except OSError as e:
        raise CommandError(command, None, str(e))

    for line in (result.stdout or "").splitlines():
        logger.debug(line)

    if check and result.returncode != 0:
        raise CommandError(command, result.returncode, _tail(result.stderr or ""))

    return result


def run_codeql(
    codeql_path: Union[str, Path], args: Sequence[Union[str, Path]], **kwargs
) -> subprocess.CompletedProcess[str]:
    return run_command([codeql_path, *args], **kwargs)
