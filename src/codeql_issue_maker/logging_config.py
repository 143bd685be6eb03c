"""
Logging for action runs.

Everything goes to stderr through rich, so stdout carries only workflow
commands (``::group::``, ``::error::``) for the runner to parse.
"""

import logging
from typing import Mapping, Optional

from rich.console import Console
from rich.logging import RichHandler

from .workflow import is_github_actions

LOGGER_NAME = "codeql_issue_maker"

# Runner logs are not a terminal; rich would otherwise wrap at 80 columns
RUNNER_LOG_WIDTH = 200


def setup_logging(
    verbose: bool = False,
    quiet: bool = False,
    log_file: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
) -> logging.Logger:
    """
    Configure the rich handler for this run.

    Stage progress is the useful output of a workflow step, so the default
    level is INFO. On a GitHub runner the time column is dropped because
    the log viewer already stamps every line.

    Args:
        verbose: DEBUG level, with source paths and traceback locals
        quiet: ERROR level only
        log_file: Also append plain-text logs here
        env: Environment to detect the runner from (defaults to os.environ)

    Returns:
        The codeql_issue_maker logger
    """
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    on_runner = is_github_actions(env)
    console = Console(stderr=True, width=RUNNER_LOG_WIDTH if on_runner else None)

    handlers: list[logging.Handler] = [
        RichHandler(
            console=console,
            rich_tracebacks=True,
            tracebacks_show_locals=verbose,
            markup=False,
            show_time=not on_runner,
            show_path=verbose,
        )
    ]

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s %(levelname)s [%(name)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
            )
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=level, format="%(message)s", datefmt="[%X]", handlers=handlers, force=True
    )

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger under the ``codeql_issue_maker`` namespace.

    ``get_logger(__name__)`` in a package module returns that module's
    logger; a bare stage name such as ``"sarif"`` is prefixed.
    """
    if name is None:
        return logging.getLogger(LOGGER_NAME)

    if not name.startswith(LOGGER_NAME):
        name = f"{LOGGER_NAME}.{name}"

    return logging.getLogger(name)
