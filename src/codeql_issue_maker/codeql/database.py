"""CodeQL database creation."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from ..exceptions import CommandError, DatabaseCreationError
from ..logging_config import get_logger
from ..models import CodeQLConfig
from .runner import run_codeql

logger = get_logger(__name__)

DATABASE_DIR_NAME = "codeql-db"


def get_database_path(root: Optional[Union[str, Path]] = None) -> Path:
    base = Path(root) if root is not None else Path.cwd()
    return base / DATABASE_DIR_NAME


def effective_language(language: str, config: Optional[CodeQLConfig] = None) -> str:
    """The config file's ``language`` wins over the action input."""
    if config is not None and config.language:
        return config.language
    return language


def create_database(
    codeql_path: Union[str, Path],
    source_root: Union[str, Path],
    language: str,
    config: Optional[CodeQLConfig] = None,
    db_path: Optional[Union[str, Path]] = None,
) -> Path:
    """Build a database from the staged sources.

    Raises:
        DatabaseCreationError: If ``codeql database create`` fails
    """
    logger.info("Creating CodeQL database from filtered files...")
    db = Path(db_path) if db_path is not None else get_database_path()
    lang = effective_language(language, config)

    try:
        run_codeql(
            codeql_path,
            [
                "database",
                "create",
                str(db),
                f"--language={lang}",
                f"--source-root={source_root}",
                "--overwrite",
            ],
        )
    except CommandError as e:
        raise DatabaseCreationError(db, str(e)) from e

    logger.info(f"CodeQL database created at {db}")
    return db
