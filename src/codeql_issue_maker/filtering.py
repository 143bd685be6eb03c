"""Stage the files CodeQL is allowed to see.

The working tree is walked once, narrowed by the config file's ``paths`` and
``paths-ignore`` lists, then by the ``exclude``/``include`` inputs, and every
surviving file is copied into a staging directory that becomes the database
source root.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Optional, Sequence, Union

from .file_ops import (
    copy_file,
    ensure_directory_exists,
    relative_posix_path,
    remove_directory,
    walk_files,
)
from .logging_config import get_logger
from .models import CodeQLConfig, FilterResult
from .patterns import matches_pattern, split_patterns

logger = get_logger(__name__)

STAGING_DIR_NAME = "filtered-repo"

SYSTEM_PREFIXES = (".git/", ".github/", "node_modules/")

Patterns = Union[str, Sequence[str], None]


def is_system_file(relative_path: str) -> bool:
    """Version-control, CI and dependency-cache files are never staged."""
    return relative_path.startswith(SYSTEM_PREFIXES)


def _matches_config_path(relative_path: str, config_path: str) -> bool:
    config_path = config_path.rstrip("/")
    if not config_path:
        return False
    return relative_path.startswith(config_path) or matches_pattern(
        relative_path, [f"{config_path}/**"]
    )


def apply_config_filtering(relative_paths: list[str], config: CodeQLConfig) -> list[str]:
    """Apply ``paths`` (allow-list) then ``paths-ignore`` (deny-list)."""
    filtered = list(relative_paths)

    if config.paths:
        filtered = [
            rel for rel in filtered if any(_matches_config_path(rel, p) for p in config.paths)
        ]

    if config.paths_ignore:
        filtered = [
            rel
            for rel in filtered
            if not any(_matches_config_path(rel, p) for p in config.paths_ignore)
        ]

    return filtered


def _as_list(patterns: Patterns) -> list[str]:
    if patterns is None:
        return []
    if isinstance(patterns, str):
        return split_patterns(patterns)
    return [p for p in patterns if p and p.strip()]


def should_include_file(
    relative_path: str,
    include_patterns: Patterns = None,
    exclude_patterns: Patterns = None,
) -> bool:
    """Exclude patterns are checked first and always win."""
    excludes = _as_list(exclude_patterns)
    if excludes and matches_pattern(relative_path, excludes):
        return False

    includes = _as_list(include_patterns)
    if includes:
        return matches_pattern(relative_path, includes)

    return True


def filter_files(
    include_patterns: Patterns = None,
    exclude_patterns: Patterns = None,
    config: Optional[CodeQLConfig] = None,
    root: Optional[Union[str, Path]] = None,
    staging_dir: Optional[Union[str, Path]] = None,
    max_workers: int = 8,
) -> FilterResult:
    """Copy every file that passes the filters into a staging directory.

    Args:
        include_patterns: Comma-separated string or list of include globs
        exclude_patterns: Comma-separated string or list of exclude globs
        config: Parsed config file, applied before the pattern inputs
        root: Tree to scan (default: current directory)
        staging_dir: Destination (default: ``<root>/filtered-repo``);
            emptied first
        max_workers: Parallel copy threads

    Returns:
        FilterResult with the staging directory and both path lists

    Raises:
        FileAccessError: If the tree cannot be walked or staged
    """
    root_path = Path(root) if root is not None else Path.cwd()
    staging_path = Path(staging_dir) if staging_dir is not None else root_path / STAGING_DIR_NAME
    # The staged tree holds exactly this run's files
    remove_directory(staging_path)
    ensure_directory_exists(staging_path)

    candidates = [
        relative_posix_path(root_path, path)
        for path in walk_files(root_path, skip_dirs={staging_path})
    ]
    candidates = [rel for rel in candidates if not is_system_file(rel)]

    if config is not None:
        candidates = apply_config_filtering(candidates, config)

    result = FilterResult(staging_dir=str(staging_path))
    for rel in candidates:
        if should_include_file(rel, include_patterns, exclude_patterns):
            result.included.append(rel)
            logger.debug(f"Including: {rel}")
        else:
            result.excluded.append(rel)
            logger.debug(f"Excluding: {rel}")

    _copy_all(root_path, staging_path, result.included, max_workers)

    logger.info(
        f"Total files after filtering: {len(result.included)} included, "
        f"{len(result.excluded)} excluded"
    )
    return result


def _copy_all(root: Path, staging: Path, relative_paths: list[str], max_workers: int) -> None:
    if not relative_paths:
        return

    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
        futures = {
            executor.submit(copy_file, root / rel, staging / rel): rel for rel in relative_paths
        }
        # Every copy finishes before the first failure is re-raised
        errors = []
        for future in as_completed(futures):
            try:
                future.result()
            except Exception as e:
                logger.error(f"Failed to stage {futures[future]}: {e}")
                errors.append(e)

    if errors:
        raise errors[0]
