"""
Safe file operations for codeql-issue-maker.

Provides directory walking, copying and text I/O that report failures as
FileAccessError.
"""

import os
import shutil
from collections.abc import Generator
from pathlib import Path
from typing import Optional, Union

from .exceptions import FileAccessError

PathLike = Union[str, Path]


def ensure_directory_exists(dir_path: PathLike) -> Path:
    """Create ``dir_path`` and any missing parents."""
    path = Path(dir_path)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FileAccessError(path, f"Cannot create directory: {e}")
    return path


def safe_read_file(filepath: PathLike, encoding: str = "utf-8") -> str:
    """
    Read a text file.

    Raises:
        FileAccessError: If the file cannot be read or decoded
    """
    filepath = Path(filepath)
    try:
        with open(filepath, encoding=encoding) as f:
            return f.read()
    except UnicodeDecodeError as e:
        raise FileAccessError(filepath, f"Encoding error: {e}")
    except OSError as e:
        raise FileAccessError(filepath, f"OS error: {e}")


def safe_write_file(filepath: PathLike, content: str, encoding: str = "utf-8") -> None:
    """
    Write a text file, creating the parent directory if needed.

    Raises:
        FileAccessError: If file cannot be written
    """
    filepath = Path(filepath)
    ensure_directory_exists(filepath.parent)
    try:
        with open(filepath, "w", encoding=encoding) as f:
            f.write(content)
    except OSError as e:
        raise FileAccessError(filepath, f"Write failed: {e}")


def remove_directory(dir_path: PathLike) -> None:
    """
    Delete ``dir_path`` and everything below it; a missing directory is fine.

    Raises:
        FileAccessError: If the tree cannot be removed
    """
    path = Path(dir_path)
    if not path.exists():
        return
    try:
        shutil.rmtree(path)
    except OSError as e:
        raise FileAccessError(path, f"Cannot remove directory: {e}")


def copy_file(source: PathLike, destination: PathLike) -> Path:
    """
    Copy ``source`` to ``destination``, creating intermediate directories.

    Raises:
        FileAccessError: If the copy fails
    """
    destination = Path(destination)
    ensure_directory_exists(destination.parent)
    try:
        shutil.copy2(source, destination)
    except OSError as e:
        raise FileAccessError(source, f"Copy to {destination} failed: {e}")
    return destination


def relative_posix_path(root: PathLike, path: PathLike) -> str:
    """Relative path from ``root`` to ``path`` using forward slashes."""
    return Path(os.path.relpath(path, root)).as_posix()


def walk_files(
    root_dir: PathLike,
    skip_dirs: Optional[set[Path]] = None,
    follow_symlinks: bool = False,
) -> Generator[Path, None, None]:
    """
    Yield every file below ``root_dir``.

    Args:
        root_dir: Directory to walk
        skip_dirs: Absolute directories whose contents are never yielded
        follow_symlinks: Whether to descend into symlinked directories

    Yields:
        File paths (directories are never yielded)

    Raises:
        FileAccessError: If the root cannot be listed
    """
    root = Path(root_dir)
    skip = {p.resolve() for p in (skip_dirs or set())}

    if not root.is_dir():
        raise FileAccessError(root, "Directory scan failed: not a directory")

    def _on_error(error: OSError) -> None:
        raise FileAccessError(error.filename or root, f"Directory scan failed: {error}")

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error, followlinks=follow_symlinks):
        current = Path(dirpath)
        dirnames[:] = sorted(d for d in dirnames if (current / d).resolve() not in skip)
        for name in sorted(filenames):
            yield current / name
