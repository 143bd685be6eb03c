"""Query pack download and query suite selection."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Sequence, Union

from ..logging_config import get_logger
from .runner import run_codeql

logger = get_logger(__name__)

DEFAULT_QUERY_PACKS = (
    "codeql/javascript-queries",
    "codeql/python-queries",
    "codeql/java-queries",
    "codeql/csharp-queries",
    "codeql/cpp-queries",
    "codeql/go-queries",
)

DEFAULT_PROFILE = "security-and-quality"


def _suites(pack_language: str) -> dict[str, str]:
    prefix = f"codeql/{pack_language}-queries:codeql-suites/{pack_language}"
    return {
        "security-and-quality": f"{prefix}-security-and-quality.qls",
        "security-extended": f"{prefix}-security-extended.qls",
        # No separate "security" suite is published; use the broadest one
        "security": f"{prefix}-security-and-quality.qls",
    }


# TypeScript is analyzed by the JavaScript extractor and queries
QUERY_SUITES: dict[str, dict[str, str]] = {
    "javascript": _suites("javascript"),
    "typescript": _suites("javascript"),
    "python": _suites("python"),
    "java": _suites("java"),
    "csharp": _suites("csharp"),
    "cpp": _suites("cpp"),
    "go": _suites("go"),
}


def get_fallback_query_pack(language: str) -> str:
    return f"codeql/{language.lower()}-queries"


def get_query_pack(language: str, profile: str) -> str:
    """Pick the query suite for ``language`` and ``profile``.

    Unknown profiles fall back to ``security-and-quality``; unknown
    languages get their plain ``codeql/<language>-queries`` pack.
    """
    suites = QUERY_SUITES.get(language.lower())
    if suites is None:
        return get_fallback_query_pack(language)
    return suites.get(profile) or suites[DEFAULT_PROFILE]


def _download_pack(codeql_path: Union[str, Path], pack: str) -> bool:
    logger.info(f"Downloading query pack: {pack}")
    result = run_codeql(codeql_path, ["pack", "download", pack], check=False)
    if result.returncode != 0:
        logger.debug(f"Failed to download query pack: {pack} (exit {result.returncode})")
        return False
    return True


def download_query_packs(
    codeql_path: Union[str, Path],
    packs: Sequence[str] = DEFAULT_QUERY_PACKS,
    max_workers: int = 8,
) -> list[str]:
    """Download ``packs`` in parallel; failures are logged and skipped.

    Returns:
        Packs that downloaded successfully
    """
    logger.info("Downloading CodeQL query packs...")
    downloaded: list[str] = []

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(packs) or 1))) as executor:
        futures = {executor.submit(_download_pack, codeql_path, pack): pack for pack in packs}
        for future in as_completed(futures):
            pack = futures[future]
            try:
                if future.result():
                    downloaded.append(pack)
            except Exception as e:
                logger.debug(f"Failed to download query pack: {pack}: {e}")

    logger.info(f"Query pack download completed ({len(downloaded)}/{len(packs)})")
    return sorted(downloaded)
