"""Query execution and SARIF post-processing."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional, Sequence, Union

from ..exceptions import AnalysisFailedError, CommandError
from ..file_ops import safe_read_file, safe_write_file
from ..logging_config import get_logger
from ..models import CodeQLConfig, QueryFilter
from .database import effective_language, get_database_path
from .query_packs import get_fallback_query_pack, get_query_pack
from .runner import run_codeql

logger = get_logger(__name__)

RESULTS_FILE_NAME = "results.sarif"


def get_results_path(root: Optional[Union[str, Path]] = None) -> Path:
    base = Path(root) if root is not None else Path.cwd()
    return base / RESULTS_FILE_NAME


def _analyze(
    codeql_path: Union[str, Path], db_path: Path, output_path: Path, query_pack: str, ram: int
) -> None:
    run_codeql(
        codeql_path,
        [
            "database",
            "analyze",
            str(db_path),
            f"--ram={ram}",
            "--format=sarif-latest",
            f"--output={output_path}",
            query_pack,
        ],
    )


def analyze_with_codeql(
    codeql_path: Union[str, Path],
    language: str,
    qls_profile: str,
    config: Optional[CodeQLConfig] = None,
    db_path: Optional[Union[str, Path]] = None,
    output_path: Optional[Union[str, Path]] = None,
    ram: int = 4000,
) -> Path:
    """Run the query suite for ``language``/``qls_profile`` and write SARIF.

    A failing suite is retried once with the language's plain query pack.

    Returns:
        Path of the SARIF report

    Raises:
        AnalysisFailedError: If the fallback pack fails too
    """
    logger.info("Running CodeQL analysis...")
    db = Path(db_path) if db_path is not None else get_database_path()
    output = Path(output_path) if output_path is not None else get_results_path()
    lang = effective_language(language, config)

    query_pack = get_query_pack(lang, qls_profile)
    logger.info(f"Using query pack: {query_pack}")

    try:
        _analyze(codeql_path, db, output, query_pack, ram)
    except CommandError as e:
        logger.warning(f"Failed to analyze with {query_pack}: {e}")
        logger.warning("Trying fallback approach...")

        fallback_pack = get_fallback_query_pack(lang)
        logger.info(f"Using fallback query pack: {fallback_pack}")
        try:
            _analyze(codeql_path, db, output, fallback_pack, ram)
        except CommandError as fallback_error:
            raise AnalysisFailedError(query_pack, fallback_pack, str(fallback_error)) from fallback_error

    if config is not None and config.query_filters:
        apply_query_filters(output, config.query_filters)

    return output


def _is_excluded(rule_id: Optional[str], query_filters: Sequence[QueryFilter]) -> bool:
    for query_filter in query_filters:
        if query_filter.exclude_id and rule_id == query_filter.exclude_id:
            logger.debug(f"Filtered out result for rule: {rule_id}")
            return True
    return False


def apply_query_filters(
    sarif_path: Union[str, Path], query_filters: Sequence[QueryFilter]
) -> tuple[int, int]:
    """Drop results whose ``ruleId`` is excluded by a query filter.

    The report is rewritten in place. Problems are logged and never raised.

    Returns:
        (filtered, total) result counts
    """
    logger.info("Applying query filters to SARIF results...")
    path = Path(sarif_path)

    if not path.exists():
        logger.warning("SARIF file not found for filtering")
        return 0, 0

    try:
        sarif = json.loads(safe_read_file(path))

        filtered_count = 0
        total_count = 0

        runs = sarif.get("runs") if isinstance(sarif, dict) else None
        for run in runs if isinstance(runs, list) else []:
            results = run.get("results") if isinstance(run, dict) else None
            if not isinstance(results, list):
                continue
            total_count += len(results)
            kept = [
                r
                for r in results
                if not (isinstance(r, dict) and _is_excluded(r.get("ruleId"), query_filters))
            ]
            filtered_count += len(results) - len(kept)
            run["results"] = kept

        safe_write_file(path, json.dumps(sarif, indent=2))
    except Exception as e:
        logger.warning(f"Failed to apply query filters: {e}")
        return 0, 0

    logger.info(f"Query filters applied: {filtered_count} results filtered out of {total_count}")
    return filtered_count, total_count
