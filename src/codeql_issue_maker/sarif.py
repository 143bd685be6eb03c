"""SARIF report loading.

A missing report or one without runs means the scan found nothing to
report; only an unreadable or structurally wrong report is an error.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from .exceptions import FileAccessError, MalformedReportError
from .file_ops import safe_read_file
from .logging_config import get_logger
from .models import SarifLocation, SarifReport, SarifResult, SarifRun

logger = get_logger(__name__)


class _ShapeError(ValueError):
    pass


def _parse_location(raw: Any) -> SarifLocation:
    if not isinstance(raw, Mapping):
        raise _ShapeError("location is not an object")

    physical = raw.get("physicalLocation") or {}
    artifact = physical.get("artifactLocation") or {}
    region = physical.get("region") or {}
    message = raw.get("message") or {}

    start_line = region.get("startLine")
    return SarifLocation(
        uri=str(artifact.get("uri") or ""),
        start_line=int(start_line) if start_line is not None else None,
        message=message.get("text") if isinstance(message, Mapping) else None,
    )


def _parse_result(raw: Any) -> SarifResult:
    if not isinstance(raw, Mapping):
        raise _ShapeError("result is not an object")

    rule_id = raw.get("ruleId")
    if not isinstance(rule_id, str) or not rule_id:
        raise _ShapeError("result without ruleId")

    message = raw.get("message") or {}
    text = message.get("text") if isinstance(message, Mapping) else None

    fingerprints = raw.get("partialFingerprints") or {}
    if not isinstance(fingerprints, Mapping):
        raise _ShapeError("partialFingerprints is not an object")

    locations = raw.get("locations") or []
    if not isinstance(locations, list):
        raise _ShapeError("locations is not a list")

    return SarifResult(
        rule_id=rule_id,
        message=str(text) if text is not None else "",
        partial_fingerprints={str(k): str(v) for k, v in fingerprints.items()},
        locations=[_parse_location(loc) for loc in locations],
        raw=dict(raw),
    )


def parse_sarif(data: Any) -> SarifReport:
    """Build a SarifReport from decoded JSON.

    Raises:
        ValueError: If the document does not have the SARIF shape
    """
    if not isinstance(data, Mapping):
        raise _ShapeError("top level is not an object")

    runs = data.get("runs") or []
    if not isinstance(runs, list):
        raise _ShapeError("runs is not a list")

    parsed_runs = []
    for run in runs:
        if not isinstance(run, Mapping):
            raise _ShapeError("run is not an object")
        results = run.get("results") or []
        if not isinstance(results, list):
            raise _ShapeError("results is not a list")
        parsed_runs.append(SarifRun(results=[_parse_result(r) for r in results]))

    return SarifReport(runs=parsed_runs, raw=dict(data))


def validate_sarif(data: Any) -> bool:
    """True if ``data`` has a non-empty ``runs`` list."""
    if not isinstance(data, Mapping):
        return False
    runs = data.get("runs")
    return isinstance(runs, list) and len(runs) > 0


def get_total_results_count(report: Union[SarifReport, Mapping[str, Any]]) -> int:
    """Number of results across all runs; runs without results count as 0."""
    if isinstance(report, SarifReport):
        return sum(len(run.results) for run in report.runs)

    return sum(len((run or {}).get("results") or []) for run in report.get("runs") or [])


def process_sarif_file(sarif_path: Union[str, Path]) -> Optional[SarifReport]:
    """Load a SARIF report.

    Returns:
        The report, or None when the file is missing or has no runs

    Raises:
        MalformedReportError: If the file cannot be read or is not valid SARIF JSON
    """
    path = Path(sarif_path)
    if not path.exists():
        logger.info("No SARIF file found. Clean scan.")
        return None

    try:
        data = json.loads(safe_read_file(path))
        if not validate_sarif(data):
            # Still reject non-objects and non-list runs
            parse_sarif(data)
            logger.info("No runs found in SARIF file.")
            return None
        report = parse_sarif(data)
    except FileAccessError as e:
        logger.error(f"Failed to read SARIF file: {e.reason}")
        raise MalformedReportError(path, e.reason) from e
    except (ValueError, TypeError, AttributeError) as e:
        logger.error(f"Failed to process SARIF file: {e}")
        raise MalformedReportError(path, str(e)) from e

    logger.info(f"Loaded SARIF report with {get_total_results_count(report)} results")
    return report
