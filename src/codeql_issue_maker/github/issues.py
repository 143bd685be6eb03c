"""Turn SARIF results into tracking issues without filing duplicates.

Each result gets a fingerprint derived from its rule, partial fingerprints
and message. The fingerprint is embedded in the issue title, and the title
is the only link between a result and an earlier issue:

    CodeQL Alert: js/sql-injection [3f9a1c2e]

An existing issue with the same title, open or closed, suppresses creation.
Closed issues stay closed: closing one is how a maintainer dismisses a
finding for good.
"""

from __future__ import annotations

import hashlib
import json
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Protocol

from ..logging_config import get_logger
from ..models import IssueData, IssueSummary, SarifReport, SarifResult, TrackedIssue

logger = get_logger(__name__)

DEFAULT_LABEL = "codeql"
DEFAULT_TITLE_PREFIX = "CodeQL Alert"
FINGERPRINT_LENGTH = 8
UNKNOWN_URI = "<unknown file>"


class IssueTracker(Protocol):
    def list_issues(self, label: str, state: str = "all") -> list[TrackedIssue]: ...

    def create_issue(self, issue: IssueData) -> int: ...


def compute_fingerprint(result: SarifResult) -> str:
    """Short, deterministic hash of a result's identifying content."""
    partial = json.dumps(result.partial_fingerprints, sort_keys=True, separators=(",", ":"))
    content = f"{result.rule_id}|{partial}|{result.message}"
    return hashlib.sha256(content.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def build_issue_title(
    result: SarifResult, fingerprint: str, prefix: str = DEFAULT_TITLE_PREFIX
) -> str:
    return f"{prefix}: {result.rule_id} [{fingerprint}]"


def build_issue_body(result: SarifResult, fingerprint: str) -> str:
    lines = [
        f"## {result.rule_id}",
        "",
        f"**Message:** {result.message}",
        "",
        f"**Fingerprint:** `{fingerprint}`",
        "",
        "### Locations",
        "",
    ]

    if result.locations:
        for location in result.locations:
            line = f"- `{location.uri or UNKNOWN_URI}`"
            if location.start_line is not None:
                line += f":{location.start_line}"
            if location.message:
                line += f" ({location.message})"
            lines.append(line)
    else:
        lines.append("- No location reported")

    lines.extend(
        [
            "",
            "<details>",
            "<summary>Full finding</summary>",
            "",
            "```json",
            json.dumps(result.raw, indent=2, sort_keys=True),
            "```",
            "",
            "</details>",
            "",
            "---",
            "",
            "Created automatically from CodeQL results.",
        ]
    )
    return "\n".join(lines)


def build_issue(
    result: SarifResult, label: str = DEFAULT_LABEL, prefix: str = DEFAULT_TITLE_PREFIX
) -> IssueData:
    fingerprint = compute_fingerprint(result)
    return IssueData(
        title=build_issue_title(result, fingerprint, prefix),
        body=build_issue_body(result, fingerprint),
        labels=[label],
    )


def plan_issues(
    report: SarifReport,
    existing: list[TrackedIssue],
    label: str = DEFAULT_LABEL,
    prefix: str = DEFAULT_TITLE_PREFIX,
) -> tuple[list[IssueData], IssueSummary]:
    """Decide which results need a new issue.

    Returns:
        (issues to create, summary with the skipped titles filled in)
    """
    by_title = {issue.title: issue for issue in existing}
    summary = IssueSummary()
    queued: dict[str, IssueData] = {}

    for result in report.iter_results():
        issue = build_issue(result, label, prefix)
        title = issue.title
        found = by_title.get(title)

        if found is not None and found.is_closed:
            logger.info(f"Skipping closed issue #{found.number}: {title}")
            summary.skipped_closed.append(title)
        elif found is not None:
            logger.info(f"Issue already open #{found.number}: {title}")
            summary.skipped_open.append(title)
        elif title in queued:
            logger.info(f"Duplicate finding in report, already queued: {title}")
            summary.skipped_duplicate.append(title)
        else:
            queued[title] = issue

    return list(queued.values()), summary


def create_issues_from_sarif(
    report: SarifReport,
    client: IssueTracker,
    label: str = DEFAULT_LABEL,
    title_prefix: str = DEFAULT_TITLE_PREFIX,
    max_workers: int = 8,
) -> IssueSummary:
    """Open an issue for every result that has none yet.

    Existing issues are listed once up front. Creations run in parallel and
    a failed creation is logged without affecting the others.
    """
    existing = client.list_issues(label, state="all")
    logger.info(f"Found {len(existing)} existing issues labelled {label!r}")

    to_create, summary = plan_issues(report, existing, label, title_prefix)
    if not to_create:
        logger.info("No new issues to create")
        return summary

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(to_create)))) as executor:
        futures = {executor.submit(client.create_issue, issue): issue for issue in to_create}
        for future in as_completed(futures):
            issue = futures[future]
            try:
                number = future.result()
            except Exception as e:
                logger.error(f"Failed to create issue {issue.title!r}: {e}")
                summary.failed.append(issue.title)
                continue
            logger.info(f"Created issue #{number}: {issue.title}")
            summary.created.append(issue.title)

    logger.info(
        f"Created {summary.created_count} issues "
        f"({len(summary.skipped_open)} open, {len(summary.skipped_closed)} closed, "
        f"{len(summary.skipped_duplicate)} duplicate skipped, {len(summary.failed)} failed)"
    )
    return summary
