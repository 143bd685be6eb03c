"""Data models for codeql-issue-maker"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class QueryFilter:
    """A ``query-filters`` entry; only ``exclude.id`` is honoured."""

    exclude_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        exclude: Dict[str, str] = {}
        if self.exclude_id is not None:
            exclude["id"] = self.exclude_id
        return {"exclude": exclude}


@dataclass
class CodeQLConfig:
    """Declarative analysis configuration read from ``config-file``"""

    paths: List[str] = field(default_factory=list)
    paths_ignore: List[str] = field(default_factory=list)
    query_filters: List[QueryFilter] = field(default_factory=list)
    language: Optional[str] = None

    @property
    def excluded_rule_ids(self) -> List[str]:
        return [f.exclude_id for f in self.query_filters if f.exclude_id]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "paths": list(self.paths),
            "paths-ignore": list(self.paths_ignore),
            "query-filters": [f.to_dict() for f in self.query_filters],
            "language": self.language,
        }


@dataclass(frozen=True)
class SarifLocation:
    """Physical location of a result"""

    uri: str
    start_line: Optional[int] = None
    message: Optional[str] = None


@dataclass(frozen=True)
class SarifResult:
    """A single CodeQL finding.

    ``raw`` keeps the result exactly as it appeared in the report so the
    issue body can show every field, including ones not modelled here.
    """

    rule_id: str
    message: str
    partial_fingerprints: Dict[str, str] = field(default_factory=dict)
    locations: List[SarifLocation] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class SarifRun:
    results: List[SarifResult] = field(default_factory=list)


@dataclass(frozen=True)
class SarifReport:
    """Parsed SARIF document"""

    runs: List[SarifRun] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict, compare=False)

    def iter_results(self):
        for run in self.runs:
            yield from run.results


@dataclass(frozen=True)
class IssueData:
    """An issue waiting to be created"""

    title: str
    body: str
    labels: List[str] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        return {"title": self.title, "body": self.body, "labels": list(self.labels)}


@dataclass(frozen=True)
class TrackedIssue:
    """An issue that already exists in the repository"""

    number: int
    title: str
    state: str

    @property
    def is_closed(self) -> bool:
        return self.state == "closed"


@dataclass
class FilterResult:
    """Outcome of staging the working tree"""

    staging_dir: str
    included: List[str] = field(default_factory=list)
    excluded: List[str] = field(default_factory=list)


@dataclass
class IssueSummary:
    """Counts produced by one reconcile pass"""

    created: List[str] = field(default_factory=list)
    skipped_open: List[str] = field(default_factory=list)
    skipped_closed: List[str] = field(default_factory=list)
    skipped_duplicate: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def created_count(self) -> int:
        return len(self.created)


@dataclass
class RunResult:
    """Everything a pipeline run produced"""

    staging_dir: str
    sarif_path: str
    total_results: int = 0
    issues: Optional[IssueSummary] = None
