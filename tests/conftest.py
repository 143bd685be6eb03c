"""Shared test fixtures for codeql-issue-maker tests."""

import json
import os
import subprocess
import sys
import threading
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from codeql_issue_maker.exceptions import CommandError
from codeql_issue_maker.models import IssueData, TrackedIssue
from codeql_issue_maker.sarif import parse_sarif


def make_result(rule_id, message, locations=None, partial_fingerprints=None):
    """Build a raw SARIF result dict."""
    result = {"ruleId": rule_id, "message": {"text": message}}
    if partial_fingerprints is not None:
        result["partialFingerprints"] = partial_fingerprints
    if locations is not None:
        result["locations"] = [
            {
                "physicalLocation": {
                    "artifactLocation": {"uri": uri},
                    "region": {"startLine": line},
                },
                **({"message": {"text": msg}} if msg else {}),
            }
            for uri, line, msg in locations
        ]
    return result


def make_report(*runs):
    """Build a parsed SarifReport from lists of raw results, one list per run."""
    return parse_sarif({"version": "2.1.0", "runs": [{"results": list(r)} for r in runs]})


class FakeTracker:
    """In-memory issue tracker with the GitHubClient interface."""

    def __init__(self, existing=None, fail_titles=None):
        self.issues = list(existing or [])
        self.fail_titles = set(fail_titles or [])
        self.created = []
        self.list_calls = []
        self._lock = threading.Lock()

    def list_issues(self, label, state="all"):
        self.list_calls.append((label, state))
        return list(self.issues)

    def create_issue(self, issue: IssueData) -> int:
        if issue.title in self.fail_titles:
            raise RuntimeError("API rate limit exceeded")
        with self._lock:
            number = len(self.issues) + 1
            self.issues.append(TrackedIssue(number=number, title=issue.title, state="open"))
            self.created.append(issue)
        return number


class RecordingCodeQL:
    """Stands in for run_codeql; fails for argument lists containing a marker."""

    def __init__(self, fail_on=()):
        self.calls = []
        self.fail_on = set(fail_on)

    def __call__(self, codeql_path, args, check=True, **kwargs):
        args = [str(a) for a in args]
        self.calls.append(args)
        failed = any(marker in args for marker in self.fail_on)
        if failed and check:
            raise CommandError([str(codeql_path), *args], 1, "query compilation failed")
        return subprocess.CompletedProcess([codeql_path, *args], 1 if failed else 0, "", "")


@pytest.fixture
def fake_tracker():
    return FakeTracker()


@pytest.fixture
def make_tree(tmp_path):
    """Create files under tmp_path from a list of relative paths."""

    def _make(paths, root: Path = None):
        base = root or tmp_path
        for rel in paths:
            target = base / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(f"// {rel}\n", encoding="utf-8")
        return base

    return _make


@pytest.fixture
def write_sarif(tmp_path):
    """Write a SARIF document and return its path."""

    def _write(data, name="results.sarif"):
        path = tmp_path / name
        path.write_text(json.dumps(data) if not isinstance(data, str) else data, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def clean_env(monkeypatch):
    """Remove runner variables that would leak into settings."""
    for key in list(os.environ):
        if key.startswith(("INPUT_", "GITHUB_", "CODEQL_")):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch
