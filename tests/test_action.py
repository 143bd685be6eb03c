"""Tests for the end-to-end action run with CodeQL stubbed out."""

import json

import pytest
from conftest import FakeTracker, make_result

from codeql_issue_maker import action
from codeql_issue_maker.config import ActionSettings
from codeql_issue_maker.exceptions import (
    AnalysisFailedError,
    CodeQLInstallError,
    ConfigNotFoundError,
)
from codeql_issue_maker.models import TrackedIssue


class FakeCodeQL:
    """Replaces the CodeQL stages imported by the action module."""

    def __init__(self, sarif=None):
        self.sarif = sarif
        self.calls = []

    def install(self, monkeypatch):
        monkeypatch.setattr(action, "initialize_codeql", self.initialize)
        monkeypatch.setattr(action, "download_query_packs", self.download)
        monkeypatch.setattr(action, "create_database", self.create)
        monkeypatch.setattr(action, "analyze_with_codeql", self.analyze)
        return self

    def initialize(self, install_dir, version, api_url, token):
        self.calls.append(("initialize", install_dir))
        return "/opt/codeql/codeql"

    def download(self, codeql_path, max_workers=8):
        self.calls.append(("download", codeql_path))
        return []

    def create(self, codeql_path, source_root, language, config, db_path):
        self.calls.append(("create", source_root, language, config, db_path))
        return db_path

    def analyze(self, codeql_path, language, qls_profile, config, db_path, output_path, ram):
        self.calls.append(("analyze", language, qls_profile, output_path, ram))
        if self.sarif is not None:
            output_path.write_text(json.dumps(self.sarif), encoding="utf-8")
        return output_path


def settings_for(workspace, **kwargs):
    kwargs.setdefault("token", "ghp_test")
    kwargs.setdefault("repository", "octo/app")
    return ActionSettings(workspace=str(workspace), **kwargs)


class TestRun:
    def test_full_pipeline(self, tmp_path, make_tree, monkeypatch):
        make_tree(["src/a.js", "src/a.test.js", "docs/readme.md"])
        sarif = {
            "runs": [
                {
                    "results": [
                        make_result("js/sql-injection", "Query built from user input"),
                        make_result("js/unused-var", "Unused variable x"),
                    ]
                }
            ]
        }
        codeql = FakeCodeQL(sarif).install(monkeypatch)
        tracker = FakeTracker()

        result = action.run(
            settings_for(tmp_path, include="src/**", exclude="src/**/*.test.js"), tracker
        )

        assert result.staging_dir == str(tmp_path / "filtered-repo")
        assert (tmp_path / "filtered-repo" / "src" / "a.js").exists()
        assert not (tmp_path / "filtered-repo" / "src" / "a.test.js").exists()
        assert result.sarif_path == str(tmp_path / "results.sarif")
        assert result.total_results == 2
        assert result.issues.created_count == 2
        assert [c[0] for c in codeql.calls] == ["initialize", "download", "create", "analyze"]
        create_call = codeql.calls[2]
        assert create_call[1] == str(tmp_path / "filtered-repo")
        assert create_call[4] == tmp_path / "codeql-db"

    def test_closed_issue_suppresses_finding(self, tmp_path, make_tree, monkeypatch):
        make_tree(["app.js"])
        unused = make_result("js/unused-var", "Unused variable x")
        FakeCodeQL({"runs": [{"results": [unused]}]}).install(monkeypatch)

        first = FakeTracker()
        action.run(settings_for(tmp_path), first)
        closed_title = first.created[0].title

        tracker = FakeTracker(existing=[TrackedIssue(1, closed_title, "closed")])
        result = action.run(settings_for(tmp_path), tracker)

        assert tracker.created == []
        assert result.issues.skipped_closed == [closed_title]

    def test_stages_folded_in_actions_log(self, tmp_path, make_tree, monkeypatch, capsys):
        make_tree(["app.js"])
        FakeCodeQL({"runs": [{"results": [make_result("js/eval", "eval call")]}]}).install(monkeypatch)
        monkeypatch.setenv("GITHUB_ACTIONS", "true")

        action.run(settings_for(tmp_path), FakeTracker())

        out = capsys.readouterr().out
        for title in ("Filter files", "Set up CodeQL", "Analyze", "Create issues"):
            assert f"::group::{title}" in out
        assert out.count("::endgroup::") == 4

    def test_clean_scan_skips_issue_tracker(self, tmp_path, make_tree, monkeypatch):
        make_tree(["app.js"])
        FakeCodeQL(sarif=None).install(monkeypatch)
        tracker = FakeTracker()

        result = action.run(settings_for(tmp_path), tracker)

        assert result.issues is None
        assert result.total_results == 0
        assert tracker.list_calls == []

    def test_config_file_relative_to_workspace(self, tmp_path, make_tree, monkeypatch):
        make_tree(["src/a.py", "vendor/b.py"])
        (tmp_path / "codeql.yml").write_text(
            "language: python\npaths-ignore:\n  - vendor\n", encoding="utf-8"
        )
        codeql = FakeCodeQL({"runs": []}).install(monkeypatch)

        result = action.run(settings_for(tmp_path, config_file="codeql.yml"), FakeTracker())

        assert (tmp_path / "filtered-repo" / "src" / "a.py").exists()
        assert not (tmp_path / "filtered-repo" / "vendor").exists()
        assert codeql.calls[2][3].language == "python"
        assert result.issues is None

    def test_missing_config_file(self, tmp_path, monkeypatch):
        FakeCodeQL().install(monkeypatch)

        with pytest.raises(ConfigNotFoundError):
            action.run(settings_for(tmp_path, config_file="missing.yml"), FakeTracker())

    def test_stage_errors_propagate(self, tmp_path, make_tree, monkeypatch):
        make_tree(["app.js"])
        codeql = FakeCodeQL().install(monkeypatch)

        def broken_install(**kwargs):
            raise CodeQLInstallError("HTTP 404")

        monkeypatch.setattr(action, "initialize_codeql", broken_install)

        with pytest.raises(CodeQLInstallError):
            action.run(settings_for(tmp_path), FakeTracker())
        assert codeql.calls == []

    def test_analysis_failure_stops_run(self, tmp_path, make_tree, monkeypatch):
        make_tree(["app.js"])
        FakeCodeQL().install(monkeypatch)

        def failing_analyze(*args, **kwargs):
            raise AnalysisFailedError("suite", "pack", "boom")

        monkeypatch.setattr(action, "analyze_with_codeql", failing_analyze)
        tracker = FakeTracker()

        with pytest.raises(AnalysisFailedError):
            action.run(settings_for(tmp_path), tracker)
        assert tracker.list_calls == []
