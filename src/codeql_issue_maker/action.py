"""End-to-end action run: filter, analyze, file issues."""

from __future__ import annotations

from typing import Optional

from .codeql import (
    analyze_with_codeql,
    create_database,
    download_query_packs,
    get_database_path,
    get_results_path,
    initialize_codeql,
)
from .config import ActionSettings
from .config_parser import parse_config_file
from .filtering import filter_files
from .github import GitHubClient, create_issues_from_sarif
from .github.issues import IssueTracker
from .logging_config import get_logger
from .models import CodeQLConfig, RunResult
from .sarif import get_total_results_count, process_sarif_file
from .workflow import workflow_group

logger = get_logger(__name__)


def _log_inputs(settings: ActionSettings) -> None:
    logger.info(f"Starting CodeQL analysis for language: {settings.language}")
    logger.info(f"QLS Profile: {settings.qls_profile}")
    if settings.include:
        logger.info(f"Include patterns: {settings.include}")
    if settings.exclude:
        logger.info(f"Exclude patterns: {settings.exclude}")
    if settings.config_file:
        logger.info(f"Config file: {settings.config_file}")
    logger.debug(f"Settings: {settings.describe()}")


def run(settings: ActionSettings, tracker: Optional[IssueTracker] = None) -> RunResult:
    """Run every stage in order; any stage error aborts the run.

    Args:
        settings: Resolved action settings
        tracker: Issue tracker to use instead of a GitHubClient built from settings

    Returns:
        RunResult describing what was produced
    """
    _log_inputs(settings)
    workspace = settings.workspace_path

    with workflow_group("Filter files"):
        config: Optional[CodeQLConfig] = None
        if settings.config_file:
            # Relative paths are resolved against the checkout, absolute ones kept
            config = parse_config_file(workspace / settings.config_file)
            logger.info("Configuration file loaded successfully")

        filtered = filter_files(
            settings.include,
            settings.exclude,
            config,
            root=workspace,
            max_workers=settings.max_workers,
        )
        logger.info(f"Filtered files location: {filtered.staging_dir}")

    with workflow_group("Set up CodeQL"):
        codeql_path = initialize_codeql(
            install_dir=workspace,
            version=settings.codeql_version,
            api_url=settings.api_url,
            token=settings.token,
        )
        logger.info(f"CodeQL initialized at: {codeql_path}")

        download_query_packs(codeql_path, max_workers=settings.max_workers)

    with workflow_group("Analyze"):
        db_path = create_database(
            codeql_path,
            filtered.staging_dir,
            settings.language,
            config,
            db_path=get_database_path(workspace),
        )

        sarif_path = analyze_with_codeql(
            codeql_path,
            settings.language,
            settings.qls_profile,
            config,
            db_path=db_path,
            output_path=get_results_path(workspace),
            ram=settings.ram_mb,
        )
        logger.info("CodeQL analysis completed")

    result = RunResult(staging_dir=filtered.staging_dir, sarif_path=str(sarif_path))

    report = process_sarif_file(sarif_path)
    if report is None:
        return result

    result.total_results = get_total_results_count(report)

    with workflow_group("Create issues"):
        if tracker is None:
            tracker = GitHubClient(settings.token, settings.repository, api_url=settings.api_url)

        result.issues = create_issues_from_sarif(
            report,
            tracker,
            label=settings.issue_label,
            title_prefix=settings.title_prefix,
            max_workers=settings.max_workers,
        )
        logger.info("SARIF processing and issue creation completed")
    return result
