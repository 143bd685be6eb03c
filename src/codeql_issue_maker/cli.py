"""Command-line interface for codeql-issue-maker"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .action import run
from .config import load_settings
from .exceptions import CodeQLIssueMakerError
from .logging_config import setup_logging
from .models import RunResult
from .workflow import GitHubActionsFormatter, emit, is_github_actions, set_failed

app = typer.Typer(
    name="codeql-issue-maker",
    help="Run CodeQL on filtered sources and open GitHub issues for new findings",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()


def _print_summary(result: RunResult) -> None:
    table = Table(title="CodeQL Issue Maker", show_header=False)
    table.add_column("Item", style="cyan")
    table.add_column("Value")
    table.add_row("Staging directory", result.staging_dir)
    table.add_row("SARIF report", result.sarif_path)
    table.add_row("Results", str(result.total_results))

    if result.issues is not None:
        issues = result.issues
        table.add_row("Issues created", f"[green]{issues.created_count}[/green]")
        table.add_row("Already open", str(len(issues.skipped_open)))
        table.add_row("Closed (suppressed)", str(len(issues.skipped_closed)))
        table.add_row("Duplicates in report", str(len(issues.skipped_duplicate)))
        if issues.failed:
            table.add_row("Failed", f"[red]{len(issues.failed)}[/red]")

    console.print(table)


@app.command()
def main(
    language: Optional[str] = typer.Option(
        None, "--language", "-l", help="CodeQL language (input: language, default javascript)"
    ),
    qls_profile: Optional[str] = typer.Option(
        None,
        "--qls-profile",
        help="security-and-quality | security-extended | security",
    ),
    include: Optional[str] = typer.Option(
        None, "--include", help="Comma-separated globs of files to analyze"
    ),
    exclude: Optional[str] = typer.Option(
        None, "--exclude", help="Comma-separated globs of files to skip"
    ),
    config_file: Optional[Path] = typer.Option(
        None, "--config-file", "-c", help="CodeQL config file (paths, paths-ignore, query-filters)"
    ),
    token: Optional[str] = typer.Option(
        None, "--token", help="GitHub token (input: token, or GITHUB_TOKEN)"
    ),
    repository: Optional[str] = typer.Option(
        None, "--repository", "-r", help="owner/name receiving issues (default GITHUB_REPOSITORY)"
    ),
    workspace: Optional[Path] = typer.Option(
        None,
        "--workspace",
        "-C",
        help="Checkout to scan (default GITHUB_WORKSPACE or current directory)",
        exists=True,
        file_okay=False,
        dir_okay=True,
    ),
    max_workers: Optional[int] = typer.Option(
        None, "--max-workers", "-w", min=1, help="Parallel copies, downloads and API calls"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log errors"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Also write logs here"),
    version: bool = typer.Option(False, "--version", help="Show version and exit"),
) -> None:
    """
    Analyze the checkout with CodeQL and file one issue per new finding.

    Every option falls back to the matching action input (INPUT_* variable).

    [bold cyan]Examples:[/bold cyan]

      codeql-issue-maker --language python --include "src/**" --exclude "*.test.py"

      codeql-issue-maker -c .github/codeql/codeql-config.yml -r octo/app
    """
    if version:
        console.print(f"[bold cyan]codeql-issue-maker[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit(0)

    logger = setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)

    try:
        settings = load_settings(
            language=language,
            qls_profile=qls_profile,
            include=include,
            exclude=exclude,
            config_file=str(config_file) if config_file else None,
            token=token,
            repository=repository,
            workspace=str(workspace) if workspace else None,
            max_workers=max_workers,
        )
        result = run(settings)

    except CodeQLIssueMakerError as e:
        set_failed(f"Action failed: {e}")
        logger.debug("Failure details", exc_info=True)
        raise typer.Exit(1)

    except KeyboardInterrupt:
        logger.info("Run interrupted by user")
        raise typer.Exit(130)

    except Exception as e:
        set_failed(f"Action failed: {e}")
        logger.debug("Unexpected error", exc_info=True)
        raise typer.Exit(1)

    if not quiet:
        _print_summary(result)

    if is_github_actions() and result.issues is not None:
        emit(
            GitHubActionsFormatter.notice(
                f"{result.issues.created_count} new issues from {result.total_results} CodeQL results"
            )
        )


if __name__ == "__main__":
    app()
