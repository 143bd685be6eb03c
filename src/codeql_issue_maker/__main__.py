"""Allow ``python -m codeql_issue_maker``."""

from .cli import app

app(prog_name="codeql-issue-maker")
