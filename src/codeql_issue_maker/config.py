"""Settings loading for codeql-issue-maker.

Settings are merged in priority order (lowest to highest):
    1. Defaults (defined in ActionSettings)
    2. Action inputs (``INPUT_*`` environment variables set by the runner)
    3. Runner context (``GITHUB_*`` variables) and tuning variables
       (``CODEQL_ISSUE_MAKER_*`` prefix)
    4. Explicit overrides (typically CLI flags)

Example:
    >>> settings = load_settings(token="ghp_example", language="python")
    >>> settings.language
    'python'
    >>> settings.qls_profile
    'security-and-quality'
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional, get_type_hints

from .exceptions import InvalidConfigError, MissingInputError
from .workflow import get_input

ENV_PREFIX = "CODEQL_ISSUE_MAKER_"

QUERY_PROFILES = ("security-and-quality", "security-extended", "security")

# Action input name -> settings field
ACTION_INPUTS = {
    "language": "language",
    "qls-profile": "qls_profile",
    "include": "include",
    "exclude": "exclude",
    "config-file": "config_file",
    "token": "token",
}

# Runner-provided variables -> settings field
RUNNER_VARIABLES = {
    "GITHUB_REPOSITORY": "repository",
    "GITHUB_API_URL": "api_url",
    "GITHUB_WORKSPACE": "workspace",
}


@dataclass(frozen=True)
class ActionSettings:
    """Inputs and tuning knobs for one action run.

    Attributes:
        Action inputs:
            language: CodeQL language to analyze
            qls_profile: Query suite profile (see QUERY_PROFILES)
            include: Comma-separated include globs
            exclude: Comma-separated exclude globs
            config_file: Path to a CodeQL config file
            token: GitHub token used to list and create issues

        Runner context:
            repository: ``owner/name`` that receives the issues
            api_url: GitHub REST API base URL
            workspace: Checkout directory to scan

        Tuning:
            issue_label: Label applied to, and used to find, tracking issues
            title_prefix: Text before the rule id in issue titles
            max_workers: Upper bound for parallel copies, downloads and issue creation
            ram_mb: Memory passed to ``codeql database analyze --ram``
            codeql_version: CLI release downloaded when no bundle is available
    """

    language: str = "javascript"
    qls_profile: str = "security-and-quality"
    include: Optional[str] = None
    exclude: Optional[str] = None
    config_file: Optional[str] = None
    token: str = ""

    repository: Optional[str] = None
    api_url: str = "https://api.github.com"
    workspace: Optional[str] = None

    issue_label: str = "codeql"
    title_prefix: str = "CodeQL Alert"
    max_workers: int = 8
    ram_mb: int = 4000
    codeql_version: str = "2.22.3"

    def __post_init__(self) -> None:
        if not self.token:
            raise MissingInputError("token")

        if not self.language.strip():
            raise InvalidConfigError("language", self.language, "must not be empty")

        if self.repository is not None and (
            self.repository.count("/") != 1 or not all(self.repository.split("/"))
        ):
            raise InvalidConfigError("repository", self.repository, "expected owner/name")

        if self.max_workers < 1:
            raise InvalidConfigError("max_workers", self.max_workers, "must be at least 1")
        if self.ram_mb < 1:
            raise InvalidConfigError("ram_mb", self.ram_mb, "must be at least 1")
        if not self.issue_label.strip():
            raise InvalidConfigError("issue_label", self.issue_label, "must not be empty")

    @property
    def workspace_path(self) -> Path:
        return Path(self.workspace) if self.workspace else Path.cwd()

    def describe(self) -> dict[str, Any]:
        """Settings as a dict with the token masked, for logging."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values["token"] = "***"
        return values


def load_settings(env: Optional[Mapping[str, str]] = None, **overrides: Any) -> ActionSettings:
    """Build ActionSettings from the environment plus explicit overrides.

    Empty strings in the environment and ``None`` overrides count as unset.
    ``GITHUB_TOKEN`` is used when the ``token`` input is not supplied.

    Raises:
        MissingInputError: If no token is available
        InvalidConfigError: If a value fails validation
    """
    environ = os.environ if env is None else env
    merged: dict[str, Any] = {}

    for input_name, field_name in ACTION_INPUTS.items():
        value = get_input(input_name, env=environ)
        if value:
            merged[field_name] = value

    if "token" not in merged and environ.get("GITHUB_TOKEN"):
        merged["token"] = environ["GITHUB_TOKEN"]

    for env_key, field_name in RUNNER_VARIABLES.items():
        value = environ.get(env_key, "").strip()
        if value:
            merged[field_name] = value

    merged.update(_load_env_vars(environ))

    merged.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return ActionSettings(**merged)
    except TypeError as e:
        raise InvalidConfigError("settings", sorted(merged), str(e))


def _load_env_vars(environ: Mapping[str, str]) -> dict[str, Any]:
    """Load tuning values from CODEQL_ISSUE_MAKER_* environment variables.

    Supported environment variables:
        CODEQL_ISSUE_MAKER_ISSUE_LABEL: str
        CODEQL_ISSUE_MAKER_TITLE_PREFIX: str
        CODEQL_ISSUE_MAKER_MAX_WORKERS: int
        CODEQL_ISSUE_MAKER_RAM_MB: int
        CODEQL_ISSUE_MAKER_CODEQL_VERSION: str
    """
    type_hints = get_type_hints(ActionSettings)
    result: dict[str, Any] = {}

    for field_name in ("issue_label", "title_prefix", "max_workers", "ram_mb", "codeql_version"):
        env_key = f"{ENV_PREFIX}{field_name.upper()}"
        raw = environ.get(env_key, "").strip()
        if not raw:
            continue

        if type_hints[field_name] is int:
            try:
                result[field_name] = int(raw)
            except ValueError:
                raise InvalidConfigError(env_key, raw, "expected an integer")
        else:
            result[field_name] = raw

    return result
