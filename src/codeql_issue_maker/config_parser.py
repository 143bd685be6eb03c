"""Reader for the CodeQL ``config-file`` input.

Only the subset of the CodeQL configuration format this action acts on is
understood::

    language: javascript
    paths:
      - src
    paths-ignore:
      - src/vendor
    query-filters:
      - exclude:
          id: js/unused-local-variable

The reader is line-based and lenient: anything it does not recognise is
skipped rather than rejected. Section headers must start in the first
column, and any other top-level key (``name``, ``queries``, ...) ends the
current section so its items are not mistaken for paths.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Optional, Union

from .exceptions import ConfigNotFoundError
from .file_ops import safe_read_file
from .logging_config import get_logger
from .models import CodeQLConfig, QueryFilter

logger = get_logger(__name__)

SECTIONS = ("paths-ignore", "paths", "query-filters", "language")

TOP_LEVEL_KEY = re.compile(r"^[A-Za-z0-9_.-]+\s*:")


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def _section_header(line: str) -> Optional[str]:
    for section in SECTIONS:
        if line.startswith(f"{section}:"):
            return section
    return None


def parse_config_text(text: str) -> CodeQLConfig:
    """Parse config file contents into a CodeQLConfig."""
    config = CodeQLConfig()
    section: Optional[str] = None
    current_filter: Optional[QueryFilter] = None

    for lineno, line in enumerate(text.splitlines(), start=1):
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("#"):
            continue

        top_level = not line[0].isspace()
        header = _section_header(trimmed) if top_level else None
        if header is None and top_level and TOP_LEVEL_KEY.match(line):
            # Any other key (name, queries, disable-default-queries) closes the section
            section = None
            current_filter = None
            logger.debug(f"Ignoring config line {lineno}: {trimmed}")
            continue

        if header is not None:
            section = header
            current_filter = None
            if header == "language":
                inline = trimmed[len("language:") :].strip()
                if inline:
                    config.language = _unquote(inline)
            continue

        if section in ("paths", "paths-ignore") and trimmed.startswith("-"):
            value = _unquote(trimmed[1:])
            if value:
                target = config.paths if section == "paths" else config.paths_ignore
                target.append(value)
            continue

        if section == "language":
            if trimmed.startswith("-"):
                config.language = _unquote(trimmed[1:])
                continue
            if not trimmed.endswith(":"):
                config.language = _unquote(trimmed)
                continue

        if section == "query-filters":
            if trimmed.startswith("- exclude:"):
                current_filter = QueryFilter()
                config.query_filters.append(current_filter)
                inline = trimmed[len("- exclude:") :].strip()
                # Flow style: "- exclude: {id: js/foo}"
                if inline.startswith("{") and inline.endswith("}"):
                    for item in inline[1:-1].split(","):
                        key, _, value = item.partition(":")
                        if key.strip() == "id":
                            current_filter.exclude_id = _unquote(value)
                continue
            if trimmed.startswith("id:") and current_filter is not None:
                current_filter.exclude_id = _unquote(trimmed.split(":", 1)[1])
                continue

        logger.debug(f"Ignoring config line {lineno}: {trimmed}")

    return config


def parse_config_file(config_path: Union[str, Path]) -> CodeQLConfig:
    """Load and parse a config file.

    Raises:
        ConfigNotFoundError: If the file does not exist
        FileAccessError: If it exists but cannot be read
    """
    path = Path(config_path)
    if not path.exists():
        logger.error(f"Failed to parse configuration file: not found: {path}")
        raise ConfigNotFoundError(path)

    config = parse_config_text(safe_read_file(path))
    logger.info(f"Parsed configuration: {json.dumps(config.to_dict(), indent=2)}")
    return config
