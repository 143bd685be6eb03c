"""
CodeQL Issue Maker - CodeQL scans that open GitHub issues

Stages a filtered copy of the checkout, analyzes it with the CodeQL CLI and
opens one tracking issue per new finding. Issues are matched across runs by
a fingerprint in their title, so re-running never files duplicates and a
closed issue keeps its finding suppressed.
"""

__version__ = "0.3.0"

from .action import run
from .config import ActionSettings, load_settings
from .models import CodeQLConfig, IssueSummary, SarifReport

__all__ = [
    "run",  # Main entry point
    "ActionSettings",
    "load_settings",
    "CodeQLConfig",
    "SarifReport",
    "IssueSummary",
]
