"""Configuration exceptions: action inputs, settings, config files."""

from pathlib import Path
from typing import Any, Union

from .base import CodeQLIssueMakerError


class ConfigurationError(CodeQLIssueMakerError):
    """Base class for configuration-related errors."""

    pass


class ConfigNotFoundError(ConfigurationError):
    """Raised when a declarative config file does not exist."""

    def __init__(self, path: Union[str, Path]):
        super().__init__(f"Configuration file not found: {path}", details={"path": str(path)})
        self.path = Path(path)


class InvalidConfigError(ConfigurationError):
    """Raised when configuration values are invalid."""

    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(
            f"Invalid configuration for {key}: {value}",
            details={"key": key, "value": str(value), "reason": reason},
        )
        self.key = key
        self.value = value
        self.reason = reason


class MissingInputError(ConfigurationError):
    """Raised when a required action input is absent."""

    def __init__(self, name: str):
        super().__init__(f"Input required and not supplied: {name}", details={"input": name})
        self.name = name
