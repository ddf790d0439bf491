"""
Error types raised while loading, validating and watching layout files.
"""

from typing import Optional


class ConfigError(Exception):
    """Base class for every layout configuration failure."""

    kind = "ConfigError"

    def __init__(self, message: str, widget: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.widget = widget
        self.field = field

    def __str__(self) -> str:
        prefix = []
        if self.widget:
            prefix.append(f"widget '{self.widget}'")
        if self.field:
            prefix.append(f"field '{self.field}'")
        if prefix:
            return f"{self.kind}: {', '.join(prefix)}: {self.message}"
        return f"{self.kind}: {self.message}"


class ParseError(ConfigError):
    """Malformed TOML syntax."""

    kind = "ParseError"

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        super().__init__(message)
        self.line = line
        self.column = column

    def __str__(self) -> str:
        if self.line is not None:
            return f"{self.kind} at line {self.line}, column {self.column}: {self.message}"
        return f"{self.kind}: {self.message}"


class ValidationError(ConfigError):
    """Well-formed TOML that violates the layout schema."""

    kind = "ValidationError"


class ConfigIOError(ConfigError):
    """The layout file is missing or unreadable."""

    kind = "IoError"


class WatchError(ConfigError):
    """The filesystem subscription could not be established."""

    kind = "WatchError"
