"""Error types raised while dispatching and parsing dependency files."""

from typing import Optional


class DepExtractError(Exception):
    """Base class for all DepExtract errors."""


class NoMatchError(DepExtractError):
    """No dispatch entry of an ecosystem claims the given filename."""

    def __init__(self, filename: str, ecosystem: Optional[str] = None) -> None:
        self.filename = filename
        self.ecosystem = ecosystem
        if ecosystem:
            message = f"No {ecosystem} parser matches {filename}"
        else:
            message = f"No parser matches {filename}"
        super().__init__(message)


class UnsupportedFormatError(DepExtractError):
    """File content is not in any format the matched parser understands."""


class MalformedInputError(DepExtractError):
    """Content was recognized but is structurally invalid.

    Args:
        message: Human readable description
        field: Dotted path of the offending field, for structured formats
        line: 1-based line number, for line oriented formats
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        line: Optional[int] = None
    ) -> None:
        self.field = field
        self.line = line
        if field:
            message = f"{message} (field: {field})"
        if line is not None:
            message = f"{message} (line {line})"
        super().__init__(message)


class RemoteParsingError(DepExtractError):
    """A remote conversion service failed or could not be reached."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        endpoint: Optional[str] = None
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)
