"""Error taxonomy for analysis runs.

File-level (ParseError) and chunk-level (ReviewError) failures are contained
by the component that hits them and recorded on the run. ConfigError is fatal
and always propagates to the caller. RunError wraps anything else that stops
a run part way through.
"""

from enum import Enum


class AnalysisError(Exception):
    """Base class for codescope errors."""


class ConfigError(AnalysisError):
    """Invalid configuration, e.g. chunk overlap >= chunk size.

    Deliberately not a ValueError subclass so that pydantic validators let it
    propagate unchanged instead of folding it into a ValidationError.
    """


class ParseError(AnalysisError):
    """A file's syntax tree could not be built."""

    def __init__(self, file_path: str, message: str | None = None):
        self.file_path = file_path
        super().__init__(message or f"Failed to parse {file_path}")


class ReviewErrorKind(str, Enum):
    """Why an AI review of one chunk produced no findings."""

    TRANSPORT = "transport"
    TIMEOUT = "timeout"
    NO_JSON = "no_json"
    INVALID_JSON = "invalid_json"


class ReviewError(AnalysisError):
    """The model collaborator failed or returned unusable output."""

    def __init__(self, kind: ReviewErrorKind, message: str):
        self.kind = kind
        super().__init__(message)


class RunError(AnalysisError):
    """Unexpected failure that stopped an analysis run."""
