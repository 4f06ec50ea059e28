"""Error taxonomy for source map verification."""

from typing import Any, Dict, Optional


class SourceMapCheckError(Exception):
    """Base class for every verification failure."""

    kind = "SourceMapCheckError"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class MissingArtifact(SourceMapCheckError):
    """Map file is absent."""
    kind = "MissingArtifact"


class MalformedArtifact(SourceMapCheckError):
    """Map file cannot be parsed or violates the document schema."""
    kind = "MalformedArtifact"


class MissingOriginUrl(SourceMapCheckError):
    kind = "MissingOriginUrl"


class MalformedOriginUrl(SourceMapCheckError):
    kind = "MalformedOriginUrl"


class InvalidSourcePaths(SourceMapCheckError):
    """One or more entries in sources do not exist in the working tree."""
    kind = "InvalidSourcePaths"


class SentinelMismatch(SourceMapCheckError):
    """First mapped segment does not point at the expected file and code."""
    kind = "SentinelMismatch"


class UnreachableOriginUrl(SourceMapCheckError):
    kind = "UnreachableOriginUrl"


class BuildFailed(SourceMapCheckError):
    """External build command exited with an error."""
    kind = "BuildFailed"


ERROR_CLASSES = {
    cls.kind: cls
    for cls in (
        MissingArtifact,
        MalformedArtifact,
        MissingOriginUrl,
        MalformedOriginUrl,
        InvalidSourcePaths,
        SentinelMismatch,
        UnreachableOriginUrl,
        BuildFailed,
    )
}


def error_for_kind(kind: str) -> type:
    """Return the exception class registered for an error kind."""
    return ERROR_CLASSES.get(kind, SourceMapCheckError)
