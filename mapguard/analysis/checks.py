"""Structural and semantic checks applied to a loaded source map document."""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..config import SOURCE_ROOT_PATTERN, Sentinel
from ..core.document import SourceMapDocument
from ..core.errors import (
    InvalidSourcePaths,
    MalformedArtifact,
    MalformedOriginUrl,
    MissingOriginUrl,
    SentinelMismatch,
    SourceMapCheckError,
    error_for_kind,
)
from ..core.vlq import decode, first_mapped_segment
from ..utils.paths import resolve_in_tree

logger = logging.getLogger(__name__)

# Non-path sources such as '[synthetic:runtime]' are not checked on disk
SYNTHETIC_SOURCE_PATTERN = re.compile(r"\[.*\]")

SENTINEL_HELP = (
    "If this change is intentional, update the mapping related constants in "
    "mapguard/config.py (or the 'sentinel' section of the --config file)."
)


@dataclass(frozen=True)
class CheckResult:
    """Outcome of one check: ok, or an error kind with its details."""

    check: str
    ok: bool = True
    kind: Optional[str] = None
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def passed(cls, check: str) -> "CheckResult":
        return cls(check=check)

    @classmethod
    def failed(cls, check: str, kind: str, message: str, **details) -> "CheckResult":
        return cls(check=check, ok=False, kind=kind, message=message, details=details)

    @classmethod
    def from_error(cls, check: str, error: SourceMapCheckError) -> "CheckResult":
        return cls(check=check, ok=False, kind=error.kind, message=error.message, details=dict(error.details))

    def raise_for_status(self) -> None:
        """Raise the exception matching this result's kind, if it failed."""
        if not self.ok:
            raise error_for_kind(self.kind)(self.message, dict(self.details))


def is_synthetic_source(source: str) -> bool:
    return bool(SYNTHETIC_SOURCE_PATTERN.search(source))


def slice_utf16_column(line: str, column: int) -> str:
    """Slice a line at a source map column, which counts UTF-16 code units."""
    units = 0
    for index, char in enumerate(line):
        if units >= column:
            return line[index:]
        # Characters outside the BMP take a surrogate pair
        units += 2 if ord(char) > 0xFFFF else 1
    return ""


def check_origin(doc: SourceMapDocument, pattern: str = SOURCE_ROOT_PATTERN) -> CheckResult:
    """Verify that a correctly formatted sourcemap URL is present."""
    logger.info(f"Inspecting sourceRoot in {doc.path}...")
    if not doc.source_root:
        return CheckResult.failed(
            "origin", MissingOriginUrl.kind,
            f"Could not find sourceRoot in {doc.path}",
            path=doc.path,
        )
    if not re.match(pattern, doc.source_root):
        return CheckResult.failed(
            "origin", MalformedOriginUrl.kind,
            f"sourceRoot {doc.source_root} is badly formatted",
            path=doc.path, actual=doc.source_root, expected=pattern,
        )
    return CheckResult.passed("origin")


def check_sources(doc: SourceMapDocument, root: Optional[Union[str, Path]] = None) -> CheckResult:
    """Verify that every non-synthetic path in sources exists in the working tree.

    All offending paths are collected before failing so one run lists them all.
    """
    logger.info(f"Inspecting sources in {doc.path}...")
    invalid_sources = [
        source for source in doc.sources
        if not is_synthetic_source(source) and not resolve_in_tree(source, root).is_file()
    ]
    if invalid_sources:
        return CheckResult.failed(
            "sources", InvalidSourcePaths.kind,
            f"Found invalid paths in sources: {', '.join(invalid_sources)}",
            path=doc.path, invalid_sources=invalid_sources,
        )
    return CheckResult.passed("sources")


def _sentinel_mismatch(doc: SourceMapDocument, what: str, actual: Any, expected: Any) -> CheckResult:
    return CheckResult.failed(
        "mappings", SentinelMismatch.kind,
        f"Found mapping for incorrect {what}",
        path=doc.path, actual=actual, expected=expected, help=SENTINEL_HELP,
    )


def check_mapping_sentinel(doc: SourceMapDocument,
                           sentinel: Optional[Sentinel] = None,
                           root: Optional[Union[str, Path]] = None) -> CheckResult:
    """Sanity check the mappings field against a known first line of code.

    The first line of the bundle after resolving imports comes from a stable
    file pulled in first by the entry module's import chain, so it works as
    a sentinel:

    1. Decode 'mappings' into per-line segments.
    2. Take the first sourced segment of the first non-empty generated line.
    3. Resolve its source index to a file name.
    4. Read that file and slice the mapped line at the mapped column.
    5. Compare file name and code with the sentinel values.
    """
    sentinel = sentinel or Sentinel()
    logger.info(f"Inspecting mappings in {doc.path}...")

    try:
        lines = decode(doc.mappings)
    except MalformedArtifact as e:
        return CheckResult.from_error("mappings", e)

    segment = first_mapped_segment(lines)
    if segment is None:
        return _sentinel_mismatch(doc, "file", None, sentinel.source_file)

    if segment.source_index >= len(doc.sources):
        return CheckResult.failed(
            "mappings", MalformedArtifact.kind,
            f"Mapping references source index {segment.source_index} but "
            f"{doc.path} lists only {len(doc.sources)} sources",
            path=doc.path, source_index=segment.source_index,
        )

    first_line_file = doc.sources[segment.source_index]
    logger.debug(
        f"First mapped segment in {doc.path}: {first_line_file} "
        f"line {segment.original_line} column {segment.original_column}"
    )
    if first_line_file != sentinel.source_file:
        return _sentinel_mismatch(doc, "file", first_line_file, sentinel.source_file)

    try:
        contents = resolve_in_tree(first_line_file, root).read_text(encoding="utf-8").split("\n")
    except (OSError, UnicodeDecodeError) as e:
        return CheckResult.failed(
            "mappings", SentinelMismatch.kind,
            f"Could not read sentinel source {first_line_file}: {e}",
            path=doc.path, actual=None, expected=sentinel.first_line_code, help=SENTINEL_HELP,
        )

    if segment.original_line >= len(contents):
        first_line_code = None
    else:
        first_line_code = slice_utf16_column(contents[segment.original_line], segment.original_column)

    if first_line_code != sentinel.first_line_code:
        return _sentinel_mismatch(doc, "code", first_line_code, sentinel.first_line_code)
    return CheckResult.passed("mappings")
