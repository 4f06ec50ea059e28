"""Core functionality for decoding, loading and building source maps."""

from .builder import BuildRunner
from .document import SourceMapDocument, load_source_map
from .errors import (
    BuildFailed,
    InvalidSourcePaths,
    MalformedArtifact,
    MalformedOriginUrl,
    MissingArtifact,
    MissingOriginUrl,
    SentinelMismatch,
    SourceMapCheckError,
    UnreachableOriginUrl,
)
from .vlq import MappingSegment, SegmentDecodeError, decode, encode, first_mapped_segment

__all__ = [
    'BuildRunner',
    'SourceMapDocument',
    'load_source_map',
    'SourceMapCheckError',
    'MissingArtifact',
    'MalformedArtifact',
    'MissingOriginUrl',
    'MalformedOriginUrl',
    'InvalidSourcePaths',
    'SentinelMismatch',
    'UnreachableOriginUrl',
    'BuildFailed',
    'MappingSegment',
    'SegmentDecodeError',
    'decode',
    'encode',
    'first_mapped_segment',
]
