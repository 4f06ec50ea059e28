"""Base64 VLQ codec for the source map ``mappings`` field."""

import logging
from typing import Iterable, List, NamedTuple, Optional, Sequence

from .errors import MalformedArtifact

logger = logging.getLogger(__name__)

BASE64_CHARS = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
_CHAR_TO_DIGIT = {char: digit for digit, char in enumerate(BASE64_CHARS)}

VLQ_BASE_SHIFT = 5
VLQ_BASE_MASK = 0b11111
VLQ_CONTINUATION_BIT = 0b100000

# Segments carry 1 (column only), 4 (with source) or 5 (with name) fields.
VALID_SEGMENT_LENGTHS = (1, 4, 5)


class SegmentDecodeError(MalformedArtifact):
    """The mappings string is not valid base64 VLQ."""


class MappingSegment(NamedTuple):
    """One decoded mapping segment, all values absolute and 0-based."""

    generated_column: int
    source_index: Optional[int] = None
    original_line: Optional[int] = None
    original_column: Optional[int] = None
    name_index: Optional[int] = None

    @property
    def has_source(self) -> bool:
        return self.source_index is not None


def decode_vlq(segment: str) -> List[int]:
    """Decode one comma-free segment into its list of signed integers."""
    values = []
    value, shift = 0, 0
    for offset, char in enumerate(segment):
        digit = _CHAR_TO_DIGIT.get(char)
        if digit is None:
            raise SegmentDecodeError(
                f"Invalid base64 character {char!r} at offset {offset} in segment {segment!r}",
                {"segment": segment, "offset": offset},
            )
        value += (digit & VLQ_BASE_MASK) << shift
        if digit & VLQ_CONTINUATION_BIT:
            shift += VLQ_BASE_SHIFT
            continue
        # The low bit of the unpacked value is the sign.
        negative = value & 1
        value >>= 1
        values.append(-value if negative else value)
        value, shift = 0, 0

    if shift:
        raise SegmentDecodeError(
            f"Segment {segment!r} ends inside a continued VLQ digit",
            {"segment": segment},
        )
    return values


def encode_vlq(value: int) -> str:
    """Encode a single signed integer as base64 VLQ."""
    vlq = ((-value) << 1) | 1 if value < 0 else value << 1
    chars = []
    while True:
        digit = vlq & VLQ_BASE_MASK
        vlq >>= VLQ_BASE_SHIFT
        if vlq:
            digit |= VLQ_CONTINUATION_BIT
        chars.append(BASE64_CHARS[digit])
        if not vlq:
            return "".join(chars)


def decode(mappings: str) -> List[List[MappingSegment]]:
    """Decode a ``mappings`` string into one segment list per generated line.

    The generated column restarts at 0 on every line; source index, original
    line, original column and name index are deltas against the previous
    segment that carried them, across line boundaries.

    Raises:
        SegmentDecodeError: on any malformed segment. Nothing is returned
            for partially decoded input.
    """
    lines: List[List[MappingSegment]] = []
    source_index = original_line = original_column = name_index = 0

    for line_number, line in enumerate(mappings.split(";")):
        generated_column = 0
        segments = []
        for raw_segment in line.split(","):
            if not raw_segment:
                continue
            fields = decode_vlq(raw_segment)
            if len(fields) not in VALID_SEGMENT_LENGTHS:
                raise SegmentDecodeError(
                    f"Segment {raw_segment!r} on generated line {line_number} has "
                    f"{len(fields)} fields, expected 1, 4 or 5",
                    {"segment": raw_segment, "line": line_number},
                )

            generated_column += fields[0]
            if len(fields) == 1:
                segment = MappingSegment(generated_column)
            else:
                source_index += fields[1]
                original_line += fields[2]
                original_column += fields[3]
                name = None
                if len(fields) == 5:
                    name_index += fields[4]
                    name = name_index
                segment = MappingSegment(
                    generated_column, source_index, original_line, original_column, name
                )

            if any(value is not None and value < 0 for value in segment):
                raise SegmentDecodeError(
                    f"Segment {raw_segment!r} on generated line {line_number} "
                    f"decodes to a negative position {tuple(segment)}",
                    {"segment": raw_segment, "line": line_number},
                )
            segments.append(segment)
        lines.append(segments)

    logger.debug(f"Decoded {len(lines)} generated lines from {len(mappings)} mapping chars")
    return lines


def encode(lines: Iterable[Sequence[MappingSegment]]) -> str:
    """Encode per-line segment lists back into a ``mappings`` string."""
    encoded_lines = []
    source_index = original_line = original_column = name_index = 0

    for segments in lines:
        generated_column = 0
        encoded_segments = []
        for segment in segments:
            parts = [encode_vlq(segment.generated_column - generated_column)]
            generated_column = segment.generated_column
            if segment.has_source:
                parts.append(encode_vlq(segment.source_index - source_index))
                parts.append(encode_vlq(segment.original_line - original_line))
                parts.append(encode_vlq(segment.original_column - original_column))
                source_index = segment.source_index
                original_line = segment.original_line
                original_column = segment.original_column
                if segment.name_index is not None:
                    parts.append(encode_vlq(segment.name_index - name_index))
                    name_index = segment.name_index
            encoded_segments.append("".join(parts))
        encoded_lines.append(",".join(encoded_segments))

    return ";".join(encoded_lines)


def first_mapped_segment(lines: Sequence[Sequence[MappingSegment]]) -> Optional[MappingSegment]:
    """Return the first segment with a source reference, or None.

    The leading line-group before the first code line carries no mappings
    and is skipped along with any other line that has no sourced segment.
    """
    for segments in lines:
        for segment in segments:
            if segment.has_source:
                return segment
    return None
