"""Tests for the origin, sources and mapping sentinel checks."""

import pytest

from mapguard.analysis.checks import (
    CheckResult,
    check_mapping_sentinel,
    check_origin,
    check_sources,
    is_synthetic_source,
    slice_utf16_column,
)
from mapguard.config import Sentinel
from mapguard.core.document import SourceMapDocument
from mapguard.core.errors import (
    InvalidSourcePaths,
    MalformedArtifact,
    MalformedOriginUrl,
    MissingOriginUrl,
    SentinelMismatch,
)

from conftest import DROP, SENTINEL_CODE, SENTINEL_FILE, VALID_SOURCE_ROOT, make_map


def make_doc(**overrides) -> SourceMapDocument:
    return SourceMapDocument.from_dict(make_map(**overrides), path="dist/v0.js.map")


class TestCheckOrigin:

    def test_accepts_13_digit_build_id(self):
        result = check_origin(make_doc(sourceRoot=VALID_SOURCE_ROOT))
        assert result.ok
        assert result.check == "origin"

    def test_rejects_wrong_digit_count(self):
        result = check_origin(make_doc(sourceRoot="https://raw.githubusercontent.com/ampproject/amphtml/123/"))
        assert not result.ok
        assert result.kind == MalformedOriginUrl.kind
        assert result.details["actual"].endswith("/123/")

    def test_rejects_14_digits(self):
        result = check_origin(make_doc(sourceRoot="https://raw.githubusercontent.com/ampproject/amphtml/12345678901234/"))
        assert result.kind == MalformedOriginUrl.kind

    def test_rejects_other_host(self):
        result = check_origin(make_doc(sourceRoot="https://example.com/ampproject/amphtml/1234567890123/"))
        assert result.kind == MalformedOriginUrl.kind

    def test_empty_source_root(self):
        result = check_origin(make_doc(sourceRoot=""))
        assert not result.ok
        assert result.kind == MissingOriginUrl.kind

    def test_absent_source_root(self):
        result = check_origin(make_doc(sourceRoot=DROP))
        assert result.kind == MissingOriginUrl.kind

    def test_custom_pattern(self):
        result = check_origin(make_doc(sourceRoot="https://cdn.test/42/"), pattern=r"https://cdn\.test/\d+/")
        assert result.ok


class TestCheckSources:

    @pytest.fixture
    def tree(self, tmp_path):
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "a.js").write_text("export const a = 1;\n")
        return tmp_path

    def test_synthetic_sources_exempt(self, tree):
        result = check_sources(make_doc(sources=["src/a.js", "[synthetic:runtime]"]), tree)
        assert result.ok

    def test_reports_missing_source(self, tree):
        result = check_sources(make_doc(sources=["src/a.js", "src/missing.js"]), tree)

        assert not result.ok
        assert result.kind == InvalidSourcePaths.kind
        assert result.details["invalid_sources"] == ["src/missing.js"]

    def test_collects_every_missing_source(self, tree):
        result = check_sources(make_doc(sources=["src/b.js", "src/a.js", "[x]", "src/c.js"]), tree)
        assert result.details["invalid_sources"] == ["src/b.js", "src/c.js"]

    def test_directory_is_not_a_source_file(self, tree):
        result = check_sources(make_doc(sources=["src"]), tree)
        assert result.details["invalid_sources"] == ["src"]

    def test_is_synthetic_source(self):
        assert is_synthetic_source("[synthetic:runtime]")
        assert is_synthetic_source("webpack:///[virtual]")
        assert not is_synthetic_source("src/amp.js")

    @pytest.mark.parametrize("line,column,expected", [
        ("class A {", 6, "A {"),
        ("😀x", 2, "x"),
        ("é😀x", 3, "x"),
        ("abc", 5, ""),
        ("", 0, ""),
    ])
    def test_slice_utf16_column(self, line, column, expected):
        assert slice_utf16_column(line, column) == expected


class TestCheckMappingSentinel:

    def test_passes_on_sentinel(self, source_tree):
        result = check_mapping_sentinel(make_doc(), Sentinel(SENTINEL_FILE, SENTINEL_CODE), source_tree)
        assert result.ok
        assert result.check == "mappings"

    def test_default_sentinel(self, source_tree):
        assert check_mapping_sentinel(make_doc(), root=source_tree).ok

    def test_wrong_file(self, source_tree):
        doc = make_doc(sources=["src/amp.js", SENTINEL_FILE])
        result = check_mapping_sentinel(doc, Sentinel(), source_tree)

        assert result.kind == SentinelMismatch.kind
        assert result.details["actual"] == "src/amp.js"
        assert result.details["expected"] == SENTINEL_FILE
        assert "mapguard/config.py" in result.details["help"]

    def test_wrong_code(self, source_tree):
        (source_tree / SENTINEL_FILE).write_text("class AbortSignal {\n}\n")
        result = check_mapping_sentinel(make_doc(), Sentinel(), source_tree)

        assert result.kind == SentinelMismatch.kind
        assert result.details["actual"] == "class AbortSignal {"
        assert result.details["expected"] == SENTINEL_CODE

    def test_slices_at_mapped_column(self, source_tree):
        # ;AACE -> sources[0] line 1 column 2
        result = check_mapping_sentinel(make_doc(mappings=";AACE"), Sentinel(SENTINEL_FILE, "constructor() {"), source_tree)
        assert result.ok

    def test_column_counts_utf16_code_units(self, source_tree):
        # The emoji is one code point but two UTF-16 units; ;AAAM -> column 6
        (source_tree / SENTINEL_FILE).write_text("/*😀*/class AbortController {\n", encoding="utf-8")
        result = check_mapping_sentinel(make_doc(mappings=";AAAM"), Sentinel(), source_tree)
        assert result.ok

    def test_line_beyond_end_of_file(self, source_tree):
        # ;AAkBA -> sources[0] line 18
        result = check_mapping_sentinel(make_doc(mappings=";AAkBA"), Sentinel(), source_tree)
        assert result.kind == SentinelMismatch.kind
        assert result.details["actual"] is None

    def test_unreadable_sentinel_file(self, tmp_path):
        result = check_mapping_sentinel(make_doc(), Sentinel(), tmp_path)
        assert result.kind == SentinelMismatch.kind
        assert "Could not read" in result.message

    def test_malformed_mappings(self, source_tree):
        result = check_mapping_sentinel(make_doc(mappings=";AA!A"), Sentinel(), source_tree)
        assert result.kind == MalformedArtifact.kind

    def test_source_index_out_of_range(self, source_tree):
        # ;AGAA -> source index 3 with three sources
        result = check_mapping_sentinel(make_doc(mappings=";AGAA"), Sentinel(), source_tree)
        assert result.kind == MalformedArtifact.kind
        assert result.details["source_index"] == 3

    def test_no_mapped_segment(self, source_tree):
        result = check_mapping_sentinel(make_doc(mappings=";;"), Sentinel(), source_tree)
        assert result.kind == SentinelMismatch.kind
        assert result.details["actual"] is None


class TestCheckResult:

    def test_raise_for_status_passed(self):
        CheckResult.passed("origin").raise_for_status()

    def test_raise_for_status_maps_kind(self):
        result = CheckResult.failed("sources", InvalidSourcePaths.kind, "bad", invalid_sources=["x.js"])
        with pytest.raises(InvalidSourcePaths) as exc_info:
            result.raise_for_status()
        assert exc_info.value.details["invalid_sources"] == ["x.js"]
