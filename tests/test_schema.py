"""Tests for the JSON output protocol."""

from pathlib import Path

from comparelint import __version__
from comparelint.engine.schema import (
    PROTOCOL_KEY, build_output, byte_to_line_col, finding_to_json, validate_output,
)
from comparelint.engine.types import Finding

METRICS = {"parse_ms": 0.5, "rules_ms": 1.0, "total_ms": 2.0}


def _finding(path, **overrides):
    values = dict(rule="style.yoda", message="Expected literal to be on the right side of ===.",
                  file=str(path), start_byte=4, end_byte=11, severity="warn",
                  meta={"operator": "==="})
    values.update(overrides)
    return Finding(**values)


class TestPositions:
    """Test suite for byte offset conversion."""

    def test_byte_to_line_col(self):
        """Test that lines are 1-based and columns 0-based."""
        text = "a\nbc\n"
        assert byte_to_line_col(text, 0) == (1, 0)
        assert byte_to_line_col(text, 2) == (2, 0)
        assert byte_to_line_col(text, 4) == (2, 2)

    def test_multibyte_columns_count_characters(self):
        """Test that a two-byte character is one column."""
        text = "é = 1 === x;"
        offset = text.encode("utf-8").index(b"1")
        assert byte_to_line_col(text, offset) == (1, 4)

    def test_offsets_are_clamped(self):
        """Test that offsets outside the text land on its edges."""
        assert byte_to_line_col("ab", -5) == (1, 0)
        assert byte_to_line_col("ab", 99) == (1, 2)


class TestFindingToJson:
    """Test suite for the protocol form of a finding."""

    def test_conversion(self, tmp_path):
        """Test that paths are absolute and the range spans the finding."""
        path = tmp_path / "a.js"
        result = finding_to_json(_finding(path), "x\nif (1 === y) {}\n")

        assert result["file_path"] == str(path.resolve())
        assert result["uri"] == path.resolve().as_uri()
        assert result["start_byte"] == 4
        assert result["range"] == {"startLine": 2, "startCol": 2, "endLine": 2, "endCol": 9}
        assert result["meta"] == {"operator": "==="}

    def test_relative_path_is_resolved(self):
        """Test that relative finding paths are made absolute."""
        result = finding_to_json(_finding("src/a.js"), "")
        assert Path(result["file_path"]).is_absolute()

    def test_meta_is_optional(self, tmp_path):
        """Test that empty meta is left out."""
        result = finding_to_json(_finding(tmp_path / "a.js", meta=None), "")
        assert "meta" not in result


class TestBuildOutput:
    """Test suite for the run document."""

    def test_document(self, tmp_path):
        """Test that the document carries protocol, version, counts and findings."""
        path = str(tmp_path / "a.js")
        output = build_output([_finding(path)], {path: "if (1 === x) {}\n"}, 1, 1, METRICS)

        assert output[PROTOCOL_KEY] == "1"
        assert output["engine_version"] == __version__
        assert output["files_scanned"] == 1
        assert output["rules_run"] == 1
        assert output["metrics"] == METRICS
        [finding] = output["findings"]
        assert finding["range"] == {"startLine": 1, "startCol": 4, "endLine": 1, "endCol": 11}
        assert validate_output(output) == []

    def test_empty_run_is_valid(self):
        """Test that a run without findings validates."""
        assert validate_output(build_output([], {}, 0, 0, METRICS)) == []


class TestValidateOutput:
    """Test suite for schema validation."""

    def _output(self, tmp_path, **overrides):
        path = str(tmp_path / "a.js")
        return build_output([_finding(path, **overrides)], {path: "if (1 === x) {}\n"}, 1, 1, METRICS)

    def test_invalid_severity(self, tmp_path):
        """Test that an unknown severity is reported with its location."""
        errors = validate_output(self._output(tmp_path, severity="fatal"))
        assert len(errors) == 1
        assert errors[0].startswith("findings/0/severity:")

    def test_missing_key(self, tmp_path):
        """Test that a missing top-level key is reported at the root."""
        output = self._output(tmp_path)
        del output["metrics"]
        [error] = validate_output(output)
        assert error.startswith("<root>:")
        assert "metrics" in error

    def test_wrong_protocol_version(self, tmp_path):
        """Test that another protocol version is rejected."""
        output = self._output(tmp_path)
        output[PROTOCOL_KEY] = "2"
        assert validate_output(output)

    def test_extra_finding_key(self, tmp_path):
        """Test that findings are closed objects."""
        output = self._output(tmp_path)
        output["findings"][0]["fix"] = "x === 1"
        assert validate_output(output)
