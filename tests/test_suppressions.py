"""Tests for inline suppression comments."""

from comparelint.engine.suppressions import Suppressions, filter_suppressed_findings
from comparelint.engine.types import Finding


def _finding(text, snippet, rule="style.yoda"):
    start = text.encode("utf-8").index(snippet.encode("utf-8"))
    return Finding(rule=rule, message="msg", file="a.js", start_byte=start,
                   end_byte=start + len(snippet.encode("utf-8")), severity="warn")


class TestSuppressions:
    """Test suite for parsing suppression comments."""

    def test_same_line(self):
        """Test that a trailing comment suppresses its own line only."""
        text = "if (1 === x) {} // comparelint: ignore[style.yoda]\nif (2 === y) {}\n"
        suppressions = Suppressions(text)
        assert suppressions.is_suppressed("style.yoda", text.index("1 ==="))
        assert not suppressions.is_suppressed("style.yoda", text.index("2 ==="))

    def test_comment_line_applies_to_next_line(self):
        """Test that a comment alone on its line also covers the line below."""
        text = "// comparelint: ignore[style.yoda]\nif (1 === x) {}\nif (2 === y) {}\n"
        suppressions = Suppressions(text)
        assert suppressions.is_suppressed("style.yoda", text.index("1 ==="))
        assert not suppressions.is_suppressed("style.yoda", text.index("2 ==="))

    def test_trailing_comment_does_not_reach_next_line(self):
        """Test that a comment after code does not cover the next line."""
        text = "foo(); // comparelint: ignore[style.yoda]\nif (1 === x) {}\n"
        assert not Suppressions(text).is_suppressed("style.yoda", text.index("1 ==="))

    def test_block_comment(self):
        """Test that block comments suppress too."""
        text = "if (1 === x) {} /* comparelint: ignore[style.yoda] */\n"
        assert Suppressions(text).is_suppressed("style.yoda", 4)

    def test_hash_comment_is_not_javascript(self):
        """Test that a # comment form is not recognized."""
        text = "x; # comparelint: ignore[style.yoda]\n"
        assert not Suppressions(text).is_suppressed("style.yoda", 0)

    def test_glob_and_lists(self):
        """Test that one comment may list several ids and globs."""
        text = "x; // comparelint: ignore[other.rule, style.*]\n"
        suppressions = Suppressions(text)
        assert suppressions.is_suppressed("style.yoda", 0)
        assert suppressions.is_suppressed("other.rule", 0)
        assert not suppressions.is_suppressed("bug.thing", 0)

    def test_empty_brackets_suppress_nothing(self):
        """Test that ignore[] matches no rule."""
        text = "x; // comparelint: ignore[]\n"
        assert not Suppressions(text).is_suppressed("style.yoda", 0)

    def test_multibyte_text_before_finding(self):
        """Test that line lookup counts UTF-8 bytes."""
        text = "const s = 'héllo'; // comparelint: ignore[style.yoda]\nif (1 === x) {}\n"
        suppressions = Suppressions(text)
        data = text.encode("utf-8")
        assert not suppressions.is_suppressed("style.yoda", data.index(b"1 ==="))
        assert suppressions.is_suppressed("style.yoda", data.index(b"s ="))

    def test_line_of(self):
        """Test that byte offsets map to 1-based lines."""
        suppressions = Suppressions("ab\ncd\n")
        assert suppressions.line_of(0) == 1
        assert suppressions.line_of(2) == 1
        assert suppressions.line_of(3) == 2
        assert suppressions.line_of(-5) == 1


class TestFilterSuppressedFindings:
    """Test suite for dropping suppressed findings."""

    def test_filters_only_matching_rules(self):
        """Test that findings of other rules on the line survive."""
        text = "if (1 === x) {} // comparelint: ignore[style.yoda]\n"
        findings = [_finding(text, "1 === x"), _finding(text, "1 === x", rule="other.rule")]
        assert [f.rule for f in filter_suppressed_findings(findings, text)] == ["other.rule"]

    def test_empty(self):
        """Test that no findings stays no findings."""
        assert filter_suppressed_findings([], "anything") == []
