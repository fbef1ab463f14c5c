"""
Inline suppression comments.

A finding is dropped when its line carries a comment naming its rule id or
a glob matching it:

    if (1 === x) {}  // comparelint: ignore[style.yoda]

A suppression comment that sits alone on its line also covers the line
below it.
"""

import bisect
import fnmatch
import re
from typing import Dict, List, Set

from .types import Finding

SUPPRESSION_PATTERN = re.compile(r"(?://|/\*)\s*comparelint:\s*ignore\s*\[([^\]]*)\]", re.IGNORECASE)


class Suppressions:
    """Suppressed rule patterns per line of one file."""

    def __init__(self, text: str):
        self._line_starts: List[int] = [0]
        self._patterns: Dict[int, Set[str]] = {}

        offset = 0
        lines = text.split("\n")
        for line_num, line in enumerate(lines, 1):
            offset += len(line.encode("utf-8")) + 1
            self._line_starts.append(offset)

            patterns = {p.strip() for m in SUPPRESSION_PATTERN.finditer(line)
                        for p in m.group(1).split(",") if p.strip()}
            if not patterns:
                continue
            self._patterns.setdefault(line_num, set()).update(patterns)
            if line.lstrip().startswith(("//", "/*")):
                self._patterns.setdefault(line_num + 1, set()).update(patterns)

    def line_of(self, byte_offset: int) -> int:
        """1-based line holding ``byte_offset`` of the UTF-8 text."""
        return max(1, bisect.bisect_right(self._line_starts, byte_offset))

    def is_suppressed(self, rule_id: str, byte_offset: int) -> bool:
        return any(fnmatch.fnmatchcase(rule_id, pattern)
                   for pattern in self._patterns.get(self.line_of(byte_offset), ()))


def filter_suppressed_findings(findings: List[Finding], text: str) -> List[Finding]:
    if not findings:
        return findings
    suppressions = Suppressions(text)
    return [f for f in findings if not suppressions.is_suppressed(f.rule, f.start_byte)]
