"""
JSON output protocol.

``--format json`` prints one document per run. Findings carry both byte
offsets (as produced by the rules) and a line/column range for editors.
The document is described by ``OUTPUT_SCHEMA`` and can be checked with
``validate_output``.
"""

from pathlib import Path
from typing import Any, Dict, List, Tuple

import jsonschema

from .. import __version__ as ENGINE_VERSION
from .types import Finding

PROTOCOL_KEY = "comparelint.protocol"
PROTOCOL_VERSION = "1"

_COUNT = {"type": "integer", "minimum": 0}
_LINE = {"type": "integer", "minimum": 1}
_MILLIS = {"type": "number", "minimum": 0}


def _closed_object(properties: Dict[str, Any], optional: Tuple[str, ...] = ()) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": properties,
        "required": [name for name in properties if name not in optional],
        "additionalProperties": False,
    }


# Lines are 1-based, columns 0-based character offsets
RANGE_SCHEMA = _closed_object({"startLine": _LINE, "startCol": _COUNT, "endLine": _LINE, "endCol": _COUNT})

FINDING_SCHEMA = _closed_object({
    "rule_id": {"type": "string"},
    "message": {"type": "string"},
    "file_path": {"type": "string"},
    "uri": {"type": "string"},
    "start_byte": _COUNT,
    "end_byte": _COUNT,
    "range": RANGE_SCHEMA,
    "severity": {"enum": ["info", "warn", "error"]},
    "meta": {"type": "object"},
}, optional=("meta",))

OUTPUT_SCHEMA = _closed_object({
    PROTOCOL_KEY: {"const": PROTOCOL_VERSION},
    "engine_version": {"type": "string"},
    "files_scanned": _COUNT,
    "rules_run": _COUNT,
    "findings": {"type": "array", "items": FINDING_SCHEMA},
    "metrics": _closed_object({"parse_ms": _MILLIS, "rules_ms": _MILLIS, "total_ms": _MILLIS}),
})


def byte_to_line_col(text: str, byte_offset: int) -> Tuple[int, int]:
    """(1-based line, 0-based character column) of a UTF-8 byte offset into ``text``."""
    data = text.encode("utf-8")
    prefix = data[:max(0, byte_offset)].decode("utf-8", errors="ignore")
    line_start = prefix.rfind("\n") + 1
    return prefix.count("\n") + 1, len(prefix) - line_start


def finding_to_json(finding: Finding, text: str) -> Dict[str, Any]:
    """Protocol form of one finding; ``text`` is the file content for the range."""
    path = Path(finding.file).resolve()
    start_line, start_col = byte_to_line_col(text, finding.start_byte)
    end_line, end_col = byte_to_line_col(text, finding.end_byte)

    result = {
        "rule_id": finding.rule,
        "message": finding.message,
        "file_path": str(path),
        "uri": path.as_uri(),
        "start_byte": finding.start_byte,
        "end_byte": finding.end_byte,
        "range": {"startLine": start_line, "startCol": start_col, "endLine": end_line, "endCol": end_col},
        "severity": finding.severity,
    }
    if finding.meta:
        result["meta"] = finding.meta
    return result


def build_output(findings: List[Finding], texts: Dict[str, str], files_scanned: int,
                 rules_run: int, metrics: Dict[str, float]) -> Dict[str, Any]:
    """The run document. ``texts`` maps each finding's file to its content."""
    return {
        PROTOCOL_KEY: PROTOCOL_VERSION,
        "engine_version": ENGINE_VERSION,
        "files_scanned": files_scanned,
        "rules_run": rules_run,
        "findings": [finding_to_json(f, texts.get(f.file, "")) for f in findings],
        "metrics": metrics,
    }


def validate_output(output: Dict[str, Any]) -> List[str]:
    """Schema violations in a run document, as readable messages (empty when valid)."""
    validator = jsonschema.Draft7Validator(OUTPUT_SCHEMA)
    return [f"{'/'.join(map(str, error.absolute_path)) or '<root>'}: {error.message}"
            for error in validator.iter_errors(output)]
