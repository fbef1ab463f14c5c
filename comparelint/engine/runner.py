"""
comparelint command line.

    comparelint --paths src/ --format pretty
    python -m comparelint.engine.runner --paths app.js --rules "style.*" --validate

Exit status: 0 when the run is clean, 1 when there are findings (or the
JSON output fails validation), 2 when no files were analyzed.
"""

import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .config import EngineConfig, config_for_rule, find_config_file, get_rule_severity, load_config
from .registry import default_registry, discover_rules, get_adapter, get_enabled_rules, register_adapter
from .schema import build_output, byte_to_line_col, validate_output
from .suppressions import filter_suppressed_findings
from .types import Finding, Rule, RuleContext

logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGES = ["javascript", "typescript"]
RULE_PACKAGES = ["comparelint.rules"]

EXIT_CLEAN = 0
EXIT_FINDINGS = 1
EXIT_NO_FILES = 2

SEVERITY_ICONS = {"info": "ℹ️", "warn": "⚠️", "error": "❌"}


def setup_adapters():
    from .javascript_adapter import default_javascript_adapter
    from .typescript_adapter import default_typescript_adapter
    register_adapter(default_javascript_adapter)
    register_adapter(default_typescript_adapter)


def collect_files(paths: List[str], language: str) -> List[str]:
    """Resolved, sorted paths of the ``language`` files under ``paths``."""
    adapter = get_adapter(language)
    if adapter is None:
        logger.error(f"No adapter registered for '{language}'")
        return []
    return sorted({str(Path(f).resolve()) for f in adapter.list_files(paths)})


def analyze_source(content: str, file_path: str, language: str, rules: List[Rule],
                   config: EngineConfig) -> Tuple[List[Finding], float]:
    """Run ``rules`` over one file's text.

    Returns the findings (configured severities applied, per-file cap and
    suppression comments honoured) and the parse time in milliseconds.
    """
    adapter = get_adapter(language)
    if adapter is None:
        return [], 0.0

    started = time.perf_counter()
    tree = adapter.parse(content, file_path=file_path)
    parse_ms = (time.perf_counter() - started) * 1000
    if tree is None:
        logger.warning(f"No {language} parser; syntax rules skipped for {file_path}")
        rules = [rule for rule in rules if not rule.requires.syntax]

    ctx = RuleContext(file_path=file_path, text=content, tree=tree, config={})
    findings: List[Finding] = []
    for rule in rules:
        rule_id = rule.meta.id
        rule_ctx = ctx.for_rule(config_for_rule(config, language, rule_id))
        try:
            produced = list(rule.visit(rule_ctx))
        except Exception as e:
            logger.warning(f"Rule '{rule_id}' failed on {file_path}: {e}")
            continue
        # The parsed view built by this rule is reused by the next one
        ctx = rule_ctx

        findings.extend(f.with_severity(get_rule_severity(config, f.rule, f.severity)) for f in produced)
        if len(findings) >= config.max_findings_per_file:
            findings = findings[:config.max_findings_per_file]
            break

    return filter_suppressed_findings(findings, content), parse_ms


def run_analysis(files: List[str], language: str, rules: List[Rule],
                 config: EngineConfig) -> Tuple[List[Finding], float, Dict[str, str]]:
    """Analyze ``files`` in order until ``max_total_findings`` is reached.

    Also returns the text of every file read, for position reporting.
    """
    findings: List[Finding] = []
    parse_ms = 0.0
    texts: Dict[str, str] = {}

    for file_path in files:
        try:
            content = Path(file_path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read {file_path}: {e}")
            continue
        texts[file_path] = content

        logger.debug(f"Analyzing {file_path}")
        file_findings, file_parse_ms = analyze_source(content, file_path, language, rules, config)
        parse_ms += file_parse_ms
        findings.extend(file_findings)
        if len(findings) >= config.max_total_findings:
            return findings[:config.max_total_findings], parse_ms, texts

    return findings, parse_ms, texts


def format_pretty(findings: List[Finding], texts: Dict[str, str], files_scanned: int,
                  rules_run: int, metrics: Dict[str, float]) -> str:
    lines = [f"Scanned {files_scanned} files with {rules_run} rules",
             f"Found {len(findings)} issues", ""]

    by_file: Dict[str, List[Finding]] = {}
    for finding in findings:
        by_file.setdefault(finding.file, []).append(finding)

    for file_path, file_findings in sorted(by_file.items()):
        lines.append(f"📁 {file_path}")
        text = texts.get(file_path)
        for finding in file_findings:
            if text is None:
                where = f"byte {finding.start_byte}"
            else:
                line, col = byte_to_line_col(text, finding.start_byte)
                where = f"{line}:{col + 1}"
            icon = SEVERITY_ICONS.get(finding.severity, "❓")
            lines.append(f"  {icon} {where}: {finding.message} ({finding.rule})")
        lines.append("")

    lines.append(f"📊 Parse {metrics['parse_ms']:.1f}ms, rules {metrics['rules_ms']:.1f}ms, "
                 f"total {metrics['total_ms']:.1f}ms")
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="comparelint",
        description="Lint JavaScript and TypeScript comparisons with tree-sitter.",
    )
    parser.add_argument("--paths", nargs="+", required=True,
                        help="Files or directories to analyze")
    parser.add_argument("--lang", "--language", choices=SUPPORTED_LANGUAGES,
                        help="Only analyze this language (default: all)")
    parser.add_argument("--discover", default=",".join(RULE_PACKAGES),
                        help="Comma-separated packages to load rules from")
    parser.add_argument("--rules", default=None,
                        help="Comma-separated rule ids or globs (default: enabled_rules from config)")
    parser.add_argument("--config",
                        help="Config file (default: nearest .comparelint.yml above the first path)")
    parser.add_argument("--format", choices=["json", "pretty"], default="json")
    parser.add_argument("--validate", action="store_true",
                        help="Check JSON output against the protocol schema")
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    total_started = time.perf_counter()
    setup_adapters()

    config_path = args.config or find_config_file(args.paths[0])
    config = load_config(config_path)
    logger.debug(f"Config: {config_path or 'built-in defaults'}")

    packages = [name.strip() for name in args.discover.split(",") if name.strip()]
    discover_rules(packages)
    logger.debug(f"Rules available: {default_registry.rule_ids}")

    if args.rules:
        patterns = [p.strip() for p in args.rules.split(",") if p.strip()]
    else:
        patterns = config.enabled_rules

    findings: List[Finding] = []
    texts: Dict[str, str] = {}
    rule_ids = set()
    parse_ms = 0.0
    rules_started = time.perf_counter()

    for language in [args.lang] if args.lang else SUPPORTED_LANGUAGES:
        rules = get_enabled_rules(patterns, language)
        files = collect_files(args.paths, language)
        if not rules or not files:
            continue

        logger.debug(f"{language}: {len(rules)} rules on {len(files)} files")
        rule_ids.update(rule.meta.id for rule in rules)
        language_findings, language_parse_ms, language_texts = run_analysis(files, language, rules, config)
        findings.extend(language_findings)
        texts.update(language_texts)
        parse_ms += language_parse_ms

    if not texts:
        print("No files found to analyze", file=sys.stderr)
        return EXIT_NO_FILES

    findings = findings[:config.max_total_findings]
    now = time.perf_counter()
    metrics = {
        "parse_ms": parse_ms,
        "rules_ms": (now - rules_started) * 1000,
        "total_ms": (now - total_started) * 1000,
    }

    if args.format == "pretty":
        print(format_pretty(findings, texts, len(texts), len(rule_ids), metrics))
    else:
        output = build_output(findings, texts, len(texts), len(rule_ids), metrics)
        errors = validate_output(output) if args.validate else []
        if errors:
            print("JSON output does not match the protocol schema:", file=sys.stderr)
            for error in errors:
                print(f"  {error}", file=sys.stderr)
            return EXIT_FINDINGS
        print(json.dumps(output, indent=2))

    return EXIT_FINDINGS if findings else EXIT_CLEAN


if __name__ == "__main__":
    sys.exit(main())
