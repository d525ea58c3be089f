"""Tests for rule dispatch and error containment."""

from codescope.core.errors import ParseError
from codescope.services import rule_engine
from codescope.services.file_reader import SourceFile
from codescope.services.rule_engine import analyze_file, run_rules

SOURCE = "var count = 0;\nif (count == null) {\n  console.log(count);\n}\n"


def test_run_rules_concatenates_in_rule_order(parse):
    findings = run_rules(parse(SOURCE), SOURCE, "sample.js")
    rule_ids = [f.rule_id for f in findings]

    assert rule_ids.index("no-var") < rule_ids.index("eqeqeq") < rule_ids.index("no-console")
    assert all(f.file_path == "sample.js" for f in findings)


def test_failing_rule_is_contained(parse, tree_builder, monkeypatch):
    def exploding_rule(tree, raw_text, file_path):
        raise RuntimeError("boom")

    original = list(rule_engine.RULES)
    monkeypatch.setattr(rule_engine, "RULES", [exploding_rule, *original])

    findings = run_rules(parse(SOURCE), SOURCE, "sample.js")
    assert "no-var" in {f.rule_id for f in findings}

    result = analyze_file(SourceFile.from_text("sample.js", SOURCE), tree_builder)
    assert result.rule_errors == ["exploding_rule: boom"]
    assert result.findings


def test_parse_failure_yields_parse_error(tree_builder):
    result = analyze_file(SourceFile.from_text("broken.js", "const = ;"), tree_builder)

    assert result.findings == []
    assert isinstance(result.error, ParseError)
    assert result.error.file_path == "broken.js"


def test_unsupported_language_is_skipped(tree_builder):
    result = analyze_file(SourceFile.from_text("script.py", "eval(input())"), tree_builder)

    assert result.skipped
    assert result.error is None
    assert result.findings == []


def test_typescript_file_is_analyzed(tree_builder):
    source = "var total: number = 0;\nexport default total;\n"
    result = analyze_file(SourceFile.from_text("src/total.ts", source), tree_builder)

    assert result.error is None
    assert "no-var" in {f.rule_id for f in result.findings}

