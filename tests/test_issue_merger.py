"""Property-based tests for deduplication, merge ordering and the AI sub-score."""

from hypothesis import given, settings
from hypothesis import strategies as st

from codescope.schemas.finding import Category, Finding, FindingSource, LineRange, Severity
from codescope.services.file_reader import SourceFile
from codescope.services.issue_merger import (
    calculate_ai_score,
    dedupe,
    generate_summary,
    merge,
)

# =============================================================================
# Custom Strategies for Test Data Generation
# =============================================================================


def make_finding(
    file_path: str = "src/app.js",
    line: int = 1,
    title: str = "Issue",
    severity: Severity = Severity.MEDIUM,
    category: Category = Category.CODE_QUALITY,
    source: FindingSource = FindingSource.AI,
) -> Finding:
    return Finding(
        category=category,
        severity=severity,
        title=title,
        description="description",
        file_path=file_path,
        line_range=LineRange(start=line, end=line),
        source=source,
    )


@st.composite
def finding(draw, source: FindingSource | None = None) -> Finding:
    """Generate a Finding from a small pool so duplicates are likely."""
    return make_finding(
        file_path=draw(st.sampled_from(["a.js", "b.js", "lib/c.ts", "lib/d.ts"])),
        line=draw(st.integers(min_value=1, max_value=5)),
        title=draw(st.sampled_from(["SQL injection", "Unused import", "Slow loop"])),
        severity=draw(st.sampled_from(list(Severity))),
        category=draw(st.sampled_from(list(Category))),
        source=source or draw(st.sampled_from(list(FindingSource))),
    )


# =============================================================================
# Deduplication
# =============================================================================


class TestDedupe:
    @given(findings=st.lists(finding(), max_size=40))
    @settings(max_examples=100)
    def test_idempotent(self, findings: list[Finding]):
        once = dedupe(findings)
        assert dedupe(once) == once

    @given(findings=st.lists(finding(), max_size=40))
    def test_keys_are_unique_and_first_occurrence_wins(self, findings: list[Finding]):
        result = dedupe(findings)
        keys = [(f.file_path, f.start_line, f.title) for f in result]
        assert len(keys) == len(set(keys))

        for kept in result:
            first = next(
                f for f in findings
                if (f.file_path, f.start_line, f.title) == (kept.file_path, kept.start_line, kept.title)
            )
            assert first is kept

    def test_overlap_duplicate_removed(self):
        first = make_finding(line=52, title="Unchecked input", severity=Severity.HIGH)
        repeat = make_finding(line=52, title="Unchecked input", severity=Severity.LOW)
        other_line = make_finding(line=53, title="Unchecked input")

        assert dedupe([first, repeat, other_line]) == [first, other_line]


# =============================================================================
# Merge
# =============================================================================


class TestMerge:
    @given(
        static=st.lists(finding(source=FindingSource.STATIC), max_size=25),
        ai=st.lists(finding(source=FindingSource.AI), max_size=25),
    )
    @settings(max_examples=100)
    def test_total_order_by_severity_then_path(self, static: list[Finding], ai: list[Finding]):
        merged = merge(static, ai)

        assert len(merged) == len(static) + len(ai)
        for a, b in zip(merged, merged[1:]):
            assert a.severity.rank <= b.severity.rank
            if a.severity == b.severity:
                assert a.file_path <= b.file_path

    def test_ties_keep_input_order(self):
        s1 = make_finding(title="static one", source=FindingSource.STATIC)
        s2 = make_finding(title="static two", source=FindingSource.STATIC)
        a1 = make_finding(title="ai one")

        assert merge([s1, s2], [a1]) == [s1, s2, a1]

    def test_high_before_low_regardless_of_path(self):
        low = make_finding(file_path="a.js", severity=Severity.LOW)
        high = make_finding(file_path="z.js", severity=Severity.HIGH)

        assert merge([low], [high]) == [high, low]


# =============================================================================
# AI score and summary
# =============================================================================


def test_ai_score_weights():
    findings = (
        [make_finding(severity=Severity.HIGH)] * 2
        + [make_finding(severity=Severity.MEDIUM)] * 3
        + [make_finding(severity=Severity.LOW)] * 4
    )
    assert calculate_ai_score(findings) == 100 - (24 + 18 + 8)


def test_ai_score_bounds():
    assert calculate_ai_score([]) == 100
    assert calculate_ai_score([make_finding(severity=Severity.HIGH)] * 20) == 0


def test_generate_summary_counts():
    static = [
        make_finding(severity=Severity.HIGH, category=Category.SECURITY, source=FindingSource.STATIC),
        make_finding(severity=Severity.LOW, category=Category.READABILITY, source=FindingSource.STATIC),
    ]
    ai = [make_finding(severity=Severity.LOW, category=Category.SECURITY)]
    files = [
        SourceFile.from_text("a.js", "one\ntwo\nthree"),
        SourceFile.from_text("b.py", "x = 1"),
    ]

    summary = generate_summary(static, ai, files)

    assert summary.total_issues == 3
    assert summary.static_issues == 2
    assert summary.ai_issues == 1
    assert summary.issues_by_severity == {"high": 1, "medium": 0, "low": 2}
    assert summary.issues_by_category == {"security": 2, "readability": 1}
    assert summary.issues_by_source == {"static": 2, "ai": 1}
    assert summary.files_analyzed == 2
    assert summary.total_lines == 4
