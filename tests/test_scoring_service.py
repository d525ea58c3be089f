"""Property-based tests for the scoring formulas.

Uses Hypothesis to check bounds and monotonicity of every score, plus the
worked examples of the composite formula.
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from codescope.schemas.architecture import ArchitectureInsights
from codescope.schemas.finding import Category, Finding, FindingSource, LineRange, Severity
from codescope.services.rules.complexity import check_complexity
from codescope.services.scoring import ScoringService, get_scoring_service, round_half_up

# =============================================================================
# Custom Strategies for Scoring Tests
# =============================================================================


def make_finding(
    severity: Severity = Severity.MEDIUM,
    category: Category = Category.MAINTAINABILITY,
    source: FindingSource = FindingSource.STATIC,
    metadata: dict | None = None,
) -> Finding:
    return Finding(
        category=category,
        severity=severity,
        title="Issue",
        description="description",
        file_path="src/app.js",
        line_range=LineRange(start=1, end=1),
        source=source,
        metadata=metadata or {},
    )


@st.composite
def finding(draw) -> Finding:
    return make_finding(
        severity=draw(st.sampled_from(list(Severity))),
        category=draw(st.sampled_from(list(Category))),
        source=draw(st.sampled_from(list(FindingSource))),
    )


def valid_score() -> st.SearchStrategy[int]:
    return st.integers(min_value=0, max_value=100)


@pytest.fixture
def scoring() -> ScoringService:
    return ScoringService()


# =============================================================================
# Overall score
# =============================================================================


class TestOverallScore:
    def test_worked_example(self, scoring):
        assert scoring.calculate_overall_score(80, 70, 60) == 72

    def test_rounds_to_nearest(self, scoring):
        assert scoring.calculate_overall_score(81, 80, 80) == 80
        assert scoring.calculate_overall_score(81, 81, 80) == 81
        assert round_half_up(72.5) == 73
        assert round_half_up(0.5) == 1

    @given(static=valid_score(), ai=valid_score(), architecture=valid_score())
    @settings(max_examples=200)
    def test_bounded(self, static: int, ai: int, architecture: int):
        score = get_scoring_service().calculate_overall_score(static, ai, architecture)
        assert 0 <= score <= 100


# =============================================================================
# Sub-scores
# =============================================================================


class TestStaticScore:
    def test_empty_is_perfect(self, scoring):
        assert scoring.calculate_static_score([]) == 100

    def test_weights(self, scoring):
        findings = [
            make_finding(Severity.HIGH),
            make_finding(Severity.MEDIUM),
            make_finding(Severity.LOW),
        ]
        assert scoring.calculate_static_score(findings) == 100 - (10 + 5 + 2)

    def test_floored_at_zero(self, scoring):
        assert scoring.calculate_static_score([make_finding(Severity.HIGH)] * 11) == 0


class TestCategoryScore:
    def test_absent_category_scores_100(self, scoring):
        scores = scoring.calculate_category_scores([make_finding(category=Category.SECURITY)])

        assert set(scores) == set(ScoringService.SCORED_CATEGORIES)
        assert scores[Category.MAINTAINABILITY] == 100
        assert scores[Category.SECURITY] == 100 - 8

    def test_only_own_category_counts(self, scoring):
        findings = [
            make_finding(Severity.HIGH, Category.PERFORMANCE),
            make_finding(Severity.LOW, Category.PERFORMANCE),
            make_finding(Severity.HIGH, Category.READABILITY),
        ]
        assert scoring.calculate_category_score(findings, Category.PERFORMANCE) == 100 - (15 + 3)

    @given(
        findings=st.lists(finding(), max_size=20),
        extra=finding(),
    )
    @settings(max_examples=200)
    def test_monotonically_non_increasing(self, findings: list[Finding], extra: Finding):
        service = get_scoring_service()
        for category in ScoringService.SCORED_CATEGORIES:
            before = service.calculate_category_score(findings, category)
            after = service.calculate_category_score([*findings, extra], category)
            assert 0 <= after <= before <= 100


class TestArchitectureScore:
    @pytest.mark.parametrize(
        ("label", "expected"),
        [
            ("excellent", 95),
            ("good", 80),
            ("needs-improvement", 60),
            ("Needs Improvement", 60),
            ("poor", 40),
            ("outstanding", 75),
            (None, 75),
            ("", 75),
        ],
    )
    def test_bands(self, scoring, label, expected):
        assert scoring.calculate_architecture_score(label) == expected

    def test_accepts_insights(self, scoring):
        insights = ArchitectureInsights(pattern="MVC", quality="good")
        assert scoring.calculate_architecture_score(insights) == 80


# =============================================================================
# Metrics and report
# =============================================================================


def test_metrics_from_metadata(scoring):
    findings = [
        make_finding(Severity.HIGH, metadata={"functionSize": 60}),
        make_finding(Severity.MEDIUM, metadata={"functionSize": 81}),
        make_finding(Severity.MEDIUM, metadata={"complexity": 12}),
        make_finding(Severity.LOW, Category.CODE_QUALITY),
        make_finding(Severity.LOW, Category.SECURITY),
    ]
    metrics = scoring.calculate_metrics(findings)

    assert metrics.total_issues == 5
    assert metrics.high_severity_issues == 1
    assert metrics.medium_severity_issues == 2
    assert metrics.low_severity_issues == 2
    assert metrics.avg_function_size == 71
    assert metrics.avg_complexity == 12
    assert metrics.code_smells == 1
    assert metrics.security_vulnerabilities == 1


def test_metrics_without_metadata_are_zero(scoring):
    metrics = scoring.calculate_metrics([make_finding()])
    assert metrics.avg_function_size == 0
    assert metrics.avg_complexity == 0


def test_build_report_splits_sources(scoring):
    findings = [
        make_finding(Severity.HIGH, Category.SECURITY, FindingSource.STATIC),
        make_finding(Severity.MEDIUM, Category.PERFORMANCE, FindingSource.AI),
    ]
    report = scoring.build_report(findings, ArchitectureInsights(quality="poor"))

    assert report.breakdown.static_score == 90
    assert report.breakdown.ai_score == 94
    assert report.breakdown.architecture_score == 40
    assert report.overall_score == round_half_up(0.4 * 90 + 0.4 * 94 + 0.2 * 40)
    assert report.category_scores[Category.SECURITY] == 85
    assert report.category_scores[Category.PERFORMANCE] == 92
    assert report.category_scores[Category.ARCHITECTURE] == 100


def test_empty_run_report(scoring):
    report = scoring.build_report([])

    assert report.breakdown.static_score == 100
    assert report.breakdown.ai_score == 100
    assert report.breakdown.architecture_score == 75
    assert report.overall_score == 95
    assert all(score == 100 for score in report.category_scores.values())


def test_metrics_average_only_function_complexity(scoring, run_rule):
    functions = "\n".join(
        f"function handler{n}(v, out) {{\n"
        + "\n".join(f"  if (v === {i}) {{ out.push({i}); }}" for i in range(11))
        + "\n}"
        for n in range(5)
    )
    findings = run_rule(check_complexity, functions)

    assert {f.rule_id for f in findings} == {"cyclomatic-complexity", "file-complexity"}
    assert scoring.calculate_metrics(findings).avg_complexity == 12
