"""Scoring Service for hybrid static + AI analysis.

Provides transparent, explainable scoring formulas for:
- Static Score: penalty over static-analysis findings
- AI Score: penalty over AI-review findings
- Category Scores: per-category penalty over all findings
- Architecture Score: banded from the qualitative architecture assessment
- Overall Score: 40% static + 40% AI + 20% architecture

All scores are integers in [0, 100] and every method is a pure function of
its arguments.
"""

import logging
import math
from collections.abc import Sequence

from codescope.schemas.architecture import ArchitectureInsights
from codescope.schemas.finding import Category, Finding, FindingSource, Severity
from codescope.schemas.score import ScoreBreakdown, ScoreMetrics, ScoreReport
from codescope.services.issue_merger import calculate_ai_score, severity_counts

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive values."""
    return int(math.floor(value + 0.5))


class ScoringService:
    """Transparent scoring formulas for analysis runs.

    All scores are in the range [0, 100].
    """

    # Static formula weights (per finding)
    STATIC_WEIGHTS: dict[Severity, int] = {
        Severity.HIGH: 10,
        Severity.MEDIUM: 5,
        Severity.LOW: 2,
    }

    # Category formula weights (per finding)
    CATEGORY_WEIGHTS: dict[Severity, int] = {
        Severity.HIGH: 15,
        Severity.MEDIUM: 8,
        Severity.LOW: 3,
    }

    # Categories that receive their own score
    SCORED_CATEGORIES: tuple[Category, ...] = (
        Category.MAINTAINABILITY,
        Category.READABILITY,
        Category.SECURITY,
        Category.PERFORMANCE,
        Category.ARCHITECTURE,
    )

    # Architecture quality label -> score
    ARCHITECTURE_BANDS: dict[str, int] = {
        "excellent": 95,
        "good": 80,
        "needs-improvement": 60,
        "poor": 40,
    }
    DEFAULT_ARCHITECTURE_SCORE = 75

    # Overall composite weights
    STATIC_WEIGHT = 0.4
    AI_WEIGHT = 0.4
    ARCHITECTURE_WEIGHT = 0.2

    def _penalty(self, findings: Sequence[Finding], weights: dict[Severity, int]) -> int:
        counts = severity_counts(findings)
        return sum(weights[severity] * count for severity, count in counts.items())

    def calculate_static_score(self, static_findings: Sequence[Finding]) -> int:
        """Calculate the static analysis sub-score.

        Formula: max(0, 100 - (10×high + 5×medium + 2×low))

        Args:
            static_findings: Findings from the rule engine

        Returns:
            Static score 0-100
        """
        if not static_findings:
            return 100
        return max(0, 100 - self._penalty(static_findings, self.STATIC_WEIGHTS))

    def calculate_ai_score(self, ai_findings: Sequence[Finding]) -> int:
        """Calculate the AI review sub-score.

        Formula: max(0, 100 - (12×high + 6×medium + 2×low))
        """
        return calculate_ai_score(ai_findings)

    def calculate_category_score(self, findings: Sequence[Finding], category: Category) -> int:
        """Calculate the score for one category.

        Formula: clamp(100 - (15×high + 8×medium + 3×low), 0, 100) over the
        findings in that category only. No findings means 100.

        Args:
            findings: All findings of the run
            category: Category to score

        Returns:
            Category score 0-100
        """
        in_category = [f for f in findings if f.category == category]
        penalty = self._penalty(in_category, self.CATEGORY_WEIGHTS)
        return max(0, min(100, 100 - penalty))

    def calculate_category_scores(self, findings: Sequence[Finding]) -> dict[Category, int]:
        """Scores for every scored category; absent categories score 100."""
        return {
            category: self.calculate_category_score(findings, category)
            for category in self.SCORED_CATEGORIES
        }

    def calculate_architecture_score(self, insights: ArchitectureInsights | str | None) -> int:
        """Map the architecture quality label to a score.

        Bands:
        - excellent: 95
        - good: 80
        - needs-improvement: 60
        - poor: 40
        - unavailable or unrecognised: 75 (neutral)

        Args:
            insights: Architecture assessment, a bare quality label, or None

        Returns:
            Architecture score 0-100
        """
        label = insights.quality if isinstance(insights, ArchitectureInsights) else insights
        if not label:
            return self.DEFAULT_ARCHITECTURE_SCORE

        normalized = label.strip().lower().replace("_", "-").replace(" ", "-")
        score = self.ARCHITECTURE_BANDS.get(normalized)
        if score is None:
            logger.warning(f"Unrecognised architecture quality '{label}', using neutral score")
            return self.DEFAULT_ARCHITECTURE_SCORE
        return score

    def calculate_overall_score(self, static_score: int, ai_score: int, architecture_score: int) -> int:
        """Calculate the overall composite score.

        Formula: round(0.4×static + 0.4×AI + 0.2×architecture)

        Example: static=80, AI=70, architecture=60 -> round(32 + 28 + 12) = 72
        """
        weighted = (
            static_score * self.STATIC_WEIGHT
            + ai_score * self.AI_WEIGHT
            + architecture_score * self.ARCHITECTURE_WEIGHT
        )
        return max(0, min(100, round_half_up(weighted)))

    def calculate_metrics(self, findings: Sequence[Finding]) -> ScoreMetrics:
        """Derive counts and averages from the merged findings.

        Average function size and complexity come from the per-function
        ``functionSize`` and ``complexity`` metadata of the findings that carry
        them; 0 when none do. The file-level aggregate is not a function and
        is not averaged in.
        """
        counts = severity_counts(findings)

        sizes = [f.metadata["functionSize"] for f in findings if f.metadata.get("functionSize")]
        complexities = [f.metadata["complexity"] for f in findings if f.metadata.get("complexity")]

        return ScoreMetrics(
            total_issues=len(findings),
            high_severity_issues=counts[Severity.HIGH],
            medium_severity_issues=counts[Severity.MEDIUM],
            low_severity_issues=counts[Severity.LOW],
            avg_function_size=round_half_up(sum(sizes) / len(sizes)) if sizes else 0,
            avg_complexity=round_half_up(sum(complexities) / len(complexities)) if complexities else 0,
            code_smells=sum(1 for f in findings if f.category == Category.CODE_QUALITY),
            security_vulnerabilities=sum(1 for f in findings if f.category == Category.SECURITY),
        )

    def build_report(
        self,
        findings: Sequence[Finding],
        architecture: ArchitectureInsights | str | None = None,
    ) -> ScoreReport:
        """Build the ScoreReport for a run from its merged findings.

        Args:
            findings: Merged static and AI findings
            architecture: Architecture assessment, if one was produced

        Returns:
            ScoreReport with overall, category and sub-scores plus metrics
        """
        static_findings = [f for f in findings if f.source == FindingSource.STATIC]
        ai_findings = [f for f in findings if f.source == FindingSource.AI]

        static_score = self.calculate_static_score(static_findings)
        ai_score = self.calculate_ai_score(ai_findings)
        architecture_score = self.calculate_architecture_score(architecture)

        return ScoreReport(
            overall_score=self.calculate_overall_score(static_score, ai_score, architecture_score),
            category_scores=self.calculate_category_scores(findings),
            breakdown=ScoreBreakdown(
                static_score=static_score,
                ai_score=ai_score,
                architecture_score=architecture_score,
            ),
            metrics=self.calculate_metrics(findings),
        )


# Singleton instance for easy import
_scoring_service: ScoringService | None = None


def get_scoring_service() -> ScoringService:
    """Get the singleton ScoringService instance."""
    global _scoring_service
    if _scoring_service is None:
        _scoring_service = ScoringService()
    return _scoring_service
