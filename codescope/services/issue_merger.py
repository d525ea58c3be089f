"""Issue merging for hybrid analysis.

Deduplicates AI findings reported twice across chunk overlap windows, merges
static and AI findings into the canonical presentation order, and derives the
AI sub-score and the run summary.
"""

import logging
from collections import Counter
from collections.abc import Iterable, Sequence

from codescope.schemas.finding import Finding, Severity
from codescope.schemas.score import AnalysisSummary
from codescope.services.file_reader import SourceFile

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Penalty per AI finding, by severity
AI_PENALTY_WEIGHTS = {
    Severity.HIGH: 12,
    Severity.MEDIUM: 6,
    Severity.LOW: 2,
}


# =============================================================================
# Deduplication and ordering
# =============================================================================


def dedupe_key(finding: Finding) -> tuple[str, int, str]:
    """Identity of a finding for overlap deduplication."""
    return finding.file_path, finding.line_range.start, finding.title


def dedupe(findings: Iterable[Finding]) -> list[Finding]:
    """Drop findings that repeat an earlier (file, start line, title).

    The first occurrence wins and input order is preserved, so applying this
    twice gives the same result as applying it once.
    """
    seen: set[tuple[str, int, str]] = set()
    unique: list[Finding] = []

    for finding in findings:
        key = dedupe_key(finding)
        if key in seen:
            continue
        seen.add(key)
        unique.append(finding)

    return unique


def merge(static_findings: Sequence[Finding], ai_findings: Sequence[Finding]) -> list[Finding]:
    """Concatenate static and AI findings ordered by (severity, file path).

    Python's sort is stable, so findings with equal severity and path keep
    their input order (static before AI).
    """
    merged = sorted(
        [*static_findings, *ai_findings],
        key=lambda finding: (finding.severity.rank, finding.file_path),
    )
    logger.info(
        f"Merged {len(static_findings)} static + {len(ai_findings)} AI issues = {len(merged)} total"
    )
    return merged


# =============================================================================
# Aggregates
# =============================================================================


def severity_counts(findings: Iterable[Finding]) -> dict[Severity, int]:
    """Count findings per severity; every severity is present."""
    counts = Counter(finding.severity for finding in findings)
    return {severity: counts.get(severity, 0) for severity in Severity}


def calculate_ai_score(ai_findings: Sequence[Finding]) -> int:
    """AI sub-score: ``max(0, 100 - (12*high + 6*medium + 2*low))``."""
    if not ai_findings:
        return 100
    counts = severity_counts(ai_findings)
    penalty = sum(AI_PENALTY_WEIGHTS[severity] * count for severity, count in counts.items())
    return max(0, 100 - penalty)


def generate_summary(
    static_findings: Sequence[Finding],
    ai_findings: Sequence[Finding],
    files: Sequence[SourceFile],
) -> AnalysisSummary:
    """Project-wide counts for one run.

    Args:
        static_findings: Findings from the rule engine
        ai_findings: Findings from AI review
        files: Files analyzed in the run

    Returns:
        AnalysisSummary with counts by severity, category and source
    """
    all_findings = [*static_findings, *ai_findings]
    by_severity = severity_counts(all_findings)
    by_category = Counter(finding.category.value for finding in all_findings)

    return AnalysisSummary(
        total_issues=len(all_findings),
        static_issues=len(static_findings),
        ai_issues=len(ai_findings),
        issues_by_severity={severity.value: count for severity, count in by_severity.items()},
        issues_by_category=dict(by_category),
        issues_by_source={"static": len(static_findings), "ai": len(ai_findings)},
        files_analyzed=len(files),
        total_lines=sum(f.line_count for f in files),
    )
