"""Pydantic schemas for findings, scores and architecture insights."""

from codescope.schemas.architecture import ArchitectureInsights
from codescope.schemas.finding import (
    Category,
    Finding,
    FindingSource,
    LineRange,
    Severity,
)
from codescope.schemas.score import (
    AnalysisSummary,
    ScoreBreakdown,
    ScoreMetrics,
    ScoreReport,
)

__all__ = [
    "AnalysisSummary",
    "ArchitectureInsights",
    "Category",
    "Finding",
    "FindingSource",
    "LineRange",
    "ScoreBreakdown",
    "ScoreMetrics",
    "ScoreReport",
    "Severity",
]
