"""Score report schemas."""

from pydantic import BaseModel, Field

from codescope.schemas.finding import Category


class ScoreBreakdown(BaseModel):
    """Sub-scores feeding the overall composite."""

    static_score: int = Field(ge=0, le=100)
    ai_score: int = Field(ge=0, le=100)
    architecture_score: int = Field(ge=0, le=100)


class ScoreMetrics(BaseModel):
    """Counts derived from the merged findings."""

    total_issues: int = 0
    high_severity_issues: int = 0
    medium_severity_issues: int = 0
    low_severity_issues: int = 0
    avg_function_size: int = 0
    avg_complexity: int = 0
    code_smells: int = 0
    security_vulnerabilities: int = 0


class ScoreReport(BaseModel):
    """One per analysis run."""

    overall_score: int = Field(ge=0, le=100)
    category_scores: dict[Category, int]
    breakdown: ScoreBreakdown
    metrics: ScoreMetrics


class AnalysisSummary(BaseModel):
    """Project-wide counts for one run."""

    total_issues: int = 0
    static_issues: int = 0
    ai_issues: int = 0
    issues_by_severity: dict[str, int] = Field(default_factory=dict)
    issues_by_category: dict[str, int] = Field(default_factory=dict)
    issues_by_source: dict[str, int] = Field(default_factory=dict)
    files_analyzed: int = 0
    total_lines: int = 0
