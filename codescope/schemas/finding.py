"""Finding schemas shared by the rule engine, AI reviewer, merger and scorer."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Category(str, Enum):
    """Finding category."""

    CODE_QUALITY = "code-quality"
    SECURITY = "security"
    PERFORMANCE = "performance"
    ARCHITECTURE = "architecture"
    DESIGN_PATTERN = "design-pattern"
    MAINTAINABILITY = "maintainability"
    READABILITY = "readability"


class Severity(str, Enum):
    """Finding severity, ordered high < medium < low for presentation."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Sort position: 0 for high, 2 for low."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.HIGH: 0,
    Severity.MEDIUM: 1,
    Severity.LOW: 2,
}


class FindingSource(str, Enum):
    """Which pass produced a finding."""

    STATIC = "static-analysis"
    AI = "ai-review"


class LineRange(BaseModel):
    """1-based inclusive, file-absolute line range."""

    model_config = ConfigDict(frozen=True)

    start: int = Field(ge=1)
    end: int = Field(ge=1)

    @model_validator(mode="after")
    def check_order(self) -> "LineRange":
        if self.end < self.start:
            raise ValueError(f"line range end {self.end} is before start {self.start}")
        return self


class Finding(BaseModel):
    """One reported defect."""

    model_config = ConfigDict(populate_by_name=True)

    category: Category
    severity: Severity
    title: str
    description: str
    file_path: str
    line_range: LineRange
    code_snippet: str | None = None
    suggestion: str | None = None
    source: FindingSource
    rule_id: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def start_line(self) -> int:
        return self.line_range.start
