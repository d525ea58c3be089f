"""Architecture assessment schema returned by the architecture reviewer."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ArchitectureInsights(BaseModel):
    """Qualitative project-level assessment from the model collaborator."""

    pattern: str | None = None
    quality: str | None = None
    issues: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    circular_dependencies: list[str] = Field(default_factory=list, alias="circularDependencies")
    dependency_graph: str | None = Field(default=None, alias="dependencyGraph")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("issues", "suggestions", "circular_dependencies", mode="before")
    @classmethod
    def coerce_string_list(cls, value: object) -> list[str]:
        """Models sometimes return a single string or objects instead of a list of strings."""
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        if isinstance(value, list):
            return [item if isinstance(item, str) else str(item) for item in value]
        return []

    @field_validator("pattern", "dependency_graph", mode="before")
    @classmethod
    def coerce_text(cls, value: object) -> str | None:
        if value is None:
            return None
        return str(value)

    @field_validator("quality", mode="before")
    @classmethod
    def normalize_quality(cls, value: object) -> str | None:
        if value is None:
            return None
        return str(value).strip().lower().replace("_", "-").replace(" ", "-")
