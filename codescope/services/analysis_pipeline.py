"""Hybrid analysis pipeline.

Orchestrates one analysis run:

1. Static analysis of every file (tree builder + rule engine)
2. AI review of every file in a reviewable language
3. Merge of static and AI findings
4. Architecture assessment
5. Scoring, persistence and summary

Progress is reported through an explicit ProgressSink passed in by the
caller. File- and chunk-level failures are contained and recorded on the
result; ConfigError propagates; any other exception ends the run as failed
while keeping the findings accumulated so far.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Protocol

from codescope.core.config import settings
from codescope.core.errors import ConfigError, RunError
from codescope.schemas.architecture import ArchitectureInsights
from codescope.schemas.finding import Finding
from codescope.schemas.score import AnalysisSummary, ScoreReport
from codescope.services.ai_reviewer import AIReviewer
from codescope.services.architecture_reviewer import ArchitectureReviewer
from codescope.services.file_reader import SourceFile, read_project_files
from codescope.services.issue_merger import generate_summary, merge
from codescope.services.rule_engine import analyze_file
from codescope.services.scoring import ScoringService, get_scoring_service
from codescope.services.tree_builder import TreeBuilder

logger = logging.getLogger(__name__)


ProgressSink = Callable[[str, int, str], None]


class FindingStore(Protocol):
    """Persistence collaborator: receives the run's findings and score report."""

    def save(self, findings: list[Finding], report: ScoreReport) -> None:
        ...


class AnalysisStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"


class Stage(str, Enum):
    """Pipeline phases reported to the progress sink."""

    STARTED = "started"
    FILES_READ = "files_read"
    STATIC_ANALYSIS = "static_analysis"
    AI_REVIEW = "ai_review"
    MERGE = "merge"
    ARCHITECTURE = "architecture"
    SCORING = "scoring"
    SUMMARY = "summary"
    COMPLETED = "completed"
    FAILED = "failed"


# Progress percentages at phase boundaries
PROGRESS_STARTED = 5
PROGRESS_FILES_READ = 15
PROGRESS_STATIC_DONE = 40
PROGRESS_AI_DONE = 70
PROGRESS_MERGED = 80
PROGRESS_ARCHITECTURE_DONE = 85
PROGRESS_SCORED = 95
PROGRESS_DONE = 100


@dataclass
class AnalysisRunResult:
    """Everything one run produced, including partial results of a failed run."""

    project_name: str
    status: AnalysisStatus = AnalysisStatus.COMPLETED
    error: str | None = None
    static_findings: list[Finding] = field(default_factory=list)
    ai_findings: list[Finding] = field(default_factory=list)
    findings: list[Finding] = field(default_factory=list)
    file_errors: dict[str, str] = field(default_factory=dict)
    architecture: ArchitectureInsights | None = None
    report: ScoreReport | None = None
    summary: AnalysisSummary | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == AnalysisStatus.COMPLETED


def _noop_progress(stage: str, progress: int, message: str) -> None:
    pass


class AnalysisPipeline:
    """Runs static analysis, AI review, merge and scoring for one project.

    Collaborators are injected; anything not given is built from settings.
    A pipeline instance holds no state between runs.
    """

    def __init__(
        self,
        tree_builder: TreeBuilder | None = None,
        reviewer: AIReviewer | None = None,
        architecture_reviewer: ArchitectureReviewer | None = None,
        scoring: ScoringService | None = None,
        store: FindingStore | None = None,
        progress: ProgressSink | None = None,
        ai_review_enabled: bool | None = None,
        ai_review_languages: Sequence[str] | None = None,
    ):
        self.tree_builder = tree_builder or TreeBuilder()
        self.ai_review_enabled = (
            settings.ai_review_enabled if ai_review_enabled is None else ai_review_enabled
        )
        self.ai_review_languages = set(
            settings.ai_review_languages if ai_review_languages is None else ai_review_languages
        )
        self.reviewer = reviewer
        self.architecture_reviewer = architecture_reviewer
        if self.ai_review_enabled:
            self.reviewer = reviewer or AIReviewer()
            self.architecture_reviewer = architecture_reviewer or ArchitectureReviewer()
        self.scoring = scoring or get_scoring_service()
        self.store = store
        self.progress = progress or _noop_progress

    def _report(self, stage: Stage, progress: int, message: str) -> None:
        self.progress(stage.value, progress, message)

    async def run_project(self, root: str | Path, project_name: str | None = None) -> AnalysisRunResult:
        """Read a project directory and analyze it."""
        root_path = Path(root)
        files = read_project_files(root_path)
        return await self.run(files, project_name or root_path.name)

    async def run(self, files: Sequence[SourceFile], project_name: str) -> AnalysisRunResult:
        """Analyze a project's files.

        Args:
            files: Project files, already filtered by the file reader
            project_name: Display name

        Returns:
            AnalysisRunResult; status is FAILED if an unexpected error stopped the run

        Raises:
            ConfigError: If chunking or throttling configuration is invalid
        """
        result = AnalysisRunResult(project_name=project_name)
        self._report(Stage.STARTED, PROGRESS_STARTED, f"Starting analysis of {project_name}")
        logger.info(f"Starting analysis for project: {project_name}")

        try:
            self._report(Stage.FILES_READ, PROGRESS_FILES_READ, f"{len(files)} files to analyze")

            self._run_static(files, result)
            self._report(
                Stage.STATIC_ANALYSIS,
                PROGRESS_STATIC_DONE,
                f"Static analysis found {len(result.static_findings)} issues",
            )

            await self._run_ai_review(files, result)
            self._report(Stage.AI_REVIEW, PROGRESS_AI_DONE, f"AI review found {len(result.ai_findings)} issues")

            result.findings = merge(result.static_findings, result.ai_findings)
            self._report(Stage.MERGE, PROGRESS_MERGED, f"{len(result.findings)} issues after merge")

            result.architecture = await self._run_architecture(files, project_name)
            self._report(Stage.ARCHITECTURE, PROGRESS_ARCHITECTURE_DONE, "Architecture analysis done")

            result.report = self.scoring.build_report(result.findings, result.architecture)
            if self.store is not None:
                self.store.save(result.findings, result.report)
            self._report(Stage.SCORING, PROGRESS_SCORED, f"Overall score {result.report.overall_score}")

            result.summary = generate_summary(result.static_findings, result.ai_findings, files)
            self._report(Stage.COMPLETED, PROGRESS_DONE, "Analysis completed")

        except ConfigError:
            raise
        except Exception as e:
            error = RunError(f"Analysis of {project_name} failed: {e}")
            logger.error(str(error))
            result.status = AnalysisStatus.FAILED
            result.error = str(error)
            # Keep whatever was accumulated before the failure
            if not result.findings:
                result.findings = merge(result.static_findings, result.ai_findings)
            self._report(Stage.FAILED, PROGRESS_DONE, result.error)
            return result

        logger.info(
            f"Analysis completed for project: {project_name}. "
            f"Total issues: {len(result.findings)} "
            f"({len(result.static_findings)} static + {len(result.ai_findings)} AI)"
        )
        return result

    def _run_static(self, files: Sequence[SourceFile], result: AnalysisRunResult) -> None:
        logger.info("Running static analysis...")
        for source_file in files:
            file_result = analyze_file(source_file, self.tree_builder)
            result.static_findings.extend(file_result.findings)
            if file_result.error is not None:
                result.file_errors[source_file.path] = str(file_result.error)
            elif file_result.rule_errors:
                result.file_errors[source_file.path] = "; ".join(file_result.rule_errors)

    async def _run_ai_review(self, files: Sequence[SourceFile], result: AnalysisRunResult) -> None:
        if not self.ai_review_enabled or self.reviewer is None:
            logger.info("AI review disabled, skipping")
            return

        logger.info("Running AI review...")
        total = len(files)
        for index, source_file in enumerate(files):
            language = source_file.language.value
            if language in self.ai_review_languages and source_file.text.strip():
                try:
                    findings = await self.reviewer.review_file(source_file.path, source_file.text, language)
                    result.ai_findings.extend(findings)
                except ConfigError:
                    raise
                except Exception as e:
                    logger.error(f"AI review failed for file {source_file.path}: {e}")

            progress = PROGRESS_STATIC_DONE + round((index + 1) / total * (PROGRESS_AI_DONE - PROGRESS_STATIC_DONE))
            self._report(Stage.AI_REVIEW, progress, f"Reviewed {index + 1}/{total} files")

    async def _run_architecture(
        self, files: Sequence[SourceFile], project_name: str
    ) -> ArchitectureInsights | None:
        if not self.ai_review_enabled or self.architecture_reviewer is None:
            return None

        logger.info("Analyzing architecture...")
        try:
            insights = await self.architecture_reviewer.assess(files, project_name)
        except Exception as e:
            logger.error(f"Architecture analysis failed: {e}")
            return None

        if insights is None:
            logger.warning("Architecture analysis unavailable, using neutral architecture score")
        return insights
