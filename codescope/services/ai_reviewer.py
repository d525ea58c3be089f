"""AI code review of file chunks.

Sends each chunk of a file to the language model, pulls the first JSON array
out of the reply, normalizes every reported issue into a Finding and maps
chunk-relative line numbers back onto the file.

AI review is best-effort: a failed or unparseable model call yields a
ReviewResult carrying a ReviewErrorKind and no findings. Nothing here raises
into the merge stage.
"""

import asyncio
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any

from codescope.core.config import settings
from codescope.core.errors import ReviewError, ReviewErrorKind
from codescope.schemas.finding import Category, Finding, FindingSource, LineRange, Severity
from codescope.services.code_chunker import Chunk, validate_chunking
from codescope.services.code_chunker import chunk as chunk_text
from codescope.services.issue_merger import dedupe
from codescope.services.llm_gateway import LLMGateway, LLMTimeoutError, get_llm_gateway

logger = logging.getLogger(__name__)


UNTITLED = "Untitled Issue"
NO_DESCRIPTION = "No description provided."
TRUNCATION_MARKER = "\n... [truncated for length]"

FENCE_RE = re.compile(r"```(?:[A-Za-z0-9_+-]*)\s*\n([\s\S]*?)\n?```")

REVIEW_PROMPT_TEMPLATE = """You are a senior software engineer conducting a code review. Analyze this {language} code and identify issues.

**File:** {file_path}
**Lines:** {start_line}-{end_line}
**Chunk:** {chunk_number}/{total_chunks}

**Code:**
```{fence_language}
{code}
```

**Instructions:**
1. Identify code quality issues, security vulnerabilities, performance problems, and architectural concerns
2. For each issue, provide:
   - Category (code-quality, security, performance, architecture, design-pattern, maintainability, readability)
   - Severity (high, medium, low)
   - Title (brief description)
   - Description (detailed explanation)
   - Line number (relative to chunk start, the first line of the code above is line 1)
   - Suggestion (how to fix it)

**Output Format (JSON array):**
[
  {{
    "category": "security",
    "severity": "high",
    "title": "SQL Injection vulnerability",
    "description": "User input is directly concatenated into SQL query",
    "lineNumber": 15,
    "suggestion": "Use parameterized queries or prepared statements"
  }}
]

Return ONLY the JSON array, no additional text."""


def truncate_text(text: str, max_chars: int) -> str:
    """Cut text to ``max_chars`` and mark the cut."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + TRUNCATION_MARKER


def build_review_prompt(chunk: Chunk, file_path: str, language: str, max_chars: int) -> str:
    """Render the review prompt for one chunk."""
    return REVIEW_PROMPT_TEMPLATE.format(
        language=language,
        file_path=file_path,
        start_line=chunk.start_line,
        end_line=chunk.end_line,
        chunk_number=chunk.chunk_index + 1,
        total_chunks=chunk.total_chunks,
        fence_language=language.lower(),
        code=truncate_text(chunk.content, max_chars),
    )


def extract_json_array(text: str) -> list[dict[str, Any]]:
    """Extract the first well-formed JSON array of objects from a model reply.

    Tolerates prose before and after the array and markdown code fences.
    Arrays of non-objects (e.g. ``[1, 2]`` inside prose) are skipped.

    Args:
        text: Raw model response

    Returns:
        The decoded list (possibly empty)

    Raises:
        ReviewError: NO_JSON if the reply has no array at all, INVALID_JSON if
            no candidate array decodes to a list of objects
    """
    candidates = [match.group(1) for match in FENCE_RE.finditer(text)]
    candidates.append(text)

    decoder = json.JSONDecoder()
    saw_bracket = False

    for candidate in candidates:
        start = candidate.find("[")
        while start != -1:
            saw_bracket = True
            try:
                value, _ = decoder.raw_decode(candidate, start)
            except json.JSONDecodeError:
                value = None
            if isinstance(value, list) and (not value or any(isinstance(item, dict) for item in value)):
                return [item for item in value if isinstance(item, dict)]
            start = candidate.find("[", start + 1)

    if not saw_bracket:
        raise ReviewError(ReviewErrorKind.NO_JSON, "No JSON array found in model response")
    raise ReviewError(ReviewErrorKind.INVALID_JSON, "Model response contains no well-formed JSON array")


def _to_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        match = re.match(r"\s*(-?\d+)", value)
        return int(match.group(1)) if match else None
    return None


def map_line_range(raw: Any, chunk: Chunk) -> LineRange:
    """Convert a chunk-relative line reference into a file-absolute range.

    ``raw`` may be a number, a numeric string or ``{"start": n, "end": m}``.
    Missing or non-positive values point at the chunk's first line; values
    past the chunk are clamped to its last line.
    """
    if isinstance(raw, dict):
        rel_start = _to_int(raw.get("start"))
        rel_end = _to_int(raw.get("end"))
    else:
        rel_start = rel_end = _to_int(raw)

    offset = max(chunk.start_line - 1, 0)

    def absolute(relative: int | None) -> int:
        line = max(relative or 1, 1) + offset
        return min(max(line, chunk.start_line), chunk.end_line)

    start = absolute(rel_start)
    end = absolute(rel_end if rel_end is not None else rel_start)
    return LineRange(start=start, end=max(start, end))


def _coerce_enum(enum_cls, value: Any, default):
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().lower())
        except ValueError:
            pass
    return default


def _text_or(value: Any, default: str) -> str:
    if value is None:
        return default
    text = str(value).strip()
    return text or default


def normalize_issue(raw: dict[str, Any], chunk: Chunk, file_path: str) -> Finding:
    """Turn one model-reported issue into a file-absolute Finding."""
    suggestion = raw.get("suggestion")
    snippet = raw.get("codeSnippet") or raw.get("code_snippet")
    line_ref = raw.get("lineNumber", raw.get("line_number", raw.get("line")))

    return Finding(
        category=_coerce_enum(Category, raw.get("category"), Category.CODE_QUALITY),
        severity=_coerce_enum(Severity, raw.get("severity"), Severity.MEDIUM),
        title=_text_or(raw.get("title"), UNTITLED),
        description=_text_or(raw.get("description"), NO_DESCRIPTION),
        file_path=file_path,
        line_range=map_line_range(line_ref, chunk),
        code_snippet=str(snippet) if snippet else None,
        suggestion=str(suggestion).strip() if suggestion else None,
        source=FindingSource.AI,
        metadata={"chunk_index": chunk.chunk_index},
    )


@dataclass
class ReviewResult:
    """Outcome of reviewing one chunk: findings, or an error kind and no findings."""

    findings: list[Finding] = field(default_factory=list)
    error: ReviewErrorKind | None = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls, kind: ReviewErrorKind, message: str) -> "ReviewResult":
        return cls(findings=[], error=kind, message=message)


class AIReviewer:
    """Reviews files chunk by chunk through the LLM gateway.

    One semaphore per reviewer and event loop bounds concurrent model calls
    across all files reviewed with it, on top of the per-file batching.
    """

    def __init__(
        self,
        llm: LLMGateway | None = None,
        *,
        chunk_size: int | None = None,
        chunk_overlap: int | None = None,
        max_concurrent: int | None = None,
        batch_delay: float | None = None,
        timeout: float | None = None,
        max_prompt_chars: int | None = None,
    ):
        self.llm = llm or get_llm_gateway()
        self.chunk_size = chunk_size if chunk_size is not None else settings.chunk_size
        self.chunk_overlap = chunk_overlap if chunk_overlap is not None else settings.chunk_overlap
        self.max_concurrent = max_concurrent or settings.max_concurrent_ai_requests
        self.batch_delay = batch_delay if batch_delay is not None else settings.ai_batch_delay_seconds
        self.timeout = timeout or settings.ai_request_timeout_seconds
        self.max_prompt_chars = max_prompt_chars or settings.ai_max_prompt_chars

        # Fail fast on a window the chunker could never advance
        validate_chunking(self.chunk_size, self.chunk_overlap)
        self._limiter: tuple[asyncio.AbstractEventLoop, asyncio.Semaphore] | None = None

    def _semaphore(self) -> asyncio.Semaphore:
        """Concurrency limiter for the running event loop.

        A semaphore is bound to the loop it first waits on, so each new loop
        (e.g. each ``asyncio.run``) gets a fresh one.
        """
        loop = asyncio.get_running_loop()
        if self._limiter is None or self._limiter[0] is not loop:
            self._limiter = (loop, asyncio.Semaphore(self.max_concurrent))
        return self._limiter[1]

    async def review_chunk_result(self, chunk: Chunk, file_path: str, language: str) -> ReviewResult:
        """Review one chunk and report either findings or why there are none."""
        prompt = build_review_prompt(chunk, file_path, language, self.max_prompt_chars)
        label = f"{file_path} chunk {chunk.chunk_index + 1}/{chunk.total_chunks}"

        try:
            async with self._semaphore():
                response = await asyncio.wait_for(self.llm.complete(prompt=prompt), timeout=self.timeout)
        except (asyncio.TimeoutError, LLMTimeoutError) as e:
            logger.error(f"AI review timed out for {label}: {e}")
            return ReviewResult.failed(ReviewErrorKind.TIMEOUT, f"Timed out after {self.timeout}s")
        except Exception as e:
            logger.error(f"AI review error for {label}: {e}")
            return ReviewResult.failed(ReviewErrorKind.TRANSPORT, str(e))

        content = (response or {}).get("content") or ""
        try:
            items = extract_json_array(content)
        except ReviewError as e:
            logger.warning(f"{e} for {label}. Response preview: {content[:200]!r}")
            return ReviewResult.failed(e.kind, str(e))

        findings = []
        for idx, item in enumerate(items):
            try:
                findings.append(normalize_issue(item, chunk, file_path))
            except Exception as e:
                logger.warning(f"Skipping malformed issue {idx} from {label}: {e}")

        return ReviewResult(findings=findings)

    async def review_chunk(self, chunk: Chunk, file_path: str, language: str) -> list[Finding]:
        """Review one chunk; failures yield an empty list."""
        result = await self.review_chunk_result(chunk, file_path, language)
        return result.findings

    async def review_file(self, file_path: str, content: str, language: str) -> list[Finding]:
        """Review a whole file in batches of chunks and deduplicate overlap findings.

        Args:
            file_path: Project-relative path
            content: File text
            language: Display language name used in the prompt

        Returns:
            Deduplicated AI findings for the file
        """
        chunks = chunk_text(content, self.chunk_size, self.chunk_overlap)
        logger.info(f"Reviewing {file_path} with {len(chunks)} chunks")

        all_findings: list[Finding] = []
        failed = 0

        for i in range(0, len(chunks), self.max_concurrent):
            batch = chunks[i:i + self.max_concurrent]
            results = await asyncio.gather(
                *(self.review_chunk_result(item, file_path, language) for item in batch)
            )
            for result in results:
                all_findings.extend(result.findings)
                if not result.ok:
                    failed += 1

            logger.debug(
                f"Processed chunks {i + 1}-{min(i + self.max_concurrent, len(chunks))} of {len(chunks)}"
            )

            if i + self.max_concurrent < len(chunks) and self.batch_delay > 0:
                await asyncio.sleep(self.batch_delay)

        unique = dedupe(all_findings)
        if failed:
            logger.warning(f"AI review of {file_path}: {failed}/{len(chunks)} chunks failed")
        logger.info(f"AI review complete for {file_path}: {len(unique)} issues found")
        return unique
