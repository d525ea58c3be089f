"""Project-level architecture assessment.

One model call per run with the project's file list. The quality label it
returns feeds the architecture sub-score; everything else is informational.
Any failure yields None, which the scorer treats as "unavailable".
"""

import asyncio
import json
import logging
import re
from collections.abc import Sequence

from pydantic import ValidationError

from codescope.core.config import settings
from codescope.schemas.architecture import ArchitectureInsights
from codescope.services.ai_reviewer import truncate_text
from codescope.services.file_reader import SourceFile
from codescope.services.llm_gateway import LLMGateway, get_llm_gateway

logger = logging.getLogger(__name__)

MAX_FILE_LIST_CHARS = 8000

ARCHITECTURE_PROMPT_TEMPLATE = """You are a senior software architect. Analyze this codebase structure and provide insights.

**Project:** {project_name}
**Files:**
{file_list}

**Instructions:**
Analyze the architecture and provide:
1. Architecture pattern (MVC, microservices, monolith, layered, etc.)
2. Quality assessment (excellent, good, needs-improvement, poor)
3. Key issues (array of strings)
4. Suggestions for improvement (array of strings)
5. Identify any circular dependencies
6. Generate a Mermaid.js classDiagram or graph showing dependencies between key files/modules.

**Output Format (JSON):**
{{
  "pattern": "MVC",
  "quality": "good",
  "issues": ["Missing service layer", "Controllers too large"],
  "suggestions": ["Extract business logic to services", "Implement dependency injection"],
  "circularDependencies": [],
  "dependencyGraph": "graph TD;\\n  A[App] --> B[Service];\\n  B --> C[Model];"
}}

Return ONLY the JSON object, no additional text."""


def extract_json_object(response_content: str) -> str:
    """Extract a JSON object from a response that may be wrapped in prose or markdown.

    Args:
        response_content: Raw response string from the model

    Returns:
        Cleaned JSON string (may still be invalid JSON)
    """
    content = response_content.strip()

    # Look for a ```json code block anywhere in the response
    json_block_match = re.search(r"```(?:json)?\s*\n([\s\S]*?)\n```", content)
    if json_block_match:
        logger.debug("Found JSON in markdown code block within response")
        content = json_block_match.group(1).strip()

    json_start = content.find("{")
    if json_start < 0:
        return content

    # Find the matching closing brace by counting braces outside strings
    potential_json = content[json_start:]
    brace_count = 0
    in_string = False
    escape_next = False

    for i, char in enumerate(potential_json):
        if escape_next:
            escape_next = False
            continue
        if char == "\\" and in_string:
            escape_next = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if char == "{":
            brace_count += 1
        elif char == "}":
            brace_count -= 1
            if brace_count == 0:
                return potential_json[:i + 1]

    return potential_json


class ArchitectureReviewer:
    """Asks the model for a qualitative architecture assessment."""

    def __init__(self, llm: LLMGateway | None = None, timeout: float | None = None):
        self.llm = llm or get_llm_gateway()
        self.timeout = timeout or settings.ai_request_timeout_seconds

    def build_prompt(self, files: Sequence[SourceFile], project_name: str) -> str:
        file_list = "\n".join(f"{f.path} ({f.line_count} lines)" for f in files)
        return ARCHITECTURE_PROMPT_TEMPLATE.format(
            project_name=project_name,
            file_list=truncate_text(file_list, MAX_FILE_LIST_CHARS),
        )

    async def assess(self, files: Sequence[SourceFile], project_name: str) -> ArchitectureInsights | None:
        """Assess the project's architecture.

        Args:
            files: Project files (only paths and line counts are sent)
            project_name: Display name for the prompt

        Returns:
            ArchitectureInsights, or None if the call or parsing failed
        """
        if not files:
            return None

        prompt = self.build_prompt(files, project_name)
        logger.info(f"Requesting architecture analysis for {project_name} ({len(files)} files)")

        try:
            response = await asyncio.wait_for(self.llm.complete(prompt=prompt), timeout=self.timeout)
        except Exception as e:
            logger.error(f"Architecture analysis error: {e}")
            return None

        content = (response or {}).get("content") or ""
        cleaned = extract_json_object(content)

        try:
            data = json.loads(cleaned)
        except json.JSONDecodeError as e:
            logger.warning(f"No valid JSON in architecture response: {e}. Preview: {content[:200]!r}")
            return None

        if not isinstance(data, dict):
            logger.warning(f"Architecture response is not an object: {type(data)}")
            return None

        try:
            insights = ArchitectureInsights.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Architecture response failed validation: {e}")
            return None

        logger.info(f"Architecture analysis complete: pattern={insights.pattern}, quality={insights.quality}")
        return insights
