"""Tests for the architecture reviewer with a mocked gateway."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from codescope.services.architecture_reviewer import ArchitectureReviewer, extract_json_object
from codescope.services.file_reader import SourceFile

FILES = [
    SourceFile.from_text("src/app.js", "const a = 1;\nconst b = 2;"),
    SourceFile.from_text("src/routes/users.js", "module.exports = {};"),
]

ASSESSMENT = {
    "pattern": "Layered",
    "quality": "Needs Improvement",
    "issues": ["Routes talk to the database directly"],
    "suggestions": "Introduce a service layer",
    "circularDependencies": [],
    "dependencyGraph": "graph TD;\n  A[app] --> B[routes];",
}


def make_reviewer(content: str | None = None, side_effect=None) -> tuple[ArchitectureReviewer, MagicMock]:
    gateway = MagicMock()
    if side_effect is not None:
        gateway.complete = AsyncMock(side_effect=side_effect)
    else:
        gateway.complete = AsyncMock(return_value={"content": content})
    return ArchitectureReviewer(llm=gateway, timeout=5), gateway


@pytest.mark.asyncio
async def test_fenced_response_is_parsed_and_normalized():
    reply = f"Here is my assessment:\n```json\n{json.dumps(ASSESSMENT)}\n```\nThanks!"
    reviewer, gateway = make_reviewer(reply)

    insights = await reviewer.assess(FILES, "shop")

    assert insights is not None
    assert insights.pattern == "Layered"
    assert insights.quality == "needs-improvement"
    assert insights.suggestions == ["Introduce a service layer"]
    assert insights.dependency_graph.startswith("graph TD;")

    prompt = gateway.complete.await_args.kwargs["prompt"]
    assert "**Project:** shop" in prompt
    assert "src/app.js (2 lines)" in prompt
    assert "src/routes/users.js (1 lines)" in prompt


@pytest.mark.parametrize(
    "reply",
    [
        "The architecture looks fine to me.",
        '{"pattern": "MVC", "quality": ',
        json.dumps(["not", "an", "object"]),
    ],
)
@pytest.mark.asyncio
async def test_unusable_response_is_unavailable(reply):
    reviewer, _ = make_reviewer(reply)
    insights = await reviewer.assess(FILES, "shop")
    assert insights is None


@pytest.mark.asyncio
async def test_gateway_failure_is_unavailable():
    reviewer, _ = make_reviewer(side_effect=RuntimeError("all models failed"))
    assert await reviewer.assess(FILES, "shop") is None


@pytest.mark.asyncio
async def test_empty_project_skips_model_call():
    reviewer, gateway = make_reviewer(json.dumps(ASSESSMENT))

    assert await reviewer.assess([], "empty") is None
    gateway.complete.assert_not_awaited()


def test_extract_json_object_ignores_braces_in_strings():
    text = 'Result: {"pattern": "MVC", "dependencyGraph": "A --> B {x}"} trailing }'
    assert json.loads(extract_json_object(text)) == {"pattern": "MVC", "dependencyGraph": "A --> B {x}"}
