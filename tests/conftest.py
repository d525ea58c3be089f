"""Shared fixtures."""

import pytest

from codescope.services.tree_builder import TreeBuilder


@pytest.fixture(scope="session")
def tree_builder() -> TreeBuilder:
    return TreeBuilder()


@pytest.fixture
def parse(tree_builder):
    """Parse source text into a tree, failing the test if it does not parse."""

    def _parse(source: str, file_path: str = "sample.js"):
        tree = tree_builder.parse(source, file_path)
        assert tree is not None, f"fixture source failed to parse as {file_path}"
        return tree

    return _parse


@pytest.fixture
def run_rule(parse):
    """Run one rule function over source text."""

    def _run(rule, source: str, file_path: str = "sample.js"):
        return rule(parse(source, file_path), source, file_path)

    return _run
