"""Static rule engine.

Runs the fixed rule list over one file's syntax tree. Static analysis is
synchronous: tree traversal has no suspension points.
"""

import logging
from dataclasses import dataclass, field

from tree_sitter import Tree

from codescope.core.errors import ParseError
from codescope.schemas.finding import Finding
from codescope.services.file_reader import SourceFile
from codescope.services.rules import RULES
from codescope.services.tree_builder import TreeBuilder

logger = logging.getLogger(__name__)


@dataclass
class FileAnalysisResult:
    """Static findings for one file plus any contained errors."""

    file_path: str
    findings: list[Finding] = field(default_factory=list)
    error: ParseError | None = None
    rule_errors: list[str] = field(default_factory=list)
    skipped: bool = False


def run_rules(tree: Tree, raw_text: str, file_path: str) -> list[Finding]:
    """Run every rule over one file and concatenate their findings.

    A rule that raises is logged and skipped; the remaining rules still run.
    """
    findings, _ = _run_rules(tree, raw_text, file_path)
    return findings


def _run_rules(tree: Tree, raw_text: str, file_path: str) -> tuple[list[Finding], list[str]]:
    findings: list[Finding] = []
    errors: list[str] = []

    for rule in RULES:
        try:
            findings.extend(rule(tree, raw_text, file_path))
        except Exception as e:
            logger.error(f"Rule {rule.__name__} failed on {file_path}: {e}")
            errors.append(f"{rule.__name__}: {e}")

    return findings, errors


def analyze_file(source_file: SourceFile, tree_builder: TreeBuilder) -> FileAnalysisResult:
    """Build the tree for one file and run the rule engine on it.

    Files with no grammar are skipped without error. A file whose tree cannot
    be built yields no findings and a ParseError on the result.

    Args:
        source_file: File to analyze
        tree_builder: Tree builder collaborator

    Returns:
        FileAnalysisResult for the file
    """
    result = FileAnalysisResult(file_path=source_file.path)

    if not tree_builder.supports(source_file.path):
        result.skipped = True
        return result

    try:
        tree = tree_builder.parse(source_file.text, source_file.path)
    except Exception as e:
        logger.warning(f"Tree builder raised for {source_file.path}: {e}")
        tree = None

    if tree is None:
        result.error = ParseError(source_file.path)
        return result

    result.findings, result.rule_errors = _run_rules(tree, source_file.text, source_file.path)
    logger.debug(f"{source_file.path}: {len(result.findings)} static findings")
    return result
