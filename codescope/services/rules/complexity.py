"""Cyclomatic complexity and size rules for functions, classes and files."""

from tree_sitter import Node, Tree

from codescope.schemas.finding import Category, Finding, Severity
from codescope.services.rules.base import (
    FUNCTION_TYPES,
    VisitorContext,
    function_name,
    walk,
    walk_skipping_functions,
)

MAX_COMPLEXITY = 10
MAX_FILE_COMPLEXITY = 50
MAX_FUNCTION_LINES = 50
MAX_CLASS_LINES = 300
MAX_CLASS_MEMBERS = 20

DECISION_TYPES = frozenset({
    "if_statement",
    "ternary_expression",
    "for_statement",
    "for_in_statement",
    "while_statement",
    "do_statement",
    "switch_case",
    "catch_clause",
})

LOGICAL_OPERATORS = frozenset({"&&", "||", "??"})

CLASS_TYPES = frozenset({"class_declaration", "class", "abstract_class_declaration"})

MEMBER_TYPES = frozenset({
    "method_definition",
    "field_definition",
    "public_field_definition",
    "abstract_method_signature",
})


def _is_decision_point(node: Node) -> bool:
    if node.type in DECISION_TYPES:
        return True
    if node.type == "binary_expression":
        operator = node.child_by_field_name("operator")
        return operator is not None and operator.type in LOGICAL_OPERATORS
    return False


def function_complexity(node: Node) -> int:
    """1 + decision points in the function body, nested functions excluded."""
    return 1 + sum(1 for child in walk_skipping_functions(node) if _is_decision_point(child))


def file_complexity(root: Node) -> int:
    """1 + decision points across the whole file."""
    return 1 + sum(1 for node in walk(root) if _is_decision_point(node))


def _line_span(node: Node) -> tuple[int, int, int]:
    start = node.start_point[0] + 1
    end = node.end_point[0] + 1
    return start, end, end - start + 1


def check_complexity(tree: Tree, raw_text: str, file_path: str) -> list[Finding]:
    """Per-function and per-file cyclomatic complexity."""
    ctx = VisitorContext(tree, raw_text, file_path)
    findings = []

    for node in walk(ctx.root):
        if node.type not in FUNCTION_TYPES:
            continue
        complexity = function_complexity(node)
        if complexity <= MAX_COMPLEXITY:
            continue
        name = function_name(ctx, node)
        start = node.start_point[0] + 1
        findings.append(ctx.finding(
            node,
            rule_id="cyclomatic-complexity",
            category=Category.MAINTAINABILITY,
            severity=Severity.HIGH if complexity > MAX_COMPLEXITY * 2 else Severity.MEDIUM,
            title=f"High cyclomatic complexity in function '{name}'",
            description=(
                f"This function has a cyclomatic complexity of {complexity}. "
                "High complexity makes code harder to test and maintain."
            ),
            suggestion=(
                "Reduce complexity by:\n"
                "- Extracting conditional logic into separate functions\n"
                "- Using early returns\n"
                "- Simplifying nested conditions\n"
                "- Breaking down complex logic into smaller pieces"
            ),
            start=start,
            end=start,
            metadata={"complexity": complexity, "function": name},
        ))

    aggregate = file_complexity(ctx.root)
    if aggregate > MAX_FILE_COMPLEXITY:
        findings.append(ctx.finding(
            None,
            rule_id="file-complexity",
            category=Category.MAINTAINABILITY,
            severity=Severity.MEDIUM,
            title="High overall file complexity",
            description=(
                f"This file has an aggregate cyclomatic complexity of {aggregate}. "
                "Consider refactoring."
            ),
            suggestion="Break this file into smaller modules with focused responsibilities.",
            start=1,
            end=1,
            metadata={"fileComplexity": aggregate},
        ))

    return findings


def check_function_size(tree: Tree, raw_text: str, file_path: str) -> list[Finding]:
    ctx = VisitorContext(tree, raw_text, file_path)
    findings = []

    for node in walk(ctx.root):
        if node.type not in FUNCTION_TYPES:
            continue
        start, end, line_count = _line_span(node)
        if line_count <= MAX_FUNCTION_LINES:
            continue
        name = function_name(ctx, node)
        findings.append(ctx.finding(
            node,
            rule_id="function-size",
            category=Category.MAINTAINABILITY,
            severity=Severity.HIGH if line_count > MAX_FUNCTION_LINES * 2 else Severity.MEDIUM,
            title=f"Function '{name}' is too long",
            description=(
                f"This function has {line_count} lines. Functions should ideally be "
                f"under {MAX_FUNCTION_LINES} lines for better maintainability."
            ),
            suggestion=(
                "Consider breaking this function into smaller, more focused functions. "
                "Each function should do one thing well."
            ),
            metadata={"functionSize": line_count, "function": name},
        ))

    return findings


def check_class_size(tree: Tree, raw_text: str, file_path: str) -> list[Finding]:
    ctx = VisitorContext(tree, raw_text, file_path)
    findings = []

    for node in walk(ctx.root):
        if node.type not in CLASS_TYPES:
            continue
        body = node.child_by_field_name("body")
        members = sum(1 for m in body.named_children if m.type in MEMBER_TYPES) if body else 0
        start, end, line_count = _line_span(node)
        if line_count <= MAX_CLASS_LINES and members <= MAX_CLASS_MEMBERS:
            continue

        name_node = node.child_by_field_name("name")
        name = ctx.text(name_node) if name_node is not None else "anonymous"
        far_over = line_count > MAX_CLASS_LINES * 2 or members > MAX_CLASS_MEMBERS * 2
        findings.append(ctx.finding(
            node,
            rule_id="class-size",
            category=Category.ARCHITECTURE,
            severity=Severity.HIGH if far_over else Severity.MEDIUM,
            title=f"Class '{name}' is too large",
            description=(
                f"This class has {line_count} lines and {members} members. Large classes "
                "are hard to maintain and often violate the Single Responsibility Principle."
            ),
            suggestion=(
                "Consider splitting this class into smaller, more focused classes. "
                "Each class should have a single, well-defined responsibility."
            ),
            metadata={"lines": line_count, "members": members},
        ))

    return findings
