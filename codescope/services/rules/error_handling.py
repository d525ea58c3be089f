"""Asynchronous error-handling rules."""

from tree_sitter import Node, Tree

from codescope.schemas.finding import Category, Finding, Severity
from codescope.services.rules.base import (
    FUNCTION_TYPES,
    VisitorContext,
    function_name,
    member_parts,
    walk,
    walk_skipping_functions,
)


def _is_async(node: Node) -> bool:
    return any(child.type == "async" for child in node.children)


def _has_try(node: Node) -> bool:
    return any(child.type == "try_statement" for child in walk_skipping_functions(node))


def _chain_has_catch(ctx: VisitorContext, call: Node) -> bool:
    """Walk outward through ``.then(...).finally(...)`` looking for ``.catch``."""
    current = call
    while True:
        parent = current.parent
        if parent is None or parent.type != "member_expression":
            return False
        prop = parent.child_by_field_name("property")
        if ctx.text(prop) == "catch":
            return True
        outer = parent.parent
        if outer is None or outer.type != "call_expression":
            return False
        current = outer


def check_error_handling(tree: Tree, raw_text: str, file_path: str) -> list[Finding]:
    ctx = VisitorContext(tree, raw_text, file_path)
    findings = []

    for node in walk(ctx.root):
        if node.type in FUNCTION_TYPES and _is_async(node):
            body = node.child_by_field_name("body")
            # Concise arrow bodies have no statements to wrap
            if body is None or body.type != "statement_block" or _has_try(body):
                continue
            name = function_name(ctx, node)
            start = node.start_point[0] + 1
            findings.append(ctx.finding(
                node,
                rule_id="async-error-handling",
                category=Category.CODE_QUALITY,
                severity=Severity.MEDIUM,
                title=f"Async function '{name}' without error handling",
                description="Async functions should have try-catch blocks to handle potential errors.",
                suggestion=(
                    "Wrap async code in try-catch:\n"
                    "try {\n  // async code\n} catch (error) {\n  // handle error\n}"
                ),
                start=start,
                end=start,
            ))

        elif node.type == "call_expression":
            parts = member_parts(ctx, node.child_by_field_name("function"))
            if parts is None or parts[1] != "then" or _chain_has_catch(ctx, node):
                continue
            findings.append(ctx.finding(
                node,
                rule_id="promise-error-handling",
                category=Category.CODE_QUALITY,
                severity=Severity.LOW,
                title="Promise without error handling",
                description="Promise chain lacks .catch() for error handling.",
                suggestion="Add .catch() to handle promise rejections, or use async/await with try-catch.",
                snippet=True,
            ))

    return findings
