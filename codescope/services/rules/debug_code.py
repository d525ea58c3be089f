"""Leftover debug artifacts: console calls and debugger statements."""

from tree_sitter import Tree

from codescope.schemas.finding import Category, Finding, Severity
from codescope.services.rules.base import VisitorContext, member_parts, walk


def check_debug_code(tree: Tree, raw_text: str, file_path: str) -> list[Finding]:
    ctx = VisitorContext(tree, raw_text, file_path)
    findings = []

    for node in walk(ctx.root):
        if node.type == "call_expression":
            parts = member_parts(ctx, node.child_by_field_name("function"))
            if parts is None or parts[0] != "console":
                continue
            method = parts[1]
            findings.append(ctx.finding(
                node,
                rule_id="no-console",
                category=Category.CODE_QUALITY,
                severity=Severity.LOW,
                title=f"Debug statement: console.{method}()",
                description=(
                    f"Found console.{method}() call. Debug statements should be "
                    "removed before production."
                ),
                suggestion="Remove console statements or use a proper logging library with log levels.",
                snippet=True,
            ))

        elif node.type == "debugger_statement":
            findings.append(ctx.finding(
                node,
                rule_id="no-debugger",
                category=Category.CODE_QUALITY,
                severity=Severity.MEDIUM,
                title="Debugger statement found",
                description="Debugger statements should not be committed to production code.",
                suggestion="Remove debugger statements before committing.",
            ))

    return findings
