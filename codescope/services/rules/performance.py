"""Performance rules: quadratic array scans and blocking filesystem calls."""

from tree_sitter import Tree

from codescope.schemas.finding import Category, Finding, Severity
from codescope.services.rules.base import LOOP_TYPES, VisitorContext, ancestors, member_parts, walk

ARRAY_SEARCH_METHODS = frozenset({"find", "filter", "indexOf", "includes", "some", "every"})

SYNC_FS_METHODS = frozenset({
    "readFileSync",
    "writeFileSync",
    "appendFileSync",
    "existsSync",
    "mkdirSync",
    "readdirSync",
})


def check_performance(tree: Tree, raw_text: str, file_path: str) -> list[Finding]:
    ctx = VisitorContext(tree, raw_text, file_path)
    findings = []

    for node in walk(ctx.root):
        if node.type != "call_expression":
            continue
        parts = member_parts(ctx, node.child_by_field_name("function"))
        if parts is None:
            continue
        method = parts[1]

        if method in ARRAY_SEARCH_METHODS:
            in_loop = any(parent.type in LOOP_TYPES for parent in ancestors(node))
            if in_loop and ctx.mark(("nested-array", node.start_byte, node.end_byte)):
                findings.append(ctx.finding(
                    node,
                    rule_id="no-nested-array-methods",
                    category=Category.PERFORMANCE,
                    severity=Severity.MEDIUM,
                    title=f"Array.{method}() inside loop",
                    description=(
                        f"Calling {method}() inside a loop scans the array on every "
                        "iteration, which can lead to O(n²) complexity."
                    ),
                    suggestion="Consider using a Map or Set for O(1) lookups, or restructure the algorithm.",
                    snippet=True,
                ))

        elif method in SYNC_FS_METHODS:
            findings.append(ctx.finding(
                node,
                rule_id="no-sync-fs",
                category=Category.PERFORMANCE,
                severity=Severity.LOW,
                title=f"Synchronous file operation: {method}",
                description=(
                    "Synchronous file operations block the event loop and can "
                    "degrade performance under load."
                ),
                suggestion=f"Use the async version: {method.removesuffix('Sync')} with await or callbacks.",
                snippet=True,
            ))

    return findings
