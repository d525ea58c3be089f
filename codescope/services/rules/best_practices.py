"""Best-practice rules: empty catch, unused bindings, var, nested ternaries, nesting depth, loose equality."""

from collections import Counter

from tree_sitter import Tree

from codescope.schemas.finding import Category, Finding, Severity
from codescope.services.rules.base import (
    FUNCTION_TYPES,
    LOOP_TYPES,
    VisitorContext,
    ancestors,
    unwrap_parens,
    walk,
)

MAX_DEPTH = 4

# Ancestors that add a nesting level
NESTING_TYPES = FUNCTION_TYPES | LOOP_TYPES | {
    "if_statement",
    "switch_statement",
    "try_statement",
}

# Nodes reported when nested too deeply
DEPTH_REPORTED_TYPES = LOOP_TYPES | {"if_statement"}

REFERENCE_TYPES = frozenset({
    "identifier",
    "shorthand_property_identifier",
})


def check_empty_catch(tree: Tree, raw_text: str, file_path: str) -> list[Finding]:
    """Catch blocks with no statements. Comments alone do not count as handling."""
    ctx = VisitorContext(tree, raw_text, file_path)
    findings = []

    for node in walk(ctx.root):
        if node.type != "catch_clause":
            continue
        body = node.child_by_field_name("body")
        if body is None:
            continue
        statements = [child for child in body.named_children if child.type != "comment"]
        if statements:
            continue
        findings.append(ctx.finding(
            node,
            rule_id="no-empty-catch",
            category=Category.CODE_QUALITY,
            severity=Severity.MEDIUM,
            title="Empty catch block",
            description="Empty catch blocks silently swallow errors, making debugging difficult.",
            suggestion="Log the error or handle it appropriately. At minimum, rethrow or record why it is safe to ignore.",
        ))

    return findings


def check_unused_variables(tree: Tree, raw_text: str, file_path: str) -> list[Finding]:
    """Declared bindings that are never referenced.

    References are counted by name across the file; names starting with an
    underscore are treated as intentionally unused.
    """
    ctx = VisitorContext(tree, raw_text, file_path)

    declared = []
    binding_nodes = set()
    for node in walk(ctx.root):
        if node.type != "variable_declarator":
            continue
        name_node = node.child_by_field_name("name")
        if name_node is None or name_node.type != "identifier":
            continue
        declared.append((node, ctx.text(name_node)))
        binding_nodes.add(name_node.id)

    if not declared:
        return []

    references: Counter[str] = Counter()
    for node in walk(ctx.root):
        if node.type not in REFERENCE_TYPES or node.id in binding_nodes:
            continue
        parent = node.parent
        # Plain assignment writes to the binding without reading it
        if parent is not None and parent.type == "assignment_expression":
            left = parent.child_by_field_name("left")
            if left is not None and left.id == node.id:
                continue
        references[ctx.text(node)] += 1

    findings = []
    for declarator, name in declared:
        if name.startswith("_") or references[name] > 0:
            continue
        findings.append(ctx.finding(
            declarator,
            rule_id="no-unused-vars",
            category=Category.CODE_QUALITY,
            severity=Severity.LOW,
            title=f"Unused variable '{name}'",
            description="This variable is declared but never used.",
            suggestion="Remove unused variables or prefix with underscore if intentionally unused.",
        ))
    return findings


def check_var_declarations(tree: Tree, raw_text: str, file_path: str) -> list[Finding]:
    """Function-scoped ``var`` where ``let``/``const`` would do."""
    ctx = VisitorContext(tree, raw_text, file_path)
    return [
        ctx.finding(
            node,
            rule_id="no-var",
            category=Category.CODE_QUALITY,
            severity=Severity.LOW,
            title="Use of var keyword",
            description="var has function scope which can lead to unexpected behavior. Use let or const instead.",
            suggestion="Use const for values that don't change, let for variables that do.",
        )
        for node in walk(ctx.root)
        if node.type == "variable_declaration"
    ]


def check_nested_ternary(tree: Tree, raw_text: str, file_path: str) -> list[Finding]:
    ctx = VisitorContext(tree, raw_text, file_path)
    findings = []

    for node in walk(ctx.root):
        if node.type != "ternary_expression":
            continue
        branches = (
            unwrap_parens(node.child_by_field_name("consequence")),
            unwrap_parens(node.child_by_field_name("alternative")),
        )
        if not any(b is not None and b.type == "ternary_expression" for b in branches):
            continue
        findings.append(ctx.finding(
            node,
            rule_id="no-nested-ternary",
            category=Category.CODE_QUALITY,
            severity=Severity.MEDIUM,
            title="Nested ternary expression",
            description="Nested ternary expressions are hard to read and understand.",
            suggestion="Use if-else statements or extract logic into a separate function.",
        ))

    return findings


def check_nesting_depth(tree: Tree, raw_text: str, file_path: str) -> list[Finding]:
    """Conditionals and loops sitting under more than MAX_DEPTH nesting ancestors."""
    ctx = VisitorContext(tree, raw_text, file_path)
    findings = []

    for node in walk(ctx.root):
        if node.type not in DEPTH_REPORTED_TYPES:
            continue
        depth = sum(1 for parent in ancestors(node) if parent.type in NESTING_TYPES)
        if depth <= MAX_DEPTH:
            continue
        if not ctx.mark(("max-depth", node.start_point[0], node.start_point[1])):
            continue
        findings.append(ctx.finding(
            node,
            rule_id="max-depth",
            category=Category.MAINTAINABILITY,
            severity=Severity.MEDIUM,
            title="Deeply nested code",
            description=f"Code is nested {depth} levels deep. Deep nesting makes code hard to follow.",
            suggestion="Consider using early returns, extracting functions, or simplifying logic.",
            metadata={"depth": depth},
        ))

    return findings


def check_loose_equality(tree: Tree, raw_text: str, file_path: str) -> list[Finding]:
    ctx = VisitorContext(tree, raw_text, file_path)
    findings = []

    for node in walk(ctx.root):
        if node.type != "binary_expression":
            continue
        operator = node.child_by_field_name("operator")
        op = operator.type if operator is not None else ""
        if op not in ("==", "!="):
            continue
        strict = "===" if op == "==" else "!=="
        findings.append(ctx.finding(
            node,
            rule_id="eqeqeq",
            category=Category.CODE_QUALITY,
            severity=Severity.LOW,
            title=f"Use of {op} operator",
            description="Loose equality can lead to unexpected type coercion.",
            suggestion=f"Use {strict} for strict equality comparison.",
        ))

    return findings
