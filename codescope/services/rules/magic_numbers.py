"""Magic number detection."""

from tree_sitter import Node, Tree

from codescope.schemas.finding import Category, Finding, Severity
from codescope.services.rules.base import VisitorContext, ancestors, declaration_kind, walk

# Common acceptable numbers
ALLOWED_NUMBERS = frozenset({0, 1, -1, 2, 10, 100, 1000})

DEFAULT_PARAMETER_TYPES = frozenset({
    "assignment_pattern",
    "required_parameter",
    "optional_parameter",
})


def parse_number(text: str) -> float | None:
    """Numeric value of a JS/TS number literal, None if unparseable."""
    cleaned = text.replace("_", "").rstrip("nN").lower()
    try:
        if cleaned.startswith(("0x", "0o", "0b")):
            return float(int(cleaned, 0))
        if len(cleaned) > 1 and cleaned.startswith("0") and cleaned.isdigit():
            return float(int(cleaned, 8))  # legacy octal
        return float(cleaned)
    except ValueError:
        return None


def _format_number(value: float) -> str:
    return str(int(value)) if value.is_integer() else str(value)


def _is_array_index(node: Node) -> bool:
    parent = node.parent
    if parent is None or parent.type != "subscript_expression":
        return False
    index = parent.child_by_field_name("index")
    return index is not None and index.id == node.id


def _is_default_parameter(node: Node) -> bool:
    parent = node.parent
    if parent is None or parent.type not in DEFAULT_PARAMETER_TYPES:
        return False
    field = "right" if parent.type == "assignment_pattern" else "value"
    value = parent.child_by_field_name(field)
    return value is not None and value.id == node.id


def _in_const_declaration(node: Node) -> bool:
    """True if the nearest enclosing declarator belongs to a const declaration."""
    for parent in ancestors(node):
        if parent.type == "variable_declarator":
            return declaration_kind(parent) == "const"
    return False


def check_magic_numbers(tree: Tree, raw_text: str, file_path: str) -> list[Finding]:
    ctx = VisitorContext(tree, raw_text, file_path)
    findings = []

    for node in walk(ctx.root):
        if node.type != "number":
            continue
        value = parse_number(ctx.text(node))
        if value is None or value in ALLOWED_NUMBERS:
            continue
        if _is_array_index(node) or _is_default_parameter(node) or _in_const_declaration(node):
            continue

        shown = _format_number(value)
        findings.append(ctx.finding(
            node,
            rule_id="no-magic-numbers",
            category=Category.MAINTAINABILITY,
            severity=Severity.LOW,
            title=f"Magic number: {shown}",
            description=(
                f"Found hardcoded number {shown}. Magic numbers make code harder "
                "to understand and maintain."
            ),
            suggestion=f"Extract this number into a named constant:\nconst MEANINGFUL_NAME = {shown};",
            snippet=True,
            metadata={"value": value},
        ))

    return findings
