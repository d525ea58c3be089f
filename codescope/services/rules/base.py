"""Shared plumbing for static analysis rules.

Every rule is a plain function ``(tree, raw_text, file_path) -> list[Finding]``.
Rules build a VisitorContext for their own traversal; the context carries the
encoded source, the file's lines and the set of positions already reported,
and is thrown away when the rule returns.
"""

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any

from tree_sitter import Node, Tree

from codescope.schemas.finding import (
    Category,
    Finding,
    FindingSource,
    LineRange,
    Severity,
)

Rule = Callable[[Tree, str, str], list[Finding]]


FUNCTION_TYPES = frozenset({
    "function_declaration",
    "generator_function_declaration",
    "function_expression",
    "function",
    "generator_function",
    "arrow_function",
    "method_definition",
})

LOOP_TYPES = frozenset({
    "for_statement",
    "for_in_statement",
    "while_statement",
    "do_statement",
})


@dataclass
class VisitorContext:
    """Per-file, per-rule traversal state."""

    tree: Tree
    raw_text: str
    file_path: str
    source: bytes = b""
    lines: list[str] = field(default_factory=list)
    reported: set[tuple[Any, ...]] = field(default_factory=set)

    def __post_init__(self) -> None:
        self.source = self.raw_text.encode("utf-8")
        self.lines = self.raw_text.split("\n")

    @property
    def root(self) -> Node:
        return self.tree.root_node

    def text(self, node: Node | None) -> str:
        if node is None:
            return ""
        return self.source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")

    def line_of(self, node: Node) -> str:
        """The stripped source line a node starts on."""
        row = node.start_point[0]
        return self.lines[row].strip() if row < len(self.lines) else ""

    def mark(self, key: tuple[Any, ...]) -> bool:
        """Record a key; False if it was already recorded."""
        if key in self.reported:
            return False
        self.reported.add(key)
        return True

    def finding(
        self,
        node: Node | None,
        *,
        rule_id: str,
        category: Category,
        severity: Severity,
        title: str,
        description: str,
        suggestion: str | None = None,
        snippet: bool = False,
        start: int | None = None,
        end: int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Finding:
        """Build a static-analysis Finding located at ``node``."""
        if node is not None:
            start = node.start_point[0] + 1 if start is None else start
            end = node.end_point[0] + 1 if end is None else end
        start = start or 1
        end = max(end or start, start)
        return Finding(
            category=category,
            severity=severity,
            title=title,
            description=description,
            file_path=self.file_path,
            line_range=LineRange(start=start, end=end),
            code_snippet=self.line_of(node) if snippet and node is not None else None,
            suggestion=suggestion,
            source=FindingSource.STATIC,
            rule_id=rule_id,
            metadata=metadata or {},
        )


def walk(node: Node) -> Iterator[Node]:
    """Pre-order traversal over named nodes."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.named_children))


def walk_skipping_functions(node: Node) -> Iterator[Node]:
    """Pre-order traversal that does not descend into nested functions."""
    stack = list(reversed(node.named_children))
    while stack:
        current = stack.pop()
        yield current
        if current.type in FUNCTION_TYPES:
            continue
        stack.extend(reversed(current.named_children))


def ancestors(node: Node) -> Iterator[Node]:
    parent = node.parent
    while parent is not None:
        yield parent
        parent = parent.parent


def unwrap_parens(node: Node | None) -> Node | None:
    while node is not None and node.type == "parenthesized_expression":
        inner = node.named_children
        node = inner[0] if inner else None
    return node


def declaration_kind(declarator: Node) -> str | None:
    """'var', 'let' or 'const' for a variable_declarator's declaration."""
    parent = declarator.parent
    if parent is None:
        return None
    if parent.type == "variable_declaration":
        return "var"
    if parent.type == "lexical_declaration" and parent.children:
        return parent.children[0].type
    return None


def string_value(ctx: VisitorContext, node: Node) -> str:
    """Contents of a string literal without its quotes."""
    text = ctx.text(node)
    if len(text) >= 2 and text[0] in "'\"`" and text[-1] == text[0]:
        return text[1:-1]
    return text


def is_interpolated_template(node: Node | None) -> bool:
    return (
        node is not None
        and node.type == "template_string"
        and any(child.type == "template_substitution" for child in node.named_children)
    )


def first_argument(call: Node) -> Node | None:
    args = call.child_by_field_name("arguments")
    if args is None:
        return None
    if args.type == "template_string":
        return args
    named = [child for child in args.named_children if child.type != "comment"]
    return named[0] if named else None


def member_parts(ctx: VisitorContext, node: Node | None) -> tuple[str, str] | None:
    """(object text, property name) for a member_expression, else None."""
    if node is None or node.type != "member_expression":
        return None
    obj = node.child_by_field_name("object")
    prop = node.child_by_field_name("property")
    if obj is None or prop is None:
        return None
    return ctx.text(obj), ctx.text(prop)


def function_name(ctx: VisitorContext, node: Node) -> str:
    """Best-effort name for a function-like node."""
    name_node = node.child_by_field_name("name")
    if name_node is not None:
        return ctx.text(name_node)
    parent = node.parent
    if parent is not None:
        if parent.type == "variable_declarator":
            target = parent.child_by_field_name("name")
            if target is not None and target.type == "identifier":
                return ctx.text(target)
        if parent.type in ("pair", "assignment_expression"):
            target = parent.child_by_field_name("key") or parent.child_by_field_name("left")
            if target is not None:
                return ctx.text(target)
    return "anonymous"
