"""Naming convention checks for variables, functions and classes."""

from tree_sitter import Tree

from codescope.schemas.finding import Category, Finding, Severity
from codescope.services.rules.base import VisitorContext, declaration_kind, walk

# Conventional loop counters and coordinates
SINGLE_LETTER_OK = frozenset({"i", "j", "k", "x", "y", "z", "_"})

FUNCTION_DECLARATION_TYPES = frozenset({
    "function_declaration",
    "generator_function_declaration",
})

CLASS_DECLARATION_TYPES = frozenset({
    "class_declaration",
    "abstract_class_declaration",
})


def check_naming(tree: Tree, raw_text: str, file_path: str) -> list[Finding]:
    ctx = VisitorContext(tree, raw_text, file_path)
    findings = []

    def report(node, title: str, description: str, suggestion: str) -> None:
        findings.append(ctx.finding(
            node,
            rule_id="naming-convention",
            category=Category.READABILITY,
            severity=Severity.LOW,
            title=title,
            description=description,
            suggestion=suggestion,
        ))

    for node in walk(ctx.root):
        if node.type == "variable_declarator":
            name_node = node.child_by_field_name("name")
            # Destructuring patterns are skipped
            if name_node is None or name_node.type != "identifier":
                continue
            name = ctx.text(name_node)

            if len(name) == 1 and name not in SINGLE_LETTER_OK:
                report(
                    node,
                    f"Single-letter variable name '{name}'",
                    f"Variable '{name}' has a non-descriptive single-letter name.",
                    "Use descriptive variable names that clearly indicate the purpose or content of the variable.",
                )

            if len(name) > 1 and name.isupper() and declaration_kind(node) != "const":
                report(
                    node,
                    f"Uppercase variable '{name}' should be const",
                    f"Variable '{name}' uses uppercase naming but is not declared as const.",
                    "Use const for constants with uppercase names, or use camelCase for regular variables.",
                )

        elif node.type in FUNCTION_DECLARATION_TYPES:
            name = ctx.text(node.child_by_field_name("name"))
            if name and name[0].isupper():
                report(
                    node,
                    f"Function '{name}' should start with lowercase",
                    "Function names should start with lowercase unless they are constructors.",
                    "Use camelCase for function names (e.g., myFunction instead of MyFunction).",
                )

        elif node.type in CLASS_DECLARATION_TYPES:
            name = ctx.text(node.child_by_field_name("name"))
            if name and name[0].islower():
                report(
                    node,
                    f"Class '{name}' should start with uppercase",
                    "Class names should follow PascalCase convention.",
                    "Use PascalCase for class names (e.g., MyClass instead of myClass).",
                )

    return findings
