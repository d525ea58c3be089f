"""Security vulnerability detection rules."""

import re

from tree_sitter import Node, Tree

from codescope.schemas.finding import Category, Finding, Severity
from codescope.services.rules.base import (
    VisitorContext,
    first_argument,
    is_interpolated_template,
    member_parts,
    string_value,
    walk,
)

SECRET_NAME_PATTERNS = (
    "password", "passwd", "pwd", "secret", "apikey", "api_key",
    "token", "auth", "credential", "private_key", "privatekey",
)
SECRET_VALUE_RE = re.compile(r"^[A-Za-z0-9_\-.]+$")
SECRET_MIN_LENGTH = 10

SQL_CALLEE_PATTERNS = ("sql", "query", "execute", "raw")

TIMER_FUNCTIONS = frozenset({"setTimeout", "setInterval"})

LOOPBACK_HOSTS = ("localhost", "127.0.0.1")

STRING_TYPES = frozenset({"string", "template_string"})


def _callee_name(ctx: VisitorContext, callee: Node | None) -> str:
    """Identifier name, or the property name of a member callee."""
    if callee is None:
        return ""
    if callee.type == "identifier":
        return ctx.text(callee)
    parts = member_parts(ctx, callee)
    return parts[1] if parts else ""


def _is_string_concatenation(ctx: VisitorContext, node: Node | None) -> bool:
    """``"SELECT ..." + value`` style query building."""
    if node is None or node.type != "binary_expression":
        return False
    operator = node.child_by_field_name("operator")
    if operator is None or operator.type != "+":
        return False
    operands = (node.child_by_field_name("left"), node.child_by_field_name("right"))
    has_literal = any(o is not None and o.type in STRING_TYPES for o in operands)
    has_dynamic = any(o is not None and o.type not in STRING_TYPES for o in operands)
    return has_literal and has_dynamic


def _disables_verification(ctx: VisitorContext, name: str, value: Node | None) -> bool:
    lowered = name.lower()
    if "rejectunauthorized" not in lowered and "verify" not in lowered:
        return False
    if value is None:
        return False
    if value.type == "false":
        return True
    return value.type == "string" and string_value(ctx, value) == "0"


def check_security(tree: Tree, raw_text: str, file_path: str) -> list[Finding]:
    ctx = VisitorContext(tree, raw_text, file_path)
    findings: list[Finding] = []

    for node in walk(ctx.root):
        if node.type in ("call_expression", "new_expression"):
            findings.extend(_check_call(ctx, node))
        elif node.type == "assignment_expression":
            findings.extend(_check_assignment(ctx, node))
        elif node.type == "pair":
            findings.extend(_check_pair(ctx, node))
        elif node.type == "variable_declarator":
            findings.extend(_check_secret(ctx, node))
        elif node.type == "string":
            findings.extend(_check_insecure_url(ctx, node))

    return findings


def _check_call(ctx: VisitorContext, node: Node) -> list[Finding]:
    field = "constructor" if node.type == "new_expression" else "function"
    callee = node.child_by_field_name(field)
    findings = []

    if callee is not None and callee.type == "identifier":
        name = ctx.text(callee)

        if name == "eval" and node.type == "call_expression":
            findings.append(ctx.finding(
                node,
                rule_id="no-eval",
                category=Category.SECURITY,
                severity=Severity.HIGH,
                title="Dangerous eval() usage detected",
                description="eval() executes arbitrary code and can lead to code injection attacks.",
                suggestion="Avoid using eval(). Use JSON.parse() for JSON data or an explicit dispatch table for dynamic behavior.",
                snippet=True,
            ))

        elif name == "Function":
            findings.append(ctx.finding(
                node,
                rule_id="no-new-function",
                category=Category.SECURITY,
                severity=Severity.HIGH,
                title="Dangerous Function constructor usage",
                description="new Function() is similar to eval() and can execute arbitrary code.",
                suggestion="Avoid using the Function constructor with dynamic strings.",
                snippet=True,
            ))

        elif name in TIMER_FUNCTIONS and node.type == "call_expression":
            first = first_argument(node)
            if first is not None and first.type in STRING_TYPES:
                findings.append(ctx.finding(
                    node,
                    rule_id="no-implied-eval",
                    category=Category.SECURITY,
                    severity=Severity.MEDIUM,
                    title=f"{name}() with string argument",
                    description=f"Passing a string to {name}() is evaluated like eval().",
                    suggestion="Pass a function reference instead of a string.",
                ))

    if node.type != "call_expression":
        return findings

    parts = member_parts(ctx, callee)
    if parts is not None and parts[0] == "document" and parts[1] in ("write", "writeln"):
        findings.append(ctx.finding(
            node,
            rule_id="no-document-write",
            category=Category.SECURITY,
            severity=Severity.MEDIUM,
            title=f"document.{parts[1]}() usage detected",
            description="document.write() can be used for XSS attacks and blocks page rendering.",
            suggestion="Use DOM manipulation methods like createElement and appendChild instead.",
        ))

    callee_name = _callee_name(ctx, callee).lower()
    if any(pattern in callee_name for pattern in SQL_CALLEE_PATTERNS):
        args = node.child_by_field_name("arguments")
        tagged = args is not None and args.type == "template_string"
        first = first_argument(node)
        if is_interpolated_template(first) or (not tagged and _is_string_concatenation(ctx, first)):
            findings.append(ctx.finding(
                node,
                rule_id="sql-injection-risk",
                category=Category.SECURITY,
                severity=Severity.MEDIUM,
                title="Potential SQL injection risk",
                description="Interpolating variables in SQL queries may lead to SQL injection.",
                suggestion="Use parameterized queries or prepared statements instead.",
                snippet=True,
            ))

    return findings


def _check_assignment(ctx: VisitorContext, node: Node) -> list[Finding]:
    parts = member_parts(ctx, node.child_by_field_name("left"))
    if parts is None:
        return []
    prop = parts[1]
    findings = []

    if prop in ("innerHTML", "outerHTML"):
        findings.append(ctx.finding(
            node,
            rule_id="no-inner-html" if prop == "innerHTML" else "no-outer-html",
            category=Category.SECURITY,
            severity=Severity.HIGH,
            title=f"Potential XSS vulnerability: {prop} assignment",
            description=f"Direct {prop} assignment can lead to Cross-Site Scripting (XSS) attacks.",
            suggestion="Use textContent for text, or sanitize HTML with DOMPurify before assignment.",
            snippet=True,
        ))

    if _disables_verification(ctx, prop, node.child_by_field_name("right")):
        findings.append(_ssl_finding(ctx, node))

    return findings


def _check_pair(ctx: VisitorContext, node: Node) -> list[Finding]:
    key = node.child_by_field_name("key")
    if key is None:
        return []
    name = string_value(ctx, key) if key.type == "string" else ctx.text(key)
    if _disables_verification(ctx, name, node.child_by_field_name("value")):
        return [_ssl_finding(ctx, node)]
    return []


def _ssl_finding(ctx: VisitorContext, node: Node) -> Finding:
    return ctx.finding(
        node,
        rule_id="ssl-verification-disabled",
        category=Category.SECURITY,
        severity=Severity.HIGH,
        title="SSL/TLS verification disabled",
        description="Disabling SSL verification makes connections vulnerable to MITM attacks.",
        suggestion="Enable SSL verification in production.",
        snippet=True,
    )


def _check_secret(ctx: VisitorContext, node: Node) -> list[Finding]:
    name_node = node.child_by_field_name("name")
    value = node.child_by_field_name("value")
    if name_node is None or name_node.type != "identifier" or value is None or value.type != "string":
        return []

    name = ctx.text(name_node)
    lowered = name.lower()
    literal = string_value(ctx, value)
    is_secret_name = any(pattern in lowered for pattern in SECRET_NAME_PATTERNS)
    looks_like_secret = len(literal) > SECRET_MIN_LENGTH and SECRET_VALUE_RE.match(literal)
    if not (is_secret_name and looks_like_secret):
        return []

    return [ctx.finding(
        node,
        rule_id="no-hardcoded-secrets",
        category=Category.SECURITY,
        severity=Severity.HIGH,
        title=f"Potential hardcoded secret in '{name}'",
        description="Hardcoded secrets in source code can be exposed if the code is shared.",
        suggestion="Use environment variables to store secrets (process.env.SECRET_NAME).",
    )]


def _check_insecure_url(ctx: VisitorContext, node: Node) -> list[Finding]:
    value = string_value(ctx, node)
    if not value.startswith("http://") or any(host in value for host in LOOPBACK_HOSTS):
        return []
    return [ctx.finding(
        node,
        rule_id="prefer-https",
        category=Category.SECURITY,
        severity=Severity.LOW,
        title="Insecure HTTP URL detected",
        description="Using HTTP instead of HTTPS can expose data to man-in-the-middle attacks.",
        suggestion="Use HTTPS for all external URLs.",
    )]
