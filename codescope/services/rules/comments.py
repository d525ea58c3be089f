"""Warning-marker comments, scanned over raw lines without the tree."""

import re

from tree_sitter import Tree

from codescope.schemas.finding import Category, Finding, FindingSource, LineRange, Severity

WARNING_COMMENT_RE = re.compile(r"(?://|/\*)\s*(TODO|FIXME|HACK|XXX|BUG):", re.IGNORECASE)


def check_warning_comments(tree: Tree | None, raw_text: str, file_path: str) -> list[Finding]:
    findings = []

    for index, line in enumerate(raw_text.split("\n"), start=1):
        match = WARNING_COMMENT_RE.search(line)
        if not match:
            continue
        marker = match.group(1).upper()
        findings.append(Finding(
            category=Category.MAINTAINABILITY,
            severity=Severity.LOW,
            title=f"{marker} comment found",
            description=f"Found {marker} marker: {line.strip()}",
            file_path=file_path,
            line_range=LineRange(start=index, end=index),
            code_snippet=line.strip(),
            suggestion=f"Address the {marker} or create a ticket to track it.",
            source=FindingSource.STATIC,
            rule_id="no-warning-comments",
            metadata={"marker": marker},
        ))

    return findings
