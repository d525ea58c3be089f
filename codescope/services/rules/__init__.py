"""Static analysis rules for JavaScript and TypeScript.

Rules run in the fixed order of ``RULES``. Each is a pure function of
``(tree, raw_text, file_path)`` and does not depend on any other rule.
"""

from codescope.services.rules.base import Rule, VisitorContext
from codescope.services.rules.best_practices import (
    check_empty_catch,
    check_loose_equality,
    check_nested_ternary,
    check_nesting_depth,
    check_unused_variables,
    check_var_declarations,
)
from codescope.services.rules.comments import check_warning_comments
from codescope.services.rules.complexity import (
    check_class_size,
    check_complexity,
    check_function_size,
)
from codescope.services.rules.debug_code import check_debug_code
from codescope.services.rules.error_handling import check_error_handling
from codescope.services.rules.magic_numbers import check_magic_numbers
from codescope.services.rules.naming import check_naming
from codescope.services.rules.performance import check_performance
from codescope.services.rules.security import check_security

RULES: list[Rule] = [
    check_empty_catch,
    check_unused_variables,
    check_var_declarations,
    check_nested_ternary,
    check_nesting_depth,
    check_loose_equality,
    check_complexity,
    check_function_size,
    check_class_size,
    check_magic_numbers,
    check_naming,
    check_debug_code,
    check_security,
    check_performance,
    check_error_handling,
    check_warning_comments,
]

__all__ = [
    "RULES",
    "Rule",
    "VisitorContext",
    "check_class_size",
    "check_complexity",
    "check_debug_code",
    "check_empty_catch",
    "check_error_handling",
    "check_function_size",
    "check_loose_equality",
    "check_magic_numbers",
    "check_naming",
    "check_nested_ternary",
    "check_nesting_depth",
    "check_performance",
    "check_security",
    "check_unused_variables",
    "check_var_declarations",
    "check_warning_comments",
]
