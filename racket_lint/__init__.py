"""
racket-lint: design recipe checks for Racket student-language programs.
"""
__version__ = "0.1.0"

from .parser import (
    NodeKind, Atom, Expression, RacketNode, node_to_string,
    Parser, ParserStatus, RacketLintError, ParserStateError,
)
from .linter import (
    Linter, LinterStateError, FunctionDesign, GeneralWarningList, WarningGroup,
    try_parse_signature, try_get_function_def, try_get_test_def,
)
from .config import LintConfig
from .report import RacketSyntaxError, lint_source, format_report

__all__ = [
    "NodeKind", "Atom", "Expression", "RacketNode", "node_to_string",
    "Parser", "ParserStatus", "RacketLintError", "ParserStateError",
    "Linter", "LinterStateError", "FunctionDesign", "GeneralWarningList", "WarningGroup",
    "try_parse_signature", "try_get_function_def", "try_get_test_def",
    "LintConfig",
    "RacketSyntaxError", "lint_source", "format_report",
]
