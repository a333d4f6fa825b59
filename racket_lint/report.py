"""
Lint Entry Point and Reports
============================
Turns one source string into either a list of warning groups or a
RacketSyntaxError, and renders reports for the command line and HTTP.

Usage:
    try:
        groups = lint_source(source)
    except RacketSyntaxError as e:
        print(e)
    else:
        print(format_report(groups))
"""
from __future__ import annotations

import json
import logging

from .config import LintConfig
from .linter import Linter, WarningGroup
from .parser import Parser, ParserStatus

logger = logging.getLogger(__name__)


SYNTAX_ERROR_MESSAGES = {
    ParserStatus.FOUND_TRAILING: "Syntax error in file: trailing characters",
    ParserStatus.FOUND_UNCLOSED: "Syntax error in file: unmatched parenthesis or bracket",
}

# Files saved by DrRacket with embedded images use a binary format we can't read.
GRACKET_MARKER = "This file uses the GRacket editor format."


class RacketSyntaxError(SyntaxError):
    """The source did not parse; `status` tells which way it failed."""

    def __init__(self, status: ParserStatus):
        super().__init__(SYNTAX_ERROR_MESSAGES[status])
        self.status = status


def is_gracket_format(source: str) -> bool:
    return GRACKET_MARKER in source


def lint_source(source: str, config: LintConfig | None = None) -> list[WarningGroup]:
    """Parse and lint one file's worth of source text."""
    config = config or LintConfig()

    parser = Parser(source)
    status = parser.run()
    if status is not ParserStatus.DONE:
        raise RacketSyntaxError(status)

    logger.debug("linting %d top-level forms", len(parser.root.children))
    return Linter.from_parser(parser, test_threshold=config.test_threshold).lint()


# ─────────────────────────────────────────────────────────────
#  Rendering
# ─────────────────────────────────────────────────────────────

def format_report(groups: list[WarningGroup], indent: int = 2) -> str:
    """Plain-text report: each title, then its warnings indented."""
    if not groups:
        return "0 warnings"

    blocks = []
    for group in groups:
        lines = [group.title]
        lines.extend(" " * indent + warning for warning in group.warnings)
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def report_to_json(groups: list[WarningGroup]) -> str:
    return json.dumps([group.to_dict() for group in groups], indent=2)


def count_warnings(groups: list[WarningGroup]) -> int:
    return sum(len(group.warnings) for group in groups)
