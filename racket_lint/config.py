"""
Lint Configuration
==================
The only tunable rule is the minimum number of tests each function design
must have.
"""
from __future__ import annotations

import os
from dataclasses import dataclass

from .linter import DEFAULT_TEST_THRESHOLD

MIN_TESTS_ENV = "RACKET_LINT_MIN_TESTS"


def parse_test_threshold(value: str | int) -> int:
    """Validate a minimum-test count given as text or int."""
    try:
        threshold = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"minimum test count must be an integer, got {value!r}") from None
    if threshold < 0:
        raise ValueError(f"minimum test count must not be negative, got {threshold}")
    return threshold


@dataclass
class LintConfig:
    """Configuration for a lint run."""

    test_threshold: int = DEFAULT_TEST_THRESHOLD   # tests required per function design

    def __post_init__(self):
        self.test_threshold = parse_test_threshold(self.test_threshold)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> LintConfig:
        """Build a config, taking the threshold from RACKET_LINT_MIN_TESTS if set."""
        environ = os.environ if environ is None else environ
        raw = environ.get(MIN_TESTS_ENV, "").strip()
        if not raw:
            return cls()
        return cls(test_threshold=parse_test_threshold(raw))

    def with_overrides(self, test_threshold: int | None = None) -> LintConfig:
        if test_threshold is None:
            return self
        return LintConfig(test_threshold=test_threshold)
