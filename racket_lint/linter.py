"""
Design Recipe Linter
====================
Static analysis pass that runs over a finished parse tree and reports
violations of the design recipe.

Every top-level function design block must have:
  1. A signature comment: `; name : In ... -> Out`
  2. A purpose statement: at least one comment line after the signature
  3. Enough tests: check-expect and friends calling the function

Nested `local` definitions are linted by a fresh Linter with no test
requirement, and their warnings are folded into the enclosing design.
"""
from __future__ import annotations

import logging
import re
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Iterable, Union

from .parser import (
    COMMENT_KINDS, Expression, NodeKind, Parser, ParserStatus,
    RacketLintError, RacketNode, node_to_string,
)

logger = logging.getLogger(__name__)


DEFAULT_TEST_THRESHOLD = 2

# A function whose body starts a big-bang program is not expected to have tests.
INTERACTIVE_ENTRY_POINT = "big-bang"
INTERACTIVE_TEST_COUNT = 1000

LOCAL_FORM = "local"
DEFINE = "define"
TEMPLATE_SUFFIX = "-temp"

TEST_FUNCTION_NAMES = frozenset({
    "check-expect",
    "check-random",
    "check-satisfied",
    "check-within",
    "check-error",
    "check-member-of",
    "check-range",
})

_CONSTANT_NAME = re.compile(r"^[A-Z0-9-]+$")
_TEMPLATE_VAR = re.compile(r"^\.{2,6}$")
_PLACEHOLDER = re.compile(r"^\?+$")
_SIGNATURE_PREFIX = re.compile(r"^[; ]+")
_LOCAL_PREFIX = re.compile(r"^within local(?: def of \S+)?: ")


class LinterStateError(RacketLintError):
    """Raised when a linter phase runs without an open function design."""


# ─────────────────────────────────────────────────────────────
#  Warning Lists
# ─────────────────────────────────────────────────────────────

@dataclass
class GeneralWarningList:
    """Warnings for anything found before the first signature."""
    warnings: list[str] = field(default_factory=list)

    @property
    def title(self) -> str:
        return "Before first function design"


@dataclass
class FunctionDesign:
    """The design block of one top-level function."""
    name: str = ""
    purpose_lines: int = 0
    tests: int = 0
    warnings: list[str] = field(default_factory=list)

    @property
    def title(self) -> str:
        return f"In function design for {self.name}"


WarningList = Union[GeneralWarningList, FunctionDesign]


@dataclass
class WarningGroup:
    """A titled, non-empty list of warnings as handed to callers."""
    title: str
    warnings: list[str]

    def to_dict(self) -> dict:
        return {"title": self.title, "warnings": list(self.warnings)}


# ─────────────────────────────────────────────────────────────
#  Node Recognizers
# ─────────────────────────────────────────────────────────────

def try_parse_signature(node: RacketNode) -> FunctionDesign | None:
    """Return a new FunctionDesign if `node` is a signature comment.

    The comment is rewritten as `(name : In ... -> Out)` and fed back through
    the Parser. It must name a single function, use exactly one arrow, and
    not be a template signature (`foo-temp : X -> ?`).
    """
    if node.kind is not NodeKind.LINE_COMMENT:
        return None
    if ":" not in node.source or "->" not in node.source:
        return None

    text = _SIGNATURE_PREFIX.sub("", node.source).replace(":", " : ", 1)
    parser = Parser(f"({text})")
    if parser.run() is not ParserStatus.DONE or not parser.root.children:
        return None

    sig = parser.root.children[0]
    if not isinstance(sig, Expression) or len(sig.children) <= 3:
        return None
    name, colon = sig.children[0], sig.children[1]
    if not name.is_variable() or not colon.is_variable(":"):
        return None

    arrows = [child for child in sig.children if child.is_variable("->")]
    if len(arrows) != 1:
        return None

    if name.source.endswith(TEMPLATE_SUFFIX) and any(
        child.is_variable() and _PLACEHOLDER.match(child.source) for child in sig.children
    ):
        return None

    return FunctionDesign(name=name.source)


def is_constant(node: RacketNode) -> bool:
    """`(define NAME ...)` with an all-caps name."""
    return (isinstance(node, Expression) and
            len(node.children) >= 2 and
            node.children[0].is_variable(DEFINE) and
            node.children[1].is_variable() and
            _CONSTANT_NAME.match(node.children[1].source) is not None)


def has_template_vars(node: RacketNode) -> bool:
    """True if an ellipsis placeholder (`..`, `...`, `..lox..`) appears anywhere."""
    if isinstance(node, Expression):
        return any(has_template_vars(child) for child in node.children)
    return node.is_variable() and _TEMPLATE_VAR.match(node.source) is not None


@dataclass
class TestDef:
    """A test form; `actual` is the expression being checked."""
    actual: RacketNode


def try_get_test_def(node: RacketNode) -> TestDef | None:
    if (isinstance(node, Expression) and
            len(node.children) >= 3 and
            node.children[0].is_variable() and
            node.children[0].source in TEST_FUNCTION_NAMES):
        return TestDef(actual=node.children[1])
    return None


@dataclass
class FunctionDef:
    name: str
    arg_names: list[str]
    is_template: bool
    body: RacketNode


def try_get_function_def(node: RacketNode) -> FunctionDef | None:
    """Recognize `(define (name arg ...) body)`."""
    if not (isinstance(node, Expression) and
            len(node.children) == 3 and
            node.children[0].is_variable(DEFINE)):
        return None

    header = node.children[1]
    if not isinstance(header, Expression) or not header.children:
        return None
    if not all(child.is_variable() for child in header.children):
        return None

    names = [child.source for child in header.children]
    return FunctionDef(
        name=names[0],
        arg_names=names[1:],
        is_template=has_template_vars(node),
        body=node.children[2],
    )


# ─────────────────────────────────────────────────────────────
#  Function Call Search
# ─────────────────────────────────────────────────────────────

@dataclass
class FunctionCall:
    name: str
    body: Expression


def _never(call: FunctionCall) -> bool:
    return False


def search_function_calls(node: Expression,
                          stop_when: Callable[[FunctionCall], bool] = _never,
                          ) -> tuple[list[FunctionCall], bool]:
    """Depth-first, pre-order search for calls below `node`.

    Returns every call visited and whether `stop_when` ended the search; when
    it did, the stopping call is the last one in the list.
    """
    calls: list[FunctionCall] = []
    children: Iterable[RacketNode] = node.children

    if node.children and node.children[0].is_variable():
        call = FunctionCall(node.children[0].source, node)
        calls.append(call)
        if stop_when(call):
            return calls, True
        children = node.children[1:]

    for child in children:
        if isinstance(child, Expression):
            found, stopped = search_function_calls(child, stop_when)
            calls.extend(found)
            if stopped:
                return calls, True

    return calls, False


def get_function_calls(node: RacketNode) -> list[FunctionCall]:
    if not isinstance(node, Expression):
        return []
    calls, _ = search_function_calls(node)
    return calls


def find_function_call(node: RacketNode,
                       predicate: Callable[[FunctionCall], bool]) -> FunctionCall | None:
    """Return the first call (pre-order) that satisfies `predicate`."""
    if not isinstance(node, Expression):
        return None
    calls, stopped = search_function_calls(node, predicate)
    if not stopped:
        return None
    return calls[-1]


# ─────────────────────────────────────────────────────────────
#  Linter
# ─────────────────────────────────────────────────────────────

class Linter:
    """
    Walks the top-level nodes of a program, one design block at a time.

    Usage:
        linter = Linter.from_parser(parser)
        for group in linter.lint():
            print(group.title, group.warnings)

    Each block is read in phases: add_signature, add_purpose_lines,
    add_tests, finalize. All phases consume from the same `remaining_nodes`
    queue.
    """

    def __init__(self, nodes: Iterable[RacketNode], test_threshold: int = DEFAULT_TEST_THRESHOLD):
        self.remaining_nodes: deque[RacketNode] = deque(nodes)
        self.messages: list[WarningList] = [GeneralWarningList()]
        self.templates: list[FunctionDef] = []
        self.test_threshold = test_threshold

    @classmethod
    def from_parser(cls, parser: Parser, test_threshold: int = DEFAULT_TEST_THRESHOLD) -> Linter:
        if parser.status is not ParserStatus.DONE:
            raise LinterStateError(
                f"Can't create linter for unfinished parser ({parser.status.name})"
            )
        return cls(parser.root.children, test_threshold=test_threshold)

    def require_current_function_design(self) -> FunctionDesign:
        current = self.messages[-1]
        if not isinstance(current, FunctionDesign):
            raise LinterStateError("The warning list at the current position is not a FunctionDesign")
        return current

    def warning_groups(self) -> list[WarningGroup]:
        return [WarningGroup(wl.title, wl.warnings) for wl in self.messages if wl.warnings]

    def lint(self) -> list[WarningGroup]:
        """Consume every remaining node and return the non-empty warning groups."""
        while self.remaining_nodes:
            self.add_signature()
            if self.remaining_nodes:
                self.add_purpose_lines()
                self.add_tests()
                self.finalize(self.require_current_function_design())
        return self.warning_groups()

    def finalize(self, fn_design: FunctionDesign) -> None:
        if fn_design.purpose_lines < 1:
            fn_design.warnings.append("no purpose statement")
        if fn_design.tests < self.test_threshold:
            fn_design.warnings.append(f"only {fn_design.tests} tests")

    def get_body_warnings(self, fn_def: FunctionDef) -> list[str]:
        """Lint every `(local [defs ...] body)` in the function body."""
        body_warnings: list[str] = []
        for call in get_function_calls(fn_def.body):
            if call.name != LOCAL_FORM:
                continue
            if len(call.body.children) < 2 or not isinstance(call.body.children[1], Expression):
                continue

            logger.debug("linting local definitions inside %s", fn_def.name)
            local_linter = Linter(call.body.children[1].children, test_threshold=0)
            local_linter.lint()
            for wl in local_linter.messages:
                if isinstance(wl, FunctionDesign):
                    prefix = f"within local def of {wl.name}: "
                else:
                    prefix = "within local: "
                body_warnings.extend(prefix + _LOCAL_PREFIX.sub("", w, count=1) for w in wl.warnings)

        return body_warnings

    def _add_function_def(self, fn_def: FunctionDef, warning_list: WarningList,
                          fn_design: FunctionDesign | None = None) -> None:
        if fn_def.is_template:
            self.templates.append(fn_def)
            return

        if fn_design is not None and find_function_call(
                fn_def.body, lambda c: c.name == INTERACTIVE_ENTRY_POINT) is not None:
            fn_design.tests = INTERACTIVE_TEST_COUNT

        if fn_design is None or fn_def.name != fn_design.name:
            warning_list.warnings.append(f"unexpected function definition for {fn_def.name}")
        warning_list.warnings.extend(self.get_body_warnings(fn_def))

    # ─────────────────────────────────────────────────────────
    #  Phase 1: Signature
    # ─────────────────────────────────────────────────────────

    def add_signature(self) -> None:
        """Take nodes until the next signature, which opens a new design.

        Function definitions and tests met on the way are unexpected and
        reported against the current warning list; templates are recorded.
        """
        while self.remaining_nodes:
            node = self.remaining_nodes.popleft()
            warning_list = self.messages[-1]

            fn_design = try_parse_signature(node)
            if fn_design is not None:
                logger.debug("found signature for %s", fn_design.name)
                self.messages.append(fn_design)
                return

            fn_def = try_get_function_def(node)
            if fn_def is not None:
                self._add_function_def(fn_def, warning_list)
            elif try_get_test_def(node) is not None:
                warning_list.warnings.append(f"unexpected test: {node_to_string(node)}")

    # ─────────────────────────────────────────────────────────
    #  Phase 2: Purpose Statement
    # ─────────────────────────────────────────────────────────

    def add_purpose_lines(self) -> None:
        """Count comments right after the signature, skipping constants."""
        fn_design = self.require_current_function_design()

        while self.remaining_nodes:
            node = self.remaining_nodes[0]
            if node.kind in COMMENT_KINDS:
                fn_design.purpose_lines += 1
            elif not is_constant(node):
                return
            self.remaining_nodes.popleft()

    # ─────────────────────────────────────────────────────────
    #  Phase 3: Tests and Definition
    # ─────────────────────────────────────────────────────────

    def add_tests(self) -> None:
        """Take nodes up to the next signature, counting tests."""
        fn_design = self.require_current_function_design()

        while self.remaining_nodes:
            node = self.remaining_nodes[0]
            if try_parse_signature(node) is not None:
                return
            self.remaining_nodes.popleft()

            fn_def = try_get_function_def(node)
            if fn_def is not None:
                self._add_function_def(fn_def, fn_design, fn_design)
                continue

            test_def = try_get_test_def(node)
            if test_def is not None:
                fn_design.tests += 1
                if find_function_call(test_def.actual, lambda c: c.name == fn_design.name) is None:
                    fn_design.warnings.append(
                        f"expected test to call {fn_design.name}: {node_to_string(node)}"
                    )
