"""
Racket Student-Language Parser
==============================
Incrementally turns Racket source text into a tree of atoms and expressions.

There is no grammar: at every step a fixed, ordered table of lexical patterns
is raced against the whole remaining input, and the pattern whose match starts
earliest wins (ties go to the longer match, then to the earlier table entry).

Usage:
    parser = Parser(source)
    status = parser.run()
    if status is ParserStatus.DONE:
        top_level = parser.root.children
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, Union

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────
#  Tree Nodes
# ─────────────────────────────────────────────────────────────

class NodeKind(Enum):
    """Kinds of nodes in a parsed Racket tree."""
    LINE_COMMENT  = auto()   # ; ...
    BLOCK_COMMENT = auto()   # #| ... |#
    STRING        = auto()   # "..."
    NUMBER        = auto()   # 42, -1.5e3, .5
    SYMBOL        = auto()   # 'name
    VARIABLE      = auto()   # define, +, ->, ...
    EXPRESSION    = auto()   # ( ... ) or [ ... ]


COMMENT_KINDS = frozenset({NodeKind.LINE_COMMENT, NodeKind.BLOCK_COMMENT})


@dataclass
class Atom:
    """A leaf node holding the exact matched source text."""
    kind: NodeKind
    source: str

    def is_variable(self, name: str | None = None) -> bool:
        return self.kind is NodeKind.VARIABLE and (name is None or self.source == name)


@dataclass
class Expression:
    """A parenthesized (or bracketed) sequence of child nodes."""
    children: list[RacketNode] = field(default_factory=list)
    kind: NodeKind = field(default=NodeKind.EXPRESSION, init=False)

    def is_variable(self, name: str | None = None) -> bool:
        return False


RacketNode = Union[Atom, Expression]


def node_to_string(node: RacketNode) -> str:
    """Render a node as fully parenthesized, space-joined text."""
    if isinstance(node, Expression):
        return "(" + " ".join(node_to_string(child) for child in node.children) + ")"
    return node.source


# ─────────────────────────────────────────────────────────────
#  Lexical Patterns
# ─────────────────────────────────────────────────────────────

class ParserStep(Enum):
    """What a winning lexical match asks the parser to do."""
    LINE_COMMENT     = NodeKind.LINE_COMMENT
    BLOCK_COMMENT    = NodeKind.BLOCK_COMMENT
    EXPRESSION_START = "expression-start"
    EXPRESSION_END   = "expression-end"
    STRING           = NodeKind.STRING
    NUMBER           = NodeKind.NUMBER
    SYMBOL           = NodeKind.SYMBOL
    VARIABLE         = NodeKind.VARIABLE


@dataclass(frozen=True)
class Span:
    """Where a pattern matched inside the remaining input."""
    index: int
    length: int
    text: str

    @property
    def end(self) -> int:
        return self.index + self.length


@dataclass(frozen=True)
class Token:
    """The winning step and its span."""
    step: ParserStep
    span: Span


Matcher = Callable[[str], Union[Span, None]]


def _regex_matcher(pattern: str, flags: int = 0) -> Matcher:
    compiled = re.compile(pattern, flags)

    def search(code: str) -> Span | None:
        m = compiled.search(code)
        if m is None:
            return None
        return Span(m.start(), m.end() - m.start(), m.group(0))

    return search


_BLOCK_COMMENT_MARKER = re.compile(r"#\||\|#")


def _block_comment_matcher(code: str) -> Span | None:
    """Find the first `#| ... |#` comment, honoring nested comments."""
    start = code.find("#|")
    if start < 0:
        return None
    depth = 0
    for m in _BLOCK_COMMENT_MARKER.finditer(code, start):
        if m.group(0) == "#|":
            depth += 1
        else:
            depth -= 1
            if depth == 0:
                return Span(start, m.end() - start, code[start:m.end()])
    # unterminated
    return None


# Characters that can never be part of a symbol or variable name.
_IDENT = r"[^\][(){}|\s,`\"'#]"


@dataclass(frozen=True)
class LexicalPattern:
    step: ParserStep
    search: Matcher


# Evaluated in this order; see span_precedes for the tie-break.
LEXICAL_PATTERNS: tuple[LexicalPattern, ...] = (
    LexicalPattern(ParserStep.LINE_COMMENT, _regex_matcher(r";[^\n\r\u2028\u2029]*")),
    LexicalPattern(ParserStep.BLOCK_COMMENT, _block_comment_matcher),
    LexicalPattern(ParserStep.EXPRESSION_START, _regex_matcher(r"[\[(]")),
    LexicalPattern(ParserStep.EXPRESSION_END, _regex_matcher(r"[\])]")),
    LexicalPattern(ParserStep.STRING, _regex_matcher(r'"(?:[^"\\]|\\.)*"', re.DOTALL)),
    LexicalPattern(
        ParserStep.NUMBER,
        _regex_matcher(r"[-+]?(?:[0-9]+(?:\.?[0-9]*)?|\.[0-9]+)(?:e[-+]?[0-9]+)?"),
    ),
    LexicalPattern(ParserStep.SYMBOL, _regex_matcher(f"'{_IDENT}+")),
    LexicalPattern(ParserStep.VARIABLE, _regex_matcher(f"{_IDENT}+")),
)


def span_precedes(found: Span | None, candidate: Span) -> bool:
    """True if `found` should be kept over `candidate`.

    A span wins if it starts earlier, or starts at the same offset and is at
    least as long.
    """
    if found is None:
        return False
    return (found.index < candidate.index or
            (found.index == candidate.index and found.length >= candidate.length))


def find_nearest_token(code: str) -> Token | None:
    """Race every lexical pattern over `code` and return the winner."""
    best: Token | None = None
    for pattern in LEXICAL_PATTERNS:
        span = pattern.search(code)
        if span is None:
            continue
        if not span_precedes(best.span if best else None, span):
            best = Token(pattern.step, span)
    return best


# ─────────────────────────────────────────────────────────────
#  Parser
# ─────────────────────────────────────────────────────────────

class ParserStatus(Enum):
    IN_PROGRESS    = auto()
    DONE           = auto()
    FOUND_UNCLOSED = auto()
    FOUND_TRAILING = auto()


class RacketLintError(RuntimeError):
    """Base class for programming-contract violations in the core."""


class ParserStateError(RacketLintError):
    """Raised when a parser is used after reaching a terminal status."""


class Parser:
    """
    Incrementally parses a Student Language string into `root`.

    Each call to advance() consumes one token. The parser ends in exactly one
    of DONE, FOUND_UNCLOSED or FOUND_TRAILING, after which it must not be
    advanced again.
    """

    def __init__(self, code: str):
        self.code = code
        self.root = Expression()
        self.context_stack: list[Expression] = []
        self.context = self.root
        self.status = ParserStatus.IN_PROGRESS

    def advance(self) -> None:
        if self.status is not ParserStatus.IN_PROGRESS:
            raise ParserStateError(f"Parser can not advance past status {self.status.name}")

        token = find_nearest_token(self.code)
        if token is None:
            if not self.context_stack:
                self.status = ParserStatus.DONE
            else:
                self.status = ParserStatus.FOUND_UNCLOSED
            logger.debug("parser finished with %s", self.status.name)
            return

        if token.step is ParserStep.EXPRESSION_START:
            nested = Expression()
            self.context.children.append(nested)
            self.context_stack.append(self.context)
            self.context = nested
        elif token.step is ParserStep.EXPRESSION_END:
            if not self.context_stack:
                self.status = ParserStatus.FOUND_TRAILING
                logger.debug("unmatched closer with %d characters left", len(self.code))
                return
            self.context = self.context_stack.pop()
        else:
            self.context.children.append(Atom(token.step.value, token.span.text))

        self.code = self.code[token.span.end:]

    def run(self) -> ParserStatus:
        """Advance until a terminal status is reached and return it."""
        while self.status is ParserStatus.IN_PROGRESS:
            self.advance()
        return self.status

    def last_node(self) -> RacketNode | None:
        if self.context.children:
            return self.context.children[-1]
        return None


def parse(code: str) -> Parser:
    """Build a parser over `code` and drive it to completion."""
    parser = Parser(code)
    parser.run()
    return parser
