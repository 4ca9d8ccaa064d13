"""Text front end: programs, queries and interactive lines.

Grammar::

    program   := [statement ("." statement)* "."?]
    statement := atom ":-" [atom ("," atom)* ","?]         rule
               | relation "(" [constant ("," constant)* ","?] ")"   fact
    query     := ["?-"] atom ("," atom)* ","? "."?
    atom      := relation "(" [term ("," term)* ","?] ")"

An identifier spells a constant when it has a letter and all of its letters
are lowercase; otherwise it spells a variable. ``%`` starts a comment.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, NamedTuple, NoReturn, Optional, Union

from .diagnostics import Diagnostic, format_diagnostic
from .nodes import Atom, Constant, Program, Query, Rule, Term, Variable, looks_like_constant
from .spans import Span


@dataclass(frozen=True, slots=True)
class BlockList:
    """Characters removed from every identifier, compared case-insensitively."""

    blocked: str = ""

    def is_allowed(self, c: str) -> bool:
        return c.lower() not in self.blocked

    def apply(self, name: str) -> str:
        left = "".join(c for c in name if self.is_allowed(c))
        return left or "no"


OFF = BlockList()

FILTERS: Dict[str, BlockList] = {
    "off": OFF,
    "qwerty": BlockList("qwertasdfgzxczvb123456"),
    "dvorak": BlockList("aoeuptqjkx123456"),
    "colemak": BlockList("qwfpgarstdzxcvb12345"),
}


class ParseError(ValueError):
    def __init__(self, diagnostic: Diagnostic, source: Optional[str] = None) -> None:
        self.diagnostic = diagnostic
        self.source = source
        super().__init__(format_diagnostic(diagnostic))

    def render(self) -> str:
        return format_diagnostic(self.diagnostic, self.source)


class _Token(NamedTuple):
    kind: str
    text: str
    start: int
    end: int


_TOKEN_RE = re.compile(r"""
    (?P<skip>\s+|%[^\n]*)
  | (?P<ident>[A-Za-z_][A-Za-z0-9_]*)
  | (?P<punct>:-|\?-|[(),.])
""", re.VERBOSE)


def _tokenize(source: str, blocked: BlockList, file: Optional[str]) -> List[_Token]:
    tokens: List[_Token] = []
    pos = 0
    while pos < len(source):
        m = _TOKEN_RE.match(source, pos)
        if m is None:
            raise ParseError(Diagnostic(
                code="P001",
                message=f"unexpected character {source[pos]!r}",
                span=Span(file, pos, pos + 1),
            ), source)
        kind = m.lastgroup
        if kind == "ident":
            tokens.append(_Token(kind, blocked.apply(m.group()), m.start(), m.end()))
        elif kind == "punct":
            tokens.append(_Token(kind, m.group(), m.start(), m.end()))
        pos = m.end()
    tokens.append(_Token("eof", "", len(source), len(source)))
    return tokens


class _Parser:
    def __init__(self, source: str, blocked: BlockList, file: Optional[str]) -> None:
        self._source = source
        self._file = file
        self._tokens = _tokenize(source, blocked, file)
        self._pos = 0

    # token helpers

    def _peek(self) -> _Token:
        return self._tokens[self._pos]

    def _at(self, text: str) -> bool:
        tok = self._peek()
        return tok.kind == "punct" and tok.text == text

    def _advance(self) -> _Token:
        tok = self._tokens[self._pos]
        if tok.kind != "eof":
            self._pos += 1
        return tok

    def _expect(self, text: str) -> _Token:
        if not self._at(text):
            self._unexpected(f"'{text}'")
        return self._advance()

    def _span(self, start: int, end: int) -> Span:
        return Span(self._file, start, end)

    def _unexpected(self, expected: str) -> NoReturn:
        tok = self._peek()
        found = "end of input" if tok.kind == "eof" else repr(tok.text)
        raise ParseError(Diagnostic(
            code="P001",
            message=f"unexpected {found}, expected {expected}",
            span=self._span(tok.start, tok.end),
        ), self._source)

    def _misplaced_variable(self, name: str, span: Optional[Span], what: str) -> NoReturn:
        raise ParseError(Diagnostic(
            code="P002",
            message=f"expected {what} but found variable `{name}`",
            span=span,
        ), self._source)

    # grammar

    def program(self) -> Program:
        rules: List[Rule] = []
        while self._peek().kind != "eof":
            rules.append(self._statement())
            if self._peek().kind == "eof":
                break
            self._expect(".")
        return Program(rules=tuple(rules))

    def query(self) -> Query:
        if self._at("?-"):
            self._advance()
        goals = [self._atom()]
        while self._at(","):
            self._advance()
            if self._peek().kind != "ident":
                break
            goals.append(self._atom())
        if self._at("."):
            self._advance()
        if self._peek().kind != "eof":
            self._unexpected("',' or end of query")
        return Query(goals=tuple(goals))

    def _statement(self) -> Rule:
        head = self._atom()
        if self._at(":-"):
            self._advance()
            body: List[Atom] = []
            while self._peek().kind == "ident":
                body.append(self._atom())
                if not self._at(","):
                    break
                self._advance()
            return Rule(head=head, body=tuple(body))
        for t in head.terms:
            if isinstance(t, Variable):
                self._misplaced_variable(t.name, t.span, "a constant")
        return Rule(head=head)

    def _atom(self) -> Atom:
        tok = self._peek()
        if tok.kind != "ident":
            self._unexpected("a relation name")
        self._advance()
        name_span = self._span(tok.start, tok.end)
        if not looks_like_constant(tok.text):
            self._misplaced_variable(tok.text, name_span, "a relation")
        self._expect("(")
        terms: List[Term] = []
        while self._peek().kind == "ident":
            terms.append(self._term())
            if not self._at(","):
                break
            self._advance()
        close = self._expect(")")
        return Atom(tok.text, tuple(terms), span=name_span.merge(self._span(close.start, close.end)))

    def _term(self) -> Term:
        tok = self._advance()
        span = self._span(tok.start, tok.end)
        if looks_like_constant(tok.text):
            return Constant(tok.text, span=span)
        return Variable(tok.text, span=span)


def parse_program(source: str, blocked: BlockList = OFF, file: Optional[str] = None) -> Program:
    return _Parser(source, blocked, file).program()


def parse_query(source: str, blocked: BlockList = OFF, file: Optional[str] = None) -> Query:
    return _Parser(source, blocked, file).query()


def parse_line(source: str, blocked: BlockList = OFF, file: Optional[str] = None) -> Union[Program, Query]:
    """Parse one interactive line: a program if it reads as one, else a query.

    A leading ``?-`` always makes the line a query. When neither reading
    works, the error that got further into the line is raised.
    """
    if source.lstrip().startswith("?-"):
        return parse_query(source, blocked, file)
    try:
        return parse_program(source, blocked, file)
    except ParseError as program_error:
        try:
            return parse_query(source, blocked, file)
        except ParseError as query_error:
            if _reach(query_error) > _reach(program_error):
                raise query_error from None
            raise program_error from None


def _reach(error: ParseError) -> int:
    span = error.diagnostic.span
    return -1 if span is None else span.start
