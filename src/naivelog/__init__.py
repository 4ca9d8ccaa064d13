"""naivelog: a small Datalog engine with naive bottom-up evaluation."""

from .nodes import (
    Program,
    Rule,
    Query,
    Atom,
    Term,
    Variable,
    Constant,
    atom,
    rule,
    fact,
    query,
    program,
)
from .diagnostics import Diagnostic, Severity
from .validation import ProgramError, validate
from .store import FactStore
from .unify import UnboundVariableError, match_atom, substitute
from .execution import Fixpoint, State, evaluate, solve
from .answers import Answer, find_answers
from .parser import BlockList, ParseError, parse_line, parse_program, parse_query
from .printer import print_answers, print_model, print_program
from .visitors import Visitor

__all__ = [
    "Program",
    "Rule",
    "Query",
    "Atom",
    "Term",
    "Variable",
    "Constant",
    "atom",
    "rule",
    "fact",
    "query",
    "program",
    "Diagnostic",
    "Severity",
    "ProgramError",
    "validate",
    "FactStore",
    "UnboundVariableError",
    "match_atom",
    "substitute",
    "Fixpoint",
    "State",
    "evaluate",
    "solve",
    "Answer",
    "find_answers",
    "BlockList",
    "ParseError",
    "parse_line",
    "parse_program",
    "parse_query",
    "print_answers",
    "print_model",
    "print_program",
    "Visitor",
]
