from __future__ import annotations

from dataclasses import dataclass, field
from functools import total_ordering
from typing import Optional, Tuple, Union

from .spans import Span


@total_ordering
@dataclass(frozen=True, slots=True)
class Variable:
    name: str
    span: Optional[Span] = field(default=None, compare=False, repr=False)

    def __lt__(self, other: object) -> bool:
        match other:
            case Variable():
                return self.name < other.name
            case Constant():
                return False
        return NotImplemented


@total_ordering
@dataclass(frozen=True, slots=True)
class Constant:
    value: str
    span: Optional[Span] = field(default=None, compare=False, repr=False)

    def __lt__(self, other: object) -> bool:
        match other:
            case Constant():
                return self.value < other.value
            case Variable():
                return True
        return NotImplemented


# Term is a union of concrete term node types; constants sort before variables
Term = Union[Variable, Constant]


@dataclass(frozen=True, slots=True, order=True)
class Atom:
    relation: str
    terms: Tuple[Term, ...] = ()
    span: Optional[Span] = field(default=None, compare=False, repr=False)

    @property
    def arity(self) -> int:
        return len(self.terms)

    @property
    def is_ground(self) -> bool:
        return all(isinstance(t, Constant) for t in self.terms)

    def variables(self) -> Tuple[Variable, ...]:
        """Distinct variables in order of first occurrence."""
        seen: dict = {}
        for t in self.terms:
            if isinstance(t, Variable):
                seen.setdefault(t, None)
        return tuple(seen)


@dataclass(frozen=True, slots=True)
class Rule:
    head: Atom
    body: Tuple[Atom, ...] = ()

    @property
    def is_fact(self) -> bool:
        return not self.body


@dataclass(frozen=True, slots=True)
class Query:
    goals: Tuple[Atom, ...] = ()

    def variables(self) -> Tuple[Variable, ...]:
        seen: dict = {}
        for goal in self.goals:
            for v in goal.variables():
                seen.setdefault(v, None)
        return tuple(seen)


@dataclass(frozen=True, slots=True)
class Program:
    """Facts and rules; facts are rules with an empty body.

    Construction validates the rules and raises `ProgramError` listing every
    error found (see `naivelog.validation`).
    """

    rules: Tuple[Rule, ...] = ()

    def __post_init__(self) -> None:
        from .validation import ProgramError, validate
        from .diagnostics import errors

        found = errors(validate(self.rules))
        if found:
            raise ProgramError(found)

    @property
    def facts(self) -> Tuple[Atom, ...]:
        return tuple(r.head for r in self.rules if r.is_fact)

    def extend(self, other: Program) -> Program:
        return Program(rules=self.rules + other.rules)


Node = Union[Program, Rule, Query, Atom]


def looks_like_constant(name: str) -> bool:
    """A name spells a constant if it has a letter and every letter is lowercase."""
    letters = [c for c in name if c.isascii() and c.isalpha()]
    return bool(letters) and all(c.islower() for c in letters)


# Ergonomic factories for strict construction

def atom(relation: str, *terms: Term) -> Atom:
    return Atom(relation=relation, terms=tuple(terms))


def rule(head: Atom, *body: Atom) -> Rule:
    return Rule(head=head, body=tuple(body))


def fact(head: Atom) -> Rule:
    return Rule(head=head, body=())


def query(*goals: Atom) -> Query:
    return Query(goals=tuple(goals))


def program(*rules: Rule) -> Program:
    return Program(rules=tuple(rules))
