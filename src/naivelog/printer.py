from __future__ import annotations

from typing import Iterable

from .answers import Answer
from .nodes import Program, Query, Rule, Atom, Term, Variable, Constant
from .store import FactStore


def print_program(p: Program) -> str:
    return "\n".join(print_rule(r) for r in p.rules)


def print_rule(r: Rule) -> str:
    head = print_atom(r.head)
    if not r.body:
        return f"{head} :- ."
    body = ", ".join(print_atom(a) for a in r.body)
    return f"{head} :- {body} ."


def print_atom(a: Atom) -> str:
    args = ", ".join(print_term(t) for t in a.terms)
    return f"{a.relation}({args})"


def print_term(t: Term) -> str:
    match t:
        case Variable():
            return t.name
        case Constant():
            return t.value


def print_fact(a: Atom) -> str:
    return f"{print_atom(a)}."


def print_model(store: FactStore) -> str:
    return "\n".join(print_fact(a) for a in store)


def print_query(q: Query) -> str:
    return "?- " + ", ".join(print_atom(a) for a in q.goals) + "."


def print_answers(answers: Iterable[Answer]) -> str:
    lines = [str(a) for a in answers]
    return "\n".join(lines) if lines else "<no answers>"
