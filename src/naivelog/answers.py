"""Answering conjunctive queries against a materialised model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from .execution import solve
from .nodes import Query
from .store import FactStore


@dataclass(frozen=True, slots=True, order=True)
class Answer:
    """One way of binding a query's variables, as sorted (name, value) pairs."""

    bindings: Tuple[Tuple[str, str], ...] = ()

    def __getitem__(self, name: str) -> str:
        for var, value in self.bindings:
            if var == name:
                return value
        raise KeyError(name)

    def as_dict(self) -> dict:
        return dict(self.bindings)

    def __str__(self) -> str:
        return "{" + ", ".join(f"{var} = {value}" for var, value in self.bindings) + "}"


def find_answers(q: Query, store: FactStore) -> List[Answer]:
    """Distinct answers to `q`, sorted.

    A query without variables has the single empty answer when every goal
    holds, and no answer otherwise. The store is read as is; run the
    fixpoint first to query the full model.
    """
    variables = q.variables()
    found = set()
    for s in solve(q.goals, store):
        found.add(Answer(tuple(sorted((v.name, s[v].value) for v in variables))))
    return sorted(found)
