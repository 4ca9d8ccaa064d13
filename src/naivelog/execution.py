from __future__ import annotations

import logging
from enum import Enum, auto
from typing import FrozenSet, List, Mapping, Optional, Sequence, Set, Tuple

from .nodes import Atom, Constant, Program, Rule, Variable
from .store import FactStore
from .unify import Substitution, match_atom, substitute

logger = logging.getLogger(__name__)


def solve(
    goals: Sequence[Atom],
    store: FactStore,
    subst: Optional[Mapping[Variable, Constant]] = None,
) -> List[Substitution]:
    """All substitutions under which every goal is a fact of `store`.

    Goals are consumed in order. Each stage tries every fact of the goal's
    relation against every substitution surviving the previous stage; there
    is no index lookup and no goal reordering.
    """
    substs: List[Substitution] = [dict(subst or {})]
    for goal in goals:
        candidates = store.relation(goal.relation, goal.arity)
        extended: List[Substitution] = []
        for s in substs:
            for candidate in candidates:
                m = match_atom(goal, candidate, s)
                if m is not None:
                    extended.append(m)
        substs = extended
        if not substs:
            break
    return substs


def evaluate(rule: Rule, store: FactStore) -> FrozenSet[Atom]:
    """Ground head atoms implied by `rule` over the current facts."""
    return frozenset(substitute(rule.head, s) for s in solve(rule.body, store))


class State(Enum):
    RUNNING = auto()
    CONVERGED = auto()


class Fixpoint:
    """Naive bottom-up evaluation of a program to its minimal model.

    Every round evaluates all rules against the store as it stood at the
    start of the round, then inserts everything derived. A round that
    inserts nothing ends the evaluation.

    Usage::

        fp = Fixpoint(program)
        model = fp.run()
        model.relation("parent", 2)
    """

    _rules: Tuple[Rule, ...]
    _program: Program
    _store: FactStore
    _state: State
    _rounds: int

    def __init__(self, program: Optional[Program] = None, store: Optional[FactStore] = None) -> None:
        self._program = Program()
        self._rules = ()
        self._store = store if store is not None else FactStore()
        self._state = State.RUNNING
        self._rounds = 0
        if program is not None:
            self.load(program)

    @property
    def store(self) -> FactStore:
        return self._store

    @property
    def rules(self) -> Tuple[Rule, ...]:
        return self._rules

    @property
    def state(self) -> State:
        return self._state

    @property
    def rounds(self) -> int:
        return self._rounds

    def load(self, program: Program) -> None:
        """Add facts and rules; rules already loaded are validated with the new ones."""
        combined = self._program.extend(program)
        inserted = self._store.extend(program.facts)
        self._program = combined
        self._rules = tuple(r for r in combined.rules if not r.is_fact)
        logger.debug("loaded %d rules and %d new facts", len(program.rules) - len(program.facts), inserted)
        self._state = State.RUNNING

    def step(self) -> int:
        """Run one round and return the number of newly inserted facts."""
        if self._state is State.CONVERGED:
            return 0
        derived: Set[Atom] = set()
        for rule in self._rules:
            derived |= evaluate(rule, self._store)
        inserted = self._store.extend(sorted(derived))
        self._rounds += 1
        logger.debug("round %d: %d derived, %d new", self._rounds, len(derived), inserted)
        if inserted == 0:
            self._state = State.CONVERGED
            logger.info("converged after %d rounds with %d facts", self._rounds, len(self._store))
        return inserted

    def run(self) -> FactStore:
        while self._state is State.RUNNING:
            self.step()
        return self._store
