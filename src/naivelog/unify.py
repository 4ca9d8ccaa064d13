from __future__ import annotations

from typing import Dict, Mapping, Optional

from .nodes import Atom, Constant, Variable

Substitution = Dict[Variable, Constant]


class UnboundVariableError(RuntimeError):
    """A pattern was instantiated while one of its variables had no binding."""


def match_atom(pattern: Atom, candidate: Atom, subst: Mapping[Variable, Constant]) -> Optional[Substitution]:
    """Extend `subst` so that `pattern` equals the ground `candidate`.

    Returns a new substitution, or None when the two cannot match. `subst`
    itself is never modified.
    """
    if not candidate.is_ground:
        raise ValueError(f"candidate atom {candidate} is not ground")
    if pattern.relation != candidate.relation or pattern.arity != candidate.arity:
        return None
    result: Substitution = dict(subst)
    for p, c in zip(pattern.terms, candidate.terms):
        match p:
            case Variable():
                bound = result.get(p)
                if bound is None:
                    result[p] = c
                elif bound != c:
                    return None
            case Constant():
                if p != c:
                    return None
    return result


def substitute(pattern: Atom, subst: Mapping[Variable, Constant]) -> Atom:
    terms = []
    for t in pattern.terms:
        match t:
            case Variable():
                if t not in subst:
                    raise UnboundVariableError(f"variable '{t.name}' of {pattern.relation}/{pattern.arity} is unbound")
                terms.append(subst[t])
            case Constant():
                terms.append(t)
    return Atom(pattern.relation, tuple(terms))
