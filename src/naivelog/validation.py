from __future__ import annotations

from typing import Dict, Iterable, List, Sequence

from .diagnostics import Diagnostic, Related, Severity, format_diagnostic
from .nodes import Atom, Rule, Term, Variable, Constant, looks_like_constant
from .visitors import Visitor


class ProgramError(ValueError):
    """Raised when a program fails validation; holds the error diagnostics."""

    def __init__(self, diagnostics: Sequence[Diagnostic]) -> None:
        self.diagnostics = tuple(diagnostics)
        super().__init__("\n".join(format_diagnostic(d) for d in self.diagnostics))


def validate(rules: Iterable[Rule]) -> List[Diagnostic]:
    rules = tuple(rules)
    diags: List[Diagnostic] = []
    diags.extend(check_names(rules))
    diags.extend(check_arity_consistency(rules))
    diags.extend(check_range_restriction(rules))
    return diags


def check_names(rules: Sequence[Rule]) -> List[Diagnostic]:
    diags: List[Diagnostic] = []

    def check_atom(node) -> None:
        if isinstance(node, Atom) and not node.relation:
            diags.append(Diagnostic(code="E120", message="relation name must be non-empty", span=node.span))

    def check_term(t: Term, _: Atom) -> None:
        match t:
            case Variable():
                if not t.name:
                    diags.append(Diagnostic(code="E100", message="variable name must be non-empty", span=t.span))
                elif looks_like_constant(t.name):
                    diags.append(Diagnostic(code="E101", message=f"variable '{t.name}' is spelled like a constant", span=t.span))
            case Constant():
                # Constants are opaque strings; optionally warn on empty
                if t.value == "":
                    diags.append(Diagnostic(code="W110", message="empty constant string", severity=Severity.WARNING, span=t.span))

    visitor = Visitor(check_atom, term_cb=check_term)
    for r in rules:
        visitor.visit(r)
    return diags


def check_arity_consistency(rules: Sequence[Rule]) -> List[Diagnostic]:
    diags: List[Diagnostic] = []
    first_seen: Dict[str, Atom] = {}
    for r in rules:
        for a in (r.head, *r.body):
            if not a.relation:
                continue
            prev = first_seen.get(a.relation)
            if prev is None:
                first_seen[a.relation] = a
            elif prev.arity != a.arity:
                diags.append(Diagnostic(
                    code="E121",
                    message=f"arity mismatch for relation '{a.relation}': expected {prev.arity}, found {a.arity}",
                    span=a.span,
                ).with_related(Related(f"'{a.relation}' first used with arity {prev.arity} here", prev.span)))
    return diags


def check_range_restriction(rules: Sequence[Rule]) -> List[Diagnostic]:
    """Every head variable must be bound by some body atom."""
    diags: List[Diagnostic] = []
    for r in rules:
        bound = {v for a in r.body for v in a.variables()}
        for v in r.head.variables():
            if v in bound:
                continue
            where = "fact" if r.is_fact else "rule"
            diags.append(Diagnostic(
                code="E130",
                message=f"variable '{v.name}' in the head of {where} '{r.head.relation}' is not bound by its body",
                span=v.span or r.head.span,
            ))
    return diags
