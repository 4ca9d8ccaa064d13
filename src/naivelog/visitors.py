from __future__ import annotations

from typing import Callable, Optional

from .nodes import Node, Program, Query, Rule, Atom, Term


class Visitor:
    """Composition-based visitor using structural pattern matching.

    - Calls `node_cb` for Program/Rule/Query/Atom (pre-order)
    - Optionally calls `term_cb` for every term of every Atom, together with
      the atom holding it
    """

    def __init__(
        self,
        node_cb: Callable[[Node], None],
        term_cb: Optional[Callable[[Term, Atom], None]] = None,
    ) -> None:
        self._node_cb = node_cb
        self._term_cb = term_cb

    def visit(self, node: Node) -> None:
        self._node_cb(node)
        match node:
            case Program(rules=rules):
                for r in rules:
                    self.visit(r)
            case Rule(head=head, body=body):
                self.visit(head)
                for a in body:
                    self.visit(a)
            case Query(goals=goals):
                for a in goals:
                    self.visit(a)
            case Atom(terms=terms):
                if self._term_cb is not None:
                    for t in terms:
                        self._term_cb(t, node)
