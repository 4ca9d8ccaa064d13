import sqlite3

import pytest

from naivelog import (
    Atom, Constant, FactStore, Fixpoint, Program, ProgramError, Rule, State, UnboundVariableError, Variable,
    evaluate, parse_program, solve,
)


def C(*values):
    return tuple(Constant(v) for v in values)


def facts(store, relation, arity):
    return {tuple(t.value for t in a.terms) for a in store.relation(relation, arity)}


X, Y, Z, W, P = (Variable(n) for n in "XYZWP")


def test_evaluate_projects_body_matches_onto_head():
    store = FactStore()
    store.union_all([Atom("q", C("a", "b")), Atom("q", C("c", "d"))])
    rule = Rule(Atom("p", (Y, X)), (Atom("q", (X, Y)),))
    assert evaluate(rule, store) == {Atom("p", C("b", "a")), Atom("p", C("d", "c"))}


def test_head_constant_projection():
    store = FactStore()
    store.union_all([Atom("k2", C("tag", "a")), Atom("k2", C("tag", "b")), Atom("k2", C("zz", "c"))])
    tag = Rule(Atom("s", (Constant("tag"), X)), (Atom("k2", (Constant("tag"), X)),))
    tag2 = Rule(Atom("s", (Constant("tag2"), X)), (Atom("k2", (Constant("zz"), X)),))
    assert evaluate(tag, store) == {Atom("s", C("tag", "a")), Atom("s", C("tag", "b"))}
    assert evaluate(tag2, store) == {Atom("s", C("tag2", "c"))}


def test_empty_body_yields_head():
    assert evaluate(Rule(Atom("start", C("now"))), FactStore()) == {Atom("start", C("now"))}


def test_missing_body_relation_yields_nothing():
    store = FactStore()
    store.insert(Atom("a", C("x")))
    rule = Rule(Atom("r", (X,)), (Atom("a", (X,)), Atom("missing", (X,))))
    assert evaluate(rule, store) == frozenset()


def test_unbound_head_variable_fails_loudly():
    store = FactStore()
    store.insert(Atom("q", C("a")))
    with pytest.raises(UnboundVariableError):
        evaluate(Rule(Atom("p", (X, Y)), (Atom("q", (X,)),)), store)


def test_solve_joins_goals_in_order():
    store = FactStore()
    store.union_all([Atom("a", C("a", "b")), Atom("a", C("a", "x"))])
    store.union_all([Atom("b", C("b", "c")), Atom("b", C("x", "y"))])
    store.union_all([Atom("c", C("c", "d")), Atom("c", C("y", "z"))])
    substs = solve((Atom("a", (X, Y)), Atom("b", (Y, Z)), Atom("c", (Z, W))), store)
    assert {(s[X].value, s[Z].value, s[W].value) for s in substs} == {("a", "c", "d"), ("a", "y", "z")}


def test_solve_keeps_reflexive_pairs():
    store = FactStore()
    store.union_all([Atom("parent", C("p", "x")), Atom("parent", C("p", "y"))])
    substs = solve((Atom("parent", (P, X)), Atom("parent", (P, Y))), store)
    assert sorted((s[X].value, s[Y].value) for s in substs) == [("x", "x"), ("x", "y"), ("y", "x"), ("y", "y")]


def test_parent_from_mother_and_father():
    prog = parse_program("""
        mother(a, b). father(c, b).
        parent(X, Y) :- mother(X, Y).
        parent(X, Y) :- father(X, Y).
    """)
    store = Fixpoint(prog).run()
    assert store.relation("parent", 2) == (Atom("parent", C("a", "b")), Atom("parent", C("c", "b")))


def test_symmetric_rule_closes_after_two_facts():
    fp = Fixpoint(parse_program("alias(v, a). alias(X, Y) :- alias(Y, X)."))
    store = fp.run()
    assert store.relation("alias", 2) == (Atom("alias", C("a", "v")), Atom("alias", C("v", "a")))
    assert fp.state is State.CONVERGED
    assert fp.rounds == 2


def test_sibling_join_includes_self_pairs():
    store = Fixpoint(parse_program("""
        parent(p, x). parent(p, y).
        sibling(X, Y) :- parent(P, X), parent(P, Y).
    """)).run()
    assert facts(store, "sibling", 2) == {("x", "y"), ("y", "x"), ("x", "x"), ("y", "y")}


def test_recursive_path():
    fp = Fixpoint(parse_program("""
        edge(a, b). edge(b, c). edge(c, d).
        path(X, Y) :- edge(X, Y).
        path(X, Z) :- edge(X, Y), path(Y, Z).
    """))
    store = fp.run()
    assert facts(store, "path", 2) == {("a", "b"), ("b", "c"), ("c", "d"), ("a", "c"), ("b", "d"), ("a", "d")}
    # one round per path length, plus the round that finds nothing new
    assert fp.rounds == 4


def test_mutual_recursion_even_odd():
    succ = " ".join(f"succ(n{i}, n{i + 1})." for i in range(6))
    store = Fixpoint(parse_program(succ + """
        even(n0).
        odd(Y) :- succ(X, Y), even(X).
        even(Y) :- succ(X, Y), odd(X).
    """)).run()
    assert facts(store, "even", 1) == {("n0",), ("n2",), ("n4",), ("n6",)}
    assert facts(store, "odd", 1) == {("n1",), ("n3",), ("n5",)}


def test_long_body_chain():
    store = Fixpoint(parse_program("""
        a(n1, n2). b(n2, n3). c(n3, n4). d(n4, n5). e(n5, n6).
        r(A, B, C, D, E) :- a(A, B), b(B, C), c(C, D), d(D, E).
    """)).run()
    assert facts(store, "r", 5) == {("n1", "n2", "n3", "n4", "n5")}


def test_facts_derived_in_a_round_are_seen_next_round():
    fp = Fixpoint(parse_program("""
        b(X) :- a(X).
        a(X) :- base(X).
        base(k).
    """))
    assert fp.step() == 1
    assert facts(fp.store, "a", 1) == {("k",)}
    assert facts(fp.store, "b", 1) == set()
    assert fp.step() == 1
    assert facts(fp.store, "b", 1) == {("k",)}
    assert fp.step() == 0
    assert fp.state is State.CONVERGED


def test_store_only_grows_round_over_round():
    fp = Fixpoint(parse_program("""
        edge(a, b). edge(b, c). edge(c, a). edge(c, d).
        reach(X, Y) :- edge(X, Y).
        reach(X, Z) :- reach(X, Y), edge(Y, Z).
    """))
    previous = set(fp.store)
    while fp.state is State.RUNNING:
        fp.step()
        current = set(fp.store)
        assert previous <= current
        previous = current


def test_runs_are_deterministic():
    source = """
        edge(c, a). edge(a, b). edge(b, c).
        path(X, Y) :- edge(X, Y).
        path(X, Z) :- path(X, Y), path(Y, Z).
    """
    first = list(Fixpoint(parse_program(source)).run())
    second = list(Fixpoint(parse_program(source)).run())
    assert first == second
    assert first == sorted(first)


def test_rerun_on_converged_store_inserts_nothing():
    prog = parse_program("""
        edge(a, b). edge(b, c).
        path(X, Y) :- edge(X, Y).
        path(X, Z) :- edge(X, Y), path(Y, Z).
    """)
    store = Fixpoint(prog).run()
    size = len(store)
    again = Fixpoint(prog, store=store)
    assert again.step() == 0
    assert again.state is State.CONVERGED
    assert len(store) == size


def test_converged_driver_does_no_more_work():
    fp = Fixpoint(parse_program("p(a). q(X) :- p(X)."))
    fp.run()
    rounds = fp.rounds
    assert fp.step() == 0
    assert fp.rounds == rounds


def test_empty_program_converges_in_one_round():
    fp = Fixpoint()
    assert len(fp.run()) == 0
    assert fp.rounds == 1


def test_result_contains_only_justified_facts():
    store = Fixpoint(parse_program("""
        p(a). p(b). q(c).
        r(X) :- p(X).
    """)).run()
    assert list(store) == [
        Atom("p", C("a")), Atom("p", C("b")),
        Atom("q", C("c")),
        Atom("r", C("a")), Atom("r", C("b")),
    ]


def test_load_adds_facts_and_resumes():
    fp = Fixpoint(parse_program("q(X) :- p(X)."))
    fp.run()
    assert facts(fp.store, "q", 1) == set()
    fp.load(parse_program("p(a)."))
    assert fp.state is State.RUNNING
    fp.run()
    assert facts(fp.store, "q", 1) == {("a",)}


def test_load_rejects_arity_conflicts_with_loaded_rules():
    fp = Fixpoint(parse_program("q(X) :- p(X)."))
    with pytest.raises(ProgramError):
        fp.load(parse_program("p(a, b)."))
    assert len(fp.rules) == 1
    assert len(fp.store) == 0


def test_program_facts_seed_the_store():
    prog = Program(rules=(Rule(Atom("edge", C("a", "b"))),))
    fp = Fixpoint(prog)
    assert Atom("edge", C("a", "b")) in fp.store
    assert fp.rules == ()


def test_failed_load_leaves_engine_unchanged():
    conn = sqlite3.connect(":memory:")
    FactStore(conn).insert(Atom("p", C("a", "b")))
    fp = Fixpoint(store=FactStore(conn))
    with pytest.raises(ValueError):
        fp.load(parse_program("q(a). p(a). r(X) :- q(X)."))
    assert fp.rules == ()
    assert list(fp.store) == [Atom("p", C("a", "b"))]
    fp.load(parse_program("q(a). r(X) :- q(X)."))
    assert facts(fp.run(), "r", 1) == {("a",)}
