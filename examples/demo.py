from naivelog import program, fact, rule, atom, query, Constant, Variable, print_program
from naivelog import Fixpoint, find_answers, print_answers, print_model


def main():
    # Define a program with facts and recursive rules
    prog = program(
        fact(atom("edge", Constant("a"), Constant("b"))),
        fact(atom("edge", Constant("b"), Constant("c"))),
        rule(
            atom("path", Variable("X"), Variable("Y")),
            atom("edge", Variable("X"), Variable("Y")),
        ),
        rule(
            atom("path", Variable("X"), Variable("Z")),
            atom("edge", Variable("X"), Variable("Y")),
            atom("path", Variable("Y"), Variable("Z")),
        ),
    )

    print("--- Datalog Program ---")
    print(print_program(prog))

    fp = Fixpoint(prog)
    model = fp.run()
    print(f"\n--- Minimal model ({fp.rounds} rounds) ---")
    print(print_model(model))

    print("\n--- Query Results: path(a, Y) ---")
    print(print_answers(find_answers(query(atom("path", Constant("a"), Variable("Y"))), model)))


if __name__ == "__main__":
    main()
