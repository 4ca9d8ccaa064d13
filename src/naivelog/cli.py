"""
naivelog: command line front end.

Usage:
  naivelog [FILE] [-q QUERY | -r] [--filter LAYOUT] [--format FORMAT]
           [--max-rounds N] [-v]

With FILE only, the program is evaluated and its minimal model printed.
With a query, the model is computed and the answers printed. Without FILE
(or with -r) an interactive loop starts: lines that read as facts or rules
are added, lines that read as queries are answered. Control-D leaves.
"""

from __future__ import annotations

import argparse
import logging
import pathlib
from typing import Callable, List, Optional, Union

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .answers import find_answers
from .diagnostics import format_diagnostic
from .execution import Fixpoint, State
from .nodes import Query
from .parser import FILTERS, BlockList, ParseError, parse_line, parse_program, parse_query
from .printer import print_answers, print_fact, print_term
from .store import FactStore
from .validation import ProgramError


class RoundLimitExceeded(RuntimeError):
    pass


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="naivelog",
        description="Evaluate Datalog programs bottom-up and query their minimal model.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version="naivelog 0.1.0")
    parser.add_argument(
        "filename", nargs="?", metavar="FILE",
        help="program to load as a set of facts and rules",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "-q", "--query",
        help="query to answer; without it (and without FILE) a repl is started",
    )
    mode.add_argument(
        "-r", "--repl", action="store_true",
        help="start the interactive repl after loading FILE",
    )
    parser.add_argument(
        "--filter", choices=sorted(FILTERS), default="off",
        help="drop the left-hand letters of a keyboard layout from identifiers (default: off)",
    )
    parser.add_argument(
        "--format", choices=("text", "table"), default="text",
        help="how to print the model (default: text)",
    )
    parser.add_argument(
        "--max-rounds", type=int, default=None, metavar="N",
        help="give up when the fixpoint is not reached within N rounds",
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0,
        help="log evaluation progress (-vv for every round)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    console = Console(highlight=False, soft_wrap=True)
    err_console = Console(stderr=True, highlight=False, soft_wrap=True)
    blocked = FILTERS[args.filter]
    engine = Fixpoint()

    source: Optional[str] = None
    try:
        if args.filename is not None:
            source = pathlib.Path(args.filename).read_text(encoding="utf-8")
            engine.load(parse_program(source, blocked, file=args.filename))
            if args.query is None:
                console.print(f"...loaded file {args.filename} successfully.", markup=False)

        if args.query is not None:
            source = args.query
            q = parse_query(args.query, blocked, file="--query")
            _run(engine, args.max_rounds)
            _show_answers(console, q, engine.store)
            return 0

        if args.repl or args.filename is None:
            return repl(engine, blocked, console, max_rounds=args.max_rounds)

        _run(engine, args.max_rounds)
        _show_model(console, engine.store, args.format)
        return 0
    except (ParseError, ProgramError, RoundLimitExceeded) as error:
        err_console.print(_render(error, source), markup=False)
        return 1
    except OSError as error:
        err_console.print(f"error: {error}", markup=False)
        return 1


def repl(
    engine: Fixpoint,
    blocked: BlockList,
    console: Console,
    read_line: Callable[[str], str] = input,
    max_rounds: Optional[int] = None,
) -> int:
    line_count = 1
    while True:
        try:
            line = read_line(">> ")
        except KeyboardInterrupt:
            # back to a fresh prompt, like a shell
            console.print()
            continue
        except EOFError:
            console.print("goodbye!")
            return 0

        try:
            _repl_step(line, engine, blocked, console, f"<repl:{line_count}>", max_rounds)
        except (ParseError, ProgramError, RoundLimitExceeded) as error:
            if line.strip() in ("quit", "exit"):
                console.print("hint: use control-d to leave")
            console.print(_render(error, line), markup=False)
        line_count += 1


def _repl_step(
    line: str,
    engine: Fixpoint,
    blocked: BlockList,
    console: Console,
    name: str,
    max_rounds: Optional[int],
) -> None:
    parsed = parse_line(line, blocked, file=name)
    if isinstance(parsed, Query):
        _run(engine, max_rounds)
        _show_answers(console, parsed, engine.store)
    else:
        engine.load(parsed)


def _run(engine: Fixpoint, max_rounds: Optional[int]) -> None:
    rounds = 0
    while engine.state is State.RUNNING:
        if max_rounds is not None and rounds >= max_rounds:
            raise RoundLimitExceeded(f"no fixpoint within {max_rounds} rounds")
        engine.step()
        rounds += 1


def _render(error: Union[ParseError, ProgramError, RoundLimitExceeded], source: Optional[str]) -> str:
    match error:
        case ParseError():
            return error.render()
        case ProgramError():
            return "\n".join(format_diagnostic(d, source) for d in error.diagnostics)
    return f"error: {error}"


def _show_answers(console: Console, q: Query, store: FactStore) -> None:
    console.print(print_answers(find_answers(q, store)), markup=False)


def _show_model(console: Console, store: FactStore, fmt: str) -> None:
    if fmt == "text":
        for a in store:
            console.print(print_fact(a), markup=False)
        return

    table = Table(box=box.SIMPLE_HEAD, header_style="bold white", show_header=True)
    table.add_column("RELATION", style="bold cyan", no_wrap=True)
    table.add_column("ARGUMENTS", no_wrap=False)
    relations = store.snapshot()
    for name, atoms in relations.items():
        for a in atoms:
            table.add_row(name, ", ".join(print_term(t) for t in a.terms))
    console.print(table)
    total = sum(len(atoms) for atoms in relations.values())
    console.print(f"  [dim]{total} facts in {len(relations)} relations[/dim]")


def _configure_logging(verbosity: int) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


if __name__ == "__main__":
    raise SystemExit(main())
