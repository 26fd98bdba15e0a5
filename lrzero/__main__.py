import argparse
import logging
import sys

from . import text
from .automaton import build_automaton
from .grammar import GrammarError, augment
from .runtime import Parser
from .table import gen_table


def heading(title: str) -> str:
    return f"\n{title}\n{'=' * len(title)}"


def main(args: list[str]) -> int:
    parser = argparse.ArgumentParser(
        prog="lrzero",
        description="Build the LR0 parse table for a grammar and run it over some input.",
    )
    parser.add_argument("grammar", help="Path to the grammar file")
    parser.add_argument(
        "input",
        nargs="*",
        help="Strings to parse. The default is to parse each line of standard input.",
    )
    parser.add_argument(
        "--start",
        type=str,
        default=None,
        help="The starting symbol. The default is the one named in the grammar file.",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Only print conflicts and verdicts, not the grammar, item sets, table or trace.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level for the generator and the parser.",
    )

    parsed = parser.parse_args(args[1:])
    logging.basicConfig(level=getattr(logging, parsed.log_level))

    try:
        grammar, start = text.read_grammar(parsed.grammar)
        start = parsed.start or start
        if start is not None:
            grammar.set_start(start)
        augmented = augment(grammar)
    except OSError as e:
        print(f"Error: can't read {parsed.grammar}: {e.strerror}", file=sys.stderr)
        return 2
    except GrammarError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    automaton = build_automaton(augmented)
    table, conflicts = gen_table(automaton)

    if not parsed.quiet:
        print(heading("Input Grammar Contents:"))
        print(grammar.format())
        print(heading("Augmented Grammar:"))
        print(augmented.format())
        print(heading("DFA Items:"))
        print(automaton.format())
        print(heading("Parsing Table:"))
        print(table.format())

    if conflicts:
        print(heading(f"Conflicts ({len(conflicts)}), the grammar is not LR0:"))
        for conflict in conflicts:
            print(conflict.format(automaton))
            print()

    inputs = parsed.input or [line.rstrip("\n") for line in sys.stdin]

    status = 0
    lr = Parser(table)
    for source in inputs:
        result = lr.parse(text.tokenize(source))
        if parsed.quiet:
            print(f"{source}: {result.verdict.value}")
        else:
            print(heading(f"Parsing '{source}':"))
            print(result.format(table))
        if not result.accepted:
            status = 1

    return status


if __name__ == "__main__":
    sys.exit(main(sys.argv))
