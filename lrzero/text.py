"""Reading grammars and input strings from text.

The grammar format is line based. Each line is a nonterminal, some space, and
then one alternative for it, where every non-blank character is a symbol:

    E E+T
    E T
    T id
    start E

`@` on its own means epsilon. Blank lines and lines starting with `#` are
ignored, and an optional `start` line picks the starting symbol.
"""

import logging
import os
import typing

from .grammar import EPSILON, Grammar, GrammarError


text_log = logging.getLogger("lrzero.text")


class GrammarSyntaxError(GrammarError):
    line: int

    def __init__(self, line: int, message: str):
        self.line = line
        super().__init__(f"line {line}: {message}")


def tokenize(text: str) -> list[str]:
    """Split an input string into symbols: one per non-blank character, up to
    the end of the first line.
    """
    symbols = []
    for char in text:
        if char == "\n":
            break
        if char.isspace():
            continue
        symbols.append(char)
    return symbols


def parse_rule(text: str) -> typing.Tuple[str, list[str]]:
    """Split one grammar line into its nonterminal and right-hand side."""
    parts = text.strip().split(maxsplit=1)
    if len(parts) != 2:
        raise ValueError(f"expected a nonterminal and a production, got '{text.strip()}'")

    name, body = parts
    rhs = tokenize(body)
    if rhs == [EPSILON]:
        rhs = []
    return name, rhs


def parse_grammar(lines: typing.Iterable[str]) -> typing.Tuple[Grammar, str | None]:
    """Read a grammar, returning it along with the start symbol named in the
    text (if there was one).

    The start symbol isn't set on the grammar; that's up to the caller, who
    might want to override it.
    """
    grammar = Grammar()
    start = None
    for number, line in enumerate(lines, start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue

        try:
            if stripped.split()[0] == "start":
                names = stripped.split()[1:]
                if len(names) != 1:
                    raise ValueError("the start line names exactly one symbol")
                start = names[0]
                continue

            name, rhs = parse_rule(stripped)
            grammar.insert_production(name, rhs)
        except ValueError as e:
            raise GrammarSyntaxError(number, str(e)) from e

        text_log.debug("%s -> %s", name, "".join(rhs) or EPSILON)

    return grammar, start


def read_grammar(path: str | os.PathLike) -> typing.Tuple[Grammar, str | None]:
    with open(path, "r", encoding="utf-8") as f:
        return parse_grammar(f)
