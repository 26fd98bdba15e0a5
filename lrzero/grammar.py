"""Grammar storage for the LR0 generator.

A grammar here is deliberately dumb: a bunch of nonterminals, each with an
ordered list of alternatives, and a start symbol. Symbols are just strings,
and whether a symbol is a terminal or a nonterminal is decided by looking at
it: anything that starts with an uppercase letter is a nonterminal, and
everything else is a terminal. So in

    E -> E + T
    E -> T
    T -> i d

`E` and `T` are nonterminals and `+`, `i` and `d` are terminals.

Order matters all over the place. The order in which nonterminals show up on
the left-hand side and the order in which terminals are first seen is the
order of the columns in the parse table, and the order in which productions
are inserted is how they get numbered. Python dictionaries keep insertion
order, and we lean on that.
"""

import dataclasses
import typing


# The end-of-stream marker. This is always a terminal of every grammar.
END = "$"

# Writing this as the only symbol of a right-hand side means "nothing".
EPSILON = "@"


class GrammarError(ValueError):
    """Something is wrong with a grammar."""


class MissingStartSymbol(GrammarError):
    def __init__(self):
        super().__init__("The grammar does not have a starting symbol.")


class UnknownNonterminal(GrammarError):
    """A nonterminal was asked for (or used) but has no productions."""

    symbol: str

    def __init__(self, symbol: str, context: str | None = None):
        self.symbol = symbol
        message = f"Nonterminal '{symbol}' does not exist"
        if context is not None:
            message = f"{message} ({context})"
        super().__init__(message + ".")


def is_nonterminal(symbol: str) -> bool:
    return symbol[:1].isupper()


def is_terminal(symbol: str) -> bool:
    return not is_nonterminal(symbol)


@dataclasses.dataclass(frozen=True)
class Production:
    """One alternative of one nonterminal.

    `index` is the global number of the production: productions are counted
    nonterminal by nonterminal, in the order the nonterminals were first
    defined, and then in the order of their alternatives. That's the number
    that shows up in reduce actions when the table is printed.
    """

    index: int
    name: str
    symbols: typing.Tuple[str, ...]

    @property
    def is_epsilon(self) -> bool:
        return len(self.symbols) == 0

    def format(self) -> str:
        if self.is_epsilon:
            return f"{self.name} -> <epsilon>"
        return f"{self.name} -> {''.join(self.symbols)}"


class Grammar:
    """The grammar model.

    Build it up with `insert_production` and `set_start`, then `freeze` it.
    (`augment` freezes for you.) Once frozen nothing about it can change, which
    is what lets everything downstream cache the things it computes.
    """

    # Alternatives for every nonterminal, keyed by nonterminal in the order
    # they were first given a production. The inner lists are the raw
    # right-hand sides, in insertion order.
    rules: dict[str, list[typing.Tuple[str, ...]]]

    start: str | None

    # When this grammar was produced by `augment`, the fresh nonterminal
    # that was added. Otherwise None.
    augmented_start: str | None

    _terminals: dict[str, None]
    _productions: list[Production] | None
    _frozen: bool

    def __init__(self):
        self.rules = {}
        self.start = None
        self.augmented_start = None
        self._terminals = {}
        self._productions = None
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _check_mutable(self):
        if self._frozen:
            raise GrammarError("The grammar is frozen and can't be changed anymore.")

    def insert_production(self, nonterminal: str, rhs: typing.Iterable[str]):
        """Add an alternative for `nonterminal`.

        `rhs` is the sequence of symbols. (A plain string is treated as a
        sequence of one-character symbols, so "E+T" is three symbols.) An empty
        sequence, or a sequence holding only EPSILON, is an epsilon production.

        Productions don't get their final numbers until the grammar is frozen,
        since adding an alternative to an earlier nonterminal shifts everything
        after it. Look at `productions()` after `freeze()` for those.
        """
        self._check_mutable()

        if not nonterminal or not is_nonterminal(nonterminal):
            raise GrammarError(f"'{nonterminal}' can't have productions, it's not a nonterminal.")

        symbols = tuple(rhs)
        if symbols == (EPSILON,):
            symbols = ()

        for symbol in symbols:
            if not symbol:
                raise GrammarError(f"Empty symbol in a production of '{nonterminal}'.")
            if symbol == END:
                raise GrammarError(f"'{END}' is reserved for the end of the input.")
            if symbol == EPSILON:
                raise GrammarError(
                    f"'{EPSILON}' means epsilon and has to be the whole right-hand side."
                )

        self.rules.setdefault(nonterminal, []).append(symbols)
        for symbol in symbols:
            if is_terminal(symbol):
                self._terminals.setdefault(symbol, None)

    def set_start(self, symbol: str):
        self._check_mutable()
        if symbol not in self.rules:
            raise UnknownNonterminal(symbol, "it can't be the starting symbol")
        self.start = symbol

    def terminals(self) -> typing.Tuple[str, ...]:
        """All the terminals in the grammar, in the order they were first
        seen, with the end marker always on the end.
        """
        return tuple(t for t in self._terminals if t != END) + (END,)

    def nonterminals(self) -> typing.Tuple[str, ...]:
        return tuple(self.rules)

    def find(self, symbol: str) -> list[Production]:
        """Return the productions for the given nonterminal.

        Raises UnknownNonterminal if there aren't any.
        """
        if symbol not in self.rules:
            raise UnknownNonterminal(symbol)
        return [p for p in self.productions() if p.name == symbol]

    def productions(self) -> list[Production]:
        """Every production, in global order."""
        if self._productions is not None:
            return self._productions

        result = []
        for name, alternatives in self.rules.items():
            for symbols in alternatives:
                result.append(Production(index=len(result), name=name, symbols=symbols))

        if self._frozen:
            self._productions = result
        return result

    def production(self, index: int) -> Production:
        return self.productions()[index]

    def freeze(self) -> "Grammar":
        """Check that the grammar is complete and make it immutable.

        The checks are the ones that would otherwise blow up halfway through
        building the automaton: there has to be a start symbol, and every
        nonterminal that gets used has to have productions.
        """
        if self._frozen:
            return self

        if self.start is None:
            raise MissingStartSymbol()

        for name, alternatives in self.rules.items():
            for symbols in alternatives:
                for symbol in symbols:
                    if is_nonterminal(symbol) and symbol not in self.rules:
                        raise UnknownNonterminal(
                            symbol, f"used in a production of '{name}'"
                        )

        self._frozen = True
        return self

    def format(self) -> str:
        """Format the grammar for humans, with production numbers."""
        lines = []
        order = 0
        for name, alternatives in self.rules.items():
            lines.append(f"{name} ->")
            for symbols in alternatives:
                body = "".join(symbols) if symbols else "<epsilon>"
                lines.append(f"  | ({order}) {body}")
                order += 1

        lines.append("")
        lines.append("Nonterminals: " + ", ".join(self.nonterminals()))
        lines.append("Terminals: " + ", ".join(self.terminals()))
        if self.start is not None:
            lines.append(f"'{self.start}' is the starting symbol.")
        return "\n".join(lines)


def augment(grammar: Grammar) -> Grammar:
    """Return a new grammar with a fresh starting production S' -> S.

    Having a single production for the real start means there's exactly one
    completed item that can signal acceptance. The fresh nonterminal is the
    start symbol with primes stuck on the end until it's unused, and it goes
    in last so that none of the existing productions get renumbered.

    The input grammar is frozen as a side effect, and so is the result.
    """
    if grammar.start is None:
        raise MissingStartSymbol()
    grammar.freeze()

    start = grammar.start
    fresh = start + "'"
    while fresh in grammar.rules:
        fresh += "'"

    result = Grammar()
    for name, alternatives in grammar.rules.items():
        for symbols in alternatives:
            result.insert_production(name, symbols)
    result.insert_production(fresh, (start,))
    result.start = start
    result.augmented_start = fresh
    return result.freeze()
