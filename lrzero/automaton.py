"""The LR0 item-set automaton.

This is the canonical collection of LR0 item sets for a grammar, along with the
transitions between them. Everything else (the table, the parser) is derived
from this.
"""

import collections
import logging
import typing

from .grammar import Grammar, GrammarError, Production, is_nonterminal


build_log = logging.getLogger("lrzero.build")


class Item(typing.NamedTuple):
    """A position within a production; an LR0 item.

    These are plain immutable values so they hash and compare by content,
    which is what lets us recognize an item set we've seen before. The field
    order matters: it's what `sorted` uses, so items within a set come out
    ordered by production number and then by position.
    """

    production: int
    position: int
    name: str
    symbols: typing.Tuple[str, ...]

    @classmethod
    def from_production(cls, production: Production) -> "Item":
        return Item(
            production=production.index,
            position=0,
            name=production.name,
            symbols=production.symbols,
        )

    @property
    def at_end(self) -> bool:
        return self.position == len(self.symbols)

    @property
    def next(self) -> str | None:
        """The symbol right after the dot, or None if the dot is at the end."""
        if self.at_end:
            return None
        return self.symbols[self.position]

    def advance(self) -> "Item":
        assert not self.at_end
        return self._replace(position=self.position + 1)

    def rhs(self) -> str:
        """The right-hand side with the dot in it, like `E . + T`."""
        bits = list(self.symbols)
        bits.insert(self.position, ".")
        return " ".join(bits)

    def format(self) -> str:
        return f"{self.name} -> {self.rhs()}"


# A set of items. We use a sorted tuple because it's hashable and immutable and
# we get repeatable results out of it.
ItemSet = typing.Tuple[Item, ...]


class Automaton:
    """All of the item sets for a grammar and the transitions between them.

    State ids are handed out in the order the states are discovered, and state
    0 is always the closure of the augmented start production.
    """

    grammar: Grammar

    states: list[ItemSet]  # Map a state id to its item set
    state_key: dict[ItemSet, int]  # Map an item set back to its id

    # `successors[i]` maps a grammar symbol to the id of the state you get to
    # from state i by recognizing that symbol.
    successors: list[dict[str, int]]

    def __init__(self, grammar: Grammar):
        self.grammar = grammar
        self.states = []
        self.state_key = {}
        self.successors = []

    def __len__(self) -> int:
        return len(self.states)

    def register(self, items: ItemSet) -> typing.Tuple[int, bool]:
        """Potentially add a new state. Returns the id of the state along with
        a boolean indicating whether it was just added or not.
        """
        existing = self.state_key.get(items)
        if existing is not None:
            return existing, False

        index = len(self.states)
        self.states.append(items)
        self.successors.append({})
        self.state_key[items] = index
        return index, True

    def add_successor(self, state: int, symbol: str, successor: int):
        self.successors[state][symbol] = successor

    def state_id(self, items: typing.Iterable[Item]) -> int:
        """Find the id of the state with exactly these items.

        Raises KeyError if there isn't one.
        """
        return self.state_key[tuple(sorted(set(items)))]

    def items(self, state: int) -> list[typing.Tuple[str, str]]:
        """The items of a state as (lhs, rhs-with-dot) pairs."""
        return [(item.name, item.rhs()) for item in self.states[state]]

    def find_path(self, state: int) -> list[str]:
        """Trace the grammar symbols that take the parser from state 0 to the
        given state. This is for conflict reporting: we'll be *at* a state and
        want to show how you get there.

        Raises KeyError if no path is found.
        """
        # Breadth first, remembering how we first got to each state; walking
        # those links back from the target gives a shortest path.
        came_from: dict[int, typing.Tuple[int, str] | None] = {0: None}
        frontier = collections.deque([0])
        while frontier:
            index = frontier.popleft()
            if index == state:
                symbols = []
                link = came_from[index]
                while link is not None:
                    index, symbol = link
                    symbols.append(symbol)
                    link = came_from[index]
                symbols.reverse()
                return symbols

            for symbol, successor in self.successors[index].items():
                if successor not in came_from:
                    came_from[successor] = (index, symbol)
                    frontier.append(successor)

        raise KeyError(f"No path from state 0 to state {state}.")

    def format(self) -> str:
        lines = []
        for index, items in enumerate(self.states):
            lines.append(f"I{index} :-")
            for item in items:
                lines.append(f"    {item.format()}")
            for symbol, successor in self.successors[index].items():
                lines.append(f"    on {symbol} goto I{successor}")
            lines.append("")
        return "\n".join(lines)


class AutomatonBuilder:
    """Build the canonical collection of LR0 item sets for a grammar.

    The grammar has to be augmented (see `grammar.augment`), since the
    starting state is the closure of the augmented start production.
    """

    grammar: Grammar

    # Items with the dot at the front, for each nonterminal. These are what
    # the closure adds when it finds a dot in front of that nonterminal.
    initial_items: dict[str, typing.Tuple[Item, ...]]

    def __init__(self, grammar: Grammar):
        if grammar.augmented_start is None:
            raise GrammarError("The grammar has to be augmented before building the automaton.")

        self.grammar = grammar
        self.initial_items = {
            name: tuple(Item.from_production(p) for p in grammar.find(name))
            for name in grammar.nonterminals()
        }

    def closure_next(self, item: Item) -> typing.Tuple[Item, ...]:
        """Return the items that the closure adds because of `item`.

        If the dot is just before a nonterminal, that's the items for all the
        productions of that nonterminal, dot at the beginning. Otherwise
        (terminal after the dot, or the dot at the end) it's nothing.
        """
        next = item.next
        if next is None or not is_nonterminal(next):
            return ()
        return self.initial_items[next]

    def closure(self, seeds: typing.Iterable[Item]) -> ItemSet:
        """Compute the closure of the given items: every item we could be in,
        given that we're in one of these.

        Each item goes into the result at most once, and only a new item can
        queue more work, so this stops once no new items turn up.
        """
        result: set[Item] = set()
        pending = collections.deque(seeds)
        while pending:
            item = pending.popleft()
            if item not in result:
                result.add(item)
                pending.extend(self.closure_next(item))
        return tuple(sorted(result))

    def goto(self, items: typing.Iterable[Item], symbol: str) -> ItemSet:
        """Compute the state we get to from `items` after seeing `symbol`.

        This is empty if nothing in `items` is waiting on `symbol`.
        """
        seeds = [item.advance() for item in items if item.next == symbol]
        return self.closure(seeds)

    def all_gotos(self, items: ItemSet) -> list[typing.Tuple[str, ItemSet]]:
        """Return all the (symbol, successor) pairs of the given state.

        The symbols come in the order they first show up after a dot in the
        state, which keeps the numbering of new states repeatable.
        """
        symbols = {item.next: None for item in items if item.next is not None}
        return [(symbol, self.goto(items, symbol)) for symbol in symbols]

    def start_items(self) -> ItemSet:
        assert self.grammar.augmented_start is not None
        return self.closure(self.initial_items[self.grammar.augmented_start])

    def build(self) -> Automaton:
        """Generate all of the states, starting from the start state."""
        result = Automaton(self.grammar)
        result.register(self.start_items())

        pending = collections.deque([0])
        while len(pending) > 0:
            state = pending.popleft()
            for symbol, successor in self.all_gotos(result.states[state]):
                target, is_new = result.register(successor)
                result.add_successor(state, symbol, target)
                if is_new:
                    pending.append(target)

        build_log.info(
            "%d states from %d productions",
            len(result.states),
            len(self.grammar.productions()),
        )
        return result


def closure(grammar: Grammar, items: typing.Iterable[Item]) -> ItemSet:
    return AutomatonBuilder(grammar).closure(items)


def goto(grammar: Grammar, items: typing.Iterable[Item], symbol: str) -> ItemSet:
    return AutomatonBuilder(grammar).goto(items, symbol)


def build_automaton(grammar: Grammar) -> Automaton:
    return AutomatonBuilder(grammar).build()
