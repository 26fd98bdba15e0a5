"""ACTION and GOTO tables for LR0 parsing.

The table is derived from the automaton in one pass over the states. LR0
doesn't look at anything before it decides to reduce, so a state with a
completed item reduces on *every* terminal. When that collides with something
else in the same cell, the grammar isn't LR0. We don't throw in that case:
we write down the conflict, let the later action win, and carry on, so the
caller always gets a table and gets to decide what to do about it.
"""

import dataclasses
import enum
import logging
import typing

from .automaton import Automaton, AutomatonBuilder, Item
from .grammar import END, Grammar, Production, is_nonterminal


build_log = logging.getLogger("lrzero.build")


@dataclasses.dataclass(frozen=True)
class Action:
    pass


@dataclasses.dataclass(frozen=True)
class Shift(Action):
    state: int

    def __str__(self):
        return f"S{self.state}"


@dataclasses.dataclass(frozen=True)
class Reduce(Action):
    production: int
    name: str
    count: int

    def __str__(self):
        return f"R{self.production}"


@dataclasses.dataclass(frozen=True)
class Accept(Action):
    def __str__(self):
        return "ACCEPT"


@dataclasses.dataclass(frozen=True)
class Error(Action):
    def __str__(self):
        return "_"


ParseAction = Shift | Reduce | Accept | Error
GotoEntry = int | Error


class ConflictKind(enum.Enum):
    SHIFT_REDUCE = "shift/reduce"
    REDUCE_REDUCE = "reduce/reduce"


@dataclasses.dataclass(frozen=True)
class Conflict:
    """A cell of the ACTION table that two items wanted.

    `existing` is what was in the cell already, `incoming` is what replaced it.
    (An accept counts as a reduce of the augmented production here.)
    """

    state: int
    terminal: str
    existing: ParseAction
    incoming: ParseAction
    existing_item: Item
    incoming_item: Item

    @property
    def kind(self) -> ConflictKind:
        if isinstance(self.existing, Shift) or isinstance(self.incoming, Shift):
            return ConflictKind.SHIFT_REDUCE
        return ConflictKind.REDUCE_REDUCE

    def format(self, automaton: Automaton | None = None) -> str:
        if automaton is not None:
            path = " ".join(automaton.find_path(self.state))
            where = f"When we have parsed '{path}' (state {self.state})"
        else:
            where = f"In state {self.state}"

        lines = [f"{where} and see '{self.terminal}' we don't know whether to:"]
        for item, action in (
            (self.existing_item, self.existing),
            (self.incoming_item, self.incoming),
        ):
            lines.append(f"  - {_describe(action)} (in the rule `{item.format()}`)")
        return "\n".join(lines)


def _describe(action: ParseAction) -> str:
    match action:
        case Shift(state=state):
            return f"consume the token and go to state {state}"
        case Reduce(name=name, count=count, production=production):
            return f"pop {count} values off the stack and make a {name} (production {production})"
        case Accept():
            return "accept the parse"
        case _:
            raise ValueError(f"{action} can't be part of a conflict")


@dataclasses.dataclass
class ParseTable:
    """The ACTION and GOTO tables.

    Every cell is filled in: `actions[state][terminal]` is always present for
    every terminal of the grammar, and `gotos[state][nonterminal]` for every
    nonterminal, with `Error()` wherever there's nothing to do. Columns are in
    the grammar's order.

    Treat this as read-only once it's built; any number of parsers can share
    it.
    """

    actions: list[dict[str, ParseAction]]
    gotos: list[dict[str, GotoEntry]]
    terminals: typing.Tuple[str, ...]
    nonterminals: typing.Tuple[str, ...]
    productions: list[Production]
    conflicts: list[Conflict]

    @property
    def conflict_free(self) -> bool:
        return len(self.conflicts) == 0

    def action(self, state: int, terminal: str) -> ParseAction:
        return self.actions[state][terminal]

    def goto(self, state: int, nonterminal: str) -> GotoEntry:
        return self.gotos[state][nonterminal]

    def format(self) -> str:
        """Format the table so pretty."""
        width = max(
            [6] + [len(str(a)) + 1 for row in self.actions for a in row.values()]
        )

        def cell(value) -> str:
            return f"{str(value): <{width}}"

        header = "{index: <5}| {terms} | {nts}".format(
            index="",
            terms="".join(cell(t) for t in self.terminals),
            nts="".join(cell(nt) for nt in self.nonterminals),
        )
        lines = [header, "-" * len(header)]
        for index, (actions, gotos) in enumerate(zip(self.actions, self.gotos)):
            lines.append(
                "{index: <5}| {actions} | {gotos}".format(
                    index=f"I{index}",
                    actions="".join(cell(actions[t]) for t in self.terminals),
                    gotos="".join(cell(gotos[nt]) for nt in self.nonterminals),
                )
            )
        return "\n".join(line.rstrip() for line in lines)


class TableBuilder:
    """A helper object to assemble actions into parse tables.

    This is a builder type thing: call `new_row` at the start of each row,
    then `flush` when you're done with the last row.
    """

    terminals: typing.Tuple[str, ...]
    nonterminals: typing.Tuple[str, ...]
    productions: list[Production]

    actions: list[dict[str, ParseAction]]
    gotos: list[dict[str, GotoEntry]]
    conflicts: list[Conflict]

    # The row being filled in. The action row also remembers which item put
    # each action there, for the conflict reports.
    action_row: None | dict[str, typing.Tuple[ParseAction, Item | None]]
    goto_row: None | dict[str, GotoEntry]
    current_state: int

    def __init__(self, grammar: Grammar):
        self.terminals = grammar.terminals()
        self.nonterminals = grammar.nonterminals()
        self.productions = grammar.productions()

        self.actions = []
        self.gotos = []
        self.conflicts = []

        self.action_row = None
        self.goto_row = None
        self.current_state = -1

    @property
    def conflict_free(self) -> bool:
        return len(self.conflicts) == 0

    def flush(self) -> typing.Tuple[ParseTable, list[Conflict]]:
        """Finish building the table and return it, along with the conflicts
        that were found along the way.
        """
        self._flush_row()
        table = ParseTable(
            actions=self.actions,
            gotos=self.gotos,
            terminals=self.terminals,
            nonterminals=self.nonterminals,
            productions=self.productions,
            conflicts=list(self.conflicts),
        )
        return table, table.conflicts

    def new_row(self, state: int):
        """Start a new row for the given state. Call this before doing
        anything else.
        """
        self._flush_row()
        assert state == len(self.actions), "Rows have to be built in state order"
        self.current_state = state
        self.action_row = {terminal: (Error(), None) for terminal in self.terminals}
        self.goto_row = {nonterminal: Error() for nonterminal in self.nonterminals}

    def _flush_row(self):
        if self.action_row is not None:
            self.actions.append({t: entry[0] for t, entry in self.action_row.items()})
            self.action_row = None

        if self.goto_row is not None:
            self.gotos.append(self.goto_row)
            self.goto_row = None

    def set_table_reduce(self, terminal: str, item: Item):
        """Mark a reduce of the given item's production for the given terminal
        in the current row.
        """
        action = Reduce(production=item.production, name=item.name, count=len(item.symbols))
        self._set_table_action(terminal, action, item)

    def set_table_accept(self, terminal: str, item: Item):
        self._set_table_action(terminal, Accept(), item)

    def set_table_shift(self, terminal: str, state: int, item: Item):
        """Mark a shift in the current row of the given terminal to the given
        state. The item here is just for conflict reporting.
        """
        self._set_table_action(terminal, Shift(state), item)

    def set_table_goto(self, nonterminal: str, state: int):
        """Set the goto for the given nonterminal in the current row."""
        assert self.goto_row is not None
        existing = self.goto_row[nonterminal]
        assert isinstance(existing, Error) or existing == state, "Goto overlap"
        self.goto_row[nonterminal] = state

    def _set_table_action(self, terminal: str, action: ParseAction, item: Item):
        """Set the action for `terminal` in the current row to `action`.

        This is destructive; it changes the table. If there is already a
        different action in the cell we record a conflict, and then overwrite
        it anyway.
        """
        assert self.action_row is not None
        existing, existing_item = self.action_row[terminal]
        if not isinstance(existing, Error) and existing != action:
            assert existing_item is not None
            conflict = Conflict(
                state=self.current_state,
                terminal=terminal,
                existing=existing,
                incoming=action,
                existing_item=existing_item,
                incoming_item=item,
            )
            build_log.warning(
                "%s conflict in state %d on '%s': %s vs %s",
                conflict.kind.value,
                self.current_state,
                terminal,
                existing,
                action,
            )
            self.conflicts.append(conflict)

        self.action_row[terminal] = (action, item)


def gen_table(automaton: Automaton) -> typing.Tuple[ParseTable, list[Conflict]]:
    """Generate the parse table from an automaton.

    For every item in every state:

    - The dot in front of a terminal: shift to the successor on that terminal.
    - The dot in front of a nonterminal: goto the successor on that
      nonterminal.
    - The dot at the end of the augmented start production: accept on the
      end marker.
    - The dot at the end of anything else: reduce, on every terminal.

    Anything else is an error.
    """
    grammar = automaton.grammar
    builder = TableBuilder(grammar)

    for state, items in enumerate(automaton.states):
        builder.new_row(state)
        successors = automaton.successors[state]

        for item in items:
            next = item.next
            if next is None:
                if item.name == grammar.augmented_start:
                    builder.set_table_accept(END, item)
                else:
                    for terminal in builder.terminals:
                        builder.set_table_reduce(terminal, item)

            elif not is_nonterminal(next):
                builder.set_table_shift(next, successors[next], item)

        for symbol, target in successors.items():
            if is_nonterminal(symbol):
                builder.set_table_goto(symbol, target)

    table, conflicts = builder.flush()
    build_log.info(
        "%d rows, %d terminals, %d nonterminals, %d conflicts",
        len(table.actions),
        len(table.terminals),
        len(table.nonterminals),
        len(conflicts),
    )
    return table, conflicts


def build_table(grammar: Grammar) -> typing.Tuple[ParseTable, list[Conflict]]:
    """Build the automaton for an augmented grammar and then its table."""
    return gen_table(AutomatonBuilder(grammar).build())
