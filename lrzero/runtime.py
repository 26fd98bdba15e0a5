"""The shift-reduce driver.

This takes a table and a sequence of terminals and decides whether the input
is in the language. The machine is the textbook one: a stack of
(symbol, state) pairs, a cursor into the input, and one table lookup per
step. There's no backtracking and no error recovery; the first thing that goes
wrong ends the parse.

The parser never raises because of bad input. Everything that can go wrong
comes back as a rejected `ParseResult` with a `ParseError` explaining why,
along with the full list of steps taken, so that whoever called us can print
a trace if they want one.
"""

import dataclasses
import enum
import logging
import typing

from .grammar import END
from .table import Accept, Error, ParseAction, ParseTable, Reduce, Shift


action_log = logging.getLogger("lrzero.action")


class Verdict(enum.Enum):
    RUNNING = "running"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class RejectReason(enum.Enum):
    UNKNOWN_INPUT_SYMBOL = "unknown input symbol"
    NO_APPLICABLE_ACTION = "no applicable action"

    # The table and the stack disagree. This doesn't happen with a table
    # built by `gen_table` from a conflict-free grammar; if you see it, the
    # table is broken.
    INTERNAL_STACK_MISMATCH = "internal stack mismatch"


class StackEntry(typing.NamedTuple):
    symbol: str
    state: int

    def __str__(self):
        return f"<{self.symbol}, {self.state}>"


ParseStack = list[StackEntry]


@dataclasses.dataclass(frozen=True)
class Step:
    """One step of the parse: what the stack looked like, what we were
    looking at, and what we decided to do about it.

    `verdict` is where the machine stood after the step. It's RUNNING for
    every step but the last one of a finished parse.
    """

    stack: typing.Tuple[StackEntry, ...]
    lookahead: str
    action: ParseAction
    verdict: Verdict = Verdict.RUNNING


@dataclasses.dataclass(frozen=True)
class ParseError:
    reason: RejectReason
    message: str
    position: int  # Index of the lookahead symbol in the input


@dataclasses.dataclass
class ParseResult:
    verdict: Verdict
    steps: list[Step]
    error: ParseError | None = None

    @property
    def accepted(self) -> bool:
        return self.verdict == Verdict.ACCEPTED

    @property
    def reason(self) -> RejectReason | None:
        return self.error.reason if self.error is not None else None

    def format(self, table: ParseTable | None = None) -> str:
        """Format the trace, one block per step."""
        lines = []
        for iteration, step in enumerate(self.steps, start=1):
            lines.append(f"ITERATION  : {iteration}")
            lines.append("STACK      : [ " + " ".join(str(e) for e in step.stack) + " ]")
            lines.append(f"CURR. INPUT: {step.lookahead}")
            lines.append(f"ACTION     : {describe_action(step, table)}")
            lines.append("")

        if self.accepted:
            lines.append("String Accepted.")
        else:
            if self.error is not None:
                lines.append(f"Error: {self.error.message}")
            lines.append("String Rejected.")
        return "\n".join(lines)


def describe_action(step: Step, table: ParseTable | None = None) -> str:
    match step.action:
        case Accept():
            return "Accept Input String."
        case Shift(state=state):
            return f"Shift '{step.lookahead}' onto stack and goto state {state}."
        case Reduce(production=index, name=name, count=count):
            if table is not None:
                body = "".join(table.productions[index].symbols) or "@"
                return f"Pop production '{body}' from stack and reduce it to '{name}'."
            return f"Pop {count} symbols from stack and reduce them to '{name}'."
        case Error():
            return "Error State. Rejecting."
        case _:
            typing.assert_never(step.action)


def prepare_input(symbols: typing.Iterable[str]) -> list[str]:
    """Read the input up to the end marker (or the end of the iterable) and
    stick an end marker on the end, so that the input is *sure* to be
    terminated.
    """
    input: list[str] = []
    for symbol in symbols:
        if symbol == END:
            break
        input.append(symbol)
    input.append(END)
    return input


class Parser:
    """Run parses against a table.

    The table is only ever read, so one table can back any number of parsers
    and parses. All the mutable state of a parse lives in `parse`.
    """

    table: ParseTable
    terminals: frozenset[str]

    def __init__(self, table: ParseTable):
        self.table = table
        self.terminals = frozenset(table.terminals)

    def _reduction_limit(self, height: int) -> int:
        # A table with conflicts can send the machine around a cycle of
        # reductions (or grow the stack forever with empty ones) without ever
        # touching the input. A real parse never gets anywhere near this many
        # reductions in a row.
        per_level = len(self.table.productions) + 1
        return (height + len(self.table.actions)) * per_level

    def parse(self, symbols: typing.Iterable[str]) -> ParseResult:
        """Parse a sequence of terminals.

        The input ends at the first end marker or when the iterable runs
        out, whichever comes first. A plain string works too, one symbol per
        character.
        """
        input = prepare_input(symbols)
        input_index = 0

        # The bottom of the stack is the end marker in the start state; it
        # never gets popped.
        stack: ParseStack = [StackEntry(END, 0)]
        steps: list[Step] = []

        reductions = 0
        limit = self._reduction_limit(len(stack))

        def finish(verdict: Verdict):
            steps[-1] = dataclasses.replace(steps[-1], verdict=verdict)

        def reject(reason: RejectReason, message: str) -> ParseResult:
            if reason == RejectReason.INTERNAL_STACK_MISMATCH:
                action_log.error("Rejecting because of a broken table: %s", message)
            finish(Verdict.REJECTED)
            return ParseResult(
                verdict=Verdict.REJECTED,
                steps=steps,
                error=ParseError(reason=reason, message=message, position=input_index),
            )

        al = action_log
        while True:
            current_symbol = input[input_index]
            current_state = stack[-1].state

            if current_symbol not in self.terminals:
                steps.append(Step(tuple(stack), current_symbol, Error()))
                return reject(
                    RejectReason.UNKNOWN_INPUT_SYMBOL,
                    f"input symbol '{current_symbol}' not in grammar.",
                )

            action = self.table.action(current_state, current_symbol)
            steps.append(Step(tuple(stack), current_symbol, action))
            if al.isEnabledFor(logging.INFO):
                al.info(
                    "{stack: <30} {input: <15} {action: <5}".format(
                        stack=" ".join(str(e) for e in stack[-5:]),
                        input=current_symbol,
                        action=str(action),
                    )
                )

            match action:
                case Accept():
                    finish(Verdict.ACCEPTED)
                    return ParseResult(verdict=Verdict.ACCEPTED, steps=steps)

                case Shift(state=target):
                    stack.append(StackEntry(current_symbol, target))
                    input_index += 1
                    reductions = 0
                    limit = self._reduction_limit(len(stack))

                case Reduce(production=index, name=name):
                    production = self.table.productions[index]

                    # Pop the right-hand side, checking it against the stack
                    # as we go. The bottom entry is never part of it.
                    for symbol in reversed(production.symbols):
                        top = stack[-1]
                        if len(stack) == 1 or top.symbol != symbol:
                            return reject(
                                RejectReason.INTERNAL_STACK_MISMATCH,
                                f"symbol mismatch in production {index}"
                                f" ('{top.symbol}' != '{symbol}').",
                            )
                        stack.pop()

                    goto = self.table.goto(stack[-1].state, name)
                    if isinstance(goto, Error):
                        return reject(
                            RejectReason.INTERNAL_STACK_MISMATCH,
                            f"no goto for '{name}' in state {stack[-1].state}.",
                        )
                    stack.append(StackEntry(name, goto))

                    reductions += 1
                    if reductions > limit:
                        return reject(
                            RejectReason.INTERNAL_STACK_MISMATCH,
                            f"{reductions} reductions in a row without consuming any input.",
                        )

                case Error():
                    return reject(
                        RejectReason.NO_APPLICABLE_ACTION,
                        f"no action for '{current_symbol}' in state {current_state}.",
                    )

                case _:
                    typing.assert_never(action)


def parse(table: ParseTable, symbols: typing.Iterable[str]) -> ParseResult:
    """Parse the symbols with the given table."""
    return Parser(table).parse(symbols)
