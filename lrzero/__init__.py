"""A small LR0 parser generator.

Give it a grammar, get back the canonical LR0 automaton, the ACTION and GOTO
tables (plus a list of the conflicts, if the grammar isn't LR0), and a
shift-reduce parser that runs on them:

    g = Grammar()
    g.insert_production("E", "E+T")
    g.insert_production("E", "T")
    g.insert_production("T", "id")
    g.set_start("E")

    table, conflicts = build_table(augment(g))
    assert conflicts == []

    result = Parser(table).parse("id+id")
    assert result.accepted

Symbols are strings; ones that start with an uppercase letter are
nonterminals, everything else is a terminal. Passing a plain string where a
sequence of symbols is expected splits it into characters.
"""

from .automaton import (
    Automaton,
    AutomatonBuilder,
    Item,
    ItemSet,
    build_automaton,
    closure,
    goto,
)
from .grammar import (
    END,
    EPSILON,
    Grammar,
    GrammarError,
    MissingStartSymbol,
    Production,
    UnknownNonterminal,
    augment,
    is_nonterminal,
    is_terminal,
)
from .runtime import (
    ParseError,
    ParseResult,
    Parser,
    RejectReason,
    StackEntry,
    Step,
    Verdict,
    parse,
)
from .table import (
    Accept,
    Action,
    Conflict,
    ConflictKind,
    Error,
    ParseAction,
    ParseTable,
    Reduce,
    Shift,
    TableBuilder,
    build_table,
    gen_table,
)
