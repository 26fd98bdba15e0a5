from hypothesis import given, settings
from hypothesis import strategies as st

from lrzero import (
    END,
    Accept,
    ConflictKind,
    Error,
    Grammar,
    Reduce,
    Shift,
    augment,
    build_automaton,
    build_table,
    gen_table,
)


def make(rules: list[tuple[str, str]], start: str) -> Grammar:
    g = Grammar()
    for name, rhs in rules:
        g.insert_production(name, rhs)
    g.set_start(start)
    return augment(g)


EXPRESSION = [("E", "E+T"), ("E", "T"), ("T", "id")]


def test_expression_table():
    table, conflicts = build_table(make(EXPRESSION, "E"))

    assert conflicts == []
    assert table.conflict_free
    assert table.terminals == ("+", "i", "d", END)
    assert table.nonterminals == ("E", "T", "E'")

    e = Error()
    r_t = Reduce(production=2, name="T", count=2)
    r_e = Reduce(production=1, name="E", count=1)
    r_plus = Reduce(production=0, name="E", count=3)
    assert table.actions == [
        {"+": e, "i": Shift(3), "d": e, END: e},
        {"+": Shift(4), "i": e, "d": e, END: Accept()},
        {"+": r_e, "i": r_e, "d": r_e, END: r_e},
        {"+": e, "i": e, "d": Shift(5), END: e},
        {"+": e, "i": Shift(3), "d": e, END: e},
        {"+": r_t, "i": r_t, "d": r_t, END: r_t},
        {"+": r_plus, "i": r_plus, "d": r_plus, END: r_plus},
    ]
    assert table.gotos == [
        {"E": 1, "T": 2, "E'": e},
        {"E": e, "T": e, "E'": e},
        {"E": e, "T": e, "E'": e},
        {"E": e, "T": e, "E'": e},
        {"E": e, "T": 6, "E'": e},
        {"E": e, "T": e, "E'": e},
        {"E": e, "T": e, "E'": e},
    ]
    assert table.action(1, END) == Accept()
    assert table.goto(4, "T") == 6


def test_every_cell_is_filled():
    table, _ = build_table(make([("A", "(A)"), ("A", "a")], "A"))
    for actions, gotos in zip(table.actions, table.gotos):
        assert tuple(actions) == table.terminals
        assert tuple(gotos) == table.nonterminals


def test_reduce_reduce_conflict():
    # After `a` we could have either S -> a * or A -> a *.
    g = make([("S", "A"), ("S", "a"), ("A", "a")], "S")
    automaton = build_automaton(g)
    table, conflicts = gen_table(automaton)

    assert not table.conflict_free
    assert table.conflicts == conflicts

    state = automaton.successors[0]["a"]
    assert {c.terminal for c in conflicts} == {"a", END}
    for conflict in conflicts:
        assert conflict.state == state
        assert conflict.kind == ConflictKind.REDUCE_REDUCE
        assert conflict.existing == Reduce(production=1, name="S", count=1)
        assert conflict.incoming == Reduce(production=2, name="A", count=1)

    # The last write wins.
    assert table.action(state, END) == Reduce(production=2, name="A", count=1)


def test_shift_reduce_conflict():
    g = make([("S", "a"), ("S", "ab")], "S")
    automaton = build_automaton(g)
    table, conflicts = gen_table(automaton)

    state = automaton.successors[0]["a"]
    kinds = {(c.terminal, c.kind) for c in conflicts}
    assert kinds == {("b", ConflictKind.SHIFT_REDUCE)}

    # S -> a * comes first, so the shift of S -> a * b overwrites it.
    assert table.action(state, "b") == Shift(automaton.successors[state]["b"])
    assert table.action(state, END) == Reduce(production=0, name="S", count=1)


def test_epsilon_conflicts_with_shift():
    table, conflicts = build_table(make([("S", "aSb"), ("S", "@")], "S"))
    assert any(c.kind == ConflictKind.SHIFT_REDUCE and c.state == 0 for c in conflicts)


def test_accept_against_reduce():
    # After S we're in both S' -> S * and A -> S *.
    g = make([("S", "A"), ("A", "S"), ("A", "a")], "S")
    table, conflicts = build_table(g)
    assert any(c.terminal == END and isinstance(c.incoming, Accept) for c in conflicts)
    assert all(c.kind == ConflictKind.REDUCE_REDUCE for c in conflicts)


def test_conflict_format():
    g = make([("S", "A"), ("S", "a"), ("A", "a")], "S")
    automaton = build_automaton(g)
    _, conflicts = gen_table(automaton)

    text = conflicts[0].format(automaton)
    assert "When we have parsed 'a'" in text
    assert "make a S (production 1)" in text
    assert "make a A (production 2)" in text
    assert "`S -> a .`" in text

    assert conflicts[0].format().startswith("In state")


def test_table_format():
    table, _ = build_table(make(EXPRESSION, "E"))
    lines = table.format().splitlines()

    assert lines[0].split() == ["|", "+", "i", "d", "$", "|", "E", "T", "E'"]
    assert lines[2].split() == ["I0", "|", "_", "S3", "_", "_", "|", "1", "2", "_"]
    assert lines[3].split() == ["I1", "|", "S4", "_", "_", "ACCEPT", "|", "_", "_", "_"]
    assert lines[4].split()[2:6] == ["R1", "R1", "R1", "R1"]
    assert len(lines) == 2 + 7


@st.composite
def grammars(draw) -> Grammar:
    names = ["S", "A", "B"][: draw(st.integers(1, 3))]
    symbols = names + ["a", "b"]

    g = Grammar()
    for name in names:
        for rhs in draw(
            st.lists(st.lists(st.sampled_from(symbols), max_size=3), min_size=1, max_size=3)
        ):
            g.insert_production(name, rhs)
    g.set_start("S")
    return g


@settings(max_examples=50)
@given(grammars())
def test_deterministic(g):
    first = build_table(augment(g))
    second = build_table(augment(g))
    assert first == second
