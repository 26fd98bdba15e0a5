import pytest

from lrzero import (
    END,
    Grammar,
    GrammarError,
    MissingStartSymbol,
    Production,
    UnknownNonterminal,
    augment,
    is_nonterminal,
    is_terminal,
)


def expression_grammar() -> Grammar:
    g = Grammar()
    g.insert_production("E", "E+T")
    g.insert_production("E", "T")
    g.insert_production("T", "id")
    g.set_start("E")
    return g


def test_symbol_classes():
    assert is_nonterminal("E")
    assert is_nonterminal("Expr")
    assert is_nonterminal("E'")
    assert is_terminal("e")
    assert is_terminal("+")
    assert is_terminal("(")
    assert is_terminal(END)


def test_symbol_sets_keep_insertion_order():
    g = expression_grammar()
    assert g.nonterminals() == ("E", "T")
    assert g.terminals() == ("+", "i", "d", END)


def test_end_marker_always_a_terminal():
    g = Grammar()
    g.insert_production("S", [])
    assert g.terminals() == (END,)


def test_production_numbering_groups_by_nonterminal():
    g = Grammar()
    g.insert_production("E", "T")
    g.insert_production("T", "x")
    g.insert_production("E", "E+T")
    g.set_start("E")
    g.freeze()

    assert g.productions() == [
        Production(0, "E", ("T",)),
        Production(1, "E", ("E", "+", "T")),
        Production(2, "T", ("x",)),
    ]
    assert g.production(2).name == "T"


def test_epsilon_marker():
    g = Grammar()
    g.insert_production("A", "@")
    g.insert_production("A", [])
    g.insert_production("A", ["@"])
    assert all(p.is_epsilon for p in g.productions())
    assert g.terminals() == (END,)


def test_multi_character_symbols():
    g = Grammar()
    g.insert_production("Expr", ["Expr", "plus", "Term"])
    g.insert_production("Expr", ["Term"])
    g.insert_production("Term", ["id"])
    assert g.nonterminals() == ("Expr", "Term")
    assert g.terminals() == ("plus", "id", END)


def test_find():
    g = expression_grammar()
    assert [p.symbols for p in g.find("E")] == [("E", "+", "T"), ("T",)]
    with pytest.raises(UnknownNonterminal):
        g.find("X")
    with pytest.raises(UnknownNonterminal):
        g.find("x")


@pytest.mark.parametrize(
    "name,rhs",
    [
        ("e", "x"),
        ("", "x"),
        ("+", "x"),
        ("E", "x$"),
        ("E", ["x", "@"]),
        ("E", ["x", ""]),
    ],
)
def test_bad_productions(name, rhs):
    g = Grammar()
    with pytest.raises(GrammarError):
        g.insert_production(name, rhs)


def test_set_start_needs_productions():
    g = Grammar()
    g.insert_production("E", "x")
    with pytest.raises(UnknownNonterminal):
        g.set_start("T")
    assert g.start is None


def test_missing_start_symbol():
    g = Grammar()
    g.insert_production("E", "x")
    with pytest.raises(MissingStartSymbol):
        g.freeze()
    with pytest.raises(MissingStartSymbol):
        augment(g)


def test_undefined_nonterminal_caught_before_building():
    g = Grammar()
    g.insert_production("E", "E+T")
    g.set_start("E")
    with pytest.raises(UnknownNonterminal) as info:
        augment(g)
    assert info.value.symbol == "T"


def test_frozen_grammar_is_immutable():
    g = expression_grammar().freeze()
    assert g.frozen
    with pytest.raises(GrammarError):
        g.insert_production("E", "x")
    with pytest.raises(GrammarError):
        g.set_start("T")


def test_augment():
    g = expression_grammar()
    a = augment(g)

    assert a is not g
    assert a.frozen and g.frozen
    assert a.augmented_start == "E'"
    assert a.start == "E"
    assert a.nonterminals() == ("E", "T", "E'")
    assert a.terminals() == g.terminals()

    # Existing productions keep their numbers.
    assert a.productions()[: len(g.productions())] == g.productions()
    assert a.productions()[-1] == Production(3, "E'", ("E",))


def test_augment_picks_an_unused_name():
    g = Grammar()
    g.insert_production("E", ["E'", "x"])
    g.insert_production("E'", "y")
    g.set_start("E")

    a = augment(g)
    assert a.augmented_start == "E''"
    assert a.find("E''")[0].symbols == ("E",)


def test_format():
    text = expression_grammar().format()
    assert "E ->" in text
    assert "  | (0) E+T" in text
    assert "  | (2) id" in text
    assert "Terminals: +, i, d, $" in text
    assert "'E' is the starting symbol." in text
