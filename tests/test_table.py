import pytest

from ll1repl.errors import GrammarConflictError, GrammarDefinitionError
from ll1repl.grammar import parse_grammar_lines
from ll1repl.table import build_parse_table, compute_predict_sets, fill_parse_table


def test_build_table_for_ll1_grammar(arith_table):
	assert str(arith_table.lookup("S", "num")) == "S -> E"
	assert str(arith_table.lookup("E'", "+")) == "E' -> + T E'"
	assert str(arith_table.lookup("E'", ")")) == "E' -> ε"
	assert str(arith_table.lookup("E'", "$")) == "E' -> ε"
	assert arith_table.lookup("T", "+") is None
	assert arith_table.lookup("nope", "+") is None
	assert arith_table.expected("T") == ("(", "num")
	assert len(arith_table) == 9


def test_table_has_at_most_one_rule_per_slot(expression_grammar):
	entries, conflicts = fill_parse_table(expression_grammar)
	assert conflicts == []
	table = build_parse_table(expression_grammar)
	for nt, row in table.rows().items():
		for t, rule in row.items():
			assert rule.lhs.id == nt
			assert table.lookup(nt, t) is rule


def test_rows_are_copies(arith_table):
	rows = arith_table.rows()
	rows["S"].clear()
	assert arith_table.lookup("S", "num") is not None


def test_conflict_is_reported_not_overwritten():
	g = parse_grammar_lines(start="A", lines=["A -> a | a b"])
	with pytest.raises(GrammarConflictError) as e:
		build_parse_table(g)
	assert isinstance(e.value, GrammarDefinitionError)
	[conflict] = e.value.conflicts
	assert conflict.nonterminal == "A"
	assert conflict.lookahead == "a"
	assert str(conflict.existing) == "A -> a"
	assert str(conflict.incoming) == "A -> a b"
	assert "Conflict at M[A, a]: A -> a vs A -> a b" in str(e.value)


def test_left_recursive_grammar_is_not_ll1():
	g = parse_grammar_lines(start="E", lines=["E -> E + n | n"])
	entries, conflicts = fill_parse_table(g)
	assert [(c.nonterminal, c.lookahead) for c in conflicts] == [("E", "n")]


def test_nullable_alternatives_conflict_on_follow():
	g = parse_grammar_lines(start="S", lines=["S -> A a", "A -> a | ε"])
	_, conflicts = fill_parse_table(g)
	assert [(c.nonterminal, c.lookahead) for c in conflicts] == [("A", "a")]


def test_compute_predict_sets_in_rule_order(arith):
	pairs = compute_predict_sets(arith)
	assert [str(rule) for rule, _ in pairs] == [str(p) for p in arith.productions]
	assert pairs[3][1] == {"$", ")"}
