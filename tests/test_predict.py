import pytest

from ll1repl.errors import FollowSetDivergenceError
from ll1repl.grammar import parse_grammar_lines
from ll1repl.predict import (
	calculate_follow_set,
	calculate_follow_set_with_trace,
	epsilon,
	find_left_recursion,
	first,
	follow_pass_limit,
	predict_set,
)

# ---------------------------
# EPSILON
# ---------------------------


def test_epsilon_of_empty_string_is_true(arith):
	assert epsilon([], arith.productions) is True


def test_epsilon_of_any_terminal_is_false(arith):
	for t in arith.terminals:
		assert epsilon([t], arith.productions) is False


def test_epsilon_of_nonterminals(arith, sym):
	rules = arith.productions
	assert epsilon([sym(arith, "E'")], rules) is True
	assert epsilon([sym(arith, "E'"), sym(arith, "E'")], rules) is True
	assert epsilon([sym(arith, "E")], rules) is False
	assert epsilon([sym(arith, "E'"), sym(arith, "+")], rules) is False


def test_epsilon_terminates_on_self_cycle(sym):
	g = parse_grammar_lines(start="A", lines=["A -> A | a"])
	assert epsilon([sym(g, "A")], g.productions) is False

	g = parse_grammar_lines(start="A", lines=["A -> A | ε"])
	assert epsilon([sym(g, "A")], g.productions) is True


def test_epsilon_through_chain(sym):
	g = parse_grammar_lines(start="S", lines=["S -> A B", "A -> B B", "B -> ε | b"])
	assert epsilon([sym(g, "S")], g.productions) is True


# ---------------------------
# FIRST
# ---------------------------


def test_first_basic(arith, sym):
	rules = arith.productions
	assert first([], rules) == set()
	assert first([sym(arith, "num")], rules) == {"num"}
	assert first([sym(arith, "S")], rules) == {"(", "num"}
	assert first([sym(arith, "E'")], rules) == {"+"}
	assert first([sym(arith, "E'"), sym(arith, "T")], rules) == {"+", "(", "num"}


def test_first_skips_nullable_nonterminal_with_nonempty_first(sym):
	g = parse_grammar_lines(start="S", lines=["S -> A c", "A -> B", "B -> x | ε"])
	assert first([sym(g, "A"), sym(g, "c")], g.productions) == {"x", "c"}


def test_first_terminates_on_left_recursion(sym):
	g = parse_grammar_lines(start="E", lines=["E -> E + n | n"])
	assert first([sym(g, "E")], g.productions) == {"n"}


# ---------------------------
# FOLLOW
# ---------------------------


def test_follow_sets(arith):
	follow = calculate_follow_set(arith)
	assert follow == {
		"S": {"$"},
		"E": {"$", ")"},
		"E'": {"$", ")"},
		"T": {"+", "$", ")"},
	}


def test_follow_takes_first_of_nullable_tail_and_follow_of_lhs():
	g = parse_grammar_lines(start="S", lines=["S -> X Y z", "X -> x", "Y -> y | eps"])
	follow = calculate_follow_set(g)
	assert follow["X"] == {"y", "z"}
	assert follow["Y"] == {"z"}


def test_operators_follow_nullable_expression_tails(expression_grammar):
	follow = calculate_follow_set(expression_grammar)
	assert {"+", "-"} <= follow["T"]
	assert {"*", "/", "+"} <= follow["U"]


def test_follow_passes_only_grow_and_are_bounded(expression_grammar):
	follow, passes = calculate_follow_set_with_trace(expression_grammar)
	seen = {nt: set() for nt in follow}
	for changes in passes:
		assert changes
		for nt, added in changes.items():
			assert added
			assert not (set(added) & seen[nt])
			seen[nt].update(added)
	assert seen["S"] | {"$"} == follow["S"]
	assert len(passes) + 1 <= len(expression_grammar.productions) * len(expression_grammar.symbols)


def test_follow_every_nonterminal_has_an_entry(expression_grammar):
	follow = calculate_follow_set(expression_grammar)
	assert set(follow) == {nt.id for nt in expression_grammar.nonterminals}
	assert follow["P'"] == {"*", "/", "+", "-", ")", "]", ",", "$"}


def test_follow_pass_cap_raises(arith):
	with pytest.raises(FollowSetDivergenceError) as e:
		calculate_follow_set(arith, max_passes=1)
	assert e.value.limit == 1
	assert follow_pass_limit(arith) > 1


# ---------------------------
# PREDICT and static checks
# ---------------------------


def test_predict_sets(arith):
	got = {str(p): predict_set(p, arith) for p in arith.productions}
	assert got == {
		"S -> E": {"(", "num"},
		"E -> T E'": {"(", "num"},
		"E' -> + T E'": {"+"},
		"E' -> ε": {"$", ")"},
		"T -> ( E )": {"("},
		"T -> num": {"num"},
	}


def test_predict_set_accepts_precomputed_follow(arith):
	follow = calculate_follow_set(arith)
	eps_rule = [p for p in arith.productions if p.is_epsilon][0]
	assert predict_set(eps_rule, arith, follow) == {"$", ")"}


def test_find_left_recursion():
	direct = parse_grammar_lines(start="A", lines=["A -> A x | y"])
	assert find_left_recursion(direct) == {"A"}

	indirect = parse_grammar_lines(start="A", lines=["A -> B x | y", "B -> A z | w"])
	assert find_left_recursion(indirect) == {"A", "B"}

	hidden = parse_grammar_lines(start="A", lines=["A -> N A x | y", "N -> ε | n"])
	assert find_left_recursion(hidden) == {"A"}


def test_find_left_recursion_clean_grammar(expression_grammar):
	assert find_left_recursion(expression_grammar) == set()
