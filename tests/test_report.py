from ll1repl.__main__ import main
from ll1repl.grammar import parse_grammar_lines
from ll1repl.report import fmt_set, format_report


def test_fmt_set_is_sorted():
	assert fmt_set(["num", "(", "$"]) == "{$, (, num}"
	assert fmt_set([]) == "{}"


def test_report_for_ll1_grammar(arith):
	text = format_report(arith)
	assert "=== GRAMMAR (arith, start S, end $) ===" in text
	assert "E' -> eps" in text
	assert "E: {(, num}" in text
	assert "T: {$, ), +}" in text
	assert "M[E', $] = E' -> eps" in text
	assert text.endswith("none, the grammar is LL(1)")
	assert "Left-recursive" not in text


def test_report_lists_conflicts_and_left_recursion():
	g = parse_grammar_lines(start="E", lines=["E -> E + n | n"])
	text = format_report(g)
	assert "!!! Left-recursive nonterminals: {E}" in text
	assert "Conflict at M[E, n]: E -> E + n vs E -> n" in text


def test_cli_tables(capsys):
	assert main(["--tables"]) == 0
	out = capsys.readouterr().out
	assert "=== GRAMMAR (expression, start S, end $) ===" in out
	assert "none, the grammar is LL(1)" in out
