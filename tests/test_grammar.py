import pytest

from ll1repl.errors import GrammarDefinitionError
from ll1repl.grammar import (
	EOF,
	Grammar,
	Production,
	Symbol,
	SymbolKind,
	Vocabulary,
	parse_grammar_lines,
)

# ---------------------------
# Symbols
# ---------------------------


def test_symbols_compare_by_id_only():
	a = Symbol("num", SymbolKind.TERMINAL, label="number")
	b = Symbol("num", SymbolKind.TERMINAL)
	assert a == b
	assert hash(a) == hash(b)
	assert len({a, b}) == 1
	assert a.display == "number"
	assert b.display == "num"


def test_vocabulary_interns_symbols():
	vocab = Vocabulary()
	assert vocab.terminal("+") is vocab.terminal("+")
	assert "+" in vocab
	assert vocab.get("missing") is None


def test_vocabulary_rejects_kind_clash():
	vocab = Vocabulary()
	vocab.nonterminal("E")
	with pytest.raises(GrammarDefinitionError) as e:
		vocab.terminal("E")
	assert "both as nonterminal and terminal" in str(e.value)


# ---------------------------
# Productions and grammars
# ---------------------------


def test_production_lhs_must_be_nonterminal():
	with pytest.raises(GrammarDefinitionError):
		Production(Symbol("a", SymbolKind.TERMINAL), ())


def test_epsilon_production_str():
	p = Production(Symbol("A", SymbolKind.NONTERMINAL), ())
	assert p.is_epsilon
	assert str(p) == "A -> ε"


def test_parse_grammar_lines_infers_symbols(arith):
	assert arith.start.id == "S"
	assert arith.eof.id == EOF
	assert {nt.id for nt in arith.nonterminals} == {"S", "E", "E'", "T"}
	assert {t.id for t in arith.terminals} == {"+", "(", ")", "num", "$"}
	assert [str(p) for p in arith.productions_for(arith.start)] == ["S -> E"]
	assert len(arith.productions) == 6


def test_parse_grammar_lines_epsilon_spellings():
	g = parse_grammar_lines(start="A", lines=["A -> a | eps", "# comment", "", "A -> epsilon", "A -> "])
	assert [len(p.rhs) for p in g.productions] == [1, 0, 0, 0]


def test_parse_grammar_lines_missing_arrow():
	with pytest.raises(GrammarDefinitionError) as e:
		parse_grammar_lines(start="S", lines=["S E"])
	assert "missing '->'" in str(e.value)


def test_parse_grammar_lines_unknown_start():
	with pytest.raises(GrammarDefinitionError) as e:
		parse_grammar_lines(start="X", lines=["S -> a"])
	assert "Start symbol 'X'" in str(e.value)


def test_grammar_start_must_have_a_rule():
	s = Symbol("S", SymbolKind.NONTERMINAL)
	a = Symbol("A", SymbolKind.NONTERMINAL)
	eof = Symbol("$", SymbolKind.TERMINAL)
	with pytest.raises(GrammarDefinitionError):
		Grammar(start=s, eof=eof, productions=(Production(a, ()),))


def test_grammar_rejects_same_id_with_two_kinds():
	s = Symbol("S", SymbolKind.NONTERMINAL)
	eof = Symbol("$", SymbolKind.TERMINAL)
	with pytest.raises(GrammarDefinitionError):
		Grammar(start=s, eof=eof, productions=(Production(s, (Symbol("S", SymbolKind.TERMINAL),)),))


def test_default_expression_grammar_shape(expression_grammar):
	ids = {t.id for t in expression_grammar.terminals}
	assert ids == {"+", "-", "*", "/", "^", "(", ")", "[", "]", ",", "num", "id", "$"}
	assert expression_grammar.name == "expression"
