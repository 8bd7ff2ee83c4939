import pytest

from ll1repl.grammar import Grammar, default_expression_grammar, parse_grammar_lines
from ll1repl.table import build_parse_table

ARITH_LINES = [
	"S  -> E",
	"E  -> T E'",
	"E' -> + T E' | ε",
	"T  -> ( E ) | num",
]


@pytest.fixture
def arith() -> Grammar:
	return parse_grammar_lines(start="S", lines=ARITH_LINES, name="arith")


@pytest.fixture
def arith_table(arith):
	return build_parse_table(arith)


@pytest.fixture
def expression_grammar() -> Grammar:
	return default_expression_grammar()


@pytest.fixture
def sym():
	def lookup(grammar: Grammar, id: str):
		for s in grammar.symbols:
			if s.id == id:
				return s
		raise KeyError(id)

	return lookup
