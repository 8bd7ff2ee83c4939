from ll1repl.lexer import DiagnosticEngine, Lexer, Severity, terminals_from_words


def lex(text):
	diagnostics = DiagnosticEngine()
	return Lexer(text, diagnostics).tokenize(), diagnostics


def test_lexer_simple_expression():
	tokens, diagnostics = lex("1 + 2")
	assert [t.terminal for t in tokens] == ["num", "+", "num", "$"]
	assert [t.value for t in tokens] == [1, None, 2, None]
	assert not diagnostics.items


def test_lexer_float_forms():
	tokens, _ = lex("3.14 .5 2.")
	assert [t.value for t in tokens[:-1]] == [3.14, 0.5, 2.0]
	assert all(isinstance(t.value, float) for t in tokens[:-1])


def test_lexer_identifiers_and_brackets():
	tokens, _ = lex("Sqrt[x_1, y]")
	assert [t.terminal for t in tokens] == ["id", "[", "id", ",", "id", "]", "$"]
	assert tokens[2].lexeme == "x_1"


def test_lexer_tracks_positions():
	tokens, _ = lex("1 +\n  x")
	x = tokens[2]
	assert x.span.start.line == 2
	assert x.span.start.column == 3
	assert x.span.start.index == 6


def test_lexer_reports_unknown_character():
	tokens, diagnostics = lex("1 # 2")
	assert [t.terminal for t in tokens] == ["num", "?", "num", "$"]
	assert diagnostics.has_errors
	[d] = diagnostics.items
	assert d.severity is Severity.ERROR
	assert d.message == "Unexpected character '#'"


def test_lexer_is_lazy():
	diagnostics = DiagnosticEngine()
	stream = Lexer("1 # 2", diagnostics).tokens()
	assert next(stream).terminal == "num"
	assert not diagnostics.items


def test_terminals_from_words_appends_eof():
	tokens = list(terminals_from_words(["num", "+", "num"]))
	assert [t.terminal for t in tokens] == ["num", "+", "num", "$"]
	assert tokens[1].span.start.column == 5


def test_lexer_rejects_non_ascii_digits_and_letters():
	tokens, diagnostics = lex("2² + é")
	assert [t.terminal for t in tokens] == ["num", "?", "+", "?", "$"]
	assert tokens[0].value == 2
	assert [d.message for d in diagnostics.items] == ["Unexpected character '²'", "Unexpected character 'é'"]


def test_lexer_number_edge_forms():
	tokens, diagnostics = lex("1.2.3 007")
	assert [t.lexeme for t in tokens[:-1]] == ["1.2", ".3", "007"]
	assert tokens[2].value == 7
	assert not diagnostics.items
