"""Tokenizer for REPL input. Produces the terminal stream consumed by the LL(1) parser."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, Iterable, Iterator, List, Optional

from ll1repl.grammar import EOF

# ---------------------------------------------------------------------------
# Diagnostic infrastructure


class Severity(Enum):
	INFO = auto()
	WARNING = auto()
	ERROR = auto()


@dataclass(frozen=True)
class Position:
	line: int
	column: int
	index: int


@dataclass(frozen=True)
class Span:
	start: Position
	end: Position


@dataclass
class Diagnostic:
	severity: Severity
	message: str
	span: Optional[Span] = None
	hint: Optional[str] = None


class DiagnosticEngine:
	def __init__(self) -> None:
		self._items: List[Diagnostic] = []

	@property
	def items(self) -> List[Diagnostic]:
		return self._items

	@property
	def has_errors(self) -> bool:
		return any(d.severity is Severity.ERROR for d in self._items)

	def report(self, severity: Severity, message: str, span: Optional[Span] = None, hint: Optional[str] = None) -> None:
		self._items.append(Diagnostic(severity, message, span, hint))

	def extend(self, diagnostics: Iterable[Diagnostic]) -> None:
		self._items.extend(diagnostics)

	def clear(self) -> None:
		self._items.clear()


# ---------------------------------------------------------------------------
# Lexer

NUM = "num"
IDENT = "id"
UNKNOWN = "?"

OPERATORS = frozenset("+-*/^()[],")


@dataclass(frozen=True)
class Token:
	terminal: str
	lexeme: str
	span: Optional[Span] = None
	value: Optional[Any] = None

	def __str__(self) -> str:
		return self.lexeme or self.terminal


# ASCII only: str.isdigit() also accepts characters such as "²" that int() rejects.
def _is_digit(ch: str) -> bool:
	return "0" <= ch <= "9" and len(ch) == 1


def _is_ident_start(ch: str) -> bool:
	return ("a" <= ch <= "z" or "A" <= ch <= "Z" or ch == "_") and len(ch) == 1


class Lexer:
	def __init__(self, source: str, diagnostics: DiagnosticEngine, *, eof: str = EOF) -> None:
		self.source = source
		self.diagnostics = diagnostics
		self.eof = eof
		self.length = len(source)
		self.index = 0
		self.line = 1
		self.column = 1

	def tokens(self) -> Iterator[Token]:
		"""Lazily yield tokens; the stream always ends with exactly one eof token."""
		while not self._is_eof():
			ch = self._peek()
			if ch in " \t\r":
				self._advance()
			elif ch == "\n":
				self._advance()
				self.line += 1
				self.column = 1
			elif _is_ident_start(ch):
				yield self._consume_identifier()
			elif _is_digit(ch) or (ch == "." and _is_digit(self._peek_next())):
				yield self._consume_number()
			else:
				yield self._consume_symbol()
		yield self._make_token(self.eof, "", self._current_position())

	def tokenize(self) -> List[Token]:
		return list(self.tokens())

	def _consume_identifier(self) -> Token:
		start = self._current_position()
		lexeme = self._consume_while(lambda c: _is_ident_start(c) or _is_digit(c))
		return self._make_token(IDENT, lexeme, start, lexeme)

	def _consume_number(self) -> Token:
		start = self._current_position()
		lexeme = self._consume_while(_is_digit)
		if not self._is_eof() and self._peek() == ".":
			lexeme += self._advance()
			lexeme += self._consume_while(_is_digit)
			value: Any = float(lexeme)
		else:
			value = int(lexeme)
		return self._make_token(NUM, lexeme, start, value)

	def _consume_symbol(self) -> Token:
		start = self._current_position()
		ch = self._advance()
		if ch in OPERATORS:
			return self._make_token(ch, ch, start)
		self.diagnostics.report(Severity.ERROR, f"Unexpected character '{ch}'", Span(start, self._current_position()))
		return self._make_token(UNKNOWN, ch, start)

	def _consume_while(self, predicate: Callable[[str], bool]) -> str:
		start_index = self.index
		while not self._is_eof() and predicate(self._peek()):
			self._advance()
		return self.source[start_index : self.index]

	def _current_position(self) -> Position:
		return Position(self.line, self.column, self.index)

	def _make_token(self, terminal: str, lexeme: str, start: Position, value: Optional[Any] = None) -> Token:
		return Token(terminal, lexeme, Span(start, self._current_position()), value)

	def _advance(self) -> str:
		ch = self.source[self.index]
		self.index += 1
		self.column += 1
		return ch

	def _peek(self) -> str:
		return self.source[self.index]

	def _peek_next(self) -> str:
		if self.index + 1 >= self.length:
			return ""
		return self.source[self.index + 1]

	def _is_eof(self) -> bool:
		return self.index >= self.length


def terminals_from_words(words: Iterable[str], *, eof: str = EOF) -> Iterator[Token]:
	"""Turn already-symbolic input such as `num + ( num )` into tokens, appending eof."""
	index = 0
	for word in words:
		if word == eof:
			break
		pos = Position(1, index + 1, index)
		yield Token(word, word, Span(pos, Position(1, index + 1 + len(word), index + len(word))))
		index += len(word) + 1
	pos = Position(1, index + 1, index)
	yield Token(eof, "", Span(pos, pos))
