"""
Table-driven LL(1) predictive parser.

The parser is an incremental pushdown automaton: `feed` accepts one token and reports
whether it needs more input, finished a tree, or hit a syntax error. After a finished
tree or an error the automaton resets itself for the next input.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Tuple, Union

from ll1repl.grammar import Symbol
from ll1repl.lexer import Span, Token
from ll1repl.table import ParseTable

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Parse tree


@dataclass
class TerminalNode:
	token: Token

	@property
	def terminal(self) -> str:
		return self.token.terminal


@dataclass
class NonterminalNode:
	symbol: Symbol
	children: List["ParseNode"] = field(default_factory=list)

	def leaves(self) -> Iterator[TerminalNode]:
		for child in self.children:
			if isinstance(child, TerminalNode):
				yield child
			else:
				yield from child.leaves()

	def pretty(self, indent: int = 0) -> str:
		pad = "  " * indent
		lines = [f"{pad}{self.symbol.id}"]
		for child in self.children:
			if isinstance(child, TerminalNode):
				lines.append(f"{pad}  {child.terminal} '{child.token.lexeme}'")
			else:
				lines.append(child.pretty(indent + 1))
		return "\n".join(lines)


ParseNode = Union[TerminalNode, NonterminalNode]


# ---------------------------------------------------------------------------
# Outcomes


@dataclass(frozen=True)
class AwaitingMore:
	pass


@dataclass(frozen=True)
class TreeReady:
	root: NonterminalNode


@dataclass(frozen=True)
class SyntaxIssue:
	expected: Tuple[str, ...]
	actual: str
	position: int
	span: Optional[Span] = None

	@property
	def message(self) -> str:
		quoted = [f"'{e}'" for e in self.expected]
		if not quoted:
			wanted = "nothing"
		elif len(quoted) == 1:
			wanted = quoted[0]
		else:
			wanted = ", ".join(quoted[:-1]) + " or " + quoted[-1]
		return f"expected {wanted}, found '{self.actual}'"

	def __str__(self) -> str:
		if self.span is not None:
			return f"Syntax error at column {self.span.start.column}: {self.message}"
		return f"Syntax error at token {self.position}: {self.message}"


ParseOutcome = Union[AwaitingMore, TreeReady, SyntaxIssue]

AWAITING_MORE = AwaitingMore()


@dataclass(frozen=True)
class ParseStep:
	stack: List[str]
	lookahead: str
	action: str


# ---------------------------------------------------------------------------
# Parser


class LL1PredictiveParser:
	"""
	Stack automaton driven by a ParseTable.

	Stack entries pair a grammar symbol with the tree node that will own it once it is
	expanded or matched. Entries are expanded depth-first, leftmost symbol first, so
	children are appended to their parent in rhs order.

	One instance handles one input at a time; it is not safe to feed it from several
	threads at once.
	"""

	def __init__(self, table: ParseTable, *, trace: bool = False) -> None:
		self.table = table
		self.grammar = table.grammar
		self.trace = trace
		self.steps: List[ParseStep] = []
		self.last_steps: List[ParseStep] = []
		self._stack: List[Tuple[Symbol, Optional[NonterminalNode]]] = []
		self._root: Optional[NonterminalNode] = None
		self._position = 0
		self.reset()

	def reset(self) -> None:
		self._stack = [(self.grammar.eof, None), (self.grammar.start, None)]
		self._root = None
		self._position = 0
		self.steps = []
		self._snapshot("init", "")

	@property
	def in_progress(self) -> bool:
		return self._position > 0

	def feed(self, token: Token) -> ParseOutcome:
		cur = token.terminal
		while True:
			top, parent = self._stack[-1]

			if top.is_terminal:
				if top.id != cur:
					return self._fail((top.id,), token)
				self._stack.pop()
				if top.id == self.grammar.eof.id:
					self._snapshot("accept", cur)
					root = self._root
					self._finish()
					if root is None:
						raise RuntimeError(f"{self.grammar.name}: accepted without expanding the start symbol")
					return TreeReady(root)
				# Only eof and the start symbol are pushed without a parent.
				if parent is not None:
					parent.children.append(TerminalNode(token))
				self._snapshot(f"match {cur}", cur)
				self._position += 1
				return AWAITING_MORE

			rule = self.table.lookup(top.id, cur)
			if rule is None:
				return self._fail(self.table.expected(top.id), token)

			self._stack.pop()
			node = NonterminalNode(top)
			if parent is None:
				self._root = node
			else:
				parent.children.append(node)
			self._snapshot(str(rule), cur)
			# Push rhs in reverse order so the leftmost symbol is expanded next.
			for sym in reversed(rule.rhs):
				self._stack.append((sym, node))

	def _fail(self, expected: Tuple[str, ...], token: Token) -> SyntaxIssue:
		issue = SyntaxIssue(expected=expected, actual=token.terminal, position=self._position, span=token.span)
		self._snapshot(f"error: {issue.message}", token.terminal)
		logger.debug("Parse of %s failed: %s", self.grammar.name, issue)
		self._finish()
		return issue

	def _finish(self) -> None:
		logger.debug("Resetting parser for %s after %d token(s)", self.grammar.name, self._position)
		self.last_steps = self.steps
		self.reset()

	def _snapshot(self, action: str, lookahead: str) -> None:
		if not self.trace:
			return
		self.steps.append(ParseStep(stack=[s.id for s, _ in self._stack], lookahead=lookahead, action=action))


def parse_tokens(parser: LL1PredictiveParser, tokens: Iterable[Token]) -> ParseOutcome:
	"""
	Feed `tokens` until the parser finishes or fails. Tokens after that point are not
	consumed. If the iterator runs dry first, the missing eof is reported as a syntax error.
	"""
	last: Optional[Token] = None
	for token in tokens:
		last = token
		outcome = parser.feed(token)
		if not isinstance(outcome, AwaitingMore):
			return outcome

	eof = parser.grammar.eof.id
	span = last.span if last is not None else None
	return parser.feed(Token(eof, "", span))
