from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, List, Optional, Sequence, Set, Tuple

from ll1repl.errors import GrammarDefinitionError

logger = logging.getLogger(__name__)

EPS = "ε"
EOF = "$"


class SymbolKind(Enum):
	TERMINAL = auto()
	NONTERMINAL = auto()


@dataclass(frozen=True, eq=False)
class Symbol:
	"""A grammar symbol. Identity is the `id`; kind and label never take part in comparisons."""

	id: str
	kind: SymbolKind
	label: Optional[str] = None

	@property
	def is_terminal(self) -> bool:
		return self.kind is SymbolKind.TERMINAL

	@property
	def display(self) -> str:
		return self.label or self.id

	def __eq__(self, other: object) -> bool:
		if not isinstance(other, Symbol):
			return NotImplemented
		return self.id == other.id

	def __hash__(self) -> int:
		return hash(self.id)

	def __str__(self) -> str:
		return self.id


class Vocabulary:
	"""Interns symbols so that one id always maps to one Symbol object."""

	def __init__(self) -> None:
		self._symbols: Dict[str, Symbol] = {}

	def terminal(self, id: str, label: Optional[str] = None) -> Symbol:
		return self._intern(id, SymbolKind.TERMINAL, label)

	def nonterminal(self, id: str, label: Optional[str] = None) -> Symbol:
		return self._intern(id, SymbolKind.NONTERMINAL, label)

	def get(self, id: str) -> Optional[Symbol]:
		return self._symbols.get(id)

	def __contains__(self, id: object) -> bool:
		return id in self._symbols

	def _intern(self, id: str, kind: SymbolKind, label: Optional[str]) -> Symbol:
		existing = self._symbols.get(id)
		if existing is not None:
			if existing.kind is not kind:
				raise GrammarDefinitionError(
					f"Symbol '{id}' is used both as {existing.kind.name.lower()} and {kind.name.lower()}."
				)
			return existing
		sym = Symbol(id, kind, label)
		self._symbols[id] = sym
		return sym


@dataclass(frozen=True)
class Production:
	lhs: Symbol
	rhs: Tuple[Symbol, ...] = ()

	def __post_init__(self) -> None:
		if self.lhs.is_terminal:
			raise GrammarDefinitionError(f"Production left-hand side '{self.lhs.id}' must be a nonterminal.")

	@property
	def is_epsilon(self) -> bool:
		return len(self.rhs) == 0

	def __str__(self) -> str:
		if self.is_epsilon:
			return f"{self.lhs} -> {EPS}"
		return f"{self.lhs} -> " + " ".join(s.id for s in self.rhs)


@dataclass(frozen=True)
class Grammar:
	start: Symbol
	eof: Symbol
	productions: Tuple[Production, ...]
	name: str = "grammar"
	_by_lhs: Dict[str, Tuple[Production, ...]] = field(init=False, repr=False, compare=False)

	def __post_init__(self) -> None:
		if self.start.is_terminal:
			raise GrammarDefinitionError(f"Start symbol '{self.start.id}' must be a nonterminal.")
		if not self.eof.is_terminal:
			raise GrammarDefinitionError(f"End-of-input symbol '{self.eof.id}' must be a terminal.")

		kinds: Dict[str, SymbolKind] = {self.start.id: self.start.kind, self.eof.id: self.eof.kind}
		by_lhs: Dict[str, List[Production]] = {}
		for p in self.productions:
			by_lhs.setdefault(p.lhs.id, []).append(p)
			for sym in (p.lhs,) + p.rhs:
				seen = kinds.setdefault(sym.id, sym.kind)
				if seen is not sym.kind:
					raise GrammarDefinitionError(f"Symbol '{sym.id}' is used both as terminal and nonterminal.")

		if self.start.id not in by_lhs:
			raise GrammarDefinitionError(f"Start symbol '{self.start.id}' has no production.")
		object.__setattr__(self, "_by_lhs", {k: tuple(v) for k, v in by_lhs.items()})

		for nt in self.nonterminals:
			if nt.id not in by_lhs:
				logger.warning("Nonterminal %s in grammar %s has no production", nt.id, self.name)

	@property
	def terminals(self) -> Set[Symbol]:
		terms: Set[Symbol] = {self.eof}
		for p in self.productions:
			terms.update(s for s in p.rhs if s.is_terminal)
		return terms

	@property
	def nonterminals(self) -> Set[Symbol]:
		nts: Set[Symbol] = {self.start}
		for p in self.productions:
			nts.add(p.lhs)
			nts.update(s for s in p.rhs if not s.is_terminal)
		return nts

	@property
	def symbols(self) -> Set[Symbol]:
		return self.terminals | self.nonterminals

	def productions_for(self, lhs: Symbol) -> Tuple[Production, ...]:
		return self._by_lhs.get(lhs.id, ())


def parse_grammar_lines(*, start: str, lines: Sequence[str], eof: str = EOF, name: str = "grammar") -> Grammar:
	"""
	Parse a small CFG given as production lines, e.g.:

	  E  -> T E'
	  E' -> + T E' | ε
	  T  -> ( E ) | num

	Notes:
	- Nonterminals are inferred from LHS symbols, every other symbol is a terminal.
	- Alternatives can be separated by '|'.
	- Epsilon can be written as 'ε', 'eps', 'epsilon' or left empty.
	- Blank lines and lines starting with '#' or '//' are ignored.
	"""

	def is_eps(tok: str) -> bool:
		return tok in {EPS, "eps", "epsilon", "EPS", "EPSILON"}

	raw: List[Tuple[str, List[str]]] = []
	lhs_names: Set[str] = set()

	for raw_line in lines:
		line = (raw_line or "").strip()
		if not line or line.startswith("#") or line.startswith("//"):
			continue
		if "->" not in line:
			raise GrammarDefinitionError(f"Invalid production (missing '->'): {raw_line}")
		lhs, rhs = line.split("->", 1)
		lhs = lhs.strip()
		if not lhs or len(lhs.split()) != 1:
			raise GrammarDefinitionError(f"Invalid production (left-hand side must be one symbol): {raw_line}")
		lhs_names.add(lhs)
		raw.append((lhs, [alt.strip() for alt in rhs.split("|")]))

	if start not in lhs_names:
		raise GrammarDefinitionError(f"Start symbol '{start}' has no production.")

	vocab = Vocabulary()
	eof_sym = vocab.terminal(eof)

	def intern(tok: str) -> Symbol:
		if tok in lhs_names:
			return vocab.nonterminal(tok)
		return vocab.terminal(tok)

	prods: List[Production] = []
	for lhs, alts in raw:
		for alt in alts:
			syms = tuple(intern(t) for t in alt.split() if not is_eps(t))
			prods.append(Production(vocab.nonterminal(lhs), syms))

	return Grammar(start=vocab.nonterminal(start), eof=eof_sym, productions=tuple(prods), name=name)


EXPRESSION_GRAMMAR_LINES: Tuple[str, ...] = (
	"S  -> E",
	"E  -> T E'",
	"E' -> + T E' | - T E' | ε",
	"T  -> U T'",
	"T' -> * U T' | / U T' | ε",
	"U  -> - U | P",
	"P  -> F P'",
	"P' -> ^ U | ε",
	"F  -> ( E ) | num | id C",
	"C  -> [ L ] | ε",
	"L  -> E L' | ε",
	"L' -> , E L' | ε",
)


def default_expression_grammar() -> Grammar:
	"""
	Grammar of REPL input:

	  S  -> E
	  E  -> T E'
	  E' -> + T E' | - T E' | ε
	  T  -> U T'
	  T' -> * U T' | / U T' | ε
	  U  -> - U | P                 (unary minus)
	  P  -> F P'
	  P' -> ^ U | ε                 (right-associative power)
	  F  -> ( E ) | num | id C
	  C  -> [ L ] | ε               (function application, Name[args])
	  L  -> E L' | ε
	  L' -> , E L' | ε
	"""
	return parse_grammar_lines(start="S", lines=EXPRESSION_GRAMMAR_LINES, name="expression")
