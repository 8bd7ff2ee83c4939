from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Set, Tuple

from ll1repl.errors import GrammarConflictError
from ll1repl.grammar import Grammar, Production
from ll1repl.predict import calculate_follow_set, predict_set

logger = logging.getLogger(__name__)

Entries = Dict[str, Dict[str, Production]]


@dataclass(frozen=True)
class TableConflict:
	nonterminal: str
	lookahead: str
	existing: Production
	incoming: Production

	def __str__(self) -> str:
		return f"Conflict at M[{self.nonterminal}, {self.lookahead}]: {self.existing} vs {self.incoming}"


class ParseTable:
	"""(nonterminal id, terminal id) -> Production. Read-only once built."""

	def __init__(self, grammar: Grammar, entries: Entries) -> None:
		self._grammar = grammar
		self._entries: Entries = {nt: dict(row) for nt, row in entries.items()}

	@property
	def grammar(self) -> Grammar:
		return self._grammar

	def lookup(self, nonterminal: str, terminal: str) -> Optional[Production]:
		return self._entries.get(nonterminal, {}).get(terminal)

	def expected(self, nonterminal: str) -> Tuple[str, ...]:
		"""Lookaheads that have an entry for `nonterminal`, sorted."""
		return tuple(sorted(self._entries.get(nonterminal, {})))

	def rows(self) -> Entries:
		return {nt: dict(row) for nt, row in self._entries.items()}

	def __len__(self) -> int:
		return sum(len(row) for row in self._entries.values())


def compute_predict_sets(grammar: Grammar, *, max_follow_passes: Optional[int] = None) -> List[Tuple[Production, Set[str]]]:
	follow = calculate_follow_set(grammar, max_passes=max_follow_passes)
	return [(rule, predict_set(rule, grammar, follow)) for rule in grammar.productions]


def fill_parse_table(grammar: Grammar, *, max_follow_passes: Optional[int] = None) -> Tuple[Entries, List[TableConflict]]:
	"""
	Returns (entries, conflicts).

	Entries is a nested dict:
	  entries[NonTerminal][Terminal] = Production
	A conflicting slot keeps its first rule; every competing rule is reported.
	"""
	entries: Entries = {nt.id: {} for nt in grammar.nonterminals}
	conflicts: List[TableConflict] = []

	for rule, lookaheads in compute_predict_sets(grammar, max_follow_passes=max_follow_passes):
		row = entries[rule.lhs.id]
		for t in sorted(lookaheads):
			existing = row.get(t)
			if existing is not None and existing != rule:
				conflicts.append(TableConflict(rule.lhs.id, t, existing, rule))
			else:
				row[t] = rule

	return entries, conflicts


def build_parse_table(grammar: Grammar, *, max_follow_passes: Optional[int] = None) -> ParseTable:
	entries, conflicts = fill_parse_table(grammar, max_follow_passes=max_follow_passes)
	if conflicts:
		raise GrammarConflictError(conflicts)
	table = ParseTable(grammar, entries)
	logger.debug("Built LL(1) table for %s with %d entries", grammar.name, len(table))
	return table
