"""
FIRST, EPSILON, FOLLOW and PREDICT computations over a rule set.

All functions are pure: they read the rules and never modify the grammar. Nothing is
memoized; `epsilon` and `first` carry the set of nonterminals currently being expanded
so that left-recursive or `A -> A` style rules terminate instead of recursing forever.
"""

from __future__ import annotations

import logging
from typing import AbstractSet, Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

from ll1repl.errors import FollowSetDivergenceError
from ll1repl.grammar import Grammar, Production, Symbol
from ll1repl.sets import contains, total_size, union, union_all

logger = logging.getLogger(__name__)

FollowMap = Dict[str, Set[str]]
PassLog = List[Dict[str, List[str]]]

_NOTHING: FrozenSet[str] = frozenset()


def _rules_for(head: Symbol, rules: Sequence[Production]) -> List[Production]:
	return [rule for rule in rules if rule.lhs.id == head.id]


def epsilon(alpha: Sequence[Symbol], rules: Sequence[Production], _expanding: FrozenSet[str] = _NOTHING) -> bool:
	"""True iff `alpha` can derive the empty string in zero or more steps."""
	if len(alpha) == 0:
		return True

	head = alpha[0]
	if head.is_terminal:
		return False
	# A derivation that re-enters `head` while expanding `head` adds nothing.
	if contains(_expanding, head.id):
		return False

	inner = _expanding | {head.id}
	for rule in _rules_for(head, rules):
		if epsilon(rule.rhs, rules, inner):
			return epsilon(alpha[1:], rules, _expanding)

	return False


def first(alpha: Sequence[Symbol], rules: Sequence[Production], _expanding: FrozenSet[str] = _NOTHING) -> Set[str]:
	"""Terminal ids that can begin some derivation of `alpha`."""
	if len(alpha) == 0:
		return set()

	head = alpha[0]
	if head.is_terminal:
		return {head.id}
	if contains(_expanding, head.id):
		return set()

	# head is a nonterminal A: union FIRST of every A -> x, and when A *=> eps,
	# the symbols after A can start the string too.
	inner = _expanding | {head.id}
	head_rules = _rules_for(head, rules)
	result = union_all(first(rule.rhs, rules, inner) for rule in head_rules)

	if any(epsilon(rule.rhs, rules, inner) for rule in head_rules):
		result = union(result, first(alpha[1:], rules, _expanding))

	return result


def follow_pass_limit(grammar: Grammar) -> int:
	return max(1, len(grammar.productions) * len(grammar.symbols)) + 1


def calculate_follow_set_with_trace(grammar: Grammar, *, max_passes: Optional[int] = None) -> Tuple[FollowMap, PassLog]:
	"""
	Compute FOLLOW sets and also return an iteration log.
	The log is a list of passes; each pass maps nonterminal id -> list of newly-added terminal ids.
	Passes that add nothing are not logged, so the final (confirming) pass never appears.
	"""
	rules = grammar.productions
	limit = max_passes if max_passes is not None else follow_pass_limit(grammar)

	follow: FollowMap = {nt.id: set() for nt in grammar.nonterminals}
	follow[grammar.start.id].add(grammar.eof.id)
	passes: PassLog = []

	total = total_size(follow)
	run = 0
	while True:
		run += 1
		if run > limit:
			raise FollowSetDivergenceError(run - 1, limit)

		pass_changes: Dict[str, List[str]] = {}
		for rule in rules:
			rhs = rule.rhs
			for i, x in enumerate(rhs):
				if x.is_terminal:
					continue

				beta = rhs[i + 1 :]
				incoming: AbstractSet[str] = first(beta, rules)
				if len(beta) == 0 or epsilon(beta, rules):
					# A -> alpha X beta with beta *=> eps, or A -> alpha X
					incoming = union(incoming, follow[rule.lhs.id])

				added = incoming - follow[x.id]
				if added:
					follow[x.id].update(added)
					pass_changes.setdefault(x.id, []).extend(sorted(added))

		new_total = total_size(follow)
		logger.debug("FOLLOW pass %d of %s: %d -> %d symbols", run, grammar.name, total, new_total)
		if new_total == total:
			return follow, passes
		passes.append(pass_changes)
		total = new_total


def calculate_follow_set(grammar: Grammar, *, max_passes: Optional[int] = None) -> FollowMap:
	follow, _ = calculate_follow_set_with_trace(grammar, max_passes=max_passes)
	return follow


def predict_set(rule: Production, grammar: Grammar, follow: Optional[FollowMap] = None) -> Set[str]:
	first_set = first(rule.rhs, grammar.productions)
	if epsilon(rule.rhs, grammar.productions):
		if follow is None:
			follow = calculate_follow_set(grammar)
		return union(first_set, follow.get(rule.lhs.id, set()))
	return first_set


def find_left_recursion(grammar: Grammar) -> Set[str]:
	"""
	Nonterminals A with A =>+ A ... (directly or through nullable prefixes).

	LL(1) grammars never contain these; this is the offline check for grammars that
	would otherwise make naive FIRST recursion loop.
	"""
	rules = grammar.productions
	corners: Dict[str, Set[str]] = {nt.id: set() for nt in grammar.nonterminals}
	for rule in rules:
		for i, sym in enumerate(rule.rhs):
			if sym.is_terminal:
				break
			corners[rule.lhs.id].add(sym.id)
			if not epsilon(rule.rhs[i : i + 1], rules):
				break

	recursive: Set[str] = set()
	for nt in corners:
		seen: Set[str] = set()
		todo = list(corners[nt])
		while todo:
			cur = todo.pop()
			if cur == nt:
				recursive.add(nt)
				break
			if cur in seen:
				continue
			seen.add(cur)
			todo.extend(corners.get(cur, ()))
	return recursive
