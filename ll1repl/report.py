"""
Text report of a grammar's LL(1) analysis: productions, FIRST, FOLLOW (with the pass log),
PREDICT sets, the non-empty table cells and any conflicts.

Usage:
  python -m ll1repl --tables
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from ll1repl.grammar import EPS, Grammar
from ll1repl.predict import calculate_follow_set_with_trace, find_left_recursion, first, predict_set
from ll1repl.table import fill_parse_table


def fmt_set(ids: Iterable[str]) -> str:
	return "{" + ", ".join(sorted(ids)) + "}"


def format_report(grammar: Grammar, *, max_follow_passes: Optional[int] = None) -> str:
	out: List[str] = []
	nts = sorted(nt.id for nt in grammar.nonterminals)
	by_id = {nt.id: nt for nt in grammar.nonterminals}

	out.append(f"=== GRAMMAR ({grammar.name}, start {grammar.start}, end {grammar.eof}) ===")
	out.extend(str(p).replace(EPS, "eps") for p in grammar.productions)

	recursive = find_left_recursion(grammar)
	if recursive:
		out.append("")
		out.append(f"!!! Left-recursive nonterminals: {fmt_set(recursive)}")

	out.append("")
	out.append("=== FIRST ===")
	for nt in nts:
		out.append(f"{nt}: {fmt_set(first([by_id[nt]], grammar.productions))}")

	follow, passes = calculate_follow_set_with_trace(grammar, max_passes=max_follow_passes)
	out.append("")
	out.append(f"=== FOLLOW ({len(passes)} growing pass(es)) ===")
	for nt in nts:
		out.append(f"{nt}: {fmt_set(follow[nt])}")
	for i, changes in enumerate(passes, start=1):
		added = ", ".join(f"{nt} += {fmt_set(syms)}" for nt, syms in sorted(changes.items()))
		out.append(f"  pass {i}: {added}")

	out.append("")
	out.append("=== PREDICT ===")
	for rule in grammar.productions:
		out.append(f"{str(rule).replace(EPS, 'eps')}: {fmt_set(predict_set(rule, grammar, follow))}")

	entries, conflicts = fill_parse_table(grammar, max_follow_passes=max_follow_passes)
	out.append("")
	out.append("=== LL(1) TABLE (non-empty cells) ===")
	for nt in nts:
		for t, rule in sorted(entries.get(nt, {}).items()):
			out.append(f"M[{nt}, {t}] = {str(rule).replace(EPS, 'eps')}")

	out.append("")
	out.append("=== Conflicts ===")
	out.extend(str(c) for c in conflicts)
	if not conflicts:
		out.append("none, the grammar is LL(1)")
	return "\n".join(out)
