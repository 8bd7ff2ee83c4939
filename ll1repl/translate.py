"""Parse tree of the built-in expression grammar -> evaluable expression."""

from __future__ import annotations

from typing import Callable, Dict, List

from ll1repl.expression import DIVIDE, MINUS, PLUS, POWER, SUBTRACT, TIMES, ApplyExpr, Expr, NumberExpr, SymbolExpr
from ll1repl.parser import NonterminalNode, ParseNode, TerminalNode

_BINARY_HEADS = {"+": PLUS, "-": SUBTRACT, "*": TIMES, "/": DIVIDE}


class TranslationError(ValueError):
	pass


def _nonterminal(node: ParseNode) -> NonterminalNode:
	if not isinstance(node, NonterminalNode):
		raise TranslationError(f"Expected a nonterminal node, got terminal '{node.terminal}'")
	return node


def _terminal(node: ParseNode) -> TerminalNode:
	if not isinstance(node, TerminalNode):
		raise TranslationError(f"Expected a terminal node, got '{node.symbol.id}'")
	return node


def _fold_tail(head: Expr, tail: NonterminalNode) -> Expr:
	# E' -> op T E' | ε, folded left to right for left associativity.
	result = head
	while tail.children:
		op, operand, rest = tail.children
		result = ApplyExpr(_BINARY_HEADS[_terminal(op).terminal], (result, translate(operand)))
		tail = _nonterminal(rest)
	return result


def _start(node: NonterminalNode) -> Expr:
	return translate(node.children[0])


def _sum(node: NonterminalNode) -> Expr:
	first, tail = node.children
	return _fold_tail(translate(first), _nonterminal(tail))


def _unary(node: NonterminalNode) -> Expr:
	if len(node.children) == 2:
		return ApplyExpr(MINUS, (translate(node.children[1]),))
	return translate(node.children[0])


def _power(node: NonterminalNode) -> Expr:
	base, tail = node.children
	tail = _nonterminal(tail)
	if not tail.children:
		return translate(base)
	# P' -> ^ U, and U recurses into P, so a^b^c nests to the right.
	return ApplyExpr(POWER, (translate(base), translate(tail.children[1])))


def _factor(node: NonterminalNode) -> Expr:
	first = node.children[0]
	if isinstance(first, NonterminalNode):
		raise TranslationError(f"Unexpected '{first.symbol.id}' at start of factor")
	if first.terminal == "(":
		return translate(node.children[1])
	if first.terminal == "num":
		return NumberExpr(first.token.value)
	name = first.token.lexeme
	call = _nonterminal(node.children[1])
	if not call.children:
		return SymbolExpr(name)
	return ApplyExpr(name, tuple(_arguments(_nonterminal(call.children[1]))))


def _arguments(node: NonterminalNode) -> List[Expr]:
	# L -> E L' | ε ; L' -> , E L' | ε
	if not node.children:
		return []
	args = [translate(node.children[0])]
	rest = _nonterminal(node.children[1])
	while rest.children:
		args.append(translate(rest.children[1]))
		rest = _nonterminal(rest.children[2])
	return args


_TRANSLATORS: Dict[str, Callable[[NonterminalNode], Expr]] = {
	"S": _start,
	"E": _sum,
	"T": _sum,
	"U": _unary,
	"P": _power,
	"F": _factor,
}


def translate(node: ParseNode) -> Expr:
	node = _nonterminal(node)
	fn = _TRANSLATORS.get(node.symbol.id)
	if fn is None:
		raise TranslationError(f"No translation for nonterminal '{node.symbol.id}'")
	return fn(node)
