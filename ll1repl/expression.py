from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
from typing import Tuple, Union

Numeric = Union[int, Fraction, float]

PLUS = "Plus"
SUBTRACT = "Subtract"
TIMES = "Times"
DIVIDE = "Divide"
POWER = "Power"
MINUS = "Minus"

ARITHMETIC_HEADS = frozenset({PLUS, SUBTRACT, TIMES, DIVIDE, POWER, MINUS})

_INFIX = {PLUS: " + ", SUBTRACT: " - ", TIMES: "*", DIVIDE: "/", POWER: "^"}
_PRECEDENCE = {PLUS: 10, SUBTRACT: 10, TIMES: 20, DIVIDE: 20, MINUS: 25, POWER: 30}
_ATOM = 100


class Expr:
	pass


@dataclass(frozen=True)
class NumberExpr(Expr):
	value: Numeric


@dataclass(frozen=True)
class SymbolExpr(Expr):
	name: str


@dataclass(frozen=True)
class ApplyExpr(Expr):
	head: str
	args: Tuple[Expr, ...] = ()


def is_numeric(expr: Expr) -> bool:
	return isinstance(expr, NumberExpr)


def format_number(value: Numeric) -> str:
	if isinstance(value, Fraction):
		if value.denominator == 1:
			return str(value.numerator)
		return f"{value.numerator}/{value.denominator}"
	if isinstance(value, float):
		if value.is_integer() and abs(value) < 1e16:
			return f"{value:.1f}"
		return repr(value)
	return str(value)


def _precedence(expr: Expr) -> int:
	if isinstance(expr, NumberExpr):
		if isinstance(expr.value, Fraction) and expr.value.denominator != 1:
			return _PRECEDENCE[DIVIDE]
		return _PRECEDENCE[MINUS] if expr.value < 0 else _ATOM
	if isinstance(expr, ApplyExpr) and expr.head in ARITHMETIC_HEADS:
		return _PRECEDENCE[expr.head]
	return _ATOM


def _wrap(expr: Expr, minimum: int) -> str:
	text = serialize(expr)
	return f"({text})" if _precedence(expr) < minimum else text


def serialize(expr: Expr) -> str:
	"""Infix text with the fewest parentheses that keep the structure."""
	if isinstance(expr, NumberExpr):
		return format_number(expr.value)
	if isinstance(expr, SymbolExpr):
		return expr.name
	if not isinstance(expr, ApplyExpr):
		raise TypeError(f"Cannot serialize {expr!r}")

	head, args = expr.head, expr.args
	if head == MINUS and len(args) == 1:
		return "-" + _wrap(args[0], _PRECEDENCE[MINUS] + 1)
	if head == POWER and len(args) == 2:
		prec = _PRECEDENCE[POWER]
		return _wrap(args[0], prec + 1) + "^" + _wrap(args[1], prec)
	if head in _INFIX and len(args) >= 2:
		prec = _PRECEDENCE[head]
		# Left-associative: the right operand of - and / needs its own parentheses.
		right_min = prec + 1 if head in (SUBTRACT, DIVIDE) else prec
		parts = [_wrap(args[0], prec)] + [_wrap(a, right_min) for a in args[1:]]
		return _INFIX[head].join(parts)
	return f"{head}[" + ", ".join(serialize(a) for a in args) + "]"
