"""
Expression evaluation.

Evaluation is split by node kind. `EvaluatorKind` is the closed set of kinds and
`build_evaluator` is the only place that maps a kind to its implementation.
Integers and fractions stay exact, floats propagate, and anything involving an unknown
symbol or an unknown function is returned in symbolic form with its parts evaluated.
"""

from __future__ import annotations

import logging
import math
import threading
from enum import Enum, auto
from fractions import Fraction
from typing import Callable, Dict, List, Optional, Tuple

from ll1repl.errors import EvaluationIssue
from ll1repl.expression import (
	ARITHMETIC_HEADS,
	DIVIDE,
	MINUS,
	PLUS,
	POWER,
	SUBTRACT,
	TIMES,
	ApplyExpr,
	Expr,
	NumberExpr,
	Numeric,
	SymbolExpr,
	is_numeric,
)

logger = logging.getLogger(__name__)

HISTORY_HEAD = "Out"


class GlobalContext:
	"""Per-session evaluation state: the value produced for each sequence number."""

	def __init__(self, *, wait_timeout: float = 5.0) -> None:
		self.wait_timeout = wait_timeout
		self._outputs: Dict[int, Optional[Expr]] = {}
		self._cond = threading.Condition()

	def record(self, seq: int, value: Optional[Expr]) -> None:
		"""Store the value of `seq`; None marks an input that failed."""
		with self._cond:
			self._outputs[seq] = value
			self._cond.notify_all()

	def output(self, seq: int, *, wait: bool = False) -> Optional[Expr]:
		with self._cond:
			if wait:
				self._cond.wait_for(lambda: seq in self._outputs, timeout=self.wait_timeout)
			return self._outputs.get(seq)

	def __len__(self) -> int:
		with self._cond:
			return len(self._outputs)


class EvaluatorKind(Enum):
	NUMBER = auto()
	SYMBOL = auto()
	ARITHMETIC = auto()
	FUNCTION = auto()
	HISTORY = auto()


def kind_of(expr: Expr) -> EvaluatorKind:
	if isinstance(expr, NumberExpr):
		return EvaluatorKind.NUMBER
	if isinstance(expr, SymbolExpr):
		return EvaluatorKind.SYMBOL
	if isinstance(expr, ApplyExpr):
		if expr.head in ARITHMETIC_HEADS:
			return EvaluatorKind.ARITHMETIC
		if expr.head == HISTORY_HEAD:
			return EvaluatorKind.HISTORY
		return EvaluatorKind.FUNCTION
	raise EvaluationIssue(f"Unsupported expression: {expr.__class__.__name__}")


Recurse = Callable[[Expr], Expr]


class KindEvaluator:
	def __init__(self, context: GlobalContext) -> None:
		self.context = context

	def _mismatch(self, expr: Expr) -> EvaluationIssue:
		return EvaluationIssue(f"{self.__class__.__name__} cannot evaluate {expr.__class__.__name__}")

	def evaluate(self, expr: Expr, recurse: Recurse, seq: int) -> Expr:
		raise NotImplementedError


class NumberEvaluator(KindEvaluator):
	def evaluate(self, expr: Expr, recurse: Recurse, seq: int) -> Expr:
		return expr


class SymbolEvaluator(KindEvaluator):
	# Unknown symbols stay symbolic; Pi and E are the only built-in constants.
	CONSTANTS: Dict[str, float] = {"Pi": math.pi, "E": math.e}

	def evaluate(self, expr: Expr, recurse: Recurse, seq: int) -> Expr:
		if not isinstance(expr, SymbolExpr):
			raise self._mismatch(expr)
		if expr.name in self.CONSTANTS:
			return NumberExpr(self.CONSTANTS[expr.name])
		return expr


def _normalize(value: Numeric) -> Numeric:
	if isinstance(value, Fraction) and value.denominator == 1:
		return value.numerator
	if isinstance(value, complex):
		raise EvaluationIssue("Complex results are not supported.")
	return value


class ArithmeticEvaluator(KindEvaluator):
	def evaluate(self, expr: Expr, recurse: Recurse, seq: int) -> Expr:
		if not isinstance(expr, ApplyExpr):
			raise self._mismatch(expr)
		args = tuple(recurse(a) for a in expr.args)
		head = expr.head
		if all(is_numeric(a) for a in args):
			values = [a.value for a in args]  # type: ignore[attr-defined]
			return NumberExpr(_normalize(self._apply(head, values)))
		if head in (PLUS, TIMES):
			return self._fold(head, args)
		return ApplyExpr(head, args)

	def _apply(self, head: str, values: List[Numeric]) -> Numeric:
		if head == PLUS:
			return sum(values[1:], values[0])
		if head == TIMES:
			return math.prod(values)
		if head == MINUS:
			return -values[0]
		if head == SUBTRACT:
			return values[0] - values[1]
		if head == DIVIDE:
			return self._divide(values[0], values[1])
		if head == POWER:
			return self._power(values[0], values[1])
		raise EvaluationIssue(f"Unsupported operator: {head}")

	def _divide(self, num: Numeric, den: Numeric) -> Numeric:
		if den == 0:
			raise EvaluationIssue("Division by zero.")
		if isinstance(num, float) or isinstance(den, float):
			return float(num) / float(den)
		return Fraction(num) / Fraction(den)

	def _power(self, base: Numeric, exponent: Numeric) -> Numeric:
		if base == 0 and exponent < 0:
			raise EvaluationIssue("Division by zero.")
		if isinstance(exponent, int) and not isinstance(base, float):
			return Fraction(base) ** exponent
		try:
			return float(base) ** float(exponent)
		except OverflowError:
			raise EvaluationIssue("Numeric overflow.")

	def _fold(self, head: str, args: Tuple[Expr, ...]) -> Expr:
		flat: List[Expr] = []
		for a in args:
			if isinstance(a, ApplyExpr) and a.head == head:
				flat.extend(a.args)
			else:
				flat.append(a)
		numbers = [a.value for a in flat if isinstance(a, NumberExpr)]
		rest = [a for a in flat if not isinstance(a, NumberExpr)]
		if numbers:
			folded = _normalize(self._apply(head, numbers))
			identity = 0 if head == PLUS else 1
			if folded != identity or not rest:
				rest.insert(0, NumberExpr(folded))
		if len(rest) == 1:
			return rest[0]
		return ApplyExpr(head, tuple(rest))


def _sqrt(x: Numeric) -> Numeric:
	if x < 0:
		raise EvaluationIssue("Sqrt of a negative number is not supported.")
	if isinstance(x, int):
		root = math.isqrt(x)
		if root * root == x:
			return root
	if isinstance(x, Fraction):
		n, d = math.isqrt(x.numerator), math.isqrt(x.denominator)
		if n * n == x.numerator and d * d == x.denominator:
			return Fraction(n, d)
	return math.sqrt(x)


def _log(x: Numeric) -> Numeric:
	if x <= 0:
		raise EvaluationIssue("Log is only defined for positive numbers.")
	return math.log(x)


def _float(fn: Callable[[float], float]) -> Callable[[Numeric], Numeric]:
	def wrapped(x: Numeric) -> Numeric:
		return fn(float(x))

	return wrapped


class FunctionEvaluator(KindEvaluator):
	UNARY: Dict[str, Callable[[Numeric], Numeric]] = {
		"Sqrt": _sqrt,
		"Sin": _float(math.sin),
		"Cos": _float(math.cos),
		"Tan": _float(math.tan),
		"Exp": _float(math.exp),
		"Log": _log,
		"Abs": abs,
		"Floor": math.floor,
		"Ceiling": math.ceil,
		"N": float,
	}
	VARIADIC: Dict[str, Callable[..., Numeric]] = {"Max": max, "Min": min}

	def evaluate(self, expr: Expr, recurse: Recurse, seq: int) -> Expr:
		if not isinstance(expr, ApplyExpr):
			raise self._mismatch(expr)
		args = tuple(recurse(a) for a in expr.args)
		if not all(is_numeric(a) for a in args):
			return ApplyExpr(expr.head, args)
		values = [a.value for a in args]  # type: ignore[attr-defined]

		if expr.head in self.UNARY:
			if len(values) != 1:
				raise EvaluationIssue(f"{expr.head} expects 1 argument, got {len(values)}.")
			try:
				return NumberExpr(_normalize(self.UNARY[expr.head](values[0])))
			except OverflowError:
				raise EvaluationIssue(f"Numeric overflow in {expr.head}.")
		if expr.head in self.VARIADIC:
			if not values:
				raise EvaluationIssue(f"{expr.head} expects at least 1 argument.")
			return NumberExpr(_normalize(self.VARIADIC[expr.head](values)))
		return ApplyExpr(expr.head, args)


class HistoryEvaluator(KindEvaluator):
	"""Out[k] is the value printed for input k. Earlier inputs may still be evaluating."""

	def evaluate(self, expr: Expr, recurse: Recurse, seq: int) -> Expr:
		if not isinstance(expr, ApplyExpr):
			raise self._mismatch(expr)
		args = tuple(recurse(a) for a in expr.args)
		if len(args) != 1 or not isinstance(args[0], NumberExpr) or not isinstance(args[0].value, int):
			raise EvaluationIssue("Out expects one integer argument.")
		k = args[0].value
		if k < 0:
			k = seq + k
		value = self.context.output(k, wait=0 <= k < seq)
		if value is None:
			return ApplyExpr(HISTORY_HEAD, (NumberExpr(k),))
		return value


_EVALUATORS: Dict[EvaluatorKind, type] = {
	EvaluatorKind.NUMBER: NumberEvaluator,
	EvaluatorKind.SYMBOL: SymbolEvaluator,
	EvaluatorKind.ARITHMETIC: ArithmeticEvaluator,
	EvaluatorKind.FUNCTION: FunctionEvaluator,
	EvaluatorKind.HISTORY: HistoryEvaluator,
}


def build_evaluator(kind: EvaluatorKind, context: GlobalContext) -> KindEvaluator:
	return _EVALUATORS[kind](context)


class Evaluator:
	def __init__(self, context: GlobalContext) -> None:
		self.context = context
		self._by_kind = {kind: build_evaluator(kind, context) for kind in EvaluatorKind}

	def evaluate(self, expr: Expr, seq: int = 0) -> Expr:
		def recurse(e: Expr) -> Expr:
			return self._by_kind[kind_of(e)].evaluate(e, recurse, seq)

		return recurse(expr)
