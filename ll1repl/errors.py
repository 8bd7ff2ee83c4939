from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
	from ll1repl.lexer import Span
	from ll1repl.table import TableConflict


class LL1ReplError(Exception):
	"""Base class for every error raised by this package."""


class GrammarDefinitionError(LL1ReplError):
	"""The grammar cannot be used: malformed text, symbol kind clash, missing start rule."""


class GrammarConflictError(GrammarDefinitionError):
	"""The grammar is not LL(1): two rules compete for one parse-table slot."""

	def __init__(self, conflicts: List["TableConflict"]) -> None:
		self.conflicts = list(conflicts)
		lines = "\n".join(f"  {c}" for c in self.conflicts)
		super().__init__(f"Grammar is not LL(1), {len(self.conflicts)} conflicting slot(s):\n{lines}")


class FollowSetDivergenceError(GrammarDefinitionError):
	def __init__(self, passes: int, limit: int) -> None:
		self.passes = passes
		self.limit = limit
		super().__init__(f"FOLLOW computation did not converge within {limit} passes (ran {passes}).")


class EvaluationIssue(LL1ReplError):
	def __init__(self, message: str, span: Optional["Span"] = None) -> None:
		super().__init__(message)
		self.message = message
		self.span = span

	def __str__(self) -> str:
		return self.message


class DuplicateSequenceError(LL1ReplError):
	def __init__(self, seq: int) -> None:
		self.seq = seq
		super().__init__(f"Sequence number {seq} was already submitted.")
