"""
Notebook-style REPL: `In[n]:= expr;` is answered by `Out[n]= value`.

Each command is tokenized, parsed and translated on the submitting thread, one command
at a time, then evaluated on a worker pool. Workers may finish in any order; results go
through a ResultReorderer so they are printed strictly by input number.
"""

from __future__ import annotations

import logging
import re
import sys
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, TextIO

from ll1repl.config import Settings
from ll1repl.errors import EvaluationIssue
from ll1repl.evaluate import Evaluator, GlobalContext
from ll1repl.expression import Expr, serialize
from ll1repl.grammar import Grammar, default_expression_grammar
from ll1repl.lexer import DiagnosticEngine, Lexer, Severity
from ll1repl.parser import LL1PredictiveParser, TreeReady, parse_tokens
from ll1repl.reorder import ResultReorderer, SequencedResult
from ll1repl.table import build_parse_table
from ll1repl.translate import TranslationError, translate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvaluationResult:
	seq: int
	value: Optional[Expr] = None
	error: Optional[str] = None

	@property
	def ok(self) -> bool:
		return self.error is None

	@property
	def text(self) -> str:
		if self.value is None:
			return self.error or ""
		return serialize(self.value)


def prompt(seq: int) -> str:
	return f"In[{seq}]:= "


def format_result(result: EvaluationResult) -> str:
	if result.ok:
		return f"Out[{result.seq}]= {result.text}\n\n"
	return f"Error[{result.seq}]: {result.text}\n\n"


class CommandBuffer:
	"""Accumulates raw input; every ';' ends one command. Empty commands are dropped."""

	def __init__(self) -> None:
		self._pending = ""

	@property
	def pending(self) -> str:
		return self._pending

	def push(self, text: str) -> Iterator[str]:
		for ch in re.sub(r"\s", " ", text):
			if ch != ";":
				self._pending += ch
				continue
			command = self._pending.strip()
			self._pending = ""
			if command:
				yield command


class ReplSession:
	def __init__(
		self,
		settings: Optional[Settings] = None,
		*,
		grammar: Optional[Grammar] = None,
		on_release: Optional[Callable[[EvaluationResult], None]] = None,
	) -> None:
		self.settings = settings or Settings()
		self.grammar = grammar or default_expression_grammar()
		# Raises GrammarConflictError: a session never starts with a non-LL(1) grammar.
		self.table = build_parse_table(self.grammar, max_follow_passes=self.settings.max_follow_passes)
		self.parser = LL1PredictiveParser(self.table)
		self.context = GlobalContext(wait_timeout=self.settings.eval_timeout)
		self.evaluator = Evaluator(self.context)
		self.reorderer = ResultReorderer(self._release, first_seq=self.settings.first_seq)

		self._on_release = on_release
		self._buffer = CommandBuffer()
		self._next_seq = self.settings.first_seq
		self._parse_lock = threading.Lock()
		self._futures: List["Future[EvaluationResult]"] = []
		self._executor = ThreadPoolExecutor(max_workers=self.settings.workers, thread_name_prefix="ll1repl-eval")

	def __enter__(self) -> "ReplSession":
		return self

	def __exit__(self, *exc: object) -> None:
		self.close()

	@property
	def next_seq(self) -> int:
		return self._next_seq

	@property
	def has_pending_input(self) -> bool:
		return bool(self._buffer.pending.strip())

	def feed_text(self, text: str) -> List["Future[EvaluationResult]"]:
		return [self.submit(command) for command in self._buffer.push(text)]

	def submit(self, command: str) -> "Future[EvaluationResult]":
		diagnostics = DiagnosticEngine()
		with self._parse_lock:
			seq = self._next_seq
			self._next_seq += 1
			lexer = Lexer(command, diagnostics, eof=self.grammar.eof.id)
			try:
				outcome = parse_tokens(self.parser, lexer.tokens())
			except Exception as e:
				# The number is already taken; it must still be completed or the reorderer stalls.
				logger.exception("Parsing input %d failed", seq)
				self.parser.reset()
				return self._done(self._complete(seq, error=f"Internal error: {e}"))

		if diagnostics.has_errors:
			messages = [d.message for d in diagnostics.items if d.severity is Severity.ERROR]
			return self._done(self._complete(seq, error="; ".join(messages)))
		if not isinstance(outcome, TreeReady):
			return self._done(self._complete(seq, error=str(outcome)))

		try:
			expr = translate(outcome.root)
		except TranslationError as e:
			return self._done(self._complete(seq, error=str(e)))
		except Exception as e:
			logger.exception("Translating input %d failed", seq)
			return self._done(self._complete(seq, error=f"Internal error: {e}"))
		future = self._executor.submit(self._evaluate, seq, expr)
		self._futures.append(future)
		return future

	def drain(self, timeout: Optional[float] = None) -> None:
		"""Wait for every submitted evaluation."""
		futures, self._futures = self._futures, []
		_, not_done = wait(futures, timeout=timeout)
		self._futures.extend(not_done)

	def close(self) -> None:
		self._executor.shutdown(wait=True)

	def _evaluate(self, seq: int, expr: Expr) -> EvaluationResult:
		try:
			value = self.evaluator.evaluate(expr, seq)
		except EvaluationIssue as issue:
			return self._complete(seq, error=str(issue))
		except Exception as e:
			logger.exception("Evaluation of input %d failed", seq)
			return self._complete(seq, error=f"Runtime error: {e}")
		return self._complete(seq, value=value)

	def _complete(self, seq: int, *, value: Optional[Expr] = None, error: Optional[str] = None) -> EvaluationResult:
		result = EvaluationResult(seq, value, error)
		self.context.record(seq, value)
		self.reorderer.submit(SequencedResult(seq, result))
		return result

	def _done(self, result: EvaluationResult) -> "Future[EvaluationResult]":
		future: "Future[EvaluationResult]" = Future()
		future.set_result(result)
		return future

	def _release(self, result: EvaluationResult) -> None:
		if self._on_release is not None:
			self._on_release(result)


def run_repl(settings: Settings, stdin: TextIO = sys.stdin, stdout: TextIO = sys.stdout) -> int:
	def release(result: EvaluationResult) -> None:
		stdout.write(format_result(result))
		stdout.flush()

	with ReplSession(settings, on_release=release) as session:
		stdout.write(prompt(session.next_seq))
		stdout.flush()
		for line in stdin:
			session.feed_text(line)
			session.drain()
			if not session.has_pending_input:
				stdout.write(prompt(session.next_seq))
				stdout.flush()
	stdout.write("\n")
	return 0
