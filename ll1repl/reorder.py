"""
In-order delivery of results that complete out of order.

Evaluations of successive inputs may finish in any order; `ResultReorderer` buffers them
and hands payloads to `on_release` strictly by sequence number, each exactly once.
A failing `on_release` is logged and skipped. If a sequence number never arrives,
everything after it stays buffered: the reorderer has no way to know why an evaluation
never finished, so supervising that is the caller's job.
"""

from __future__ import annotations

import heapq
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, List, Set

from ll1repl.errors import DuplicateSequenceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class SequencedResult:
	seq: int
	payload: Any = field(compare=False)

	def __post_init__(self) -> None:
		if self.seq < 0:
			raise ValueError(f"Sequence numbers are non-negative, got {self.seq}")


class ResultReorderer:
	def __init__(self, on_release: Callable[[Any], None], *, first_seq: int = 0) -> None:
		self._on_release = on_release
		self._expected = first_seq
		self._heap: List[SequencedResult] = []
		self._buffered: Set[int] = set()
		self._lock = threading.Lock()

	@property
	def expected(self) -> int:
		with self._lock:
			return self._expected

	@property
	def pending(self) -> List[int]:
		with self._lock:
			return sorted(self._buffered)

	def submit(self, result: SequencedResult) -> int:
		"""Buffer `result` and release every contiguous result. Returns how many were released."""
		with self._lock:
			if result.seq < self._expected or result.seq in self._buffered:
				raise DuplicateSequenceError(result.seq)

			heapq.heappush(self._heap, result)
			self._buffered.add(result.seq)
			if result.seq != self._expected:
				logger.debug("Buffered result %d while waiting for %d", result.seq, self._expected)
				return 0

			released = 0
			# Releases happen inside the lock so two threads can never interleave them.
			while self._heap and self._heap[0].seq == self._expected:
				head = heapq.heappop(self._heap)
				self._buffered.discard(head.seq)
				self._expected += 1
				released += 1
				try:
					self._on_release(head.payload)
				except Exception:
					# A failing sink loses this payload only; later results keep flowing.
					logger.exception("Release callback failed for result %d", head.seq)
			logger.debug("Released %d result(s), next expected %d", released, self._expected)
			return released
