from __future__ import annotations

from typing import AbstractSet, Hashable, Iterable, Mapping, Set, TypeVar

T = TypeVar("T", bound=Hashable)


def union(a: AbstractSet[T], b: AbstractSet[T]) -> Set[T]:
	"""Return a new set; neither argument is modified."""
	out: Set[T] = set(a)
	out.update(b)
	return out


def union_all(sets: Iterable[AbstractSet[T]]) -> Set[T]:
	out: Set[T] = set()
	for s in sets:
		out.update(s)
	return out


def contains(s: AbstractSet[T], item: T) -> bool:
	return item in s


def total_size(sets: Mapping[object, AbstractSet[T]]) -> int:
	"""Sum of the cardinalities, used as the convergence measure of monotone fixed points."""
	return sum(len(s) for s in sets.values())
