"""Registry of per-type blittability verdicts for one analysis pass."""
from __future__ import annotations
from collections.abc import Mapping
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from blitgen.semantics.passes.blittable import VerdictCache, evaluate
from blitgen.semantics.typesys import TypeDescriptor


class BuildCancelled(Exception):
    """Raised when the caller's cancellation check fires between candidates."""

    def __init__(self, completed: int, total: int) -> None:
        super().__init__(f"registry build cancelled after {completed} of {total} candidates")
        self.completed = completed
        self.total = total


class Registry(Mapping):
    """Ordered, read-only mapping of type identity to verdict.

    Order is the order candidates were handed to `build_registry`, which keeps
    generated output reproducible.
    """

    def __init__(self, entries: Dict[str, bool], descriptors: Dict[str, TypeDescriptor],
                 cache: VerdictCache) -> None:
        self._entries = entries
        self._descriptors = descriptors
        self.cache = cache

    def __getitem__(self, identity: str) -> bool:
        return self._entries[identity]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"Registry({self._entries!r})"

    def descriptor(self, identity: str) -> TypeDescriptor:
        return self._descriptors[identity]

    def descriptors(self) -> List[TypeDescriptor]:
        return list(self._descriptors.values())

    def blittable(self) -> List[str]:
        return [identity for identity, ok in self._entries.items() if ok]

    def not_blittable(self) -> List[str]:
        return [identity for identity, ok in self._entries.items() if not ok]


def build_registry(candidates: Iterable[TypeDescriptor],
                   cancel: Optional[Callable[[], bool]] = None) -> Registry:
    """Evaluate every candidate with one fresh cache and collect verdicts in input order.

    Args:
        candidates: Candidate structs, in discovery order. Identities are expected
            to be unique; a repeated identity keeps its first entry.
        cancel: Optional check polled before each candidate; returning True aborts
            the build with BuildCancelled.
    """
    candidates = list(candidates)
    cache = VerdictCache()
    entries: Dict[str, bool] = {}
    descriptors: Dict[str, TypeDescriptor] = {}

    for index, candidate in enumerate(candidates):
        if cancel is not None and cancel():
            raise BuildCancelled(index, len(candidates))
        verdict = evaluate(candidate, cache)
        if candidate.identity not in entries:
            entries[candidate.identity] = verdict
            descriptors[candidate.identity] = candidate

    return Registry(entries, descriptors, cache)
