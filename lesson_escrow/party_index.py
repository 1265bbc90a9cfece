"""
party_index.py - Per-identity lesson id lists

Append-only, insertion-ordered lists of lesson ids, one per identity.
The engine keeps two indexes: one keyed by teacher, one keyed by student.

Lists are bounded (MAX_LESSONS_PER_PARTY by default). A full list raises
CapacityExceeded instead of dropping entries. Pass capacity=None for an
unbounded index.
"""

from __future__ import annotations
from typing import Dict, List, Optional, Tuple

from .core import CapacityExceeded, MAX_LESSONS_PER_PARTY, require_identity


class PartyIndex:
    """
    Ordered lesson id lists keyed by identity. No removal operation exists.

    Thread Safety:
        Not thread-safe. LessonEngine serializes all access.
    """

    def __init__(self, name: str, capacity: Optional[int] = MAX_LESSONS_PER_PARTY):
        """
        Args:
            name: Label used in error messages (e.g. "teacher", "student")
            capacity: Maximum ids per identity, or None for no limit
        """
        if capacity is not None and capacity <= 0:
            raise ValueError(f"capacity must be positive or None, got {capacity}")
        self.name = name
        self.capacity = capacity
        self._entries: Dict[str, List[int]] = {}

    def has_capacity(self, identity: str) -> bool:
        """Return True if one more id can be appended for identity."""
        if self.capacity is None:
            return True
        return self.count(identity) < self.capacity

    def append(self, identity: str, lesson_id: int) -> None:
        """
        Add lesson_id to the end of identity's list.

        Raises:
            CapacityExceeded: If the list is already at capacity
        """
        require_identity(identity, "identity")
        if not self.has_capacity(identity):
            raise CapacityExceeded(
                f"{self.name} index for {identity} is full ({self.capacity} lessons)"
            )
        self._entries.setdefault(identity, []).append(lesson_id)

    def list(self, identity: str) -> Tuple[int, ...]:
        """Return identity's lesson ids in insertion order (empty if unknown)."""
        return tuple(self._entries.get(identity, ()))

    def count(self, identity: str) -> int:
        """Return how many lesson ids are stored for identity."""
        return len(self._entries.get(identity, ()))

    def snapshot(self) -> Dict[str, Tuple[int, ...]]:
        """Return an independent copy of every list, for audits and comparisons."""
        return {k: tuple(v) for k, v in self._entries.items()}
