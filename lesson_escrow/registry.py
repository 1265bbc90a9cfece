"""
registry.py - Lesson Registry

Durable mapping of lesson id -> Lesson record.

Ids come from a monotonic counter: the first lesson is 1, and each new id is
strictly greater than every id issued before it. Ids are never reused, even
for lessons that were later cancelled.

Records are immutable. update() builds a replacement record and only the
status fields may differ from the stored one.
"""

from __future__ import annotations
from dataclasses import replace
from typing import Any, Dict, Iterator, Tuple

from .core import (
    Lesson, LessonChange, LessonStatus, PaymentStatus,
    NotFound, IMMUTABLE_LESSON_FIELDS,
)


_MUTABLE_FIELDS = frozenset({'status', 'payment_status'})


class LessonRegistry:
    """
    Lesson records keyed by id, plus the last-assigned id counter.

    Thread Safety:
        Not thread-safe. LessonEngine serializes all access, which also
        guards the id counter.
    """

    def __init__(self):
        self._lessons: Dict[int, Lesson] = {}
        self._last_id: int = 0

    @property
    def last_id(self) -> int:
        """The most recently assigned lesson id (0 if none)."""
        return self._last_id

    def __len__(self) -> int:
        return len(self._lessons)

    def __contains__(self, lesson_id: object) -> bool:
        return lesson_id in self._lessons

    def __iter__(self) -> Iterator[Lesson]:
        """Iterate records in id order."""
        return iter(self._lessons[i] for i in sorted(self._lessons))

    def create(
        self,
        teacher: str,
        student: str,
        start_time: int,
        duration: int,
        price: int,
    ) -> int:
        """
        Store a new scheduled, unpaid lesson and return its id.

        The record is validated before the counter moves, so invalid
        arguments never consume an id.

        Raises:
            ValueError: If any argument is malformed
        """
        lesson = Lesson(
            id=self._last_id + 1,
            teacher=teacher,
            student=student,
            start_time=start_time,
            duration=duration,
            price=price,
            status=LessonStatus.SCHEDULED,
            payment_status=PaymentStatus.UNPAID,
        )
        self._last_id = lesson.id
        self._lessons[lesson.id] = lesson
        return lesson.id

    def get(self, lesson_id: int) -> Lesson:
        """
        Return the record for lesson_id.

        Raises:
            NotFound: If no lesson has that id
        """
        try:
            return self._lessons[lesson_id]
        except (KeyError, TypeError):
            raise NotFound(f"Lesson {lesson_id} not found") from None

    def update(self, lesson_id: int, **changes: Any) -> LessonChange:
        """
        Apply field-level changes to a lesson's status fields and persist them.

        Args:
            lesson_id: Lesson to update
            **changes: New values for 'status' and/or 'payment_status'

        Returns:
            LessonChange with the records before and after the update

        Raises:
            NotFound: If no lesson has that id
            ValueError: If a change targets an immutable or unknown field
        """
        for name in changes:
            if name in IMMUTABLE_LESSON_FIELDS:
                raise ValueError(f"Lesson field '{name}' is immutable")
            if name not in _MUTABLE_FIELDS:
                raise ValueError(f"Unknown lesson field '{name}'")
        old = self.get(lesson_id)
        new = replace(old, **changes)
        self._lessons[lesson_id] = new
        return LessonChange(lesson_id=lesson_id, old=old, new=new)

    def snapshot(self) -> Tuple[Dict[int, Lesson], int]:
        """Return an independent copy of all records and the id counter."""
        return dict(self._lessons), self._last_id
