"""
Monotonic Id Conformance Tests

INVARIANT: Lesson ids are strictly increasing and never reused.

    ∀ lessons a, b created in that order: a.id < b.id
    first id = 1, and last_id only moves on a successful schedule_lesson

Rejected creations never consume an id.
"""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from lesson_escrow import LessonEngine, CapacityExceeded, NotRegistered

from tests.conformance.strategies import (
    apply_operation, funded_engine, operation_sequence,
)


class TestMonotonicIdProperties:

    @given(operation_sequence())
    @settings(max_examples=100, deadline=None)
    def test_ids_increase_by_one_per_lesson(self, ops):
        """
        PROPERTY: After any operation sequence, the registry holds ids
        1..last_id exactly, each created by one successful schedule.
        """
        engine = funded_engine()
        created = []
        for op in ops:
            result = apply_operation(engine, op)
            if op[0] == "schedule_lesson" and result.ok:
                created.append(result.value)

        assert created == list(range(1, len(created) + 1))
        assert engine.registry.last_id == len(created)
        assert [lesson.id for lesson in engine.registry] == created

    @given(st.integers(min_value=1, max_value=5), st.integers(min_value=0, max_value=10))
    @settings(max_examples=30, deadline=None)
    def test_rejected_creation_does_not_consume_id(self, capacity, extra):
        """
        PROPERTY: Capacity rejections leave last_id untouched, and the next
        successful lesson takes the following id.
        """
        engine = LessonEngine("ids", max_lessons_per_party=capacity, verbose=False)
        engine.register_as_teacher("full")
        engine.register_as_teacher("spare")
        for i in range(capacity):
            engine.schedule_lesson("full", f"s{i}", 1000, 60, 10)

        for _ in range(extra):
            with pytest.raises(CapacityExceeded):
                engine.schedule_lesson("full", "late", 1000, 60, 10)
        assert engine.registry.last_id == capacity

        assert engine.schedule_lesson("spare", "late", 1000, 60, 10) == capacity + 1


class TestMonotonicIdExamples:

    def test_unregistered_teacher_does_not_consume_id(self):
        engine = LessonEngine("ids", verbose=False)
        with pytest.raises(NotRegistered):
            engine.schedule_lesson("nobody", "s", 1000, 60, 10)
        engine.register_as_teacher("t")
        assert engine.schedule_lesson("t", "s", 1000, 60, 10) == 1

    def test_ids_are_shared_across_teachers(self):
        engine = LessonEngine("ids", verbose=False)
        engine.register_as_teacher("t1")
        engine.register_as_teacher("t2")
        assert engine.schedule_lesson("t1", "s", 1000, 60, 10) == 1
        assert engine.schedule_lesson("t2", "s", 1000, 60, 10) == 2
        assert engine.schedule_lesson("t1", "s", 1000, 60, 10) == 3
