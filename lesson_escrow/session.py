"""
session.py - Caller-bound access to a LessonEngine

A LessonSession carries an identity supplied by an external authentication
layer. Its methods mirror the engine's operations without a caller argument,
so the identity can never be chosen per call, and they return
OperationResult values instead of raising LessonError.

Malformed arguments are a programming error, not a rejected operation:
negative or non-int times and amounts and empty identities still raise
ValueError.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Any, Callable, Tuple

from .core import Lesson, LessonError, OperationResult

if TYPE_CHECKING:
    from .engine import LessonEngine


class LessonSession:
    """
    Operations on behalf of one authenticated caller.

    Lifecycle operations return OperationResult for every LessonError.
    ValueError from malformed arguments propagates unchanged, and queries
    raise like the engine (get_lesson raises NotFound).

    Example:
        student = engine.session("student")
        result = student.pay_for_lesson(lesson_id)
        if not result.ok:
            print(result.error_code)    # e.g. "InvalidState"
    """

    def __init__(self, engine: LessonEngine, caller: str):
        self.engine = engine
        self._caller = caller

    @property
    def caller(self) -> str:
        return self._caller

    def _submit(self, operation: Callable[..., Any], *args: Any) -> OperationResult:
        try:
            value = operation(self._caller, *args)
        except LessonError as e:
            return OperationResult.failure(e)
        return OperationResult.success(True if value is None else value)

    # Lifecycle operations

    def register_as_teacher(self) -> OperationResult:
        return self._submit(self.engine.register_as_teacher)

    def schedule_lesson(self, student: str, start_time: int, duration: int, price: int) -> OperationResult:
        """Schedule a lesson taught by this caller. value is the new lesson id."""
        return self._submit(self.engine.schedule_lesson, student, start_time, duration, price)

    def pay_for_lesson(self, lesson_id: int) -> OperationResult:
        return self._submit(self.engine.pay_for_lesson, lesson_id)

    def complete_lesson(self, lesson_id: int) -> OperationResult:
        return self._submit(self.engine.complete_lesson, lesson_id)

    def cancel_lesson(self, lesson_id: int, current_time: int) -> OperationResult:
        return self._submit(self.engine.cancel_lesson, lesson_id, current_time)

    def withdraw_balance(self) -> OperationResult:
        """Withdraw this caller's full balance. value is the amount withdrawn."""
        return self._submit(self.engine.withdraw_balance)

    # Queries (public, no caller involved)

    def get_lesson(self, lesson_id: int) -> Lesson:
        return self.engine.get_lesson(lesson_id)

    def get_teacher_balance(self, teacher: str) -> int:
        return self.engine.get_teacher_balance(teacher)

    def get_teacher_lessons(self, teacher: str) -> Tuple[int, ...]:
        return self.engine.get_teacher_lessons(teacher)

    def get_student_lessons(self, student: str) -> Tuple[int, ...]:
        return self.engine.get_student_lessons(student)

    def __repr__(self) -> str:
        return f"LessonSession({self._caller} @ {self.engine.name})"
