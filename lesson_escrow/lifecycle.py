"""
lifecycle.py - Pure lifecycle rules for lessons

This module provides the side-effect-free half of the lifecycle engine:
1. time_until_start() - Lead time before a lesson, clamped at zero
2. is_refund_eligible() - The 24-hour refund rule
3. compute_cancellation() - Outcome of cancelling a lesson at a given time
4. check_can_pay() / check_can_complete() / check_can_cancel() - Transition guards

Valid transitions (status/payment_status):

    scheduled/unpaid --pay------> scheduled/paid
    scheduled/unpaid --complete-> completed/unpaid --pay--> completed/paid
    scheduled/unpaid --cancel---> cancelled/unpaid
    scheduled/paid   --complete-> completed/paid
    scheduled/paid   --cancel---> cancelled/refunded   (lead time > cutoff)
    scheduled/paid   --cancel---> cancelled/paid       (lead time <= cutoff)

COMPLETED and CANCELLED are terminal for status. All functions take a Lesson
and return plain values; none of them touch a store.
"""

from __future__ import annotations
from dataclasses import dataclass

from .core import (
    Lesson, LessonStatus, PaymentStatus,
    InvalidState, REFUND_CUTOFF_SECONDS,
)


@dataclass(frozen=True, slots=True)
class Cancellation:
    """
    Outcome of cancelling a lesson.

    Attributes:
        lead_time: Seconds remaining before the lesson starts (never negative)
        refund: Amount to return to the student (0 when not eligible)
        status: Status after cancellation (always CANCELLED)
        payment_status: Payment status after cancellation
    """
    lead_time: int
    refund: int
    status: LessonStatus
    payment_status: PaymentStatus

    @property
    def refunded(self) -> bool:
        return self.payment_status is PaymentStatus.REFUNDED


def time_until_start(lesson: Lesson, current_time: int) -> int:
    """
    Seconds between current_time and the lesson start.

    Computed with signed arithmetic and clamped at 0, so cancelling after the
    lesson was due to start yields 0 (never eligible for a refund).
    """
    return max(lesson.start_time - current_time, 0)


def is_refund_eligible(
    lesson: Lesson,
    current_time: int,
    cutoff: int = REFUND_CUTOFF_SECONDS,
) -> bool:
    """
    Return True if cancelling now would refund the student.

    Requires a paid lesson and strictly more than cutoff seconds of lead time.
    Exactly cutoff seconds is not enough.
    """
    if lesson.payment_status is not PaymentStatus.PAID:
        return False
    return time_until_start(lesson, current_time) > cutoff


def compute_cancellation(
    lesson: Lesson,
    current_time: int,
    cutoff: int = REFUND_CUTOFF_SECONDS,
) -> Cancellation:
    """
    Compute the result of cancelling a lesson at current_time.

    Args:
        lesson: Lesson being cancelled
        current_time: Time of cancellation, in seconds
        cutoff: Minimum lead time (exclusive) for a refund

    Returns:
        Cancellation. When refunded, refund == lesson.price and
        payment_status is REFUNDED; otherwise refund is 0 and
        payment_status is unchanged.

    Example:
        lesson = Lesson(1, "T", "S", 100000, 3600, 5000,
                        payment_status=PaymentStatus.PAID)
        compute_cancellation(lesson, 10000).refund   # 5000 (90000s > 86400s)
        compute_cancellation(lesson, 20000).refund   # 0    (80000s <= 86400s)
    """
    check_can_cancel(lesson)
    lead_time = time_until_start(lesson, current_time)
    if is_refund_eligible(lesson, current_time, cutoff):
        return Cancellation(
            lead_time=lead_time,
            refund=lesson.price,
            status=LessonStatus.CANCELLED,
            payment_status=PaymentStatus.REFUNDED,
        )
    return Cancellation(
        lead_time=lead_time,
        refund=0,
        status=LessonStatus.CANCELLED,
        payment_status=lesson.payment_status,
    )


def check_can_pay(lesson: Lesson) -> None:
    """
    Raise InvalidState unless the lesson can be paid.

    A lesson is payable while unpaid and not cancelled. Payment after
    completion is allowed because completion does not require payment.
    """
    if lesson.payment_status is not PaymentStatus.UNPAID:
        raise InvalidState(
            f"Lesson {lesson.id} is already {lesson.payment_status.value}"
        )
    if lesson.status is LessonStatus.CANCELLED:
        raise InvalidState(f"Lesson {lesson.id} is cancelled")


def check_can_complete(lesson: Lesson) -> None:
    """
    Raise InvalidState if the lesson was cancelled.

    Payment status is not checked. Completing an already completed lesson
    is allowed and changes nothing.
    """
    if lesson.status is LessonStatus.CANCELLED:
        raise InvalidState(f"Lesson {lesson.id} is cancelled")


def check_can_cancel(lesson: Lesson) -> None:
    """Raise InvalidState unless the lesson is still scheduled."""
    if lesson.status is not LessonStatus.SCHEDULED:
        raise InvalidState(f"Lesson {lesson.id} is already {lesson.status.value}")
