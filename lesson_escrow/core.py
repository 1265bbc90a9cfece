"""
Core types and constants for the lesson escrow system.

This module provides the foundational data structures shared by every component:
1. Constants: reserved wallets, refund cutoff, party index capacity
2. Enums: LessonStatus, PaymentStatus, ResultStatus
3. Exceptions: LessonError and domain-specific error types
4. Immutable data structures: Lesson, LessonChange, LessonEvent, OperationResult

Nothing in this module mutates state. Stores and the engine build on these
types; records are replaced, never edited in place.
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, Optional, Tuple


# ============================================================================
# CONSTANTS
# ============================================================================

# Wallet held by the system itself. Custodies lesson payments between
# payment and withdrawal/refund.
ESCROW_WALLET = "escrow"

# Reserved wallet for issuance. Exempt from balance validation in the
# in-memory gateway so tests and demos can fund students.
SYSTEM_WALLET = "system"

# A paid lesson cancelled with strictly more than this many seconds of lead
# time is refunded in full.
REFUND_CUTOFF_SECONDS = 86400

# Maximum number of lesson ids stored per identity in each party index.
MAX_LESSONS_PER_PARTY = 100

# Record fields fixed at creation.
IMMUTABLE_LESSON_FIELDS = frozenset({
    'id', 'teacher', 'student', 'start_time', 'duration', 'price',
})


# ============================================================================
# ENUMS
# ============================================================================

class LessonStatus(Enum):
    """
    Lifecycle status of a lesson.

    SCHEDULED is the only non-terminal status. COMPLETED and CANCELLED are
    alternatives; a lesson never leaves either of them.
    """
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    """
    Payment status of a lesson.

    UNPAID -> PAID -> REFUNDED. PAID may also be final (completed lesson or
    late cancellation).
    """
    UNPAID = "unpaid"
    PAID = "paid"
    REFUNDED = "refunded"


class ResultStatus(Enum):
    """
    Outcome of an operation submitted through a session.

    OK: All effects of the operation were committed.
    REJECTED: The operation failed and none of its effects were committed.
    """
    OK = "ok"
    REJECTED = "rejected"


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LessonError(Exception):
    """Base exception for all lesson escrow errors."""
    pass


class NotRegistered(LessonError):
    """Raised when a caller acts as a teacher without a registered balance account."""
    pass


class NotFound(LessonError):
    """Raised when a lesson id does not exist in the registry."""
    pass


class Unauthorized(LessonError):
    """Raised when the caller is not a party allowed to perform the operation."""
    pass


class InvalidState(LessonError):
    """Raised when the lesson's status or payment status forbids the requested transition."""
    pass


class InsufficientFunds(LessonError):
    """Raised when a debit would drive a balance below zero."""
    pass


class CapacityExceeded(LessonError):
    """Raised when an identity's party index is already at maximum length."""
    pass


class NothingToWithdraw(LessonError):
    """Raised when a withdrawal is requested with no registered or a zero balance."""
    pass


class TransferFailed(LessonError):
    """Raised when the transfer gateway rejects a value transfer."""
    pass


# ============================================================================
# VALIDATION HELPERS
# ============================================================================

def require_identity(value: str, label: str) -> str:
    """Return value if it is a non-empty identity string, else raise ValueError."""
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{label} cannot be empty")
    return value


def require_amount(value: int, label: str) -> int:
    """
    Return value if it is a non-negative int, else raise ValueError.

    bool is rejected even though it subclasses int.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{label} must be an int, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{label} must be non-negative, got {value}")
    return value


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class Lesson:
    """
    A lesson between a teacher and a student.

    Attributes:
        id: Registry-assigned identifier (starts at 1, never reused).
        teacher: Identity of the teacher who scheduled the lesson.
        student: Identity of the student who pays for the lesson.
        start_time: Scheduled start, in seconds.
        duration: Lesson length, in seconds.
        price: Amount owed by the student, in the single unit of account.
        status: Lifecycle status.
        payment_status: Payment status.

    This class is immutable (frozen=True). The registry replaces records with
    dataclasses.replace() when status fields change.
    """
    id: int
    teacher: str
    student: str
    start_time: int
    duration: int
    price: int
    status: LessonStatus = LessonStatus.SCHEDULED
    payment_status: PaymentStatus = PaymentStatus.UNPAID

    def __post_init__(self):
        if isinstance(self.id, bool) or not isinstance(self.id, int) or self.id <= 0:
            raise ValueError(f"Lesson id must be a positive int, got {self.id!r}")
        require_identity(self.teacher, "teacher")
        require_identity(self.student, "student")
        require_amount(self.start_time, "start_time")
        require_amount(self.duration, "duration")
        require_amount(self.price, "price")
        if not isinstance(self.status, LessonStatus):
            raise ValueError(f"status must be LessonStatus, got {self.status!r}")
        if not isinstance(self.payment_status, PaymentStatus):
            raise ValueError(f"payment_status must be PaymentStatus, got {self.payment_status!r}")

    def is_party(self, identity: str) -> bool:
        """Return True if identity is the lesson's teacher or student."""
        return identity == self.teacher or identity == self.student

    def to_dict(self) -> Dict[str, Any]:
        """Render the record with enum fields as their lowercase string values."""
        return {
            'id': self.id,
            'teacher': self.teacher,
            'student': self.student,
            'start_time': self.start_time,
            'duration': self.duration,
            'price': self.price,
            'status': self.status.value,
            'payment_status': self.payment_status.value,
        }

    def __repr__(self) -> str:
        return (
            f"Lesson(#{self.id} {self.teacher}→{self.student} @{self.start_time} "
            f"{self.price} [{self.status.value}/{self.payment_status.value}])"
        )


@dataclass(frozen=True, slots=True)
class LessonChange:
    """
    Record of a lesson record change for the audit trail.

    Stores complete before/after snapshots so events can be inspected
    without consulting the registry.

    Attributes:
        lesson_id: Id of the lesson that changed
        old: Record before the change (None on creation)
        new: Record after the change
    """
    lesson_id: int
    old: Optional[Lesson]
    new: Lesson

    def changed_fields(self) -> Dict[str, Tuple[Any, Any]]:
        """
        Compute fields that differ between old and new record.

        Returns:
            Dict mapping field name to (old_value, new_value) tuples.
            On creation every field is reported with old_value None.
        """
        changes = {}
        for f in fields(Lesson):
            old_val = getattr(self.old, f.name) if self.old is not None else None
            new_val = getattr(self.new, f.name)
            if old_val != new_val:
                changes[f.name] = (old_val, new_val)
        return changes


@dataclass(frozen=True, slots=True)
class LessonEvent:
    """
    An applied engine operation - represents FACT.

    Appended to LessonEngine.event_log once every effect of an operation
    has been committed. Rejected operations produce no event.

    Attributes:
        sequence_number: Monotonic position within the engine's log
        operation: Operation name (e.g. "pay_for_lesson")
        caller: Identity that invoked the operation
        lesson_id: Lesson affected (None for registration and withdrawal)
        amount: Value moved through the gateway or balance store (0 if none)
        changes: Lesson record changes made by the operation
    """
    sequence_number: int
    operation: str
    caller: str
    lesson_id: Optional[int] = None
    amount: int = 0
    changes: Tuple[LessonChange, ...] = ()

    def __repr__(self) -> str:
        parts = [f"#{self.sequence_number} {self.operation} by {self.caller}"]
        if self.lesson_id is not None:
            parts.append(f"lesson={self.lesson_id}")
        if self.amount:
            parts.append(f"amount={self.amount}")
        return f"LessonEvent({', '.join(parts)})"


@dataclass(frozen=True, slots=True)
class OperationResult:
    """
    Explicit result value for an operation submitted through a session.

    Attributes:
        status: ResultStatus.OK or ResultStatus.REJECTED
        value: Operation return value when OK (lesson id, amount withdrawn, ...)
        error: The LessonError that rejected the operation, if any
    """
    status: ResultStatus
    value: Any = None
    error: Optional[LessonError] = field(default=None)

    @classmethod
    def success(cls, value: Any = True) -> OperationResult:
        return cls(status=ResultStatus.OK, value=value)

    @classmethod
    def failure(cls, error: LessonError) -> OperationResult:
        return cls(status=ResultStatus.REJECTED, error=error)

    @property
    def ok(self) -> bool:
        return self.status is ResultStatus.OK

    @property
    def error_code(self) -> Optional[str]:
        """Exception class name of the rejection (e.g. "Unauthorized"), or None."""
        if self.error is None:
            return None
        return type(self.error).__name__

    def __repr__(self) -> str:
        if self.ok:
            return f"OperationResult(ok, {self.value!r})"
        return f"OperationResult(rejected, {self.error_code}: {self.error})"
