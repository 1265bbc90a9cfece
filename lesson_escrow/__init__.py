"""
lesson_escrow - Lesson Booking and Escrow Engine

Schedules paid lessons between a teacher and a student, holds payments in
escrow, applies the 24-hour refund rule on cancellation, and tracks each
teacher's withdrawable balance.

Usage:
    from lesson_escrow import LessonEngine

    engine = LessonEngine("school")
    engine.gateway.deposit("student", 10000)

    teacher = engine.session("teacher")
    student = engine.session("student")

    teacher.register_as_teacher()
    lesson_id = teacher.schedule_lesson("student", 100000, 3600, 5000).value

    student.pay_for_lesson(lesson_id)          # 5000 held in escrow
    student.cancel_lesson(lesson_id, 10000)    # 90000s lead time -> refunded
"""

# Core types
from .core import (
    Lesson,
    LessonChange,
    LessonEvent,
    LessonStatus,
    PaymentStatus,
    ResultStatus,
    OperationResult,
    LessonError,
    NotRegistered,
    NotFound,
    Unauthorized,
    InvalidState,
    InsufficientFunds,
    CapacityExceeded,
    NothingToWithdraw,
    TransferFailed,
    ESCROW_WALLET,
    SYSTEM_WALLET,
    REFUND_CUTOFF_SECONDS,
    MAX_LESSONS_PER_PARTY,
)

# Stores
from .balances import BalanceStore
from .registry import LessonRegistry
from .party_index import PartyIndex

# Transfer gateway
from .gateway import Transfer, TransferGateway, WalletGateway

# Lifecycle rules
from .lifecycle import (
    Cancellation,
    time_until_start,
    is_refund_eligible,
    compute_cancellation,
    check_can_pay,
    check_can_complete,
    check_can_cancel,
)

# Engine
from .engine import LessonEngine
from .session import LessonSession

__all__ = [
    # Core
    'Lesson', 'LessonChange', 'LessonEvent', 'LessonStatus', 'PaymentStatus',
    'ResultStatus', 'OperationResult',
    'LessonError', 'NotRegistered', 'NotFound', 'Unauthorized', 'InvalidState',
    'InsufficientFunds', 'CapacityExceeded', 'NothingToWithdraw', 'TransferFailed',
    'ESCROW_WALLET', 'SYSTEM_WALLET', 'REFUND_CUTOFF_SECONDS', 'MAX_LESSONS_PER_PARTY',
    # Stores
    'BalanceStore', 'LessonRegistry', 'PartyIndex',
    # Gateway
    'Transfer', 'TransferGateway', 'WalletGateway',
    # Lifecycle
    'Cancellation', 'time_until_start', 'is_refund_eligible', 'compute_cancellation',
    'check_can_pay', 'check_can_complete', 'check_can_cancel',
    # Engine
    'LessonEngine', 'LessonSession',
]

__version__ = '1.0.0'
