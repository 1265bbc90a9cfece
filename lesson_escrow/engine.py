"""
engine.py - Lesson Lifecycle Engine

The LessonEngine is the only component that orchestrates state changes.
It owns the three stores (balances, lesson registry, party indexes), talks to
the transfer gateway, and enforces the lesson state machine.

Key responsibilities:
    - Validates caller identity and lesson state before every transition
    - Executes each operation atomically (all effects commit or none do)
    - Serializes operations under one re-entrant lock (single writer)
    - Records every applied operation in an append-only event log

Operation order inside a transaction:
    1. Load and validate (NotFound, Unauthorized, InvalidState, ...)
    2. Check every local effect is feasible (capacity, debit cover)
    3. Call the gateway (the last step that can fail)
    4. Mutate stores (each mutation was proven feasible in step 2)
    5. Append a LessonEvent

A rejection in steps 1-3 leaves every store untouched, so no state is
copied up front or rolled back afterwards.
"""

from __future__ import annotations
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple
import threading

from .core import (
    # Types
    Lesson, LessonChange, LessonEvent, LessonStatus, PaymentStatus,
    # Constants
    MAX_LESSONS_PER_PARTY, REFUND_CUTOFF_SECONDS,
    # Exceptions
    InsufficientFunds, NotRegistered, NothingToWithdraw, Unauthorized,
    CapacityExceeded,
    # Helper functions
    require_amount, require_identity,
)
from .balances import BalanceStore
from .registry import LessonRegistry
from .party_index import PartyIndex
from .gateway import TransferGateway, WalletGateway
from .lifecycle import check_can_complete, check_can_pay, compute_cancellation
from .session import LessonSession


class LessonEngine:
    """
    Booking and escrow engine for paid lessons.

    Every mutating operation takes the authenticated caller identity as its
    first argument. Use session(caller) to bind an identity once and receive
    OperationResult values instead of exceptions.

    Thread Safety:
        Thread-safe. All operations, including queries, run under one
        re-entrant lock, so a payment and a withdrawal for the same teacher,
        or two cancellations of the same lesson, never interleave.

    Example:
        engine = LessonEngine("school", verbose=False)
        engine.gateway.deposit("student", 10000)

        engine.register_as_teacher("teacher")
        lesson_id = engine.schedule_lesson("teacher", "student", 100000, 3600, 5000)
        engine.pay_for_lesson("student", lesson_id)
        engine.complete_lesson("teacher", lesson_id)
        engine.withdraw_balance("teacher")     # 5000
    """

    def __init__(
        self,
        name: str = "lessons",
        gateway: Optional[TransferGateway] = None,
        max_lessons_per_party: Optional[int] = MAX_LESSONS_PER_PARTY,
        refund_cutoff: int = REFUND_CUTOFF_SECONDS,
        reset_balance_on_register: bool = True,
        verbose: bool = True,
    ):
        """
        Create an engine.

        Args:
            name: Engine identifier used in output
            gateway: Transfer gateway (default: a fresh in-memory WalletGateway)
            max_lessons_per_party: Party index capacity per identity (None = unbounded)
            refund_cutoff: Lead time in seconds that a refund must strictly exceed
            reset_balance_on_register: If True, re-registering a teacher zeroes
                their balance. If False, re-registration keeps it.
            verbose: Print applied and rejected operations (default: True)
        """
        require_amount(refund_cutoff, "refund_cutoff")
        self.name = name
        self.gateway: TransferGateway = gateway if gateway is not None else WalletGateway(verbose=verbose)
        self.refund_cutoff = refund_cutoff
        self.reset_balance_on_register = reset_balance_on_register
        self.verbose = verbose

        self.balances = BalanceStore()
        self.registry = LessonRegistry()
        self.teacher_index = PartyIndex("teacher", max_lessons_per_party)
        self.student_index = PartyIndex("student", max_lessons_per_party)

        self.event_log: List[LessonEvent] = []
        self._next_sequence: int = 0
        self._lock = threading.RLock()

    # ========================================================================
    # TRANSACTION BOUNDARY
    # ========================================================================

    @contextmanager
    def _transaction(self, operation: str, caller: str) -> Iterator[None]:
        """
        Run one operation exclusively.

        Holds the engine lock for the whole operation and reports rejections.
        Nothing is copied or rolled back: every operation finishes its checks
        before its first mutation, and the stores are only touched after the
        gateway call has succeeded, so a raised error means nothing changed.
        """
        with self._lock:
            try:
                yield
            except Exception as e:
                if self.verbose:
                    print(f"✗ REJECTED: {operation} by {caller}: {type(e).__name__}: {e}")
                raise

    def _record(
        self,
        operation: str,
        caller: str,
        lesson_id: Optional[int] = None,
        amount: int = 0,
        changes: Tuple[LessonChange, ...] = (),
    ) -> LessonEvent:
        """Append a LessonEvent for an operation whose effects are all applied."""
        event = LessonEvent(
            sequence_number=self._next_sequence,
            operation=operation,
            caller=caller,
            lesson_id=lesson_id,
            amount=amount,
            changes=changes,
        )
        self._next_sequence += 1
        self.event_log.append(event)
        if self.verbose:
            print(f"✓ APPLIED: {event!r}")
        return event

    def _reference(self, lesson_id: int, kind: str) -> str:
        return f"{self.name}:lesson_{lesson_id}_{kind}"

    # ========================================================================
    # LIFECYCLE OPERATIONS (Mutating)
    # ========================================================================

    def register_as_teacher(self, caller: str) -> None:
        """
        Open a balance account for caller with a zero balance.

        Re-registering an existing teacher zeroes their balance unless the
        engine was created with reset_balance_on_register=False. Funds reset
        this way stay in escrow but are no longer owed to anyone, which
        verify_escrow() reports as a discrepancy.
        """
        require_identity(caller, "caller")
        with self._transaction("register_as_teacher", caller):
            if self.balances.is_registered(caller) and not self.reset_balance_on_register:
                self._record("register_as_teacher", caller)
                return
            previous = self.balances.register_account(caller)
            if previous and self.verbose:
                print(f"⚠️  RE-REGISTRATION: {caller} balance {previous} reset to 0")
            self._record("register_as_teacher", caller, amount=previous)

    def schedule_lesson(
        self,
        caller: str,
        student: str,
        start_time: int,
        duration: int,
        price: int,
    ) -> int:
        """
        Create a lesson taught by caller and index it for both parties.

        A teacher may book themselves as the student; the lesson is then
        listed in both of their indexes.

        Args:
            caller: Teacher scheduling the lesson (must be registered)
            student: Student who will pay for the lesson
            start_time: Start time in seconds
            duration: Length in seconds
            price: Price in the unit of account (0 allowed)

        Returns:
            The new lesson id

        Raises:
            NotRegistered: If caller has no balance account
            CapacityExceeded: If either party's index is full
            ValueError: If an argument is malformed
        """
        require_identity(caller, "caller")
        require_identity(student, "student")
        with self._transaction("schedule_lesson", caller):
            if not self.balances.is_registered(caller):
                raise NotRegistered(f"Teacher {caller} not registered")
            if not self.teacher_index.has_capacity(caller):
                raise CapacityExceeded(f"teacher {caller} already has the maximum number of lessons")
            if not self.student_index.has_capacity(student):
                raise CapacityExceeded(f"student {student} already has the maximum number of lessons")

            lesson_id = self.registry.create(caller, student, start_time, duration, price)
            self.teacher_index.append(caller, lesson_id)
            self.student_index.append(student, lesson_id)

            created = LessonChange(lesson_id=lesson_id, old=None, new=self.registry.get(lesson_id))
            self._record("schedule_lesson", caller, lesson_id, changes=(created,))
            return lesson_id

    def pay_for_lesson(self, caller: str, lesson_id: int) -> None:
        """
        Pay for a lesson into escrow and credit the teacher's balance.

        The price moves student -> escrow through the gateway. A zero price
        marks the lesson paid without a transfer.

        Raises:
            NotFound: If the lesson does not exist
            Unauthorized: If caller is not the lesson's student
            InvalidState: If the lesson is already paid/refunded or cancelled
            TransferFailed: If the gateway rejects the transfer
        """
        with self._transaction("pay_for_lesson", caller):
            lesson = self.registry.get(lesson_id)
            if caller != lesson.student:
                raise Unauthorized(f"{caller} is not the student of lesson {lesson_id}")
            check_can_pay(lesson)
            if not self.balances.is_registered(lesson.teacher):
                raise NotRegistered(f"Teacher {lesson.teacher} not registered")

            if lesson.price > 0:
                self.gateway.transfer(
                    lesson.price, caller, self.gateway.escrow_wallet,
                    self._reference(lesson_id, "payment"),
                )

            self.balances.credit(lesson.teacher, lesson.price)
            change = self.registry.update(lesson_id, payment_status=PaymentStatus.PAID)
            self._record("pay_for_lesson", caller, lesson_id, lesson.price, (change,))

    def complete_lesson(self, caller: str, lesson_id: int) -> None:
        """
        Mark a lesson completed. Payment is not a precondition.

        Raises:
            NotFound: If the lesson does not exist
            Unauthorized: If caller is not the lesson's teacher
            InvalidState: If the lesson was cancelled
        """
        with self._transaction("complete_lesson", caller):
            lesson = self.registry.get(lesson_id)
            if caller != lesson.teacher:
                raise Unauthorized(f"{caller} is not the teacher of lesson {lesson_id}")
            check_can_complete(lesson)
            change = self.registry.update(lesson_id, status=LessonStatus.COMPLETED)
            self._record("complete_lesson", caller, lesson_id, changes=(change,))

    def cancel_lesson(self, caller: str, lesson_id: int, current_time: int) -> None:
        """
        Cancel a scheduled lesson, refunding the student if early enough.

        A paid lesson cancelled with more than refund_cutoff seconds of lead
        time is refunded in full: escrow -> student through the gateway, and
        the teacher's balance is debited by the price. Otherwise only the
        status changes; a late-cancelled paid lesson stays paid and the
        teacher keeps the balance.

        Raises:
            NotFound: If the lesson does not exist
            Unauthorized: If caller is neither teacher nor student
            InvalidState: If the lesson is already completed or cancelled
            InsufficientFunds: If the teacher's balance cannot cover the refund
            TransferFailed: If the gateway rejects the refund transfer
        """
        require_amount(current_time, "current_time")
        with self._transaction("cancel_lesson", caller):
            lesson = self.registry.get(lesson_id)
            if not lesson.is_party(caller):
                raise Unauthorized(f"{caller} is not a party to lesson {lesson_id}")

            outcome = compute_cancellation(lesson, current_time, self.refund_cutoff)

            if outcome.refunded:
                # Teacher balance may have been reset by re-registration
                if not self.balances.can_debit(lesson.teacher, outcome.refund):
                    raise InsufficientFunds(
                        f"Teacher {lesson.teacher} balance "
                        f"{self.balances.get_balance(lesson.teacher)} cannot cover refund {outcome.refund}"
                    )
                if outcome.refund > 0:
                    self.gateway.transfer(
                        outcome.refund, self.gateway.escrow_wallet, lesson.student,
                        self._reference(lesson_id, "refund"),
                    )
                self.balances.debit(lesson.teacher, outcome.refund)

            change = self.registry.update(
                lesson_id,
                status=outcome.status,
                payment_status=outcome.payment_status,
            )
            self._record("cancel_lesson", caller, lesson_id, outcome.refund, (change,))

    def withdraw_balance(self, caller: str) -> int:
        """
        Withdraw caller's full balance from escrow. Partial withdrawal is not supported.

        Returns:
            The amount withdrawn

        Raises:
            NothingToWithdraw: If caller has no account or a zero balance
            TransferFailed: If the gateway rejects the transfer
        """
        with self._transaction("withdraw_balance", caller):
            amount = self.balances.get_balance(caller)
            if not self.balances.is_registered(caller) or amount == 0:
                raise NothingToWithdraw(f"{caller} has no balance to withdraw")

            self.gateway.transfer(
                amount, self.gateway.escrow_wallet, caller,
                f"{self.name}:withdraw_{caller}",
            )
            self.balances.debit(caller, amount)
            self._record("withdraw_balance", caller, amount=amount)
            return amount

    # ========================================================================
    # QUERIES (read-only, no authorization)
    # ========================================================================

    def get_lesson(self, lesson_id: int) -> Lesson:
        """
        Return a lesson record.

        Raises:
            NotFound: If the lesson does not exist
        """
        with self._lock:
            return self.registry.get(lesson_id)

    def get_teacher_balance(self, teacher: str) -> int:
        """Return a teacher's withdrawable balance (0 if unregistered)."""
        with self._lock:
            return self.balances.get_balance(teacher)

    def get_teacher_lessons(self, teacher: str) -> Tuple[int, ...]:
        """Return ids of lessons taught by teacher, in creation order."""
        with self._lock:
            return self.teacher_index.list(teacher)

    def get_student_lessons(self, student: str) -> Tuple[int, ...]:
        """Return ids of lessons taken by student, in creation order."""
        with self._lock:
            return self.student_index.list(student)

    def is_teacher(self, identity: str) -> bool:
        """Check if identity has registered as a teacher."""
        with self._lock:
            return self.balances.is_registered(identity)

    # ========================================================================
    # RECONCILIATION
    # ========================================================================

    def verify_escrow(self) -> Dict[str, Any]:
        """
        Verify that escrow holds exactly what is owed to teachers.

        Every payment credits escrow and a teacher balance by the same amount;
        every refund and withdrawal debits both. The escrow wallet balance must
        therefore equal the sum of teacher balances. Re-registration with a
        balance reset breaks this, leaving unowed funds in escrow.

        Assumes this engine is the only user of the gateway's escrow wallet.

        Returns:
            Dict with keys:
            - 'valid': bool - True if escrow == owed
            - 'escrow': int - Current escrow wallet balance
            - 'owed': int - Sum of all teacher balances
            - 'difference': int - escrow - owed
        """
        with self._lock:
            escrow = self.gateway.balance_of(self.gateway.escrow_wallet)
            owed = self.balances.total()
            return {
                'valid': escrow == owed,
                'escrow': escrow,
                'owed': owed,
                'difference': escrow - owed,
            }

    # ========================================================================
    # SESSIONS
    # ========================================================================

    def session(self, caller: str) -> LessonSession:
        """Bind an authenticated caller identity for subsequent operations."""
        require_identity(caller, "caller")
        return LessonSession(self, caller)
