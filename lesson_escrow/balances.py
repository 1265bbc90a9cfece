"""
balances.py - Teacher Balance Store

Durable mapping of teacher identity -> withdrawable balance.

Every balance is a non-negative int in the single unit of account. The store
guards that invariant itself: a debit that would go below zero raises
InsufficientFunds and leaves the balance unchanged, even though the engine
only ever debits amounts it previously credited.
"""

from __future__ import annotations
from typing import Dict, List

from .core import (
    InsufficientFunds, NotRegistered,
    require_amount, require_identity,
)


class BalanceStore:
    """
    Per-teacher balance accounts.

    An account exists once register_account() has been called for the
    teacher. Reads of unknown teachers return 0; writes to unknown teachers
    raise NotRegistered.

    Thread Safety:
        Not thread-safe. LessonEngine serializes all access.
    """

    def __init__(self):
        self._balances: Dict[str, int] = {}

    def is_registered(self, teacher: str) -> bool:
        """Check if a teacher has a balance account."""
        return teacher in self._balances

    def get_balance(self, teacher: str) -> int:
        """Return the teacher's balance (0 if the teacher has no account)."""
        return self._balances.get(teacher, 0)

    def list_accounts(self) -> List[str]:
        """List all registered teachers, sorted."""
        return sorted(self._balances)

    def total(self) -> int:
        """Sum of all balances, accumulated in sorted account order."""
        return sum(self._balances[t] for t in self.list_accounts())

    def register_account(self, teacher: str) -> int:
        """
        Create (or re-create) a teacher's account with a zero balance.

        Re-registration re-zeroes the balance. Callers must not rely on it
        preserving funds.

        Returns:
            The balance held before registration (0 for a new account)
        """
        require_identity(teacher, "teacher")
        previous = self._balances.get(teacher, 0)
        self._balances[teacher] = 0
        return previous

    def credit(self, teacher: str, amount: int) -> int:
        """
        Add amount to a teacher's balance.

        Returns:
            The new balance

        Raises:
            NotRegistered: If the teacher has no account
            ValueError: If amount is not a non-negative int
        """
        require_amount(amount, "amount")
        if teacher not in self._balances:
            raise NotRegistered(f"Teacher {teacher} not registered")
        self._balances[teacher] += amount
        return self._balances[teacher]

    def debit(self, teacher: str, amount: int) -> int:
        """
        Subtract amount from a teacher's balance.

        Returns:
            The new balance

        Raises:
            NotRegistered: If the teacher has no account
            InsufficientFunds: If the balance would become negative
            ValueError: If amount is not a non-negative int
        """
        require_amount(amount, "amount")
        if teacher not in self._balances:
            raise NotRegistered(f"Teacher {teacher} not registered")
        current = self._balances[teacher]
        if amount > current:
            raise InsufficientFunds(
                f"Teacher {teacher}: debit {amount} exceeds balance {current}"
            )
        self._balances[teacher] = current - amount
        return self._balances[teacher]

    def can_debit(self, teacher: str, amount: int) -> bool:
        """Return True if debit(teacher, amount) would succeed."""
        return teacher in self._balances and 0 <= amount <= self._balances[teacher]

    def snapshot(self) -> Dict[str, int]:
        """Return an independent copy of all balances, for audits and comparisons."""
        return dict(self._balances)
