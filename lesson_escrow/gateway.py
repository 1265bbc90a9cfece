"""
gateway.py - Escrow / Transfer Gateway

The engine never holds funds itself. Every movement of value between a
student, the escrow wallet and a teacher goes through a TransferGateway:

    pay:      student  -> escrow
    refund:   escrow   -> student
    withdraw: escrow   -> teacher

A gateway transfer either completes or raises TransferFailed with no effect.

WalletGateway is an in-memory implementation for tests, demos and
simulations. Production deployments supply their own gateway backed by a
real payment rail.
"""

from __future__ import annotations
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, runtime_checkable

from .core import (
    ESCROW_WALLET, SYSTEM_WALLET,
    TransferFailed,
)


@dataclass(frozen=True, slots=True)
class Transfer:
    """
    A completed transfer of value between two wallets.

    Attributes:
        sequence_number: Monotonic position within the gateway's log
        amount: Amount moved (positive int)
        source: Wallet debited
        dest: Wallet credited
        reference: Caller-supplied reference (e.g. "lesson_1_payment")
    """
    sequence_number: int
    amount: int
    source: str
    dest: str
    reference: str

    def __repr__(self) -> str:
        return f"Transfer(#{self.sequence_number} {self.amount}: {self.source}→{self.dest} [{self.reference}])"


@runtime_checkable
class TransferGateway(Protocol):
    """
    Interface to the external value-transfer service.

    Implementations must be atomic: transfer() either moves the full amount
    and returns a Transfer, or raises TransferFailed and moves nothing.
    """

    @property
    def escrow_wallet(self) -> str:
        """Wallet that custodies lesson payments."""
        ...

    def balance_of(self, wallet: str) -> int:
        """Return the wallet's balance (0 for unknown wallets)."""
        ...

    def transfer(self, amount: int, source: str, dest: str, reference: str) -> Transfer:
        """
        Move amount from source to dest.

        Raises:
            TransferFailed: If the transfer is rejected for any reason
        """
        ...


class WalletGateway:
    """
    In-memory wallet transfer service.

    Wallets hold non-negative int balances and are opened implicitly on
    first use. SYSTEM_WALLET is exempt from balance validation and is the
    source of deposits, so total_supply() stays at zero across all wallets.

    Example:
        gateway = WalletGateway(verbose=False)
        gateway.deposit("alice", 10000)
        gateway.transfer(5000, "alice", gateway.escrow_wallet, "lesson_1_payment")
    """

    def __init__(self, escrow_wallet: str = ESCROW_WALLET, verbose: bool = True):
        """
        Args:
            escrow_wallet: Wallet id used to custody lesson payments
            verbose: Print each applied/rejected transfer (default: True)
        """
        if escrow_wallet == SYSTEM_WALLET:
            raise ValueError("escrow wallet cannot be the system wallet")
        self._escrow_wallet = escrow_wallet
        self.verbose = verbose
        self.balances: Dict[str, int] = defaultdict(int)
        self.transfer_log: List[Transfer] = []
        self._next_sequence: int = 0
        self._fail_next: Optional[str] = None

    @property
    def escrow_wallet(self) -> str:
        return self._escrow_wallet

    def balance_of(self, wallet: str) -> int:
        return self.balances.get(wallet, 0)

    def total_supply(self) -> int:
        """
        Sum of all wallet balances, including the system wallet.

        Deposits are issued from the system wallet, so this is always 0.
        """
        return sum(self.balances[w] for w in sorted(self.balances))

    def fail_next(self, reason: str = "gateway unavailable") -> None:
        """Make the next transfer() call fail with TransferFailed(reason)."""
        self._fail_next = reason

    def deposit(self, wallet: str, amount: int) -> Transfer:
        """Fund a wallet by issuing amount from the system wallet."""
        return self.transfer(amount, SYSTEM_WALLET, wallet, f"deposit_{wallet}")

    def transfer(self, amount: int, source: str, dest: str, reference: str) -> Transfer:
        """
        Move amount from source to dest atomically.

        Checks performed before any balance changes:
        1. Injected failure (fail_next)
        2. Amount is a positive int
        3. Source and dest are non-empty and different
        4. Source holds at least amount (system wallet exempt)

        Returns:
            The Transfer record appended to transfer_log

        Raises:
            TransferFailed: If any check fails
        """
        reason = self._validate(amount, source, dest)
        if reason:
            if self.verbose:
                print(f"✗ TRANSFER REJECTED [{reference}]: {reason}")
            raise TransferFailed(reason)

        self.balances[source] -= amount
        self.balances[dest] += amount

        record = Transfer(
            sequence_number=self._next_sequence,
            amount=amount,
            source=source,
            dest=dest,
            reference=reference,
        )
        self._next_sequence += 1
        self.transfer_log.append(record)

        if self.verbose:
            print(f"✓ TRANSFER {record!r}")
        return record

    def _validate(self, amount: int, source: str, dest: str) -> str:
        """Return a rejection reason, or an empty string if the transfer is valid."""
        if self._fail_next is not None:
            reason, self._fail_next = self._fail_next, None
            return reason
        if isinstance(amount, bool) or not isinstance(amount, int):
            return f"amount must be an int, got {type(amount).__name__}"
        if amount <= 0:
            return f"amount must be positive, got {amount}"
        if not source or not dest:
            return "source and dest cannot be empty"
        if source == dest:
            return "source and dest must be different"
        if source != SYSTEM_WALLET and self.balances.get(source, 0) < amount:
            return f"insufficient funds: {source} has {self.balances.get(source, 0)} < {amount}"
        return ""
