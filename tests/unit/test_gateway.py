"""
test_gateway.py - Unit tests for the in-memory WalletGateway

Tests:
- Deposits from the system wallet
- Atomic transfers and rejection reasons
- Transfer log ordering
- Injected failures
- Conservation (total supply stays zero)
"""

import pytest

from lesson_escrow import (
    WalletGateway, TransferGateway, Transfer, TransferFailed,
    ESCROW_WALLET, SYSTEM_WALLET,
)


@pytest.fixture
def funded():
    gateway = WalletGateway(verbose=False)
    gateway.deposit("alice", 1000)
    return gateway


class TestWalletGatewayBasics:

    def test_implements_protocol(self):
        assert isinstance(WalletGateway(verbose=False), TransferGateway)

    def test_default_escrow_wallet(self):
        assert WalletGateway(verbose=False).escrow_wallet == ESCROW_WALLET

    def test_custom_escrow_wallet(self):
        assert WalletGateway("vault", verbose=False).escrow_wallet == "vault"

    def test_system_wallet_cannot_be_escrow(self):
        with pytest.raises(ValueError):
            WalletGateway(SYSTEM_WALLET, verbose=False)

    def test_unknown_wallet_balance_is_zero(self):
        assert WalletGateway(verbose=False).balance_of("nobody") == 0

    def test_deposit_issues_from_system(self, funded):
        assert funded.balance_of("alice") == 1000
        assert funded.balance_of(SYSTEM_WALLET) == -1000
        assert funded.total_supply() == 0


class TestTransfers:

    def test_transfer_moves_value(self, funded):
        record = funded.transfer(400, "alice", ESCROW_WALLET, "lesson_1_payment")
        assert isinstance(record, Transfer)
        assert record.amount == 400
        assert (record.source, record.dest) == ("alice", ESCROW_WALLET)
        assert record.reference == "lesson_1_payment"
        assert funded.balance_of("alice") == 600
        assert funded.balance_of(ESCROW_WALLET) == 400
        assert funded.total_supply() == 0

    def test_transfer_entire_balance(self, funded):
        funded.transfer(1000, "alice", "bob", "all")
        assert funded.balance_of("alice") == 0
        assert funded.balance_of("bob") == 1000

    def test_log_sequence_numbers(self, funded):
        funded.transfer(1, "alice", "bob", "a")
        funded.transfer(1, "bob", "carol", "b")
        assert [t.sequence_number for t in funded.transfer_log] == [0, 1, 2]
        assert [t.reference for t in funded.transfer_log] == ["deposit_alice", "a", "b"]

    @pytest.mark.parametrize("amount, reason", [
        (0, "amount must be positive"),
        (-5, "amount must be positive"),
        (1.5, "amount must be an int"),
        (True, "amount must be an int"),
    ])
    def test_invalid_amounts_rejected(self, funded, amount, reason):
        with pytest.raises(TransferFailed, match=reason):
            funded.transfer(amount, "alice", "bob", "x")

    def test_same_wallet_rejected(self, funded):
        with pytest.raises(TransferFailed, match="must be different"):
            funded.transfer(1, "alice", "alice", "x")

    def test_empty_wallet_rejected(self, funded):
        with pytest.raises(TransferFailed, match="cannot be empty"):
            funded.transfer(1, "", "bob", "x")

    def test_insufficient_funds_rejected_atomically(self, funded):
        log_before = list(funded.transfer_log)
        with pytest.raises(TransferFailed, match="insufficient funds"):
            funded.transfer(1001, "alice", "bob", "x")
        assert funded.balance_of("alice") == 1000
        assert funded.balance_of("bob") == 0
        assert funded.transfer_log == log_before

    def test_rejection_does_not_open_wallets(self, funded):
        with pytest.raises(TransferFailed):
            funded.transfer(5, "ghost", "bob", "x")
        assert "ghost" not in funded.balances
        assert "bob" not in funded.balances


class TestInjectedFailure:

    def test_fail_next_rejects_once(self, funded):
        funded.fail_next("network down")
        with pytest.raises(TransferFailed, match="network down"):
            funded.transfer(10, "alice", "bob", "x")
        assert funded.balance_of("alice") == 1000
        funded.transfer(10, "alice", "bob", "x")
        assert funded.balance_of("bob") == 10


class TestVerboseOutput:

    def test_verbose_prints(self, capsys):
        gateway = WalletGateway(verbose=True)
        gateway.deposit("alice", 5)
        with pytest.raises(TransferFailed):
            gateway.transfer(6, "alice", "bob", "too_much")
        out = capsys.readouterr().out
        assert "✓ TRANSFER" in out
        assert "✗ TRANSFER REJECTED [too_much]" in out

    def test_quiet(self, capsys):
        WalletGateway(verbose=False).deposit("alice", 5)
        assert capsys.readouterr().out == ""
