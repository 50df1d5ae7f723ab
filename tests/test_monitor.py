"""
test_monitor.py - Tests for LiquidationMonitor
"""

import pytest

from lending import LiquidationMonitor, LoanStatus, OperationOutcome

from tests.helpers import OWNER, ctx


@pytest.fixture
def book(funded_engine):
    """alice: one thin loan (id 1); bob: one thick loan (id 2)."""
    funded_engine.request_loan(ctx("alice", 4), 100, 30000)
    funded_engine.request_loan(ctx("bob", 4), 500, 30000)
    return funded_engine


class TestLiquidationMonitor:

    def test_nothing_fires_when_healthy(self, book):
        monitor = LiquidationMonitor(book)
        assert monitor.step(ctx(OWNER, 5)) == []
        assert [e.detail for e in book.journal[-2:]] == ["False", "False"]

    def test_fires_only_unsafe_loans(self, book):
        book.update_price(ctx(OWNER, 5), "BTC", 345)
        monitor = LiquidationMonitor(book)
        assert monitor.step(ctx(OWNER, 6)) == [1]
        assert book.loan_details(1).status is LoanStatus.LIQUIDATED
        assert book.loan_details(2).is_active

    def test_skips_terminal_loans(self, book):
        book.update_price(ctx(OWNER, 5), "BTC", 345)
        monitor = LiquidationMonitor(book)
        monitor.step(ctx(OWNER, 6))
        before = len(book.journal)
        assert monitor.step(ctx(OWNER, 7)) == []
        # Only loan 2 is still active
        assert len(book.journal) == before + 1
        assert book.journal[-1].outcome is OperationOutcome.APPLIED

    def test_run_uses_keeper_identity(self, book):
        book.update_price(ctx(OWNER, 5), "BTC", 50)
        monitor = LiquidationMonitor(book, keeper="keeper")
        assert monitor.run([6, 7]) == [1, 2]
        assert monitor.liquidated == [1, 2]
        assert {e.caller for e in book.journal[-2:]} == {"keeper"}

    def test_default_keeper_is_owner(self, book):
        assert LiquidationMonitor(book).keeper == OWNER

    def test_verbose(self, book, capsys):
        book.verbose = True
        book.update_price(ctx(OWNER, 5), "BTC", 345)
        LiquidationMonitor(book).step(ctx(OWNER, 6))
        assert "[MONITOR] t=6 liquidated [1]" in capsys.readouterr().out
