"""
Unit tests for the borrower index functions.
"""

import pytest

from lending import InvalidAmount, MAX_ACTIVE_LOANS
from lending.borrower_index import (
    active_loan_ids, append_loan, remove_loan, clear_borrower,
)


class TestAppendLoan:

    def test_first_loan_creates_entry(self):
        assert append_loan({}, "alice", 1) == {"alice": (1,)}

    def test_keeps_creation_order(self):
        index = append_loan(append_loan({}, "alice", 4), "alice", 2)
        assert active_loan_ids(index, "alice") == (4, 2)

    def test_input_untouched(self):
        index = {"alice": (1,)}
        append_loan(index, "alice", 2)
        assert index == {"alice": (1,)}

    def test_capacity(self):
        index = {}
        for loan_id in range(1, MAX_ACTIVE_LOANS + 1):
            index = append_loan(index, "alice", loan_id)
        with pytest.raises(InvalidAmount):
            append_loan(index, "alice", MAX_ACTIVE_LOANS + 1)
        # Capacity is per account
        assert append_loan(index, "bob", 99)["bob"] == (99,)

    def test_custom_capacity(self):
        with pytest.raises(InvalidAmount):
            append_loan({"alice": (1, 2)}, "alice", 3, capacity=2)


class TestRemoveLoan:

    def test_removes_only_that_id(self):
        index = remove_loan({"alice": (1, 2, 3)}, "alice", 2)
        assert index == {"alice": (1, 3)}

    def test_last_id_drops_entry(self):
        assert remove_loan({"alice": (1,), "bob": (2,)}, "alice", 1) == {"bob": (2,)}

    def test_unknown_id_is_noop(self):
        assert remove_loan({"alice": (1,)}, "alice", 7) == {"alice": (1,)}


class TestClearBorrower:

    def test_drops_all_ids(self):
        assert clear_borrower({"alice": (1, 2, 3), "bob": (4,)}, "alice") == {"bob": (4,)}

    def test_unknown_account(self):
        assert clear_borrower({"bob": (4,)}, "alice") == {"bob": (4,)}

    def test_missing_account_reads_empty(self):
        assert active_loan_ids({}, "alice") == ()
