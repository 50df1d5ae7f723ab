"""
borrower_index.py - Per-account list of active loan ids

The index maps an account to the ids of its loans in creation order, capped
at MAX_ACTIVE_LOANS entries. All functions are pure: they take an index and
return a new one, leaving the input untouched.

    append_loan   -> loan creation
    remove_loan   -> repayment (drops one id, keeps the rest)
    clear_borrower -> liquidation (drops the whole entry)
"""

from __future__ import annotations
from typing import Mapping, Tuple

from .core import BorrowerIndex, MAX_ACTIVE_LOANS, InvalidAmount


def active_loan_ids(index: Mapping[str, Tuple[int, ...]], account: str) -> Tuple[int, ...]:
    """Return the account's active loan ids, or an empty tuple."""
    return tuple(index.get(account, ()))


def append_loan(
    index: Mapping[str, Tuple[int, ...]],
    account: str,
    loan_id: int,
    capacity: int = MAX_ACTIVE_LOANS,
) -> BorrowerIndex:
    """
    Append loan_id to the account's entry.

    Raises:
        InvalidAmount: If the account already tracks `capacity` loans
    """
    current = active_loan_ids(index, account)
    if len(current) >= capacity:
        raise InvalidAmount(
            f"{account} already has {len(current)} active loans (max {capacity})"
        )
    return {**index, account: current + (loan_id,)}


def remove_loan(
    index: Mapping[str, Tuple[int, ...]],
    account: str,
    loan_id: int,
) -> BorrowerIndex:
    """Remove one id from the account's entry; other ids keep their order."""
    remaining = tuple(i for i in active_loan_ids(index, account) if i != loan_id)
    updated = dict(index)
    if remaining:
        updated[account] = remaining
    else:
        updated.pop(account, None)
    return updated


def clear_borrower(index: Mapping[str, Tuple[int, ...]], account: str) -> BorrowerIndex:
    """Drop the account's entry entirely, including ids of unrelated loans."""
    updated = dict(index)
    updated.pop(account, None)
    return updated
