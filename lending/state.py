"""
state.py - Engine state snapshot

EngineState bundles everything an operation reads or writes:

    owner       - identity allowed through the admin gateway
    config      - PlatformConfig (parameters + running totals)
    prices      - PriceRegistry
    loans       - loan_id -> LoanRecord
    user_loans  - account -> active loan ids (borrower index)
    clock       - last logical clock value committed

Snapshots are never mutated. Operations receive one snapshot and return a new
one built with evolve(); a failed operation simply never produces its
snapshot, which is what makes each call all-or-nothing.

The to_store()/from_store() pair converts a snapshot to and from the plain
key/value layout an external store keeps.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Tuple

from .core import (
    PlatformConfig, LoanRecord, LoanStatus, BorrowerIndex, StoreRecord,
    LoanNotFound, InvalidLoanId, StoreFormatError,
)
from .pricing_source import PriceRegistry


@dataclass(frozen=True, slots=True)
class EngineState:
    owner: str
    config: PlatformConfig = field(default_factory=PlatformConfig)
    prices: PriceRegistry = field(default_factory=PriceRegistry)
    loans: Mapping[int, LoanRecord] = field(default_factory=dict)
    user_loans: BorrowerIndex = field(default_factory=dict)
    clock: int = 0

    def __post_init__(self):
        if not self.owner or not self.owner.strip():
            raise ValueError("EngineState owner cannot be empty")

    def evolve(self, **changes: Any) -> EngineState:
        """Return a new snapshot with the given fields replaced."""
        return replace(self, **changes)

    # ------------------------------------------------------------------
    # Loan ledger access
    # ------------------------------------------------------------------

    def get_loan(self, loan_id: int) -> LoanRecord:
        """
        Look up a loan record.

        Raises:
            InvalidLoanId: If loan_id is not a positive integer
            LoanNotFound: If no loan has that id
        """
        if not isinstance(loan_id, int) or isinstance(loan_id, bool) or loan_id < 1:
            raise InvalidLoanId(f"Loan id must be a positive int, got {loan_id!r}")
        try:
            return self.loans[loan_id]
        except KeyError:
            raise LoanNotFound(f"Loan {loan_id} not found") from None

    def with_loan(self, loan: LoanRecord) -> Dict[int, LoanRecord]:
        """Return a copy of the loan table with loan inserted or replaced."""
        return {**self.loans, loan.loan_id: loan}

    def active_loan_ids(self) -> Tuple[int, ...]:
        """All active loan ids in ascending order."""
        return tuple(sorted(
            loan_id for loan_id, loan in self.loans.items()
            if loan.status is LoanStatus.ACTIVE
        ))

    # ------------------------------------------------------------------
    # External store layout
    # ------------------------------------------------------------------

    def to_store(self) -> StoreRecord:
        """
        Serialize into the store layout.

        Returns:
            {
              'owner': str, 'clock': int,
              'config': {initialized, min_ratio, liq_threshold, fee_rate,
                         total_locked, total_loans},
              'prices': {symbol: {'price': int}},
              'loans': {loan_id: {borrower, collateral_amount, ...}},
              'user_loans': {account: {'active_loans': [ids]}},
            }
        """
        return {
            'owner': self.owner,
            'clock': self.clock,
            'config': self.config.to_store(),
            'prices': {asset: {'price': price} for asset, price in self.prices.items()},
            'loans': {loan_id: self.loans[loan_id].to_store() for loan_id in sorted(self.loans)},
            'user_loans': {
                account: {'active_loans': list(ids)}
                for account, ids in sorted(self.user_loans.items())
            },
        }

    @classmethod
    def from_store(cls, raw: Mapping[str, Any]) -> EngineState:
        """
        Rebuild a snapshot from the store layout produced by to_store().

        Raises:
            StoreFormatError: If a section is missing or malformed
        """
        try:
            owner = raw['owner']
            clock = int(raw.get('clock', 0))
            config = PlatformConfig.from_store(raw['config'])
            prices = PriceRegistry({
                asset: int(entry['price']) for asset, entry in raw.get('prices', {}).items()
            })
            loans = {
                int(loan_id): LoanRecord.from_store(int(loan_id), entry)
                for loan_id, entry in raw.get('loans', {}).items()
            }
            user_loans = {
                account: tuple(int(i) for i in entry['active_loans'])
                for account, entry in raw.get('user_loans', {}).items()
            }
        except StoreFormatError:
            raise
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise StoreFormatError(f"Malformed store mapping: {e}") from e

        return cls(
            owner=owner,
            config=config,
            prices=prices,
            loans=loans,
            user_loans=user_loans,
            clock=clock,
        )
