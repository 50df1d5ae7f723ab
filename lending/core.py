"""
Core types and constants for the lending engine.

This module provides the foundational data structures and protocols:
1. Constants: recognized assets, clock grid, capacity limits, parameter defaults
2. Enums: LoanStatus
3. Exceptions: LendingError and the coded error taxonomy
4. Immutable data structures: Context, PlatformConfig, LoanRecord
5. Protocols: PriceSource for injectable collateral valuation

Everything here is immutable. State transitions live in operations.py and
risk.py; the only object that holds a mutable reference to state is
LendingEngine.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Tuple, Any, Optional, Protocol, runtime_checkable


# ============================================================================
# CONSTANTS
# ============================================================================

# Asset symbols accepted by the price registry. Only COLLATERAL_ASSET is
# ever consulted by lending logic.
RECOGNIZED_ASSETS: Tuple[str, ...] = ("BTC", "STX")
COLLATERAL_ASSET = "BTC"

# Exclusive upper bound on any oracle price.
MAX_PRICE = 1_000_000_000_000

# Logical clock ticks per accounting period (one day on a ten-minute grid).
TICKS_PER_PERIOD = 144

# Fixed interest rate (percent per period) stamped on every new loan.
DEFAULT_INTEREST_RATE = 5

# Maximum number of active loan ids tracked per borrower.
MAX_ACTIVE_LOANS = 10

DEFAULT_MINIMUM_COLLATERAL_RATIO = 150
DEFAULT_LIQUIDATION_THRESHOLD = 120
DEFAULT_FEE_RATE = 1


# ============================================================================
# TYPE ALIASES
# ============================================================================

# Mapping from asset symbol to oracle price.
PriceMap = Dict[str, int]

# Mapping from account identity to its ordered active loan ids.
BorrowerIndex = Dict[str, Tuple[int, ...]]

# Raw record shape used by the external store.
StoreRecord = Dict[str, Any]


# ============================================================================
# ENUMS
# ============================================================================

class LoanStatus(str, Enum):
    """Lifecycle status of a loan record."""
    ACTIVE = "active"           # Open position, accrues interest
    REPAID = "repaid"           # Closed by the borrower, collateral released
    LIQUIDATED = "liquidated"   # Force-closed, collateral seized

    @property
    def is_terminal(self) -> bool:
        return self is not LoanStatus.ACTIVE


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LendingError(Exception):
    """
    Base exception for all lending engine errors.

    Every subclass carries a stable integer ``code`` so a host can surface the
    error kind verbatim without depending on class names.
    """
    code: int = 0

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__name__)


class NotAuthorized(LendingError):
    """Raised when the caller is not allowed to perform the operation."""
    code = 100


class AlreadyInitialized(LendingError):
    """Raised when initialize() is called a second time."""
    code = 101


class NotInitialized(LendingError):
    """Raised before initialize() has succeeded, or when a price was never set."""
    code = 102


class InvalidAmount(LendingError):
    """Raised for non-positive amounts, exhausted capacity, and counter underflow."""
    code = 103


class InsufficientCollateral(LendingError):
    """Raised when collateral value does not cover the required amount."""
    code = 104


class InsufficientPayment(InsufficientCollateral):
    """Raised when a repayment does not cover principal plus interest."""
    pass


class LoanNotFound(LendingError):
    """Raised when no loan record exists for the given id."""
    code = 105


class LoanNotActive(LendingError):
    """Raised when an operation requires an active loan."""
    code = 106


class InvalidLiquidation(LendingError):
    """Raised when a repaid loan is asked to transition to liquidated."""
    code = 107


class InvalidPrice(LendingError):
    """Raised when an oracle price is zero, negative, or above MAX_PRICE."""
    code = 108


class InvalidAsset(LendingError):
    """Raised when an asset symbol is not in RECOGNIZED_ASSETS."""
    code = 109


class InvalidLoanId(LendingError):
    """Raised when a loan id is not a positive integer."""
    code = 110


class StoreFormatError(LendingError):
    """Raised when an external store mapping cannot be decoded."""
    code = 111


# ============================================================================
# CALL CONTEXT
# ============================================================================

@dataclass(frozen=True, slots=True)
class Context:
    """
    Host-supplied transaction context.

    Attributes:
        caller: Authenticated account identity of the caller
        clock: Logical clock value (monotonically increasing, never wall time)
    """
    caller: str
    clock: int

    def __post_init__(self):
        if not self.caller or not self.caller.strip():
            raise ValueError("Context caller cannot be empty")
        if not isinstance(self.clock, int) or isinstance(self.clock, bool):
            raise ValueError(f"Context clock must be int, got {type(self.clock)}")
        if self.clock < 0:
            raise ValueError(f"Context clock cannot be negative, got {self.clock}")


# ============================================================================
# PLATFORM CONFIGURATION
# ============================================================================

@dataclass(frozen=True, slots=True)
class PlatformConfig:
    """
    Platform-wide parameters and running totals.

    Attributes:
        initialized: Guards all operations; never reset once True
        minimum_collateral_ratio: Admission ratio in percent (150 = 150%)
        liquidation_threshold: Ratio in percent at or below which a loan is unsafe
        fee_rate: Reserved fee rate in percent
        total_collateral_locked: Deposits minus collateral released by repayment
        total_loans_issued: Loans ever created; also the last allocated loan id
    """
    initialized: bool = False
    minimum_collateral_ratio: int = DEFAULT_MINIMUM_COLLATERAL_RATIO
    liquidation_threshold: int = DEFAULT_LIQUIDATION_THRESHOLD
    fee_rate: int = DEFAULT_FEE_RATE
    total_collateral_locked: int = 0
    total_loans_issued: int = 0

    def next_loan_id(self) -> int:
        return self.total_loans_issued + 1

    def to_store(self) -> StoreRecord:
        return {
            'initialized': self.initialized,
            'min_ratio': self.minimum_collateral_ratio,
            'liq_threshold': self.liquidation_threshold,
            'fee_rate': self.fee_rate,
            'total_locked': self.total_collateral_locked,
            'total_loans': self.total_loans_issued,
        }

    @classmethod
    def from_store(cls, raw: StoreRecord) -> PlatformConfig:
        try:
            return cls(
                initialized=bool(raw['initialized']),
                minimum_collateral_ratio=int(raw['min_ratio']),
                liquidation_threshold=int(raw['liq_threshold']),
                fee_rate=int(raw['fee_rate']),
                total_collateral_locked=int(raw['total_locked']),
                total_loans_issued=int(raw['total_loans']),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise StoreFormatError(f"Malformed config record: {e}") from e


# ============================================================================
# LOAN RECORD
# ============================================================================

@dataclass(frozen=True, slots=True)
class LoanRecord:
    """
    Immutable snapshot of one loan.

    borrower, collateral_amount, loan_amount, interest_rate and start_clock
    are fixed at creation. Only last_interest_clock and status change, and
    each change produces a new record.
    """
    loan_id: int
    borrower: str
    collateral_amount: int
    loan_amount: int
    interest_rate: int
    start_clock: int
    last_interest_clock: int
    status: LoanStatus = LoanStatus.ACTIVE

    def __post_init__(self):
        if self.loan_id < 1:
            raise InvalidLoanId(f"Loan id must be positive, got {self.loan_id}")
        if not self.borrower or not self.borrower.strip():
            raise ValueError("LoanRecord borrower cannot be empty")
        if not isinstance(self.status, LoanStatus):
            object.__setattr__(self, 'status', LoanStatus(self.status))

    @property
    def is_active(self) -> bool:
        return self.status is LoanStatus.ACTIVE

    def with_status(self, status: LoanStatus, clock: Optional[int] = None) -> LoanRecord:
        """Return a copy with a new status (and optionally a new interest clock)."""
        if clock is None:
            return replace(self, status=status)
        return replace(self, status=status, last_interest_clock=clock)

    def to_store(self) -> StoreRecord:
        return {
            'borrower': self.borrower,
            'collateral_amount': self.collateral_amount,
            'loan_amount': self.loan_amount,
            'interest_rate': self.interest_rate,
            'start_clock': self.start_clock,
            'last_interest_clock': self.last_interest_clock,
            'status': self.status.value,
        }

    @classmethod
    def from_store(cls, loan_id: int, raw: StoreRecord) -> LoanRecord:
        try:
            return cls(
                loan_id=int(loan_id),
                borrower=str(raw['borrower']),
                collateral_amount=int(raw['collateral_amount']),
                loan_amount=int(raw['loan_amount']),
                interest_rate=int(raw['interest_rate']),
                start_clock=int(raw['start_clock']),
                last_interest_clock=int(raw['last_interest_clock']),
                status=LoanStatus(raw['status']),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise StoreFormatError(f"Malformed loan record {loan_id}: {e}") from e

    def __repr__(self) -> str:
        return (f"Loan#{self.loan_id}({self.borrower}: {self.loan_amount} "
                f"against {self.collateral_amount} {COLLATERAL_ASSET}, {self.status.value})")


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class PriceSource(Protocol):
    """
    Capability that values collateral.

    The engine only ever asks for a single asset price. Implementations raise
    NotInitialized when they have no price for the asset.
    """

    def price_of(self, asset: str) -> int:
        """Return the current unit price of an asset."""
        ...
