"""
risk.py - Collateral ratio, interest accrual and liquidation

ARCHITECTURE:
=============

1. PURE CALCULATION FUNCTIONS:
   - collateral_ratio, accrued_interest, required_collateral, ...
   - Integers in, integers out. No state, no price lookups.

2. READ-ONLY ASSESSMENT:
   - calculate_loan_health: one LoanRecord + parameters -> LoanHealth

3. STATE TRANSITIONS:
   - liquidate / evaluate_liquidation: EngineState in, EngineState out

Key Formulas (all divisions truncate toward zero):
    collateral_ratio = collateral_amount * price * 100 // loan_amount
    per_tick         = principal * rate // (100 * TICKS_PER_PERIOD)
    accrued_interest = per_tick * elapsed_ticks
    required         = loan_amount * minimum_ratio            (literal)
                     = loan_amount * minimum_ratio // 100     (scaled)

The literal admission formula is about 100x stricter than the ratio scale the
liquidation check uses. It is kept as the default; callers opt into the
scaled form explicitly.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple

from .core import (
    LoanRecord, LoanStatus, PlatformConfig, PriceSource,
    COLLATERAL_ASSET, TICKS_PER_PERIOD,
    InvalidAmount, InvalidLiquidation, LoanNotActive,
)
from .borrower_index import clear_borrower, remove_loan
from .state import EngineState


def _check_amount(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidAmount(f"{name} must be int, got {type(value).__name__}")
    if value < 0:
        raise InvalidAmount(f"{name} cannot be negative, got {value}")


# ============================================================================
# PURE CALCULATION FUNCTIONS
# ============================================================================

def collateral_value(collateral_amount: int, price: int) -> int:
    """Value of collateral_amount units at price."""
    _check_amount("collateral_amount", collateral_amount)
    _check_amount("price", price)
    return collateral_amount * price


def collateral_ratio(collateral_amount: int, loan_amount: int, price: int) -> int:
    """
    Collateral ratio in percent.

    PURE FUNCTION - ratio = (collateral_amount * price * 100) // loan_amount

    Raises:
        InvalidAmount: If loan_amount is not positive or any input is negative

    Example:
        collateral_ratio(10, 300000, 50000)  # 166 (166%)
    """
    _check_amount("loan_amount", loan_amount)
    if loan_amount == 0:
        raise InvalidAmount("loan_amount must be positive to compute a ratio")
    return collateral_value(collateral_amount, price) * 100 // loan_amount


def accrued_interest(principal: int, rate: int, elapsed_ticks: int) -> int:
    """
    Interest owed after elapsed_ticks clock ticks.

    PURE FUNCTION - the per-tick amount is truncated before it is multiplied
    by the elapsed ticks, so small principals accrue nothing:

        accrued_interest(1000, 5, 144)    # (5000 // 14400) * 144 == 0
        accrued_interest(288000, 5, 144)  # (1440000 // 14400) * 144 == 14400

    Raises:
        InvalidAmount: If any input is negative
    """
    _check_amount("principal", principal)
    _check_amount("rate", rate)
    _check_amount("elapsed_ticks", elapsed_ticks)
    per_tick = (principal * rate) // (100 * TICKS_PER_PERIOD)
    return per_tick * elapsed_ticks


def required_collateral(loan_amount: int, minimum_ratio: int, scaled: bool = False) -> int:
    """
    Collateral value needed to open a loan.

    Args:
        loan_amount: Requested principal
        minimum_ratio: Minimum collateral ratio in percent
        scaled: Divide by 100 so the result is on the collateral_ratio scale

    Returns:
        loan_amount * minimum_ratio, or loan_amount * minimum_ratio // 100
    """
    _check_amount("loan_amount", loan_amount)
    _check_amount("minimum_ratio", minimum_ratio)
    required = loan_amount * minimum_ratio
    return required // 100 if scaled else required


def total_due(loan: LoanRecord, clock: int) -> Tuple[int, int]:
    """
    Amount needed to close a loan at clock.

    Returns:
        Tuple of (interest, loan_amount + interest)
    """
    elapsed = clock - loan.last_interest_clock
    if elapsed < 0:
        raise InvalidAmount(
            f"Clock {clock} is before loan {loan.loan_id} interest clock {loan.last_interest_clock}"
        )
    interest = accrued_interest(loan.loan_amount, loan.interest_rate, elapsed)
    return interest, loan.loan_amount + interest


def is_liquidatable(ratio: int, threshold: int) -> bool:
    """A position at or below the threshold is unsafe."""
    return ratio <= threshold


# ============================================================================
# READ-ONLY ASSESSMENT
# ============================================================================

@dataclass(frozen=True, slots=True)
class LoanHealth:
    """Point-in-time risk view of one loan."""
    loan_id: int
    status: LoanStatus
    price: int
    collateral_value: int
    collateral_ratio: int
    liquidation_threshold: int
    accrued_interest: int
    total_due: int
    liquidatable: bool


def calculate_loan_health(
    loan: LoanRecord,
    config: PlatformConfig,
    price: int,
    clock: int,
) -> LoanHealth:
    """
    Assess a loan against the current price and clock.

    PURE FUNCTION - all inputs explicit. Terminal loans report zero interest
    and are never liquidatable.
    """
    ratio = collateral_ratio(loan.collateral_amount, loan.loan_amount, price)
    if loan.is_active:
        interest, due = total_due(loan, clock)
    else:
        interest, due = 0, 0
    return LoanHealth(
        loan_id=loan.loan_id,
        status=loan.status,
        price=price,
        collateral_value=collateral_value(loan.collateral_amount, price),
        collateral_ratio=ratio,
        liquidation_threshold=config.liquidation_threshold,
        accrued_interest=interest,
        total_due=due,
        liquidatable=loan.is_active and is_liquidatable(ratio, config.liquidation_threshold),
    )


# ============================================================================
# STATE TRANSITIONS
# ============================================================================

def liquidate(
    state: EngineState,
    loan_id: int,
    prune_liquidated_only: bool = False,
) -> EngineState:
    """
    Force-close a loan.

    Marks the loan liquidated and clears the borrower's index entry. By
    default the WHOLE entry is cleared, so the borrower's other active loans
    drop out of the index too. With prune_liquidated_only=True only this
    loan's id is removed.

    Collateral is seized, not released: total_collateral_locked is unchanged.
    Liquidating an already-liquidated loan returns the state unchanged.

    Raises:
        LoanNotFound: If the loan does not exist
        InvalidLiquidation: If the loan was repaid
    """
    loan = state.get_loan(loan_id)
    if loan.status is LoanStatus.LIQUIDATED:
        return state
    if loan.status is LoanStatus.REPAID:
        raise InvalidLiquidation(f"Loan {loan_id} is repaid and cannot be liquidated")

    if prune_liquidated_only:
        user_loans = remove_loan(state.user_loans, loan.borrower, loan_id)
    else:
        user_loans = clear_borrower(state.user_loans, loan.borrower)

    return state.evolve(
        loans=state.with_loan(loan.with_status(LoanStatus.LIQUIDATED)),
        user_loans=user_loans,
    )


def evaluate_liquidation(
    state: EngineState,
    loan_id: int,
    prices: PriceSource,
    prune_liquidated_only: bool = False,
) -> Tuple[EngineState, bool]:
    """
    Liquidate the loan if its collateral ratio is at or below the threshold.

    The decision is never an error. Only the preconditions can fail.

    Args:
        state: Current snapshot
        loan_id: Loan to check
        prices: Source for the collateral asset price
        prune_liquidated_only: Passed through to liquidate()

    Returns:
        Tuple of (new_state, fired). new_state is state itself when nothing fired.

    Raises:
        InvalidLoanId: If loan_id is not positive
        LoanNotFound: If the loan does not exist
        LoanNotActive: If the loan is already repaid or liquidated
        NotInitialized: If the collateral asset has no price
    """
    loan = state.get_loan(loan_id)
    if not loan.is_active:
        raise LoanNotActive(f"Loan {loan_id} is {loan.status.value}")

    price = prices.price_of(COLLATERAL_ASSET)
    ratio = collateral_ratio(loan.collateral_amount, loan.loan_amount, price)
    if not is_liquidatable(ratio, state.config.liquidation_threshold):
        return state, False
    return liquidate(state, loan_id, prune_liquidated_only), True
