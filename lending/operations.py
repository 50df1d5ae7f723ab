"""
operations.py - Admin gateway and lending operations

Every operation is a pure function:

    operation(state, ctx, *args) -> new_state            (admin, deposit)
    operation(state, ctx, *args) -> (new_state, result)  (request, repay)

The input snapshot is never modified. If any check fails the function raises
before building a new snapshot, so nothing partial can escape. LendingEngine
wraps these functions with clock validation, commit and journaling.

Check order for admin operations: caller, then initialization, then value.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Optional, Tuple

from .core import (
    Context, LoanRecord, LoanStatus, PriceSource,
    COLLATERAL_ASSET, DEFAULT_INTEREST_RATE,
    NotAuthorized, AlreadyInitialized, NotInitialized, InvalidAmount,
    InsufficientCollateral, InsufficientPayment, LoanNotActive,
)
from .borrower_index import append_loan, remove_loan
from .pricing_source import validate_asset, validate_price
from .risk import collateral_value, required_collateral, total_due
from .state import EngineState


@dataclass(frozen=True, slots=True)
class RepaymentReceipt:
    """Outcome of a successful repay_loan call."""
    loan_id: int
    principal: int
    interest: int
    total_due: int
    amount_paid: int
    collateral_released: int


# ============================================================================
# GUARDS
# ============================================================================

def _require_owner(state: EngineState, ctx: Context) -> None:
    if ctx.caller != state.owner:
        raise NotAuthorized(f"{ctx.caller} is not the platform owner")


def _require_initialized(state: EngineState) -> None:
    if not state.config.initialized:
        raise NotInitialized("Platform not initialized")


def _require_positive(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidAmount(f"{name} must be int, got {type(value).__name__}")
    if value <= 0:
        raise InvalidAmount(f"{name} must be positive, got {value}")


# ============================================================================
# ADMIN GATEWAY
# ============================================================================

def initialize(state: EngineState, ctx: Context) -> EngineState:
    """
    Open the platform for business. Succeeds once, for the owner only.

    Raises:
        NotAuthorized: If the caller is not the owner
        AlreadyInitialized: If the platform is already initialized
    """
    _require_owner(state, ctx)
    if state.config.initialized:
        raise AlreadyInitialized("Platform already initialized")
    return state.evolve(config=replace(state.config, initialized=True))


def update_minimum_collateral_ratio(
    state: EngineState,
    ctx: Context,
    new_ratio: int,
    enforce_ratio_ordering: bool = False,
) -> EngineState:
    """
    Set the admission ratio (percent).

    Raises:
        NotAuthorized, NotInitialized
        InvalidAmount: If new_ratio is not positive, or (with
                       enforce_ratio_ordering) not above the liquidation threshold
    """
    _require_owner(state, ctx)
    _require_initialized(state)
    _require_positive("new_ratio", new_ratio)
    if enforce_ratio_ordering and state.config.liquidation_threshold >= new_ratio:
        raise InvalidAmount(
            f"Ratio {new_ratio} must exceed liquidation threshold "
            f"{state.config.liquidation_threshold}"
        )
    return state.evolve(config=replace(state.config, minimum_collateral_ratio=new_ratio))


def update_liquidation_threshold(
    state: EngineState,
    ctx: Context,
    new_threshold: int,
    enforce_ratio_ordering: bool = False,
) -> EngineState:
    """
    Set the liquidation threshold (percent).

    Raises:
        NotAuthorized, NotInitialized
        InvalidAmount: If new_threshold is not positive, or (with
                       enforce_ratio_ordering) not below the minimum ratio
    """
    _require_owner(state, ctx)
    _require_initialized(state)
    _require_positive("new_threshold", new_threshold)
    if enforce_ratio_ordering and new_threshold >= state.config.minimum_collateral_ratio:
        raise InvalidAmount(
            f"Threshold {new_threshold} must be below minimum ratio "
            f"{state.config.minimum_collateral_ratio}"
        )
    return state.evolve(config=replace(state.config, liquidation_threshold=new_threshold))


def update_price(state: EngineState, ctx: Context, asset: str, new_price: int) -> EngineState:
    """
    Publish an oracle price.

    Raises:
        NotAuthorized, NotInitialized
        InvalidAsset: If asset is not a recognized symbol
        InvalidPrice: If new_price is not in (0, MAX_PRICE)
    """
    _require_owner(state, ctx)
    _require_initialized(state)
    validate_asset(asset)
    validate_price(new_price)
    return state.evolve(prices=state.prices.set_price(asset, new_price))


# ============================================================================
# LENDING OPERATIONS
# ============================================================================

def deposit_collateral(state: EngineState, ctx: Context, amount: int) -> EngineState:
    """
    Add amount to the platform-wide collateral counter.

    The deposit is not attached to the caller or to any loan.

    Raises:
        NotInitialized
        InvalidAmount: If amount is not positive
    """
    _require_initialized(state)
    _require_positive("amount", amount)
    config = state.config
    return state.evolve(config=replace(
        config, total_collateral_locked=config.total_collateral_locked + amount
    ))


def request_loan(
    state: EngineState,
    ctx: Context,
    collateral_amount: int,
    loan_amount: int,
    prices: Optional[PriceSource] = None,
    scaled_admission_check: bool = False,
) -> Tuple[EngineState, int]:
    """
    Open a loan for ctx.caller.

    Admission: collateral_amount * price >= required_collateral(loan_amount, ratio).

    Args:
        state: Current snapshot
        ctx: Caller and clock
        collateral_amount: Collateral units pledged
        loan_amount: Principal requested
        prices: Price source (defaults to the state's registry)
        scaled_admission_check: Use the // 100 admission formula

    Returns:
        Tuple of (new_state, loan_id)

    Raises:
        NotInitialized: Platform not initialized, or no collateral price
        InvalidAmount: Non-positive amounts, or borrower already has 10 active loans
        InsufficientCollateral: Collateral value below the requirement
    """
    _require_initialized(state)
    _require_positive("collateral_amount", collateral_amount)
    _require_positive("loan_amount", loan_amount)

    source = prices if prices is not None else state.prices
    price = source.price_of(COLLATERAL_ASSET)
    value = collateral_value(collateral_amount, price)
    required = required_collateral(
        loan_amount, state.config.minimum_collateral_ratio, scaled=scaled_admission_check
    )
    if value < required:
        raise InsufficientCollateral(
            f"Collateral value {value} below required {required}"
        )

    loan_id = state.config.next_loan_id()
    loan = LoanRecord(
        loan_id=loan_id,
        borrower=ctx.caller,
        collateral_amount=collateral_amount,
        loan_amount=loan_amount,
        interest_rate=DEFAULT_INTEREST_RATE,
        start_clock=ctx.clock,
        last_interest_clock=ctx.clock,
    )
    user_loans = append_loan(state.user_loans, ctx.caller, loan_id)

    new_state = state.evolve(
        config=replace(state.config, total_loans_issued=loan_id),
        loans=state.with_loan(loan),
        user_loans=user_loans,
    )
    return new_state, loan_id


def repay_loan(
    state: EngineState,
    ctx: Context,
    loan_id: int,
    amount: int,
) -> Tuple[EngineState, RepaymentReceipt]:
    """
    Close an active loan by paying principal plus accrued interest.

    Interest accrues over ctx.clock - last_interest_clock ticks. On success
    the loan is repaid, its collateral is released from the global counter
    and its id leaves the borrower's index; other ids stay.

    Raises:
        NotInitialized
        InvalidLoanId, LoanNotFound
        LoanNotActive: If the loan is repaid or liquidated
        NotAuthorized: If the caller is not the borrower
        InvalidAmount: If amount is not positive, or releasing collateral
                       would take the counter below zero
        InsufficientPayment: If amount is below principal plus interest
    """
    _require_initialized(state)
    loan = state.get_loan(loan_id)
    if not loan.is_active:
        raise LoanNotActive(f"Loan {loan_id} is {loan.status.value}")
    if ctx.caller != loan.borrower:
        raise NotAuthorized(f"{ctx.caller} is not the borrower of loan {loan_id}")
    _require_positive("amount", amount)

    interest, due = total_due(loan, ctx.clock)
    if amount < due:
        raise InsufficientPayment(f"Payment {amount} below amount due {due}")

    config = state.config
    if loan.collateral_amount > config.total_collateral_locked:
        raise InvalidAmount(
            f"Releasing {loan.collateral_amount} exceeds locked collateral "
            f"{config.total_collateral_locked}"
        )

    new_state = state.evolve(
        config=replace(
            config,
            total_collateral_locked=config.total_collateral_locked - loan.collateral_amount,
        ),
        loans=state.with_loan(loan.with_status(LoanStatus.REPAID, clock=ctx.clock)),
        user_loans=remove_loan(state.user_loans, loan.borrower, loan_id),
    )
    receipt = RepaymentReceipt(
        loan_id=loan_id,
        principal=loan.loan_amount,
        interest=interest,
        total_due=due,
        amount_paid=amount,
        collateral_released=loan.collateral_amount,
    )
    return new_state, receipt
