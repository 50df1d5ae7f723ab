"""
engine.py - Stateful lending engine

LendingEngine is the only object that holds a mutable reference to engine
state. It is the host-facing surface of the library.

Key responsibilities:
    - Runs each pure operation against the current EngineState snapshot
    - Commits the resulting snapshot only if the operation succeeded
    - Rejects contexts whose clock runs backwards
    - Journals every mutating call, applied or rejected (always logs)
    - Serves read-only views that never touch the journal

Thread Safety:
    Not thread-safe. The host serializes calls; one call is one transaction.

Example:
    engine = LendingEngine(owner="admin")
    engine.initialize(Context("admin", 1))
    engine.update_price(Context("admin", 2), "BTC", 50000)
    engine.deposit_collateral(Context("alice", 3), 100)
    loan_id = engine.request_loan(Context("alice", 4), 100, 30)
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Mapping, Optional, Tuple

from .core import (
    Context, LoanRecord, PriceSource, LendingError,
    RECOGNIZED_ASSETS, COLLATERAL_ASSET,
)
from .config import EngineConfig
from .state import EngineState
from .risk import LoanHealth, calculate_loan_health, evaluate_liquidation
from .operations import RepaymentReceipt
from . import operations


class OperationOutcome(Enum):
    """
    Outcome of a mutating call.

    APPLIED: The new snapshot was committed.
    REJECTED: The operation raised a LendingError; state is unchanged.
    """
    APPLIED = "applied"
    REJECTED = "rejected"


@dataclass(frozen=True, slots=True)
class JournalEntry:
    """
    Audit record of one mutating call.

    Attributes:
        sequence: Monotonic position in the journal
        operation: Operation name (e.g. "request_loan")
        caller: Context caller
        clock: Context clock
        outcome: APPLIED or REJECTED
        detail: Result summary, or the error message
        error_code: LendingError.code when rejected
    """
    sequence: int
    operation: str
    caller: str
    clock: int
    outcome: OperationOutcome
    detail: str = ""
    error_code: Optional[int] = None

    def __repr__(self) -> str:
        mark = "✓" if self.outcome is OperationOutcome.APPLIED else "✗"
        return (f"[{self.sequence:06d}] t={self.clock} {mark} {self.operation} "
                f"by {self.caller}: {self.detail}")


@dataclass(frozen=True, slots=True)
class PlatformStats:
    """Totals and parameters, as returned by platform_stats()."""
    initialized: bool
    minimum_collateral_ratio: int
    liquidation_threshold: int
    fee_rate: int
    total_collateral_locked: int
    total_loans_issued: int
    active_loans: int


class LendingEngine:
    """
    Collateralized lending engine with atomic operations and an audit journal.

    Design Principles:
        - One call, one snapshot: operations build a new EngineState or raise.
        - Errors propagate unchanged to the host after being journaled.
        - The engine never reads wall-clock time or an identity source; both
          arrive in the Context.
    """

    def __init__(
        self,
        owner: str,
        config: Optional[EngineConfig] = None,
        price_source: Optional[PriceSource] = None,
        verbose: bool = False,
        initial_clock: int = 0,
    ):
        """
        Create an engine.

        Args:
            owner: Identity allowed through the admin gateway
            config: Starting parameters and behavior options (default: EngineConfig())
            price_source: Valuation override; the admin-fed registry is used when None
            verbose: Print one line per mutating call (default: False)
            initial_clock: Starting logical clock
        """
        self.config = config or EngineConfig()
        self.price_source = price_source
        self.verbose = verbose
        self.journal: List[JournalEntry] = []
        self._state = EngineState(
            owner=owner,
            config=self.config.initial_platform_config(),
            clock=initial_clock,
        )

    # ========================================================================
    # STATE ACCESS
    # ========================================================================

    @property
    def state(self) -> EngineState:
        """Current committed snapshot (immutable)."""
        return self._state

    @property
    def owner(self) -> str:
        return self._state.owner

    @property
    def clock(self) -> int:
        """Clock of the last committed operation."""
        return self._state.clock

    def _prices(self) -> PriceSource:
        return self.price_source if self.price_source is not None else self._state.prices

    # ========================================================================
    # EXECUTION
    # ========================================================================

    def _execute(
        self,
        operation: str,
        ctx: Context,
        fn: Callable[..., Any],
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        """
        Run fn(state, ctx, *args, **kwargs) and commit its snapshot.

        fn returns either a new EngineState or (new EngineState, result).

        Raises:
            ValueError: If ctx.clock is behind the last committed clock
            LendingError: Whatever fn raised; state is left unchanged
        """
        if ctx.clock < self._state.clock:
            raise ValueError(
                f"Cannot move clock backwards: {ctx.clock} < {self._state.clock}"
            )

        try:
            outcome = fn(self._state, ctx, *args, **kwargs)
        except LendingError as e:
            self._record(operation, ctx, OperationOutcome.REJECTED, str(e), e.code)
            raise

        if isinstance(outcome, tuple):
            new_state, result = outcome
        else:
            new_state, result = outcome, None

        self._state = new_state.evolve(clock=ctx.clock)
        self._record(operation, ctx, OperationOutcome.APPLIED, "" if result is None else repr(result))
        return result

    def _record(
        self,
        operation: str,
        ctx: Context,
        outcome: OperationOutcome,
        detail: str,
        error_code: Optional[int] = None,
    ) -> None:
        entry = JournalEntry(
            sequence=len(self.journal),
            operation=operation,
            caller=ctx.caller,
            clock=ctx.clock,
            outcome=outcome,
            detail=detail,
            error_code=error_code,
        )
        self.journal.append(entry)
        if self.verbose:
            if outcome is OperationOutcome.APPLIED:
                print(f"✓ APPLIED: {operation} by {ctx.caller} at t={ctx.clock} {detail}".rstrip())
            else:
                print(f"✗ REJECTED: {operation} by {ctx.caller} at t={ctx.clock}: {detail}")

    # ========================================================================
    # ADMIN GATEWAY
    # ========================================================================

    def initialize(self, ctx: Context) -> None:
        self._execute("initialize", ctx, operations.initialize)

    def update_minimum_collateral_ratio(self, ctx: Context, new_ratio: int) -> None:
        self._execute(
            "update_minimum_collateral_ratio", ctx,
            operations.update_minimum_collateral_ratio, new_ratio,
            enforce_ratio_ordering=self.config.enforce_ratio_ordering,
        )

    def update_liquidation_threshold(self, ctx: Context, new_threshold: int) -> None:
        self._execute(
            "update_liquidation_threshold", ctx,
            operations.update_liquidation_threshold, new_threshold,
            enforce_ratio_ordering=self.config.enforce_ratio_ordering,
        )

    def update_price(self, ctx: Context, asset: str, new_price: int) -> None:
        self._execute("update_price", ctx, operations.update_price, asset, new_price)

    # ========================================================================
    # LENDING OPERATIONS
    # ========================================================================

    def deposit_collateral(self, ctx: Context, amount: int) -> None:
        self._execute("deposit_collateral", ctx, operations.deposit_collateral, amount)

    def request_loan(self, ctx: Context, collateral_amount: int, loan_amount: int) -> int:
        """Open a loan for ctx.caller and return its id."""
        return self._execute(
            "request_loan", ctx, operations.request_loan,
            collateral_amount, loan_amount,
            prices=self._prices(),
            scaled_admission_check=self.config.scaled_admission_check,
        )

    def repay_loan(self, ctx: Context, loan_id: int, amount: int) -> RepaymentReceipt:
        """Repay principal plus interest on one of ctx.caller's loans."""
        return self._execute("repay_loan", ctx, operations.repay_loan, loan_id, amount)

    def evaluate_liquidation(self, ctx: Context, loan_id: int) -> bool:
        """
        Liquidate loan_id if it is at or below the liquidation threshold.

        Any caller may trigger the check. Returns True when the loan was
        liquidated, False when it was healthy; both are successful calls.
        """
        prices = self._prices()
        prune = self.config.prune_liquidated_only

        def _evaluate(state: EngineState, _ctx: Context) -> Tuple[EngineState, bool]:
            return evaluate_liquidation(state, loan_id, prices, prune_liquidated_only=prune)

        return self._execute("evaluate_liquidation", ctx, _evaluate)

    # ========================================================================
    # READ-ONLY VIEWS
    # ========================================================================

    def loan_details(self, loan_id: int) -> LoanRecord:
        return self._state.get_loan(loan_id)

    def user_loans(self, account: str) -> Tuple[int, ...]:
        return tuple(self._state.user_loans.get(account, ()))

    def platform_stats(self) -> PlatformStats:
        config = self._state.config
        return PlatformStats(
            initialized=config.initialized,
            minimum_collateral_ratio=config.minimum_collateral_ratio,
            liquidation_threshold=config.liquidation_threshold,
            fee_rate=config.fee_rate,
            total_collateral_locked=config.total_collateral_locked,
            total_loans_issued=config.total_loans_issued,
            active_loans=len(self._state.active_loan_ids()),
        )

    @staticmethod
    def valid_assets() -> Tuple[str, ...]:
        return RECOGNIZED_ASSETS

    def get_price(self, asset: str) -> int:
        return self._prices().price_of(asset)

    def loan_health(self, loan_id: int, clock: Optional[int] = None) -> LoanHealth:
        """Risk view of a loan at clock (default: the last committed clock)."""
        loan = self._state.get_loan(loan_id)
        return calculate_loan_health(
            loan,
            self._state.config,
            self._prices().price_of(COLLATERAL_ASSET),
            self._state.clock if clock is None else clock,
        )

    # ========================================================================
    # COPY AND STORE
    # ========================================================================

    def clone(self) -> LendingEngine:
        """
        Independent copy of this engine.

        Snapshots are immutable, so the clone shares the current EngineState
        and gets its own copy of the journal.
        """
        cloned = LendingEngine.__new__(LendingEngine)
        cloned.config = self.config
        cloned.price_source = self.price_source
        cloned.verbose = self.verbose
        cloned.journal = list(self.journal)
        cloned._state = self._state
        return cloned

    def to_store(self) -> dict:
        """Current snapshot in the external store layout."""
        return self._state.to_store()

    @classmethod
    def from_store(
        cls,
        raw: Mapping[str, Any],
        config: Optional[EngineConfig] = None,
        price_source: Optional[PriceSource] = None,
        verbose: bool = False,
    ) -> LendingEngine:
        """
        Rebuild an engine from a store mapping. The journal starts empty.

        Raises:
            StoreFormatError: If the mapping is malformed
        """
        engine = cls.__new__(cls)
        engine.config = config or EngineConfig()
        engine.price_source = price_source
        engine.verbose = verbose
        engine.journal = []
        engine._state = EngineState.from_store(raw)
        return engine
