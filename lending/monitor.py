"""
monitor.py - Liquidation Monitor

Host-side sweep that drives LendingEngine.evaluate_liquidation.

The engine only exposes the evaluation primitive; deciding WHEN to run it
belongs to the host. LiquidationMonitor is a ready-made host loop: at each
step it evaluates every active loan in ascending id order.

Execution order each step():
1. Snapshot the active loan ids
2. Evaluate each id through the engine (one journal entry per id)
3. Return the ids that were liquidated
"""

from __future__ import annotations
from typing import Iterable, List, Optional

from .core import Context
from .engine import LendingEngine


class LiquidationMonitor:
    """
    Periodic liquidation sweep over all active loans.

    Features:
    - Deterministic ascending-id evaluation order
    - Full audit trail via the engine journal (one entry per evaluation)
    - Cumulative list of liquidated ids across steps
    """

    def __init__(self, engine: LendingEngine, keeper: Optional[str] = None):
        """
        Args:
            engine: The engine to sweep
            keeper: Identity recorded as the caller when run() builds contexts
                    (default: the engine owner)
        """
        self.engine = engine
        self.keeper = keeper or engine.owner
        self.liquidated: List[int] = []
        self.verbose = engine.verbose

    def step(self, ctx: Context) -> List[int]:
        """
        Evaluate every active loan at ctx.

        Returns:
            Ids liquidated during this step, in evaluation order
        """
        fired: List[int] = []
        for loan_id in self.engine.state.active_loan_ids():
            if self.engine.evaluate_liquidation(ctx, loan_id):
                fired.append(loan_id)

        if self.verbose and fired:
            print(f"[MONITOR] t={ctx.clock} liquidated {fired}")
        self.liquidated.extend(fired)
        return fired

    def run(self, clocks: Iterable[int]) -> List[int]:
        """
        Step through a sequence of clock values as the keeper.

        Returns:
            All ids liquidated across the run
        """
        fired: List[int] = []
        for clock in clocks:
            fired.extend(self.step(Context(self.keeper, clock)))
        return fired
