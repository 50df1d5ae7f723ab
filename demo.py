#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Learn the Lending Engine Step by Step

This is a pedagogical demonstration of how the collateralized lending engine
works. Each step builds on the previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3:  Foundation     - The engine, the admin gateway, the price oracle
  4-6:  Borrowing      - Deposits, admission, the two admission formulas
  7-8:  Repayment      - Interest on the logical clock, closing a loan
  9-10: Risk           - Price crash, liquidation and its index side effect
  11:   Operations     - The journal, clone() and the store layout

Run:
    python demo.py                       # Interactive mode
    python demo.py --quick               # Run all steps without pausing
    python demo.py --config lending.yaml # Use a YAML configuration
"""

from dataclasses import dataclass
import sys

from lending import (
    LendingEngine, EngineConfig, Context, LiquidationMonitor, LendingError,
    InsufficientCollateral, load_config,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    owner: str = "admin"
    btc_price: int = 50000
    crash_price: int = 345

    # Collateral units deposited into the platform counter
    deposit: int = 1000

    # Loan that the literal admission formula rejects
    reference_collateral: int = 10
    reference_loan: int = 300000

    # Loan repaid after one accounting period (144 ticks)
    repay_collateral: int = 864
    repay_loan: int = 288000


CONFIG = DemoConfig()

QUICK_MODE = "--quick" in sys.argv


def engine_config() -> EngineConfig:
    if "--config" in sys.argv:
        return load_config(sys.argv[sys.argv.index("--config") + 1])
    return EngineConfig()


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    """Print a step header with learning objective."""
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    """Print a section header within a step."""
    print(f"\n--- {text} ---\n")


def show_stats(engine: LendingEngine):
    stats = engine.platform_stats()
    print(f"Initialized:        {stats.initialized}")
    print(f"Minimum ratio:      {stats.minimum_collateral_ratio}%")
    print(f"Liq. threshold:     {stats.liquidation_threshold}%")
    print(f"Collateral locked:  {stats.total_collateral_locked}")
    print(f"Loans issued:       {stats.total_loans_issued}")
    print(f"Active loans:       {stats.active_loans}")


# ============================================================================
# PHASE 1: FOUNDATION (Steps 1-3)
# ============================================================================

def step_01_empty_engine() -> LendingEngine:
    step_header(1, "The Empty Engine",
        "An engine starts closed: nothing works until the owner initializes it.")

    print("""
    The engine is a library. The host hands it a Context with every call:

    1. caller - who is calling (already authenticated by the host)
    2. clock  - a logical clock that never moves backwards

    verbose=True prints one line for every mutating call.
    """)
    wait_for_enter()

    print(f">>> engine = LendingEngine(owner='{CONFIG.owner}', verbose=True)")
    engine = LendingEngine(owner=CONFIG.owner, config=engine_config(), verbose=True)

    section_header("Initial State")
    show_stats(engine)

    section_header("Try to deposit before initialization")
    try:
        engine.deposit_collateral(Context("alice", 1), 100)
    except LendingError as e:
        print(f"Rejected with code {e.code}: {e}")
    return engine


def step_02_initialize(engine: LendingEngine):
    step_header(2, "The Admin Gateway",
        "Only the owner may initialize, tune parameters, or publish prices.")

    print(">>> engine.initialize(Context('mallory', 2))")
    try:
        engine.initialize(Context("mallory", 2))
    except LendingError as e:
        print(f"Rejected with code {e.code}: {e}")

    print(f"\n>>> engine.initialize(Context('{CONFIG.owner}', 2))")
    engine.initialize(Context(CONFIG.owner, 2))

    section_header("Key Insight")
    print("""
    Admin calls check the caller first, then initialization, then the value.
    A stranger always gets NotAuthorized (100), whatever else is wrong.
    """)


def step_03_price_oracle(engine: LendingEngine):
    step_header(3, "The Price Oracle",
        "Collateral is valued in BTC at the last price the owner published.")

    print(f">>> engine.update_price(Context('{CONFIG.owner}', 3), 'BTC', {CONFIG.btc_price})")
    engine.update_price(Context(CONFIG.owner, 3), "BTC", CONFIG.btc_price)

    for asset, price in (("ETH", 10), ("BTC", 0)):
        try:
            engine.update_price(Context(CONFIG.owner, 3), asset, price)
        except LendingError as e:
            print(f"{asset}={price}: rejected with code {e.code}")

    print(f"\nValid assets: {engine.valid_assets()}")
    print(f"BTC price:    {engine.get_price('BTC')}")


# ============================================================================
# PHASE 2: BORROWING (Steps 4-6)
# ============================================================================

def step_04_deposit(engine: LendingEngine):
    step_header(4, "Depositing Collateral",
        "Deposits feed one platform-wide counter; they are not tied to a loan.")

    engine.deposit_collateral(Context("alice", 4), CONFIG.deposit)
    show_stats(engine)


def step_05_literal_admission(engine: LendingEngine) -> int:
    step_header(5, "Admission",
        "request_loan checks collateral_amount * price >= loan_amount * ratio.")

    c, loan = CONFIG.reference_collateral, CONFIG.reference_loan
    print(f">>> engine.request_loan(Context('alice', 5), {c}, {loan})")
    try:
        engine.request_loan(Context("alice", 5), c, loan)
    except InsufficientCollateral as e:
        print(f"Rejected: {e}")

    print("""
    The literal check multiplies by the ratio without dividing by 100, so it
    demands about 100x the collateral the liquidation ratio would suggest.
    A position that satisfies it is far above the liquidation threshold.
    """)

    print(">>> engine.request_loan(Context('alice', 5), 100, 30000)")
    loan_id = engine.request_loan(Context("alice", 5), 100, 30000)
    health = engine.loan_health(loan_id)
    print(f"Loan {loan_id}: collateral ratio {health.collateral_ratio}%")
    return loan_id


def step_06_scaled_admission():
    step_header(6, "The Scaled Admission Option",
        "EngineConfig(scaled_admission_check=True) divides the requirement by 100.")

    engine = LendingEngine(CONFIG.owner, config=EngineConfig(scaled_admission_check=True))
    engine.initialize(Context(CONFIG.owner, 1))
    engine.update_price(Context(CONFIG.owner, 2), "BTC", CONFIG.btc_price)
    loan_id = engine.request_loan(
        Context("alice", 3), CONFIG.reference_collateral, CONFIG.reference_loan
    )
    print(f"Accepted loan {loan_id}: {engine.loan_details(loan_id)}")
    print(f"Collateral ratio: {engine.loan_health(loan_id).collateral_ratio}%")


# ============================================================================
# PHASE 3: REPAYMENT (Steps 7-8)
# ============================================================================

def step_07_interest(engine: LendingEngine) -> int:
    step_header(7, "Interest on the Logical Clock",
        "Interest accrues per tick: (principal * 5 // 14400) * elapsed ticks.")

    loan_id = engine.request_loan(
        Context("bob", 10), CONFIG.repay_collateral, CONFIG.repay_loan
    )
    for clock in (10, 82, 154):
        health = engine.loan_health(loan_id, clock=clock)
        print(f"t={clock:>4}  interest={health.accrued_interest:>6}  due={health.total_due}")

    section_header("Key Insight")
    print("""
    The per-tick amount truncates BEFORE it is multiplied, so a principal
    below 2,880 never accrues anything at the default 5% rate.
    """)
    return loan_id


def step_08_repay(engine: LendingEngine, loan_id: int):
    step_header(8, "Repaying a Loan",
        "Only the borrower can repay, and the payment must cover principal + interest.")

    try:
        engine.repay_loan(Context("bob", 154), loan_id, 302399)
    except LendingError as e:
        print(f"Short by one: rejected with code {e.code}")

    receipt = engine.repay_loan(Context("bob", 154), loan_id, 302400)
    print(f"Receipt: {receipt}")
    show_stats(engine)


# ============================================================================
# PHASE 4: RISK (Steps 9-10)
# ============================================================================

def step_09_crash(engine: LendingEngine, loan_id: int):
    step_header(9, "A Price Crash",
        "A loan at or below the liquidation threshold can be liquidated by anyone.")

    second = engine.request_loan(Context("alice", 160), 900, 30000)
    print(f"alice's index: {engine.user_loans('alice')}")

    engine.update_price(Context(CONFIG.owner, 161), "BTC", CONFIG.crash_price)
    for lid in (loan_id, second):
        print(f"Loan {lid}: ratio {engine.loan_health(lid).collateral_ratio}%")
    return second


def step_10_liquidation(engine: LendingEngine, second: int):
    step_header(10, "Liquidation",
        "A keeper sweep liquidates the unsafe loan; collateral stays locked.")

    monitor = LiquidationMonitor(engine, keeper="keeper")
    fired = monitor.run([162])
    print(f"Liquidated: {fired}")
    print(f"alice's index: {engine.user_loans('alice')}")
    print(f"Loan {second} status: {engine.loan_details(second).status.value}")

    section_header("Key Insight")
    print("""
    By default liquidation clears the borrower's WHOLE index entry, so the
    healthy loan disappears from user_loans() while staying active. Set
    prune_liquidated_only in the configuration to remove only the
    liquidated id.
    """)


# ============================================================================
# PHASE 5: OPERATIONS (Step 11)
# ============================================================================

def step_11_journal_and_store(engine: LendingEngine):
    step_header(11, "Journal, Clone and Store",
        "Every mutating call is journaled; the state can be saved and restored.")

    section_header("Last journal entries")
    for entry in engine.journal[-5:]:
        print(f"  {entry!r}")

    copy = engine.clone()
    copy.deposit_collateral(Context("carol", 200), 1)
    print(f"\nOriginal locked: {engine.platform_stats().total_collateral_locked}")
    print(f"Clone locked:    {copy.platform_stats().total_collateral_locked}")

    restored = LendingEngine.from_store(engine.to_store())
    print(f"Restored equals original: {restored.state == engine.state}")


def main():
    print("=" * 70)
    print("       LENDING ENGINE TUTORIAL")
    print("=" * 70)

    engine = step_01_empty_engine()
    wait_for_enter()
    step_02_initialize(engine)
    wait_for_enter()
    step_03_price_oracle(engine)
    wait_for_enter()

    step_04_deposit(engine)
    wait_for_enter()
    first = step_05_literal_admission(engine)
    wait_for_enter()
    step_06_scaled_admission()
    wait_for_enter()

    bob_loan = step_07_interest(engine)
    wait_for_enter()
    step_08_repay(engine, bob_loan)
    wait_for_enter()

    second = step_09_crash(engine, first)
    wait_for_enter()
    step_10_liquidation(engine, second)
    wait_for_enter()

    step_11_journal_and_store(engine)

    print("\n" + "=" * 70)
    print("       TUTORIAL COMPLETE!")
    print("=" * 70)
    print("""
    Next steps:
      - Edit lending.yaml and run: python demo.py --config lending.yaml
      - Run tests: pytest tests/
    """)


if __name__ == "__main__":
    main()
