"""
lending - Collateralized Lending Engine

Loans against BTC collateral, an admin-fed price oracle, logical-clock
interest accrual and threshold liquidation, as a library driven by a host.

Usage:
    from lending import LendingEngine, Context

    engine = LendingEngine(owner="admin")
    engine.initialize(Context("admin", 1))
    engine.update_price(Context("admin", 2), "BTC", 50000)

    engine.deposit_collateral(Context("alice", 3), 100)
    loan_id = engine.request_loan(Context("alice", 4), 100, 30)

    # Host-driven risk check (e.g. after every price update)
    engine.evaluate_liquidation(Context("keeper", 5), loan_id)
"""

# Core types
from .core import (
    Context,
    PlatformConfig,
    LoanRecord,
    LoanStatus,
    PriceSource,
    LendingError,
    NotAuthorized,
    AlreadyInitialized,
    NotInitialized,
    InvalidAmount,
    InsufficientCollateral,
    InsufficientPayment,
    LoanNotFound,
    LoanNotActive,
    InvalidLiquidation,
    InvalidPrice,
    InvalidAsset,
    InvalidLoanId,
    StoreFormatError,
    RECOGNIZED_ASSETS,
    COLLATERAL_ASSET,
    MAX_PRICE,
    TICKS_PER_PERIOD,
    DEFAULT_INTEREST_RATE,
    MAX_ACTIVE_LOANS,
)

# Configuration
from .config import EngineConfig, load_config, parse_config

# Prices
from .pricing_source import PriceRegistry, StaticPriceSource

# State
from .state import EngineState

# Risk engine
from .risk import (
    LoanHealth,
    collateral_value,
    collateral_ratio,
    accrued_interest,
    required_collateral,
    total_due,
    is_liquidatable,
    calculate_loan_health,
    liquidate,
    evaluate_liquidation,
)

# Operations
from .operations import (
    RepaymentReceipt,
    initialize,
    update_minimum_collateral_ratio,
    update_liquidation_threshold,
    update_price,
    deposit_collateral,
    request_loan,
    repay_loan,
)

# Engine
from .engine import LendingEngine, JournalEntry, OperationOutcome, PlatformStats
from .monitor import LiquidationMonitor

__all__ = [
    # Core
    'Context', 'PlatformConfig', 'LoanRecord', 'LoanStatus', 'PriceSource',
    'LendingError', 'NotAuthorized', 'AlreadyInitialized', 'NotInitialized',
    'InvalidAmount', 'InsufficientCollateral', 'InsufficientPayment',
    'LoanNotFound', 'LoanNotActive', 'InvalidLiquidation', 'InvalidPrice',
    'InvalidAsset', 'InvalidLoanId', 'StoreFormatError',
    'RECOGNIZED_ASSETS', 'COLLATERAL_ASSET', 'MAX_PRICE', 'TICKS_PER_PERIOD',
    'DEFAULT_INTEREST_RATE', 'MAX_ACTIVE_LOANS',
    # Configuration
    'EngineConfig', 'load_config', 'parse_config',
    # Prices
    'PriceRegistry', 'StaticPriceSource',
    # State
    'EngineState',
    # Risk
    'LoanHealth', 'collateral_value', 'collateral_ratio', 'accrued_interest',
    'required_collateral', 'total_due', 'is_liquidatable',
    'calculate_loan_health', 'liquidate', 'evaluate_liquidation',
    # Operations
    'RepaymentReceipt', 'initialize', 'update_minimum_collateral_ratio',
    'update_liquidation_threshold', 'update_price', 'deposit_collateral',
    'request_loan', 'repay_loan',
    # Engine
    'LendingEngine', 'JournalEntry', 'OperationOutcome', 'PlatformStats',
    'LiquidationMonitor',
]

__version__ = '1.0.0'
