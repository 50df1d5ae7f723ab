"""
test_core.py - Unit tests for core.py

Tests:
- Error codes and the exception hierarchy
- Context validation
- PlatformConfig defaults and store records
- LoanRecord construction, status transitions and store records
- PriceSource protocol conformance
"""

import pytest

from lending import (
    Context, PlatformConfig, LoanRecord, LoanStatus, PriceSource,
    LendingError, NotAuthorized, AlreadyInitialized, NotInitialized,
    InvalidAmount, InsufficientCollateral, InsufficientPayment, LoanNotFound,
    LoanNotActive, InvalidLiquidation, InvalidPrice, InvalidAsset,
    InvalidLoanId, StoreFormatError, PriceRegistry, StaticPriceSource,
    RECOGNIZED_ASSETS, COLLATERAL_ASSET, MAX_PRICE, TICKS_PER_PERIOD,
    DEFAULT_INTEREST_RATE, MAX_ACTIVE_LOANS,
)


def make_loan(**overrides):
    fields = dict(
        loan_id=1,
        borrower="alice",
        collateral_amount=100,
        loan_amount=30000,
        interest_rate=DEFAULT_INTEREST_RATE,
        start_clock=10,
        last_interest_clock=10,
    )
    fields.update(overrides)
    return LoanRecord(**fields)


class TestConstants:

    def test_collateral_asset_is_recognized(self):
        assert COLLATERAL_ASSET in RECOGNIZED_ASSETS
        assert RECOGNIZED_ASSETS == ("BTC", "STX")

    def test_grid_and_limits(self):
        assert TICKS_PER_PERIOD == 144
        assert MAX_ACTIVE_LOANS == 10
        assert DEFAULT_INTEREST_RATE == 5
        assert MAX_PRICE == 10 ** 12


class TestErrorCodes:
    """Every error kind carries a stable code."""

    @pytest.mark.parametrize("error_cls, code", [
        (NotAuthorized, 100),
        (AlreadyInitialized, 101),
        (NotInitialized, 102),
        (InvalidAmount, 103),
        (InsufficientCollateral, 104),
        (InsufficientPayment, 104),
        (LoanNotFound, 105),
        (LoanNotActive, 106),
        (InvalidLiquidation, 107),
        (InvalidPrice, 108),
        (InvalidAsset, 109),
        (InvalidLoanId, 110),
        (StoreFormatError, 111),
    ])
    def test_code(self, error_cls, code):
        assert error_cls.code == code
        assert issubclass(error_cls, LendingError)

    def test_insufficient_payment_is_insufficient_collateral(self):
        with pytest.raises(InsufficientCollateral):
            raise InsufficientPayment("short")

    def test_default_message_is_class_name(self):
        assert str(LoanNotFound()) == "LoanNotFound"
        assert str(LoanNotFound("Loan 7 not found")) == "Loan 7 not found"


class TestContext:

    def test_valid_context(self):
        ctx = Context("alice", 5)
        assert ctx.caller == "alice"
        assert ctx.clock == 5

    def test_empty_caller_rejected(self):
        with pytest.raises(ValueError):
            Context("", 1)
        with pytest.raises(ValueError):
            Context("   ", 1)

    def test_negative_clock_rejected(self):
        with pytest.raises(ValueError):
            Context("alice", -1)

    def test_non_int_clock_rejected(self):
        with pytest.raises(ValueError):
            Context("alice", 1.5)
        with pytest.raises(ValueError):
            Context("alice", True)

    def test_frozen(self):
        ctx = Context("alice", 1)
        with pytest.raises(AttributeError):
            ctx.clock = 2


class TestPlatformConfig:

    def test_defaults(self):
        config = PlatformConfig()
        assert config.initialized is False
        assert config.minimum_collateral_ratio == 150
        assert config.liquidation_threshold == 120
        assert config.fee_rate == 1
        assert config.total_collateral_locked == 0
        assert config.total_loans_issued == 0

    def test_next_loan_id(self):
        assert PlatformConfig().next_loan_id() == 1
        assert PlatformConfig(total_loans_issued=7).next_loan_id() == 8

    def test_store_record_keys(self):
        record = PlatformConfig(initialized=True, total_collateral_locked=50).to_store()
        assert record == {
            'initialized': True,
            'min_ratio': 150,
            'liq_threshold': 120,
            'fee_rate': 1,
            'total_locked': 50,
            'total_loans': 0,
        }

    def test_from_store_rebuilds_equal_config(self):
        config = PlatformConfig(initialized=True, minimum_collateral_ratio=175,
                                total_collateral_locked=9, total_loans_issued=3)
        assert PlatformConfig.from_store(config.to_store()) == config

    def test_from_store_missing_key(self):
        with pytest.raises(StoreFormatError):
            PlatformConfig.from_store({'initialized': True})


class TestLoanRecord:

    def test_defaults_to_active(self):
        loan = make_loan()
        assert loan.status is LoanStatus.ACTIVE
        assert loan.is_active

    def test_zero_id_rejected(self):
        with pytest.raises(InvalidLoanId):
            make_loan(loan_id=0)

    def test_empty_borrower_rejected(self):
        with pytest.raises(ValueError):
            make_loan(borrower="")

    def test_status_string_coerced(self):
        assert make_loan(status="repaid").status is LoanStatus.REPAID

    def test_with_status_keeps_original(self):
        loan = make_loan()
        repaid = loan.with_status(LoanStatus.REPAID, clock=50)
        assert loan.status is LoanStatus.ACTIVE
        assert loan.last_interest_clock == 10
        assert repaid.status is LoanStatus.REPAID
        assert repaid.last_interest_clock == 50
        assert repaid.start_clock == 10

    def test_with_status_without_clock(self):
        liquidated = make_loan().with_status(LoanStatus.LIQUIDATED)
        assert liquidated.last_interest_clock == 10

    def test_terminal_statuses(self):
        assert not LoanStatus.ACTIVE.is_terminal
        assert LoanStatus.REPAID.is_terminal
        assert LoanStatus.LIQUIDATED.is_terminal

    def test_store_record(self):
        record = make_loan(status=LoanStatus.LIQUIDATED).to_store()
        assert record['status'] == "liquidated"
        assert LoanRecord.from_store(1, record) == make_loan(status=LoanStatus.LIQUIDATED)

    def test_from_store_bad_status(self):
        record = make_loan().to_store()
        record['status'] = "defaulted"
        with pytest.raises(StoreFormatError):
            LoanRecord.from_store(1, record)

    def test_repr(self):
        assert repr(make_loan()) == "Loan#1(alice: 30000 against 100 BTC, active)"


class TestPriceSourceProtocol:

    def test_registry_is_price_source(self):
        assert isinstance(PriceRegistry(), PriceSource)

    def test_static_source_is_price_source(self):
        assert isinstance(StaticPriceSource({"BTC": 1}), PriceSource)

    def test_fake_is_price_source(self, fake_prices):
        assert isinstance(fake_prices, PriceSource)
