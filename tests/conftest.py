"""
conftest.py - Shared pytest fixtures for lending engine tests

Provides common fixtures used across unit, functional and conformance tests:
- Engines at various stages (fresh, initialized + priced, funded)
- Engines with each behavior option switched on
- A FakePriceSource-backed engine
- A bare EngineState for the pure operation functions
"""

import pytest

from lending import LendingEngine, EngineConfig

from tests.fake_price_source import FakePriceSource
from tests.helpers import OWNER, BTC_PRICE, ctx, ready_engine, ready_state


@pytest.fixture
def fresh_engine():
    """Engine that has not been initialized."""
    return LendingEngine(OWNER)


@pytest.fixture
def engine():
    """Initialized engine with BTC at 50,000."""
    return ready_engine()


@pytest.fixture
def funded_engine(engine):
    """Initialized engine with 1,000 units of collateral deposited by alice."""
    engine.deposit_collateral(ctx("alice", 3), 1000)
    return engine


@pytest.fixture
def scaled_engine():
    """Engine using the // 100 admission formula, funded with 1,000 units."""
    engine = ready_engine(EngineConfig(scaled_admission_check=True))
    engine.deposit_collateral(ctx("alice", 3), 1000)
    return engine


@pytest.fixture
def pruning_engine():
    """Engine whose liquidations only remove the liquidated id from the index."""
    engine = ready_engine(EngineConfig(prune_liquidated_only=True))
    engine.deposit_collateral(ctx("alice", 3), 1000)
    return engine


@pytest.fixture
def fake_prices():
    return FakePriceSource({"BTC": BTC_PRICE})


@pytest.fixture
def fake_priced_engine(fake_prices):
    """Funded engine valuing collateral through a FakePriceSource."""
    engine = ready_engine(price_source=fake_prices)
    engine.deposit_collateral(ctx("alice", 3), 1000)
    return engine, fake_prices


@pytest.fixture
def state():
    """Initialized EngineState with BTC at 50,000 and 1,000 collateral locked."""
    return ready_state(total_collateral_locked=1000)
