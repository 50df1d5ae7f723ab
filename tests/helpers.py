"""
helpers.py - Builders shared by the lending test suites
"""

from __future__ import annotations
from typing import Optional

from lending import (
    LendingEngine, EngineConfig, EngineState, Context, PlatformConfig,
    PriceRegistry, PriceSource,
)


OWNER = "admin"
BTC_PRICE = 50000


def ctx(caller: str, clock: int) -> Context:
    """Shorthand for Context(caller, clock)."""
    return Context(caller, clock)


def ready_engine(
    config: Optional[EngineConfig] = None,
    price_source: Optional[PriceSource] = None,
    btc_price: int = BTC_PRICE,
) -> LendingEngine:
    """Engine initialized at t=1 with BTC priced at t=2."""
    engine = LendingEngine(OWNER, config=config, price_source=price_source)
    engine.initialize(ctx(OWNER, 1))
    engine.update_price(ctx(OWNER, 2), "BTC", btc_price)
    return engine


def ready_state(btc_price: int = BTC_PRICE, **config_changes) -> EngineState:
    """Initialized EngineState with a BTC price, for pure-function tests."""
    return EngineState(
        owner=OWNER,
        config=PlatformConfig(initialized=True, **config_changes),
        prices=PriceRegistry({"BTC": btc_price}),
        clock=2,
    )
