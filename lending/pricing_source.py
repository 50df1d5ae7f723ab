"""
pricing_source.py - Oracle prices for collateral valuation

Provides the price infrastructure the engine values collateral with.

Classes:
- PriceRegistry: Admin-fed registry stored inside EngineState (copy-on-write)
- StaticPriceSource: Fixed prices, for hosts that substitute the oracle

Both satisfy the PriceSource protocol from core.py. Prices are positive
integers strictly below MAX_PRICE, keyed by a recognized asset symbol.
"""

from __future__ import annotations
from typing import Dict, Iterator, Mapping, Optional, Tuple

from .core import (
    PriceMap,
    RECOGNIZED_ASSETS, MAX_PRICE,
    NotInitialized, InvalidAsset, InvalidPrice,
)


def validate_asset(asset: str) -> None:
    """Raise InvalidAsset unless asset is a recognized symbol."""
    if asset not in RECOGNIZED_ASSETS:
        raise InvalidAsset(f"Asset {asset!r} not in {RECOGNIZED_ASSETS}")


def validate_price(price: int) -> None:
    """Raise InvalidPrice unless 0 < price < MAX_PRICE."""
    if not isinstance(price, int) or isinstance(price, bool):
        raise InvalidPrice(f"Price must be int, got {type(price).__name__}")
    if price <= 0:
        raise InvalidPrice(f"Price must be positive, got {price}")
    if price >= MAX_PRICE:
        raise InvalidPrice(f"Price {price} exceeds ceiling {MAX_PRICE}")


class PriceRegistry:
    """
    Admin-curated mapping from asset symbol to price.

    Instances are treated as immutable: set_price() returns a new registry,
    which lets EngineState snapshots share registries safely. The only write
    path in the engine is operations.update_price().

    Example:
        registry = PriceRegistry().set_price("BTC", 50000)
        registry.price_of("BTC")   # 50000
        registry.price_of("STX")   # raises NotInitialized
    """

    __slots__ = ("_prices",)

    def __init__(self, prices: Optional[Mapping[str, int]] = None):
        self._prices: Dict[str, int] = {}
        for asset, price in (prices or {}).items():
            validate_asset(asset)
            validate_price(price)
            self._prices[asset] = price

    def get_price(self, asset: str) -> int:
        """
        Return the last price set for an asset.

        Raises:
            NotInitialized: If no price was ever set for the asset
        """
        try:
            return self._prices[asset]
        except KeyError:
            raise NotInitialized(f"No price set for {asset}") from None

    # PriceSource protocol
    price_of = get_price

    def has_price(self, asset: str) -> bool:
        return asset in self._prices

    def set_price(self, asset: str, price: int) -> PriceRegistry:
        """Return a new registry with asset priced at price."""
        validate_asset(asset)
        validate_price(price)
        updated = PriceRegistry.__new__(PriceRegistry)
        updated._prices = {**self._prices, asset: price}
        return updated

    def as_dict(self) -> PriceMap:
        return dict(self._prices)

    def items(self) -> Iterator[Tuple[str, int]]:
        return iter(sorted(self._prices.items()))

    def __eq__(self, other) -> bool:
        if not isinstance(other, PriceRegistry):
            return NotImplemented
        return self._prices == other._prices

    def __len__(self) -> int:
        return len(self._prices)

    def __repr__(self):
        return f"PriceRegistry({', '.join(f'{a}={p}' for a, p in self.items())})"


class StaticPriceSource:
    """
    Price source with fixed prices.

    Used to value collateral from outside the admin registry, e.g. a
    simulator replaying a price path or a stress test.
    """

    def __init__(self, prices: Mapping[str, int]):
        """
        Initialize with a static price map.

        Args:
            prices: Dictionary mapping asset symbols to prices
        """
        self.prices: Dict[str, int] = {}
        self.update_prices(prices)

    def price_of(self, asset: str) -> int:
        if asset not in self.prices:
            raise NotInitialized(f"No price for {asset}")
        return self.prices[asset]

    def update_price(self, asset: str, price: int) -> None:
        """Update the price of an asset."""
        validate_asset(asset)
        validate_price(price)
        self.prices[asset] = price

    def update_prices(self, prices: Mapping[str, int]) -> None:
        """Update multiple prices at once."""
        for asset, price in prices.items():
            self.update_price(asset, price)

    def __repr__(self):
        return f"StaticPriceSource({len(self.prices)} prices)"
