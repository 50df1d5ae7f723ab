"""
config.py - Engine configuration

EngineConfig holds the starting platform parameters and the behavior options
a host selects when it builds a LendingEngine. It can be constructed directly
or loaded from a YAML file:

    # lending.yaml
    platform:
      minimum_collateral_ratio: 150
      liquidation_threshold: 120
      fee_rate: 1
    options:
      scaled_admission_check: false
      prune_liquidated_only: false
      enforce_ratio_ordering: false

Options (all off by default):
    scaled_admission_check - request_loan compares against
                             loan_amount * ratio // 100 instead of
                             loan_amount * ratio
    prune_liquidated_only  - liquidation removes only the liquidated id from
                             the borrower index instead of the whole entry
    enforce_ratio_ordering - admin updates must keep
                             liquidation_threshold < minimum_collateral_ratio
"""

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from .core import (
    PlatformConfig,
    DEFAULT_MINIMUM_COLLATERAL_RATIO, DEFAULT_LIQUIDATION_THRESHOLD, DEFAULT_FEE_RATE,
)


@dataclass(frozen=True, slots=True)
class EngineConfig:
    minimum_collateral_ratio: int = DEFAULT_MINIMUM_COLLATERAL_RATIO
    liquidation_threshold: int = DEFAULT_LIQUIDATION_THRESHOLD
    fee_rate: int = DEFAULT_FEE_RATE
    scaled_admission_check: bool = False
    prune_liquidated_only: bool = False
    enforce_ratio_ordering: bool = False

    def __post_init__(self):
        for name in ("minimum_collateral_ratio", "liquidation_threshold", "fee_rate"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ValueError(f"{name} must be int, got {type(value).__name__}")
        if self.minimum_collateral_ratio <= 0:
            raise ValueError(
                f"minimum_collateral_ratio must be positive, got {self.minimum_collateral_ratio}"
            )
        if self.liquidation_threshold <= 0:
            raise ValueError(
                f"liquidation_threshold must be positive, got {self.liquidation_threshold}"
            )
        if self.fee_rate < 0:
            raise ValueError(f"fee_rate cannot be negative, got {self.fee_rate}")
        if self.enforce_ratio_ordering and self.liquidation_threshold >= self.minimum_collateral_ratio:
            raise ValueError(
                f"liquidation_threshold ({self.liquidation_threshold}) must be below "
                f"minimum_collateral_ratio ({self.minimum_collateral_ratio})"
            )

    def initial_platform_config(self) -> PlatformConfig:
        """PlatformConfig for a fresh, uninitialized engine."""
        return PlatformConfig(
            minimum_collateral_ratio=self.minimum_collateral_ratio,
            liquidation_threshold=self.liquidation_threshold,
            fee_rate=self.fee_rate,
        )


def _build_config(raw: Dict[str, Any]) -> EngineConfig:
    platform = raw.get("platform") or {}
    options = raw.get("options") or {}
    if not isinstance(platform, dict) or not isinstance(options, dict):
        raise ValueError("'platform' and 'options' must be mappings")

    unknown = set(platform) - {"minimum_collateral_ratio", "liquidation_threshold", "fee_rate"}
    unknown |= set(options) - {"scaled_admission_check", "prune_liquidated_only", "enforce_ratio_ordering"}
    if unknown:
        raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")

    return EngineConfig(
        minimum_collateral_ratio=platform.get("minimum_collateral_ratio", DEFAULT_MINIMUM_COLLATERAL_RATIO),
        liquidation_threshold=platform.get("liquidation_threshold", DEFAULT_LIQUIDATION_THRESHOLD),
        fee_rate=platform.get("fee_rate", DEFAULT_FEE_RATE),
        scaled_admission_check=bool(options.get("scaled_admission_check", False)),
        prune_liquidated_only=bool(options.get("prune_liquidated_only", False)),
        enforce_ratio_ordering=bool(options.get("enforce_ratio_ordering", False)),
    )


def parse_config(text: str) -> EngineConfig:
    """Parse YAML text into an EngineConfig. Empty text yields the defaults."""
    raw = yaml.safe_load(text) or {}
    if not isinstance(raw, dict):
        raise ValueError("Configuration root must be a mapping")
    return _build_config(raw)


def load_config(path: Union[str, Path]) -> EngineConfig:
    """
    Load an EngineConfig from a YAML file.

    Raises:
        FileNotFoundError: If path does not exist
        ValueError: If the file has unknown keys or invalid values
    """
    return parse_config(Path(path).read_text(encoding="utf-8"))
