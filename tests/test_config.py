"""
test_config.py - Tests for EngineConfig and YAML loading
"""

import pytest

from lending import EngineConfig, LendingEngine, load_config, parse_config


class TestEngineConfig:

    def test_defaults(self):
        config = EngineConfig()
        assert config.minimum_collateral_ratio == 150
        assert config.liquidation_threshold == 120
        assert config.fee_rate == 1
        assert not config.scaled_admission_check
        assert not config.prune_liquidated_only
        assert not config.enforce_ratio_ordering

    def test_initial_platform_config_is_uninitialized(self):
        platform = EngineConfig(minimum_collateral_ratio=200).initial_platform_config()
        assert platform.initialized is False
        assert platform.minimum_collateral_ratio == 200
        assert platform.total_loans_issued == 0

    def test_non_positive_ratio_rejected(self):
        with pytest.raises(ValueError):
            EngineConfig(minimum_collateral_ratio=0)
        with pytest.raises(ValueError):
            EngineConfig(liquidation_threshold=-1)

    def test_negative_fee_rejected(self):
        with pytest.raises(ValueError):
            EngineConfig(fee_rate=-1)

    def test_non_int_rejected(self):
        with pytest.raises(ValueError):
            EngineConfig(minimum_collateral_ratio=1.5)

    def test_inverted_parameters_allowed_without_ordering(self):
        config = EngineConfig(minimum_collateral_ratio=100, liquidation_threshold=130)
        assert config.liquidation_threshold == 130

    def test_inverted_parameters_rejected_with_ordering(self):
        with pytest.raises(ValueError):
            EngineConfig(minimum_collateral_ratio=100, liquidation_threshold=130,
                         enforce_ratio_ordering=True)

    def test_engine_uses_config_parameters(self):
        engine = LendingEngine("admin", config=EngineConfig(minimum_collateral_ratio=175))
        assert engine.platform_stats().minimum_collateral_ratio == 175


class TestParseConfig:

    def test_empty_text_gives_defaults(self):
        assert parse_config("") == EngineConfig()

    def test_full_document(self):
        config = parse_config(
            "platform:\n"
            "  minimum_collateral_ratio: 160\n"
            "  liquidation_threshold: 110\n"
            "  fee_rate: 2\n"
            "options:\n"
            "  scaled_admission_check: true\n"
            "  prune_liquidated_only: true\n"
        )
        assert config.minimum_collateral_ratio == 160
        assert config.liquidation_threshold == 110
        assert config.fee_rate == 2
        assert config.scaled_admission_check
        assert config.prune_liquidated_only
        assert not config.enforce_ratio_ordering

    def test_partial_document_keeps_defaults(self):
        config = parse_config("options:\n  scaled_admission_check: true\n")
        assert config.minimum_collateral_ratio == 150
        assert config.scaled_admission_check

    def test_unknown_key_rejected(self):
        with pytest.raises(ValueError, match="Unknown"):
            parse_config("platform:\n  max_loans: 20\n")

    def test_non_mapping_root_rejected(self):
        with pytest.raises(ValueError):
            parse_config("- 1\n- 2\n")

    def test_invalid_value_rejected(self):
        with pytest.raises(ValueError):
            parse_config("platform:\n  liquidation_threshold: 0\n")


class TestLoadConfig:

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "lending.yaml"
        path.write_text("platform:\n  minimum_collateral_ratio: 200\n", encoding="utf-8")
        assert load_config(path).minimum_collateral_ratio == 200
        assert load_config(str(path)).minimum_collateral_ratio == 200

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")
