import json
import os

import pytest

from core.config import ACTIVITY_DEFAULTS, ActivityConfig, BotSettings, ConfigStore
from core.errors import ValidationError


@pytest.fixture
def store(tmp_path):
    return ConfigStore(str(tmp_path / "config.json"))


class TestBotSettings:
    """Test suite for BotSettings defaults and env overrides."""

    def test_default_values(self, monkeypatch):
        monkeypatch.delenv("RPC_URL", raising=False)
        monkeypatch.delenv("CHAIN_ID", raising=False)
        settings = BotSettings(_env_file=None)
        assert settings.rpc_url == "https://testnet1.helioschainlabs.org/"
        assert settings.chain_id == 42000
        assert settings.gas_limit == 2_000_000
        assert settings.bridge_fee == 0.5
        assert settings.cycle_interval_seconds == 24 * 3600

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("RPC_URL", "http://localhost:8545")
        monkeypatch.setenv("CYCLE_INTERVAL_HOURS", "1")
        settings = BotSettings(_env_file=None)
        assert settings.rpc_url == "http://localhost:8545"
        assert settings.cycle_interval_seconds == 3600


class TestActivityConfig:
    """Test suite for ActivityConfig field fallbacks."""

    def test_defaults(self):
        config = ActivityConfig()
        assert config.model_dump() == ACTIVITY_DEFAULTS

    def test_invalid_fields_fall_back_individually(self):
        config = ActivityConfig(bridgeRepetitions="abc", minHlsBridge=-1, stakeRepetitions=4, bridgeDelay=0)
        assert config.bridgeRepetitions == 1
        assert config.minHlsBridge == 0.01
        assert config.stakeRepetitions == 4
        assert config.bridgeDelay == 30000

    def test_integer_fields_are_floored(self):
        config = ActivityConfig(bridgeRepetitions=2.9, accountDelay="1500.7")
        assert config.bridgeRepetitions == 2
        assert config.accountDelay == 1500

    def test_delay_seconds(self):
        config = ActivityConfig(bridgeDelay=2500)
        assert config.bridge_delay_seconds == 2.5
        assert config.stake_delay_seconds == 10.0


class TestConfigStore:
    """Test suite for loading, validating and persisting config.json."""

    def test_missing_file_uses_defaults(self, store):
        config = store.load()
        assert config.model_dump() == ACTIVITY_DEFAULTS

    def test_corrupt_file_uses_defaults(self, store):
        with open(store.path, "w") as f:
            f.write("{not json")
        assert store.load().model_dump() == ACTIVITY_DEFAULTS

    def test_partial_file_merges_with_defaults(self, store):
        with open(store.path, "w") as f:
            json.dump({"bridgeRepetitions": 5, "maxHlsStake": "oops", "unknown": 1}, f)
        config = store.load()
        assert config.bridgeRepetitions == 5
        assert config.maxHlsStake == 0.03
        assert config.stakeRepetitions == 1

    def test_save_then_load_is_field_for_field_equal(self, store):
        store.config = ActivityConfig(
            bridgeRepetitions=4, minHlsBridge=0.02, maxHlsBridge=0.05,
            stakeRepetitions=2, minHlsStake=0.015, maxHlsStake=0.025,
            bridgeDelay=1000, stakeDelay=2000, accountDelay=3000,
        )
        assert store.save() is True

        reloaded = ConfigStore(store.path).load()
        assert reloaded == store.config

    def test_setter_persists_immediately(self, store):
        store.load()
        store.set_bridge_repetitions(3)
        with open(store.path) as f:
            assert json.load(f)["bridgeRepetitions"] == 3

        reloaded = ConfigStore(store.path)
        assert reloaded.load().bridgeRepetitions == 3

    def test_save_keeps_backup(self, store):
        store.save()
        store.set_stake_repetitions(2)
        assert os.path.exists(store.path + ".backup")

    @pytest.mark.parametrize("value", [0, -3, "abc", None])
    def test_invalid_repetitions_rejected(self, store, value):
        with pytest.raises(ValidationError, match="positive number"):
            store.set_bridge_repetitions(value)
        assert store.config.bridgeRepetitions == 1

    def test_range_min_greater_than_max_rejected(self, store):
        with pytest.raises(ValidationError, match="cannot be greater"):
            store.set_bridge_range(0.5, 0.1)
        assert store.config.minHlsBridge == 0.01
        assert store.config.maxHlsBridge == 0.04

    def test_range_invalid_max_rejected(self, store):
        with pytest.raises(ValidationError, match="Invalid Max value"):
            store.set_stake_range(0.1, "x")

    def test_range_accepts_equal_bounds(self, store):
        store.set_stake_range(0.02, 0.02)
        assert store.config.minHlsStake == store.config.maxHlsStake == 0.02

    def test_set_delay(self, store):
        store.set_delay("accountDelay", 5000)
        assert store.config.accountDelay == 5000
        with pytest.raises(ValidationError):
            store.set_delay("accountDelay", -1)

    @pytest.mark.parametrize("value", [0.5, "0.99"])
    def test_sub_millisecond_delay_rejected(self, store, value):
        store.set_delay("bridgeDelay", 2000)
        with pytest.raises(ValidationError, match="positive number"):
            store.set_delay("bridgeDelay", value)
        assert store.config.bridgeDelay == 2000

    def test_fractional_delay_is_floored(self, store):
        store.set_delay("stakeDelay", 1500.9)
        assert store.config.stakeDelay == 1500

    def test_set_dispatch_and_aliases(self, store):
        store.set("stakeRepetitions", "4")
        store.set("minHlsBridge", "0.02", "0.06")
        assert store.config.stakeRepetitions == 4
        assert store.config.minHlsBridge == 0.02
        assert store.config.maxHlsBridge == 0.06

    def test_set_unknown_field(self, store):
        with pytest.raises(ValidationError, match="Unknown config field"):
            store.set("gasPrice", 1)
