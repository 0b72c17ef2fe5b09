"""Application configuration for the Helios activity bot.

Two layers of configuration live here:

* :class:`BotSettings` -- runtime settings (RPC endpoint, contract
  addresses, file paths, timing knobs) loaded from environment variables
  with ``.env`` support via Pydantic Settings.
* :class:`ActivityConfig` -- the flat operational parameter set
  (repetitions, amount ranges, delays) persisted as ``config.json`` by
  :class:`ConfigStore` and editable at runtime.

Key exports:
    BotSettings: Root runtime settings model.
    ActivityConfig: Repetitions / amount ranges / delays.
    ConfigStore: Load, validate, mutate and persist ``ActivityConfig``.
    BASE_DIR / LOGS_DIR: Canonical project paths.
"""

# pylint: disable=no-member

import logging
import math
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.errors import ValidationError
from core.utils import safe_json_read, safe_json_write

# ---------------------------------------------------------------------------
# Base Paths
# ---------------------------------------------------------------------------
BASE_DIR: Path = Path(__file__).parent.parent
"""Project root directory (parent of ``core/``)."""

LOGS_DIR: Path = BASE_DIR / "logs"
"""Directory for log output files."""

logger: logging.Logger = logging.getLogger(__name__)


class BotSettings(BaseSettings):
    """Runtime settings for the bot.

    All fields can be set via environment variables or a ``.env`` file
    (e.g. ``RPC_URL=https://...``).

    Section overview:
        * **Core** -- log level.
        * **Chain** -- RPC endpoint, chain id, router / token addresses,
          bridge fee and gas limit.
        * **Files** -- config, private key and proxy list paths.
        * **Timing** -- cycle interval, stop polling, receipt waits and
          RPC timeouts.
    """

    # Core
    log_level: str = "INFO"

    # Chain
    rpc_url: str = "https://testnet1.helioschainlabs.org/"
    chain_id: int = 42000
    router_address: str = "0x0000000000000000000000000000000000000900"
    stake_router_address: str = "0x0000000000000000000000000000000000000800"
    token_address: str = "0xD4949664cD82660AaE99bEdc034a0deA8A0bd517"
    # Fee attached to every bridge call, in HLS
    bridge_fee: float = 0.5
    gas_limit: int = 2_000_000

    # Files
    config_file: str = "config.json"
    private_keys_file: str = "pk.txt"
    proxies_file: str = "proxy.txt"

    # Timing
    cycle_interval_hours: float = 24.0
    # Interval between active-task checks while a stop drains
    stop_poll_interval: float = 1.0
    receipt_timeout_seconds: float = 300.0
    receipt_poll_interval: float = 2.0
    rpc_timeout_seconds: float = 30.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def cycle_interval_seconds(self) -> float:
        return self.cycle_interval_hours * 3600


# Documented fallbacks for every persisted field
ACTIVITY_DEFAULTS: Dict[str, Any] = {
    "bridgeRepetitions": 1,
    "minHlsBridge": 0.01,
    "maxHlsBridge": 0.04,
    "stakeRepetitions": 1,
    "minHlsStake": 0.01,
    "maxHlsStake": 0.03,
    "bridgeDelay": 30000,
    "stakeDelay": 10000,
    "accountDelay": 10000,
}

_INT_FIELDS = ("bridgeRepetitions", "stakeRepetitions", "bridgeDelay", "stakeDelay", "accountDelay")
_FLOAT_FIELDS = ("minHlsBridge", "maxHlsBridge", "minHlsStake", "maxHlsStake")


def _coerce_positive(value: Any) -> Optional[float]:
    """Return *value* as a positive finite float, or ``None``."""
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return number


class ActivityConfig(BaseModel):
    """Operational parameters for one activity cycle.

    Field names match the persisted JSON keys.  Delays are in
    milliseconds.  Any missing or invalid field falls back to its entry in
    :data:`ACTIVITY_DEFAULTS` instead of failing validation, so a partly
    corrupt file still loads.

    Attributes:
        bridgeRepetitions: Bridge operations per account (>= 1).
        minHlsBridge / maxHlsBridge: Bridge amount range in HLS.
        stakeRepetitions: Stake operations per account (>= 1).
        minHlsStake / maxHlsStake: Stake amount range in HLS.
        bridgeDelay: Pause between bridge repetitions.
        stakeDelay: Pause before the stake phase and between stakes.
        accountDelay: Pause between accounts.
    """

    bridgeRepetitions: int = ACTIVITY_DEFAULTS["bridgeRepetitions"]
    minHlsBridge: float = ACTIVITY_DEFAULTS["minHlsBridge"]
    maxHlsBridge: float = ACTIVITY_DEFAULTS["maxHlsBridge"]
    stakeRepetitions: int = ACTIVITY_DEFAULTS["stakeRepetitions"]
    minHlsStake: float = ACTIVITY_DEFAULTS["minHlsStake"]
    maxHlsStake: float = ACTIVITY_DEFAULTS["maxHlsStake"]
    bridgeDelay: int = ACTIVITY_DEFAULTS["bridgeDelay"]
    stakeDelay: int = ACTIVITY_DEFAULTS["stakeDelay"]
    accountDelay: int = ACTIVITY_DEFAULTS["accountDelay"]

    model_config = {"validate_assignment": True}

    @field_validator(*_INT_FIELDS, mode="before")
    @classmethod
    def _int_or_default(cls, value: Any, info: ValidationInfo) -> int:
        number = _coerce_positive(value)
        if number is None or number < 1:
            return ACTIVITY_DEFAULTS[info.field_name]
        return int(math.floor(number))

    @field_validator(*_FLOAT_FIELDS, mode="before")
    @classmethod
    def _float_or_default(cls, value: Any, info: ValidationInfo) -> float:
        number = _coerce_positive(value)
        if number is None:
            return ACTIVITY_DEFAULTS[info.field_name]
        return number

    @property
    def bridge_delay_seconds(self) -> float:
        return self.bridgeDelay / 1000

    @property
    def stake_delay_seconds(self) -> float:
        return self.stakeDelay / 1000

    @property
    def account_delay_seconds(self) -> float:
        return self.accountDelay / 1000


class ConfigStore:
    """Owns the live :class:`ActivityConfig` and persists every change.

    Setters validate their input and raise
    :class:`~core.errors.ValidationError` on rejection; on success the new
    value is written to disk immediately.
    """

    def __init__(self, path: str) -> None:
        self.path = str(path)
        self.config = ActivityConfig()
        self._setters: Dict[str, Callable[..., None]] = {
            "bridgeRepetitions": self.set_bridge_repetitions,
            "stakeRepetitions": self.set_stake_repetitions,
            "hlsRangeBridge": self.set_bridge_range,
            "hlsRangeStake": self.set_stake_range,
            "bridgeDelay": lambda value, _max=None: self.set_delay("bridgeDelay", value),
            "stakeDelay": lambda value, _max=None: self.set_delay("stakeDelay", value),
            "accountDelay": lambda value, _max=None: self.set_delay("accountDelay", value),
        }

    def load(self) -> ActivityConfig:
        """Load ``config.json``; missing or corrupt files yield defaults."""
        data = safe_json_read(self.path)
        if data is None:
            logger.info("No usable config file at %s, using default settings.", self.path)
            self.config = ActivityConfig()
        else:
            known = {key: data[key] for key in ACTIVITY_DEFAULTS if key in data}
            self.config = ActivityConfig(**known)
        return self.config

    def save(self) -> bool:
        ok = safe_json_write(self.path, self.config.model_dump())
        if ok:
            logger.info("Configuration saved successfully.")
        return ok

    @property
    def fields(self) -> list:
        return list(self._setters)

    def set(self, field: str, value: Any, max_value: Any = None) -> ActivityConfig:
        """Dispatch a ``set_config(field, value[, max_value])`` command.

        Range fields (``hlsRangeBridge`` / ``hlsRangeStake``) require
        *max_value*; ``minHls*`` / ``maxHls*`` names are accepted as
        aliases for them.
        """
        aliases = {
            "minHlsBridge": "hlsRangeBridge",
            "maxHlsBridge": "hlsRangeBridge",
            "minHlsStake": "hlsRangeStake",
            "maxHlsStake": "hlsRangeStake",
        }
        name = aliases.get(field, field)
        setter = self._setters.get(name)
        if setter is None:
            raise ValidationError(f"Unknown config field '{field}'. Available: {self.fields}")
        setter(value, max_value)
        return self.config

    # ------------------------------------------------------------------
    # Setters
    # ------------------------------------------------------------------

    def set_bridge_repetitions(self, value: Any, _max: Any = None) -> None:
        self.config.bridgeRepetitions = self._repetitions(value)
        logger.info(f"Bridge Repetitions set to {self.config.bridgeRepetitions}")
        self.save()

    def set_stake_repetitions(self, value: Any, _max: Any = None) -> None:
        self.config.stakeRepetitions = self._repetitions(value)
        logger.info(f"Stake Repetitions set to {self.config.stakeRepetitions}")
        self.save()

    def set_bridge_range(self, minimum: Any, maximum: Any) -> None:
        low, high = self._range(minimum, maximum)
        self.config.minHlsBridge = low
        self.config.maxHlsBridge = high
        logger.info(f"HLS Range for Bridge set to {low} - {high}")
        self.save()

    def set_stake_range(self, minimum: Any, maximum: Any) -> None:
        low, high = self._range(minimum, maximum)
        self.config.minHlsStake = low
        self.config.maxHlsStake = high
        logger.info(f"HLS Range for Stake set to {low} - {high}")
        self.save()

    def set_delay(self, field: str, milliseconds: Any) -> None:
        if field not in ("bridgeDelay", "stakeDelay", "accountDelay"):
            raise ValidationError(f"Unknown delay field '{field}'")
        number = _coerce_positive(milliseconds)
        if number is None or number < 1:
            raise ValidationError("Invalid input. Please enter a positive number.")
        delay = int(math.floor(number))
        setattr(self.config, field, delay)
        logger.info(f"{field} set to {delay} ms")
        self.save()

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _repetitions(value: Any) -> int:
        number = _coerce_positive(value)
        if number is None or number < 1:
            raise ValidationError("Invalid input. Please enter a positive number.")
        return int(math.floor(number))

    @staticmethod
    def _range(minimum: Any, maximum: Any) -> tuple:
        high = _coerce_positive(maximum)
        if high is None:
            raise ValidationError("Invalid Max value. Please enter a positive number.")
        low = _coerce_positive(minimum)
        if low is None:
            raise ValidationError("Invalid input. Please enter a positive number.")
        if low > high:
            raise ValidationError("Min HLS cannot be greater than Max HLS.")
        return low, high
