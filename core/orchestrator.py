"""Cycle orchestration engine for the Helios activity bot.

This module implements the loop that drives all on-chain activity.  One
*cycle* is a strictly sequential pass over every managed account:

1. Pick the account's proxy (``index mod N``).
2. Bridge ``bridgeRepetitions`` times, alternating Sepolia / BSC testnet.
3. Wait ``stakeDelay`` once, then stake ``stakeRepetitions`` times across
   a validator list shuffled once per account.
4. Wait ``accountDelay`` before the next account.

A pass that finishes with no stop request arms a one-shot timer for the
next cycle (24 hours by default).  Stops are cooperative and observed only
between steps and inside delays; see :class:`~core.interrupt.InterruptController`.

Classes:
    CyclePhase: Idle / running / scheduled.
    CycleStats: Per-pass success / skip / failure counters.
    CycleState: The single owned state value.
    CycleOrchestrator: Main engine exposing the control commands.
"""

import asyncio
import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence

from eth_utils import is_address

from core.accounts import Account, AccountRegistry
from core.config import ActivityConfig, BotSettings, ConfigStore
from core.gateway import ChainGateway
from core.interrupt import InterruptController
from core.monitoring import StatusSnapshot
from core.nonce import NonceSequencer
from core.proxy_manager import Proxy, ProxyRegistry
from core.registry import (
    VALIDATORS,
    Validator,
    destination_for,
    shuffled_validators,
    validator_for,
)
from core.utils import random_amount, short_address
from operations.base import OperationResult, OperationStatus
from operations.executor import OperationExecutor

logger = logging.getLogger(__name__)

GatewayFactory = Callable[[Optional[Proxy]], ChainGateway]
StatusListener = Callable[[StatusSnapshot], Any]


class CyclePhase(Enum):
    """Orchestrator phases.

    ``IDLE -> RUNNING -> (IDLE | SCHEDULED) -> RUNNING -> ...``
    """

    IDLE = "Idle"
    RUNNING = "Running"
    SCHEDULED = "Waiting for next cycle"


@dataclass
class CycleStats:
    """Outcome counters for one pass."""

    succeeded: int = 0
    skipped: int = 0
    failed: int = 0

    def record(self, result: OperationResult) -> None:
        if result.status is OperationStatus.SUCCESS:
            self.succeeded += 1
        elif result.status is OperationStatus.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1

    def as_dict(self) -> dict:
        return {"succeeded": self.succeeded, "skipped": self.skipped, "failed": self.failed}


@dataclass
class CycleState:
    """Everything the orchestrator mutates, in one place.

    The stop flag and active-task counter live in the orchestrator's
    :class:`InterruptController`; this object holds the rest.
    """

    phase: CyclePhase = CyclePhase.IDLE
    active_index: Optional[int] = None
    stats: CycleStats = field(default_factory=CycleStats)
    cycles_completed: int = 0

    @property
    def running(self) -> bool:
        return self.phase is CyclePhase.RUNNING

    @property
    def scheduled(self) -> bool:
        return self.phase is CyclePhase.SCHEDULED


class CycleOrchestrator:
    """
    Central engine for the daily bridge / stake activity.

    Owns the cycle state, the stop machinery, the nonce sequencer and the
    next-cycle timer.  External actors only use the command methods:
    :meth:`start`, :meth:`stop` (+ :meth:`drain`), :meth:`cancel_scheduled`,
    :meth:`set_config` and :meth:`refresh_balances`.
    """

    def __init__(
        self,
        settings: BotSettings,
        config_store: ConfigStore,
        accounts: AccountRegistry,
        proxies: Optional[ProxyRegistry] = None,
        gateway_factory: Optional[GatewayFactory] = None,
        validators: Optional[Sequence[Validator]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.settings = settings
        self.config_store = config_store
        self.accounts = accounts
        self.proxies = proxies or ProxyRegistry()
        self.validators: List[Validator] = list(validators or VALIDATORS)
        self.rng = rng or random.Random()

        self.state = CycleState()
        self.interrupt = InterruptController()
        self.nonces = NonceSequencer(self.interrupt)
        self.executor = OperationExecutor(settings, self.nonces)
        self.gateway_factory: GatewayFactory = gateway_factory or self._default_gateway

        self._task: Optional[asyncio.Task] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._listeners: List[StatusListener] = []

    def _default_gateway(self, proxy: Optional[Proxy]) -> ChainGateway:
        return ChainGateway(
            self.settings.rpc_url,
            proxy=proxy,
            timeout=self.settings.rpc_timeout_seconds,
            interrupt=self.interrupt,
        )

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    @property
    def config(self) -> ActivityConfig:
        return self.config_store.config

    @property
    def phase(self) -> CyclePhase:
        return self.state.phase

    @property
    def next_cycle_timer(self) -> Optional[asyncio.TimerHandle]:
        return self._timer

    def add_listener(self, listener: StatusListener) -> None:
        self._listeners.append(listener)

    def snapshot(self) -> StatusSnapshot:
        active = None
        if self.state.active_index is not None:
            active = self.accounts[self.state.active_index].address
        return StatusSnapshot(
            phase=self.state.phase.value,
            active_account=active,
            total_accounts=len(self.accounts),
            bridge_repetitions=self.config.bridgeRepetitions,
            stake_repetitions=self.config.stakeRepetitions,
            active_tasks=self.interrupt.active_tasks,
            stats=self.state.stats.as_dict(),
        )

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as exc:
                logger.error(f"Status listener failed: {exc}")

    def _set_phase(self, phase: CyclePhase) -> None:
        if self.state.phase is not phase:
            self.state.phase = phase
            self._notify()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start(self, schedule: bool = True) -> bool:
        """Launch a cycle in the background.

        Args:
            schedule: Arm the next-cycle timer when the pass completes;
                ``False`` runs a single pass.

        Returns:
            ``False`` (and logs why) if a cycle is running or scheduled, or
            a stop is still draining; ``True`` once the cycle task exists.
        """
        if self.state.running or self.state.scheduled:
            logger.error("Cycle is still running. Stop or cancel the current cycle first.")
            return False
        if self.interrupt.stop_requested:
            logger.error("A stop is still in progress. Wait for it to complete first.")
            return False
        self._launch(schedule)
        return True

    def _launch(self, schedule: bool = True) -> None:
        self._set_phase(CyclePhase.RUNNING)
        self._task = asyncio.get_running_loop().create_task(self.run_cycle(schedule))

    def stop(self) -> bool:
        """Request a cooperative stop of the running cycle."""
        if not self.state.running:
            logger.info("No activity is running.")
            return False
        self.interrupt.request_stop()
        logger.info("Stopping current activity. Please wait for ongoing process to complete.")
        return True

    async def drain(self) -> None:
        """Wait for in-flight work after :meth:`stop`, then end the stop episode."""
        await self.interrupt.wait_until_idle(
            self.settings.stop_poll_interval,
            on_wait=lambda count: logger.info(f"Waiting for {count} process(es) to complete..."),
        )
        await self.wait_for_cycle()
        self.interrupt.clear()
        logger.info("Current activity stopped successfully.")

    async def wait_for_cycle(self) -> None:
        """Wait for the current cycle task, if any, to finish."""
        if self._task is not None and not self._task.done():
            await self._task

    def cancel_scheduled(self) -> bool:
        """Disarm the next-cycle timer (``SCHEDULED -> IDLE``)."""
        if self._timer is None:
            logger.info("No scheduled activity to cancel.")
            return False
        self._timer.cancel()
        self._timer = None
        if self.state.scheduled:
            self._set_phase(CyclePhase.IDLE)
        logger.info("Scheduled activity canceled.")
        return True

    def set_config(self, field_name: str, value: Any, max_value: Any = None) -> ActivityConfig:
        """Update and persist one config field (see :meth:`ConfigStore.set`)."""
        config = self.config_store.set(field_name, value, max_value)
        self._notify()
        return config

    async def refresh_balances(self) -> List[Account]:
        """Re-read every account's native balance concurrently.

        A failed read is logged and leaves that account's previous
        snapshot untouched.
        """
        async def _refresh(account: Account) -> None:
            proxy = self.proxies.for_account(account.index)
            try:
                async with self.gateway_factory(proxy) as gateway:
                    account.native_balance = await gateway.get_balance(account.address)
            except Exception as exc:
                logger.error(f"Failed to fetch wallet data for {account.label}: {exc}")

        await asyncio.gather(*(_refresh(account) for account in self.accounts))
        logger.info("Wallet data updated.")
        return list(self.accounts)

    async def shutdown(self) -> None:
        """Cancel any timer and stop / drain a running cycle."""
        self.cancel_scheduled()
        if self.state.running and self.stop():
            await self.drain()

    # ------------------------------------------------------------------
    # Cycle
    # ------------------------------------------------------------------

    def _on_timer(self) -> None:
        self._timer = None
        logger.info("Starting scheduled cycle.")
        self._launch()

    def _schedule_next(self) -> None:
        delay = self.settings.cycle_interval_seconds
        self._timer = asyncio.get_running_loop().call_later(delay, self._on_timer)
        logger.info(
            f"All accounts processed. Waiting {self.settings.cycle_interval_hours:g} hours for next cycle."
        )

    async def run_cycle(self, schedule: bool = True) -> None:
        """Run one full pass over all accounts (the body of a cycle).

        Args:
            schedule: Arm the next-cycle timer if the pass completes
                without a stop.
        """
        if len(self.accounts) == 0:
            logger.error("No valid private keys found.")
            self._set_phase(CyclePhase.IDLE)
            return

        config = self.config
        logger.info(
            f"Starting daily activity. Bridge: {config.bridgeRepetitions}x, "
            f"Stake: {config.stakeRepetitions}x"
        )
        self.state.stats = CycleStats()
        self._set_phase(CyclePhase.RUNNING)

        try:
            total = len(self.accounts)
            for position, account in enumerate(self.accounts):
                if self.interrupt.stop_requested:
                    break
                try:
                    await self._process_account(account, config)
                except Exception as exc:
                    logger.error(f"Error processing {account.label.lower()}: {exc}", exc_info=True)

                if position < total - 1 and not self.interrupt.stop_requested:
                    logger.info(
                        f"Waiting {config.account_delay_seconds:g} seconds before next account..."
                    )
                    await self.interrupt.cancellable_delay(config.account_delay_seconds)

            stats = self.state.stats
            logger.info(
                f"Cycle finished: {stats.succeeded} succeeded, {stats.skipped} skipped, "
                f"{stats.failed} failed"
            )
            if not self.interrupt.stop_requested and self.interrupt.active_tasks <= 0:
                self.state.cycles_completed += 1
                if schedule:
                    self._schedule_next()
        except Exception as exc:
            logger.error(f"Daily activity failed: {exc}", exc_info=True)
        finally:
            self.state.active_index = None
            self._set_phase(CyclePhase.SCHEDULED if self._timer is not None else CyclePhase.IDLE)

    async def _process_account(self, account: Account, config: ActivityConfig) -> None:
        self.state.active_index = account.index
        self._notify()
        logger.info(f"Starting processing for {account.label.lower()}")

        proxy = self.proxies.for_account(account.index)
        logger.info(f"{account.label}: Using Proxy {proxy.masked() if proxy else 'none'}")

        if not is_address(account.address):
            logger.error(f"Invalid wallet address for {account.label.lower()}: {account.address}")
            return
        logger.info(f"Processing {account.label.lower()}: {short_address(account.address)}")

        async with self.gateway_factory(proxy) as gateway:
            await self._bridge_phase(account, gateway, config)

            if not self.interrupt.stop_requested:
                logger.info(f"Waiting {config.stake_delay_seconds:g} seconds before staking...")
                await self.interrupt.cancellable_delay(config.stake_delay_seconds)

            await self._stake_phase(account, gateway, config)

    async def _bridge_phase(self, account: Account, gateway: ChainGateway, config: ActivityConfig) -> None:
        repetitions = config.bridgeRepetitions
        for repetition in range(repetitions):
            if self.interrupt.stop_requested:
                break
            amount = random_amount(config.minHlsBridge, config.maxHlsBridge, self.rng)
            destination = destination_for(repetition)
            label = f"{account.label} - Bridge {repetition + 1}"
            logger.info(f"{label}: Helios ⮞ {destination.name} {amount} HLS")

            result = await self.executor.bridge(account, gateway, amount, destination, label=label)
            self.state.stats.record(result)

            if repetition < repetitions - 1 and not self.interrupt.stop_requested:
                logger.info(
                    f"{account.label} - Waiting {config.bridge_delay_seconds:g} seconds before next bridge..."
                )
                await self.interrupt.cancellable_delay(config.bridge_delay_seconds)

    async def _stake_phase(self, account: Account, gateway: ChainGateway, config: ActivityConfig) -> None:
        validators = shuffled_validators(self.validators, self.rng)
        repetitions = config.stakeRepetitions
        for repetition in range(repetitions):
            if self.interrupt.stop_requested:
                break
            validator = validator_for(validators, repetition)
            amount = random_amount(config.minHlsStake, config.maxHlsStake, self.rng)
            label = f"{account.label} - Stake {repetition + 1}"
            logger.info(f"{label}: Stake {amount} HLS to {validator.name}")

            result = await self.executor.stake(account, gateway, amount, validator, label=label)
            self.state.stats.record(result)

            if repetition < repetitions - 1 and not self.interrupt.stop_requested:
                logger.info(
                    f"{account.label} - Waiting {config.stake_delay_seconds:g} seconds before next stake..."
                )
                await self.interrupt.cancellable_delay(config.stake_delay_seconds)
