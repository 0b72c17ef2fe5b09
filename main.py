"""
Helios Testnet Activity Bot - Main Entry Point

Loads the private keys, proxies and activity config, then runs the daily
bridge / stake cycle over every account and re-arms itself every 24 hours.

Usage:
    python main.py                          # Run continuously (cycle every 24h)
    python main.py --once                   # Run a single cycle, then exit
    python main.py --balances               # Print wallet balances and exit
    python main.py --set hlsRangeBridge 0.01 0.05   # Update config and exit
"""
from dotenv import load_dotenv

# Load environment variables from .env file into os.environ
load_dotenv()

import asyncio
import argparse
import logging
import signal
import sys

from core.accounts import AccountRegistry
from core.config import BotSettings, ConfigStore
from core.errors import ValidationError
from core.logging_setup import setup_logging
from core.monitoring import log_snapshot, print_balances
from core.orchestrator import CycleOrchestrator, CyclePhase
from core.proxy_manager import ProxyRegistry

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Helios Testnet Bot - Bridge & Stake Scheduler")
    parser.add_argument("--once", action="store_true", help="Run a single cycle and exit")
    parser.add_argument("--balances", action="store_true", help="Print wallet balances and exit")
    parser.add_argument(
        "--set",
        nargs="+",
        metavar="ARG",
        help="Update a config field: FIELD VALUE [MAX] (e.g. 'bridgeRepetitions 3')",
    )
    parser.add_argument("--log-level", type=str, help="Override LOG_LEVEL (DEBUG, INFO, ...)")
    return parser


async def main() -> int:
    """
    Main execution loop.

    1. Parses command line arguments and sets up logging.
    2. Loads config.json, the private keys and the proxy list.
    3. Handles one-shot commands (--set, --balances).
    4. Starts the CycleOrchestrator and waits for SIGINT / SIGTERM.
    """
    args = build_parser().parse_args()

    settings = BotSettings()
    setup_logging(args.log_level or settings.log_level)

    config_store = ConfigStore(settings.config_file)
    config_store.load()

    if args.set:
        if len(args.set) not in (2, 3):
            logger.error("--set expects FIELD VALUE [MAX]")
            return 2
        try:
            config_store.set(*args.set)
        except ValidationError as exc:
            logger.error(str(exc))
            return 2
        return 0

    try:
        accounts = AccountRegistry.load(settings.private_keys_file)
    except ValidationError as exc:
        logger.error(f"Cannot start: {exc}")
        return 1
    proxies = ProxyRegistry.load(settings.proxies_file)

    orchestrator = CycleOrchestrator(settings, config_store, accounts, proxies)
    orchestrator.add_listener(log_snapshot)

    if args.balances:
        await orchestrator.refresh_balances()
        print_balances(accounts)
        return 0

    stop_signal = asyncio.Event()

    def handle_signal():
        logger.info("Received shutdown signal. Initiating graceful shutdown...")
        stop_signal.set()
        orchestrator.stop()

    loop = asyncio.get_running_loop()
    if sys.platform != "win32":
        loop.add_signal_handler(signal.SIGTERM, handle_signal)
        loop.add_signal_handler(signal.SIGINT, handle_signal)

    try:
        if not orchestrator.start(schedule=not args.once):
            return 1

        if args.once:
            cycle = asyncio.ensure_future(orchestrator.wait_for_cycle())
            waiter = asyncio.ensure_future(stop_signal.wait())
            await asyncio.wait({cycle, waiter}, return_when=asyncio.FIRST_COMPLETED)
            waiter.cancel()
            await cycle
        else:
            await stop_signal.wait()
    finally:
        logger.info("Cleaning up...")
        await orchestrator.shutdown()

    return 0 if orchestrator.phase is CyclePhase.IDLE else 1


def run() -> None:
    """Console-script entry point."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Stopping bot (KeyboardInterrupt)...")
    except Exception as exc:
        logger.critical(f"Fatal error: {exc}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    run()
