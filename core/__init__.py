"""
Core module for the Helios activity bot.

This package contains the orchestration, configuration, chain access and
account / proxy management components behind the daily bridge and stake
cycle.

Submodules:
    config: Runtime settings (``BotSettings``) and the persisted ``ActivityConfig``.
    orchestrator: ``CycleOrchestrator`` account loop, stop flow and next-cycle timer.
    registry: Validator and bridge-destination tables with round-robin rules.
    accounts: Private key loading and ``eth_account`` signers.
    proxy_manager: Proxy list parsing and per-account assignment.
    gateway: JSON-RPC client for the Helios endpoint.
    nonce: Per-address strictly increasing nonce issuance.
    interrupt: Stop flag, active-task counter and cancellable delays.
    monitoring: Status snapshots and the Rich balance table.
    errors: Exception hierarchy.
    logging_setup: Compressed rotating file + safe console logging.
    utils: Corruption-safe JSON read/write helpers and formatting.
"""
