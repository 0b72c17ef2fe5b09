"""
On-chain operations for the Helios activity bot.

Each operation inherits from :class:`Operation` (defined in ``base.py``) and
implements ``read_balance`` and ``execute``.  The shared ``run`` template
turns every attempt into an :class:`OperationResult` (success, skipped or
failed) so the cycle loop never has to inspect exception messages.

Submodules:
    encoding: ABI payload builders for bridge, stake and ERC-20 calls.
    base: ``TransactionIntent``, ``TransactionResult``, ``OperationResult``
        and the ``Operation`` base with sign / submit / receipt handling.
    bridge: ``BridgeOperation`` -- HLS bridge to Sepolia / BSC testnet with
        conditional approval.
    stake: ``StakeOperation`` -- HLS delegation to a validator.
    executor: ``OperationExecutor`` facade used by the orchestrator.
"""
