"""
Transaction pipeline.

Drives a transaction through its lifecycle::

    BUILDING -> SIGNED -> SUBMITTED -> MINED -> CONFIRMED
                                    |        -> REVERTED
                                    -> TIMED_OUT

Each stage is exposed on its own (``build``, ``sign``, ``submit``,
``wait``) and chained by ``send``. Nothing here retries: a failed stage
raises, and the caller decides what to do with the transaction.

Example:
    ```python
    pipeline = TransactionPipeline(transport, signer, PipelineConfig(
        fees=FeeDefaults(max_fee_per_gas=2 * 10**9, max_priority_fee_per_gas=10**8),
    ))
    pending = await pipeline.send(TransactionRequest(to=token, data=calldata))
    print(pending.state, pending.block_number)
    ```
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Dict, Optional

from ethcontract.abi.revert import decode_revert_reason
from ethcontract.config import PipelineConfig
from ethcontract.contract.calls import ErrorDecoder, is_revert_error, revert_from_rpc_error
from ethcontract.errors import (
    ConfirmationTimeoutError,
    EthContractError,
    RpcError,
    TransactionRevertedError,
)
from ethcontract.signing.signers import Signer
from ethcontract.transport.base import Transport
from ethcontract.types.transaction import (
    ConfirmationPolicy,
    PendingTransaction,
    TransactionRequest,
    TransactionState,
)
from ethcontract.utils.hexutil import from_quantity, to_data, to_quantity
from ethcontract.utils.logging import LogContext, get_logger

_logger = get_logger(__name__)


class TransactionPipeline:
    """
    Builds, signs, submits and confirms transactions.

    Args:
        transport: JSON-RPC transport.
        signer: Signer for the sending account.
        config: Gas margin, fee defaults and default confirmation policy.
        error_decoder: Turns revert data into a reason string.
    """

    def __init__(
        self,
        transport: Transport,
        signer: Signer,
        config: Optional[PipelineConfig] = None,
        *,
        error_decoder: ErrorDecoder = decode_revert_reason,
    ) -> None:
        self._transport = transport
        self._signer = signer
        self._config = config or PipelineConfig()
        self._error_decoder = error_decoder

    @property
    def signer(self) -> Signer:
        return self._signer

    @property
    def config(self) -> PipelineConfig:
        return self._config

    # =========================================================================
    # Stages
    # =========================================================================

    async def build(self, request: TransactionRequest) -> TransactionRequest:
        """
        Resolve the fields the caller left unset.

        - nonce: ``eth_getTransactionCount(from, "pending")``
        - gas: ``eth_estimateGas`` times the configured margin, capped at
          ``max_gas``
        - chain id: ``eth_chainId``
        - fees: copied from ``config.fees``; never queried from the node

        Raises:
            ValidationError: If both fee models are set.
            RpcError: If a node query fails (including a reverting estimate).
        """
        request.check_fee_model()
        if request.from_address is None:
            request = request.replace(from_address=self._signer.address)

        if request.nonce is None:
            count = await self._transport.send(
                "eth_getTransactionCount", [request.from_address, "pending"]
            )
            request = request.replace(nonce=from_quantity(count))

        if request.gas is None:
            request = request.replace(gas=await self._estimate_gas(request))

        if request.chain_id is None:
            chain_id = await self._transport.send("eth_chainId", [])
            request = request.replace(chain_id=from_quantity(chain_id))

        request = self._config.fees.apply(request)
        _logger.debug(
            "Transaction built",
            extra={
                "from": request.from_address,
                "to": request.to,
                "nonce": request.nonce,
                "gas": request.gas,
                "chain_id": request.chain_id,
            },
        )
        return request

    async def _estimate_gas(self, request: TransactionRequest) -> int:
        estimate_params: Dict[str, Any] = {"from": request.from_address}
        if request.to is not None:
            estimate_params["to"] = request.to
        if request.value:
            estimate_params["value"] = to_quantity(request.value)
        if request.data:
            estimate_params["data"] = to_data(request.data)

        base = from_quantity(await self._transport.send("eth_estimateGas", [estimate_params]))
        estimated = int(base * self._config.gas_margin)
        # Cap to prevent excessive gas from a misbehaving node
        return min(estimated, self._config.max_gas)

    async def sign(self, request: TransactionRequest) -> bytes:
        """Sign through the configured signer. Returns the raw transaction."""
        raw = await self._signer.sign_transaction(request)
        _logger.debug(
            "Transaction signed",
            extra={"from": self._signer.address, "nonce": request.nonce},
        )
        return raw

    async def submit(
        self,
        raw: bytes,
        policy: Optional[ConfirmationPolicy] = None,
        *,
        request: Optional[TransactionRequest] = None,
    ) -> PendingTransaction:
        """
        Broadcast a signed transaction with ``eth_sendRawTransaction``.

        Args:
            raw: Signed transaction bytes.
            policy: Confirmation policy for ``wait`` (config default if None).
            request: The signed request, kept so a revert can be replayed.
        """
        tx_hash = await self._transport.send("eth_sendRawTransaction", [to_data(raw)])
        pending = PendingTransaction(
            tx_hash=tx_hash,
            policy=policy or self._config.confirmation,
            state=TransactionState.SUBMITTED,
            request=request,
        )
        _logger.info("Transaction submitted", extra={"tx_hash": tx_hash})
        return pending

    async def wait(self, pending: PendingTransaction) -> PendingTransaction:
        """
        Poll until the transaction is confirmed, reverted or the wait expires.

        Returns:
            ``pending`` in state CONFIRMED.

        Raises:
            TransactionRevertedError: The receipt reports failure (state
                REVERTED, ``revert_reason`` set when it could be recovered).
            ConfirmationTimeoutError: The wall-clock or block bound expired
                (state TIMED_OUT). The transaction itself is untouched and
                may still be mined; call ``wait`` again to keep watching.
        """
        policy = pending.policy
        loop = asyncio.get_running_loop()
        deadline = loop.time() + policy.timeout if policy.timeout is not None else None
        first_head: Optional[int] = None

        with LogContext(tx_hash=pending.tx_hash):
            while True:
                receipt = await self._bounded(
                    pending,
                    self._transport.send("eth_getTransactionReceipt", [pending.tx_hash]),
                    deadline,
                )

                if receipt is None:
                    if pending.state == TransactionState.MINED:
                        _logger.warning(
                            "Receipt disappeared, transaction back in mempool",
                            extra={"block_number": pending.block_number},
                        )
                    pending.state = TransactionState.SUBMITTED
                    pending.block_number = None
                    pending.receipt = None
                    if policy.timeout_blocks is not None:
                        head = await self._bounded(pending, self._block_number(), deadline)
                        if first_head is None:
                            first_head = head
                        elif head - first_head >= policy.timeout_blocks:
                            self._time_out(pending, blocks=policy.timeout_blocks)
                else:
                    block = from_quantity(receipt["blockNumber"])
                    if pending.state != TransactionState.MINED or pending.block_number != block:
                        _logger.info("Transaction mined", extra={"block_number": block})
                    pending.state = TransactionState.MINED
                    pending.block_number = block
                    pending.receipt = receipt

                    if from_quantity(receipt.get("status", "0x1")) == 0:
                        await self._revert(pending, deadline)

                    head = await self._bounded(pending, self._block_number(), deadline)
                    if head >= block + policy.required_confirmations:
                        pending.state = TransactionState.CONFIRMED
                        _logger.info(
                            "Transaction confirmed",
                            extra={"block_number": block, "head": head},
                        )
                        return pending

                delay = policy.poll_interval
                if deadline is not None:
                    remaining = deadline - loop.time()
                    if remaining <= 0:
                        self._time_out(pending, timeout=policy.timeout)
                    delay = min(delay, remaining)
                await asyncio.sleep(delay)

    def spawn_wait(self, pending: PendingTransaction) -> "asyncio.Task[PendingTransaction]":
        """
        Run ``wait`` as a background task.

        Cancelling the task stops polling only; the transaction is unaffected.
        """
        return asyncio.get_running_loop().create_task(
            self.wait(pending), name=f"wait-{pending.tx_hash[:10]}"
        )

    async def send(
        self,
        request: TransactionRequest,
        policy: Optional[ConfirmationPolicy] = None,
    ) -> PendingTransaction:
        """build -> sign -> submit -> wait."""
        built = await self.build(request)
        raw = await self.sign(built)
        pending = await self.submit(raw, policy, request=built)
        return await self.wait(pending)

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _block_number(self) -> int:
        return from_quantity(await self._transport.send("eth_blockNumber", []))

    async def _until(self, awaitable: Awaitable[Any], deadline: Optional[float]) -> Any:
        """Await ``awaitable``, raising asyncio.TimeoutError once ``deadline`` passes."""
        if deadline is None:
            return await awaitable
        remaining = deadline - asyncio.get_running_loop().time()
        return await asyncio.wait_for(awaitable, max(remaining, 0))

    async def _bounded(
        self, pending: PendingTransaction, awaitable: Awaitable[Any], deadline: Optional[float]
    ) -> Any:
        """Await one poll step; a step still running at ``deadline`` times ``pending`` out."""
        try:
            return await self._until(awaitable, deadline)
        except asyncio.TimeoutError:
            if deadline is None:
                raise
            self._time_out(pending, timeout=pending.policy.timeout)

    def _time_out(
        self,
        pending: PendingTransaction,
        *,
        timeout: Optional[float] = None,
        blocks: Optional[int] = None,
    ) -> None:
        pending.state = TransactionState.TIMED_OUT
        _logger.warning("Confirmation wait expired", extra={"timeout": timeout, "blocks": blocks})
        raise ConfirmationTimeoutError(pending.tx_hash, timeout=timeout, blocks=blocks)

    async def _revert(self, pending: PendingTransaction, deadline: Optional[float] = None) -> None:
        pending.state = TransactionState.REVERTED
        try:
            pending.revert_reason = await self._until(self._replay_reason(pending), deadline)
        except asyncio.TimeoutError:
            _logger.debug("Revert replay did not finish before the deadline")
            pending.revert_reason = None
        _logger.warning(
            "Transaction reverted",
            extra={"block_number": pending.block_number, "reason": pending.revert_reason},
        )
        raise TransactionRevertedError(
            pending.tx_hash, reason=pending.revert_reason, receipt=pending.receipt
        )

    async def _replay_reason(self, pending: PendingTransaction) -> Optional[str]:
        """Re-run the transaction with eth_call at its block to recover the revert reason."""
        try:
            call = await self._replay_params(pending)
            await self._transport.send("eth_call", [call, to_quantity(pending.block_number)])
        except RpcError as e:
            if is_revert_error(e):
                return revert_from_rpc_error(e, self._error_decoder).reason
            _logger.debug("Revert replay failed", extra={"error": str(e)})
            return None
        except EthContractError as e:
            _logger.debug("Revert replay failed", extra={"error": str(e)})
            return None
        # The replay succeeded, so the state that made it fail is gone
        return None

    async def _replay_params(self, pending: PendingTransaction) -> Dict[str, Any]:
        request = pending.request
        if request is not None:
            call: Dict[str, Any] = {"from": request.from_address}
            if request.to is not None:
                call["to"] = request.to
            if request.value:
                call["value"] = to_quantity(request.value)
            if request.data:
                call["data"] = to_data(request.data)
            if request.gas is not None:
                call["gas"] = to_quantity(request.gas)
            return call

        tx = await self._transport.send("eth_getTransactionByHash", [pending.tx_hash])
        if not tx:
            raise RpcError("Transaction not found for replay", method="eth_getTransactionByHash")
        call = {"from": tx["from"], "data": tx.get("input", "0x")}
        for key in ("to", "value", "gas"):
            if tx.get(key) is not None:
                call[key] = tx[key]
        return call
