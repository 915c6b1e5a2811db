"""
Read-only contract calls.

CallExecutor encodes a function call, runs it with ``eth_call`` (directly or
as part of a batch) and decodes the return data. Reverts are reported as
CallRevertedError with the decoded reason when one is available.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Generator, List, Optional, Sequence

from ethcontract.abi.revert import decode_revert_reason, revert_data_from_error
from ethcontract.abi.signatures import FunctionSignature
from ethcontract.constants import ABI_SELECTOR_LENGTH, ABI_WORD_LENGTH
from ethcontract.contract.batch import BatchCoordinator, BatchHandle
from ethcontract.errors import CallRevertedError, EncodeError, RpcError, ValidationError
from ethcontract.transport.base import Transport
from ethcontract.types.log import BlockTag, block_param
from ethcontract.utils.hexutil import from_data, normalize_address, to_data, to_quantity
from ethcontract.utils.logging import get_logger

_logger = get_logger(__name__)

ErrorDecoder = Callable[[Optional[bytes]], Optional[str]]

# geth reports reverts with this JSON-RPC code
_REVERT_RPC_CODE = 3


def call_params(
    data: bytes,
    to: str,
    *,
    from_address: Optional[str] = None,
    value: int = 0,
    block: BlockTag = "latest",
) -> List[Any]:
    """``eth_call`` params for call data sent to ``to``."""
    tx: Dict[str, Any] = {"to": normalize_address(to, "to"), "data": to_data(data)}
    if from_address is not None:
        tx["from"] = normalize_address(from_address, "from_address")
    if value:
        tx["value"] = to_quantity(value)
    return [tx, block_param(block)]


def is_revert_error(error: RpcError) -> bool:
    """True when a node error reports a revert rather than a node fault."""
    if error.rpc_code == _REVERT_RPC_CODE:
        return True
    return "revert" in error.message.lower()


def revert_from_rpc_error(error: RpcError, decoder: ErrorDecoder = decode_revert_reason) -> CallRevertedError:
    data = revert_data_from_error(error)
    return CallRevertedError(decoder(data), data=data)


def decode_call_result(
    function: FunctionSignature,
    result: Any,
    decoder: ErrorDecoder = decode_revert_reason,
) -> Any:
    """
    Decode ``eth_call`` return data for ``function``.

    Raises:
        CallRevertedError: If the node returned revert data as the result, or
            empty data for a function that declares outputs.
        DecodeError: If the return data is malformed.
    """
    raw = from_data(result if result is not None else "0x")
    if function.outputs and not raw:
        raise CallRevertedError(None, data=raw)
    # Some nodes hand back the revert payload as a plain result
    if len(raw) % ABI_WORD_LENGTH == ABI_SELECTOR_LENGTH:
        reason = decoder(raw)
        if reason is not None:
            raise CallRevertedError(reason, data=raw)
    return function.decode_output(raw)


class PendingCall:
    """
    A call queued in a batch.

    Awaiting it yields the decoded return value once the batch was flushed.
    """

    def __init__(
        self,
        function: FunctionSignature,
        handle: BatchHandle,
        decoder: ErrorDecoder = decode_revert_reason,
    ) -> None:
        self.function = function
        self._handle = handle
        self._decoder = decoder

    @property
    def done(self) -> bool:
        return self._handle.done

    async def result(self) -> Any:
        try:
            raw = await self._handle
        except RpcError as e:
            if is_revert_error(e):
                raise revert_from_rpc_error(e, self._decoder) from e
            raise
        return decode_call_result(self.function, raw, self._decoder)

    def __await__(self) -> Generator[Any, None, Any]:
        return self.result().__await__()


class CallExecutor:
    """
    Runs read-only calls against a transport.

    Example:
        ```python
        executor = CallExecutor(transport)
        balance = await executor.call(balance_of, [owner], token_address)
        ```
    """

    def __init__(self, transport: Transport, *, error_decoder: ErrorDecoder = decode_revert_reason) -> None:
        """
        Args:
            transport: JSON-RPC transport.
            error_decoder: Turns revert data into a reason string; pass
                ``ContractAbi.decode_error`` to also resolve custom errors.
        """
        self._transport = transport
        self._error_decoder = error_decoder

    @property
    def transport(self) -> Transport:
        return self._transport

    async def call(
        self,
        function: FunctionSignature,
        args: Sequence[Any],
        to: str,
        *,
        from_address: Optional[str] = None,
        block: BlockTag = "latest",
        value: int = 0,
    ) -> Any:
        """
        Execute ``function(*args)`` on ``to`` without creating a transaction.

        Returns:
            None for no outputs, the value for one output, a tuple otherwise.

        Raises:
            EncodeError: If ``args`` do not fit the function's inputs.
            CallRevertedError: If the call reverted.
            RpcError: For node failures other than reverts.
        """
        if value and not function.payable:
            raise ValidationError(f"{function.canonical} is not payable")
        params = call_params(
            function.encode_call(args), to, from_address=from_address, value=value, block=block
        )
        try:
            result = await self._transport.send("eth_call", params)
        except RpcError as e:
            if is_revert_error(e):
                error = revert_from_rpc_error(e, self._error_decoder)
                _logger.debug(
                    "Call reverted",
                    extra={"function": function.canonical, "reason": error.reason},
                )
                raise error from e
            raise
        return decode_call_result(function, result, self._error_decoder)

    def enqueue(
        self,
        batch: BatchCoordinator,
        function: FunctionSignature,
        args: Sequence[Any],
        to: str,
        *,
        from_address: Optional[str] = None,
        block: BlockTag = "latest",
        value: int = 0,
    ) -> PendingCall:
        """
        Queue the call in ``batch``.

        Arguments that cannot be encoded do not abort the batch: the call
        keeps its slot, is not transmitted, and its PendingCall raises the
        encoding error.
        """
        try:
            params = call_params(
                function.encode_call(args), to, from_address=from_address, value=value, block=block
            )
        except (EncodeError, ValidationError) as e:
            handle = batch.enqueue_failed("eth_call", e)
        else:
            handle = batch.enqueue("eth_call", params)
        return PendingCall(function, handle, self._error_decoder)
