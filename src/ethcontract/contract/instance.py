"""
Contract instances.

A ContractInstance binds a ContractAbi to a deployed address, a transport and
optionally a signer. Typed wrappers (hand-written or generated) call into it
through builders:

- ``method(...)`` returns a MethodBuilder for state-changing calls
- ``view_method(...)`` returns a ViewMethodBuilder for read-only calls
- ``events(...)`` returns an EventQuery for the contract's logs

Example:
    ```python
    token = ContractInstance(ContractAbi.from_json(erc20_abi), token_address, transport, signer=signer)
    balance = await token.view_method("balanceOf", owner).call()
    pending = await token.method("transfer", recipient, 10**18).confirmations(3).send()
    ```
"""

from __future__ import annotations

from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Sequence

from ethcontract.abi.contract import ContractAbi
from ethcontract.abi.signatures import EventSignature, FunctionSignature
from ethcontract.config import PipelineConfig
from ethcontract.contract.batch import BatchCoordinator
from ethcontract.contract.calls import (
    CallExecutor,
    PendingCall,
    call_params,
    decode_call_result,
    is_revert_error,
    revert_from_rpc_error,
)
from ethcontract.contract.events import EventStream, build_filter
from ethcontract.contract.transactions import TransactionPipeline
from ethcontract.errors import RpcError, ValidationError
from ethcontract.signing.signers import Signer
from ethcontract.transport.base import Transport
from ethcontract.types.log import BlockTag, DecodedEvent, LogFilter
from ethcontract.types.transaction import ConfirmationPolicy, PendingTransaction, TransactionRequest
from ethcontract.utils.hexutil import normalize_address


class ContractInstance:
    """
    A deployed contract.

    Args:
        abi: The contract's ABI.
        address: Deployed address.
        transport: JSON-RPC transport.
        signer: Signer for ``send()``; calls work without one.
        config: Pipeline policy (gas margin, fees, confirmations).
        aliases: Maps canonical signatures to alternative method names,
            typically to give overloads distinct names. Every signature must
            exist in the ABI.
    """

    def __init__(
        self,
        abi: ContractAbi,
        address: str,
        transport: Transport,
        *,
        signer: Optional[Signer] = None,
        config: Optional[PipelineConfig] = None,
        aliases: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.abi = abi
        self.address = normalize_address(address)
        self.transport = transport
        self.signer = signer
        self.config = config or PipelineConfig()
        self._aliases: Dict[str, FunctionSignature] = {}
        for signature, alias in (aliases or {}).items():
            if "(" not in signature or not abi.has_function(signature):
                raise ValidationError(
                    f"A method alias for {signature!r} was specified but this method does not exist"
                )
            self._aliases[alias] = abi.function(signature)

        self.executor = CallExecutor(transport, error_decoder=abi.decode_error)
        self._pipeline: Optional[TransactionPipeline] = None
        if signer is not None:
            self._pipeline = TransactionPipeline(
                transport, signer, self.config, error_decoder=abi.decode_error
            )

    @property
    def pipeline(self) -> TransactionPipeline:
        if self._pipeline is None:
            raise ValidationError("ContractInstance has no signer; sending transactions requires one")
        return self._pipeline

    def function(self, key: str) -> FunctionSignature:
        """Resolve an alias, a function name or a canonical signature."""
        if key in self._aliases:
            return self._aliases[key]
        return self.abi.function(key)

    def signatures(self) -> Dict[str, str]:
        """Method name (alias where one was given) to canonical signature."""
        by_signature = {f.canonical: alias for alias, f in self._aliases.items()}
        return {by_signature.get(f.canonical, f.name): f.canonical for f in self.abi.functions}

    def method(self, key: str, *args: Any) -> "MethodBuilder":
        """Builder for a state-changing call of ``key(*args)``."""
        function = self.function(key)
        return MethodBuilder(self, function, function.encode_call(args))

    def view_method(self, key: str, *args: Any) -> "ViewMethodBuilder":
        """Builder for a read-only call of ``key(*args)``."""
        return ViewMethodBuilder(self, self.function(key), list(args))

    def fallback(self, data: bytes = b"") -> "MethodBuilder":
        """
        Builder for a plain call to the contract's fallback or receive function.

        Raises:
            ValidationError: If the ABI declares neither.
        """
        if not (self.abi.has_fallback or self.abi.has_receive):
            raise ValidationError("Contract declares no fallback or receive function")
        return MethodBuilder(self, None, bytes(data))

    def events(self, key: str) -> "EventQuery":
        return EventQuery(self, self.abi.event(key))

    def __repr__(self) -> str:
        return f"ContractInstance(address={self.address!r}, {self.abi!r})"


class MethodBuilder:
    """
    Fluent builder for one transaction.

    Setters return the builder so calls chain; ``call()`` dry-runs the
    transaction with ``eth_call`` and ``send()`` goes through the pipeline.
    """

    def __init__(
        self,
        instance: ContractInstance,
        function: Optional[FunctionSignature],
        data: bytes,
    ) -> None:
        self._instance = instance
        self.function = function
        self.data = data
        self._from: Optional[str] = None
        self._gas: Optional[int] = None
        self._value = 0
        self._nonce: Optional[int] = None
        self._gas_price: Optional[int] = None
        self._max_fee_per_gas: Optional[int] = None
        self._max_priority_fee_per_gas: Optional[int] = None
        self._policy: Optional[ConfirmationPolicy] = None

    def from_(self, address: str) -> "MethodBuilder":
        self._from = normalize_address(address, "from_address")
        return self

    def gas(self, gas: int) -> "MethodBuilder":
        self._gas = gas
        return self

    def value(self, value: int) -> "MethodBuilder":
        payable = self._instance.abi.fallback_payable or self._instance.abi.has_receive
        if self.function is not None:
            payable = self.function.payable
        if value and not payable:
            raise ValidationError(f"{self._label} is not payable")
        self._value = value
        return self

    def nonce(self, nonce: int) -> "MethodBuilder":
        self._nonce = nonce
        return self

    def gas_price(self, gas_price: int) -> "MethodBuilder":
        self._gas_price = gas_price
        return self

    def max_fee_per_gas(self, fee: int) -> "MethodBuilder":
        self._max_fee_per_gas = fee
        return self

    def max_priority_fee_per_gas(self, fee: int) -> "MethodBuilder":
        self._max_priority_fee_per_gas = fee
        return self

    def confirmations(self, count: int) -> "MethodBuilder":
        base = self._policy or self._instance.config.confirmation
        self._policy = base.model_copy(update={"required_confirmations": count})
        return self

    def policy(self, policy: ConfirmationPolicy) -> "MethodBuilder":
        self._policy = policy
        return self

    @property
    def _label(self) -> str:
        return self.function.canonical if self.function is not None else "fallback"

    def _sender(self) -> Optional[str]:
        if self._from is not None:
            return self._from
        if self._instance.signer is not None:
            return self._instance.signer.address
        return None

    def request(self) -> TransactionRequest:
        """The transaction draft described by this builder."""
        return TransactionRequest(
            from_address=self._sender(),
            to=self._instance.address,
            value=self._value,
            data=self.data,
            gas=self._gas,
            gas_price=self._gas_price,
            max_fee_per_gas=self._max_fee_per_gas,
            max_priority_fee_per_gas=self._max_priority_fee_per_gas,
            nonce=self._nonce,
        )

    async def call(self, block: BlockTag = "latest") -> Any:
        """Simulate the transaction and return the decoded outputs."""
        params = call_params(
            self.data,
            self._instance.address,
            from_address=self._sender(),
            value=self._value,
            block=block,
        )
        try:
            result = await self._instance.transport.send("eth_call", params)
        except RpcError as e:
            if is_revert_error(e):
                raise revert_from_rpc_error(e, self._instance.abi.decode_error) from e
            raise
        if self.function is None:
            return None
        return decode_call_result(self.function, result, self._instance.abi.decode_error)

    async def send(self) -> PendingTransaction:
        """Build, sign, submit and wait for confirmation."""
        return await self._instance.pipeline.send(self.request(), self._policy)


class ViewMethodBuilder:
    """Fluent builder for one read-only call."""

    def __init__(self, instance: ContractInstance, function: FunctionSignature, args: List[Any]) -> None:
        self._instance = instance
        self.function = function
        self.args = args
        self._block: BlockTag = "latest"
        self._from: Optional[str] = None

    def block(self, block: BlockTag) -> "ViewMethodBuilder":
        self._block = block
        return self

    def from_(self, address: str) -> "ViewMethodBuilder":
        self._from = normalize_address(address, "from_address")
        return self

    async def call(self) -> Any:
        return await self._instance.executor.call(
            self.function,
            self.args,
            self._instance.address,
            from_address=self._from,
            block=self._block,
        )

    def batch_call(self, batch: BatchCoordinator) -> PendingCall:
        """Queue the call in ``batch``; await the result after ``batch.flush()``."""
        return self._instance.executor.enqueue(
            batch,
            self.function,
            self.args,
            self._instance.address,
            from_address=self._from,
            block=self._block,
        )


class EventQuery:
    """Builder for log queries on one event of one contract."""

    def __init__(self, instance: ContractInstance, event: EventSignature) -> None:
        self._instance = instance
        self.event = event
        self._indexed: Sequence[Any] = ()
        self._from_block: Optional[BlockTag] = None
        self._to_block: Optional[BlockTag] = None
        self._stream = EventStream(instance.transport, event)

    def where(self, *indexed_values: Any) -> "EventQuery":
        """Bind indexed params in declaration order; None is a wildcard."""
        self._indexed = indexed_values
        return self

    def from_block(self, block: BlockTag) -> "EventQuery":
        self._from_block = block
        return self

    def to_block(self, block: BlockTag) -> "EventQuery":
        self._to_block = block
        return self

    def filter(self) -> LogFilter:
        return build_filter(
            self.event,
            [self._instance.address],
            self._indexed,
            self._from_block,
            self._to_block,
        )

    async def query(self) -> List[DecodedEvent]:
        return await self._stream.query(self.filter())

    def stream(self, *, poll_interval: Optional[float] = None, confirmations: int = 0) -> AsyncIterator[DecodedEvent]:
        interval = poll_interval if poll_interval is not None else self._instance.config.confirmation.poll_interval
        return self._stream.stream(self.filter(), poll_interval=interval, confirmations=confirmations)
