"""
Request batching.

BatchCoordinator collects JSON-RPC requests from any number of tasks and
sends them to the node in one round trip when ``flush()`` is called.

Each enqueued request gets a BatchHandle that resolves exactly once: with
its result, with the node's error for that request, or with a batch-wide
failure (transport error, BatchDesyncError).

Example:
    ```python
    batch = BatchCoordinator(transport)
    balance = batch.enqueue("eth_getBalance", [address, "latest"])
    head = batch.enqueue("eth_blockNumber", [])
    await batch.flush()
    print(await balance, await head)
    ```
"""

from __future__ import annotations

import asyncio
import itertools
import threading
from dataclasses import dataclass
from typing import Any, Generator, List, Optional, Sequence

from ethcontract.errors import BatchDesyncError, BatchError, RpcError
from ethcontract.transport.base import RpcRequest, RpcResponse, Transport
from ethcontract.utils.logging import get_logger

_logger = get_logger(__name__)


class BatchHandle:
    """Awaitable result of one batched request. Resolves exactly once."""

    def __init__(self, future: "asyncio.Future[Any]", method: str) -> None:
        self._future = future
        self.method = method

    @property
    def done(self) -> bool:
        return self._future.done()

    async def result(self) -> Any:
        return await asyncio.shield(self._future)

    def __await__(self) -> Generator[Any, None, Any]:
        return self.result().__await__()


@dataclass
class _Slot:
    request: Optional[RpcRequest]
    future: "asyncio.Future[Any]"


class BatchCoordinator:
    """
    Coalesces requests into one JSON-RPC batch.

    ``enqueue`` may be called from any task; ``flush`` atomically takes the
    pending requests, so requests enqueued while a flush is in flight land in
    the next batch. Nothing is sent until ``flush`` is called.
    """

    def __init__(self, transport: Transport) -> None:
        self._transport = transport
        self._lock = threading.Lock()
        self._pending: List[_Slot] = []
        self._ids = itertools.count(1)

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)

    def enqueue(self, method: str, params: Sequence[Any]) -> BatchHandle:
        """Queue a request for the next flush. Requires a running event loop."""
        future = asyncio.get_running_loop().create_future()
        with self._lock:
            request = RpcRequest(next(self._ids), method, list(params))
            self._pending.append(_Slot(request, future))
        return BatchHandle(future, method)

    def enqueue_failed(self, method: str, error: BaseException) -> BatchHandle:
        """
        Reserve a slot that already failed (e.g. its params could not be
        encoded). The slot is not transmitted; its handle raises ``error``.
        """
        future = asyncio.get_running_loop().create_future()
        future.set_exception(error)
        with self._lock:
            self._pending.append(_Slot(None, future))
        return BatchHandle(future, method)

    def discard(self) -> int:
        """Drop pending requests without sending them. Their handles are cancelled."""
        with self._lock:
            slots, self._pending = self._pending, []
        for slot in slots:
            if not slot.future.done():
                slot.future.cancel()
        return len(slots)

    async def flush(self) -> int:
        """
        Send every pending request as one batch and resolve the handles.

        Failures are delivered through the handles, never raised here: a
        transport error or a desynchronized reply fails every handle of the
        batch, a per-request node error fails that handle only. If the flush
        itself is cancelled, every handle of the batch fails with a BatchError
        and the cancellation propagates.

        Returns:
            Number of requests transmitted.
        """
        with self._lock:
            slots, self._pending = self._pending, []

        live = [slot for slot in slots if slot.request is not None]
        if not live:
            return 0

        requests = [slot.request for slot in live]
        _logger.debug("Flushing batch", extra={"size": len(requests)})
        try:
            responses = await self._transport.send_batch(requests)
        except Exception as e:
            _logger.warning(
                "Batch transport failure",
                extra={"size": len(requests), "error": str(e)},
            )
            self._fail_all(live, e)
            return len(requests)
        except BaseException:
            # Cancelled or interrupted mid-flight: no handle may stay pending
            self._fail_all(
                live,
                BatchError(
                    "Batch flush was interrupted before a reply arrived",
                    code="BATCH_INTERRUPTED",
                    details={"size": len(requests)},
                ),
            )
            raise

        desync = _check_correlation(requests, responses)
        if desync is not None:
            _logger.error(
                "Batch response desynchronized",
                extra={"size": len(requests), "received": len(responses)},
            )
            self._fail_all(live, desync)
            return len(requests)

        for slot, response in zip(live, responses):
            if slot.future.done():
                continue
            if response.is_error:
                slot.future.set_exception(
                    RpcError.from_response(
                        response.error, method=slot.request.method, params=slot.request.params
                    )
                )
            else:
                slot.future.set_result(response.result)
        return len(requests)

    @staticmethod
    def _fail_all(slots: Sequence[_Slot], error: BaseException) -> None:
        for slot in slots:
            if not slot.future.done():
                slot.future.set_exception(error)


def _check_correlation(
    requests: Sequence[RpcRequest], responses: Sequence[RpcResponse]
) -> Optional[BatchDesyncError]:
    """
    Responses are matched by position; echoed ids must agree.

    A response without an id (some proxies strip it) is accepted on position
    alone.
    """
    expected = [r.id for r in requests]
    received = [r.id for r in responses]
    if len(responses) != len(requests):
        return BatchDesyncError(
            f"Sent {len(requests)} requests, received {len(responses)} responses",
            expected_ids=expected,
            received_ids=received,
        )
    for sent, got in zip(expected, received):
        if got is not None and got != sent:
            return BatchDesyncError(
                f"Response id {got!r} does not match request id {sent!r}",
                expected_ids=expected,
                received_ids=received,
            )
    return None
