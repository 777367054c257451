"""
Request coalescing for concurrent identical operations.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, Hashable, Tuple, TypeVar

from ogdrive.utils.logging import get_logger

T = TypeVar("T")

OperationKey = Tuple[Hashable, ...]

_logger = get_logger(__name__)


class OperationCoalescer:
    """
    Maps an operation signature to its in-flight task.

    A call whose key matches an in-flight call does not execute; it awaits
    and receives the in-flight result (or exception). The key is a tuple
    such as ``("rename", owner, entry_id, "a")``. Once the task settles the
    key is released and the next call executes normally.

    Example:
        ```python
        coalescer = OperationCoalescer()
        a, b = await asyncio.gather(
            coalescer.run(("rename", owner, eid, "a"), lambda: store_rename()),
            coalescer.run(("rename", owner, eid, "a"), lambda: store_rename()),
        )
        assert a == b  # store_rename ran once
        ```
    """

    def __init__(self) -> None:
        self._in_flight: Dict[OperationKey, "asyncio.Future[Any]"] = {}
        self.coalesced = 0

    @property
    def pending(self) -> int:
        """Number of operations currently in flight."""
        return len(self._in_flight)

    async def run(self, key: OperationKey, fn: Callable[[], Awaitable[T]]) -> T:
        """
        Execute ``fn`` unless an identical operation is already running.

        Args:
            key: Structural operation signature
            fn: Zero-argument coroutine factory

        Returns:
            Result of the single execution for this key
        """
        existing = self._in_flight.get(key)
        if existing is not None:
            self.coalesced += 1
            _logger.debug("Coalescing duplicate operation", extra={"operation": key[0]})
            # shield: a cancelled waiter must not cancel the shared execution
            return await asyncio.shield(existing)

        task = asyncio.ensure_future(fn())
        self._in_flight[key] = task
        task.add_done_callback(lambda _t: self._in_flight.pop(key, None))
        return await asyncio.shield(task)
