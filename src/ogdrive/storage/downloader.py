"""
Download/Relay Orchestrator

Fetches bytes by root hash through a ladder of strategies: the
same-origin relay, a direct fetch from the indexer, then the relay
again with a long timeout. Every attempt checks the response contract
(binary payload vs. JSON error envelope), clamps odd statuses and
classifies failures. A confirmed not-found ends the request at once.

One request moves through ``Idle -> Resolving -> Fetching ->
(Streaming | Buffering) -> Done | Failed``.
"""

from __future__ import annotations

import os
import time
from pathlib import Path
from typing import Callable, List, Optional, Union
from urllib.parse import quote

import httpx

from ogdrive.config import NetworkConfig
from ogdrive.constants import SNIFF_BYTES
from ogdrive.errors.storage import (
    DownloadError,
    DownloadNetworkError,
    DownloadNotFoundError,
    DownloadServerError,
    DownloadTimeoutError,
    EmptyDownloadError,
)
from ogdrive.storage.envelope import (
    clamp_status,
    envelope_message,
    is_json_content_type,
    is_not_found_envelope,
    looks_like_error_envelope,
    parse_error_envelope,
)
from ogdrive.storage.types import (
    DownloadAttempt,
    DownloadConfig,
    DownloadResult,
    DownloadState,
    DownloadStrategy,
)
from ogdrive.utils.logging import get_logger
from ogdrive.utils.retry import BackoffStrategy, RetryConfig, retry_async
from ogdrive.utils.validation import validate_root_hash

_logger = get_logger(__name__)

StateListener = Callable[[str, DownloadState], None]


class _Payload:
    """Bytes obtained by one successful attempt."""

    def __init__(self, data: bytes, size: int, streamed: bool) -> None:
        self.data = data
        self.size = size
        self.streamed = streamed


class _DownloadRun:
    """State of one logical download request."""

    def __init__(self, root_hash: str, listener: Optional[StateListener]) -> None:
        self.root_hash = root_hash
        self.state = DownloadState.IDLE
        self.history: List[DownloadState] = [DownloadState.IDLE]
        self.attempts: List[DownloadAttempt] = []
        self._listener = listener

    def transition(self, state: DownloadState) -> None:
        self.state = state
        self.history.append(state)
        if self._listener is not None:
            self._listener(self.root_hash, state)


class Downloader:
    """
    Resilient downloader for content-addressed files.

    Example:
        ```python
        downloader = Downloader(network, DownloadConfig(relay_url="http://localhost:8000/relay"))
        result = await downloader.download(root_hash)
        Path("out.bin").write_bytes(result.data)
        ```
    """

    def __init__(
        self,
        network: NetworkConfig,
        config: Optional[DownloadConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        on_state: Optional[StateListener] = None,
    ) -> None:
        self._network = network
        self._config = config or DownloadConfig()
        self._transport = transport
        self._on_state = on_state

    @property
    def config(self) -> DownloadConfig:
        return self._config

    def target_url(self, root_hash: str) -> str:
        return self._network.download_url(root_hash)

    def strategy_url(self, strategy: DownloadStrategy, root_hash: str) -> str:
        target = self.target_url(root_hash)
        if strategy.via_relay:
            return f"{self._config.relay_url}?url={quote(target, safe='')}"
        return target

    async def download(self, root_hash: str) -> DownloadResult:
        """
        Download a file into memory.

        Raises:
            InvalidRootHashError: If the root hash is malformed (no I/O made)
            DownloadNotFoundError: If the network has no such file
            DownloadError: Last classified failure once the ladder is exhausted
        """
        return await self._run(root_hash, sink=None)

    async def download_to_file(self, root_hash: str, path: Union[str, Path]) -> DownloadResult:
        """
        Download a file to ``path``.

        Payloads declared above the streaming threshold are written as
        they arrive; smaller ones are buffered and written once complete.
        """
        return await self._run(root_hash, sink=Path(path))

    # ------------------------------------------------------------------
    # Ladder
    # ------------------------------------------------------------------

    async def _run(self, root_hash: str, sink: Optional[Path]) -> DownloadResult:
        root_hash = validate_root_hash(root_hash)
        run = _DownloadRun(root_hash, self._on_state)
        run.transition(DownloadState.RESOLVING)

        ladder = [s for s in self._config.ladder if not s.via_relay or self._config.relay_url]
        last_error: Optional[DownloadError] = None

        for strategy in ladder:
            try:
                payload = await self._run_strategy(run, strategy, sink)
            except DownloadNotFoundError as e:
                last_error = e
                break
            except DownloadError as e:
                last_error = e
                _logger.warning(
                    "Download strategy exhausted",
                    extra={"root_hash": root_hash, "strategy": strategy.name, "kind": e.kind.value},
                )
                continue

            run.transition(DownloadState.DONE)
            _logger.info(
                "Download complete",
                extra={
                    "root_hash": root_hash,
                    "strategy": strategy.name,
                    "size": payload.size,
                    "attempts": len(run.attempts),
                },
            )
            return DownloadResult(
                root_hash=root_hash,
                data=payload.data,
                size=payload.size,
                strategy=strategy.name,
                streamed=payload.streamed,
                path=str(sink) if sink else None,
                attempts=list(run.attempts),
            )

        run.transition(DownloadState.FAILED)
        if last_error is None:
            last_error = DownloadNetworkError("No download strategy available", root_hash=root_hash)
        last_error.attempts = list(run.attempts)
        _logger.error(
            "Download failed",
            extra={"root_hash": root_hash, "kind": last_error.kind.value, "attempts": len(run.attempts)},
        )
        raise last_error

    async def _run_strategy(
        self,
        run: _DownloadRun,
        strategy: DownloadStrategy,
        sink: Optional[Path],
    ) -> _Payload:
        counter = {"attempt": 0}

        async def attempt() -> _Payload:
            counter["attempt"] += 1
            return await self._attempt(run, strategy, counter["attempt"], sink)

        def on_retry(n: int, error: Exception, delay: float) -> None:
            _logger.info(
                "Retrying download",
                extra={"root_hash": run.root_hash, "strategy": strategy.name, "retry": n, "delay_s": delay},
            )

        retry = RetryConfig(
            max_attempts=strategy.retry_budget + 1,
            base_delay_ms=int(self._config.backoff_step_s * 1000),
            max_delay_ms=max(int(self._config.backoff_step_s * 1000) * (strategy.retry_budget + 1), 1),
            jitter=False,
            backoff=BackoffStrategy.LINEAR,
            retryable_errors=(DownloadError,),
            should_retry=lambda e: getattr(e, "is_retryable", False),
        )
        return await retry_async(attempt, retry, on_retry=on_retry)

    # ------------------------------------------------------------------
    # Single attempt
    # ------------------------------------------------------------------

    async def _attempt(
        self,
        run: _DownloadRun,
        strategy: DownloadStrategy,
        number: int,
        sink: Optional[Path],
    ) -> _Payload:
        url = self.strategy_url(strategy, run.root_hash)
        run.transition(DownloadState.FETCHING)
        started = time.monotonic()
        status: Optional[int] = None

        def record(ok: bool, error: Optional[DownloadError] = None) -> None:
            run.attempts.append(DownloadAttempt(
                strategy=strategy.name,
                attempt=number,
                url=url,
                status=status,
                ok=ok,
                error_kind=error.kind.value if error else None,
                elapsed_ms=int((time.monotonic() - started) * 1000),
            ))

        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(strategy.timeout_s),
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                async with client.stream("GET", url) as response:
                    status = clamp_status(response.status_code)
                    payload = await self._read(run, response, status, strategy, sink)
        except DownloadError as e:
            record(False, e)
            raise
        except httpx.TimeoutException as e:
            error = DownloadTimeoutError(run.root_hash, strategy.timeout_s)
            record(False, error)
            raise error from e
        except httpx.TransportError as e:
            error = DownloadNetworkError(f"Network error: {e}", root_hash=run.root_hash)
            record(False, error)
            raise error from e
        except MemoryError as e:
            error = DownloadServerError(
                "Out of memory while downloading",
                root_hash=run.root_hash,
                status=413,
                transient=True,
            )
            record(False, error)
            raise error from e

        record(True)
        return payload

    def _error_for_status(self, root_hash: str, status: int, body: bytes) -> DownloadError:
        envelope = parse_error_envelope(body, failed=True) if body else None
        if status == 404 or is_not_found_envelope(envelope):
            return DownloadNotFoundError(root_hash)
        message = envelope_message(envelope) if envelope else f"HTTP {status}"
        if status == 504:
            return DownloadTimeoutError(
                root_hash, 0, status=status, message=f"Gateway timeout: {message}",
            )
        if status == 413:
            return DownloadServerError(
                f"Payload too large for relay: {message}",
                root_hash=root_hash, status=status, transient=True,
            )
        return DownloadServerError(
            f"Download failed: {message}", root_hash=root_hash, status=status, transient=False,
        )

    async def _read(
        self,
        run: _DownloadRun,
        response: httpx.Response,
        status: int,
        strategy: DownloadStrategy,
        sink: Optional[Path],
    ) -> _Payload:
        root_hash = run.root_hash
        if status >= 400:
            raise self._error_for_status(root_hash, status, await response.aread())

        if is_json_content_type(response.headers.get("content-type")):
            body = await response.aread()
            envelope = parse_error_envelope(body)
            if envelope is not None:
                raise self._envelope_error(root_hash, envelope)
            return self._buffered(run, body)

        chunks = response.aiter_bytes(chunk_size=self._config.chunk_size)
        head = b""
        async for chunk in chunks:
            head += chunk
            if len(head) >= SNIFF_BYTES:
                break

        if not head:
            raise EmptyDownloadError(root_hash)

        if looks_like_error_envelope(head):
            body = head + b"".join([c async for c in chunks])
            envelope = parse_error_envelope(body)
            if envelope is not None:
                raise self._envelope_error(root_hash, envelope)
            return self._buffered(run, body)

        declared = int(response.headers.get("content-length") or 0)
        if sink is not None and declared > self._config.streaming_threshold:
            run.transition(DownloadState.STREAMING)
            size = await self._stream_to(sink, head, chunks)
            return _Payload(b"", size, streamed=True)

        run.transition(DownloadState.BUFFERING)
        parts = [head]
        async for chunk in chunks:
            parts.append(chunk)
        body = b"".join(parts)
        if sink is not None:
            sink.write_bytes(body)
        return _Payload(body, len(body), streamed=False)

    def _buffered(self, run: _DownloadRun, body: bytes) -> _Payload:
        run.transition(DownloadState.BUFFERING)
        if not body:
            raise EmptyDownloadError(run.root_hash)
        return _Payload(body, len(body), streamed=False)

    def _envelope_error(self, root_hash: str, envelope: dict) -> DownloadError:
        if is_not_found_envelope(envelope):
            return DownloadNotFoundError(root_hash)
        return DownloadServerError(
            f"Storage error: {envelope_message(envelope)}",
            root_hash=root_hash,
            status=500,
            transient=False,
            details={"envelope": envelope},
        )

    async def _stream_to(self, sink: Path, head: bytes, chunks) -> int:
        partial = sink.with_name(sink.name + ".part")
        size = 0
        try:
            with open(partial, "wb") as fh:
                fh.write(head)
                size += len(head)
                async for chunk in chunks:
                    fh.write(chunk)
                    size += len(chunk)
            os.replace(partial, sink)
        except BaseException:
            partial.unlink(missing_ok=True)
            raise
        return size
