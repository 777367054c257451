"""
Same-origin relay for the 0G storage indexer.

``GET/POST /relay?url=<target>`` forwards to an allow-listed storage host,
retrying upstream 504s with linear backoff, and hands the body back with
permissive CORS headers. Bodies declared above the streaming threshold
are relayed as a stream; smaller ones are buffered.
"""

from __future__ import annotations

import asyncio
from typing import Dict, Optional, Tuple
from urllib.parse import urlparse

import httpx
from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.background import BackgroundTask

from ogdrive.config import NETWORKS
from ogdrive.constants import (
    BACKOFF_STEP_SECONDS,
    LONG_RELAY_TIMEOUT_SECONDS,
    RELAY_USER_AGENT,
    STREAMING_THRESHOLD,
)
from ogdrive.storage.envelope import clamp_status, envelope_message, parse_error_envelope
from ogdrive.utils.logging import get_logger
from ogdrive.utils.retry import BackoffStrategy, RetryConfig, calculate_delay

_logger = get_logger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}
FORWARDED_REQUEST_HEADERS = ("authorization", "x-requested-with")
FORWARDED_RESPONSE_HEADERS = ("content-type", "content-length", "content-disposition")
TIMEOUT_MARKERS = ("timeout", "timed out", "aborted")
MEMORY_MARKERS = ("memory", "heap", "allocation")


def _default_hosts() -> Tuple[str, ...]:
    return tuple(sorted({urlparse(cfg.storage_rpc).hostname or "" for cfg in NETWORKS.values()}))


class RelayConfig(BaseModel):
    """Relay endpoint settings."""

    model_config = ConfigDict(frozen=True)

    allowed_hosts: Tuple[str, ...] = Field(
        default_factory=_default_hosts,
        description="Upstream hostnames the relay may reach",
    )
    max_attempts: int = Field(default=3, ge=1, description="Upstream attempts per request")
    backoff_step_s: float = Field(default=BACKOFF_STEP_SECONDS, ge=0)
    timeout_s: float = Field(default=LONG_RELAY_TIMEOUT_SECONDS, gt=0)
    streaming_threshold: int = Field(default=STREAMING_THRESHOLD, ge=0)
    user_agent: str = RELAY_USER_AGENT


def classify_failure(error: BaseException) -> Tuple[bool, bool]:
    """Return ``(is_timeout, is_memory_error)`` for an upstream exception."""
    text = str(error).lower()
    is_timeout = isinstance(error, (httpx.TimeoutException, asyncio.TimeoutError)) or any(
        marker in text for marker in TIMEOUT_MARKERS
    )
    is_memory = isinstance(error, MemoryError) or any(marker in text for marker in MEMORY_MARKERS)
    return is_timeout, is_memory


def _error_response(status: int, payload: Dict[str, object]) -> JSONResponse:
    return JSONResponse(payload, status_code=status, headers=CORS_HEADERS)


class Relay:
    """Upstream forwarding with retry, used by the FastAPI routes."""

    def __init__(
        self,
        config: RelayConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config
        self._transport = transport
        self._retry = RetryConfig(
            max_attempts=config.max_attempts,
            base_delay_ms=int(config.backoff_step_s * 1000),
            max_delay_ms=max(int(config.backoff_step_s * 1000) * config.max_attempts, 1),
            jitter=False,
            backoff=BackoffStrategy.LINEAR,
        )
        self.upstream_attempts = 0

    def check_target(self, url: Optional[str]) -> Optional[JSONResponse]:
        """Error response for a missing, malformed or disallowed target."""
        if not url:
            return _error_response(400, {"error": "Missing url"})
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            return _error_response(400, {"error": "Invalid url"})
        if parsed.hostname.lower() not in self.config.allowed_hosts:
            return _error_response(403, {"error": "Host not allowed", "host": parsed.hostname})
        return None

    async def forward(
        self,
        method: str,
        url: str,
        body: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Response:
        request_headers = {
            "User-Agent": self.config.user_agent,
            "Accept-Encoding": "identity",
            **(headers or {}),
        }
        attempts = self.config.max_attempts

        for attempt in range(1, attempts + 1):
            client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.timeout_s),
                transport=self._transport,
                follow_redirects=True,
            )
            self.upstream_attempts += 1
            try:
                upstream = await client.send(
                    client.build_request(method, url, content=body, headers=request_headers),
                    stream=True,
                )
            except (httpx.HTTPError, MemoryError) as e:
                await client.aclose()
                is_timeout, is_memory = classify_failure(e)
                _logger.warning(
                    "Relay upstream failed",
                    extra={"attempt": attempt, "timeout": is_timeout, "memory": is_memory, "error": str(e)},
                )
                if (is_timeout or is_memory) and attempt < attempts:
                    await asyncio.sleep(calculate_delay(attempt - 1, self._retry))
                    continue
                status = 504 if is_timeout else 413 if is_memory else 500
                return _error_response(status, {
                    "error": "Proxy error",
                    "details": str(e),
                    "isTimeout": is_timeout,
                    "isMemoryError": is_memory,
                    "attempts": attempt,
                })

            if upstream.status_code == 504 and attempt < attempts:
                await upstream.aclose()
                await client.aclose()
                _logger.info("Relay upstream returned 504, retrying", extra={"attempt": attempt})
                await asyncio.sleep(calculate_delay(attempt - 1, self._retry))
                continue

            return await self._respond(upstream, client, attempt)

        raise RuntimeError("Relay loop exited without a response")

    async def _respond(self, upstream: httpx.Response, client: httpx.AsyncClient, attempt: int) -> Response:
        status = upstream.status_code
        if status == 500:
            raw = await upstream.aread()
            await upstream.aclose()
            await client.aclose()
            envelope = parse_error_envelope(raw, failed=True) if raw else None
            return _error_response(500, {
                "error": "External server error",
                "status": 500,
                "message": envelope_message(envelope) if envelope else raw.decode("utf-8", "replace")[:500],
            })
        if status == 504:
            await upstream.aclose()
            await client.aclose()
            _logger.error("Relay exhausted retries on 504", extra={"attempts": attempt})
            return _error_response(504, {
                "error": "Proxy error",
                "details": "Upstream gateway timeout",
                "isTimeout": True,
                "isMemoryError": False,
                "attempts": attempt,
            })

        status = 500 if status == 600 else clamp_status(status)
        headers = {
            name: upstream.headers[name]
            for name in FORWARDED_RESPONSE_HEADERS
            if name in upstream.headers
        }
        headers.update(CORS_HEADERS)
        declared = int(upstream.headers.get("content-length") or 0)

        if declared > self.config.streaming_threshold:
            _logger.info("Streaming large relay response", extra={"size": declared})

            async def close() -> None:
                await upstream.aclose()
                await client.aclose()

            return StreamingResponse(
                upstream.aiter_raw(),
                status_code=status,
                headers=headers,
                background=BackgroundTask(close),
            )

        try:
            content = await upstream.aread()
        finally:
            await upstream.aclose()
            await client.aclose()
        headers["content-length"] = str(len(content))
        return Response(content=content, status_code=status, headers=headers)


def create_relay_app(
    config: Optional[RelayConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the relay application.

    Args:
        config: Relay settings
        transport: httpx transport override (tests)
    """
    relay = Relay(config or RelayConfig(), transport=transport)
    app = FastAPI(
        title="0G Drive Relay",
        description="Same-origin relay for 0G storage downloads",
        version="0.1.0",
    )
    app.state.relay = relay

    @app.get("/health")
    async def health() -> Dict[str, object]:
        return {"status": "ok", "allowed_hosts": list(relay.config.allowed_hosts)}

    @app.options("/relay")
    async def relay_options() -> Response:
        return Response(status_code=204, headers=CORS_HEADERS)

    @app.get("/relay")
    async def relay_get(url: Optional[str] = Query(default=None)) -> Response:
        rejected = relay.check_target(url)
        if rejected is not None:
            return rejected
        return await relay.forward("GET", url)

    @app.post("/relay")
    async def relay_post(request: Request, url: Optional[str] = Query(default=None)) -> Response:
        rejected = relay.check_target(url)
        if rejected is not None:
            return rejected
        headers = {"Content-Type": request.headers.get("content-type", "application/json")}
        for name in FORWARDED_REQUEST_HEADERS:
            if name in request.headers:
                headers[name] = request.headers[name]
        return await relay.forward("POST", url, body=await request.body(), headers=headers)

    return app
