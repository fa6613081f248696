# flatwatch/adapters/clients/http_resilience.py
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any

import httpx

from ...config import settings

log = logging.getLogger(__name__)

RETRYABLE_STATUS = (429, 500, 502, 503, 504)


@dataclass
class _CircuitState:
    fails: int = 0
    opened_at: float | None = None


@dataclass
class ResilientHttp:
    """
    Timeout + retries with exponential backoff + a circuit breaker around httpx.
    Circuit state is per instance.
    """

    timeout_s: float = 30.0
    max_retries: int = 2
    backoff_base_s: float = 0.5
    circuit_fail_threshold: int = 5
    circuit_reset_s: float = 300.0
    user_agent: str | None = None
    transport: httpx.AsyncBaseTransport | None = None
    _circuit: _CircuitState = field(default_factory=_CircuitState)

    @classmethod
    def from_settings(cls, **overrides: Any) -> "ResilientHttp":
        kw: dict[str, Any] = dict(
            timeout_s=float(settings.HTTP_TIMEOUT_S),
            max_retries=int(settings.HTTP_MAX_RETRIES),
            backoff_base_s=float(settings.HTTP_BACKOFF_BASE_S),
            circuit_fail_threshold=int(settings.HTTP_CIRCUIT_FAIL_THRESHOLD),
            circuit_reset_s=float(settings.HTTP_CIRCUIT_RESET_S),
            user_agent=settings.HTTP_USER_AGENT,
        )
        kw.update(overrides)
        return cls(**kw)

    def circuit_is_open(self, now: float | None = None) -> bool:
        if self._circuit.opened_at is None:
            return False
        now = time.time() if now is None else now
        return (now - self._circuit.opened_at) < self.circuit_reset_s

    def _on_success(self) -> None:
        self._circuit.fails = 0
        self._circuit.opened_at = None

    def _on_failure(self) -> None:
        self._circuit.fails += 1
        if self._circuit.fails >= self.circuit_fail_threshold:
            if self._circuit.opened_at is None:
                log.warning("circuit opened after %s consecutive failures", self._circuit.fails)
            self._circuit.opened_at = time.time()

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
        json: Any | None = None,
        data: Any | None = None,
    ) -> httpx.Response:
        if self.circuit_is_open():
            raise httpx.HTTPError(f"circuit_open: refusing external call to {url}")

        hdrs = dict(headers or {})
        if self.user_agent:
            hdrs.setdefault("User-Agent", self.user_agent)

        timeout = httpx.Timeout(self.timeout_s)
        last_exc: Exception | None = None
        for attempt in range(self.max_retries + 1):
            try:
                async with httpx.AsyncClient(timeout=timeout, transport=self.transport) as client:
                    resp = await client.request(method, url, headers=hdrs, params=params, json=json, data=data)

                if resp.status_code in RETRYABLE_STATUS:
                    raise httpx.HTTPStatusError("retryable_status", request=resp.request, response=resp)

                resp.raise_for_status()
                self._on_success()
                return resp
            except httpx.HTTPStatusError as e:
                last_exc = e
                self._on_failure()
                if e.response.status_code not in RETRYABLE_STATUS or attempt >= self.max_retries:
                    break
            except (httpx.TimeoutException, httpx.NetworkError) as e:
                last_exc = e
                self._on_failure()
                if attempt >= self.max_retries:
                    break
            await asyncio.sleep(min(5.0, self.backoff_base_s * (2**attempt)))

        assert last_exc is not None
        raise last_exc
