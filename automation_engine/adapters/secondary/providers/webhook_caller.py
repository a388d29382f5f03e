from typing import Any
from urllib.parse import urlparse

import httpx

from automation_engine.domain.resilience.entities.circuit_breaker import CircuitBreaker, CircuitState
from automation_engine.domain.resilience.exceptions.resilience_exceptions import CircuitOpenException
from automation_engine.ports.secondary.providers import IWebhookCaller
from automation_engine.shared.config import settings
from automation_engine.shared.logger import get_logger

logger = get_logger(__name__)

MAX_BODY_CHARS = 2000


class HttpxWebhookCaller(IWebhookCaller):
    """
    POSTs JSON payloads to artist-configured URLs.

    Each target host gets its own circuit breaker so one dead endpoint does not
    slow every run that calls it. Server errors and transport failures count
    against the breaker; 4xx answers do not.
    """

    def __init__(self, client: httpx.AsyncClient | None = None):
        self._client = client or httpx.AsyncClient(
            timeout=settings.WEBHOOK_TIMEOUT_SECONDS,
            headers={"User-Agent": settings.WEBHOOK_USER_AGENT},
        )
        self._circuits: dict[str, CircuitBreaker] = {}

    def _circuit_for(self, url: str) -> CircuitBreaker:
        host = urlparse(url).netloc or url
        if host not in self._circuits:
            self._circuits[host] = CircuitBreaker(
                name=f"webhook:{host}",
                failure_threshold=settings.CIRCUIT_BREAKER_FAILURE_THRESHOLD,
                reset_timeout_seconds=settings.CIRCUIT_BREAKER_RESET_TIMEOUT_SECONDS,
                half_open_max_calls=settings.CIRCUIT_BREAKER_HALF_OPEN_MAX_CALLS,
            )
        return self._circuits[host]

    async def post(self, url: str, payload: Any) -> dict:
        circuit = self._circuit_for(url)
        if not circuit.can_execute():
            raise CircuitOpenException(circuit.name, circuit.retry_in())

        try:
            response = await self._client.post(url, json=payload)
        except httpx.HTTPError:
            self._on_failure(circuit)
            raise

        if response.status_code >= 500:
            self._on_failure(circuit)
        else:
            circuit.record_success()

        return {"status": response.status_code, "body": response.text[:MAX_BODY_CHARS]}

    @staticmethod
    def _on_failure(circuit: CircuitBreaker) -> None:
        if circuit.record_failure():
            logger.error("circuit_opened", circuit=circuit.name, retry_in=circuit.retry_in())

    def open_circuits(self) -> list[str]:
        return sorted(
            circuit.name for circuit in self._circuits.values() if circuit.state == CircuitState.OPEN
        )

    async def aclose(self) -> None:
        await self._client.aclose()
