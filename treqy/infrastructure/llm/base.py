"""
Base extraction provider with a circuit breaker.

Retries are deliberately left to callers; the provider only fails fast
while the upstream service keeps failing.
"""

import time
from abc import ABC
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from treqy.config import get_logger, get_settings
from treqy.core.exceptions import ExtractionServiceUnavailableError
from treqy.core.interfaces import IExtractionProvider

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class CircuitBreakerState:
    """State for circuit breaker pattern."""

    failures: int = 0
    last_failure_time: float = 0.0
    is_open: bool = False
    cooldown_seconds: int = 60
    failure_threshold: int = 3

    def record_failure(self) -> None:
        """Record a failure and potentially open the circuit."""
        self.failures += 1
        self.last_failure_time = time.time()

        if self.failures >= self.failure_threshold:
            self.is_open = True
            logger.warning(
                "circuit_breaker_opened",
                failures=self.failures,
                cooldown=self.cooldown_seconds,
            )

    def record_success(self) -> None:
        """Record a success and reset the circuit."""
        if self.is_open:
            logger.info("circuit_breaker_closed")
        self.failures = 0
        self.is_open = False

    def check(self, provider: str) -> None:
        """
        Check if circuit allows requests.

        Raises ExtractionServiceUnavailableError if the circuit is open and
        the cooldown has not elapsed.
        """
        if not self.is_open:
            return

        remaining = self.cooldown_remaining
        if remaining > 0:
            raise ExtractionServiceUnavailableError(
                f"circuit breaker open for {provider}, retry in {remaining}s"
            )

        # Cooldown elapsed, allow one request (half-open state)
        logger.info("circuit_breaker_half_open", provider=provider)

    @property
    def cooldown_remaining(self) -> int:
        """Seconds remaining in cooldown."""
        if not self.is_open:
            return 0
        elapsed = time.time() - self.last_failure_time
        return max(0, int(self.cooldown_seconds - elapsed))


class BaseExtractionProvider(IExtractionProvider, ABC):
    """
    Base class for extraction providers.

    Wraps upstream calls in a circuit breaker so repeated failures fail fast.
    """

    def __init__(self) -> None:
        settings = get_settings()
        self.circuit_breaker = CircuitBreakerState(
            failure_threshold=settings.llm.failure_threshold,
            cooldown_seconds=settings.llm.cooldown_seconds,
        )

    async def _with_circuit_breaker(
        self,
        operation: Callable[..., Awaitable[T]],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """
        Execute operation guarded by the circuit breaker.

        Only ExtractionServiceUnavailableError counts as a failure.
        """
        self.circuit_breaker.check(self.name)

        try:
            result = await operation(*args, **kwargs)
        except ExtractionServiceUnavailableError as e:
            self.circuit_breaker.record_failure()
            logger.error(
                "extraction_provider_error",
                provider=self.name,
                error=e.message,
                status_code=e.status_code,
            )
            raise

        self.circuit_breaker.record_success()
        return result
