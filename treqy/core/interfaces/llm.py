"""
Abstract interface for multimodal extraction providers.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class HealthStatus:
    """Extraction provider health status."""

    available: bool
    provider: str
    model: str | None = None
    error: str | None = None
    response_time_ms: float | None = None


class IExtractionProvider(ABC):
    """
    Abstract interface for multimodal completion providers.

    Implementations: OpenRouterProvider
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name for logs and health output."""

    @abstractmethod
    async def extract(
        self,
        document: bytes,
        media_type: str,
        prompt: str | None = None,
    ) -> str:
        """
        Send one document with the extraction instruction.

        Args:
            document: Raw document bytes
            media_type: MIME type used in the data URI
            prompt: Instruction override (defaults to the material prompt)

        Returns:
            Raw response text from the model

        Raises:
            ExtractionServiceUnavailableError: On config, network, timeout
                or non-success responses
        """

    @abstractmethod
    async def check_health(self) -> HealthStatus:
        """Check whether the provider is configured and reachable."""
