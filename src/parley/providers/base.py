"""Backend contract and the errors generation backends raise."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from parley.kernel.types import GenerationRequest, GenerationResponse

_SUMMARY_KEYS = ("provider_id", "status", "returncode")


class ProviderError(RuntimeError):
    """A backend call failed; ``status`` is an HTTP code, ``returncode`` a CLI exit code."""

    def __init__(
        self,
        message: str,
        *,
        provider_id: Optional[str] = None,
        status: Optional[int] = None,
        returncode: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.provider_id = provider_id
        self.status = status
        self.returncode = returncode

    @property
    def details(self) -> Dict[str, Any]:
        return {key: getattr(self, key) for key in _SUMMARY_KEYS if getattr(self, key) is not None}


def provider_error_summary(exc: BaseException) -> str:
    """One log line: message, then whichever backend details are known."""

    segments = [str(exc) or type(exc).__name__]
    if isinstance(exc, ProviderError):
        segments.extend("{0}={1}".format(key, value) for key, value in exc.details.items())
    return " | ".join(segments)


class ProviderContractError(ProviderError):
    """The backend answered, but with nothing usable as reply text."""


class ProviderTransportError(ProviderError):
    """The backend could not be reached: missing binary, refused connection or timeout."""


class BaseProvider(ABC):
    """A generation backend. One instance is one conversation handle."""

    provider_id: str

    @abstractmethod
    def generate(self, req: GenerationRequest) -> GenerationResponse:
        raise NotImplementedError
