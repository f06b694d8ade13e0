"""Overlap the thinking indicator with one backend generation call."""

from __future__ import annotations

import sys
import threading
from dataclasses import dataclass
from typing import Callable, Optional, TextIO

from parley.kernel.debug_log import DebugLogWriter
from parley.kernel.loading import DEFAULT_GRACE_SEC, ThinkingIndicator
from parley.kernel.types import GenerationRequest, GenerationResponse
from parley.providers.base import BaseProvider, provider_error_summary

FALLBACK_TEXT = "Oops! Can you try again?"

IndicatorFactory = Callable[[TextIO], ThinkingIndicator]


class GenerationInterrupted(RuntimeError):
    """Raised when the wait for the backend is interrupted by the user."""


@dataclass
class _CallOutcome:
    response: Optional[GenerationResponse] = None
    error: Optional[BaseException] = None


class GenerationCoordinator:
    """Runs the backend on a worker thread while the indicator animates.

    Backend failures and timeouts degrade to ``FALLBACK_TEXT``. Only an
    interrupt of the waiting thread escapes, as ``GenerationInterrupted``.
    The indicator line is always cleared before this returns or raises.
    """

    def __init__(
        self,
        *,
        stream: Optional[TextIO] = None,
        indicator_factory: Optional[IndicatorFactory] = None,
        grace_sec: float = DEFAULT_GRACE_SEC,
        timeout_sec: Optional[float] = None,
        fallback_text: str = FALLBACK_TEXT,
        log: Optional[DebugLogWriter] = None,
        poll_interval_sec: float = 0.05,
    ) -> None:
        self._stream = stream or sys.stdout
        self._indicator_factory = indicator_factory or (lambda out: ThinkingIndicator(stream=out))
        self._grace_sec = grace_sec
        self._timeout_sec = timeout_sec
        self._fallback_text = fallback_text
        self._log = log or DebugLogWriter.disabled()
        self._poll_interval_sec = poll_interval_sec
        self.last_indicator: Optional[ThinkingIndicator] = None

    def generate(self, provider: BaseProvider, request: GenerationRequest) -> str:
        indicator = self._indicator_factory(self._stream)
        self.last_indicator = indicator
        outcome = _CallOutcome()
        worker = threading.Thread(
            target=self._invoke,
            args=(provider, request, outcome),
            name="parley-generate",
            daemon=True,
        )

        indicator.start()
        try:
            worker.start()
            finished = self._await(worker)
        except KeyboardInterrupt as exc:
            indicator.stop(self._grace_sec)
            self._log.warn(
                "coordinator",
                "generation interrupted",
                provider_id=getattr(provider, "provider_id", ""),
            )
            raise GenerationInterrupted("generation was interrupted") from exc

        indicator.stop(self._grace_sec)
        if indicator.abandoned:
            self._log.warn("coordinator", "indicator did not stop within grace period")

        if not finished:
            self._log.error(
                "coordinator",
                "generation timed out",
                provider_id=getattr(provider, "provider_id", ""),
                timeout_sec=self._timeout_sec,
            )
            return self._fallback_text

        if outcome.error is not None or outcome.response is None:
            self._log.error(
                "coordinator",
                "generation failed",
                provider_id=getattr(provider, "provider_id", ""),
                error=provider_error_summary(outcome.error) if outcome.error else "empty response",
            )
            return self._fallback_text

        return outcome.response.text

    def _await(self, worker: threading.Thread) -> bool:
        waited = 0.0
        while worker.is_alive():
            worker.join(self._poll_interval_sec)
            waited += self._poll_interval_sec
            if self._timeout_sec is not None and waited >= self._timeout_sec and worker.is_alive():
                return False
        return True

    @staticmethod
    def _invoke(provider: BaseProvider, request: GenerationRequest, outcome: _CallOutcome) -> None:
        try:
            outcome.response = provider.generate(request)
        except Exception as exc:
            outcome.error = exc
