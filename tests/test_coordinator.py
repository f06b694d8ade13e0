from __future__ import annotations

import threading
import time
from io import StringIO

import pytest

from parley.kernel.coordinator import FALLBACK_TEXT, GenerationCoordinator, GenerationInterrupted
from parley.kernel.loading import ThinkingIndicator
from parley.kernel.types import GenerationRequest, GenerationResponse
from parley.providers.base import BaseProvider, ProviderError


class TTYStream(StringIO):
    def isatty(self) -> bool:
        return True


class ScriptedProvider(BaseProvider):
    provider_id = "scripted"

    def __init__(self, text: str = "", error: Exception = None, delay_sec: float = 0.0):
        self._text = text
        self._error = error
        self._delay_sec = delay_sec
        self.requests = []

    def generate(self, req: GenerationRequest) -> GenerationResponse:
        self.requests.append(req)
        if self._delay_sec:
            time.sleep(self._delay_sec)
        if self._error is not None:
            raise self._error
        return GenerationResponse(text=self._text)


def _request() -> GenerationRequest:
    return GenerationRequest(system_prompt="be brief", user_text="hello")


def _coordinator(stream, **kwargs) -> GenerationCoordinator:
    return GenerationCoordinator(
        stream=stream,
        indicator_factory=lambda out: ThinkingIndicator(stream=out, enabled=True, interval_sec=0.01),
        **kwargs,
    )


def test_generate_returns_backend_text_and_stops_indicator():
    stream = TTYStream()
    coordinator = _coordinator(stream)
    provider = ScriptedProvider(text="hi there", delay_sec=0.05)

    reply = coordinator.generate(provider, _request())

    assert reply == "hi there"
    assert provider.requests == [_request()]
    indicator = coordinator.last_indicator
    assert indicator.state.running is False
    assert indicator.is_alive is False
    assert "Thinking" in stream.getvalue()
    assert stream.getvalue().endswith("\r" + " " * 30 + "\r")


def test_backend_failure_degrades_to_fallback():
    stream = TTYStream()
    coordinator = _coordinator(stream)

    reply = coordinator.generate(ScriptedProvider(error=ProviderError("boom", provider_id="x")), _request())

    assert reply == FALLBACK_TEXT
    assert coordinator.last_indicator.state.running is False
    assert coordinator.last_indicator.is_alive is False


def test_indicator_output_stops_after_completion():
    stream = TTYStream()
    coordinator = _coordinator(stream)

    coordinator.generate(ScriptedProvider(text="done", delay_sec=0.05), _request())
    written = stream.getvalue()
    time.sleep(0.05)

    assert stream.getvalue() == written


def test_timeout_returns_fallback():
    stream = StringIO()
    coordinator = _coordinator(stream, timeout_sec=0.1, poll_interval_sec=0.01)

    started = time.monotonic()
    reply = coordinator.generate(ScriptedProvider(text="late", delay_sec=1.0), _request())

    assert reply == FALLBACK_TEXT
    assert time.monotonic() - started < 0.9
    assert coordinator.last_indicator.state.running is False


def test_keyboard_interrupt_while_waiting_raises_generation_interrupted(monkeypatch):
    stream = TTYStream()
    coordinator = _coordinator(stream)

    def interrupted_wait(worker: threading.Thread) -> bool:
        raise KeyboardInterrupt

    monkeypatch.setattr(coordinator, "_await", interrupted_wait)

    with pytest.raises(GenerationInterrupted):
        coordinator.generate(ScriptedProvider(text="never", delay_sec=0.2), _request())

    assert coordinator.last_indicator.state.running is False
    assert stream.getvalue().endswith("\r" + " " * 30 + "\r")
