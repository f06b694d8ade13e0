"""Core typed contracts shared by the session engine and providers."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class GenerationRequest:
    system_prompt: str
    user_text: str
    model: str = ""


@dataclass
class GenerationResponse:
    text: str
    usage: Dict[str, Any] = field(
        default_factory=lambda: {
            "input_tokens": 0,
            "output_tokens": 0,
        }
    )
    raw: Dict[str, Any] = field(default_factory=dict)
