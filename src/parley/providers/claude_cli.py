"""Claude CLI provider adapter."""

from __future__ import annotations

import json
import subprocess
from typing import Any, Dict, List

from parley.kernel.types import GenerationRequest, GenerationResponse
from parley.providers.base import (
    BaseProvider,
    ProviderContractError,
    ProviderError,
    ProviderTransportError,
)


class ClaudeCLIProvider(BaseProvider):
    provider_id = "claude"

    def __init__(self, binary: str = "claude", timeout_sec: int = 300, model: str = "") -> None:
        self._binary = binary
        self._timeout_sec = timeout_sec
        self._model = model

    def generate(self, req: GenerationRequest) -> GenerationResponse:
        command = self._build_command(req)
        try:
            completed = subprocess.run(
                command,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                timeout=self._timeout_sec,
                check=False,
            )
        except FileNotFoundError as exc:
            raise ProviderTransportError("claude CLI not found", provider_id=self.provider_id) from exc
        except subprocess.TimeoutExpired as exc:
            raise ProviderTransportError(
                "claude CLI timed out after {0}s".format(self._timeout_sec),
                provider_id=self.provider_id,
            ) from exc

        if completed.returncode != 0:
            raise ProviderError(
                "claude CLI failed with code {0}: {1}".format(
                    completed.returncode,
                    (completed.stderr or completed.stdout).strip(),
                ),
                provider_id=self.provider_id,
                returncode=completed.returncode,
            )

        return self._normalize_payload(self._parse_output_payload(completed.stdout))

    def _build_command(self, req: GenerationRequest) -> List[str]:
        command = [
            self._binary,
            "-p",
            "--output-format",
            "json",
            "--system-prompt",
            req.system_prompt,
        ]
        model = req.model or self._model
        if model:
            command.extend(["--model", model])
        command.append(req.user_text)
        return command

    @staticmethod
    def _parse_output_payload(stdout: str) -> Dict[str, Any]:
        stripped = stdout.strip()
        if not stripped:
            raise ProviderContractError("claude provider returned empty output")

        try:
            payload = json.loads(stripped)
        except json.JSONDecodeError as exc:
            raise ProviderContractError("claude provider returned invalid JSON") from exc

        if not isinstance(payload, dict):
            raise ProviderContractError("claude provider returned non-object JSON payload")
        return payload

    def _normalize_payload(self, payload: Dict[str, Any]) -> GenerationResponse:
        if bool(payload.get("is_error")):
            error_text = str(payload.get("result") or payload.get("subtype") or "claude provider error")
            raise ProviderError(error_text.strip(), provider_id=self.provider_id)

        result_text = payload.get("result")
        if not isinstance(result_text, str) or not result_text.strip():
            raise ProviderContractError(
                "claude provider returned no result text",
                provider_id=self.provider_id,
            )

        usage_payload = payload.get("usage") if isinstance(payload.get("usage"), dict) else {}
        return GenerationResponse(
            text=result_text,
            usage={
                "input_tokens": int(usage_payload.get("input_tokens") or 0),
                "output_tokens": int(usage_payload.get("output_tokens") or 0),
            },
            raw=payload,
        )
