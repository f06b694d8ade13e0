"""Ollama chat API provider over HTTP."""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from parley.kernel.types import GenerationRequest, GenerationResponse
from parley.providers.base import (
    BaseProvider,
    ProviderContractError,
    ProviderError,
    ProviderTransportError,
)


class OllamaProvider(BaseProvider):
    provider_id = "ollama"

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "llama3.2",
        timeout_sec: Optional[float] = None,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._timeout_sec = timeout_sec
        self._http_client = http_client

    @property
    def endpoint(self) -> str:
        return "{0}/api/chat".format(self._base_url)

    def generate(self, req: GenerationRequest) -> GenerationResponse:
        payload = {
            "model": req.model or self._model,
            "stream": False,
            "messages": [
                {"role": "system", "content": req.system_prompt},
                {"role": "user", "content": req.user_text},
            ],
        }

        client = self._http_client or httpx.Client(timeout=self._timeout_sec)
        try:
            response = client.post(self.endpoint, json=payload)
        except httpx.HTTPError as exc:
            raise ProviderTransportError(
                "failed to reach ollama at {0}: {1}".format(self.endpoint, exc),
                provider_id=self.provider_id,
            ) from exc
        finally:
            if self._http_client is None:
                client.close()

        if response.status_code != 200:
            raise ProviderError(
                "ollama returned HTTP {0}: {1}".format(response.status_code, response.text[:200]),
                provider_id=self.provider_id,
                status=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise ProviderContractError("ollama returned non-JSON response") from exc

        return self._normalize_payload(body)

    def _normalize_payload(self, body: Any) -> GenerationResponse:
        message = body.get("message") if isinstance(body, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise ProviderContractError(
                "ollama response has no message content",
                provider_id=self.provider_id,
            )

        usage: Dict[str, Any] = {
            "input_tokens": int(body.get("prompt_eval_count") or 0),
            "output_tokens": int(body.get("eval_count") or 0),
        }
        return GenerationResponse(text=content, usage=usage, raw=body)
