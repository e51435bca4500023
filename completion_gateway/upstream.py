from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

import httpx

from .logging_config import logger
from .models import Usage
from .routing.error_classifier import extract_error_code, extract_error_message


class UpstreamError(Exception):
    """
    A failed upstream chat-completion call.

    Carries the structured pieces rate-limit classification looks at:
    HTTP status, provider error code and a human-readable message. `text`
    keeps the raw response body for diagnostics.
    """

    def __init__(
        self,
        *,
        status_code: Optional[int],
        message: str,
        code: Optional[str] = None,
        text: str = "",
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.text = text


class UpstreamResponseError(UpstreamError):
    """
    The provider answered 2xx but the payload has no usable reply.
    """


@dataclass
class UpstreamCompletion:
    content: str
    usage: Optional[Usage] = None
    raw: Dict[str, Any] = field(default_factory=dict)


class ChatCompletionClient(Protocol):
    async def create_chat_completion(
        self,
        *,
        model: str,
        messages: List[Dict[str, str]],
        temperature: float,
        max_tokens: int,
    ) -> UpstreamCompletion: ...


def parse_completion_payload(payload: Any) -> UpstreamCompletion:
    """
    Pull `choices[0].message.content` and `usage` out of an
    OpenAI-compatible response body.
    """
    try:
        content = payload["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise UpstreamResponseError(
            status_code=None,
            message="Upstream response is missing choices[0].message.content",
            text=_safe_dump(payload),
        ) from exc
    if not isinstance(content, str):
        raise UpstreamResponseError(
            status_code=None,
            message="Upstream response content is not a string",
            text=_safe_dump(payload),
        )

    usage_raw = payload.get("usage")
    usage = Usage.model_validate(usage_raw) if isinstance(usage_raw, dict) else None
    return UpstreamCompletion(content=content, usage=usage, raw=payload)


def _safe_dump(payload: Any) -> str:
    try:
        return json.dumps(payload, ensure_ascii=False)
    except (TypeError, ValueError):
        return repr(payload)


class UpstreamChatClient:
    """
    Calls `{base_url}/chat/completions` on an OpenAI-compatible provider.
    """

    def __init__(
        self,
        *,
        client: httpx.AsyncClient,
        base_url: str,
        api_token: str,
    ) -> None:
        self._client = client
        self._url = f"{base_url.rstrip('/')}/chat/completions"
        self._headers = {
            "Authorization": f"Bearer {api_token}",
            "Accept": "application/json",
        }

    async def create_chat_completion(
        self,
        *,
        model: str,
        messages: List[Dict[str, str]],
        temperature: float,
        max_tokens: int,
    ) -> UpstreamCompletion:
        body = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        try:
            resp = await self._client.post(self._url, headers=self._headers, json=body)
        except httpx.HTTPError as exc:
            logger.warning("upstream: transport error calling %s for %s: %s", self._url, model, exc)
            raise UpstreamError(
                status_code=None,
                message=f"Upstream transport error: {exc}",
                text=str(exc),
            ) from exc

        if resp.status_code >= 400:
            text = resp.text
            logger.warning(
                "upstream: HTTP error %s for model %s; response=%s",
                resp.status_code,
                model,
                text,
            )
            raise UpstreamError(
                status_code=resp.status_code,
                message=extract_error_message(text) or f"Upstream HTTP error {resp.status_code}",
                code=extract_error_code(text),
                text=text,
            )

        try:
            payload = resp.json()
        except ValueError as exc:
            raise UpstreamResponseError(
                status_code=resp.status_code,
                message="Upstream response is not valid JSON",
                text=resp.text,
            ) from exc

        # Cloudflare v4 envelope wraps the OpenAI payload in "result".
        if isinstance(payload, dict) and "choices" not in payload and isinstance(
            payload.get("result"), dict
        ):
            payload = payload["result"]

        return parse_completion_payload(payload)


__all__ = [
    "ChatCompletionClient",
    "UpstreamChatClient",
    "UpstreamCompletion",
    "UpstreamError",
    "UpstreamResponseError",
    "parse_completion_payload",
]
