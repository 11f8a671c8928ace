"""Chat model provider interface. OpenAI-compatible chat completions primary."""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

import httpx

logger = logging.getLogger("sitebrief.llm")


@dataclass
class LLMError(Exception):
    """Structured error from the chat model. Never expose raw tracebacks."""
    kind: str  # timeout | unavailable | invalid_json | invalid_schema | provider_error
    message: str
    details: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"


def parse_json_content(text: str) -> Dict[str, Any]:
    """Parse a model reply as a JSON object. Tolerates a surrounding markdown fence."""
    text = (text or "").strip()
    if not text:
        raise LLMError(kind="invalid_json", message="Empty response from model")
    if text.startswith("```"):
        lines = text.split("\n")
        if lines[0].startswith("```"):
            lines = lines[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        text = "\n".join(lines)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise LLMError(kind="invalid_json", message="Model output is not valid JSON", details={"error": str(e)})
    if not isinstance(data, dict):
        raise LLMError(kind="invalid_json", message="Model output is not a JSON object")
    return data


class LLMProvider(ABC):
    """Abstract provider for chat model generation."""

    name: str = "base"

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        max_tokens: Optional[int] = None,
        temperature: float = 0.3,
        json_mode: bool = False,
    ) -> str:
        """Return the raw message content. Raises LLMError."""
        ...

    async def complete_json(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        max_tokens: Optional[int] = None,
        temperature: float = 0.3,
    ) -> Dict[str, Any]:
        """Generate and parse a JSON object. Raises LLMError."""
        text = await self.complete(
            system_prompt,
            user_prompt,
            max_tokens=max_tokens,
            temperature=temperature,
            json_mode=True,
        )
        return parse_json_content(text)


class OpenAIChatProvider(LLMProvider):
    """OpenAI-compatible /chat/completions provider."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gpt-4o-mini",
        base_url: str = "https://api.openai.com/v1",
        timeout_s: float = 60,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.transport = transport
        self.name = "openai"

    def _client(self, timeout_s: float) -> httpx.AsyncClient:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return httpx.AsyncClient(timeout=timeout_s, headers=headers, transport=self.transport)

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        max_tokens: Optional[int] = None,
        temperature: float = 0.3,
        json_mode: bool = False,
    ) -> str:
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temperature,
        }
        if max_tokens:
            payload["max_tokens"] = max_tokens
        if json_mode:
            payload["response_format"] = {"type": "json_object"}
        try:
            async with self._client(self.timeout_s) as client:
                resp = await client.post(f"{self.base_url}/chat/completions", json=payload)
        except httpx.TimeoutException as e:
            raise LLMError(kind="timeout", message="Model request timed out", details={"error": str(e)})
        except httpx.ConnectError as e:
            raise LLMError(kind="unavailable", message="Cannot connect to model API", details={"error": str(e)})
        except Exception as e:
            logger.exception("Chat completion request failed")
            raise LLMError(kind="provider_error", message="Model request failed", details={"error": str(e)})
        if resp.status_code != 200:
            raise LLMError(
                kind="provider_error",
                message=f"Model API returned {resp.status_code}",
                details={"status": resp.status_code, "body": resp.text[:200]},
            )
        try:
            data = resp.json()
        except json.JSONDecodeError as e:
            raise LLMError(kind="invalid_json", message="Invalid response from model API", details={"error": str(e)})
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            raise LLMError(kind="provider_error", message="Unexpected response shape from model API")
        if not content:
            raise LLMError(kind="invalid_json", message="Empty response from model")
        return content


Reply = Union[str, Dict[str, Any], Exception]


class FakeProvider(LLMProvider):
    """
    Test double: returns canned responses.

    `responder(system_prompt, user_prompt)` wins over `canned`; a returned or
    configured exception is raised. Dicts are serialized, so replies still go
    through JSON parsing. Every call is recorded in `calls`.
    """

    def __init__(
        self,
        canned: Optional[Reply] = None,
        error: Optional[LLMError] = None,
        responder: Optional[Callable[[str, str], Reply]] = None,
        delay_s: Union[float, Callable[[str], float]] = 0.0,
    ):
        self.canned = canned
        self.error = error
        self.responder = responder
        self.delay_s = delay_s
        self.calls: List[Dict[str, Any]] = []
        self.name = "fake"

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        max_tokens: Optional[int] = None,
        temperature: float = 0.3,
        json_mode: bool = False,
    ) -> str:
        self.calls.append({
            "system": system_prompt,
            "user": user_prompt,
            "max_tokens": max_tokens,
            "json_mode": json_mode,
        })
        delay = self.delay_s(user_prompt) if callable(self.delay_s) else self.delay_s
        if delay:
            await asyncio.sleep(delay)
        if self.error:
            raise self.error
        reply: Optional[Reply] = self.canned
        if self.responder is not None:
            reply = self.responder(system_prompt, user_prompt)
        if isinstance(reply, Exception):
            raise reply
        if reply is None:
            return json.dumps({"error": "reject"})
        if isinstance(reply, dict):
            return json.dumps(reply)
        return reply


_provider: Optional[LLMProvider] = None


def get_provider(settings) -> LLMProvider:
    """Get the configured provider (process-wide)."""
    global _provider
    if _provider is None:
        _provider = OpenAIChatProvider(
            api_key=getattr(settings, "llm_api_key", None),
            model=getattr(settings, "llm_model", "gpt-4o-mini"),
            base_url=getattr(settings, "llm_base_url", "https://api.openai.com/v1"),
            timeout_s=getattr(settings, "llm_timeout_s", 60),
        )
    return _provider


def reset_provider() -> None:
    """Reset cached provider (for tests)."""
    global _provider
    _provider = None
