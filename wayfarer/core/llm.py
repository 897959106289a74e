"""Centralised async LLM client utilities."""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, MutableMapping, Optional, Sequence

import httpx

from wayfarer.errors import EmptyResultError, GenerationError, ParseError


DEFAULT_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
DEFAULT_IMAGE_MODEL = os.getenv("WAYFARER_IMAGE_MODEL", "gpt-image-1")
DEFAULT_IMAGE_SIZE = os.getenv("WAYFARER_IMAGE_SIZE", "1024x1024")
DEFAULT_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0"))
DEFAULT_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "120"))
_MAX_TOKENS_ENV = os.getenv("LLM_MAX_TOKENS")
DEFAULT_MAX_TOKENS: Optional[int] = int(_MAX_TOKENS_ENV) if _MAX_TOKENS_ENV else None

_FENCED_JSON = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")

_LOGGER = logging.getLogger(__name__)


def _clean_dict(payload: MutableMapping[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


def clean_json_string(text: str) -> str:
    """Extract the JSON document from a reply that may include fences or prose."""

    match = _FENCED_JSON.search(text)
    if match and match.group(1):
        return match.group(1)

    starts = [index for index in (text.find("{"), text.find("[")) if index != -1]
    if starts:
        first = min(starts)
        closer = "}" if text[first] == "{" else "]"
        last = text.rfind(closer)
        if last > first:
            return text[first : last + 1]

    return text


@dataclass
class LLMClient:
    """A small async wrapper for chat and image APIs with an OpenAI-compatible surface."""

    model: str = DEFAULT_MODEL
    image_model: str = DEFAULT_IMAGE_MODEL
    image_size: str = DEFAULT_IMAGE_SIZE
    temperature: float = DEFAULT_TEMPERATURE
    timeout: Optional[float] = DEFAULT_TIMEOUT
    max_tokens: Optional[int] = DEFAULT_MAX_TOKENS
    api_key: Optional[str] = field(default_factory=lambda: os.getenv("OPENAI_API_KEY"))
    base_url: str = field(
        default_factory=lambda: os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    )

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _post(self, path: str, payload: Dict[str, Any], timeout: Optional[float]) -> Dict[str, Any]:
        request_timeout = timeout if timeout is not None else self.timeout
        url = f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"
        try:
            async with httpx.AsyncClient(timeout=request_timeout) as client:
                response = await client.post(url, json=payload, headers=self._headers())
                response.raise_for_status()
                return response.json()
        except httpx.HTTPError as exc:
            raise GenerationError(f"Request to {path} failed: {exc}") from exc

    async def chat(
        self,
        *,
        prompt: str,
        system: str,
        model: Optional[str] = None,
        stop: Optional[Sequence[str]] = None,
        prompt_version: str,
        temperature: Optional[float] = None,
        timeout: Optional[float] = None,
        max_tokens: Optional[int] = None,
        force_json: bool = False,
        image_url: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Call the chat completions endpoint and return its raw response."""

        user_content: Any = prompt
        if image_url:
            user_content = [
                {"type": "image_url", "image_url": {"url": image_url}},
                {"type": "text", "text": prompt},
            ]

        messages: List[Dict[str, Any]] = [
            {"role": "system", "content": system},
            {"role": "user", "content": user_content},
        ]

        if force_json:
            messages.append(
                {
                    "role": "system",
                    "content": "You must respond with valid JSON and nothing else.",
                }
            )

        payload: Dict[str, Any] = {
            "model": model or self.model,
            "messages": messages,
            "temperature": temperature if temperature is not None else self.temperature,
            "max_tokens": max_tokens if max_tokens is not None else self.max_tokens,
            "stop": list(stop) if stop else None,
            "user": prompt_version,
        }

        payload = _clean_dict(payload)

        _LOGGER.debug(
            "Calling chat completion model %s [prompt_version=%s]",
            payload["model"],
            prompt_version,
        )
        return await self._post("chat/completions", payload, timeout)

    async def generate_image(
        self,
        *,
        prompt: str,
        prompt_version: str,
        model: Optional[str] = None,
        size: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> Dict[str, Any]:
        """Call the image generation endpoint and return its raw response."""

        payload = {
            "model": model or self.image_model,
            "prompt": prompt,
            "size": size or self.image_size,
            "n": 1,
            "user": prompt_version,
        }
        _LOGGER.debug(
            "Calling image model %s [prompt_version=%s]",
            payload["model"],
            prompt_version,
        )
        return await self._post("images/generations", payload, timeout)

    @staticmethod
    def extract_content(response: Mapping[str, Any]) -> str:
        """Extract the assistant message content from a chat completion response."""

        choices = response.get("choices")
        if not choices:
            raise GenerationError("LLM response did not contain any choices")
        message = choices[0].get("message") or {}
        content = message.get("content")
        if content is None:
            raise GenerationError("LLM response did not contain content")
        return content

    @staticmethod
    def extract_image(response: Mapping[str, Any]) -> str:
        """Return the first generated image as a ``data:`` URL."""

        for item in response.get("data") or []:
            if not isinstance(item, Mapping):
                continue
            encoded = item.get("b64_json")
            if encoded:
                return f"data:image/png;base64,{encoded}"
            if item.get("url"):
                return str(item["url"])
        raise EmptyResultError("Image generation returned no image data")


_default_client = LLMClient()


def get_client() -> LLMClient:
    return _default_client


def set_client(client: LLMClient) -> None:
    """Replace the shared client, e.g. after loading configuration."""

    global _default_client
    _default_client = client


async def llm_json(
    prompt: str,
    system: str,
    model: str,
    stop: Optional[Sequence[str]],
    prompt_version: str,
) -> Any:
    """Call the shared LLM client expecting a JSON response."""

    response = await _default_client.chat(
        prompt=prompt,
        system=system,
        model=model,
        stop=stop,
        prompt_version=prompt_version,
    )
    content = _default_client.extract_content(response)
    try:
        return json.loads(clean_json_string(content))
    except json.JSONDecodeError:
        _LOGGER.info("Retrying with forced JSON [prompt_version=%s]", prompt_version)

    retry_response = await _default_client.chat(
        prompt=prompt,
        system=system,
        model=model,
        stop=stop,
        prompt_version=prompt_version,
        force_json=True,
    )
    retry_content = _default_client.extract_content(retry_response)
    try:
        return json.loads(clean_json_string(retry_content))
    except json.JSONDecodeError as exc:
        raise ParseError(f"LLM response was not valid JSON: {exc}") from exc


async def llm_text(
    prompt: str,
    system: str,
    model: str,
    prompt_version: str,
    *,
    image_url: Optional[str] = None,
) -> str:
    """Call the shared LLM client and return the stripped text reply."""

    response = await _default_client.chat(
        prompt=prompt,
        system=system,
        model=model,
        prompt_version=prompt_version,
        image_url=image_url,
    )
    return _default_client.extract_content(response).strip()


async def llm_image(prompt: str, prompt_version: str) -> str:
    """Generate an image with the shared client and return it as a ``data:`` URL."""

    response = await _default_client.generate_image(prompt=prompt, prompt_version=prompt_version)
    return _default_client.extract_image(response)


__all__ = [
    "LLMClient",
    "clean_json_string",
    "get_client",
    "llm_image",
    "llm_json",
    "llm_text",
    "set_client",
]
