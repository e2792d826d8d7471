"""
Hosted completion providers.

The fallback chain is an ordered tuple of ``ProviderDescriptor`` values. Each
descriptor knows its capability (vision or text), how to read its credential
from settings, and the request parameters for its model. ``select_provider``
walks the chain in priority order; ``request_completion`` performs the single
OpenAI-compatible chat-completions call for the chosen descriptor.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Literal, Optional, Sequence
import logging

import httpx
from openai import APIError, APIStatusError, AsyncOpenAI

from core.config import Settings
from core.exceptions import ProviderError
from core.utils.perf import profile_stage

logger = logging.getLogger(__name__)

Capability = Literal["vision", "text"]
VISION: Capability = "vision"
TEXT: Capability = "text"

IMAGE_PLACEHOLDER = "(Image)"

_HTTPX: httpx.AsyncClient | None = None


def _nvidia_key(settings: Settings) -> Optional[str]:
    key = settings.nvidia_api_key
    return key if key and key.startswith("nvapi-") else None


def _groq_key(settings: Settings) -> Optional[str]:
    return settings.GROQ_API_KEY or None


@dataclass(frozen=True)
class ProviderDescriptor:
    name: str
    capability: Capability
    credential: Callable[[Settings], Optional[str]]
    base_url_setting: str
    model_setting: str
    params: Dict[str, Any] = field(default_factory=dict)

    def api_key(self, settings: Settings) -> Optional[str]:
        return self.credential(settings)

    def base_url(self, settings: Settings) -> str:
        return getattr(settings, self.base_url_setting)

    def model(self, settings: Settings) -> str:
        return getattr(settings, self.model_setting)

    def applies(self, has_image: bool, settings: Settings) -> bool:
        if self.capability == VISION and not has_image:
            return False
        return self.api_key(settings) is not None


PROVIDERS: tuple[ProviderDescriptor, ...] = (
    ProviderDescriptor(
        name="NVIDIA Vision",
        capability=VISION,
        credential=_nvidia_key,
        base_url_setting="NVIDIA_BASE_URL",
        model_setting="NVIDIA_VISION_MODEL",
        params={"temperature": 0.2, "top_p": 0.7, "max_tokens": 1024},
    ),
    ProviderDescriptor(
        name="Groq Vision",
        capability=VISION,
        credential=_groq_key,
        base_url_setting="GROQ_BASE_URL",
        model_setting="GROQ_VISION_MODEL",
        params={"temperature": 0.2, "max_tokens": 1024},
    ),
    ProviderDescriptor(
        name="NVIDIA Llama 3.1",
        capability=TEXT,
        credential=_nvidia_key,
        base_url_setting="NVIDIA_BASE_URL",
        model_setting="NVIDIA_TEXT_MODEL",
        params={"temperature": 0.5, "top_p": 1, "max_tokens": 1024},
    ),
    ProviderDescriptor(
        name="Groq",
        capability=TEXT,
        credential=_groq_key,
        base_url_setting="GROQ_BASE_URL",
        model_setting="GROQ_TEXT_MODEL",
        params={"temperature": 0.5},
    ),
)


def select_provider(
    has_image: bool,
    settings: Settings,
    providers: Sequence[ProviderDescriptor] = PROVIDERS,
) -> Optional[ProviderDescriptor]:
    for provider in providers:
        if provider.applies(has_image, settings):
            return provider
    return None


# ============================================================
# Message shaping
# ============================================================

def to_api_message(role: str, content: str, image: Optional[str] = None) -> Dict[str, Any]:
    if role == "user" and image:
        return {
            "role": "user",
            "content": [
                {"type": "text", "text": content},
                {"type": "image_url", "image_url": {"url": image}},
            ],
        }
    return {"role": role, "content": content}


def flatten_for_text(messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Reduce multimodal content blocks to their text part for text-only models."""
    flat = []
    for msg in messages:
        content = msg.get("content")
        if isinstance(content, list):
            text_part = next((c for c in content if c.get("type") == "text"), None)
            text = text_part.get("text") if text_part else None
            msg = {**msg, "content": text or IMAGE_PLACEHOLDER}
        flat.append(msg)
    return flat


def shape_messages(provider: ProviderDescriptor, messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    if provider.capability == TEXT:
        return flatten_for_text(messages)
    return messages


# ============================================================
# Transport
# ============================================================

def _get_http_client(settings: Settings) -> httpx.AsyncClient:
    global _HTTPX
    if _HTTPX is None or _HTTPX.is_closed:
        _HTTPX = httpx.AsyncClient(
            timeout=settings.PROVIDER_TIMEOUT_SECS,
            limits=httpx.Limits(max_keepalive_connections=20, max_connections=40),
        )
    return _HTTPX


async def close_http_client() -> None:
    global _HTTPX
    if _HTTPX is not None and not _HTTPX.is_closed:
        await _HTTPX.aclose()
    _HTTPX = None


def _error_detail(exc: APIStatusError) -> str:
    body = exc.body
    if isinstance(body, dict):
        nested = body.get("error")
        if isinstance(nested, dict) and nested.get("message"):
            return str(nested["message"])
        for key in ("message", "detail"):
            if body.get(key):
                return str(body[key])
    return exc.message or f"HTTP {exc.status_code}"


@profile_stage("provider_completion")
async def request_completion(
    provider: ProviderDescriptor,
    settings: Settings,
    messages: List[Dict[str, Any]],
) -> str:
    """
    Call ``provider`` once and return the reply text.

    Raises:
        ProviderError: on transport failure, non-2xx status or a body without
            reply content. No retries are attempted.
    """
    client = AsyncOpenAI(
        api_key=provider.api_key(settings),
        base_url=provider.base_url(settings),
        timeout=settings.PROVIDER_TIMEOUT_SECS,
        max_retries=0,
        http_client=_get_http_client(settings),
    )
    try:
        response = await client.chat.completions.create(
            model=provider.model(settings),
            messages=messages,
            **provider.params,
        )
    except APIStatusError as e:
        raise ProviderError(provider.name, _error_detail(e)) from e
    except (APIError, httpx.HTTPError) as e:
        raise ProviderError(provider.name, str(e) or e.__class__.__name__) from e

    try:
        content = response.choices[0].message.content
    except (AttributeError, IndexError, TypeError) as e:
        raise ProviderError(provider.name, "Malformed response from provider") from e
    if not content:
        raise ProviderError(provider.name, "Empty response from provider")
    return content
