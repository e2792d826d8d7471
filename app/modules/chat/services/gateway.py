from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence
import logging

from app.modules.chat.services.image_generation import build_image_reply, match_image_request
from app.modules.chat.services.prompts import build_system_message
from app.modules.chat.services.providers import (
    PROVIDERS,
    ProviderDescriptor,
    request_completion,
    select_provider,
    shape_messages,
    to_api_message,
)
from core.config import Settings
from core.exceptions import ProviderError

logger = logging.getLogger(__name__)

IMAGE_GENERATION_PROVIDER = "Pollinations.ai"
NO_CONFIGURATION_REPLY = "No valid API Configuration found for this request."

CompletionFn = Callable[[ProviderDescriptor, Settings, List[Dict[str, Any]]], Awaitable[str]]


@dataclass
class GatewayReply:
    text: str
    provider: Optional[str] = None
    failed: bool = False


class ProviderGateway:
    """Turns a user turn plus recent history into one assistant reply.

    Never raises for provider trouble: failures come back as reply text with
    ``failed=True``.
    """

    def __init__(
        self,
        settings: Settings,
        complete: CompletionFn = request_completion,
        providers: Sequence[ProviderDescriptor] = PROVIDERS,
    ):
        self.settings = settings
        self.complete = complete
        self.providers = providers

    def build_messages(self, history: Sequence[Any]) -> List[Dict[str, Any]]:
        """System instruction followed by ``history`` (objects with role/content/image)."""
        messages = [build_system_message()]
        messages.extend(to_api_message(m.role, m.content, getattr(m, "image", None)) for m in history)
        return messages

    async def reply(self, text: Optional[str], image: Optional[str], history: Sequence[Any]) -> GatewayReply:
        subject = match_image_request(text)
        if subject and not image:
            logger.info("Image generation request, skipping completion providers")
            return GatewayReply(
                text=build_image_reply(subject, self.settings.IMAGE_GENERATION_URL),
                provider=IMAGE_GENERATION_PROVIDER,
            )

        provider = select_provider(bool(image), self.settings, self.providers)
        if provider is None:
            logger.warning("No provider credentials configured")
            return GatewayReply(text=NO_CONFIGURATION_REPLY)

        messages = shape_messages(provider, self.build_messages(history))
        logger.info(f"Using provider {provider.name} ({len(messages)} messages)")
        try:
            content = await self.complete(provider, self.settings, messages)
            return GatewayReply(text=content, provider=provider.name)
        except ProviderError as e:
            logger.error(f"{provider.name} API Error: {e.message}")
            detail = e.message
        except Exception as e:
            logger.error(f"{provider.name} API Error: {e}", exc_info=True)
            detail = str(e) or "Unknown error"

        return GatewayReply(
            text=f"Error processing request with {provider.name}: {detail}",
            provider=provider.name,
            failed=True,
        )
