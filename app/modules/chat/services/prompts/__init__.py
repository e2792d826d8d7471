# Prompt utilities for the chat service.

from .system_prompt import SYSTEM_PROMPT, build_system_message

__all__ = ["SYSTEM_PROMPT", "build_system_message"]
