"""
Core Configuration
Consolidated configuration settings for the Brainexa chat backend
"""

import os
from functools import lru_cache
from typing import Any, Dict, List, Literal, Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_PATH = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=f"{BASE_PATH}/.env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
    )

    PROJECT_NAME: str = "Brainexa Chat"
    ENVIRONMENT: Literal["dev", "pro"] = "dev"
    LOG_LEVEL: str = "INFO"
    API_PREFIX: str = "/api"

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./brainexa.sqlite"

    # Auth
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 30

    # Provider credentials (any NVIDIA key works, GLM first)
    NVIDIA_GLM_API_KEY: Optional[str] = None
    NVIDIA_KIMI_API_KEY: Optional[str] = None
    GROQ_API_KEY: Optional[str] = None

    # Provider endpoints and models
    NVIDIA_BASE_URL: str = "https://integrate.api.nvidia.com/v1"
    GROQ_BASE_URL: str = "https://api.groq.com/openai/v1"
    NVIDIA_VISION_MODEL: str = "nvidia/neva-22b"
    NVIDIA_TEXT_MODEL: str = "meta/llama-3.1-70b-instruct"
    GROQ_VISION_MODEL: str = "llama-3.2-11b-vision-preview"
    GROQ_TEXT_MODEL: str = "llama3-8b-8192"
    PROVIDER_TIMEOUT_SECS: float = 60.0

    # Image generation redirect
    IMAGE_GENERATION_URL: str = "https://image.pollinations.ai/prompt/"

    # Chat behaviour
    CHAT_CONTEXT_MESSAGES: int = 6
    MAX_REQUEST_BYTES: int = 50 * 1024 * 1024

    # HTTP
    CORS_ALLOWED_ORIGINS: List[str] = ["*"]
    SERVE_FRONTEND: bool = True

    @model_validator(mode="before")
    @classmethod
    def check_env(cls, values: Any) -> Dict[str, Any]:
        """Production deployments must not run with the placeholder secret."""
        if not isinstance(values, dict):
            return values

        if values.get("ENVIRONMENT") == "pro" and values.get("SECRET_KEY", "change-me") == "change-me":
            raise ValueError("SECRET_KEY must be set when ENVIRONMENT=pro")
        return values

    @property
    def nvidia_api_key(self) -> Optional[str]:
        return self.NVIDIA_GLM_API_KEY or self.NVIDIA_KIMI_API_KEY


@lru_cache
def get_settings() -> Settings:
    return Settings()


# Global config instance
settings = get_settings()
