"""Engine configuration, read once from the environment."""
import os

import structlog
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

logger = structlog.get_logger()


class EngineConfig(BaseModel):
    """Process-wide settings. Never mutated after construction."""
    model_config = ConfigDict(frozen=True)

    api_key: str = ""
    ai_enabled: bool = False
    fallback_enabled: bool = False

    @classmethod
    def build(cls, api_key: str | None, enable_flag: bool, fallback_enabled: bool) -> "EngineConfig":
        """Derive ai_enabled from the enable flag and the presence of a key."""
        api_key = (api_key or "").strip()
        if enable_flag and not api_key:
            logger.warning("API key not found, AI insights will be disabled")
        return cls(
            api_key=api_key,
            ai_enabled=enable_flag and bool(api_key),
            fallback_enabled=fallback_enabled,
        )

    def describe(self) -> dict:
        """Diagnostic view with the key masked."""
        return {
            "ANTHROPIC_API_KEY": f"SET ({self.api_key[:4]}...)" if self.api_key else "NOT SET",
            "ai_enabled": self.ai_enabled,
            "fallback_enabled": self.fallback_enabled,
        }


def _flag(name: str) -> bool:
    """True when the environment variable is set to "true", ignoring case."""
    return os.getenv(name, "").strip().lower() == "true"


def load_config() -> EngineConfig:
    """Load configuration from the environment (and a .env file, if present)."""
    load_dotenv()
    config = EngineConfig.build(
        api_key=os.getenv("ANTHROPIC_API_KEY"),
        enable_flag=_flag("ENABLE_AI_INSIGHTS"),
        fallback_enabled=_flag("AI_FALLBACK_ENABLED"),
    )
    logger.info(
        "AI configuration",
        enabled=config.ai_enabled,
        fallback_enabled=config.fallback_enabled,
        has_api_key=bool(config.api_key),
    )
    return config
