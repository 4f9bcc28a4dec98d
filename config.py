"""
Discern - Configuration

Centralized configuration management for the entire system.
Uses environment variables with sensible defaults.
"""
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

DEFAULT_RULES_PATH = Path(__file__).parent / "discernment" / "rules.yaml"


class Environment(Enum):
    """Deployment environments."""
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


@dataclass
class ScriptureConfig:
    """Scripture lookup service and its local cache."""
    base_url: str = field(default_factory=lambda: os.getenv("SCRIPTURE_API_BASE", "https://bible.helloao.org"))
    translation: str = field(default_factory=lambda: os.getenv("SCRIPTURE_TRANSLATION", "WEB"))
    timeout_seconds: float = field(default_factory=lambda: float(os.getenv("SCRIPTURE_TIMEOUT", "10")))
    max_concurrency: int = field(default_factory=lambda: int(os.getenv("SCRIPTURE_MAX_CONCURRENCY", "8")))

    # Cache settings
    cache_size: int = field(default_factory=lambda: int(os.getenv("SCRIPTURE_CACHE_SIZE", "200")))
    cache_ttl_seconds: float = field(default_factory=lambda: float(os.getenv("SCRIPTURE_CACHE_TTL", str(24 * 60 * 60))))


@dataclass
class RulesConfig:
    """Rule table source."""
    path: Path = field(default_factory=lambda: Path(os.getenv("DISCERN_RULES_PATH", str(DEFAULT_RULES_PATH))))


@dataclass
class LLMConfig:
    """Language model configuration for the media analysis collaborator."""
    openai_api_key: str = field(default_factory=lambda: os.getenv("OPENAI_API_KEY", ""))
    openai_model: str = field(default_factory=lambda: os.getenv("OPENAI_MODEL", "gpt-4o"))
    openai_temperature: float = field(default_factory=lambda: float(os.getenv("OPENAI_TEMPERATURE", "0.2")))
    timeout_seconds: float = field(default_factory=lambda: float(os.getenv("OPENAI_TIMEOUT", "60")))

    @property
    def enabled(self) -> bool:
        return bool(self.openai_api_key)


@dataclass
class LyricsConfig:
    """Lyrics provider configuration."""
    provider: str = field(default_factory=lambda: os.getenv("LYRICS_PROVIDER", "lyricsovh").lower())
    api_key: str = field(default_factory=lambda: os.getenv("LYRICS_API_KEY", ""))
    timeout_seconds: float = field(default_factory=lambda: float(os.getenv("LYRICS_TIMEOUT", "10")))


@dataclass
class APIConfig:
    """API server configuration."""
    host: str = field(default_factory=lambda: os.getenv("API_HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "5000")))
    reload: bool = field(default_factory=lambda: os.getenv("API_RELOAD", "false").lower() == "true")
    cors_origins: List[str] = field(default_factory=lambda: os.getenv("CORS_ORIGINS", "*").split(","))


@dataclass
class Config:
    """Main configuration class combining all sub-configs."""
    env: Environment = field(default_factory=lambda: Environment(os.getenv("ENVIRONMENT", "development")))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")

    scripture: ScriptureConfig = field(default_factory=ScriptureConfig)
    rules: RulesConfig = field(default_factory=RulesConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    lyrics: LyricsConfig = field(default_factory=LyricsConfig)
    api: APIConfig = field(default_factory=APIConfig)

    @property
    def is_production(self) -> bool:
        return self.env == Environment.PRODUCTION

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary (excluding sensitive values)."""
        return {
            "env": self.env.value,
            "debug": self.debug,
            "rules_path": str(self.rules.path),
            "scripture": {
                "base_url": self.scripture.base_url,
                "translation": self.scripture.translation,
                "cache_size": self.scripture.cache_size,
                "cache_ttl_seconds": self.scripture.cache_ttl_seconds,
            },
            "llm": {
                "enabled": self.llm.enabled,
                "model": self.llm.openai_model,
            },
            "lyrics": {
                "provider": self.lyrics.provider,
                "has_api_key": bool(self.lyrics.api_key),
            },
        }


# Singleton configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create configuration singleton."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reload_config() -> Config:
    """Reload configuration from environment."""
    global _config
    load_dotenv(override=True)
    _config = Config()
    return _config
