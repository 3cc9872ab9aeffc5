"""FlacronBuild configuration settings.

Loads configuration from environment variables with sensible defaults.
Secrets are loaded via Firebase Secrets Manager (production) or environment variables (emulator).
"""

import os
from typing import Optional
from dataclasses import dataclass, field
from dotenv import load_dotenv

from config.errors import ConfigurationError

# Load .env file for non-secret configuration (emulator hosts, feature flags, etc.)
load_dotenv()


def _optional_float(name: str) -> Optional[float]:
    """Read an optional float; unset or empty means None."""
    raw = os.getenv(name, "").strip()
    return float(raw) if raw else None


@dataclass
class Settings:
    """Application settings loaded from environment variables.

    Note: the Gemini key is a secret and is read through config.secrets
    on first access of the gemini_api_key property.
    """

    # Model Configuration (non-secrets)
    gemini_model: str = field(default_factory=lambda: os.getenv("GEMINI_MODEL", "gemini-2.0-flash"))
    gemini_api_base: str = field(default_factory=lambda: os.getenv(
        "GEMINI_API_BASE", "https://generativelanguage.googleapis.com/v1beta"
    ))
    # None means the model call is awaited without a deadline
    model_timeout_seconds: Optional[float] = field(default_factory=lambda: _optional_float("MODEL_TIMEOUT_SECONDS"))

    # Estimate Configuration
    contingency_rate: float = field(default_factory=lambda: float(os.getenv("CONTINGENCY_RATE", "0.07")))
    prompt_style: str = field(default_factory=lambda: os.getenv("PROMPT_STYLE", "json"))

    # Attachments
    max_attachment_bytes: int = field(default_factory=lambda: int(os.getenv("MAX_ATTACHMENT_BYTES", str(10 * 1024 * 1024))))
    max_attachments: int = field(default_factory=lambda: int(os.getenv("MAX_ATTACHMENTS", "10")))

    # Persistence / Firebase Configuration
    persistence_backend: str = field(default_factory=lambda: os.getenv("PERSISTENCE_BACKEND", "memory"))
    firebase_project_id: Optional[str] = field(default_factory=lambda: os.getenv("FIREBASE_PROJECT_ID"))
    use_firebase_emulators: bool = field(default_factory=lambda: os.getenv("USE_FIREBASE_EMULATORS", "false").lower() == "true")

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    # Internal: cached secret value (use gemini_api_key property instead)
    _gemini_api_key: Optional[str] = field(default=None, repr=False)

    @property
    def gemini_api_key(self) -> Optional[str]:
        """Get the Gemini API key from Secret Manager or environment."""
        if self._gemini_api_key is None:
            from config.secrets import get_gemini_api_key
            self._gemini_api_key = get_gemini_api_key()
        return self._gemini_api_key

    def validate(self) -> None:
        """Validate required settings are present.

        Raises:
            ConfigurationError: If required settings are missing or invalid.
        """
        if not self.gemini_api_key:
            raise ConfigurationError("GEMINI_KEY is required for the model service", setting="GEMINI_KEY")
        if self.prompt_style not in ("json", "legacy-kv"):
            raise ConfigurationError(
                f"PROMPT_STYLE must be 'json' or 'legacy-kv', got {self.prompt_style!r}",
                setting="PROMPT_STYLE"
            )
        if self.persistence_backend not in ("memory", "firestore"):
            raise ConfigurationError(
                f"PERSISTENCE_BACKEND must be 'memory' or 'firestore', got {self.persistence_backend!r}",
                setting="PERSISTENCE_BACKEND"
            )
        if not 0 <= self.contingency_rate < 1:
            raise ConfigurationError("CONTINGENCY_RATE must be in [0, 1)", setting="CONTINGENCY_RATE")

    @property
    def is_emulator_mode(self) -> bool:
        """Check if running in emulator mode."""
        return self.use_firebase_emulators


# Global settings instance
settings = Settings()
