"""
Configuration management.
"""

import os
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Config:
    """
    Application configuration.

    Loads from environment variables with sensible defaults.
    """

    # Server
    host: str = field(default_factory=lambda: os.getenv("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "8000")))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())

    # Data
    data_dir: str = field(default_factory=lambda: os.getenv("DATA_DIR", "./data"))
    leads_file: Optional[str] = field(default_factory=lambda: os.getenv("LEADS_FILE") or None)
    photo_storage_dir: Optional[str] = field(
        default_factory=lambda: os.getenv("PHOTO_STORAGE_DIR") or None
    )
    lead_retention_days: int = field(
        default_factory=lambda: int(os.getenv("LEAD_RETENTION_DAYS", "7"))
    )

    # Scoring
    scoring_policy: str = field(default_factory=lambda: os.getenv("SCORING_POLICY", "current"))
    photo_override_confidence: float = field(
        default_factory=lambda: float(os.getenv("PHOTO_OVERRIDE_CONFIDENCE", "0.75"))
    )

    # Vision
    openai_api_key: Optional[str] = field(default_factory=lambda: os.getenv("OPENAI_API_KEY") or None)
    openai_vision_model: str = field(
        default_factory=lambda: os.getenv("OPENAI_VISION_MODEL", "gpt-4.1-mini")
    )
    vision_timeout: int = field(default_factory=lambda: int(os.getenv("VISION_TIMEOUT", "45")))
    vision_max_photos: int = field(default_factory=lambda: int(os.getenv("VISION_MAX_PHOTOS", "10")))

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment."""
        return cls()

    @property
    def resolved_photo_storage_dir(self) -> str:
        """Photo storage root, defaulting to <data_dir>/photos."""
        return self.photo_storage_dir or os.path.join(self.data_dir, "photos")

    def to_dict(self) -> dict:
        """Convert config to dictionary. Secrets are redacted."""
        return {
            "host": self.host,
            "port": self.port,
            "debug": self.debug,
            "log_level": self.log_level,
            "data_dir": self.data_dir,
            "leads_file": self.leads_file,
            "photo_storage_dir": self.resolved_photo_storage_dir,
            "lead_retention_days": self.lead_retention_days,
            "scoring_policy": self.scoring_policy,
            "photo_override_confidence": self.photo_override_confidence,
            "openai_api_key": "***" if self.openai_api_key else None,
            "openai_vision_model": self.openai_vision_model,
            "vision_timeout": self.vision_timeout,
            "vision_max_photos": self.vision_max_photos,
        }
