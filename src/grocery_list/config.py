"""
Configuration for grocery-list.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .credentials import IMAGE_CREDENTIAL, SUGGESTION_CREDENTIAL


@dataclass
class SuggestionServiceConfig:
    """Chat-completion (OpenRouter) configuration."""

    base_url: str = "https://openrouter.ai/api/v1"
    model: str = "openai/gpt-4o"
    referer: str = "https://grocerylistapp.example.com"
    title: str = "Grocery List App"
    api_key_env: str | None = "OPENROUTER_API_KEY"


@dataclass
class ImageServiceConfig:
    """Image search (Pexels) configuration."""

    base_url: str = "https://api.pexels.com/v1"
    query_suffix: str = "food"
    image_size: str = "small"  # original, large, medium, small, tiny, ...
    api_key_env: str | None = "PEXELS_API_KEY"


@dataclass
class GroceryConfig:
    """Complete grocery-list configuration."""

    credentials_db_path: Path | None = None  # None keeps credentials in memory

    suggestions: SuggestionServiceConfig = field(default_factory=SuggestionServiceConfig)
    images: ImageServiceConfig = field(default_factory=ImageServiceConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GroceryConfig":
        """Create config from a dictionary (e.g., from YAML)."""
        config = cls()

        if data.get("credentials_db_path"):
            config.credentials_db_path = Path(data["credentials_db_path"])

        if "suggestions" in data:
            s = data["suggestions"] or {}
            defaults = SuggestionServiceConfig()
            config.suggestions = SuggestionServiceConfig(
                base_url=s.get("base_url", defaults.base_url),
                model=s.get("model", defaults.model),
                referer=s.get("referer", defaults.referer),
                title=s.get("title", defaults.title),
                api_key_env=s.get("api_key_env", defaults.api_key_env),
            )

        if "images" in data:
            i = data["images"] or {}
            defaults = ImageServiceConfig()
            config.images = ImageServiceConfig(
                base_url=i.get("base_url", defaults.base_url),
                query_suffix=i.get("query_suffix", defaults.query_suffix),
                image_size=i.get("image_size", defaults.image_size),
                api_key_env=i.get("api_key_env", defaults.api_key_env),
            )

        return config

    @classmethod
    def from_yaml(cls, path: Path) -> "GroceryConfig":
        """Load config from a YAML file. Missing file gives defaults."""
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        # Accept either a bare config or one nested under "grocery_list"
        return cls.from_dict(data.get("grocery_list", data))

    def credential_env_names(self) -> dict[str, str | None]:
        """Map credential names to the environment variables that may hold them."""
        return {
            SUGGESTION_CREDENTIAL: self.suggestions.api_key_env,
            IMAGE_CREDENTIAL: self.images.api_key_env,
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary for JSON serialization."""
        return {
            "credentials_db_path": str(self.credentials_db_path) if self.credentials_db_path else None,
            "suggestions": {
                "base_url": self.suggestions.base_url,
                "model": self.suggestions.model,
                "referer": self.suggestions.referer,
                "title": self.suggestions.title,
            },
            "images": {
                "base_url": self.images.base_url,
                "query_suffix": self.images.query_suffix,
                "image_size": self.images.image_size,
            },
        }
