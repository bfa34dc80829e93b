"""Runtime configuration for the PostEx bridge.

Settings are resolved once per process. Precedence, highest first:

1. keyword overrides passed to ``Settings.from_env``
2. the process environment
3. the project-root ``.env`` file (loaded without overriding 1 or 2)

The API key may live under three names; the first non-empty one wins:
``WOOCOMMERCE_SHIPPING_POSTEX_API_KEY``, ``WOOCOMMERCE_POSTEX_API_KEY``,
``POSTEX_API_KEY``.
"""

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Institutional Path Management: Locate .env in the project root
env_path = Path(__file__).resolve().parent.parent / '.env'

API_KEY_SOURCES = (
    "WOOCOMMERCE_SHIPPING_POSTEX_API_KEY",
    "WOOCOMMERCE_POSTEX_API_KEY",
    "POSTEX_API_KEY",
)

TRUTHY = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    api_key: str = ""
    base_url: str = "https://api.postex.pk/"
    pickup_address_code: str = ""
    default_weight: float = Field(0.5, gt=0)
    default_dimensions: str = "15x10x5"
    learning_enabled: bool = True

    create_timeout: float = Field(20, gt=0)
    list_timeout: float = Field(20, gt=0)
    document_timeout: float = Field(30, gt=0)

    sync_interval_hours: int = Field(12, gt=0)
    sync_window_days: int = Field(30, gt=0)
    scheduler_enabled: bool = True

    store_backend: str = Field("memory", pattern="^(memory|supabase)$")
    carrier_adapter: str = Field("postex", pattern="^(postex|fake)$")
    supabase_url: str = ""
    supabase_key: str = ""

    @classmethod
    def from_env(cls, **overrides) -> "Settings":
        load_dotenv(dotenv_path=env_path, override=False)

        values = {
            "api_key": _first_env(API_KEY_SOURCES),
            "base_url": os.getenv("POSTEX_BASE_URL"),
            "pickup_address_code": os.getenv("POSTEX_PICKUP_ADDRESS_CODE"),
            "default_weight": os.getenv("POSTEX_DEFAULT_WEIGHT"),
            "default_dimensions": os.getenv("POSTEX_DEFAULT_DIMENSIONS"),
            "learning_enabled": _env_flag("POSTEX_LEARNING_ENABLED"),
            "create_timeout": os.getenv("POSTEX_CREATE_TIMEOUT"),
            "list_timeout": os.getenv("POSTEX_LIST_TIMEOUT"),
            "document_timeout": os.getenv("POSTEX_DOCUMENT_TIMEOUT"),
            "sync_interval_hours": os.getenv("POSTEX_SYNC_INTERVAL_HOURS"),
            "sync_window_days": os.getenv("POSTEX_SYNC_WINDOW_DAYS"),
            "scheduler_enabled": _env_flag("POSTEX_SCHEDULER_ENABLED"),
            "store_backend": os.getenv("POSTEX_STORE_BACKEND"),
            "carrier_adapter": os.getenv("POSTEX_CARRIER_ADAPTER"),
            "supabase_url": os.getenv("SUPABASE_URL"),
            "supabase_key": os.getenv("SUPABASE_KEY"),
        }
        # Unset keys fall back to the field defaults
        values = {k: v for k, v in values.items() if v not in (None, "")}
        values.update(overrides)
        return cls(**values)

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.pickup_address_code)


def _first_env(names) -> str | None:
    for name in names:
        value = os.getenv(name)
        if value:
            return value.strip()
    return None


def _env_flag(name: str) -> bool | None:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    return raw.strip().lower() in TRUTHY


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
