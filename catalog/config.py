# catalog/config.py
import json
import os
from dataclasses import dataclass, field
from typing import Dict

from .errors import ConfigError
from .logger import get_logger

logger = get_logger(__name__)

# Semantic fields a header can resolve to.
FIELDS = (
    "item_id",
    "short_title",
    "title",
    "description",
    "value",
    "categories",
    "notes",
    "expiration_notice",
)

# Header name (trimmed, upper-cased) -> field. Export revisions rename
# columns, so several names may point at the same field.
DEFAULT_FIELD_TABLE: Dict[str, str] = {
    "ITEM ID": "item_id",
    "15 CHARACTER DESCRIPTION": "short_title",
    "100 CHARACTER DESCRIPTION": "title",
    "1500 CHARACTER DESCRIPTION (OPTIONAL)": "description",
    "1500 CHARACTER DESCRIPTION": "description",
    "FAIR MARKET VALUE": "value",
    "CATEGORIES (OPTIONAL)": "categories",
    "CATEGORIES": "categories",
    "NOTES": "notes",
    "RESTRICTIONS": "notes",
    "SPECIAL INSTRUCTIONS": "notes",
    "EXPIRATION": "expiration_notice",
    "EXPIRATION DATE": "expiration_notice",
}

DEFAULT_MODEL = "claude-sonnet-4-5-20250929"
DEFAULT_BASE_URL = "https://api.anthropic.com/v1"


def load_field_table(path: str) -> Dict[str, str]:
    """
    Load a JSON object of header name -> field name and merge it over the
    default table.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigError(f"Failed to load header map at {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"Header map at {path} must be a JSON object.")

    table = dict(DEFAULT_FIELD_TABLE)
    for header, field_name in raw.items():
        if field_name not in FIELDS:
            raise ConfigError(
                f"Header map at {path}: unknown field {field_name!r} for {header!r}"
            )
        table[str(header).strip().upper()] = field_name
    logger.debug("Loaded %d header mappings from %s", len(raw), path)
    return table


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e


@dataclass
class Settings:
    db_path: str = "db/receipts.sqlite3"
    cache_dir: str = "db/auction_items/cache"
    api_key: str = ""
    model: str = DEFAULT_MODEL
    max_tokens: int = 1024
    base_url: str = DEFAULT_BASE_URL
    max_attempts: int = 3
    timeout: int = 60
    field_table: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_FIELD_TABLE))

    @classmethod
    def from_env(cls) -> "Settings":
        header_map_path = os.getenv("HEADER_MAP_PATH", "").strip()
        field_table = (
            load_field_table(header_map_path)
            if header_map_path
            else dict(DEFAULT_FIELD_TABLE)
        )
        return cls(
            db_path=os.getenv("DB_PATH", "db/receipts.sqlite3"),
            cache_dir=os.getenv("CACHE_DIR", "db/auction_items/cache"),
            api_key=os.getenv("ANTHROPIC_API_KEY", "").strip(),
            model=os.getenv("ANTHROPIC_MODEL", DEFAULT_MODEL),
            max_tokens=_int_env("ANTHROPIC_MAX_TOKENS", 1024),
            base_url=os.getenv("ANTHROPIC_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
            max_attempts=max(1, _int_env("EXTRACTION_MAX_ATTEMPTS", 3)),
            timeout=_int_env("EXTRACTION_TIMEOUT", 60),
            field_table=field_table,
        )
