"""
Configuration management for the Shop Price Scheduler API.
"""

import json
from pathlib import Path
from typing import Dict, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings."""

    shops_config_path: str = Field(default="./shops_config.json")
    redis_url: str = Field(default="redis://localhost:6379/0")
    log_level: str = Field(default="INFO")

    # Catalog (Shopify Admin GraphQL)
    shopify_api_version: str = Field(default="2025-01")
    catalog_timeout_seconds: float = Field(default=30.0, gt=0, le=300)
    catalog_rate_limit_rps: float = Field(default=2.0, ge=0)
    catalog_max_retries: int = Field(default=3, ge=0, le=10)

    # Scheduler
    schedule_batch_size: int = Field(default=10, ge=1, le=100)
    schedule_key_prefix: str = Field(default="price_schedule")

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


_settings = Settings()


def load_shops_config(config_path: Optional[str] = None) -> Dict:
    """
    Load shops configuration from JSON file.

    Args:
        config_path: Optional path to config file. If None, uses SHOPS_CONFIG_PATH.

    Returns:
        Dict with a 'shops' key.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config is invalid.
    """
    path = Path(config_path or _settings.shops_config_path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError("Config must be a JSON object")

    if "shops" not in data:
        raise ValueError("Config must have 'shops' key")

    return data


def save_shops_config(config_data: Dict, config_path: Optional[str] = None) -> None:
    """
    Write shops configuration back to its JSON file.

    Raises:
        ValueError: If config is invalid.
    """
    if not isinstance(config_data, dict) or "shops" not in config_data:
        raise ValueError("Config must be a JSON object with a 'shops' key")

    path = Path(config_path or _settings.shops_config_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        json.dump(config_data, f, indent=2, ensure_ascii=False)


def get_all_shops(config_path: Optional[str] = None) -> Dict[str, Dict]:
    """
    Get all shops configuration.

    Args:
        config_path: Optional path to config file.

    Returns:
        Dict mapping shop domains to their configs.
    """
    config = load_shops_config(config_path)
    return config.get("shops", {})


def get_shop_config(shop: str, config_path: Optional[str] = None) -> Optional[Dict]:
    """
    Get configuration for a specific shop by domain.

    Args:
        shop: Shop domain (key in shops dict), e.g. "demo.myshopify.com"
        config_path: Optional path to config file.

    Returns:
        Shop config dict or None if not found.
    """
    return get_all_shops(config_path).get(normalize_shop_domain(shop))


def normalize_shop_domain(shop: str) -> str:
    """Lowercase a shop domain and strip any scheme or trailing slash."""
    if not shop:
        return ""
    domain = shop.strip().lower()
    for scheme in ("https://", "http://"):
        if domain.startswith(scheme):
            domain = domain[len(scheme):]
    return domain.rstrip("/")


def validate_shop_config(config: Dict) -> tuple[bool, str]:
    """
    Validate shop configuration.

    Args:
        config: Shop config dict with access_token and api_key.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not config:
        return False, "Shop config does not exist"

    for field in ("access_token", "api_key"):
        if field not in config:
            return False, f"Missing required field: {field}"

        if not config[field] or not isinstance(config[field], str):
            return False, f"Field {field} is invalid"

    return True, ""


def get_settings() -> Settings:
    """Get application settings."""
    return _settings
