"""
Centralized configuration with environment variable overrides.

Shop identity, analyzer settings, analytics thresholds and storage
location are all configurable here. Nothing is hardcoded in the
pipeline logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

ANALYZER_MODES = ("rule", "llm")
STORAGE_BACKENDS = ("memory", "sql")
REPORT_TIMEFRAMES = ("7d", "30d", "90d")


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


def _csv(env_var: str, default: str) -> tuple[str, ...]:
    raw = os.getenv(env_var, default)
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class ShopConfig:
    """Shop identity and commercial policy defaults."""

    name: str = os.getenv("SHOP_NAME", "Lavender Lane Wellness")
    business_hours: str = os.getenv("BUSINESS_HOURS", "Mon-Sat 9AM-6PM")
    contact_phone: str = os.getenv("CONTACT_PHONE", "0917-555-0100")
    shipping_fee: str = os.getenv("SHIPPING_FEE", "₱50-150")
    free_shipping_minimum: float = _safe_float("FREE_SHIPPING_MINIMUM", "1000")
    payment_methods: tuple[str, ...] = _csv(
        "PAYMENT_METHODS", "Cash,GCash,Bank Transfer,Credit Card"
    )
    currency_symbol: str = os.getenv("CURRENCY_SYMBOL", "₱")
    catalog_path: str = os.getenv("CATALOG_PATH", "")


@dataclass(frozen=True)
class AnalyzerConfig:
    """Message analyzer selection and LLM settings."""

    mode: str = os.getenv("ANALYZER_MODE", "rule")
    llm_model: str = os.getenv("LLM_MODEL", "gpt-4o-mini")
    llm_temperature: float = _safe_float("LLM_TEMPERATURE", "0.1")
    llm_max_tokens: int = _safe_int("LLM_MAX_TOKENS", "500")
    llm_timeout_sec: float = _safe_float("LLM_TIMEOUT_SEC", "8.0")
    rules_path: str = os.getenv("RULES_PATH", "")


@dataclass(frozen=True)
class AnalyticsConfig:
    """Thresholds used by the conversion report recommendations."""

    dropoff_alert_pct: float = _safe_float("DROPOFF_ALERT_PCT", "50")
    min_conversion_rate_pct: float = _safe_float("MIN_CONVERSION_RATE_PCT", "5")
    low_engagement_share: float = _safe_float("LOW_ENGAGEMENT_SHARE", "0.30")
    low_engagement_score: int = _safe_int("LOW_ENGAGEMENT_SCORE", "30")
    low_product_conversion_pct: float = _safe_float("LOW_PRODUCT_CONVERSION_PCT", "2")
    min_product_views: int = _safe_int("MIN_PRODUCT_VIEWS", "5")
    default_timeframe: str = os.getenv("DEFAULT_REPORT_TIMEFRAME", "30d")


@dataclass(frozen=True)
class StorageConfig:
    """Where sessions, journeys, tags and orders are kept."""

    backend: str = os.getenv("STORAGE_BACKEND", "memory")
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///chatcommerce.db")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    shop: ShopConfig = field(default_factory=ShopConfig)
    analyzer: AnalyzerConfig = field(default_factory=AnalyzerConfig)
    analytics: AnalyticsConfig = field(default_factory=AnalyticsConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    agent_name: str = os.getenv("AGENT_NAME", "sales-assistant")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.analyzer.mode not in ANALYZER_MODES:
        raise ValueError(
            f"ANALYZER_MODE must be one of {ANALYZER_MODES}, got {config.analyzer.mode!r}"
        )
    if not 0.0 <= config.analyzer.llm_temperature <= 2.0:
        raise ValueError(
            f"LLM_TEMPERATURE must be between 0.0 and 2.0, got {config.analyzer.llm_temperature}"
        )
    if config.analyzer.llm_max_tokens < 1:
        raise ValueError(
            f"LLM_MAX_TOKENS must be >= 1, got {config.analyzer.llm_max_tokens}"
        )
    if config.analyzer.llm_timeout_sec <= 0:
        raise ValueError(
            f"LLM_TIMEOUT_SEC must be > 0, got {config.analyzer.llm_timeout_sec}"
        )
    if config.shop.free_shipping_minimum < 0:
        raise ValueError(
            f"FREE_SHIPPING_MINIMUM must be >= 0, got {config.shop.free_shipping_minimum}"
        )
    if config.storage.backend not in STORAGE_BACKENDS:
        raise ValueError(
            f"STORAGE_BACKEND must be one of {STORAGE_BACKENDS}, got {config.storage.backend!r}"
        )

    for pct_name, pct_value in [
        ("DROPOFF_ALERT_PCT", config.analytics.dropoff_alert_pct),
        ("MIN_CONVERSION_RATE_PCT", config.analytics.min_conversion_rate_pct),
        ("LOW_PRODUCT_CONVERSION_PCT", config.analytics.low_product_conversion_pct),
    ]:
        if not 0.0 <= pct_value <= 100.0:
            raise ValueError(f"{pct_name} must be between 0 and 100, got {pct_value}")

    if not 0.0 <= config.analytics.low_engagement_share <= 1.0:
        raise ValueError(
            "LOW_ENGAGEMENT_SHARE must be between 0.0 and 1.0, "
            f"got {config.analytics.low_engagement_share}"
        )
    if not 0 <= config.analytics.low_engagement_score <= 100:
        raise ValueError(
            "LOW_ENGAGEMENT_SCORE must be between 0 and 100, "
            f"got {config.analytics.low_engagement_score}"
        )
    if config.analytics.min_product_views < 0:
        raise ValueError(
            f"MIN_PRODUCT_VIEWS must be >= 0, got {config.analytics.min_product_views}"
        )
    if config.analytics.default_timeframe not in REPORT_TIMEFRAMES:
        raise ValueError(
            f"DEFAULT_REPORT_TIMEFRAME must be one of {REPORT_TIMEFRAMES}, "
            f"got {config.analytics.default_timeframe!r}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for '%s'", config.shop.name)
    return config


# Singleton instance
settings = load_config()
