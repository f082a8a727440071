"""Application settings and configuration."""

from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).lower() in ("1", "true", "yes")


@dataclass
class SyncConfig:
    """Filter synchronization tuning."""

    # Trailing window after the report's last render event before polling
    render_debounce_ms: int = field(
        default_factory=lambda: _env_int("FILTERSYNC_RENDER_DEBOUNCE_MS", 500)
    )
    hover_debounce_ms: int = field(
        default_factory=lambda: _env_int("FILTERSYNC_HOVER_DEBOUNCE_MS", 80)
    )
    zoom_expand_factor: float = field(
        default_factory=lambda: _env_float("FILTERSYNC_ZOOM_EXPAND_FACTOR", 1.5)
    )
    # Width/height given to a zero-area extent (single point) before zooming
    min_extent_size: float = field(
        default_factory=lambda: _env_float("FILTERSYNC_MIN_EXTENT_SIZE", 0.01)
    )
    apply_retries: int = field(
        default_factory=lambda: _env_int("FILTERSYNC_APPLY_RETRIES", 0)
    )
    retry_backoff_ms: int = field(
        default_factory=lambda: _env_int("FILTERSYNC_RETRY_BACKOFF_MS", 200)
    )
    highlight_on_zoom: bool = field(
        default_factory=lambda: _env_bool("FILTERSYNC_HIGHLIGHT_ON_ZOOM", True)
    )


@dataclass
class MappingConfig:
    """Field mapping table location."""

    path: Path = field(
        default_factory=lambda: Path(
            os.getenv(
                "FILTERSYNC_MAPPING_FILE",
                str(PROJECT_ROOT / "config" / "field_mappings.yaml"),
            )
        )
    )


@dataclass
class AppConfig:
    """Application configuration settings."""

    name: str = field(default_factory=lambda: os.getenv("APP_NAME", "Filter Sync"))
    version: str = field(default_factory=lambda: os.getenv("APP_VERSION", "1.0.0"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_file: Optional[Path] = field(
        default_factory=lambda: Path(os.environ["LOG_FILE"]) if os.getenv("LOG_FILE") else None
    )


@dataclass
class Config:
    """Main configuration container."""

    sync: SyncConfig = field(default_factory=SyncConfig)
    mapping: MappingConfig = field(default_factory=MappingConfig)
    app: AppConfig = field(default_factory=AppConfig)


# Global config instance
config = Config()
