"""YAML Configuration Loader for Filter Sync.

Loads and caches the field mapping configuration and provides typed
access to the raw mapping rows.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
from functools import lru_cache
import yaml

from .settings import config

# Get config directory
CONFIG_DIR = Path(__file__).parent

REQUIRED_MAPPING_KEYS = ("report_table", "report_column", "map_field")


class ConfigurationError(Exception):
    """Raised when configuration loading or access fails."""

    pass


def _load_yaml_file(filepath: Path) -> Dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        filepath: Path of the YAML file

    Returns:
        Parsed YAML content as dictionary

    Raises:
        ConfigurationError: If file cannot be loaded
    """
    if not filepath.exists():
        raise ConfigurationError(f"Configuration file not found: {filepath}")

    try:
        with open(filepath, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Error parsing {filepath.name}: {e}")
    except IOError as e:
        raise ConfigurationError(f"Error reading {filepath.name}: {e}")


@lru_cache(maxsize=8)
def load_mapping_file(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the field mapping YAML (defaults to the configured path)."""
    return _load_yaml_file(path or config.mapping.path)


def clear_config_cache() -> None:
    """Clear all cached configuration data."""
    load_mapping_file.cache_clear()


@dataclass
class MappingRows:
    """Validated accessor over the ``mappings`` list of a mapping file."""

    path: Optional[Path] = None
    _rows: List[Dict[str, Any]] = field(default_factory=list)

    def __post_init__(self):
        data = load_mapping_file(self.path)
        rows = data.get("mappings", [])
        if not isinstance(rows, list):
            raise ConfigurationError("'mappings' must be a list")

        for index, row in enumerate(rows):
            missing = [key for key in REQUIRED_MAPPING_KEYS if not row.get(key)]
            if missing:
                raise ConfigurationError(
                    f"Mapping #{index} is missing required keys: {', '.join(missing)}"
                )
        self._rows = rows

    @property
    def rows(self) -> List[Dict[str, Any]]:
        """Get the raw mapping rows."""
        return list(self._rows)

    def __len__(self) -> int:
        return len(self._rows)
