"""
coltag Configuration

Package-wide defaults (index name, label separator, drop behaviour,
result and month field names) come from defaults.yaml in this
directory, overlaid on BUILTIN_DEFAULTS.

Usage:
    from coltag.config import get_defaults, get_default

    defaults = get_defaults()
    sep = defaults["label_sep"]

    # Single value with fallback
    index_name = get_default("index_name")

    # Load any config by name
    from coltag.config import ConfigLoader
    loader = ConfigLoader()
    drop = loader.get("defaults", "drop", default=True)
"""

from pathlib import Path
from typing import Any, Dict, List, Optional
import logging
import yaml

logger = logging.getLogger(__name__)

# YAML files live next to this module
CONFIG_DIR = Path(__file__).resolve().parent

# Used when defaults.yaml is missing a key
BUILTIN_DEFAULTS: Dict[str, Any] = {
    "index_name": "index",
    "label_sep": "_",
    "drop": True,
    "result_field": "value",
    "month_field": "month",
}


class ConfigLoader:
    """
    Caching loader for the YAML files shipped in coltag/config.

    Usage:
        loader = ConfigLoader()
        defaults = loader.load("defaults")
        sep = loader.get("defaults", "label_sep", default="_")
    """

    _instance: Optional["ConfigLoader"] = None
    _cache: Dict[str, Dict[str, Any]] = {}

    def __new__(cls) -> "ConfigLoader":
        """One loader per process, so the cache is shared."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._cache = {}
        return cls._instance

    def load(self, name: str, reload: bool = False) -> Dict[str, Any]:
        """
        Parsed contents of <name>.yaml.

        Raises:
            FileNotFoundError: No such file in the config directory
            ValueError: The file is not valid YAML
        """
        if name in self._cache and not reload:
            return self._cache[name]

        path = CONFIG_DIR / f"{name}.yaml"
        if not path.is_file():
            raise FileNotFoundError(f"No coltag config named '{name}' ({path})")

        try:
            with open(path) as f:
                config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.error(f"Failed to parse config {name}: {e}")
            raise ValueError(f"Invalid YAML in {path}: {e}") from e

        self._cache[name] = config
        logger.debug(f"Loaded config: {name} ({len(config)} keys)")
        return config

    def get(self, config_name: str, key: str, default: Any = None, required: bool = False) -> Any:
        """Single value from a config; missing keys give default unless required."""
        config = self.load(config_name)
        if key not in config and required:
            raise KeyError(f"Required key '{key}' not found in config '{config_name}'")
        return config.get(key, default)

    def clear_cache(self, name: Optional[str] = None) -> None:
        """Forget one cached config, or all of them."""
        if name is None:
            self._cache.clear()
        else:
            self._cache.pop(name, None)

    def list_configs(self) -> List[str]:
        return sorted(p.stem for p in CONFIG_DIR.glob("*.yaml"))


def get_config(name: str, reload: bool = False) -> Dict[str, Any]:
    """Load a config by name through the shared loader."""
    return ConfigLoader().load(name, reload=reload)


def get_defaults() -> Dict[str, Any]:
    """Built-in defaults overlaid with defaults.yaml."""
    merged = dict(BUILTIN_DEFAULTS)
    try:
        merged.update(get_config("defaults"))
    except FileNotFoundError:
        logger.warning("defaults.yaml not found, using built-in defaults")
    return merged


def get_default(key: str) -> Any:
    """Single default value by key."""
    return get_defaults()[key]
