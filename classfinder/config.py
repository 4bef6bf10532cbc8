"""
Configuration for class discovery.

Settings are read from ``.classfinder.yml`` (or ``.json``) and merged over
``Config.DEFAULT_CONFIG``.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

CONFIG_FILENAMES = (
    ".classfinder.yml",
    ".classfinder.yaml",
    "classfinder.yml",
    "classfinder.yaml",
)


class Config:
    """Configuration manager for the class finder."""

    DEFAULT_CONFIG = {
        "roots": [],
        "error_if_empty": False,
        "parallel": {
            "max_workers": None,
        },
        "suffixes": {
            "archives": [".jar", ".zip"],
        },
        "logging": {
            "level": "WARNING",
            "log_dir": None,
            "json_format": False,
        },
    }

    def __init__(self, config_dict: Optional[Dict] = None, base_dir: Optional[Path] = None):
        """
        Initialize with optional config dictionary.

        Args:
            config_dict: Overrides merged over the defaults
            base_dir: Directory relative roots are resolved against
        """
        self.config = self._merge_configs(self.DEFAULT_CONFIG, config_dict or {})
        self.base_dir = base_dir
        self.validate()

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Config":
        """Load configuration from a YAML or JSON file."""
        path = Path(path)
        if not path.exists():
            return cls()

        with open(path, "r", encoding="utf-8") as f:
            if path.suffix in [".yaml", ".yml"]:
                data = yaml.safe_load(f) or {}
            elif path.suffix == ".json":
                data = json.load(f)
            else:
                raise ValueError(f"Unsupported config format: {path.suffix}")

        if not isinstance(data, dict):
            raise ValueError(f"{path.name} must contain a mapping at the top level")

        return cls(data, base_dir=path.parent.resolve())

    @classmethod
    def find_and_load(cls, start_path: Union[str, Path]) -> "Config":
        """Find and load configuration from ``start_path`` or its parents."""
        current = Path(start_path).resolve()
        if current.is_file():
            current = current.parent

        while True:
            for name in CONFIG_FILENAMES:
                config_path = current / name
                if config_path.exists():
                    return cls.from_file(config_path)
            if current == current.parent:
                break
            current = current.parent

        return cls()

    def validate(self) -> None:
        """Check value types; raise ValueError on the first bad setting."""
        roots = self.get("roots")
        if not isinstance(roots, list):
            raise ValueError(f"roots must be a list, got {type(roots).__name__}")

        workers = self.get("parallel.max_workers")
        if workers is not None and (not isinstance(workers, int) or workers < 1):
            raise ValueError(f"parallel.max_workers must be a positive integer, got {workers!r}")

        archives = self.get("suffixes.archives")
        if not isinstance(archives, list) or not all(isinstance(s, str) for s in archives):
            raise ValueError("suffixes.archives must be a list of strings")

    def get(self, key: str, default=None):
        """Get configuration value by dot-separated key."""
        keys = key.split(".")
        value: Any = self.config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    def set(self, key: str, value):
        """Set configuration value by dot-separated key."""
        keys = key.split(".")
        config = self.config

        for k in keys[:-1]:
            if k not in config or not isinstance(config[k], dict):
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    def to_dict(self) -> Dict:
        """Convert to dictionary."""
        return json.loads(json.dumps(self.config))

    def _merge_configs(self, base: Dict, override: Dict) -> Dict:
        """Recursively merge configuration dictionaries."""
        result = json.loads(json.dumps(base))

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result
