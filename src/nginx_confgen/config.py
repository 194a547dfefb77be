"""Settings management for nginx-confgen."""

import logging
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from nginx_confgen.engine.linter import DEFAULT_MAX_PASSES

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("rich", "plain", "json")


@dataclass
class Settings:
    """User preferences for the CLI."""

    output_format: str = "rich"
    max_fix_passes: int = DEFAULT_MAX_PASSES
    ignored_rules: list[str] = field(default_factory=list)  # hidden from CLI lint output
    explain: bool = False

    def __post_init__(self) -> None:
        if self.output_format not in OUTPUT_FORMATS:
            raise ValueError(f"output_format must be one of {', '.join(OUTPUT_FORMATS)}")
        if isinstance(self.max_fix_passes, bool) or not isinstance(self.max_fix_passes, int):
            raise ValueError("max_fix_passes must be an integer")
        if self.max_fix_passes < 1:
            raise ValueError("max_fix_passes must be at least 1")


class SettingsManager:
    """Manages CLI settings stored in YAML format."""

    def __init__(self, config_dir: Path | None = None) -> None:
        if config_dir is None:
            # Check for environment variable override
            env_config = os.getenv("NGINX_CONFGEN_CONFIG")
            if env_config:
                config_dir = Path(env_config).expanduser().resolve()
            else:
                # Default to ~/.nginx-confgen
                config_dir = Path.home() / ".nginx-confgen"

        self.config_dir = config_dir
        self.settings_file = config_dir / "settings.yaml"

    def _load_raw(self) -> dict[str, Any]:
        """Load the settings mapping from the YAML file."""
        if not self.settings_file.exists():
            return {}

        try:
            with open(self.settings_file, "r") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Cannot read settings file {self.settings_file}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Settings file {self.settings_file} must contain a mapping")
            return {}
        return data

    def load(self) -> Settings:
        """Load settings, falling back to defaults for anything unusable."""
        data = self._load_raw()
        known = {f.name for f in fields(Settings)}
        try:
            return Settings(**{key: value for key, value in data.items() if key in known})
        except (TypeError, ValueError) as e:
            logger.warning(f"Invalid settings in {self.settings_file}: {e}")
            return Settings()

    def save(self, settings: Settings) -> None:
        """Save settings to the YAML file."""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        with open(self.settings_file, "w") as f:
            yaml.safe_dump(asdict(settings), f, sort_keys=False)

    def set_value(self, key: str, value: Any) -> Settings:
        """Update one setting and persist it.

        Raises:
            KeyError: If ``key`` is not a known setting.
            ValueError: If the new value is invalid.
        """
        current = asdict(self.load())
        if key not in current:
            raise KeyError(key)
        current[key] = value
        settings = Settings(**current)
        self.save(settings)
        return settings
