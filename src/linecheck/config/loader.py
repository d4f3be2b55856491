from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError

from linecheck.config.schema import HarnessConfig


class ConfigError(Exception):
    """Raised when config loading or validation fails."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        super().__init__(f"{path}: {message}")


class ConfigLoader:
    """Reads a YAML harness config file and validates it into a HarnessConfig."""

    def load(self, path: Path | None = None, **overrides: object) -> HarnessConfig:
        """Load ``path`` (defaults when None or empty) and apply non-None overrides."""
        raw: dict = {}
        if path is not None:
            raw = self._read_yaml(path)

        for key, value in overrides.items():
            if value is None:
                continue
            if key == "defines":
                raw["defines"] = {**(raw.get("defines") or {}), **value}  # type: ignore[dict-item]
            else:
                raw[key] = value

        try:
            return HarnessConfig.model_validate(raw)
        except ValidationError as e:
            raise ConfigError(path or Path("<options>"), f"Validation error: {e}") from e

    def _read_yaml(self, path: Path) -> dict:
        try:
            raw_text = path.read_text()
        except OSError as e:
            raise ConfigError(path, f"Cannot read config: {e.strerror}") from e
        try:
            raw = yaml.safe_load(raw_text)
        except yaml.YAMLError as e:
            raise ConfigError(path, f"Invalid YAML: {e}") from e
        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise ConfigError(path, "Expected a YAML mapping at top level")
        return raw
