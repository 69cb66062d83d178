"""Layered settings loading: JSON files, then environment variables."""

import json
import os
from pathlib import Path
from typing import Any

from chronos.commons.settings.models import Settings

ENV_PREFIX = "CHRONOS__"


def _coerce(value: str) -> Any:
    """Turn an environment string into bool, int, float, JSON or str."""
    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered == "true"

    for cast in (int, float):
        try:
            return cast(value)
        except ValueError:
            continue

    if value.startswith(("[", "{")):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value

    return value


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _merge(current, value)
        else:
            merged[key] = value
    return merged


class SettingsLoader:
    """Resolves settings from config files and the environment.

    Precedence, highest first:
    1. ``CHRONOS__`` environment variables
    2. ``appsettings.{environment}.json``
    3. ``appsettings.json``
    """

    def __init__(
        self,
        config_dir: Path | None = None,
        environment: str | None = None,
    ) -> None:
        """Initialize the loader.

        Args:
            config_dir: Directory with the JSON files. Defaults to ./config.
            environment: Environment name. Defaults to
                CHRONOS__APP__ENVIRONMENT or 'dev'.
        """
        self.config_dir = config_dir or Path("config")
        self.environment = environment or os.getenv(
            f"{ENV_PREFIX}APP__ENVIRONMENT", "dev"
        )

    def load(self) -> Settings:
        """Build a fully resolved Settings instance."""
        layers = (
            self._read_file("appsettings.json"),
            self._read_file(f"appsettings.{self.environment}.json"),
            self.environment_overrides(),
        )
        config: dict[str, Any] = {}
        for layer in layers:
            config = _merge(config, layer)
        return Settings(**config)

    def environment_overrides(self) -> dict[str, Any]:
        """Collect ``CHRONOS__SECTION__KEY`` variables as a nested dict.

        ``CHRONOS__RECOVERY__MAX_ATTEMPTS=5`` becomes
        ``{"recovery": {"max_attempts": 5}}``.
        """
        overrides: dict[str, Any] = {}
        for key, raw in os.environ.items():
            if not key.startswith(ENV_PREFIX):
                continue
            *parents, leaf = key[len(ENV_PREFIX) :].lower().split("__")
            node = overrides
            for part in parents:
                node = node.setdefault(part, {})
            node[leaf] = _coerce(raw)
        return overrides

    def _read_file(self, filename: str) -> dict[str, Any]:
        path = self.config_dir / filename
        if not path.exists():
            return {}
        with path.open(encoding="utf-8") as f:
            return dict(json.load(f))


_settings: Settings | None = None


def get_settings(
    config_dir: Path | None = None,
    environment: str | None = None,
    *,
    reload: bool = False,
) -> Settings:
    """Return the process settings, loading them on first use.

    Args:
        config_dir: Optional config directory override.
        environment: Optional environment override.
        reload: Discard the cached instance and load again.
    """
    global _settings  # noqa: PLW0603
    if _settings is None or reload:
        _settings = SettingsLoader(config_dir=config_dir, environment=environment).load()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings. Used by tests."""
    global _settings  # noqa: PLW0603
    _settings = None
