"""Settings loading utilities."""

from __future__ import annotations

from pathlib import Path

import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from figtag.config.models import FigtagSettings
from figtag.utils.errors import SettingsError


def load_settings(path: Path | None = None) -> FigtagSettings:
    """Load and validate figtag settings from YAML."""

    settings_path = path or Path(__file__).with_name("settings.yaml")

    try:
        raw = yaml.safe_load(settings_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise SettingsError(f"Settings file not found: {settings_path}") from exc
    except yaml.YAMLError as exc:
        raise SettingsError(f"Invalid YAML in settings file: {settings_path}") from exc

    if not isinstance(raw, dict):
        raise SettingsError(f"Settings file must contain a mapping: {settings_path}")

    try:
        return FigtagSettings.model_validate(raw)
    except ValidationError as exc:
        raise SettingsError(f"Invalid settings schema: {settings_path}") from exc
