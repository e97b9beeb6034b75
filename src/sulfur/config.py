"""Configuration models for sulfur."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DriverSettings(BaseModel):
    """Which driver backend to launch and how."""

    name: str = Field(
        default="chromedriver",
        description="Driver backend (chromedriver, geckodriver) or a path to its binary.",
    )
    binary: Optional[str] = None
    log_level: Optional[str] = None
    start_timeout: float = Field(default=120.0, gt=0)


class BrowserSettings(BaseModel):
    """Settings for the browser controlled through the session."""

    headless: bool = False
    args: list[str] = Field(default_factory=list)


class SulfurConfig(BaseSettings):
    """Top-level configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SULFUR_",
        env_file=(".env",),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    driver: DriverSettings = Field(default_factory=DriverSettings)
    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    http_timeout: float = Field(
        default=60.0,
        gt=0,
        description="Timeout (in seconds) for each WebDriver command.",
    )


def load_config(
    path: Path | None = None,
    *,
    env_file: Path | None = None,
    **overrides: Any,
) -> SulfurConfig:
    """Build the configuration.

    Values from the YAML file at ``path`` are merged section by section with
    ``overrides``; both take precedence over ``SULFUR_*`` variables from the
    environment and ``env_file``.
    """

    sections = read_sections(path) if path else {}
    for name, values in overrides.items():
        current = sections.get(name)
        if isinstance(values, Mapping) and isinstance(current, Mapping):
            sections[name] = {**current, **values}
        else:
            sections[name] = values
    if env_file is not None:
        return SulfurConfig(_env_file=env_file, **sections)
    return SulfurConfig(**sections)


def read_sections(path: Path) -> dict[str, Any]:
    data = yaml.safe_load(path.read_text()) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping of configuration sections")
    return data
