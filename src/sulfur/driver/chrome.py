"""Dedicated chromedriver instances and Chrome sessions."""

from __future__ import annotations

import enum
from typing import Optional

from ..protocol.models import Capabilities
from .base import DriverHolder, bind
from .process import DriverOptions, DriverProcess, SessionConfig


class LogLevel(str, enum.Enum):
    """Log level passed to chromedriver."""

    OFF = "OFF"
    SEVERE = "SEVERE"
    WARNING = "WARNING"
    INFO = "INFO"
    DEBUG = "DEBUG"
    ALL = "ALL"


class ChromeDriverOptions(DriverOptions):
    log_level: LogLevel = LogLevel.OFF

    def extra_args(self) -> list[str]:
        return [f"--log-level={self.log_level.value}"]


class ChromeConfig(SessionConfig):
    """Settings for the Chrome browser a session controls."""

    def capabilities(self) -> Capabilities:
        return Capabilities(
            always_match={
                "browserName": "chrome",
                "goog:chromeOptions": {
                    "w3c": True,
                    "args": self.browser_args(),
                },
            }
        )


class ChromeDriver(DriverProcess):
    """A running ``chromedriver``."""

    default_binary = "chromedriver"
    options_class = ChromeDriverOptions
    config_class = ChromeConfig


def start(
    config: Optional[ChromeConfig] = None,
    options: Optional[ChromeDriverOptions] = None,
) -> DriverHolder:
    """Start chromedriver along with a new browser session."""

    return bind(ChromeDriver.start(options), config)
