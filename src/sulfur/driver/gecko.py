"""Dedicated geckodriver instances and Firefox sessions."""

from __future__ import annotations

import enum
from typing import Optional

from ..protocol.models import Capabilities
from .base import DriverHolder, bind
from .process import DriverOptions, DriverProcess, SessionConfig


class LogLevel(str, enum.Enum):
    """Verbosity accepted by ``geckodriver --log``."""

    FATAL = "fatal"
    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    CONFIG = "config"
    DEBUG = "debug"
    TRACE = "trace"


class GeckoDriverOptions(DriverOptions):
    log_level: Optional[LogLevel] = None

    def extra_args(self) -> list[str]:
        if self.log_level is None:
            return []
        return ["--log", self.log_level.value]


class GeckoConfig(SessionConfig):
    """Settings for the Firefox browser a session controls."""

    def capabilities(self) -> Capabilities:
        return Capabilities(
            always_match={
                "browserName": "firefox",
                "moz:firefoxOptions": {"args": self.browser_args()},
            }
        )


class GeckoDriver(DriverProcess):
    """A running ``geckodriver``."""

    default_binary = "geckodriver"
    options_class = GeckoDriverOptions
    config_class = GeckoConfig


def start(
    config: Optional[GeckoConfig] = None,
    options: Optional[GeckoDriverOptions] = None,
) -> DriverHolder:
    """Start geckodriver along with a new browser session."""

    return bind(GeckoDriver.start(options), config)
