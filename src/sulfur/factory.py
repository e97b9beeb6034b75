"""Factories for constructing drivers and sessions from configuration."""

from __future__ import annotations

from pathlib import PurePath

from .config import SulfurConfig
from .driver import chrome, gecko
from .driver.base import DriverHolder, bind
from .driver.process import DriverOptions, DriverProcess, SessionConfig

_BACKENDS: dict[str, type[DriverProcess]] = {
    "chromedriver": chrome.ChromeDriver,
    "chrome": chrome.ChromeDriver,
    "geckodriver": gecko.GeckoDriver,
    "gecko": gecko.GeckoDriver,
    "firefox": gecko.GeckoDriver,
}


def driver_class(name: str) -> type[DriverProcess]:
    """Return the backend for a driver name or a path to a driver binary."""

    key = PurePath(name).name.lower()
    if key.endswith(".exe"):
        key = key[: -len(".exe")]
    try:
        return _BACKENDS[key]
    except KeyError:
        raise ValueError(f"Unsupported driver: {name}") from None


def build_driver_options(config: SulfurConfig) -> DriverOptions:
    settings = config.driver
    driver_cls = driver_class(settings.name)
    binary = settings.binary
    if binary is None and PurePath(settings.name).name != settings.name:
        binary = settings.name
    values: dict[str, object] = {
        "binary": binary,
        "start_timeout": settings.start_timeout,
        "http_timeout": config.http_timeout,
    }
    if settings.log_level:
        if issubclass(driver_cls, chrome.ChromeDriver):
            values["log_level"] = chrome.LogLevel(settings.log_level.upper())
        else:
            values["log_level"] = gecko.LogLevel(settings.log_level.lower())
    return driver_cls.options_class.model_validate(values)


def build_session_config(config: SulfurConfig) -> SessionConfig:
    driver_cls = driver_class(config.driver.name)
    return driver_cls.config_class(
        headless=config.browser.headless,
        args=list(config.browser.args),
    )


def build_driver(config: SulfurConfig) -> DriverProcess:
    """Start the configured driver and wait until it is healthy."""

    driver_cls = driver_class(config.driver.name)
    return driver_cls.start(build_driver_options(config))


def start(config: SulfurConfig) -> DriverHolder:
    """Start the configured driver together with a new session."""

    driver = build_driver(config)
    return bind(driver, build_session_config(config))
