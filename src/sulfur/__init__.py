"""WebDriver protocol client and local driver process management."""

from importlib.metadata import PackageNotFoundError, version

from .client import Client
from .driver.base import Driver, DriverHolder
from .driver.chrome import ChromeConfig, ChromeDriver
from .driver.gecko import GeckoConfig, GeckoDriver
from .protocol.models import By, Capabilities, Element, Timeouts

try:
    __version__ = version("sulfur")
except PackageNotFoundError:  # running from a source checkout
    __version__ = "0.0.0"

__all__ = [
    "By",
    "Capabilities",
    "ChromeConfig",
    "ChromeDriver",
    "Client",
    "Driver",
    "DriverHolder",
    "Element",
    "GeckoConfig",
    "GeckoDriver",
    "Timeouts",
]
