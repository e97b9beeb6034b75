"""Driver abstraction and the holder tying a driver to its session."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from ..client import Client

LOGGER = logging.getLogger(__name__)


class Driver(ABC):
    """Interface for a locally running WebDriver implementation."""

    @classmethod
    @abstractmethod
    def start(cls, *args: Any, **kwargs: Any) -> "Driver":
        """Launch the driver and wait until it accepts commands."""

    @abstractmethod
    def new_session(self, config: Optional[Any] = None) -> Client:
        """Open a WebDriver session against this driver."""

    @abstractmethod
    def close(self) -> None:
        """Terminate the driver. Must be safe to call more than once."""


class DriverHolder:
    """Own a session together with the driver serving it.

    Attribute access is forwarded to the session, so a holder can be used
    wherever a :class:`~sulfur.client.Client` is expected. Closing the holder
    closes the session first and the driver second, exactly once, whether it
    happens explicitly or when leaving a ``with`` block.
    """

    def __init__(self, client: Client, driver: Driver) -> None:
        self.client = client
        self.driver = driver
        self._closed = False

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self.client.close()
        except Exception:
            LOGGER.warning("Closing webdriver session failed", exc_info=True)
        finally:
            try:
                self.driver.close()
            except Exception:
                LOGGER.error("Closing driver failed", exc_info=True)

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "DriverHolder":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __getattr__(self, name: str) -> Any:
        # Only reached for attributes not defined on the holder itself.
        if name in {"client", "driver", "_closed"}:
            raise AttributeError(name)
        return getattr(self.client, name)


def bind(driver: Driver, config: Optional[Any] = None) -> DriverHolder:
    """Open a session on a started ``driver`` and hold both together.

    The driver is closed again if the session cannot be created.
    """

    try:
        client = driver.new_session(config)
    except BaseException:
        driver.close()
        raise
    return DriverHolder(client, driver)
