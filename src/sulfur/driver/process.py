"""Supervision of a WebDriver binary running as a child process."""

from __future__ import annotations

import enum
import logging
import subprocess
import time
from abc import ABC, abstractmethod
from typing import Callable, ClassVar, Optional

import httpx
from pydantic import BaseModel, Field

from ..client import DEFAULT_HTTP_TIMEOUT, Client
from ..errors import DriverStartError, ProcessExited, StartupTimeout, SupervisorError
from ..protocol.models import Capabilities
from .base import Driver
from .ports import allocate_port

LOGGER = logging.getLogger(__name__)

START_TIMEOUT = 120.0
HEALTH_CHECK_TIMEOUT = 5.0
KILL_WAIT_TIMEOUT = 10.0


class DriverState(str, enum.Enum):
    """Lifecycle of a driver process."""

    STARTING = "starting"
    HEALTHY = "healthy"
    CLOSED = "closed"
    FAILED = "failed"


class DriverOptions(BaseModel):
    """How to launch a driver binary."""

    binary: Optional[str] = Field(
        default=None,
        description="Executable to run; defaults to the backend's usual binary name.",
    )
    host: str = "127.0.0.1"
    start_timeout: float = Field(default=START_TIMEOUT, gt=0)
    http_timeout: float = Field(default=DEFAULT_HTTP_TIMEOUT, gt=0)

    def extra_args(self) -> list[str]:
        return []


class SessionConfig(BaseModel, ABC):
    """Browser settings turned into capabilities when a session is opened."""

    headless: bool = False
    args: list[str] = Field(default_factory=list)

    def browser_args(self) -> list[str]:
        args = list(self.args)
        if self.headless and "--headless" not in args:
            args.append("--headless")
        return args

    @abstractmethod
    def capabilities(self) -> Capabilities:
        """Capabilities requested when a session is opened."""


def wait_until(
    timeout: float,
    predicate: Callable[[], bool],
    *,
    initial_delay: float = 0.001,
    max_delay: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> None:
    """Call ``predicate`` until it returns true, backing off exponentially.

    Exceptions raised by ``predicate`` propagate immediately. Raises
    :class:`StartupTimeout` once ``timeout`` seconds have passed.
    """

    deadline = clock() + timeout
    delay = initial_delay
    while True:
        if predicate():
            return
        now = clock()
        if now >= deadline:
            raise StartupTimeout(f"Condition not met within {timeout} seconds")
        sleep(min(delay, max_delay, deadline - now))
        delay *= 2


class DriverProcess(Driver):
    """A driver binary spawned on a freshly allocated port.

    Subclasses name the binary and the option/config models they accept;
    the base class itself cannot be started.
    """

    default_binary: ClassVar[str] = ""
    options_class: ClassVar[type[DriverOptions]] = DriverOptions
    config_class: ClassVar[type[SessionConfig]] = SessionConfig

    def __init__(
        self,
        process: subprocess.Popen,
        port: int,
        options: DriverOptions,
        *,
        http: Optional[httpx.Client] = None,
    ) -> None:
        self._process = process
        self._port = port
        self._options = options
        self._http = http or httpx.Client(timeout=HEALTH_CHECK_TIMEOUT)
        self._reaped = False
        self.state = DriverState.STARTING

    @classmethod
    def start(cls, options: Optional[DriverOptions] = None) -> "DriverProcess":
        """Spawn the driver and block until its status endpoint answers."""

        if not cls.default_binary:
            raise DriverStartError(f"{cls.__name__} does not name a driver backend")
        options = options or cls.options_class()
        port = allocate_port(options.host)
        command = cls.build_command(options, port)
        LOGGER.debug("Spawning %s on port %s: %s", command[0], port, command)
        try:
            process = subprocess.Popen(command)
        except OSError as exc:
            raise DriverStartError(f"Could not spawn {command[0]!r}: {exc}") from exc
        driver = cls(process, port, options)
        try:
            driver.wait_until_healthy(options.start_timeout)
        except BaseException:
            driver.close()
            raise
        return driver

    @classmethod
    def build_command(cls, options: DriverOptions, port: int) -> list[str]:
        binary = options.binary or cls.default_binary
        return [binary, f"--port={port}", *options.extra_args()]

    # Health ------------------------------------------------------------------

    def wait_until_healthy(self, timeout: float) -> None:
        def ready() -> bool:
            self.ensure_still_alive()
            return self.is_healthy()

        try:
            wait_until(timeout, ready)
        except StartupTimeout:
            self.state = DriverState.FAILED
            raise StartupTimeout(
                f"Driver on port {self._port} did not become healthy within {timeout} seconds"
            ) from None
        self.state = DriverState.HEALTHY
        LOGGER.info("Setup done! running on port %s", self._port)

    def is_healthy(self) -> bool:
        """Return whether ``GET /status`` answers with a success status."""

        url = f"{self.url}status"
        try:
            response = self._http.get(url)
        except httpx.HTTPError as exc:
            LOGGER.debug("Could not fetch %s: %s", url, exc)
            return False
        LOGGER.debug("Got %s -> %s", url, response.status_code)
        return response.is_success

    def ensure_still_alive(self) -> None:
        returncode = self._process.poll()
        if returncode is not None:
            self.state = DriverState.FAILED
            LOGGER.warning("Driver process exited with %s", returncode)
            raise ProcessExited(returncode)

    # Sessions ----------------------------------------------------------------

    def new_session(self, config: Optional[SessionConfig] = None) -> Client:
        if self.state is DriverState.CLOSED:
            raise SupervisorError("Driver has been closed")
        self.ensure_still_alive()
        config = config or self.config_class()
        LOGGER.info("Starting new session from instance at %s", self._port)
        return Client.open(
            self.url,
            config.capabilities(),
            timeout=self._options.http_timeout,
        )

    # Shutdown ----------------------------------------------------------------

    def close(self) -> None:
        """Kill and reap the process. Later calls do nothing."""

        if self._reaped:
            return
        self._reaped = True
        LOGGER.debug("Closing child pid %s", self._process.pid)
        try:
            if self._process.poll() is None:
                self._process.kill()
            self._process.wait(timeout=KILL_WAIT_TIMEOUT)
        except subprocess.TimeoutExpired:
            LOGGER.error("Driver pid %s did not exit after being killed", self._process.pid)
        except OSError as exc:
            LOGGER.warning("Killing driver pid %s failed: %s", self._process.pid, exc)
        finally:
            self._http.close()
            if self.state is not DriverState.FAILED:
                self.state = DriverState.CLOSED

    def __enter__(self) -> "DriverProcess":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # Accessors ---------------------------------------------------------------

    @property
    def port(self) -> int:
        return self._port

    @property
    def url(self) -> str:
        return f"http://{self._options.host}:{self._port}/"

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def returncode(self) -> Optional[int]:
        return self._process.poll()
