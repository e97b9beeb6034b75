"""Exception hierarchy shared by the protocol client and the driver supervisor."""

from __future__ import annotations

from typing import Optional


class SulfurError(Exception):
    """Base class for every error raised by sulfur."""


class NoActiveSession(SulfurError):
    """Raised when a protocol call is made without an open session."""

    def __init__(self, message: str = "No current session") -> None:
        super().__init__(message)


class ResourceExhausted(SulfurError):
    """Raised when no free local port could be found."""


# Supervisor failures ---------------------------------------------------------


class SupervisorError(SulfurError):
    """Raised when the driver process cannot be started or kept alive."""


class DriverStartError(SupervisorError):
    """Raised when the driver binary cannot be spawned at all."""


class StartupTimeout(SupervisorError):
    """Raised when the driver did not become healthy before the deadline."""


class ProcessExited(SupervisorError):
    """Raised when the driver process exited unexpectedly."""

    def __init__(self, returncode: Optional[int], message: Optional[str] = None) -> None:
        self.returncode = returncode
        super().__init__(message or f"Driver process exited with status {returncode}")


# Transport failures ----------------------------------------------------------


class TransportFailure(SulfurError):
    """Local, connection-level or decoding failure talking to the driver."""


class ConnectionFailure(TransportFailure):
    """The HTTP request could not be completed."""


class MalformedResponse(TransportFailure):
    """The driver answered with a body that could not be decoded."""


class HTTPStatusFailure(TransportFailure):
    """Non-success response whose body could not be classified."""

    def __init__(self, status_code: int, message: Optional[str] = None) -> None:
        self.status_code = status_code
        super().__init__(message or f"Driver responded with HTTP {status_code}")


class DriverTextError(HTTPStatusFailure):
    """Non-success response carrying a plain-text diagnostic body."""

    def __init__(self, status_code: int, text: str) -> None:
        self.text = text
        super().__init__(status_code, f"Driver responded with HTTP {status_code}: {text}")


# Protocol errors -------------------------------------------------------------


class ProtocolError(SulfurError):
    """Error reported by the remote end in a WebDriver error payload."""

    code = "unknown error"

    def __init__(self, code: str, message: str = "", *, stacktrace: Optional[str] = None) -> None:
        self.code = code
        self.message = message
        self.stacktrace = stacktrace
        super().__init__(f"{code}: {message}" if message else code)

    @classmethod
    def from_code(
        cls,
        code: str,
        message: str = "",
        *,
        stacktrace: Optional[str] = None,
    ) -> "ProtocolError":
        """Build the most specific error class known for ``code``."""

        error_cls = _ERRORS_BY_CODE.get(code, ProtocolError)
        return error_cls(code, message, stacktrace=stacktrace)


class NoSuchElement(ProtocolError):
    code = "no such element"


class NoSuchWindow(ProtocolError):
    code = "no such window"


class NoSuchFrame(ProtocolError):
    code = "no such frame"


class StaleElementReference(ProtocolError):
    code = "stale element reference"


class InvalidSessionId(ProtocolError):
    code = "invalid session id"


class SessionNotCreated(ProtocolError):
    code = "session not created"


class SessionCreationFailed(ProtocolError):
    """Raised by :meth:`sulfur.client.Client.open` when the driver refuses a session."""

    def __init__(self, error: ProtocolError) -> None:
        self.error = error
        super().__init__(error.code, error.message, stacktrace=error.stacktrace)


_ERRORS_BY_CODE: dict[str, type[ProtocolError]] = {
    error_cls.code: error_cls
    for error_cls in (
        NoSuchElement,
        NoSuchWindow,
        NoSuchFrame,
        StaleElementReference,
        InvalidSessionId,
        SessionNotCreated,
    )
}
