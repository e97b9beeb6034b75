"""Allocation of local TCP ports for driver processes."""

from __future__ import annotations

import errno
import logging
import socket
import threading

from ..errors import ResourceExhausted

LOGGER = logging.getLogger(__name__)

BASE_PORT = 4444
MAX_PORT = 65535
DEFAULT_ATTEMPTS = 1000

_RETRYABLE_ERRNOS = {errno.EADDRINUSE, errno.EACCES}

_lock = threading.Lock()
_next_port = BASE_PORT


def allocate_port(host: str = "127.0.0.1", *, attempts: int = DEFAULT_ATTEMPTS) -> int:
    """Return a port on ``host`` that was free when probed.

    Candidates come from a process-wide counter, so concurrent callers never
    receive the same port. The port is not reserved once the probe socket is
    closed; a driver that loses the race reports it by exiting.
    """

    for _ in range(attempts):
        port = _next_candidate()
        if _probe(host, port):
            LOGGER.debug("Allocated port %s", port)
            return port
    raise ResourceExhausted(f"Could not find an unused port after {attempts} attempts")


def _next_candidate() -> int:
    global _next_port
    with _lock:
        port = _next_port
        _next_port = port + 1 if port < MAX_PORT else BASE_PORT
    return port


def _probe(host: str, port: int) -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind((host, port))
        except OSError as exc:
            if exc.errno in _RETRYABLE_ERRNOS:
                LOGGER.debug("Port %s unavailable, retrying", port)
                return False
            raise
    return True
