from __future__ import annotations

import errno
import socket
import threading

import pytest

from sulfur.driver import ports
from sulfur.errors import ResourceExhausted


def test_allocated_port_can_be_bound() -> None:
    port = ports.allocate_port()
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", port))


def test_concurrent_allocations_are_distinct() -> None:
    results: list[int] = []
    lock = threading.Lock()
    barrier = threading.Barrier(20)

    def worker() -> None:
        barrier.wait()
        port = ports.allocate_port()
        with lock:
            results.append(port)

    threads = [threading.Thread(target=worker) for _ in range(20)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    assert len(results) == 20
    assert len(set(results)) == 20


def test_port_in_use_is_skipped(monkeypatch) -> None:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as busy:
        busy.bind(("127.0.0.1", 0))
        busy.listen()
        taken = busy.getsockname()[1]
        monkeypatch.setattr(ports, "_next_port", taken)
        assert ports.allocate_port() != taken


def test_exhaustion_raises(monkeypatch) -> None:
    def always_busy(host: str, port: int) -> bool:
        return False

    monkeypatch.setattr(ports, "_probe", always_busy)
    with pytest.raises(ResourceExhausted):
        ports.allocate_port(attempts=5)


def test_unexpected_bind_error_propagates(monkeypatch) -> None:
    class BrokenSocket:
        def __init__(self, *args) -> None:
            pass

        def __enter__(self) -> "BrokenSocket":
            return self

        def __exit__(self, *exc) -> None:
            return None

        def bind(self, address) -> None:
            raise OSError(errno.EADDRNOTAVAIL, "Cannot assign requested address")

    monkeypatch.setattr(ports.socket, "socket", BrokenSocket)
    with pytest.raises(OSError):
        ports.allocate_port(attempts=3)


def test_counter_wraps_to_base(monkeypatch) -> None:
    monkeypatch.setattr(ports, "_next_port", ports.MAX_PORT)
    assert ports._next_candidate() == ports.MAX_PORT
    assert ports._next_candidate() == ports.BASE_PORT
