from __future__ import annotations

import functools
import os
import shutil
import stat
import sys
import threading
from collections.abc import Iterator
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from fake_webdriver import BASE_URL, FakeWebDriver
from sulfur.client import Client
from sulfur.protocol.models import Capabilities

TESTS_DIR = Path(__file__).parent
FIXTURES_DIR = TESTS_DIR / "fixtures"
FAKE_DRIVER_SCRIPT = TESTS_DIR / "fake_driver_bin.py"


@pytest.fixture
def fake() -> FakeWebDriver:
    return FakeWebDriver()


@pytest.fixture
def http(fake: FakeWebDriver) -> Iterator[TestClient]:
    with TestClient(fake.create_app()) as client:
        yield client


@pytest.fixture
def session(http: TestClient) -> Iterator[Client]:
    capabilities = Capabilities(always_match={"browserName": "fake"})
    with Client.open(BASE_URL, capabilities, http=http) as client:
        yield client


@pytest.fixture
def fake_driver_binary(tmp_path: Path):
    """Return a factory writing an executable that runs ``fake_driver_bin.py``."""

    def _make(mode: str = "healthy") -> str:
        path = tmp_path / f"fake-driver-{mode}"
        path.write_text(
            f'#!/bin/sh\nexec "{sys.executable}" "{FAKE_DRIVER_SCRIPT}" --mode={mode} "$@"\n'
        )
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(path)

    return _make


class _QuietHandler(SimpleHTTPRequestHandler):
    def log_message(self, format: str, *args) -> None:  # noqa: A003 - signature fixed
        return


@pytest.fixture(scope="session")
def fixture_server() -> Iterator[str]:
    """Serve ``tests/fixtures`` over HTTP and return its base URL."""

    handler = functools.partial(_QuietHandler, directory=str(FIXTURES_DIR))
    server = ThreadingHTTPServer(("127.0.0.1", 0), handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_address[1]}/"
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=2)


@pytest.fixture(scope="session")
def driver_name() -> str:
    name = os.environ.get("SULFUR_DRIVER__NAME", "chromedriver")
    if shutil.which(name) is None:
        pytest.skip(f"{name} is not available on PATH")
    return name
