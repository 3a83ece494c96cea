"""Pytest configuration and fixtures for rip tests.

This file provides:
- make_mock_client: httpx.MockTransport-backed transports for unit tests
- PortReservation: Race-free port allocation for test servers
- MockServer: Subprocess management for the mock API server
- Fixtures: Shared test infrastructure
"""

from __future__ import annotations

import json
import socket
import subprocess
import sys
import time
from pathlib import Path
from typing import Any, Callable, Generator

import httpx
import pytest

# Project root for fixture paths
PROJECT_ROOT = Path(__file__).parent.parent
MOCK_SERVER_MODULE = "tests.integration.mock_server"


class RecordingHandler:
    """httpx.MockTransport handler that records requests and replies with JSON.

    Usage:
        handler = RecordingHandler(json_body={"status": "success"})
        client = rip.new("http://test").with_transport(handler.factory)
        client.do()
        handler.requests[0].url
    """

    def __init__(
        self,
        status_code: int = 200,
        json_body: Any = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.status_code = status_code
        self.headers = headers or {}
        if content is None:
            content = json.dumps(json_body if json_body is not None else {}).encode("utf-8")
            self.headers.setdefault("Content-Type", "application/json")
        self.content = content
        self.requests: list[httpx.Request] = []
        self.clients: list[httpx.Client] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        return httpx.Response(self.status_code, headers=self.headers, content=self.content)

    def factory(self) -> httpx.Client:
        """Transport factory producing a fresh mock-backed client per call."""
        client = httpx.Client(transport=httpx.MockTransport(self))
        self.clients.append(client)
        return client


def make_raising_factory(exc: Exception) -> Callable[[], httpx.Client]:
    """Transport factory whose clients raise exc on every request."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise exc

    return lambda: httpx.Client(transport=httpx.MockTransport(handler))


class PortReservation:
    """Holds a reserved port with socket kept open to prevent races.

    The port is held exclusively until release(), which MockServer calls
    just before the server binds.
    """

    def __init__(self) -> None:
        self._socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._socket.bind(("127.0.0.1", 0))  # Port 0 = OS assigns ephemeral port
        self._port = self._socket.getsockname()[1]
        self._released = False

    @property
    def port(self) -> int:
        return self._port

    def release(self) -> int:
        """Release the socket and return the port for server use.

        Safe to call multiple times - subsequent calls are no-ops.
        """
        if not self._released:
            self._socket.close()
            self._released = True
        return self._port

    def __enter__(self) -> PortReservation:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.release()


def wait_for_server_ready(host: str, port: int, timeout: float = 10.0) -> bool:
    """Block until server accepts TCP connections, or timeout expires."""
    start = time.time()
    while time.time() - start < timeout:
        try:
            with socket.create_connection((host, port), timeout=1.0):
                return True
        except (ConnectionRefusedError, socket.timeout, OSError):
            time.sleep(0.1)
    return False


class MockServer:
    """Manages a mock server subprocess for integration tests.

    Runs tests/integration/mock_server.py as a subprocess.
    """

    def __init__(self, port: int | PortReservation) -> None:
        if isinstance(port, PortReservation):
            self._reservation = port
            self.port = port.port
        else:
            self._reservation = None
            self.port = port
        self.host = "127.0.0.1"
        self.base_url = f"http://{self.host}:{self.port}"
        self._process: subprocess.Popen | None = None

    def start(self) -> None:
        """Start the mock server subprocess.

        Raises:
            RuntimeError: If server fails to start within 10 seconds.
        """
        if self._reservation:
            self._reservation.release()

        self._process = subprocess.Popen(
            [
                sys.executable, "-m", MOCK_SERVER_MODULE,
                "--host", self.host,
                "--port", str(self.port),
            ],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=PROJECT_ROOT,
        )

        if not wait_for_server_ready(self.host, self.port):
            stderr = ""
            if self._process and self._process.stderr:
                stderr = self._process.stderr.read().decode(errors="replace")
            self.stop()
            raise RuntimeError(
                f"MockServer failed to start on port {self.port}. "
                f"stderr: {stderr or '(empty)'}"
            )

    def stop(self) -> None:
        """Stop the mock server subprocess (SIGTERM, then SIGKILL after 5s).

        Safe to call multiple times or if server was never started.
        """
        if self._process:
            self._process.terminate()
            try:
                self._process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                self._process.kill()
                try:
                    self._process.wait(timeout=5)
                except subprocess.TimeoutExpired:
                    pass  # Process is unkillable (zombie?), nothing more we can do
            self._process = None

    def __enter__(self) -> MockServer:
        self.start()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.stop()


# =============================================================================
# Pytest Fixtures
# =============================================================================


@pytest.fixture
def recording_handler() -> RecordingHandler:
    """Handler replying 200 {"status": "success"} and recording requests."""
    return RecordingHandler(json_body={"status": "success"})


@pytest.fixture(scope="session")
def mock_server() -> Generator[MockServer, None, None]:
    """Session-scoped mock API server."""
    with MockServer(PortReservation()) as server:
        yield server


# =============================================================================
# Pytest Hooks
# =============================================================================


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Tag tests with unit/integration markers based on their directory.

    Enables running subsets via:
        pytest -m integration  # only integration tests
        pytest -m unit         # only unit tests
    """
    for item in items:
        test_path = Path(item.fspath)
        if "integration" in test_path.parts:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
