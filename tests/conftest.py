"""Shared fixtures for erlboot tests."""

from __future__ import annotations

import threading
import time
import zipfile
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Tuple, Union

import pytest

from erlboot.bootstrap.download import HttpClient

Route = Tuple[int, bytes]
ZipContent = Union[bytes, str, Tuple[Union[bytes, str], int]]


class _Handler(BaseHTTPRequestHandler):
    server: "FakeServer"

    def do_GET(self) -> None:  # noqa: N802
        self.server.requests.append((self.path, self.headers.get("User-Agent", "")))
        delay = self.server.delays.get(self.path)
        if delay:
            time.sleep(delay)
        status, body = self.server.routes.get(self.path, (404, b"not found"))
        self.send_response(status)
        self.send_header("Content-Type", "application/octet-stream")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args: object) -> None:
        pass


class FakeServer(ThreadingHTTPServer):
    """Local HTTP server with a route table."""

    daemon_threads = True

    def __init__(self) -> None:
        super().__init__(("127.0.0.1", 0), _Handler)
        self.routes: Dict[str, Route] = {}
        self.delays: Dict[str, float] = {}
        self.requests: List[Tuple[str, str]] = []

    def url(self, path: str) -> str:
        return f"http://127.0.0.1:{self.server_address[1]}{path}"


@pytest.fixture
def http_server() -> Iterator[FakeServer]:
    server = FakeServer()
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield server
    finally:
        server.shutdown()
        server.server_close()


@pytest.fixture
def fresh_http_client(monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset the shared HTTP client so each test sees first-use behaviour."""
    monkeypatch.setattr(HttpClient, "_instance", None)


def write_zip(path: Path, entries: Dict[str, ZipContent], top: Optional[str] = None) -> Path:
    """Write a zip archive; values are content or ``(content, mode)``."""
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        if top:
            zf.writestr(zipfile.ZipInfo(f"{top}/"), b"")
        for name, value in entries.items():
            mode = None
            if isinstance(value, tuple):
                value, mode = value
            info = zipfile.ZipInfo(name)
            info.compress_type = zipfile.ZIP_DEFLATED
            if mode is not None:
                info.external_attr = (0o100000 | mode) << 16
            zf.writestr(info, value.encode() if isinstance(value, str) else value)
    return path


@pytest.fixture
def make_zip(tmp_path: Path) -> Callable[..., Path]:
    def _make(entries: Dict[str, ZipContent], name: str = "archive.zip", top: Optional[str] = None) -> Path:
        return write_zip(tmp_path / name, entries, top=top)

    return _make
