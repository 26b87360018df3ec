"""Shared fixtures: a real aioftp server serving a temporary directory."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import aioftp
import pytest
import pytest_asyncio

from ftpfs import Basic, FtpFileSystem, Timeout

USER = "tester"
PASSWORD = "correct-horse"


@pytest.fixture
def credentials() -> Basic:
    """Credentials accepted by the test server."""
    return Basic(USER, PASSWORD)


@pytest.fixture
def timeout() -> Timeout:
    """Short timeouts so a broken test fails fast instead of hanging."""
    return Timeout(connect=5.0, pool=5.0, idle=60.0)


@pytest_asyncio.fixture
async def server(tmp_path: Path) -> Any:
    """Run an FTP server whose root is the test's temporary directory."""
    server = aioftp.Server(
        users=[aioftp.User(USER, PASSWORD, base_path=tmp_path, home_path="/")],
        path_io_factory=aioftp.PathIO,
    )
    await server.start(host="127.0.0.1", port=0)
    yield server
    await server.close()


@pytest_asyncio.fixture
async def fs(server: Any, credentials: Basic, timeout: Timeout) -> Any:
    """Provide a filesystem rooted at the top of the test server."""
    filesystem = await FtpFileSystem.create(
        "test",
        "",
        "127.0.0.1",
        port=server.server_port,
        auth=credentials,
        timeout=timeout,
    )
    yield filesystem
    await filesystem.close()
