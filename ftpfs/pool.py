import asyncio
import enum
import time
import warnings
from collections import deque
from contextlib import asynccontextmanager
from typing import (
    Any,
    AsyncIterator,
    Awaitable,
    Callable,
    Deque,
    Dict,
    Optional,
    Set,
    Tuple,
)

import aioftp

from . import classifier
from .auth import Basic
from .config import Limits, Timeout
from .errors import TransportError
from .logger import log, summarize

HookType = Callable[..., Awaitable[Any]]
DialType = Callable[[], Awaitable[aioftp.Client]]


class Disposition(enum.Enum):
    """What to do with a connection coming back from an operation."""

    RETURN = "return"  # Put it straight back in the pool
    PROBE = "probe"  # Check it with NOOP first, discard if that fails


def disposition(error: Optional[BaseException]) -> Disposition:
    """
    Decide how a connection should be handled after an operation.

    A clean finish, or a failure the server itself reported with a status
    reply, leaves the control connection in a known state. Anything else
    (reset sockets, timeouts, garbled replies) might have broken the session,
    so it has to be probed before anyone else gets it.
    """
    if error is None or classifier.is_semantic(error):
        return Disposition.RETURN
    return Disposition.PROBE


async def open_session(
    host: str,
    port: int,
    auth: Basic,
    timeout: Timeout,
    encoding: str = "utf-8",
) -> aioftp.Client:
    """Connect and log in to the server, giving up after the connect timeout.

    Args:
        host: Server hostname or address
        port: Control connection port
        auth: Credentials for the login
        timeout: Only ``timeout.connect`` applies here
        encoding: Text encoding for the FTP protocol

    Returns:
        aioftp.Client: An authenticated session

    Raises:
        ConnectionError: If the server can't be reached in time
        aioftp.StatusCodeError: If the server rejects the login
    """
    connection = aioftp.Client(encoding=encoding)

    async def handshake() -> None:
        await connection.connect(host, port)
        await connection.login(auth.user, auth.password)

    try:
        await asyncio.wait_for(handshake(), timeout=timeout.connect)
    except asyncio.TimeoutError:
        connection.close()
        raise ConnectionError(f"Connection to {host}:{port} timed out")
    except BaseException:
        # Don't leave a half-open session behind a failed login
        connection.close()
        raise

    return connection


class ConnectionPool:
    """
    A pool of logged-in FTP sessions to one server.

    FTP control connections handle one command at a time, so every operation
    borrows a whole session and gives it back when it is done. The pool hands
    out idle sessions first and dials new ones when none are free. What happens
    on the way back depends on how the operation ended: see ``disposition``.

    The lock only ever guards the idle deque. It is never held while talking
    to the server, and a checked out session belongs to exactly one caller, so
    commands on it need no further locking.
    """

    def __init__(
        self,
        dial: DialType,
        limits: Optional[Limits] = None,
        timeout: Optional[Timeout] = None,
        hooks: Optional[Dict[str, HookType]] = None,
        name: str = "ftp",
    ) -> None:
        """Set up an empty pool.

        Args:
            dial: Coroutine factory producing a new authenticated session
            limits: Ceilings on checked out and idle sessions
            timeout: Slot wait, idle eviction and probe timeouts
            hooks: Custom callbacks for "connect", "discard", "error" and "cleanup"
            name: Label used in log lines and errors, usually host:port
        """
        self.dial = dial
        self.limits: Limits = limits or Limits()
        self.timeout: Timeout = timeout or Timeout()
        self.hooks: Dict[str, HookType] = hooks or {}
        self.name = name

        self.idle: Deque[Tuple[aioftp.Client, float]] = deque()
        self.busy: Set[int] = set()  # id() of every checked out session

        # Made on first use, inside the loop that will wait on them
        self._lock: Optional[asyncio.Lock] = None
        self._slots: Optional[asyncio.Semaphore] = None

    @property
    def lock(self) -> asyncio.Lock:
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    @property
    def slots(self) -> asyncio.Semaphore:
        if self._slots is None:
            self._slots = asyncio.Semaphore(self.limits.connections)
        return self._slots

    def __len__(self) -> int:
        """Number of idle sessions ready for reuse."""
        return len(self.idle)

    @property
    def checked_out(self) -> int:
        return len(self.busy)

    def __repr__(self) -> str:
        return f"<ConnectionPool {self.name} idle={len(self)} busy={self.checked_out}>"

    async def acquire(self) -> aioftp.Client:
        """Take a session out of the pool, dialing a new one if none are idle.

        Returns:
            aioftp.Client: A session owned exclusively by the caller

        Raises:
            TransportError: If no slot frees up in time or dialing fails
        """
        try:
            await asyncio.wait_for(self.slots.acquire(), timeout=self.timeout.pool)
        except asyncio.TimeoutError:
            raise TransportError(
                f"No free connection after {self.timeout.pool}s", path=self.name
            ) from None

        try:
            connection = await self.pop()
            if connection is None:
                connection = await self.connect()
        except BaseException:
            self.slots.release()
            raise

        self.busy.add(id(connection))
        return connection

    async def release(
        self, connection: aioftp.Client, error: Optional[BaseException] = None
    ) -> None:
        """Give a session back after an operation.

        Args:
            connection: The session from ``acquire``
            error: The exception the operation ended with, if any
        """
        self.owned(connection)

        if disposition(error) is Disposition.PROBE:
            log.debug(
                "%s: checking connection after error: %s", self.name, summarize(error)
            )
            try:
                await asyncio.wait_for(
                    connection.command("NOOP", "2xx"), timeout=self.timeout.connect
                )
            except Exception as failure:
                log.debug("%s: connection failed, closing: %s", self.name, failure)
                await self.fire("error", failure)
                await self.discard(connection)
                return

        self.checkin(connection)
        await self.push(connection)

    async def discard(self, connection: aioftp.Client) -> None:
        """Close a session for good instead of returning it to the pool."""
        self.checkin(connection)
        await self.fire("discard", connection)
        await self.close_connection(connection)

    def drop(self, connection: aioftp.Client) -> None:
        """Discard a session without any network traffic, for cancelled tasks."""
        self.checkin(connection)
        connection.close()

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aioftp.Client]:
        """Borrow a session for the duration of an ``async with`` block.

        Whatever the block raises is used to decide the session's fate, then
        re-raised unchanged.
        """
        connection = await self.acquire()
        try:
            yield connection
        except asyncio.CancelledError:
            self.drop(connection)
            raise
        except Exception as error:
            await self.release(connection, error)
            raise
        await self.release(connection)

    async def close(self) -> None:
        """Quit every idle session. Checked out sessions are left to their owners."""
        async with self.lock:
            idle = [connection for connection, _ in self.idle]
            self.idle.clear()

        for connection in idle:
            await self.close_connection(connection)

    async def connect(self) -> aioftp.Client:
        log.debug("%s: connecting to FTP server", self.name)
        try:
            connection = await self.dial()
        except Exception as error:
            log.error("%s: error while connecting: %s", self.name, error)
            await self.fire("error", error)
            raise TransportError(f"Connect failed: {error}", path=self.name) from error

        await self.fire("connect", connection)
        return connection

    async def pop(self) -> Optional[aioftp.Client]:
        """Return the oldest idle session that hasn't outlived the idle timeout."""
        stale = []
        found = None
        now = time.monotonic()

        async with self.lock:
            while self.idle:
                connection, since = self.idle.popleft()
                if now - since > self.timeout.idle:
                    stale.append(connection)
                    continue
                found = connection
                break

        for connection in stale:
            log.debug("%s: evicting idle connection", self.name)
            await self.close_connection(connection)

        return found

    async def push(self, connection: aioftp.Client) -> None:
        async with self.lock:
            if len(self.idle) < self.limits.keepalive:
                self.idle.append((connection, time.monotonic()))
                return

        log.debug("%s: keepalive limit reached, closing connection", self.name)
        await self.close_connection(connection)

    def owned(self, connection: aioftp.Client) -> None:
        if id(connection) not in self.busy:
            raise RuntimeError(
                f"Connection to {self.name} released twice or never checked out"
            )

    def checkin(self, connection: aioftp.Client) -> None:
        self.owned(connection)
        self.busy.discard(id(connection))
        self.slots.release()

    async def close_connection(self, connection: aioftp.Client) -> None:
        """Say QUIT if the server is still listening, then close the socket."""
        try:
            await asyncio.wait_for(connection.quit(), timeout=self.timeout.connect)
        except Exception as error:
            log.debug("%s: error while quitting: %s", self.name, error)
        finally:
            connection.close()

    async def fire(self, event: str, *args: Any) -> None:
        """Run a user hook; hook failures never break the pool."""
        hook = self.hooks.get(event)
        if hook is None:
            return
        try:
            await hook(*args)
        except Exception as error:
            warnings.warn(f"{event.capitalize()} hook failed: {error}")
