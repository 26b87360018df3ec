import asyncio
import inspect
import warnings
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Tuple, Union

import aioftp

from . import classifier
from .errors import ObjectNotFound
from .logger import log
from .pool import ConnectionPool

DEFAULT_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class Range:
    """
    A byte range in the style of an HTTP Range header, ends inclusive.

    ``Range(0, 99)`` is the first hundred bytes, ``Range(100, None)`` is
    everything from byte 100 on, and ``Range(None, 100)`` is the last hundred
    bytes.
    """

    start: Optional[int] = None
    end: Optional[int] = None

    def decode(self, size: int) -> Tuple[int, Optional[int]]:
        """Turn the range into ``(offset, limit)`` for an object of ``size`` bytes.

        A limit of None means read to the end.
        """
        if self.start is not None:
            if self.end is not None:
                return self.start, max(0, self.end - self.start + 1)
            return self.start, None
        if self.end is not None:
            return max(0, size - self.end), None
        return 0, None


class ReadStream:
    """
    A download in progress, tied to the session that is running it.

    The session can't take any other command until the transfer is over, so
    it stays out of the pool until ``close``. Use it as an async context
    manager to make sure that always happens.
    """

    def __init__(
        self,
        stream: Any,
        connection: aioftp.Client,
        pool: ConnectionPool,
        path: str,
        limit: Optional[int] = None,
    ) -> None:
        self.stream = stream
        self.connection = connection
        self.pool = pool
        self.path = path
        self.remaining = limit
        self.error: Optional[BaseException] = None
        self.eof = False  # Server sent everything it had
        self.closed = False

    async def read(self, count: int = -1) -> bytes:
        """Read up to ``count`` bytes, or everything left when ``count`` is negative.

        Returns b"" once the transfer (or the limit) is exhausted.
        """
        if self.closed:
            raise ValueError("I/O operation on closed stream")
        if self.remaining == 0:
            return b""
        if self.remaining is not None and (count < 0 or count > self.remaining):
            count = self.remaining

        try:
            data = await self.stream.read(count)
        except Exception as error:
            # Remember it so close() knows the session can't be trusted
            self.error = error
            raise classifier.wrap(error, self.path, "read")

        if not data and count != 0:
            self.eof = True
        if self.remaining is not None:
            self.remaining -= len(data)
        return data

    async def close(self) -> None:
        """Finish the transfer and hand the session back.

        A session that saw a read error, or whose transfer didn't finish
        cleanly, is discarded. The replies servers send when a download is cut
        short on purpose are swallowed, and so is a dropped control connection
        if the caller stopped reading before the end.

        Raises:
            RemoteError: If finishing failed for some other reason
        """
        if self.closed:
            return
        self.closed = True

        failure: Optional[BaseException] = None
        try:
            await self.stream.finish()
        except asyncio.CancelledError:
            self.pool.drop(self.connection)
            raise
        except Exception as error:
            failure = error

        if failure is not None or self.error is not None:
            log.debug(
                "%s: dropping connection after download: %s", self.path, failure or self.error
            )
            await self.pool.discard(self.connection)
        else:
            await self.pool.release(self.connection)

        if failure is None or classifier.benign_close(failure, early=not self.eof):
            return
        raise classifier.wrap(failure, self.path, "close")

    def __aiter__(self) -> "ReadStream":
        return self

    async def __anext__(self) -> bytes:
        data = await self.read(DEFAULT_CHUNK_SIZE)
        if not data:
            raise StopAsyncIteration
        return data

    async def __aenter__(self) -> "ReadStream":
        return self

    async def __aexit__(self, type, value, trace) -> None:
        await self.close()


async def open_read(
    pool: ConnectionPool, path: str, offset: int = 0, limit: Optional[int] = None
) -> ReadStream:
    """Start downloading ``path`` from byte ``offset``.

    Raises:
        ObjectNotFound: If the server says the file is unavailable
        RemoteError: For any other failure starting the transfer
    """
    connection = await pool.acquire()
    try:
        stream = await connection.download_stream(path, offset=offset)
    except asyncio.CancelledError:
        pool.drop(connection)
        raise
    except Exception as error:
        await pool.release(connection, error)
        raise classifier.file(error, path, "open")

    return ReadStream(stream, connection, pool, path, limit)


Source = Union[bytes, bytearray, memoryview, str, Any]


async def iter_chunks(data: Source, size: int = DEFAULT_CHUNK_SIZE) -> AsyncIterator[bytes]:
    """Yield ``data`` as byte blocks.

    Accepts bytes or str, a file object with a (sync or async) ``read``, or an
    async iterable of bytes.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")

    if isinstance(data, (bytes, bytearray, memoryview)):
        view = memoryview(data)
        for start in range(0, len(view), size):
            yield bytes(view[start : start + size])
        return

    if hasattr(data, "__aiter__"):
        async for block in data:
            if block:
                yield block.encode("utf-8") if isinstance(block, str) else bytes(block)
        return

    read = getattr(data, "read", None)
    if read is None:
        raise TypeError(f"Cannot upload from {type(data).__name__}")

    while True:
        block = read(size)
        if inspect.isawaitable(block):
            block = await block
        if not block:
            break
        yield block.encode("utf-8") if isinstance(block, str) else bytes(block)


async def upload(
    pool: ConnectionPool,
    path: str,
    data: Source,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> None:
    """Store everything from ``data`` at ``path``.

    The session is thrown away if anything goes wrong, since a half-finished
    STOR leaves it in an unknown state. Cleaning up the remote file is the
    caller's business.
    """
    connection = await pool.acquire()
    try:
        stream = await connection.upload_stream(path)
        try:
            async for block in iter_chunks(data, chunk_size):
                await stream.write(block)
        except BaseException:
            stream.close()
            raise
        await stream.finish()
    except asyncio.CancelledError:
        pool.drop(connection)
        raise
    except Exception:
        await pool.discard(connection)
        raise

    await pool.release(connection)


async def remove_quietly(
    remove: Callable[[], Awaitable[None]], path: str, pool: ConnectionPool
) -> None:
    """Best effort removal of a partial upload.

    Failures go to the log, a warning and the "cleanup" hook. They are never
    raised, so the upload error stays the one the caller sees.
    """
    try:
        await remove()
    except ObjectNotFound:
        log.debug("%s: nothing to remove after failed upload", path)
    except Exception as failure:
        log.debug("%s: failed to remove after failed upload: %s", path, failure)
        warnings.warn(f"Failed to remove {path} after failed upload: {failure}")
        await pool.fire("cleanup", path, failure)
    else:
        log.debug("%s: removed after failed upload", path)
