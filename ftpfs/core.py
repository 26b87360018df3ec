import dataclasses
import posixpath
from datetime import datetime
from functools import partial
from typing import Dict, FrozenSet, List, Optional, Union

from . import classifier, listing, paths, stream
from .auth import Basic
from .config import Limits, Timeout
from .directory import DirectoryOps
from .errors import (
    CantMove,
    CantMoveDirectory,
    HashUnsupported,
    ObjectNotFound,
    RootIsFile,
)
from .listing import Directory, FileInfo
from .logger import log
from .pool import ConnectionPool, HookType, open_session
from .stream import Range, ReadStream, Source

DEFAULT_PORT = 21


class FtpFileSystem:
    """
    A directory tree on an FTP server, presented as a filesystem.

    Paths given to its methods are relative to ``root``. Every method borrows
    a session from the pool for as long as it needs one and gives it back
    before returning, except ``FtpObject.open``, whose stream keeps its session
    until it is closed.

    Build one with ``await FtpFileSystem.create(...)`` so the server is
    contacted up front and a root naming a file is noticed.
    """

    # FTP can't set modification times and reports them at best to the second
    precision = None
    can_have_empty_directories = True

    def __init__(
        self,
        name: str,
        root: str,
        host: str,
        port: int = DEFAULT_PORT,
        auth: Optional[Basic] = None,
        limits: Optional[Limits] = None,
        timeout: Optional[Timeout] = None,
        hooks: Optional[Dict[str, HookType]] = None,
        encoding: str = "utf-8",
    ) -> None:
        """Set up the filesystem without touching the network.

        Args:
            name: Name of this remote, used in messages
            root: Directory on the server everything is relative to
            host: FTP server hostname
            port: FTP control port
            auth: Login credentials, defaults to the current user
            limits: Pool size limits
            timeout: Connect, pool and idle timeouts
            hooks: Custom callbacks for connect, discard, error and cleanup events
            encoding: Text encoding for the FTP protocol
        """
        self.name = name
        self.root = root
        self.host = host
        self.port = port
        self.auth: Basic = auth or Basic()
        self.timeout: Timeout = timeout or Timeout()

        self.pool = ConnectionPool(
            partial(open_session, host, port, self.auth, self.timeout, encoding),
            limits=limits,
            timeout=self.timeout,
            hooks=hooks,
            name=self.address,
        )
        self.dirs = DirectoryOps(self.pool)

    @classmethod
    async def create(cls, name: str, root: str, host: str, **kwargs) -> "FtpFileSystem":
        """Make a filesystem and check it can reach the server.

        Raises:
            TransportError: If no session can be established
            RootIsFile: If ``root`` is an existing file. The error's ``fs`` is
                a working filesystem rooted at the file's directory.
        """
        fs = cls(name, root, host, **kwargs)

        # Make a connection and pool it to return errors early
        connection = await fs.pool.acquire()
        await fs.pool.release(connection)

        if not root:
            return fs

        # Check to see if the root is actually an existing file
        remote = paths.basename(root)
        parent = paths.dirname(root)
        fs.root = "" if parent == "." else parent
        try:
            await fs.new_object(remote)
        except ObjectNotFound:
            fs.root = root
            return fs
        except BaseException:
            await fs.close()
            raise

        raise RootIsFile(root, fs)

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def url(self) -> str:
        return "ftp://" + posixpath.join(self.address + "/", self.root)

    def __str__(self) -> str:
        return self.url

    def __repr__(self) -> str:
        return f"<FtpFileSystem {self.name} {self.url}>"

    def full(self, remote: str) -> str:
        """Return the server path for a path relative to the root."""
        return paths.join(self.root, remote)

    def same_remote(self, other: "FtpFileSystem") -> bool:
        """True if ``other`` talks to the same server as the same user."""
        return (
            isinstance(other, FtpFileSystem)
            and other.host == self.host
            and other.port == self.port
            and other.auth.user == self.auth.user
            and other.auth.password == self.auth.password
        )

    def hashes(self) -> FrozenSet[str]:
        """Hashes are not supported."""
        return frozenset()

    async def stat(self, path: str) -> FileInfo:
        """Return the listing entry for a server path (already joined with the root).

        Raises:
            ObjectNotFound: If the path doesn't exist
        """
        info = await listing.lookup(self.pool, path)
        if info is None:
            raise ObjectNotFound(path)
        return info

    async def new_object(self, remote: str) -> "FtpObject":
        """Find the file at ``remote``.

        Raises:
            ObjectNotFound: If there is no file there (directories don't count)
        """
        info = await listing.lookup(self.pool, self.full(remote))
        if info is None or info.is_dir:
            raise ObjectNotFound(remote)
        return FtpObject(self, remote, dataclasses.replace(info, name=remote))

    async def list(self, dir: str = "") -> List[Union["FtpObject", Directory]]:
        """List the files and directories directly inside ``dir``.

        Raises:
            DirectoryNotFound: If ``dir`` doesn't exist
        """
        infos = await listing.read_directory(self.pool, self.full(dir))

        entries: List[Union[FtpObject, Directory]] = []
        for info in infos:
            remote = paths.join(dir, info.name)
            if info.is_dir:
                entries.append(Directory(remote, info.mod_time))
            else:
                entries.append(FtpObject(self, remote, dataclasses.replace(info, name=remote)))
        return entries

    async def put(self, data: Source, remote: str) -> "FtpObject":
        """Upload ``data`` to ``remote``, creating parent directories as needed."""
        await self.dirs.mkdir(paths.dirname(self.full(remote)))
        obj = FtpObject(self, remote)
        await obj.update(data)
        return obj

    async def put_stream(self, data: Source, remote: str) -> "FtpObject":
        """Upload data of unknown length. FTP doesn't care, so this is ``put``."""
        return await self.put(data, remote)

    async def mkdir(self, dir: str = "") -> None:
        """Create ``dir`` and its parents if they don't exist.

        Raises:
            IsFile: If part of the path is a file
        """
        await self.dirs.mkdir(self.full(dir))

    async def rmdir(self, dir: str = "") -> None:
        """Remove the empty directory ``dir``.

        Raises:
            DirectoryNotFound: If it doesn't exist
            RemoteError: If the server refuses, e.g. because it isn't empty
        """
        await self.dirs.rmdir(self.full(dir))

    async def move(self, src: "FtpObject", remote: str) -> "FtpObject":
        """Move a file server side.

        Raises:
            CantMove: If ``src`` lives on a different server
            DirectoryExists: If ``remote`` is a directory
            IsFile: If ``remote`` is already a file
        """
        if not isinstance(src, FtpObject) or not self.same_remote(src.fs):
            log.debug("%s: can't move - not same remote type", src)
            raise CantMove(remote)

        await self.dirs.rename(src.fs.full(src.remote), self.full(remote))
        return await self.new_object(remote)

    async def dir_move(self, src: "FtpFileSystem", src_remote: str, dst_remote: str) -> None:
        """Move the directory ``src_remote`` of ``src`` to ``dst_remote`` here.

        Raises:
            CantMoveDirectory: If ``src`` is on another server or logged in as someone else
            DirectoryExists: If the destination is a directory
            IsFile: If the destination is a file
        """
        if not self.same_remote(src):
            log.debug("%s: can't move directory - not same remote type", src)
            raise CantMoveDirectory(dst_remote)

        await self.dirs.rename(
            src.full(src_remote), self.full(dst_remote), directory=True
        )

    async def close(self) -> None:
        """Log out of every idle session."""
        await self.pool.close()

    async def __aenter__(self) -> "FtpFileSystem":
        return self

    async def __aexit__(self, type, value, trace) -> None:
        await self.close()


class FtpObject:
    """
    A file on the server.

    ``info`` is whatever the last listing said. It is refreshed after
    ``update`` but otherwise may be out of date as soon as anyone changes the
    file.
    """

    storable = True

    def __init__(
        self, fs: FtpFileSystem, remote: str, info: Optional[FileInfo] = None
    ) -> None:
        self.fs = fs
        self.remote = remote
        self.info = info

    def __str__(self) -> str:
        return self.remote

    def __repr__(self) -> str:
        return f"<FtpObject {self.remote}>"

    @property
    def path(self) -> str:
        return self.fs.full(self.remote)

    @property
    def size(self) -> int:
        """Size in bytes, or -1 if it isn't known yet."""
        return self.info.size if self.info else -1

    @property
    def mod_time(self) -> Optional[datetime]:
        return self.info.mod_time if self.info else None

    async def set_mod_time(self, mod_time: datetime) -> None:
        """FTP can't set modification times, so this does nothing."""

    async def hash(self, kind: str) -> str:
        raise HashUnsupported(self.remote)

    async def open(
        self,
        offset: int = 0,
        limit: Optional[int] = None,
        byte_range: Optional[Range] = None,
    ) -> ReadStream:
        """Open the file for reading.

        Args:
            offset: Byte to start from
            limit: Maximum number of bytes to return, None for all
            byte_range: A Range to read instead of offset and limit

        Returns:
            ReadStream: Holds a session until closed, so use ``async with``
        """
        if byte_range is not None:
            offset, limit = byte_range.decode(self.size)
        return await stream.open_read(self.fs.pool, self.path, offset, limit)

    async def update(self, data: Source) -> None:
        """Replace the file's contents with ``data``.

        If the upload fails the partial file is removed if possible, and the
        upload's own error is raised.
        """
        path = self.path
        try:
            await stream.upload(self.fs.pool, path, data)
        except Exception as error:
            await stream.remove_quietly(self.remove, path, self.fs.pool)
            raise classifier.wrap(error, path, "update")

        info = await self.fs.stat(path)
        self.info = dataclasses.replace(info, name=self.remote)

    async def remove(self) -> None:
        """Delete the file, or the directory if that's what is there now.

        Raises:
            ObjectNotFound: If nothing is there
        """
        path = self.path
        info = await self.fs.stat(path)
        if info.is_dir:
            await self.fs.dirs.rmdir(path)
            return

        try:
            async with self.fs.pool.connection() as connection:
                await connection.remove_file(path)
        except Exception as error:
            raise classifier.file(error, path, "remove")
