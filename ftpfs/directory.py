from . import classifier, listing, paths
from .errors import DirectoryExists, IsFile
from .logger import log
from .pool import ConnectionPool


class DirectoryOps:
    """
    Path level operations built from single FTP commands.

    FTP has no "mkdir -p" and no "rename unless it exists", so these are
    assembled from listings plus MKD, RMD and RNFR/RNTO. Every path taken
    here is already joined with the filesystem root.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        self.pool = pool

    async def mkdir(self, path: str) -> None:
        """Create ``path`` and any missing parents; existing directories are fine.

        Walks up from ``path`` until it finds a directory that exists, then
        creates the missing ones on the way back down. The walk is a loop so
        very deep paths can't exhaust the stack.

        Raises:
            IsFile: If ``path`` or one of its parents is a plain file
        """
        missing = []
        for candidate in paths.ancestors(path):
            info = await listing.lookup(self.pool, candidate)
            if info is None:
                missing.append(candidate)
                continue
            if not info.is_dir:
                raise IsFile(candidate)
            break

        for candidate in reversed(missing):
            log.debug("%s: making directory %s", self.pool.name, candidate)
            try:
                async with self.pool.connection() as connection:
                    await connection.make_directory(candidate, parents=False)
            except Exception as error:
                raise classifier.wrap(error, candidate, "mkdir")

    async def rmdir(self, path: str) -> None:
        """Remove an empty directory.

        Raises:
            DirectoryNotFound: If there's nothing to remove
            RemoteError: If the server refuses, for example because it isn't empty
        """
        try:
            async with self.pool.connection() as connection:
                await connection.remove_directory(path)
        except Exception as error:
            raise classifier.directory(error, path, "rmdir")

    async def ensure_free(self, path: str) -> None:
        """Fail unless nothing exists at ``path``.

        Raises:
            DirectoryExists: If ``path`` is a directory
            IsFile: If ``path`` is a file
        """
        info = await listing.lookup(self.pool, path)
        if info is None:
            return
        if info.is_dir:
            raise DirectoryExists(path)
        raise IsFile(path)

    async def rename(self, source: str, target: str, directory: bool = False) -> None:
        """Move ``source`` to ``target``, creating the target's parents.

        Nothing is touched if ``target`` already exists.
        """
        await self.ensure_free(target)
        await self.mkdir(paths.dirname(target))

        try:
            async with self.pool.connection() as connection:
                await connection.rename(source, target)
        except Exception as error:
            if directory:
                raise classifier.directory(error, source, "rename")
            raise classifier.file(error, source, "rename")
