"""
Directory listings, the only source of file metadata.

FTP has no portable stat command, so sizes, times and types all come from one
listing of the parent directory. ``aioftp`` asks for MLSD and falls back to
LIST on servers that don't speak it; both arrive here as ``(path, facts)``
pairs.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Any, Dict, Iterable, List, Optional, Tuple

from . import classifier, paths
from .pool import ConnectionPool

Facts = Dict[str, Any]

# MLSD reports the listed directory and its parent with these types
PSEUDO_TYPES = ("cdir", "pdir")
PSEUDO_NAMES = (".", "..")


@dataclass(frozen=True)
class FileInfo:
    """Metadata for one entry, as seen in the most recent listing."""

    name: str
    size: int
    mod_time: Optional[datetime]
    is_dir: bool = False


@dataclass(frozen=True)
class Directory:
    """A subdirectory found while listing."""

    remote: str
    mod_time: Optional[datetime] = None

    def __str__(self) -> str:
        return self.remote


def parse_time(value: Optional[str]) -> Optional[datetime]:
    """Parse an MLSD ``modify`` fact (``YYYYMMDDHHMMSS[.fff]``, always UTC)."""
    if not value:
        return None
    try:
        stamp = datetime.strptime(value.split(".", 1)[0][:14], "%Y%m%d%H%M%S")
    except ValueError:
        return None
    return stamp.replace(tzinfo=timezone.utc)


def parse_size(value: Any) -> int:
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0


def convert(name: str, facts: Facts) -> FileInfo:
    """Turn one raw listing entry into a FileInfo."""
    is_dir = facts.get("type") == "dir"
    return FileInfo(
        name=name,
        size=0 if is_dir else parse_size(facts.get("size")),
        mod_time=parse_time(facts.get("modify")),
        is_dir=is_dir,
    )


def entries(raw: Iterable[Tuple[Any, Facts]]) -> List[FileInfo]:
    """Convert a listing reply, skipping the self and parent pseudo entries."""
    infos = []
    for path, facts in raw:
        name = PurePosixPath(str(path)).name
        if facts.get("type") in PSEUDO_TYPES or name in PSEUDO_NAMES or not name:
            continue
        infos.append(convert(name, facts))
    return infos


async def fetch(pool: ConnectionPool, path: str) -> List[FileInfo]:
    """List ``path`` on a pooled connection. Errors are left unclassified."""
    async with pool.connection() as connection:
        raw = await connection.list(path)
    return entries(raw)


async def read_directory(pool: ConnectionPool, path: str) -> List[FileInfo]:
    """List a directory.

    Raises:
        DirectoryNotFound: If the server says the directory is unavailable
        RemoteError: For any other failure
    """
    try:
        return await fetch(pool, path)
    except Exception as error:
        raise classifier.directory(error, path, "list")


async def lookup(pool: ConnectionPool, path: str) -> Optional[FileInfo]:
    """Find ``path`` in its parent's listing.

    Returns:
        The entry's FileInfo, or None if neither it nor its parent exists
    """
    parent, base = paths.split(path)
    try:
        infos = await fetch(pool, parent)
    except Exception as error:
        if classifier.status(error) == classifier.FILE_UNAVAILABLE:
            return None
        raise classifier.file(error, path, "lookup")

    for info in infos:
        if info.name == base:
            return info
    return None
