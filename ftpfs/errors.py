from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .core import FtpFileSystem


class FtpFsError(RuntimeError):
    """Base exception for every filesystem operation."""

    def __init__(self, message: str, *, path: Optional[str] = None) -> None:
        detail = message if path is None else f"{message}: {path}"
        super().__init__(detail)
        self.message = message
        self.path = path


class ObjectNotFound(FtpFsError):
    """Raised when a file is missing from its directory listing."""

    def __init__(self, path: str) -> None:
        super().__init__("Object not found", path=path)


class DirectoryNotFound(FtpFsError):
    """Raised when a directory could not be listed or removed because it is missing."""

    def __init__(self, path: str) -> None:
        super().__init__("Directory not found", path=path)


class IsFile(FtpFsError):
    """Raised when a directory was expected but a plain file was found."""

    def __init__(self, path: str) -> None:
        super().__init__("Is a file not a directory", path=path)


class RootIsFile(IsFile):
    """
    Raised by filesystem construction when the configured root is a plain file.

    The filesystem carried in ``fs`` is rooted at the file's parent directory
    and is ready to use; the caller decides whether that is acceptable.
    """

    def __init__(self, path: str, fs: "FtpFileSystem") -> None:
        super().__init__(path)
        self.fs = fs


class DirectoryExists(FtpFsError):
    """Raised when a move destination already exists as a directory."""

    def __init__(self, path: str) -> None:
        super().__init__("Directory already exists", path=path)


class CantMove(FtpFsError):
    """Raised when a file move cannot be done server side."""

    def __init__(self, path: str, reason: str = "Can't move object") -> None:
        super().__init__(reason, path=path)


class CantMoveDirectory(FtpFsError):
    """Raised when a directory move cannot be done server side."""

    def __init__(self, path: str, reason: str = "Can't move directory") -> None:
        super().__init__(reason, path=path)


class HashUnsupported(FtpFsError):
    """FTP offers no content hashes."""

    def __init__(self, path: Optional[str] = None) -> None:
        super().__init__("Hash type not supported", path=path)


class RemoteError(FtpFsError):
    """An unclassified protocol failure, wrapped with the failing operation."""


class TransportError(FtpFsError, ConnectionError):
    """The session to the server could not be established or was lost."""
