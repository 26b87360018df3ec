__version__ = "1.0.0"
__license__ = "MIT"
__description__ = "Async FTP remotes as a filesystem, with a pooled, self-healing set of sessions."

# The factory you'll usually start from
from .ftp import Ftp, new_fs

# The filesystem itself and the things it hands back
from .core import (
    FtpFileSystem,  # A directory tree on an FTP server
    FtpObject,  # One file on it
)
from .listing import Directory, FileInfo
from .stream import Range, ReadStream

# Fine-tune how sessions are managed
from .config import (
    Timeout,  # Connect, pool and idle timeouts
    Limits,  # Ceilings on busy and idle sessions
    ConfigStore,  # Where named remotes are configured
    MemoryStore,
)
from .pool import ConnectionPool

# Log in with a username and password
from .auth import Basic

# What can go wrong
from .errors import (
    FtpFsError,
    ObjectNotFound,
    DirectoryNotFound,
    IsFile,
    RootIsFile,
    DirectoryExists,
    CantMove,
    CantMoveDirectory,
    HashUnsupported,
    RemoteError,
    TransportError,
)

# FTP response codes - what the server is trying to tell you
from .classifier import codes

# Everything you can import and use
__all__ = [
    # Entry points
    "Ftp",
    "new_fs",
    # Core functionality
    "FtpFileSystem",
    "FtpObject",
    "Directory",
    "FileInfo",
    "Range",
    "ReadStream",
    "ConnectionPool",
    # Configuration options
    "Timeout",
    "Limits",
    "ConfigStore",
    "MemoryStore",
    # Authentication
    "Basic",
    # Errors
    "FtpFsError",
    "ObjectNotFound",
    "DirectoryNotFound",
    "IsFile",
    "RootIsFile",
    "DirectoryExists",
    "CantMove",
    "CantMoveDirectory",
    "HashUnsupported",
    "RemoteError",
    "TransportError",
    "codes",
    # Package info
    "__version__",
    "__license__",
    "__description__",
]
