from dataclasses import dataclass
from typing import Dict, Optional, Protocol


@dataclass
class Limits:
    """
    Connection limit configuration for one remote filesystem.

    FTP sessions can only run one command at a time, so the pool grows a new
    session for every concurrent operation. These limits put a ceiling on that
    growth and on how many idle sessions are kept around for reuse.

    Attributes:
        connections: Maximum sessions checked out at the same time.
                    Operations wait for a free slot once this is reached.
        keepalive: Maximum idle sessions kept in the pool.
                  Sessions released beyond this are closed instead.
    """

    connections: int = 50  # Maximum sessions in use at once
    keepalive: int = 10  # Maximum idle sessions kept for reuse

    def __post_init__(self) -> None:
        """
        Validate connection limit configuration after initialization.

        Returns:
            None

        Raises:
            ValueError: If any configuration values are invalid or inconsistent.
        """
        if self.connections <= 0:
            raise ValueError("Total connections must be positive")

        if self.keepalive < 0:
            raise ValueError("Keepalive connections cannot be negative")

        if self.keepalive > self.connections:
            raise ValueError("Keepalive connections cannot exceed total connections")


@dataclass
class Timeout:
    """
    Timeout configuration for session management.

    Only session setup is bounded. Once a command is on the wire it runs until
    the server answers or the transport fails; there is no per-command timer.

    Attributes:
        connect: Time allowed to connect and log in to the server.
        pool: Time to wait for a free slot when the pool is at its limit.
        idle: How long a session may sit unused in the pool before it is
              closed rather than reused.
    """

    connect: float = 60.0  # Time allowed for connect plus login
    pool: float = 60.0  # Time to wait for a free connection slot
    idle: float = 60.0  # Idle sessions older than this are evicted

    def __post_init__(self) -> None:
        """
        Validate timeout configuration after initialization.

        Returns:
            None

        Raises:
            ValueError: If timeout values are invalid.
        """
        if self.connect <= 0:
            raise ValueError("Connect timeout must be positive")
        if self.pool <= 0:
            raise ValueError("Pool timeout must be positive")
        if self.idle <= 0:
            raise ValueError("Idle timeout must be positive")


class ConfigStore(Protocol):
    """
    Where remote settings live, one section per named remote.

    Values are plain strings. Secrets may be stored obscured; revealing them
    is the store's job, not ours.
    """

    def get(self, section: str, key: str) -> Optional[str]:
        ...

    def set(self, section: str, key: str, value: str) -> None:
        ...

    def delete(self, section: str, key: str) -> None:
        ...


class MemoryStore:
    """A ConfigStore kept in a dict, handy for tests and embedding."""

    def __init__(self, sections: Optional[Dict[str, Dict[str, str]]] = None) -> None:
        self.sections: Dict[str, Dict[str, str]] = {
            name: dict(values) for name, values in (sections or {}).items()
        }

    def get(self, section: str, key: str) -> Optional[str]:
        return self.sections.get(section, {}).get(key)

    def set(self, section: str, key: str, value: str) -> None:
        self.sections.setdefault(section, {})[key] = value

    def delete(self, section: str, key: str) -> None:
        self.sections.get(section, {}).pop(key, None)
