from typing import Optional

import aioftp

from .errors import DirectoryNotFound, FtpFsError, ObjectNotFound, RemoteError

# FTP response codes - what the server is trying to tell you
codes = {
    # 1xx - "Hold on, I'm working on it"
    110: "Restart marker reply",
    125: "Data connection already open; transfer starting",
    150: "File status okay; about to open data connection",
    # 2xx - "Success! Everything went great"
    200: "Command okay",
    202: "Command not implemented, superfluous at this site",
    221: "Service closing control connection",
    226: "Closing data connection",
    230: "User logged in, proceed",
    250: "Requested file action okay, completed",
    257: "PATHNAME created",
    # 3xx - "I need more info from you"
    331: "User name okay, need password",
    350: "Requested file action pending further information",
    # 4xx - "Something's wrong, but we can try again"
    421: "Service not available, closing control connection",
    425: "Can't open data connection",
    426: "Connection closed; transfer aborted",
    450: "Requested file action not taken",
    451: "Requested action aborted: local error in processing",
    452: "Requested action not taken; insufficient storage space",
    # 5xx - "Nope, that's not going to work"
    500: "Syntax error, command unrecognized",
    501: "Syntax error in parameters or arguments",
    502: "Command not implemented",
    503: "Bad sequence of commands",
    530: "Not logged in",
    550: "Requested action not taken; file unavailable",
    552: "Requested file action aborted; exceeded storage allocation",
    553: "Requested action not taken; file name not allowed",
}

FILE_UNAVAILABLE = "550"
TRANSFER_ABORTED = "426"


def describe(code: str) -> str:
    """Return the standard meaning of a reply code, or a generic fallback."""
    try:
        return codes[int(code)]
    except (KeyError, ValueError):
        return f"Unknown reply {code}"


def cause(error: BaseException) -> BaseException:
    """Follow ``__cause__`` links down to the original exception."""
    while error.__cause__ is not None:
        error = error.__cause__
    return error


def status(error: Optional[BaseException]) -> Optional[str]:
    """
    Return the last reply code carried by a protocol status error.

    Wrapped errors are unwrapped first. Anything that is not a well formed
    status reply (a reset socket, a timeout, a parse failure) yields None.
    """
    if error is None:
        return None
    error = cause(error)
    if not isinstance(error, aioftp.StatusCodeError):
        return None
    if not error.received_codes:
        return None
    return str(error.received_codes[-1])


def is_semantic(error: BaseException) -> bool:
    """True when the server answered with a status reply, so the session is intact."""
    return status(error) is not None


def _wrap(error: BaseException, classified: FtpFsError) -> FtpFsError:
    classified.__cause__ = error
    return classified


def wrap(error: BaseException, path: str, context: str) -> FtpFsError:
    """Wrap an unclassified failure with the operation it broke."""
    if isinstance(error, FtpFsError):
        return error
    return _wrap(error, RemoteError(f"{context} failed", path=path))


def file(error: BaseException, path: str, context: str) -> FtpFsError:
    """Classify a failure seen while looking up or acting on a file."""
    if isinstance(error, FtpFsError):
        return error
    if status(error) == FILE_UNAVAILABLE:
        return _wrap(error, ObjectNotFound(path))
    return wrap(error, path, context)


def directory(error: BaseException, path: str, context: str) -> FtpFsError:
    """Classify a failure seen while listing or acting on a directory."""
    if isinstance(error, FtpFsError):
        return error
    if status(error) == FILE_UNAVAILABLE:
        return _wrap(error, DirectoryNotFound(path))
    return wrap(error, path, context)


def benign_close(error: BaseException, early: bool = False) -> bool:
    """
    Check whether an error raised while closing a download can be ignored.

    Servers answer 426 (or sometimes 550) when the client hangs up the data
    connection before the transfer completes. That is what a caller closing a
    partially read stream looks like, so it must not surface as a failure.

    Some servers (aioftp's own among them) hang up the control connection as
    well instead of replying. When ``early`` is set, meaning the caller
    stopped before the end of the data, that lost connection is ignored too.
    """
    if status(error) in (TRANSFER_ABORTED, FILE_UNAVAILABLE):
        return True
    return early and status(error) is None and isinstance(
        cause(error), (ConnectionError, EOFError)
    )
