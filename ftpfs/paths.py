"""
Path helpers shared by every remote operation.

Remote paths are always POSIX style strings. They follow the usual
dirname/basename conventions with one adjustment: the parent of a bare name
is ``"."`` rather than an empty string, so it can be handed straight to a
listing command.
"""

import posixpath
from typing import List

TOP = ("", ".", "/")


def join(root: str, relative: str) -> str:
    """Join the configured root with a path relative to it, then clean it."""
    parts = [part for part in (root, relative) if part]
    if not parts:
        return ""
    return posixpath.normpath(posixpath.join(*parts))


def dirname(path: str) -> str:
    """Return the parent of ``path``; ``"."`` for bare names."""
    parent = posixpath.dirname(path.rstrip("/") or path)
    return parent or "."


def basename(path: str) -> str:
    """Return the final component of ``path``."""
    stripped = path.rstrip("/")
    if not stripped:
        return path
    return posixpath.basename(stripped)


def split(path: str):
    """Return ``(dirname, basename)`` of ``path``."""
    return dirname(path), basename(path)


def is_top(path: str) -> bool:
    """True when ``path`` names the top of the remote tree."""
    return path in TOP


def ancestors(path: str) -> List[str]:
    """
    List ``path`` and each of its parents, deepest first, stopping at the top.

    ``ancestors("a/b/c")`` is ``["a/b/c", "a/b", "a"]``.
    """
    chain = []
    while not is_top(path):
        chain.append(path)
        path = dirname(path)
    return chain
