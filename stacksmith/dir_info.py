"""
DirInfo - a directory's position in a construct tree.

Construct definitions are discovered by walking a directory tree. The
directory a definition lives in is handed to its factory as a DirInfo, so
that constructs which care about their location (an API route, for
example) can derive names from it::

    api = DirInfo("/srv/infra/api")
    users = api.create_child("users")
    users.get_route_path("/srv/infra")      # "/api/users"
"""

from __future__ import annotations

import os
from pathlib import PurePath
from typing import Tuple

from .faults import BaseMismatchFault, BaseTooDeepFault
from .validation import check_string


def _segments(abs_path: str) -> Tuple[str, ...]:
    return PurePath(abs_path).parts


class DirInfo:
    """
    Immutable description of a directory in the construct hierarchy.

    Attributes:
        name: Last segment of the path.
        path: Normalized path, relative or absolute as given.
        abs_path: Normalized absolute path.
        parent_path: Normalized absolute path of the parent directory.
    """

    __slots__ = ("_name", "_path", "_abs_path", "_parent_path", "_abs_segments")

    def __init__(self, path: str | os.PathLike) -> None:
        if isinstance(path, os.PathLike):
            path = os.fspath(path)
        check_string(path, "Invalid path (arg #1)", argument="path")

        normalized = os.path.normpath(path)
        self._name = os.path.basename(normalized)
        self._path = normalized
        self._abs_path = os.path.abspath(path)
        self._parent_path = os.path.abspath(os.path.dirname(normalized))
        self._abs_segments = _segments(self._abs_path)

    @property
    def name(self) -> str:
        return self._name

    @property
    def path(self) -> str:
        return self._path

    @property
    def abs_path(self) -> str:
        return self._abs_path

    @property
    def parent_path(self) -> str:
        return self._parent_path

    def create_child(self, name: str) -> DirInfo:
        """Return the descriptor for the child directory ``name``."""
        check_string(name, "Invalid name (arg #1)", argument="name")
        return DirInfo(os.path.join(self._path, name))

    def get_route_path(self, base_path: str) -> str:
        """
        Compute the route of this directory relative to ``base_path``.

        The base is resolved to an absolute path and must be a
        segment-wise prefix of this directory. Segments are compared with
        ``os.path.normcase``, so the comparison ignores case and separator
        style on Windows and is case-sensitive on POSIX. The result always
        uses forward slashes since it names a route, not a file.

        Raises:
            InvalidArgumentFault: ``base_path`` is empty.
            BaseTooDeepFault: the base has more segments than this path.
            BaseMismatchFault: the base diverges from this path.
        """
        check_string(base_path, "Invalid basePath (arg #1)", argument="base_path")

        base_segments = _segments(os.path.abspath(base_path))
        if len(base_segments) > len(self._abs_segments):
            raise BaseTooDeepFault(base_path, self._abs_path)

        for index, token in enumerate(base_segments):
            if os.path.normcase(token) != os.path.normcase(self._abs_segments[index]):
                raise BaseMismatchFault(base_path, self._abs_path, index)

        return "/" + "/".join(self._abs_segments[len(base_segments):])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DirInfo):
            return NotImplemented
        return self._path == other._path and self._abs_path == other._abs_path

    def __hash__(self) -> int:
        return hash((self._path, self._abs_path))

    def __repr__(self) -> str:
        return f"DirInfo(path={self._path!r})"
