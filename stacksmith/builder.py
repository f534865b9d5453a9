"""
Construct Builder - discovers construct definitions and initializes them.

The builder walks a directory tree, loads every file matching the
definition naming convention, keeps the ones that export a
ConstructFactory, and initializes all of them concurrently against a
single scope::

    builder = ConstructBuilder("infra")
    constructs = await builder.build(Scope("staging"), {"region": "eu-west-1"})

Definitions may await each other through ``get_construct``; the order in
which they are discovered and initialized does not matter as long as the
dependencies are acyclic.
"""

from __future__ import annotations

import asyncio
import fnmatch
import logging
import os
from collections.abc import Mapping
from typing import Any, Callable, List, NamedTuple, Optional, Sequence, Tuple

from .config import BuilderConfig
from .dir_info import DirInfo
from .factory import ConstructFactory
from .faults import DiscoveryLoadFault
from .graph import DependencyGraph
from .loader import DEFAULT_EXPORT, load_construct
from .scope import scope_key
from .validation import check_instance, check_mapping, check_string

logger = logging.getLogger("stacksmith.builder")

Loader = Callable[[str, str], Any]


class DiscoveredConstruct(NamedTuple):
    """A factory and the directory its definition file lives in."""

    factory: ConstructFactory
    directory: DirInfo


def _list_dir(path: str) -> Tuple[List[str], List[str]]:
    # Symlinks are neither walked nor loaded
    dirs, files = [], []
    with os.scandir(path) as entries:
        for entry in entries:
            if entry.is_dir(follow_symlinks=False):
                dirs.append(entry.name)
            elif entry.is_file(follow_symlinks=False):
                files.append(entry.name)
    return dirs, files


class ConstructBuilder:
    """
    Traverses a file tree, loads construct factories and initializes them.

    Args:
        root_path: Directory containing the construct definitions.
        file_pattern: fnmatch pattern a definition file name must match.
        ignore_patterns: File names matching any of these are never loaded.
        export_name: Module attribute holding the factory.
        check_cycles: Reject cyclic ``depends_on`` declarations before
            initializing anything.
        loader: ``loader(path, export_name)`` returning the exported value;
            defaults to importing the file as a Python module.
    """

    def __init__(
        self,
        root_path: str,
        *,
        file_pattern: str = "*.py",
        ignore_patterns: Sequence[str] = ("_*",),
        export_name: str = DEFAULT_EXPORT,
        check_cycles: bool = True,
        loader: Optional[Loader] = None,
    ) -> None:
        check_string(root_path, "Invalid rootPath (arg #1)", argument="root_path")
        check_string(file_pattern, "Invalid file pattern", argument="file_pattern")
        check_string(export_name, "Invalid export name", argument="export_name")

        self._root_path = root_path
        self._file_pattern = file_pattern
        self._ignore_patterns = tuple(ignore_patterns)
        self._export_name = export_name
        self._check_cycles = check_cycles
        self._loader = loader or load_construct
        self._constructs: Optional[List[DiscoveredConstruct]] = None

    @classmethod
    def from_config(cls, config: BuilderConfig, *, loader: Optional[Loader] = None) -> "ConstructBuilder":
        return cls(
            config.root_path,
            file_pattern=config.file_pattern,
            ignore_patterns=config.ignore_patterns,
            export_name=config.export_name,
            check_cycles=config.check_cycles,
            loader=loader,
        )

    @property
    def root_path(self) -> str:
        return self._root_path

    @property
    def constructs(self) -> Optional[List[DiscoveredConstruct]]:
        """Working set of the last build, or None before the first build."""
        return self._constructs

    def _is_definition(self, name: str) -> bool:
        if not fnmatch.fnmatch(name, self._file_pattern):
            return False
        return not any(fnmatch.fnmatch(name, pattern) for pattern in self._ignore_patterns)

    def _load(self, path: str) -> Any:
        try:
            return self._loader(path, self._export_name)
        except DiscoveryLoadFault:
            raise
        except Exception as exc:
            logger.error(f"Failed to load construct definition {path}: {exc}")
            raise DiscoveryLoadFault(path, f"{type(exc).__name__}: {exc}") from exc

    async def discover(self, directory: Optional[DirInfo] = None) -> List[DiscoveredConstruct]:
        """
        Recursively load construct factories below ``directory``.

        Subdirectories are walked concurrently; the result is returned only
        once every subtree has been processed. Its order is unspecified.
        Symbolic links are skipped. The first load failure cancels the
        subtrees still being walked.

        Args:
            directory: Directory to walk, defaults to the root path.

        Raises:
            InvalidArgumentFault: ``directory`` is not a DirInfo.
            DiscoveryLoadFault: a definition file failed to load.
        """
        if directory is None:
            directory = DirInfo(self._root_path)
        check_instance(directory, DirInfo, "Invalid directory (arg #1)", argument="directory")

        dirs, files = await asyncio.to_thread(_list_dir, directory.abs_path)
        logger.debug(f"Scanning {directory.abs_path}: {len(dirs)} directories, {len(files)} files")

        subtrees = [
            asyncio.ensure_future(self.discover(directory.create_child(name)))
            for name in dirs
        ]

        found: List[DiscoveredConstruct] = []
        try:
            for name in files:
                if not self._is_definition(name):
                    continue
                path = os.path.join(directory.abs_path, name)
                value = self._load(path)
                if isinstance(value, ConstructFactory):
                    logger.debug(f"Discovered construct '{value.id}' in {path}")
                    found.append(DiscoveredConstruct(value, directory))
                else:
                    logger.debug(f"Skipping {path}: no construct factory exported")

            for subtree in await asyncio.gather(*subtrees):
                found.extend(subtree)
        except BaseException:
            # A failed subtree fails the whole walk; stop the others
            for task in subtrees:
                task.cancel()
            raise

        return found

    async def build(self, scope: Any, props: Optional[Mapping[str, Any]] = None) -> List[Any]:
        """
        Discover every construct and initialize it for ``scope``.

        All initializers run concurrently, each with its own shallow copy
        of ``props``. The build fails with the first error raised by any
        initializer; initializers that do not depend on the failed one
        are left to finish on their own.

        Returns:
            The initialized constructs, in discovery order.

        Raises:
            InvalidArgumentFault: malformed scope or props.
            DiscoveryLoadFault: a definition file failed to load.
            CyclicDependencyFault: declared dependencies form a cycle.
        """
        key = scope_key(scope)
        props = dict(check_mapping(props if props is not None else {}, "Invalid props (arg #2)", argument="props"))

        discovered = await self.discover()
        self._constructs = discovered

        if self._check_cycles:
            graph = DependencyGraph(item.factory for item in discovered)
            for construct_id, absent in graph.missing_dependencies().items():
                logger.warning(
                    f"Construct '{construct_id}' depends on undiscovered constructs: {', '.join(absent)}"
                )
            graph.check()

        logger.info(f"Initializing {len(discovered)} constructs for scope [{key}]")
        constructs = await asyncio.gather(
            *(item.factory.init(scope, item.directory, dict(props)) for item in discovered)
        )
        logger.info(f"Initialized {len(constructs)} constructs for scope [{key}]")
        return list(constructs)
