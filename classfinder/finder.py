"""
Class finder: configure search roots, then query them with filters.

Example::

    finder = ClassFinder()
    finder.add("build/classes")
    finder.add("lib/app.jar")

    services = finder.find_classes(
        SubclassOf("com.example.Service") & ~AbstractOnly()
    )
"""

import os
from collections import deque
from pathlib import Path
from typing import Deque, Dict, Iterable, List, Optional, Tuple, Union
import logging

from .core.errors import EmptyResultError
from .core.hierarchy import ClassHierarchyResolver
from .core.loader import ARCHIVE_SUFFIXES, can_contain_classes, is_archive, is_jar
from .core.manifest import manifest_class_path
from .core.registry import ClassRegistry
from .core.types import ClassInfo, RootKind, SearchRoot
from .filters.base import AcceptAll, ClassFilter
from .loading import ClassReader, ParallelClassLoader

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


class ClassFinder:
    """
    Finds classes in directories, jar files and zip files.

    A new finder searches nowhere; add directories and archives with
    ``add``/``add_roots``. Adding a jar also adds whatever its manifest lists
    under ``Class-Path``. Each ``find_classes`` call rescans every root into
    a fresh registry, so the finder holds no class data between calls.

    The finder is meant to be configured and queried from one thread; the
    scan itself runs on a worker pool.
    """

    def __init__(
        self,
        reader: Optional[ClassReader] = None,
        max_workers: Optional[int] = None,
        error_if_empty: bool = False,
        archive_suffixes: Tuple[str, ...] = ARCHIVE_SUFFIXES
    ):
        self.reader = reader
        self.max_workers = max_workers
        self.error_if_empty = error_if_empty
        self.archive_suffixes = tuple(s.lower() for s in archive_suffixes)
        self._roots: Dict[str, SearchRoot] = {}

    @classmethod
    def from_config(cls, config, reader: Optional[ClassReader] = None) -> "ClassFinder":
        """Build a finder from a ``Config``, adding its configured roots."""
        finder = cls(
            reader=reader,
            max_workers=config.get("parallel.max_workers"),
            error_if_empty=bool(config.get("error_if_empty", False)),
            archive_suffixes=tuple(config.get("suffixes.archives") or ARCHIVE_SUFFIXES),
        )
        base = config.base_dir
        for root in config.get("roots") or []:
            path = Path(root).expanduser()
            if not path.is_absolute() and base is not None:
                path = base / path
            finder.add(path)
        return finder

    # ------------------------------------------------------------------
    # Search roots
    # ------------------------------------------------------------------

    @property
    def roots(self) -> Tuple[SearchRoot, ...]:
        """Configured search roots in the order they were added."""
        return tuple(self._roots.values())

    def add(self, path: PathLike) -> bool:
        """
        Add a directory, jar file or zip file to search.

        Jar manifests are followed: each ``Class-Path`` element is added as
        if passed here, relative to the jar's directory.

        Args:
            path: Directory or archive

        Returns:
            True if the path can hold classes (including when it was
            already present); False if it was rejected
        """
        queue: Deque[Path] = deque([Path(path)])
        accepted = self._add_one(queue.popleft(), queue)

        # Manifest-declared roots are appended while the queue is drained
        while queue:
            self._add_one(queue.popleft(), queue)

        return accepted

    add_root = add

    def add_roots(self, paths: Iterable[PathLike]) -> int:
        """
        Add several directories and archives.

        Returns:
            Number of paths that were accepted
        """
        paths = list(paths)
        logger.info(f"Adding files to look into: {[str(p) for p in paths]}")
        return sum(1 for path in paths if self.add(path))

    def add_class_path(self, class_path: Optional[str] = None) -> int:
        """
        Add every element of a class path string.

        Args:
            class_path: ``os.pathsep``-separated paths; defaults to the
                ``CLASSPATH`` environment variable

        Returns:
            Number of elements that were accepted
        """
        if class_path is None:
            class_path = os.environ.get("CLASSPATH", "")
        return self.add_roots(element for element in class_path.split(os.pathsep) if element)

    def clear(self) -> None:
        """Forget every configured search root."""
        self._roots.clear()

    clear_roots = clear

    def set_error_if_empty(self, error_if_empty: bool) -> None:
        """Make ``find_classes`` raise EmptyResultError when nothing matches."""
        self.error_if_empty = error_if_empty

    def _add_one(self, path: Path, queue: Deque[Path]) -> bool:
        absolute = path.expanduser().absolute()
        logger.info(f"Adding file to look into: {absolute}")

        if not can_contain_classes(absolute, self.archive_suffixes):
            logger.info(f"The given path '{absolute}' cannot contain classes!")
            return False

        key = str(absolute.resolve())
        if key in self._roots:
            return True

        archive = is_archive(absolute, self.archive_suffixes)
        kind = RootKind.ARCHIVE if archive else RootKind.DIRECTORY
        self._roots[key] = SearchRoot(path=Path(key), kind=kind)

        if archive and is_jar(absolute):
            queue.extend(manifest_class_path(absolute))

        return True

    # ------------------------------------------------------------------
    # Searching
    # ------------------------------------------------------------------

    def load_registry(self) -> ClassRegistry:
        """Scan every search root and return the frozen registry."""
        loader = ParallelClassLoader(
            reader=self.reader,
            max_workers=self.max_workers,
            archive_suffixes=self.archive_suffixes,
        )
        registry = loader.load_classes_from(self.roots)
        logger.info(f"Loaded {len(registry)} classes.")
        return registry

    def find_classes(self, filter: Optional[ClassFilter] = None) -> List[ClassInfo]:
        """
        Find classes in every search root, keeping those ``filter`` accepts.

        Args:
            filter: Filter to apply; None accepts every class

        Returns:
            Accepted classes in registry order

        Raises:
            EmptyResultError: if nothing was accepted and ``error_if_empty``
                is set
        """
        registry = self.load_registry()
        classes = filter_classes(registry, filter)

        if not classes and self.error_if_empty:
            logger.info("Found no classes, throwing exception")
            raise EmptyResultError(details={"roots": [str(root) for root in self.roots]})

        logger.info(f"Returning {len(classes)} total classes")
        return classes

    discover = find_classes


def filter_classes(registry: ClassRegistry,
                   filter: Optional[ClassFilter] = None) -> List[ClassInfo]:
    """
    Apply ``filter`` to every class of ``registry`` once.

    The filter receives a hierarchy resolver bound to the same registry.
    """
    if filter is None:
        filter = AcceptAll()
    resolver = ClassHierarchyResolver(registry)

    accepted: List[ClassInfo] = []
    for info in registry.values():
        logger.debug(f"Looking at {info.location} ({info.name})")
        if filter.accept(info, resolver):
            logger.debug(f"Filter accepted {info.name}")
            accepted.append(info)
        else:
            logger.debug(f"Filter rejected {info.name}")
    return accepted
