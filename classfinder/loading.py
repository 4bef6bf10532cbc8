"""Parallel ingestion of class files from search roots into a registry."""

from pathlib import Path
from typing import BinaryIO, Iterable, List, Optional, Protocol, Tuple
import logging

from .core.classfile import ClassFileReader
from .core.errors import ContainerError, UnreadableClassError
from .core.loader import (
    ARCHIVE_SUFFIXES,
    CLASS_SUFFIX,
    ENTRY_READ_ERRORS,
    iter_archive_entries,
    iter_files_with_suffix,
    open_archive,
)
from .core.registry import ClassRegistry
from .core.types import ClassInfo, SearchRoot
from .performance.parallel import ParallelExecutor

logger = logging.getLogger(__name__)


class ClassReader(Protocol):
    """Anything that can turn one class-file stream into a ``ClassInfo``."""

    def parse(self, stream: BinaryIO) -> ClassInfo:
        ...


class ParallelClassLoader:
    """
    Loads classes from many search roots at once.

    Each top-level root is one task on a fixed-size thread pool; all tasks
    write into one ``ClassRegistry``. When two roots hold a class with the
    same name, whichever write happens last is kept.
    """

    def __init__(
        self,
        reader: Optional[ClassReader] = None,
        max_workers: Optional[int] = None,
        archive_suffixes: Tuple[str, ...] = ARCHIVE_SUFFIXES
    ):
        self.reader = reader or ClassFileReader()
        self.max_workers = max_workers
        self.archive_suffixes = archive_suffixes

    def load_classes_from(self, roots: Iterable[SearchRoot]) -> ClassRegistry:
        """
        Scan every root and return the populated, frozen registry.

        Blocks until every root has been processed or has failed.

        Args:
            roots: Search roots to scan

        Returns:
            Registry of all classes found
        """
        roots = list(roots)
        registry = ClassRegistry()
        if not roots:
            return registry.freeze()

        with ParallelExecutor(max_workers=self.max_workers) as executor:
            results = executor.run_all(
                lambda root: self._load_root(root, registry),
                roots,
                task_id=str,
            )

        failed = [result for result in results if not result.success]
        if failed:
            logger.warning(f"{len(failed)} of {len(results)} search roots failed to load")
        if registry.replaced:
            logger.debug(f"{registry.replaced} class records were replaced by later writes")

        return registry.freeze()

    def _load_root(self, root: SearchRoot, registry: ClassRegistry) -> int:
        logger.info(f"Finding classes in {root.path}")
        if root.is_archive:
            return self._process_archive(root.path, registry)
        return self._process_directory(root.path, registry)

    # ------------------------------------------------------------------
    # Directories
    # ------------------------------------------------------------------

    def _process_directory(self, directory: Path, registry: ClassRegistry) -> int:
        loaded = self._load_class_files_in_dir(directory, registry)
        for suffix in self.archive_suffixes:
            for archive in iter_files_with_suffix(directory, suffix, on_error=_log_container_error):
                loaded += self._process_archive(archive, registry)
        return loaded

    def _load_class_files_in_dir(self, directory: Path, registry: ClassRegistry) -> int:
        loaded = 0
        for path in iter_files_with_suffix(directory, CLASS_SUFFIX, on_error=_log_container_error):
            logger.debug(f"Loading {path}")
            try:
                with open(path, "rb") as stream:
                    info = self._load_class_data(stream, str(path))
            except ENTRY_READ_ERRORS as e:
                logger.error(f"Can't open \"{path}\": {e}")
                continue
            except UnreadableClassError as e:
                logger.error(f"Can't load \"{path}\": {e.message}")
                continue
            registry.put(info.with_location(directory))
            loaded += 1
        return loaded

    # ------------------------------------------------------------------
    # Archives
    # ------------------------------------------------------------------

    def _process_archive(self, archive_path: Path, registry: ClassRegistry) -> int:
        try:
            archive = open_archive(archive_path)
        except ContainerError as e:
            logger.error(e.message)
            return 0

        found: List[ClassInfo] = []
        with archive:
            for entry in iter_archive_entries(archive, CLASS_SUFFIX):
                source = f"{archive_path}({entry.filename})"
                logger.debug(f"Loading {source}")
                try:
                    with archive.open(entry) as stream:
                        info = self._load_class_data(stream, source)
                except ENTRY_READ_ERRORS as e:
                    logger.error(f"Can't open \"{entry.filename}\" in zip file \"{archive_path}\": {e}")
                    continue
                except UnreadableClassError as e:
                    logger.error(f"Can't load \"{entry.filename}\" in zip file \"{archive_path}\": {e.message}")
                    continue
                found.append(info.with_location(archive_path))

        # One archive's records land together once its handle is closed
        registry.put_all(found)
        return len(found)

    def _load_class_data(self, stream: BinaryIO, source: str) -> ClassInfo:
        try:
            return self.reader.parse(stream)
        except UnreadableClassError as e:
            if e.source is None:
                e.source = source
                e.details['source'] = source
            raise
        except ENTRY_READ_ERRORS:
            raise
        except Exception as e:
            raise UnreadableClassError(
                f"Unable to load class from open input stream: {e}",
                source=source,
            ) from e


def _log_container_error(error: ContainerError) -> None:
    logger.error(error.message)


def load_classes(roots: List[SearchRoot], max_workers: Optional[int] = None) -> ClassRegistry:
    """Load every class under ``roots`` with the default reader."""
    return ParallelClassLoader(max_workers=max_workers).load_classes_from(roots)
