"""Container walking utilities: directories and zip-format archives."""

import os
import zipfile
import zlib
from pathlib import Path
from typing import Callable, Iterator, Optional, Tuple, Union
import logging

from .errors import ContainerError

logger = logging.getLogger(__name__)

CLASS_SUFFIX = ".class"
JAR_SUFFIX = ".jar"
ZIP_SUFFIX = ".zip"
ARCHIVE_SUFFIXES: Tuple[str, ...] = (JAR_SUFFIX, ZIP_SUFFIX)

# Raised by zipfile while opening or reading one entry: encrypted entries
# (RuntimeError) and unsupported compression methods (NotImplementedError)
# included.
ENTRY_READ_ERRORS = (OSError, zipfile.BadZipFile, zlib.error, RuntimeError, NotImplementedError)


def has_suffix(name: Union[str, Path], suffix: str) -> bool:
    """Case-insensitive suffix check on a file name."""
    return str(name).lower().endswith(suffix.lower())


def is_archive(path: Union[str, Path], suffixes: Tuple[str, ...] = ARCHIVE_SUFFIXES) -> bool:
    """Check whether a path names a jar or zip archive (by suffix)."""
    return any(has_suffix(path, suffix) for suffix in suffixes)


def is_jar(path: Union[str, Path]) -> bool:
    return has_suffix(path, JAR_SUFFIX)


def can_contain_classes(path: Path, suffixes: Tuple[str, ...] = ARCHIVE_SUFFIXES) -> bool:
    """Check whether a path is a directory or an existing archive file.

    Args:
        path: Candidate search root
        suffixes: Archive suffixes to accept

    Returns:
        True if the path may hold class files
    """
    if path.is_dir():
        return True
    return path.is_file() and is_archive(path, suffixes)


def iter_files_with_suffix(
    root: Path,
    suffix: str,
    on_error: Optional[Callable[[ContainerError], None]] = None
) -> Iterator[Path]:
    """Yield every regular file under ``root`` whose name ends with ``suffix``.

    Walks all subdirectories and follows symbolic links. A directory reached
    twice through links is walked once. Order is the order ``os.walk``
    produces with names sorted within each directory.

    Args:
        root: Directory to walk
        suffix: File name suffix (case-insensitive)
        on_error: Called with a ContainerError for each directory that
            cannot be listed; defaults to logging it

    Returns:
        Iterator of matching file paths
    """
    def report(error: OSError) -> None:
        container_error = ContainerError(
            f"Can't list directory \"{error.filename}\": {error.strerror or error}",
            container=str(error.filename) if error.filename else str(root),
        )
        if on_error is not None:
            on_error(container_error)
        else:
            logger.error(container_error.message)

    if not root.is_dir():
        report(NotADirectoryError(20, "Not a directory", str(root)))
        return

    seen = set()
    for dirpath, dirnames, filenames in os.walk(root, onerror=report, followlinks=True):
        real = os.path.realpath(dirpath)
        if real in seen:
            # Symlink cycle or a second link to the same tree
            dirnames[:] = []
            continue
        seen.add(real)
        dirnames.sort()

        current = Path(dirpath)
        for filename in sorted(filenames):
            if has_suffix(filename, suffix):
                candidate = current / filename
                if candidate.is_file():
                    yield candidate


def iter_archive_entries(
    archive: zipfile.ZipFile,
    suffix: str = CLASS_SUFFIX
) -> Iterator[zipfile.ZipInfo]:
    """Yield the non-directory entries of an open archive ending with ``suffix``."""
    for info in archive.infolist():
        if info.is_dir():
            continue
        if has_suffix(info.filename, suffix):
            yield info


def open_archive(path: Path) -> zipfile.ZipFile:
    """Open a zip-format archive for reading.

    Raises:
        ContainerError: if the file is missing or not a valid archive
    """
    try:
        return zipfile.ZipFile(path, "r")
    except (OSError, zipfile.BadZipFile) as e:
        raise ContainerError(f"Can't open archive \"{path}\": {e}", container=str(path)) from e
