"""Jar manifest reading and Class-Path resolution."""

import logging
from pathlib import Path
from typing import Dict, List, Optional

from .errors import ContainerError
from .loader import ENTRY_READ_ERRORS, open_archive

logger = logging.getLogger(__name__)

MANIFEST_NAME = "META-INF/MANIFEST.MF"
CLASS_PATH_KEY = "Class-Path"


def parse_manifest(text: str) -> Dict[str, str]:
    """Parse the main section of a manifest.

    Lines starting with a single space continue the previous value. The main
    section ends at the first blank line.

    Args:
        text: Manifest contents

    Returns:
        Attribute name to value mapping
    """
    attributes: Dict[str, str] = {}
    last_key: Optional[str] = None

    for line in text.splitlines():
        if not line.strip():
            if attributes:
                break
            continue
        if line.startswith(" ") and last_key is not None:
            attributes[last_key] += line[1:]
            continue
        key, sep, value = line.partition(":")
        if not sep:
            logger.debug(f"Ignoring malformed manifest line: {line!r}")
            continue
        last_key = key.strip()
        attributes[last_key] = value.strip()

    return attributes


def read_manifest(archive_path: Path) -> Optional[Dict[str, str]]:
    """Read the main manifest attributes of an archive.

    Args:
        archive_path: Jar file to inspect

    Returns:
        Main-section attributes, or None when the archive has no manifest

    Raises:
        ContainerError: if the archive cannot be opened or read
    """
    with open_archive(archive_path) as archive:
        try:
            raw = archive.read(MANIFEST_NAME)
        except KeyError:
            return None
        except ENTRY_READ_ERRORS as e:
            raise ContainerError(
                f"Can't read manifest of \"{archive_path}\": {e}",
                container=str(archive_path),
            ) from e

    return parse_manifest(raw.decode("utf-8", errors="replace"))


def manifest_class_path(archive_path: Path) -> List[Path]:
    """Resolve the Class-Path elements declared by an archive's manifest.

    Each whitespace-separated element is taken relative to the archive's
    parent directory. Missing manifests or keys yield an empty list.

    Args:
        archive_path: Jar file to inspect

    Returns:
        Resolved class path elements in declaration order
    """
    try:
        manifest = read_manifest(archive_path)
    except ContainerError as e:
        logger.error(f"I/O error processing jar file '{archive_path}': {e.message}")
        return []

    if not manifest:
        return []

    value = manifest.get(CLASS_PATH_KEY)
    if not value:
        return []

    logger.debug(f"Adding Class-Path from jar {archive_path}")
    parent = archive_path.parent
    elements = [parent / element for element in value.split()]
    for element in elements:
        logger.debug(f"From {archive_path}: {element}")
    return elements
