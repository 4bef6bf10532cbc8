"""Class Finder - locate and query compiled classes without loading them."""

__version__ = "0.1.0"

from .core.errors import ClassFinderError, EmptyResultError, UnreadableClassError
from .core.hierarchy import ClassHierarchyResolver
from .core.types import ClassInfo, Modifier, SearchRoot
from .finder import ClassFinder
from .filters import ClassFilter

__all__ = [
    "ClassFinder",
    "ClassFinderError",
    "ClassFilter",
    "ClassHierarchyResolver",
    "ClassInfo",
    "EmptyResultError",
    "Modifier",
    "SearchRoot",
    "UnreadableClassError",
    "__version__",
]
