"""Base class for class filters."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.hierarchy import ClassHierarchyResolver
    from ..core.types import ClassInfo


class ClassFilter(ABC):
    """A predicate over discovered classes.

    Filters compose with ``&`` (And), ``|`` (Or) and ``~`` (Not).
    """

    @abstractmethod
    def accept(self, info: ClassInfo, resolver: ClassHierarchyResolver) -> bool:
        """Return True if ``info`` should be kept.

        Args:
            info: Class being tested
            resolver: Hierarchy resolver bound to the registry being searched
        """

    def __and__(self, other: ClassFilter) -> ClassFilter:
        from .logic import And
        return And.all_of(self, other)

    def __or__(self, other: ClassFilter) -> ClassFilter:
        from .logic import Or
        return Or.any_of(self, other)

    def __invert__(self) -> ClassFilter:
        from .logic import Not
        return Not(self)


class AcceptAll(ClassFilter):
    """Accepts every class; used when no filter is given."""

    def accept(self, info: ClassInfo, resolver: ClassHierarchyResolver) -> bool:
        return True

    def __repr__(self) -> str:
        return "AcceptAll()"
