"""
Logical combinators for class filters.

``And`` and ``Or`` apply their filters in the order they were added and stop
as soon as the outcome is known. Both accept everything when they hold no
filters.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List

from .base import ClassFilter

if TYPE_CHECKING:
    from ..core.hierarchy import ClassHierarchyResolver
    from ..core.types import ClassInfo


class Not(ClassFilter):
    """Inverts the result of the wrapped filter."""

    def __init__(self, filter: ClassFilter):
        self.filter = filter

    def accept(self, info: ClassInfo, resolver: ClassHierarchyResolver) -> bool:
        return not self.filter.accept(info, resolver)

    def __repr__(self) -> str:
        return f"Not({self.filter!r})"


class _Combinator(ClassFilter):
    """Shared storage for And/Or."""

    def __init__(self, *filters: ClassFilter):
        self.filters: List[ClassFilter] = []
        for filter in filters:
            self.add_filter(filter)

    def add_filter(self, filter: ClassFilter):
        self.filters.append(filter)
        return self

    def __repr__(self) -> str:
        inner = ", ".join(repr(f) for f in self.filters)
        return f"{type(self).__name__}({inner})"


class And(_Combinator):
    """Accepts a class only if every contained filter accepts it."""

    def accept(self, info: ClassInfo, resolver: ClassHierarchyResolver) -> bool:
        for filter in self.filters:
            if not filter.accept(info, resolver):
                return False
        return True

    @classmethod
    def all_of(cls, *filters: ClassFilter) -> "And":
        return cls(*filters)


class Or(_Combinator):
    """Accepts a class if any contained filter accepts it."""

    def accept(self, info: ClassInfo, resolver: ClassHierarchyResolver) -> bool:
        if not self.filters:
            return True
        for filter in self.filters:
            if filter.accept(info, resolver):
                return True
        return False

    @classmethod
    def any_of(cls, *filters: ClassFilter) -> "Or":
        return cls(*filters)
