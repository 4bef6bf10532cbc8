"""Leaf filters testing a single property of a class."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Pattern, Union

from ..core.types import Modifier
from .base import ClassFilter

if TYPE_CHECKING:
    from ..core.hierarchy import ClassHierarchyResolver
    from ..core.types import ClassInfo


class NameMatches(ClassFilter):
    """Accepts classes whose dotted name matches a regular expression.

    The pattern is searched for anywhere in the name; anchor it to match
    the whole name.
    """

    def __init__(self, pattern: Union[str, Pattern[str]]):
        self.pattern = re.compile(pattern) if isinstance(pattern, str) else pattern

    def accept(self, info: ClassInfo, resolver: ClassHierarchyResolver) -> bool:
        return self.pattern.search(info.name) is not None

    def __repr__(self) -> str:
        return f"NameMatches({self.pattern.pattern!r})"


class InterfaceOnly(ClassFilter):
    """Accepts interfaces."""

    def accept(self, info: ClassInfo, resolver: ClassHierarchyResolver) -> bool:
        return info.is_interface

    def __repr__(self) -> str:
        return "InterfaceOnly()"


class AbstractOnly(ClassFilter):
    """Accepts abstract classes.

    Interfaces carry the abstract modifier in class files but are not
    accepted; use ``HasModifiers(Modifier.ABSTRACT)`` to include them.
    """

    def accept(self, info: ClassInfo, resolver: ClassHierarchyResolver) -> bool:
        return info.is_abstract and not info.is_interface

    def __repr__(self) -> str:
        return "AbstractOnly()"


class HasModifiers(ClassFilter):
    """Accepts classes having every bit of ``modifiers`` set."""

    def __init__(self, modifiers: Modifier):
        self.modifiers = modifiers

    def accept(self, info: ClassInfo, resolver: ClassHierarchyResolver) -> bool:
        return (info.modifiers & self.modifiers) == self.modifiers

    def __repr__(self) -> str:
        return f"HasModifiers({self.modifiers!r})"


class SubclassOf(ClassFilter):
    """Accepts classes that extend or implement ``name``, directly or not.

    Only ancestors present in the searched registry are seen; the type
    itself is not accepted.
    """

    def __init__(self, name: str):
        self.name = name

    def accept(self, info: ClassInfo, resolver: ClassHierarchyResolver) -> bool:
        return resolver.is_subclass_of(info, self.name)

    def __repr__(self) -> str:
        return f"SubclassOf({self.name!r})"


class Annotated(ClassFilter):
    """Accepts classes directly annotated with the given annotation type."""

    def __init__(self, name: str):
        self.name = name

    def accept(self, info: ClassInfo, resolver: ClassHierarchyResolver) -> bool:
        return info.has_annotation(self.name)

    def __repr__(self) -> str:
        return f"Annotated({self.name!r})"


class InPackage(ClassFilter):
    """Accepts classes in a package, and by default in its subpackages."""

    def __init__(self, package: str, recursive: bool = True):
        self.package = package.rstrip(".")
        self.recursive = recursive

    def accept(self, info: ClassInfo, resolver: ClassHierarchyResolver) -> bool:
        if info.package == self.package:
            return True
        return self.recursive and info.package.startswith(self.package + ".")

    def __repr__(self) -> str:
        return f"InPackage({self.package!r}, recursive={self.recursive})"
