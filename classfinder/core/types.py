"""Core data structures describing discovered classes and search roots.

Records are immutable once built: the loader constructs them from decoded
class files and everything downstream (registry, hierarchy resolver, filters)
only reads them.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum, IntFlag
from pathlib import Path
from typing import FrozenSet, Optional, Tuple


# =============================================================================
# Modifiers
# =============================================================================

class Modifier(IntFlag):
    """Container-independent modifier bits for classes and members.

    The low twelve bits line up with ``java.lang.reflect.Modifier``; the three
    kind markers above them are specific to this package.
    """
    NONE = 0
    PUBLIC = 0x0001
    PRIVATE = 0x0002
    PROTECTED = 0x0004
    STATIC = 0x0008
    FINAL = 0x0010
    SYNCHRONIZED = 0x0020
    VOLATILE = 0x0040
    TRANSIENT = 0x0080
    NATIVE = 0x0100
    INTERFACE = 0x0200
    ABSTRACT = 0x0400
    STRICT = 0x0800
    SYNTHETIC = 0x1000
    ANNOTATION = 0x2000
    ENUM = 0x4000


class RootKind(Enum):
    """Kind of container a search root points at."""
    DIRECTORY = "directory"
    ARCHIVE = "archive"


# =============================================================================
# Member and annotation records
# =============================================================================

def internal_to_external(internal_name: str) -> str:
    """Translate a slash-separated internal class name to a dotted one."""
    return internal_name.replace("/", ".")


@dataclass(frozen=True)
class AnnotationInfo:
    """An annotation reference found on a class."""
    name: str
    visible_at_runtime: bool = True

    @classmethod
    def from_descriptor(cls, descriptor: str, visible_at_runtime: bool) -> "AnnotationInfo":
        """Build from a field descriptor such as ``Ljavax/inject/Named;``."""
        name = descriptor
        if name.startswith("L") and name.endswith(";"):
            name = name[1:-1]
        return cls(name=internal_to_external(name), visible_at_runtime=visible_at_runtime)

    def __str__(self) -> str:
        return f"@{self.name}"


@dataclass(frozen=True)
class FieldInfo:
    """A field declared by a class.

    Equality and hashing consider name, descriptor and signature only.
    """
    access: Modifier = field(compare=False)
    name: str
    descriptor: str
    signature: Optional[str] = None
    value: object = field(default=None, compare=False)

    def __str__(self) -> str:
        return self.signature if self.signature is not None else self.name


@dataclass(frozen=True)
class MethodInfo:
    """A method declared by a class."""
    access: Modifier
    name: str
    descriptor: str
    signature: Optional[str] = None
    exceptions: Tuple[str, ...] = ()

    def __str__(self) -> str:
        return self.signature if self.signature is not None else self.name


# =============================================================================
# Class record
# =============================================================================

@dataclass(frozen=True)
class ClassInfo:
    """Structural summary of one compiled class.

    Attributes:
        name: Fully-qualified dotted class name
        superclass_name: Dotted superclass name, or None for the root type
        interfaces: Directly declared interface names, in declaration order
        modifiers: Translated modifier bits
        fields: Declared fields
        methods: Declared methods
        annotations: Class-level annotations
        location: Directory or archive the class was found in
    """
    name: str
    superclass_name: Optional[str] = None
    interfaces: Tuple[str, ...] = ()
    modifiers: Modifier = Modifier.NONE
    fields: FrozenSet[FieldInfo] = frozenset()
    methods: FrozenSet[MethodInfo] = frozenset()
    annotations: FrozenSet[AnnotationInfo] = frozenset()
    location: Optional[Path] = None

    @property
    def is_interface(self) -> bool:
        return bool(self.modifiers & Modifier.INTERFACE)

    @property
    def is_abstract(self) -> bool:
        return bool(self.modifiers & Modifier.ABSTRACT)

    @property
    def is_public(self) -> bool:
        return bool(self.modifiers & Modifier.PUBLIC)

    @property
    def is_final(self) -> bool:
        return bool(self.modifiers & Modifier.FINAL)

    @property
    def is_annotation(self) -> bool:
        return bool(self.modifiers & Modifier.ANNOTATION)

    @property
    def is_enum(self) -> bool:
        return bool(self.modifiers & Modifier.ENUM)

    @property
    def package(self) -> str:
        """Dotted package name; empty for the default package."""
        head, _, _ = self.name.rpartition(".")
        return head

    @property
    def simple_name(self) -> str:
        return self.name.rpartition(".")[2]

    def has_annotation(self, name: str) -> bool:
        """Check whether the class carries an annotation of the given type."""
        return any(annotation.name == name for annotation in self.annotations)

    def with_location(self, location: Path) -> "ClassInfo":
        """Return a copy recorded as found in ``location``."""
        return replace(self, location=location)

    def __str__(self) -> str:
        parts = []
        if self.is_public:
            parts.append("public ")
        if self.is_abstract:
            parts.append("abstract ")
        parts.append("interface " if self.is_interface else "class ")
        parts.append(self.name)

        if self.interfaces:
            parts.append(" implements " + " ".join(self.interfaces))

        if self.superclass_name is not None:
            parts.append(f" extends {self.superclass_name}")

        return "".join(parts)


# =============================================================================
# Search roots
# =============================================================================

@dataclass(frozen=True)
class SearchRoot:
    """A directory or archive the finder is configured to scan."""
    path: Path
    kind: RootKind

    @property
    def is_archive(self) -> bool:
        return self.kind is RootKind.ARCHIVE

    def __str__(self) -> str:
        return str(self.path)
