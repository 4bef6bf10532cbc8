"""
Class-file reader.

Decodes the structural parts of a JVM class file (names, hierarchy links,
access flags, member signatures and class annotations) into a ``ClassInfo``.
Method bodies and all other attributes are skipped without interpretation.
"""

import io
import struct
from pathlib import Path
from typing import BinaryIO, List, Optional, Tuple, Union

from .errors import UnreadableClassError
from .types import (
    AnnotationInfo,
    ClassInfo,
    FieldInfo,
    MethodInfo,
    Modifier,
    internal_to_external,
)


MAGIC = 0xCAFEBABE
ROOT_CLASS = "java/lang/Object"

# Constant pool tags
CONSTANT_UTF8 = 1
CONSTANT_INTEGER = 3
CONSTANT_FLOAT = 4
CONSTANT_LONG = 5
CONSTANT_DOUBLE = 6
CONSTANT_CLASS = 7
CONSTANT_STRING = 8
CONSTANT_FIELDREF = 9
CONSTANT_METHODREF = 10
CONSTANT_INTERFACE_METHODREF = 11
CONSTANT_NAME_AND_TYPE = 12
CONSTANT_METHOD_HANDLE = 15
CONSTANT_METHOD_TYPE = 16
CONSTANT_DYNAMIC = 17
CONSTANT_INVOKE_DYNAMIC = 18
CONSTANT_MODULE = 19
CONSTANT_PACKAGE = 20

# Payload size in bytes for every fixed-width tag
_CONSTANT_SIZES = {
    CONSTANT_INTEGER: 4,
    CONSTANT_FLOAT: 4,
    CONSTANT_LONG: 8,
    CONSTANT_DOUBLE: 8,
    CONSTANT_CLASS: 2,
    CONSTANT_STRING: 2,
    CONSTANT_FIELDREF: 4,
    CONSTANT_METHODREF: 4,
    CONSTANT_INTERFACE_METHODREF: 4,
    CONSTANT_NAME_AND_TYPE: 4,
    CONSTANT_METHOD_HANDLE: 3,
    CONSTANT_METHOD_TYPE: 2,
    CONSTANT_DYNAMIC: 4,
    CONSTANT_INVOKE_DYNAMIC: 4,
    CONSTANT_MODULE: 2,
    CONSTANT_PACKAGE: 2,
}

# JVM access flag -> Modifier, per context. ACC_SUPER (0x20) on classes and
# ACC_BRIDGE/ACC_VARARGS (0x40/0x80) on methods share bits with unrelated
# modifiers and are left out of their tables.
_COMMON_FLAGS: Tuple[Tuple[int, Modifier], ...] = (
    (0x0001, Modifier.PUBLIC),
    (0x0002, Modifier.PRIVATE),
    (0x0004, Modifier.PROTECTED),
    (0x0008, Modifier.STATIC),
    (0x0010, Modifier.FINAL),
    (0x1000, Modifier.SYNTHETIC),
)

CLASS_FLAGS = _COMMON_FLAGS + (
    (0x0200, Modifier.INTERFACE),
    (0x0400, Modifier.ABSTRACT),
    (0x2000, Modifier.ANNOTATION),
    (0x4000, Modifier.ENUM),
)

FIELD_FLAGS = _COMMON_FLAGS + (
    (0x0040, Modifier.VOLATILE),
    (0x0080, Modifier.TRANSIENT),
    (0x4000, Modifier.ENUM),
)

METHOD_FLAGS = _COMMON_FLAGS + (
    (0x0020, Modifier.SYNCHRONIZED),
    (0x0100, Modifier.NATIVE),
    (0x0400, Modifier.ABSTRACT),
    (0x0800, Modifier.STRICT),
)


def translate_access_flags(access_flags: int,
                           table: Tuple[Tuple[int, Modifier], ...] = CLASS_FLAGS) -> Modifier:
    """Convert a JVM access flag word into ``Modifier`` bits.

    Args:
        access_flags: Raw flag word from the class file
        table: Flag table for the context (class, field or method)

    Returns:
        The translated modifiers
    """
    modifiers = Modifier.NONE
    for flag, modifier in table:
        if access_flags & flag:
            modifiers |= modifier
    return modifiers


def decode_modified_utf8(data: bytes) -> str:
    """Decode the modified UTF-8 used by class-file string constants."""
    data = data.replace(b"\xc0\x80", b"\x00")
    text = data.decode("utf-8", errors="surrogatepass")
    # Supplementary characters arrive as separately encoded surrogate halves
    return text.encode("utf-16", errors="surrogatepass").decode("utf-16")


class _Cursor:
    """Bounds-checked big-endian reader over a byte buffer."""

    def __init__(self, data: bytes, source: Optional[str]):
        self.data = data
        self.pos = 0
        self.source = source

    def _take(self, size: int) -> bytes:
        end = self.pos + size
        if end > len(self.data):
            raise UnreadableClassError(
                f"Truncated class file: wanted {size} bytes at offset {self.pos}",
                source=self.source,
                offset=self.pos,
            )
        chunk = self.data[self.pos:end]
        self.pos = end
        return chunk

    def u1(self) -> int:
        return self._take(1)[0]

    def u2(self) -> int:
        return struct.unpack(">H", self._take(2))[0]

    def u4(self) -> int:
        return struct.unpack(">I", self._take(4))[0]

    def raw(self, size: int) -> bytes:
        return self._take(size)

    def skip(self, size: int) -> None:
        self._take(size)


class ConstantPool:
    """Decoded constant pool; only the entry kinds the reader needs are resolved."""

    def __init__(self, entries: List[Optional[Tuple[int, object]]], source: Optional[str]):
        self._entries = entries
        self._source = source

    @classmethod
    def read(cls, cursor: _Cursor) -> "ConstantPool":
        count = cursor.u2()
        entries: List[Optional[Tuple[int, object]]] = [None] * max(count, 1)
        index = 1
        while index < count:
            tag = cursor.u1()
            if tag == CONSTANT_UTF8:
                length = cursor.u2()
                raw = cursor.raw(length)
                try:
                    entries[index] = (tag, decode_modified_utf8(raw))
                except UnicodeDecodeError as e:
                    raise UnreadableClassError(
                        f"Invalid UTF-8 constant #{index}: {e}",
                        source=cursor.source,
                        offset=cursor.pos,
                    ) from e
            elif tag in _CONSTANT_SIZES:
                entries[index] = (tag, cursor.raw(_CONSTANT_SIZES[tag]))
            else:
                raise UnreadableClassError(
                    f"Unknown constant pool tag {tag} at #{index}",
                    source=cursor.source,
                    offset=cursor.pos,
                )
            # Long and double constants take two slots
            index += 2 if tag in (CONSTANT_LONG, CONSTANT_DOUBLE) else 1
        return cls(entries, cursor.source)

    def _entry(self, index: int, expected: int) -> object:
        if 0 < index < len(self._entries):
            entry = self._entries[index]
            if entry is not None and entry[0] == expected:
                return entry[1]
        raise UnreadableClassError(
            f"Constant #{index} is not of type {expected}",
            source=self._source,
        )

    def utf8(self, index: int) -> str:
        return self._entry(index, CONSTANT_UTF8)  # type: ignore[return-value]

    def class_name(self, index: int) -> str:
        """Internal (slash-separated) name of a CONSTANT_Class entry."""
        name_index = struct.unpack(">H", self._entry(index, CONSTANT_CLASS))[0]  # type: ignore[arg-type]
        return self.utf8(name_index)

    def value(self, index: int) -> object:
        """Python value of a ConstantValue target."""
        if not 0 < index < len(self._entries) or self._entries[index] is None:
            raise UnreadableClassError(f"Bad constant index #{index}", source=self._source)
        tag, payload = self._entries[index]  # type: ignore[misc]
        if tag == CONSTANT_INTEGER:
            return struct.unpack(">i", payload)[0]
        if tag == CONSTANT_FLOAT:
            return struct.unpack(">f", payload)[0]
        if tag == CONSTANT_LONG:
            return struct.unpack(">q", payload)[0]
        if tag == CONSTANT_DOUBLE:
            return struct.unpack(">d", payload)[0]
        if tag == CONSTANT_STRING:
            return self.utf8(struct.unpack(">H", payload)[0])
        raise UnreadableClassError(
            f"Constant #{index} (tag {tag}) cannot be a field value",
            source=self._source,
        )


def _check_attribute_length(cursor: _Cursor, attr_name: str, start: int, length: int) -> None:
    """Fail when a decoded attribute did not span exactly its declared length."""
    consumed = cursor.pos - start
    if consumed != length:
        raise UnreadableClassError(
            f"{attr_name} attribute declares {length} bytes but holds {consumed}",
            source=cursor.source,
            offset=start,
        )


class ClassFileReader:
    """
    Default class-file reader.

    Any object exposing ``parse(stream) -> ClassInfo`` can stand in for it;
    the loader only relies on that method and on ``UnreadableClassError``.
    """

    def parse(self, stream: Union[BinaryIO, bytes], source: Optional[str] = None) -> ClassInfo:
        """
        Decode one class file.

        Args:
            stream: Binary stream (or bytes) holding the class file
            source: Where the data came from, used in error messages

        Returns:
            ClassInfo without a location; the loader fills that in

        Raises:
            UnreadableClassError: if the data is not a well-formed class file
        """
        if isinstance(stream, (bytes, bytearray)):
            data = bytes(stream)
        else:
            try:
                data = stream.read()
            except OSError as e:
                raise UnreadableClassError(f"Unable to read class data: {e}", source=source) from e

        cursor = _Cursor(data, source)
        magic = cursor.u4()
        if magic != MAGIC:
            raise UnreadableClassError(f"Bad magic number 0x{magic:08X}", source=source, offset=0)

        cursor.skip(4)  # minor, major version
        pool = ConstantPool.read(cursor)

        access_flags = cursor.u2()
        this_name = pool.class_name(cursor.u2())

        super_index = cursor.u2()
        super_name = pool.class_name(super_index) if super_index else None
        if super_name == ROOT_CLASS:
            super_name = None

        interfaces = tuple(
            internal_to_external(pool.class_name(cursor.u2()))
            for _ in range(cursor.u2())
        )

        fields = frozenset(self._read_field(cursor, pool) for _ in range(cursor.u2()))
        methods = frozenset(self._read_method(cursor, pool) for _ in range(cursor.u2()))
        annotations = frozenset(self._read_class_attributes(cursor, pool))

        return ClassInfo(
            name=internal_to_external(this_name),
            superclass_name=internal_to_external(super_name) if super_name else None,
            interfaces=interfaces,
            modifiers=translate_access_flags(access_flags, CLASS_FLAGS),
            fields=fields,
            methods=methods,
            annotations=annotations,
        )

    def parse_file(self, path: Union[str, Path]) -> ClassInfo:
        """Decode a class file on disk."""
        with open(path, "rb") as handle:
            return self.parse(handle, source=str(path))

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------

    def _read_field(self, cursor: _Cursor, pool: ConstantPool) -> FieldInfo:
        access = cursor.u2()
        name = pool.utf8(cursor.u2())
        descriptor = pool.utf8(cursor.u2())
        signature = None
        value = None

        for _ in range(cursor.u2()):
            attr_name = pool.utf8(cursor.u2())
            length = cursor.u4()
            start = cursor.pos
            if attr_name == "Signature":
                signature = pool.utf8(cursor.u2())
            elif attr_name == "ConstantValue":
                value = pool.value(cursor.u2())
            else:
                cursor.skip(length)
            _check_attribute_length(cursor, attr_name, start, length)

        return FieldInfo(
            access=translate_access_flags(access, FIELD_FLAGS),
            name=name,
            descriptor=descriptor,
            signature=signature,
            value=value,
        )

    def _read_method(self, cursor: _Cursor, pool: ConstantPool) -> MethodInfo:
        access = cursor.u2()
        name = pool.utf8(cursor.u2())
        descriptor = pool.utf8(cursor.u2())
        signature = None
        exceptions: Tuple[str, ...] = ()

        for _ in range(cursor.u2()):
            attr_name = pool.utf8(cursor.u2())
            length = cursor.u4()
            start = cursor.pos
            if attr_name == "Signature":
                signature = pool.utf8(cursor.u2())
            elif attr_name == "Exceptions":
                exceptions = tuple(
                    internal_to_external(pool.class_name(cursor.u2()))
                    for _ in range(cursor.u2())
                )
            else:
                cursor.skip(length)
            _check_attribute_length(cursor, attr_name, start, length)

        return MethodInfo(
            access=translate_access_flags(access, METHOD_FLAGS),
            name=name,
            descriptor=descriptor,
            signature=signature,
            exceptions=exceptions,
        )

    # ------------------------------------------------------------------
    # Annotations
    # ------------------------------------------------------------------

    def _read_class_attributes(self, cursor: _Cursor, pool: ConstantPool) -> List[AnnotationInfo]:
        annotations: List[AnnotationInfo] = []
        for _ in range(cursor.u2()):
            attr_name = pool.utf8(cursor.u2())
            length = cursor.u4()
            start = cursor.pos
            if attr_name == "RuntimeVisibleAnnotations":
                annotations.extend(self._read_annotations(cursor, pool, True))
            elif attr_name == "RuntimeInvisibleAnnotations":
                annotations.extend(self._read_annotations(cursor, pool, False))
            else:
                cursor.skip(length)
            _check_attribute_length(cursor, attr_name, start, length)
        return annotations

    def _read_annotations(self, cursor: _Cursor, pool: ConstantPool,
                          visible: bool) -> List[AnnotationInfo]:
        found = []
        for _ in range(cursor.u2()):
            descriptor = pool.utf8(cursor.u2())
            self._skip_element_pairs(cursor)
            found.append(AnnotationInfo.from_descriptor(descriptor, visible))
        return found

    def _skip_element_pairs(self, cursor: _Cursor) -> None:
        for _ in range(cursor.u2()):
            cursor.skip(2)  # element_name_index
            self._skip_element_value(cursor)

    def _skip_element_value(self, cursor: _Cursor) -> None:
        tag = chr(cursor.u1())
        if tag in "BCDFIJSZsc":
            cursor.skip(2)
        elif tag == "e":
            cursor.skip(4)
        elif tag == "@":
            cursor.skip(2)
            self._skip_element_pairs(cursor)
        elif tag == "[":
            for _ in range(cursor.u2()):
                self._skip_element_value(cursor)
        else:
            raise UnreadableClassError(
                f"Unknown annotation element tag {tag!r}",
                source=cursor.source,
                offset=cursor.pos,
            )


def read_class_bytes(data: bytes, source: Optional[str] = None) -> ClassInfo:
    """Convenience wrapper around ``ClassFileReader().parse`` for in-memory data."""
    return ClassFileReader().parse(io.BytesIO(data), source=source)
