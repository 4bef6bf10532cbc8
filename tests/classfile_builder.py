"""
Minimal class-file writer for building test fixtures.

Produces structurally valid class files (no method bodies) carrying just the
parts the reader decodes: hierarchy links, access flags, members and class
annotations.
"""

import struct
import zipfile
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

ACC_PUBLIC = 0x0001
ACC_PRIVATE = 0x0002
ACC_STATIC = 0x0008
ACC_FINAL = 0x0010
ACC_SUPER = 0x0020
ACC_INTERFACE = 0x0200
ACC_ABSTRACT = 0x0400
ACC_ANNOTATION = 0x2000
ACC_ENUM = 0x4000


def internal(name: str) -> str:
    return name.replace(".", "/")


class ConstantPoolBuilder:
    """Accumulates constant pool entries, reusing identical ones."""

    def __init__(self):
        self._entries: List[bytes] = []
        self._index: Dict[Tuple, int] = {}
        self._next = 1

    def _add(self, key: Tuple, payload: bytes, slots: int = 1) -> int:
        if key in self._index:
            return self._index[key]
        index = self._next
        self._entries.append(payload)
        self._index[key] = index
        self._next += slots
        return index

    def utf8(self, text: str) -> int:
        data = text.encode("utf-8")
        return self._add(("utf8", text), struct.pack(">BH", 1, len(data)) + data)

    def class_ref(self, name: str) -> int:
        name_index = self.utf8(internal(name))
        return self._add(("class", name), struct.pack(">BH", 7, name_index))

    def integer(self, value: int) -> int:
        return self._add(("int", value), struct.pack(">Bi", 3, value))

    def long(self, value: int) -> int:
        return self._add(("long", value), struct.pack(">Bq", 5, value), slots=2)

    def string(self, text: str) -> int:
        utf8_index = self.utf8(text)
        return self._add(("string", text), struct.pack(">BH", 8, utf8_index))

    def to_bytes(self) -> bytes:
        return struct.pack(">H", self._next) + b"".join(self._entries)


class ClassFileBuilder:
    """
    Builds one class file.

    Example::

        data = (ClassFileBuilder("com.example.Foo", superclass="com.example.Base")
                .implements("com.example.Api")
                .annotate("com.example.Marker")
                .to_bytes())
    """

    def __init__(self, name: str, superclass: Optional[str] = "java.lang.Object",
                 access: int = ACC_PUBLIC | ACC_SUPER):
        self.name = name
        self.superclass = superclass
        self.access = access
        self.interfaces: List[str] = []
        self.fields: List[dict] = []
        self.methods: List[dict] = []
        self.annotations: List[Tuple[str, bool, Sequence[Tuple[str, str]]]] = []
        self.source_file: Optional[str] = None
        self.length_adjust: Dict[str, int] = {}

    def implements(self, *names: str) -> "ClassFileBuilder":
        self.interfaces.extend(names)
        return self

    def field(self, name: str, descriptor: str, access: int = ACC_PRIVATE,
              signature: Optional[str] = None, value=None) -> "ClassFileBuilder":
        self.fields.append(dict(name=name, descriptor=descriptor, access=access,
                                signature=signature, value=value))
        return self

    def method(self, name: str, descriptor: str, access: int = ACC_PUBLIC,
               signature: Optional[str] = None,
               exceptions: Sequence[str] = ()) -> "ClassFileBuilder":
        self.methods.append(dict(name=name, descriptor=descriptor, access=access,
                                 signature=signature, exceptions=list(exceptions)))
        return self

    def annotate(self, name: str, visible: bool = True,
                 elements: Sequence[Tuple[str, str]] = ()) -> "ClassFileBuilder":
        """Add a class annotation; ``elements`` are (name, string value) pairs."""
        self.annotations.append((name, visible, elements))
        return self

    def with_source_file(self, name: str) -> "ClassFileBuilder":
        self.source_file = name
        return self

    def misdeclare_length(self, attr_name: str, delta: int) -> "ClassFileBuilder":
        """Write every ``attr_name`` attribute with a length off by ``delta``."""
        self.length_adjust[attr_name] = delta
        return self

    # ------------------------------------------------------------------

    def _attribute(self, pool: ConstantPoolBuilder, name: str, body: bytes) -> bytes:
        declared = len(body) + self.length_adjust.get(name, 0)
        return struct.pack(">HI", pool.utf8(name), declared) + body

    def _member_attributes(self, pool: ConstantPoolBuilder, member: dict) -> List[bytes]:
        attributes = []
        if member.get("signature"):
            attributes.append(self._attribute(
                pool, "Signature", struct.pack(">H", pool.utf8(member["signature"]))))
        value = member.get("value")
        if value is not None:
            if isinstance(value, str):
                index = pool.string(value)
            elif -2**31 <= value < 2**31:
                index = pool.integer(value)
            else:
                index = pool.long(value)
            attributes.append(self._attribute(pool, "ConstantValue", struct.pack(">H", index)))
        if member.get("exceptions"):
            body = struct.pack(">H", len(member["exceptions"]))
            body += b"".join(struct.pack(">H", pool.class_ref(e)) for e in member["exceptions"])
            attributes.append(self._attribute(pool, "Exceptions", body))
        return attributes

    def _member(self, pool: ConstantPoolBuilder, member: dict) -> bytes:
        attributes = self._member_attributes(pool, member)
        header = struct.pack(">HHHH", member["access"], pool.utf8(member["name"]),
                             pool.utf8(member["descriptor"]), len(attributes))
        return header + b"".join(attributes)

    def _annotations_attribute(self, pool: ConstantPoolBuilder, visible: bool) -> Optional[bytes]:
        selected = [a for a in self.annotations if a[1] == visible]
        if not selected:
            return None
        body = struct.pack(">H", len(selected))
        for name, _, elements in selected:
            body += struct.pack(">HH", pool.utf8(f"L{internal(name)};"), len(elements))
            for element_name, element_value in elements:
                body += struct.pack(">HBH", pool.utf8(element_name), ord("s"),
                                    pool.utf8(element_value))
        attr_name = "RuntimeVisibleAnnotations" if visible else "RuntimeInvisibleAnnotations"
        return self._attribute(pool, attr_name, body)

    def to_bytes(self) -> bytes:
        pool = ConstantPoolBuilder()
        this_index = pool.class_ref(self.name)
        super_index = pool.class_ref(self.superclass) if self.superclass else 0
        interface_indexes = [pool.class_ref(name) for name in self.interfaces]

        fields = [self._member(pool, f) for f in self.fields]
        methods = [self._member(pool, m) for m in self.methods]

        class_attributes = []
        if self.source_file:
            class_attributes.append(self._attribute(
                pool, "SourceFile", struct.pack(">H", pool.utf8(self.source_file))))
        for visible in (True, False):
            attribute = self._annotations_attribute(pool, visible)
            if attribute is not None:
                class_attributes.append(attribute)

        body = struct.pack(">HHH", self.access, this_index, super_index)
        body += struct.pack(">H", len(interface_indexes))
        body += b"".join(struct.pack(">H", i) for i in interface_indexes)
        body += struct.pack(">H", len(fields)) + b"".join(fields)
        body += struct.pack(">H", len(methods)) + b"".join(methods)
        body += struct.pack(">H", len(class_attributes)) + b"".join(class_attributes)

        header = struct.pack(">IHH", 0xCAFEBABE, 0, 52)
        return header + pool.to_bytes() + body


def class_entry_name(name: str) -> str:
    """Archive entry name for a dotted class name."""
    return internal(name) + ".class"


def write_class(root: Path, builder: ClassFileBuilder) -> Path:
    """Write a class file under ``root`` following its package layout."""
    path = root / class_entry_name(builder.name)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(builder.to_bytes())
    return path


def make_archive(path: Path, builders: Sequence[ClassFileBuilder] = (),
                 class_path: Optional[str] = None,
                 extra_entries: Optional[Dict[str, bytes]] = None) -> Path:
    """Write a jar/zip holding the given classes and an optional manifest Class-Path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as archive:
        if class_path is not None:
            manifest = f"Manifest-Version: 1.0\r\nClass-Path: {class_path}\r\n\r\n"
            archive.writestr("META-INF/MANIFEST.MF", manifest)
        for builder in builders:
            archive.writestr(class_entry_name(builder.name), builder.to_bytes())
        for entry_name, data in (extra_entries or {}).items():
            archive.writestr(entry_name, data)
    return path


def mark_encrypted(path: Path, entry_name: str) -> Path:
    """Set the "encrypted" flag bit of one archive entry in place.

    zipfile then refuses to open that entry without a password.
    """
    data = bytearray(path.read_bytes())
    with zipfile.ZipFile(path) as archive:
        local_header = archive.getinfo(entry_name).header_offset
    data[local_header + 6] |= 0x01

    name = entry_name.encode("utf-8")
    pos = data.find(b"PK\x01\x02")
    while pos != -1:
        name_length = struct.unpack_from("<H", data, pos + 28)[0]
        if bytes(data[pos + 46:pos + 46 + name_length]) == name:
            data[pos + 8] |= 0x01
        pos = data.find(b"PK\x01\x02", pos + 4)

    path.write_bytes(bytes(data))
    return path
