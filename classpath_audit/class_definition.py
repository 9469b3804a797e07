"""Parsing of class file bytes into resolved class definitions.

``define_class`` turns a class file buffer into a ``ClassDefinition``. The
definition keeps its raw bytes, the declared members and the constant pool,
so that definitions from different sources can be compared. Each call
produces a new object, even for identical bytes.
"""

from __future__ import annotations

import hashlib
import logging
import struct
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from classpath_audit.errors import ClassFormatError, ClassNotFoundError

if TYPE_CHECKING:
    from classpath_audit.models import Source

logger = logging.getLogger(__name__)

CLASS_MAGIC = 0xCAFEBABE
ACC_INTERFACE = 0x0200

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

TAG_NAMES = {
    CONSTANT_UTF8: "Utf8",
    CONSTANT_INTEGER: "Integer",
    CONSTANT_FLOAT: "Float",
    CONSTANT_LONG: "Long",
    CONSTANT_DOUBLE: "Double",
    CONSTANT_CLASS: "Class",
    CONSTANT_STRING: "String",
    CONSTANT_FIELDREF: "Fieldref",
    CONSTANT_METHODREF: "Methodref",
    CONSTANT_INTERFACE_METHODREF: "InterfaceMethodref",
    CONSTANT_NAME_AND_TYPE: "NameAndType",
    CONSTANT_METHOD_HANDLE: "MethodHandle",
    CONSTANT_METHOD_TYPE: "MethodType",
    CONSTANT_DYNAMIC: "Dynamic",
    CONSTANT_INVOKE_DYNAMIC: "InvokeDynamic",
    CONSTANT_MODULE: "Module",
    CONSTANT_PACKAGE: "Package",
}

# Tags whose payload is one or two u2 constant pool indexes.
_INDEX_TAGS = {
    CONSTANT_CLASS: 1,
    CONSTANT_STRING: 1,
    CONSTANT_METHOD_TYPE: 1,
    CONSTANT_MODULE: 1,
    CONSTANT_PACKAGE: 1,
    CONSTANT_FIELDREF: 2,
    CONSTANT_METHODREF: 2,
    CONSTANT_INTERFACE_METHODREF: 2,
    CONSTANT_NAME_AND_TYPE: 2,
}


@dataclass(frozen=True)
class Constant:
    """A single constant pool entry with its raw payload."""

    index: int
    tag: int
    value: Any

    @property
    def tag_name(self) -> str:
        """Return the symbolic name of the tag."""
        return TAG_NAMES.get(self.tag, str(self.tag))


ConstantPool = dict[int, Constant]


@dataclass(frozen=True)
class MemberInfo:
    """A declared field or method."""

    name: str
    descriptor: str
    access_flags: int

    @property
    def signature(self) -> str:
        """Return ``name:descriptor``."""
        return f"{self.name}:{self.descriptor}"


@dataclass(eq=False)
class ClassDefinition:
    """A class defined from one byte buffer by one loader."""

    name: str
    source: Source | None
    loader: Any
    data: bytes = field(repr=False)
    digest: str
    minor_version: int
    major_version: int
    access_flags: int
    super_name: str | None
    interface_names: list[str]
    fields: list[MemberInfo]
    methods: list[MemberInfo]
    constant_pool: ConstantPool = field(repr=False)
    attribute_names: list[str]
    source_file: str | None = None
    superclass: ClassDefinition | None = field(default=None, repr=False)
    interfaces: list[ClassDefinition] = field(default_factory=list, repr=False)
    unresolved_references: list[str] = field(default_factory=list)

    @property
    def is_interface(self) -> bool:
        """Return True when the class is an interface."""
        return bool(self.access_flags & ACC_INTERFACE)

    @property
    def version(self) -> str:
        """Return the class file version as ``major.minor``."""
        return f"{self.major_version}.{self.minor_version}"

    def describe_constant(self, constant: Constant) -> str:
        """Render a constant with its symbolic references resolved."""
        return f"{constant.tag_name} {_render_constant(self.constant_pool, constant)}"

    def constant_strings(self) -> list[str]:
        """Return every constant rendered, in pool order."""
        return [self.describe_constant(c) for c in self.constant_pool.values()]


class _Reader:
    """Sequential big-endian reader that fails with ClassFormatError."""

    def __init__(self, data: bytes) -> None:
        self.data = data
        self.offset = 0

    def take(self, size: int) -> bytes:
        end = self.offset + size
        if end > len(self.data):
            msg = f"Truncated class file at offset {self.offset}"
            raise ClassFormatError(msg)
        chunk = self.data[self.offset : end]
        self.offset = end
        return chunk

    def u1(self) -> int:
        return self.take(1)[0]

    def u2(self) -> int:
        return struct.unpack(">H", self.take(2))[0]

    def u4(self) -> int:
        return struct.unpack(">I", self.take(4))[0]


def decode_modified_utf8(raw: bytes) -> str:
    """Decode the modified UTF-8 used by class files."""
    try:
        text = raw.replace(b"\xc0\x80", b"\x00").decode("utf-8", "surrogatepass")
        # Supplementary characters are stored as surrogate pairs.
        return text.encode("utf-16", "surrogatepass").decode("utf-16")
    except UnicodeError as e:
        msg = f"Illegal UTF-8 string in constant pool: {raw!r}"
        raise ClassFormatError(msg) from e


def _read_constant_pool(reader: _Reader) -> ConstantPool:
    count = reader.u2()
    pool: ConstantPool = {}
    index = 1
    while index < count:
        tag = reader.u1()
        value: Any
        if tag == CONSTANT_UTF8:
            value = decode_modified_utf8(reader.take(reader.u2()))
        elif tag == CONSTANT_INTEGER:
            value = struct.unpack(">i", reader.take(4))[0]
        elif tag == CONSTANT_FLOAT:
            value = struct.unpack(">f", reader.take(4))[0]
        elif tag == CONSTANT_LONG:
            value = struct.unpack(">q", reader.take(8))[0]
        elif tag == CONSTANT_DOUBLE:
            value = struct.unpack(">d", reader.take(8))[0]
        elif tag in _INDEX_TAGS:
            value = tuple(reader.u2() for _ in range(_INDEX_TAGS[tag]))
        elif tag == CONSTANT_METHOD_HANDLE:
            value = (reader.u1(), reader.u2())
        elif tag in (CONSTANT_DYNAMIC, CONSTANT_INVOKE_DYNAMIC):
            value = (reader.u2(), reader.u2())
        else:
            msg = f"Unknown constant pool tag {tag} at index {index}"
            raise ClassFormatError(msg)
        pool[index] = Constant(index=index, tag=tag, value=value)
        # Long and Double take two slots.
        index += 2 if tag in (CONSTANT_LONG, CONSTANT_DOUBLE) else 1
    return pool


def _lookup(pool: ConstantPool, index: int, tag: int) -> Constant:
    constant = pool.get(index)
    if constant is None:
        msg = f"Invalid constant pool index {index}"
        raise ClassFormatError(msg)
    if constant.tag != tag:
        msg = f"Constant #{index} is {constant.tag_name}, expected {TAG_NAMES[tag]}"
        raise ClassFormatError(msg)
    return constant


def _utf8(pool: ConstantPool, index: int) -> str:
    return str(_lookup(pool, index, CONSTANT_UTF8).value)


def _class_name(pool: ConstantPool, index: int) -> str:
    (name_index,) = _lookup(pool, index, CONSTANT_CLASS).value
    return _utf8(pool, name_index)


def _render_constant(pool: ConstantPool, constant: Constant) -> str:
    """Resolve index payloads into readable text, falling back to raw indexes."""
    try:
        tag, value = constant.tag, constant.value
        if tag in (CONSTANT_CLASS, CONSTANT_MODULE, CONSTANT_PACKAGE):
            return _utf8(pool, value[0])
        if tag == CONSTANT_STRING:
            return repr(_utf8(pool, value[0]))
        if tag == CONSTANT_METHOD_TYPE:
            return _utf8(pool, value[0])
        if tag == CONSTANT_NAME_AND_TYPE:
            return f"{_utf8(pool, value[0])}:{_utf8(pool, value[1])}"
        if tag in (
            CONSTANT_FIELDREF,
            CONSTANT_METHODREF,
            CONSTANT_INTERFACE_METHODREF,
        ):
            owner = _class_name(pool, value[0])
            nat = _lookup(pool, value[1], CONSTANT_NAME_AND_TYPE)
            return f"{owner}.{_render_constant(pool, nat)}"
        if tag in (CONSTANT_DYNAMIC, CONSTANT_INVOKE_DYNAMIC):
            nat = _lookup(pool, value[1], CONSTANT_NAME_AND_TYPE)
            return f"#{value[0]}:{_render_constant(pool, nat)}"
        if tag == CONSTANT_METHOD_HANDLE:
            return f"{value[0]}:#{value[1]}"
    except ClassFormatError:
        return repr(constant.value)
    return repr(constant.value)


def _skip_attributes(reader: _Reader, pool: ConstantPool) -> list[tuple[str, bytes]]:
    attributes = []
    for _ in range(reader.u2()):
        name = _utf8(pool, reader.u2())
        attributes.append((name, reader.take(reader.u4())))
    return attributes


def _read_members(reader: _Reader, pool: ConstantPool) -> list[MemberInfo]:
    members = []
    for _ in range(reader.u2()):
        access_flags = reader.u2()
        name = _utf8(pool, reader.u2())
        descriptor = _utf8(pool, reader.u2())
        _skip_attributes(reader, pool)
        members.append(MemberInfo(name, descriptor, access_flags))
    return members


def to_dotted(internal_name: str) -> str:
    """Convert ``pkg/Name`` into ``pkg.Name``."""
    return internal_name.replace("/", ".")


def parse_class(
    data: bytes,
    *,
    source: Source | None = None,
    loader: Any = None,
) -> ClassDefinition:
    """Parse class file bytes without linking.

    Raises ClassFormatError when the buffer is not a well formed class file.
    """
    reader = _Reader(data)
    if reader.u4() != CLASS_MAGIC:
        msg = "Incompatible magic value, not a class file"
        raise ClassFormatError(msg)
    minor = reader.u2()
    major = reader.u2()
    pool = _read_constant_pool(reader)
    access_flags = reader.u2()
    this_name = _class_name(pool, reader.u2())
    super_index = reader.u2()
    super_name = _class_name(pool, super_index) if super_index else None
    interfaces = [_class_name(pool, reader.u2()) for _ in range(reader.u2())]
    fields = _read_members(reader, pool)
    methods = _read_members(reader, pool)
    attributes = _skip_attributes(reader, pool)
    if reader.offset != len(data):
        msg = f"Extra bytes at the end of class file {this_name}"
        raise ClassFormatError(msg)

    source_file = None
    for attr_name, payload in attributes:
        if attr_name == "SourceFile" and len(payload) == 2:  # noqa: PLR2004
            source_file = _utf8(pool, struct.unpack(">H", payload)[0])

    return ClassDefinition(
        name=to_dotted(this_name),
        source=source,
        loader=loader,
        data=bytes(data),
        digest=hashlib.sha256(data).hexdigest(),
        minor_version=minor,
        major_version=major,
        access_flags=access_flags,
        super_name=to_dotted(super_name) if super_name else None,
        interface_names=[to_dotted(i) for i in interfaces],
        fields=fields,
        methods=methods,
        constant_pool=pool,
        attribute_names=[name for name, _ in attributes],
        source_file=source_file,
    )


def link_class(definition: ClassDefinition) -> None:
    """Resolve the super class and interfaces through the defining loader.

    Names the loader can not find stay symbolic and are listed in
    ``unresolved_references``.
    """
    load_class = getattr(definition.loader, "load_class", None)
    names = [definition.super_name, *definition.interface_names]
    if definition.name in names:
        msg = f"Class circularity: {definition.name}"
        raise ClassFormatError(msg)

    for position, name in enumerate(names):
        if name is None:
            continue
        resolved = None
        if callable(load_class):
            try:
                resolved = load_class(name)
            except ClassNotFoundError:
                resolved = None
        if resolved is None:
            logger.debug("%s: reference to %s left unresolved", definition.name, name)
            definition.unresolved_references.append(name)
        elif position == 0:
            definition.superclass = resolved
        else:
            definition.interfaces.append(resolved)


def define_class(
    name: str,
    data: bytes,
    loader: Any,
    source: Source | None = None,
) -> ClassDefinition:
    """Define and link a class from ``data`` under ``loader``.

    ``name`` is the expected binary name (``pkg.Name``); a class file that
    declares another name is rejected.
    """
    definition = parse_class(data, source=source, loader=loader)
    if definition.name != name:
        msg = f"{name} (wrong name: {definition.name})"
        raise ClassFormatError(msg)
    link_class(definition)
    return definition
