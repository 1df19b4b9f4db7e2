"""
ABI type schema and decoded value model.

Both trees are tagged variants: one frozen dataclass per case, recursive cases
holding tuples of the same variant family. ``ParamType`` and ``ArgumentValue``
are plain ``Union`` aliases over the cases.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

WORD_SIZE = 32


@dataclass(frozen=True)
class AddressType:
    def canonical(self) -> str:
        return "address"

    @property
    def is_dynamic(self) -> bool:
        return False

    @property
    def head_size(self) -> int:
        return WORD_SIZE


@dataclass(frozen=True)
class UintType:
    bits: int = 256

    def canonical(self) -> str:
        return f"uint{self.bits}"

    @property
    def is_dynamic(self) -> bool:
        return False

    @property
    def head_size(self) -> int:
        return WORD_SIZE


@dataclass(frozen=True)
class IntType:
    bits: int = 256

    def canonical(self) -> str:
        return f"int{self.bits}"

    @property
    def is_dynamic(self) -> bool:
        return False

    @property
    def head_size(self) -> int:
        return WORD_SIZE


@dataclass(frozen=True)
class BoolType:
    def canonical(self) -> str:
        return "bool"

    @property
    def is_dynamic(self) -> bool:
        return False

    @property
    def head_size(self) -> int:
        return WORD_SIZE


@dataclass(frozen=True)
class BytesType:
    """Fixed-size ``bytesN`` when ``size`` is set, dynamic ``bytes`` otherwise."""

    size: Optional[int] = None

    def canonical(self) -> str:
        return "bytes" if self.size is None else f"bytes{self.size}"

    @property
    def is_dynamic(self) -> bool:
        return self.size is None

    @property
    def head_size(self) -> int:
        return WORD_SIZE


@dataclass(frozen=True)
class StringType:
    def canonical(self) -> str:
        return "string"

    @property
    def is_dynamic(self) -> bool:
        return True

    @property
    def head_size(self) -> int:
        return WORD_SIZE


@dataclass(frozen=True)
class ArrayType:
    """``T[]`` when ``length`` is None, ``T[N]`` otherwise."""

    element: "ParamType"
    length: Optional[int] = None

    def canonical(self) -> str:
        suffix = "[]" if self.length is None else f"[{self.length}]"
        return self.element.canonical() + suffix

    @property
    def is_dynamic(self) -> bool:
        return self.length is None or self.element.is_dynamic

    @property
    def head_size(self) -> int:
        # Static fixed arrays are encoded inline
        if self.is_dynamic:
            return WORD_SIZE
        return self.element.head_size * self.length


@dataclass(frozen=True)
class TupleType:
    """
    Ordered component list.

    ``names`` carries optional component names (from a signature or an EIP-712
    struct); they never take part in equality or the canonical form.
    ``struct_name`` is set for EIP-712 structs.
    """

    members: Tuple["ParamType", ...] = ()
    names: Tuple[Optional[str], ...] = field(default=(), compare=False)
    struct_name: Optional[str] = field(default=None, compare=False)

    def canonical(self) -> str:
        return "(" + ",".join(member.canonical() for member in self.members) + ")"

    @property
    def is_dynamic(self) -> bool:
        return any(member.is_dynamic for member in self.members)

    @property
    def head_size(self) -> int:
        if self.is_dynamic:
            return WORD_SIZE
        return sum(member.head_size for member in self.members)

    def index_of(self, name: str) -> Optional[int]:
        """Return the position of a named component, or None."""
        for idx, member_name in enumerate(self.names):
            if member_name == name:
                return idx
        return None


ParamType = Union[AddressType, UintType, IntType, BoolType, BytesType, StringType, ArrayType, TupleType]


def _hex(data: bytes) -> str:
    return "0x" + data.hex()


@dataclass(frozen=True)
class AddressValue:
    value: bytes

    def raw_text(self) -> str:
        return _hex(self.value)

    def to_plain(self):
        return _hex(self.value)


@dataclass(frozen=True)
class UintValue:
    value: int

    def raw_text(self) -> str:
        return str(self.value)

    def to_plain(self):
        return self.value


@dataclass(frozen=True)
class IntValue:
    value: int

    def raw_text(self) -> str:
        return str(self.value)

    def to_plain(self):
        return self.value


@dataclass(frozen=True)
class BoolValue:
    value: bool

    def raw_text(self) -> str:
        return "true" if self.value else "false"

    def to_plain(self):
        return self.value


@dataclass(frozen=True)
class BytesValue:
    value: bytes

    def raw_text(self) -> str:
        return _hex(self.value)

    def to_plain(self):
        return _hex(self.value)


@dataclass(frozen=True)
class FixedBytesValue:
    value: bytes

    def raw_text(self) -> str:
        return _hex(self.value)

    def to_plain(self):
        return _hex(self.value)


@dataclass(frozen=True)
class StringValue:
    value: str

    def raw_text(self) -> str:
        return self.value

    def to_plain(self):
        return self.value


@dataclass(frozen=True)
class ArrayValue:
    items: Tuple["ArgumentValue", ...] = ()

    def raw_text(self) -> str:
        return "[" + ", ".join(item.raw_text() for item in self.items) + "]"

    def to_plain(self):
        return [item.to_plain() for item in self.items]


@dataclass(frozen=True)
class TupleValue:
    items: Tuple["ArgumentValue", ...] = ()

    def raw_text(self) -> str:
        return "(" + ", ".join(item.raw_text() for item in self.items) + ")"

    def to_plain(self):
        return [item.to_plain() for item in self.items]


ArgumentValue = Union[
    AddressValue,
    UintValue,
    IntValue,
    BoolValue,
    BytesValue,
    FixedBytesValue,
    StringValue,
    ArrayValue,
    TupleValue,
]

INTEGER_VALUES = (UintValue, IntValue)
BYTE_VALUES = (BytesValue, FixedBytesValue)
SEQUENCE_VALUES = (ArrayValue, TupleValue)
