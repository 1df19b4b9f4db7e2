"""
ABI decoding of calldata against a parsed type schema.

Implements the head/tail layout: static values sit inline in 32-byte head
slots, dynamic values are referenced by an offset measured from the start of
the enclosing tuple or array encoding. Every read is bounds-checked and every
word is checked for canonical padding; nothing is zero-filled.
"""

import logging
from dataclasses import dataclass
from itertools import repeat
from typing import Iterable, List, Sequence

from ..errors import DecodeError
from .signature import Signature
from .types import (
    WORD_SIZE,
    AddressType,
    AddressValue,
    ArgumentValue,
    ArrayType,
    ArrayValue,
    BoolType,
    BoolValue,
    BytesType,
    BytesValue,
    FixedBytesValue,
    IntType,
    IntValue,
    ParamType,
    StringType,
    StringValue,
    TupleType,
    TupleValue,
    UintType,
    UintValue,
)

logger = logging.getLogger(__name__)

SELECTOR_SIZE = 4


@dataclass(frozen=True)
class DecodedCalldata:
    """Calldata decoded against a signature."""

    signature: Signature
    args: TupleValue

    @property
    def schema(self) -> TupleType:
        return self.signature.as_tuple_type()


class _Reader:
    """Bounds-checked word access over one calldata buffer."""

    def __init__(self, data: bytes):
        self.data = data

    def require(self, offset: int, size: int, index: int, path: str, kind: str = "truncated") -> None:
        if offset < 0 or offset + size > len(self.data):
            raise DecodeError(
                f"need {size} bytes at offset {offset}, buffer has {len(self.data)}",
                param_index=index,
                offset=offset,
                kind=kind,
                path=path,
            )

    def word(self, offset: int, index: int, path: str) -> bytes:
        self.require(offset, WORD_SIZE, index, path)
        return self.data[offset:offset + WORD_SIZE]

    def uint_word(self, offset: int, index: int, path: str) -> int:
        return int.from_bytes(self.word(offset, index, path), "big")


def _decode_sequence(
    reader: _Reader,
    types: Iterable[ParamType],
    start: int,
    index: int,
    path: str,
    top_level: bool = False,
) -> List[ArgumentValue]:
    """
    Decode a tuple-like run of values whose encoding begins at ``start``.

    Offsets of dynamic members are relative to ``start`` (the current scope).
    """
    values = []
    head = start
    for position, param_type in enumerate(types):
        # Top-level calls report the parameter index itself
        member_index = position if top_level else index
        member_path = f"{path}.{position}" if path else str(position)

        if param_type.is_dynamic:
            pointer = reader.uint_word(head, member_index, member_path)
            if start + pointer + WORD_SIZE > len(reader.data):
                raise DecodeError(
                    f"offset {pointer} points outside the encoding",
                    param_index=member_index,
                    offset=head,
                    kind="offset_out_of_range",
                    path=member_path,
                )
            values.append(_decode_at(reader, param_type, start + pointer, member_index, member_path))
        else:
            values.append(_decode_at(reader, param_type, head, member_index, member_path))
        head += param_type.head_size
    return values


def _decode_at(reader: _Reader, param_type: ParamType, offset: int, index: int, path: str) -> ArgumentValue:
    if isinstance(param_type, AddressType):
        word = reader.word(offset, index, path)
        if any(word[:12]):
            raise DecodeError("address has dirty high-order bytes", index, offset, "non_canonical", path)
        return AddressValue(word[12:])

    if isinstance(param_type, UintType):
        value = reader.uint_word(offset, index, path)
        if value >> param_type.bits:
            raise DecodeError(f"value exceeds uint{param_type.bits}", index, offset, "non_canonical", path)
        return UintValue(value)

    if isinstance(param_type, IntType):
        return IntValue(_decode_signed(reader, param_type.bits, offset, index, path))

    if isinstance(param_type, BoolType):
        value = reader.uint_word(offset, index, path)
        if value not in (0, 1):
            raise DecodeError("bool must be 0 or 1", index, offset, "non_canonical", path)
        return BoolValue(value == 1)

    if isinstance(param_type, BytesType) and param_type.size is not None:
        word = reader.word(offset, index, path)
        if any(word[param_type.size:]):
            raise DecodeError(f"bytes{param_type.size} has dirty padding", index, offset, "non_canonical", path)
        return FixedBytesValue(word[:param_type.size])

    if isinstance(param_type, (BytesType, StringType)):
        length = reader.uint_word(offset, index, path)
        start = offset + WORD_SIZE
        padded = (length + WORD_SIZE - 1) // WORD_SIZE * WORD_SIZE
        reader.require(start, padded, index, path, kind="length_out_of_range")
        payload = reader.data[start:start + length]
        if any(reader.data[start + length:start + padded]):
            raise DecodeError("dynamic value has dirty padding", index, start + length, "non_canonical", path)
        if isinstance(param_type, BytesType):
            return BytesValue(payload)
        try:
            return StringValue(payload.decode("utf-8"))
        except UnicodeDecodeError as e:
            raise DecodeError(f"string is not valid UTF-8: {e}", index, start, "invalid_utf8", path)

    if isinstance(param_type, ArrayType):
        element = param_type.element
        if param_type.length is None:
            length = reader.uint_word(offset, index, path)
            start = offset + WORD_SIZE
        else:
            length = param_type.length
            start = offset
        # Elements occupy no bytes, so the buffer cannot bound their count
        if element.head_size == 0 and length:
            raise DecodeError(
                f"array of {length} zero-size elements", index, offset, "length_out_of_range", path
            )
        # Every element needs its head slot; reject impossible lengths before decoding
        reader.require(start, length * element.head_size, index, path, kind="length_out_of_range")
        items = _decode_sequence(reader, repeat(element, length), start, index, path)
        return ArrayValue(tuple(items))

    if isinstance(param_type, TupleType):
        items = _decode_sequence(reader, param_type.members, offset, index, path)
        return TupleValue(tuple(items))

    raise DecodeError(f"unsupported type {param_type!r}", index, offset, "unknown_type", path)


def _decode_signed(reader: _Reader, bits: int, offset: int, index: int, path: str) -> int:
    """Two's-complement value at the declared width; upper bits must be its sign extension."""
    raw = reader.uint_word(offset, index, path)
    mask = (1 << bits) - 1
    low = raw & mask
    value = low - (1 << bits) if low >> (bits - 1) else low
    if value % (1 << 256) != raw:
        raise DecodeError(f"value is not a sign-extended int{bits}", index, offset, "non_canonical", path)
    return value


def decode_arguments(types: Sequence[ParamType], data: bytes) -> TupleValue:
    """
    Decode an argument list (selector already stripped).

    Args:
        types: Parameter types in declaration order
        data: ABI-encoded argument bytes

    Returns:
        TupleValue with one item per parameter

    Raises:
        DecodeError: On truncation, bad offsets or non-canonical words
    """
    reader = _Reader(bytes(data))
    try:
        items = _decode_sequence(reader, list(types), 0, 0, "", top_level=True)
    except DecodeError as e:
        logger.debug(f"Decoding failed ({e.kind}) at offset {e.offset}: {e}")
        raise

    head_size = sum(t.head_size for t in types)
    if not any(t.is_dynamic for t in types) and len(data) > head_size:
        logger.debug(f"Ignoring {len(data) - head_size} trailing bytes after static arguments")
    return TupleValue(tuple(items))


def decode_calldata(signature: Signature, calldata: bytes) -> DecodedCalldata:
    """
    Check the selector and decode the remaining calldata.

    Args:
        signature: Parsed function signature
        calldata: Full calldata including the 4-byte selector

    Returns:
        DecodedCalldata
    """
    if len(calldata) < SELECTOR_SIZE:
        raise DecodeError(
            f"calldata too short: expected at least {SELECTOR_SIZE} bytes, got {len(calldata)}",
            kind="calldata_too_short",
        )

    actual = bytes(calldata[:SELECTOR_SIZE])
    if actual != signature.selector:
        raise DecodeError(
            f"selector mismatch: expected {signature.selector_hex}, got 0x{actual.hex()}",
            offset=0,
            kind="selector_mismatch",
        )

    logger.debug(f"Decoding {len(calldata) - SELECTOR_SIZE} argument bytes for {signature.canonical}")
    args = decode_arguments(signature.params, bytes(calldata[SELECTOR_SIZE:]))
    return DecodedCalldata(signature=signature, args=args)


def decode_hex(hex_data: str) -> bytes:
    """Convert a hex string (with or without 0x prefix) into bytes."""
    text = hex_data.strip()
    if text.startswith(("0x", "0X")):
        text = text[2:]
    try:
        return bytes.fromhex(text)
    except ValueError as e:
        raise DecodeError(f"invalid hex data: {e}", kind="type_mismatch")
