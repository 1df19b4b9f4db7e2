"""
Field path parsing and resolution.

Path roots:
- ``#.`` (or no prefix): the decoded arguments / message
- ``@.``: container values (``to``, ``from``, ``value``, ``chainId``)
- ``$.``: the descriptor itself (``$.metadata.constants.<name>``, ``$.metadata.enums.<name>``)

Data segments are component names, decimal indices, ``name[i]`` (negative
indices count from the end) or ``[a:b]`` slices over arrays and bytes.
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Optional, Tuple

from ..abi.types import (
    AddressValue,
    ArgumentValue,
    ArrayType,
    ArrayValue,
    BoolValue,
    BytesType,
    BytesValue,
    FixedBytesValue,
    IntValue,
    ParamType,
    StringValue,
    TupleType,
    TupleValue,
    UintValue,
)
from ..errors import RenderError

_PIECE_RE = re.compile(r"^(?P<head>[A-Za-z_$][A-Za-z0-9_$]*|\d+)?(?P<brackets>(?:\[[^\[\]]*\])*)$")
_BRACKET_RE = re.compile(r"\[([^\[\]]*)\]")
_INDEX_RE = re.compile(r"^-?\d+$")
_SLICE_RE = re.compile(r"^(-?\d+)?:(-?\d+)?$")

ROOT_DATA = "data"
ROOT_CONTAINER = "container"
ROOT_DESCRIPTOR = "descriptor"


@dataclass(frozen=True)
class PathSegment:
    name: Optional[str] = None
    index: Optional[int] = None
    start: Optional[int] = None
    stop: Optional[int] = None
    is_slice: bool = False


@dataclass(frozen=True)
class FieldPath:
    text: str
    root: str
    segments: Tuple[PathSegment, ...]

    @property
    def key(self) -> str:
        """Normalized text used to match paths written with or without the ``#.`` prefix."""
        prefix = {ROOT_DATA: "", ROOT_CONTAINER: "@.", ROOT_DESCRIPTOR: "$."}[self.root]
        return prefix + ".".join(_segment_text(s) for s in self.segments)


@dataclass(frozen=True)
class ContainerValues:
    """Values of the envelope around the payload."""

    to: Optional[str] = None
    sender: Optional[str] = None
    value: Optional[int] = None
    chain_id: Optional[int] = None


def _segment_text(segment: PathSegment) -> str:
    if segment.name is not None:
        return segment.name
    if segment.is_slice:
        start = "" if segment.start is None else str(segment.start)
        stop = "" if segment.stop is None else str(segment.stop)
        return f"[{start}:{stop}]"
    return f"[{segment.index}]"


@lru_cache(maxsize=1024)
def parse_path(text: str) -> FieldPath:
    """
    Parse a field path.

    Raises:
        RenderError: When the path is malformed or uses unsupported syntax
    """
    raw = text.strip()
    root = ROOT_DATA
    body = raw
    if raw.startswith("#."):
        body = raw[2:]
    elif raw == "#":
        body = ""
    elif raw.startswith("@."):
        root, body = ROOT_CONTAINER, raw[2:]
    elif raw.startswith("$."):
        root, body = ROOT_DESCRIPTOR, raw[2:]

    segments = []
    if body:
        for piece in body.split("."):
            match = _PIECE_RE.match(piece)
            if not piece or not match:
                raise RenderError(f"malformed path segment {piece!r}", path=text)
            head = match.group("head")
            if head is not None:
                if head.isdigit():
                    segments.append(PathSegment(index=int(head)))
                else:
                    segments.append(PathSegment(name=head))
            for inner in _BRACKET_RE.findall(match.group("brackets")):
                inner = inner.strip()
                if _INDEX_RE.match(inner):
                    segments.append(PathSegment(index=int(inner)))
                    continue
                slice_match = _SLICE_RE.match(inner)
                if slice_match:
                    start, stop = slice_match.groups()
                    segments.append(PathSegment(
                        start=int(start) if start is not None else None,
                        stop=int(stop) if stop is not None else None,
                        is_slice=True,
                    ))
                    continue
                raise RenderError(f"unsupported array selector [{inner}]", path=text)

    return FieldPath(text=text, root=root, segments=tuple(segments))


def _shape_error(message: str, path: FieldPath) -> RenderError:
    return RenderError(f"path does not match decoded data: {message}", path=path.text)


def _step(value: ArgumentValue, schema: Optional[ParamType], segment: PathSegment, path: FieldPath):
    if segment.name is not None:
        if not isinstance(schema, TupleType):
            raise _shape_error(f"cannot select {segment.name!r} from a non-struct value", path)
        position = schema.index_of(segment.name)
        if position is None:
            raise _shape_error(f"no component named {segment.name!r}", path)
        return _member(value, schema, position, path)

    if segment.is_slice:
        if isinstance(value, ArrayValue):
            element = schema.element if isinstance(schema, ArrayType) else None
            return ArrayValue(value.items[segment.start:segment.stop]), ArrayType(element) if element else None
        if isinstance(value, (BytesValue, FixedBytesValue)):
            return BytesValue(value.value[segment.start:segment.stop]), BytesType()
        raise _shape_error("slices apply to arrays and bytes only", path)

    if isinstance(value, TupleValue):
        return _member(value, schema, segment.index, path)
    if isinstance(value, ArrayValue):
        index = segment.index
        if not -len(value.items) <= index < len(value.items):
            raise _shape_error(f"index {index} out of range for array of {len(value.items)}", path)
        element = schema.element if isinstance(schema, ArrayType) else None
        return value.items[index], element
    raise _shape_error(f"cannot index into {type(value).__name__}", path)


def _member(value: ArgumentValue, schema: Optional[ParamType], position: int, path: FieldPath):
    if not isinstance(value, TupleValue):
        raise _shape_error(f"expected a tuple, found {type(value).__name__}", path)
    if isinstance(schema, TupleType) and len(schema.members) != len(value.items):
        raise _shape_error(
            f"arity mismatch: schema has {len(schema.members)} components, value has {len(value.items)}",
            path,
        )
    if not 0 <= position < len(value.items):
        raise _shape_error(f"component {position} out of range for tuple of {len(value.items)}", path)
    member_schema = schema.members[position] if isinstance(schema, TupleType) else None
    return value.items[position], member_schema


def resolve_data_path(path: FieldPath, schema: TupleType, values: TupleValue) -> ArgumentValue:
    value: ArgumentValue = values
    current: Optional[ParamType] = schema
    for segment in path.segments:
        value, current = _step(value, current, segment, path)
    return value


def resolve_container_path(path: FieldPath, container: ContainerValues) -> ArgumentValue:
    if len(path.segments) != 1 or path.segments[0].name is None:
        raise RenderError("container paths take a single name", path=path.text)
    name = path.segments[0].name
    if name == "to" and container.to:
        return AddressValue(_address_bytes(container.to, path))
    if name == "from" and container.sender:
        return AddressValue(_address_bytes(container.sender, path))
    if name == "value" and container.value is not None:
        return UintValue(container.value)
    if name == "chainId" and container.chain_id is not None:
        return UintValue(container.chain_id)
    raise RenderError(f"container value {name!r} is not available", path=path.text)


def _address_bytes(text: str, path: FieldPath) -> bytes:
    try:
        value = bytes.fromhex(text[2:] if text.lower().startswith("0x") else text)
    except ValueError:
        value = b""
    if len(value) != 20:
        raise RenderError(f"invalid address {text!r}", path=path.text)
    return value


def constant_to_value(raw: Any) -> ArgumentValue:
    """Convert a descriptor constant into the shared value model."""
    if isinstance(raw, bool):
        return BoolValue(raw)
    if isinstance(raw, int):
        return UintValue(raw) if raw >= 0 else IntValue(raw)
    if isinstance(raw, str) and raw.lower().startswith("0x"):
        try:
            data = bytes.fromhex(raw[2:])
        except ValueError:
            return StringValue(raw)
        return AddressValue(data) if len(data) == 20 else BytesValue(data)
    return StringValue(str(raw))


def resolve_descriptor_path(path: FieldPath, descriptor) -> Any:
    """Resolve ``$.metadata.constants.<name>`` / ``$.metadata.enums.<name>`` to raw JSON."""
    names = [segment.name for segment in path.segments]
    if len(names) == 3 and names[0] == "metadata" and None not in names:
        if names[1] == "constants" and names[2] in descriptor.metadata.constants:
            return descriptor.metadata.constants[names[2]]
        if names[1] == "enums" and names[2] in descriptor.metadata.enums:
            return descriptor.metadata.enums[names[2]]
    raise RenderError("descriptor path does not resolve", path=path.text)
