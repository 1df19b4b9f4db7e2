"""
EIP-712 typed data decoding.

Typed-data messages are converted into the same schema/value model produced by
the ABI decoder, so the rendering pipeline handles calldata and messages
uniformly. Field type strings are parsed with the signature grammar, with
struct names resolved against the document's ``types`` section.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .abi.signature import parse_type
from .abi.types import (
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
from .errors import DecodeError, ParseError

logger = logging.getLogger(__name__)

DOMAIN_TYPE = "EIP712Domain"


class TypedDataField(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    type: str


class TypedDataDomain(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: Optional[str] = None
    version: Optional[str] = None
    chain_id: Optional[int] = Field(default=None, alias="chainId")
    verifying_contract: Optional[str] = Field(default=None, alias="verifyingContract")
    salt: Optional[str] = None

    @field_validator("chain_id", mode="before")
    @classmethod
    def _parse_chain_id(cls, value: Any) -> Any:
        # Wallets send chainId as a number, a decimal string or a hex string
        if isinstance(value, str):
            return int(value, 0)
        return value


class TypedData(BaseModel):
    """An EIP-712 typed data document as received for signing."""

    model_config = ConfigDict(populate_by_name=True)

    types: Dict[str, List[TypedDataField]]
    primary_type: str = Field(alias="primaryType")
    domain: TypedDataDomain = Field(default_factory=TypedDataDomain)
    message: Dict[str, Any]

    @classmethod
    def from_json(cls, text: Union[str, bytes]) -> "TypedData":
        try:
            return cls.model_validate_json(text)
        except ValidationError as e:
            raise ParseError(f"invalid typed data document: {e}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TypedData":
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ParseError(f"invalid typed data document: {e}")


@dataclass(frozen=True)
class DecodedTypedData:
    """Typed data message decoded into the shared value model."""

    primary_type: str
    schema: TupleType
    message: TupleValue
    chain_id: Optional[int]
    verifying_contract: Optional[str]


class _SchemaBuilder:
    """Resolves named struct types into tuple schemas, rejecting cycles."""

    def __init__(self, types: Dict[str, List[TypedDataField]], max_depth: int):
        self.types = types
        self.max_depth = max_depth
        self._cache: Dict[str, TupleType] = {}

    def build(self, name: str, stack: Tuple[str, ...] = ()) -> TupleType:
        if name in stack:
            chain = " -> ".join(stack + (name,))
            raise DecodeError(f"self-referential type graph: {chain}", kind="cyclic_type")
        if len(stack) >= self.max_depth:
            raise DecodeError(
                f"struct nesting exceeds {self.max_depth} levels at {name!r}",
                kind="depth_exceeded",
            )
        if name in self._cache:
            return self._cache[name]
        if name not in self.types:
            raise DecodeError(f"undefined struct type {name!r}", kind="unknown_type")

        inner_stack = stack + (name,)

        def resolve(identifier: str) -> Optional[ParamType]:
            if identifier in self.types:
                return self.build(identifier, inner_stack)
            return None

        members = []
        names = []
        for field in self.types[name]:
            members.append(parse_type(field.type, struct_resolver=resolve))
            names.append(field.name)

        schema = TupleType(members=tuple(members), names=tuple(names), struct_name=name)
        self._cache[name] = schema
        return schema


def build_schema(data: TypedData, max_depth: int = 32) -> TupleType:
    """
    Build the tuple schema of the document's primary type.

    Raises:
        DecodeError: On cyclic struct references, excessive depth or undefined structs
    """
    return _SchemaBuilder(data.types, max_depth).build(data.primary_type)


def _type_mismatch(expected: str, raw: Any, index: int, path: str) -> DecodeError:
    return DecodeError(
        f"expected {expected}, got {type(raw).__name__} {raw!r}",
        param_index=index,
        kind="type_mismatch",
        path=path,
    )


def _parse_int(raw: Any, index: int, path: str) -> int:
    if isinstance(raw, bool):
        raise _type_mismatch("integer", raw, index, path)
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        try:
            return int(raw.strip(), 0)
        except ValueError:
            pass
    raise _type_mismatch("integer", raw, index, path)


def _parse_hex(raw: Any, expected: str, index: int, path: str) -> bytes:
    if not isinstance(raw, str) or not raw.startswith(("0x", "0X")):
        raise _type_mismatch(expected, raw, index, path)
    try:
        return bytes.fromhex(raw[2:])
    except ValueError:
        raise _type_mismatch(expected, raw, index, path)


def _coerce(param_type: ParamType, raw: Any, index: int, path: str) -> ArgumentValue:
    if isinstance(param_type, AddressType):
        value = _parse_hex(raw, "address", index, path)
        if len(value) != 20:
            raise _type_mismatch("20-byte address", raw, index, path)
        return AddressValue(value)

    if isinstance(param_type, UintType):
        value = _parse_int(raw, index, path)
        if value < 0 or value >> param_type.bits:
            raise DecodeError(f"value out of range for uint{param_type.bits}", index, None, "non_canonical", path)
        return UintValue(value)

    if isinstance(param_type, IntType):
        value = _parse_int(raw, index, path)
        bound = 1 << (param_type.bits - 1)
        if not -bound <= value < bound:
            raise DecodeError(f"value out of range for int{param_type.bits}", index, None, "non_canonical", path)
        return IntValue(value)

    if isinstance(param_type, BoolType):
        if not isinstance(raw, bool):
            raise _type_mismatch("bool", raw, index, path)
        return BoolValue(raw)

    if isinstance(param_type, BytesType):
        value = _parse_hex(raw, param_type.canonical(), index, path)
        if param_type.size is None:
            return BytesValue(value)
        if len(value) != param_type.size:
            raise _type_mismatch(f"{param_type.size}-byte value", raw, index, path)
        return FixedBytesValue(value)

    if isinstance(param_type, StringType):
        if not isinstance(raw, str):
            raise _type_mismatch("string", raw, index, path)
        return StringValue(raw)

    if isinstance(param_type, ArrayType):
        if not isinstance(raw, list):
            raise _type_mismatch("array", raw, index, path)
        if param_type.length is not None and len(raw) != param_type.length:
            raise DecodeError(
                f"expected {param_type.length} elements, got {len(raw)}",
                param_index=index,
                kind="type_mismatch",
                path=path,
            )
        return ArrayValue(tuple(
            _coerce(param_type.element, item, index, f"{path}[{i}]")
            for i, item in enumerate(raw)
        ))

    if isinstance(param_type, TupleType):
        if not isinstance(raw, dict):
            raise _type_mismatch(f"struct {param_type.struct_name or ''}".strip(), raw, index, path)
        return _coerce_struct(param_type, raw, path, index)

    raise DecodeError(f"unsupported type {param_type!r}", index, None, "unknown_type", path)


def _coerce_struct(schema: TupleType, raw: Dict[str, Any], path: str, index: Optional[int] = None) -> TupleValue:
    items = []
    for position, (name, member) in enumerate(zip(schema.names, schema.members)):
        member_path = f"{path}.{name}" if path else name
        member_index = position if index is None else index
        if name not in raw:
            raise DecodeError(
                f"missing field {name!r} of {schema.struct_name}",
                param_index=member_index,
                kind="missing_field",
                path=member_path,
            )
        items.append(_coerce(member, raw[name], member_index, member_path))

    extra = set(raw) - set(schema.names)
    if extra:
        logger.debug(f"Ignoring undeclared fields of {schema.struct_name}: {sorted(extra)}")
    return TupleValue(tuple(items))


def decode_typed_data(data: TypedData, max_depth: int = 32) -> DecodedTypedData:
    """
    Decode a typed data message into the shared value model.

    Args:
        data: Parsed typed data document
        max_depth: Maximum struct nesting depth

    Returns:
        DecodedTypedData whose ``message`` mirrors ``schema``
    """
    if data.primary_type == DOMAIN_TYPE:
        raise DecodeError("primary type cannot be the domain type", kind="unknown_type")

    schema = build_schema(data, max_depth)
    message = _coerce_struct(schema, data.message, "")
    logger.debug(f"Decoded typed data {data.primary_type} with {len(message.items)} top-level fields")
    return DecodedTypedData(
        primary_type=data.primary_type,
        schema=schema,
        message=message,
        chain_id=data.domain.chain_id,
        verifying_contract=data.domain.verifying_contract,
    )


def load_typed_data(text: Union[str, bytes, Dict[str, Any]]) -> TypedData:
    """Parse typed data from a JSON string or an already-loaded dict."""
    if isinstance(text, dict):
        return TypedData.from_dict(text)
    return TypedData.from_json(text)
