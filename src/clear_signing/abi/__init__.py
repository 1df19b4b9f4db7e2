"""ABI schema parsing and calldata decoding."""

from .decoder import DecodedCalldata, decode_arguments, decode_calldata, decode_hex
from .signature import Signature, canonicalize, function_selector, parse_signature, parse_type
from .types import (
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

__all__ = [
    "AddressType",
    "AddressValue",
    "ArgumentValue",
    "ArrayType",
    "ArrayValue",
    "BoolType",
    "BoolValue",
    "BytesType",
    "BytesValue",
    "DecodedCalldata",
    "FixedBytesValue",
    "IntType",
    "IntValue",
    "ParamType",
    "Signature",
    "StringType",
    "StringValue",
    "TupleType",
    "TupleValue",
    "UintType",
    "UintValue",
    "canonicalize",
    "decode_arguments",
    "decode_calldata",
    "decode_hex",
    "function_selector",
    "parse_signature",
    "parse_type",
]
