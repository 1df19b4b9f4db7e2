"""
Function signature parsing and selector computation.

Accepts canonical signatures (``transfer(address,uint256)``) as well as the
human-readable form used in descriptor format keys
(``swap((address srcToken,uint256 amount) desc, bytes calldata data)``).

Canonicalization policy:
- ``uint`` and ``int`` are elided forms of ``uint256`` and ``int256``
- parameter names, storage modifiers and whitespace are dropped
- tuple components are written as ``(t1,t2)``, never with the ``tuple`` keyword
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from eth_utils import keccak

from ..errors import ParseError
from .types import (
    AddressType,
    ArrayType,
    BoolType,
    BytesType,
    IntType,
    ParamType,
    StringType,
    TupleType,
    UintType,
)

logger = logging.getLogger(__name__)

StructResolver = Callable[[str], Optional[ParamType]]

_IDENT_RE = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*")
_INT_RE = re.compile(r"^(u?int)(\d+)$")
_BYTES_RE = re.compile(r"^bytes(\d+)$")
_MODIFIERS = {"calldata", "memory", "storage", "indexed", "payable"}


@dataclass(frozen=True)
class Signature:
    """
    Parsed function signature.

    Attributes:
        name: Function name
        params: Ordered parameter types
        param_names: Parameter names as written (None where omitted)
        canonical: Canonical text form, e.g. "transfer(address,uint256)"
        selector: First 4 bytes of keccak256(canonical)
    """

    name: str
    params: Tuple[ParamType, ...]
    param_names: Tuple[Optional[str], ...]
    canonical: str
    selector: bytes

    @property
    def selector_hex(self) -> str:
        return "0x" + self.selector.hex()

    def as_tuple_type(self) -> TupleType:
        """Return the parameter list as a single named tuple schema."""
        return TupleType(members=self.params, names=self.param_names)


def function_selector(canonical_signature: str) -> bytes:
    """
    Compute the 4-byte selector of a canonical signature.

    Args:
        canonical_signature: Signature with types only (e.g., "transfer(address,uint256)")

    Returns:
        Selector bytes (e.g., b"\\xa9\\x05\\x9c\\xbb")
    """
    return keccak(text=canonical_signature)[:4]


class _TypeParser:
    """Recursive-descent parser over the Solidity type grammar."""

    def __init__(self, text: str, struct_resolver: Optional[StructResolver] = None):
        self.text = text
        self.pos = 0
        self.struct_resolver = struct_resolver

    def error(self, message: str, start: Optional[int] = None, end: Optional[int] = None) -> ParseError:
        start = self.pos if start is None else start
        if end is None:
            end = min(len(self.text), start + 1)
        fragment = self.text[start:end] if start < len(self.text) else "<end of input>"
        logger.debug(f"Parse error in '{self.text}' at {start}: {message}")
        return ParseError(message, fragment=fragment, position=start)

    def skip_ws(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def peek(self) -> str:
        self.skip_ws()
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def expect(self, char: str, message: str) -> None:
        if self.peek() != char:
            raise self.error(message)
        self.pos += 1

    def at_end(self) -> bool:
        return self.peek() == ""

    def identifier(self) -> Tuple[str, int]:
        self.skip_ws()
        match = _IDENT_RE.match(self.text, self.pos)
        if not match:
            raise self.error("expected identifier")
        self.pos = match.end()
        return match.group(0), match.start()

    def parse_param_list(self) -> Tuple[List[ParamType], List[Optional[str]]]:
        """Parse ``(p1, p2, ...)``; the opening parenthesis must be next."""
        open_pos = self.pos
        self.expect("(", "expected '('")
        types: List[ParamType] = []
        names: List[Optional[str]] = []

        if self.peek() == ")":
            self.pos += 1
            return types, names

        while True:
            if self.at_end():
                raise self.error("unbalanced parentheses", open_pos)
            param_type, name = self.parse_param()
            types.append(param_type)
            names.append(name)

            char = self.peek()
            if char == ",":
                self.pos += 1
                continue
            if char == ")":
                self.pos += 1
                return types, names
            if char == "":
                raise self.error("unbalanced parentheses", open_pos)
            raise self.error("expected ',' or ')'")

    def parse_param(self) -> Tuple[ParamType, Optional[str]]:
        param_type = self.parse_type()
        name = None

        # Optional modifiers and parameter name, e.g. "bytes calldata data"
        while self.peek() not in (",", ")", ""):
            word, start = self.identifier()
            if word in _MODIFIERS:
                continue
            if name is not None:
                raise self.error("unexpected token after parameter name", start, self.pos)
            name = word
        return param_type, name

    def parse_type(self) -> ParamType:
        char = self.peek()
        if char == "(":
            members, names = self.parse_param_list()
            base: ParamType = TupleType(members=tuple(members), names=tuple(names))
        else:
            word, start = self.identifier()
            if word == "tuple" and self.peek() == "(":
                members, names = self.parse_param_list()
                base = TupleType(members=tuple(members), names=tuple(names))
            else:
                base = self.primitive(word, start)
        return self.parse_suffixes(base)

    def parse_suffixes(self, base: ParamType) -> ParamType:
        result = base
        while self.peek() == "[":
            open_pos = self.pos
            self.pos += 1
            self.skip_ws()
            start = self.pos
            while self.pos < len(self.text) and self.text[self.pos].isdigit():
                self.pos += 1
            digits = self.text[start:self.pos]
            if self.peek() != "]":
                raise self.error("malformed array suffix", open_pos, self.pos + 1)
            self.pos += 1
            if not digits:
                result = ArrayType(element=result)
                continue
            if digits.startswith("0"):
                raise self.error("malformed array length", start, start + len(digits))
            result = ArrayType(element=result, length=int(digits))
        return result

    def primitive(self, word: str, start: int) -> ParamType:
        end = start + len(word)
        if word == "address":
            return AddressType()
        if word == "bool":
            return BoolType()
        if word == "string":
            return StringType()
        if word == "bytes":
            return BytesType()
        if word == "uint":
            return UintType(256)
        if word == "int":
            return IntType(256)

        int_match = _INT_RE.match(word)
        if int_match:
            digits = int_match.group(2)
            bits = int(digits)
            if digits.startswith("0") or bits % 8 != 0 or not 8 <= bits <= 256:
                raise self.error(f"malformed integer width in {word!r}", start, end)
            return UintType(bits) if int_match.group(1) == "uint" else IntType(bits)

        bytes_match = _BYTES_RE.match(word)
        if bytes_match:
            digits = bytes_match.group(1)
            size = int(digits)
            if digits.startswith("0") or not 1 <= size <= 32:
                raise self.error(f"malformed bytes width in {word!r}", start, end)
            return BytesType(size)

        if self.struct_resolver is not None:
            resolved = self.struct_resolver(word)
            if resolved is not None:
                return resolved

        raise self.error(f"unknown type {word!r}", start, end)


def parse_type(text: str, struct_resolver: Optional[StructResolver] = None) -> ParamType:
    """
    Parse a single type string such as ``uint256[]`` or ``(address,bytes)[2]``.

    Args:
        text: Type string
        struct_resolver: Optional callback mapping non-primitive identifiers
            (EIP-712 struct names) to a schema

    Returns:
        Parsed type
    """
    parser = _TypeParser(text, struct_resolver)
    result = parser.parse_type()
    if not parser.at_end():
        raise parser.error("unexpected trailing input", parser.pos, len(text))
    return result


def parse_signature(text: str) -> Signature:
    """
    Parse a function signature into its schema and selector.

    Args:
        text: Signature, e.g. "transfer(address to, uint256 amount)"

    Returns:
        Parsed Signature

    Raises:
        ParseError: On unbalanced parentheses, unknown types or malformed widths
    """
    parser = _TypeParser(text)
    name, _ = parser.identifier()
    if parser.peek() != "(":
        raise parser.error("expected '(' after function name")

    types, names = parser.parse_param_list()
    if not parser.at_end():
        raise parser.error("unexpected trailing input (unbalanced parentheses?)", parser.pos, len(text))

    params = tuple(types)
    canonical = f"{name}({','.join(p.canonical() for p in params)})"
    selector = function_selector(canonical)
    logger.debug(f"Parsed signature '{text}' -> {canonical} ({selector.hex()})")
    return Signature(
        name=name,
        params=params,
        param_names=tuple(names),
        canonical=canonical,
        selector=selector,
    )


def canonicalize(text: str) -> str:
    """Return the canonical form of a (possibly human-readable) signature."""
    return parse_signature(text).canonical
