"""Tests for signature parsing, canonicalization and selectors."""

import pytest

from clear_signing import ParseError, parse_signature
from clear_signing.abi import (
    AddressType,
    ArrayType,
    BytesType,
    IntType,
    StringType,
    TupleType,
    UintType,
    canonicalize,
    function_selector,
    parse_type,
)


class TestParseSignature:
    def test_transfer_selector(self):
        sig = parse_signature("transfer(address,uint256)")
        assert sig.name == "transfer"
        assert sig.params == (AddressType(), UintType(256))
        assert sig.selector.hex() == "a9059cbb"
        assert sig.selector_hex == "0xa9059cbb"

    def test_approve_selector(self):
        assert parse_signature("approve(address,uint256)").selector_hex == "0x095ea7b3"

    def test_parameter_names_are_kept_but_not_hashed(self):
        sig = parse_signature("transfer(address to, uint256 amount)")
        assert sig.canonical == "transfer(address,uint256)"
        assert sig.param_names == ("to", "amount")
        assert sig.selector.hex() == "a9059cbb"

    def test_tuple_keyword_and_modifiers(self):
        sig = parse_signature("swap(tuple(address srcToken, uint256 amount) desc, bytes calldata data)")
        assert sig.canonical == "swap((address,uint256),bytes)"
        assert sig.param_names == ("desc", "data")
        desc = sig.params[0]
        assert isinstance(desc, TupleType)
        assert desc.names == ("srcToken", "amount")

    def test_elided_integer_widths(self):
        assert canonicalize("f(uint,int[])") == "f(uint256,int256[])"

    def test_nested_arrays_and_tuples(self):
        sig = parse_signature("f((uint8,bytes)[2][],string)")
        outer = sig.params[0]
        assert outer == ArrayType(ArrayType(TupleType((UintType(8), BytesType())), 2))
        assert sig.params[1] == StringType()

    def test_empty_parameter_list(self):
        sig = parse_signature("pause()")
        assert sig.params == ()
        assert sig.canonical == "pause()"

    def test_as_tuple_type_carries_names(self):
        schema = parse_signature("transfer(address to,uint256 amount)").as_tuple_type()
        assert schema.index_of("amount") == 1
        assert schema.index_of("missing") is None

    @pytest.mark.parametrize("text", [
        "transfer(address,uint256)",
        "transfer(address to, uint256 amount)",
        "f(uint,int8,bytes32,bytes,string,bool)",
        "swap((address,address,uint256)[] calldata routes, uint256[3] amounts)",
        "multicall(bytes[])",
        "g(((uint16,string)[],address)[2])",
    ])
    def test_reparse_is_idempotent(self, text):
        first = parse_signature(text)
        second = parse_signature(first.canonical)
        assert second.canonical == first.canonical
        assert second.selector == first.selector
        assert second.params == first.params
        assert parse_signature(text).selector == first.selector

    def test_selector_matches_hash_of_canonical_form(self):
        sig = parse_signature("transferFrom(address from, address to, uint256 value)")
        assert sig.selector == function_selector("transferFrom(address,address,uint256)")
        assert sig.selector_hex == "0x23b872dd"


class TestParseErrors:
    @pytest.mark.parametrize("text", [
        "transfer(address,uint256",
        "transfer(address,uint256))",
        "f((address,uint256)",
        "f(uint7)",
        "f(uint264)",
        "f(uint08)",
        "f(int0)",
        "f(bytes0)",
        "f(bytes33)",
        "f(foo)",
        "f(uint256[0])",
        "f(uint256[01])",
        "f(uint256[x])",
        "(address)",
        "f address",
    ])
    def test_rejects_malformed(self, text):
        with pytest.raises(ParseError):
            parse_signature(text)

    def test_error_reports_fragment_and_position(self):
        with pytest.raises(ParseError) as exc:
            parse_signature("f(address,uint7)")
        assert exc.value.fragment == "uint7"
        assert exc.value.position == 10

    def test_unknown_type_fragment(self):
        with pytest.raises(ParseError) as exc:
            parse_signature("f(address,widget)")
        assert exc.value.fragment == "widget"


class TestParseType:
    def test_signed_and_fixed_bytes(self):
        assert parse_type("int24") == IntType(24)
        assert parse_type("bytes4") == BytesType(4)

    def test_struct_resolver(self):
        person = TupleType((StringType(), AddressType()), names=("name", "wallet"), struct_name="Person")

        def resolve(name):
            return person if name == "Person" else None

        parsed = parse_type("Person[]", struct_resolver=resolve)
        assert parsed == ArrayType(person)

    def test_trailing_input(self):
        with pytest.raises(ParseError):
            parse_type("uint256 extra")
