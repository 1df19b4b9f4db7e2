"""Tests for EIP-712 typed data decoding."""

import json

import pytest

from clear_signing import DecodeError, ParseError, decode_typed_data, load_typed_data
from clear_signing.abi import AddressValue, ArrayValue, StringValue, TupleValue, UintValue
from clear_signing.eip712 import build_schema


def typed(types, primary, message, domain=None):
    return load_typed_data({
        "types": types,
        "primaryType": primary,
        "domain": domain or {},
        "message": message,
    })


class TestMailExample:
    def test_decodes_nested_structs(self, mail_typed_data):
        decoded = decode_typed_data(load_typed_data(mail_typed_data))
        assert decoded.primary_type == "Mail"
        assert decoded.chain_id == 1
        assert decoded.verifying_contract == "0xCcCCccccCCCCcCCCCCCcCcCccCcCCCcCcccccccC"
        assert decoded.schema.canonical() == "((string,address),(string,address),string)"
        assert decoded.schema.names == ("from", "to", "contents")
        assert decoded.message.items[0] == TupleValue((
            StringValue("Cow"),
            AddressValue(bytes.fromhex("cd2a3d9f938e13cd947ec05abc7fe734df8dd826")),
        ))
        assert decoded.message.items[2] == StringValue("Hello, Bob!")

    def test_loads_from_json_text(self, mail_typed_data):
        data = load_typed_data(json.dumps(mail_typed_data))
        assert data.primary_type == "Mail"
        assert data.domain.name == "Ether Mail"

    def test_struct_names_on_schema(self, mail_typed_data):
        schema = build_schema(load_typed_data(mail_typed_data))
        assert schema.struct_name == "Mail"
        assert schema.members[0].struct_name == "Person"


class TestValueCoercion:
    def test_integers_from_strings(self):
        data = typed(
            {"Order": [{"name": "amount", "type": "uint256"}, {"name": "ids", "type": "uint8[]"}]},
            "Order",
            {"amount": "0x10", "ids": [1, "2"]},
        )
        decoded = decode_typed_data(data)
        assert decoded.message == TupleValue((
            UintValue(16),
            ArrayValue((UintValue(1), UintValue(2))),
        ))

    def test_hex_chain_id(self):
        data = typed({"T": [{"name": "x", "type": "bool"}]}, "T", {"x": True}, domain={"chainId": "0x89"})
        assert decode_typed_data(data).chain_id == 137

    def test_out_of_range_integer(self):
        data = typed({"T": [{"name": "x", "type": "uint8"}]}, "T", {"x": "300"})
        with pytest.raises(DecodeError) as exc:
            decode_typed_data(data)
        assert exc.value.kind == "non_canonical"

    def test_type_mismatch(self):
        data = typed({"T": [{"name": "owner", "type": "address"}]}, "T", {"owner": 123})
        with pytest.raises(DecodeError) as exc:
            decode_typed_data(data)
        assert exc.value.kind == "type_mismatch"
        assert exc.value.path == "owner"

    def test_missing_field(self):
        data = typed({"T": [{"name": "a", "type": "string"}, {"name": "b", "type": "string"}]}, "T", {"a": "x"})
        with pytest.raises(DecodeError) as exc:
            decode_typed_data(data)
        assert exc.value.kind == "missing_field"
        assert exc.value.param_index == 1

    def test_extra_fields_are_ignored(self):
        data = typed({"T": [{"name": "a", "type": "string"}]}, "T", {"a": "x", "b": "y"})
        assert decode_typed_data(data).message == TupleValue((StringValue("x"),))

    def test_fixed_array_length(self):
        data = typed({"T": [{"name": "a", "type": "uint256[2]"}]}, "T", {"a": [1]})
        with pytest.raises(DecodeError):
            decode_typed_data(data)


class TestTypeGraph:
    def test_direct_cycle_rejected(self):
        data = typed({"Node": [{"name": "next", "type": "Node"}]}, "Node", {"next": {}})
        with pytest.raises(DecodeError) as exc:
            decode_typed_data(data)
        assert exc.value.kind == "cyclic_type"

    def test_cycle_through_array_rejected(self):
        data = typed(
            {"A": [{"name": "b", "type": "B"}], "B": [{"name": "items", "type": "A[]"}]},
            "A",
            {"b": {"items": []}},
        )
        with pytest.raises(DecodeError) as exc:
            decode_typed_data(data)
        assert exc.value.kind == "cyclic_type"

    def test_depth_bound(self):
        types = {f"T{i}": [{"name": "child", "type": f"T{i + 1}"}] for i in range(5)}
        types["T5"] = [{"name": "leaf", "type": "uint256"}]
        data = typed(types, "T0", {})
        with pytest.raises(DecodeError) as exc:
            decode_typed_data(data, max_depth=3)
        assert exc.value.kind == "depth_exceeded"

    def test_shared_struct_is_not_a_cycle(self):
        types = {
            "Pair": [{"name": "left", "type": "Leaf"}, {"name": "right", "type": "Leaf"}],
            "Leaf": [{"name": "v", "type": "uint256"}],
        }
        decoded = decode_typed_data(typed(types, "Pair", {"left": {"v": 1}, "right": {"v": 2}}))
        assert decoded.message == TupleValue((TupleValue((UintValue(1),)), TupleValue((UintValue(2),))))

    def test_undefined_primary_type(self):
        with pytest.raises(DecodeError) as exc:
            decode_typed_data(typed({"T": []}, "Missing", {}))
        assert exc.value.kind == "unknown_type"

    def test_undefined_field_type(self):
        with pytest.raises(ParseError):
            decode_typed_data(typed({"T": [{"name": "g", "type": "Ghost"}]}, "T", {"g": {}}))

    def test_domain_cannot_be_primary(self, mail_typed_data):
        mail_typed_data["primaryType"] = "EIP712Domain"
        with pytest.raises(DecodeError):
            decode_typed_data(load_typed_data(mail_typed_data))


class TestDocumentValidation:
    def test_missing_primary_type(self, mail_typed_data):
        del mail_typed_data["primaryType"]
        with pytest.raises(ParseError):
            load_typed_data(mail_typed_data)

    def test_malformed_json(self):
        with pytest.raises(ParseError):
            load_typed_data("{not json")
