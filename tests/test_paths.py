"""Tests for field path parsing and resolution."""

import pytest

from clear_signing import RenderError
from clear_signing.abi import AddressValue, ArrayValue, BytesValue, StringValue, UintValue
from clear_signing.rendering import ContainerValues, parse_path
from clear_signing.rendering.paths import ROOT_CONTAINER, ROOT_DATA, ROOT_DESCRIPTOR, constant_to_value

from conftest import RECIPIENT, USDT

SWAP = "swap((address token,uint256[] amounts) order,bytes data,string[] tags)"
SWAP_ARGS = ((USDT, [10, 20, 30]), b"\x01\x02\x03\x04", ["a", "b"])


class TestParsePath:
    def test_prefix_is_optional(self):
        assert parse_path("#.order.token").key == parse_path("order.token").key == "order.token"
        assert parse_path("order.token").root == ROOT_DATA

    def test_roots(self):
        assert parse_path("@.to").root == ROOT_CONTAINER
        assert parse_path("$.metadata.constants.max").root == ROOT_DESCRIPTOR

    def test_indexes_and_slices(self):
        path = parse_path("order.amounts[-1]")
        assert [s.name for s in path.segments] == ["order", "amounts", None]
        assert path.segments[2].index == -1
        sliced = parse_path("data.[1:3]")
        assert sliced.segments[1].is_slice
        assert (sliced.segments[1].start, sliced.segments[1].stop) == (1, 3)

    @pytest.mark.parametrize("text", ["order..token", "order.amounts[]", "order.amounts[x]", "a-b"])
    def test_malformed(self, text):
        with pytest.raises(RenderError):
            parse_path(text)


class TestResolve:
    def test_named_and_indexed(self, make_context):
        ctx = make_context(signature=SWAP, args=SWAP_ARGS)
        assert ctx.resolve("order.token") == AddressValue(bytes.fromhex(USDT[2:]))
        assert ctx.resolve("#.order.amounts[1]") == UintValue(20)
        assert ctx.resolve("order.amounts.[-1]") == UintValue(30)
        assert ctx.resolve("0.1.0") == UintValue(10)
        assert ctx.resolve("tags[0]") == StringValue("a")

    def test_slices(self, make_context):
        ctx = make_context(signature=SWAP, args=SWAP_ARGS)
        assert ctx.resolve("data.[0:2]") == BytesValue(b"\x01\x02")
        assert ctx.resolve("order.amounts.[1:]") == ArrayValue((UintValue(20), UintValue(30)))

    @pytest.mark.parametrize("text", ["order.missing", "order.amounts[3]", "tags.name", "data[0]", "5"])
    def test_shape_mismatch_is_fatal(self, make_context, text):
        ctx = make_context(signature=SWAP, args=SWAP_ARGS)
        with pytest.raises(RenderError):
            ctx.resolve(text)

    def test_container_values(self, make_context):
        ctx = make_context(to=USDT)
        ctx.container = ContainerValues(to=USDT, sender=RECIPIENT, value=5, chain_id=10)
        assert ctx.resolve("@.to") == AddressValue(bytes.fromhex(USDT[2:]))
        assert ctx.resolve("@.from") == AddressValue(bytes.fromhex(RECIPIENT[2:]))
        assert ctx.resolve("@.value") == UintValue(5)
        assert ctx.resolve("@.chainId") == UintValue(10)

    def test_missing_container_value(self, make_context):
        with pytest.raises(RenderError):
            make_context().resolve("@.value")

    def test_descriptor_constant(self, make_context):
        value = make_context().resolve("$.metadata.constants.max")
        assert isinstance(value, BytesValue)
        assert int.from_bytes(value.value, "big") == 2 ** 255

    def test_unknown_constant(self, make_context):
        with pytest.raises(RenderError):
            make_context().resolve("$.metadata.constants.nope")


class TestConstants:
    @pytest.mark.parametrize("raw,expected", [
        (True, "true"),
        (12, "12"),
        (USDT, USDT),
        ("0x0102", "0x0102"),
        ("hello", "hello"),
    ])
    def test_constant_to_value(self, raw, expected):
        assert constant_to_value(raw).raw_text() == expected
