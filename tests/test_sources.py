"""Tests for in-memory descriptor and token sources and source-driven rendering."""

import json

import pytest

from clear_signing import (
    ClearSigningEngine,
    EmptyTokenSource,
    ResolveError,
    StaticDescriptorSource,
    StaticTokenSource,
    TokenMeta,
    format_transaction,
    format_typed_message,
)
from clear_signing.sources import token_lookup_key

from conftest import ERC20_DESCRIPTOR, MAIL_DESCRIPTOR, TREASURY, USDC, USDT, encode_call


@pytest.fixture
def descriptor_source():
    source = StaticDescriptorSource()
    source.add_calldata(1, USDT.upper().replace("0X", "0x"), json.dumps(ERC20_DESCRIPTOR))
    source.add_typed(1, "0xCcCCccccCCCCcCCCCCCcCcCccCcCCCcCcccccccC", json.dumps(MAIL_DESCRIPTOR))
    return source


class TestTokenSources:
    def test_lookup_key(self):
        assert token_lookup_key(1, USDC.upper().replace("0X", "0x")) == f"eip155:1/erc20:{USDC}"

    def test_static_lookup_is_case_insensitive(self):
        source = StaticTokenSource()
        source.insert(1, USDC, TokenMeta(symbol="USDC", decimals=6))
        assert source.lookup(1, USDC.upper().replace("0X", "0x")).decimals == 6
        assert source.lookup(10, USDC) is None

    def test_empty_source(self):
        assert EmptyTokenSource().lookup(1, USDC) is None


class TestDescriptorSource:
    def test_resolve_calldata(self, descriptor_source):
        resolved = descriptor_source.resolve_calldata(1, USDT)
        assert resolved.address == USDT
        assert resolved.chain_id == 1
        assert resolved.descriptor.metadata.owner == "Tether"

    def test_resolve_calldata_miss(self, descriptor_source):
        assert descriptor_source.resolve_calldata(10, USDT) is None

    def test_resolve_typed_by_contract_and_name(self, descriptor_source):
        assert descriptor_source.resolve_typed(1, "0xcccccccccccccccccccccccccccccccccccccccc", "Mail") is not None
        assert descriptor_source.resolve_typed(5, None, "Mail") is not None
        assert descriptor_source.resolve_typed(1, None, "Order") is None


class TestFormatTransaction:
    def test_resolves_and_renders(self, descriptor_source):
        calldata = encode_call("transfer(address,uint256)", TREASURY, 3000000)
        model = format_transaction(1, USDT, calldata, descriptor_source, value=0)
        assert model.flatten() == [("To", "Treasury", True), ("Amount", "3 USDT", True)]

    def test_unknown_target(self, descriptor_source):
        calldata = encode_call("transfer(address,uint256)", TREASURY, 1)
        with pytest.raises(ResolveError) as exc:
            format_transaction(1, USDC, calldata, descriptor_source)
        assert exc.value.chain_id == 1
        assert exc.value.address == USDC

    def test_typed_message(self, descriptor_source, mail_typed_data):
        model = format_typed_message(mail_typed_data, descriptor_source)
        assert model.intent == "Send mail"

    def test_typed_message_miss(self, descriptor_source, mail_typed_data):
        mail_typed_data["types"]["Order"] = mail_typed_data["types"].pop("Mail")
        mail_typed_data["primaryType"] = "Order"
        mail_typed_data["domain"]["verifyingContract"] = USDC
        with pytest.raises(ResolveError):
            format_typed_message(mail_typed_data, descriptor_source)

    def test_engine_without_descriptor_source(self):
        calldata = encode_call("transfer(address,uint256)", TREASURY, 1)
        with pytest.raises(ResolveError):
            ClearSigningEngine().format_transaction(1, USDT, calldata)
