import copy

import pytest
from eth_abi import encode

from clear_signing import (
    ClearSigningEngine,
    Descriptor,
    StaticTokenSource,
    TokenMeta,
    decode_calldata,
    parse_signature,
)
from clear_signing.rendering import ContainerValues

USDT = "0xdac17f958d2ee523a2206206994597c13d831ec7"
USDC = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
RECIPIENT = "0x" + "00" * 18 + "0abc"
TREASURY = "0x" + "11" * 20
NATIVE = "0xeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeee"


def encode_call(signature: str, *args) -> bytes:
    """Selector + eth_abi encoding of ``args`` for a (possibly named) signature."""
    sig = parse_signature(signature)
    return sig.selector + encode([p.canonical() for p in sig.params], list(args))


ERC20_DESCRIPTOR = {
    "context": {
        "$id": "Tether USD",
        "contract": {"deployments": [{"chainId": 1, "address": USDT}]},
    },
    "metadata": {
        "owner": "Tether",
        "token": {"name": "Tether USD", "ticker": "USDT", "decimals": 6},
        "addressBook": {TREASURY: "Treasury"},
        "constants": {"max": "0x8000000000000000000000000000000000000000000000000000000000000000"},
    },
    "display": {
        "definitions": {
            "sendAmount": {"label": "Amount", "format": "tokenAmount"},
        },
        "formats": {
            "transfer(address to,uint256 amount)": {
                "intent": "Send",
                "interpolatedIntent": "Send ${amount} to ${to}",
                "fields": [
                    {"path": "to", "label": "To", "format": "addressName"},
                    {"$ref": "#/definitions/sendAmount", "path": "amount"},
                ],
            },
            "approve(address spender,uint256 value)": {
                "intent": "Approve",
                "fields": [
                    {"path": "spender", "label": "Spender", "format": "addressName"},
                    {
                        "path": "value",
                        "label": "Allowance",
                        "format": "tokenAmount",
                        "params": {"threshold": "$.metadata.constants.max", "message": "Unlimited"},
                    },
                ],
            },
        },
    },
}


MAIL_TYPED_DATA = {
    "types": {
        "EIP712Domain": [
            {"name": "name", "type": "string"},
            {"name": "version", "type": "string"},
            {"name": "chainId", "type": "uint256"},
            {"name": "verifyingContract", "type": "address"},
        ],
        "Person": [
            {"name": "name", "type": "string"},
            {"name": "wallet", "type": "address"},
        ],
        "Mail": [
            {"name": "from", "type": "Person"},
            {"name": "to", "type": "Person"},
            {"name": "contents", "type": "string"},
        ],
    },
    "primaryType": "Mail",
    "domain": {
        "name": "Ether Mail",
        "version": "1",
        "chainId": 1,
        "verifyingContract": "0xCcCCccccCCCCcCCCCCCcCcCccCcCCCcCcccccccC",
    },
    "message": {
        "from": {"name": "Cow", "wallet": "0xCD2a3d9F938E13CD947Ec05AbC7FE734Df8DD826"},
        "to": {"name": "Bob", "wallet": "0xbBbBBBBbbBBBbbbBbbBbbbbBBbBbbbbBbBbbBBbB"},
        "contents": "Hello, Bob!",
    },
}


MAIL_DESCRIPTOR = {
    "context": {
        "eip712": {
            "deployments": [{"chainId": 1, "address": "0xcccccccccccccccccccccccccccccccccccccccc"}],
            "domain": {"name": "Ether Mail"},
        }
    },
    "metadata": {"owner": "Ether Mail"},
    "display": {
        "formats": {
            "Mail(Person from,Person to,string contents)Person(string name,address wallet)": {
                "intent": "Send mail",
                "interpolatedIntent": "Mail from ${from.name} to ${to.name}",
                "fields": [
                    {"path": "from.name", "label": "From"},
                    {"path": "to.wallet", "label": "To", "format": "address"},
                    {"path": "contents", "label": "Contents"},
                ],
            }
        }
    },
}


@pytest.fixture
def erc20_descriptor_data():
    return copy.deepcopy(ERC20_DESCRIPTOR)


@pytest.fixture
def erc20_descriptor():
    return Descriptor.from_dict(copy.deepcopy(ERC20_DESCRIPTOR))


@pytest.fixture
def mail_typed_data():
    return copy.deepcopy(MAIL_TYPED_DATA)


@pytest.fixture
def mail_descriptor():
    return Descriptor.from_dict(copy.deepcopy(MAIL_DESCRIPTOR))


@pytest.fixture
def token_source():
    source = StaticTokenSource()
    source.insert(1, USDC, TokenMeta(symbol="USDC", decimals=6, name="USD Coin"))
    source.insert(10, USDC, TokenMeta(symbol="USDC.e", decimals=6, name="Bridged USDC"))
    return source


@pytest.fixture
def engine(token_source):
    return ClearSigningEngine(token_source=token_source)


@pytest.fixture
def make_context(engine):
    """Build a RenderContext over calldata decoded from ``signature`` and ``args``."""

    def factory(descriptor_data=None, signature="transfer(address to,uint256 amount)", args=(RECIPIENT, 1000),
                token_source=None, settings=None, to=None):
        descriptor = Descriptor.from_dict(descriptor_data or copy.deepcopy(ERC20_DESCRIPTOR))
        decoded = decode_calldata(parse_signature(signature), encode_call(signature, *args))
        ctx = engine._new_context(
            descriptor, decoded.schema, decoded.args, 1, ContainerValues(to=to, chain_id=1)
        )
        if token_source is not None:
            ctx.token_source = token_source
        if settings is not None:
            ctx.settings = settings
        return ctx

    return factory
