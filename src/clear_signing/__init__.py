"""
ERC-7730 clear signing core.

Decodes contract calldata and EIP-712 messages and renders them with an
ERC-7730 descriptor into labelled, human-readable fields.
"""

from typing import Any, Dict, Optional, Union

from .abi import Signature, decode_calldata, parse_signature
from .config import Settings, configure_logging
from .descriptor import AddressBook, Descriptor
from .eip712 import TypedData, decode_typed_data, load_typed_data
from .errors import ClearSigningError, DecodeError, ParseError, RenderError, ResolveError
from .rendering import ClearSigningEngine, DisplayGroup, DisplayItem, DisplayModel
from .sources import (
    DescriptorSource,
    EmptyTokenSource,
    ResolvedDescriptor,
    StaticDescriptorSource,
    StaticTokenSource,
    TokenMeta,
    TokenSource,
)

__version__ = "0.1.0"


def format_calldata(
    descriptor: Union[Descriptor, str, Dict[str, Any]],
    calldata: Union[bytes, str],
    chain_id: int,
    token_source: Optional[TokenSource] = None,
    to: Optional[str] = None,
    value: Optional[int] = None,
    from_address: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> DisplayModel:
    """
    Render calldata with a descriptor.

    Args:
        descriptor: Descriptor model, JSON text or dict
        calldata: Calldata including the selector
        chain_id: Chain the transaction targets
        token_source: Token metadata lookup (no tokens known when omitted)
        to: Transaction target
        value: Native value sent with the transaction
        from_address: Transaction sender
        settings: Engine settings

    Returns:
        DisplayModel
    """
    engine = ClearSigningEngine(token_source=token_source, settings=settings)
    return engine.format_calldata(descriptor, calldata, chain_id, to=to, value=value, from_address=from_address)


def format_typed_data(
    descriptor: Union[Descriptor, str, Dict[str, Any]],
    typed_data: Union[TypedData, Dict[str, Any], str],
    token_source: Optional[TokenSource] = None,
    settings: Optional[Settings] = None,
) -> DisplayModel:
    """Render an EIP-712 typed data message with a descriptor."""
    engine = ClearSigningEngine(token_source=token_source, settings=settings)
    return engine.format_typed_data(descriptor, typed_data)


def format_transaction(
    chain_id: int,
    to: str,
    calldata: Union[bytes, str],
    descriptor_source: DescriptorSource,
    token_source: Optional[TokenSource] = None,
    value: Optional[int] = None,
    from_address: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> DisplayModel:
    """
    Resolve the descriptor for ``to`` and render the calldata.

    Raises:
        ResolveError: When the descriptor source has no descriptor for the target
    """
    engine = ClearSigningEngine(
        token_source=token_source,
        descriptor_source=descriptor_source,
        settings=settings,
    )
    return engine.format_transaction(chain_id, to, calldata, value=value, from_address=from_address)


def format_typed_message(
    typed_data: Union[TypedData, Dict[str, Any], str],
    descriptor_source: DescriptorSource,
    token_source: Optional[TokenSource] = None,
    settings: Optional[Settings] = None,
) -> DisplayModel:
    """Resolve the descriptor for a typed data message and render it."""
    engine = ClearSigningEngine(
        token_source=token_source,
        descriptor_source=descriptor_source,
        settings=settings,
    )
    return engine.format_typed_message(typed_data)


__all__ = [
    "AddressBook",
    "ClearSigningEngine",
    "ClearSigningError",
    "DecodeError",
    "Descriptor",
    "DescriptorSource",
    "DisplayGroup",
    "DisplayItem",
    "DisplayModel",
    "EmptyTokenSource",
    "ParseError",
    "RenderError",
    "ResolveError",
    "ResolvedDescriptor",
    "Settings",
    "Signature",
    "StaticDescriptorSource",
    "StaticTokenSource",
    "TokenMeta",
    "TokenSource",
    "TypedData",
    "configure_logging",
    "decode_calldata",
    "decode_typed_data",
    "format_calldata",
    "format_transaction",
    "format_typed_data",
    "format_typed_message",
    "load_typed_data",
    "parse_signature",
]
