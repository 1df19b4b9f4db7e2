"""
Lookup capabilities consumed by the rendering core.

Descriptor and token lookups are supplied by the caller through narrow
protocols. Any object with the right methods works; the in-memory
implementations here serve tests and embedded registries.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Protocol, Union

from .descriptor.models import Descriptor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenMeta:
    """Token metadata used by the token amount and ticker formatters."""

    symbol: str
    decimals: int
    name: str = ""


@dataclass(frozen=True)
class ResolvedDescriptor:
    """A descriptor together with the deployment it was resolved for."""

    descriptor: Descriptor
    chain_id: int
    address: str


def token_lookup_key(chain_id: int, address: str) -> str:
    """CAIP-19 style key, e.g. ``eip155:1/erc20:0xdac1...``."""
    return f"eip155:{chain_id}/erc20:{address.lower()}"


class TokenSource(Protocol):
    def lookup(self, chain_id: int, address: str) -> Optional[TokenMeta]:
        """
        Return token metadata, or None when the token is unknown.

        Implementations may raise ResolveError on lookup failure; the core
        treats that like a miss and records a warning.
        """
        ...


class DescriptorSource(Protocol):
    def resolve_calldata(self, chain_id: int, address: str) -> Optional[ResolvedDescriptor]:
        """Descriptor for calldata sent to ``address`` on ``chain_id``, or None."""
        ...

    def resolve_typed(
        self, chain_id: int, address: Optional[str], primary_type: str
    ) -> Optional[ResolvedDescriptor]:
        """Descriptor for a typed data message, or None."""
        ...


class EmptyTokenSource:
    """A token source that knows no tokens."""

    def lookup(self, chain_id: int, address: str) -> Optional[TokenMeta]:
        return None


class StaticTokenSource:
    """In-memory token registry."""

    def __init__(self):
        self._tokens: Dict[str, TokenMeta] = {}

    def insert(self, chain_id: int, address: str, meta: TokenMeta) -> None:
        self._tokens[token_lookup_key(chain_id, address)] = meta

    def lookup(self, chain_id: int, address: str) -> Optional[TokenMeta]:
        return self._tokens.get(token_lookup_key(chain_id, address))


class StaticDescriptorSource:
    """
    In-memory descriptor registry.

    Calldata descriptors are keyed by ``"{chain_id}:{address}"``. Typed data
    descriptors are keyed the same way by verifying contract, with a second
    index by primary type name for messages that carry no verifying contract.
    """

    def __init__(self):
        self._calldata: Dict[str, Descriptor] = {}
        self._typed: Dict[str, Descriptor] = {}
        self._typed_by_name: Dict[str, Descriptor] = {}

    @staticmethod
    def _key(chain_id: int, address: str) -> str:
        return f"{chain_id}:{address.lower()}"

    def add_calldata(self, chain_id: int, address: str, descriptor: Union[Descriptor, str]) -> None:
        if isinstance(descriptor, str):
            descriptor = Descriptor.from_json(descriptor)
        self._calldata[self._key(chain_id, address)] = descriptor

    def add_typed(
        self,
        chain_id: int,
        address: Optional[str],
        descriptor: Union[Descriptor, str],
    ) -> None:
        if isinstance(descriptor, str):
            descriptor = Descriptor.from_json(descriptor)
        if address:
            self._typed[self._key(chain_id, address)] = descriptor
        for format_key in descriptor.display.formats:
            type_name = format_key.split("(", 1)[0].strip()
            self._typed_by_name.setdefault(type_name, descriptor)

    def resolve_calldata(self, chain_id: int, address: str) -> Optional[ResolvedDescriptor]:
        descriptor = self._calldata.get(self._key(chain_id, address))
        if descriptor is None:
            logger.debug(f"No calldata descriptor for {chain_id}:{address}")
            return None
        return ResolvedDescriptor(descriptor=descriptor, chain_id=chain_id, address=address.lower())

    def resolve_typed(
        self, chain_id: int, address: Optional[str], primary_type: str
    ) -> Optional[ResolvedDescriptor]:
        descriptor = None
        if address:
            descriptor = self._typed.get(self._key(chain_id, address))
        if descriptor is None:
            descriptor = self._typed_by_name.get(primary_type)
        if descriptor is None:
            logger.debug(f"No typed data descriptor for {primary_type} at {chain_id}:{address}")
            return None
        return ResolvedDescriptor(
            descriptor=descriptor,
            chain_id=chain_id,
            address=(address or "").lower(),
        )
