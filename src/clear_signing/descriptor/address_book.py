"""Address label lookup built from a descriptor."""

import logging
from typing import Dict, Iterator, Mapping, Optional, Tuple

from .models import Descriptor

logger = logging.getLogger(__name__)


class AddressBook:
    """
    Lowercase-hex address -> label.

    Labels declared by the descriptor itself (its deployments, named after the
    contract or its token) win over labels from ``metadata.addressBook``.
    """

    def __init__(self, entries: Optional[Mapping[str, str]] = None):
        self._entries: Dict[str, str] = {}
        for address, label in (entries or {}).items():
            self.insert(address, label)

    @classmethod
    def from_descriptor(cls, descriptor: Descriptor) -> "AddressBook":
        """
        Build an address book from descriptor deployments and metadata.

        Args:
            descriptor: Parsed descriptor

        Returns:
            Merged AddressBook
        """
        book = cls()

        metadata = descriptor.metadata
        own_label = metadata.contract_name
        if not own_label and metadata.token is not None:
            own_label = metadata.token.name
        if own_label:
            for deployment in descriptor.deployments:
                book.insert(deployment.address, own_label)

        # Metadata entries only fill gaps left by deployment labels
        for address, label in metadata.address_book.items():
            key = address.lower()
            existing = book.resolve(key)
            if existing is not None and existing != label:
                logger.debug(f"Address book entry {key} -> {label!r} shadowed by deployment label {existing!r}")
                continue
            book.insert(key, label)

        return book

    def resolve(self, address: str) -> Optional[str]:
        """Look up the label for an address (case-insensitive)."""
        return self._entries.get(address.lower())

    def insert(self, address: str, label: str) -> None:
        """Add or override an entry."""
        self._entries[address.lower()] = label

    def merge(self, other: "AddressBook") -> None:
        """Add entries from another book without overwriting existing ones."""
        for address, label in other.items():
            self._entries.setdefault(address, label)

    def items(self) -> Iterator[Tuple[str, str]]:
        return iter(self._entries.items())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, address: object) -> bool:
        return isinstance(address, str) and address.lower() in self._entries
