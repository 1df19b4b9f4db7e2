"""Format lookup in descriptors."""

import logging
from functools import lru_cache
from typing import List, Optional, Tuple

from ..abi.signature import Signature, parse_signature
from ..descriptor.models import Deployment, Descriptor, DisplayFormat
from ..errors import ParseError

logger = logging.getLogger(__name__)


@lru_cache(maxsize=512)
def _signature_for_key(format_key: str) -> Optional[Signature]:
    try:
        return parse_signature(format_key.strip())
    except ParseError as e:
        logger.warning(f"Skipping malformed format key '{format_key}': {e}")
        return None


class EngineDescriptorMixin:
    def find_calldata_format(
        self, descriptor: Descriptor, selector: bytes
    ) -> Optional[Tuple[Signature, DisplayFormat]]:
        """
        Find the display format whose signature key hashes to ``selector``.

        Format keys may carry parameter names (``transfer(address to,uint256 amount)``);
        they are normalized before hashing so names never affect the selector.

        Args:
            descriptor: Parsed descriptor
            selector: First 4 bytes of the calldata

        Returns:
            (Signature, DisplayFormat) or None when no key matches
        """
        for format_key, display_format in descriptor.display.formats.items():
            key = format_key.strip()
            if key.startswith("0x") and "(" not in key:
                logger.debug(f"Skipping selector-only format key '{key}': parameter types unknown")
                continue
            signature = _signature_for_key(key)
            if signature is None:
                continue
            if signature.selector == selector:
                logger.debug(f"Matched format key '{format_key}' -> {signature.canonical}")
                return signature, display_format
        return None

    def find_typed_format(
        self, descriptor: Descriptor, primary_type: str
    ) -> Optional[Tuple[str, DisplayFormat]]:
        """
        Find the display format for a typed data primary type.

        Keys are either the bare type name or an encodeType string such as
        ``Mail(Person from,Person to,string contents)Person(...)``.
        """
        for format_key, display_format in descriptor.display.formats.items():
            key = format_key.strip()
            if key == primary_type or key.split("(", 1)[0].strip() == primary_type:
                return format_key, display_format
        return None

    def get_contract_deployments(self, descriptor: Descriptor) -> List[Deployment]:
        """
        List the deployments declared by a descriptor.

        Args:
            descriptor: Parsed descriptor

        Returns:
            Deployments with address and chain id
        """
        deployments = list(descriptor.deployments)
        logger.debug(f"Found {len(deployments)} deployments across various chains")
        return deployments
