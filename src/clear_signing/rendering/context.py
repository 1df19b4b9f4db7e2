"""Per-call render state."""

import logging
from dataclasses import dataclass, field
from typing import Dict, List

from ..abi.types import ArgumentValue, TupleType, TupleValue
from ..config import Settings
from ..descriptor.address_book import AddressBook
from ..descriptor.models import Descriptor
from ..sources import TokenSource
from .paths import (
    ROOT_CONTAINER,
    ROOT_DESCRIPTOR,
    ContainerValues,
    FieldPath,
    constant_to_value,
    parse_path,
    resolve_container_path,
    resolve_data_path,
    resolve_descriptor_path,
)

logger = logging.getLogger(__name__)


@dataclass
class RenderContext:
    """
    State of a single render call.

    Created fresh for every call and never shared. Everything except
    ``warnings`` and ``rendered_by_path`` is treated as read-only.
    """

    descriptor: Descriptor
    schema: TupleType
    values: TupleValue
    chain_id: int
    token_source: TokenSource
    address_book: AddressBook
    settings: Settings
    container: ContainerValues = field(default_factory=ContainerValues)
    warnings: List[str] = field(default_factory=list)
    rendered_by_path: Dict[str, str] = field(default_factory=dict)

    def warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)

    def resolve(self, path_text: str) -> ArgumentValue:
        """
        Resolve a field path to a decoded value.

        Raises:
            RenderError: When the path does not match the decoded data
        """
        return self.resolve_path(parse_path(path_text))

    def resolve_path(self, path: FieldPath) -> ArgumentValue:
        if path.root == ROOT_CONTAINER:
            return resolve_container_path(path, self.container)
        if path.root == ROOT_DESCRIPTOR:
            return constant_to_value(resolve_descriptor_path(path, self.descriptor))
        return resolve_data_path(path, self.schema, self.values)
