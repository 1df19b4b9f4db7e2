"""Base engine state and shared configuration."""

from typing import Optional

from ..abi.types import TupleType, TupleValue
from ..config import Settings
from ..descriptor.address_book import AddressBook
from ..descriptor.models import Descriptor
from ..sources import DescriptorSource, EmptyTokenSource, TokenSource
from .context import RenderContext
from .paths import ContainerValues


class EngineBase:
    """Base class for engine configuration. Holds no per-call state."""

    def __init__(
        self,
        token_source: Optional[TokenSource] = None,
        descriptor_source: Optional[DescriptorSource] = None,
        settings: Optional[Settings] = None,
    ):
        self.token_source = token_source if token_source is not None else EmptyTokenSource()
        self.descriptor_source = descriptor_source
        self.settings = settings if settings is not None else Settings()

    def _new_context(
        self,
        descriptor: Descriptor,
        schema: TupleType,
        values: TupleValue,
        chain_id: int,
        container: ContainerValues,
    ) -> RenderContext:
        return RenderContext(
            descriptor=descriptor,
            schema=schema,
            values=values,
            chain_id=chain_id,
            token_source=self.token_source,
            address_book=AddressBook.from_descriptor(descriptor),
            settings=self.settings,
            container=container,
        )
