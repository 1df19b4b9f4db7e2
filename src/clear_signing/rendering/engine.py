"""Public rendering engine composed from focused mixins."""

from .base import EngineBase
from .descriptor import EngineDescriptorMixin
from .formatters import EngineFormatMixin
from .pipeline import EnginePipelineMixin
from .visibility import EngineVisibilityMixin


class ClearSigningEngine(
    EngineBase,
    EngineDescriptorMixin,
    EngineVisibilityMixin,
    EngineFormatMixin,
    EnginePipelineMixin,
):
    """Clear signing engine: decode a payload and render it with a descriptor."""

    pass
