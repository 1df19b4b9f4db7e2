"""Descriptor-driven rendering of decoded payloads."""

from .context import RenderContext
from .engine import ClearSigningEngine
from .formatters import chain_name, checksum_address, format_with_decimals
from .model import DisplayEntry, DisplayGroup, DisplayItem, DisplayModel
from .paths import ContainerValues, parse_path

__all__ = [
    "ClearSigningEngine",
    "ContainerValues",
    "DisplayEntry",
    "DisplayGroup",
    "DisplayItem",
    "DisplayModel",
    "RenderContext",
    "chain_name",
    "checksum_address",
    "format_with_decimals",
    "parse_path",
]
