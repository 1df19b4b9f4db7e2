"""Render output model."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union


@dataclass(frozen=True)
class DisplayItem:
    label: str
    value: str
    visible: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "value": self.value, "visible": self.visible}


@dataclass(frozen=True)
class DisplayGroup:
    """A field group rendered as a nested block."""

    label: str
    iteration: str
    entries: Tuple["DisplayEntry", ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "iteration": self.iteration,
            "entries": [entry.to_dict() for entry in self.entries],
        }


DisplayEntry = Union[DisplayItem, DisplayGroup]


@dataclass(frozen=True)
class DisplayModel:
    """
    Result of one render call.

    Attributes:
        intent: Intent label of the matched format (falls back to the function or type name)
        interpolated_intent: Intent with ``${path}`` placeholders filled, when declared
        entries: Rendered fields in declaration order
        warnings: Non-fatal problems met while rendering
    """

    intent: str
    interpolated_intent: Optional[str] = None
    entries: Tuple[DisplayEntry, ...] = ()
    warnings: Tuple[str, ...] = ()

    def flatten(self) -> List[Tuple[str, str, bool]]:
        """Return every item as ``(label, value, visible)``, groups expanded in place."""
        rows: List[Tuple[str, str, bool]] = []

        def walk(entries):
            for entry in entries:
                if isinstance(entry, DisplayGroup):
                    walk(entry.entries)
                else:
                    rows.append((entry.label, entry.value, entry.visible))

        walk(self.entries)
        return rows

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intent": self.intent,
            "interpolatedIntent": self.interpolated_intent,
            "entries": [entry.to_dict() for entry in self.entries],
            "warnings": list(self.warnings),
        }
