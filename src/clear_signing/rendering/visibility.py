"""Visibility rule evaluation."""

import logging
from typing import Any, Optional, Tuple

from ..abi.types import (
    AddressValue,
    BoolValue,
    BYTE_VALUES,
    INTEGER_VALUES,
    StringValue,
)
from ..descriptor.models import VisibleCondition
from ..errors import RenderError
from .context import RenderContext

logger = logging.getLogger(__name__)

VISIBLE_LITERALS = {"always": True, "optional": True, "never": False}
_RULE_PREFIXES = ("$.display.visibilityRules.", "#/visibilityRules/")


def _rule_name(reference: str) -> str:
    for prefix in _RULE_PREFIXES:
        if reference.startswith(prefix):
            return reference[len(prefix):]
    return reference


class EngineVisibilityMixin:
    def is_visible(
        self,
        ctx: RenderContext,
        rule: Any,
        field_path: Optional[str] = None,
        _seen: Tuple[str, ...] = (),
    ) -> bool:
        """
        Decide whether a field is shown.

        Args:
            ctx: Render context of the current call
            rule: Boolean, literal/named string, VisibleCondition, or None
            field_path: Path of the field the rule belongs to, used by conditions without their own path

        Returns:
            True when the field is visible

        Raises:
            RenderError: On an undefined or cyclic named rule, or an ill-typed comparison
        """
        if rule is None:
            return True
        if isinstance(rule, bool):
            return rule
        if isinstance(rule, str):
            if rule in VISIBLE_LITERALS:
                return VISIBLE_LITERALS[rule]
            name = _rule_name(rule)
            if name in _seen:
                raise RenderError(f"visibility rule cycle: {' -> '.join(_seen + (name,))}", path=field_path)
            rules = ctx.descriptor.display.visibility_rules
            if name not in rules:
                raise RenderError(f"undefined visibility rule {rule!r}", path=field_path)
            return self.is_visible(ctx, rules[name], field_path, _seen + (name,))
        if isinstance(rule, VisibleCondition):
            return self._evaluate_condition(ctx, rule, field_path)
        raise RenderError(f"unsupported visibility rule {rule!r}", path=field_path)

    def _evaluate_condition(self, ctx: RenderContext, condition: VisibleCondition, field_path: Optional[str]) -> bool:
        path = condition.path or field_path
        if not path:
            raise RenderError("visibility condition has no path to compare")
        value = ctx.resolve(path)

        def key(literal: Any):
            return _comparable(value, literal, path)

        left = _value_key(value, path)

        if condition.if_not_in is not None and left in [key(item) for item in condition.if_not_in]:
            return False
        if condition.must_be is not None and left not in [key(item) for item in condition.must_be]:
            return False
        if condition.eq is not None and left != key(condition.eq):
            return False
        if condition.ne is not None and left == key(condition.ne):
            return False

        ordering = [
            (condition.gt, lambda a, b: a > b),
            (condition.gte, lambda a, b: a >= b),
            (condition.lt, lambda a, b: a < b),
            (condition.lte, lambda a, b: a <= b),
        ]
        for literal, check in ordering:
            if literal is None:
                continue
            if not isinstance(value, INTEGER_VALUES):
                raise RenderError(f"ordering comparison on non-integer {type(value).__name__}", path=path)
            if not check(left, key(literal)):
                return False
        return True


def _value_key(value, path: str):
    if isinstance(value, INTEGER_VALUES):
        return value.value
    if isinstance(value, AddressValue) or isinstance(value, BYTE_VALUES):
        return "0x" + value.value.hex()
    if isinstance(value, (BoolValue, StringValue)):
        return value.value
    raise RenderError(f"cannot compare {type(value).__name__} in a visibility condition", path=path)


def _comparable(value, literal: Any, path: str):
    """Convert a JSON literal into the comparison domain of ``value``."""
    if isinstance(value, INTEGER_VALUES):
        if isinstance(literal, bool):
            raise RenderError(f"cannot compare integer with {literal!r}", path=path)
        if isinstance(literal, int):
            return literal
        if isinstance(literal, str):
            try:
                return int(literal.strip(), 0)
            except ValueError:
                raise RenderError(f"cannot compare integer with {literal!r}", path=path)
        raise RenderError(f"cannot compare integer with {literal!r}", path=path)

    if isinstance(value, AddressValue) or isinstance(value, BYTE_VALUES):
        if not isinstance(literal, str):
            raise RenderError(f"cannot compare bytes with {literal!r}", path=path)
        return literal.lower()

    if isinstance(value, BoolValue):
        if isinstance(literal, bool):
            return literal
        if isinstance(literal, str) and literal.lower() in ("true", "false"):
            return literal.lower() == "true"
        raise RenderError(f"cannot compare bool with {literal!r}", path=path)

    return str(literal)
