"""Rendering pipeline: decode, match a display format, walk its fields."""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple, Union

from ..abi.decoder import SELECTOR_SIZE, decode_calldata, decode_hex
from ..descriptor.models import (
    Descriptor,
    DisplayFormat,
    FieldGroup,
    FieldReference,
    FormatParams,
    GroupField,
    SimpleField,
)
from ..eip712 import TypedData, decode_typed_data, load_typed_data
from ..errors import DecodeError, RenderError, ResolveError
from .context import RenderContext
from .model import DisplayEntry, DisplayGroup, DisplayItem, DisplayModel
from .paths import ContainerValues, parse_path

logger = logging.getLogger(__name__)

_PLACEHOLDER_RE = re.compile(r"\$\{([^}]*)\}")

CalldataInput = Union[bytes, bytearray, str]
TypedDataInput = Union[TypedData, Dict[str, Any], str, bytes]


def _as_descriptor(descriptor: Union[Descriptor, str, Dict[str, Any]]) -> Descriptor:
    if isinstance(descriptor, Descriptor):
        return descriptor
    if isinstance(descriptor, dict):
        return Descriptor.from_dict(descriptor)
    return Descriptor.from_json(descriptor)


def _merge_params(base: Optional[FormatParams], override: Optional[FormatParams]) -> Optional[FormatParams]:
    if base is None or override is None:
        return override or base
    merged = base.model_dump(by_alias=True, exclude_none=True)
    merged.update(override.model_dump(by_alias=True, exclude_none=True))
    return FormatParams.model_validate(merged)


def _apply_overrides(definition, reference: FieldReference):
    """
    Apply the per-site ``path``/``label``/``params``/``visible`` of a reference over its definition.

    A group only takes the ``label`` override; its members keep their own paths.
    """
    if isinstance(definition, GroupField):
        if reference.label is None:
            return definition
        group = definition.field_group.model_copy(update={"label": reference.label})
        return definition.model_copy(update={"field_group": group})

    update = {}
    if reference.path is not None:
        update["path"] = reference.path
    if reference.label is not None:
        update["label"] = reference.label
    if reference.visible is not None:
        update["visible"] = reference.visible
    if reference.params is not None:
        update["params"] = _merge_params(definition.params, reference.params)
    return definition.model_copy(update=update) if update else definition


class EnginePipelineMixin:
    def format_calldata(
        self,
        descriptor: Union[Descriptor, str, Dict[str, Any]],
        calldata: CalldataInput,
        chain_id: int,
        to: Optional[str] = None,
        value: Optional[int] = None,
        from_address: Optional[str] = None,
    ) -> DisplayModel:
        """
        Render contract calldata with a descriptor.

        Args:
            descriptor: Descriptor model (or its JSON text / dict)
            calldata: Full calldata including the selector (bytes or hex string)
            chain_id: Chain the transaction targets
            to: Transaction target, exposed as ``@.to``
            value: Native value sent, exposed as ``@.value``
            from_address: Sender, exposed as ``@.from``

        Returns:
            DisplayModel with rendered fields and warnings

        Raises:
            DecodeError: Unknown selector or calldata not matching the signature
            RenderError: Descriptor fields not matching the decoded arguments
        """
        descriptor = _as_descriptor(descriptor)
        if isinstance(calldata, str):
            calldata = decode_hex(calldata)
        calldata = bytes(calldata)
        if len(calldata) < SELECTOR_SIZE:
            raise DecodeError(
                f"calldata too short: expected at least {SELECTOR_SIZE} bytes, got {len(calldata)}",
                kind="calldata_too_short",
            )

        selector = calldata[:SELECTOR_SIZE]
        match = self.find_calldata_format(descriptor, selector)
        if match is None:
            raise DecodeError(f"no display format for selector 0x{selector.hex()}", offset=0, kind="unknown_selector")
        signature, display_format = match

        if to is not None and not descriptor.is_deployed_at(to, chain_id):
            deployments = self.get_contract_deployments(descriptor)
            logger.debug(f"{to} on chain {chain_id} is not among the {len(deployments)} declared deployments")

        decoded = decode_calldata(signature, calldata)
        ctx = self._new_context(
            descriptor,
            decoded.schema,
            decoded.args,
            chain_id,
            ContainerValues(to=to, sender=from_address, value=value, chain_id=chain_id),
        )
        logger.info(f"Rendering {signature.canonical} on chain {chain_id}")
        return self._render(ctx, display_format, signature.name)

    def format_typed_data(
        self,
        descriptor: Union[Descriptor, str, Dict[str, Any]],
        typed_data: TypedDataInput,
    ) -> DisplayModel:
        """
        Render an EIP-712 message with a descriptor.

        The domain ``chainId`` selects the chain (``Settings.default_chain_id`` when
        absent) and ``verifyingContract`` is exposed as ``@.to``.
        """
        descriptor = _as_descriptor(descriptor)
        if not isinstance(typed_data, TypedData):
            typed_data = load_typed_data(typed_data)

        match = self.find_typed_format(descriptor, typed_data.primary_type)
        if match is None:
            raise RenderError(f"no display format for typed data type {typed_data.primary_type!r}")
        format_key, display_format = match

        decoded = decode_typed_data(typed_data, self.settings.max_type_depth)
        chain_id = decoded.chain_id if decoded.chain_id is not None else self.settings.default_chain_id
        ctx = self._new_context(
            descriptor,
            decoded.schema,
            decoded.message,
            chain_id,
            ContainerValues(to=decoded.verifying_contract, chain_id=chain_id),
        )
        logger.info(f"Rendering typed data '{format_key}' on chain {chain_id}")
        return self._render(ctx, display_format, decoded.primary_type)

    def format_transaction(
        self,
        chain_id: int,
        to: str,
        calldata: CalldataInput,
        value: Optional[int] = None,
        from_address: Optional[str] = None,
    ) -> DisplayModel:
        """
        Resolve the descriptor for ``to`` through the descriptor source, then render.

        Raises:
            ResolveError: When no descriptor source is configured or none covers the target
        """
        source = self._require_descriptor_source()
        resolved = source.resolve_calldata(chain_id, to)
        if resolved is None:
            raise ResolveError(f"no descriptor found for {to} on chain {chain_id}", chain_id=chain_id, address=to)
        return self.format_calldata(
            resolved.descriptor,
            calldata,
            chain_id,
            to=to,
            value=value,
            from_address=from_address,
        )

    def format_typed_message(self, typed_data: TypedDataInput) -> DisplayModel:
        """Resolve the descriptor for a typed data message through the descriptor source, then render."""
        source = self._require_descriptor_source()
        if not isinstance(typed_data, TypedData):
            typed_data = load_typed_data(typed_data)
        domain = typed_data.domain
        chain_id = domain.chain_id if domain.chain_id is not None else self.settings.default_chain_id
        resolved = source.resolve_typed(chain_id, domain.verifying_contract, typed_data.primary_type)
        if resolved is None:
            raise ResolveError(
                f"no descriptor found for {typed_data.primary_type} on chain {chain_id}",
                chain_id=chain_id,
                address=domain.verifying_contract,
            )
        return self.format_typed_data(resolved.descriptor, typed_data)

    def _require_descriptor_source(self):
        if self.descriptor_source is None:
            raise ResolveError("no descriptor source configured")
        return self.descriptor_source

    def _render(self, ctx: RenderContext, display_format: DisplayFormat, default_intent: str) -> DisplayModel:
        entries = self.render_fields(ctx, display_format.fields)

        interpolated = None
        if display_format.interpolated_intent:
            interpolated = self.interpolate_intent(ctx, display_format.interpolated_intent)

        if ctx.warnings:
            logger.info(f"Rendered {len(entries)} entries with {len(ctx.warnings)} warnings")
        return DisplayModel(
            intent=display_format.intent or default_intent,
            interpolated_intent=interpolated,
            entries=tuple(entries),
            warnings=tuple(ctx.warnings),
        )

    def render_fields(self, ctx: RenderContext, fields, _refs: Tuple[str, ...] = ()) -> List[DisplayEntry]:
        """Render display fields in declaration order."""
        entries: List[DisplayEntry] = []
        for field in fields:
            entries.extend(self.render_field(ctx, field, _refs))
        return entries

    def render_field(self, ctx: RenderContext, field, _refs: Tuple[str, ...] = ()) -> List[DisplayEntry]:
        if isinstance(field, FieldReference):
            return self._render_reference(ctx, field, _refs)
        if isinstance(field, GroupField):
            return self._render_group(ctx, field.field_group, _refs)
        if isinstance(field, FieldGroup):
            return self._render_group(ctx, field, _refs)
        return self._render_simple(ctx, field)

    def _render_reference(self, ctx: RenderContext, reference: FieldReference, refs: Tuple[str, ...]) -> List[DisplayEntry]:
        name = reference.definition_name
        if name in refs:
            raise RenderError(f"reference cycle: {' -> '.join(refs + (name,))}", path=reference.path)
        definitions = ctx.descriptor.display.definitions
        if name not in definitions:
            raise RenderError(f"undefined field definition {reference.ref!r}", path=reference.path)
        return self.render_field(ctx, _apply_overrides(definitions[name], reference), refs + (name,))

    def _render_group(self, ctx: RenderContext, group: FieldGroup, refs: Tuple[str, ...]) -> List[DisplayEntry]:
        entries = self.render_fields(ctx, group.fields, refs)
        if not entries:
            logger.debug(f"Group '{group.label}' has no visible fields")
            return []
        return [DisplayGroup(label=group.label, iteration=group.iteration, entries=tuple(entries))]

    def _render_simple(self, ctx: RenderContext, field: SimpleField) -> List[DisplayEntry]:
        path = field.path
        if not path:
            raise RenderError(f"display field {field.label!r} has no path")

        visible = self.is_visible(ctx, field.visible, path)
        if not visible and not ctx.settings.include_hidden:
            logger.debug(f"Skipping hidden field {path}")
            return []

        value = ctx.resolve(path)
        text = self.format_value(ctx, value, field.format, field.params, path)
        ctx.rendered_by_path.setdefault(parse_path(path).key, text)

        label = field.label
        if not label:
            ctx.warn(f"field {path} has no label")
            label = path
        return [DisplayItem(label=label, value=text, visible=visible)]

    def interpolate_intent(self, ctx: RenderContext, template: str) -> str:
        """
        Fill ``${path}`` placeholders.

        A placeholder whose path was rendered as a field reuses that field's
        formatted text; any other path shows the raw value.
        """

        def replace(match):
            path_text = match.group(1).strip()
            key = parse_path(path_text).key
            if key in ctx.rendered_by_path:
                return ctx.rendered_by_path[key]
            return ctx.resolve(path_text).raw_text()

        return _PLACEHOLDER_RE.sub(replace, template)
