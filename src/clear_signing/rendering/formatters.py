"""
Value formatters.

Each formatter turns one decoded value into display text. A value of the wrong
kind raises RenderError and aborts the render. Missing auxiliary data (token
metadata, enum labels, unsupported formats) never raises: the raw text of the
value is shown instead and a warning is recorded on the context.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Union

from eth_utils import keccak

from ..abi.types import AddressValue, ArgumentValue, BoolValue, BYTE_VALUES, INTEGER_VALUES
from ..descriptor.models import FormatParams
from ..errors import RenderError, ResolveError
from ..sources import TokenMeta
from .context import RenderContext

logger = logging.getLogger(__name__)

CHAIN_NAMES = {
    1: "Ethereum",
    10: "Optimism",
    56: "BNB Chain",
    100: "Gnosis",
    137: "Polygon",
    250: "Fantom",
    324: "zkSync Era",
    8453: "Base",
    42161: "Arbitrum One",
    42170: "Arbitrum Nova",
    43114: "Avalanche",
    59144: "Linea",
    534352: "Scroll",
    7777777: "Zora",
}

# chain id -> (symbol, name); every native currency listed uses 18 decimals
NATIVE_CURRENCIES = {
    137: ("MATIC", "Polygon"),
    80001: ("MATIC", "Polygon"),
    56: ("BNB", "BNB"),
    97: ("BNB", "BNB"),
    43114: ("AVAX", "Avalanche"),
    43113: ("AVAX", "Avalanche"),
    250: ("FTM", "Fantom"),
    100: ("xDAI", "xDAI"),
}

SI_PREFIXES = [
    (24, "Y"),
    (21, "Z"),
    (18, "E"),
    (15, "P"),
    (12, "T"),
    (9, "G"),
    (6, "M"),
    (3, "k"),
]

ENUM_PREFIX = "$.metadata.enums."


def checksum_address(address: bytes) -> str:
    """
    EIP-55 mixed-case encoding of a 20-byte address.

    Each hex letter is uppercased when the matching nibble of
    keccak256(lowercase hex) is 8 or more. The ``0x`` prefix is never cased.
    """
    hex_address = address.hex()
    digest = keccak(text=hex_address).hex()
    return "0x" + "".join(
        char.upper() if int(digest[i], 16) >= 8 else char
        for i, char in enumerate(hex_address)
    )


def format_with_decimals(amount: int, decimals: int, trim: bool = True) -> str:
    """
    Render an integer amount scaled down by ``10 ** decimals``.

    Args:
        amount: Raw integer amount (may be negative)
        decimals: Number of fractional digits
        trim: Strip trailing zeros of the fraction (and the dot if nothing remains)

    Returns:
        Decimal string, e.g. format_with_decimals(1500000, 6) == "1.5"
    """
    sign = "-" if amount < 0 else ""
    digits = str(abs(amount))
    if decimals <= 0:
        return sign + digits

    digits = digits.rjust(decimals + 1, "0")
    integer_part, fraction = digits[:-decimals], digits[-decimals:]
    if trim:
        fraction = fraction.rstrip("0")
    if not fraction:
        return sign + integer_part
    return f"{sign}{integer_part}.{fraction}"


def chain_name(chain_id: int) -> str:
    return CHAIN_NAMES.get(chain_id, f"Chain {chain_id}")


def native_token_meta(chain_id: int) -> TokenMeta:
    symbol, name = NATIVE_CURRENCIES.get(chain_id, ("ETH", "Ether"))
    return TokenMeta(symbol=symbol, decimals=18, name=name)


def _require_integer(value: ArgumentValue, format_name: str, path: str) -> int:
    if not isinstance(value, INTEGER_VALUES):
        raise RenderError(f"format {format_name!r} expects an integer, got {type(value).__name__}", path=path)
    return value.value


def _require_address(value: ArgumentValue, format_name: str, path: str) -> bytes:
    if not isinstance(value, AddressValue):
        raise RenderError(f"format {format_name!r} expects an address, got {type(value).__name__}", path=path)
    return value.value


class EngineFormatMixin:
    _FORMATTERS = {
        "raw": "_format_raw",
        "address": "_format_address",
        "addressName": "_format_address_name",
        "amount": "_format_amount",
        "boolean": "_format_boolean",
        "chainId": "_format_chain_id",
        "date": "_format_date",
        "duration": "_format_duration",
        "enum": "_format_enum",
        "number": "_format_number",
        "tokenAmount": "_format_token_amount",
        "tokenTicker": "_format_token_ticker",
        "unit": "_format_unit",
    }

    def format_value(
        self,
        ctx: RenderContext,
        value: ArgumentValue,
        format_name: Optional[str],
        params: Optional[FormatParams],
        path: str,
    ) -> str:
        """
        Render one value according to its format directive.

        Args:
            ctx: Render context of the current call
            value: Decoded value at the field path
            format_name: Format tag from the descriptor (None renders raw)
            params: Format parameters, if any
            path: Field path, for diagnostics

        Returns:
            Display text
        """
        params = params or FormatParams()

        if params.encryption is not None and params.encryption.fallback_label:
            return params.encryption.fallback_label

        if params.map_reference:
            mapped = self._resolve_map(ctx, params.map_reference, value)
            if mapped is not None:
                return mapped

        if format_name is None:
            return value.raw_text()

        method = self._FORMATTERS.get(format_name)
        if method is None:
            return self._fallback(ctx, value, f"format {format_name!r} is not supported", path)
        return getattr(self, method)(ctx, value, params, path)

    def _fallback(self, ctx: RenderContext, value: ArgumentValue, reason: str, path: str) -> str:
        ctx.warn(f"{reason}; showing raw value of {path}")
        return value.raw_text()

    def _resolve_map(self, ctx: RenderContext, reference: str, value: ArgumentValue) -> Optional[str]:
        name = reference.rsplit(".", 1)[-1]
        definition = ctx.descriptor.metadata.maps.get(name)
        if definition is None:
            logger.debug(f"Map {reference!r} not declared in metadata")
            return None
        return definition.entries.get(value.raw_text())

    def _format_raw(self, ctx, value, params, path):
        return value.raw_text()

    def _format_address(self, ctx, value, params, path):
        return checksum_address(_require_address(value, "address", path))

    def _format_address_name(self, ctx, value, params, path):
        address = _require_address(value, "addressName", path)
        label = ctx.address_book.resolve("0x" + address.hex())
        if label is not None:
            return label
        return checksum_address(address)

    def _format_amount(self, ctx, value, params, path):
        amount = _require_integer(value, "amount", path)
        if params.decimals is None:
            return str(amount)
        return format_with_decimals(amount, params.decimals, trim=False)

    def _format_number(self, ctx, value, params, path):
        return str(_require_integer(value, "number", path))

    def _format_boolean(self, ctx, value, params, path):
        if not isinstance(value, BoolValue):
            raise RenderError(f"format 'boolean' expects a bool, got {type(value).__name__}", path=path)
        return value.raw_text()

    def _format_chain_id(self, ctx, value, params, path):
        return chain_name(_require_integer(value, "chainId", path))

    def _format_date(self, ctx, value, params, path):
        timestamp = _require_integer(value, "date", path)
        if params.encoding == "blockheight":
            return self._fallback(ctx, value, "block height dates are not supported", path)
        try:
            moment = datetime.fromtimestamp(timestamp, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return self._fallback(ctx, value, f"timestamp {timestamp} is out of range", path)
        return moment.strftime(ctx.settings.date_format)

    def _format_duration(self, ctx, value, params, path):
        seconds = _require_integer(value, "duration", path)
        if seconds < 0:
            return self._fallback(ctx, value, "negative duration", path)
        days, remainder = divmod(seconds, 86400)
        hours, remainder = divmod(remainder, 3600)
        minutes, seconds = divmod(remainder, 60)
        clock = f"{hours:02d}:{minutes:02d}:{seconds:02d}"
        return f"{days}d {clock}" if days else clock

    def _format_unit(self, ctx, value, params, path):
        amount = _require_integer(value, "unit", path)
        decimals = params.decimals or 0
        symbol = ""
        if params.prefix:
            for exponent, prefix in SI_PREFIXES:
                if abs(amount) >= 10 ** (decimals + exponent):
                    decimals += exponent
                    symbol = prefix
                    break
        return f"{format_with_decimals(amount, decimals)}{symbol}{params.base or ''}"

    def _format_enum(self, ctx, value, params, path):
        reference = params.enum_path or ""
        name = reference[len(ENUM_PREFIX):] if reference.startswith(ENUM_PREFIX) else reference
        enum = ctx.descriptor.metadata.enums.get(name)
        if enum is None:
            return self._fallback(ctx, value, f"enum {reference!r} is not declared", path)
        label = enum.get(value.raw_text())
        if label is None:
            return self._fallback(ctx, value, f"value {value.raw_text()} is not in enum {name!r}", path)
        return label

    def _format_token_amount(self, ctx, value, params, path):
        amount = _require_integer(value, "tokenAmount", path)
        chain_id = self._lookup_chain_id(ctx, params, path)
        address = self._token_address(ctx, params, path)

        meta = self._token_meta(ctx, chain_id, address, params) if address else None
        if meta is None:
            ctx.warn(f"token metadata not found for {address or 'unknown token'} on chain {chain_id} ({path})")
            return str(amount)

        if params.threshold is not None and params.message:
            if amount >= self._threshold(ctx, params.threshold, path):
                return f"{params.message} {meta.symbol}"
        return f"{format_with_decimals(amount, meta.decimals)} {meta.symbol}"

    def _format_token_ticker(self, ctx, value, params, path):
        address = "0x" + _require_address(value, "tokenTicker", path).hex()
        chain_id = self._lookup_chain_id(ctx, params, path)
        meta = self._token_meta(ctx, chain_id, address, params)
        if meta is None:
            return self._fallback(ctx, value, f"token ticker not found for {address} on chain {chain_id}", path)
        return meta.symbol

    def _lookup_chain_id(self, ctx: RenderContext, params: FormatParams, path: str) -> int:
        if params.chain_id is not None:
            return params.chain_id
        if params.chain_id_path:
            return _require_integer(ctx.resolve(params.chain_id_path), "chainIdPath", path)
        return ctx.chain_id

    def _token_address(self, ctx: RenderContext, params: FormatParams, path: str) -> Optional[str]:
        """Token contract for a token amount: ``token``, then ``tokenPath``, then the transaction target."""
        if params.token:
            if params.token.startswith(("$.", "#.", "@.")):
                target = ctx.resolve(params.token)
            else:
                return params.token.lower()
        elif params.token_path:
            target = ctx.resolve(params.token_path)
        elif ctx.container.to:
            return ctx.container.to.lower()
        else:
            return None
        return "0x" + _require_address(target, "tokenAmount", path).hex()

    def _token_meta(
        self,
        ctx: RenderContext,
        chain_id: int,
        address: str,
        params: FormatParams,
    ) -> Optional[TokenMeta]:
        if address in params.native_currency_addresses():
            return native_token_meta(chain_id)

        try:
            meta = ctx.token_source.lookup(chain_id, address)
        except ResolveError as e:
            logger.debug(f"Token lookup for {address} on chain {chain_id} failed: {e}")
            meta = None
        if meta is not None:
            return meta

        declared = ctx.descriptor.metadata.token
        if (
            declared is not None
            and declared.ticker
            and declared.decimals is not None
            and ctx.descriptor.is_deployed_at(address, chain_id)
        ):
            logger.debug(f"Using descriptor token declaration for {address}")
            return TokenMeta(symbol=declared.ticker, decimals=declared.decimals, name=declared.name or "")
        return None

    def _threshold(self, ctx: RenderContext, threshold: Union[int, str], path: str) -> int:
        if isinstance(threshold, int):
            return threshold
        if threshold.startswith(("$.", "#.", "@.")):
            value = ctx.resolve(threshold)
            # 32-byte hex constants resolve to bytes
            if isinstance(value, BYTE_VALUES):
                return int.from_bytes(value.value, "big")
            return _require_integer(value, "threshold", path)
        try:
            return int(threshold, 0)
        except ValueError:
            raise RenderError(f"invalid threshold {threshold!r}", path=path)
