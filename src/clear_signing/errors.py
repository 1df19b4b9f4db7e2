"""
Error taxonomy for the clear signing core.

Fatal errors abort the whole call. Non-fatal conditions never raise; they are
recorded as warnings on the render result instead.
"""

from typing import Optional


class ClearSigningError(Exception):
    """Base class for every error raised by the clear signing core."""


class ParseError(ClearSigningError):
    """
    Malformed signature, type string or descriptor document.

    Args:
        message: Human-readable description
        fragment: The offending substring, when known
        position: Character offset of the fragment in the parsed text
    """

    def __init__(self, message: str, fragment: Optional[str] = None, position: Optional[int] = None):
        self.message = message
        self.fragment = fragment
        self.position = position
        detail = message
        if fragment is not None:
            detail += f" (near {fragment!r}"
            if position is not None:
                detail += f" at position {position}"
            detail += ")"
        super().__init__(detail)


class DecodeError(ClearSigningError):
    """
    Calldata or typed data that does not match the declared schema.

    Args:
        message: Human-readable description
        param_index: Index of the top-level parameter being decoded
        offset: Byte offset (calldata) where the problem was detected
        kind: Corruption kind, e.g. "truncated" or "offset_out_of_range"
        path: Dotted location of the failing value inside the parameter
    """

    def __init__(
        self,
        message: str,
        param_index: Optional[int] = None,
        offset: Optional[int] = None,
        kind: Optional[str] = None,
        path: Optional[str] = None,
    ):
        self.message = message
        self.param_index = param_index
        self.offset = offset
        self.kind = kind
        self.path = path
        parts = []
        if kind:
            parts.append(kind)
        if param_index is not None:
            parts.append(f"param {param_index}")
        if path:
            parts.append(f"at {path}")
        if offset is not None:
            parts.append(f"byte offset {offset}")
        suffix = f" [{', '.join(parts)}]" if parts else ""
        super().__init__(f"{message}{suffix}")


class ResolveError(ClearSigningError):
    """Descriptor or token lookup failure reported by an external collaborator."""

    def __init__(self, message: str, chain_id: Optional[int] = None, address: Optional[str] = None):
        self.message = message
        self.chain_id = chain_id
        self.address = address
        super().__init__(message)


class RenderError(ClearSigningError):
    """Descriptor does not match the decoded data, or a formatter got the wrong value kind."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.message = message
        self.path = path
        super().__init__(f"{message} (path {path!r})" if path else message)
