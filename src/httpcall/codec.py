"""Content codec: request payload encoding and response body decoding.

Encoding turns an application value into request bytes according to the
configured content type; decoding turns response bytes back into a typed
value according to the negotiated content type.  Both are pure functions
with no shared state.

The shape of a request value is resolved once at the call boundary by
:func:`classify_payload` (raw text, raw bytes, or structured value); only
structured values are dispatched on content type.  Decoding writes into a
:class:`Result` holder, the mutable destination the caller hands to the
engine, or fills a mutable mapping in place.

Example:
    >>> body = encode(TYPE_JSON, {"name": "ada"})
    >>> holder = Result(dict)
    >>> decode(TYPE_JSON, body, holder)
    >>> holder.value
    {'name': 'ada'}
"""

from __future__ import annotations

import enum
import typing
from collections.abc import Mapping, MutableMapping
from typing import Any, Generic, Optional, TypeVar

import httpx
import pydantic_core
from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from . import forms, xmltree
from .errors import DecodeError, InvalidTypeError, NoDataError, NotSupportedError
from .policy import DEFAULT_CHARSET

__all__ = [
    "TYPE_JSON",
    "TYPE_XML",
    "TYPE_FORM",
    "TYPE_HTML",
    "TYPE_TEXT",
    "PayloadKind",
    "Result",
    "classify_payload",
    "encode",
    "decode",
    "parse_content_type",
    "parse_charset",
    "resolve_content_type",
]

TYPE_JSON = "application/json"
TYPE_XML = "application/xml"
TYPE_FORM = "application/x-www-form-urlencoded"
TYPE_HTML = "text/html"
TYPE_TEXT = "text/plain"

T = TypeVar("T")


class PayloadKind(enum.Enum):
    """Shape of a request payload, resolved once before encoding."""

    TEXT = "text"
    BYTES = "bytes"
    STRUCTURED = "structured"


def classify_payload(value: object) -> PayloadKind:
    """Return the :class:`PayloadKind` of a non-``None`` request value."""
    if isinstance(value, str):
        return PayloadKind.TEXT
    if isinstance(value, (bytes, bytearray, memoryview)):
        return PayloadKind.BYTES
    return PayloadKind.STRUCTURED


class Result(Generic[T]):
    """Mutable destination for a decoded response body.

    Args:
        shape: Type the body should be decoded into.  ``str`` and ``bytes``
            receive the raw body; ``httpx.QueryParams`` keeps every form pair;
            anything else is validated with pydantic (``Any`` by default).

    Attributes:
        value: Decoded value, ``None`` until :attr:`filled` is ``True``.
    """

    def __init__(self, shape: Any = Any) -> None:
        self.shape = shape
        self.value: Optional[T] = None
        self.filled = False

    def set(self, value: T) -> None:
        self.value = value
        self.filled = True

    def __repr__(self) -> str:
        name = getattr(self.shape, "__name__", repr(self.shape))
        return f"Result({name}, filled={self.filled})"


def parse_content_type(header: Optional[str]) -> str:
    """Strip parameters (from the first ``;``) and normalise a content type."""
    if not header:
        return ""
    return header.split(";", 1)[0].strip().lower()


def parse_charset(header: Optional[str]) -> Optional[str]:
    """Return the ``charset`` parameter of a content type header, if any."""
    if not header:
        return None
    for param in header.split(";")[1:]:
        name, _, value = param.partition("=")
        if name.strip().lower() == "charset" and value.strip():
            return value.strip().strip('"')
    return None


def resolve_content_type(header: Optional[str], configured: str) -> str:
    """Prefer the response's declared content type, else the configured one."""
    declared = parse_content_type(header)
    return declared or parse_content_type(configured)


def encode(content_type: str, value: object, charset: Optional[str] = None) -> Optional[bytes]:
    """Encode a request value for transmission.

    Args:
        content_type: Configured content type; parameters are ignored.
        value: Application value, raw text, or raw bytes.
        charset: Charset for raw text; defaults to UTF-8.

    Returns:
        Encoded bytes, or ``None`` when ``value`` is ``None``.

    Raises:
        InvalidTypeError: If the value cannot be serialised for the type,
            or a text/HTML type receives a structured value.
        NotSupportedError: If the content type or value shape is unsupported.
    """
    if value is None:
        return None

    kind = classify_payload(value)
    if kind is PayloadKind.TEXT:
        return value.encode(charset or DEFAULT_CHARSET)  # type: ignore[union-attr]
    if kind is PayloadKind.BYTES:
        return bytes(value)  # type: ignore[arg-type]

    media = parse_content_type(content_type)
    if media == TYPE_JSON:
        try:
            return pydantic_core.to_json(value)
        except pydantic_core.PydanticSerializationError as exc:
            raise InvalidTypeError(f"cannot JSON-encode {type(value).__name__}") from exc
    if media == TYPE_XML:
        return xmltree.dumps(value, charset or DEFAULT_CHARSET)
    if media == TYPE_FORM:
        return forms.encode_form(forms.to_form_values(value)).encode("ascii")
    if media in (TYPE_HTML, TYPE_TEXT):
        raise InvalidTypeError(f"{media} bodies must be str or bytes")
    raise NotSupportedError(f"content type {content_type!r} is not supported")


def decode(
    content_type: str,
    data: bytes,
    target: object,
    charset: Optional[str] = None,
) -> None:
    """Decode a response body into ``target``.

    Args:
        content_type: Negotiated content type; parameters are ignored.
        data: Raw response body.
        target: :class:`Result` holder or mutable mapping; ``None`` skips decoding.
        charset: Charset for text destinations; defaults to UTF-8.

    Raises:
        NoDataError: If ``data`` is empty.
        InvalidTypeError: If ``target`` is not a usable destination.
        NotSupportedError: If the content type or destination shape is unsupported.
        DecodeError: If ``data`` is malformed or fails validation.
    """
    if target is None:
        return
    if not data:
        raise NoDataError()
    if not isinstance(target, (Result, MutableMapping)):
        raise InvalidTypeError(f"cannot decode into {type(target).__name__}; pass a Result")

    if isinstance(target, Result):
        if target.shape is str:
            try:
                target.set(data.decode(charset or DEFAULT_CHARSET))
            except (UnicodeDecodeError, LookupError) as exc:
                raise DecodeError(f"cannot decode body as {charset or DEFAULT_CHARSET}") from exc
            return
        if target.shape is bytes:
            target.set(data)
            return

    media = parse_content_type(content_type)
    if media == TYPE_JSON:
        _decode_json(data, target)
    elif media == TYPE_XML:
        _decode_xml(data, target)
    elif media == TYPE_FORM:
        _decode_form(data, target, charset)
    else:
        raise NotSupportedError(f"content type {content_type!r} is not supported")


def _validate(shape: Any, value: object) -> object:
    try:
        return TypeAdapter(shape).validate_python(value)
    except PydanticValidationError as exc:
        raise DecodeError(f"body does not match {getattr(shape, '__name__', shape)}") from exc


def _is_mapping_shape(shape: Any) -> bool:
    return shape in (Any, dict, Mapping) or typing.get_origin(shape) in (dict, Mapping)


def _update_mapping(target: MutableMapping, decoded: object) -> None:
    if not isinstance(decoded, Mapping):
        raise InvalidTypeError(f"cannot merge {type(decoded).__name__} into a mapping")
    target.update(decoded)


def _decode_json(data: bytes, target: object) -> None:
    if isinstance(target, Result):
        try:
            target.set(TypeAdapter(target.shape).validate_json(data))
        except PydanticValidationError as exc:
            raise DecodeError("malformed or mismatched JSON body") from exc
        return
    try:
        decoded = pydantic_core.from_json(data)
    except ValueError as exc:
        raise DecodeError("malformed JSON body") from exc
    _update_mapping(target, decoded)  # type: ignore[arg-type]


def _decode_xml(data: bytes, target: object) -> None:
    tree = xmltree.loads(data)
    if not isinstance(target, Result):
        _update_mapping(target, tree)  # type: ignore[arg-type]
        return
    shape = target.shape
    if _is_mapping_shape(shape):
        target.set(_validate(shape, tree))
        return
    # Typed destinations describe the root element, not the document.
    (content,) = tree.values()
    if isinstance(shape, type) and issubclass(shape, BaseModel):
        content = xmltree.align_to_model(content, shape)
    target.set(_validate(shape, content))


def _decode_form(data: bytes, target: object, charset: Optional[str]) -> None:
    try:
        params = forms.parse_form(data.decode(charset or DEFAULT_CHARSET))
    except (UnicodeDecodeError, LookupError) as exc:
        raise DecodeError("cannot decode form body") from exc
    if not isinstance(target, Result):
        target.update(forms.first_values(params))  # type: ignore[union-attr]
        return
    shape = target.shape
    if shape is httpx.QueryParams:
        target.set(params)
    elif _is_mapping_shape(shape):
        target.set(forms.first_values(params))
    else:
        raise NotSupportedError(f"cannot decode a form body into {shape!r}")
