"""Structured XML marshalling on top of :mod:`xml.etree.ElementTree`.

Values map onto elements as follows: mapping keys and model fields become
child elements, sequences become repeated elements with the same tag,
scalars become element text, and ``None`` is omitted.  Attributes are read
back as ``@name`` keys.  A pydantic model or dataclass uses its class name as
the root tag; a mapping must have exactly one key, which becomes the root tag.
"""

from __future__ import annotations

import dataclasses
import typing
import xml.etree.ElementTree as ET
from collections.abc import Mapping, Sequence
from typing import Any, Dict, Tuple

from pydantic import BaseModel

from .errors import DecodeError, InvalidTypeError

__all__ = ["dumps", "loads", "align_to_model"]

_SEQUENCE_ORIGINS = (list, tuple, set, frozenset, Sequence)


def _root_of(value: object) -> Tuple[str, object]:
    if isinstance(value, BaseModel):
        return type(value).__name__, value.model_dump(mode="json", exclude_none=True)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return type(value).__name__, dataclasses.asdict(value)
    if isinstance(value, Mapping):
        if len(value) != 1:
            raise InvalidTypeError("XML mapping payload needs exactly one root key")
        ((tag, content),) = value.items()
        return str(tag), content
    raise InvalidTypeError(f"cannot XML-encode {type(value).__name__}")


def _text(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _fill(element: ET.Element, content: object) -> None:
    if isinstance(content, BaseModel):
        content = content.model_dump(mode="json", exclude_none=True)
    elif dataclasses.is_dataclass(content) and not isinstance(content, type):
        content = dataclasses.asdict(content)
    if isinstance(content, Mapping):
        for key, item in content.items():
            key = str(key)
            if key.startswith("@"):
                element.set(key[1:], _text(item))
                continue
            items = item if _is_sequence(item) else [item]
            for entry in items:
                if entry is None:
                    continue
                _fill(ET.SubElement(element, key), entry)
    elif content is not None:
        element.text = _text(content)


def _is_sequence(value: object) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def dumps(value: object, charset: str = "utf-8") -> bytes:
    """Serialise ``value`` into XML bytes without a declaration."""
    tag, content = _root_of(value)
    root = ET.Element(tag)
    _fill(root, content)
    return ET.tostring(root, encoding="unicode").encode(charset)


def _to_python(element: ET.Element) -> object:
    children = list(element)
    if not children and not element.attrib:
        return element.text or ""
    result: Dict[str, Any] = {f"@{name}": value for name, value in element.attrib.items()}
    for child in children:
        value = _to_python(child)
        if child.tag in result:
            existing = result[child.tag]
            if isinstance(existing, list):
                existing.append(value)
            else:
                result[child.tag] = [existing, value]
        else:
            result[child.tag] = value
    if not children and element.text and element.text.strip():
        result["#text"] = element.text
    return result


def loads(data: bytes) -> Dict[str, object]:
    """Parse XML bytes into ``{root_tag: content}``.

    Raises:
        DecodeError: If ``data`` is not well-formed XML.
    """
    try:
        root = ET.fromstring(data)
    except ET.ParseError as exc:
        raise DecodeError(f"malformed XML body: {exc}") from exc
    return {root.tag: _to_python(root)}


def align_to_model(content: object, model: type[BaseModel]) -> object:
    """Promote single children to lists where ``model`` declares a sequence field.

    XML cannot tell a one-element list from a scalar, so the decoded tree is
    reshaped using the model's field annotations before validation.
    """
    if not isinstance(content, dict):
        return content
    aligned = dict(content)
    for name, field in model.model_fields.items():
        key = field.alias or name
        if key not in aligned:
            continue
        annotation = field.annotation
        origin = typing.get_origin(annotation)
        value = aligned[key]
        if origin in _SEQUENCE_ORIGINS and not isinstance(value, list):
            value = [value]
        if origin in _SEQUENCE_ORIGINS:
            args = typing.get_args(annotation)
            inner = args[0] if args else None
            if isinstance(inner, type) and issubclass(inner, BaseModel):
                value = [align_to_model(item, inner) for item in value]
        elif isinstance(annotation, type) and issubclass(annotation, BaseModel):
            value = align_to_model(value, annotation)
        aligned[key] = value
    return aligned
