"""URL-encoded form values.

The form codec works over a well-typed ordered mapping of field name to a
list of string values.  :func:`to_form_values` is the explicit adapter from
caller-friendly shapes (query params, flat mappings of scalars or scalar
sequences) into that mapping; anything it cannot represent, such as nested
mappings, raises :class:`NotSupportedError` instead of being dropped.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Dict, List, Union

import httpx

from .errors import NotSupportedError

__all__ = ["FormValues", "to_form_values", "encode_form", "parse_form", "first_values"]

FormValues = Dict[str, List[str]]

_SCALARS = (str, bool, int, float, Decimal)
FormScalar = Union[str, bool, int, float, Decimal]


def _stringify(value: FormScalar) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def to_form_values(value: object) -> FormValues:
    """Adapt ``value`` into ordered form values.

    Args:
        value: ``httpx.QueryParams`` or a mapping of field name to a scalar or
            a sequence of scalars.  ``None`` values are skipped.

    Returns:
        Ordered mapping of field name to string values.

    Raises:
        NotSupportedError: If ``value`` is not a mapping or holds a nested
            mapping or other non-scalar value.
    """
    if isinstance(value, httpx.QueryParams):
        values: FormValues = {}
        for key, item in value.multi_items():
            values.setdefault(key, []).append(item)
        return values
    if not isinstance(value, Mapping):
        raise NotSupportedError(f"cannot form-encode {type(value).__name__}")

    values = {}
    for key, item in value.items():
        if item is None:
            continue
        if isinstance(item, _SCALARS):
            values.setdefault(str(key), []).append(_stringify(item))
        elif isinstance(item, Sequence) and not isinstance(item, (bytes, bytearray)):
            bucket = values.setdefault(str(key), [])
            for element in item:
                if not isinstance(element, _SCALARS):
                    raise NotSupportedError(
                        f"form field {key!r} holds unsupported {type(element).__name__}"
                    )
                bucket.append(_stringify(element))
        else:
            raise NotSupportedError(f"form field {key!r} holds unsupported {type(item).__name__}")
    return values


def encode_form(values: FormValues) -> str:
    """Percent-encode ``values`` as ``key=value&...`` keeping insertion order."""
    return str(httpx.QueryParams([(key, item) for key, items in values.items() for item in items]))


def parse_form(text: str) -> httpx.QueryParams:
    """Parse a URL-encoded body keeping every pair, including blank values."""
    return httpx.QueryParams(text)


def first_values(params: httpx.QueryParams) -> Dict[str, str]:
    """Collapse ``params`` to one value per key; the first occurrence wins."""
    collapsed: Dict[str, str] = {}
    for key, item in params.multi_items():
        collapsed.setdefault(key, item)
    return collapsed
