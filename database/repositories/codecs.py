"""
The one place where embedded JSON columns are encoded and decoded.

items  -> list[LineItem]
taxes  -> list[TaxLine]

Legacy data used camelCase keys (slNo, hsnSac, discountPercent...); decoding
normalises them so both spellings load.
"""

from __future__ import annotations

import json
import re
from typing import Any, Iterable, Mapping, Optional

from .line_items import LineItem, TaxLine

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


class MalformedBlobError(ValueError):
    """An embedded JSON column could not be turned back into structured data."""
    pass


def camel_to_snake(key: str) -> str:
    """customerGSTIN -> customer_gstin, hsnSac -> hsn_sac, slNo -> sl_no."""
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def normalize_keys(d: Mapping[str, Any]) -> dict[str, Any]:
    return {camel_to_snake(str(k)): v for k, v in d.items()}


def _load_list(text: Optional[str], column: str) -> list[dict]:
    if text is None or text == "":
        return []
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as exc:
        raise MalformedBlobError(f"{column}: not valid JSON ({exc})") from exc
    if data is None:
        return []
    if not isinstance(data, list) or not all(isinstance(x, dict) for x in data):
        raise MalformedBlobError(f"{column}: expected a list of objects")
    return [normalize_keys(x) for x in data]


def encode_items(items: Iterable[LineItem]) -> str:
    return json.dumps([i.to_dict() for i in items], ensure_ascii=False)


def decode_items(text: Optional[str]) -> list[LineItem]:
    try:
        return [LineItem.from_dict(d) for d in _load_list(text, "items")]
    except (TypeError, ValueError, OverflowError) as exc:
        if isinstance(exc, MalformedBlobError):
            raise
        raise MalformedBlobError(f"items: {exc}") from exc


def encode_taxes(taxes: Iterable[TaxLine]) -> str:
    return json.dumps([t.to_dict() for t in taxes], ensure_ascii=False)


def decode_taxes(text: Optional[str]) -> list[TaxLine]:
    try:
        return [TaxLine.from_dict(d) for d in _load_list(text, "taxes")]
    except (TypeError, ValueError, OverflowError) as exc:
        if isinstance(exc, MalformedBlobError):
            raise
        raise MalformedBlobError(f"taxes: {exc}") from exc


def coerce_items(value: Any) -> list[LineItem]:
    """Accept LineItem objects, dicts (either key style) or JSON text."""
    if value is None:
        return []
    if isinstance(value, str):
        return decode_items(value)
    return [v if isinstance(v, LineItem) else LineItem.from_dict(normalize_keys(v)) for v in value]


def coerce_taxes(value: Any) -> list[TaxLine]:
    if value is None:
        return []
    if isinstance(value, str):
        return decode_taxes(value)
    return [v if isinstance(v, TaxLine) else TaxLine.from_dict(normalize_keys(v)) for v in value]
