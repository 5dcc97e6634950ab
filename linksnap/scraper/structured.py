"""Structured data (JSON-LD) helpers."""

from __future__ import annotations

import json
from typing import Any, Iterator, List, Optional

from bs4 import BeautifulSoup


def json_ld_items(soup: BeautifulSoup) -> List[dict[str, Any]]:
    """Return every JSON-LD object on the page, flattened.

    Top-level arrays and ``@graph`` containers are unrolled so callers can
    treat the result as a flat list of entities.  Blocks that fail to parse
    are skipped.
    """
    items: List[dict[str, Any]] = []
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        raw = script.string or script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            data = json.loads(raw)
        except ValueError:
            continue
        items.extend(_flatten(data))
    return items


def _flatten(data: Any) -> Iterator[dict[str, Any]]:
    if isinstance(data, list):
        for entry in data:
            yield from _flatten(entry)
    elif isinstance(data, dict):
        yield data
        graph = data.get("@graph")
        if isinstance(graph, list):
            for entry in graph:
                yield from _flatten(entry)


def has_type(item: dict[str, Any], type_name: str) -> bool:
    """``@type`` may be a string or a list of strings."""
    declared = item.get("@type")
    if isinstance(declared, list):
        return type_name in declared
    return declared == type_name


def first_string(value: Any) -> Optional[str]:
    """Coerce a JSON-LD value (string, list, or ``{"url": ...}``) to a string."""
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, list):
        for entry in value:
            found = first_string(entry)
            if found:
                return found
        return None
    if isinstance(value, dict):
        return first_string(value.get("url") or value.get("contentUrl"))
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def product_offer(items: List[dict[str, Any]]) -> tuple[Optional[str], Optional[str]]:
    """Return ``(price, currency)`` from the first ``Product`` with offers."""
    for item in items:
        if not has_type(item, "Product"):
            continue
        offers = item.get("offers")
        if isinstance(offers, list):
            offers = offers[0] if offers else None
        if not isinstance(offers, dict):
            continue
        price = offers.get("price", offers.get("lowPrice"))
        if price in (None, ""):
            continue
        currency = offers.get("priceCurrency")
        return str(price), (str(currency) if currency else None)
    return None, None
