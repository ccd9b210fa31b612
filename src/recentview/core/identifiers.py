"""Identifier and handle normalization helpers."""

from __future__ import annotations

import re
from typing import Any

# Admin API ids arrive as "gid://shopify/Product/123"; storefront JSON uses 123.
GID_PATTERN = re.compile(r"^gid://[^/]+/[^/]+/(?P<id>[^/?#]+)$")
PRODUCT_PATH_PATTERN = re.compile(r"/products/(?P<handle>[^/?#]+)")


def normalize_identifier(value: Any) -> str:
    """
    Normalize a product identifier to its canonical string form.

    Integers become their decimal representation, surrounding whitespace is
    stripped and global ids are reduced to their trailing segment.

    Raises:
        ValueError: If the value cannot identify a product.
    """
    if value is None or isinstance(value, bool):
        raise ValueError(f"Invalid identifier: {value!r}")

    if isinstance(value, int):
        return str(value)

    if isinstance(value, float) and value.is_integer():
        return str(int(value))

    if not isinstance(value, str):
        raise ValueError(f"Invalid identifier type: {type(value).__name__}")

    text = value.strip()
    if match := GID_PATTERN.match(text):
        text = match.group("id")

    if not text:
        raise ValueError("Identifier must not be empty")

    return text


def handle_from_url(url: str | None) -> str | None:
    """Extract the product handle from a storefront URL or path."""
    if not url:
        return None
    match = PRODUCT_PATH_PATTERN.search(url)
    return match.group("handle") if match else None


def strip_query(url: str | None) -> str | None:
    """Drop tracking query strings (e.g. ``?_pos=1&_sid=...``) from a URL."""
    if not url:
        return None
    return url.split("?", 1)[0].split("#", 1)[0] or None
