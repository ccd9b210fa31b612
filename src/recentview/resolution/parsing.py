"""Defensive parsing of storefront product payloads."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from recentview.core.exceptions import ParseError
from recentview.core.identifiers import handle_from_url, normalize_identifier, strip_query
from recentview.core.models import ProductOption, ResolvedRecord, Variant
from recentview.core.types import Availability


@dataclass(frozen=True)
class ProductFragment:
    """Whatever a payload told us about one identifier, complete or not."""

    identifier: str
    handle: str | None = None
    url: str | None = None
    title: str | None = None
    availability: Availability = Availability.UNKNOWN
    variants: tuple[Variant, ...] = field(default_factory=tuple)
    options: tuple[ProductOption, ...] = field(default_factory=tuple)
    featured_image: str | None = None

    @property
    def is_complete(self) -> bool:
        """Has the nested variant structure needed for a full record."""
        return self.handle is not None and len(self.variants) > 0

    def merge(self, other: ProductFragment | None) -> ProductFragment:
        """Fill gaps in this fragment with fields from ``other``."""
        if other is None:
            return self
        return replace(
            self,
            handle=other.handle or self.handle,
            url=other.url or self.url,
            title=other.title or self.title,
            availability=(
                other.availability
                if other.availability != Availability.UNKNOWN
                else self.availability
            ),
            variants=other.variants or self.variants,
            options=other.options or self.options,
            featured_image=other.featured_image or self.featured_image,
        )

    def to_record(self) -> ResolvedRecord | None:
        """Full record, or None if no handle is known."""
        if self.handle is None:
            return None
        return ResolvedRecord(
            identifier=self.identifier,
            handle=self.handle,
            url=self.url or f"/products/{self.handle}",
            title=self.title,
            availability=self.availability,
            variants=list(self.variants),
            options=list(self.options),
            featured_image=self.featured_image,
        )

    def to_degraded(self) -> ResolvedRecord | None:
        """Display-only record: handle plus inferred availability."""
        if self.handle is None:
            return None
        return ResolvedRecord(
            identifier=self.identifier,
            handle=self.handle,
            url=self.url or f"/products/{self.handle}",
            title=self.title,
            availability=self.availability,
            featured_image=self.featured_image,
        )


def locate_products(payload: Any) -> list[dict[str, Any]]:
    """
    Find product entries in a payload of loosely guaranteed shape.

    Understands predictive search (``resources.results.products``), list
    endpoints (``products``), single product wrappers (``product``), bare
    product objects and top-level lists.

    Raises:
        ParseError: If the payload is not a recognizable product container.
    """
    if payload is None:
        return []

    if isinstance(payload, list):
        candidates: Any = payload
    elif isinstance(payload, dict):
        resources = payload.get("resources")
        results = resources.get("results") if isinstance(resources, dict) else None
        if isinstance(results, dict) and "products" in results:
            candidates = results.get("products")
        elif "products" in payload:
            candidates = payload.get("products")
        elif isinstance(payload.get("product"), dict):
            candidates = [payload["product"]]
        elif "id" in payload:
            candidates = [payload]
        else:
            raise ParseError(
                "Payload contains no product container",
                details={"keys": sorted(payload)[:10]},
            )
    else:
        raise ParseError(f"Unexpected payload type: {type(payload).__name__}")

    if not isinstance(candidates, list):
        raise ParseError("Product container is not a list")

    return [c for c in candidates if isinstance(c, dict)]


def parse_product(entry: dict[str, Any]) -> ProductFragment | None:
    """
    Parse one product entry, keyed by its explicit ``id``.

    Returns None when the entry carries no usable id, since it could not
    be correlated to a requested identifier.
    """
    try:
        identifier = normalize_identifier(entry.get("id", entry.get("product_id")))
    except ValueError:
        return None

    url = strip_query(_str(entry.get("url")))
    handle = _str(entry.get("handle")) or handle_from_url(url)
    variants = tuple(_parse_variants(entry.get("variants")))

    return ProductFragment(
        identifier=identifier,
        handle=handle,
        url=url,
        title=_str(entry.get("title")),
        availability=_availability(entry.get("available"), variants),
        variants=variants,
        options=tuple(_parse_options(entry.get("options"))),
        featured_image=_image_url(entry),
    )


def index_fragments(
    payload: Any,
    wanted: set[str] | None = None,
) -> dict[str, ProductFragment]:
    """
    Map identifier -> fragment for every correlatable entry in ``payload``.

    Entries are matched by the id they carry, never by position. The first
    entry seen for an identifier wins.
    """
    fragments: dict[str, ProductFragment] = {}
    for entry in locate_products(payload):
        fragment = parse_product(entry)
        if fragment is None:
            continue
        if wanted is not None and fragment.identifier not in wanted:
            continue
        fragments.setdefault(fragment.identifier, fragment)
    return fragments


def _parse_variants(raw: Any) -> list[Variant]:
    if not isinstance(raw, list):
        return []

    variants = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        try:
            variant_id = normalize_identifier(item.get("id"))
        except ValueError:
            continue
        quantity_rule = item.get("quantity_rule")
        quantity_min = quantity_rule.get("min") if isinstance(quantity_rule, dict) else None
        variants.append(
            Variant(
                id=variant_id,
                title=_str(item.get("title")),
                available=item.get("available") is not False,
                price=_price(item.get("price")),
                url=_str(item.get("url")),
                quantity_min=quantity_min if isinstance(quantity_min, int) and quantity_min > 0 else 1,
            )
        )
    return variants


def _parse_options(raw: Any) -> list[ProductOption]:
    if not isinstance(raw, list):
        return []

    options = []
    for position, item in enumerate(raw, start=1):
        # product.js gives objects; product.json sometimes gives bare names
        if isinstance(item, str):
            options.append(ProductOption(name=item, position=position))
        elif isinstance(item, dict) and (name := _str(item.get("name"))):
            values = item.get("values")
            options.append(
                ProductOption(
                    name=name,
                    position=item.get("position") if isinstance(item.get("position"), int) else position,
                    values=[str(v) for v in values] if isinstance(values, list) else [],
                )
            )
    return options


def _availability(flag: Any, variants: tuple[Variant, ...]) -> Availability:
    if flag is True:
        return Availability.AVAILABLE
    if flag is False:
        return Availability.SOLD_OUT
    if variants:
        return (
            Availability.AVAILABLE
            if any(v.available for v in variants)
            else Availability.SOLD_OUT
        )
    return Availability.UNKNOWN


def _price(value: Any) -> int | None:
    """Prices come as minor units (product.js) or decimal strings (search)."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            if "." in value:
                return round(float(value) * 100)
            return int(value)
        except ValueError:
            return None
    return None


def _image_url(entry: dict[str, Any]) -> str | None:
    for key in ("featured_image", "image"):
        value = entry.get(key)
        if isinstance(value, str) and value:
            return value
        if isinstance(value, dict):
            url = _str(value.get("url")) or _str(value.get("src"))
            if url:
                return url

    images = entry.get("images")
    if isinstance(images, list) and images:
        first = images[0]
        if isinstance(first, str):
            return first or None
        if isinstance(first, dict):
            return _str(first.get("src")) or _str(first.get("url"))
    return None


def _str(value: Any) -> str | None:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return None
