"""Domain models for resolved product records."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .types import Availability


class Variant(BaseModel):
    """A purchasable variant of a product."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Variant identifier")
    title: str | None = Field(default=None, description="Variant title, e.g. 'Red / M'")
    available: bool = Field(default=True, description="Whether the variant can be bought")
    price: int | None = Field(default=None, description="Price in minor currency units")
    url: str | None = Field(default=None, description="Variant-specific product URL")
    quantity_min: int = Field(default=1, ge=1, description="Minimum quantity per cart line")


class ProductOption(BaseModel):
    """A product option such as size or colour."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Option name")
    position: int | None = Field(default=None, description="1-based position")
    values: list[str] = Field(default_factory=list, description="Allowed values")


class ResolvedRecord(BaseModel):
    """
    Display/transaction record for one identifier.

    A record without variants is degraded: usable for display and linking,
    never for add-to-cart, and never persisted to the record cache.
    """

    model_config = ConfigDict(frozen=True)

    identifier: str = Field(..., description="Identifier this record was resolved for")
    handle: str = Field(..., description="Product handle (URL slug)")
    url: str = Field(..., description="Product URL path")
    title: str | None = Field(default=None, description="Product title")
    availability: Availability = Field(default=Availability.UNKNOWN)
    variants: list[Variant] = Field(default_factory=list)
    options: list[ProductOption] = Field(default_factory=list)
    featured_image: str | None = Field(default=None, description="Primary image URL")

    @property
    def is_degraded(self) -> bool:
        """Whether the record lacks variant data."""
        return not self.variants

    @property
    def preferred_variant(self) -> Variant | None:
        """First available variant, else the first variant."""
        for variant in self.variants:
            if variant.available:
                return variant
        return self.variants[0] if self.variants else None


def is_complete(record: ResolvedRecord) -> bool:
    """Completeness predicate: a record is cacheable once it has a variant."""
    return len(record.variants) > 0
