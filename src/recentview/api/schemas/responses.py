"""Response schemas for API endpoints."""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from recentview.api.schemas.base import APIBaseSchema
from recentview.core.models import ResolvedRecord
from recentview.core.types import Availability


class VariantResponse(APIBaseSchema):
    """A purchasable variant."""

    id: str
    title: str | None = None
    available: bool
    price: int | None = None
    url: str | None = None
    quantity_min: int = 1


class OptionResponse(APIBaseSchema):
    """A product option."""

    name: str
    position: int | None = None
    values: list[str] = Field(default_factory=list)


class RecordResponse(APIBaseSchema):
    """A resolved product record."""

    identifier: str
    handle: str
    url: str
    title: str | None = None
    availability: Availability
    degraded: bool
    preferred_variant_id: str | None = None
    variants: list[VariantResponse] = Field(default_factory=list)
    options: list[OptionResponse] = Field(default_factory=list)
    featured_image: str | None = None

    @classmethod
    def from_record(cls, record: ResolvedRecord) -> RecordResponse:
        preferred = record.preferred_variant
        return cls(
            identifier=record.identifier,
            handle=record.handle,
            url=record.url,
            title=record.title,
            availability=record.availability,
            degraded=record.is_degraded,
            preferred_variant_id=preferred.id if preferred else None,
            variants=[VariantResponse(**v.model_dump()) for v in record.variants],
            options=[OptionResponse(**o.model_dump()) for o in record.options],
            featured_image=record.featured_image,
        )


class RecordsResponse(APIBaseSchema):
    """Resolved records in request order."""

    records: list[RecordResponse]
    requested: int
    resolved: int
    duration_ms: float


class IdentifiersResponse(APIBaseSchema):
    """Stored identifiers, most recent first."""

    identifiers: list[str]
    capacity: int


class HealthResponse(APIBaseSchema):
    """Health check response."""

    status: Literal["healthy", "degraded", "unhealthy"]
    version: str
    services: dict[str, Literal["up", "down", "unknown"]] = Field(default_factory=dict)
