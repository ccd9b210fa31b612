"""Request schemas for API endpoints."""

from __future__ import annotations

from typing import Annotated

from pydantic import Field, field_validator

from recentview.api.schemas.base import APIBaseSchema
from recentview.core.identifiers import normalize_identifier
from recentview.history.store import MAX_CAPACITY, MIN_CAPACITY


class TrackRequest(APIBaseSchema):
    """Record that a product was viewed."""

    identifier: Annotated[
        str,
        Field(
            min_length=1,
            max_length=200,
            description="Product identifier (numeric id or global id)",
        ),
    ]

    @field_validator("identifier", mode="before")
    @classmethod
    def normalize(cls, v: object) -> str:
        return normalize_identifier(v)


class CapacityRequest(APIBaseSchema):
    """Change how many identifiers are remembered."""

    capacity: Annotated[
        int,
        Field(
            description=f"Maximum identifiers kept; clamped to [{MIN_CAPACITY}, {MAX_CAPACITY}]",
        ),
    ]


class ResolveRequest(APIBaseSchema):
    """Resolve an explicit identifier list."""

    identifiers: Annotated[
        list[str | int],
        Field(
            min_length=1,
            max_length=MAX_CAPACITY,
            description="Identifiers, most relevant first",
        ),
    ]

    capacity: Annotated[
        int | None,
        Field(
            default=None,
            description="Resolve only the first N identifiers.",
        ),
    ]
