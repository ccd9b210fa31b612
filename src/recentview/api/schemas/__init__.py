"""API request and response schemas."""

from recentview.api.schemas.base import APIBaseSchema
from recentview.api.schemas.requests import CapacityRequest, ResolveRequest, TrackRequest
from recentview.api.schemas.responses import (
    HealthResponse,
    IdentifiersResponse,
    OptionResponse,
    RecordResponse,
    RecordsResponse,
    VariantResponse,
)

__all__ = [
    # Base
    "APIBaseSchema",
    # Requests
    "CapacityRequest",
    "ResolveRequest",
    "TrackRequest",
    # Responses
    "HealthResponse",
    "IdentifiersResponse",
    "OptionResponse",
    "RecordResponse",
    "RecordsResponse",
    "VariantResponse",
]
