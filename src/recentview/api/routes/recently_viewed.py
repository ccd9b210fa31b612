"""Recently viewed endpoints consumed by the storefront renderer."""

from __future__ import annotations

import time

from fastapi import APIRouter

from recentview.api.dependencies import RecentView
from recentview.api.schemas import (
    CapacityRequest,
    IdentifiersResponse,
    RecordResponse,
    RecordsResponse,
    TrackRequest,
)

router = APIRouter(prefix="/recently-viewed", tags=["recently-viewed"])


async def _identifiers_response(client: RecentView) -> IdentifiersResponse:
    return IdentifiersResponse(
        identifiers=list(await client.identifiers()),
        capacity=await client.capacity(),
    )


@router.get(
    "",
    response_model=RecordsResponse,
    operation_id="getRecentlyViewed",
    summary="Resolve recently viewed products",
    description=(
        "Resolve the stored identifiers into product records, most recent first. "
        "Identifiers that cannot be resolved are omitted."
    ),
)
async def get_recently_viewed(client: RecentView) -> RecordsResponse:
    start = time.monotonic()
    identifiers = await client.identifiers()
    records = await client.recently_viewed()

    return RecordsResponse(
        records=[RecordResponse.from_record(r) for r in records],
        requested=len(identifiers),
        resolved=len(records),
        duration_ms=(time.monotonic() - start) * 1000,
    )


@router.post(
    "",
    response_model=IdentifiersResponse,
    operation_id="trackView",
    summary="Record a product view",
)
async def track_view(request: TrackRequest, client: RecentView) -> IdentifiersResponse:
    await client.track(request.identifier)
    return await _identifiers_response(client)


@router.get(
    "/identifiers",
    response_model=IdentifiersResponse,
    operation_id="getViewedIdentifiers",
    summary="List stored identifiers",
)
async def get_identifiers(client: RecentView) -> IdentifiersResponse:
    return await _identifiers_response(client)


@router.delete(
    "",
    response_model=IdentifiersResponse,
    operation_id="clearRecentlyViewed",
    summary="Forget all viewed products",
)
async def clear_recently_viewed(client: RecentView) -> IdentifiersResponse:
    await client.clear()
    return await _identifiers_response(client)


@router.put(
    "/capacity",
    response_model=IdentifiersResponse,
    operation_id="setCapacity",
    summary="Change how many products are remembered",
)
async def set_capacity(request: CapacityRequest, client: RecentView) -> IdentifiersResponse:
    await client.set_capacity(request.capacity)
    return await _identifiers_response(client)
