"""Resolution and cache maintenance endpoints."""

from __future__ import annotations

import time

from fastapi import APIRouter

from recentview.api.dependencies import RecentView
from recentview.api.schemas import RecordResponse, RecordsResponse, ResolveRequest

router = APIRouter(tags=["resolve"])


@router.post(
    "/resolve",
    response_model=RecordsResponse,
    operation_id="resolveIdentifiers",
    summary="Resolve an identifier list",
    description="Resolve identifiers into records, preserving request order.",
)
async def resolve_identifiers(request: ResolveRequest, client: RecentView) -> RecordsResponse:
    start = time.monotonic()
    records = await client.resolve(request.identifiers, capacity=request.capacity)

    return RecordsResponse(
        records=[RecordResponse.from_record(r) for r in records],
        requested=len(request.identifiers),
        resolved=len(records),
        duration_ms=(time.monotonic() - start) * 1000,
    )


@router.delete(
    "/cache",
    operation_id="clearCaches",
    summary="Clear all cache tiers",
)
async def clear_caches(client: RecentView) -> dict[str, bool]:
    await client.clear_caches()
    return {"cleared": True}
