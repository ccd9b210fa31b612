"""FastAPI dependency injection."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request

from recentview.client import RecentViewClient


async def get_client(request: Request) -> RecentViewClient:
    """Get the recentview client from app state."""
    client = getattr(request.app.state, "client", None)
    if client is None:
        raise HTTPException(status_code=503, detail="Client not initialized")
    return client


# Type alias for cleaner dependency injection
RecentView = Annotated[RecentViewClient, Depends(get_client)]
