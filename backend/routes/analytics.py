from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from backend.auth import require_user
from backend.services import analytics

router = APIRouter()


@router.get("/v1/analytics")
async def analytics_view(
    range: str = Query("week", pattern="^(week|month|quarter)$"),
    user: dict = Depends(require_user),
):
    return await analytics.load_analytics(user["id"], range)
