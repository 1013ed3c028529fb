from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.encoders import jsonable_encoder

from backend.auth import require_user
from backend.clock import local_today
from backend.schemas import ExpenseCreate
from backend.services.analytics import expenses_by_category
from backend import repositories

router = APIRouter()


@router.post("/v1/expenses")
async def add_expense(payload: ExpenseCreate, user: dict = Depends(require_user)):
    data = payload.model_dump()
    data["date"] = (payload.date or local_today()).isoformat()
    try:
        record = await repositories.add_expense(user["id"], data)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return jsonable_encoder(record)


@router.get("/v1/expenses")
async def list_expenses(
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    user: dict = Depends(require_user),
):
    end_day = end or local_today()
    start_day = start or end_day - timedelta(days=30)
    items = await repositories.list_expenses(user["id"], start_day.isoformat(), end_day.isoformat())
    return {
        "items": jsonable_encoder(items),
        "total": round(sum(float(item["amount"]) for item in items), 2),
        "by_category": expenses_by_category(items),
    }
