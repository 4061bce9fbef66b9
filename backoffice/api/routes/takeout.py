"""Takeout numbering and takeout order endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from backoffice.api.dependencies import get_backoffice_dao, get_sequence_counter
from backoffice.schemas import TakeoutIdResponse, TakeoutOrderCreate, TakeoutOrderRecord
from backoffice.services.backoffice_dao import SupabaseBackofficeDAO
from backoffice.services.counters import (
    InvalidScope,
    SequenceCounter,
    SequenceUnavailable,
    resolve_partition,
)
from backoffice.services.orders_service import create_takeout_order

router = APIRouter(prefix="/api/restaurants/{restaurant_id}", tags=["Takeout"])


@router.post("/takeout-ids", response_model=TakeoutIdResponse)
async def issue_takeout_id(
    restaurant_id: str,
    partition: str = Query(default="prod"),
    counter: SequenceCounter = Depends(get_sequence_counter),
) -> TakeoutIdResponse:
    try:
        resolved = resolve_partition(partition)
        takeout_id = await counter.next_sequence_id(restaurant_id, resolved)
    except InvalidScope as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except SequenceUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    return TakeoutIdResponse(takeout_id=takeout_id, restaurant_id=restaurant_id, partition=resolved.value)


@router.post("/takeout-orders", response_model=TakeoutOrderRecord, status_code=201)
async def create_takeout_order_endpoint(
    restaurant_id: str,
    payload: TakeoutOrderCreate,
    partition: str = Query(default="prod"),
    counter: SequenceCounter = Depends(get_sequence_counter),
    dao: SupabaseBackofficeDAO = Depends(get_backoffice_dao),
) -> TakeoutOrderRecord:
    try:
        return await create_takeout_order(counter, dao, restaurant_id, partition, payload)
    except InvalidScope as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except SequenceUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
