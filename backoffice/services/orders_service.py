"""Takeout order creation."""

from __future__ import annotations

import logging
from typing import Any, Dict, Protocol

from backoffice.schemas import TakeoutOrderCreate, TakeoutOrderRecord
from backoffice.services.counters import SequenceCounter, resolve_partition

logger = logging.getLogger(__name__)


class TakeoutOrderWriter(Protocol):
    async def insert_takeout_order(self, body: Dict[str, Any]) -> Dict[str, Any]:
        ...


async def create_takeout_order(
    counter: SequenceCounter,
    dao: TakeoutOrderWriter,
    restaurant_id: str,
    partition: str,
    payload: TakeoutOrderCreate,
) -> TakeoutOrderRecord:
    """Reserve today's takeout number and persist a pending order carrying it.

    ``InvalidScope`` and ``SequenceUnavailable`` propagate unchanged: without a
    number no order is written.
    """

    resolved_partition = resolve_partition(partition)
    takeout_id = await counter.next_sequence_id(restaurant_id, resolved_partition)

    items = [item.model_dump(exclude_none=True) for item in payload.items]
    subtotal = round(sum(item.price * item.quantity for item in payload.items), 2)
    body = {
        "restaurant_id": str(restaurant_id),
        "partition": resolved_partition.value,
        "takeout_id": takeout_id,
        "customer_name": payload.customer_name,
        "customer_phone": payload.customer_phone,
        "notes": payload.notes,
        "status": "pending",
        "type": "takeout",
        "items": items,
        "subtotal": subtotal,
    }

    record = await dao.insert_takeout_order(body)
    logger.info("Takeout order %s created for restaurant %s", takeout_id, restaurant_id)
    return TakeoutOrderRecord.model_validate({**body, **record})


__all__ = ["create_takeout_order", "TakeoutOrderWriter"]
