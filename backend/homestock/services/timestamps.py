# Overview: Timestamp interceptor; stamps item instances on every update.

"""
Timestamp Interceptor

ItemInstance.updated_at is owned by the server. A before_update listener
overwrites it with the current time on every flushed update, whatever the
caller assigned, so recency cannot be forged through any write path.
"""

from __future__ import annotations

from sqlalchemy import event

from ..models import ItemInstance
from ..time_utils import utcnow


@event.listens_for(ItemInstance, "before_update")
def stamp_item_instance(mapper, connection, target: ItemInstance) -> None:
    target.updated_at = utcnow()

