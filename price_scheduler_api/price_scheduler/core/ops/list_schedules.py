"""
List scheduled price changes operation.
"""

from typing import List, Optional

from price_scheduler.core.schedule_store import ScheduleStore, clamp_limit
from price_scheduler.schemas.schedules import ScheduleSummary


async def list_schedules(
    store: ScheduleStore,
    shop: str,
    limit: int = 20,
    status: Optional[str] = None
) -> List[ScheduleSummary]:
    """Newest-first schedule summaries of a shop, optionally filtered by status."""
    records = await store.list(shop, limit=clamp_limit(limit), status=status)
    return [ScheduleSummary.from_record(record) for record in records]
