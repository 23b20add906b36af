"""
Scheduled price change schemas.
"""

from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict, Any, Literal

ScheduleStatus = Literal["PENDING", "RUNNING", "DONE", "FAILED"]


class ScheduleRecord(BaseModel):
    """Persisted deferred price change."""
    id: str
    shop: str
    created_at: datetime
    run_at: datetime
    revert_at: Optional[datetime] = None
    status: ScheduleStatus = "PENDING"
    error: Optional[str] = None
    payload: Dict[str, Any] = Field(default_factory=dict)
    revert_status: Optional[ScheduleStatus] = None
    revert_error: Optional[str] = None
    updated_at: Optional[datetime] = None

    @property
    def items(self) -> List[Any]:
        items = self.payload.get("items")
        return items if isinstance(items, list) else []


class ScheduleSummary(BaseModel):
    """Lightweight schedule view: counts instead of the full payload."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    created_at: datetime
    run_at: datetime
    revert_at: Optional[datetime] = None
    status: ScheduleStatus
    error: Optional[str] = None
    item_count: int = 0
    product_count: int = 0
    change_mode: Optional[str] = None
    revert_status: Optional[ScheduleStatus] = None

    @classmethod
    def from_record(cls, record: ScheduleRecord) -> "ScheduleSummary":
        payload = record.payload or {}
        product_ids = payload.get("productIds")
        schedule = payload.get("schedule")
        return cls(
            id=record.id,
            created_at=record.created_at,
            run_at=record.run_at,
            revert_at=record.revert_at,
            status=record.status,
            error=record.error,
            item_count=len(record.items),
            product_count=len(product_ids) if isinstance(product_ids, list) else 0,
            change_mode=schedule.get("changeMode") if isinstance(schedule, dict) else None,
            revert_status=record.revert_status,
        )


class ScheduleCreateResponse(BaseModel):
    """Schedule creation response."""
    ok: bool = True
    id: str


class ScheduleOutcome(BaseModel):
    """Result of applying (or reverting) one schedule."""
    id: str
    ok: bool
    error: Optional[str] = None


class ScheduleRunResponse(BaseModel):
    """Runner pass response."""
    ok: bool = True
    now: str
    processed: List[ScheduleOutcome] = Field(default_factory=list)
    reverted: List[ScheduleOutcome] = Field(default_factory=list)


class ScheduleListResponse(BaseModel):
    """Schedule listing response."""
    ok: bool = True
    schedules: List[ScheduleSummary] = Field(default_factory=list)


class ScheduleDetailResponse(BaseModel):
    """Single schedule response."""
    ok: bool = True
    schedule: ScheduleRecord
