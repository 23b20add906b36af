"""
Schedule record storage in Redis.

Each record is a hash keyed by shop and id (`{prefix}:{shop}:rec:{id}`), so
every read and write is tenant-scoped. Sorted-set indexes live beside them
(`{prefix}:{shop}:due`, `:revert_due`, `:created`) and serve the due query
(PENDING records scored by run_at), the revert query (pending reverts scored
by revert_at) and the listing (all records scored by created_at).
"""

import json
import uuid
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Callable
import redis.asyncio as aioredis
from redis.exceptions import WatchError

from price_scheduler.core.utils import utcnow, parse_iso_datetime, to_iso
from price_scheduler.schemas.schedules import ScheduleRecord

logger = logging.getLogger(__name__)

STATUS_PENDING = "PENDING"
STATUS_RUNNING = "RUNNING"
STATUS_DONE = "DONE"
STATUS_FAILED = "FAILED"

LIST_LIMIT_MIN = 1
LIST_LIMIT_MAX = 100


def clamp_limit(limit: Any, default: int = 20) -> int:
    """Clamp a listing limit to [1, 100]."""
    try:
        value = int(limit)
    except (TypeError, ValueError):
        value = default
    return min(max(value, LIST_LIMIT_MIN), LIST_LIMIT_MAX)


def _score(value: datetime) -> float:
    return value.astimezone(timezone.utc).timestamp()


class ScheduleStore:
    """Persist and transition schedule records."""

    def __init__(self, redis_client: aioredis.Redis, key_prefix: str = "price_schedule"):
        """
        Initialize schedule store.

        Args:
            redis_client: Redis async client (decode_responses=True)
            key_prefix: Namespace for all schedule keys
        """
        self.redis = redis_client
        self.key_prefix = key_prefix

    def _record_key(self, shop: str, schedule_id: str) -> str:
        return f"{self.key_prefix}:{shop}:rec:{schedule_id}"

    def _due_key(self, shop: str) -> str:
        return f"{self.key_prefix}:{shop}:due"

    def _revert_due_key(self, shop: str) -> str:
        return f"{self.key_prefix}:{shop}:revert_due"

    def _created_key(self, shop: str) -> str:
        return f"{self.key_prefix}:{shop}:created"

    @staticmethod
    def _to_hash(record: ScheduleRecord) -> Dict[str, str]:
        return {
            "id": record.id,
            "shop": record.shop,
            "created_at": to_iso(record.created_at),
            "run_at": to_iso(record.run_at),
            "revert_at": to_iso(record.revert_at) or "",
            "status": record.status,
            "error": record.error or "",
            "payload": json.dumps(record.payload),
            "revert_status": record.revert_status or "",
            "revert_error": record.revert_error or "",
            "updated_at": to_iso(record.updated_at or record.created_at),
        }

    @staticmethod
    def _from_hash(data: Dict[str, str]) -> ScheduleRecord:
        return ScheduleRecord(
            id=data["id"],
            shop=data["shop"],
            created_at=parse_iso_datetime(data.get("created_at")),
            run_at=parse_iso_datetime(data.get("run_at")),
            revert_at=parse_iso_datetime(data.get("revert_at")),
            status=data.get("status") or STATUS_PENDING,
            error=data.get("error") or None,
            payload=json.loads(data.get("payload") or "{}"),
            revert_status=data.get("revert_status") or None,
            revert_error=data.get("revert_error") or None,
            updated_at=parse_iso_datetime(data.get("updated_at")),
        )

    async def create(
        self,
        shop: str,
        run_at: datetime,
        payload: Dict[str, Any],
        revert_at: Optional[datetime] = None
    ) -> ScheduleRecord:
        """
        Insert a new PENDING schedule.

        Args:
            shop: Tenant (shop domain)
            run_at: When the change should apply
            payload: Normalized request body
            revert_at: When to restore original prices (optional)

        Returns:
            The stored record
        """
        now = utcnow()
        record = ScheduleRecord(
            id=str(uuid.uuid4()),
            shop=shop,
            created_at=now,
            run_at=run_at,
            revert_at=revert_at,
            status=STATUS_PENDING,
            payload=payload,
            updated_at=now,
        )

        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.hset(self._record_key(shop, record.id), mapping=self._to_hash(record))
            pipe.zadd(self._due_key(shop), {record.id: _score(run_at)})
            pipe.zadd(self._created_key(shop), {record.id: _score(now)})
            await pipe.execute()

        return record

    async def get(self, shop: str, schedule_id: str) -> Optional[ScheduleRecord]:
        """
        Get a schedule of a shop.

        Returns:
            Record or None if not found for this shop
        """
        data = await self.redis.hgetall(self._record_key(shop, schedule_id))
        if not data or data.get("shop") != shop:
            return None
        return self._from_hash(data)

    async def _load_many(self, shop: str, ids: List[str]) -> List[ScheduleRecord]:
        records = []
        for schedule_id in ids:
            record = await self.get(shop, schedule_id)
            if record is not None:
                records.append(record)
        return records

    async def find_due(self, shop: str, now: datetime, limit: int = 10) -> List[ScheduleRecord]:
        """
        PENDING schedules of a shop with run_at <= now, earliest first.
        """
        ids = await self.redis.zrangebyscore(
            self._due_key(shop), "-inf", _score(now), start=0, num=limit
        )
        records = await self._load_many(shop, ids)
        return [r for r in records if r.status == STATUS_PENDING]

    async def find_due_reverts(self, shop: str, now: datetime, limit: int = 10) -> List[ScheduleRecord]:
        """
        Schedules of a shop whose revert is pending with revert_at <= now.
        """
        ids = await self.redis.zrangebyscore(
            self._revert_due_key(shop), "-inf", _score(now), start=0, num=limit
        )
        records = await self._load_many(shop, ids)
        return [r for r in records if r.revert_status == STATUS_PENDING]

    async def _compare_and_set(
        self,
        shop: str,
        schedule_id: str,
        field: str,
        expected: str,
        updates: Dict[str, str],
        index_ops: Optional[List[Callable[[Any], Any]]] = None
    ) -> bool:
        """
        Apply updates only if `field` currently equals `expected`.

        Uses WATCH/MULTI so a concurrent writer makes the swap fail instead
        of being overwritten.

        Returns:
            True if the record was updated
        """
        key = self._record_key(shop, schedule_id)
        updates = {**updates, "updated_at": to_iso(utcnow())}

        async with self.redis.pipeline(transaction=True) as pipe:
            try:
                await pipe.watch(key)
                current = await pipe.hget(key, field)
                if current != expected:
                    await pipe.unwatch()
                    return False
                pipe.multi()
                pipe.hset(key, mapping=updates)
                for op in index_ops or []:
                    op(pipe)
                await pipe.execute()
                return True
            except WatchError:
                logger.info(f"Schedule {schedule_id} changed concurrently, {field} swap skipped")
                return False

    async def claim(self, shop: str, schedule_id: str) -> bool:
        """
        Move a schedule PENDING -> RUNNING and drop it from the due index.

        Returns:
            True if this caller owns the schedule now
        """
        return await self._compare_and_set(
            shop, schedule_id, "status", STATUS_PENDING,
            {"status": STATUS_RUNNING, "error": ""},
            [lambda pipe: pipe.zrem(self._due_key(shop), schedule_id)]
        )

    async def mark_done(self, shop: str, schedule_id: str, revert_at: Optional[datetime] = None) -> bool:
        """
        Move a schedule RUNNING -> DONE. With revert_at, queue its revert.
        """
        updates = {"status": STATUS_DONE, "error": ""}
        index_ops = []
        if revert_at is not None:
            updates["revert_status"] = STATUS_PENDING
            index_ops.append(
                lambda pipe: pipe.zadd(self._revert_due_key(shop), {schedule_id: _score(revert_at)})
            )
        return await self._compare_and_set(
            shop, schedule_id, "status", STATUS_RUNNING, updates, index_ops
        )

    async def mark_failed(self, shop: str, schedule_id: str, error: str) -> bool:
        """Move a schedule RUNNING -> FAILED with an error message."""
        return await self._compare_and_set(
            shop, schedule_id, "status", STATUS_RUNNING,
            {"status": STATUS_FAILED, "error": error or "Unknown error"}
        )

    async def claim_revert(self, shop: str, schedule_id: str) -> bool:
        """Move a revert PENDING -> RUNNING and drop it from the revert index."""
        return await self._compare_and_set(
            shop, schedule_id, "revert_status", STATUS_PENDING,
            {"revert_status": STATUS_RUNNING, "revert_error": ""},
            [lambda pipe: pipe.zrem(self._revert_due_key(shop), schedule_id)]
        )

    async def finish_revert(self, shop: str, schedule_id: str, error: Optional[str] = None) -> bool:
        """Move a revert RUNNING -> DONE, or FAILED when error is given."""
        if error:
            updates = {"revert_status": STATUS_FAILED, "revert_error": error}
        else:
            updates = {"revert_status": STATUS_DONE, "revert_error": ""}
        return await self._compare_and_set(
            shop, schedule_id, "revert_status", STATUS_RUNNING, updates
        )

    async def list(
        self,
        shop: str,
        limit: int = 20,
        status: Optional[str] = None
    ) -> List[ScheduleRecord]:
        """
        Schedules of a shop, newest first.

        Args:
            shop: Tenant
            limit: Max records (clamped to 1..100)
            status: Optional status filter

        Returns:
            List of records
        """
        limit = clamp_limit(limit)
        page_size = max(limit, 50)
        records: List[ScheduleRecord] = []
        start = 0

        while len(records) < limit:
            ids = await self.redis.zrevrange(self._created_key(shop), start, start + page_size - 1)
            if not ids:
                break
            for record in await self._load_many(shop, ids):
                if status and record.status != status:
                    continue
                records.append(record)
                if len(records) >= limit:
                    break
            start += page_size

        return records
