import asyncio
from datetime import timedelta

import pytest

from price_scheduler.core.schedule_store import clamp_limit
from price_scheduler.core.utils import utcnow

from conftest import SHOP, OTHER_SHOP


def _payload(variant="1"):
    return {"items": [{"productId": "p1", "variantId": variant, "newPrice": "9.99"}]}


@pytest.mark.asyncio
async def test_create_and_get(store):
    run_at = utcnow() + timedelta(hours=1)
    record = await store.create(SHOP, run_at, _payload())

    loaded = await store.get(SHOP, record.id)
    assert loaded is not None
    assert loaded.status == "PENDING"
    assert loaded.payload == _payload()
    assert abs((loaded.run_at - run_at).total_seconds()) < 1
    assert loaded.revert_at is None
    assert loaded.error is None


@pytest.mark.asyncio
async def test_get_is_tenant_scoped(store):
    record = await store.create(SHOP, utcnow(), _payload())
    assert await store.get(OTHER_SHOP, record.id) is None


@pytest.mark.asyncio
async def test_find_due_only_returns_past_pending(store):
    now = utcnow()
    past = await store.create(SHOP, now - timedelta(minutes=5), _payload())
    await store.create(SHOP, now + timedelta(minutes=5), _payload())
    await store.create(OTHER_SHOP, now - timedelta(minutes=5), _payload())

    due = await store.find_due(SHOP, now, limit=10)
    assert [r.id for r in due] == [past.id]


@pytest.mark.asyncio
async def test_find_due_is_earliest_first_and_limited(store):
    now = utcnow()
    later = await store.create(SHOP, now - timedelta(minutes=1), _payload())
    earlier = await store.create(SHOP, now - timedelta(minutes=10), _payload())
    await store.create(SHOP, now - timedelta(minutes=5), _payload())

    due = await store.find_due(SHOP, now, limit=2)
    assert due[0].id == earlier.id
    assert later.id not in [r.id for r in due]


@pytest.mark.asyncio
async def test_claim_is_exclusive(store):
    record = await store.create(SHOP, utcnow(), _payload())

    assert await store.claim(SHOP, record.id) is True
    assert await store.claim(SHOP, record.id) is False
    assert (await store.get(SHOP, record.id)).status == "RUNNING"
    assert await store.find_due(SHOP, utcnow()) == []


@pytest.mark.asyncio
async def test_concurrent_claims_have_one_winner(store):
    record = await store.create(SHOP, utcnow(), _payload())

    results = await asyncio.gather(*[store.claim(SHOP, record.id) for _ in range(5)])
    assert results.count(True) == 1


@pytest.mark.asyncio
async def test_terminal_transitions_require_running(store):
    record = await store.create(SHOP, utcnow(), _payload())

    assert await store.mark_done(SHOP, record.id) is False
    assert await store.claim(SHOP, record.id)
    assert await store.mark_failed(SHOP, record.id, "Price too low")

    loaded = await store.get(SHOP, record.id)
    assert loaded.status == "FAILED"
    assert loaded.error == "Price too low"
    assert await store.mark_done(SHOP, record.id) is False


@pytest.mark.asyncio
async def test_mark_done_queues_revert(store):
    now = utcnow()
    record = await store.create(SHOP, now, _payload(), revert_at=now + timedelta(hours=1))
    await store.claim(SHOP, record.id)
    await store.mark_done(SHOP, record.id, revert_at=record.revert_at)

    loaded = await store.get(SHOP, record.id)
    assert loaded.status == "DONE"
    assert loaded.revert_status == "PENDING"
    assert await store.find_due_reverts(SHOP, now) == []
    assert [r.id for r in await store.find_due_reverts(SHOP, now + timedelta(hours=2))] == [record.id]

    assert await store.claim_revert(SHOP, record.id)
    assert await store.claim_revert(SHOP, record.id) is False
    assert await store.finish_revert(SHOP, record.id)
    loaded = await store.get(SHOP, record.id)
    assert loaded.revert_status == "DONE"
    assert loaded.status == "DONE"


@pytest.mark.asyncio
async def test_list_newest_first_with_filter(store):
    first = await store.create(SHOP, utcnow(), _payload("1"))
    await asyncio.sleep(0.01)
    second = await store.create(SHOP, utcnow(), _payload("2"))
    await asyncio.sleep(0.01)
    third = await store.create(SHOP, utcnow(), _payload("3"))
    await store.create(OTHER_SHOP, utcnow(), _payload())

    await store.claim(SHOP, second.id)
    await store.mark_failed(SHOP, second.id, "boom")

    listed = await store.list(SHOP, limit=10)
    assert [r.id for r in listed] == [third.id, second.id, first.id]

    failed = await store.list(SHOP, limit=10, status="FAILED")
    assert [r.id for r in failed] == [second.id]

    assert len(await store.list(SHOP, limit=2)) == 2


@pytest.mark.parametrize("raw,expected", [
    (0, 1), (-5, 1), (1, 1), (20, 20), (100, 100), (500, 100), ("abc", 20), (None, 20),
])
def test_clamp_limit(raw, expected):
    assert clamp_limit(raw) == expected
