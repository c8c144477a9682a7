"""Tests for paying allowance, arrears and automatic settlement over HTTP."""

import asyncio
import pathlib
import sys
from datetime import datetime, timedelta

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlmodel import SQLModel

# Allow importing the chorecoins package
sys.path.append(str(pathlib.Path(__file__).resolve().parents[2]))

from chorecoins.main import app
from chorecoins.database import get_session
from chorecoins.dependencies import get_session_factory, get_settlement_store
from chorecoins.periods import local_now
from chorecoins.settlement_store import SettlementStore


async def _setup_test_db(tmp_path):
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    TestSession = async_sessionmaker(engine, expire_on_commit=False)
    store = SettlementStore(tmp_path / "settlements.json")

    async def override_get_session():
        async with TestSession() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_session_factory] = lambda: TestSession
    app.dependency_overrides[get_settlement_store] = lambda: store
    return TestSession, store


async def _child_with_tasks(client):
    resp = await client.post("/children/", json={"name": "Hana"})
    assert resp.status_code == 200
    child_id = resp.json()["id"]
    resp = await client.post("/tasks/", json={"name": "Set the table", "coin_rate": 10})
    table_id = resp.json()["id"]
    resp = await client.post("/tasks/", json={"name": "Carry the laundry", "coin_rate": 25})
    laundry_id = resp.json()["id"]
    return child_id, table_id, laundry_id


def _previous_month(now):
    first = now.replace(day=1, hour=12, minute=0, second=0, microsecond=0)
    return (first - timedelta(days=1)).replace(day=15)


def test_manual_payment_and_top_up(tmp_path):
    async def run():
        await _setup_test_db(tmp_path)
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            child_id, table_id, laundry_id = await _child_with_tasks(client)
            for task_id in (table_id, laundry_id):
                resp = await client.post(
                    "/activities/", json={"child_id": child_id, "task_id": task_id}
                )
                assert resp.status_code == 200

            resp = await client.get(f"/children/{child_id}/summary")
            summary = resp.json()
            assert summary["earned"] == 35
            assert summary["record_count"] == 2
            assert summary["streak_days"] == 1
            assert summary["is_paid"] is False
            assert summary["amount_due"] == 35

            resp = await client.post(f"/settlements/child/{child_id}", json={})
            assert resp.status_code == 200
            first = resp.json()
            assert first["amount"] == 35
            assert first["note"] == "Monthly allowance payment"

            # Everything earned has been paid.
            resp = await client.post(f"/settlements/child/{child_id}", json={})
            assert resp.status_code == 400

            await client.post("/activities/", json={"child_id": child_id, "task_id": table_id})
            resp = await client.post(f"/settlements/child/{child_id}", json={})
            topped_up = resp.json()
            assert topped_up["id"] == first["id"]
            assert topped_up["amount"] == 45
            assert topped_up["note"] == "Monthly allowance payment (additional payment)"
            assert topped_up["paid_at"] == first["paid_at"]

            resp = await client.get(f"/children/{child_id}/summary")
            summary = resp.json()
            assert summary["is_paid"] is True
            assert summary["settled_amount"] == 45
            assert summary["amount_due"] == 0

            resp = await client.get(f"/settlements/child/{child_id}")
            assert [s["id"] for s in resp.json()] == [first["id"]]

            now = local_now()
            resp = await client.get(
                "/settlements/",
                params={
                    "start": (now - timedelta(days=1)).isoformat(),
                    "end": (now + timedelta(days=1)).isoformat(),
                },
            )
            assert [s["id"] for s in resp.json()] == [first["id"]]
            resp = await client.get(
                "/settlements/",
                params={"start": now.isoformat(), "end": (now - timedelta(days=1)).isoformat()},
            )
            assert resp.status_code == 400

            resp = await client.get(f"/settlements/{first['id']}")
            assert resp.status_code == 200
            resp = await client.delete(f"/settlements/{first['id']}")
            assert resp.status_code == 204
            resp = await client.get(f"/settlements/{first['id']}")
            assert resp.status_code == 404
            resp = await client.delete(f"/settlements/{first['id']}")
            assert resp.status_code == 404

            resp = await client.post("/settlements/child/999", json={"amount": 5})
            assert resp.status_code == 404
            resp = await client.post(f"/settlements/child/{child_id}", json={"amount": -5})
            assert resp.status_code == 422

    asyncio.run(run())


def test_arrears_and_history(tmp_path):
    async def run():
        await _setup_test_db(tmp_path)
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            child_id, _, laundry_id = await _child_with_tasks(client)
            last_month = _previous_month(local_now())
            resp = await client.post(
                "/activities/",
                json={
                    "child_id": child_id,
                    "task_id": laundry_id,
                    "recorded_at": last_month.isoformat(),
                },
            )
            assert resp.status_code == 200

            resp = await client.get(f"/children/{child_id}/arrears")
            data = resp.json()
            assert data["total_outstanding"] == 25
            assert data["periods"] == [
                {
                    "child_id": child_id,
                    "month": last_month.month,
                    "year": last_month.year,
                    "outstanding": 25,
                }
            ]
            resp = await client.get("/settlements/arrears")
            assert resp.json() == data

            resp = await client.post(
                f"/settlements/child/{child_id}",
                json={"month": last_month.month, "year": last_month.year, "amount": 10},
            )
            assert resp.json()["note"] == (
                f"Allowance for {last_month.year}-{last_month.month:02d}"
            )

            resp = await client.get(f"/children/{child_id}/arrears")
            assert resp.json()["total_outstanding"] == 15

            resp = await client.get(f"/children/{child_id}/history")
            history = resp.json()
            assert len(history) == 1
            month = history[0]
            assert (month["year"], month["month"]) == (last_month.year, last_month.month)
            assert (month["earned"], month["paid"], month["outstanding"]) == (25, 10, 15)
            assert month["is_paid"] is True
            assert month["settlement"]["amount"] == 10

            resp = await client.get("/children/999/arrears")
            assert resp.status_code == 404

    asyncio.run(run())


def test_auto_settlement_endpoint(tmp_path):
    async def run():
        await _setup_test_db(tmp_path)
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            child_id, table_id, _ = await _child_with_tasks(client)
            await client.post("/activities/", json={"child_id": child_id, "task_id": table_id})

            today = local_now().day
            resp = await client.put("/settings/", json={"payment_day_of_month": today})
            assert resp.json()["payment_day_of_month"] == today

            resp = await client.post("/settlements/auto")
            assert resp.status_code == 200
            data = resp.json()
            assert data["rolled_over"] is False
            assert len(data["results"]) == 1
            result = data["results"][0]
            assert result["child_name"] == "Hana"
            assert (result["amount"], result["record_count"], result["streak_days"]) == (10, 1, 1)

            resp = await client.post("/settlements/auto")
            assert resp.json() == {"rolled_over": False, "results": []}

            resp = await client.get(f"/settlements/child/{child_id}")
            settlements = resp.json()
            assert len(settlements) == 1
            assert settlements[0]["note"] == "Automatic payment"

    asyncio.run(run())


def test_snapshot_failure_returns_503(tmp_path):
    async def run():
        _, store = await _setup_test_db(tmp_path)
        # A directory where the temporary snapshot should go makes every write fail.
        (tmp_path / "settlements.json.tmp").mkdir()
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            child_id, _, _ = await _child_with_tasks(client)
            resp = await client.post(f"/settlements/child/{child_id}", json={"amount": 5})
            assert resp.status_code == 503
            assert resp.json()["code"] == "settlement_store_unavailable"
        assert await store.find_all() == []

    asyncio.run(run())


def test_payment_year_must_be_on_the_calendar(tmp_path):
    async def run():
        await _setup_test_db(tmp_path)
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            child_id, _, _ = await _child_with_tasks(client)
            for year in (0, 9999):
                resp = await client.post(
                    f"/settlements/child/{child_id}", json={"month": 12, "year": year}
                )
                assert resp.status_code == 422

            # Nothing recorded in the last representable December.
            resp = await client.post(
                f"/settlements/child/{child_id}", json={"month": 12, "year": 9998}
            )
            assert resp.status_code == 400
            assert resp.json()["detail"] == "Nothing to pay"

    asyncio.run(run())
