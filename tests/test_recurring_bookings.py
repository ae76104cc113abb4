from datetime import date

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from app.models import Booking
from app.services.bookings import series_service
from app.services.bookings.booking_service import create_booking
from app.services.bookings.series_service import build_series_dates, cancel_series, create_series
from tests.test_db import auth_headers, load_booking


def test_series_dates_are_weekly():
    dates = build_series_dates(date(2024, 1, 1), 4)

    assert dates == [date(2024, 1, 1), date(2024, 1, 8), date(2024, 1, 15), date(2024, 1, 22)]


@pytest.mark.asyncio
async def test_create_four_week_series(client, seed):
    response = await client.post("/api/bookings/recurring/", json={
        "tutor_id": seed.tutor_id,
        "start_date": "2030-01-07",
        "time": "18:00",
        "weeks": 4
    }, headers=auth_headers(seed.student))
    print(response.text)

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["series_id"].startswith("rec_")
    assert [b["date"] for b in data["bookings"]] == ["2030-01-07", "2030-01-14", "2030-01-21", "2030-01-28"]
    assert [b["series_index"] for b in data["bookings"]] == [1, 2, 3, 4]
    assert all(b["series_total"] == 4 for b in data["bookings"])
    assert all(b["payment_amount"] == pytest.approx(18.0) for b in data["bookings"])
    assert data["pricing"]["discount_percent"] == 10
    assert data["pricing"]["discounted_total"] == pytest.approx(72.0)


@pytest.mark.asyncio
async def test_invalid_weeks(client, seed):
    response = await client.post("/api/bookings/recurring/", json={
        "tutor_id": seed.tutor_id,
        "start_date": "2030-01-07",
        "time": "18:00",
        "weeks": 3
    }, headers=auth_headers(seed.student))

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_series_with_taken_slot_creates_nothing(client, seed, session_factory):
    async with session_factory() as session:
        await create_booking(session, seed.other_student, seed.tutor_id, date(2024, 1, 15), "18:00")

    response = await client.post("/api/bookings/recurring/", json={
        "tutor_id": seed.tutor_id,
        "start_date": "2024-01-01",
        "time": "18:00",
        "weeks": 4
    }, headers=auth_headers(seed.student))

    assert response.status_code == 409
    assert response.json()["detail"]["conflicts"] == ["2024-01-15"]

    async with session_factory() as session:
        count = await session.scalar(
            select(func.count(Booking.id)).where(Booking.student_email == "luis@test.com")
        )
    assert count == 0


@pytest.mark.asyncio
async def test_suspended_student_cannot_create_series(client, seed):
    response = await client.post("/api/bookings/recurring/", json={
        "tutor_id": seed.tutor_id,
        "start_date": "2030-01-07",
        "time": "18:00",
        "weeks": 2
    }, headers=auth_headers(seed.suspended))

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_get_series_with_stats(client, seed, db):
    result = await create_series(db, seed.student, seed.tutor_id, date(2030, 1, 7), "18:00", 4)

    response = await client.get(f"/api/bookings/recurring/{result.series_id}", headers=auth_headers(seed.tutor))
    outsider = await client.get(
        f"/api/bookings/recurring/{result.series_id}", headers=auth_headers(seed.other_student)
    )
    missing = await client.get("/api/bookings/recurring/rec_missing", headers=auth_headers(seed.student))

    assert response.status_code == 200
    stats = response.json()["data"]["stats"]
    assert stats == {"total": 4, "completed": 0, "upcoming": 4, "cancelled": 0}
    assert outsider.status_code == 403
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_cancel_series_only_touches_future_confirmed(db, seed, session_factory):
    result = await create_series(db, seed.student, seed.tutor_id, date(2030, 1, 7), "18:00", 4)
    first, second, third, fourth = [b.id for b in result.bookings]

    # Las dos primeras ya pasaron y la primera además se completó
    async with session_factory() as session:
        booking = await session.get(Booking, first)
        booking.status = "completed"
        await session.commit()

    cancelled = await cancel_series(db, seed.student, result.series_id, today=date(2030, 1, 15))

    assert cancelled.cancelled_count == 2
    assert cancelled.failed_count == 0
    assert (await load_booking(session_factory, first)).status == "completed"
    assert (await load_booking(session_factory, second)).status == "confirmed"
    assert (await load_booking(session_factory, third)).status == "cancelled"
    assert (await load_booking(session_factory, fourth)).status == "cancelled"


@pytest.mark.asyncio
async def test_cancel_series_endpoint(client, seed, db):
    result = await create_series(db, seed.student, seed.tutor_id, date(2099, 1, 5), "09:00", 2)

    response = await client.delete(
        f"/api/bookings/recurring/{result.series_id}", headers=auth_headers(seed.tutor)
    )
    again = await client.delete(
        f"/api/bookings/recurring/{result.series_id}", headers=auth_headers(seed.tutor)
    )

    assert response.status_code == 200
    assert response.json()["data"]["cancelled_count"] == 2
    assert again.json()["data"]["cancelled_count"] == 0


@pytest.mark.asyncio
async def test_cancel_series_skips_completed_and_cancelled_lessons(db, seed, session_factory):
    result = await create_series(db, seed.student, seed.tutor_id, date(2030, 1, 7), "18:00", 4)
    first, second, third, fourth = [b.id for b in result.bookings]

    async with session_factory() as session:
        (await session.get(Booking, first)).status = "completed"
        (await session.get(Booking, second)).status = "cancelled"
        await session.commit()

    cancelled = await cancel_series(db, seed.student, result.series_id, today=date(2030, 1, 7))

    assert cancelled.cancelled_count == 2
    assert cancelled.failed_count == 0
    assert (await load_booking(session_factory, first)).status == "completed"
    second_booking = await load_booking(session_factory, second)
    assert second_booking.status == "cancelled"
    assert second_booking.cancelled_at is None
    assert (await load_booking(session_factory, third)).status == "cancelled"
    assert (await load_booking(session_factory, fourth)).status == "cancelled"


@pytest.mark.asyncio
async def test_cancel_series_continues_after_a_failed_lesson(db, seed, session_factory, monkeypatch):
    result = await create_series(db, seed.student, seed.tutor_id, date(2030, 1, 7), "18:00", 4)
    ids = [b.id for b in result.bookings]
    broken = ids[1]

    original_get = series_service.get_booking_by_id

    async def flaky_get_booking_by_id(session, booking_id):
        if booking_id == broken:
            raise OperationalError("SELECT bookings", {}, Exception("database is locked"))
        return await original_get(session, booking_id)

    monkeypatch.setattr(series_service, "get_booking_by_id", flaky_get_booking_by_id)

    cancelled = await cancel_series(db, seed.student, result.series_id, today=date(2030, 1, 1))

    assert cancelled.cancelled_count == 3
    assert cancelled.failed_count == 1
    assert cancelled.failed_ids == [broken]
    for booking_id in ids:
        expected = "confirmed" if booking_id == broken else "cancelled"
        assert (await load_booking(session_factory, booking_id)).status == expected
