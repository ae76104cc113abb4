import asyncio
from datetime import date

import pytest
from fastapi import HTTPException
from sqlalchemy import func, select

from app.models import Booking
from app.services.bookings.booking_service import create_booking
from tests.test_db import auth_headers, load_booking

SLOT_DATE = "2030-03-04"


async def post_booking(client, principal, tutor_id, day=SLOT_DATE, time="10:00", **extra):
    body = {"tutor_id": tutor_id, "date": day, "time": time, **extra}
    return await client.post("/api/bookings/crear-booking/", json=body, headers=auth_headers(principal))


@pytest.mark.asyncio
async def test_create_booking(client, seed):
    response = await post_booking(client, seed.student, seed.tutor_id)
    print(response.text)

    assert response.status_code == 201
    data = response.json()
    assert data["success"] is True
    assert data["data"]["status"] == "confirmed"
    assert data["data"]["payment_status"] == "pending"
    assert data["data"]["student_email"] == "luis@test.com"
    assert data["data"]["payment_amount"] == pytest.approx(20.0)


@pytest.mark.asyncio
async def test_create_booking_without_token(client, seed):
    response = await client.post("/api/bookings/crear-booking/", json={
        "tutor_id": seed.tutor_id, "date": SLOT_DATE, "time": "10:00"
    })

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_invalid_time_format(client, seed):
    response = await post_booking(client, seed.student, seed.tutor_id, time="25:99")

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_suspended_student_cannot_book(client, seed):
    response = await post_booking(client, seed.suspended, seed.tutor_id)

    assert response.status_code == 403
    assert response.json()["detail"] == "Your account has been suspended. You cannot make bookings."


@pytest.mark.asyncio
async def test_unknown_tutor(client, seed):
    response = await post_booking(client, seed.student, 9999)

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_double_booking_same_slot(client, seed):
    first = await post_booking(client, seed.student, seed.tutor_id)
    second = await post_booking(client, seed.other_student, seed.tutor_id)

    assert first.status_code == 201
    assert second.status_code == 409


@pytest.mark.asyncio
async def test_concurrent_creates_have_one_winner(session_factory, seed):
    students = [seed.student, seed.other_student, seed.student, seed.other_student, seed.student]

    async def attempt(principal):
        async with session_factory() as session:
            return await create_booking(session, principal, seed.tutor_id, date(2030, 3, 4), "10:00")

    results = await asyncio.gather(*(attempt(p) for p in students), return_exceptions=True)

    winners = [r for r in results if isinstance(r, Booking)]
    losers = [r for r in results if isinstance(r, HTTPException)]
    assert len(winners) == 1
    assert len(losers) == len(students) - 1
    assert all(e.status_code == 409 for e in losers)

    async with session_factory() as session:
        count = await session.scalar(select(func.count(Booking.id)).where(Booking.status != "cancelled"))
    assert count == 1


@pytest.mark.asyncio
async def test_cancelled_slot_can_be_booked_again(client, seed):
    first = await post_booking(client, seed.student, seed.tutor_id)
    booking_id = first.json()["data"]["id"]

    cancel = await client.delete(f"/api/bookings/{booking_id}", headers=auth_headers(seed.student))
    again = await post_booking(client, seed.other_student, seed.tutor_id)

    assert cancel.status_code == 200
    assert again.status_code == 201


@pytest.mark.asyncio
async def test_cancel_twice_keeps_first_audit(client, seed, session_factory):
    created = await post_booking(client, seed.student, seed.tutor_id)
    booking_id = created.json()["data"]["id"]

    first = await client.delete(f"/api/bookings/{booking_id}", headers=auth_headers(seed.student))
    cancelled_at = (await load_booking(session_factory, booking_id)).cancelled_at

    second = await client.delete(f"/api/bookings/{booking_id}", headers=auth_headers(seed.tutor))
    booking = await load_booking(session_factory, booking_id)

    assert first.status_code == 200
    assert second.status_code == 200
    assert booking.status == "cancelled"
    assert booking.cancelled_by == "luis@test.com"
    assert booking.cancelled_at == cancelled_at


@pytest.mark.asyncio
async def test_outsider_cannot_cancel_or_view(client, seed):
    created = await post_booking(client, seed.student, seed.tutor_id)
    booking_id = created.json()["data"]["id"]

    cancel = await client.delete(f"/api/bookings/{booking_id}", headers=auth_headers(seed.other_student))
    view = await client.get(f"/api/bookings/{booking_id}", headers=auth_headers(seed.other_student))

    assert cancel.status_code == 403
    assert view.status_code == 403


@pytest.mark.asyncio
async def test_list_bookings_by_role(client, seed):
    await post_booking(client, seed.student, seed.tutor_id, day="2030-03-04")
    await post_booking(client, seed.student, seed.tutor_id, day="2030-03-11")
    await post_booking(client, seed.other_student, seed.tutor_id, day="2030-03-18")

    as_student = await client.get("/api/bookings/mis-bookings/", headers=auth_headers(seed.student))
    as_tutor = await client.get("/api/bookings/mis-bookings/", headers=auth_headers(seed.tutor))

    student_dates = [b["date"] for b in as_student.json()["data"]]
    assert student_dates == ["2030-03-11", "2030-03-04"]
    assert len(as_tutor.json()["data"]) == 3


@pytest.mark.asyncio
async def test_tutor_adds_meeting_link(client, seed):
    created = await post_booking(client, seed.student, seed.tutor_id)
    booking_id = created.json()["data"]["id"]

    response = await client.patch(
        f"/api/bookings/{booking_id}/meeting-link",
        json={"meeting_link": "https://meet.example.com/abc"},
        headers=auth_headers(seed.tutor),
    )

    assert response.status_code == 200
    assert response.json()["data"]["meeting_link"] == "https://meet.example.com/abc"


@pytest.mark.asyncio
async def test_meeting_link_rules(client, seed):
    created = await post_booking(client, seed.student, seed.tutor_id)
    booking_id = created.json()["data"]["id"]
    url = f"/api/bookings/{booking_id}/meeting-link"

    missing = await client.patch(url, json={}, headers=auth_headers(seed.tutor))
    invalid = await client.patch(url, json={"meeting_link": "not a url"}, headers=auth_headers(seed.tutor))
    by_student = await client.patch(
        url, json={"meeting_link": "https://meet.example.com/abc"}, headers=auth_headers(seed.student)
    )

    assert missing.status_code == 400
    assert invalid.status_code == 400
    assert by_student.status_code == 403


@pytest.mark.asyncio
@pytest.mark.parametrize("final_status", ["completed", "disputed"])
async def test_cannot_cancel_final_states(client, seed, session_factory, final_status):
    created = await post_booking(client, seed.student, seed.tutor_id)
    booking_id = created.json()["data"]["id"]
    async with session_factory() as session:
        booking = await session.get(Booking, booking_id)
        booking.payment_status = "paid"
        booking.status = final_status
        await session.commit()

    response = await client.delete(f"/api/bookings/{booking_id}", headers=auth_headers(seed.student))
    retaken = await post_booking(client, seed.other_student, seed.tutor_id)

    assert response.status_code == 400
    assert response.json()["detail"] == f"Cannot cancel a {final_status} session"
    booking = await load_booking(session_factory, booking_id)
    assert booking.status == final_status
    assert booking.cancelled_at is None
    assert retaken.status_code == 409
