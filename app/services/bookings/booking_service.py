from datetime import date, datetime, timezone
from typing import List, Optional
from urllib.parse import urlparse
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.booking.bookings import (
    Booking,
    BOOKING_CANCELLED,
    BOOKING_COMPLETED,
    BOOKING_CONFIRMED,
    BOOKING_DISPUTED,
    PAYMENT_PENDING,
)
from app.models.tutors.tutor import Tutor
from app.models.users.user import User
from app.schemas.auths.auth_schema import Principal, ROLE_TUTOR
from app.services.bookings.booking_store import (
    commit_changes,
    get_booking_by_id,
    get_bookings_by_student_email,
    get_bookings_by_tutor_email,
    get_tutor_by_id,
    get_user_by_id,
)
from app.services.bookings.pricing_service import calculate_single_price
from app.services.validation.exception import (
    bad_request_exception,
    forbidden_exception,
    not_found_exception,
)

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MINUTES = 60


def is_booking_participant(principal: Principal, booking: Booking) -> bool:
    return principal.is_same_email(booking.student_email) or principal.is_same_email(booking.tutor_email)


def is_booking_student(principal: Principal, booking: Booking) -> bool:
    return principal.is_same_email(booking.student_email)


def is_booking_tutor(principal: Principal, booking: Booking) -> bool:
    return principal.is_same_email(booking.tutor_email)


async def get_active_student(db: AsyncSession, principal: Principal) -> Optional[User]:
    """Devuelve el registro del estudiante y rechaza cuentas suspendidas."""
    user = await get_user_by_id(db, principal.user_id)
    if user and user.suspended:
        await forbidden_exception("Your account has been suspended. You cannot make bookings.")
    return user


async def get_bookable_tutor(db: AsyncSession, tutor_id: int) -> Tutor:
    tutor = await get_tutor_by_id(db, tutor_id)
    if not tutor:
        await not_found_exception("Tutor not found")
    return tutor


async def get_booking_or_404(db: AsyncSession, booking_id: int) -> Booking:
    booking = await get_booking_by_id(db, booking_id)
    if not booking:
        await not_found_exception("Booking not found")
    return booking


async def create_booking(
    db: AsyncSession,
    principal: Principal,
    tutor_id: int,
    booking_date: date,
    time: str,
    duration_minutes: Optional[int] = None,
    payment_amount: Optional[float] = None,
) -> Booking:
    # 1. Validar que el estudiante no esté suspendido
    await get_active_student(db, principal)

    # 2. Validar que el docente existe
    tutor = await get_bookable_tutor(db, tutor_id)

    duration = duration_minutes or DEFAULT_DURATION_MINUTES

    # 3. El precio se congela al reservar; el cliente puede fijarlo explícitamente
    if payment_amount is None:
        payment_amount = calculate_single_price(tutor.hourly_rate, duration)

    booking = Booking(
        tutor_id=tutor.id,
        tutor_email=tutor.email,
        tutor_name=tutor.name,
        student_id=principal.user_id,
        student_email=principal.email,
        date=booking_date,
        time=time,
        duration_minutes=duration,
        hourly_rate=tutor.hourly_rate,
        payment_amount=payment_amount,
        is_trial=False,
        status=BOOKING_CONFIRMED,
        payment_status=PAYMENT_PENDING,
        meeting_link=None,
    )
    db.add(booking)

    # 4. El índice único (docente, fecha, hora) rechaza el doble agendado
    await commit_changes(db, f"Slot not available: {booking_date.isoformat()} {time}")

    logger.info(f"✅ Booking {booking.id} creado para docente {tutor.id} el {booking_date} {time}")
    return booking


async def get_booking(db: AsyncSession, principal: Principal, booking_id: int) -> Booking:
    booking = await get_booking_or_404(db, booking_id)
    if not is_booking_participant(principal, booking):
        await forbidden_exception("Access denied")
    return booking


async def list_bookings(db: AsyncSession, principal: Principal) -> List[Booking]:
    """Reservas del usuario según su rol: el docente ve sus clases, el estudiante las suyas."""
    if principal.role == ROLE_TUTOR:
        return await get_bookings_by_tutor_email(db, principal.email)
    return await get_bookings_by_student_email(db, principal.email)


async def cancel_booking(db: AsyncSession, principal: Principal, booking_id: int) -> Booking:
    booking = await get_booking_or_404(db, booking_id)

    if not is_booking_participant(principal, booking):
        await forbidden_exception("You cannot cancel this booking")

    # Cancelar dos veces no vuelve a sellar la auditoría
    if booking.status == BOOKING_CANCELLED:
        logger.info(f"Booking {booking.id} ya estaba cancelado, sin cambios")
        return booking

    # Completada y en disputa son estados finales
    if booking.status in (BOOKING_COMPLETED, BOOKING_DISPUTED):
        await bad_request_exception(f"Cannot cancel a {booking.status} session")

    booking.status = BOOKING_CANCELLED
    booking.cancelled_at = datetime.now(timezone.utc)
    booking.cancelled_by = principal.email

    await commit_changes(db)
    logger.info(f"✅ Booking {booking.id} cancelado por {principal.email}")
    return booking


def is_valid_meeting_link(url: Optional[str]) -> bool:
    if not url or not url.strip():
        return False
    parsed = urlparse(url.strip())
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


async def attach_meeting_link(db: AsyncSession, principal: Principal, booking_id: int, url: Optional[str]) -> Booking:
    if not url:
        await bad_request_exception("Meeting link is required")
    if not is_valid_meeting_link(url):
        await bad_request_exception("Please provide a valid URL")

    booking = await get_booking_or_404(db, booking_id)

    if not is_booking_tutor(principal, booking):
        await forbidden_exception("Only the tutor can add a meeting link")

    booking.meeting_link = url.strip()
    booking.meeting_link_added_at = datetime.now(timezone.utc)

    await commit_changes(db)
    logger.info(f"🔗 Link de clase agregado al booking {booking.id}")
    return booking
