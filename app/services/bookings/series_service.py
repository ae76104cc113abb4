"""
Series recurrentes: N clases semanales con el mismo docente, hora y duración,
creadas todas o ninguna, con precio por clase descontado.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional
import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.booking.bookings import (
    Booking,
    BOOKING_CANCELLED,
    BOOKING_COMPLETED,
    BOOKING_CONFIRMED,
    PAYMENT_PENDING,
)
from app.schemas.auths.auth_schema import Principal
from app.services.bookings.booking_service import (
    DEFAULT_DURATION_MINUTES,
    get_active_student,
    get_bookable_tutor,
    is_booking_participant,
)
from app.services.bookings.booking_store import commit_changes, get_booking_by_id, get_bookings_by_series
from app.services.bookings.conflict_service import find_conflicting_dates
from app.services.bookings.pricing_service import SeriesPricing, calculate_series_pricing, validate_series_weeks
from app.services.validation.exception import conflict_exception, forbidden_exception, not_found_exception

logger = logging.getLogger(__name__)


@dataclass
class SeriesResult:
    series_id: str
    bookings: List[Booking]
    pricing: SeriesPricing


@dataclass
class SeriesCancelResult:
    cancelled_count: int
    failed_count: int = 0
    failed_ids: List[int] = field(default_factory=list)


def generate_series_id() -> str:
    return f"rec_{uuid.uuid4().hex}"


def build_series_dates(start_date: date, weeks: int) -> List[date]:
    # Aritmética sobre fechas de calendario: el cambio de horario no la afecta
    return [start_date + timedelta(days=7 * i) for i in range(weeks)]


async def create_series(
    db: AsyncSession,
    principal: Principal,
    tutor_id: int,
    start_date: date,
    time: str,
    weeks: int,
    duration_minutes: Optional[int] = None,
) -> SeriesResult:
    # 1. Estudiante suspendido
    await get_active_student(db, principal)

    # 2. Docente
    tutor = await get_bookable_tutor(db, tutor_id)

    await validate_series_weeks(weeks)

    # 3. Fechas semanales
    dates = build_series_dates(start_date, weeks)

    # 4. Se juntan todos los conflictos antes de decidir
    conflicts = await find_conflicting_dates(db, tutor.id, dates, time)
    if conflicts:
        conflict_labels = [d.isoformat() for d in conflicts]
        logger.info(f"⚠️ Serie rechazada para docente {tutor.id}: {len(conflicts)} fechas ocupadas")
        await conflict_exception(
            f"Some slots are not available: {', '.join(conflict_labels)}",
            conflicts=conflict_labels,
        )

    # 5. Precio con descuento por volumen
    pricing = calculate_series_pricing(tutor.hourly_rate, weeks)

    # 6. Todas las clases en una sola transacción
    series_id = generate_series_id()
    duration = duration_minutes or DEFAULT_DURATION_MINUTES
    bookings = []
    for index, lesson_date in enumerate(dates, start=1):
        booking = Booking(
            series_id=series_id,
            series_index=index,
            series_total=weeks,
            tutor_id=tutor.id,
            tutor_email=tutor.email,
            tutor_name=tutor.name,
            student_id=principal.user_id,
            student_email=principal.email,
            date=lesson_date,
            time=time,
            duration_minutes=duration,
            hourly_rate=tutor.hourly_rate,
            payment_amount=pricing.per_lesson_price,
            is_trial=False,
            status=BOOKING_CONFIRMED,
            payment_status=PAYMENT_PENDING,
            meeting_link=None,
        )
        bookings.append(booking)
    db.add_all(bookings)

    # Si otro escritor ganó alguna fecha entre la revisión y el commit,
    # el índice único aborta la transacción completa y no queda ninguna clase
    await commit_changes(db, "One or more slots were booked concurrently, no lessons were created")

    logger.info(f"✅ Serie {series_id} creada: {weeks} clases con docente {tutor.id}")
    return SeriesResult(series_id=series_id, bookings=bookings, pricing=pricing)


def calculate_series_stats(bookings: List[Booking], today: date) -> Dict[str, int]:
    return {
        "total": len(bookings),
        "completed": sum(1 for b in bookings if b.status == BOOKING_COMPLETED),
        "upcoming": sum(1 for b in bookings if b.status == BOOKING_CONFIRMED and b.date >= today),
        "cancelled": sum(1 for b in bookings if b.status == BOOKING_CANCELLED),
    }


async def get_series_members_for(db: AsyncSession, principal: Principal, series_id: str) -> List[Booking]:
    bookings = await get_bookings_by_series(db, series_id)
    if not bookings:
        await not_found_exception("Recurring series not found")

    # Todas las clases comparten estudiante y docente
    if not is_booking_participant(principal, bookings[0]):
        await forbidden_exception("Not authorized")
    return bookings


async def get_series(db: AsyncSession, principal: Principal, series_id: str, today: Optional[date] = None):
    today = today or datetime.now(timezone.utc).date()
    bookings = await get_series_members_for(db, principal, series_id)
    return bookings, calculate_series_stats(bookings, today)


async def cancel_series(
    db: AsyncSession,
    principal: Principal,
    series_id: str,
    today: Optional[date] = None,
) -> SeriesCancelResult:
    """
    Cancela las clases confirmadas de hoy en adelante.
    Las pasadas, completadas, en disputa o ya canceladas no se tocan.
    Cada clase se guarda en su propia transacción; un fallo no detiene a las demás.
    """
    today = today or datetime.now(timezone.utc).date()
    bookings = await get_series_members_for(db, principal, series_id)

    candidate_ids = [
        b.id for b in bookings
        if b.status == BOOKING_CONFIRMED and b.date >= today
    ]

    result = SeriesCancelResult(cancelled_count=0)
    now = datetime.now(timezone.utc)
    for booking_id in candidate_ids:
        try:
            booking = await get_booking_by_id(db, booking_id)
            if booking is None or booking.status != BOOKING_CONFIRMED:
                continue
            booking.status = BOOKING_CANCELLED
            booking.cancelled_at = now
            booking.cancelled_by = principal.email
            await db.commit()
            result.cancelled_count += 1
        except SQLAlchemyError as e:
            await db.rollback()
            result.failed_count += 1
            result.failed_ids.append(booking_id)
            logger.error(f"❌ Error cancelando booking {booking_id} de la serie {series_id}: {str(e)}")

    logger.info(
        f"Serie {series_id}: {result.cancelled_count} clases canceladas, {result.failed_count} con error"
    )
    return result
