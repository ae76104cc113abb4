from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import List
import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.models.booking.bookings import (
    Booking,
    BOOKING_CANCELLED,
    BOOKING_COMPLETED,
    BOOKING_CONFIRMED,
    BOOKING_DISPUTED,
    PAYMENT_PAID,
)
from app.schemas.auths.auth_schema import Principal
from app.services.bookings.booking_service import get_booking_or_404, is_booking_student
from app.services.bookings.booking_store import commit_changes, get_booking_by_id
from app.services.validation.exception import bad_request_exception, forbidden_exception

logger = logging.getLogger(__name__)

AUTO_COMPLETE_AFTER = timedelta(hours=24)
AUTO_COMPLETED_BY = "auto"


@dataclass
class SweepResult:
    cutoff: datetime
    processed: int = 0
    completed: int = 0
    skipped: int = 0
    failed: int = 0
    failed_ids: List[int] = field(default_factory=list)


def ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def get_scheduled_start(booking_date: date, booking_time: str) -> datetime:
    """Inicio programado de la clase; la hora "HH:MM" se interpreta en UTC."""
    hours, minutes = (int(part) for part in booking_time.split(":")[:2])
    return datetime.combine(booking_date, time(hours, minutes), tzinfo=timezone.utc)


def is_completable(booking: Booking) -> bool:
    return booking.payment_status == PAYMENT_PAID and booking.status == BOOKING_CONFIRMED


async def find_sessions_to_complete(db: AsyncSession, cutoff: datetime) -> List[int]:
    # Prefiltro por fecha en SQL; la hora exacta se compara aquí
    result = await db.execute(
        select(Booking.id, Booking.date, Booking.time).where(
            Booking.payment_status == PAYMENT_PAID,
            Booking.status == BOOKING_CONFIRMED,
            Booking.date <= cutoff.date()
        )
    )
    return [
        booking_id
        for booking_id, booking_date, booking_time in result.all()
        if get_scheduled_start(booking_date, booking_time) < cutoff
    ]


async def sweep_completions(db: AsyncSession, now: datetime) -> SweepResult:
    """
    Pasa a `completed` las clases pagadas y confirmadas que iniciaron hace más de 24 h.
    No guarda cursor: cada corrida vuelve a buscar por predicado, así que una corrida
    perdida se recupera en la siguiente. Cada clase se guarda por separado.
    """
    now = ensure_utc(now)
    cutoff = now - AUTO_COMPLETE_AFTER
    sweep = SweepResult(cutoff=cutoff)

    booking_ids = await find_sessions_to_complete(db, cutoff)
    logger.info(f"Auto-completando sesiones anteriores a {cutoff.isoformat()}: {len(booking_ids)} encontradas")

    for booking_id in booking_ids:
        sweep.processed += 1
        try:
            booking = await get_booking_by_id(db, booking_id)
            # Otra corrida (o el estudiante) pudo cambiarla desde la búsqueda
            if booking is None or not is_completable(booking):
                sweep.skipped += 1
                continue

            booking.status = BOOKING_COMPLETED
            booking.completed_at = now
            booking.completed_by = AUTO_COMPLETED_BY
            await db.commit()
            sweep.completed += 1
        except StaleDataError:
            # Otra corrida la cerró entre la lectura y el commit
            await db.rollback()
            sweep.skipped += 1
            logger.info(f"Sesión {booking_id} modificada por otra corrida, se omite")
        except SQLAlchemyError as e:
            await db.rollback()
            sweep.failed += 1
            sweep.failed_ids.append(booking_id)
            logger.error(f"❌ Error completando la sesión {booking_id}: {str(e)}")

    logger.info(
        f"✅ Auto-complete: {sweep.completed} completadas, {sweep.skipped} omitidas, {sweep.failed} con error"
    )
    return sweep


async def dispute_session(db: AsyncSession, principal: Principal, booking_id: int, reason: str) -> Booking:
    if not reason or not reason.strip():
        await bad_request_exception("Please provide a reason for the dispute")

    booking = await get_booking_or_404(db, booking_id)

    if not is_booking_student(principal, booking):
        await forbidden_exception("Only the student can dispute this session")

    if booking.payment_status != PAYMENT_PAID:
        await bad_request_exception("Cannot dispute an unpaid session")

    if booking.status == BOOKING_DISPUTED:
        await bad_request_exception("Session already disputed")

    if booking.status == BOOKING_CANCELLED:
        await bad_request_exception("Cannot dispute a cancelled session")

    booking.status = BOOKING_DISPUTED
    booking.disputed_at = datetime.now(timezone.utc)
    booking.dispute_reason = reason.strip()
    booking.disputed_by = principal.email

    await commit_changes(db)
    logger.info(f"⚠️ Sesión {booking.id} en disputa por {principal.email}")
    return booking
