"""
Recordatorios de clase a 24 h y a 1 h del inicio.
La bandera de cada recordatorio se marca solo si el correo salió,
así la siguiente corrida reintenta los que fallaron.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.booking.bookings import Booking, BOOKING_CONFIRMED, PAYMENT_PAID
from app.services.bookings.booking_store import get_booking_by_id
from app.services.notifications.booking_email_service import build_booking_details, send_lesson_reminder_email
from app.services.sessions.session_lifecycle_service import ensure_utc, get_scheduled_start

logger = logging.getLogger(__name__)


@dataclass
class ReminderResult:
    sent_24h: int = 0
    sent_1h: int = 0
    failed: int = 0


async def notify_participants(booking: Booking, hours_before: int) -> bool:
    """
    Envía el recordatorio al estudiante y al docente. Devuelve True solo si ambos salieron.
    Si uno falla la bandera queda sin marcar y la siguiente corrida reenvía a los dos,
    así que el que sí lo recibió puede recibirlo dos veces.
    """
    details = build_booking_details(booking)
    details["meeting_link"] = booking.meeting_link
    student_sent = await send_lesson_reminder_email(booking.student_email, details, hours_before)
    tutor_sent = await send_lesson_reminder_email(booking.tutor_email, details, hours_before)
    return student_sent and tutor_sent


async def send_lesson_reminders(db: AsyncSession, now: datetime) -> ReminderResult:
    now = ensure_utc(now)
    window_end = now + timedelta(hours=24)
    reminders = ReminderResult()

    result = await db.execute(
        select(Booking.id, Booking.date, Booking.time).where(
            Booking.status == BOOKING_CONFIRMED,
            Booking.payment_status == PAYMENT_PAID,
            Booking.date >= now.date(),
            Booking.date <= window_end.date()
        )
    )
    upcoming_ids = [
        booking_id
        for booking_id, booking_date, booking_time in result.all()
        if now < get_scheduled_start(booking_date, booking_time) <= window_end
    ]
    logger.info(f"Revisando {len(upcoming_ids)} clases próximas para recordatorios")

    for booking_id in upcoming_ids:
        try:
            booking = await get_booking_by_id(db, booking_id)
            if booking is None or booking.status != BOOKING_CONFIRMED:
                continue
            starts_at = get_scheduled_start(booking.date, booking.time)

            if starts_at - now <= timedelta(hours=1):
                if not booking.reminder_1h_sent and await notify_participants(booking, 1):
                    booking.reminder_1h_sent = True
                    # El de 24 h ya no tiene sentido a una hora del inicio
                    booking.reminder_24h_sent = True
                    await db.commit()
                    reminders.sent_1h += 1
            elif not booking.reminder_24h_sent and await notify_participants(booking, 24):
                booking.reminder_24h_sent = True
                await db.commit()
                reminders.sent_24h += 1
        except SQLAlchemyError as e:
            await db.rollback()
            reminders.failed += 1
            logger.error(f"❌ Error guardando recordatorio del booking {booking_id}: {str(e)}")

    logger.info(f"⏰ Recordatorios enviados: {reminders.sent_24h} de 24h, {reminders.sent_1h} de 1h")
    return reminders
