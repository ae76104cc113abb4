"""
Aplicación de las notificaciones de pago de Stripe.

Stripe entrega los eventos al menos una vez y sin orden garantizado, así que
`apply_payment_notification` decide únicamente a partir del estado actual:
una reserva ya pagada no se vuelve a tocar, y la marca de clase de prueba del
estudiante se enciende una sola vez.
"""

from datetime import datetime, timezone
from typing import Optional
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.external.stripe_config import stripe, stripe_config
from app.models.booking.bookings import Booking, PAYMENT_PAID
from app.services.bookings.booking_store import get_booking_by_id, get_user_by_id
from app.services.notifications.booking_email_service import (
    build_booking_details,
    send_booking_confirmation_email,
)
from app.services.validation.exception import bad_request_exception, unexpected_exception

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED_EVENT = "checkout.session.completed"


async def mark_booking_paid(db: AsyncSession, booking: Booking, external_ref: Optional[str], was_trial: bool, student_id: Optional[int]) -> None:
    now = datetime.now(timezone.utc)
    booking.payment_status = PAYMENT_PAID
    booking.paid_at = now
    booking.stripe_payment_intent_id = external_ref

    if was_trial:
        user = await get_user_by_id(db, student_id or booking.student_id)
        if user and not user.has_used_trial:
            user.has_used_trial = True
            user.trial_used_at = now
            logger.info(f"🎟️ Clase de prueba consumida por el usuario {user.id}")
        elif user:
            logger.warning(f"⚠️ Pago de prueba para el booking {booking.id} pero el usuario {user.id} ya usó su prueba")

    await db.commit()


async def apply_payment_notification(
    db: AsyncSession,
    external_ref: Optional[str],
    booking_id: int,
    was_trial: bool,
    student_id: Optional[int] = None,
) -> Optional[Booking]:
    """
    Marca la reserva como pagada. Llamarla varias veces deja el mismo estado final.
    Solo los errores de almacenamiento se propagan (500) para que Stripe reintente.
    """
    try:
        booking = await get_booking_by_id(db, booking_id)
        if booking is None:
            logger.warning(f"⚠️ Notificación de pago para booking inexistente {booking_id}, se ignora")
            return None

        if booking.payment_status == PAYMENT_PAID:
            logger.info(f"Booking {booking_id} ya estaba pagado, notificación duplicada ignorada")
            return booking

        try:
            await mark_booking_paid(db, booking, external_ref, was_trial, student_id)
        except StaleDataError:
            # Otra entrega del mismo evento ganó la carrera; se relee el estado
            await db.rollback()
            booking = await get_booking_by_id(db, booking_id)
            if booking is not None and booking.payment_status == PAYMENT_PAID:
                logger.info(f"Booking {booking_id} pagado por una entrega concurrente")
                return booking
            raise

    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"❌ Error aplicando pago al booking {booking_id}: {str(e)}")
        await unexpected_exception()

    logger.info(f"✅ Booking {booking_id} marcado como pagado ({external_ref})")

    # La transición ya quedó guardada; un fallo del correo no la revierte
    await send_booking_confirmation_email(booking.student_email, build_booking_details(booking))
    return booking


def parse_was_trial(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).lower() == "true"


def verify_stripe_event(payload: bytes, signature: Optional[str]) -> stripe.Event:
    try:
        return stripe.Webhook.construct_event(payload, signature, stripe_config.webhook_secret)
    except stripe.SignatureVerificationError as e:
        logger.error(f"❌ Firma de webhook inválida: {str(e)}")
        raise


async def handle_stripe_webhook(db: AsyncSession, payload: bytes, signature: Optional[str]) -> dict:
    if not signature:
        await bad_request_exception("Missing Stripe signature")

    try:
        event = verify_stripe_event(payload, signature)
    except (stripe.SignatureVerificationError, ValueError) as e:
        await bad_request_exception(f"Webhook Error: {str(e)}")

    event_type = event["type"]
    if event_type != CHECKOUT_COMPLETED_EVENT:
        logger.info(f"Evento de Stripe ignorado: {event_type}")
        return {"received": True, "handled": False}

    session = event["data"]["object"]
    metadata = session.get("metadata") or {}
    booking_id = metadata.get("booking_id")
    if not booking_id:
        logger.warning(f"⚠️ Sesión {session.get('id')} sin booking_id en metadata")
        return {"received": True, "handled": False}

    student_id = metadata.get("student_id")
    await apply_payment_notification(
        db,
        external_ref=session.get("payment_intent") or session.get("id"),
        booking_id=int(booking_id),
        was_trial=parse_was_trial(metadata.get("was_trial", False)),
        student_id=int(student_id) if student_id else None,
    )
    return {"received": True, "handled": True}
