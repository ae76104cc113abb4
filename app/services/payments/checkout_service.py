from dataclasses import dataclass
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.configs.settings import settings
from app.external.stripe_config import stripe, stripe_config
from app.models.booking.bookings import PAYMENT_PAID
from app.schemas.auths.auth_schema import Principal
from app.services.bookings.booking_service import (
    get_booking_or_404,
    is_booking_participant,
    is_booking_student,
)
from app.services.bookings.booking_store import commit_changes, get_pending_trial_booking, get_user_by_id
from app.services.bookings.pricing_service import calculate_series_pricing, calculate_single_price, convert_to_cents
from app.services.validation.exception import bad_request_exception, forbidden_exception, unexpected_exception

logger = logging.getLogger(__name__)


@dataclass
class CheckoutResult:
    session_id: str
    url: str
    amount: float
    is_trial: bool


async def is_trial_eligible(db: AsyncSession, user_id: int, booking_id: int) -> bool:
    user = await get_user_by_id(db, user_id)
    if user is None or user.has_used_trial:
        return False

    # La prueba se consume al confirmarse el pago; mientras tanto solo una reserva puede tenerla abierta
    pending = await get_pending_trial_booking(db, user_id, exclude_booking_id=booking_id)
    if pending is not None:
        logger.info(f"⚠️ Usuario {user_id} ya tiene un checkout de prueba abierto en el booking {pending.id}")
        return False
    return True


def resolve_regular_amount(booking) -> float:
    # Precio por clase con descuento desde la tarifa congelada;
    # `payment_amount` puede traer el precio de un checkout de prueba anterior
    if booking.series_id:
        return calculate_series_pricing(booking.hourly_rate, booking.series_total).per_lesson_price
    return calculate_single_price(booking.hourly_rate, booking.duration_minutes)


def create_stripe_checkout_session(booking, amount: float, is_trial: bool):
    """Crea la sesión de Stripe Checkout; el webhook recibe la metadata de vuelta."""
    session_data = {
        "payment_method_types": ["card"],
        "mode": "payment",
        "customer_email": booking.student_email,
        "line_items": [
            {
                "price_data": {
                    "currency": stripe_config.currency,
                    "product_data": {
                        "name": f"Lesson with {booking.tutor_name}",
                        "description": f"{booking.duration_minutes} minute session on {booking.date.isoformat()} at {booking.time}",
                    },
                    "unit_amount": convert_to_cents(amount),
                },
                "quantity": 1,
            }
        ],
        "metadata": {
            "booking_id": str(booking.id),
            "student_id": str(booking.student_id),
            "student_email": booking.student_email,
            "tutor_email": booking.tutor_email,
            "was_trial": "true" if is_trial else "false",
        },
        "success_url": f"{settings.FRONTEND_URL}/payment/success?session_id={{CHECKOUT_SESSION_ID}}&booking_id={booking.id}",
        "cancel_url": f"{settings.FRONTEND_URL}/payment/cancelled?booking_id={booking.id}",
    }
    return stripe.checkout.Session.create(**session_data)


async def create_checkout(db: AsyncSession, principal: Principal, booking_id: int, wants_trial: bool = False) -> CheckoutResult:
    booking = await get_booking_or_404(db, booking_id)

    # 1. Solo el estudiante de la reserva puede pagarla
    if not is_booking_student(principal, booking):
        await forbidden_exception("You cannot pay for this booking")

    if booking.payment_status == PAYMENT_PAID:
        await bad_request_exception("This booking is already paid")

    # 2. Precio: prueba de precio fijo (una sola vez) o tarifa normal
    is_trial = wants_trial and await is_trial_eligible(db, booking.student_id, booking.id)
    amount = settings.TRIAL_PRICE if is_trial else resolve_regular_amount(booking)

    # 3. Sesión de pago en Stripe
    try:
        session = create_stripe_checkout_session(booking, amount, is_trial)
    except stripe.StripeError as e:
        logger.error(f"❌ Error creando sesión de Stripe para booking {booking.id}: {str(e)}")
        await unexpected_exception()

    # 4. Se guarda la referencia pendiente; el pago lo confirma el webhook
    booking.payment_amount = amount
    booking.is_trial = is_trial
    booking.stripe_session_id = session.id
    await commit_changes(db)

    logger.info(f"💳 Checkout {session.id} creado para booking {booking.id} (trial={is_trial}, amount={amount})")
    return CheckoutResult(session_id=session.id, url=session.url, amount=amount, is_trial=is_trial)


async def get_payment_status(db: AsyncSession, principal: Principal, booking_id: int) -> dict:
    booking = await get_booking_or_404(db, booking_id)
    if not is_booking_participant(principal, booking):
        await forbidden_exception("Access denied")
    return {
        "payment_status": booking.payment_status,
        "paid_at": booking.paid_at,
    }


async def get_trial_status(db: AsyncSession, principal: Principal) -> dict:
    user = await get_user_by_id(db, principal.user_id)
    has_used_trial = bool(user and user.has_used_trial)
    return {
        "eligible": not has_used_trial,
        "has_used_trial": has_used_trial,
        "trial_price": settings.TRIAL_PRICE,
    }
