"""
Acceso a datos de reservas, docentes y usuarios.
Todas las escrituras pasan por `commit_changes`, que traduce los errores de almacenamiento
a la taxonomía HTTP: índice único violado -> 409, versión obsoleta -> 409, otro error -> 500.
"""

from datetime import date
from typing import List, Optional
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.models.booking.bookings import Booking, BOOKING_CANCELLED, PAYMENT_PENDING
from app.models.tutors.tutor import Tutor
from app.models.users.user import User
from app.services.validation.exception import conflict_exception, unexpected_exception

logger = logging.getLogger(__name__)


async def get_booking_by_id(db: AsyncSession, booking_id: int) -> Optional[Booking]:
    # populate_existing descarta el estado cacheado tras un rollback
    return await db.get(Booking, booking_id, populate_existing=True)


async def get_bookings_by_series(db: AsyncSession, series_id: str) -> List[Booking]:
    result = await db.execute(
        select(Booking)
        .where(Booking.series_id == series_id)
        .order_by(Booking.date.asc(), Booking.series_index.asc())
    )
    return list(result.scalars().all())


async def get_bookings_by_student_email(db: AsyncSession, email: str) -> List[Booking]:
    result = await db.execute(
        select(Booking)
        .where(Booking.student_email == email)
        .order_by(Booking.date.desc(), Booking.time.desc())
    )
    return list(result.scalars().all())


async def get_bookings_by_tutor_email(db: AsyncSession, email: str) -> List[Booking]:
    result = await db.execute(
        select(Booking)
        .where(Booking.tutor_email == email)
        .order_by(Booking.date.desc(), Booking.time.desc())
    )
    return list(result.scalars().all())


async def get_active_bookings_for_slot(db: AsyncSession, tutor_id: int, slot_date: date, time: str) -> List[Booking]:
    result = await db.execute(
        select(Booking).where(
            Booking.tutor_id == tutor_id,
            Booking.date == slot_date,
            Booking.time == time,
            Booking.status != BOOKING_CANCELLED
        )
    )
    return list(result.scalars().all())


async def get_pending_trial_booking(db: AsyncSession, student_id: int, exclude_booking_id: int) -> Optional[Booking]:
    """Otra reserva del estudiante con un checkout de prueba abierto y sin pagar."""
    result = await db.execute(
        select(Booking).where(
            Booking.student_id == student_id,
            Booking.id != exclude_booking_id,
            Booking.is_trial.is_(True),
            Booking.payment_status == PAYMENT_PENDING,
            Booking.stripe_session_id.is_not(None),
            Booking.status != BOOKING_CANCELLED
        ).limit(1)
    )
    return result.scalar_one_or_none()


async def get_tutor_by_id(db: AsyncSession, tutor_id: int) -> Optional[Tutor]:
    result = await db.execute(
        select(Tutor).where(Tutor.id == tutor_id, Tutor.is_active.is_(True))
    )
    return result.scalar_one_or_none()


async def get_user_by_id(db: AsyncSession, user_id: int) -> Optional[User]:
    return await db.get(User, user_id, populate_existing=True)


async def commit_changes(db: AsyncSession, conflict_detail: str = "El horario ya está reservado") -> None:
    """
    Confirma la transacción actual.
    - IntegrityError: otra reserva activa ocupa el mismo (docente, fecha, hora).
    - StaleDataError: el registro cambió desde que se leyó (token de versión obsoleto).
    En ambos casos se hace rollback y el error es reintentable por el cliente.
    """
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.warning(f"⚠️ Violación de unicidad al guardar: {str(e.orig)}")
        await conflict_exception(conflict_detail)
    except StaleDataError as e:
        await db.rollback()
        logger.warning(f"⚠️ Versión obsoleta al guardar: {str(e)}")
        await conflict_exception("La reserva fue modificada por otra operación, intenta de nuevo")
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"❌ Error de base de datos: {str(e)}")
        await unexpected_exception()
