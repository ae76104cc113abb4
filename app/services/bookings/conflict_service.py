from datetime import date
from typing import Iterable, List

from sqlalchemy.ext.asyncio import AsyncSession

from app.services.bookings.booking_store import get_active_bookings_for_slot


async def has_conflict(db: AsyncSession, tutor_id: int, slot_date: date, time: str) -> bool:
    """Indica si una reserva no cancelada ya ocupa (docente, fecha, hora)."""
    existing = await get_active_bookings_for_slot(db, tutor_id, slot_date, time)
    return len(existing) > 0


async def find_conflicting_dates(db: AsyncSession, tutor_id: int, dates: Iterable[date], time: str) -> List[date]:
    """
    Revisa todas las fechas y devuelve las que están ocupadas.
    No se detiene en el primer conflicto para poder reportarlos todos juntos.
    """
    conflicts = []
    for slot_date in dates:
        if await has_conflict(db, tutor_id, slot_date, time):
            conflicts.append(slot_date)
    return conflicts
