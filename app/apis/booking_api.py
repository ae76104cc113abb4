from fastapi import APIRouter, Depends
from app.schemas.auths.auth_schema import Principal
from app.schemas.bookings.booking_shema import (
    BookingRequest, BookingResponse, BookingListResponse,
    MeetingLinkRequest, DisputeRequest
)
from app.services.bookings.booking_service import (
    create_booking, get_booking, list_bookings, cancel_booking, attach_meeting_link
)
from app.services.sessions.session_lifecycle_service import dispute_session
from app.apis.deps import get_current_principal, get_db
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter()

@router.post("/crear-booking/", response_model=BookingResponse, status_code=201)
async def crear_booking(
    request: BookingRequest,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    booking = await create_booking(
        db,
        principal,
        tutor_id=request.tutor_id,
        booking_date=request.date,
        time=request.time,
        duration_minutes=request.duration_minutes,
        payment_amount=request.payment_amount
    )
    return {
        "success": True,
        "message": "Booking created successfully!",
        "data": booking
    }

@router.get("/mis-bookings/", response_model=BookingListResponse)
async def mis_bookings(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Reservas del usuario autenticado según su rol (docente o estudiante), más recientes primero.
    """
    bookings = await list_bookings(db, principal)
    return {
        "success": True,
        "message": "Bookings obtenidos exitosamente",
        "data": bookings
    }

@router.get("/{booking_id}", response_model=BookingResponse)
async def obtener_booking(
    booking_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    booking = await get_booking(db, principal, booking_id)
    return {
        "success": True,
        "message": "Booking obtenido exitosamente",
        "data": booking
    }

@router.delete("/{booking_id}", response_model=BookingResponse)
async def cancelar_booking(
    booking_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Cancela una reserva. Puede hacerlo el estudiante o el docente.
    Cancelar una reserva ya cancelada no modifica nada.
    """
    booking = await cancel_booking(db, principal, booking_id)
    return {
        "success": True,
        "message": "Booking cancelled successfully",
        "data": booking
    }

@router.patch("/{booking_id}/meeting-link", response_model=BookingResponse)
async def actualizar_meeting_link(
    booking_id: int,
    request: MeetingLinkRequest,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Solo el docente puede agregar el link de la clase.
    """
    booking = await attach_meeting_link(db, principal, booking_id, request.meeting_link)
    return {
        "success": True,
        "message": "Meeting link updated successfully",
        "data": booking
    }

@router.post("/{booking_id}/dispute", response_model=BookingResponse)
async def disputar_sesion(
    booking_id: int,
    request: DisputeRequest,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    El estudiante reporta una sesión pagada (por ejemplo, el docente no se presentó).
    """
    booking = await dispute_session(db, principal, booking_id, request.reason)
    return {
        "success": True,
        "message": "Session disputed successfully. Admin will review.",
        "data": booking
    }
