from fastapi import APIRouter, Depends
from app.schemas.auths.auth_schema import Principal
from app.schemas.payments.checkout_schema import (
    CheckoutRequest, CheckoutResponse, PaymentStatusResponse, TrialStatusResponse
)
from app.services.payments.checkout_service import create_checkout, get_payment_status, get_trial_status
from app.apis.deps import get_current_principal, get_db
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter()

@router.post("/create-session/", response_model=CheckoutResponse)
async def crear_sesion_pago(
    request: CheckoutRequest,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    result = await create_checkout(db, principal, request.booking_id, wants_trial=request.is_trial)
    return {
        "success": True,
        "message": "Sesión de pago creada exitosamente",
        "data": {
            "session_id": result.session_id,
            "url": result.url,
            "amount": result.amount,
            "is_trial": result.is_trial
        }
    }

@router.get("/status/{booking_id}", response_model=PaymentStatusResponse)
async def estado_pago(
    booking_id: int,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    data = await get_payment_status(db, principal, booking_id)
    return {
        "success": True,
        "message": "Estado de pago obtenido",
        "data": data
    }

@router.get("/trial-status/", response_model=TrialStatusResponse)
async def estado_prueba(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    data = await get_trial_status(db, principal)
    return {
        "success": True,
        "message": "Elegibilidad de clase de prueba",
        "data": data
    }
