from typing import Optional
from fastapi import APIRouter, Depends, Header, Request
from app.services.payments.payment_notification_service import handle_stripe_webhook
from app.apis.deps import get_db
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter()

@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
    stripe_signature: Optional[str] = Header(None)
):
    """
    Recibe los eventos de Stripe. Es seguro recibir el mismo evento más de una vez.
    Responde 500 solo ante errores de almacenamiento, para que Stripe reintente.
    """
    payload = await request.body()
    return await handle_stripe_webhook(db, payload, stripe_signature)
