from fastapi import APIRouter, Depends
from app.schemas.auths.auth_schema import Principal
from app.schemas.bookings.series_schema import SeriesRequest, SeriesResponse, SeriesCancelResponse
from app.services.bookings.series_service import create_series, get_series, cancel_series
from app.apis.deps import get_current_principal, get_db
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter()

@router.post("/", response_model=SeriesResponse, status_code=201)
async def crear_serie(
    request: SeriesRequest,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Crea una serie de clases semanales (1, 2, 4 u 8 semanas) con descuento por volumen.
    Si alguna fecha está ocupada no se crea ninguna y se devuelven todas las fechas en conflicto.
    """
    result = await create_series(
        db,
        principal,
        tutor_id=request.tutor_id,
        start_date=request.start_date,
        time=request.time,
        weeks=request.weeks,
        duration_minutes=request.duration_minutes
    )
    total = len(result.bookings)
    return {
        "success": True,
        "message": f"Successfully created {total} lesson{'s' if total > 1 else ''}!",
        "data": {
            "series_id": result.series_id,
            "bookings": result.bookings,
            "pricing": result.pricing.to_dict()
        }
    }

@router.get("/{series_id}", response_model=SeriesResponse)
async def obtener_serie(
    series_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    bookings, stats = await get_series(db, principal, series_id)
    return {
        "success": True,
        "message": "Serie obtenida exitosamente",
        "data": {
            "series_id": series_id,
            "bookings": bookings,
            "stats": stats
        }
    }

@router.delete("/{series_id}", response_model=SeriesCancelResponse)
async def cancelar_serie(
    series_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Cancela las clases futuras confirmadas de la serie; las pasadas o ya cerradas no se tocan.
    """
    result = await cancel_series(db, principal, series_id)
    return {
        "success": True,
        "message": f"Cancelled {result.cancelled_count} lessons in the series",
        "data": {
            "cancelled_count": result.cancelled_count,
            "failed_count": result.failed_count
        }
    }
