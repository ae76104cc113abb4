from typing import List, Optional

from fastapi import HTTPException, status

"""
Errores del dominio de reservas y pagos.
Cada helper lanza un HTTPException con el código que corresponde a la taxonomía:
403 sin permisos, 404 no encontrado, 400 entrada inválida,
409 conflicto de horario o de versión, 500 falla de almacenamiento o colaborador.
La 401 (sin identidad) la resuelve `get_current_principal`.
"""

async def forbidden_exception(detail: str) -> None:
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=detail
    )

async def not_found_exception(detail: str) -> None:
    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=detail
    )

async def bad_request_exception(detail: str) -> None:
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=detail
    )

async def conflict_exception(detail: str, conflicts: Optional[List[str]] = None) -> None:
    if conflicts is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": detail, "conflicts": conflicts}
        )
    raise HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=detail
    )

async def unexpected_exception() -> None:
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="An internal error occurred. Please try again later."
    )
