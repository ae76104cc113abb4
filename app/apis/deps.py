import hmac
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession
from app.cores.db import async_session
from fastapi import HTTPException, Header
from typing import Optional
from app.cores.token import verify_token
from app.configs.settings import settings
from app.schemas.auths.auth_schema import Principal

"""
Este archivo define la función `get_db`, que proporciona una sesión de base de datos asincrónica.
Se usa como dependencia en rutas de FastAPI para interactuar con la base de datos sin preocuparse
por abrir o cerrar la conexión manualmente.
"""
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    session = async_session()
    try:
        yield session
    finally:
        await session.close()

async def auth_required(authorization: Optional[str] = Header(None)):
    if not authorization:
        raise HTTPException(status_code=401, detail="Token not provided")

    try:
        scheme, token = authorization.split()
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid token format")

    if scheme.lower() != "bearer":
        raise HTTPException(status_code=401, detail="Invalid token format")

    return verify_token(token)


async def get_current_principal(authorization: Optional[str] = Header(None)) -> Principal:
    """
    Construye el `Principal` (user_id, email, role) a partir del token.
    El rol se resuelve aquí una vez; los servicios no vuelven a consultarlo.
    """
    payload = await auth_required(authorization)

    user_id = payload.get("user_id")
    email = payload.get("email")
    role = payload.get("role")
    if not user_id or not email or not role:
        raise HTTPException(status_code=401, detail="Invalid data in token")

    return Principal(user_id=int(user_id), email=email, role=role)


async def job_secret_required(x_job_secret: Optional[str] = Header(None)):
    """Protege los endpoints que dispara el scheduler externo."""
    if not x_job_secret or not hmac.compare_digest(x_job_secret, settings.JOB_SECRET):
        raise HTTPException(status_code=403, detail="Invalid or missing job secret")
