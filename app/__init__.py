"""
Este bloque define la configuración de inicio (lifespan) y creación de la aplicación FastAPI.
Al arrancar se crean las tablas que falten, incluido el índice único de horarios activos.
"""

import logging

from fastapi import FastAPI
from contextlib import asynccontextmanager
from fastapi.middleware.cors import CORSMiddleware
from app.cores.db import Base, engine
from app.configs.settings import settings

from app.models.users.user import User
from app.models.tutors.tutor import Tutor
from app.models.booking.bookings import Booking

from app.apis.booking_api import router as booking_router
from app.apis.recurring_booking_api import router as recurring_booking_router
from app.apis.checkout_api import router as checkout_router
from app.apis.webhook_api import router as webhook_router
from app.apis.jobs_api import router as jobs_router

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Función que se ejecuta al iniciar la aplicación.
    - Crea todas las tablas en la base de datos si no existen.
    - Al finalizar, continúa con la ejecución normal de la app (con `yield`).
    """
    async with engine.begin() as conn:
        # Crea las tablas en la base de datos
        await conn.run_sync(Base.metadata.create_all)

    yield

    await engine.dispose()

"""
    Función que construye y retorna la instancia principal de la aplicación FastAPI.
    - Establece el título de la app.
    - Aplica la función `lifespan` para la inicialización.
    - Carga las rutas de reservas, series, pagos, webhook y jobs.
"""


def create_app() -> FastAPI:
    app = FastAPI(
        title="tutorbook",
        lifespan=lifespan
    )

    origins = [
        settings.FRONTEND_URL,
        "http://localhost:5173",
    ]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Las series van antes que /bookings/{booking_id}
    app.include_router(recurring_booking_router, prefix="/api/bookings/recurring", tags=["Recurring Bookings"])
    app.include_router(booking_router, prefix="/api/bookings", tags=["Bookings"])
    app.include_router(checkout_router, prefix="/api/checkout", tags=["Checkout"])
    app.include_router(webhook_router, prefix="/api/webhook", tags=["Webhooks"])
    app.include_router(jobs_router, prefix="/api/jobs", tags=["Jobs"])

    return app
