from sqlalchemy.ext.asyncio import create_async_engine
from app.cores.db import Base, build_session_factory
from app.cores.token import create_access_token
from app.models import Booking, User


# Base de datos de prueba: un archivo SQLite por prueba para poder abrir varias conexiones
def build_test_engine(db_path):
    return create_async_engine(
        f"sqlite+aiosqlite:///{db_path}",
        connect_args={"check_same_thread": False, "timeout": 30},
        echo=False
    )


# Crea todas las tablas (incluido el índice único parcial de horarios)
async def init_test_db(engine_test):
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def build_testing_session(engine_test):
    return build_session_factory(engine_test)


# Devuelve una sesión de prueba (para override)
def build_override_get_db(testing_session_local):
    async def override_get_db():
        async with testing_session_local() as session:
            yield session
    return override_get_db


def auth_headers(principal) -> dict:
    token = create_access_token({"user_id": principal.user_id, "email": principal.email, "role": principal.role})
    return {"Authorization": f"Bearer {token}"}


async def load_booking(testing_session_local, booking_id: int):
    async with testing_session_local() as session:
        return await session.get(Booking, booking_id)


async def load_user(testing_session_local, user_id: int):
    async with testing_session_local() as session:
        return await session.get(User, user_id)
