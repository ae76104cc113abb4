"""
Configuración de SQLAlchemy para trabajar con base de datos de forma asincrónica.
Soporta SQLite (desarrollo y pruebas) y cualquier motor async (producción) según variable de entorno.
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from app.configs.settings import settings

# Obtener la URL de la base de datos desde settings (.env)
DATABASE_URL = settings.SQLALCHEMY_DATABASE_URI


def build_engine(database_url: str):
    """Crea el engine async con los argumentos que necesita cada motor."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        # SQLite requiere check_same_thread=False para async
        connect_args = {"check_same_thread": False}

    return create_async_engine(
        database_url,
        connect_args=connect_args,
        echo=False
    )


def build_session_factory(bind) -> async_sessionmaker:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False
    )


engine = build_engine(DATABASE_URL)

async_session = build_session_factory(engine)

Base = declarative_base()
