"""
Configuración de fixtures para pytest.
"""
import pytest
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

import rostersync.infrastructure.database  # noqa: F401  (registra los modelos)
from rostersync.infrastructure.database.session import Base


# URL de base de datos de prueba
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def test_engine():
    """
    Engine en memoria compartido por todas las sesiones del test.

    StaticPool reutiliza una unica conexion: sin ella cada sesion veria
    una base :memory: distinta.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # Crear tablas
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Limpiar
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_engine) -> async_sessionmaker:
    """Fabrica de sesiones sobre la base de prueba (para el upload)."""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """
    Fixture que proporciona una sesión de base de datos para tests.
    Crea una base de datos en memoria para cada test.
    """
    async with session_factory() as session:
        yield session


@pytest.fixture(scope="function")
async def file_session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """
    Fabrica de sesiones sobre un archivo SQLite.

    Cada sesion usa su propia conexion, como en produccion, para poder
    ejercitar uploads concurrentes.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'roster.db'}",
        echo=False,
        connect_args={"timeout": 30},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    await engine.dispose()
