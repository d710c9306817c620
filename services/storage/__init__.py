# NG-HEADER: Nombre de archivo: __init__.py
# NG-HEADER: Ubicación: services/storage/__init__.py
# NG-HEADER: Descripción: Capa de persistencia de clientes, proveedores, relojes y ventas
# NG-HEADER: Lineamientos: Ver AGENTS.md
"""Implementaciones de ``Storage`` y dependencia FastAPI ``get_storage``."""
from __future__ import annotations

from typing import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from db.session import get_session
from .base import Storage
from .memory import MemoryStorage
from .sql import SqlStorage


async def get_storage(session: AsyncSession = Depends(get_session)) -> AsyncGenerator[Storage, None]:
    """Storage SQL sobre la sesión del request (misma transacción que el motor EAV).

    Los tests pueden reemplazarlo con ``app.dependency_overrides[get_storage]``.
    """
    yield SqlStorage(session)


__all__ = ["Storage", "SqlStorage", "MemoryStorage", "get_storage"]
