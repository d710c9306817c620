# NG-HEADER: Nombre de archivo: health.py
# NG-HEADER: Ubicación: services/routers/health.py
# NG-HEADER: Descripción: Endpoints de healthcheck (liveness y base de datos)
# NG-HEADER: Lineamientos: Ver AGENTS.md
"""Endpoints de health.

- Liveness básico (`/health`)
- Conectividad DB (`/health/db`)
"""
from __future__ import annotations

import time
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from db.session import get_session

router = APIRouter(prefix="/health", tags=["health"])
START_TIME = time.monotonic()


@router.get("")
async def health_root() -> Dict[str, Any]:
    """Liveness simple del backend (si responde, está vivo)."""
    return {"status": "ok", "env": settings.env, "uptime_s": round(time.monotonic() - START_TIME, 1)}


@router.get("/db")
async def health_db(db: AsyncSession = Depends(get_session)) -> Dict[str, Any]:
    """Valida conexión a la base de datos (SELECT 1)."""
    await db.execute(text("SELECT 1"))
    return {"ok": True}
