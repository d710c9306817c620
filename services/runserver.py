# NG-HEADER: Nombre de archivo: runserver.py
# NG-HEADER: Ubicación: services/runserver.py
# NG-HEADER: Descripción: Arranque local del backend con uvicorn
# NG-HEADER: Lineamientos: Ver AGENTS.md
"""Servidor de desarrollo (``watchstock-api`` o ``python -m services.runserver``).

En Windows fuerza la política de loop Selector antes de iniciar uvicorn:
psycopg async no funciona con el Proactor por defecto.
"""

from __future__ import annotations

import asyncio
import os
import sys

import uvicorn

from core.config import settings


def _apply_windows_loop_policy() -> None:
    if sys.platform.startswith("win"):
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())


def main() -> None:
    _apply_windows_loop_policy()
    uvicorn.run(
        "services.api:app",
        host=os.getenv("WATCHSTOCK_HOST", "127.0.0.1"),
        port=int(os.getenv("WATCHSTOCK_PORT", "8000")),
        # Recarga automática sólo en desarrollo
        reload=settings.env == "dev",
        log_level=settings.log_level.lower(),
        access_log=True,
    )


if __name__ == "__main__":
    main()
