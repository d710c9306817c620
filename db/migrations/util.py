# NG-HEADER: Nombre de archivo: util.py
# NG-HEADER: Ubicación: db/migrations/util.py
# NG-HEADER: Descripción: Utilidades compartidas para scripts de migración.
# NG-HEADER: Lineamientos: Ver AGENTS.md
from __future__ import annotations

import sqlalchemy as sa
from sqlalchemy.engine import Connection


def has_table(bind: Connection, name: str) -> bool:
    """Devuelve True si la tabla existe (permite re-aplicar sobre bases creadas con create_all)."""
    return sa.inspect(bind).has_table(name)
