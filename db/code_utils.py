#!/usr/bin/env python
# NG-HEADER: Nombre de archivo: code_utils.py
# NG-HEADER: Ubicación: db/code_utils.py
# NG-HEADER: Descripción: Generación de códigos de producto (PRE-######NNN) con control de colisión
# NG-HEADER: Lineamientos: Ver AGENTS.md
"""Helpers para códigos de producto de relojes y productos dinámicos.

Formato: ``XXX-TTTTTTRRR[-S]``

- XXX: 3 caracteres derivados de la categoría (productos) o la marca (relojes)
- TTTTTT: últimos 6 dígitos del epoch en milisegundos
- RRR: número aleatorio de 3 dígitos
- S: sufijo opcional (``D`` para duplicados, índice de fila en importaciones)

Ejemplos válidos:
  ORO-512034087
  ROL-990112004-D
  ORO-512034087-12

La columna ``product_code`` es única: ``generate_unique_code`` verifica la
existencia antes de devolver y regenera hasta agotar los intentos.
"""
from __future__ import annotations

import random
import time
import unicodedata
from typing import Awaitable, Callable, Optional

from core.config import settings


class ProductCodeGenerationError(Exception):
    """No se pudo obtener un código libre tras los reintentos configurados."""


def code_prefix(name: str | None) -> str:
    """Deriva el prefijo de 3 caracteres a partir de un nombre.

    - Elimina diacríticos (NFKD)
    - Filtra caracteres no alfanuméricos
    - Upper
    - Rellena con 'X' hasta 3 si es corto
    """
    if not name:
        return "XXX"
    t = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    chars = [c for c in t.upper() if c.isalnum()]
    while len(chars) < 3:
        chars.append("X")
    return "".join(chars)[:3]


def build_product_code(name: str | None, suffix: str | int | None = None, *, now_ms: int | None = None, rnd: int | None = None) -> str:
    """Construye un código candidato. No valida unicidad."""
    ms = now_ms if now_ms is not None else int(time.time() * 1000)
    stamp = str(ms)[-6:].rjust(6, "0")
    r = rnd if rnd is not None else random.randint(0, 999)
    code = f"{code_prefix(name)}-{stamp}{r:03d}"
    if suffix is not None and str(suffix) != "":
        code = f"{code}-{str(suffix).upper()}"
    return code


async def generate_unique_code(
    name: str | None,
    exists: Callable[[str], Awaitable[bool]],
    suffix: str | int | None = None,
    retries: Optional[int] = None,
) -> str:
    """Genera un código que todavía no existe según ``exists``.

    Uso:
        code = await generate_unique_code(category.name, exists=_code_taken)
    """
    attempts = retries if retries is not None else settings.product_code_retries
    for _ in range(max(1, attempts)):
        candidate = build_product_code(name, suffix)
        if not await exists(candidate):
            return candidate
    raise ProductCodeGenerationError(
        f"No se pudo generar un código único para '{name}' tras {attempts} intentos"
    )
