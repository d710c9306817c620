#!/usr/bin/env python
# NG-HEADER: Nombre de archivo: text_utils.py
# NG-HEADER: Ubicación: db/text_utils.py
# NG-HEADER: Descripción: Utilidades de texto (slugs de categorías y campos, nombres)
# NG-HEADER: Lineamientos: Ver AGENTS.md
"""Utilidades de texto compartidas por los modelos.

``slugify`` deriva el identificador URL-safe de categorías y campos
personalizados. Es la única fuente de verdad para la unicidad de slugs:
dos nombres que producen el mismo slug se consideran duplicados.
"""
from __future__ import annotations

import re
from typing import Optional

_WHITESPACE = re.compile(r"\s+")
# Equivalente a [^\w-] pero limitado a ASCII para que los slugs sean estables en URLs
_NON_SLUG = re.compile(r"[^A-Za-z0-9_\-]+")
_MULTI_DASH = re.compile(r"-{2,}")


def slugify(text: Optional[str]) -> str:
    """Convierte un nombre en slug URL-friendly.

    Pasos:
    - minúsculas y recorte de espacios
    - espacios internos -> ``-``
    - elimina caracteres no alfanuméricos (se conservan ``_`` y ``-``)
    - colapsa guiones repetidos y recorta guiones en los extremos

    Ejemplos:
        "Orologi" -> "orologi"
        "  Colore  Quadrante " -> "colore-quadrante"
        "Anno (produzione)" -> "anno-produzione"
        "Cassa -- Acciaio!" -> "cassa-acciaio"

    Devuelve cadena vacía si no queda ningún carácter válido.
    """
    if text is None:
        return ""
    s = str(text).lower().strip()
    s = _WHITESPACE.sub("-", s)
    s = _NON_SLUG.sub("", s)
    s = _MULTI_DASH.sub("-", s)
    return s.strip("-")

