# NG-HEADER: Nombre de archivo: loader.py
# NG-HEADER: Ubicación: services/inventory/loader.py
# NG-HEADER: Descripción: Lectura de archivos CSV/XLSX subidos para importación masiva
# NG-HEADER: Lineamientos: Ver AGENTS.md
"""Carga archivos CSV/XLSX usando pandas y los convierte en filas JSON."""
from __future__ import annotations

import json
from datetime import date, datetime
from io import BytesIO, StringIO
from pathlib import Path
from typing import Any, Optional

import pandas as pd

from .errors import ValidationFailed

SUPPORTED_SUFFIXES = (".csv", ".xlsx")


def _decode(content: bytes) -> str:
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        # Exportaciones de Excel en Windows suelen venir en latin-1
        return content.decode("latin-1")


def read_table(content: bytes, filename: str) -> pd.DataFrame:
    """Lee el archivo subido. Todas las celdas quedan como texto u objeto crudo.

    En CSV el separador se detecta (``,`` o ``;``).
    """
    suffix = Path(filename or "").suffix.lower()
    if not content:
        raise ValidationFailed("El archivo está vacío")
    try:
        if suffix == ".csv":
            return pd.read_csv(StringIO(_decode(content)), sep=None, engine="python", dtype=str)
        if suffix == ".xlsx":
            return pd.read_excel(BytesIO(content), dtype=object, engine="openpyxl")
    except (ValueError, pd.errors.ParserError) as exc:
        raise ValidationFailed(f"No se pudo leer el archivo: {exc}")
    raise ValidationFailed(f"Tipo de archivo no soportado: {suffix or filename} (usar .csv o .xlsx)")


def _cell(value: Any) -> Any:
    if value is None:
        return None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if hasattr(value, "item"):
        # Escalares numpy -> tipos nativos para JSON
        return value.item()
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def frame_to_rows(df: pd.DataFrame) -> tuple[list[str], list[dict[str, Any]]]:
    """DataFrame -> (encabezados, filas). NaN y celdas vacías pasan a ``None``."""
    headers = [str(c).strip() for c in df.columns]
    df.columns = headers
    rows: list[dict[str, Any]] = []
    for record in df.to_dict(orient="records"):
        row = {k: _cell(v) for k, v in record.items()}
        if any(v is not None for v in row.values()):
            rows.append(row)
    return headers, rows


def parse_upload(content: bytes, filename: str) -> dict[str, Any]:
    headers, rows = frame_to_rows(read_table(content, filename))
    return {"headers": headers, "rows": rows, "total": len(rows)}


def parse_mapping_field(raw: Optional[str]) -> Optional[dict[str, Optional[str]]]:
    """Mapeo recibido como campo de formulario (JSON ``{campo: columna}``)."""
    if raw is None or not raw.strip():
        return None
    try:
        mapping = json.loads(raw)
    except ValueError:
        raise ValidationFailed("mapping debe ser un objeto JSON {campo: columna}")
    if not isinstance(mapping, dict):
        raise ValidationFailed("mapping debe ser un objeto JSON {campo: columna}")
    return {str(k): (str(v) if v not in (None, "") else None) for k, v in mapping.items()}
