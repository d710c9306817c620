# NG-HEADER: Nombre de archivo: field_values.py
# NG-HEADER: Ubicación: services/inventory/field_values.py
# NG-HEADER: Descripción: Conversión tipada de valores de campos personalizados (texto <-> tipo declarado)
# NG-HEADER: Lineamientos: Ver AGENTS.md
"""Conversión centralizada de valores EAV.

``product_field_values.value`` siempre guarda texto. Toda lectura y escritura
de campos personalizados pasa por este módulo para que la conversión dependa
sólo del tipo declarado en la definición del campo:

=========  ==========================  =========================
tipo       texto almacenado            valor leído
=========  ==========================  =========================
text       tal cual                    str
textarea   tal cual                    str
select     una de las opciones         str
number     "12" / "12.5"               int si es entero, si no float
date       "YYYY-MM-DD"                "YYYY-MM-DD"
boolean    "true" / "false"            bool
=========  ==========================  =========================

También expone ``parse_number`` y ``parse_datetime``, reutilizados por la
importación masiva para limpiar columnas de precios y fechas.
"""
from __future__ import annotations

import enum
import json
import re
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from .errors import ValidationFailed


class FieldType(str, enum.Enum):
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    SELECT = "select"
    TEXTAREA = "textarea"
    BOOLEAN = "boolean"


_TRUE_WORDS = {"true", "1", "si", "sì", "sí", "yes", "y", "on", "vero"}
_FALSE_WORDS = {"false", "0", "no", "n", "off", "falso"}
_NUMBER_NOISE = re.compile(r"[^\d.,\-]")
_DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%d.%m.%Y", "%Y/%m/%d")


def is_blank(raw: Any) -> bool:
    """``None`` o string vacío/espacios. ``False`` y ``0`` no son vacíos."""
    if raw is None:
        return True
    if isinstance(raw, str):
        return raw.strip() == ""
    return False


def parse_number(raw: Any) -> Optional[Decimal]:
    """Convierte números o strings con símbolos de moneda a ``Decimal``.

    Acepta separador decimal ``,`` o ``.``; si aparecen ambos, el último es el
    decimal y el otro se trata como separador de miles.

    Ejemplos:
        "€ 1.250,50" -> Decimal("1250.50")
        "1,250.50"   -> Decimal("1250.50")
        "12,5"       -> Decimal("12.5")
        "40mm"       -> Decimal("40")

    Devuelve ``None`` si la entrada está vacía; lanza ``ValueError`` si no es numérica.
    """
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise ValueError("valor booleano no es numérico")
    if isinstance(raw, Decimal):
        return raw
    if isinstance(raw, (int, float)):
        if raw != raw:  # NaN (p. ej. celdas vacías de pandas)
            return None
        return Decimal(str(raw))
    s = _NUMBER_NOISE.sub("", str(raw))
    if s in ("", "-"):
        if str(raw).strip() == "":
            return None
        raise ValueError(f"'{raw}' no es un número")
    if "," in s and "." in s:
        if s.rfind(",") > s.rfind("."):
            s = s.replace(".", "").replace(",", ".")
        else:
            s = s.replace(",", "")
    elif "," in s:
        s = s.replace(",", ".") if s.count(",") == 1 else s.replace(",", "")
    elif s.count(".") > 1:
        s = s.replace(".", "")
    try:
        return Decimal(s)
    except InvalidOperation:
        raise ValueError(f"'{raw}' no es un número")


def parse_datetime(raw: Any) -> Optional[datetime]:
    """Fechas ISO (con o sin hora, sufijo Z) o dd/mm/yyyy -> ``datetime``."""
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, date):
        return datetime(raw.year, raw.month, raw.day)
    s = str(raw).strip()
    if not s:
        return None
    try:
        dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
        # Normalizamos a naive UTC como el resto de columnas DateTime
        if dt.tzinfo is not None:
            dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
        return dt
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            continue
    raise ValueError(f"'{raw}' no es una fecha válida")


def parse_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)) and raw in (0, 1):
        return bool(raw)
    s = str(raw).strip().lower()
    if s in _TRUE_WORDS:
        return True
    if s in _FALSE_WORDS:
        return False
    raise ValueError(f"'{raw}' no es un valor booleano")


def parse_options(raw: Any) -> list[str]:
    """Opciones de un campo select: lista, JSON de lista o texto separado por comas."""
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        items: Iterable[Any] = raw
    else:
        s = str(raw).strip()
        if not s:
            return []
        items = None  # type: ignore[assignment]
        if s.startswith("["):
            try:
                loaded = json.loads(s)
                if isinstance(loaded, list):
                    items = loaded
            except ValueError:
                items = None  # type: ignore[assignment]
        if items is None:
            items = s.split(",")
    out: list[str] = []
    for it in items:
        v = str(it).strip()
        if v and v not in out:
            out.append(v)
    return out


def dump_options(options: Any) -> Optional[str]:
    opts = parse_options(options)
    return json.dumps(opts, ensure_ascii=False) if opts else None


def _format_decimal(d: Decimal) -> str:
    if d == d.to_integral_value():
        return str(int(d))
    return format(d.normalize(), "f")


def to_storage(field: Any, raw: Any) -> Optional[str]:
    """Convierte el valor recibido por la API al texto a guardar.

    ``field`` es una definición con ``type``, ``label`` y ``options``.
    Devuelve ``None`` cuando no hay valor (la entrada se omite).
    """
    if raw is None:
        return None
    ftype = FieldType(field.type)
    label = field.label
    if ftype in (FieldType.TEXT, FieldType.TEXTAREA):
        return str(raw)
    if is_blank(raw):
        # Vacío explícito: se guarda vacío y la validación de obligatorios ya corrió antes
        return ""
    try:
        if ftype == FieldType.NUMBER:
            num = parse_number(raw)
            return "" if num is None else _format_decimal(num)
        if ftype == FieldType.DATE:
            dt = parse_datetime(raw)
            return "" if dt is None else dt.date().isoformat()
        if ftype == FieldType.BOOLEAN:
            return "true" if parse_bool(raw) else "false"
    except ValueError as exc:
        raise ValidationFailed(f"Valor inválido para el campo {label}: {exc}")
    # select
    value = str(raw).strip()
    options = parse_options(field.options)
    if options and value not in options:
        raise ValidationFailed(
            f"Valor inválido para el campo {label}: '{value}' no está entre las opciones ({', '.join(options)})"
        )
    return value


def from_storage(field: Any, text: Optional[str]) -> Any:
    """Convierte el texto almacenado al tipo declarado del campo.

    Textos legados que no respetan el tipo se devuelven sin cambios.
    """
    if text is None:
        return None
    ftype = FieldType(field.type)
    if ftype in (FieldType.TEXT, FieldType.TEXTAREA, FieldType.SELECT) or text == "":
        return text
    try:
        if ftype == FieldType.NUMBER:
            num = parse_number(text)
            if num is None:
                return None
            if num == num.to_integral_value():
                return int(num)
            return float(num)
        if ftype == FieldType.DATE:
            dt = parse_datetime(text)
            return dt.date().isoformat() if dt else None
        if ftype == FieldType.BOOLEAN:
            return parse_bool(text)
    except ValueError:
        return text
    return text
