# NG-HEADER: Nombre de archivo: errors.py
# NG-HEADER: Ubicación: services/inventory/errors.py
# NG-HEADER: Descripción: Excepciones de dominio del inventario (mapeadas a HTTP en services/api.py)
# NG-HEADER: Lineamientos: Ver AGENTS.md
"""Excepciones de dominio.

Las capas de servicio lanzan estas excepciones y ``services/api.py`` las
traduce a respuestas HTTP:

- ``ValidationFailed`` -> 400 (payload estructurado si hay ``errors``)
- ``NotFound`` -> 404
- ``InvariantViolation`` -> 400 (regla de negocio o referencial)
"""
from __future__ import annotations

from typing import Any


class InventoryError(Exception):
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def payload(self) -> dict[str, Any]:
        return {"detail": self.message}


class ValidationFailed(InventoryError):
    """Entrada inválida o faltante."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []

    def payload(self) -> dict[str, Any]:
        if self.errors:
            return {"detail": self.message, "errors": self.errors}
        return {"detail": self.message}


class NotFound(InventoryError):
    status_code = 404


class InvariantViolation(InventoryError):
    """La operación rompería una regla (dependencias, ya vendido, slug duplicado)."""


def pydantic_errors(exc: Any) -> list[dict[str, Any]]:
    """Aplana ``ValidationError.errors()`` a {loc, msg, type} serializable."""
    flat: list[dict[str, Any]] = []
    for e in exc.errors():
        loc = ".".join(str(p) for p in e.get("loc", ()))
        msg = e.get("msg", "")
        if isinstance(msg, bytes):
            msg = msg.decode("utf-8", "replace")
        flat.append({"loc": loc, "msg": str(msg), "type": e.get("type", "")})
    return flat


def describe_errors(errors: list[dict[str, Any]]) -> str:
    """Mensaje legible de una lista aplanada (usado en errores por fila de importación)."""
    parts = []
    for e in errors:
        loc = e.get("loc")
        parts.append(f"{loc}: {e.get('msg')}" if loc else str(e.get("msg")))
    return "; ".join(parts)
