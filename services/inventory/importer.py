# NG-HEADER: Nombre de archivo: importer.py
# NG-HEADER: Ubicación: services/inventory/importer.py
# NG-HEADER: Descripción: Importación masiva de clientes, proveedores, relojes, ventas y productos
# NG-HEADER: Lineamientos: Ver AGENTS.md
"""Importación masiva con éxito parcial.

Cada fila se mapea, se limpia según el tipo de columna y se valida con el
mismo esquema que el alta manual. Una fila válida se confirma sola; una fila
inválida se descarta (rollback) y queda en ``errors`` sin frenar el resto.

Tipos de columna:

- ``money``: precios con símbolos/separadores ("€ 1.250,50")
- ``int``: enteros ("40mm" -> 40)
- ``date``: ISO, dd/mm/yyyy o dd-mm-yyyy
- ``id``: referencia numérica a otra entidad
- ``str``: texto recortado
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

from pydantic import ValidationError
from pydantic.alias_generators import to_snake
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from db.code_utils import ProductCodeGenerationError
from services.storage.base import Storage
from . import catalog, registry
from .errors import InventoryError, ValidationFailed, describe_errors, pydantic_errors
from .field_values import is_blank, parse_datetime, parse_number
from .schemas import CustomerIn, ProductIn, ProductSellIn, SaleIn, SupplierIn, WatchIn

logger = logging.getLogger("watchstock.import")

ENTITY_COLUMNS: dict[str, dict[str, str]] = {
    "customers": {
        "first_name": "str",
        "last_name": "str",
        "address": "str",
        "email": "str",
        "phone": "str",
    },
    "suppliers": {
        "name": "str",
        "surname": "str",
        "document": "str",
        "phone": "str",
        "email": "str",
        "notes": "str",
    },
    "watches": {
        "product_code": "str",
        "brand": "str",
        "model": "str",
        "reference": "str",
        "serial_number": "str",
        "year": "int",
        "condition": "str",
        "case_material": "str",
        "bracelet_material": "str",
        "case_size": "int",
        "dial_color": "str",
        "movement": "str",
        "purchase_date": "date",
        "purchase_price": "money",
        "selling_price": "money",
        "accessories": "str",
        "supplier_id": "id",
    },
    "sales": {
        "customer_id": "id",
        "watch_id": "id",
        "product_id": "id",
        "sale_date": "date",
        "sale_price": "money",
        "notes": "str",
    },
    "products": {
        "name": "str",
        "description": "str",
        "purchase_price": "money",
        "selling_price": "money",
        "purchase_date": "date",
        "condition": "str",
        "supplier_id": "id",
    },
}


@dataclass
class ImportResult:
    total: int = 0
    success: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)

    def add_error(self, row: int, message: str) -> None:
        self.errors.append({"row": row, "message": message})

    def as_dict(self) -> dict[str, Any]:
        return {"total": self.total, "success": self.success, "errors": self.errors}


def map_row(raw: dict[str, Any], mapping: Optional[dict[str, Optional[str]]] = None) -> dict[str, Any]:
    """Arma el dict de la entidad a partir de la fila cruda.

    Con ``mapping`` ({campo: columna}) toma cada campo de su columna; las
    entradas vacías se ignoran. Sin mapping la fila ya viene con nombres de
    campo (camelCase o snake_case).
    """
    if mapping:
        return {key: raw.get(column) for key, column in mapping.items() if column and column in raw}
    return dict(raw)


def _coerce(value: Any, kind: str) -> Any:
    if is_blank(value):
        return None
    if kind == "money":
        return parse_number(value)
    if kind in ("int", "id"):
        num = parse_number(value)
        if num is None:
            return None
        if num != num.to_integral_value():
            raise ValueError(f"'{value}' no es un entero")
        return int(num)
    if kind == "date":
        return parse_datetime(value)
    return str(value).strip()


def coerce_row(row: dict[str, Any], kinds: dict[str, str]) -> dict[str, Any]:
    """Normaliza claves a snake_case y limpia valores según ``kinds``.

    Claves desconocidas se descartan; valores vacíos quedan fuera para que
    apliquen los defaults del esquema.
    """
    out: dict[str, Any] = {}
    for key, value in row.items():
        name = to_snake(str(key))
        kind = kinds.get(name)
        if kind is None:
            continue
        try:
            coerced = _coerce(value, kind)
        except ValueError as exc:
            raise ValidationFailed(f"{name}: {exc}")
        if coerced is not None:
            out[name] = coerced
    return out


async def _run(
    entity: str,
    rows: list[dict[str, Any]],
    handle: Callable[[int, dict[str, Any]], Awaitable[None]],
    commit: Callable[[], Awaitable[None]],
    rollback: Callable[[], Awaitable[None]],
) -> ImportResult:
    if len(rows) > settings.import_max_rows:
        raise ValidationFailed(
            f"Demasiadas filas: {len(rows)} (máximo {settings.import_max_rows} por importación)"
        )
    result = ImportResult(total=len(rows))
    for idx, raw in enumerate(rows, start=1):
        try:
            await handle(idx, raw)
            await commit()
            result.success += 1
            continue
        except ValidationError as exc:
            message = describe_errors(pydantic_errors(exc))
        except InventoryError as exc:
            message = exc.message
        except IntegrityError:
            message = "Conflicto con datos existentes (duplicado o referencia inválida)"
        except ProductCodeGenerationError as exc:
            message = str(exc)
        await rollback()
        result.add_error(idx, message)
    logger.info(
        "Importación %s: %s/%s filas OK, %s errores", entity, result.success, result.total, len(result.errors)
    )
    return result


async def import_customers(
    storage: Storage, rows: list[dict[str, Any]], mapping: Optional[dict[str, Optional[str]]] = None
) -> ImportResult:
    kinds = ENTITY_COLUMNS["customers"]

    async def handle(_idx: int, raw: dict[str, Any]) -> None:
        data = CustomerIn.model_validate(coerce_row(map_row(raw, mapping), kinds))
        await registry.create_customer(storage, data)

    return await _run("customers", rows, handle, storage.commit, storage.rollback)


async def import_suppliers(
    storage: Storage, rows: list[dict[str, Any]], mapping: Optional[dict[str, Optional[str]]] = None
) -> ImportResult:
    kinds = ENTITY_COLUMNS["suppliers"]

    async def handle(_idx: int, raw: dict[str, Any]) -> None:
        data = SupplierIn.model_validate(coerce_row(map_row(raw, mapping), kinds))
        await registry.create_supplier(storage, data)

    return await _run("suppliers", rows, handle, storage.commit, storage.rollback)


async def import_watches(
    storage: Storage, rows: list[dict[str, Any]], mapping: Optional[dict[str, Optional[str]]] = None
) -> ImportResult:
    kinds = ENTITY_COLUMNS["watches"]

    async def handle(_idx: int, raw: dict[str, Any]) -> None:
        data = WatchIn.model_validate(coerce_row(map_row(raw, mapping), kinds))
        await registry.create_watch(storage, data)

    return await _run("watches", rows, handle, storage.commit, storage.rollback)


async def import_sales(
    storage: Storage,
    session: AsyncSession,
    rows: list[dict[str, Any]],
    mapping: Optional[dict[str, Optional[str]]] = None,
) -> ImportResult:
    """Ventas de relojes (``watchId``) o de productos (``productId``).

    Aplica las mismas reglas que la venta manual: el artículo debe existir y no
    estar vendido; se suma el importe al cliente y se marca vendido.
    """
    kinds = ENTITY_COLUMNS["sales"]

    async def handle(_idx: int, raw: dict[str, Any]) -> None:
        row = coerce_row(map_row(raw, mapping), kinds)
        product_id = row.pop("product_id", None)
        if product_id is not None:
            sell = ProductSellIn.model_validate(row)
            await catalog.sell_product(session, product_id, sell)
            return
        if row.get("watch_id") is None:
            raise ValidationFailed("watchId o productId es obligatorio")
        await registry.register_sale(storage, SaleIn.model_validate(row))

    async def commit() -> None:
        await storage.commit()
        await session.commit()

    async def rollback() -> None:
        await storage.rollback()
        await session.rollback()

    return await _run("sales", rows, handle, commit, rollback)


async def import_products(
    session: AsyncSession,
    category_id: int,
    rows: list[dict[str, Any]],
    mappings: Optional[dict[str, Optional[str]]] = None,
) -> ImportResult:
    """Productos de una categoría: campos base + campos personalizados por slug.

    El código de cada producto lleva el número de fila como sufijo.
    """
    await catalog.get_category(session, category_id)
    slugs = {f.slug for f in await catalog.list_fields(session, category_id)}
    kinds = ENTITY_COLUMNS["products"]

    async def handle(idx: int, raw: dict[str, Any]) -> None:
        mapped = map_row(raw, mappings)
        custom = {k: v for k, v in mapped.items() if k in slugs and not is_blank(v)}
        core = coerce_row({k: v for k, v in mapped.items() if k not in slugs}, kinds)
        if not core.get("name"):
            raise ValidationFailed("El nombre es obligatorio")
        data = ProductIn.model_validate({**core, "category_id": category_id, "custom_fields": custom})
        await catalog.create_product(session, data, code_suffix=idx)

    return await _run("products", rows, handle, session.commit, session.rollback)
