# NG-HEADER: Nombre de archivo: registry.py
# NG-HEADER: Ubicación: services/inventory/registry.py
# NG-HEADER: Descripción: Reglas de negocio de clientes, proveedores, relojes y ventas sobre Storage
# NG-HEADER: Lineamientos: Ver AGENTS.md
"""Operaciones del registro de relojes.

Funciones usadas por los routers y por la importación masiva. No confirman la
transacción: quien llama hace ``storage.commit()`` una vez por operación.
"""
from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any

from db.code_utils import generate_unique_code
from db.models import Customer, Sale, Supplier, Watch
from services.storage.base import Storage
from .errors import InvariantViolation, NotFound, ValidationFailed
from .schemas import CustomerIn, CustomerUpdate, SaleIn, SupplierIn, WatchIn, WatchUpdate

logger = logging.getLogger("watchstock.registry")

# Nunca editables por payload genérico
_WATCH_PROTECTED = {"id", "product_code", "added_at", "is_sold"}
_WATCH_NON_NULLABLE = {
    "brand",
    "model",
    "reference",
    "condition",
    "case_material",
    "bracelet_material",
    "case_size",
    "dial_color",
    "movement",
    "purchase_date",
    "purchase_price",
    "selling_price",
    "accessories",
}


# ----- clientes -----

async def get_customer(storage: Storage, customer_id: int) -> Customer:
    customer = await storage.get_customer(customer_id)
    if not customer:
        raise NotFound("Cliente no encontrado")
    return customer


async def create_customer(storage: Storage, data: CustomerIn) -> Customer:
    return await storage.create_customer(data.model_dump())


async def update_customer(storage: Storage, customer_id: int, data: CustomerUpdate) -> Customer:
    await get_customer(storage, customer_id)
    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None or k in ("email", "phone")}
    customer = await storage.update_customer(customer_id, changes)
    if customer is None:
        raise NotFound("Cliente no encontrado")
    return customer


async def delete_customer(storage: Storage, customer_id: int, product_sales: int = 0) -> None:
    """``product_sales``: ventas de productos dinámicos del cliente (las cuenta el motor EAV)."""
    await get_customer(storage, customer_id)
    if product_sales or await storage.sales_by_customer(customer_id):
        raise InvariantViolation("No se puede eliminar un cliente con ventas registradas")
    await storage.delete_customer(customer_id)


# ----- proveedores -----

async def get_supplier(storage: Storage, supplier_id: int) -> Supplier:
    supplier = await storage.get_supplier(supplier_id)
    if not supplier:
        raise NotFound("Proveedor no encontrado")
    return supplier


async def create_supplier(storage: Storage, data: SupplierIn) -> Supplier:
    return await storage.create_supplier(data.model_dump())


# ----- relojes -----

async def get_watch(storage: Storage, watch_id: int) -> Watch:
    watch = await storage.get_watch(watch_id)
    if not watch:
        raise NotFound("Reloj no encontrado")
    return watch


async def _mint_code(storage: Storage, brand: str, suffix: str | int | None = None) -> str:
    async def _taken(code: str) -> bool:
        return await storage.get_watch_by_code(code) is not None

    return await generate_unique_code(brand, exists=_taken, suffix=suffix)


async def _insert_watch(storage: Storage, payload: dict[str, Any]) -> Watch:
    now = datetime.utcnow()
    payload.update(is_sold=False, added_at=now, updated_at=now)
    watch = await storage.create_watch(payload)
    await storage.add_price_history(watch.id, watch.selling_price, now)
    return watch


async def create_watch(storage: Storage, data: WatchIn, code_suffix: str | int | None = None) -> Watch:
    """Alta de reloj: no vendido, código generado si falta e historial inicial de precio."""
    payload = data.model_dump()
    code = payload.pop("product_code", None)
    if code:
        if await storage.get_watch_by_code(code):
            raise InvariantViolation(f"Ya existe un reloj con el código {code}")
    else:
        code = await _mint_code(storage, data.brand, code_suffix)
    if data.supplier_id is not None:
        await get_supplier(storage, data.supplier_id)
    payload["product_code"] = code
    watch = await _insert_watch(storage, payload)
    logger.info("Reloj creado id=%s code=%s", watch.id, code)
    return watch


async def update_watch(storage: Storage, watch_id: int, data: WatchUpdate) -> Watch:
    """Actualización parcial. Un cambio de precio de venta se registra en el historial."""
    old_price = (await get_watch(storage, watch_id)).selling_price
    changes = {
        k: v
        for k, v in data.model_dump(exclude_unset=True).items()
        if k not in _WATCH_PROTECTED and not (v is None and k in _WATCH_NON_NULLABLE)
    }
    if changes.get("supplier_id") is not None:
        await get_supplier(storage, changes["supplier_id"])
    watch = await storage.update_watch(watch_id, changes)
    if watch is None:
        raise NotFound("Reloj no encontrado")
    new_price = changes.get("selling_price")
    if new_price is not None and Decimal(str(new_price)) != Decimal(str(old_price)):
        await storage.add_price_history(watch_id, new_price)
    return watch


async def update_price(storage: Storage, watch_id: int, price: float) -> Watch:
    if price is None or price <= 0:
        raise ValidationFailed("El precio debe ser un número mayor a 0")
    await get_watch(storage, watch_id)
    amount = Decimal(str(price))
    watch = await storage.update_watch(watch_id, {"selling_price": amount})
    if watch is None:
        raise NotFound("Reloj no encontrado")
    await storage.add_price_history(watch_id, amount)
    return watch


async def delete_watch(storage: Storage, watch_id: int) -> None:
    await get_watch(storage, watch_id)
    if await storage.sales_by_watch(watch_id):
        raise InvariantViolation("No se puede eliminar un reloj con ventas registradas")
    await storage.delete_watch(watch_id)
    logger.info("Reloj eliminado id=%s", watch_id)


async def duplicate_watch(storage: Storage, watch_id: int) -> Watch:
    source = await get_watch(storage, watch_id)
    payload = {
        col: getattr(source, col)
        for col in Watch.__table__.columns.keys()
        if col not in _WATCH_PROTECTED and col != "updated_at"
    }
    payload["product_code"] = await _mint_code(storage, source.brand, "D")
    return await _insert_watch(storage, payload)


# ----- ventas -----

async def register_sale(storage: Storage, data: SaleIn) -> Sale:
    """Venta de reloj: valida, marca vendido (condicional) y suma al total del cliente."""
    customer = await storage.get_customer(data.customer_id)
    if not customer:
        raise NotFound("Cliente no encontrado")
    watch = await storage.get_watch(data.watch_id)
    if not watch:
        raise NotFound("Reloj no encontrado")
    if watch.is_sold or not await storage.mark_watch_sold(watch.id):
        raise InvariantViolation("El reloj ya fue vendido")
    sale = await storage.create_sale(data.model_dump())
    await storage.add_customer_spent(customer.id, data.sale_price)
    logger.info("Venta registrada sale=%s watch=%s customer=%s", sale.id, watch.id, customer.id)
    return sale


async def reconcile_watches(storage: Storage) -> tuple[int, int]:
    """``is_sold := existe venta``. Devuelve (marcados, desmarcados)."""
    with_sales = await storage.sold_watch_ids_from_sales()
    marked = cleared = 0
    for watch in await storage.list_watches():
        should = watch.id in with_sales
        if bool(watch.is_sold) != should:
            await storage.set_watch_sold_flag(watch.id, should)
            if should:
                marked += 1
            else:
                cleared += 1
    return marked, cleared
