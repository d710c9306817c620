# NG-HEADER: Nombre de archivo: memory.py
# NG-HEADER: Ubicación: services/storage/memory.py
# NG-HEADER: Descripción: Storage en memoria para tests (snapshot/restore en rollback)
# NG-HEADER: Lineamientos: Ver AGENTS.md
"""Storage en memoria.

Guarda cada tabla como ``{id: dict}`` y construye instancias transitorias de
los modelos ORM en cada lectura, así los llamadores nunca mutan el estado
interno sin pasar por la interfaz. ``commit`` toma una instantánea y
``rollback`` la restaura.
"""
from __future__ import annotations

import copy
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError

from db.models import Customer, PriceHistory, Sale, Supplier, Watch
from .base import Storage


def _columns(model) -> list[str]:
    return [c.key for c in model.__table__.columns]


_DEFAULTS: dict[type, dict[str, Any]] = {
    Customer: {"total_spent": Decimal("0")},
    Supplier: {},
    Watch: {"is_sold": False, "accessories": "", "condition": "Nuovo", "movement": "Automatico"},
    Sale: {},
    PriceHistory: {},
}


class MemoryStorage(Storage):
    name = "memory"

    def __init__(self) -> None:
        self._tables: dict[type, dict[int, dict[str, Any]]] = {m: {} for m in _DEFAULTS}
        self._seq: dict[type, int] = {m: 0 for m in _DEFAULTS}
        self._snapshot = self._dump()

    # ----- helpers -----
    def _dump(self) -> dict[str, Any]:
        return copy.deepcopy({"tables": self._tables, "seq": self._seq})

    def _row(self, model, row_id: int) -> Optional[Any]:
        row = self._tables[model].get(row_id)
        return model(**row) if row is not None else None

    def _rows(self, model) -> list[Any]:
        return [model(**r) for r in self._tables[model].values()]

    def _insert(self, model, data: dict[str, Any]) -> Any:
        self._seq[model] += 1
        row = {k: None for k in _columns(model)}
        row.update(_DEFAULTS[model])
        now = datetime.utcnow()
        for ts in ("created_at", "added_at", "updated_at"):
            if ts in row:
                row[ts] = now
        row.update({k: v for k, v in data.items() if k in row})
        row["id"] = self._seq[model]
        self._tables[model][row["id"]] = row
        return model(**row)

    def _update(self, model, row_id: int, changes: dict[str, Any]) -> Optional[Any]:
        row = self._tables[model].get(row_id)
        if row is None:
            return None
        row.update({k: v for k, v in changes.items() if k in row and k != "id"})
        if "updated_at" in row:
            row["updated_at"] = datetime.utcnow()
        return model(**row)

    # ----- clientes -----
    async def list_customers(self) -> list[Customer]:
        return sorted(self._rows(Customer), key=lambda c: (c.created_at, c.id), reverse=True)

    async def get_customer(self, customer_id: int) -> Optional[Customer]:
        return self._row(Customer, customer_id)

    async def create_customer(self, data: dict[str, Any]) -> Customer:
        return self._insert(Customer, data)

    async def update_customer(self, customer_id: int, changes: dict[str, Any]) -> Optional[Customer]:
        return self._update(Customer, customer_id, changes)

    async def delete_customer(self, customer_id: int) -> bool:
        return self._tables[Customer].pop(customer_id, None) is not None

    async def add_customer_spent(self, customer_id: int, amount: Decimal) -> None:
        row = self._tables[Customer].get(customer_id)
        if row is not None:
            row["total_spent"] = (row["total_spent"] or Decimal("0")) + amount

    # ----- proveedores -----
    async def list_suppliers(self) -> list[Supplier]:
        return sorted(self._rows(Supplier), key=lambda s: (s.name, s.id))

    async def get_supplier(self, supplier_id: int) -> Optional[Supplier]:
        return self._row(Supplier, supplier_id)

    async def create_supplier(self, data: dict[str, Any]) -> Supplier:
        return self._insert(Supplier, data)

    # ----- relojes -----
    async def list_watches(self, sold: Optional[bool] = None) -> list[Watch]:
        watches = self._rows(Watch)
        if sold is not None:
            watches = [w for w in watches if bool(w.is_sold) is sold]
        return sorted(watches, key=lambda w: (w.added_at, w.id), reverse=True)

    async def get_watch(self, watch_id: int) -> Optional[Watch]:
        return self._row(Watch, watch_id)

    async def get_watch_by_code(self, code: str) -> Optional[Watch]:
        for row in self._tables[Watch].values():
            if row["product_code"] == code:
                return Watch(**row)
        return None

    async def create_watch(self, data: dict[str, Any]) -> Watch:
        code = data.get("product_code")
        # Igual que la restricción única de la tabla: no depende de las búsquedas
        if code and any(row["product_code"] == code for row in self._tables[Watch].values()):
            raise IntegrityError(
                "INSERT INTO watches", {"product_code": code}, Exception("UNIQUE constraint failed: watches.product_code")
            )
        return self._insert(Watch, data)

    async def update_watch(self, watch_id: int, changes: dict[str, Any]) -> Optional[Watch]:
        return self._update(Watch, watch_id, changes)

    async def delete_watch(self, watch_id: int) -> bool:
        history = self._tables[PriceHistory]
        for hid in [h for h, row in history.items() if row["watch_id"] == watch_id]:
            del history[hid]
        return self._tables[Watch].pop(watch_id, None) is not None

    async def mark_watch_sold(self, watch_id: int) -> bool:
        row = self._tables[Watch].get(watch_id)
        if row is None or row["is_sold"]:
            return False
        row["is_sold"] = True
        row["updated_at"] = datetime.utcnow()
        return True

    # ----- ventas -----
    async def list_sales(self) -> list[Sale]:
        return sorted(self._rows(Sale), key=lambda s: (s.sale_date, s.id), reverse=True)

    async def create_sale(self, data: dict[str, Any]) -> Sale:
        return self._insert(Sale, data)

    async def sales_by_customer(self, customer_id: int) -> list[Sale]:
        return [s for s in await self.list_sales() if s.customer_id == customer_id]

    async def sales_by_watch(self, watch_id: int) -> list[Sale]:
        return [s for s in await self.list_sales() if s.watch_id == watch_id]

    # ----- historial de precios -----
    async def list_price_history(self, watch_id: int) -> list[PriceHistory]:
        entries = [h for h in self._rows(PriceHistory) if h.watch_id == watch_id]
        return sorted(entries, key=lambda h: (h.change_date, h.id))

    async def add_price_history(self, watch_id: int, price: Decimal, when: Optional[datetime] = None) -> PriceHistory:
        return self._insert(
            PriceHistory, {"watch_id": watch_id, "price": price, "change_date": when or datetime.utcnow()}
        )

    # ----- mantenimiento -----
    async def sold_watch_ids_from_sales(self) -> set[int]:
        return {row["watch_id"] for row in self._tables[Sale].values()}

    async def set_watch_sold_flag(self, watch_id: int, sold: bool) -> None:
        row = self._tables[Watch].get(watch_id)
        if row is not None:
            row["is_sold"] = sold

    async def reset(self) -> None:
        for model in (Sale, PriceHistory, Watch, Customer, Supplier):
            self._tables[model].clear()

    # ----- unidad de trabajo -----
    async def commit(self) -> None:
        self._snapshot = self._dump()

    async def rollback(self) -> None:
        restored = copy.deepcopy(self._snapshot)
        self._tables = restored["tables"]
        self._seq = restored["seq"]
