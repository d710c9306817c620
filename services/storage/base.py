# NG-HEADER: Nombre de archivo: base.py
# NG-HEADER: Ubicación: services/storage/base.py
# NG-HEADER: Descripción: Interfaz abstracta de persistencia para entidades de esquema fijo
# NG-HEADER: Lineamientos: Ver AGENTS.md
"""Interfaz común de almacenamiento.

Cubre clientes, proveedores, relojes, ventas e historial de precios. Las
implementaciones devuelven instancias de los modelos ORM (transitorias en
memoria) para que la serialización sea la misma en ambos casos.

``commit``/``rollback`` delimitan la unidad de trabajo: una venta (venta +
total del cliente + marca de vendido) se confirma o descarta completa.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from db.models import Customer, PriceHistory, Sale, Supplier, Watch


class Storage(ABC):
    name: str

    # ----- clientes -----
    @abstractmethod
    async def list_customers(self) -> list[Customer]:  # pragma: no cover - interfaz
        """Clientes ordenados por fecha de alta descendente."""

    @abstractmethod
    async def get_customer(self, customer_id: int) -> Optional[Customer]:  # pragma: no cover - interfaz
        ...

    @abstractmethod
    async def create_customer(self, data: dict[str, Any]) -> Customer:  # pragma: no cover - interfaz
        ...

    @abstractmethod
    async def update_customer(self, customer_id: int, changes: dict[str, Any]) -> Optional[Customer]:  # pragma: no cover - interfaz
        ...

    @abstractmethod
    async def delete_customer(self, customer_id: int) -> bool:  # pragma: no cover - interfaz
        ...

    @abstractmethod
    async def add_customer_spent(self, customer_id: int, amount: Decimal) -> None:  # pragma: no cover - interfaz
        """Suma ``amount`` a ``total_spent`` del cliente."""

    # ----- proveedores -----
    @abstractmethod
    async def list_suppliers(self) -> list[Supplier]:  # pragma: no cover - interfaz
        ...

    @abstractmethod
    async def get_supplier(self, supplier_id: int) -> Optional[Supplier]:  # pragma: no cover - interfaz
        ...

    @abstractmethod
    async def create_supplier(self, data: dict[str, Any]) -> Supplier:  # pragma: no cover - interfaz
        ...

    # ----- relojes -----
    @abstractmethod
    async def list_watches(self, sold: Optional[bool] = None) -> list[Watch]:  # pragma: no cover - interfaz
        ...

    @abstractmethod
    async def get_watch(self, watch_id: int) -> Optional[Watch]:  # pragma: no cover - interfaz
        ...

    @abstractmethod
    async def get_watch_by_code(self, code: str) -> Optional[Watch]:  # pragma: no cover - interfaz
        ...

    @abstractmethod
    async def create_watch(self, data: dict[str, Any]) -> Watch:  # pragma: no cover - interfaz
        ...

    @abstractmethod
    async def update_watch(self, watch_id: int, changes: dict[str, Any]) -> Optional[Watch]:  # pragma: no cover - interfaz
        ...

    @abstractmethod
    async def delete_watch(self, watch_id: int) -> bool:  # pragma: no cover - interfaz
        """Elimina el reloj y su historial de precios."""

    @abstractmethod
    async def mark_watch_sold(self, watch_id: int) -> bool:  # pragma: no cover - interfaz
        """Marca vendido sólo si no lo estaba. Devuelve False si ya estaba vendido."""

    # ----- ventas -----
    @abstractmethod
    async def list_sales(self) -> list[Sale]:  # pragma: no cover - interfaz
        ...

    @abstractmethod
    async def create_sale(self, data: dict[str, Any]) -> Sale:  # pragma: no cover - interfaz
        ...

    @abstractmethod
    async def sales_by_customer(self, customer_id: int) -> list[Sale]:  # pragma: no cover - interfaz
        ...

    @abstractmethod
    async def sales_by_watch(self, watch_id: int) -> list[Sale]:  # pragma: no cover - interfaz
        ...

    # ----- historial de precios -----
    @abstractmethod
    async def list_price_history(self, watch_id: int) -> list[PriceHistory]:  # pragma: no cover - interfaz
        """Entradas ordenadas por fecha de cambio ascendente."""

    @abstractmethod
    async def add_price_history(self, watch_id: int, price: Decimal, when: Optional[datetime] = None) -> PriceHistory:  # pragma: no cover - interfaz
        ...

    # ----- mantenimiento -----
    @abstractmethod
    async def sold_watch_ids_from_sales(self) -> set[int]:  # pragma: no cover - interfaz
        """Ids de relojes con al menos una venta registrada."""

    @abstractmethod
    async def set_watch_sold_flag(self, watch_id: int, sold: bool) -> None:  # pragma: no cover - interfaz
        ...

    @abstractmethod
    async def reset(self) -> None:  # pragma: no cover - interfaz
        """Borra ventas, historial, relojes, clientes y proveedores (en ese orden)."""

    # ----- unidad de trabajo -----
    @abstractmethod
    async def commit(self) -> None:  # pragma: no cover - interfaz
        ...

    @abstractmethod
    async def rollback(self) -> None:  # pragma: no cover - interfaz
        ...
