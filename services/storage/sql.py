# NG-HEADER: Nombre de archivo: sql.py
# NG-HEADER: Ubicación: services/storage/sql.py
# NG-HEADER: Descripción: Storage sobre SQLAlchemy AsyncSession (implementación por defecto)
# NG-HEADER: Lineamientos: Ver AGENTS.md
"""Storage respaldado por la base relacional."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import Customer, PriceHistory, Sale, Supplier, Watch
from .base import Storage


class SqlStorage(Storage):
    name = "sql"

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # ----- clientes -----
    async def list_customers(self) -> list[Customer]:
        stmt = select(Customer).order_by(Customer.created_at.desc(), Customer.id.desc())
        return list((await self.session.scalars(stmt)).all())

    async def get_customer(self, customer_id: int) -> Optional[Customer]:
        return await self.session.get(Customer, customer_id)

    async def create_customer(self, data: dict[str, Any]) -> Customer:
        customer = Customer(**data)
        self.session.add(customer)
        await self.session.flush()
        return customer

    async def update_customer(self, customer_id: int, changes: dict[str, Any]) -> Optional[Customer]:
        customer = await self.session.get(Customer, customer_id)
        if not customer:
            return None
        for key, value in changes.items():
            setattr(customer, key, value)
        await self.session.flush()
        return customer

    async def delete_customer(self, customer_id: int) -> bool:
        res = await self.session.execute(delete(Customer).where(Customer.id == customer_id))
        return res.rowcount > 0

    async def add_customer_spent(self, customer_id: int, amount: Decimal) -> None:
        customer = await self.session.get(Customer, customer_id)
        if customer is not None:
            customer.total_spent = (customer.total_spent or Decimal("0")) + amount
            await self.session.flush()

    # ----- proveedores -----
    async def list_suppliers(self) -> list[Supplier]:
        return list((await self.session.scalars(select(Supplier).order_by(Supplier.name, Supplier.id))).all())

    async def get_supplier(self, supplier_id: int) -> Optional[Supplier]:
        return await self.session.get(Supplier, supplier_id)

    async def create_supplier(self, data: dict[str, Any]) -> Supplier:
        supplier = Supplier(**data)
        self.session.add(supplier)
        await self.session.flush()
        return supplier

    # ----- relojes -----
    async def list_watches(self, sold: Optional[bool] = None) -> list[Watch]:
        stmt = select(Watch).order_by(Watch.added_at.desc(), Watch.id.desc())
        if sold is not None:
            stmt = stmt.where(Watch.is_sold.is_(sold))
        return list((await self.session.scalars(stmt)).all())

    async def get_watch(self, watch_id: int) -> Optional[Watch]:
        return await self.session.get(Watch, watch_id)

    async def get_watch_by_code(self, code: str) -> Optional[Watch]:
        return await self.session.scalar(select(Watch).where(Watch.product_code == code))

    async def create_watch(self, data: dict[str, Any]) -> Watch:
        watch = Watch(**data)
        self.session.add(watch)
        await self.session.flush()
        return watch

    async def update_watch(self, watch_id: int, changes: dict[str, Any]) -> Optional[Watch]:
        watch = await self.session.get(Watch, watch_id)
        if not watch:
            return None
        for key, value in changes.items():
            setattr(watch, key, value)
        watch.updated_at = datetime.utcnow()
        await self.session.flush()
        return watch

    async def delete_watch(self, watch_id: int) -> bool:
        await self.session.execute(delete(PriceHistory).where(PriceHistory.watch_id == watch_id))
        res = await self.session.execute(delete(Watch).where(Watch.id == watch_id))
        return res.rowcount > 0

    async def mark_watch_sold(self, watch_id: int) -> bool:
        res = await self.session.execute(
            update(Watch)
            .where(Watch.id == watch_id, Watch.is_sold.is_(False))
            .values(is_sold=True, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        if res.rowcount != 1:
            return False
        # Mantener el objeto en sesión coherente con la fila
        watch = await self.session.get(Watch, watch_id)
        if watch is not None:
            await self.session.refresh(watch)
        return True

    # ----- ventas -----
    async def list_sales(self) -> list[Sale]:
        stmt = select(Sale).order_by(Sale.sale_date.desc(), Sale.id.desc())
        return list((await self.session.scalars(stmt)).all())

    async def create_sale(self, data: dict[str, Any]) -> Sale:
        sale = Sale(**data)
        self.session.add(sale)
        await self.session.flush()
        return sale

    async def sales_by_customer(self, customer_id: int) -> list[Sale]:
        stmt = select(Sale).where(Sale.customer_id == customer_id).order_by(Sale.sale_date.desc(), Sale.id.desc())
        return list((await self.session.scalars(stmt)).all())

    async def sales_by_watch(self, watch_id: int) -> list[Sale]:
        stmt = select(Sale).where(Sale.watch_id == watch_id).order_by(Sale.sale_date.desc(), Sale.id.desc())
        return list((await self.session.scalars(stmt)).all())

    # ----- historial de precios -----
    async def list_price_history(self, watch_id: int) -> list[PriceHistory]:
        stmt = (
            select(PriceHistory)
            .where(PriceHistory.watch_id == watch_id)
            .order_by(PriceHistory.change_date, PriceHistory.id)
        )
        return list((await self.session.scalars(stmt)).all())

    async def add_price_history(self, watch_id: int, price: Decimal, when: Optional[datetime] = None) -> PriceHistory:
        entry = PriceHistory(watch_id=watch_id, price=price, change_date=when or datetime.utcnow())
        self.session.add(entry)
        await self.session.flush()
        return entry

    # ----- mantenimiento -----
    async def sold_watch_ids_from_sales(self) -> set[int]:
        return set((await self.session.scalars(select(Sale.watch_id).distinct())).all())

    async def set_watch_sold_flag(self, watch_id: int, sold: bool) -> None:
        watch = await self.session.get(Watch, watch_id)
        if watch is not None:
            watch.is_sold = sold
            await self.session.flush()

    async def reset(self) -> None:
        for model in (Sale, PriceHistory, Watch, Customer, Supplier):
            await self.session.execute(delete(model))
        # Los objetos en sesión ya no tienen fila
        self.session.expunge_all()

    # ----- unidad de trabajo -----
    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()
