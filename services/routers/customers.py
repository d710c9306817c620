#!/usr/bin/env python
# NG-HEADER: Nombre de archivo: customers.py
# NG-HEADER: Ubicación: services/routers/customers.py
# NG-HEADER: Descripción: Endpoints de clientes (CRUD y ventas asociadas)
# NG-HEADER: Lineamientos: Ver AGENTS.md
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from db.session import get_session
from services.inventory import catalog, registry
from services.inventory.schemas import CustomerIn, CustomerUpdate
from services.inventory.serializers import serialize_customer, serialize_sale
from services.storage import Storage, get_storage

router = APIRouter(prefix="/api/customers", tags=["customers"])


@router.get("")
async def list_customers(storage: Storage = Depends(get_storage)):
    return [serialize_customer(c) for c in await storage.list_customers()]


@router.post("")
async def create_customer(payload: CustomerIn, storage: Storage = Depends(get_storage)):
    customer = await registry.create_customer(storage, payload)
    await storage.commit()
    return serialize_customer(customer)


@router.get("/{customer_id}")
async def get_customer(customer_id: int, storage: Storage = Depends(get_storage)):
    return serialize_customer(await registry.get_customer(storage, customer_id))


@router.put("/{customer_id}")
async def update_customer(customer_id: int, payload: CustomerUpdate, storage: Storage = Depends(get_storage)):
    customer = await registry.update_customer(storage, customer_id, payload)
    await storage.commit()
    return serialize_customer(customer)


@router.delete("/{customer_id}")
async def delete_customer(
    customer_id: int,
    storage: Storage = Depends(get_storage),
    db: AsyncSession = Depends(get_session),
):
    product_sales = await catalog.count_customer_product_sales(db, customer_id)
    await registry.delete_customer(storage, customer_id, product_sales=product_sales)
    await storage.commit()
    return {"status": "ok"}


@router.get("/{customer_id}/sales")
async def customer_sales(customer_id: int, storage: Storage = Depends(get_storage)):
    await registry.get_customer(storage, customer_id)
    out = []
    for sale in await storage.sales_by_customer(customer_id):
        out.append(serialize_sale(sale, watch=await storage.get_watch(sale.watch_id)))
    return out
