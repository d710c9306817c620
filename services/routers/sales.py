#!/usr/bin/env python
# NG-HEADER: Nombre de archivo: sales.py
# NG-HEADER: Ubicación: services/routers/sales.py
# NG-HEADER: Descripción: Endpoints de ventas de relojes
# NG-HEADER: Lineamientos: Ver AGENTS.md
from __future__ import annotations

from fastapi import APIRouter, Depends

from services.inventory import registry
from services.inventory.schemas import SaleIn
from services.inventory.serializers import serialize_sale
from services.storage import Storage, get_storage

router = APIRouter(prefix="/api/sales", tags=["sales"])


@router.get("")
async def list_sales(storage: Storage = Depends(get_storage)):
    customers = {c.id: c for c in await storage.list_customers()}
    watches = {w.id: w for w in await storage.list_watches()}
    return [
        serialize_sale(s, customers.get(s.customer_id), watches.get(s.watch_id))
        for s in await storage.list_sales()
    ]


@router.post("")
async def create_sale(payload: SaleIn, storage: Storage = Depends(get_storage)):
    """Venta + total del cliente + marca de vendido en una sola transacción."""
    try:
        sale = await registry.register_sale(storage, payload)
        await storage.commit()
    except Exception:
        await storage.rollback()
        raise
    return serialize_sale(sale)
