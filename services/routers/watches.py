#!/usr/bin/env python
# NG-HEADER: Nombre de archivo: watches.py
# NG-HEADER: Ubicación: services/routers/watches.py
# NG-HEADER: Descripción: Endpoints de relojes (alta, edición, precio, duplicado e historial)
# NG-HEADER: Lineamientos: Ver AGENTS.md
"""Endpoints del inventario de relojes.

``isSold``, ``productCode`` y ``addedAt`` no se aceptan en las ediciones:
el estado de venta sólo cambia al registrar una venta.
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from services.inventory import registry
from services.inventory.schemas import PriceUpdate, WatchIn, WatchUpdate
from services.inventory.serializers import serialize_price, serialize_watch
from services.storage import Storage, get_storage

router = APIRouter(prefix="/api/watches", tags=["watches"])


@router.get("")
async def list_watches(
    sold: Optional[bool] = Query(None, description="Filtrar por vendidos / disponibles"),
    storage: Storage = Depends(get_storage),
):
    return [serialize_watch(w) for w in await storage.list_watches(sold=sold)]


@router.post("")
async def create_watch(payload: WatchIn, storage: Storage = Depends(get_storage)):
    watch = await registry.create_watch(storage, payload)
    await storage.commit()
    return serialize_watch(watch)


@router.get("/{watch_id}")
async def get_watch(watch_id: int, storage: Storage = Depends(get_storage)):
    return serialize_watch(await registry.get_watch(storage, watch_id))


@router.put("/{watch_id}")
@router.patch("/{watch_id}")
async def update_watch(watch_id: int, payload: WatchUpdate, storage: Storage = Depends(get_storage)):
    watch = await registry.update_watch(storage, watch_id, payload)
    await storage.commit()
    return serialize_watch(watch)


@router.patch("/{watch_id}/price")
async def update_price(watch_id: int, payload: PriceUpdate, storage: Storage = Depends(get_storage)):
    watch = await registry.update_price(storage, watch_id, payload.price)
    await storage.commit()
    return serialize_watch(watch)


@router.delete("/{watch_id}")
async def delete_watch(watch_id: int, storage: Storage = Depends(get_storage)):
    await registry.delete_watch(storage, watch_id)
    await storage.commit()
    return {"status": "ok"}


@router.post("/{watch_id}/duplicate")
async def duplicate_watch(watch_id: int, storage: Storage = Depends(get_storage)):
    watch = await registry.duplicate_watch(storage, watch_id)
    await storage.commit()
    return serialize_watch(watch)


@router.get("/{watch_id}/price-history")
async def price_history(watch_id: int, storage: Storage = Depends(get_storage)):
    await registry.get_watch(storage, watch_id)
    return [serialize_price(h) for h in await storage.list_price_history(watch_id)]
