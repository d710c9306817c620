#!/usr/bin/env python
# NG-HEADER: Nombre de archivo: suppliers.py
# NG-HEADER: Ubicación: services/routers/suppliers.py
# NG-HEADER: Descripción: Endpoints de proveedores
# NG-HEADER: Lineamientos: Ver AGENTS.md
from __future__ import annotations

from fastapi import APIRouter, Depends

from services.inventory import registry
from services.inventory.schemas import SupplierIn
from services.inventory.serializers import serialize_supplier
from services.storage import Storage, get_storage

router = APIRouter(prefix="/api/suppliers", tags=["suppliers"])


@router.get("")
async def list_suppliers(storage: Storage = Depends(get_storage)):
    return [serialize_supplier(s) for s in await storage.list_suppliers()]


@router.post("")
async def create_supplier(payload: SupplierIn, storage: Storage = Depends(get_storage)):
    supplier = await registry.create_supplier(storage, payload)
    await storage.commit()
    return serialize_supplier(supplier)


@router.get("/{supplier_id}")
async def get_supplier(supplier_id: int, storage: Storage = Depends(get_storage)):
    return serialize_supplier(await registry.get_supplier(storage, supplier_id))
