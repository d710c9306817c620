#!/usr/bin/env python
# NG-HEADER: Nombre de archivo: admin.py
# NG-HEADER: Ubicación: services/routers/admin.py
# NG-HEADER: Descripción: Utilidades operativas (vista/diagnóstico de datos, conciliación, reset, importaciones)
# NG-HEADER: Lineamientos: Ver AGENTS.md
"""Endpoints administrativos.

Las importaciones aceptan filas JSON ``{data, mapping?}`` o un archivo
``.csv``/``.xlsx`` (``/file``) que se lee con pandas.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from db.session import get_session
from services.inventory import catalog, importer, registry
from services.inventory.loader import parse_mapping_field, parse_upload
from services.inventory.schemas import BulkImportIn
from services.inventory.serializers import (
    serialize_customer,
    serialize_sale,
    serialize_supplier,
    serialize_watch,
)
from services.storage import Storage, get_storage

logger = logging.getLogger("watchstock.admin")

router = APIRouter(prefix="/api/admin", tags=["admin"])

IMPORT_ENTITIES = ("customers", "suppliers", "watches", "sales")


@router.get("/database-view")
async def database_view(storage: Storage = Depends(get_storage)):
    return {
        "watches": [serialize_watch(w) for w in await storage.list_watches()],
        "customers": [serialize_customer(c) for c in await storage.list_customers()],
        "suppliers": [serialize_supplier(s) for s in await storage.list_suppliers()],
        "sales": [serialize_sale(s) for s in await storage.list_sales()],
    }


@router.get("/database-debug")
async def database_debug(storage: Storage = Depends(get_storage)):
    """Resumen de diagnóstico: conteos, muestras y relojes vendidos con su cantidad de ventas."""
    watches = await storage.list_watches()
    sales = await storage.list_sales()
    sale_counts: dict[int, int] = {}
    for s in sales:
        sale_counts[s.watch_id] = sale_counts.get(s.watch_id, 0) + 1
    return {
        "totalWatches": len(watches),
        "watchesSamples": [serialize_watch(w) for w in watches[:5]],
        "watchesSold": [
            {
                "id": w.id,
                "brand": w.brand,
                "model": w.model,
                "isSold": bool(w.is_sold),
                "salesCount": sale_counts.get(w.id, 0),
            }
            for w in watches
            if w.is_sold or w.id in sale_counts
        ],
        "totalSales": len(sales),
        "salesSamples": [serialize_sale(s) for s in sales[:5]],
        "watchIdsInSales": sorted(sale_counts),
    }


@router.post("/fix-sold-watches")
async def fix_sold_watches(storage: Storage = Depends(get_storage), db: AsyncSession = Depends(get_session)):
    """Concilia ``is_sold`` con la existencia de ventas (relojes y productos)."""
    watches_marked, watches_cleared = await registry.reconcile_watches(storage)
    products_marked, products_cleared = await catalog.reconcile_products(db)
    await storage.commit()
    await db.commit()
    logger.info(
        "Conciliación de vendidos: relojes +%s/-%s, productos +%s/-%s",
        watches_marked,
        watches_cleared,
        products_marked,
        products_cleared,
    )
    return {
        "success": True,
        "watchesMarked": watches_marked,
        "watchesCleared": watches_cleared,
        "productsMarked": products_marked,
        "productsCleared": products_cleared,
        "message": (
            f"{watches_marked + products_marked} marcados como vendidos, "
            f"{watches_cleared + products_cleared} desmarcados"
        ),
    }


@router.post("/reset-database")
async def reset_database(storage: Storage = Depends(get_storage), db: AsyncSession = Depends(get_session)):
    if not settings.allow_db_reset:
        raise HTTPException(status_code=403, detail="Reset de base deshabilitado (ALLOW_DB_RESET)")
    # Primero lo que referencia a clientes (ventas de productos) y luego el resto
    await catalog.reset_catalog(db)
    await storage.reset()
    await db.commit()
    await storage.commit()
    logger.warning("Base de datos reseteada")
    return {"success": True, "message": "Base de datos reseteada. Todas las tablas quedaron vacías."}


@router.post("/import-preview")
async def import_preview(file: UploadFile = File(...)):
    """Lee el archivo y devuelve encabezados + filas para armar el mapeo en la UI."""
    return parse_upload(await file.read(), file.filename or "")


async def _import(
    entity: str,
    rows: list[dict[str, Any]],
    mapping: Optional[dict[str, Optional[str]]],
    storage: Storage,
    db: AsyncSession,
) -> dict[str, Any]:
    if entity == "customers":
        result = await importer.import_customers(storage, rows, mapping)
    elif entity == "suppliers":
        result = await importer.import_suppliers(storage, rows, mapping)
    elif entity == "watches":
        result = await importer.import_watches(storage, rows, mapping)
    else:
        result = await importer.import_sales(storage, db, rows, mapping)
    return result.as_dict()


@router.post("/import-{entity}")
async def import_rows(
    entity: str,
    payload: BulkImportIn,
    storage: Storage = Depends(get_storage),
    db: AsyncSession = Depends(get_session),
):
    if entity not in IMPORT_ENTITIES:
        raise HTTPException(status_code=404, detail=f"Entidad de importación desconocida: {entity}")
    return await _import(entity, payload.data, payload.mapping, storage, db)


@router.post("/import-{entity}/file")
async def import_file(
    entity: str,
    file: UploadFile = File(...),
    mapping: Optional[str] = Form(None),
    storage: Storage = Depends(get_storage),
    db: AsyncSession = Depends(get_session),
):
    if entity not in IMPORT_ENTITIES:
        raise HTTPException(status_code=404, detail=f"Entidad de importación desconocida: {entity}")
    parsed = parse_upload(await file.read(), file.filename or "")
    return await _import(entity, parsed["rows"], parse_mapping_field(mapping), storage, db)
