#!/usr/bin/env python
# NG-HEADER: Nombre de archivo: products.py
# NG-HEADER: Ubicación: services/routers/products.py
# NG-HEADER: Descripción: Endpoints de productos dinámicos (EAV), ventas y estadísticas
# NG-HEADER: Lineamientos: Ver AGENTS.md
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from db.session import get_session
from services.inventory import catalog, importer
from services.inventory.loader import parse_mapping_field, parse_upload
from services.inventory.schemas import ProductImportIn, ProductIn, ProductSellIn, ProductUpdate

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("")
async def list_products(
    category_id: Optional[int] = Query(None, alias="categoryId"),
    sold: Optional[bool] = Query(None, description="true = vendidos, false = disponibles"),
    db: AsyncSession = Depends(get_session),
):
    return await catalog.list_products(db, category_id=category_id, sold=sold)


# Antes de "/{product_id}" para que "stats" no se interprete como id
@router.get("/stats")
async def product_stats(
    category_id: Optional[int] = Query(None, alias="categoryId"),
    field: Optional[str] = Query(None, description="slug del campo a agrupar"),
    field_slug: Optional[str] = Query(None, alias="fieldSlug"),
    period: Optional[str] = Query(None, description="week | month | year | all"),
    db: AsyncSession = Depends(get_session),
):
    return await catalog.product_stats(db, category_id, field or field_slug, period)


@router.post("/import")
async def import_products(payload: ProductImportIn, db: AsyncSession = Depends(get_session)):
    """Importación masiva de productos de una categoría. Devuelve ``{total, success, errors}``."""
    result = await importer.import_products(db, payload.category_id, payload.data, payload.mappings)
    return result.as_dict()


@router.post("/import/file")
async def import_products_file(
    file: UploadFile = File(...),
    category_id: int = Form(..., alias="categoryId"),
    mappings: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_session),
):
    parsed = parse_upload(await file.read(), file.filename or "")
    result = await importer.import_products(db, category_id, parsed["rows"], parse_mapping_field(mappings))
    return result.as_dict()


@router.post("")
async def create_product(payload: ProductIn, db: AsyncSession = Depends(get_session)):
    product = await catalog.create_product(db, payload)
    await db.commit()
    return product


@router.get("/{product_id}")
async def get_product(product_id: int, db: AsyncSession = Depends(get_session)):
    return await catalog.assemble_product(db, product_id)


@router.put("/{product_id}")
async def update_product(product_id: int, payload: ProductUpdate, db: AsyncSession = Depends(get_session)):
    product = await catalog.update_product(db, product_id, payload)
    await db.commit()
    return product


@router.delete("/{product_id}")
async def delete_product(product_id: int, db: AsyncSession = Depends(get_session)):
    await catalog.delete_product(db, product_id)
    await db.commit()
    return {"status": "ok"}


@router.patch("/{product_id}/sold")
async def mark_sold(product_id: int, payload: ProductSellIn, db: AsyncSession = Depends(get_session)):
    """Registra la venta y devuelve el producto actualizado."""
    await catalog.sell_product(db, product_id, payload)
    await db.commit()
    return await catalog.assemble_product(db, product_id)


@router.get("/{product_id}/sales")
async def product_sales(product_id: int, db: AsyncSession = Depends(get_session)):
    return await catalog.list_product_sales(db, product_id)
