#!/usr/bin/env python
# NG-HEADER: Nombre de archivo: product_categories.py
# NG-HEADER: Ubicación: services/routers/product_categories.py
# NG-HEADER: Descripción: Endpoints de categorías de producto y sus campos personalizados
# NG-HEADER: Lineamientos: Ver AGENTS.md
"""Administración de categorías y definiciones de campos.

Cada endpoint de escritura confirma una única vez al final; si el motor
lanza una excepción la sesión se descarta sin confirmar.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from db.session import get_session
from services.inventory import catalog
from services.inventory.schemas import CategoryIn, FieldIn, ReorderIn

logger = logging.getLogger("watchstock.categories")

router = APIRouter(prefix="/api/product-categories", tags=["product-categories"])
fields_router = APIRouter(prefix="/api/category-fields", tags=["product-categories"])


@router.get("")
async def list_categories(db: AsyncSession = Depends(get_session)):
    return await catalog.list_categories(db)


@router.post("")
async def create_category(payload: CategoryIn, db: AsyncSession = Depends(get_session)):
    category = await catalog.create_category(db, payload)
    await db.commit()
    return catalog.serialize_category(category, [])


@router.get("/{category_id}")
async def get_category(category_id: int, db: AsyncSession = Depends(get_session)):
    return await catalog.category_detail(db, category_id)


@router.put("/{category_id}")
async def update_category(category_id: int, payload: CategoryIn, db: AsyncSession = Depends(get_session)):
    await catalog.update_category(db, category_id, payload)
    await db.commit()
    return await catalog.category_detail(db, category_id)


@router.delete("/{category_id}")
async def delete_category(category_id: int, db: AsyncSession = Depends(get_session)):
    await catalog.delete_category(db, category_id)
    await db.commit()
    return {"status": "ok"}


@router.get("/{category_id}/fields")
async def list_fields(category_id: int, db: AsyncSession = Depends(get_session)):
    return [catalog.serialize_field(f) for f in await catalog.list_fields(db, category_id)]


@router.post("/{category_id}/fields")
async def create_field(category_id: int, payload: FieldIn, db: AsyncSession = Depends(get_session)):
    field = await catalog.create_field(db, category_id, payload)
    await db.commit()
    return catalog.serialize_field(field)


@router.put("/{category_id}/fields/reorder")
async def reorder_fields(category_id: int, payload: ReorderIn, db: AsyncSession = Depends(get_session)):
    fields = await catalog.reorder_fields(db, category_id, payload.field_ids)
    await db.commit()
    logger.info("Campos reordenados categoria=%s orden=%s", category_id, payload.field_ids)
    return [catalog.serialize_field(f) for f in fields]


@fields_router.put("/{field_id}")
async def update_field(field_id: int, payload: FieldIn, db: AsyncSession = Depends(get_session)):
    field = await catalog.update_field(db, field_id, payload)
    await db.commit()
    return catalog.serialize_field(field)


@fields_router.delete("/{field_id}")
async def delete_field(field_id: int, db: AsyncSession = Depends(get_session)):
    await catalog.delete_field(db, field_id)
    await db.commit()
    return {"status": "ok"}
