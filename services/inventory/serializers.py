# NG-HEADER: Nombre de archivo: serializers.py
# NG-HEADER: Ubicación: services/inventory/serializers.py
# NG-HEADER: Descripción: Serialización JSON (camelCase) de clientes, proveedores, relojes y ventas
# NG-HEADER: Lineamientos: Ver AGENTS.md
"""Conversión de modelos a dicts JSON. Montos como float, fechas ISO."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from db.models import Customer, PriceHistory, Sale, Supplier, Watch


def money(v: Any) -> Optional[float]:
    return float(v) if v is not None else None


def iso(dt: Optional[datetime]) -> Optional[str]:
    return dt.isoformat() if dt else None


def serialize_customer(c: Customer) -> dict[str, Any]:
    return {
        "id": c.id,
        "firstName": c.first_name,
        "lastName": c.last_name,
        "address": c.address,
        "email": c.email,
        "phone": c.phone,
        "totalSpent": money(c.total_spent) or 0.0,
        "createdAt": iso(c.created_at),
    }


def serialize_supplier(s: Supplier) -> dict[str, Any]:
    return {
        "id": s.id,
        "name": s.name,
        "surname": s.surname,
        "document": s.document,
        "phone": s.phone,
        "email": s.email,
        "notes": s.notes,
        "createdAt": iso(s.created_at),
    }


def serialize_watch(w: Watch) -> dict[str, Any]:
    return {
        "id": w.id,
        "productCode": w.product_code,
        "brand": w.brand,
        "model": w.model,
        "reference": w.reference,
        "serialNumber": w.serial_number,
        "year": w.year,
        "condition": w.condition,
        "caseMaterial": w.case_material,
        "braceletMaterial": w.bracelet_material,
        "caseSize": w.case_size,
        "dialColor": w.dial_color,
        "movement": w.movement,
        "purchaseDate": iso(w.purchase_date),
        "purchasePrice": money(w.purchase_price),
        "sellingPrice": money(w.selling_price),
        "accessories": w.accessories or "",
        "supplierId": w.supplier_id,
        "isSold": bool(w.is_sold),
        "addedAt": iso(w.added_at),
        "updatedAt": iso(w.updated_at),
    }


def serialize_sale(s: Sale, customer: Optional[Customer] = None, watch: Optional[Watch] = None) -> dict[str, Any]:
    data = {
        "id": s.id,
        "customerId": s.customer_id,
        "watchId": s.watch_id,
        "saleDate": iso(s.sale_date),
        "salePrice": money(s.sale_price),
    }
    if customer is not None:
        data["customerName"] = f"{customer.first_name} {customer.last_name}"
    if watch is not None:
        data["watchName"] = f"{watch.brand} {watch.model}"
        data["productCode"] = watch.product_code
    return data


def serialize_price(h: PriceHistory) -> dict[str, Any]:
    return {"id": h.id, "watchId": h.watch_id, "price": money(h.price), "changeDate": iso(h.change_date)}
