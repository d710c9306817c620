#!/usr/bin/env python
# NG-HEADER: Nombre de archivo: dashboard.py
# NG-HEADER: Ubicación: services/routers/dashboard.py
# NG-HEADER: Descripción: Métricas del tablero (ingresos, ganancia, ventas por marca y por mes)
# NG-HEADER: Lineamientos: Ver AGENTS.md
from __future__ import annotations

from decimal import Decimal

from fastapi import APIRouter, Depends

from services.storage import Storage, get_storage

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/metrics")
async def metrics(storage: Storage = Depends(get_storage)):
    """Resumen de ventas de relojes. Ganancia = precio de venta - precio de compra del reloj."""
    watches = {w.id: w for w in await storage.list_watches()}
    sales = await storage.list_sales()
    revenue = Decimal("0")
    profit = Decimal("0")
    by_brand: dict[str, dict] = {}
    by_month: dict[str, dict] = {}
    for s in sales:
        price = s.sale_price or Decimal("0")
        revenue += price
        watch = watches.get(s.watch_id)
        if watch is not None:
            profit += price - (watch.purchase_price or Decimal("0"))
        brand = watch.brand if watch is not None else "N/A"
        b = by_brand.setdefault(brand, {"brand": brand, "count": 0, "revenue": Decimal("0")})
        b["count"] += 1
        b["revenue"] += price
        month = s.sale_date.strftime("%Y-%m") if s.sale_date else "N/A"
        m = by_month.setdefault(month, {"month": month, "count": 0, "revenue": Decimal("0")})
        m["count"] += 1
        m["revenue"] += price
    customers = await storage.list_customers()
    return {
        "totalRevenue": float(revenue),
        "totalProfit": float(profit),
        "totalCustomers": len(customers),
        "totalWatches": len(watches),
        "soldWatches": sum(1 for w in watches.values() if w.is_sold),
        "salesByBrand": [
            {**b, "revenue": float(b["revenue"])}
            for b in sorted(by_brand.values(), key=lambda x: (-x["count"], x["brand"]))
        ],
        "salesByMonth": [{**m, "revenue": float(m["revenue"])} for _, m in sorted(by_month.items())],
    }
