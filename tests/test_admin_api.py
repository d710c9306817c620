# NG-HEADER: Nombre de archivo: test_admin_api.py
# NG-HEADER: Ubicación: tests/test_admin_api.py
# NG-HEADER: Descripción: Pruebas de utilidades administrativas (vista, diagnóstico, conciliación, reset)
# NG-HEADER: Lineamientos: Ver AGENTS.md
import pytest
from sqlalchemy import update

from core.config import settings
from db.models import Product, Watch


def _sell_watch(client, customer_id: int, watch_id: int) -> None:
    r = client.post(
        "/api/sales",
        json={"customerId": customer_id, "watchId": watch_id, "saleDate": "2024-04-10", "salePrice": 11000},
    )
    assert r.status_code == 200


def test_database_view_and_debug(client, make_customer, make_watch) -> None:
    c = make_customer()
    sold = make_watch()
    make_watch(brand="Omega", model="Speedmaster")
    _sell_watch(client, c["id"], sold["id"])

    view = client.get("/api/admin/database-view").json()
    assert set(view) == {"watches", "customers", "suppliers", "sales"}
    assert len(view["watches"]) == 2
    assert len(view["sales"]) == 1

    debug = client.get("/api/admin/database-debug").json()
    assert debug["totalWatches"] == 2
    assert debug["totalSales"] == 1
    assert debug["watchIdsInSales"] == [sold["id"]]
    assert debug["watchesSold"] == [
        {"id": sold["id"], "brand": "Rolex", "model": "Submariner", "isSold": True, "salesCount": 1}
    ]


@pytest.mark.asyncio
async def test_fix_sold_reconciles_flags(client, db_session, make_customer, make_watch, orologi_category) -> None:
    c = make_customer()
    sold = make_watch()
    stale = make_watch(brand="Omega", model="Speedmaster")
    _sell_watch(client, c["id"], sold["id"])
    product = client.post(
        "/api/products",
        json={"categoryId": orologi_category["id"], "name": "Cronografo", "customFields": {"colore": "Nero"}},
    ).json()

    # Desalinear a mano: vendido sin marca y marcado sin venta
    await db_session.execute(update(Watch).where(Watch.id == sold["id"]).values(is_sold=False))
    await db_session.execute(update(Watch).where(Watch.id == stale["id"]).values(is_sold=True))
    await db_session.execute(update(Product).where(Product.id == product["id"]).values(is_sold=True))
    await db_session.commit()

    r = client.post("/api/admin/fix-sold-watches")
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert (body["watchesMarked"], body["watchesCleared"]) == (1, 1)
    assert (body["productsMarked"], body["productsCleared"]) == (0, 1)

    assert client.get(f"/api/watches/{sold['id']}").json()["isSold"] is True
    assert client.get(f"/api/watches/{stale['id']}").json()["isSold"] is False
    assert client.get(f"/api/products/{product['id']}").json()["isSold"] is False

    # Segunda pasada: nada que corregir
    again = client.post("/api/admin/fix-sold-watches").json()
    assert again["watchesMarked"] == again["watchesCleared"] == 0


def test_reset_database_empties_everything(client, make_customer, make_watch, orologi_category) -> None:
    c = make_customer()
    w = make_watch()
    _sell_watch(client, c["id"], w["id"])
    product = client.post(
        "/api/products",
        json={"categoryId": orologi_category["id"], "name": "Cronografo", "customFields": {"colore": "Nero"}},
    ).json()
    client.patch(f"/api/products/{product['id']}/sold", json={"customerId": c["id"], "salePrice": 500})
    client.post("/api/suppliers", json={"name": "Giorgio", "surname": "Verdi"})

    r = client.post("/api/admin/reset-database")
    assert r.status_code == 200
    assert r.json()["success"] is True

    for path in ("/api/watches", "/api/customers", "/api/suppliers", "/api/sales", "/api/products", "/api/product-categories"):
        assert client.get(path).json() == [], path


def test_reset_database_disabled(client, make_customer, monkeypatch) -> None:
    make_customer()
    monkeypatch.setattr(settings, "allow_db_reset", False)
    r = client.post("/api/admin/reset-database")
    assert r.status_code == 403
    assert len(client.get("/api/customers").json()) == 1
