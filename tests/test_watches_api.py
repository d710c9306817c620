# NG-HEADER: Nombre de archivo: test_watches_api.py
# NG-HEADER: Ubicación: tests/test_watches_api.py
# NG-HEADER: Descripción: Pruebas de /api/watches (alta, edición, precio, duplicado, historial)
# NG-HEADER: Lineamientos: Ver AGENTS.md
import re

CODE_RE = re.compile(r"[A-Z0-9]{3}-[0-9]{9}(-[A-Z0-9]+)?")


def test_create_watch_generates_code_and_history(client, watch_payload) -> None:
    r = client.post("/api/watches", json=watch_payload())
    assert r.status_code == 200
    w = r.json()
    assert w["productCode"].startswith("ROL-")
    assert CODE_RE.fullmatch(w["productCode"])
    assert w["isSold"] is False
    assert w["condition"] == "Nuovo"
    assert w["movement"] == "Automatico"
    assert w["sellingPrice"] == 12500.0

    hist = client.get(f"/api/watches/{w['id']}/price-history").json()
    assert [h["price"] for h in hist] == [12500.0]


def test_create_watch_with_explicit_code(client, watch_payload) -> None:
    r = client.post("/api/watches", json=watch_payload(productCode="ROL-000000001"))
    assert r.status_code == 200
    assert r.json()["productCode"] == "ROL-000000001"
    r = client.post("/api/watches", json=watch_payload(productCode="ROL-000000001"))
    assert r.status_code == 400
    assert "ROL-000000001" in r.json()["detail"]


def test_case_size_below_minimum_is_rejected(client, watch_payload) -> None:
    r = client.post("/api/watches", json=watch_payload(caseSize=18))
    assert r.status_code == 400
    assert any(e["loc"] == "body.caseSize" for e in r.json()["detail"])


def test_price_strings_are_parsed(client, watch_payload) -> None:
    r = client.post("/api/watches", json=watch_payload(purchasePrice="€ 8.500,00", sellingPrice="9.990,50"))
    assert r.status_code == 200
    w = r.json()
    assert w["purchasePrice"] == 8500.0
    assert w["sellingPrice"] == 9990.5


def test_update_selling_price_records_history_once(client, make_watch) -> None:
    w = make_watch()
    r = client.put(f"/api/watches/{w['id']}", json={"sellingPrice": 13000})
    assert r.status_code == 200
    assert r.json()["sellingPrice"] == 13000.0
    # Mismo precio: no agrega entrada
    r = client.patch(f"/api/watches/{w['id']}", json={"sellingPrice": 13000, "dialColor": "Blu"})
    assert r.status_code == 200
    assert r.json()["dialColor"] == "Blu"

    hist = client.get(f"/api/watches/{w['id']}/price-history").json()
    assert [h["price"] for h in hist] == [12500.0, 13000.0]


def test_update_ignores_sold_flag_and_code(client, make_watch) -> None:
    w = make_watch()
    r = client.put(f"/api/watches/{w['id']}", json={"isSold": True, "productCode": "HACK-1", "brand": "Tudor"})
    assert r.status_code == 200
    body = r.json()
    assert body["isSold"] is False
    assert body["productCode"] == w["productCode"]
    assert body["brand"] == "Tudor"


def test_patch_price(client, make_watch) -> None:
    w = make_watch()
    r = client.patch(f"/api/watches/{w['id']}/price", json={"price": 11000})
    assert r.status_code == 200
    assert r.json()["sellingPrice"] == 11000.0
    hist = client.get(f"/api/watches/{w['id']}/price-history").json()
    assert hist[-1]["price"] == 11000.0

    r = client.patch(f"/api/watches/{w['id']}/price", json={"price": 0})
    assert r.status_code == 400


def test_duplicate_watch(client, make_watch) -> None:
    w = make_watch()
    r = client.post(f"/api/watches/{w['id']}/duplicate")
    assert r.status_code == 200
    dup = r.json()
    assert dup["id"] != w["id"]
    assert dup["productCode"].endswith("-D")
    assert dup["reference"] == w["reference"]
    assert dup["isSold"] is False
    assert len(client.get(f"/api/watches/{dup['id']}/price-history").json()) == 1


def test_list_filters_by_sold(client, make_watch, make_customer) -> None:
    sold = make_watch()
    make_watch(brand="Omega", model="Speedmaster")
    c = make_customer()
    client.post(
        "/api/sales",
        json={"customerId": c["id"], "watchId": sold["id"], "saleDate": "2024-06-01", "salePrice": 12000},
    )
    assert [w["id"] for w in client.get("/api/watches?sold=true").json()] == [sold["id"]]
    assert [w["brand"] for w in client.get("/api/watches?sold=false").json()] == ["Omega"]
    assert len(client.get("/api/watches").json()) == 2


def test_delete_watch(client, make_watch, make_customer) -> None:
    free = make_watch()
    r = client.delete(f"/api/watches/{free['id']}")
    assert r.status_code == 200
    assert client.get(f"/api/watches/{free['id']}").status_code == 404

    sold = make_watch()
    c = make_customer()
    client.post(
        "/api/sales",
        json={"customerId": c["id"], "watchId": sold["id"], "saleDate": "2024-06-01", "salePrice": 12000},
    )
    r = client.delete(f"/api/watches/{sold['id']}")
    assert r.status_code == 400
    assert r.json()["detail"] == "No se puede eliminar un reloj con ventas registradas"
