# NG-HEADER: Nombre de archivo: test_products_api.py
# NG-HEADER: Ubicación: tests/test_products_api.py
# NG-HEADER: Descripción: Pruebas de productos dinámicos (EAV): alta, edición, venta, borrado y estadísticas
# NG-HEADER: Lineamientos: Ver AGENTS.md
import re

CODE_RE = re.compile(r"[A-Z0-9]{3}-[0-9]{9}(-[A-Z0-9]+)?")


def _create(client, category_id: int, name: str = "Cronografo", **custom):
    return client.post(
        "/api/products",
        json={"categoryId": category_id, "name": name, "sellingPrice": 1500, "customFields": custom},
    )


def _sell(client, product_id: int, customer_id: int, price=1400, **extra):
    return client.patch(
        f"/api/products/{product_id}/sold",
        json={"customerId": customer_id, "salePrice": price, **extra},
    )


def test_create_product_assembles_custom_fields(client, orologi_category) -> None:
    r = _create(client, orologi_category["id"], colore="Nero", anno="2019", sconosciuto="x")
    assert r.status_code == 200
    p = r.json()
    assert p["productCode"].startswith("ORO-")
    assert CODE_RE.fullmatch(p["productCode"])
    assert p["isSold"] is False
    assert p["condition"] == "Nuovo"
    assert p["customFields"] == {"colore": "Nero", "anno": 2019}
    assert p["category"]["name"] == "Orologi"
    assert [f["slug"] for f in p["fieldDefinitions"]] == ["colore", "anno"]

    again = client.get(f"/api/products/{p['id']}").json()
    assert again["customFields"] == p["customFields"]


def test_required_field_missing_or_blank(client, orologi_category) -> None:
    r = _create(client, orologi_category["id"], anno=2020)
    assert r.status_code == 400
    assert r.json()["detail"] == "El campo Colore es obligatorio"
    r = _create(client, orologi_category["id"], colore="  ")
    assert r.status_code == 400
    assert client.get("/api/products").json() == []


def test_select_value_outside_options(client, orologi_category) -> None:
    r = _create(client, orologi_category["id"], colore="Verde")
    assert r.status_code == 400
    assert "Colore" in r.json()["detail"]


def test_unknown_category_is_404(client) -> None:
    r = _create(client, 999, colore="Nero")
    assert r.status_code == 404


def test_product_with_unknown_supplier_is_404(client, orologi_category) -> None:
    cid = orologi_category["id"]
    r = client.post(
        "/api/products",
        json={"categoryId": cid, "name": "Crono", "supplierId": 999, "customFields": {"colore": "Nero"}},
    )
    assert r.status_code == 404
    assert r.json()["detail"] == "Proveedor no encontrado"
    assert client.get("/api/products").json() == []

    supplier = client.post("/api/suppliers", json={"name": "Giorgio", "surname": "Verdi"}).json()
    p = _create(client, cid, colore="Nero").json()
    assert client.put(f"/api/products/{p['id']}", json={"supplierId": 999}).status_code == 404
    r = client.put(f"/api/products/{p['id']}", json={"supplierId": supplier["id"]})
    assert r.status_code == 200
    assert r.json()["supplierId"] == supplier["id"]


def test_update_product_upserts_values(client, orologi_category) -> None:
    p = _create(client, orologi_category["id"], colore="Nero").json()
    r = client.put(
        f"/api/products/{p['id']}",
        json={"sellingPrice": 1700, "categoryId": 999, "customFields": {"anno": "2001"}},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["sellingPrice"] == 1700.0
    assert body["categoryId"] == orologi_category["id"]
    assert body["customFields"] == {"colore": "Nero", "anno": 2001}

    r = client.put(f"/api/products/{p['id']}", json={"customFields": {"colore": "Blu"}})
    assert r.json()["customFields"]["colore"] == "Blu"

    r = client.put(f"/api/products/{p['id']}", json={"customFields": {"colore": ""}})
    assert r.status_code == 400


def test_list_products_filters(client, orologi_category) -> None:
    a = _create(client, orologi_category["id"], name="A", colore="Nero").json()
    _create(client, orologi_category["id"], name="B", colore="Blu")
    other = client.post("/api/product-categories", json={"name": "Borse"}).json()
    client.post("/api/products", json={"categoryId": other["id"], "name": "Borsa"})
    customer = client.post(
        "/api/customers", json={"firstName": "Anna", "lastName": "Neri", "address": "Via Po 1"}
    ).json()
    assert _sell(client, a["id"], customer["id"]).status_code == 200

    assert len(client.get("/api/products").json()) == 3
    in_cat = client.get(f"/api/products?categoryId={orologi_category['id']}").json()
    assert {p["name"] for p in in_cat} == {"A", "B"}
    sold = client.get("/api/products?sold=true").json()
    assert [p["id"] for p in sold] == [a["id"]]


def test_sell_product_flow(client, orologi_category, make_customer) -> None:
    c = make_customer()
    p = _create(client, orologi_category["id"], colore="Nero").json()

    r = _sell(client, p["id"], c["id"], price="1.400,00", notes="Pagato in contanti")
    assert r.status_code == 200
    assert r.json()["isSold"] is True
    assert client.get(f"/api/customers/{c['id']}").json()["totalSpent"] == 1400.0

    sales = client.get(f"/api/products/{p['id']}/sales").json()
    assert len(sales) == 1
    assert sales[0]["customerName"] == "Mario Rossi"
    assert sales[0]["notes"] == "Pagato in contanti"

    r = _sell(client, p["id"], c["id"])
    assert r.status_code == 400
    assert r.json()["detail"] == "El producto ya fue vendido"
    assert client.get(f"/api/customers/{c['id']}").json()["totalSpent"] == 1400.0


def test_sell_product_validation(client, orologi_category, make_customer) -> None:
    c = make_customer()
    p = _create(client, orologi_category["id"], colore="Nero").json()
    r = client.patch(f"/api/products/{p['id']}/sold", json={"customerId": c["id"]})
    assert r.status_code == 400
    assert r.json()["detail"] == "Cliente y precio de venta son obligatorios"
    assert _sell(client, p["id"], 999).status_code == 404
    assert _sell(client, 999, c["id"]).status_code == 404
    assert client.get(f"/api/products/{p['id']}").json()["isSold"] is False


def test_delete_product_rules(client, orologi_category, make_customer) -> None:
    free = _create(client, orologi_category["id"], colore="Nero").json()
    assert client.delete(f"/api/products/{free['id']}").status_code == 200
    assert client.get(f"/api/products/{free['id']}").status_code == 404

    sold = _create(client, orologi_category["id"], colore="Blu").json()
    c = make_customer()
    _sell(client, sold["id"], c["id"])
    r = client.delete(f"/api/products/{sold['id']}")
    assert r.status_code == 400
    # El cliente tampoco puede eliminarse
    assert client.delete(f"/api/customers/{c['id']}").status_code == 400


def test_product_stats_groups_values(client, orologi_category, make_customer) -> None:
    cid = orologi_category["id"]
    c = make_customer()
    ids = [
        _create(client, cid, colore="Nero", anno=2019).json()["id"],
        _create(client, cid, colore="Blu", anno=2019).json()["id"],
        _create(client, cid, colore="Nero").json()["id"],
    ]
    unsold = _create(client, cid, colore="Bianco", anno=1990).json()["id"]
    for pid in ids:
        assert _sell(client, pid, c["id"]).status_code == 200

    r = client.get(f"/api/products/stats?categoryId={cid}&field=anno")
    assert r.status_code == 200
    assert r.json() == [{"value": "2019", "count": 2}, {"value": "N/A", "count": 1}]

    r = client.get(f"/api/products/stats?categoryId={cid}&field=colore&period=all")
    assert r.json() == [{"value": "Nero", "count": 2}, {"value": "Blu", "count": 1}]
    assert unsold not in ids


def test_product_stats_period_window(client, orologi_category, make_customer) -> None:
    cid = orologi_category["id"]
    c = make_customer()
    old = _create(client, cid, colore="Nero").json()["id"]
    recent = _create(client, cid, colore="Blu").json()["id"]
    _sell(client, old, c["id"], saleDate="2020-01-01")
    _sell(client, recent, c["id"])

    r = client.get(f"/api/products/stats?categoryId={cid}&field=colore&period=week")
    assert r.json() == [{"value": "Blu", "count": 1}]
    r = client.get(f"/api/products/stats?categoryId={cid}&field=colore&period=all")
    assert len(r.json()) == 2


def test_product_stats_bad_parameters(client, orologi_category) -> None:
    cid = orologi_category["id"]
    assert client.get("/api/products/stats").status_code == 400
    assert client.get(f"/api/products/stats?categoryId={cid}&fieldSlug=colore&period=decade").status_code == 400
    assert client.get(f"/api/products/stats?categoryId={cid}&fieldSlug=nope").status_code == 404
