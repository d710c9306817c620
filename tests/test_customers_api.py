# NG-HEADER: Nombre de archivo: test_customers_api.py
# NG-HEADER: Ubicación: tests/test_customers_api.py
# NG-HEADER: Descripción: Pruebas de /api/customers y /api/suppliers
# NG-HEADER: Lineamientos: Ver AGENTS.md


def test_create_and_list_customers(client, customer_payload) -> None:
    r = client.post("/api/customers", json=customer_payload(email="mario@example.com"))
    assert r.status_code == 200
    body = r.json()
    assert body["firstName"] == "Mario"
    assert body["totalSpent"] == 0.0
    assert body["email"] == "mario@example.com"

    r = client.get("/api/customers")
    assert r.status_code == 200
    assert [c["id"] for c in r.json()] == [body["id"]]


def test_create_customer_accepts_snake_case(client) -> None:
    r = client.post(
        "/api/customers",
        json={"first_name": " Luca ", "last_name": "Bianchi", "address": "Via Po 3"},
    )
    assert r.status_code == 200
    assert r.json()["firstName"] == "Luca"


def test_create_customer_missing_fields_is_400(client) -> None:
    r = client.post("/api/customers", json={"firstName": "Solo"})
    assert r.status_code == 400
    locs = {e["loc"] for e in r.json()["detail"]}
    assert "body.lastName" in locs
    assert "body.address" in locs


def test_update_customer_partial(client, make_customer) -> None:
    c = make_customer()
    r = client.put(f"/api/customers/{c['id']}", json={"phone": "+39 333 1234567"})
    assert r.status_code == 200
    body = r.json()
    assert body["phone"] == "+39 333 1234567"
    assert body["lastName"] == "Rossi"


def test_get_missing_customer_is_404(client) -> None:
    r = client.get("/api/customers/999")
    assert r.status_code == 404
    assert r.json()["detail"] == "Cliente no encontrado"


def test_delete_customer_without_sales(client, make_customer) -> None:
    c = make_customer()
    r = client.delete(f"/api/customers/{c['id']}")
    assert r.status_code == 200
    assert client.get(f"/api/customers/{c['id']}").status_code == 404


def test_delete_customer_with_watch_sale_is_blocked(client, make_customer, make_watch) -> None:
    c = make_customer()
    w = make_watch()
    r = client.post(
        "/api/sales",
        json={"customerId": c["id"], "watchId": w["id"], "saleDate": "2024-05-02", "salePrice": 13000},
    )
    assert r.status_code == 200
    r = client.delete(f"/api/customers/{c['id']}")
    assert r.status_code == 400
    assert "ventas" in r.json()["detail"]

    r = client.get(f"/api/customers/{c['id']}/sales")
    assert r.status_code == 200
    sales = r.json()
    assert len(sales) == 1
    assert sales[0]["watchName"] == "Rolex Submariner"


def test_delete_customer_with_product_sale_is_blocked(client, make_customer, orologi_category) -> None:
    c = make_customer()
    p = client.post(
        "/api/products",
        json={"categoryId": orologi_category["id"], "name": "Crono", "customFields": {"colore": "Blu"}},
    ).json()
    r = client.patch(f"/api/products/{p['id']}/sold", json={"customerId": c["id"], "salePrice": 800})
    assert r.status_code == 200

    r = client.delete(f"/api/customers/{c['id']}")
    assert r.status_code == 400
    assert "ventas" in r.json()["detail"]
    assert client.get(f"/api/customers/{c['id']}").status_code == 200


def test_suppliers_crud(client) -> None:
    r = client.post("/api/suppliers", json={"name": "Giorgio", "surname": "Verdi", "document": "CF123"})
    assert r.status_code == 200
    sid = r.json()["id"]
    assert client.get(f"/api/suppliers/{sid}").json()["surname"] == "Verdi"
    assert len(client.get("/api/suppliers").json()) == 1
    assert client.get("/api/suppliers/999").status_code == 404
