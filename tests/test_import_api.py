# NG-HEADER: Nombre de archivo: test_import_api.py
# NG-HEADER: Ubicación: tests/test_import_api.py
# NG-HEADER: Descripción: Pruebas de importación masiva (JSON y archivo) con éxito parcial
# NG-HEADER: Lineamientos: Ver AGENTS.md
import json
from io import BytesIO

import pandas as pd

from core.config import settings

CUSTOMER_MAPPING = {"firstName": "Nome", "lastName": "Cognome", "address": "Indirizzo", "email": "Email"}


def test_import_customers_partial_success(client) -> None:
    rows = [
        {"Nome": "Mario", "Cognome": "Rossi", "Indirizzo": "Via Roma 1", "Email": "m@example.com"},
        {"Nome": "Anna", "Cognome": "Neri", "Indirizzo": "Via Po 2", "Email": ""},
        {"Nome": "Senza", "Cognome": "Indirizzo", "Indirizzo": None},
    ]
    r = client.post("/api/admin/import-customers", json={"data": rows, "mapping": CUSTOMER_MAPPING})
    assert r.status_code == 200
    body = r.json()
    assert body["total"] == 3
    assert body["success"] == 2
    assert [e["row"] for e in body["errors"]] == [3]
    assert "address" in body["errors"][0]["message"]

    customers = client.get("/api/customers").json()
    assert sorted(c["firstName"] for c in customers) == ["Anna", "Mario"]
    assert next(c for c in customers if c["firstName"] == "Anna")["email"] is None


def test_import_without_mapping_uses_field_names(client) -> None:
    rows = [{"name": "Giorgio", "surname": "Verdi", "phone": 3331234567}]
    r = client.post("/api/admin/import-suppliers", json={"data": rows})
    assert r.json() == {"total": 1, "success": 1, "errors": []}
    assert client.get("/api/suppliers").json()[0]["phone"] == "3331234567"


def test_import_watches_cleans_values(client) -> None:
    mapping = {
        "brand": "Marca",
        "model": "Modello",
        "reference": "Ref",
        "caseMaterial": "Cassa",
        "braceletMaterial": "Bracciale",
        "caseSize": "Diametro",
        "dialColor": "Quadrante",
        "purchaseDate": "Acquisto",
        "purchasePrice": "Costo",
        "sellingPrice": "Prezzo",
    }
    base = {
        "Marca": "Omega",
        "Modello": "Seamaster",
        "Ref": "210.30",
        "Cassa": "Acciaio",
        "Bracciale": "Acciaio",
        "Quadrante": "Blu",
        "Acquisto": "15/01/2024",
        "Costo": "€ 3.200,00",
        "Prezzo": "4.490,50",
    }
    rows = [{**base, "Diametro": "42mm"}, {**base, "Diametro": "18"}, {**base, "Diametro": "41", "Costo": "gratis"}]
    r = client.post("/api/admin/import-watches", json={"data": rows, "mapping": mapping})
    body = r.json()
    assert body["success"] == 1
    assert [e["row"] for e in body["errors"]] == [2, 3]

    watches = client.get("/api/watches").json()
    assert len(watches) == 1
    w = watches[0]
    assert w["caseSize"] == 42
    assert w["purchasePrice"] == 3200.0
    assert w["sellingPrice"] == 4490.5
    assert w["purchaseDate"].startswith("2024-01-15")
    assert len(client.get(f"/api/watches/{w['id']}/price-history").json()) == 1


def test_import_sales_applies_sale_rules(client, make_customer, make_watch, orologi_category) -> None:
    c = make_customer()
    w = make_watch()
    product = client.post(
        "/api/products",
        json={"categoryId": orologi_category["id"], "name": "Cronografo", "customFields": {"colore": "Nero"}},
    ).json()
    rows = [
        {"customerId": c["id"], "watchId": w["id"], "saleDate": "2024-02-01", "salePrice": "€ 12.000,00"},
        {"customerId": c["id"], "watchId": w["id"], "saleDate": "2024-02-02", "salePrice": "1"},
        {"customerId": c["id"], "productId": product["id"], "saleDate": "2024-02-03", "salePrice": 900},
        {"customerId": c["id"], "saleDate": "2024-02-04", "salePrice": 10},
    ]
    body = client.post("/api/admin/import-sales", json={"data": rows}).json()
    assert body["success"] == 2
    assert body["errors"][0] == {"row": 2, "message": "El reloj ya fue vendido"}
    assert body["errors"][1]["row"] == 4

    assert client.get(f"/api/watches/{w['id']}").json()["isSold"] is True
    assert client.get(f"/api/products/{product['id']}").json()["isSold"] is True
    assert client.get(f"/api/customers/{c['id']}").json()["totalSpent"] == 12900.0


def test_import_products_with_custom_fields(client, orologi_category) -> None:
    mappings = {"name": "Nome", "sellingPrice": "Prezzo", "colore": "Colore", "anno": "Anno"}
    rows = [
        {"Nome": "Chrono A", "Prezzo": "1.200,00", "Colore": "Nero", "Anno": "1998"},
        {"Nome": "Chrono B", "Prezzo": "800", "Colore": "", "Anno": "2001"},
        {"Nome": "", "Prezzo": "10", "Colore": "Blu"},
        {"Nome": "Chrono D", "Prezzo": "950", "Colore": "Blu"},
    ]
    r = client.post(
        "/api/products/import",
        json={"categoryId": orologi_category["id"], "mappings": mappings, "data": rows},
    )
    body = r.json()
    assert body["total"] == 4
    assert body["success"] == 2
    assert [e["row"] for e in body["errors"]] == [2, 3]
    assert body["errors"][0]["message"] == "El campo Colore es obligatorio"

    products = client.get(f"/api/products?categoryId={orologi_category['id']}").json()
    by_name = {p["name"]: p for p in products}
    assert set(by_name) == {"Chrono A", "Chrono D"}
    assert by_name["Chrono A"]["customFields"] == {"colore": "Nero", "anno": 1998}
    assert by_name["Chrono A"]["sellingPrice"] == 1200.0
    assert by_name["Chrono A"]["productCode"].endswith("-1")
    assert by_name["Chrono D"]["productCode"].endswith("-4")


def test_import_products_unknown_category(client) -> None:
    r = client.post("/api/products/import", json={"categoryId": 999, "data": [{"name": "x"}]})
    assert r.status_code == 404


def test_import_row_limit(client, monkeypatch) -> None:
    monkeypatch.setattr(settings, "import_max_rows", 2)
    rows = [{"name": f"S{i}", "surname": "X"} for i in range(3)]
    r = client.post("/api/admin/import-suppliers", json={"data": rows})
    assert r.status_code == 400
    assert client.get("/api/suppliers").json() == []


def test_unknown_import_entity_is_404(client) -> None:
    r = client.post("/api/admin/import-widgets", json={"data": []})
    assert r.status_code == 404


def test_import_customers_from_csv(client) -> None:
    content = "Nome;Cognome;Indirizzo;Email\nMario;Rossi;Via Roma 1;\nAnna;Neri;;anna@example.com\n"
    r = client.post(
        "/api/admin/import-customers/file",
        files={"file": ("clienti.csv", content.encode("utf-8"), "text/csv")},
        data={"mapping": json.dumps(CUSTOMER_MAPPING)},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["total"] == 2
    assert body["success"] == 1
    assert body["errors"][0]["row"] == 2


def test_import_preview_xlsx(client) -> None:
    buf = BytesIO()
    pd.DataFrame([{"Marca": "Rolex", "Prezzo": 12500}, {"Marca": "Tudor", "Prezzo": None}]).to_excel(
        buf, index=False
    )
    r = client.post(
        "/api/admin/import-preview",
        files={"file": ("relojes.xlsx", buf.getvalue(), "application/octet-stream")},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["headers"] == ["Marca", "Prezzo"]
    assert body["total"] == 2
    assert body["rows"][0] == {"Marca": "Rolex", "Prezzo": 12500}
    assert body["rows"][1]["Prezzo"] is None


def test_import_preview_rejects_unknown_extension(client) -> None:
    r = client.post(
        "/api/admin/import-preview",
        files={"file": ("datos.pdf", b"%PDF-1.4", "application/pdf")},
    )
    assert r.status_code == 400


def test_import_products_from_csv(client, orologi_category) -> None:
    content = "Nome,Colore,Anno\nSolo tempo,Bianco,2010\n"
    r = client.post(
        "/api/products/import/file",
        files={"file": ("prodotti.csv", content.encode("utf-8"), "text/csv")},
        data={
            "categoryId": str(orologi_category["id"]),
            "mappings": json.dumps({"name": "Nome", "colore": "Colore", "anno": "Anno"}),
        },
    )
    assert r.status_code == 200
    assert r.json() == {"total": 1, "success": 1, "errors": []}
    product = client.get("/api/products").json()[0]
    assert product["customFields"] == {"colore": "Bianco", "anno": 2010}
