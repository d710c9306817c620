# NG-HEADER: Nombre de archivo: test_dashboard_api.py
# NG-HEADER: Ubicación: tests/test_dashboard_api.py
# NG-HEADER: Descripción: Pruebas de métricas del tablero
# NG-HEADER: Lineamientos: Ver AGENTS.md


def test_metrics_empty(client) -> None:
    r = client.get("/api/dashboard/metrics")
    assert r.status_code == 200
    body = r.json()
    assert body["totalRevenue"] == 0
    assert body["totalProfit"] == 0
    assert body["salesByBrand"] == []


def test_metrics_aggregates_sales(client, make_customer, make_watch) -> None:
    c = make_customer()
    rolex = make_watch()
    omega = make_watch(brand="Omega", model="Speedmaster", purchasePrice=4000)
    make_watch(brand="Tudor", model="Black Bay")
    client.post(
        "/api/sales",
        json={"customerId": c["id"], "watchId": rolex["id"], "saleDate": "2024-03-15", "salePrice": 13000},
    )
    client.post(
        "/api/sales",
        json={"customerId": c["id"], "watchId": omega["id"], "saleDate": "2024-04-02", "salePrice": 5000},
    )

    body = client.get("/api/dashboard/metrics").json()
    assert body["totalRevenue"] == 18000.0
    assert body["totalProfit"] == 5000.0
    assert body["totalCustomers"] == 1
    assert body["totalWatches"] == 3
    assert body["soldWatches"] == 2
    assert [b["brand"] for b in body["salesByBrand"]] == ["Omega", "Rolex"]
    assert body["salesByMonth"] == [
        {"month": "2024-03", "count": 1, "revenue": 13000.0},
        {"month": "2024-04", "count": 1, "revenue": 5000.0},
    ]
