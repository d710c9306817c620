#!/usr/bin/env python
# NG-HEADER: Nombre de archivo: conftest.py
# NG-HEADER: Ubicación: tests/conftest.py
# NG-HEADER: Descripción: Fixtures y configuración compartida de Pytest.
# NG-HEADER: Lineamientos: Ver AGENTS.md
import os
import sys
from pathlib import Path
from typing import Callable

import pytest
import pytest_asyncio

# Asegurar path del proyecto antes de importar módulos internos
project_root = Path(__file__).resolve().parents[1]
if str(project_root) not in sys.path:
    sys.path.append(str(project_root))

# -------- Entorno base de tests --------
os.environ["DB_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("ENV", "dev")
os.environ.setdefault("ALLOW_DB_RESET", "true")

import db.session as _session  # noqa: E402
import db.base as _base  # noqa: E402
import db.models  # noqa: F401,E402

Base = _base.Base


@pytest_asyncio.fixture(scope="function", autouse=True)
async def db_session():
    """DB limpia por test (SQLite memoria compartida). Retorna sesión para usar en fixtures/tests."""
    engine = _session.engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with _session.SessionLocal() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


from fastapi.testclient import TestClient  # noqa: E402

from services.api import app  # noqa: E402


@pytest.fixture()
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture(autouse=True)
def _clear_overrides():
    """Evita que un override de storage (p. ej. MemoryStorage) contamine otros tests."""
    yield
    app.dependency_overrides.clear()


# -------- Factories de payloads --------
@pytest.fixture()
def customer_payload() -> Callable[..., dict]:
    def _make(first_name: str = "Mario", last_name: str = "Rossi", **extra) -> dict:
        payload = {"firstName": first_name, "lastName": last_name, "address": "Via Roma 1, Milano"}
        payload.update(extra)
        return payload

    return _make


@pytest.fixture()
def watch_payload() -> Callable[..., dict]:
    """Payload mínimo válido para POST /api/watches."""

    def _make(brand: str = "Rolex", model: str = "Submariner", **extra) -> dict:
        payload = {
            "brand": brand,
            "model": model,
            "reference": "126610LN",
            "caseMaterial": "Acciaio",
            "braceletMaterial": "Oyster",
            "caseSize": 41,
            "dialColor": "Nero",
            "purchaseDate": "2024-03-01",
            "purchasePrice": 9000,
            "sellingPrice": 12500,
        }
        payload.update(extra)
        return payload

    return _make


@pytest.fixture()
def make_customer(client, customer_payload) -> Callable[..., dict]:
    def _make(**kwargs) -> dict:
        r = client.post("/api/customers", json=customer_payload(**kwargs))
        assert r.status_code == 200, r.text
        return r.json()

    return _make


@pytest.fixture()
def make_watch(client, watch_payload) -> Callable[..., dict]:
    def _make(**kwargs) -> dict:
        r = client.post("/api/watches", json=watch_payload(**kwargs))
        assert r.status_code == 200, r.text
        return r.json()

    return _make


@pytest.fixture()
def orologi_category(client) -> dict:
    """Categoría "Orologi" con campos colore (select obligatorio) y anno (number)."""
    r = client.post("/api/product-categories", json={"name": "Orologi", "icon": "Watch"})
    assert r.status_code == 200, r.text
    category = r.json()
    r = client.post(
        f"/api/product-categories/{category['id']}/fields",
        json={
            "name": "Colore",
            "label": "Colore",
            "type": "select",
            "isRequired": True,
            "options": ["Nero", "Blu", "Bianco"],
        },
    )
    assert r.status_code == 200, r.text
    r = client.post(
        f"/api/product-categories/{category['id']}/fields",
        json={"name": "Anno", "label": "Anno", "type": "number"},
    )
    assert r.status_code == 200, r.text
    return client.get(f"/api/product-categories/{category['id']}").json()
