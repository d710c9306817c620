# NG-HEADER: Nombre de archivo: test_importer_rows.py
# NG-HEADER: Ubicación: tests/test_importer_rows.py
# NG-HEADER: Descripción: Pruebas de mapeo/limpieza de filas y lectura de archivos de importación
# NG-HEADER: Lineamientos: Ver AGENTS.md
from datetime import datetime
from decimal import Decimal

import pytest

from services.inventory.errors import ValidationFailed
from services.inventory.importer import ENTITY_COLUMNS, coerce_row, map_row
from services.inventory.loader import parse_mapping_field, parse_upload


def test_map_row_with_and_without_mapping() -> None:
    raw = {"Nome": "Mario", "Cognome": "Rossi", "Extra": 1}
    assert map_row(raw, {"firstName": "Nome", "lastName": "Cognome", "email": None, "phone": "Tel"}) == {
        "firstName": "Mario",
        "lastName": "Rossi",
    }
    assert map_row(raw) == raw


def test_coerce_row_cleans_by_kind() -> None:
    row = {
        "caseSize": "40 mm",
        "purchasePrice": "€ 1.250,50",
        "purchaseDate": "31/12/2023",
        "supplierId": "7",
        "brand": "  Omega ",
        "accessories": "",
        "unknownColumn": "x",
    }
    out = coerce_row(row, ENTITY_COLUMNS["watches"])
    assert out == {
        "case_size": 40,
        "purchase_price": Decimal("1250.50"),
        "purchase_date": datetime(2023, 12, 31),
        "supplier_id": 7,
        "brand": "Omega",
    }


def test_coerce_row_rejects_fractional_ids() -> None:
    with pytest.raises(ValidationFailed) as exc:
        coerce_row({"watchId": "3.5"}, ENTITY_COLUMNS["sales"])
    assert exc.value.message.startswith("watch_id")


def test_parse_upload_csv_semicolon() -> None:
    content = "Marca;Prezzo\nRolex;12.500,00\n;\nTudor;3.100,00\n".encode("utf-8")
    parsed = parse_upload(content, "relojes.csv")
    assert parsed["headers"] == ["Marca", "Prezzo"]
    # La fila completamente vacía se descarta
    assert parsed["total"] == 2
    assert parsed["rows"][1] == {"Marca": "Tudor", "Prezzo": "3.100,00"}


def test_parse_upload_errors() -> None:
    with pytest.raises(ValidationFailed):
        parse_upload(b"", "vacio.csv")
    with pytest.raises(ValidationFailed):
        parse_upload(b"a,b\n1,2\n", "datos.txt")


def test_parse_mapping_field() -> None:
    assert parse_mapping_field(None) is None
    assert parse_mapping_field('{"firstName": "Nome", "email": ""}') == {"firstName": "Nome", "email": None}
    with pytest.raises(ValidationFailed):
        parse_mapping_field("[1, 2]")
    with pytest.raises(ValidationFailed):
        parse_mapping_field("{no")
