# NG-HEADER: Nombre de archivo: test_text_utils.py
# NG-HEADER: Ubicación: tests/test_text_utils.py
# NG-HEADER: Descripción: Pruebas de slugify
# NG-HEADER: Lineamientos: Ver AGENTS.md
import pytest

from db.text_utils import slugify


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("Orologi", "orologi"),
        ("  Colore  Quadrante ", "colore-quadrante"),
        ("Anno (produzione)", "anno-produzione"),
        ("Cassa -- Acciaio!", "cassa-acciaio"),
        ("snake_case ok", "snake_case-ok"),
    ],
)
def test_slugify_examples(raw: str, expected: str) -> None:
    assert slugify(raw) == expected


def test_slugify_without_valid_chars_returns_empty() -> None:
    assert slugify("!!! ???") == ""
    assert slugify(None) == ""


def test_slugify_same_slug_for_equivalent_names() -> None:
    # Unicidad se decide por slug: estos dos nombres colisionan
    assert slugify("Orologi da Tasca") == slugify("orologi   da tasca")
