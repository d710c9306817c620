# NG-HEADER: Nombre de archivo: schemas.py
# NG-HEADER: Ubicación: services/inventory/schemas.py
# NG-HEADER: Descripción: Modelos Pydantic de entrada para clientes, relojes, ventas y productos
# NG-HEADER: Lineamientos: Ver AGENTS.md
"""Esquemas de validación de entrada.

Se usan tanto en los endpoints como en la importación masiva, así una fila
importada pasa exactamente por las mismas reglas que un alta manual.

El contrato JSON es camelCase (``firstName``, ``customFields``); los modelos
aceptan también snake_case.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .field_values import parse_datetime, parse_number


FieldTypeName = Literal["text", "number", "date", "select", "textarea", "boolean"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


def _money(v: Any) -> Any:
    if v is None or isinstance(v, Decimal):
        return v
    try:
        return parse_number(v)
    except ValueError:
        # Dejar que pydantic reporte el error con su formato estándar
        return v


def _when(v: Any) -> Any:
    if v is None or isinstance(v, datetime):
        return v
    try:
        return parse_datetime(v)
    except ValueError:
        return v


def _strip(v: Any) -> Any:
    return v.strip() if isinstance(v, str) else v


# ----- Clientes / proveedores -----

class CustomerIn(CamelModel):
    first_name: str = Field(min_length=1, max_length=120)
    last_name: str = Field(min_length=1, max_length=120)
    address: str = Field(min_length=1, max_length=300)
    email: Optional[str] = Field(default=None, max_length=200)
    phone: Optional[str] = Field(default=None, max_length=50)

    _strip_names = field_validator("first_name", "last_name", "address", mode="before")(_strip)


class CustomerUpdate(CamelModel):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    address: Optional[str] = Field(default=None, min_length=1, max_length=300)
    email: Optional[str] = Field(default=None, max_length=200)
    phone: Optional[str] = Field(default=None, max_length=50)

    _strip_names = field_validator("first_name", "last_name", "address", mode="before")(_strip)


class SupplierIn(CamelModel):
    name: str = Field(min_length=1, max_length=120)
    surname: str = Field(min_length=1, max_length=120)
    document: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None

    _strip_names = field_validator("name", "surname", mode="before")(_strip)


# ----- Relojes / ventas -----

class WatchIn(CamelModel):
    brand: str = Field(min_length=1, max_length=120)
    model: str = Field(min_length=1, max_length=120)
    reference: str = Field(min_length=1, max_length=120)
    serial_number: Optional[str] = None
    year: Optional[int] = Field(default=None, ge=1800, le=2100)
    condition: str = Field(default="Nuovo", min_length=1)
    case_material: str = Field(min_length=1)
    bracelet_material: str = Field(min_length=1)
    case_size: int = Field(ge=20, description="Diámetro de caja en mm (mínimo 20)")
    dial_color: str = Field(min_length=1)
    movement: str = Field(default="Automatico", min_length=1)
    purchase_date: datetime
    purchase_price: Decimal = Field(ge=0)
    selling_price: Decimal = Field(ge=0)
    accessories: str = ""
    product_code: Optional[str] = Field(default=None, max_length=40)
    supplier_id: Optional[int] = None

    _strip_text = field_validator("brand", "model", "reference", "case_material", "bracelet_material", "dial_color", mode="before")(_strip)
    _money_fields = field_validator("purchase_price", "selling_price", mode="before")(_money)
    _date_fields = field_validator("purchase_date", mode="before")(_when)

    @field_validator("accessories", mode="before")
    @classmethod
    def _accessories_default(cls, v: Any) -> Any:
        return "" if v is None else v


class WatchUpdate(CamelModel):
    """Actualización parcial: sólo se aplican las claves presentes."""

    brand: Optional[str] = Field(default=None, min_length=1)
    model: Optional[str] = Field(default=None, min_length=1)
    reference: Optional[str] = Field(default=None, min_length=1)
    serial_number: Optional[str] = None
    year: Optional[int] = Field(default=None, ge=1800, le=2100)
    condition: Optional[str] = Field(default=None, min_length=1)
    case_material: Optional[str] = Field(default=None, min_length=1)
    bracelet_material: Optional[str] = Field(default=None, min_length=1)
    case_size: Optional[int] = Field(default=None, ge=20)
    dial_color: Optional[str] = Field(default=None, min_length=1)
    movement: Optional[str] = Field(default=None, min_length=1)
    purchase_date: Optional[datetime] = None
    purchase_price: Optional[Decimal] = Field(default=None, ge=0)
    selling_price: Optional[Decimal] = Field(default=None, ge=0)
    accessories: Optional[str] = None
    supplier_id: Optional[int] = None

    _money_fields = field_validator("purchase_price", "selling_price", mode="before")(_money)
    _date_fields = field_validator("purchase_date", mode="before")(_when)


class PriceUpdate(CamelModel):
    price: float = Field(gt=0, description="Nuevo precio de venta")


class SaleIn(CamelModel):
    customer_id: int
    watch_id: int
    sale_date: datetime
    sale_price: Decimal = Field(ge=0)

    _money_fields = field_validator("sale_price", mode="before")(_money)
    _date_fields = field_validator("sale_date", mode="before")(_when)


# ----- Categorías y campos -----

class CategoryIn(CamelModel):
    name: str = Field(min_length=1, max_length=120)
    icon: str = Field(default="Package", max_length=60)

    _strip_name = field_validator("name", mode="before")(_strip)

    @field_validator("icon", mode="before")
    @classmethod
    def _icon_default(cls, v: Any) -> Any:
        return "Package" if v in (None, "") else v


class FieldIn(CamelModel):
    name: str = Field(min_length=1, max_length=120)
    label: str = Field(min_length=1, max_length=160)
    type: FieldTypeName = "text"
    is_required: bool = False
    options: Optional[list[str] | str] = None
    display_order: Optional[int] = Field(default=None, ge=0)
    show_in_table: bool = True
    show_in_graph: bool = False

    _strip_text = field_validator("name", "label", mode="before")(_strip)


class ReorderIn(CamelModel):
    field_ids: list[int]


# ----- Productos dinámicos -----

class ProductIn(CamelModel):
    category_id: int
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    purchase_price: Decimal = Field(default=Decimal("0"), ge=0)
    selling_price: Decimal = Field(default=Decimal("0"), ge=0)
    purchase_date: Optional[datetime] = None
    condition: str = Field(default="Nuovo", min_length=1)
    supplier_id: Optional[int] = None
    custom_fields: dict[str, Any] = Field(default_factory=dict)

    _strip_name = field_validator("name", mode="before")(_strip)
    _money_fields = field_validator("purchase_price", "selling_price", mode="before")(_money)
    _date_fields = field_validator("purchase_date", mode="before")(_when)

    @field_validator("custom_fields", mode="before")
    @classmethod
    def _fields_default(cls, v: Any) -> Any:
        return {} if v is None else v


class ProductUpdate(CamelModel):
    """``categoryId`` no se declara: la categoría es inmutable y se ignora si llega."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    purchase_price: Optional[Decimal] = Field(default=None, ge=0)
    selling_price: Optional[Decimal] = Field(default=None, ge=0)
    purchase_date: Optional[datetime] = None
    condition: Optional[str] = Field(default=None, min_length=1)
    supplier_id: Optional[int] = None
    custom_fields: dict[str, Any] = Field(default_factory=dict)

    _money_fields = field_validator("purchase_price", "selling_price", mode="before")(_money)
    _date_fields = field_validator("purchase_date", mode="before")(_when)

    @field_validator("custom_fields", mode="before")
    @classmethod
    def _fields_default(cls, v: Any) -> Any:
        return {} if v is None else v


class ProductSellIn(CamelModel):
    customer_id: Optional[int] = None
    sale_price: Optional[Decimal] = None
    sale_date: Optional[datetime] = None
    notes: Optional[str] = None

    _money_fields = field_validator("sale_price", mode="before")(_money)
    _date_fields = field_validator("sale_date", mode="before")(_when)


# ----- Importación -----

class BulkImportIn(CamelModel):
    data: list[dict[str, Any]]
    mapping: Optional[dict[str, Optional[str]]] = None


class ProductImportIn(CamelModel):
    category_id: int
    mappings: dict[str, Optional[str]] = Field(default_factory=dict)
    data: list[dict[str, Any]]
