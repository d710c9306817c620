# NG-HEADER: Nombre de archivo: models.py
# NG-HEADER: Ubicación: db/models.py
# NG-HEADER: Descripción: Modelos ORM de relojes, clientes, ventas y productos con campos dinámicos
# NG-HEADER: Lineamientos: Ver AGENTS.md
"""Modelos principales de la base de datos."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    CheckConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


FIELD_TYPES = ("text", "number", "date", "select", "textarea", "boolean")


class Customer(Base):
    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(primary_key=True)
    first_name: Mapped[str] = mapped_column(String(120))
    last_name: Mapped[str] = mapped_column(String(120))
    address: Mapped[str] = mapped_column(String(300))
    email: Mapped[Optional[str]] = mapped_column(String(200))
    phone: Mapped[Optional[str]] = mapped_column(String(50))
    total_spent: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)

    sales: Mapped[list["Sale"]] = relationship(back_populates="customer", passive_deletes=True)


class Supplier(Base):
    __tablename__ = "suppliers"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(120))
    surname: Mapped[str] = mapped_column(String(120))
    document: Mapped[Optional[str]] = mapped_column(String(100))
    phone: Mapped[Optional[str]] = mapped_column(String(50))
    email: Mapped[Optional[str]] = mapped_column(String(200))
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)


class Watch(Base):
    __tablename__ = "watches"
    __table_args__ = (
        UniqueConstraint("product_code"),
        CheckConstraint("case_size >= 20", name="case_size_min"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    product_code: Mapped[str] = mapped_column(String(40))
    brand: Mapped[str] = mapped_column(String(120))
    model: Mapped[str] = mapped_column(String(120))
    reference: Mapped[str] = mapped_column(String(120))
    serial_number: Mapped[Optional[str]] = mapped_column(String(120))
    year: Mapped[Optional[int]] = mapped_column(Integer)
    condition: Mapped[str] = mapped_column(String(50), default="Nuovo")
    case_material: Mapped[str] = mapped_column(String(100))
    bracelet_material: Mapped[str] = mapped_column(String(100))
    case_size: Mapped[int] = mapped_column(Integer)
    dial_color: Mapped[str] = mapped_column(String(100))
    movement: Mapped[str] = mapped_column(String(100), default="Automatico")
    purchase_date: Mapped[datetime] = mapped_column(DateTime)
    purchase_price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    selling_price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    accessories: Mapped[str] = mapped_column(Text, default="")
    supplier_id: Mapped[Optional[int]] = mapped_column(ForeignKey("suppliers.id", ondelete="SET NULL"))
    # Único estado de venta; el conteo de ventas se deriva de la tabla sales
    is_sold: Mapped[bool] = mapped_column(Boolean, default=False)
    added_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, onupdate=datetime.utcnow)

    supplier: Mapped[Optional["Supplier"]] = relationship()
    price_history: Mapped[list["PriceHistory"]] = relationship(back_populates="watch", passive_deletes=True)


class Sale(Base):
    __tablename__ = "sales"

    id: Mapped[int] = mapped_column(primary_key=True)
    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.id"))
    watch_id: Mapped[int] = mapped_column(ForeignKey("watches.id"))
    sale_date: Mapped[datetime] = mapped_column(DateTime)
    sale_price: Mapped[Decimal] = mapped_column(Numeric(10, 2))

    customer: Mapped["Customer"] = relationship(back_populates="sales")


class PriceHistory(Base):
    __tablename__ = "price_history"

    id: Mapped[int] = mapped_column(primary_key=True)
    watch_id: Mapped[int] = mapped_column(ForeignKey("watches.id", ondelete="CASCADE"))
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    change_date: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    watch: Mapped["Watch"] = relationship(back_populates="price_history")


class ProductCategory(Base):
    __tablename__ = "product_categories"
    __table_args__ = (UniqueConstraint("slug"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(120))
    slug: Mapped[str] = mapped_column(String(140))
    icon: Mapped[str] = mapped_column(String(60), default="Package")
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, onupdate=datetime.utcnow)

    fields: Mapped[list["CategoryField"]] = relationship(
        back_populates="category", order_by="CategoryField.display_order", passive_deletes=True
    )


class CategoryField(Base):
    __tablename__ = "category_fields"
    __table_args__ = (
        UniqueConstraint("category_id", "slug", name="uq_category_fields_category_slug"),
        CheckConstraint(
            "type IN (" + ",".join(f"'{t}'" for t in FIELD_TYPES) + ")",
            name="type_valid",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    category_id: Mapped[int] = mapped_column(ForeignKey("product_categories.id", ondelete="CASCADE"))
    name: Mapped[str] = mapped_column(String(120))
    slug: Mapped[str] = mapped_column(String(140))
    label: Mapped[str] = mapped_column(String(160))
    type: Mapped[str] = mapped_column(String(20), default="text")
    is_required: Mapped[bool] = mapped_column(Boolean, default=False)
    # Lista de opciones serializada como JSON (sólo para type=select)
    options: Mapped[Optional[str]] = mapped_column(Text)
    display_order: Mapped[int] = mapped_column(Integer, default=0)
    show_in_table: Mapped[bool] = mapped_column(Boolean, default=True)
    show_in_graph: Mapped[bool] = mapped_column(Boolean, default=False)

    category: Mapped["ProductCategory"] = relationship(back_populates="fields")


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (UniqueConstraint("product_code"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    category_id: Mapped[int] = mapped_column(ForeignKey("product_categories.id"))
    product_code: Mapped[str] = mapped_column(String(40))
    name: Mapped[str] = mapped_column(String(200))
    description: Mapped[Optional[str]] = mapped_column(Text)
    purchase_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    selling_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    purchase_date: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    condition: Mapped[str] = mapped_column(String(50), default="Nuovo")
    is_sold: Mapped[bool] = mapped_column(Boolean, default=False)
    supplier_id: Mapped[Optional[int]] = mapped_column(ForeignKey("suppliers.id", ondelete="SET NULL"))
    added_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, onupdate=datetime.utcnow)

    values: Mapped[list["ProductFieldValue"]] = relationship(back_populates="product", passive_deletes=True)


class ProductFieldValue(Base):
    __tablename__ = "product_field_values"
    __table_args__ = (
        UniqueConstraint("product_id", "field_id", name="uq_product_field_values_product_field"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id", ondelete="CASCADE"))
    field_id: Mapped[int] = mapped_column(ForeignKey("category_fields.id", ondelete="CASCADE"))
    # Siempre texto; la conversión por tipo vive en services/inventory/field_values.py
    value: Mapped[Optional[str]] = mapped_column(Text)

    product: Mapped["Product"] = relationship(back_populates="values")


class ProductSale(Base):
    __tablename__ = "product_sales"

    id: Mapped[int] = mapped_column(primary_key=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"))
    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.id"))
    sale_date: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    sale_price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    notes: Mapped[str] = mapped_column(Text, default="")
