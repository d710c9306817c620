# NG-HEADER: Nombre de archivo: catalog.py
# NG-HEADER: Ubicación: services/inventory/catalog.py
# NG-HEADER: Descripción: Categorías, campos personalizados y productos dinámicos (modelo EAV)
# NG-HEADER: Lineamientos: Ver AGENTS.md
"""Motor EAV de categorías y productos.

Todas las funciones reciben una ``AsyncSession`` y sólo hacen ``flush``: el
router que las invoca confirma con un único ``commit`` al final, de modo que
cada operación lógica (producto + valores, venta + total del cliente,
reordenamiento) es una sola transacción.
"""
from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timedelta
from decimal import Decimal
from functools import partial
from typing import Any, Iterable, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from db.code_utils import generate_unique_code
from db.models import (
    CategoryField,
    Customer,
    Product,
    ProductCategory,
    ProductFieldValue,
    ProductSale,
    Supplier,
)
from db.text_utils import slugify
from .errors import InvariantViolation, NotFound, ValidationFailed
from .field_values import FieldType, dump_options, from_storage, is_blank, parse_options, to_storage
from .schemas import CategoryIn, FieldIn, ProductIn, ProductSellIn, ProductUpdate
from .serializers import iso as _iso, money as _num

logger = logging.getLogger("watchstock.catalog")

STATS_PERIODS = {"week": 7, "month": 30, "year": 365, "all": None}
NOT_AVAILABLE = "N/A"


# ---------------------------------------------------------------------------
# Serialización
# ---------------------------------------------------------------------------

def serialize_field(f: CategoryField) -> dict[str, Any]:
    return {
        "id": f.id,
        "categoryId": f.category_id,
        "name": f.name,
        "slug": f.slug,
        "label": f.label,
        "type": f.type,
        "isRequired": bool(f.is_required),
        "options": parse_options(f.options),
        "displayOrder": f.display_order,
        "showInTable": bool(f.show_in_table),
        "showInGraph": bool(f.show_in_graph),
    }


def serialize_category(c: ProductCategory, fields: Optional[Iterable[CategoryField]] = None) -> dict[str, Any]:
    data = {
        "id": c.id,
        "name": c.name,
        "slug": c.slug,
        "icon": c.icon,
        "createdAt": _iso(c.created_at),
        "updatedAt": _iso(c.updated_at),
    }
    if fields is not None:
        data["fields"] = [serialize_field(f) for f in fields]
    return data


def serialize_product_sale(s: ProductSale, customer: Optional[Customer] = None) -> dict[str, Any]:
    data = {
        "id": s.id,
        "productId": s.product_id,
        "customerId": s.customer_id,
        "saleDate": _iso(s.sale_date),
        "salePrice": _num(s.sale_price),
        "notes": s.notes or "",
    }
    if customer is not None:
        data["customerName"] = f"{customer.first_name} {customer.last_name}"
    return data


def _serialize_product(
    p: Product,
    category: ProductCategory,
    fields: list[CategoryField],
    values: dict[int, Optional[str]],
) -> dict[str, Any]:
    custom: dict[str, Any] = {}
    for f in fields:
        if f.id in values:
            custom[f.slug] = from_storage(f, values[f.id])
    return {
        "id": p.id,
        "categoryId": p.category_id,
        "productCode": p.product_code,
        "name": p.name,
        "description": p.description,
        "purchasePrice": _num(p.purchase_price),
        "sellingPrice": _num(p.selling_price),
        "purchaseDate": _iso(p.purchase_date),
        "condition": p.condition,
        "isSold": bool(p.is_sold),
        "supplierId": p.supplier_id,
        "addedAt": _iso(p.added_at),
        "updatedAt": _iso(p.updated_at),
        "category": serialize_category(category),
        "fieldDefinitions": [serialize_field(f) for f in fields],
        "customFields": custom,
    }


# ---------------------------------------------------------------------------
# Categorías
# ---------------------------------------------------------------------------

async def _fields_of(session: AsyncSession, category_ids: Iterable[int]) -> dict[int, list[CategoryField]]:
    ids = list(set(category_ids))
    out: dict[int, list[CategoryField]] = {cid: [] for cid in ids}
    if not ids:
        return out
    rows = (
        await session.scalars(
            select(CategoryField)
            .where(CategoryField.category_id.in_(ids))
            .order_by(CategoryField.display_order, CategoryField.id)
        )
    ).all()
    for f in rows:
        out[f.category_id].append(f)
    return out


async def get_category(session: AsyncSession, category_id: int) -> ProductCategory:
    category = await session.get(ProductCategory, category_id)
    if not category:
        raise NotFound("Categoría no encontrada")
    return category


async def category_detail(session: AsyncSession, category_id: int) -> dict[str, Any]:
    category = await get_category(session, category_id)
    fields = await list_fields(session, category_id)
    return serialize_category(category, fields)


async def list_categories(session: AsyncSession) -> list[dict[str, Any]]:
    cats = (await session.scalars(select(ProductCategory).order_by(ProductCategory.name))).all()
    fields = await _fields_of(session, [c.id for c in cats])
    return [serialize_category(c, fields.get(c.id, [])) for c in cats]


async def _category_slug_taken(session: AsyncSession, slug: str, exclude_id: Optional[int] = None) -> bool:
    stmt = select(ProductCategory.id).where(ProductCategory.slug == slug)
    if exclude_id is not None:
        stmt = stmt.where(ProductCategory.id != exclude_id)
    return (await session.scalar(stmt.limit(1))) is not None


def _require_slug(name: str) -> str:
    slug = slugify(name)
    if not slug:
        raise ValidationFailed("El nombre debe contener al menos un carácter alfanumérico")
    return slug


async def create_category(session: AsyncSession, data: CategoryIn) -> ProductCategory:
    slug = _require_slug(data.name)
    if await _category_slug_taken(session, slug):
        raise InvariantViolation("Ya existe una categoría con este nombre")
    now = datetime.utcnow()
    category = ProductCategory(name=data.name, slug=slug, icon=data.icon, created_at=now, updated_at=now)
    session.add(category)
    await session.flush()
    logger.info("Categoría creada id=%s slug=%s", category.id, slug)
    return category


async def update_category(session: AsyncSession, category_id: int, data: CategoryIn) -> ProductCategory:
    category = await get_category(session, category_id)
    slug = _require_slug(data.name)
    if await _category_slug_taken(session, slug, exclude_id=category.id):
        raise InvariantViolation("Ya existe una categoría con este nombre")
    category.name = data.name
    category.slug = slug
    category.icon = data.icon
    category.updated_at = datetime.utcnow()
    await session.flush()
    return category


async def delete_category(session: AsyncSession, category_id: int) -> None:
    await get_category(session, category_id)
    in_use = await session.scalar(select(func.count(Product.id)).where(Product.category_id == category_id))
    if in_use:
        raise InvariantViolation(
            f"No se puede eliminar la categoría: tiene {in_use} producto(s) asociados"
        )
    field_ids = select(CategoryField.id).where(CategoryField.category_id == category_id)
    await session.execute(delete(ProductFieldValue).where(ProductFieldValue.field_id.in_(field_ids)))
    await session.execute(delete(CategoryField).where(CategoryField.category_id == category_id))
    await session.execute(delete(ProductCategory).where(ProductCategory.id == category_id))
    await session.flush()
    logger.info("Categoría eliminada id=%s", category_id)


# ---------------------------------------------------------------------------
# Campos personalizados
# ---------------------------------------------------------------------------

async def list_fields(session: AsyncSession, category_id: int) -> list[CategoryField]:
    await get_category(session, category_id)
    return (await _fields_of(session, [category_id]))[category_id]


async def _get_field(session: AsyncSession, field_id: int) -> CategoryField:
    field = await session.get(CategoryField, field_id)
    if not field:
        raise NotFound("Campo no encontrado")
    return field


async def _field_slug_taken(
    session: AsyncSession, category_id: int, slug: str, exclude_id: Optional[int] = None
) -> bool:
    stmt = select(CategoryField.id).where(CategoryField.category_id == category_id, CategoryField.slug == slug)
    if exclude_id is not None:
        stmt = stmt.where(CategoryField.id != exclude_id)
    return (await session.scalar(stmt.limit(1))) is not None


def _field_options(data: FieldIn) -> Optional[str]:
    options = dump_options(data.options)
    if data.type == FieldType.SELECT.value and not options:
        raise ValidationFailed(f"El campo {data.label} de tipo select requiere al menos una opción")
    return options


async def create_field(session: AsyncSession, category_id: int, data: FieldIn) -> CategoryField:
    await get_category(session, category_id)
    slug = _require_slug(data.name)
    if await _field_slug_taken(session, category_id, slug):
        raise InvariantViolation("Ya existe un campo con este nombre en la categoría")
    options = _field_options(data)
    order = data.display_order
    if order is None:
        current = await session.scalar(
            select(func.max(CategoryField.display_order)).where(CategoryField.category_id == category_id)
        )
        order = (current or 0) + 1
    field = CategoryField(
        category_id=category_id,
        name=data.name,
        slug=slug,
        label=data.label,
        type=data.type,
        is_required=data.is_required,
        options=options,
        display_order=order,
        show_in_table=data.show_in_table,
        show_in_graph=data.show_in_graph,
    )
    session.add(field)
    await session.flush()
    return field


async def update_field(session: AsyncSession, field_id: int, data: FieldIn) -> CategoryField:
    field = await _get_field(session, field_id)
    slug = _require_slug(data.name)
    if await _field_slug_taken(session, field.category_id, slug, exclude_id=field.id):
        raise InvariantViolation("Ya existe un campo con este nombre en la categoría")
    field.options = _field_options(data)
    field.name = data.name
    field.slug = slug
    field.label = data.label
    field.type = data.type
    field.is_required = data.is_required
    field.show_in_table = data.show_in_table
    field.show_in_graph = data.show_in_graph
    if data.display_order is not None:
        field.display_order = data.display_order
    await session.flush()
    return field


async def delete_field(session: AsyncSession, field_id: int) -> None:
    await _get_field(session, field_id)
    await session.execute(delete(ProductFieldValue).where(ProductFieldValue.field_id == field_id))
    await session.execute(delete(CategoryField).where(CategoryField.id == field_id))
    await session.flush()


async def reorder_fields(session: AsyncSession, category_id: int, field_ids: list[int]) -> list[CategoryField]:
    """Asigna ``display_order = índice`` según ``field_ids``.

    La lista debe contener exactamente los campos de la categoría, sin
    repetidos ni ids ajenos. Si no, no se modifica nada.
    """
    fields = await list_fields(session, category_id)
    by_id = {f.id: f for f in fields}
    if len(field_ids) != len(set(field_ids)) or set(field_ids) != set(by_id):
        raise InvariantViolation(
            "fieldIds debe contener exactamente los campos de la categoría, sin repetidos"
        )
    for idx, fid in enumerate(field_ids):
        by_id[fid].display_order = idx
    await session.flush()
    return [by_id[fid] for fid in field_ids]


# ---------------------------------------------------------------------------
# Productos
# ---------------------------------------------------------------------------

async def _assemble_many(session: AsyncSession, products: list[Product]) -> list[dict[str, Any]]:
    if not products:
        return []
    cat_ids = {p.category_id for p in products}
    categories = {
        c.id: c
        for c in (await session.scalars(select(ProductCategory).where(ProductCategory.id.in_(cat_ids)))).all()
    }
    fields = await _fields_of(session, cat_ids)
    values: dict[int, dict[int, Optional[str]]] = {p.id: {} for p in products}
    rows = await session.execute(
        select(ProductFieldValue.product_id, ProductFieldValue.field_id, ProductFieldValue.value).where(
            ProductFieldValue.product_id.in_(list(values))
        )
    )
    for pid, fid, value in rows.all():
        values[pid][fid] = value
    return [
        _serialize_product(p, categories[p.category_id], fields.get(p.category_id, []), values[p.id])
        for p in products
    ]


async def _get_product(session: AsyncSession, product_id: int) -> Product:
    product = await session.get(Product, product_id)
    if not product:
        raise NotFound("Producto no encontrado")
    return product


async def assemble_product(session: AsyncSession, product_id: int) -> dict[str, Any]:
    product = await _get_product(session, product_id)
    # Refrescar por si hubo UPDATEs masivos dentro de la misma transacción
    await session.refresh(product)
    return (await _assemble_many(session, [product]))[0]


async def list_products(
    session: AsyncSession, category_id: Optional[int] = None, sold: Optional[bool] = None
) -> list[dict[str, Any]]:
    stmt = select(Product).order_by(Product.added_at.desc(), Product.id.desc())
    if category_id is not None:
        stmt = stmt.where(Product.category_id == category_id)
    if sold is not None:
        stmt = stmt.where(Product.is_sold.is_(sold))
    products = list((await session.scalars(stmt)).all())
    return await _assemble_many(session, products)


def _check_required(
    fields: list[CategoryField], supplied: dict[str, Any], already_present: set[str] = frozenset()
) -> None:
    for f in fields:
        if not f.is_required:
            continue
        if f.slug in supplied:
            if is_blank(supplied[f.slug]):
                raise ValidationFailed(f"El campo {f.label} es obligatorio")
        elif f.slug not in already_present:
            raise ValidationFailed(f"El campo {f.label} es obligatorio")


def _convert_values(fields: list[CategoryField], supplied: dict[str, Any]) -> dict[int, str]:
    """slug -> valor crudo  =>  field_id -> texto. Slugs desconocidos y ``None`` se omiten."""
    out: dict[int, str] = {}
    by_slug = {f.slug: f for f in fields}
    for slug, raw in supplied.items():
        field = by_slug.get(slug)
        if field is None:
            continue
        stored = to_storage(field, raw)
        if stored is not None:
            out[field.id] = stored
    return out


async def _check_supplier(session: AsyncSession, supplier_id: Optional[int]) -> None:
    if supplier_id is not None and await session.get(Supplier, supplier_id) is None:
        raise NotFound("Proveedor no encontrado")


async def product_code_taken(session: AsyncSession, code: str) -> bool:
    return (await session.scalar(select(Product.id).where(Product.product_code == code).limit(1))) is not None


async def create_product(
    session: AsyncSession, data: ProductIn, code_suffix: str | int | None = None
) -> dict[str, Any]:
    category = await get_category(session, data.category_id)
    fields = (await _fields_of(session, [category.id]))[category.id]
    _check_required(fields, data.custom_fields)
    converted = _convert_values(fields, data.custom_fields)
    await _check_supplier(session, data.supplier_id)

    code = await generate_unique_code(
        category.name, exists=partial(product_code_taken, session), suffix=code_suffix
    )
    now = datetime.utcnow()
    product = Product(
        category_id=category.id,
        product_code=code,
        name=data.name,
        description=data.description,
        purchase_price=data.purchase_price,
        selling_price=data.selling_price,
        purchase_date=data.purchase_date or now,
        condition=data.condition,
        supplier_id=data.supplier_id,
        is_sold=False,
        added_at=now,
        updated_at=now,
    )
    session.add(product)
    await session.flush()
    for field_id, text in converted.items():
        session.add(ProductFieldValue(product_id=product.id, field_id=field_id, value=text))
    await session.flush()
    logger.info("Producto creado id=%s code=%s categoria=%s", product.id, code, category.slug)
    return await assemble_product(session, product.id)


# Columnas NOT NULL: un null explícito en la actualización se ignora
_NON_NULLABLE = {"name", "purchase_price", "selling_price", "purchase_date", "condition"}


async def update_product(session: AsyncSession, product_id: int, data: ProductUpdate) -> dict[str, Any]:
    product = await _get_product(session, product_id)
    fields = (await _fields_of(session, [product.category_id]))[product.category_id]
    existing = {
        v.field_id: v
        for v in (
            await session.scalars(select(ProductFieldValue).where(ProductFieldValue.product_id == product.id))
        ).all()
    }
    present = {f.slug for f in fields if f.id in existing and not is_blank(existing[f.id].value)}
    _check_required(fields, data.custom_fields, present)
    converted = _convert_values(fields, data.custom_fields)
    if "supplier_id" in data.model_fields_set:
        await _check_supplier(session, data.supplier_id)

    for key, value in data.model_dump(exclude_unset=True, exclude={"custom_fields"}).items():
        if value is None and key in _NON_NULLABLE:
            continue
        setattr(product, key, value)
    product.updated_at = datetime.utcnow()

    for field_id, text in converted.items():
        row = existing.get(field_id)
        if row is not None:
            row.value = text
        else:
            session.add(ProductFieldValue(product_id=product.id, field_id=field_id, value=text))
    await session.flush()
    return await assemble_product(session, product.id)


async def delete_product(session: AsyncSession, product_id: int) -> None:
    await _get_product(session, product_id)
    sales = await session.scalar(select(func.count(ProductSale.id)).where(ProductSale.product_id == product_id))
    if sales:
        raise InvariantViolation("No se puede eliminar un producto con ventas registradas")
    await session.execute(delete(ProductFieldValue).where(ProductFieldValue.product_id == product_id))
    await session.execute(delete(Product).where(Product.id == product_id))
    await session.flush()


async def sell_product(session: AsyncSession, product_id: int, data: ProductSellIn) -> dict[str, Any]:
    """Registra la venta de un producto.

    Inserta la venta, marca el producto como vendido con un UPDATE condicional
    y suma el importe al total del cliente. Si otra venta ganó la carrera el
    UPDATE no afecta filas y se informa como ya vendido.
    """
    product = await _get_product(session, product_id)
    if product.is_sold:
        raise InvariantViolation("El producto ya fue vendido")
    if data.customer_id is None or data.sale_price is None:
        raise ValidationFailed("Cliente y precio de venta son obligatorios")
    if data.sale_price < 0:
        raise ValidationFailed("El precio de venta no puede ser negativo")
    customer = await session.get(Customer, data.customer_id)
    if not customer:
        raise NotFound("Cliente no encontrado")

    now = datetime.utcnow()
    res = await session.execute(
        update(Product)
        .where(Product.id == product_id, Product.is_sold.is_(False))
        .values(is_sold=True, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        raise InvariantViolation("El producto ya fue vendido")
    sale = ProductSale(
        product_id=product_id,
        customer_id=customer.id,
        sale_date=data.sale_date or now,
        sale_price=data.sale_price,
        notes=data.notes or "",
    )
    session.add(sale)
    customer.total_spent = (customer.total_spent or Decimal("0")) + data.sale_price
    await session.flush()
    logger.info(
        "Venta de producto registrada product=%s customer=%s price=%s", product_id, customer.id, data.sale_price
    )
    return serialize_product_sale(sale, customer)


async def list_product_sales(session: AsyncSession, product_id: int) -> list[dict[str, Any]]:
    await _get_product(session, product_id)
    rows = await session.execute(
        select(ProductSale, Customer)
        .join(Customer, Customer.id == ProductSale.customer_id)
        .where(ProductSale.product_id == product_id)
        .order_by(ProductSale.sale_date.desc(), ProductSale.id.desc())
    )
    return [serialize_product_sale(s, c) for s, c in rows.all()]


async def product_stats(
    session: AsyncSession,
    category_id: Optional[int],
    field_slug: Optional[str],
    period: Optional[str] = None,
) -> list[dict[str, Any]]:
    """Distribución de valores de un campo entre los productos vendidos.

    ``period`` (week/month/year/all) limita a ventas de los últimos 7/30/365 días.
    Los productos sin valor se agrupan como ``"N/A"``.
    """
    if category_id is None or not field_slug:
        raise ValidationFailed("categoryId y field son obligatorios")
    if period is not None and period not in STATS_PERIODS:
        raise ValidationFailed(f"period inválido: {period} (week, month, year, all)")
    await get_category(session, category_id)
    field = await session.scalar(
        select(CategoryField).where(CategoryField.category_id == category_id, CategoryField.slug == field_slug)
    )
    if not field:
        raise NotFound("Campo no encontrado")

    stmt = select(Product.id).where(Product.category_id == category_id, Product.is_sold.is_(True))
    days = STATS_PERIODS.get(period) if period else None
    if days:
        cutoff = datetime.utcnow() - timedelta(days=days)
        stmt = (
            stmt.join(ProductSale, ProductSale.product_id == Product.id)
            .where(ProductSale.sale_date >= cutoff)
            .distinct()
        )
    product_ids = list((await session.scalars(stmt)).all())
    if not product_ids:
        return []
    rows = await session.execute(
        select(ProductFieldValue.product_id, ProductFieldValue.value).where(
            ProductFieldValue.field_id == field.id, ProductFieldValue.product_id.in_(product_ids)
        )
    )
    values = dict(rows.all())
    counts: Counter[str] = Counter()
    for pid in product_ids:
        value = values.get(pid)
        counts[NOT_AVAILABLE if is_blank(value) else str(value)] += 1
    ordered = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    return [{"value": value, "count": count} for value, count in ordered]


# ---------------------------------------------------------------------------
# Mantenimiento
# ---------------------------------------------------------------------------

async def count_customer_product_sales(session: AsyncSession, customer_id: int) -> int:
    return int(
        await session.scalar(select(func.count(ProductSale.id)).where(ProductSale.customer_id == customer_id)) or 0
    )


async def reconcile_products(session: AsyncSession) -> tuple[int, int]:
    """``is_sold := existe venta`` para productos. Devuelve (marcados, desmarcados)."""
    with_sales = select(ProductSale.product_id).distinct()
    marked = await session.execute(
        update(Product)
        .where(Product.is_sold.is_(False), Product.id.in_(with_sales))
        .values(is_sold=True)
        .execution_options(synchronize_session=False)
    )
    cleared = await session.execute(
        update(Product)
        .where(Product.is_sold.is_(True), Product.id.not_in(with_sales))
        .values(is_sold=False)
        .execution_options(synchronize_session=False)
    )
    return marked.rowcount, cleared.rowcount


async def reset_catalog(session: AsyncSession) -> None:
    """Borra ventas de productos, valores, productos, campos y categorías."""
    for model in (ProductSale, ProductFieldValue, Product, CategoryField, ProductCategory):
        await session.execute(delete(model))
    await session.flush()
