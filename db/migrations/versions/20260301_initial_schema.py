# NG-HEADER: Nombre de archivo: 20260301_initial_schema.py
# NG-HEADER: Ubicación: db/migrations/versions/20260301_initial_schema.py
# NG-HEADER: Descripción: Esquema inicial: relojes, clientes, ventas, categorías, campos y productos
# NG-HEADER: Lineamientos: Ver AGENTS.md
"""initial schema"""

from alembic import op
import sqlalchemy as sa

from db.migrations.util import has_table

# revision identifiers, used by Alembic.
revision = "20260301_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("added_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    bind = op.get_bind()

    if not has_table(bind, "customers"):
        op.create_table(
            "customers",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("first_name", sa.String(length=120), nullable=False),
            sa.Column("last_name", sa.String(length=120), nullable=False),
            sa.Column("address", sa.String(length=300), nullable=False),
            sa.Column("email", sa.String(length=200), nullable=True),
            sa.Column("phone", sa.String(length=50), nullable=True),
            sa.Column("total_spent", sa.Numeric(10, 2), nullable=False, server_default="0"),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint("id", name="pk_customers"),
        )

    if not has_table(bind, "suppliers"):
        op.create_table(
            "suppliers",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(length=120), nullable=False),
            sa.Column("surname", sa.String(length=120), nullable=False),
            sa.Column("document", sa.String(length=100), nullable=True),
            sa.Column("phone", sa.String(length=50), nullable=True),
            sa.Column("email", sa.String(length=200), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint("id", name="pk_suppliers"),
        )

    if not has_table(bind, "watches"):
        op.create_table(
            "watches",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("product_code", sa.String(length=40), nullable=False),
            sa.Column("brand", sa.String(length=120), nullable=False),
            sa.Column("model", sa.String(length=120), nullable=False),
            sa.Column("reference", sa.String(length=120), nullable=False),
            sa.Column("serial_number", sa.String(length=120), nullable=True),
            sa.Column("year", sa.Integer(), nullable=True),
            sa.Column("condition", sa.String(length=50), nullable=False),
            sa.Column("case_material", sa.String(length=100), nullable=False),
            sa.Column("bracelet_material", sa.String(length=100), nullable=False),
            sa.Column("case_size", sa.Integer(), nullable=False),
            sa.Column("dial_color", sa.String(length=100), nullable=False),
            sa.Column("movement", sa.String(length=100), nullable=False),
            sa.Column("purchase_date", sa.DateTime(), nullable=False),
            sa.Column("purchase_price", sa.Numeric(10, 2), nullable=False),
            sa.Column("selling_price", sa.Numeric(10, 2), nullable=False),
            sa.Column("accessories", sa.Text(), nullable=False, server_default=""),
            sa.Column("supplier_id", sa.Integer(), nullable=True),
            sa.Column("is_sold", sa.Boolean(), nullable=False, server_default=sa.false()),
            *_timestamps(),
            sa.PrimaryKeyConstraint("id", name="pk_watches"),
            sa.UniqueConstraint("product_code", name="uq_watches_product_code"),
            sa.CheckConstraint("case_size >= 20", name="ck_watches_case_size_min"),
            sa.ForeignKeyConstraint(
                ["supplier_id"], ["suppliers.id"], name="fk_watches_supplier_id_suppliers", ondelete="SET NULL"
            ),
        )

    if not has_table(bind, "sales"):
        op.create_table(
            "sales",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("customer_id", sa.Integer(), nullable=False),
            sa.Column("watch_id", sa.Integer(), nullable=False),
            sa.Column("sale_date", sa.DateTime(), nullable=False),
            sa.Column("sale_price", sa.Numeric(10, 2), nullable=False),
            sa.PrimaryKeyConstraint("id", name="pk_sales"),
            sa.ForeignKeyConstraint(["customer_id"], ["customers.id"], name="fk_sales_customer_id_customers"),
            sa.ForeignKeyConstraint(["watch_id"], ["watches.id"], name="fk_sales_watch_id_watches"),
        )

    if not has_table(bind, "price_history"):
        op.create_table(
            "price_history",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("watch_id", sa.Integer(), nullable=False),
            sa.Column("price", sa.Numeric(10, 2), nullable=False),
            sa.Column("change_date", sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint("id", name="pk_price_history"),
            sa.ForeignKeyConstraint(
                ["watch_id"], ["watches.id"], name="fk_price_history_watch_id_watches", ondelete="CASCADE"
            ),
        )

    if not has_table(bind, "product_categories"):
        op.create_table(
            "product_categories",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(length=120), nullable=False),
            sa.Column("slug", sa.String(length=140), nullable=False),
            sa.Column("icon", sa.String(length=60), nullable=False, server_default="Package"),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint("id", name="pk_product_categories"),
            sa.UniqueConstraint("slug", name="uq_product_categories_slug"),
        )

    if not has_table(bind, "category_fields"):
        op.create_table(
            "category_fields",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("category_id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=120), nullable=False),
            sa.Column("slug", sa.String(length=140), nullable=False),
            sa.Column("label", sa.String(length=160), nullable=False),
            sa.Column("type", sa.String(length=20), nullable=False, server_default="text"),
            sa.Column("is_required", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("options", sa.Text(), nullable=True),
            sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("show_in_table", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("show_in_graph", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.PrimaryKeyConstraint("id", name="pk_category_fields"),
            sa.UniqueConstraint("category_id", "slug", name="uq_category_fields_category_slug"),
            sa.CheckConstraint(
                "type IN ('text','number','date','select','textarea','boolean')",
                name="ck_category_fields_type_valid",
            ),
            sa.ForeignKeyConstraint(
                ["category_id"],
                ["product_categories.id"],
                name="fk_category_fields_category_id_product_categories",
                ondelete="CASCADE",
            ),
        )

    if not has_table(bind, "products"):
        op.create_table(
            "products",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("category_id", sa.Integer(), nullable=False),
            sa.Column("product_code", sa.String(length=40), nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("purchase_price", sa.Numeric(10, 2), nullable=False, server_default="0"),
            sa.Column("selling_price", sa.Numeric(10, 2), nullable=False, server_default="0"),
            sa.Column("purchase_date", sa.DateTime(), nullable=False),
            sa.Column("condition", sa.String(length=50), nullable=False, server_default="Nuovo"),
            sa.Column("is_sold", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("supplier_id", sa.Integer(), nullable=True),
            *_timestamps(),
            sa.PrimaryKeyConstraint("id", name="pk_products"),
            sa.UniqueConstraint("product_code", name="uq_products_product_code"),
            sa.ForeignKeyConstraint(
                ["category_id"], ["product_categories.id"], name="fk_products_category_id_product_categories"
            ),
            sa.ForeignKeyConstraint(
                ["supplier_id"], ["suppliers.id"], name="fk_products_supplier_id_suppliers", ondelete="SET NULL"
            ),
        )

    if not has_table(bind, "product_field_values"):
        op.create_table(
            "product_field_values",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("product_id", sa.Integer(), nullable=False),
            sa.Column("field_id", sa.Integer(), nullable=False),
            sa.Column("value", sa.Text(), nullable=True),
            sa.PrimaryKeyConstraint("id", name="pk_product_field_values"),
            sa.UniqueConstraint("product_id", "field_id", name="uq_product_field_values_product_field"),
            sa.ForeignKeyConstraint(
                ["product_id"],
                ["products.id"],
                name="fk_product_field_values_product_id_products",
                ondelete="CASCADE",
            ),
            sa.ForeignKeyConstraint(
                ["field_id"],
                ["category_fields.id"],
                name="fk_product_field_values_field_id_category_fields",
                ondelete="CASCADE",
            ),
        )

    if not has_table(bind, "product_sales"):
        op.create_table(
            "product_sales",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("product_id", sa.Integer(), nullable=False),
            sa.Column("customer_id", sa.Integer(), nullable=False),
            sa.Column("sale_date", sa.DateTime(), nullable=False),
            sa.Column("sale_price", sa.Numeric(10, 2), nullable=False),
            sa.Column("notes", sa.Text(), nullable=False, server_default=""),
            sa.PrimaryKeyConstraint("id", name="pk_product_sales"),
            sa.ForeignKeyConstraint(["product_id"], ["products.id"], name="fk_product_sales_product_id_products"),
            sa.ForeignKeyConstraint(
                ["customer_id"], ["customers.id"], name="fk_product_sales_customer_id_customers"
            ),
        )


def downgrade() -> None:
    for table in (
        "product_sales",
        "product_field_values",
        "products",
        "category_fields",
        "product_categories",
        "price_history",
        "sales",
        "watches",
        "suppliers",
        "customers",
    ):
        op.drop_table(table)
