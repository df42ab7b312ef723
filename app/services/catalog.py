"""
Product catalog store.

Stock only goes down through ``decrement_stock``, using the same
conditional-UPDATE pattern as the account ledger. Privilege checks for
creating or editing products live in the identity layer, not here.
"""

from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from app.core.errors import Conflict, NotFound, OutOfStock, ValidationFailed
from app.models.account import MAX_BALANCE
from app.models.product import MAX_STOCK, Product


def _validate(name: str, price: int, stock: int) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationFailed("Product name is required")
    if price <= 0:
        raise ValidationFailed("Price must be greater than zero")
    if price > MAX_BALANCE:
        raise ValidationFailed("Price is too large")
    if stock < 0:
        raise ValidationFailed("Stock cannot be negative")
    if stock > MAX_STOCK:
        raise ValidationFailed("Stock is too large")
    return name


def get_product(db: Session, product_id: UUID) -> Product:
    product = db.get(Product, product_id, populate_existing=True)
    if product is None:
        raise NotFound("Product not found")
    return product


def list_products(db: Session) -> list[Product]:
    return list(db.scalars(select(Product).order_by(Product.created_at.asc(), Product.name)))


def count_products(db: Session) -> int:
    return db.scalar(select(func.count()).select_from(Product))


def create_product(db: Session, name: str, description: str, price: int, stock: int) -> Product:
    name = _validate(name, price, stock)
    product = Product(name=name, description=description or "", price=price, stock=stock)
    db.add(product)
    db.flush()
    return product


def update_product(
    db: Session,
    product_id: UUID,
    name: str,
    description: str,
    price: int,
    stock: int,
) -> Product:
    name = _validate(name, price, stock)
    # lock the row so the write doesn't interleave with a purchase's stock check
    product = db.get(Product, product_id, with_for_update=True, populate_existing=True)
    if product is None:
        raise NotFound("Product not found")

    product.name = name
    product.description = description or ""
    product.price = price
    product.stock = stock
    db.flush()
    return product


def decrement_stock(
    db: Session,
    product_id: UUID,
    qty: int,
    expected_min: int = 0,
    expected_price: int | None = None,
) -> Product:
    """Take ``qty`` units out of stock.

    With ``expected_price`` set, the update only applies while the product
    still costs that much; a price edited since the caller read it raises
    ``Conflict`` and nothing changes.
    """
    conditions = [
        Product.id == product_id,
        Product.stock >= expected_min + qty,
    ]
    if expected_price is not None:
        conditions.append(Product.price == expected_price)

    stmt = (
        update(Product)
        .where(*conditions)
        .values(stock=Product.stock - qty)
        .returning(Product.id)
        .execution_options(synchronize_session=False)
    )
    row = db.execute(stmt).first()

    if row is None:
        current = db.execute(
            select(Product.price).where(Product.id == product_id)
        ).first()
        if current is None:
            raise NotFound("Product not found")
        if expected_price is not None and current.price != expected_price:
            raise Conflict("Product price changed, please review and retry")
        raise OutOfStock()

    return db.get(Product, product_id, populate_existing=True)
