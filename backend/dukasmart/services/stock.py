"""Stock-mutating operations.

`Product.stock_quantity` is only ever changed here. Each operation writes its
historical record and adjusts stock on the caller's session; the caller
commits (or rolls back on a raised `StockError`), so record, stock change and
notifications land in one transaction.

Stock is adjusted with a single conditional UPDATE, so two concurrent
outbound operations can never both pass the sufficiency check against the
same units. On PostgreSQL the product row is additionally locked with
SELECT ... FOR UPDATE for the rest of the transaction.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from dukasmart.models.product import Product
from dukasmart.models.purchase import Purchase, Supplier
from dukasmart.models.sale import Sale
from dukasmart.models.stock_movement import OPENING_STOCK_REASON, MovementType, StockMovement
from dukasmart.services import notifications

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


class StockError(Exception):
    """Base class for recoverable stock operation failures."""


class ProductNotFoundError(StockError):
    def __init__(self, product_id: UUID):
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found")


class InsufficientStockError(StockError):
    def __init__(self, product_id: UUID, available: int, requested: int):
        self.product_id = product_id
        self.available = available
        self.requested = requested
        super().__init__(f"Insufficient stock. Available: {available}, requested: {requested}")


def line_total(quantity: int, unit_price: Decimal) -> Decimal:
    return (Decimal(unit_price) * quantity).quantize(CENTS, rounding=ROUND_HALF_UP)


async def _lock_product(db: AsyncSession, product_id: UUID) -> Product:
    result = await db.execute(
        select(Product).where(Product.id == product_id).with_for_update()
    )
    product = result.scalar_one_or_none()
    if product is None:
        raise ProductNotFoundError(product_id)
    return product


async def _apply_delta(db: AsyncSession, product: Product, delta: int) -> tuple[int, int]:
    """Atomically add `delta` to stock. Returns (before, after).

    A negative delta only applies when enough stock is on hand; otherwise
    nothing is written and InsufficientStockError is raised.
    """
    stmt = update(Product).where(Product.id == product.id)
    if delta < 0:
        stmt = stmt.where(Product.stock_quantity >= -delta)
    stmt = (
        stmt.values(stock_quantity=Product.stock_quantity + delta)
        .returning(Product.stock_quantity)
        .execution_options(synchronize_session=False)
    )
    after = (await db.execute(stmt)).scalar_one_or_none()

    if after is None:
        available = (
            await db.execute(select(Product.stock_quantity).where(Product.id == product.id))
        ).scalar_one()
        logger.warning(
            "Insufficient stock for product=%s available=%s requested=%s",
            product.id, available, -delta,
        )
        raise InsufficientStockError(product.id, available, -delta)

    set_committed_value(product, "stock_quantity", after)
    return after - delta, after


async def _notify_low_stock(db: AsyncSession, product: Product, before: int, after: int, cause: str) -> None:
    if notifications.crossed_low_stock(before, after, product.low_stock_threshold):
        await notifications.publish(db, notifications.low_stock_reached(product, after, cause))


async def _find_supplier(db: AsyncSession, name: str) -> Supplier | None:
    result = await db.execute(select(Supplier).where(Supplier.name == name))
    return result.scalar_one_or_none()


async def _get_or_create_supplier(db: AsyncSession, name: str) -> Supplier:
    supplier = await _find_supplier(db, name)
    if supplier is not None:
        return supplier
    try:
        async with db.begin_nested():
            supplier = Supplier(name=name)
            db.add(supplier)
    except IntegrityError:
        # Inserted by a concurrent purchase after the lookup
        supplier = await _find_supplier(db, name)
        if supplier is None:
            raise
    return supplier


async def create_purchase(
    db: AsyncSession,
    *,
    product_id: UUID,
    quantity_received: int,
    cost_per_unit: Decimal,
    actor,
    supplier_name: str | None = None,
) -> Purchase:
    """Record a stock intake and add it to the product's stock."""
    product = await _lock_product(db, product_id)

    await _apply_delta(db, product, quantity_received)

    supplier = None
    if supplier_name:
        supplier = await _get_or_create_supplier(db, supplier_name)

    purchase = Purchase(
        product_id=product.id,
        quantity_received=quantity_received,
        cost_per_unit=cost_per_unit,
        total_cost=line_total(quantity_received, cost_per_unit),
        purchased_by=actor.id,
        supplier_name=supplier_name,
        supplier_id=supplier.id if supplier else None,
    )
    db.add(purchase)
    await db.flush()

    await notifications.publish(db, notifications.purchase_recorded(purchase, product, actor.display_name))

    logger.info(
        "Purchase recorded: product=%s qty=%s total=%s by=%s",
        product.id, quantity_received, purchase.total_cost, actor.id,
    )
    return purchase


async def create_sale(
    db: AsyncSession,
    *,
    product_id: UUID,
    quantity_sold: int,
    actor,
    sale_price: Decimal | None = None,
) -> Sale:
    """Record a sale and take it out of stock. Rejects sales beyond stock on hand."""
    product = await _lock_product(db, product_id)
    unit_price = product.price if sale_price is None else sale_price

    before, after = await _apply_delta(db, product, -quantity_sold)

    sale = Sale(
        product_id=product.id,
        quantity_sold=quantity_sold,
        sale_price=unit_price,
        total_amount=line_total(quantity_sold, unit_price),
        sold_by=actor.id,
    )
    db.add(sale)
    await db.flush()

    await notifications.publish(db, notifications.sale_recorded(sale, product, actor.display_name))
    await _notify_low_stock(db, product, before, after, cause=f"sale:{sale.id}")

    logger.info(
        "Sale recorded: product=%s qty=%s total=%s by=%s",
        product.id, quantity_sold, sale.total_amount, actor.id,
    )
    return sale


async def create_stock_movement(
    db: AsyncSession,
    *,
    product_id: UUID,
    movement_type: MovementType,
    quantity: int,
    actor,
    reason: str | None = None,
) -> StockMovement:
    """Record a manual adjustment. Outbound movements beyond stock are rejected."""
    product = await _lock_product(db, product_id)
    delta = quantity if movement_type == MovementType.IN else -quantity

    before, after = await _apply_delta(db, product, delta)

    movement = StockMovement(
        product_id=product.id,
        movement_type=movement_type,
        quantity=quantity,
        reason=reason,
        performed_by=actor.id,
    )
    db.add(movement)
    await db.flush()

    await notifications.publish(db, notifications.stock_moved(movement, product, actor.display_name))
    await _notify_low_stock(db, product, before, after, cause=f"stock_movement:{movement.id}")

    logger.info(
        "Stock movement recorded: product=%s type=%s qty=%s by=%s",
        product.id, movement_type.value, quantity, actor.id,
    )
    return movement


async def record_opening_stock(db: AsyncSession, product: Product, quantity: int, actor) -> StockMovement:
    """Bring a newly created product's stock up to `quantity` through an `in` movement."""
    await _apply_delta(db, product, quantity)
    movement = StockMovement(
        product_id=product.id,
        movement_type=MovementType.IN,
        quantity=quantity,
        reason=OPENING_STOCK_REASON,
        is_opening=True,
        performed_by=actor.id,
    )
    db.add(movement)
    await db.flush()
    return movement


def ledger_quantity_subqueries():
    """Per-product correlated sums of purchases, sales and signed movements."""
    purchased = (
        select(func.coalesce(func.sum(Purchase.quantity_received), 0))
        .where(Purchase.product_id == Product.id)
        .scalar_subquery()
    )
    sold = (
        select(func.coalesce(func.sum(Sale.quantity_sold), 0))
        .where(Sale.product_id == Product.id)
        .scalar_subquery()
    )
    moved = (
        select(
            func.coalesce(
                func.sum(
                    case(
                        (StockMovement.movement_type == MovementType.IN, StockMovement.quantity),
                        else_=-StockMovement.quantity,
                    )
                ),
                0,
            )
        )
        .where(StockMovement.product_id == Product.id)
        .scalar_subquery()
    )
    return purchased, sold, moved


async def ledger_quantity(db: AsyncSession, product_id: UUID) -> int:
    """Replay every purchase, sale and movement of a product from zero."""
    purchased, sold, moved = ledger_quantity_subqueries()
    result = await db.execute(
        select((purchased - sold + moved).label("ledger")).where(Product.id == product_id)
    )
    value = result.scalar_one_or_none()
    if value is None:
        raise ProductNotFoundError(product_id)
    return int(value)
