import enum
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from hospital_api.core import config
from hospital_api.core.errors import InsufficientStockError, ValidationError
from hospital_api.models.inventory import InventoryItem

logger = logging.getLogger(__name__)


class StockOperation(str, enum.Enum):
    ADD = "add"
    SUBTRACT = "subtract"


def adjust_stock(item: InventoryItem, quantity: int, operation: StockOperation) -> InventoryItem:
    """Apply a manual stock movement.

    A subtract larger than the stock on hand clamps the quantity to zero and
    logs the shortfall, unless STRICT_STOCK_SUBTRACT is set, in which case it
    raises InsufficientStockError and leaves the item untouched.
    """
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
        raise ValidationError("Quantity must be a positive integer")

    operation = StockOperation(operation)
    if operation == StockOperation.ADD:
        item.quantity += quantity
    else:
        if quantity > item.quantity:
            if config.STRICT_STOCK_SUBTRACT:
                raise InsufficientStockError(item.name, item.quantity, quantity)
            logger.warning("Stock for %s (id %s) clamped to 0: requested %s, on hand %s",
                           item.name, item.id, quantity, item.quantity)
            item.quantity = 0
        else:
            item.quantity -= quantity

    if item.is_low_stock:
        logger.info("%s is at or below its reorder level (%s <= %s)", item.name, item.quantity, item.reorder_level)
    return item


def low_stock_query(db: Session):
    return db.query(InventoryItem).filter(
        InventoryItem.is_active.is_(True),
        InventoryItem.is_low_stock,
    ).order_by(InventoryItem.quantity.asc())


def find_stock_item(db: Session, name: str, lock: bool = False):
    query = db.query(InventoryItem).filter(
        func.lower(InventoryItem.name) == name.strip().lower(),
        InventoryItem.is_active.is_(True),
    )
    if lock:
        query = query.with_for_update()
    return query.first()
