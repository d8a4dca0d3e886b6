import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional, Tuple

from tortoise import timezone
from tortoise.exceptions import BaseORMException
from tortoise.transactions import in_transaction

from app.core.exceptions import (
    InsufficientInventoryError,
    InsufficientStockError,
    OrderNotFoundError,
    OrderStateError,
    OrderValidationError,
    PartialBatchError,
    PersistenceError,
    StockAdjustmentError,
)
from app.models.inventory import AdjustmentReason
from app.models.order import (
    AssignedEmployee,
    Order,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    Product,
)
from app.schemas.order import OrderDraft, OrderItemDraft
from app.services.inventory_service import Shortage, adjust_stock, find_shortages
from app.services.recipe_service import aggregate_requirements

log = logging.getLogger("order_service")


class PlacementState(str, Enum):
    VALIDATING = "VALIDATING"
    CHECKING_AVAILABILITY = "CHECKING_AVAILABILITY"
    PERSISTING_HEADER = "PERSISTING_HEADER"
    PERSISTING_ITEMS = "PERSISTING_ITEMS"
    ASSIGNING_STAFF = "ASSIGNING_STAFF"
    DEDUCTING_INVENTORY = "DEDUCTING_INVENTORY"
    COMMITTED = "COMMITTED"
    REJECTED = "REJECTED"
    ROLLED_BACK = "ROLLED_BACK"


class PlacementOutcome(str, Enum):
    PLACED = "PLACED"
    INSUFFICIENT_INVENTORY = "INSUFFICIENT_INVENTORY"
    INVALID = "INVALID"
    FAILED = "FAILED"


@dataclass
class PlacementResult:
    """
    What the caller gets back from place_order(). Only `outcome` and `order_id`
    are meant for branching; `failed_at` and `reason` are diagnostics.
    """
    outcome: PlacementOutcome
    state: PlacementState
    order_id: Optional[int] = None
    total_amount: Optional[Decimal] = None
    failed_at: Optional[PlacementState] = None
    reason: str = ""
    shortages: List[Shortage] = field(default_factory=list)

    @property
    def placed(self) -> bool:
        return self.outcome == PlacementOutcome.PLACED


# Orders in these states can no longer change status
FINAL_STATUSES = (OrderStatus.COMPLETED, OrderStatus.CANCELLED)

# Upper bound of the order_items.quantity column
MAX_ITEM_QUANTITY = 2**31 - 1

_CENTS = Decimal("0.01")


def validate_draft(draft: OrderDraft) -> None:
    """Shape checks that run before anything is read or written."""
    if not draft.items:
        raise OrderValidationError("Order must contain at least one item.")
    for item in draft.items:
        if item.quantity <= 0 or item.quantity > MAX_ITEM_QUANTITY:
            raise OrderValidationError(f"Invalid quantity {item.quantity!r} for product {item.product_id}.")
        if item.price_at_time is not None:
            if item.price_at_time < 0:
                raise OrderValidationError(f"Negative price for product {item.product_id}.")
            if item.price_at_time.normalize().as_tuple().exponent < -2:
                raise OrderValidationError(f"Price for product {item.product_id} has more than 2 decimal places.")
    if not draft.assigned_employee_ids:
        raise OrderValidationError("At least one employee must be assigned to the order.")


def responsible_employee(draft: OrderDraft) -> int:
    """
    Inventory deductions for an order are attributed to the first employee in
    its assigned-employee list.
    """
    return draft.assigned_employee_ids[0]


def order_total(lines: List[Tuple[OrderItemDraft, Decimal]]) -> Decimal:
    return sum((price * item.quantity for item, price in lines), Decimal("0")).quantize(_CENTS)


async def _snapshot_prices(draft: OrderDraft, conn: Any) -> List[Tuple[OrderItemDraft, Decimal]]:
    """Pairs every item with the price it is sold at: the supplied one, else the catalog price."""
    product_ids = {item.product_id for item in draft.items}
    products = await Product.filter(id__in=list(product_ids), is_active=True).using_db(conn)
    catalog = {p.id: p.price for p in products}

    lines = []
    for item in draft.items:
        if item.product_id not in catalog:
            raise OrderValidationError(f"Product {item.product_id} not found or inactive.")
        price = item.price_at_time if item.price_at_time is not None else catalog[item.product_id]
        lines.append((item, price))
    return lines


async def _persist_header(draft: OrderDraft, lines: List[Tuple[OrderItemDraft, Decimal]], conn: Any) -> Order:
    try:
        return await Order.create(
            customer_id=draft.customer_id,
            created_at=draft.created_at or timezone.now(),
            order_type=draft.order_type,
            order_status=OrderStatus.PENDING,
            payment_status=PaymentStatus.UNPAID,
            payment_method=draft.payment_method,
            total_amount=order_total(lines),
            using_db=conn,
        )
    except BaseORMException as e:
        raise PersistenceError(f"Could not insert order header: {e}") from e


async def _persist_items(order: Order, lines: List[Tuple[OrderItemDraft, Decimal]], conn: Any) -> None:
    rows = [
        OrderItem(order_id=order.id, product_id=item.product_id, quantity=item.quantity, price_at_time=price)
        for item, price in lines
    ]
    try:
        await OrderItem.bulk_create(rows, using_db=conn)
        written = await OrderItem.filter(order_id=order.id).using_db(conn).count()
    except BaseORMException as e:
        raise PersistenceError(f"Could not insert items of order {order.id}: {e}") from e
    if written != len(rows):
        raise PartialBatchError("order_items", len(rows), written)


async def _assign_staff(order: Order, employee_ids: List[int], conn: Any) -> None:
    rows = [AssignedEmployee(order_id=order.id, employee_id=emp_id) for emp_id in employee_ids]
    try:
        await AssignedEmployee.bulk_create(rows, using_db=conn)
        written = await AssignedEmployee.filter(order_id=order.id).using_db(conn).count()
    except BaseORMException as e:
        raise PersistenceError(f"Could not assign staff to order {order.id}: {e}") from e
    if written != len(rows):
        raise PartialBatchError("assigned_employees_to_orders", len(rows), written)


async def _deduct_inventory(order: Order, draft: OrderDraft, conn: Any) -> None:
    requirements = await aggregate_requirements(draft.items, conn=conn)
    employee_id = responsible_employee(draft)
    # Ingredient rows are locked in id order so concurrent placements cannot deadlock
    for ingredient_id, qty in sorted(requirements.items()):
        if qty == 0:
            continue
        try:
            await adjust_stock(
                ingredient_id,
                -qty,
                employee_id,
                AdjustmentReason.USAGE,
                note=f"Used in Order #{order.id}",
                conn=conn,
            )
        except BaseORMException as e:
            raise PersistenceError(f"Could not deduct ingredient {ingredient_id}: {e}") from e


async def _check_availability(draft: OrderDraft) -> None:
    """Read-only fast path; nothing has been written when this rejects."""
    requirements = await aggregate_requirements(draft.items)
    shortages = await find_shortages(requirements)
    if shortages:
        raise InsufficientInventoryError("Insufficient inventory.", shortages)


def _transition(state: PlacementState) -> PlacementState:
    log.debug(f"Order placement -> {state.value}")
    return state


async def place_order(draft: OrderDraft) -> PlacementResult:
    """
    Places an order as one unit of work: header, items, staff assignments and
    ingredient deductions are either all committed or all rolled back.

    Validation and the availability check run before any write transaction is
    opened; a short ingredient ends in REJECTED without touching the database.
    """
    state = _transition(PlacementState.VALIDATING)
    try:
        validate_draft(draft)
    except OrderValidationError as e:
        log.info(f"Order rejected: {e}")
        return PlacementResult(PlacementOutcome.INVALID, PlacementState.REJECTED, failed_at=state, reason=str(e))

    state = _transition(PlacementState.CHECKING_AVAILABILITY)
    try:
        await _check_availability(draft)
    except InsufficientInventoryError as e:
        log.info(f"Order rejected: {e} {[s.ingredient_id for s in e.shortages]}")
        return PlacementResult(
            PlacementOutcome.INSUFFICIENT_INVENTORY,
            PlacementState.REJECTED,
            failed_at=state,
            reason=str(e),
            shortages=e.shortages,
        )
    except (BaseORMException, ArithmeticError) as e:
        log.error(f"Availability check failed: {e!r}")
        return PlacementResult(PlacementOutcome.FAILED, PlacementState.REJECTED, failed_at=state, reason=str(e))

    order = None
    try:
        async with in_transaction() as conn:
            state = _transition(PlacementState.PERSISTING_HEADER)
            lines = await _snapshot_prices(draft, conn)
            order = await _persist_header(draft, lines, conn)

            state = _transition(PlacementState.PERSISTING_ITEMS)
            await _persist_items(order, lines, conn)

            state = _transition(PlacementState.ASSIGNING_STAFF)
            await _assign_staff(order, draft.assigned_employee_ids, conn)

            state = _transition(PlacementState.DEDUCTING_INVENTORY)
            await _deduct_inventory(order, draft, conn)
    except InsufficientStockError as e:
        # Stock changed after the pre-check; the locked deduction is authoritative
        log.error(f"Order rolled back at {state.value}: {e}")
        shortage = Shortage(e.ingredient_id, -e.delta, e.available)
        return PlacementResult(
            PlacementOutcome.INSUFFICIENT_INVENTORY,
            PlacementState.ROLLED_BACK,
            failed_at=state,
            reason=str(e),
            shortages=[shortage],
        )
    except OrderValidationError as e:
        log.error(f"Order rolled back at {state.value}: {e}")
        return PlacementResult(PlacementOutcome.INVALID, PlacementState.ROLLED_BACK, failed_at=state, reason=str(e))
    except (PersistenceError, StockAdjustmentError) as e:
        log.error(f"Order rolled back at {state.value}: {e}")
        return PlacementResult(PlacementOutcome.FAILED, PlacementState.ROLLED_BACK, failed_at=state, reason=str(e))
    except Exception as e:
        log.exception(f"Unexpected error, order rolled back at {state.value}")
        return PlacementResult(PlacementOutcome.FAILED, PlacementState.ROLLED_BACK, failed_at=state, reason=str(e))

    _transition(PlacementState.COMMITTED)
    log.info(f"Order {order.id} placed for customer {draft.customer_id}.")
    return PlacementResult(
        PlacementOutcome.PLACED,
        PlacementState.COMMITTED,
        order_id=order.id,
        total_amount=order.total_amount,
    )


async def update_order_status(order_id: int, new_status: OrderStatus) -> Order:
    """Changes the order status; COMPLETED and CANCELLED orders are frozen."""
    async with in_transaction() as conn:
        order = await Order.filter(id=order_id).using_db(conn).select_for_update().first()
        if not order:
            raise OrderNotFoundError(order_id)

        if order.order_status in FINAL_STATUSES:
            raise OrderStateError(
                f"Order is already in a final state: {order.order_status.value}. Status cannot be updated."
            )

        old_status = order.order_status
        order.order_status = new_status
        await order.save(update_fields=["order_status", "updated_at"], using_db=conn)

    log.info(f"Order {order_id} status {old_status.value} -> {new_status.value}")
    return order


async def update_payment_status(
    order_id: int,
    payment_status: PaymentStatus,
    payment_method: Optional[PaymentMethod] = None,
) -> Order:
    """Records a payment change. Only a PAID order can be REFUNDED."""
    async with in_transaction() as conn:
        order = await Order.filter(id=order_id).using_db(conn).select_for_update().first()
        if not order:
            raise OrderNotFoundError(order_id)

        if payment_status == PaymentStatus.REFUNDED and order.payment_status != PaymentStatus.PAID:
            raise OrderStateError(f"Cannot refund an order whose payment status is {order.payment_status.value}.")

        order.payment_status = payment_status
        update_fields = ["payment_status", "updated_at"]
        if payment_method is not None:
            order.payment_method = payment_method
            update_fields.append("payment_method")
        await order.save(update_fields=update_fields, using_db=conn)

    log.info(f"Order {order_id} payment status -> {payment_status.value}")
    return order


async def calculate_order_total(order_id: int) -> Decimal:
    """Authoritative total: quantity x snapshotted price over the stored items."""
    if not await Order.filter(id=order_id).exists():
        raise OrderNotFoundError(order_id)
    items = await OrderItem.filter(order_id=order_id)
    return sum((item.price_at_time * item.quantity for item in items), Decimal("0")).quantize(_CENTS)
