import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import JSONResponse

from app.models.order import Order, OrderStatus
from app.schemas.inventory import ShortageResponse
from app.schemas.order import (
    OrderDetailResponse,
    OrderDraft,
    OrderItemResponse,
    OrderPlacementResponse,
    OrderStatusUpdate,
    OrderTotalResponse,
    PaymentUpdate,
)
from app.schemas.response import ErrorBody, ErrorResponse, SuccessResponse
from app.services.order_repository import (
    get_order,
    list_orders,
    list_orders_by_customer,
    list_orders_by_date_range,
)
from app.services.order_service import (
    PlacementOutcome,
    calculate_order_total,
    place_order,
    update_order_status,
    update_payment_status,
)

router = APIRouter()
log = logging.getLogger("api.orders")

# HTTP status and error code for every unsuccessful placement outcome
_REJECTIONS = {
    PlacementOutcome.INVALID: (status.HTTP_400_BAD_REQUEST, "invalid_order"),
    PlacementOutcome.INSUFFICIENT_INVENTORY: (status.HTTP_409_CONFLICT, "insufficient_inventory"),
    PlacementOutcome.FAILED: (status.HTTP_500_INTERNAL_SERVER_ERROR, "order_failed"),
}


def _detail(order: Order) -> dict:
    items = [
        OrderItemResponse(
            product_id=i.product_id,
            quantity=i.quantity,
            price_at_time=str(i.price_at_time),
        )
        for i in order.line_items
    ]
    return OrderDetailResponse(
        id=order.id,
        customer_id=order.customer_id,
        order_type=order.order_type,
        order_status=order.order_status,
        payment_status=order.payment_status,
        payment_method=order.payment_method,
        total_amount=order.total_amount,
        items=items,
        assigned_employee_ids=order.assigned_employee_ids,
        created_at=str(order.created_at),
    ).model_dump(mode="json")


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_order_endpoint(draft: OrderDraft):
    """
    Places a new order. Stock is checked and deducted in the same request.
    """
    result = await place_order(draft)

    if not result.placed:
        status_code, code = _REJECTIONS[result.outcome]
        log.info(f"Order for customer {draft.customer_id} not placed: {result.outcome.value} ({result.reason})")
        details = None
        if result.shortages:
            details = [
                ShortageResponse(
                    ingredient_id=s.ingredient_id, required=s.required, available=s.available
                ).model_dump(mode="json")
                for s in result.shortages
            ]
        body = ErrorResponse(error=ErrorBody(code=code, message=result.reason, details=details))
        return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))

    data = OrderPlacementResponse(
        order_id=result.order_id,
        order_status=OrderStatus.PENDING,
        total_amount=result.total_amount,
        message="Order placed and ingredients deducted.",
    ).model_dump(mode="json")
    return SuccessResponse(data=data)


@router.get("/", response_model=SuccessResponse)
async def list_orders_endpoint(
    customer_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
):
    """Lists orders, most recent first. Filter by customer or by an inclusive date range."""
    if customer_id is not None:
        orders = await list_orders_by_customer(customer_id)
    elif start_date is not None or end_date is not None:
        if start_date is None or end_date is None:
            raise HTTPException(status_code=400, detail="Both start_date and end_date are required.")
        orders = await list_orders_by_date_range(start_date, end_date)
    else:
        orders = await list_orders()
    data: List[dict] = [_detail(o) for o in orders]
    return SuccessResponse(data=data)


@router.get("/{order_id}", response_model=SuccessResponse)
async def get_order_endpoint(order_id: int):
    """Fetches details for a specific order."""
    order = await get_order(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return SuccessResponse(data=_detail(order))


@router.get("/{order_id}/total", response_model=SuccessResponse)
async def get_order_total_endpoint(order_id: int):
    """Recomputes the order total from its stored line items."""
    total = await calculate_order_total(order_id)
    return SuccessResponse(data=OrderTotalResponse(order_id=order_id, total_amount=total).model_dump(mode="json"))


@router.patch("/{order_id}/status", response_model=SuccessResponse)
async def update_status_endpoint(order_id: int, payload: OrderStatusUpdate):
    """
    Updates status (e.g. 'IN_PROGRESS', 'COMPLETED', 'CANCELLED').
    """
    order = await update_order_status(order_id, payload.order_status)
    return SuccessResponse(data={"order_id": order.id, "order_status": order.order_status.value})


@router.patch("/{order_id}/payment", response_model=SuccessResponse)
async def update_payment_endpoint(order_id: int, payload: PaymentUpdate):
    order = await update_payment_status(order_id, payload.payment_status, payload.payment_method)
    return SuccessResponse(
        data={
            "order_id": order.id,
            "payment_status": order.payment_status.value,
            "payment_method": order.payment_method.value if order.payment_method else None,
        }
    )
