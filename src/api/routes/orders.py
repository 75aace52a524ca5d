"""Order API routes."""

from fastapi import APIRouter, status

from src.api.deps import OrderServiceDep
from src.schemas.order import (
    OrderCreateRequest,
    OrderListResponse,
    OrderResponse,
    OrderStatusUpdate,
)

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get(
    "",
    response_model=OrderListResponse,
    summary="List all orders",
    description="Returns every order, newest first. Intended for the admin dashboard.",
)
async def list_orders(service: OrderServiceDep) -> OrderListResponse:
    """List all orders.

    Args:
        service: Order service.

    Returns:
        OrderListResponse: Expanded orders.
    """
    orders = await service.list_orders()
    return OrderListResponse(items=[OrderResponse(**order) for order in orders])


@router.post(
    "",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Place an order",
    description="Validates the customer, shop, items, offer and total, then stores a pending order.",
)
async def create_order(data: OrderCreateRequest, service: OrderServiceDep) -> OrderResponse:
    """Create a new order from a checkout.

    Args:
        data: Order creation data.
        service: Order service.

    Returns:
        OrderResponse: The stored order with references expanded.

    Raises:
        ValidationError: 400 for malformed ids or a mismatched total.
        NotFoundError: 404 if a referenced record does not exist.
        BusinessRuleError: 409 if the shop is not approved or an item belongs elsewhere.
    """
    order = await service.create_order(data)
    return OrderResponse(**order)


@router.get(
    "/user/{user_id}",
    response_model=OrderListResponse,
    summary="List a customer's orders",
)
async def list_customer_orders(user_id: str, service: OrderServiceDep) -> OrderListResponse:
    """List orders placed by a customer, newest first."""
    orders = await service.list_orders_for_customer(user_id)
    return OrderListResponse(items=[OrderResponse(**order) for order in orders])


@router.get(
    "/shop/{shop_id}",
    response_model=OrderListResponse,
    summary="List a shop's orders",
)
async def list_shop_orders(shop_id: str, service: OrderServiceDep) -> OrderListResponse:
    """List orders received by a shop, newest first."""
    orders = await service.list_orders_for_shop(shop_id)
    return OrderListResponse(items=[OrderResponse(**order) for order in orders])


@router.get(
    "/{order_id}",
    response_model=OrderResponse,
    summary="Get order by ID",
)
async def get_order(order_id: str, service: OrderServiceDep) -> OrderResponse:
    """Get a single order by ID.

    Raises:
        NotFoundError: 404 if the order does not exist.
    """
    order = await service.get_order(order_id)
    return OrderResponse(**order)


@router.patch(
    "/{order_id}/status",
    response_model=OrderResponse,
    summary="Change order status",
    description="Moves an order along its lifecycle. Disallowed transitions are rejected with 409.",
)
async def update_order_status(
    order_id: str,
    data: OrderStatusUpdate,
    service: OrderServiceDep,
) -> OrderResponse:
    """Transition an order to a new status.

    Args:
        order_id: The order's UUID.
        data: Target status.
        service: Order service.

    Returns:
        OrderResponse: The updated order.
    """
    order = await service.update_status(order_id, data.status)
    return OrderResponse(**order)
