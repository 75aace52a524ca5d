"""FastAPI dependency injection functions."""

from typing import Annotated

from fastapi import Depends

from src.core.config import Settings, get_settings
from src.services.order_service import OrderService
from src.services.payment_service import PaymentService

SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_order_service(settings: SettingsDep) -> OrderService:
    """Build an order service bound to the process settings."""
    return OrderService(settings)


def get_payment_service(
    settings: SettingsDep,
    order_service: Annotated[OrderService, Depends(get_order_service)],
) -> PaymentService:
    """Build a payment service sharing the request's order service."""
    return PaymentService(settings, supabase_client=order_service.client, order_service=order_service)


# Type aliases for cleaner dependency injection
OrderServiceDep = Annotated[OrderService, Depends(get_order_service)]
PaymentServiceDep = Annotated[PaymentService, Depends(get_payment_service)]
