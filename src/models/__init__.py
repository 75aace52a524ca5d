"""Database model type definitions."""

from src.models.catalog import Customer, FoodItem, Offer, Shop
from src.models.order import Order, OrderCreate, OrderItem, OrderUpdate, StructuredAddress
from src.models.payment_event import PaymentEvent

__all__ = [
    "Customer",
    "Shop",
    "FoodItem",
    "Offer",
    "Order",
    "OrderCreate",
    "OrderItem",
    "OrderUpdate",
    "StructuredAddress",
    "PaymentEvent",
]
