"""Read-only rows owned by the user, shop and menu stores."""

from datetime import datetime
from typing import Literal, TypedDict
from uuid import UUID

ShopStatus = Literal["pending", "approved", "rejected"]
OfferType = Literal["percentage", "bogo", "freeDelivery"]


class Customer(TypedDict):
    """users table row, limited to the columns orders expand."""

    id: UUID
    name: str
    email: str


class Shop(TypedDict):
    """shops table row, limited to the columns orders need."""

    id: UUID
    name: str
    logo: str | None
    status: ShopStatus


class FoodItem(TypedDict):
    """food_items table row."""

    id: UUID
    name: str
    price: float
    image: str | None
    shop_id: UUID


class Offer(TypedDict):
    """offers table row."""

    id: UUID
    shop_id: UUID
    title: str
    type: OfferType
    value: float
    minimum_order: float
    code: str
    expiry_date: datetime
