"""Data models for the stock and order service."""

from stockflow.models.order import Order, OrderItem, OrderItemRequest, OrderStatus
from stockflow.models.product import Product, ProductCreate, ProductUpdate
from stockflow.models.reservation import (
    Reservation,
    ReservationReceipt,
    StockValidation,
)

__all__ = [
    # Product
    "Product",
    "ProductCreate",
    "ProductUpdate",
    # Reservation
    "Reservation",
    "ReservationReceipt",
    "StockValidation",
    # Order
    "Order",
    "OrderItem",
    "OrderItemRequest",
    "OrderStatus",
]
