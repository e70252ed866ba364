"""
Database Module
"""
from .connection import Database
from .models import Base, Customer, Order, OrderStatus, Product
from .repositories import (
    CustomerRepository,
    OrderRepository,
    ProductRepository,
    key_equals,
    key_in,
)

__all__ = [
    "Database",
    "Base",
    "Customer",
    "Order",
    "OrderStatus",
    "Product",
    "CustomerRepository",
    "OrderRepository",
    "ProductRepository",
    "key_equals",
    "key_in",
]
