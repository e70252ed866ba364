"""
Database Models

Three independent tables keyed by the caller-assigned string identifier
carried over from the import files:

- customers: customer attributes
- products: product catalog, grouped by category for analytics
- orders: order header plus the embedded line-item payload

Order references (customer_id, line item productId) are plain string
columns without foreign keys. Imports may arrive out of order and the
analytics layer resolves them by value.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum as SQLEnum,
    Float,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


# =============================================================================
# ENUMERATIONS
# =============================================================================

class OrderStatus(str, Enum):
    """Order status enumeration"""
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELED = "canceled"


# =============================================================================
# TABLES
# =============================================================================

class Customer(Base):
    """Customer records as imported."""
    __tablename__ = "customers"

    customer_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    location: Mapped[str] = mapped_column(String(200), nullable=False)
    gender: Mapped[str] = mapped_column(String(50), nullable=False)

    __table_args__ = (
        Index("ix_customers_email", "email"),
    )


class Product(Base):
    """
    Product Catalog Table

    Category is an open set of strings used only as an aggregation key.
    """
    __tablename__ = "products"

    product_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    stock: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        Index("ix_products_category", "category"),
    )


class Order(Base):
    """
    Order Table

    ``line_items`` holds the raw embedded payload exactly as imported, a
    JSON-like list using single quotes, e.g.
    ``[{'productId': 'P1', 'quantity': 2, 'priceAtPurchase': 19.99}]``.
    It is decoded by ``src.analytics.line_items`` before use.
    """
    __tablename__ = "orders"

    order_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    customer_id: Mapped[str] = mapped_column(String(64), nullable=False)
    line_items: Mapped[str] = mapped_column("products", Text, nullable=False)
    total_amount: Mapped[float] = mapped_column(Float, nullable=False)
    order_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    status: Mapped[OrderStatus] = mapped_column(
        SQLEnum(
            OrderStatus,
            name="order_status",
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_orders_customer_id", "customer_id"),
        Index("ix_orders_order_date", "order_date"),
        Index("ix_orders_status", "status"),
        Index("ix_orders_status_order_date", "status", "order_date"),
    )
