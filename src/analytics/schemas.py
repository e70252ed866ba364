"""
Analytics Schemas

Pydantic shapes for entities as read from the store and for the analytic
responses. Field names are snake_case in Python and camelCase on the wire.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# ENTITIES
# =============================================================================

class LineItem(CamelModel):
    """One product line embedded in an order"""
    product_id: str
    quantity: int = Field(ge=1)
    price_at_purchase: float

    @field_validator("product_id", mode="before")
    @classmethod
    def stringify_product_id(cls, v):
        # Imports may carry numeric product ids
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class CustomerRecord(CamelModel):
    """Customer as stored"""
    customer_id: str
    name: str
    email: str
    age: int
    location: str
    gender: str


class ProductRecord(CamelModel):
    """Product as stored"""
    product_id: str
    name: str
    category: str
    price: float
    stock: int


class OrderRecord(CamelModel):
    """Order with its line items decoded"""
    order_id: str
    customer_id: str
    products: List[LineItem]
    total_amount: float
    order_date: datetime
    status: str


# =============================================================================
# ANALYTIC RESPONSES
# =============================================================================

class CustomerSpending(CamelModel):
    """Spend summary for one customer across all of their orders"""
    customer_id: str
    total_spent: float
    order_count: int
    average_order_value: float
    last_order_date: Optional[datetime] = None


class TopProduct(CamelModel):
    """Units sold for one product"""
    product_id: str
    name: str
    total_sold: int


class CategoryBreakdown(CamelModel):
    """Completed-order revenue for one product category"""
    category: str
    revenue: float


class SalesAnalytics(CamelModel):
    """Completed-order totals over a date range"""
    total_revenue: float = 0.0
    completed_orders: int = 0
    category_breakdown: List[CategoryBreakdown] = Field(default_factory=list)


class CustomerOrdersResponse(CamelModel):
    """One page of a customer's order history"""
    orders: List[OrderRecord]
    total_pages: int
    current_page: int
