"""
GraphQL API

Strawberry GraphQL schema over the analytics façade. Resolvers read the
façade from the request context and only convert shapes.
"""

from datetime import datetime
from typing import List, Optional

import strawberry
from fastapi import Request
from strawberry.fastapi import GraphQLRouter
from strawberry.types import Info

from src.analytics import schemas
from src.analytics.service import AnalyticsService


# =============================================================================
# TYPES
# =============================================================================

@strawberry.type
class Customer:
    id: strawberry.ID
    name: str
    email: str
    age: int
    location: str
    gender: str

    @classmethod
    def from_record(cls, record: schemas.CustomerRecord) -> "Customer":
        return cls(
            id=strawberry.ID(record.customer_id),
            name=record.name,
            email=record.email,
            age=record.age,
            location=record.location,
            gender=record.gender,
        )


@strawberry.type
class Product:
    id: strawberry.ID
    name: str
    category: str
    price: float
    stock: int

    @classmethod
    def from_record(cls, record: schemas.ProductRecord) -> "Product":
        return cls(
            id=strawberry.ID(record.product_id),
            name=record.name,
            category=record.category,
            price=record.price,
            stock=record.stock,
        )


@strawberry.type
class ProductItem:
    product_id: strawberry.ID
    quantity: int
    price_at_purchase: float


@strawberry.type
class Order:
    id: strawberry.ID
    customer_id: strawberry.ID
    products: List[ProductItem]
    total_amount: float
    order_date: datetime
    status: str

    @classmethod
    def from_record(cls, record: schemas.OrderRecord) -> "Order":
        return cls(
            id=strawberry.ID(record.order_id),
            customer_id=strawberry.ID(record.customer_id),
            products=[
                ProductItem(
                    product_id=strawberry.ID(item.product_id),
                    quantity=item.quantity,
                    price_at_purchase=item.price_at_purchase,
                )
                for item in record.products
            ],
            total_amount=record.total_amount,
            order_date=record.order_date,
            status=record.status,
        )


@strawberry.type
class CustomerSpending:
    customer_id: strawberry.ID
    total_spent: float
    order_count: int
    average_order_value: float
    last_order_date: Optional[datetime]


@strawberry.type
class TopProduct:
    product_id: strawberry.ID
    name: str
    total_sold: int


@strawberry.type
class CategoryBreakdown:
    category: str
    revenue: float


@strawberry.type
class SalesAnalytics:
    total_revenue: float
    completed_orders: int
    category_breakdown: List[CategoryBreakdown]


@strawberry.type
class CustomerOrdersResponse:
    orders: List[Order]
    total_pages: int
    current_page: int


def _service(info: Info) -> AnalyticsService:
    return info.context["service"]


# =============================================================================
# QUERIES
# =============================================================================

@strawberry.type
class Query:

    @strawberry.field
    async def get_customer_spending(self, info: Info, customer_id: strawberry.ID) -> Optional[CustomerSpending]:
        """Total and average spend of one customer"""
        result = await _service(info).get_customer_spending(customer_id)
        if result is None:
            return None
        return CustomerSpending(
            customer_id=strawberry.ID(result.customer_id),
            total_spent=result.total_spent,
            order_count=result.order_count,
            average_order_value=result.average_order_value,
            last_order_date=result.last_order_date,
        )

    @strawberry.field
    async def get_top_selling_products(self, info: Info, limit: int) -> List[TopProduct]:
        """Products ranked by units sold"""
        products = await _service(info).get_top_selling_products(limit)
        return [
            TopProduct(product_id=strawberry.ID(p.product_id), name=p.name, total_sold=p.total_sold)
            for p in products
        ]

    @strawberry.field
    async def get_sales_analytics(self, info: Info, start_date: str, end_date: str) -> SalesAnalytics:
        """Completed-order revenue and category breakdown for a date range"""
        result = await _service(info).get_sales_analytics(start_date, end_date)
        return SalesAnalytics(
            total_revenue=result.total_revenue,
            completed_orders=result.completed_orders,
            category_breakdown=[
                CategoryBreakdown(category=c.category, revenue=c.revenue)
                for c in result.category_breakdown
            ],
        )

    @strawberry.field
    async def get_customer_orders(
        self,
        info: Info,
        customer_id: strawberry.ID,
        page: int,
        limit: int,
    ) -> CustomerOrdersResponse:
        """Paginated order history, most recent first"""
        result = await _service(info).get_customer_orders(customer_id, page, limit)
        return CustomerOrdersResponse(
            orders=[Order.from_record(o) for o in result.orders],
            total_pages=result.total_pages,
            current_page=result.current_page,
        )

    @strawberry.field
    async def get_customer(self, info: Info, id: strawberry.ID) -> Optional[Customer]:
        record = await _service(info).get_customer(id)
        return Customer.from_record(record) if record else None

    @strawberry.field
    async def get_product(self, info: Info, id: strawberry.ID) -> Optional[Product]:
        record = await _service(info).get_product(id)
        return Product.from_record(record) if record else None

    @strawberry.field
    async def get_order(self, info: Info, id: strawberry.ID) -> Optional[Order]:
        record = await _service(info).get_order(id)
        return Order.from_record(record) if record else None

    @strawberry.field
    async def get_all_customers(self, info: Info) -> List[Customer]:
        return [Customer.from_record(r) for r in await _service(info).list_customers()]

    @strawberry.field
    async def get_all_products(self, info: Info) -> List[Product]:
        return [Product.from_record(r) for r in await _service(info).list_products()]

    @strawberry.field
    async def get_all_orders(self, info: Info) -> List[Order]:
        return [Order.from_record(r) for r in await _service(info).list_orders()]


# =============================================================================
# SCHEMA & ROUTER
# =============================================================================

schema = strawberry.Schema(query=Query)


async def get_context(request: Request) -> dict:
    """Expose the façade built in the application lifespan to resolvers"""
    return {"service": request.app.state.analytics_service}


def create_graphql_router(graphiql: bool = True) -> GraphQLRouter:
    return GraphQLRouter(
        schema,
        path="",
        graphql_ide="graphiql" if graphiql else None,
        context_getter=get_context,
    )
