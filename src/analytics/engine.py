"""
Analytics Query Engine

Answers the four analytic questions over orders and products:

- customer spending: a single grouped SQL aggregate
- top selling products: decode line items, group by product in polars,
  then join the product catalog
- sales analytics: completed-order totals in SQL and the category
  breakdown in polars, issued concurrently
- customer orders: count and page fetched concurrently

Line items live inside each order as a text payload, so any question about
products or categories decodes them through ``src.analytics.line_items``
and finishes the pipeline in polars. Questions about order headers stay in
SQL.
"""

import asyncio
import math
from datetime import datetime
from typing import Awaitable, Iterable, List, Optional, Tuple

import polars as pl
import structlog
from sqlalchemy import and_, func, select
from sqlalchemy.sql.elements import ColumnElement

from src.analytics.line_items import decode_line_items
from src.analytics.schemas import (
    CategoryBreakdown,
    CustomerOrdersResponse,
    CustomerRecord,
    CustomerSpending,
    OrderRecord,
    ProductRecord,
    SalesAnalytics,
    TopProduct,
)
from src.database.connection import Database
from src.database.models import Order, OrderStatus
from src.database.repositories import (
    CustomerRepository,
    OrderRepository,
    ProductRepository,
    key_equals,
)

logger = structlog.get_logger(__name__)

LINE_ITEM_SCHEMA = {
    "order_id": pl.Utf8,
    "product_id": pl.Utf8,
    "quantity": pl.Int64,
    "price_at_purchase": pl.Float64,
}

CATALOG_SCHEMA = {
    "product_id": pl.Utf8,
    "name": pl.Utf8,
    "category": pl.Utf8,
}


def unwind_line_items(payloads: Iterable[Tuple[str, str]]) -> pl.DataFrame:
    """Decode each order's payload and flatten to one row per line item."""
    columns = {name: [] for name in LINE_ITEM_SCHEMA}
    for order_id, raw in payloads:
        for item in decode_line_items(raw, order_id):
            columns["order_id"].append(str(order_id))
            columns["product_id"].append(item.product_id)
            columns["quantity"].append(item.quantity)
            columns["price_at_purchase"].append(item.price_at_purchase)
    return pl.DataFrame(columns, schema=LINE_ITEM_SCHEMA)


def catalog_frame(rows: List[dict]) -> pl.DataFrame:
    return pl.DataFrame(
        {name: [row[name] for row in rows] for name in CATALOG_SCHEMA},
        schema=CATALOG_SCHEMA,
    )


async def run_concurrently(*aws: Awaitable) -> list:
    """
    Await ``aws`` concurrently and return their results in order.

    The first failure cancels the remaining tasks and is re-raised unchanged.
    Further failures from the same run are logged.
    """
    try:
        async with asyncio.TaskGroup() as group:
            tasks = [group.create_task(aw) for aw in aws]
    except ExceptionGroup as eg:
        first, *rest = eg.exceptions
        for extra in rest:
            logger.warning(
                "Concurrent sub-query also failed",
                error=str(extra),
                error_type=type(extra).__name__,
            )
        raise first
    return [task.result() for task in tasks]


def _status_value(status) -> str:
    return status.value if isinstance(status, OrderStatus) else str(status)


def order_record(order: Order) -> OrderRecord:
    return OrderRecord(
        order_id=order.order_id,
        customer_id=order.customer_id,
        products=decode_line_items(order.line_items, order.order_id),
        total_amount=order.total_amount,
        order_date=order.order_date,
        status=_status_value(order.status),
    )


class AnalyticsEngine:
    """
    Read-only analytic queries against one ``Database``.

    Each operation opens its own sessions; sub-queries that do not depend
    on each other run concurrently on separate sessions.
    """

    def __init__(self, database: Database):
        self.database = database

    # -------------------------------------------------------------------------
    # Customer spending
    # -------------------------------------------------------------------------

    async def customer_spending(self, customer_id: str) -> Optional[CustomerSpending]:
        """
        Spend summary over every order of ``customer_id``, any status.

        Returns None when the customer has no orders.
        """
        stmt = select(
            func.sum(Order.total_amount).label("total_spent"),
            func.count(Order.order_id).label("order_count"),
            func.max(Order.order_date).label("last_order_date"),
        ).where(key_equals(Order.customer_id, customer_id))

        async with self.database.session() as session:
            row = (await session.execute(stmt)).one()

        if not row.order_count:
            return None

        total_spent = float(row.total_spent or 0)
        return CustomerSpending(
            customer_id=str(customer_id),
            total_spent=round(total_spent, 2),
            order_count=row.order_count,
            average_order_value=round(total_spent / row.order_count, 2),
            last_order_date=row.last_order_date,
        )

    # -------------------------------------------------------------------------
    # Top selling products
    # -------------------------------------------------------------------------

    async def top_selling_products(self, limit: int) -> List[TopProduct]:
        """
        Products ranked by units sold across all orders and statuses.

        Ranking and truncation happen before the catalog join, so a product
        id with no catalog entry is dropped from the result rather than
        replaced by the next best seller.
        """
        limit = max(1, limit)

        async with self.database.session() as session:
            payloads = await OrderRepository(session).line_item_payloads()

        ranked = (
            unwind_line_items(payloads)
            .lazy()
            .group_by("product_id")
            .agg(pl.col("quantity").sum().alias("total_sold"))
            .sort(["total_sold", "product_id"], descending=[True, False])
            .head(limit)
            .collect()
        )

        catalog = await self._catalog(ranked["product_id"].to_list())
        joined = (
            ranked.join(catalog.select(["product_id", "name"]), on="product_id", how="inner")
            .sort(["total_sold", "product_id"], descending=[True, False])
        )
        self._report_orphans("top_selling_products", ranked, joined)

        logger.debug("Top selling products computed", limit=limit, returned=joined.height)
        return [
            TopProduct(product_id=row["product_id"], name=row["name"], total_sold=row["total_sold"])
            for row in joined.iter_rows(named=True)
        ]

    # -------------------------------------------------------------------------
    # Sales analytics
    # -------------------------------------------------------------------------

    async def sales_analytics(self, start_at: datetime, end_at: datetime) -> SalesAnalytics:
        """Completed-order revenue and category breakdown for [start_at, end_at]."""
        criteria = (
            Order.order_date >= start_at,
            Order.order_date <= end_at,
            Order.status == OrderStatus.COMPLETED,
        )

        (total_revenue, completed_orders), breakdown = await run_concurrently(
            self._revenue_totals(criteria),
            self._category_breakdown(criteria),
        )

        logger.debug(
            "Sales analytics computed",
            start_at=start_at.isoformat(),
            end_at=end_at.isoformat(),
            completed_orders=completed_orders,
            categories=len(breakdown),
        )
        return SalesAnalytics(
            total_revenue=total_revenue,
            completed_orders=completed_orders,
            category_breakdown=breakdown,
        )

    async def _revenue_totals(self, criteria: Tuple[ColumnElement[bool], ...]) -> Tuple[float, int]:
        stmt = select(
            func.sum(Order.total_amount).label("total_revenue"),
            func.count(Order.order_id).label("completed_orders"),
        ).where(and_(*criteria))

        async with self.database.session() as session:
            row = (await session.execute(stmt)).one()

        return round(float(row.total_revenue or 0), 2), row.completed_orders or 0

    async def _category_breakdown(self, criteria: Tuple[ColumnElement[bool], ...]) -> List[CategoryBreakdown]:
        async with self.database.session() as session:
            payloads = await OrderRepository(session).line_item_payloads(*criteria)

        items = unwind_line_items(payloads)
        catalog = await self._catalog(items["product_id"].unique().to_list())

        joined = items.join(catalog.select(["product_id", "category"]), on="product_id", how="inner")
        self._report_orphans("category_breakdown", items, joined)

        breakdown = (
            joined.lazy()
            .with_columns((pl.col("quantity") * pl.col("price_at_purchase")).alias("revenue"))
            .group_by("category")
            .agg(pl.col("revenue").sum())
            .with_columns(pl.col("revenue").round(2))
            .sort(["revenue", "category"], descending=[True, False])
            .collect()
        )
        return [
            CategoryBreakdown(category=row["category"], revenue=row["revenue"])
            for row in breakdown.iter_rows(named=True)
        ]

    # -------------------------------------------------------------------------
    # Customer orders
    # -------------------------------------------------------------------------

    async def customer_orders(self, customer_id: str, page: int, limit: int) -> CustomerOrdersResponse:
        """One page of ``customer_id``'s orders, most recent first."""
        offset = (page - 1) * limit

        async def count() -> int:
            async with self.database.session() as session:
                return await OrderRepository(session).count_for_customer(customer_id)

        async def fetch_page() -> List[Order]:
            async with self.database.session() as session:
                return list(await OrderRepository(session).page_for_customer(customer_id, offset, limit))

        total_orders, orders = await run_concurrently(count(), fetch_page())

        return CustomerOrdersResponse(
            orders=[order_record(order) for order in orders],
            total_pages=math.ceil(total_orders / limit),
            current_page=page,
        )

    # -------------------------------------------------------------------------
    # Entity lookups
    # -------------------------------------------------------------------------

    async def get_customer(self, customer_id: str) -> Optional[CustomerRecord]:
        async with self.database.session() as session:
            customer = await CustomerRepository(session).get(customer_id)
        return CustomerRecord.model_validate(customer) if customer else None

    async def get_product(self, product_id: str) -> Optional[ProductRecord]:
        async with self.database.session() as session:
            product = await ProductRepository(session).get(product_id)
        return ProductRecord.model_validate(product) if product else None

    async def get_order(self, order_id: str) -> Optional[OrderRecord]:
        async with self.database.session() as session:
            order = await OrderRepository(session).get(order_id)
        return order_record(order) if order else None

    async def list_customers(self) -> List[CustomerRecord]:
        async with self.database.session() as session:
            customers = await CustomerRepository(session).list_all()
        return [CustomerRecord.model_validate(c) for c in customers]

    async def list_products(self) -> List[ProductRecord]:
        async with self.database.session() as session:
            products = await ProductRepository(session).list_all()
        return [ProductRecord.model_validate(p) for p in products]

    async def list_orders(self) -> List[OrderRecord]:
        async with self.database.session() as session:
            orders = await OrderRepository(session).list_all()
        return [order_record(o) for o in orders]

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _catalog(self, product_ids: List[str]) -> pl.DataFrame:
        if not product_ids:
            return catalog_frame([])
        async with self.database.session() as session:
            rows = await ProductRepository(session).catalog(product_ids)
        return catalog_frame(rows)

    @staticmethod
    def _report_orphans(stage: str, before: pl.DataFrame, after: pl.DataFrame) -> None:
        """Warn about product ids that vanished in an inner join with the catalog."""
        orphans = sorted(set(before["product_id"].to_list()) - set(after["product_id"].to_list()))
        if orphans:
            logger.warning(
                "Line items reference unknown products",
                stage=stage,
                product_ids=orphans,
            )
