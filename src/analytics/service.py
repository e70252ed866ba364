"""
Analytics Query Façade

Maps named analytic requests onto the engine. Responsibilities:

- validate parameters before any store access
- serve from and populate the result cache when one is configured
- let ``QueryValidationError`` and ``MalformedLineItems`` through unchanged
- log any other failure in full and replace it with an opaque ``StoreFailure``
"""

from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable, List, Optional

import structlog
from pydantic import TypeAdapter
from redis.exceptions import RedisError

from src.analytics.dates import parse_date_range
from src.analytics.engine import AnalyticsEngine
from src.analytics.exceptions import AnalyticsError, QueryValidationError, StoreFailure
from src.analytics.schemas import (
    CustomerOrdersResponse,
    CustomerRecord,
    CustomerSpending,
    OrderRecord,
    ProductRecord,
    SalesAnalytics,
    TopProduct,
)
from src.serving.cache import CacheManager

logger = structlog.get_logger(__name__)

_spending_adapter = TypeAdapter(CustomerSpending)
_top_products_adapter = TypeAdapter(List[TopProduct])
_sales_adapter = TypeAdapter(SalesAnalytics)
_orders_adapter = TypeAdapter(CustomerOrdersResponse)


def _require_identifier(value, field: str) -> str:
    if value is None or not str(value).strip():
        raise QueryValidationError(f"{field} is required", field=field)
    return str(value).strip()


def _require_positive(value, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise QueryValidationError(f"{field} must be an integer", field=field)
    if value < 1:
        raise QueryValidationError(f"{field} must be at least 1", field=field)
    return value


class AnalyticsService:
    """Entry point for analytic queries."""

    def __init__(self, engine: AnalyticsEngine, cache: Optional[CacheManager] = None):
        self.engine = engine
        self.cache = cache

    # -------------------------------------------------------------------------
    # Analytic queries
    # -------------------------------------------------------------------------

    async def get_customer_spending(self, customer_id) -> Optional[CustomerSpending]:
        customer_id = _require_identifier(customer_id, "customerId")
        async with self._boundary("get_customer_spending", "Failed to retrieve customer spending data"):
            return await self._cached(
                f"spending:{customer_id}",
                _spending_adapter,
                lambda: self.engine.customer_spending(customer_id),
            )

    async def get_top_selling_products(self, limit: int) -> List[TopProduct]:
        if isinstance(limit, bool) or not isinstance(limit, int):
            raise QueryValidationError("limit must be an integer", field="limit")
        limit = max(1, limit)
        async with self._boundary("get_top_selling_products", "Failed to retrieve top selling products"):
            return await self._cached(
                f"top-products:{limit}",
                _top_products_adapter,
                lambda: self.engine.top_selling_products(limit),
            )

    async def get_sales_analytics(self, start_date: str, end_date: str) -> SalesAnalytics:
        start_at, end_at = parse_date_range(start_date, end_date)
        async with self._boundary("get_sales_analytics", "Failed to retrieve sales analytics"):
            return await self._cached(
                f"sales:{start_at.isoformat()}:{end_at.isoformat()}",
                _sales_adapter,
                lambda: self.engine.sales_analytics(start_at, end_at),
            )

    async def get_customer_orders(self, customer_id, page: int, limit: int) -> CustomerOrdersResponse:
        customer_id = _require_identifier(customer_id, "customerId")
        page = _require_positive(page, "page")
        limit = _require_positive(limit, "limit")
        async with self._boundary("get_customer_orders", "Failed to fetch customer orders"):
            return await self._cached(
                f"orders:{customer_id}:{page}:{limit}",
                _orders_adapter,
                lambda: self.engine.customer_orders(customer_id, page, limit),
            )

    # -------------------------------------------------------------------------
    # Entity lookups
    # -------------------------------------------------------------------------

    async def get_customer(self, customer_id) -> Optional[CustomerRecord]:
        customer_id = _require_identifier(customer_id, "id")
        async with self._boundary("get_customer", "Failed to retrieve customer"):
            return await self.engine.get_customer(customer_id)

    async def get_product(self, product_id) -> Optional[ProductRecord]:
        product_id = _require_identifier(product_id, "id")
        async with self._boundary("get_product", "Failed to retrieve product"):
            return await self.engine.get_product(product_id)

    async def get_order(self, order_id) -> Optional[OrderRecord]:
        order_id = _require_identifier(order_id, "id")
        async with self._boundary("get_order", "Failed to retrieve order"):
            return await self.engine.get_order(order_id)

    async def list_customers(self) -> List[CustomerRecord]:
        async with self._boundary("list_customers", "Failed to retrieve customers"):
            return await self.engine.list_customers()

    async def list_products(self) -> List[ProductRecord]:
        async with self._boundary("list_products", "Failed to retrieve products"):
            return await self.engine.list_products()

    async def list_orders(self) -> List[OrderRecord]:
        async with self._boundary("list_orders", "Failed to retrieve orders"):
            return await self.engine.list_orders()

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @asynccontextmanager
    async def _boundary(self, operation: str, failure_message: str):
        try:
            yield
        except AnalyticsError as e:
            logger.warning("Analytics query rejected", operation=operation, error=e.message)
            raise
        except Exception as e:
            logger.error(
                "Analytics query failed",
                operation=operation,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            raise StoreFailure(failure_message) from e

    async def _cached(
        self,
        key: str,
        adapter: TypeAdapter,
        compute: Callable[[], Awaitable[Any]],
    ) -> Any:
        if self.cache is None:
            return await compute()

        try:
            hit = await self.cache.get(key)
        except RedisError as e:
            logger.warning("Cache read failed", key=key, error=str(e))
            hit = None

        if hit is not None:
            logger.debug("Cache hit", key=key)
            return adapter.validate_python(hit)

        value = await compute()
        if value is None:
            return value

        try:
            await self.cache.set(key, adapter.dump_python(value, mode="json"))
        except RedisError as e:
            logger.warning("Cache write failed", key=key, error=str(e))
        return value
