"""
Analytics API Endpoints

REST mirror of the analytic GraphQL queries.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
import structlog

from src.analytics.schemas import (
    CustomerOrdersResponse,
    CustomerSpending,
    SalesAnalytics,
    TopProduct,
)
from src.analytics.service import AnalyticsService

router = APIRouter()
logger = structlog.get_logger(__name__)


def get_service(request: Request) -> AnalyticsService:
    return request.app.state.analytics_service


@router.get("/customers/{customer_id}/spending", response_model=Optional[CustomerSpending])
async def get_customer_spending(
    customer_id: str,
    service: AnalyticsService = Depends(get_service),
) -> Optional[CustomerSpending]:
    """Total and average spend of one customer. Null when the customer has no orders."""
    logger.info("get_customer_spending called", customer_id=customer_id)
    return await service.get_customer_spending(customer_id)


@router.get("/products/top-selling", response_model=List[TopProduct])
async def get_top_selling_products(
    request: Request,
    limit: Optional[int] = Query(None),
    service: AnalyticsService = Depends(get_service),
) -> List[TopProduct]:
    """Products ranked by units sold. Limits below 1 are treated as 1."""
    if limit is None:
        limit = request.app.state.settings.analytics.default_top_products
    logger.info("get_top_selling_products called", limit=limit)
    return await service.get_top_selling_products(limit)


@router.get("/sales", response_model=SalesAnalytics)
async def get_sales_analytics(
    start_date: str = Query(..., description="YYYY-MM-DD or ISO-8601 date-time"),
    end_date: str = Query(..., description="YYYY-MM-DD or ISO-8601 date-time, date-only means end of day"),
    service: AnalyticsService = Depends(get_service),
) -> SalesAnalytics:
    """Completed-order revenue and category breakdown for a date range."""
    logger.info("get_sales_analytics called", start_date=start_date, end_date=end_date)
    return await service.get_sales_analytics(start_date, end_date)


@router.get("/customers/{customer_id}/orders", response_model=CustomerOrdersResponse)
async def get_customer_orders(
    request: Request,
    customer_id: str,
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    service: AnalyticsService = Depends(get_service),
) -> CustomerOrdersResponse:
    """Paginated order history, most recent first."""
    if limit is None:
        limit = request.app.state.settings.analytics.default_page_size
    logger.info("get_customer_orders called", customer_id=customer_id, page=page, limit=limit)
    return await service.get_customer_orders(customer_id, page, limit)
