"""
Analytics Module
"""
from .engine import AnalyticsEngine
from .exceptions import AnalyticsError, MalformedLineItems, QueryValidationError, StoreFailure
from .line_items import decode_line_items, encode_line_items
from .service import AnalyticsService

__all__ = [
    "AnalyticsEngine",
    "AnalyticsService",
    "AnalyticsError",
    "MalformedLineItems",
    "QueryValidationError",
    "StoreFailure",
    "decode_line_items",
    "encode_line_items",
]
