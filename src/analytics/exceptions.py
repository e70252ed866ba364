"""
Analytics Errors

Every error carries a ``message`` that is safe to return to callers.
Empty results are never errors: they come back as ``None``, an empty list
or zero totals.
"""


class AnalyticsError(Exception):
    """Base class for errors raised by the analytics layer."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class QueryValidationError(AnalyticsError):
    """Caller input is malformed or out of range. Raised before any store access."""

    def __init__(self, message: str, field: str = None):
        super().__init__(message)
        self.field = field


class MalformedLineItems(AnalyticsError):
    """An order's embedded line-item payload could not be decoded."""

    def __init__(self, order_id, reason: str):
        super().__init__(f"Failed to parse products for order {order_id}: {reason}")
        self.order_id = order_id
        self.reason = reason


class StoreFailure(AnalyticsError):
    """
    The store was unreachable or a query failed.

    The message is generic; the underlying cause is logged, chained on
    ``__cause__`` and never shown to the caller.
    """
