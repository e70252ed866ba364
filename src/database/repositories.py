"""
Entity Store Access

Thin typed accessors over the three tables. Every identifier comparison
goes through ``key_equals``/``key_in``, which cast the stored column to its
string form before comparing. Identifiers may have been written with a
different native type than the one used to look them up (numeric ids from
an import, string ids from the API), and only their string forms are
guaranteed to agree.
"""

from typing import Generic, Iterable, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import String, and_, cast, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute
from sqlalchemy.sql.elements import ColumnElement

from src.database.models import Base, Customer, Order, Product

ModelT = TypeVar("ModelT", bound=Base)


def normalize_key(column: InstrumentedAttribute) -> ColumnElement:
    """Canonical string form of an identifier column."""
    return cast(column, String)


def key_equals(column: InstrumentedAttribute, identifier) -> ColumnElement[bool]:
    """Predicate matching ``column`` against ``identifier`` by string value."""
    return normalize_key(column) == str(identifier)


def key_in(column: InstrumentedAttribute, identifiers: Iterable) -> ColumnElement[bool]:
    """Predicate matching ``column`` against any of ``identifiers`` by string value."""
    return normalize_key(column).in_([str(i) for i in identifiers])


class Repository(Generic[ModelT]):
    """Read accessor for one table keyed by a string identifier."""

    model: Type[ModelT]
    key_name: str

    def __init__(self, session: AsyncSession):
        self.session = session

    @property
    def key(self) -> InstrumentedAttribute:
        """Identifier column of ``model``."""
        return getattr(self.model, self.key_name)

    async def get(self, identifier) -> Optional[ModelT]:
        result = await self.session.execute(
            select(self.model).where(key_equals(self.key, identifier))
        )
        return result.scalar_one_or_none()

    async def list_all(self) -> Sequence[ModelT]:
        result = await self.session.execute(select(self.model).order_by(self.key))
        return result.scalars().all()


class CustomerRepository(Repository[Customer]):
    model = Customer
    key_name = "customer_id"


class ProductRepository(Repository[Product]):
    model = Product
    key_name = "product_id"

    async def catalog(self, product_ids: Iterable) -> List[dict]:
        """
        Name and category for the given product ids.

        Rows carry the normalised string id so they can be joined against
        decoded line items, whose productId is always a string.
        """
        ids = list(dict.fromkeys(str(i) for i in product_ids))
        if not ids:
            return []

        result = await self.session.execute(
            select(
                normalize_key(Product.product_id).label("product_id"),
                Product.name,
                Product.category,
            ).where(key_in(Product.product_id, ids))
        )
        return [dict(row._mapping) for row in result.all()]


class OrderRepository(Repository[Order]):
    model = Order
    key_name = "order_id"

    async def count_for_customer(self, customer_id) -> int:
        result = await self.session.execute(
            select(func.count(Order.order_id)).where(key_equals(Order.customer_id, customer_id))
        )
        return result.scalar() or 0

    async def page_for_customer(self, customer_id, offset: int, limit: int) -> Sequence[Order]:
        """Most recent orders first; order id breaks ties on equal timestamps."""
        result = await self.session.execute(
            select(Order)
            .where(key_equals(Order.customer_id, customer_id))
            .order_by(Order.order_date.desc(), Order.order_id)
            .offset(offset)
            .limit(limit)
        )
        return result.scalars().all()

    async def line_item_payloads(self, *criteria: ColumnElement[bool]) -> List[tuple]:
        """(order_id, raw line-item payload) for every order matching ``criteria``."""
        stmt = select(Order.order_id, Order.line_items)
        if criteria:
            stmt = stmt.where(and_(*criteria))
        result = await self.session.execute(stmt.order_by(Order.order_id))
        return [(row.order_id, row.line_items) for row in result.all()]
