"""
Test Suite Configuration
"""
from datetime import datetime
from typing import AsyncGenerator

import httpx
import pytest

from src.analytics import AnalyticsEngine, AnalyticsService
from src.config import Settings
from src.config.settings import DatabaseSettings, MonitoringSettings
from src.database import Customer, Database, Order, OrderStatus, Product
from src.serving.api import create_api_app


CUSTOMERS = [
    {"customer_id": "C1", "name": "Ada Lovelace", "email": "ada@example.com", "age": 36, "location": "London", "gender": "female"},
    {"customer_id": "C2", "name": "Alan Turing", "email": "alan@example.com", "age": 41, "location": "Manchester", "gender": "male"},
    {"customer_id": "C3", "name": "Grace Hopper", "email": "grace@example.com", "age": 45, "location": "New York", "gender": "female"},
]

PRODUCTS = [
    {"product_id": "P1", "name": "Wireless Mouse", "category": "Electronics", "price": 60.0, "stock": 120},
    {"product_id": "P2", "name": "Paperback Novel", "category": "Books", "price": 12.5, "stock": 300},
    {"product_id": "P3", "name": "Desk Lamp", "category": "Home", "price": 40.0, "stock": 15},
]

# P1 sells 3 units and P2 sells 5 units across all orders.
# C1 has two completed orders worth 150.00 and 50.00; C2 has one pending order.
ORDERS = [
    {
        "order_id": "O1",
        "customer_id": "C1",
        "line_items": "[{'productId': 'P1', 'quantity': 2, 'priceAtPurchase': 60.0}, "
                      "{'productId': 'P2', 'quantity': 3, 'priceAtPurchase': 10.0}]",
        "total_amount": 150.0,
        "order_date": datetime(2024, 3, 10, 9, 30),
        "status": OrderStatus.COMPLETED,
    },
    {
        "order_id": "O2",
        "customer_id": "C1",
        "line_items": "[{'productId': 'P1', 'quantity': 1, 'priceAtPurchase': 50.0}]",
        "total_amount": 50.0,
        "order_date": datetime(2024, 3, 12, 18, 0),
        "status": OrderStatus.COMPLETED,
    },
    {
        "order_id": "O3",
        "customer_id": "C2",
        "line_items": "[{'productId': 'P2', 'quantity': 2, 'priceAtPurchase': 12.5}]",
        "total_amount": 25.0,
        "order_date": datetime(2024, 3, 10, 23, 59, 59),
        "status": OrderStatus.PENDING,
    },
]


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway SQLite file"""
    return Settings(
        app_env="testing",
        database=DatabaseSettings(url=f"sqlite+aiosqlite:///{tmp_path / 'analytics.db'}"),
        monitoring=MonitoringSettings(log_level="WARNING", log_format="text"),
    )


@pytest.fixture
async def database(test_settings) -> AsyncGenerator[Database, None]:
    """Connected database with an empty schema"""
    db = Database.from_settings(test_settings.database)
    await db.connect()
    await db.create_schema()
    yield db
    await db.close()


@pytest.fixture
def insert(database):
    """Insert ORM rows in one committed session"""
    async def _insert(*rows):
        async with database.session() as session:
            session.add_all(rows)
    return _insert


@pytest.fixture
async def seeded_database(database, insert) -> Database:
    """Database loaded with the sample customers, products and orders"""
    await insert(
        *[Customer(**c) for c in CUSTOMERS],
        *[Product(**p) for p in PRODUCTS],
        *[Order(**o) for o in ORDERS],
    )
    return database


@pytest.fixture
def engine(seeded_database) -> AnalyticsEngine:
    return AnalyticsEngine(seeded_database)


@pytest.fixture
def service(engine) -> AnalyticsService:
    return AnalyticsService(engine)


@pytest.fixture
async def api_client(test_settings, seeded_database) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client against a fully started application"""
    app = create_api_app(test_settings)
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
