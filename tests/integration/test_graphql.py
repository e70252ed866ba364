"""
Integration Tests - GraphQL Schema
"""
from src.analytics import AnalyticsEngine, AnalyticsService
from src.database import Database
from src.serving.api.graphql import schema


async def run(query: str, service: AnalyticsService, **variables):
    return await schema.execute(query, variable_values=variables, context_value={"service": service})


class TestAnalyticQueries:

    async def test_customer_spending(self, service):
        result = await run(
            """
            query ($id: ID!) {
              getCustomerSpending(customerId: $id) {
                customerId totalSpent orderCount averageOrderValue lastOrderDate
              }
            }
            """,
            service,
            id="C1",
        )

        assert result.errors is None
        assert result.data["getCustomerSpending"] == {
            "customerId": "C1",
            "totalSpent": 200.0,
            "orderCount": 2,
            "averageOrderValue": 100.0,
            "lastOrderDate": "2024-03-12T18:00:00",
        }

    async def test_customer_spending_absent(self, service):
        result = await run('{ getCustomerSpending(customerId: "C3") { totalSpent } }', service)

        assert result.errors is None
        assert result.data["getCustomerSpending"] is None

    async def test_top_selling_products(self, service):
        result = await run("{ getTopSellingProducts(limit: 1) { productId name totalSold } }", service)

        assert result.data["getTopSellingProducts"] == [
            {"productId": "P2", "name": "Paperback Novel", "totalSold": 5}
        ]

    async def test_sales_analytics(self, service):
        result = await run(
            """
            {
              getSalesAnalytics(startDate: "2024-03-01", endDate: "2024-03-31") {
                totalRevenue completedOrders categoryBreakdown { category revenue }
              }
            }
            """,
            service,
        )

        assert result.data["getSalesAnalytics"] == {
            "totalRevenue": 200.0,
            "completedOrders": 2,
            "categoryBreakdown": [
                {"category": "Electronics", "revenue": 170.0},
                {"category": "Books", "revenue": 30.0},
            ],
        }

    async def test_customer_orders(self, service):
        result = await run(
            """
            {
              getCustomerOrders(customerId: "C1", page: 1, limit: 5) {
                totalPages currentPage
                orders { id status products { productId quantity priceAtPurchase } }
              }
            }
            """,
            service,
        )

        page = result.data["getCustomerOrders"]
        assert page["totalPages"] == 1
        assert [o["id"] for o in page["orders"]] == ["O2", "O1"]
        assert page["orders"][1]["products"][1] == {"productId": "P2", "quantity": 3, "priceAtPurchase": 10.0}


class TestErrors:

    async def test_validation_message_is_returned(self, service):
        result = await run('{ getCustomerOrders(customerId: "C1", page: 0, limit: 5) { totalPages } }', service)

        assert result.errors[0].message == "page must be at least 1"

    async def test_invalid_date_is_returned(self, service):
        result = await run(
            '{ getSalesAnalytics(startDate: "soon", endDate: "2024-03-31") { totalRevenue } }',
            service,
        )

        assert "Invalid startDate" in result.errors[0].message

    async def test_store_failure_is_opaque(self):
        service = AnalyticsService(AnalyticsEngine(Database("sqlite+aiosqlite:///unused.db")))

        result = await run("{ getTopSellingProducts(limit: 3) { productId } }", service)

        assert result.errors[0].message == "Failed to retrieve top selling products"


class TestHelperQueries:

    async def test_lookups(self, service):
        result = await run(
            """
            {
              getCustomer(id: "C2") { name location }
              getProduct(id: "P3") { name category stock }
              getOrder(id: "O3") { customerId status totalAmount }
              getAllProducts { id }
            }
            """,
            service,
        )

        assert result.errors is None
        assert result.data["getCustomer"] == {"name": "Alan Turing", "location": "Manchester"}
        assert result.data["getProduct"] == {"name": "Desk Lamp", "category": "Home", "stock": 15}
        assert result.data["getOrder"] == {"customerId": "C2", "status": "pending", "totalAmount": 25.0}
        assert [p["id"] for p in result.data["getAllProducts"]] == ["P1", "P2", "P3"]
