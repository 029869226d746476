"""
Unit tests for the Catalog service HTTP API.
"""

import uuid
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from shared.test_helpers import test_data_factory, test_environment
from service_catalog.app.main import CatalogService, create_app
from service_catalog.app.cache.memory_cache import InMemoryProductCache
from service_catalog.app.cache.redis_cache import RedisProductCache
from service_catalog.app.persistence.memory import InMemoryProductRepository
from service_catalog.app.persistence.postgres import PostgreSQLProductRepository


class TestCatalogService:
    """Test cases for CatalogService."""

    @pytest.fixture
    def catalog_service(self, test_config):
        """Create CatalogService instance backed by memory."""
        return CatalogService(test_config)

    @pytest.fixture
    def client(self, catalog_service):
        """Create test client with lifespan events."""
        with TestClient(catalog_service.app) as client:
            yield client

    @pytest.fixture
    def laptop(self):
        return test_data_factory.create_test_products()[0]

    def create(self, client, payload, prefix="/api/v1/products"):
        response = client.post(prefix, json=payload)
        assert response.status_code == 201
        return response.json()

    def test_root_endpoint(self, client):
        """Test root endpoint."""
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "catalog"
        assert data["api_versions"] == ["v1", "v2"]
        assert data["cache_backend"] == "memory"

    def test_health_endpoint(self, client):
        """Test health endpoint."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "catalog"
        assert data["status"] == "ok"
        assert data["dependencies"] == {"cache": "ok", "store": "ok"}

    def test_health_reports_degraded_cache(self, catalog_service, client):
        with patch.object(catalog_service.cache, "health_check", new_callable=AsyncMock) as mock_health:
            mock_health.return_value = False
            data = client.get("/health").json()

        assert data["status"] == "degraded"
        assert data["dependencies"]["cache"] == "error"

    def test_metrics_endpoint(self, client, laptop):
        self.create(client, laptop)
        client.get("/api/v1/products")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "cache_misses_total" in response.text
        assert "http_requests_total" in response.text

    def test_request_id_is_echoed(self, client):
        response = client.get("/", headers={"X-Request-ID": "req-42"})
        assert response.headers["X-Request-ID"] == "req-42"

    def test_request_id_is_generated(self, client):
        response = client.get("/")
        assert uuid.UUID(response.headers["X-Request-ID"])

    def test_service_initialization(self, catalog_service):
        """Test service initialization."""
        assert catalog_service.service_name == "catalog"
        assert catalog_service.port == 8020
        assert isinstance(catalog_service.repository, InMemoryProductRepository)
        assert isinstance(catalog_service.cache, InMemoryProductCache)
        assert catalog_service.products.cache is catalog_service.cache

    def test_backends_follow_configuration(self):
        config = test_environment.get_test_config(cache_backend="redis", store_backend="postgres")

        service = CatalogService(config)

        assert isinstance(service.cache, RedisProductCache)
        assert isinstance(service.repository, PostgreSQLProductRepository)

    def test_create_and_get(self, client, laptop):
        response = client.post("/api/v1/products", json=laptop)

        assert response.status_code == 201
        created = response.json()
        assert created["name"] == "Laptop"
        assert created["price"] == 1299.99
        assert created["updated_at"] is None
        assert response.headers["Location"] == f"/api/v1/products/{created['id']}"

        fetched = client.get(f"/api/v1/products/{created['id']}")
        assert fetched.status_code == 200
        assert fetched.json() == created

    def test_list_includes_created(self, client, laptop):
        created = self.create(client, laptop)

        response = client.get("/api/v1/products")

        assert response.status_code == 200
        assert [product["id"] for product in response.json()] == [created["id"]]

    def test_create_invalid_price_is_bad_request(self, client):
        response = client.post("/api/v1/products", json={"name": "Laptop", "price": 0, "stock": 1})

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "VALIDATION_ERROR"
        assert data["details"]["field"] == "price"

    @pytest.mark.parametrize("literal", ["NaN", "Infinity"])
    def test_create_non_finite_price_is_bad_request(self, client, literal):
        response = client.post(
            "/api/v1/products",
            content=f'{{"name": "Laptop", "price": {literal}, "stock": 1}}',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["details"]["field"] == "price"
        assert client.get("/api/v1/products").json() == []

    def test_update_non_finite_price_is_bad_request(self, client, laptop):
        created = self.create(client, laptop)

        response = client.put(
            f"/api/v1/products/{created['id']}",
            content='{"price": NaN}',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert client.get(f"/api/v1/products/{created['id']}").json()["price"] == 1299.99

    def test_create_blank_name_is_bad_request(self, client):
        response = client.post("/api/v1/products", json={"name": " ", "price": 10, "stock": 1})
        assert response.status_code == 400

    def test_get_unknown_is_not_found(self, client):
        response = client.get(f"/api/v1/products/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    def test_update(self, client, laptop):
        created = self.create(client, laptop)

        response = client.put(f"/api/v1/products/{created['id']}", json={"stock": 4})

        assert response.status_code == 204
        updated = client.get(f"/api/v1/products/{created['id']}").json()
        assert updated["stock"] == 4
        assert updated["name"] == "Laptop"
        assert updated["updated_at"] is not None

    def test_update_invalid_is_bad_request(self, client, laptop):
        created = self.create(client, laptop)

        response = client.put(f"/api/v1/products/{created['id']}", json={"stock": -1})

        assert response.status_code == 400
        assert client.get(f"/api/v1/products/{created['id']}").json()["stock"] == 10

    def test_update_unknown_is_not_found(self, client):
        response = client.put(f"/api/v1/products/{uuid.uuid4()}", json={"stock": 1})
        assert response.status_code == 404

    def test_delete(self, client, laptop):
        created = self.create(client, laptop)

        response = client.delete(f"/api/v1/products/{created['id']}")

        assert response.status_code == 204
        assert client.get(f"/api/v1/products/{created['id']}").status_code == 404
        assert client.delete(f"/api/v1/products/{created['id']}").status_code == 404

    def test_unversioned_routes_behave_as_v1(self, client, laptop):
        created = self.create(client, laptop, prefix="/api/products")

        assert client.get(f"/api/v1/products/{created['id']}").status_code == 200
        assert client.get("/api/products").json()[0]["id"] == created["id"]

    def test_v2_pagination(self, client):
        for index in range(12):
            self.create(client, {"name": f"Item {index}", "price": 1.5, "stock": index})

        response = client.get("/api/v2/products", params={"page": 2, "page_size": 5})

        assert response.status_code == 200
        data = response.json()
        assert data["page"] == 2
        assert data["page_size"] == 5
        assert data["total_count"] == 12
        assert data["total_pages"] == 3
        assert [item["name"] for item in data["items"]] == [f"Item {i}" for i in range(5, 10)]

    def test_v2_defaults_and_bounds(self, client):
        data = client.get("/api/v2/products").json()
        assert data["page"] == 1
        assert data["page_size"] == 10

        assert client.get("/api/v2/products", params={"page": 0}).status_code == 422
        assert client.get("/api/v2/products", params={"page_size": 101}).status_code == 422

    def test_v2_get_by_id(self, client, laptop):
        created = self.create(client, laptop)

        assert client.get(f"/api/v2/products/{created['id']}").json() == created
        assert client.get(f"/api/v2/products/{uuid.uuid4()}").status_code == 404

    def test_v2_has_no_write_routes(self, client, laptop):
        assert client.post("/api/v2/products", json=laptop).status_code == 405

    def test_store_failure_is_internal_error(self, catalog_service, laptop):
        with TestClient(catalog_service.app, raise_server_exceptions=False) as client:
            with patch.object(catalog_service.repository, "get_all", new_callable=AsyncMock) as mock_get_all:
                mock_get_all.side_effect = RuntimeError("database unavailable")
                response = client.get("/api/v1/products")

        assert response.status_code == 500
        assert response.json()["code"] == "INTERNAL_ERROR"


class TestSeeding:
    """Startup seeding of demo products."""

    def test_seeds_empty_store(self):
        service = CatalogService(test_environment.get_test_config(seed_data=True))

        with TestClient(service.app) as client:
            names = [product["name"] for product in client.get("/api/v1/products").json()]

        assert names == ["Laptop", "Mouse", "Keyboard"]

    def test_does_not_seed_populated_store(self):
        repository = InMemoryProductRepository()
        service = CatalogService(test_environment.get_test_config(seed_data=True), repository=repository)

        with TestClient(service.app) as client:
            client.post("/api/v1/products", json={"name": "Existing", "price": 5, "stock": 1})

        with TestClient(service.app) as client:
            names = [product["name"] for product in client.get("/api/v1/products").json()]

        assert names == ["Laptop", "Mouse", "Keyboard", "Existing"]

    def test_create_app(self):
        app = create_app(test_environment.get_test_config())
        with TestClient(app) as client:
            assert client.get("/api/v1/products").json() == []
