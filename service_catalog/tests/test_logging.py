"""
Unit tests for log correlation context.
"""

import uuid

import pytest

from shared.logging import (
    add_correlation_context,
    clear_context,
    product_id_var,
    set_product_id,
    set_request_id,
)
from shared.test_helpers import test_data_factory
from service_catalog.app.products.models import ProductCreateRequest, ProductUpdateRequest


@pytest.fixture(autouse=True)
def reset_context():
    clear_context()
    yield
    clear_context()


class TestCorrelationContext:
    """Test cases for request and product correlation."""

    def test_binds_request_and_product(self):
        set_request_id("req-1")
        set_product_id("abc")

        event = add_correlation_context(None, "info", {"event": "Getting product"})

        assert event["request_id"] == "req-1"
        assert event["product_id"] == "abc"

    def test_explicit_product_id_wins(self):
        set_product_id("abc")

        event = add_correlation_context(None, "info", {"product_id": "xyz"})

        assert event["product_id"] == "xyz"

    def test_clear_context(self):
        set_request_id("req-1")
        set_product_id("abc")

        clear_context()

        assert add_correlation_context(None, "info", {}) == {}

    @pytest.mark.asyncio
    async def test_service_binds_product_being_handled(self, product_service):
        created = await product_service.create(ProductCreateRequest(**test_data_factory.create_test_products()[0]))
        assert product_id_var.get() == str(created.id)

        await product_service.get_all()
        assert product_id_var.get() is None

        other = uuid.uuid4()
        await product_service.update(other, ProductUpdateRequest(stock=1))
        assert product_id_var.get() == str(other)
