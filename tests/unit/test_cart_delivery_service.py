"""
Unit tests for the cart service and per-customer delivery info.
"""

import logging

import pytest
from sqlalchemy.exc import OperationalError

from common.exceptions import NotFoundError, ValidationError
from modules.admin.service import set_setting, delivery_settings_service
from modules.cart.models import CartItem
from modules.cart.service import cart_service
from modules.order.delivery_service import delivery_service


@pytest.fixture
def shelf(make_category, make_product):
    """A category with deliverable, pickup-only and rental products."""
    cat = make_category("Qurilish")
    return {
        "cement": make_product(cat, "Sement M400", price=60000, has_delivery=True, delivery_price=30000),
        "brick": make_product(cat, "G'isht", price=1500, has_delivery=True, delivery_price=50000),
        "glass": make_product(cat, "Oyna", price=200000, has_delivery=False),
        "mixer": make_product(cat, "Betonqorgich", price=100000, product_type="rental", has_delivery=False),
        "hidden": make_product(cat, "Eski", price=1000, is_available=False),
    }


class TestCartService:
    """Tests for cart item management."""

    def test_add_same_product_twice_increases_quantity(self, session, customer, shelf):
        """Test that one row is kept per product."""
        cart_service.add_item(session, customer.id, shelf["cement"].id, 2)
        cart_service.add_item(session, customer.id, shelf["cement"].id, 3)
        session.commit()

        items = cart_service.list_items(session, customer.id)
        assert len(items) == 1
        assert items[0].quantity == 5

    def test_add_invalid_quantity(self, session, customer, shelf):
        """Test that quantity must be at least 1."""
        with pytest.raises(ValidationError):
            cart_service.add_item(session, customer.id, shelf["cement"].id, 0)

    def test_add_unavailable_product(self, session, customer, shelf):
        """Test that unavailable products cannot be added."""
        with pytest.raises(NotFoundError):
            cart_service.add_item(session, customer.id, shelf["hidden"].id)

    def test_rental_fields_only_for_rentals(self, session, customer, shelf):
        """Test that rental duration is ignored for sale products."""
        sale = cart_service.add_item(session, customer.id, shelf["cement"].id, 1, rental_duration=3)
        rent = cart_service.add_item(session, customer.id, shelf["mixer"].id, 1, rental_duration=3,
                                     rental_time_unit="day")
        session.commit()

        assert sale.rental_duration is None
        assert rent.rental_duration == 3
        assert rent.line_total == 300000

    def test_update_to_zero_removes(self, session, customer, shelf):
        """Test that quantity <= 0 deletes the row."""
        item = cart_service.add_item(session, customer.id, shelf["cement"].id, 2)
        session.commit()

        assert cart_service.update_quantity(session, customer.id, item.id, 0) is None
        session.commit()
        assert session.query(CartItem).count() == 0

    def test_other_customers_item_not_found(self, session, customer, admin, shelf):
        """Test that items are scoped to their owner."""
        item = cart_service.add_item(session, customer.id, shelf["cement"].id)
        session.commit()
        with pytest.raises(NotFoundError):
            cart_service.remove_item(session, admin.id, item.id)

    def test_summarize(self, session, customer, shelf):
        """Test totals with the delivery fee added."""
        cart_service.add_item(session, customer.id, shelf["cement"].id, 2)
        cart_service.add_item(session, customer.id, shelf["brick"].id, 10)
        session.commit()

        summary = cart_service.summarize(session, customer.id)
        assert summary["total_price"] == 135000
        assert summary["total_items"] == 12
        assert summary["unique_items_count"] == 2
        assert summary["delivery_info"]["original_delivery_fee"] == 50000
        assert summary["grand_total"] == 185000

    def test_summarize_empty(self, session, customer):
        """Test that an empty cart has no delivery info."""
        summary = cart_service.summarize(session, customer.id)
        assert summary["delivery_info"] is None
        assert summary["grand_total"] == 0

    def test_clear_cart(self, session, customer, shelf):
        """Test removing every item."""
        cart_service.add_item(session, customer.id, shelf["cement"].id)
        cart_service.add_item(session, customer.id, shelf["glass"].id)
        cart_service.clear_cart(session, customer.id)
        session.commit()
        assert cart_service.list_items(session, customer.id) == []


class TestDeliveryService:
    """Tests for delivery info read from the customer's cart."""

    def test_empty_cart(self, session, customer):
        """Test that an empty cart is not computed."""
        assert delivery_service.calculate_for_customer(session, customer.id) is None

    def test_threshold_from_settings(self, session, customer, shelf):
        """Test that stored settings override the defaults."""
        cart_service.add_item(session, customer.id, shelf["cement"].id, 2)
        session.commit()

        info = delivery_service.calculate_for_customer(session, customer.id)
        assert info.final_delivery_fee == 30000
        assert info.free_delivery_threshold == 500000

        delivery_settings_service.update(session, 100000, 50)
        session.commit()

        info = delivery_service.calculate_for_customer(session, customer.id)
        assert info.free_delivery_threshold == 100000
        assert info.delivery_discount == 15000
        assert info.final_delivery_fee == 15000

    def test_database_error_gives_none(self, session, customer, monkeypatch, caplog):
        """Test that a failure is logged and reported as unavailable."""
        def broken(db, customer_id):
            raise OperationalError("SELECT", {}, Exception("connection lost"))

        monkeypatch.setattr(delivery_service, "_cart_items", broken)

        with caplog.at_level(logging.ERROR, logger="stroymarket.delivery"):
            assert delivery_service.calculate_for_customer(session, customer.id) is None
        assert "Delivery info unavailable" in caplog.text

    def test_invalid_setting_gives_none(self, session, customer, shelf):
        """Test that a corrupt threshold is not read as zero."""
        cart_service.add_item(session, customer.id, shelf["cement"].id)
        set_setting(session, "free_delivery_threshold", "abc")
        session.commit()

        assert delivery_service.calculate_for_customer(session, customer.id) is None

    def test_out_of_range_percent_gives_none(self, session, customer, make_category, make_product):
        """Test that a stored percent above 100 never yields a negative fee."""
        cat = make_category("Qurilish")
        product = make_product(cat, price=600000, has_delivery=True, delivery_price=50000)
        cart_service.add_item(session, customer.id, product.id)
        set_setting(session, "delivery_discount_percent", "150")
        session.commit()

        assert delivery_service.calculate_for_customer(session, customer.id) is None
        with pytest.raises(ValidationError):
            delivery_settings_service.get(session)

    def test_negative_threshold_gives_none(self, session, customer, shelf):
        """Test that a negative stored threshold is rejected."""
        cart_service.add_item(session, customer.id, shelf["cement"].id)
        set_setting(session, "free_delivery_threshold", "-1")
        session.commit()

        assert delivery_service.calculate_for_customer(session, customer.id) is None

    def test_unexpected_error_gives_none(self, session, customer, monkeypatch):
        """Test that any failure, not only database errors, is reported as unavailable."""
        def broken(db, customer_id):
            raise RuntimeError("boom")

        monkeypatch.setattr(delivery_service, "_cart_items", broken)
        assert delivery_service.calculate_for_customer(session, customer.id) is None

    def test_delivery_summary_split(self, session, customer, shelf):
        """Test the deliverable / pickup-only split."""
        cart_service.add_item(session, customer.id, shelf["cement"].id)
        cart_service.add_item(session, customer.id, shelf["brick"].id)
        cart_service.add_item(session, customer.id, shelf["glass"].id)
        session.commit()

        summary = delivery_service.get_delivery_summary(session, customer.id)
        assert summary["has_delivery_products"] is True
        assert summary["has_no_delivery_products"] is True
        assert [p["name_uz"] for p in summary["no_delivery_products"]] == ["Oyna"]
        assert summary["max_delivery_fee"] == 50000


class TestDeliverySettings:
    """Tests for delivery settings validation."""

    def test_defaults(self, session):
        """Test values when nothing is stored."""
        assert delivery_settings_service.get(session) == {
            "free_delivery_threshold": 500000,
            "delivery_discount_percent": 100,
        }

    @pytest.mark.parametrize("threshold,percent", [(-1, 100), (500000, 101), (500000, -5)])
    def test_rejects_out_of_range(self, session, threshold, percent):
        """Test range checks."""
        with pytest.raises(ValidationError):
            delivery_settings_service.update(session, threshold, percent)
