"""
Unit tests for the order-level delivery fee calculation.
"""

from types import SimpleNamespace

from modules.order.delivery_calculator import DeliveryInfo, compute_delivery_info, line_total


def _item(price, quantity=1, has_delivery=True, delivery_price=0,
          product_type="sale", rental_duration=None):
    product = SimpleNamespace(
        price=price,
        product_type=product_type,
        has_delivery=has_delivery,
        delivery_price=delivery_price,
    )
    return SimpleNamespace(product=product, quantity=quantity, rental_duration=rental_duration)


class TestLineTotal:
    """Tests for line totals."""

    def test_sale(self):
        """Test price x quantity."""
        assert line_total(12000, 3) == 36000

    def test_rental_with_duration(self):
        """Test price x duration x quantity for rentals."""
        assert line_total(10000, 2, "rental", 3) == 60000

    def test_rental_without_duration(self):
        """Test that a missing duration counts once."""
        assert line_total(10000, 2, "rental", None) == 20000


class TestComputeDeliveryInfo:
    """Tests for fee, threshold and discount."""

    def test_empty_cart_is_not_computed(self):
        """Test that an empty cart gives None, not a zero object."""
        assert compute_delivery_info([], 500000) is None

    def test_below_threshold_pays_full_fee(self):
        """Test one so'm under the threshold."""
        info = compute_delivery_info([_item(499999, delivery_price=30000)], 500000)

        assert info.cart_total == 499999
        assert info.original_delivery_fee == 30000
        assert info.delivery_discount == 0
        assert info.final_delivery_fee == 30000
        assert info.discount_percentage == 0

    def test_exact_threshold_is_free(self):
        """Test that reaching the threshold exactly waives the fee."""
        info = compute_delivery_info([_item(250000, 2, delivery_price=30000)], 500000)

        assert info.cart_total == 500000
        assert info.delivery_discount == 30000
        assert info.final_delivery_fee == 0
        assert info.discount_percentage == 100

    def test_one_fee_per_order(self):
        """Test that the fee is the highest delivery price, charged once."""
        items = [
            _item(10000, delivery_price=20000),
            _item(10000, 5, delivery_price=35000),
            _item(10000, has_delivery=False, delivery_price=90000),
        ]
        info = compute_delivery_info(items, 500000)

        assert info.original_delivery_fee == 35000
        assert info.final_delivery_fee == 35000
        assert info.has_delivery_items is True
        assert info.cart_total == 70000

    def test_no_deliverable_items(self):
        """Test a pickup-only cart."""
        info = compute_delivery_info([_item(10000, has_delivery=False, delivery_price=5000)], 500000)

        assert info.has_delivery_items is False
        assert info.original_delivery_fee == 0
        assert info.final_delivery_fee == 0

    def test_partial_discount_rounds_down(self):
        """Test a 50% discount on an odd fee."""
        info = compute_delivery_info([_item(600000, delivery_price=15001)], 500000, discount_percent=50)

        assert info.delivery_discount == 7500
        assert info.final_delivery_fee == 7501
        assert info.discount_percentage == 50

    def test_rental_items_count_toward_threshold(self):
        """Test that rental duration multiplies the cart total."""
        item = _item(100000, 1, delivery_price=40000, product_type="rental", rental_duration=5)
        info = compute_delivery_info([item], 500000)

        assert info.cart_total == 500000
        assert info.final_delivery_fee == 0

    def test_fee_invariant(self):
        """Test final = original - discount and never negative."""
        for total in (1000, 499999, 500000, 900000):
            info = compute_delivery_info([_item(total, delivery_price=25000)], 500000)
            assert info.final_delivery_fee == info.original_delivery_fee - info.delivery_discount
            assert info.final_delivery_fee >= 0

    def test_same_input_same_result(self):
        """Test that the calculation is deterministic."""
        items = [_item(120000, 2, delivery_price=30000), _item(5000, has_delivery=False)]
        assert compute_delivery_info(items, 500000) == compute_delivery_info(items, 500000)

    def test_to_dict(self):
        """Test serialized field names."""
        info = compute_delivery_info([_item(1000, delivery_price=100)], 500000)
        assert isinstance(info, DeliveryInfo)
        assert set(info.to_dict()) == {
            "cart_total", "original_delivery_fee", "delivery_discount", "final_delivery_fee",
            "free_delivery_threshold", "has_delivery_items", "discount_percentage",
        }
