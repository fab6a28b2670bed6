"""Tests for the Product aggregate: stock mutations and derived status."""

import pytest
from ordering.catalog.events import ProductDetailsUpdated, ProductOutOfStock, StockRestored, StockWithdrawn
from ordering.catalog.product import Product, ProductStatus
from ordering.errors import InsufficientStock
from protean.exceptions import ValidationError


def _product(quantity=5):
    product = Product.create(name="Ryzen 9 7950X", price=549.0, quantity=quantity, images=["a.png", "b.png"])
    product._events.clear()
    return product


class TestProductCreation:
    def test_create_with_stock_is_active(self):
        product = _product(quantity=3)
        assert product.status == ProductStatus.ACTIVE.value
        assert product.quantity == 3

    def test_create_without_stock_is_out_of_stock(self):
        product = Product.create(name="Empty", price=1.0)
        assert product.quantity == 0
        assert product.status == ProductStatus.OUT_OF_STOCK.value

    def test_primary_image_is_first(self):
        product = _product()
        assert product.image_list == ["a.png", "b.png"]
        assert product.primary_image == "a.png"

    def test_no_images(self):
        product = Product.create(name="Bare", price=1.0, quantity=1)
        assert product.primary_image is None

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            Product.create(name="Bad", price=-1.0, quantity=1)


class TestWithdraw:
    def test_withdraw_decrements(self):
        product = _product(quantity=5)
        product.withdraw(2, reference="ORD-1")
        assert product.quantity == 3
        assert product.status == ProductStatus.ACTIVE.value

    def test_withdraw_raises_event(self):
        product = _product(quantity=5)
        product.withdraw(2)
        event = product._events[0]
        assert isinstance(event, StockWithdrawn)
        assert event.previous_quantity == 5
        assert event.new_quantity == 3

    def test_withdraw_to_zero_goes_out_of_stock(self):
        product = _product(quantity=2)
        product.withdraw(2)
        assert product.quantity == 0
        assert product.status == ProductStatus.OUT_OF_STOCK.value
        assert any(isinstance(e, ProductOutOfStock) for e in product._events)

    def test_withdraw_more_than_on_hand_fails(self):
        product = _product(quantity=1)
        with pytest.raises(InsufficientStock) as exc:
            product.withdraw(2)
        assert exc.value.product_name == "Ryzen 9 7950X"
        assert product.quantity == 1
        assert product._events == []

    def test_withdraw_non_positive_fails(self):
        product = _product()
        with pytest.raises(ValidationError):
            product.withdraw(0)


class TestRestore:
    def test_restore_from_out_of_stock_reactivates(self):
        product = _product(quantity=1)
        product.withdraw(1)
        product.restore(3)
        assert product.quantity == 3
        assert product.status == ProductStatus.ACTIVE.value
        assert isinstance(product._events[-1], StockRestored)

    def test_restore_keeps_inactive(self):
        product = _product(quantity=2)
        product.status = ProductStatus.INACTIVE.value
        product.restore(1)
        assert product.status == ProductStatus.INACTIVE.value

    def test_adjust_quantity_dispatches_on_sign(self):
        product = _product(quantity=4)
        product.adjust_quantity(-3)
        assert product.quantity == 1
        product.adjust_quantity(2)
        assert product.quantity == 3
        product.adjust_quantity(0)
        assert product.quantity == 3


class TestUpdateDetails:
    def test_name_price_and_images(self):
        product = _product()
        product.update_details(name="Ryzen 9 9950X", price=649.0, images=["c.png"])
        assert product.name == "Ryzen 9 9950X"
        assert product.price == 649.0
        assert product.primary_image == "c.png"
        assert isinstance(product._events[-1], ProductDetailsUpdated)
        assert product._events[-1].price == "649.0"

    def test_omitted_fields_are_kept(self):
        product = _product()
        product.update_details(price=499.0)
        assert product.name == "Ryzen 9 7950X"
        assert product.image_list == ["a.png", "b.png"]
        assert product.status == ProductStatus.ACTIVE.value

    def test_deactivate_and_reactivate(self):
        product = _product()
        product.update_details(active=False)
        assert product.status == ProductStatus.INACTIVE.value
        product.update_details(active=True)
        assert product.status == ProductStatus.ACTIVE.value

    def test_out_of_stock_product_stays_out_of_stock(self):
        product = _product(quantity=0)
        product.update_details(active=False)
        assert product.status == ProductStatus.OUT_OF_STOCK.value

    def test_deactivated_product_stays_inactive_through_sales(self):
        product = _product(quantity=3)
        product.update_details(active=False)
        product.withdraw(1)
        product.restore(1)
        assert product.status == ProductStatus.INACTIVE.value

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            _product().update_details(price=-1.0)
