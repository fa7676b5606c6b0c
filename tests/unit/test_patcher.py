from typing import Optional

import pytest
from pydantic import BaseModel

from bootstarter.mapping import apply_non_null_to
from bootstarter.utils.settings import refresh_settings_cache
from tests.fixtures.catalog import Item, ItemDTO, Order, OrderDTO, Product, ProductPatch


class BadCustomerPatch(BaseModel):
    customer: Optional[int] = None


def test_document_patcher_applies_nested_items():
    order = Order(id=1, customer="Bob")
    patch = OrderDTO(
        id=10,
        customer="Ann",
        items=[ItemDTO(id=1, name="pen", quantity=2), ItemDTO(id=2, name="ink", quantity=1)],
    )

    applied = patch.apply_to(order)

    assert applied == 3
    assert order.id == 10
    assert order.customer == "Ann"
    assert order.items == [Item(id=1, name="pen", quantity=2), Item(id=2, name="ink", quantity=1)]
    assert all(isinstance(item, Item) for item in order.items)


def test_default_members_are_not_applied():
    order = Order(id=5, customer="Bob", items=[Item(id=9)])

    applied = OrderDTO().apply_to(order)

    assert applied == 0
    assert order == Order(id=5, customer="Bob", items=[Item(id=9)])


def test_unrelated_target_members_are_untouched():
    order = Order(id=1, customer="Bob", note="keep")

    OrderDTO(customer="Ann").apply_to(order)

    assert order.note == "keep"
    assert order.id == 1


def test_patch_onto_sqlalchemy_entity():
    product = Product(name="desk", price=10.0, stock=3)

    applied = ProductPatch(price=9.5).apply_to(product)

    assert applied == 1
    assert product.price == 9.5
    assert product.name == "desk"
    assert product.stock == 3


def test_conversion_failure_is_skipped_when_not_strict():
    order = Order(customer="Bob")

    applied = apply_non_null_to(BadCustomerPatch(customer=5), order, strict=False)

    assert applied == 0
    assert order.customer == "Bob"


def test_conversion_failure_raises_when_strict():
    with pytest.raises(TypeError):
        apply_non_null_to(BadCustomerPatch(customer=5), Order(), strict=True)


def test_strict_defaults_to_debug_setting(monkeypatch):
    monkeypatch.setenv("BOOTSTARTER_DEBUG", "true")
    refresh_settings_cache()

    with pytest.raises(TypeError):
        apply_non_null_to(BadCustomerPatch(customer=5), Order())


@pytest.mark.parametrize("patch,target", [(None, Order()), (OrderDTO(), None)])
def test_apply_rejects_none(patch, target):
    with pytest.raises(ValueError):
        apply_non_null_to(patch, target)
