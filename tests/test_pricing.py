"""Tests for checkout total computation."""
from decimal import Decimal

import pytest

from storefront.pricing import calculate_totals, find_mismatches, to_money


def test_two_items_standard_shipping():
    totals = calculate_totals([{"price": 10, "quantity": 2}], "standard")
    assert totals.subtotal == Decimal("20.00")
    assert totals.discount == Decimal("2.00")
    assert totals.tax == Decimal("1.80")
    assert totals.shipping_cost == Decimal("5.00")
    assert totals.total == Decimal("24.80")


def test_express_shipping_costs_fifteen():
    totals = calculate_totals([{"price": 10, "quantity": 2}], "express")
    assert totals.shipping_cost == Decimal("15.00")
    assert totals.total == Decimal("34.80")


def test_empty_cart_is_shipping_only():
    totals = calculate_totals([], "standard")
    assert totals.subtotal == Decimal("0.00")
    assert totals.total == Decimal("5.00")


@pytest.mark.parametrize("items", [
    [{"price": 19.99, "quantity": 1}],
    [{"price": 3.33, "quantity": 3}, {"price": 0.07, "quantity": 11}],
    [{"price": 12.345, "quantity": 7}],
])
def test_total_is_exact_sum_of_rounded_parts(items):
    totals = calculate_totals(items, "standard")
    assert totals.total == totals.subtotal - totals.discount + totals.tax + totals.shipping_cost
    for part in (totals.subtotal, totals.discount, totals.tax, totals.total):
        assert part == part.quantize(Decimal("0.01"))


def test_rounds_half_up_at_each_step():
    # subtotal 19.99 -> discount 1.999 -> 2.00 ; tax on 17.99 -> 1.799 -> 1.80
    totals = calculate_totals([{"price": 19.99, "quantity": 1}], "standard")
    assert totals.discount == Decimal("2.00")
    assert totals.tax == Decimal("1.80")
    assert totals.total == Decimal("24.79")


def test_is_deterministic():
    items = [{"price": 4.5, "quantity": 3}, {"price": 2.25, "quantity": 1}]
    assert calculate_totals(items, "express") == calculate_totals(items, "express")


def test_accepts_objects_with_attributes():
    class Item:
        price = 10
        quantity = 2

    assert calculate_totals([Item()], "standard").total == Decimal("24.80")


def test_negative_values_are_priced_as_given():
    totals = calculate_totals([{"price": -10, "quantity": 1}], "standard")
    assert totals.subtotal == Decimal("-10.00")


def test_unknown_shipping_option():
    with pytest.raises(ValueError):
        calculate_totals([], "overnight")


def test_to_money_from_float():
    assert to_money(1.005) == Decimal("1.01")
    assert to_money("2") == Decimal("2.00")


def test_find_mismatches_tolerates_a_cent():
    totals = calculate_totals([{"price": 10, "quantity": 2}], "standard")
    claimed = {"subtotal": 20, "discount": 2, "tax": 1.8, "shippingCost": 5, "total": 24.81}
    assert find_mismatches(claimed, totals) == []


def test_find_mismatches_reports_fields():
    totals = calculate_totals([{"price": 10, "quantity": 2}], "standard")
    claimed = {"subtotal": 20, "discount": 0, "tax": 1.8, "shippingCost": 5, "total": 1}
    assert find_mismatches(claimed, totals) == ["discount", "total"]
