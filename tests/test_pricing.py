from decimal import Decimal

import pytest

from app.pricing import compute_invoice_amounts, round_money


def test_widget_scenario() -> None:
    amounts = compute_invoice_amounts(Decimal("100"), 2, Decimal("18"))
    assert amounts.price_before_vat == Decimal("200")
    assert amounts.vat_amount == Decimal("36")
    assert amounts.total_price == Decimal("236")


@pytest.mark.parametrize(
    "unit_price, quantity, vat_rate",
    [
        ("0", 1, "18"),
        ("0.10", 3, "0"),
        ("19.99", 7, "12.5"),
        ("0.33", 1, "18.75"),
        ("1234.56", 1000, "28"),
    ],
)
def test_total_is_exact_in_decimal(unit_price, quantity, vat_rate) -> None:
    price, rate = Decimal(unit_price), Decimal(vat_rate)
    amounts = compute_invoice_amounts(price, quantity, rate)
    assert amounts.total_price == price * quantity + price * quantity * rate / 100
    assert amounts.total_price == amounts.price_before_vat + amounts.vat_amount


def test_float_inputs_do_not_leak_binary_noise() -> None:
    amounts = compute_invoice_amounts(0.1, 3, 10)
    assert amounts.price_before_vat == Decimal("0.3")
    assert amounts.vat_amount == Decimal("0.03")


def test_amounts_are_not_rounded() -> None:
    amounts = compute_invoice_amounts(Decimal("0.33"), 1, Decimal("18.75"))
    assert amounts.vat_amount == Decimal("0.061875")
    assert round_money(amounts.vat_amount) == Decimal("0.06")


def test_round_money_half_up() -> None:
    assert round_money(Decimal("2.345")) == Decimal("2.35")
    assert round_money(Decimal("2.344")) == Decimal("2.34")
    assert str(round_money(236)) == "236.00"
