from decimal import Decimal

import pytest

from app import crud
from app.errors import ValidationError


def test_create_company_returns_generated_id(db) -> None:
    company = crud.create_company(db, name="ABC Corp", address="Mumbai")
    assert company.id == 1
    assert (company.name, company.address) == ("ABC Corp", "Mumbai")


@pytest.mark.parametrize("name, address", [("", "Mumbai"), ("ABC Corp", "   "), (None, "Mumbai")])
def test_create_company_requires_name_and_address(db, name, address) -> None:
    with pytest.raises(ValidationError, match="Name and Address required"):
        crud.create_company(db, name=name, address=address)
    assert crud.get_companies(db) == []


def test_company_name_fits_its_column(db) -> None:
    with pytest.raises(ValidationError, match="at most 255 characters"):
        crud.create_company(db, name="A" * 256, address="Mumbai")
    assert crud.create_company(db, name="A" * 255, address="Mumbai").id == 1


def test_companies_sorted_by_name_and_stable(db) -> None:
    for name in ("Zeta Ltd", "ABC Corp", "Mid Co"):
        crud.create_company(db, name=name, address="Somewhere")

    first = [c.name for c in crud.get_companies(db)]
    second = [c.name for c in crud.get_companies(db)]
    assert first == ["ABC Corp", "Mid Co", "Zeta Ltd"]
    assert first == second


def test_create_product_defaults_stock_to_zero(db) -> None:
    product = crud.create_product(db, name="Widget", unit_price=Decimal("100"), vat_rate=Decimal("18"), quantity_in_stock=None)
    assert product.id == 1
    assert product.quantity_in_stock == 0
    assert product.unit_price == Decimal("100")
    assert product.vat_rate == Decimal("18")


@pytest.mark.parametrize(
    "fields, message",
    [
        ({"name": "", "unit_price": 1, "vat_rate": 1}, "name is required"),
        ({"name": "Widget", "unit_price": None, "vat_rate": 1}, "unit_price must be a number"),
        ({"name": "Widget", "unit_price": 1, "vat_rate": None}, "vat_rate must be a number"),
        ({"name": "Widget", "unit_price": "abc", "vat_rate": 1}, "unit_price must be a number"),
        ({"name": "Widget", "unit_price": -1, "vat_rate": 1}, "unit_price cannot be negative"),
        ({"name": "Widget", "unit_price": 1, "vat_rate": -5}, "vat_rate cannot be negative"),
        ({"name": "Widget", "unit_price": 1, "vat_rate": 1, "quantity_in_stock": -1}, "quantity_in_stock cannot be negative"),
        ({"name": "W" * 256, "unit_price": 1, "vat_rate": 1}, "name must be at most 255 characters"),
        ({"name": "Widget", "unit_price": "19.999", "vat_rate": 1}, "unit_price is out of range"),
        ({"name": "Widget", "unit_price": 10 ** 10, "vat_rate": 1}, "unit_price is out of range"),
        ({"name": "Widget", "unit_price": 1, "vat_rate": "12.345"}, "vat_rate is out of range"),
        ({"name": "Widget", "unit_price": 1, "vat_rate": 1000}, "vat_rate is out of range"),
        ({"name": "Widget", "unit_price": 1, "vat_rate": 1, "quantity_in_stock": True}, "quantity_in_stock must be an integer"),
        ({"name": "Widget", "unit_price": 1, "vat_rate": 1, "quantity_in_stock": 2 ** 31}, "quantity_in_stock must be at most"),
    ],
)
def test_create_product_rejects_invalid_data(db, fields, message) -> None:
    with pytest.raises(ValidationError, match=message):
        crud.create_product(db, **fields)
    assert crud.get_products(db) == []


def test_zero_price_and_rate_are_allowed(db) -> None:
    product = crud.create_product(db, name="Freebie", unit_price=0, vat_rate=0)
    assert product.unit_price == Decimal("0")


def test_products_sorted_by_name(db) -> None:
    crud.create_product(db, name="Widget", unit_price=1, vat_rate=0)
    crud.create_product(db, name="Bolt", unit_price=1, vat_rate=0)
    assert [p.name for p in crud.get_products(db)] == ["Bolt", "Widget"]


def test_lookups_return_none_when_missing(db) -> None:
    assert crud.get_company(db, 42) is None
    assert crud.get_product(db, 42) is None


def test_two_decimal_amounts_are_stored_exactly(db) -> None:
    product = crud.create_product(db, name="Gadget", unit_price="19.99", vat_rate="12.50")
    stored = crud.get_product(db, product.id)
    assert stored.unit_price == Decimal("19.99")
    assert stored.vat_rate == Decimal("12.50")
