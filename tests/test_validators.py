import pytest

from app.errors import UnsupportedMediaTypeError, ValidationError
from app.validators import (
    coerce_order,
    parse_order_payload,
    parse_order_xml,
    validate_order_request,
    validate_product_data,
    validate_quote_request,
)


def test_xml_payload_maps_onto_order_fields() -> None:
    body = b"""<?xml version="1.0"?>
    <order>
        <company_id> 4 </company_id>
        <product_id>7</product_id>
        <quantity>3</quantity>
        <note>ignored</note>
    </order>"""
    data = parse_order_xml(body)
    assert data == {"company_id": "4", "product_id": "7", "quantity": "3"}

    order = coerce_order(data)
    assert (order.company_id, order.product_id, order.quantity) == (4, 7, 3)


def test_content_type_parameters_are_ignored() -> None:
    data = parse_order_payload("application/json; charset=utf-8", b'{"company_id": 1, "product_id": 2, "quantity": 3}')
    assert data["product_id"] == 2


def test_missing_content_type_is_json() -> None:
    assert parse_order_payload(None, b'{"quantity": 1}') == {"quantity": 1}


def test_json_array_is_rejected() -> None:
    with pytest.raises(ValidationError):
        parse_order_payload("application/json", b"[1, 2, 3]")


def test_unknown_content_type() -> None:
    with pytest.raises(UnsupportedMediaTypeError) as excinfo:
        parse_order_payload("application/x-www-form-urlencoded", b"quantity=1")
    assert excinfo.value.status_code == 415


def test_coerce_order_reports_missing_fields() -> None:
    with pytest.raises(ValidationError, match="Missing required order fields"):
        coerce_order({"company_id": 1, "product_id": 1, "quantity": ""})


@pytest.mark.parametrize(
    "args, expected",
    [
        ((1, 1, 1), (True, "")),
        ((1, 1, 0), (False, "quantity must be at least 1")),
        ((None, 1, 1), (False, "Missing required order fields")),
        ((1, -4, 1), (False, "product_id must be a positive integer")),
        ((True, 1, 1), (False, "company_id must be a positive integer")),
        ((1, True, 1), (False, "product_id must be a positive integer")),
        ((1, 1, True), (False, "quantity must be an integer")),
        ((1, 1, 2 ** 31), (False, "quantity must be at most 2147483647")),
        ((2 ** 31, 1, 1), (False, "company_id must be a positive integer")),
    ],
)
def test_validate_order_request(args, expected) -> None:
    assert validate_order_request(*args) == expected


def test_validate_quote_request_bounds() -> None:
    assert validate_quote_request(1, 2 ** 31 - 1) == (True, "")
    assert validate_quote_request(1, True) == (False, "quantity must be an integer")
    assert validate_quote_request(False, 1) == (False, "product_id must be a positive integer")
    assert validate_quote_request(1, 2 ** 31) == (False, "quantity must be at most 2147483647")


@pytest.mark.parametrize(
    "unit_price, vat_rate, valid",
    [
        ("19.99", "12.34", True),
        ("9999999999.99", "999.99", True),
        ("19.999", "18", False),
        ("10000000000", "18", False),
        ("100", "12.345", False),
        ("100", "1000", False),
    ],
)
def test_product_amounts_must_fit_their_columns(unit_price, vat_rate, valid) -> None:
    is_valid, _ = validate_product_data("Widget", unit_price, vat_rate, 0)
    assert is_valid is valid


def test_coerce_order_rejects_booleans() -> None:
    with pytest.raises(ValidationError, match="boolean"):
        coerce_order({"company_id": 1, "product_id": 1, "quantity": True})
