"""
Validation utilities for the Invoicing service.

Provides business rule validation beyond schema validation, plus coercion of
raw order payloads (JSON or XML) into typed requests.
"""
import json
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Tuple
from xml.etree import ElementTree

from pydantic import ValidationError as PydanticValidationError

from . import schemas
from .errors import UnsupportedMediaTypeError, ValidationError
from .models import (
    MAX_INTEGER,
    NAME_MAX_LENGTH,
    PRICE_DECIMAL_PLACES,
    PRICE_MAX_DIGITS,
    RATE_DECIMAL_PLACES,
    RATE_MAX_DIGITS,
)

JSON_CONTENT_TYPES = ("application/json",)
XML_CONTENT_TYPES = ("application/xml", "text/xml")

ORDER_FIELDS = ("company_id", "product_id", "quantity")
XML_ORDER_ROOT = "order"


def _is_blank(value: Any) -> bool:
    return value is None or not isinstance(value, str) or not value.strip()


def _as_decimal(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    return number if number.is_finite() else None


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _fits_numeric(number: Decimal, max_digits: int, decimal_places: int) -> bool:
    """True if ``number`` is storable in a NUMERIC(max_digits, decimal_places) column without rounding."""
    if abs(number) >= Decimal(10) ** (max_digits - decimal_places):
        return False
    return number == number.quantize(Decimal(1).scaleb(-decimal_places))


def validate_company_data(name: Any, address: Any) -> Tuple[bool, str]:
    """
    Validate company fields.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if _is_blank(name) or _is_blank(address):
        return False, "Name and Address required"
    if len(name.strip()) > NAME_MAX_LENGTH:
        return False, f"Name must be at most {NAME_MAX_LENGTH} characters"
    return True, ""


def validate_product_data(name: Any, unit_price: Any, vat_rate: Any, quantity_in_stock: Any) -> Tuple[bool, str]:
    """
    Validate product fields.

    Args:
        name: Product name
        unit_price: Price per unit before VAT
        vat_rate: VAT percentage
        quantity_in_stock: Informational stock level (None means 0)

    Returns:
        Tuple of (is_valid, error_message)
    """
    if _is_blank(name):
        return False, "Invalid product data: name is required"
    if len(name.strip()) > NAME_MAX_LENGTH:
        return False, f"Invalid product data: name must be at most {NAME_MAX_LENGTH} characters"

    price = _as_decimal(unit_price)
    if price is None:
        return False, "Invalid product data: unit_price must be a number"
    if price < 0:
        return False, "Invalid product data: unit_price cannot be negative"
    if not _fits_numeric(price, PRICE_MAX_DIGITS, PRICE_DECIMAL_PLACES):
        return False, "Invalid product data: unit_price is out of range or has more than 2 decimal places"

    rate = _as_decimal(vat_rate)
    if rate is None:
        return False, "Invalid product data: vat_rate must be a number"
    if rate < 0:
        return False, "Invalid product data: vat_rate cannot be negative"
    if not _fits_numeric(rate, RATE_MAX_DIGITS, RATE_DECIMAL_PLACES):
        return False, "Invalid product data: vat_rate is out of range or has more than 2 decimal places"

    if quantity_in_stock is not None:
        if not _is_integer(quantity_in_stock):
            return False, "Invalid product data: quantity_in_stock must be an integer"
        if quantity_in_stock < 0:
            return False, "Invalid product data: quantity_in_stock cannot be negative"
        if quantity_in_stock > MAX_INTEGER:
            return False, f"Invalid product data: quantity_in_stock must be at most {MAX_INTEGER}"

    return True, ""


def validate_order_request(company_id: Any, product_id: Any, quantity: Any) -> Tuple[bool, str]:
    """
    Validate the references and quantity of an order.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if company_id is None or product_id is None or quantity is None:
        return False, "Missing required order fields"

    for field, value in (("company_id", company_id), ("product_id", product_id)):
        if not _is_integer(value) or not 1 <= value <= MAX_INTEGER:
            return False, f"{field} must be a positive integer"

    if not _is_integer(quantity):
        return False, "quantity must be an integer"
    if quantity < 1:
        return False, "quantity must be at least 1"
    if quantity > MAX_INTEGER:
        return False, f"quantity must be at most {MAX_INTEGER}"

    return True, ""


def validate_quote_request(product_id: Any, quantity: Any) -> Tuple[bool, str]:
    """
    Validate a price preview request.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not _is_integer(product_id) or not 1 <= product_id <= MAX_INTEGER:
        return False, "product_id must be a positive integer"
    if not _is_integer(quantity):
        return False, "quantity must be an integer"
    if quantity < 1:
        return False, "quantity must be at least 1"
    if quantity > MAX_INTEGER:
        return False, f"quantity must be at most {MAX_INTEGER}"
    return True, ""


def parse_order_xml(body: bytes) -> Dict[str, str]:
    """
    Map an XML order document onto order fields.

    Expected structure::

        <order>
            <company_id>1</company_id>
            <product_id>2</product_id>
            <quantity>3</quantity>
        </order>

    Raises:
        ValidationError: if the document is malformed or has the wrong root
    """
    try:
        root = ElementTree.fromstring(body)
    except ElementTree.ParseError as e:
        raise ValidationError(f"Malformed XML: {e}")

    if root.tag != XML_ORDER_ROOT:
        raise ValidationError(f"XML root element must be <{XML_ORDER_ROOT}>")

    data = {}
    for field in ORDER_FIELDS:
        text = root.findtext(field)
        if text is not None and text.strip():
            data[field] = text.strip()
    return data


def parse_order_payload(content_type: Optional[str], body: bytes) -> Dict[str, Any]:
    """
    Decode a raw order body according to its content type.

    A missing content type is treated as JSON.

    Raises:
        ValidationError: if the body cannot be decoded
        UnsupportedMediaTypeError: if the content type is not JSON or XML
    """
    media_type = (content_type or "application/json").split(";")[0].strip().lower()

    if media_type in XML_CONTENT_TYPES:
        return parse_order_xml(body)

    if media_type not in JSON_CONTENT_TYPES:
        raise UnsupportedMediaTypeError(f"Unsupported content type '{media_type}'")

    try:
        data = json.loads(body or b"{}")
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError(f"Malformed JSON: {e}")
    if not isinstance(data, dict):
        raise ValidationError("Order payload must be a JSON object")
    return data


def coerce_order(data: Dict[str, Any]) -> schemas.OrderCreate:
    """
    Turn a decoded payload into a typed order request.

    Raises:
        ValidationError: if fields are missing or malformed
    """
    if any(data.get(field) in (None, "") for field in ORDER_FIELDS):
        raise ValidationError("Missing required order fields")
    try:
        return schemas.OrderCreate.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(format_validation_errors(e.errors()))


def format_validation_errors(errors) -> str:
    """Flatten pydantic error entries into one readable message."""
    parts = []
    for error in errors:
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = error.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts) or "Invalid request"
