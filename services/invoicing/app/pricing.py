"""
Invoice amount calculations.

All arithmetic is done in Decimal. Amounts are never rounded here; use
``round_money`` when presenting a value.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[Decimal, int, float, str]

CENT = Decimal("0.01")
HUNDRED = Decimal(100)


@dataclass(frozen=True)
class InvoiceAmounts:
    price_before_vat: Decimal
    vat_amount: Decimal
    total_price: Decimal


def to_decimal(value: Number) -> Decimal:
    """Convert a number to Decimal without going through binary float noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def compute_invoice_amounts(unit_price: Number, quantity: int, vat_rate: Number) -> InvoiceAmounts:
    """
    Compute VAT and total for ``quantity`` units at ``unit_price``.

    Args:
        unit_price: Price per unit before VAT (>= 0)
        quantity: Units sold (>= 1)
        vat_rate: VAT percentage (>= 0), e.g. 18 for 18%

    Returns:
        InvoiceAmounts with the exact, unrounded values
    """
    price_before_vat = to_decimal(unit_price) * quantity
    vat_amount = price_before_vat * to_decimal(vat_rate) / HUNDRED
    total_price = price_before_vat + vat_amount
    return InvoiceAmounts(
        price_before_vat=price_before_vat,
        vat_amount=vat_amount,
        total_price=total_price,
    )


def round_money(value: Number) -> Decimal:
    """Round to the currency's minor unit (2 decimal places, half up)."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
