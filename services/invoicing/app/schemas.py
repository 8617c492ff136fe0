"""
Pydantic schemas for request/response validation in the Invoicing service.

These schemas define the structure of data for API requests and responses.
Money values are kept exact internally and rounded to 2 decimal places only
when serialized to JSON.
"""
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, BeforeValidator, Field, PlainSerializer

from .models import (
    MAX_INTEGER,
    NAME_MAX_LENGTH,
    PRICE_DECIMAL_PLACES,
    PRICE_MAX_DIGITS,
    RATE_DECIMAL_PLACES,
    RATE_MAX_DIGITS,
)
from .pricing import round_money

# Decimal rendered as a string with exactly two decimal places, e.g. "236.00"
Money = Annotated[Decimal, PlainSerializer(lambda v: str(round_money(v)), return_type=str, when_used="json")]


def _reject_bool(value: Any) -> Any:
    # JSON true/false would otherwise be accepted as 1/0
    if isinstance(value, bool):
        raise ValueError("must be an integer, not a boolean")
    return value


# Integers that fit the INTEGER columns; booleans are refused
PositiveInt = Annotated[int, Field(ge=1, le=MAX_INTEGER), BeforeValidator(_reject_bool)]
StockLevel = Annotated[int, Field(ge=0, le=MAX_INTEGER), BeforeValidator(_reject_bool)]


class CompanyBase(BaseModel):
    """Base schema with common company attributes."""
    name: str = Field(..., max_length=NAME_MAX_LENGTH)
    address: str


class CompanyCreate(CompanyBase):
    """Schema for creating a new company."""
    pass


class Company(CompanyBase):
    """
    Schema for company responses.

    Attributes:
        id (int): Company's unique identifier
        name (str): Company name
        address (str): Billing address
    """
    id: int

    class Config:
        from_attributes = True


class ProductBase(BaseModel):
    """Base schema with common product attributes."""
    name: str = Field(..., max_length=NAME_MAX_LENGTH)
    unit_price: Decimal = Field(
        ...,
        ge=0,
        max_digits=PRICE_MAX_DIGITS,
        decimal_places=PRICE_DECIMAL_PLACES,
        description="Price per unit before VAT",
    )
    vat_rate: Decimal = Field(
        ...,
        ge=0,
        max_digits=RATE_MAX_DIGITS,
        decimal_places=RATE_DECIMAL_PLACES,
        description="VAT percentage, 18 means 18%",
    )


class ProductCreate(ProductBase):
    """Schema for creating a new product."""
    quantity_in_stock: Optional[StockLevel] = Field(default=0, description="Informational stock level")


class Product(BaseModel):
    """
    Schema for product responses.

    Attributes:
        id (int): Product's unique identifier
        name (str): Product name
        unit_price (Decimal): Price per unit before VAT
        vat_rate (Decimal): VAT percentage
        quantity_in_stock (int): Informational stock level
    """
    id: int
    name: str
    unit_price: Money
    vat_rate: Money
    quantity_in_stock: int

    class Config:
        from_attributes = True


class OrderCreate(BaseModel):
    """Schema for creating a new order (invoice)."""
    company_id: PositiveInt = Field(..., description="Billed company")
    product_id: PositiveInt = Field(..., description="Sold product")
    quantity: PositiveInt = Field(..., description="Units sold")


class Order(BaseModel):
    """
    Schema for a created order.

    Attributes:
        id (int): Order's unique identifier
        order_date (datetime): When the order was created
        company_id (int): Billed company
        product_id (int): Sold product
        quantity (int): Units sold
        vat_amount (Decimal): VAT charged
        total_price (Decimal): Price including VAT
    """
    id: int
    order_date: datetime
    company_id: int
    product_id: int
    quantity: int
    vat_amount: Money
    total_price: Money

    class Config:
        from_attributes = True


class OrderQuoteRequest(BaseModel):
    """Schema for previewing the amounts of an order without creating it."""
    product_id: PositiveInt
    quantity: PositiveInt


class OrderQuote(BaseModel):
    """Computed amounts for a prospective order."""
    product_id: int
    quantity: int
    price_before_vat: Money
    vat_amount: Money
    total_price: Money


class InvoiceView(BaseModel):
    """
    Denormalized invoice row: an order joined with the current company and
    product rows. Totals are the values frozen at creation.
    """
    id: int
    order_date: datetime
    quantity: int
    vat_amount: Money
    total_price: Money
    company_name: str
    company_address: str
    product_name: str
    unit_price: Money
    vat_rate: Money

    class Config:
        from_attributes = True


class InvoiceDetail(InvoiceView):
    """Single invoice, including the snapshot stored at creation."""
    company_id: int
    product_id: int
    snapshot: Optional[Dict[str, Any]] = None


class DashboardSummary(BaseModel):
    """Headline figures for the dashboard."""
    total_revenue: Money
    total_invoices: int
    total_products: int
    total_companies: int
    recent_invoices: List[InvoiceView] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
