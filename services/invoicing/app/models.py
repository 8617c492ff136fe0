"""
SQLAlchemy ORM models for the Invoicing service.

Defines the database schema for the companies, products and orders tables.
"""
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, Numeric, ForeignKey, Text
from .database import Base

# Column limits, also enforced at the API boundary
NAME_MAX_LENGTH = 255
PRICE_MAX_DIGITS, PRICE_DECIMAL_PLACES = 12, 2
RATE_MAX_DIGITS, RATE_DECIMAL_PLACES = 5, 2
MAX_INTEGER = 2 ** 31 - 1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Company(Base):
    """
    Client company that invoices are issued to.

    Attributes:
        id (int): Primary key, auto-incremented company ID
        name (str): Company name
        address (str): Billing address
    """
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(NAME_MAX_LENGTH), nullable=False, index=True)
    address = Column(Text, nullable=False)


class Product(Base):
    """
    Catalogued product.

    Attributes:
        id (int): Primary key, auto-incremented product ID
        name (str): Product name
        unit_price (Decimal): Price per unit before VAT
        vat_rate (Decimal): VAT percentage (18 means 18%)
        quantity_in_stock (int): Informational stock level, never decremented by orders
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(NAME_MAX_LENGTH), nullable=False, index=True)
    unit_price = Column(Numeric(PRICE_MAX_DIGITS, PRICE_DECIMAL_PLACES), nullable=False)
    vat_rate = Column(Numeric(RATE_MAX_DIGITS, RATE_DECIMAL_PLACES), nullable=False)
    quantity_in_stock = Column(Integer, nullable=False, default=0)


class Order(Base):
    """
    Invoice for one product sold to one company.

    vat_amount and total_price are computed once at creation and never
    recomputed. Their scale is wide enough to hold the exact result of a
    2-decimal price times a 2-decimal rate.

    Attributes:
        id (int): Primary key, auto-incremented order ID
        order_date (datetime): Server timestamp at creation
        company_id (int): Billed company
        product_id (int): Sold product
        quantity (int): Units sold
        vat_amount (Decimal): VAT charged
        total_price (Decimal): Price including VAT
        raw_data (str): JSON snapshot of the company and product at creation
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_date = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    vat_amount = Column(Numeric(32, 6), nullable=False)
    total_price = Column(Numeric(32, 6), nullable=False)
    raw_data = Column(Text, nullable=True)
