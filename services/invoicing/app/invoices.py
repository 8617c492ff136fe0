"""
Invoice operations: order creation and the invoice read side.

Order creation reads the product and company, prices the order and inserts
it inside one transaction. The referenced rows are read with a shared lock
so they cannot disappear before the order is committed.

Invoice listings join orders with the *current* company and product rows.
Displayed names and prices therefore follow later catalog edits, while
vat_amount and total_price keep the values computed at creation. The stored
snapshot (orders.raw_data) keeps the historical values and is exposed by
``get_invoice``.
"""
import json
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import crud, models, pricing, validators
from .errors import (
    CompanyNotFoundError,
    InvoiceNotFoundError,
    NotFoundError,
    ProductNotFoundError,
    StoreError,
    ValidationError,
)

logger = logging.getLogger(__name__)

RECENT_INVOICES = 5


def build_snapshot(company: models.Company, product: models.Product, quantity: int) -> Dict[str, Any]:
    """
    Copy the company and product attributes an invoice was priced from.

    Decimals are stored as strings to keep them exact in JSON.
    """
    return {
        "company": {
            "id": company.id,
            "name": company.name,
            "address": company.address,
        },
        "product": {
            "id": product.id,
            "name": product.name,
            "unit_price": str(product.unit_price),
            "vat_rate": str(product.vat_rate),
            "quantity": quantity,
        },
    }


def create_order(db: Session, company_id: int, product_id: int, quantity: int) -> models.Order:
    """
    Create an order (invoice) for ``quantity`` units of a product.

    Args:
        db: Database session
        company_id: Billed company
        product_id: Sold product
        quantity: Units sold, at least 1

    Returns:
        The persisted Order, including its generated id and order_date

    Raises:
        ValidationError: if an id or the quantity is missing or malformed
        ProductNotFoundError: if the product does not exist
        CompanyNotFoundError: if the company does not exist
        StoreError: if the database fails
    """
    is_valid, error_message = validators.validate_order_request(company_id, product_id, quantity)
    if not is_valid:
        raise ValidationError(error_message)

    try:
        product = crud.get_product(db, product_id, for_share=True)
        if product is None:
            raise ProductNotFoundError(product_id)

        company = crud.get_company(db, company_id, for_share=True)
        if company is None:
            raise CompanyNotFoundError(company_id)

        amounts = pricing.compute_invoice_amounts(product.unit_price, quantity, product.vat_rate)
        snapshot = build_snapshot(company, product, quantity)

        db_order = models.Order(
            company_id=company.id,
            product_id=product.id,
            quantity=quantity,
            vat_amount=amounts.vat_amount,
            total_price=amounts.total_price,
            raw_data=json.dumps(snapshot),
        )
        db.add(db_order)
        db.commit()
    except NotFoundError as e:
        db.rollback()
        logger.warning(f"Order rejected: {e.message} (id={e.entity_id})")
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Failed to create order")
        raise StoreError(str(e)) from e

    db.refresh(db_order)
    logger.info(
        f"Created order {db_order.id}: company={company_id} product={product_id} "
        f"quantity={quantity} total={amounts.total_price}"
    )
    return db_order


def quote_order(db: Session, product_id: int, quantity: int) -> pricing.InvoiceAmounts:
    """
    Price a prospective order without persisting anything.

    Raises:
        ValidationError: if the product id or quantity is malformed
        ProductNotFoundError: if the product does not exist
    """
    is_valid, error_message = validators.validate_quote_request(product_id, quantity)
    if not is_valid:
        raise ValidationError(error_message)

    product = crud.get_product(db, product_id)
    if product is None:
        raise ProductNotFoundError(product_id)
    return pricing.compute_invoice_amounts(product.unit_price, quantity, product.vat_rate)


def _invoice_query(db: Session, *extra_columns):
    return (
        db.query(
            models.Order.id,
            models.Order.order_date,
            models.Order.quantity,
            models.Order.vat_amount,
            models.Order.total_price,
            models.Company.name.label("company_name"),
            models.Company.address.label("company_address"),
            models.Product.name.label("product_name"),
            models.Product.unit_price,
            models.Product.vat_rate,
            *extra_columns,
        )
        .join(models.Company, models.Order.company_id == models.Company.id)
        .join(models.Product, models.Order.product_id == models.Product.id)
    )


def list_invoices(db: Session, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """
    List invoices, most recent first.

    Args:
        db: Database session
        limit: Maximum number of invoices to return (all when None)

    Returns:
        List of dicts with the InvoiceView fields
    """
    query = _invoice_query(db).order_by(models.Order.order_date.desc(), models.Order.id.desc())
    if limit is not None:
        query = query.limit(limit)
    return [dict(row._mapping) for row in query.all()]


def get_invoice(db: Session, order_id: int) -> Dict[str, Any]:
    """
    Retrieve one invoice with its stored snapshot.

    Raises:
        InvoiceNotFoundError: if no order has this id
    """
    row = (
        _invoice_query(db, models.Order.company_id, models.Order.product_id, models.Order.raw_data)
        .filter(models.Order.id == order_id)
        .first()
    )
    if row is None:
        raise InvoiceNotFoundError(order_id)

    invoice = dict(row._mapping)
    raw_data = invoice.pop("raw_data")
    invoice["snapshot"] = json.loads(raw_data) if raw_data else None
    return invoice


def summarize(db: Session) -> Dict[str, Any]:
    """
    Compute the dashboard figures.

    Returns:
        dict: total_revenue, total_invoices, total_products, total_companies
        and the most recent invoices
    """
    total_revenue = db.query(func.sum(models.Order.total_price)).scalar()
    return {
        "total_revenue": pricing.to_decimal(total_revenue) if total_revenue is not None else Decimal(0),
        "total_invoices": db.query(func.count(models.Order.id)).scalar(),
        "total_products": db.query(func.count(models.Product.id)).scalar(),
        "total_companies": db.query(func.count(models.Company.id)).scalar(),
        "recent_invoices": list_invoices(db, limit=RECENT_INVOICES),
    }
