"""
CRUD (Create, Read) operations for the catalog: companies and products.

This module contains all database operations for catalog management.
"""
import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import models, validators
from .errors import StoreError, ValidationError
from .pricing import to_decimal

logger = logging.getLogger(__name__)


def _get(db: Session, model, entity_id: int, for_share: bool):
    query = db.query(model).filter(model.id == entity_id)
    if for_share:
        # FOR SHARE on PostgreSQL, ignored by SQLite
        query = query.with_for_update(read=True)
    return query.first()


def _save(db: Session, instance):
    try:
        db.add(instance)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception(f"Failed to save {type(instance).__name__}")
        raise StoreError(str(e)) from e
    db.refresh(instance)
    return instance


def get_company(db: Session, company_id: int, for_share: bool = False) -> Optional[models.Company]:
    """
    Retrieve a single company by ID.

    Args:
        db: Database session
        company_id: ID of the company to retrieve
        for_share: Hold a shared row lock until the transaction ends

    Returns:
        Company object or None if not found
    """
    return _get(db, models.Company, company_id, for_share)


def get_companies(db: Session) -> List[models.Company]:
    """
    Retrieve all companies ordered by name.

    Args:
        db: Database session

    Returns:
        List of Company objects
    """
    return db.query(models.Company).order_by(models.Company.name, models.Company.id).all()


def create_company(db: Session, name: str, address: str) -> models.Company:
    """
    Create a new company in the database.

    Args:
        db: Database session
        name: Company name
        address: Billing address

    Returns:
        Created Company object

    Raises:
        ValidationError: if name or address is missing
        StoreError: if the insert fails
    """
    is_valid, error_message = validators.validate_company_data(name, address)
    if not is_valid:
        raise ValidationError(error_message)

    db_company = _save(db, models.Company(name=name.strip(), address=address.strip()))
    logger.info(f"Created company {db_company.id} '{db_company.name}'")
    return db_company


def get_product(db: Session, product_id: int, for_share: bool = False) -> Optional[models.Product]:
    """
    Retrieve a single product by ID.

    Args:
        db: Database session
        product_id: ID of the product to retrieve
        for_share: Hold a shared row lock until the transaction ends

    Returns:
        Product object or None if not found
    """
    return _get(db, models.Product, product_id, for_share)


def get_products(db: Session) -> List[models.Product]:
    """
    Retrieve all products ordered by name.

    Args:
        db: Database session

    Returns:
        List of Product objects
    """
    return db.query(models.Product).order_by(models.Product.name, models.Product.id).all()


def create_product(db: Session, name: str, unit_price, vat_rate, quantity_in_stock: Optional[int] = 0) -> models.Product:
    """
    Create a new product in the database.

    Args:
        db: Database session
        name: Product name
        unit_price: Price per unit before VAT
        vat_rate: VAT percentage
        quantity_in_stock: Informational stock level (None is stored as 0)

    Returns:
        Created Product object

    Raises:
        ValidationError: if a field is missing, malformed or negative
        StoreError: if the insert fails
    """
    is_valid, error_message = validators.validate_product_data(name, unit_price, vat_rate, quantity_in_stock)
    if not is_valid:
        raise ValidationError(error_message)

    db_product = _save(
        db,
        models.Product(
            name=name.strip(),
            unit_price=to_decimal(unit_price),
            vat_rate=to_decimal(vat_rate),
            quantity_in_stock=quantity_in_stock or 0,
        ),
    )
    logger.info(f"Created product {db_product.id} '{db_product.name}'")
    return db_product
