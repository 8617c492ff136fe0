"""
Error taxonomy for the Invoicing service.

Services raise these exceptions; the API layer maps each kind to an HTTP
status code and a ``{"error": message}`` body.
"""
from typing import Optional


class InvoicingError(Exception):
    """Base class for all service errors."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(InvoicingError):
    """Missing or malformed input."""
    status_code = 400


class UnsupportedMediaTypeError(ValidationError):
    """The request body is in a format the endpoint does not accept."""
    status_code = 415


class NotFoundError(InvoicingError):
    """A referenced entity does not exist."""
    status_code = 404
    resource = "Resource"

    def __init__(self, entity_id, message: Optional[str] = None):
        super().__init__(message or f"{self.resource} not found")
        self.entity_id = entity_id


class CompanyNotFoundError(NotFoundError):
    resource = "Company"


class ProductNotFoundError(NotFoundError):
    resource = "Product"


class InvoiceNotFoundError(NotFoundError):
    resource = "Invoice"


class StoreError(InvoicingError):
    """Database connectivity or query failure."""
    status_code = 500
