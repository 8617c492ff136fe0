"""
Invoicing Service API

This module implements a FastAPI-based service for a small invoicing
application: client companies, a product catalogue, and invoices (orders)
priced with VAT at creation time, with PostgreSQL persistence.

Endpoints:
    GET /: Liveness payload with the server time
    GET /healthz: Health check endpoint for orchestration systems
    POST /api/companies, GET /api/companies: Register and list companies
    POST /api/products, GET /api/products: Register and list products
    POST /api/orders: Create an invoice (JSON or XML body)
    POST /api/orders/quote: Price an order without creating it
    GET /api/invoices: List invoices, newest first
    GET /api/invoices/export/csv: Export invoices to CSV
    GET /api/invoices/{order_id}: Get one invoice with its snapshot
    GET /api/dashboard: Headline figures

Attributes:
    app (FastAPI): The application instance built by create_app()
"""
import csv
import io
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import config, crud, invoices, schemas, validators
from .database import build_engine, build_session_factory, get_db, init_db
from .errors import InvoicingError
from .pricing import round_money

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    400: {"model": schemas.ErrorResponse, "description": "Missing or malformed input"},
    500: {"model": schemas.ErrorResponse, "description": "Database failure"},
}
NOT_FOUND_RESPONSE = {404: {"model": schemas.ErrorResponse, "description": "Referenced entity not found"}}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Dispose of the connection pool when the application shuts down."""
    yield
    logger.info("Shutting down invoicing service")
    app.state.engine.dispose()


async def order_payload(request: Request) -> schemas.OrderCreate:
    """
    Dependency that decodes an order body (JSON or XML) into a typed request.

    Raises:
        ValidationError: if the body is malformed or incomplete
        UnsupportedMediaTypeError: for any other content type
    """
    body = await request.body()
    data = validators.parse_order_payload(request.headers.get("content-type"), body)
    return validators.coerce_order(data)


def register_error_handlers(app: FastAPI) -> None:
    """Map service errors to ``{"error": message}`` responses."""

    @app.exception_handler(InvoicingError)
    async def invoicing_error_handler(request: Request, exc: InvoicingError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        message = validators.format_validation_errors(exc.errors())
        logger.warning(f"Rejected {request.method} {request.url.path}: {message}")
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})

    @app.exception_handler(SQLAlchemyError)
    async def store_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error(f"Database error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": str(exc)})


def register_routes(app: FastAPI) -> None:

    @app.get("/", response_model=dict)
    def root():
        """
        Liveness check.

        Example:
            GET /
            Response: {"status": "Backend is running", "timestamp": "2024-01-01T00:00:00+00:00"}
        """
        return {"status": "Backend is running", "timestamp": datetime.now(timezone.utc).isoformat()}

    @app.get("/healthz", response_model=dict)
    def health():
        """
        Health check endpoint for the invoicing service.

        Returns:
            dict: {"status": "healthy"} when the service is operational.
        """
        return {"status": "healthy"}

    @app.post(
        "/api/companies",
        response_model=schemas.Company,
        status_code=status.HTTP_201_CREATED,
        responses=ERROR_RESPONSES,
    )
    def create_company(company: schemas.CompanyCreate, db: Session = Depends(get_db)):
        """
        Register a client company.

        Args:
            company: Company name and address
            db: Database session (injected)

        Returns:
            Created company object
        """
        return crud.create_company(db, name=company.name, address=company.address)

    @app.get("/api/companies", response_model=List[schemas.Company])
    def list_companies(db: Session = Depends(get_db)):
        """List all companies sorted by name."""
        return crud.get_companies(db)

    @app.post(
        "/api/products",
        response_model=schemas.Product,
        status_code=status.HTTP_201_CREATED,
        responses=ERROR_RESPONSES,
    )
    def create_product(product: schemas.ProductCreate, db: Session = Depends(get_db)):
        """
        Add a product to the catalogue.

        Args:
            product: Name, unit price, VAT rate and optional stock level
            db: Database session (injected)

        Returns:
            Created product object
        """
        return crud.create_product(
            db,
            name=product.name,
            unit_price=product.unit_price,
            vat_rate=product.vat_rate,
            quantity_in_stock=product.quantity_in_stock,
        )

    @app.get("/api/products", response_model=List[schemas.Product])
    def list_products(db: Session = Depends(get_db)):
        """List all products sorted by name."""
        return crud.get_products(db)

    @app.post(
        "/api/orders",
        response_model=schemas.Order,
        status_code=status.HTTP_201_CREATED,
        responses={**ERROR_RESPONSES, **NOT_FOUND_RESPONSE, 415: {"model": schemas.ErrorResponse}},
    )
    def create_order(order: schemas.OrderCreate = Depends(order_payload), db: Session = Depends(get_db)):
        """
        Create an invoice for one product sold to one company.

        Accepts ``application/json`` or an XML document
        (``<order><company_id/><product_id/><quantity/></order>``).
        VAT and total are computed from the product's current price and
        rate and stored with a snapshot of the company and product.

        Returns:
            Created order with its computed amounts

        Raises:
            400 if a field is missing or malformed
            404 if the company or product does not exist
        """
        return invoices.create_order(
            db,
            company_id=order.company_id,
            product_id=order.product_id,
            quantity=order.quantity,
        )

    @app.post(
        "/api/orders/quote",
        response_model=schemas.OrderQuote,
        responses={**ERROR_RESPONSES, **NOT_FOUND_RESPONSE},
    )
    def quote_order(quote: schemas.OrderQuoteRequest, db: Session = Depends(get_db)):
        """Preview the amounts of an order without creating it."""
        amounts = invoices.quote_order(db, product_id=quote.product_id, quantity=quote.quantity)
        return schemas.OrderQuote(
            product_id=quote.product_id,
            quantity=quote.quantity,
            price_before_vat=amounts.price_before_vat,
            vat_amount=amounts.vat_amount,
            total_price=amounts.total_price,
        )

    @app.get("/api/invoices", response_model=List[schemas.InvoiceView])
    def list_invoices(db: Session = Depends(get_db)):
        """
        List invoices, newest first.

        Company and product fields come from the current catalog rows;
        vat_amount and total_price are the values computed at creation.
        """
        return invoices.list_invoices(db)

    @app.get("/api/invoices/export/csv")
    def export_invoices_csv(db: Session = Depends(get_db)):
        """
        Export all invoices to CSV.

        Returns:
            CSV file with columns: id, order_date, company_name, product_name,
            quantity, vat_amount, total_price
        """
        rows = invoices.list_invoices(db)

        output = io.StringIO()
        writer = csv.writer(output)

        writer.writerow(["id", "order_date", "company_name", "product_name", "quantity", "vat_amount", "total_price"])
        for row in rows:
            writer.writerow([
                row["id"],
                row["order_date"].isoformat(),
                row["company_name"],
                row["product_name"],
                row["quantity"],
                str(round_money(row["vat_amount"])),
                str(round_money(row["total_price"])),
            ])

        output.seek(0)
        return StreamingResponse(
            iter([output.getvalue()]),
            media_type="text/csv",
            headers={"Content-Disposition": "attachment; filename=invoices.csv"},
        )

    @app.get(
        "/api/invoices/{order_id}",
        response_model=schemas.InvoiceDetail,
        responses=NOT_FOUND_RESPONSE,
    )
    def get_invoice(order_id: int, db: Session = Depends(get_db)):
        """Get one invoice, including the company/product snapshot taken at creation."""
        return invoices.get_invoice(db, order_id)

    @app.get("/api/dashboard", response_model=schemas.DashboardSummary)
    def dashboard(db: Session = Depends(get_db)):
        """
        Headline figures: total revenue, invoice, product and company counts,
        and the five most recent invoices.
        """
        return invoices.summarize(db)


def create_app(engine: Optional[Engine] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        engine: Engine to use; one is built from DATABASE_URL when omitted.
            The application owns it and disposes of it at shutdown.

    Returns:
        Configured FastAPI instance
    """
    engine = engine or build_engine()
    init_db(engine)

    app = FastAPI(title="invoicing-service", lifespan=lifespan)
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    register_routes(app)
    return app


app = create_app()


# Development server entry point
if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True)
