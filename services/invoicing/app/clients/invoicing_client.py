"""
HTTP client for the Invoicing API.

Used by front ends and scripts to fetch the catalog and invoices, create
entities, and preview an order total before submitting it.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional

import httpx

from .. import config
from ..pricing import compute_invoice_amounts

logger = logging.getLogger(__name__)

COLLECTIONS = ("companies", "products", "invoices")


@dataclass
class DashboardData:
    """Collections shown by the UI, plus notifications for failed fetches."""
    companies: List[dict] = field(default_factory=list)
    products: List[dict] = field(default_factory=list)
    invoices: List[dict] = field(default_factory=list)
    notifications: List[str] = field(default_factory=list)


def preview_total(product: Optional[dict], quantity: Optional[int]) -> Decimal:
    """
    Total including VAT shown on the order form before submission.

    Args:
        product: Selected product as returned by the API, or None
        quantity: Quantity typed in the form (None or 0 counts as 0)

    Returns:
        Decimal total, 0 when no product is selected
    """
    if not product:
        return Decimal(0)
    amounts = compute_invoice_amounts(product["unit_price"], quantity or 0, product["vat_rate"])
    return amounts.total_price


class InvoicingClient:
    """
    Async client for the Invoicing API.

    Args:
        base_url: API root (defaults to INVOICING_API_URL)
        timeout: Request timeout in seconds
        transport: Optional httpx transport, e.g. httpx.ASGITransport
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = config.CLIENT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or config.INVOICING_API_URL).rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport)

    async def _get(self, path: str) -> Any:
        async with self._client() as client:
            response = await client.get(path)
            response.raise_for_status()
            return response.json()

    async def _post(self, path: str, payload: Dict[str, Any]) -> Any:
        async with self._client() as client:
            response = await client.post(path, json=payload)
            response.raise_for_status()
            return response.json()

    async def _get_collection(self, name: str, data: DashboardData) -> List[dict]:
        try:
            return await self._get(f"/api/{name}")
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Failed to fetch {name}: {e}")
            data.notifications.append(f"Failed to fetch {name} from server")
            return []

    async def fetch_dashboard_data(self) -> DashboardData:
        """
        Fetch companies, products and invoices concurrently.

        A collection that cannot be fetched is returned empty and a
        notification is recorded instead of raising.
        """
        data = DashboardData()
        results = await asyncio.gather(*(self._get_collection(name, data) for name in COLLECTIONS))
        data.companies, data.products, data.invoices = results
        return data

    async def create_company(self, name: str, address: str) -> dict:
        """
        Register a company.

        Raises:
            httpx.HTTPStatusError: if the API rejects the request
        """
        return await self._post("/api/companies", {"name": name, "address": address})

    async def create_product(self, name: str, unit_price, vat_rate, quantity_in_stock: int = 0) -> dict:
        """
        Add a product. Prices are sent as strings to keep them exact.

        Raises:
            httpx.HTTPStatusError: if the API rejects the request
        """
        return await self._post(
            "/api/products",
            {
                "name": name,
                "unit_price": str(unit_price),
                "vat_rate": str(vat_rate),
                "quantity_in_stock": quantity_in_stock,
            },
        )

    async def create_order(self, company_id: int, product_id: int, quantity: int) -> dict:
        """
        Create an invoice.

        Raises:
            httpx.HTTPStatusError: 400 for bad input, 404 for unknown company/product
        """
        return await self._post(
            "/api/orders",
            {"company_id": int(company_id), "product_id": int(product_id), "quantity": quantity},
        )

    async def get_invoice(self, order_id: int) -> dict:
        """Fetch one invoice with its snapshot."""
        return await self._get(f"/api/invoices/{order_id}")

    async def download_invoices_csv(self) -> str:
        """Download the CSV export of all invoices."""
        async with self._client() as client:
            response = await client.get("/api/invoices/export/csv")
            response.raise_for_status()
            return response.text
