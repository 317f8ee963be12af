# spincart/services/esewa_client.py
from decimal import Decimal

import requests

from spincart.utils.retry import http_retry
from spincart.utils.settings import ESEWA_STATUS_URL, HTTP_TIMEOUT_SECONDS
from spincart.utils.logging import get_logger

logger = get_logger(__name__)


class EsewaClient:
    """Sprawdzanie statusu transakcji w eSewa (GET status API)."""

    def __init__(self, status_url: str | None = None, timeout: int = HTTP_TIMEOUT_SECONDS):
        self.status_url = status_url or ESEWA_STATUS_URL
        self.timeout = timeout

    @http_retry()
    def fetch_status(self, product_code: str, total_amount: Decimal, transaction_uuid: str) -> dict:
        params = {
            "product_code": product_code,
            "total_amount": str(total_amount),
            "transaction_uuid": transaction_uuid,
        }
        logger.info(f"EsewaClient GET {self.status_url} uuid={transaction_uuid}")

        resp = requests.get(self.status_url, params=params, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()
