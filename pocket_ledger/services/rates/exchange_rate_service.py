"""
Live Exchange Rate Lookup

Fetches the home -> secondary currency rate from a public JSON endpoint
({"rates": {"TWD": 21.43, ...}}).

DESIGN DECISION: A failed lookup raises RateFetchError and changes
nothing. The caller keeps the rate it already holds. Stored transactions
are never recomputed with a new rate.
"""

import json
import urllib.error
import urllib.request
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from pocket_ledger.config import ExchangeRateSettings, get_settings


class RateFetchError(Exception):
    """The live rate could not be obtained."""
    pass


class ExchangeRateService:

    def __init__(
        self,
        settings: Optional[ExchangeRateSettings] = None,
        target_currency: Optional[str] = None,
    ):
        self._settings = settings or get_settings().exchange_rate
        self._target_currency = target_currency or get_settings().analytics.secondary_currency

    @property
    def target_currency(self) -> str:
        return self._target_currency

    @retry(
        retry=retry_if_exception_type((urllib.error.URLError, TimeoutError)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _read_payload(self) -> bytes:
        req = urllib.request.Request(self._settings.api_url, method="GET")
        req.add_header("Accept", "application/json")
        with urllib.request.urlopen(req, timeout=self._settings.timeout_seconds) as resp:
            return resp.read()

    def parse_rate(self, payload: Any) -> Decimal:
        """
        Pick the target currency out of a decoded response.

        Raises:
            RateFetchError: If the rate is missing, not a number, or not positive
        """
        rates = payload.get("rates") if isinstance(payload, dict) else None
        if not isinstance(rates, dict) or rates.get(self._target_currency) is None:
            raise RateFetchError(f"Response has no rate for {self._target_currency}")

        try:
            rate = Decimal(str(rates[self._target_currency]))
        except InvalidOperation:
            raise RateFetchError(f"Rate for {self._target_currency} is not a number")

        if not rate.is_finite() or rate <= 0:
            raise RateFetchError(f"Rate for {self._target_currency} must be positive")

        places = Decimal(1).scaleb(-self._settings.decimal_places)
        return rate.quantize(places, rounding=ROUND_HALF_UP)

    def fetch_rate(self) -> Decimal:
        """
        Fetch the current rate, rounded to the configured decimal places.

        Raises:
            RateFetchError: On network failure or an unusable response
        """
        try:
            body = self._read_payload()
        except (urllib.error.URLError, TimeoutError, OSError) as e:
            raise RateFetchError(f"Rate lookup failed: {e}")

        try:
            payload = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise RateFetchError(f"Rate response was not valid JSON: {e}")

        return self.parse_rate(payload)
