"""Exchange rate services."""

from pocket_ledger.services.rates.exchange_rate_service import (
    ExchangeRateService,
    RateFetchError,
)

__all__ = [
    "ExchangeRateService",
    "RateFetchError",
]
