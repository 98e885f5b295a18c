"""
Price Watch

Tracks what each receipt item has cost across every transaction that
carries itemized lines. The transaction note is used as the source
(merchant) of each observed price.

Ordering rules:
- "last" and "best source" ties on date go to the record later in the
  log, since the log is append-only.
- Items are ranked by how often they were seen, most frequent first;
  equally frequent items keep the order they were first seen in.
"""

from decimal import Decimal
from typing import Iterable

from pocket_ledger.models.views import ItemPriceStats, PricePoint


UNKNOWN_SOURCE = "Unknown"


def price_watch(transactions: Iterable) -> list[ItemPriceStats]:
    """Per-item min/max/avg/last price and the cheapest source."""
    observations: dict[str, list[tuple[int, PricePoint]]] = {}
    sequence = 0

    for transaction in transactions:
        if not transaction.has_items:
            continue
        source = transaction.note or UNKNOWN_SOURCE
        for item in transaction.items:
            observations.setdefault(item.name, []).append((
                sequence,
                PricePoint(price=item.price, source=source, date=transaction.date),
            ))
            sequence += 1

    stats = [
        _summarize(name, records)
        for name, records in observations.items()
        if records
    ]
    stats.sort(key=lambda s: s.times_seen, reverse=True)
    return stats


def _summarize(name: str, records: list[tuple[int, PricePoint]]) -> ItemPriceStats:
    # Newest first: later date wins, then later position in the log.
    newest_first = sorted(
        records,
        key=lambda record: (record[1].date, record[0]),
        reverse=True,
    )
    prices = [point.price for _, point in records]
    min_price = min(prices)

    best = next(point for _, point in newest_first if point.price == min_price)

    return ItemPriceStats(
        name=name,
        min_price=min_price,
        max_price=max(prices),
        avg_price=sum(prices, Decimal("0")) / len(prices),
        last_price=newest_first[0][1].price,
        best_source=best.source,
        history=tuple(point for _, point in newest_first),
    )


def search_price_watch(stats: Iterable[ItemPriceStats], term: str) -> list[ItemPriceStats]:
    """Case-insensitive substring filter over item names."""
    needle = term.strip().lower()
    if not needle:
        return list(stats)
    return [s for s in stats if needle in s.name.lower()]
