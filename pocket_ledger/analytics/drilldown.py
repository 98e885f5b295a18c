"""
Itemized Category Drill-Down

Breaks a category's spending down by receipt item, reconciling item
lines against transaction totals.

For every transaction in scope:
- With items: each item's price goes to the bucket for its name. If the
  transaction amount exceeds the item sum by more than the tolerance,
  the exact remainder goes to the Unclassified bucket.
- Without items: the whole amount goes to the Unclassified bucket.

An item whose name equals the Unclassified label is merged into that
bucket whenever the bucket exists, so no two buckets share a name.

The remainder is never negative. A receipt whose items add up to more
than its amount never takes anything away from another bucket; by
default the overshoot is kept as is, or (policy.scale_over_itemized)
that receipt's items are scaled down to the transaction amount.

Conservation: the bucket totals add up to the in-scope transaction
amounts, except for remainders at or below the tolerance and for
unscaled overshoot.
"""

from decimal import Decimal
from typing import Iterable, Optional

from pocket_ledger.analytics.filters import filter_by_category, filter_by_month
from pocket_ledger.models.views import ItemBucket, ReconciliationPolicy


DEFAULT_POLICY = ReconciliationPolicy()


def reconcile_items(
    transactions: Iterable,
    policy: ReconciliationPolicy = DEFAULT_POLICY,
) -> list[ItemBucket]:
    """
    Reconcile an already-scoped set of transactions into item buckets.

    Sorted by total descending, then name.
    """
    item_totals: dict[str, Decimal] = {}
    unclassified = Decimal("0")

    for transaction in transactions:
        if not transaction.has_items:
            unclassified += transaction.amount_primary
            continue

        items_sum = transaction.items_total
        scale: Optional[Decimal] = None
        if (
            policy.scale_over_itemized
            and items_sum > transaction.amount_primary
        ):
            scale = transaction.amount_primary / items_sum

        for item in transaction.items:
            price = item.price if scale is None else item.price * scale
            item_totals[item.name] = item_totals.get(item.name, Decimal("0")) + price

        remainder = transaction.amount_primary - items_sum
        if remainder > policy.tolerance:
            unclassified += remainder

    if unclassified > policy.tolerance:
        # An item named like the remainder bucket joins it
        unclassified += item_totals.pop(policy.unclassified_label, Decimal("0"))

    buckets = [ItemBucket(name=name, total=total) for name, total in item_totals.items()]
    if unclassified > policy.tolerance:
        buckets.append(ItemBucket(
            name=policy.unclassified_label,
            total=unclassified,
            is_unclassified=True,
        ))

    buckets.sort(key=lambda bucket: bucket.name)
    buckets.sort(key=lambda bucket: bucket.total, reverse=True)
    return buckets


def itemized_drilldown(
    transactions: Iterable,
    category,
    month: Optional[str] = None,
    policy: ReconciliationPolicy = DEFAULT_POLICY,
) -> list[ItemBucket]:
    """Item breakdown of one expense category, optionally within one month."""
    in_scope = filter_by_category(filter_by_month(transactions, month), category)
    return reconcile_items(in_scope, policy)
