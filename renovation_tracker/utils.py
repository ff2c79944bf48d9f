# renovation_tracker/utils.py
from decimal import Decimal, ROUND_HALF_UP

from renovation_tracker.core.models import Category

ALL_CATEGORIES = "All"


def filter_transactions(transactions, search=None, category=None):
    """
    Keep transactions whose description or vendor contains *search*
    (case-insensitive) and, unless *category* is None or "All", whose
    category matches.
    """
    needle = (search or "").lower()
    wanted = None
    if category and category != ALL_CATEGORIES:
        wanted = Category(category)

    matches = []
    for tx in transactions:
        if needle and needle not in tx.description.lower() and needle not in (tx.vendor or "").lower():
            continue
        if wanted is not None and tx.category != wanted:
            continue
        matches.append(tx)
    return matches


def sort_for_display(transactions):
    """
    Newest date first; entries on the same date keep their list order.
    """
    return sorted(transactions, key=lambda tx: tx.date, reverse=True)


def recent_transactions(transactions, limit=5):
    """
    The most recently added entries, i.e. the head of the list (not by date).
    """
    return list(transactions)[:limit]


def _group_indian(digits):
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_currency(amount, symbol="₹"):
    """
    Whole-unit amount with Indian digit grouping, e.g. 250600 -> "₹2,50,600".
    """
    rounded = Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    sign = "-" if rounded < 0 else ""
    return f"{sign}{symbol}{_group_indian(str(abs(rounded)))}"
