# renovation_tracker/manual.py
import yaml

from renovation_tracker.core.models import TransactionDraft, TransactionType


def load_manual_transactions(path):
    """Load transaction drafts from a YAML list (ids in the file are ignored)."""
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or []
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of entries in {path}")

    drafts = []
    for entry in data:
        if not isinstance(entry, dict):
            raise ValueError(f"Manual entry must be a mapping: {entry!r}")
        date_value = entry.get('date')
        if not date_value:
            raise ValueError(f"Missing 'date' in manual entry: {entry}")
        drafts.append(
            TransactionDraft(
                date=str(date_value),
                description=entry.get('description', ''),
                amount=entry.get('amount', 0.0),
                category=entry.get('category'),
                type=entry.get('type', TransactionType.EXPENSE.value),
                vendor=entry.get('vendor'),
                attachment_name=entry.get('attachmentName'),
            )
        )
    return drafts
