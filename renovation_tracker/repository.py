from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from renovation_tracker.config import DEFAULT_STORAGE_KEY
from renovation_tracker.core.models import (
    Transaction,
    TransactionDraft,
    ValidationError,
    validate_draft,
)
from renovation_tracker.stores.base import BaseStore

logger = logging.getLogger(__name__)


class MutationStatus(str, Enum):
    APPLIED = "applied"
    NOT_FOUND = "not_found"


@dataclass
class MutationResult:
    status: MutationStatus
    persisted: bool = False

    @property
    def applied(self) -> bool:
        return self.status is MutationStatus.APPLIED


class TransactionRepository:
    """Ordered list of transactions backed by a key-value store.

    The list is read from the store once, on first access, and every
    mutation writes the whole list back before returning. If that write
    fails the in-memory change is kept; ``last_persist_ok`` and the
    ``persisted`` flag on :class:`MutationResult` report it.
    """

    def __init__(self, store: BaseStore, key: str = DEFAULT_STORAGE_KEY) -> None:
        self.store = store
        self.key = key
        self._transactions: Optional[List[Transaction]] = None
        self.last_persist_ok = True

    def _items(self) -> List[Transaction]:
        if self._transactions is None:
            self._transactions = self._load()
        return self._transactions

    def _load(self) -> List[Transaction]:
        raw = self.store.load(self.key, [])
        if not isinstance(raw, list):
            logger.warning("Stored value for %r is not a list; starting empty", self.key)
            return []
        txs = []
        seen = set()
        for entry in raw:
            try:
                tx = Transaction.from_dict(entry)
            except ValidationError as exc:
                logger.warning("Skipping unreadable transaction record: %s", exc)
                continue
            if tx.id in seen:
                logger.warning("Skipping transaction record with duplicate id %r", tx.id)
                continue
            seen.add(tx.id)
            txs.append(tx)
        return txs

    def _persist(self) -> bool:
        payload = [tx.to_dict() for tx in self._items()]
        self.last_persist_ok = self.store.save(self.key, payload)
        if not self.last_persist_ok:
            logger.error("Transactions changed in memory but were not persisted")
        return self.last_persist_ok

    def _index(self, tx_id: str) -> Optional[int]:
        for idx, tx in enumerate(self._items()):
            if tx.id == tx_id:
                return idx
        return None

    def list(self) -> List[Transaction]:
        """Return a copy of the current list, newest inserted first."""
        return list(self._items())

    def get(self, tx_id: str) -> Optional[Transaction]:
        idx = self._index(tx_id)
        return None if idx is None else self._items()[idx]

    def create(self, draft: TransactionDraft) -> Transaction:
        clean = validate_draft(draft)
        existing = {tx.id for tx in self._items()}
        new_id = str(uuid.uuid4())
        while new_id in existing:
            new_id = str(uuid.uuid4())
        tx = Transaction.from_draft(clean, new_id)
        self._items().insert(0, tx)
        self._persist()
        logger.debug("Created transaction %s", tx.id)
        return tx

    def replace(self, transaction: Transaction) -> MutationResult:
        idx = self._index(transaction.id)
        if idx is None:
            return MutationResult(MutationStatus.NOT_FOUND)
        clean = validate_draft(transaction.to_draft())
        self._items()[idx] = Transaction.from_draft(clean, transaction.id)
        return MutationResult(MutationStatus.APPLIED, persisted=self._persist())

    def remove(self, tx_id: str) -> MutationResult:
        idx = self._index(tx_id)
        if idx is None:
            return MutationResult(MutationStatus.NOT_FOUND)
        del self._items()[idx]
        return MutationResult(MutationStatus.APPLIED, persisted=self._persist())
