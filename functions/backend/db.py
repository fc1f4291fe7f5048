"""
Credit store abstraction for Firestore and an in-memory test implementation.

Every balance mutation goes through `apply_balance_change`, which reads the
user's balance, lets the caller compute the new one (or abort by raising),
then writes the balance and the matching credit transaction as one unit.
"""

from __future__ import annotations

import threading
from dataclasses import asdict, replace
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Protocol

from dacite import Config, from_dict
from firebase_admin import firestore
from google.cloud.firestore_v1 import SERVER_TIMESTAMP

from shared.firebase_constants import (
    CREDIT_PRICING_COLLECTION,
    CREDIT_TRANSACTIONS_COLLECTION,
    CREDITS_FIELD,
    USERS_COLLECTION,
)
from shared.json_utils import convert_keys
from shared.types import CreditPricing, CreditTransaction

BalanceChange = Callable[[int], int]


class CreditStoreError(Exception):
    pass


class UserNotFoundError(CreditStoreError):
    def __init__(self, user_id: str):
        super().__init__(f"User {user_id} not found.")
        self.user_id = user_id


class CreditStore(Protocol):
    """Interface for credit balance persistence."""

    def apply_balance_change(
        self, user_id: str, change: BalanceChange, entry: CreditTransaction
    ) -> int:
        """
        Atomically applies `change` to the user's balance.

        `change` receives the current balance and returns the new one; any
        exception it raises aborts the write. `entry.balance_after` is filled
        in before the entry is stored. Returns the new balance.
        """
        ...

    def get_pricing(self, pricing_id: str) -> Optional[CreditPricing]:
        ...


def _current_credits(data: Optional[dict]) -> int:
    return (data or {}).get(CREDITS_FIELD) or 0


class FirestoreCreditStore:
    """Firestore-backed store; balance updates run in a Firestore transaction."""

    def __init__(self, db):
        self.db = db

    def apply_balance_change(
        self, user_id: str, change: BalanceChange, entry: CreditTransaction
    ) -> int:
        user_ref = self.db.collection(USERS_COLLECTION).document(user_id)
        entry_ref = self.db.collection(CREDIT_TRANSACTIONS_COLLECTION).document()
        transaction = self.db.transaction()

        # Firestore re-runs this function if the user document changes
        # before commit, so `change` always sees the committed balance.
        @firestore.transactional
        def _apply_transaction(transaction, user_ref):
            snapshot = user_ref.get(transaction=transaction)
            if not snapshot.exists:
                raise UserNotFoundError(user_id)

            new_balance = change(_current_credits(snapshot.to_dict()))
            transaction.update(user_ref, {CREDITS_FIELD: new_balance})

            entry_data = replace(
                entry, balance_after=new_balance, created_timestamp=SERVER_TIMESTAMP
            )
            transaction.set(entry_ref, convert_keys(asdict(entry_data), "snake_to_camel"))
            return new_balance

        return _apply_transaction(transaction, user_ref)

    def get_pricing(self, pricing_id: str) -> Optional[CreditPricing]:
        doc = self.db.collection(CREDIT_PRICING_COLLECTION).document(pricing_id).get()
        if not doc.exists:
            return None
        data = convert_keys(doc.to_dict(), "camel_to_snake")
        data["id"] = doc.id
        return from_dict(
            data_class=CreditPricing, data=data, config=Config(check_types=False)
        )


class InMemoryCreditStore:
    """Simple in-memory credit store for development and tests."""

    def __init__(self):
        self.balances: Dict[str, int] = {}
        self.transactions: List[CreditTransaction] = []
        self.pricing: Dict[str, CreditPricing] = {}
        self._lock = threading.Lock()

    def create_user(self, user_id: str, credits: int = 0) -> None:
        with self._lock:
            self.balances[user_id] = credits

    def add_pricing(self, pricing: CreditPricing) -> None:
        self.pricing[pricing.id] = pricing

    def get_balance(self, user_id: str) -> int:
        with self._lock:
            if user_id not in self.balances:
                raise UserNotFoundError(user_id)
            return self.balances[user_id]

    def apply_balance_change(
        self, user_id: str, change: BalanceChange, entry: CreditTransaction
    ) -> int:
        with self._lock:
            if user_id not in self.balances:
                raise UserNotFoundError(user_id)

            new_balance = change(self.balances[user_id])
            self.balances[user_id] = new_balance
            self.transactions.append(
                replace(
                    entry,
                    balance_after=new_balance,
                    created_timestamp=datetime.now(timezone.utc),
                )
            )
            return new_balance

    def get_pricing(self, pricing_id: str) -> Optional[CreditPricing]:
        return self.pricing.get(pricing_id)

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        with self._lock:
            self.balances.clear()
            self.transactions.clear()
        self.pricing.clear()
