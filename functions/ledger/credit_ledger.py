# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

"""Credit grant and redemption rules on top of a CreditStore."""

import logging
import math
from typing import Any, Optional

from backend.db import CreditStore
from shared.types import CreditTransactionType, CreditTransaction

logger = logging.getLogger(__name__)

INSUFFICIENT_CREDITS_MESSAGE = "Insufficient credits."
INVALID_COST_MESSAGE = "Invalid cost."


class LedgerError(Exception):
    pass


class InsufficientCreditsError(LedgerError):
    def __init__(self, balance: int, cost: int):
        super().__init__(INSUFFICIENT_CREDITS_MESSAGE)
        self.balance = balance
        self.cost = cost


class InvalidAmountError(LedgerError, ValueError):
    pass


def parse_cost(cost: Any) -> int:
    """
    Validates a redemption cost sent by a client.

    The cost must be a positive number with no fractional part, since
    balances are whole credits. Booleans are rejected even though Python
    treats them as ints.
    """
    if isinstance(cost, bool) or not isinstance(cost, (int, float)):
        raise InvalidAmountError(INVALID_COST_MESSAGE)
    if isinstance(cost, float):
        if not math.isfinite(cost) or not cost.is_integer():
            raise InvalidAmountError(INVALID_COST_MESSAGE)
        cost = int(cost)
    if cost <= 0:
        raise InvalidAmountError(INVALID_COST_MESSAGE)
    return cost


def parse_credit_quantity(credits: Any) -> Optional[int]:
    """
    Parses the credit quantity carried in checkout metadata.

    Only plain ASCII digit strings are accepted. Returns None for anything
    else (missing, signed, underscored or non-ASCII numerals) so the caller
    can acknowledge the event without granting.
    """
    if not isinstance(credits, str):
        return None
    credits = credits.strip()
    if not (credits.isascii() and credits.isdigit()):
        return None
    return int(credits)


def grant_credits(
    store: CreditStore,
    user_id: str,
    credits: int,
    reference_id: Optional[str] = None,
    amount_paid: float = 0.0,
) -> int:
    """Adds purchased credits to a user's balance and returns the new balance."""
    if credits < 0:
        raise InvalidAmountError(f"Cannot grant a negative amount: {credits}")

    entry = CreditTransaction(
        user_id=user_id,
        type=CreditTransactionType.PURCHASE,
        amount=credits,
        cost=0,
        amount_paid_usd=amount_paid,
        service_used="STRIPE_CHECKOUT",
        reference_id=reference_id,
    )
    new_balance = store.apply_balance_change(
        user_id, lambda balance: balance + credits, entry
    )
    logger.info(f"Granted {credits} CC to user {user_id}, balance {new_balance}")
    return new_balance


def redeem_credits(
    store: CreditStore, user_id: str, cost: int, resource_type: Optional[str]
) -> int:
    """
    Debits `cost` credits for a service and returns the new balance.

    The sufficiency check runs inside the store transaction, so concurrent
    redemptions can never take the balance below zero.

    Raises:
        InvalidAmountError: If cost is not a positive whole number.
        InsufficientCreditsError: If the balance is lower than cost.
        UserNotFoundError: If the user has no document.
    """
    cost = parse_cost(cost)

    def _debit(balance: int) -> int:
        if balance < cost:
            raise InsufficientCreditsError(balance, cost)
        return balance - cost

    entry = CreditTransaction(
        user_id=user_id,
        type=CreditTransactionType.REDEMPTION,
        amount=-cost,
        cost=cost,
        service_used=resource_type or "",
    )
    return store.apply_balance_change(user_id, _debit, entry)
