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

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, List, Optional


class UserRole(StrEnum):
    GUEST = "GUEST"
    USER = "USER"
    AFFILIATE = "AFFILIATE"
    SUPERADMIN = "SUPERADMIN"


class ExpenseTag(StrEnum):
    """Urgency label for an expense."""

    RED = "RED"
    YELLOW = "YELLOW"
    GREEN = "GREEN"


class TaxRegime(StrEnum):
    RESICO = "RESICO"
    ACT_EMPRESARIAL = "ACT_EMPRESARIAL"


class MembershipTier(StrEnum):
    BASIC = "BASIC"
    PREMIUM = "PREMIUM"


class FinancialRecordType(StrEnum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class CreditTransactionType(StrEnum):
    # Credits bought through a Stripe checkout.
    PURCHASE = "PURCHASE"
    # Credits spent on a service.
    REDEMPTION = "REDEMPTION"


@dataclass
class FinancialGoal:
    """A savings target ("savings seed") owned by a user."""

    id: str
    name: str
    target_amount: float
    current_amount: float = 0.0
    progress: float = 0.0  # 0.0 to 1.0
    is_completed: bool = False
    watering_count: int = 0


@dataclass
class FinancialRecord:
    """An income or expense entry in a user's financial register."""

    id: str
    user_id: str
    type: FinancialRecordType
    description: str
    amount: float
    date: Any  # Firestore timestamp
    tag: Optional[ExpenseTag] = None  # Only meaningful for EXPENSE


@dataclass
class User:
    """Schema of the documents in the users collection."""

    uid: str
    email: str = ""
    name: str = ""
    role: UserRole = UserRole.USER
    business_type: str = ""
    financial_goals: List[FinancialGoal] = field(default_factory=list)
    credits: int = 0
    created_at: Any = None  # Firestore timestamp
    last_login: Any = None  # Firestore timestamp


@dataclass
class CreditTransaction:
    """
    Append-only record of a credit purchase or redemption.

    Written in the same transaction as the balance change it describes and
    never updated afterwards.
    """

    user_id: str
    type: CreditTransactionType
    amount: int  # Signed change applied to the balance
    cost: int  # Credits spent; 0 for a purchase
    service_used: str
    amount_paid_usd: float = 0.0  # Checkout total; 0 for a redemption
    balance_after: Optional[int] = None
    reference_id: Optional[str] = None
    created_timestamp: Any = None  # Firestore timestamp, set by the store


@dataclass
class CreditPricing:
    """A purchasable credit package."""

    id: str
    name: str
    price_usd: float
    credits_amount: int
    stripe_price_id: str
