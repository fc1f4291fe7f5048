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

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Optional


@dataclass
class RedeemCreditsRequest:
    """Request object for redeeming credits against a service."""

    # Left untyped so that validation can report bad client values itself.
    cost: Any = None
    resource_type: Optional[str] = None


@dataclass
class RedeemCreditsResult:
    success: bool
    message: str


class HealthStatus(StrEnum):
    OK = "OK"
    ERROR = "ERROR"


@dataclass
class HealthCheckResult:
    """Outcome of the AI connectivity check."""

    status: HealthStatus
    message: str


@dataclass
class CheckoutSessionRequest:
    pricing_id: Optional[str] = None


@dataclass
class CheckoutSessionResult:
    """A Stripe Checkout session the client should redirect to."""

    session_id: str
    url: Optional[str]


@dataclass
class CheckoutCreditGrant:
    """Credits to grant, as carried by a completed checkout session."""

    user_id: str
    credits: int
    session_id: Optional[str] = None
    amount_paid: float = 0.0  # USD
