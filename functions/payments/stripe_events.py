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

"""Stripe webhook verification, checkout event parsing and checkout creation."""

import json
import logging
from typing import Any, Optional

import stripe

from ledger.credit_ledger import parse_credit_quantity
from shared.api import CheckoutCreditGrant, CheckoutSessionResult
from shared.types import CreditPricing

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED_EVENT = "checkout.session.completed"

# Metadata keys stamped on checkout sessions by create_checkout_session.
METADATA_USER_ID = "userId"
METADATA_CREDITS = "credits"


class WebhookVerificationError(Exception):
    pass


class CheckoutError(Exception):
    pass


def verify_event(
    payload: bytes, signature: Optional[str], webhook_secret: Optional[str]
) -> dict:
    """
    Verifies a Stripe webhook request and returns the decoded event.

    Args:
        payload (bytes): The raw request body, exactly as received.
        signature (str): The value of the Stripe-Signature header.
        webhook_secret (str): The endpoint's signing secret (whsec_...).

    Returns:
        The event as a plain dict.

    Raises:
        WebhookVerificationError: If the secret or header is missing, the
            signature does not match, or the body is not a JSON object.
    """
    if not webhook_secret:
        raise WebhookVerificationError("Webhook secret not configured")
    if not signature:
        raise WebhookVerificationError("Missing Stripe-Signature header")

    try:
        body = payload.decode("utf-8")
        stripe.WebhookSignature.verify_header(
            body,
            signature,
            webhook_secret,
            tolerance=stripe.Webhook.DEFAULT_TOLERANCE,
        )
        event = json.loads(body)
    except stripe.SignatureVerificationError as e:
        raise WebhookVerificationError(str(e)) from e
    except ValueError as e:
        raise WebhookVerificationError(f"Invalid payload: {e}") from e

    if not isinstance(event, dict):
        raise WebhookVerificationError("Invalid payload: expected a JSON object")
    return event


def extract_checkout_grant(event: dict) -> Optional[CheckoutCreditGrant]:
    """
    Returns the credits to grant for a completed checkout, if any.

    None is returned for other event types, and for completed checkouts whose
    metadata lacks a user id or a usable credit quantity. Those events are
    acknowledged without touching any balance.
    """
    if event.get("type") != CHECKOUT_COMPLETED_EVENT:
        return None

    session = (event.get("data") or {}).get("object") or {}
    metadata = session.get("metadata") or {}
    user_id = metadata.get(METADATA_USER_ID)
    credits = parse_credit_quantity(metadata.get(METADATA_CREDITS))

    if not user_id or credits is None:
        logger.warning(
            f"Checkout {session.get('id')} completed without usable metadata: "
            f"userId={user_id!r}, credits={metadata.get(METADATA_CREDITS)!r}"
        )
        return None

    amount_total = session.get("amount_total")
    return CheckoutCreditGrant(
        user_id=user_id,
        credits=credits,
        session_id=session.get("id"),
        amount_paid=(amount_total or 0) / 100,
    )


def create_checkout_session(
    pricing: CreditPricing,
    user_id: str,
    success_url: str,
    cancel_url: str,
    customer_email: Optional[str] = None,
) -> CheckoutSessionResult:
    """
    Creates a hosted Stripe Checkout session for a credit package.

    The session metadata carries the user id and credit quantity that the
    webhook reads back once payment completes.
    """
    session_params: dict[str, Any] = {
        "mode": "payment",
        "line_items": [{"price": pricing.stripe_price_id, "quantity": 1}],
        "success_url": success_url,
        "cancel_url": cancel_url,
        "client_reference_id": user_id,
        "metadata": {
            METADATA_USER_ID: user_id,
            METADATA_CREDITS: str(pricing.credits_amount),
        },
    }
    if customer_email:
        session_params["customer_email"] = customer_email

    try:
        session = stripe.checkout.Session.create(**session_params)
    except stripe.StripeError as e:
        logger.error(f"Stripe checkout session error for {pricing.id}: {e}")
        raise CheckoutError(str(e)) from e

    return CheckoutSessionResult(session_id=session.id, url=session.url)
