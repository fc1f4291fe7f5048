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

# Cloud functions for the Carmelita backend - credit ledger, Stripe webhook
# and AI health check.
#
# This file containing Python cloud functions must be named main.py.
# See https://cloud.google.com/run/docs/write-functions#python for more info.

# Standard library imports
import json
from dataclasses import asdict

# Third-party library imports
from dacite import from_dict, Config
from firebase_admin import initialize_app
from firebase_functions import https_fn, logger, options

# Local application imports
from backend.config import get_settings
from backend.db import CreditStoreError
from backend.dependencies import configure_stripe, get_credit_store, get_gemini_client
from ledger import credit_ledger
from models import health_check
from payments import stripe_events
from shared.api import (
    CheckoutSessionRequest,
    HealthStatus,
    RedeemCreditsRequest,
    RedeemCreditsResult,
)
from shared.json_utils import convert_keys

STRIPE_SECRETS = ["STRIPE_SECRET_KEY", "STRIPE_WEBHOOK_SECRET"]
GEMINI_SECRETS = ["GEMINI_API_KEY"]

REDEEM_SUCCESS_MESSAGE = "Credits redeemed successfully."
REDEEM_FAILURE_MESSAGE = "Credit redemption failed."

initialize_app()

# Deployed function names are the Python function names below. They keep the
# camelCase names the web client and the Stripe dashboard already call.
ENDPOINT_NAMES = [
    "stripeWebhook",
    "canjearCreditos",
    "aiHealthCheck",
    "createCheckoutSession",
]


def _received() -> https_fn.Response:
    return https_fn.Response(
        json.dumps({"received": True}), status=200, mimetype="application/json"
    )


def _require_uid(req: https_fn.CallableRequest) -> str:
    if req.auth is None or not req.auth.uid:
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.UNAUTHENTICATED,
            "Unauthenticated request.",
        )
    return req.auth.uid


def _require_object(data) -> dict:
    if not isinstance(data, dict):
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.INVALID_ARGUMENT,
            "Request data must be an object.",
        )
    return data


@https_fn.on_request(secrets=STRIPE_SECRETS, memory=options.MemoryOption.MB_256)
def stripeWebhook(req: https_fn.Request) -> https_fn.Response:
    """
    Receives Stripe events and grants purchased credits.

    Only checkout.session.completed events with userId and credits metadata
    change a balance. Every other verified event is acknowledged as-is.
    Stripe retries any non-2xx response.
    """
    if req.method != "POST":
        return https_fn.Response("Method not allowed.", status=405)

    settings = get_settings()
    try:
        event = stripe_events.verify_event(
            req.get_data(),
            req.headers.get("Stripe-Signature"),
            settings.stripe_webhook_secret,
        )
    except stripe_events.WebhookVerificationError as e:
        logger.error(f"Stripe signature verification failed: {e}")
        return https_fn.Response(f"Webhook Error: {e}", status=400)

    grant = stripe_events.extract_checkout_grant(event)
    if grant is None:
        return _received()

    # Stripe may deliver the same event more than once; nothing here
    # deduplicates by event id, so a redelivery grants the credits again.
    try:
        credit_ledger.grant_credits(
            get_credit_store(),
            grant.user_id,
            grant.credits,
            reference_id=grant.session_id,
            amount_paid=grant.amount_paid,
        )
    except Exception as e:
        logger.error(f"Failed to grant credits to user {grant.user_id}: {e}")
        return https_fn.Response(status=500)

    logger.info(f"Credits ({grant.credits} CC) granted to user: {grant.user_id}")
    return _received()


@https_fn.on_call(memory=options.MemoryOption.MB_256)
def canjearCreditos(req: https_fn.CallableRequest) -> dict:
    """
    Debits credits from the caller's balance in exchange for a service.

    Args:
        req (https_fn.CallableRequest): The request, containing cost and
            resourceType.

    Returns:
        A dictionary representation of the RedeemCreditsResult object.
    """
    user_id = _require_uid(req)
    return process_redemption(user_id, {} if req.data is None else req.data)


def process_redemption(user_id: str, data: dict) -> dict:
    request = from_dict(
        data_class=RedeemCreditsRequest,
        data=convert_keys(_require_object(data), "camel_to_snake"),
        config=Config(check_types=False),
    )

    try:
        cost = credit_ledger.parse_cost(request.cost)
    except credit_ledger.InvalidAmountError as e:
        raise https_fn.HttpsError(https_fn.FunctionsErrorCode.INVALID_ARGUMENT, str(e))

    try:
        credit_ledger.redeem_credits(
            get_credit_store(), user_id, cost, request.resource_type
        )
    except (credit_ledger.LedgerError, CreditStoreError) as e:
        logger.error(f"Error redeeming credits for user {user_id}: {e}")
        result = RedeemCreditsResult(success=False, message=str(e))
        return asdict(result)
    except Exception as e:
        logger.error(f"Unexpected error redeeming credits for user {user_id}: {e}")
        result = RedeemCreditsResult(success=False, message=REDEEM_FAILURE_MESSAGE)
        return asdict(result)

    logger.info(f"User {user_id} redeemed {cost} CC for {request.resource_type}.")
    result = RedeemCreditsResult(success=True, message=REDEEM_SUCCESS_MESSAGE)
    return asdict(result)


@https_fn.on_call(secrets=GEMINI_SECRETS, timeout_sec=60)
def aiHealthCheck(req: https_fn.CallableRequest) -> dict:
    """
    Tests connectivity to Gemini.

    Returns:
        A dictionary representation of the HealthCheckResult object.
    """
    settings = get_settings()
    try:
        client = get_gemini_client()
    except Exception as e:
        logger.error(f"Could not build the Gemini client: {e}")
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.UNAVAILABLE,
            f"AI health check failed: {e}",
        )

    result = health_check.check_ai_health(client, model=settings.gemini_model)
    if result.status != HealthStatus.OK:
        logger.error(f"AI health check failed: {result.message}")
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.UNAVAILABLE,
            f"AI health check failed: {result.message}",
        )

    logger.info(result.message)
    return asdict(result)


@https_fn.on_call(secrets=STRIPE_SECRETS, memory=options.MemoryOption.MB_256)
def createCheckoutSession(req: https_fn.CallableRequest) -> dict:
    """
    Creates a Stripe Checkout session for a credit package.

    Args:
        req (https_fn.CallableRequest): The request, containing pricingId.

    Returns:
        A dictionary representation of the CheckoutSessionResult object.
    """
    user_id = _require_uid(req)
    email = req.auth.token.get("email") if req.auth.token else None
    return start_checkout(user_id, email, {} if req.data is None else req.data)


def start_checkout(user_id: str, email: str | None, data: dict) -> dict:
    request = from_dict(
        data_class=CheckoutSessionRequest,
        data=convert_keys(_require_object(data), "camel_to_snake"),
        config=Config(check_types=False),
    )

    if not request.pricing_id or not isinstance(request.pricing_id, str):
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.INVALID_ARGUMENT,
            "Must specify pricingId parameter.",
        )

    pricing = get_credit_store().get_pricing(request.pricing_id)
    if pricing is None:
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.NOT_FOUND,
            "The requested credit package was not found.",
        )

    if not configure_stripe():
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.FAILED_PRECONDITION,
            "Payments not configured.",
        )

    settings = get_settings()
    try:
        session = stripe_events.create_checkout_session(
            pricing,
            user_id,
            success_url=settings.checkout_success_url,
            cancel_url=settings.checkout_cancel_url,
            customer_email=email,
        )
    except stripe_events.CheckoutError as e:
        raise https_fn.HttpsError(
            https_fn.FunctionsErrorCode.UNAVAILABLE, f"Checkout failed: {e}"
        )

    logger.info(f"Checkout session {session.session_id} created for user {user_id}")
    return convert_keys(asdict(session), "snake_to_camel")
