"""
Process-wide clients shared by every function invocation.

Each getter builds its client on first use and hands back the same instance
afterwards; nothing here is re-created per call. Construction is guarded by
a lock because gen2 functions serve concurrent requests in one process.
"""

from __future__ import annotations

import logging
import threading

import stripe
from firebase_admin import firestore
from google import genai

from backend.config import get_settings
from backend.db import CreditStore, FirestoreCreditStore, InMemoryCreditStore
from models import gemini

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_credit_store: CreditStore | None = None
_gemini_client: genai.Client | None = None
_stripe_configured = False


def get_credit_store() -> CreditStore:
    """
    Return a singleton credit store so the Firestore client is reused.
    """
    global _credit_store
    if _credit_store:
        return _credit_store

    with _lock:
        if _credit_store:
            return _credit_store
        settings = get_settings()
        if settings.use_in_memory_backends:
            _credit_store = InMemoryCreditStore()
        else:
            _credit_store = FirestoreCreditStore(firestore.client())
        return _credit_store


def get_gemini_client() -> genai.Client:
    global _gemini_client
    if _gemini_client:
        return _gemini_client

    with _lock:
        if _gemini_client:
            return _gemini_client
        settings = get_settings()
        _gemini_client = gemini.create_client(settings.gemini_api_key)
        return _gemini_client


def configure_stripe() -> bool:
    """
    Set the Stripe API key once. Returns False when no key is configured.
    """
    global _stripe_configured
    if _stripe_configured:
        return True

    with _lock:
        if _stripe_configured:
            return True
        settings = get_settings()
        if not settings.stripe_secret_key:
            logger.error("STRIPE_SECRET_KEY is not configured.")
            return False
        stripe.api_key = settings.stripe_secret_key
        _stripe_configured = True
        return True


def reset() -> None:
    """Forget all cached clients (useful in tests)."""
    global _credit_store, _gemini_client, _stripe_configured
    with _lock:
        _credit_store = None
        _gemini_client = None
        _stripe_configured = False
