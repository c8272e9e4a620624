"""
Firebase initialization and helpers
"""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Any
import base64
import logging
import os

import firebase_admin
from firebase_admin import auth, credentials, exceptions, firestore

from app.core.config import settings

logger = logging.getLogger(__name__)


def _load_credentials_info() -> dict[str, Any] | None:
    if settings.FIREBASE_CREDENTIALS_JSON:
        return json.loads(settings.FIREBASE_CREDENTIALS_JSON)
    if settings.FIREBASE_CREDENTIALS_B64:
        decoded = base64.b64decode(settings.FIREBASE_CREDENTIALS_B64).decode("utf-8")
        return json.loads(decoded)
    if settings.FIREBASE_CREDENTIALS_FILE and os.path.exists(settings.FIREBASE_CREDENTIALS_FILE):
        with open(settings.FIREBASE_CREDENTIALS_FILE, "r", encoding="utf-8") as f:
            return json.load(f)
    return None


def ensure_firebase_app() -> None:
    """Initialize the admin SDK once.

    Expects credentials via one of: FIREBASE_CREDENTIALS_JSON, FIREBASE_CREDENTIALS_B64, FIREBASE_CREDENTIALS_FILE.
    """
    if firebase_admin._apps:
        return

    info = _load_credentials_info()
    if not info:
        raise RuntimeError("Firebase credentials not provided. Set FIREBASE_CREDENTIALS_FILE, FIREBASE_CREDENTIALS_JSON, or FIREBASE_CREDENTIALS_B64")

    cred = credentials.Certificate(info)
    firebase_admin.initialize_app(cred)
    logger.info("Firebase admin SDK initialized")


@lru_cache(maxsize=1)
def get_firestore_client():
    """Return a cached Firestore client"""
    ensure_firebase_app()
    return firestore.client()


def verify_id_token(token: str) -> str | None:
    """Verify a Firebase ID token and return its uid, or None if invalid"""
    try:
        ensure_firebase_app()
        decoded = auth.verify_id_token(token)
    except (
        ValueError,
        auth.InvalidIdTokenError,
        auth.ExpiredIdTokenError,
        auth.RevokedIdTokenError,
        auth.UserDisabledError,
    ) as e:
        logger.warning(f"Rejected identity token: {e}")
        return None
    except (auth.CertificateFetchError, exceptions.FirebaseError, RuntimeError) as e:
        logger.error(f"Could not verify identity token: {e}")
        return None
    return decoded.get("uid")
