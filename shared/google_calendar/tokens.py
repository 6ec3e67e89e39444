# google_calendar/tokens.py
import logging
from datetime import datetime
from typing import Optional

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request as GoogleRequest
from google.oauth2.credentials import Credentials

from db.base import get_db

logger = logging.getLogger(__name__)

TOKEN_COLLECTION = "google_tokens"


def get_valid_credentials(user_id: str) -> Optional[Credentials]:
    creds = load_token_for_user(user_id)
    if creds is None:
        return None

    try:
        if creds.expired and creds.refresh_token:
            creds.refresh(GoogleRequest())
            save_token_for_user(user_id, creds)  # persist the refreshed token
        return creds
    except RefreshError:
        logger.warning("[GCAL] Refresh failed for user %s, re-auth needed", user_id)
        return None


def save_token_for_user(user_id: str, credentials: Credentials) -> None:
    get_db().collection(TOKEN_COLLECTION).document(user_id).set({
        "token": credentials.token,
        "refresh_token": credentials.refresh_token,
        "token_uri": credentials.token_uri,
        "client_id": credentials.client_id,
        "client_secret": credentials.client_secret,
        "scopes": credentials.scopes,
        "expiry": credentials.expiry.isoformat() if credentials.expiry else None,
    })


def load_token_for_user(user_id: str) -> Optional[Credentials]:
    doc = get_db().collection(TOKEN_COLLECTION).document(user_id).get()
    if not doc.exists:
        logger.info("[GCAL] No calendar token for user %s", user_id)
        return None

    data = doc.to_dict()
    expiry = datetime.fromisoformat(data["expiry"]) if data.get("expiry") else None

    return Credentials(
        token=data["token"],
        refresh_token=data.get("refresh_token"),
        token_uri=data["token_uri"],
        client_id=data["client_id"],
        client_secret=data["client_secret"],
        scopes=data["scopes"],
        expiry=expiry,
    )
