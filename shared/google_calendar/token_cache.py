# google_calendar/token_cache.py
import threading
from typing import Optional

from google.oauth2.credentials import Credentials

from shared.google_calendar.tokens import get_valid_credentials

# Runtime in-memory cache
TOKEN_CACHE: dict[str, Credentials] = {}
_lock = threading.Lock()


def get_cached_credentials(user_id: str) -> Optional[Credentials]:
    with _lock:
        creds = TOKEN_CACHE.get(user_id)
    if creds and not (creds.expired and not creds.refresh_token):
        return creds

    # Cold start or dead token: load and refresh
    creds = get_valid_credentials(user_id)
    with _lock:
        if creds:
            TOKEN_CACHE[user_id] = creds
        else:
            TOKEN_CACHE.pop(user_id, None)
    return creds


def clear_cached_credentials(user_id: str) -> None:
    with _lock:
        TOKEN_CACHE.pop(user_id, None)
