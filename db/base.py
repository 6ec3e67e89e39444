# db/base.py
import os
from functools import lru_cache

import firebase_admin
from firebase_admin import credentials, firestore

from shared.config import SECRETS_DIR


@lru_cache(maxsize=1)
def get_db():
    """Firestore client, initialised on first use from <SECRETS_DIR>/firebase.json."""
    if not firebase_admin._apps:
        firebase_path = os.path.join(SECRETS_DIR, "firebase.json")
        cred = credentials.Certificate(firebase_path)
        firebase_admin.initialize_app(cred)
    return firestore.client()
