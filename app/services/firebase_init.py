from __future__ import annotations
import json

import firebase_admin
from firebase_admin import credentials

from config import settings
from app.scripts.logging_config import get_logger

logger = get_logger("firebase")


def init_firebase() -> bool:
    """Initialise the default Firebase app once. False when initialisation failed."""
    try:
        firebase_admin.get_app()
        return True
    except ValueError:
        pass
    cred_obj = None
    try:
        if settings.FIREBASE_CREDENTIALS_JSON_STRING:
            cred_obj = credentials.Certificate(json.loads(settings.FIREBASE_CREDENTIALS_JSON_STRING))
            logger.info("Firebase credentials loaded from FIREBASE_CREDENTIALS_JSON_STRING.")
        elif settings.GOOGLE_APPLICATION_CREDENTIALS:
            cred_obj = credentials.Certificate(settings.GOOGLE_APPLICATION_CREDENTIALS)
            logger.info("Firebase credentials loaded from GOOGLE_APPLICATION_CREDENTIALS file.")
        if cred_obj:
            firebase_admin.initialize_app(cred_obj)
        else:
            # application default credentials
            firebase_admin.initialize_app()
        logger.info("Firebase initialized successfully.")
        return True
    except Exception as e:
        logger.exception("Firebase initialization failed: %s", e)
        return False
