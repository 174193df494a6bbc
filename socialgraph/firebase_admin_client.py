"""
Lazy Firebase Admin app and Firestore client for the follow engine.

Both are built on first use from ``FIREBASE_SERVICE_ACCOUNT_FILE``.
Under a test runner nothing is initialised (so Firestore is never
reached over the network) unless ``FIREBASE_ALLOW_TEST_APP`` is set or
``firebase_admin.initialize_app`` has been patched with a mock.
"""

import logging
import os
import sys

import firebase_admin
from firebase_admin import credentials, firestore

logger = logging.getLogger(__name__)

_TRUTHY = ("1", "true", "yes")

_app = None


def _flag(name, default="false"):
    return os.getenv(name, default).lower() in _TRUTHY


def _is_mock(obj) -> bool:
    return "unittest.mock" in getattr(type(obj), "__module__", "")


def _is_running_tests() -> bool:
    """True under ``manage.py test`` or pytest."""
    return "test" in sys.argv or "pytest" in sys.argv or "pytest" in sys.modules


def _quiet() -> bool:
    """Firebase diagnostics stay silent in tests unless FIREBASE_VERBOSE_TEST_LOGS is set."""
    return _is_running_tests() and not _flag("FIREBASE_VERBOSE_TEST_LOGS")


def _blocked_in_tests() -> bool:
    if not _is_running_tests() or _flag("FIREBASE_ALLOW_TEST_APP"):
        return False
    return not _is_mock(firebase_admin.initialize_app)


def _initialise_from_env():
    """Build the app from the service account file; None when missing or broken."""
    path = os.getenv("FIREBASE_SERVICE_ACCOUNT_FILE")
    if not path or not os.path.exists(path):
        if not _quiet():
            logger.warning("FIREBASE_SERVICE_ACCOUNT_FILE not found; Firebase features are disabled.")
        return None
    try:
        return firebase_admin.initialize_app(credentials.Certificate(path))
    except (ValueError, OSError) as error:
        if not _quiet():
            logger.error("Failed to initialize Firebase from %s: %s", path, error)
        return None


def get_app():
    """Return the Firebase Admin app, initialising it once; None when unavailable."""
    global _app
    if _app is None:
        if firebase_admin._apps:
            _app = firebase_admin.get_app()
        elif not _blocked_in_tests():
            _app = _initialise_from_env()
    return _app


def get_firestore_client():
    """Firestore client for the account/notification backends, or None.

    None when ``FIREBASE_ENABLE_FIRESTORE`` is off, when running tests
    without ``FIREBASE_ALLOW_TEST_APP``, or when the app cannot start.
    """
    if not _flag("FIREBASE_ENABLE_FIRESTORE", "true"):
        return None
    if _is_running_tests() and not _flag("FIREBASE_ALLOW_TEST_APP"):
        return None
    app = get_app()
    return firestore.client(app) if app else None
