"""Account store backed by the Firestore ``users`` collection.

Documents keep the field names the web client already writes:
``followers``/``following`` arrays and ``followerCount``/``followingCount``.
Conflict detection is Firestore's own transaction machinery; the SDK's
internal retry loop is disabled (``max_attempts=1``) so the follow
service owns the retry budget and backoff.
"""

import logging
from typing import Dict, Iterator, Optional

from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions

from socialgraph.conf import get_setting
from .base import AccountSnapshot, AccountStore, StoreTransaction, StoreUnavailable, TransactionConflict

logger = logging.getLogger(__name__)

_CONFLICT_ERRORS = (google_exceptions.Aborted, google_exceptions.Conflict)
_UNAVAILABLE_ERRORS = (
    google_exceptions.DeadlineExceeded,
    google_exceptions.ServiceUnavailable,
    google_exceptions.InternalServerError,
)
_NAME_FIELDS = ["displayName", "firstName", "lastName", "email"]


def _snapshot_from_document(document) -> Optional[AccountSnapshot]:
    if not document.exists:
        return None
    data = document.to_dict() or {}
    return AccountSnapshot.from_fields(
        document.id,
        followers=data.get("followers"),
        following=data.get("following"),
        follower_count=data.get("followerCount"),
        following_count=data.get("followingCount"),
    )


def display_name_of(data) -> str:
    """Label for an account document: displayName, then first/last name, then email."""
    full_name = f"{data.get('firstName', '')} {data.get('lastName', '')}".strip()
    return data.get("displayName") or full_name or data.get("email") or ""


def _document_fields(snapshot: AccountSnapshot) -> dict:
    return {
        "followers": sorted(snapshot.followers),
        "following": sorted(snapshot.following),
        "followerCount": snapshot.follower_count,
        "followingCount": snapshot.following_count,
        "lastUpdated": firestore.SERVER_TIMESTAMP,
    }


class _FirestoreTransaction(StoreTransaction):
    def __init__(self, store, transaction):
        super().__init__()
        self.store = store
        self.transaction = transaction

    def _read(self, account_id):
        return _snapshot_from_document(self.store.document(account_id).get(transaction=self.transaction))

    def flush(self):
        for snapshot in self.writes.values():
            self.transaction.update(self.store.document(snapshot.id), _document_fields(snapshot))


class FirestoreAccountStore(AccountStore):
    """Follow state stored on Firestore account documents."""

    def __init__(self, client, collection=None):
        self.client = client
        self.collection = collection or get_setting("FIRESTORE_ACCOUNTS_COLLECTION")

    def document(self, account_id):
        return self.client.collection(self.collection).document(account_id)

    def get_account(self, account_id) -> Optional[AccountSnapshot]:
        try:
            return _snapshot_from_document(self.document(account_id).get())
        except _UNAVAILABLE_ERRORS as error:
            raise StoreUnavailable(str(error)) from error

    def run_transaction(self, fn):
        @firestore.transactional
        def _in_transaction(transaction):
            txn = _FirestoreTransaction(self, transaction)
            result = fn(txn)
            txn.flush()
            return result

        try:
            return _in_transaction(self.client.transaction(max_attempts=1))
        except _CONFLICT_ERRORS as error:
            logger.debug("Firestore transaction aborted: %s", error)
            raise TransactionConflict(str(error)) from error
        except _UNAVAILABLE_ERRORS as error:
            raise StoreUnavailable(str(error)) from error
        except ValueError as error:
            # The SDK reports an exhausted attempt budget as ValueError
            # chained to the aborting API error.
            if isinstance(error.__cause__, google_exceptions.GoogleAPICallError):
                raise TransactionConflict(str(error)) from error
            raise

    def create_account(self, account_id, *, email="", display_name="") -> AccountSnapshot:
        snapshot = AccountSnapshot(id=account_id)
        fields = _document_fields(snapshot)
        fields.update({"email": email, "displayName": display_name})
        self.document(account_id).create(fields)
        return snapshot

    def iter_account_ids(self) -> Iterator[str]:
        for reference in self.client.collection(self.collection).list_documents():
            yield reference.id

    def display_names(self, account_ids) -> Dict[str, str]:
        references = [self.document(account_id) for account_id in dict.fromkeys(account_ids)]
        if not references:
            return {}
        try:
            documents = list(self.client.get_all(references, field_paths=_NAME_FIELDS))
        except _UNAVAILABLE_ERRORS as error:
            raise StoreUnavailable(str(error)) from error
        return {
            document.id: display_name_of(document.to_dict() or {}) or document.id
            for document in documents if document.exists
        }
