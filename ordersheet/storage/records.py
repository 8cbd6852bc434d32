"""Read-only access to the recipient record collection."""

from __future__ import annotations

from typing import Any, Protocol

import firebase_admin
from firebase_admin import credentials, firestore
from tenacity import retry, stop_after_attempt, wait_random_exponential

from ordersheet.config import AppConfig
from ordersheet.errors import ConfigError
from ordersheet.logging_config import get_logger

LOGGER = get_logger(__name__)

FIREBASE_APP_NAME = "ordersheet"


class RecordStore(Protocol):
    """Key-value fetch and full scan over one collection of flat records."""

    def fetch(self, record_id: str) -> dict[str, Any] | None:
        ...

    def scan(self) -> list[tuple[str, dict[str, Any]]]:
        ...


class FirestoreRecordStore:
    """Firestore collection adapter that satisfies the RecordStore contract."""

    def __init__(self, client: Any, collection: str) -> None:
        self._client = client
        self._collection = collection

    @classmethod
    def from_credentials(cls, info: dict[str, Any], collection: str) -> "FirestoreRecordStore":
        """Initialise a dedicated Firebase app from a service account mapping."""

        try:
            app = firebase_admin.get_app(FIREBASE_APP_NAME)
        except ValueError:
            try:
                certificate = credentials.Certificate(info)
            except (ValueError, KeyError) as exc:
                raise ConfigError(f"Invalid service account: {exc}") from exc
            app = firebase_admin.initialize_app(certificate, name=FIREBASE_APP_NAME)
        return cls(firestore.client(app), collection)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_random_exponential(multiplier=0.5, max=5),
        reraise=True,
    )
    def fetch(self, record_id: str) -> dict[str, Any] | None:
        snapshot = self._client.collection(self._collection).document(record_id).get()
        if not snapshot.exists:
            return None
        return snapshot.to_dict() or {}

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_random_exponential(multiplier=0.5, max=5),
        reraise=True,
    )
    def scan(self) -> list[tuple[str, dict[str, Any]]]:
        # Materialised so a retry restarts the scan from the first document.
        return [
            (snapshot.id, snapshot.to_dict() or {})
            for snapshot in self._client.collection(self._collection).stream()
        ]


def build_record_store(config: AppConfig) -> RecordStore | None:
    """Return the configured store, or None when credentials are unusable."""

    if config.store_credentials is None:
        return None
    try:
        store = FirestoreRecordStore.from_credentials(
            config.store_credentials,
            config.resolver.collection,
        )
    except ConfigError as exc:
        LOGGER.error("Record store disabled: %s", exc)
        return None
    except Exception as exc:
        LOGGER.error("Record store disabled: client initialisation failed: %s", exc)
        return None
    LOGGER.info("Record store ready | collection=%s", config.resolver.collection)
    return store
