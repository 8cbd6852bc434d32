"""Recipient resolution against a record store with drifted field names."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from ordersheet.config import ResolverConfig
from ordersheet.errors import ResolutionError
from ordersheet.logging_config import get_logger
from ordersheet.storage.records import RecordStore

LOGGER = get_logger(__name__)

# Legacy names for the same chat destination, in priority order.
DESTINATION_FIELDS = ("telegramChatId", "chatId", "tgChatId")


@dataclass(frozen=True)
class RecipientRecord:
    """The single destination chosen for a run."""

    id: str
    destination_id: str
    source_field: str


@dataclass(frozen=True)
class DestinationMatch:
    field: str
    value: str


Accessor = Callable[[Mapping[str, Any]], Optional[DestinationMatch]]


def _field_accessor(name: str) -> Accessor:
    def access(record: Mapping[str, Any]) -> DestinationMatch | None:
        value = record.get(name)
        if value is None or isinstance(value, bool):
            return None
        text = str(value).strip()
        if not text:
            return None
        return DestinationMatch(field=name, value=text)

    return access


DESTINATION_ACCESSORS: tuple[Accessor, ...] = tuple(_field_accessor(name) for name in DESTINATION_FIELDS)


def find_destination(record: Mapping[str, Any]) -> DestinationMatch | None:
    """Return the first populated destination alias of *record*, if any."""

    for accessor in DESTINATION_ACCESSORS:
        match = accessor(record)
        if match is not None:
            return match
    return None


class RecipientResolver:
    """Pick exactly one recipient: the well-known record first, then a scan."""

    def __init__(self, store: RecordStore, config: ResolverConfig) -> None:
        self._store = store
        self._config = config

    def resolve(self) -> RecipientRecord:
        """Return the recipient or raise ``ResolutionError`` (fail closed)."""

        try:
            recipient = self._lookup_target()
            if recipient is None and self._config.strategy == "fallback":
                recipient = self._scan_first()
        except ResolutionError:
            raise
        except Exception as exc:
            raise ResolutionError(f"Record store unavailable: {exc}", stage="resolve") from exc

        if recipient is None:
            raise ResolutionError(stage="resolve")
        LOGGER.info(
            "Resolved recipient | id=%s field=%s destination=%s",
            recipient.id,
            recipient.source_field,
            recipient.destination_id,
        )
        return recipient

    def _lookup_target(self) -> RecipientRecord | None:
        target_id = self._config.target_id
        record = self._store.fetch(target_id)
        if record is None:
            LOGGER.info("Well-known record %s not found", target_id)
            return None
        match = find_destination(record)
        if match is None:
            LOGGER.info("Well-known record %s has no destination id", target_id)
            return None
        return RecipientRecord(id=target_id, destination_id=match.value, source_field=match.field)

    def _scan_first(self) -> RecipientRecord | None:
        records = self._store.scan()
        LOGGER.info("Scanning %d records for a destination id", len(records))
        for record_id, record in records:
            match = find_destination(record)
            if match is not None:
                return RecipientRecord(id=record_id, destination_id=match.value, source_field=match.field)
        return None


def describe_records(store: RecordStore) -> list[str]:
    """Return one line per stored record: id, field names, destination alias."""

    lines: list[str] = []
    for record_id, record in store.scan():
        fields = ", ".join(sorted(record)) or "-"
        populated = [
            f"{match.field}={match.value}"
            for match in (accessor(record) for accessor in DESTINATION_ACCESSORS)
            if match is not None
        ]
        destination = "; ".join(populated) if populated else "none"
        lines.append(f"{record_id} | fields: {fields} | destination: {destination}")
    return lines
