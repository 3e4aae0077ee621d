"""In-memory import history with explicit subscriptions."""

import enum
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from loguru import logger


class HistoryOutcome(enum.StrEnum):
    """Outcome recorded for one import submission."""

    SUCCESS = "success"
    ERROR = "error"


class HistorySource(enum.StrEnum):
    """Submission path that produced a history entry."""

    JOB = "job"
    TRIGGER = "trigger"


@dataclass(frozen=True)
class ImportHistoryEntry:
    """One finished (or rejected) import submission."""

    operation_kind: str
    outcome: HistoryOutcome
    message: str
    source: HistorySource
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    job_id: str | None = None


HistoryListener = Callable[[ImportHistoryEntry], None]


class ImportHistory:
    """Append-only, most-recent-first log of import outcomes.

    Not persisted and not size-limited.  Each owner creates its own
    instance; listeners are notified synchronously on every new entry.
    """

    def __init__(self) -> None:
        self._entries: list[ImportHistoryEntry] = []
        self._listeners: list[HistoryListener] = []

    @property
    def entries(self) -> list[ImportHistoryEntry]:
        """Entries ordered most recent first."""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, entry: ImportHistoryEntry) -> ImportHistoryEntry:
        """Prepend ``entry`` and notify listeners."""
        self._entries.insert(0, entry)
        logger.info(
            "Import history: {} {} via {} - {}",
            entry.operation_kind,
            entry.outcome.value,
            entry.source.value,
            entry.message,
        )
        for listener in list(self._listeners):
            try:
                listener(entry)
            except Exception:
                logger.exception("Import history listener failed")
        return entry

    def subscribe(self, listener: HistoryListener) -> Callable[[], None]:
        """Register ``listener`` and return a function that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            self.unsubscribe(listener)

        return _unsubscribe

    def unsubscribe(self, listener: HistoryListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)
