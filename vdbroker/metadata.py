"""Cache of signal metadata (numeric ids) obtained from the v2 broker."""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from vdbroker.values import CallStatus, StatusCode

logger = logging.getLogger(__name__)

MAX_PARALLEL_REQUESTS = 5

ResponseHandler = Callable[[Sequence[Any]], None]
ErrorHandler = Callable[[CallStatus], None]
ListMetadata = Callable[[str, ResponseHandler, ErrorHandler], None]
Schedule = Callable[[Callable[[], None]], None]


@dataclass(frozen=True)
class Metadata:
    """Numeric id of a signal as assigned by the broker, if the signal is known."""

    signal_path: str
    id: int = 0
    is_known: bool = False


def _run_now(job: Callable[[], None]) -> None:
    job()


def _entry_id(entry: Any) -> int:
    if isinstance(entry, Mapping):
        return int(entry["id"])
    return int(entry.id)


class _Request:
    """A single metadata lookup for one signal path."""

    def __init__(
        self,
        signal_path: str,
        on_metadata: Callable[[_Request, Metadata], None],
        on_error: Callable[[_Request, CallStatus], None],
    ) -> None:
        self.signal_path = signal_path
        self.is_cancelled = False
        self._on_metadata = on_metadata
        self._on_error = on_error

    def cancel(self) -> None:
        self.is_cancelled = True

    def initiate(self, list_metadata: ListMetadata, schedule: Schedule) -> None:
        def job() -> None:
            if self.is_cancelled:
                self._handle_error(CallStatus(StatusCode.CANCELLED))
            else:
                list_metadata(self.signal_path, self._handle_response, self._handle_error)

        schedule(job)

    def _handle_response(self, entries: Sequence[Any]) -> None:
        if self.is_cancelled:
            self._on_error(self, CallStatus(StatusCode.CANCELLED))
            return
        entries = list(entries)
        if len(entries) == 1:
            self._on_metadata(self, Metadata(self.signal_path, _entry_id(entries[0]), True))
            return
        if not entries:
            logger.warning(
                "Databroker returned empty metadata list for %s -> "
                "assuming signal as 'unknown'",
                self.signal_path,
            )
        else:
            logger.warning(
                "Databroker returned multiple metadata entries for %s -> "
                "assuming signal as 'unknown'",
                self.signal_path,
            )
        self._on_metadata(self, Metadata(self.signal_path))

    def _handle_error(self, status: CallStatus) -> None:
        if self.is_cancelled:
            self._on_error(self, CallStatus(StatusCode.CANCELLED))
        elif status.code in (StatusCode.NOT_FOUND, StatusCode.PERMISSION_DENIED):
            self._on_metadata(self, Metadata(self.signal_path))
        else:
            self._on_error(self, status)


class _Query:
    """A caller waiting for metadata of a set of signals."""

    def __init__(
        self,
        signal_paths: Iterable[str],
        on_success: Callable[[list[Metadata]], None],
        on_error: Callable[[CallStatus], None],
    ) -> None:
        self.missing_signals: set[str] = set(signal_paths)
        self._collected: list[Metadata] = []
        self._on_success = on_success
        self._on_error = on_error

    def add_metadata(self, metadata: Metadata) -> None:
        if metadata.signal_path in self.missing_signals:
            self.missing_signals.discard(metadata.signal_path)
            self._collected.append(metadata)

    @property
    def is_fulfilled(self) -> bool:
        return not self.missing_signals

    def notify_success(self) -> None:
        try:
            self._on_success(self._collected)
        except Exception:
            logger.exception("Exception caught while notifying metadata query success")

    def notify_error(self, status: CallStatus) -> None:
        try:
            self._on_error(status)
        except Exception:
            logger.exception("Exception caught while notifying metadata query error")


class MetadataAgent:
    """Provides metadata of signals, asking the broker only for what is not cached.

    ``list_metadata(path, on_response, on_error)`` performs the remote lookup:
    ``on_response`` receives the list of returned entries (each with an ``id``),
    ``on_error`` a CallStatus. ``schedule`` runs a lookup job; by default the job
    runs at once.
    """

    def __init__(self, list_metadata: ListMetadata, schedule: Schedule | None = None) -> None:
        self._list_metadata = list_metadata
        self._schedule = schedule or _run_now
        self._lock = threading.RLock()
        self._by_path: dict[str, Metadata] = {}
        self._by_id: dict[int, Metadata] = {}
        self._pending_queries: list[_Query] = []
        self._pending_signals: deque[str] = deque()
        self._active_requests: set[_Request] = set()

    def query(
        self,
        signal_paths: Iterable[str],
        on_success: Callable[[list[Metadata]], None],
        on_error: Callable[[CallStatus], None],
    ) -> None:
        """Deliver metadata of all ``signal_paths`` to ``on_success``.

        This may happen before returning if everything is cached. ``on_error``
        is called if a lookup fails or the cache is invalidated meanwhile.
        """
        paths = list(signal_paths)
        query = _Query(paths, on_success, on_error)
        with self._lock:
            for path in paths:
                cached = self._by_path.get(path)
                if cached is not None:
                    query.add_metadata(cached)
            if not query.is_fulfilled:
                self._add_query(query)
                return
        query.notify_success()

    def invalidate(self, status_code: StatusCode = StatusCode.UNAVAILABLE) -> None:
        """Drop all cached metadata and fail all waiting queries."""
        logger.info("Invalidating signal metadata cache")
        with self._lock:
            self._by_path.clear()
            self._by_id.clear()
            open_queries = self._pending_queries
            self._pending_queries = []
            self._pending_signals.clear()
            for request in self._active_requests:
                request.cancel()
        status = CallStatus(status_code, "Cache invalidation")
        for query in open_queries:
            query.notify_error(status)

    def get_by_numeric_id(self, numeric_id: int) -> Metadata | None:
        """Metadata of the signal with this numeric id, or None if unknown."""
        with self._lock:
            return self._by_id.get(numeric_id)

    def _add_query(self, query: _Query) -> None:
        for path in sorted(query.missing_signals):
            active = any(r.signal_path == path for r in self._active_requests)
            if not active and path not in self._pending_signals:
                self._pending_signals.append(path)
        self._pending_queries.append(query)
        self._trigger_requests()

    def _trigger_requests(self) -> None:
        while self._pending_signals and len(self._active_requests) < MAX_PARALLEL_REQUESTS:
            path = self._pending_signals.popleft()
            request = _Request(path, self._on_request_metadata, self._on_request_error)
            self._active_requests.add(request)
            request.initiate(self._list_metadata, self._schedule)

    def _finish_request(self, request: _Request) -> None:
        self._active_requests.discard(request)
        self._trigger_requests()

    def _on_request_metadata(self, request: _Request, metadata: Metadata) -> None:
        fulfilled: list[_Query] = []
        with self._lock:
            self._finish_request(request)
            if not request.is_cancelled:
                self._by_path[metadata.signal_path] = metadata
                if metadata.is_known:
                    self._by_id[metadata.id] = metadata
                remaining = []
                for query in self._pending_queries:
                    query.add_metadata(metadata)
                    (fulfilled if query.is_fulfilled else remaining).append(query)
                self._pending_queries = remaining
        for query in fulfilled:
            query.notify_success()

    def _on_request_error(self, request: _Request, status: CallStatus) -> None:
        affected: list[_Query] = []
        with self._lock:
            self._finish_request(request)
            if not request.is_cancelled:
                remaining = []
                for query in self._pending_queries:
                    if request.signal_path in query.missing_signals:
                        affected.append(query)
                    else:
                        remaining.append(query)
                self._pending_queries = remaining
        for query in affected:
            query.notify_error(status)