"""Population worker: the single writer that fills the cache.

All requests go through one FIFO queue drained by one thread, so at most one
upstream fetch is in flight and inserts are serialized. Failed items are put
back at the tail of the same queue.
"""

from __future__ import annotations

import enum
import logging
import queue
import threading
from concurrent.futures import Future
from dataclasses import dataclass, replace
from typing import Optional, Protocol, Sequence

from pokecache.clients import DnsResolutionError, FetchError
from pokecache.models import CatalogReference, DetailRecord, PopulationRequest
from pokecache.services.cache import CacheStore

logger = logging.getLogger(__name__)


class CatalogClient(Protocol):
    def fetch_index(self) -> Sequence[CatalogReference]: ...

    def fetch_detail(self, reference: CatalogReference) -> DetailRecord: ...


class StartupError(RuntimeError):
    """The cache table could not be created; nothing can be served."""


class WorkerState(str, enum.Enum):
    STARTING = "starting"
    READY = "ready"
    STOPPED = "stopped"


@dataclass(frozen=True)
class _SeedRequest:
    future: Future


_STOP = object()


class PopulationWorker:
    """Sequential actor owning all writes to a ``CacheStore``."""

    def __init__(
        self,
        store: CacheStore,
        client: CatalogClient,
        *,
        max_attempts: Optional[int] = None,
        name: str = "population-worker",
    ) -> None:
        if max_attempts is not None and max_attempts < 1:
            raise ValueError("max_attempts must be at least 1 when set.")
        self.store = store
        self.client = client
        self.max_attempts = max_attempts
        self.name = name
        self.state = WorkerState.STARTING
        self.population_complete = threading.Event()
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        # Only touched from the worker thread.
        self._seed_outstanding = 0

    def start(self) -> PopulationWorker:
        """Create the cache table, then begin draining the queue."""
        if self.state is not WorkerState.STARTING:
            raise RuntimeError(
                f"{self.name} cannot start from state {self.state.value}."
            )
        try:
            self.store.initialize()
        except Exception as exc:
            raise StartupError(
                f"{self.name} could not create the cache table."
            ) from exc

        self._thread = threading.Thread(
            target=self._run, name=self.name, daemon=True
        )
        self._thread.start()
        self.state = WorkerState.READY
        logger.info("Population worker %s ready", self.name)
        return self

    def trigger_seed(self) -> Future:
        """
        Queue the seeding protocol.

        Returns
        -------
        concurrent.futures.Future
            Resolves to the number of references fanned out, or raises the
            ``FetchError`` from the bulk index fetch. Callers that do not
            care may drop it.
        """
        future: Future = Future()
        self._put(_SeedRequest(future))
        return future

    def submit_item(self, reference: CatalogReference) -> None:
        """Queue one item for population."""
        self._put(PopulationRequest(reference=reference))

    def wait_until_populated(self, timeout: Optional[float] = None) -> bool:
        return self.population_complete.wait(timeout)

    def join(self) -> None:
        """Block until every queued request, retries included, is done."""
        self._queue.join()

    def pending(self) -> int:
        return self._queue.qsize()

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop after the work already queued has been processed."""
        if self._thread is None:
            self.state = WorkerState.STOPPED
            return
        self._queue.put(_STOP)
        self._thread.join(timeout)
        self.state = WorkerState.STOPPED
        logger.info("Population worker %s stopped", self.name)

    def _put(self, message: object) -> None:
        if self.state is not WorkerState.READY:
            raise RuntimeError(
                f"{self.name} is not accepting requests ({self.state.value})."
            )
        self._queue.put(message)

    def _run(self) -> None:
        while True:
            message = self._queue.get()
            try:
                if message is _STOP:
                    return
                if isinstance(message, _SeedRequest):
                    self._seed(message.future)
                else:
                    self._populate(message)
            except Exception as exc:  # noqa: BLE001
                logger.exception(
                    "Population worker %s failed to handle %r", self.name, message
                )
                if isinstance(message, _SeedRequest) and not message.future.done():
                    message.future.set_exception(exc)
            finally:
                self._queue.task_done()

    def _seed(self, future: Future) -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            references = self.client.fetch_index()
        except FetchError as exc:
            logger.error(
                "Failed to fetch bulk index: %s", exc, extra={"error": str(exc)}
            )
            future.set_exception(exc)
            return
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected error while fetching bulk index")
            future.set_exception(exc)
            return

        if references:
            self.population_complete.clear()
        self._seed_outstanding += len(references)
        for reference in references:
            self._queue.put(PopulationRequest(reference=reference, from_seed=True))
        logger.info("Seeded %d population requests", len(references))
        if self._seed_outstanding == 0:
            self.population_complete.set()
        future.set_result(len(references))

    def _populate(self, request: PopulationRequest) -> None:
        reference = request.reference
        try:
            detail = self.client.fetch_detail(reference)
            inserted = self.store.insert_if_absent(detail.id, detail)
        except DnsResolutionError as exc:
            self._retry(request, "nxdomain", exc)
            return
        except FetchError as exc:
            self._retry(request, "generic_error", exc)
            return
        except Exception as exc:  # noqa: BLE001
            logger.exception(
                "Unexpected error caching %s (%s)",
                reference.name,
                reference.locator,
                extra={"locator": reference.locator},
            )
            self._retry(request, "generic_error", exc)
            return

        if not inserted:
            logger.debug(
                "Record %d already cached; skipping %s", detail.id, reference.name
            )
        self._complete(request)

    def _retry(
        self, request: PopulationRequest, reason: str, exc: BaseException
    ) -> None:
        reference = request.reference
        attempts = request.attempts + 1
        logger.error(
            "Error fetching details for %s (%s) [%s]: %s",
            reference.name,
            reference.locator,
            reason,
            exc,
            extra={
                "reason": reason,
                "locator": reference.locator,
                "attempt": attempts,
                "error": str(exc),
            },
        )
        if self.max_attempts is not None and attempts >= self.max_attempts:
            logger.error(
                "Giving up on %s (%s) after %d attempts",
                reference.name,
                reference.locator,
                attempts,
                extra={"reason": reason, "locator": reference.locator},
            )
            self._complete(request)
            return
        self._queue.put(replace(request, attempts=attempts))

    def _complete(self, request: PopulationRequest) -> None:
        if not request.from_seed:
            return
        self._seed_outstanding -= 1
        if self._seed_outstanding == 0:
            logger.info("Population complete: %d records cached", self.store.count())
            self.population_complete.set()


__all__ = ["CatalogClient", "PopulationWorker", "StartupError", "WorkerState"]
