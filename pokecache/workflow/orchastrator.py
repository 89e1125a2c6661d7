"""Boot hook that brings up cache population for a host process."""

from __future__ import annotations

import logging
from typing import Optional

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from pokecache.clients import FetchError, PokeAPIClient
from pokecache.config import Settings, load_settings
from pokecache.services.cache import CacheStore
from pokecache.workflow.population import CatalogClient, PopulationWorker

logger = logging.getLogger(__name__)


def start_population(
    settings: Optional[Settings] = None,
    *,
    store: Optional[CacheStore] = None,
    client: Optional[CatalogClient] = None,
    wait_for_index: bool = True,
) -> PopulationWorker:
    """
    Start a population worker and seed it from the bulk index.

    Call once during application boot, before traffic is accepted. Population
    itself continues in the background; only the bulk index fetch is awaited
    when ``wait_for_index`` is set.

    A boot whose bulk index fetch fails is restarted up to
    ``settings.startup_attempts`` times in total. A table that cannot be
    created (``StartupError``) is fatal and never restarted.

    Parameters
    ----------
    settings : Settings, optional
        Configuration; loaded from the environment when omitted.
    store : CacheStore, optional
        Store to populate; a fresh one is created when omitted.
    client : CatalogClient, optional
        Upstream client; built from ``settings`` when omitted.
    wait_for_index : bool
        Wait for the seed to fan out and re-raise its error.

    Returns
    -------
    PopulationWorker
        The running worker. ``worker.store`` is the populated store.
    """
    resolved_settings = settings or load_settings()
    resolved_store = store if store is not None else CacheStore()
    resolved_client = client
    if resolved_client is None:
        resolved_client = PokeAPIClient.from_settings(resolved_settings)

    if not wait_for_index:
        worker = _new_worker(resolved_settings, resolved_store, resolved_client)
        worker.start()
        worker.trigger_seed()
        return worker

    retrying = Retrying(
        stop=stop_after_attempt(resolved_settings.startup_attempts),
        wait=wait_exponential(
            multiplier=0.5, max=resolved_settings.startup_backoff_max
        ),
        retry=retry_if_exception_type(FetchError),
        before_sleep=_log_restart,
        reraise=True,
    )
    return retrying(_boot, resolved_settings, resolved_store, resolved_client)


def _boot(
    settings: Settings,
    store: CacheStore,
    client: CatalogClient,
) -> PopulationWorker:
    worker = _new_worker(settings, store, client)
    worker.start()
    seed = worker.trigger_seed()
    try:
        seeded = seed.result()
    except BaseException:
        worker.stop()
        store.drop()
        raise
    logger.info("Population started with %d references", seeded)
    return worker


def _new_worker(
    settings: Settings, store: CacheStore, client: CatalogClient
) -> PopulationWorker:
    return PopulationWorker(store, client, max_attempts=settings.max_attempts)


def _log_restart(retry_state: RetryCallState) -> None:
    outcome = retry_state.outcome
    error = outcome.exception() if outcome is not None else None
    logger.warning(
        "Population boot failed (attempt %d); restarting",
        retry_state.attempt_number,
        extra={"error": str(error)},
    )


__all__ = ["start_population"]
