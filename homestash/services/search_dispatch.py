"""Async front end that keeps only the latest search alive."""

import asyncio
import logging

from homestash.config import get_settings
from homestash.services.search_service import SearchOutcome, SearchService
from homestash.storage.database import Database

logger = logging.getLogger(__name__)


class SearchDispatcher:
    """Runs searches off the event loop, superseding earlier queries.

    Each submit() cancels the search still pending from a previous call.
    A superseded call resolves to None, so callers only ever render the
    outcome of the most recent query.
    """

    def __init__(self, database: Database, debounce: float | None = None):
        """
        Args:
            database: Database the searches read from
            debounce: Seconds to wait before searching; defaults to SEARCH_DEBOUNCE_SECONDS
        """
        self.database = database
        self.debounce = get_settings().search_debounce_seconds if debounce is None else debounce
        self._generation = 0
        self._task: asyncio.Task | None = None

    def _run_search(self, query: str) -> SearchOutcome:
        with self.database.session() as session:
            return SearchService(session).search(query)

    async def _search_after_delay(self, query: str) -> SearchOutcome:
        if self.debounce > 0:
            await asyncio.sleep(self.debounce)
        return await asyncio.to_thread(self._run_search, query)

    async def submit(self, query: str) -> SearchOutcome | None:
        """
        Start a search for query, replacing any search still in flight.

        Returns:
            The SearchOutcome, or None if a newer query superseded this one
        """
        self._generation += 1
        generation = self._generation

        if self._task is not None and not self._task.done():
            self._task.cancel()
        task = asyncio.create_task(self._search_after_delay(query))
        self._task = task

        try:
            outcome = await task
        except asyncio.CancelledError:
            if generation != self._generation:
                logger.debug("Search for %r superseded", query)
                return None
            raise

        # The worker thread cannot be interrupted; drop results that finished late
        if generation != self._generation:
            logger.debug("Discarding stale results for %r", query)
            return None
        return outcome
