import logging
import threading
from contextlib import contextmanager
from typing import Dict, Optional

from .api import ApiClient, Page
from .store import ListStore

logger = logging.getLogger(__name__)


class SubmissionInProgress(Exception):
    """A save on the same screen is still running"""


class SubmitGuard:
    """Allows one submission at a time; a second one fails instead of queueing"""

    def __init__(self):
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @contextmanager
    def hold(self):
        if not self._lock.acquire(blocking=False):
            raise SubmissionInProgress('A submission is already in progress.')
        try:
            yield
        finally:
            self._lock.release()


class ListScreen:
    """
    State behind one paginated, filterable list.

    Every page or filter change fetches from the API and replaces the store.
    Only the most recent load may write to the store: a response that comes
    back after a newer load started is dropped.
    """

    def __init__(self, client: ApiClient, resource: str, page_size: Optional[int] = None,
                 filters: Optional[Dict] = None):
        self.client = client
        self.resource = resource
        self.page_size = page_size
        self.filters: Dict = dict(filters or {})
        self.page = 1
        self.total_pages = 1
        self.store = ListStore()
        self.guard = SubmitGuard()
        self.last_page: Optional[Page] = None
        self._generation = 0
        self._generation_lock = threading.Lock()

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    def _next_generation(self) -> int:
        with self._generation_lock:
            self._generation += 1
            return self._generation

    def load(self) -> bool:
        """Fetch the current page; returns False when the response was superseded"""
        generation = self._next_generation()
        page = self.client.list(self.resource, page=self.page, page_size=self.page_size, **self.filters)
        with self._generation_lock:
            if generation != self._generation:
                logger.debug(f"Dropping stale {self.resource} page {page.page}")
                return False
            self.last_page = page
            self.page = page.page
            self.total_pages = max(page.total_pages, 1)
            self.store.replace_all(page.results, total_count=page.count)
        return True

    def go_to(self, page: int) -> bool:
        self.page = min(max(page, 1), self.total_pages)
        return self.load()

    def next_page(self) -> bool:
        if not self.has_next:
            return False
        self.page += 1
        return self.load()

    def previous_page(self) -> bool:
        if not self.has_previous:
            return False
        self.page -= 1
        return self.load()

    def set_filters(self, **filters) -> bool:
        """Replace the filters and reload from the first page"""
        self.filters = {key: value for key, value in filters.items() if value not in (None, '')}
        self.page = 1
        return self.load()

    def save(self, data: Dict, pk=None) -> Dict:
        """Create (pk is None) or update a row and reflect it in the store"""
        with self.guard.hold():
            if pk is None:
                row = self.client.create(self.resource, data)
                self.store.append(row)
            else:
                row = self.client.update(self.resource, pk, data)
                if not self.store.merge(row):
                    logger.debug(f"Updated {self.resource} #{pk} is not on the loaded page")
            return row

    def delete(self, pk) -> None:
        with self.guard.hold():
            self.client.delete(self.resource, pk)
            self.store.remove(pk)

    def run_action(self, pk, name: str, data: Optional[Dict] = None) -> Dict:
        """Run a transition endpoint and merge the returned row"""
        with self.guard.hold():
            row = self.client.action(self.resource, pk, name, data)
            if isinstance(row, dict) and row.get('id') == pk:
                self.store.merge(row)
            return row
