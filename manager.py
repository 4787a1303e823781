# Load a bill's versions from the legislative API, once-retry when they come
# back empty, and fall back to versions embedded in the bill record.
import itertools
import logging
import threading
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from errors import FetchError
from versions import Bill, BillVersion, has_content

logger = logging.getLogger(__name__)

FetchVersions = Callable[[str, str], Sequence[BillVersion]]


class LoadState(str, Enum):
    IDLE     = "idle"
    LOADING  = "loading"
    LOADED   = "loaded"
    RETRYING = "retrying"
    FAILED   = "failed"


class VersionsManager:
    """Owns the loaded versions of one bill.

    Every load takes a new generation number; a fetch that returns after a
    newer load has started is dropped instead of overwriting fresher state.
    `notices` collects (level, message) pairs for the user.
    """

    def __init__(self, bill: Bill, fetch_versions: FetchVersions):
        self.bill = bill
        self._fetch = fetch_versions
        self.state = LoadState.IDLE
        self.versions: Tuple[BillVersion, ...] = ()
        self.from_fallback = False
        self.notices: List[Tuple[str, str]] = []
        self._generation = 0
        self._counter = itertools.count(1)
        self._lock = threading.Lock()

    @property
    def generation(self) -> int:
        return self._generation

    def notify(self, level: str, message: str) -> None:
        with self._lock:
            self.notices.append((level, message))

    def drain_notices(self) -> List[Tuple[str, str]]:
        with self._lock:
            out, self.notices = self.notices, []
        return out

    def _begin(self) -> int:
        with self._lock:
            self._generation = next(self._counter)
            self.state = LoadState.LOADING
            return self._generation

    def _current(self, gen: int) -> bool:
        if gen != self._generation:
            logger.info("dropping stale versions for bill %s (generation %d, now %d)",
                        self.bill.id, gen, self._generation)
            return False
        return True

    def _finish(self, gen: int, state: LoadState, versions: Sequence[BillVersion],
                fallback: bool = False) -> None:
        with self._lock:
            if gen != self._generation:
                return
            self.state = state
            self.versions = tuple(versions)
            self.from_fallback = fallback

    def _fall_back(self, gen: int, reason: str) -> None:
        if self.bill.versions:
            logger.info("using %d versions embedded in bill %s (%s)",
                        len(self.bill.versions), self.bill.id, reason)
            self._finish(gen, LoadState.LOADED, self.bill.versions, fallback=True)
        else:
            self._finish(gen, LoadState.FAILED, ())

    def load(self) -> Optional[Tuple[BillVersion, ...]]:
        """Fetch versions; returns them, or None when this load went stale."""
        gen = self._begin()
        if not self.bill.id:
            logger.warning("cannot load versions: bill has no id")
            self.notify("error", "Cannot load versions: no bill ID available")
            self._fall_back(gen, "no bill id")
            return self.versions if self._current(gen) else None

        logger.info("fetching versions for bill %s (%s)", self.bill.id, self.bill.state)
        try:
            fetched = list(self._fetch(self.bill.id, self.bill.state))
        except Exception as e:
            return self._fetch_failed(gen, e)
        if not self._current(gen):
            return None

        if not fetched:
            self.notify("warning", "No versions available for this bill")
            self._fall_back(gen, "no versions returned")
            return self.versions

        with_content = [v for v in fetched if has_content(v)]
        logger.info("fetched %d versions, %d with content", len(fetched), len(with_content))
        if with_content:
            self._finish(gen, LoadState.LOADED, fetched)
            self.notify("success", f"Loaded {len(with_content)} versions with content")
            return self.versions

        return self._retry(gen, fetched)

    def _retry(self, gen: int, first: List[BillVersion]) -> Optional[Tuple[BillVersion, ...]]:
        logger.warning("no versions with content for bill %s, trying one more time", self.bill.id)
        with self._lock:
            if gen == self._generation:
                self.state = LoadState.RETRYING
        try:
            again = list(self._fetch(self.bill.id, self.bill.state))
        except Exception as e:
            return self._fetch_failed(gen, e)
        if not self._current(gen):
            return None

        # an empty retry keeps the first list; the comparison view warns about empty text
        result = again or first
        with_content = [v for v in result if has_content(v)]
        self._finish(gen, LoadState.LOADED, result)
        if with_content:
            self.notify("success", f"Loaded {len(with_content)} versions with content")
        else:
            self.notify("warning", "Versions loaded but may have limited content")
        return self.versions

    def _fetch_failed(self, gen: int, error: Exception) -> Optional[Tuple[BillVersion, ...]]:
        if not self._current(gen):
            return None
        if isinstance(error, FetchError):
            logger.error("failed to load versions for bill %s: %s", self.bill.id, error)
        else:
            logger.exception("unexpected error loading versions for bill %s", self.bill.id)
        self.notify("error", "Failed to load bill versions")
        self._fall_back(gen, "fetch failed")
        return self.versions

    def refresh(self) -> Optional[Tuple[BillVersion, ...]]:
        return self.load()
