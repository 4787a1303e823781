"""Tests for the versions manager state machine."""
import threading
from unittest.mock import Mock

import pytest

from errors import FetchError
from manager import LoadState, VersionsManager
from versions import Bill, BillVersion, Section


def version(vid, content=""):
    return BillVersion(id=vid, name=vid, sections=(Section(id="s", title="Text", content=content),))


FULL = [version("v1", "Old text."), version("v2", "New text.")]
EMPTY = [version("v1"), version("v2")]


@pytest.fixture
def bill():
    return Bill(id="1234", state="IL", number="HB1")


class TestLoad:
    def test_starts_idle(self, bill):
        assert VersionsManager(bill, Mock()).state is LoadState.IDLE

    def test_loaded_with_content(self, bill):
        fetch = Mock(return_value=FULL)
        m = VersionsManager(bill, fetch)
        assert m.load() == tuple(FULL)
        assert m.state is LoadState.LOADED
        assert not m.from_fallback
        fetch.assert_called_once_with("1234", "IL")
        assert m.drain_notices() == [("success", "Loaded 2 versions with content")]
        assert m.notices == []

    def test_retries_once_when_no_content(self, bill):
        fetch = Mock(side_effect=[EMPTY, FULL])
        m = VersionsManager(bill, fetch)
        assert m.load() == tuple(FULL)
        assert fetch.call_count == 2
        assert m.state is LoadState.LOADED

    def test_still_empty_after_retry_is_loaded_with_warning(self, bill):
        fetch = Mock(return_value=EMPTY)
        m = VersionsManager(bill, fetch)
        assert m.load() == tuple(EMPTY)
        assert fetch.call_count == 2
        assert m.state is LoadState.LOADED
        assert ("warning", "Versions loaded but may have limited content") in m.notices

    def test_failed_retry_falls_back_to_embedded_versions(self):
        embedded = (version("e1", "embedded text"),)
        fetch = Mock(side_effect=[EMPTY, FetchError("boom")])
        m = VersionsManager(Bill(id="9", state="IL", versions=embedded), fetch)
        assert m.load() == embedded
        assert m.state is LoadState.LOADED
        assert m.from_fallback
        assert m.notices == [("error", "Failed to load bill versions")]

    def test_failed_retry_without_embedded_versions_fails(self, bill):
        m = VersionsManager(bill, Mock(side_effect=[EMPTY, FetchError("boom")]))
        assert m.load() == ()
        assert m.state is LoadState.FAILED
        assert m.notices == [("error", "Failed to load bill versions")]

    def test_state_is_retrying_during_second_fetch(self, bill):
        seen = []
        m = None

        def fetch(bill_id, state):
            seen.append(m.state)
            return EMPTY

        m = VersionsManager(bill, fetch)
        m.load()
        assert seen == [LoadState.LOADING, LoadState.RETRYING]


class TestFallback:
    def test_fetch_error_uses_embedded_versions(self):
        embedded = (version("e1", "embedded text"),)
        m = VersionsManager(Bill(id="9", state="IL", versions=embedded), Mock(side_effect=FetchError("down")))
        assert m.load() == embedded
        assert m.state is LoadState.LOADED
        assert m.from_fallback
        assert ("error", "Failed to load bill versions") in m.notices

    def test_fetch_error_without_embedded_versions_fails(self, bill):
        m = VersionsManager(bill, Mock(side_effect=FetchError("down")))
        assert m.load() == ()
        assert m.state is LoadState.FAILED

    def test_empty_result_falls_back(self, bill):
        m = VersionsManager(bill, Mock(return_value=[]))
        m.load()
        assert m.state is LoadState.FAILED
        assert m.notices == [("warning", "No versions available for this bill")]

    def test_missing_bill_id(self):
        fetch = Mock()
        m = VersionsManager(Bill(id="", state="IL"), fetch)
        m.load()
        fetch.assert_not_called()
        assert m.state is LoadState.FAILED
        assert m.notices == [("error", "Cannot load versions: no bill ID available")]

    def test_unexpected_errors_fall_back(self):
        embedded = (version("e1", "embedded text"),)
        m = VersionsManager(Bill(id="9", state="IL", versions=embedded),
                            Mock(side_effect=ConnectionError("reset")))
        assert m.load() == embedded
        assert m.state is LoadState.LOADED and m.from_fallback
        assert m.notices == [("error", "Failed to load bill versions")]

    def test_unexpected_errors_without_embedded_versions_fail(self, bill):
        m = VersionsManager(bill, Mock(side_effect=RuntimeError("bug")))
        assert m.load() == ()
        assert m.state is LoadState.FAILED
        assert m.notices == [("error", "Failed to load bill versions")]


class TestNotices:
    def test_notify_and_drain(self, bill):
        m = VersionsManager(bill, Mock())
        m.notify("info", "one")
        m.notify("warning", "two")
        assert m.drain_notices() == [("info", "one"), ("warning", "two")]
        assert m.drain_notices() == []

    def test_concurrent_notify_keeps_every_notice(self, bill):
        m = VersionsManager(bill, Mock())
        drained = []

        def worker(n):
            for i in range(200):
                m.notify("info", f"{n}-{i}")
                if i % 50 == 0:
                    drained.extend(m.drain_notices())

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        drained.extend(m.drain_notices())
        assert len(drained) == 800


class TestGenerations:
    def test_stale_result_is_dropped(self, bill):
        newer = [version("n1", "newest")]
        calls = []
        m = None

        def fetch(bill_id, state):
            calls.append(bill_id)
            if len(calls) == 1:
                # a refresh lands while the first request is still in flight
                m.refresh()
                return FULL
            return newer

        m = VersionsManager(bill, fetch)
        assert m.load() is None
        assert m.versions == tuple(newer)
        assert m.state is LoadState.LOADED
        assert m.generation == 2

    def test_refresh_reloads(self, bill):
        fetch = Mock(side_effect=[FULL, FULL[:1]])
        m = VersionsManager(bill, fetch)
        m.load()
        assert m.refresh() == tuple(FULL[:1])
        assert m.generation == 2
