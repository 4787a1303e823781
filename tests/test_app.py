"""Tests for the Flask app, with a fake LegiScan client."""
import threading
import time

import pytest

from app import APP_VERSION, create_app
from cache import TTLCache
from errors import FetchError
from settings import Settings
from versions import Bill, BillVersion, Section


def version(vid, name, content):
    return BillVersion(id=vid, name=name, date="2024-01-10",
                       sections=(Section(id="s1", title="Text", content=content),))


TWO = [version("v1", "Introduced", "Section 1.\nOld text."),
       version("v2", "Engrossed", "Section 1.\nNew text.")]


class FakeClient:
    def __init__(self, versions, fail_meta=False, delay=0.0):
        self.versions = versions
        self.fail_meta = fail_meta
        self.delay = delay
        self.fetches = 0
        self.cache = TTLCache(60)

    def bill_record(self, bill_id, state):
        if self.fail_meta:
            raise FetchError("metadata unavailable")
        return Bill(id=bill_id, state=state.upper(), number="HB1234", title="Roads", sponsor="Jane Doe")

    def fetch_versions(self, bill_id, state):
        self.fetches += 1
        time.sleep(self.delay)
        return list(self.versions)


def make(versions=TWO, **kw):
    fake = FakeClient(versions, **kw)
    app = create_app(Settings(legiscan_api_key="test", cache_ttl=60), client=fake)
    app.config["TESTING"] = True
    return app.test_client(), fake


@pytest.fixture
def web():
    return make()


class TestPages:
    def test_version(self, web):
        http, _ = web
        assert http.get("/version").get_data(as_text=True) == APP_VERSION

    def test_index_and_open(self, web):
        http, _ = web
        assert "bill_id" in http.get("/").get_data(as_text=True)
        r = http.get("/open?state=IL&bill_id=1234&mode=side-by-side")
        assert r.status_code == 302
        assert "/bill/IL/1234" in r.headers["Location"]
        assert http.get("/open?state=IL").status_code == 400

    def test_visual_diff(self, web):
        http, _ = web
        body = http.get("/bill/IL/1234").get_data(as_text=True)
        assert "<del>Old text.</del>" in body
        assert "<ins>New text.</ins>" in body
        assert "Sponsor: Jane Doe" in body
        assert "Loaded 2 versions with content" in body

    def test_side_by_side(self, web):
        http, _ = web
        body = http.get("/bill/IL/1234?mode=side-by-side").get_data(as_text=True)
        assert "Content has been modified between versions" in body
        assert "Introduced" in body and "Engrossed" in body

    def test_bad_mode(self, web):
        http, _ = web
        assert http.get("/bill/IL/1234?mode=split").status_code == 400

    def test_unknown_version(self, web):
        http, _ = web
        assert http.get("/bill/IL/1234?left=v1&right=v9").status_code == 404

    def test_same_version(self, web):
        http, _ = web
        body = http.get("/bill/IL/1234?left=v2&right=v2").get_data(as_text=True)
        assert "Both sides show the same version" in body

    def test_single_version(self):
        http, _ = make(TWO[:1])
        body = http.get("/bill/IL/1234?mode=side-by-side").get_data(as_text=True)
        assert "only has one version" in body

    def test_no_versions(self):
        http, _ = make([])
        body = http.get("/bill/IL/1234").get_data(as_text=True)
        assert "No versions available for comparison" in body
        assert "No versions available for this bill" in body

    def test_missing_metadata_still_compares(self):
        http, _ = make(fail_meta=True)
        assert "<del>Old text.</del>" in http.get("/bill/IL/1234").get_data(as_text=True)

    def test_fetch_crash_is_a_notice_not_a_500(self, web):
        http, fake = web
        fake.versions = None  # list(None) raises TypeError inside the fetch
        r = http.get("/bill/IL/1234")
        assert r.status_code == 200
        assert "Failed to load bill versions" in r.get_data(as_text=True)

    def test_manager_is_reused(self, web):
        http, fake = web
        http.get("/bill/IL/1234")
        http.get("/bill/il/1234?mode=side-by-side")
        assert fake.fetches == 1

    def test_concurrent_first_requests_share_one_manager(self):
        http, fake = make(delay=0.05)
        app = http.application
        results = []

        def request():
            results.append(app.test_client().get("/bill/IL/1234").status_code)

        threads = [threading.Thread(target=request) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert results == [200] * 4
        assert fake.fetches == 1

    def test_refresh_and_flush(self, web):
        http, fake = web
        http.get("/bill/IL/1234")
        r = http.post("/bill/IL/1234/refresh")
        assert r.status_code == 302
        assert "nocache=1" in r.headers["Location"]
        assert fake.fetches == 2
        assert http.get("/flush").status_code == 200
        http.get("/bill/IL/1234")
        assert fake.fetches == 3


class TestApi:
    def test_compare_json(self, web):
        http, _ = web
        data = http.get("/api/bill/IL/1234/compare").get_json()
        assert data["load_state"] == "loaded"
        assert data["from_fallback"] is False
        assert [v["id"] for v in data["versions"]] == ["v1", "v2"]
        assert (data["left"], data["right"], data["mode"]) == ("v1", "v2", "visual-diff")
        assert data["validation"] == {"ok": True, "messages": []}
        assert data["notices"] == [{"level": "success", "message": "Loaded 2 versions with content"}]
        assert data["outcome"]["kind"] == "modified"
        assert {"kind": "added", "value": "New text."} in data["outcome"]["segments"]

    def test_errors(self, web):
        http, _ = web
        r = http.get("/api/bill/IL/1234/compare?mode=split")
        assert r.status_code == 400 and "split" in r.get_json()["error"]
        assert http.get("/api/bill/IL/1234/compare?right=v9").status_code == 404


class TestAmendments:
    def test_no_amendments(self, web):
        http, _ = web
        body = http.get("/bill/IL/1234/amendments").get_data(as_text=True)
        assert "does not amend existing statutes" in body

    def test_amendments_listed(self):
        text = ("Section 5. The Illinois Vehicle Code is amended by changing Section 11-501 as follows:\n"
                "(625 ILCS 5/11-501)\nSec. 11-501. Driving.")
        http, _ = make([version("v1", "Introduced", text)])
        body = http.get("/bill/IL/1234/amendments").get_data(as_text=True)
        assert "Found 1 statutory amendment" in body
        assert "625 ILCS 5/11-501" in body
