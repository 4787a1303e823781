"""Tests for the fetch_bills.py and explorer.py command line tools."""
import json

import pytest

import explorer
import fetch_bills
from comparison import DisplayMode
from errors import FetchError
from versions import Bill, BillVersion, Section


def version(vid, name, content):
    return BillVersion(id=vid, name=name, sections=(Section(id="s1", title="Text", content=content),))


class FakeClient:
    fail = False
    versions = [version("11", "Introduced", "Section 1.\nOld text."),
                version("12", "Engrossed", "Section 1.\nNew text.")]

    @classmethod
    def from_settings(cls, settings):
        return cls()

    def bill_record(self, bill_id, state):
        if self.fail:
            raise FetchError("bad key")
        return Bill(id=bill_id, state=state, number="HB1234", title="Roads")

    def fetch_versions(self, bill_id, state):
        return list(self.versions)


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(fetch_bills, "LegiScanClient", FakeClient)
    return tmp_path


class TestFetchBills:
    def test_writes_default_pair(self, workdir):
        assert fetch_bills.main(["--bill-id", "1234", "--state", "IL"]) == 0
        assert (workdir / "data" / "bill_v1.txt").read_text(encoding="utf-8") == "Section 1.\nOld text."
        assert (workdir / "data" / "bill_v2.txt").read_text(encoding="utf-8") == "Section 1.\nNew text."
        meta = json.loads((workdir / "data" / "meta.json").read_text(encoding="utf-8"))
        assert meta["bill_id"] == "IL HB1234 - Roads"
        assert (meta["stage_a"], meta["stage_b"]) == ("Introduced", "Engrossed")

    def test_list(self, workdir, capsys):
        assert fetch_bills.main(["--bill-id", "1234", "--state", "IL", "--list"]) == 0
        assert "12\tEngrossed" in capsys.readouterr().out
        assert not (workdir / "data").exists()

    def test_unknown_version(self, workdir, capsys):
        assert fetch_bills.main(["--bill-id", "1234", "--state", "IL", "--v2", "99"]) == 2
        assert "unknown version" in capsys.readouterr().err

    def test_bill_unavailable(self, workdir, monkeypatch):
        monkeypatch.setattr(FakeClient, "fail", True)
        assert fetch_bills.main(["--bill-id", "1234", "--state", "IL"]) == 1


class TestExplorer:
    def write_data(self, root, v1, v2, meta=None):
        data = root / "data"
        data.mkdir()
        (data / "bill_v1.txt").write_text(v1, encoding="utf-8")
        (data / "bill_v2.txt").write_text(v2, encoding="utf-8")
        if meta is not None:
            (data / "meta.json").write_text(meta, encoding="utf-8")
        return data

    def test_build_visual_diff(self, tmp_path):
        data = self.write_data(tmp_path, "Section 1.\nOld text.", "Section 1.\nNew text.",
                               json.dumps({"bill_id": "IL HB1234", "stage_a": "Introduced", "stage_b": "Engrossed"}))
        out = explorer.build(data, tmp_path / "output", DisplayMode.VISUAL_DIFF, 20_000)
        html_doc = out.read_text(encoding="utf-8")
        assert out.name == "index.html"
        assert "<del>Old text.</del>" in html_doc
        assert "IL HB1234" in html_doc and "Introduced" in html_doc

    def test_build_side_by_side_with_bad_meta(self, tmp_path):
        data = self.write_data(tmp_path, "same", "same", meta="{not json")
        out = explorer.build(data, tmp_path / "output", DisplayMode.SIDE_BY_SIDE, 20_000)
        html_doc = out.read_text(encoding="utf-8")
        assert explorer.BILL_ID in html_doc
        assert "Content has been modified" not in html_doc

    def test_missing_files(self, tmp_path):
        (tmp_path / "data").mkdir()
        out = explorer.build(tmp_path / "data", tmp_path / "output", DisplayMode.VISUAL_DIFF, 20_000)
        html_doc = out.read_text(encoding="utf-8")
        assert "Original version has no sections" in html_doc
        assert "No differences found" in html_doc

    def test_main(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        self.write_data(tmp_path, "a\nb", "a\nc")
        assert explorer.main(["--mode", "side-by-side"]) == 0
        assert (tmp_path / "output" / "index.html").exists()
