#!/usr/bin/env python3


import logging
import threading
from typing import Optional, Tuple

from flask import Flask, abort, jsonify, redirect, request, url_for

from cache import TTLCache
from comparison import DisplayMode, classify
from errors import FetchError, UnknownVersionError
from legiscan import LegiScanClient
from manager import VersionsManager
from render import banners, page, render_amendments, render_outcome, version_selector
from settings import Settings, configure_logging
from statutory import extract_amendments
from versions import Bill, find_version, pick_default_pair, validate, version_preview

logger = logging.getLogger(__name__)

# visible build banner
APP_VERSION = "BillTracer v4 - version compare"

INDEX_HTML = """<!doctype html>
<html lang="en"><head><meta charset="utf-8" /><title>BillTracer</title></head>
<body style="font-family:system-ui;margin:24px">
<h1>BillTracer - compare bill versions</h1>
<form action="/open" method="get">
  <input name="state" placeholder="State (e.g. IL)" size="6" />
  <input name="bill_id" placeholder="LegiScan bill id" />
  <select name="mode"><option>visual-diff</option><option>side-by-side</option></select>
  <button type="submit">Compare</button>
</form>
</body></html>"""


def create_app(settings: Optional[Settings] = None, client: Optional[LegiScanClient] = None) -> Flask:
    settings = settings or Settings.from_env()
    client = client or LegiScanClient.from_settings(settings)

    app = Flask(__name__)
    app.config["BILLTRACER_SETTINGS"] = settings

    # rendered pages and per-bill version managers
    pages = TTLCache(settings.cache_ttl)
    managers = TTLCache(settings.cache_ttl)
    managers_lock = threading.Lock()

    def bill_record(state: str, bill_id: str) -> Bill:
        try:
            return client.bill_record(bill_id, state)
        except FetchError as e:
            logger.warning("no metadata for bill %s: %s", bill_id, e)
            return Bill(id=bill_id, state=state.upper())

    def manager_for(state: str, bill_id: str) -> VersionsManager:
        key = (state.upper(), bill_id)
        with managers_lock:
            mgr = managers.get(key)
            if mgr is None:
                mgr = VersionsManager(bill_record(state, bill_id), client.fetch_versions)
                mgr.load()
                managers.set(key, mgr)
        return mgr

    def selection(mgr: VersionsManager) -> Tuple[str, str, DisplayMode]:
        try:
            mode = DisplayMode.parse(request.args.get("mode"))
        except ValueError as e:
            abort(400, str(e))
        default_left, default_right = pick_default_pair(mgr.versions)
        return (request.args.get("left") or default_left,
                request.args.get("right") or default_right, mode)

    @app.get("/version")
    def version():
        return APP_VERSION

    # quick flush route (handy while iterating)
    @app.get("/flush")
    def flush_cache():
        pages.clear()
        managers.clear()
        client.cache.clear()
        return "CACHE cleared"

    @app.get("/")
    def index():
        return INDEX_HTML

    @app.get("/open")
    def open_bill():
        state = (request.args.get("state") or "").strip()
        bill_id = (request.args.get("bill_id") or "").strip()
        if not state or not bill_id:
            abort(400, "state and bill_id are required")
        return redirect(url_for("compare", state=state, bill_id=bill_id, mode=request.args.get("mode")))

    @app.get("/bill/<state>/<bill_id>")
    def compare(state: str, bill_id: str):
        mgr = manager_for(state, bill_id)
        left_id, right_id, mode = selection(mgr)
        key = (state.upper(), bill_id, left_id, right_id, mode.value, mgr.generation)
        nocache = request.args.get("nocache") == "1"
        if not nocache:
            hit = pages.get(key)
            if hit is not None:
                return hit

        try:
            outcome = classify(mgr.versions, left_id, right_id, mode, settings.diff_limit)
        except UnknownVersionError as e:
            abort(404, str(e))
        left = right = None
        if len(mgr.versions) > 1:
            left, right = find_version(mgr.versions, left_id), find_version(mgr.versions, right_id)

        check = validate(mgr.versions)
        notices = banners(mgr.drain_notices()) + banners(("warning", m) for m in check.messages)
        toolbar = version_selector(mgr.versions, left_id, right_id, mode) if mgr.versions else ""
        toolbar += (f"<form method='post' action='{url_for('refresh', state=state, bill_id=bill_id)}'>"
                    f"<button type='submit'>Refresh Versions</button></form>")
        subtitle = f"{len(mgr.versions)} versions • {mode.value}"
        if mgr.bill.sponsor:
            subtitle += f" • Sponsor: {mgr.bill.sponsor}"
        html_doc = page(mgr.bill.label, subtitle, render_outcome(outcome, left, right),
                        toolbar=toolbar, notices=notices, app_version=APP_VERSION)
        pages.set(key, html_doc)
        return html_doc

    @app.get("/api/bill/<state>/<bill_id>/compare")
    def compare_json(state: str, bill_id: str):
        mgr = manager_for(state, bill_id)
        try:
            mode = DisplayMode.parse(request.args.get("mode"))
        except ValueError as e:
            return jsonify(error=str(e)), 400
        default_left, default_right = pick_default_pair(mgr.versions)
        left_id = request.args.get("left") or default_left
        right_id = request.args.get("right") or default_right
        try:
            outcome = classify(mgr.versions, left_id, right_id, mode, settings.diff_limit)
        except UnknownVersionError as e:
            return jsonify(error=str(e)), 404
        check = validate(mgr.versions)
        return jsonify(
            bill={"id": mgr.bill.id, "state": mgr.bill.state, "number": mgr.bill.number,
                  "title": mgr.bill.title, "sponsor": mgr.bill.sponsor},
            load_state=mgr.state.value,
            from_fallback=mgr.from_fallback,
            versions=[{"id": v.id, "name": v.name, "date": v.date} for v in mgr.versions],
            left=left_id, right=right_id, mode=mode.value,
            validation={"ok": check.ok, "messages": list(check.messages)},
            notices=[{"level": lvl, "message": msg} for lvl, msg in mgr.drain_notices()],
            outcome=outcome.to_dict(),
        )

    @app.post("/bill/<state>/<bill_id>/refresh")
    def refresh(state: str, bill_id: str):
        mgr = manager_for(state, bill_id)
        mgr.refresh()
        return redirect(url_for("compare", state=state, bill_id=bill_id, nocache=1))

    @app.get("/bill/<state>/<bill_id>/amendments")
    def amendments(state: str, bill_id: str):
        mgr = manager_for(state, bill_id)
        text = version_preview(mgr.versions[0]) if mgr.versions else ""
        body = render_amendments(extract_amendments(text))
        return page(mgr.bill.label, "Statutory effects", body,
                    notices=banners(mgr.drain_notices()), app_version=APP_VERSION)

    return app


if __name__ == "__main__":
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    print(">>> Starting", APP_VERSION)
    # run dev server
    create_app(settings).run(host="127.0.0.1", port=5000, debug=True)
