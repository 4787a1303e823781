# Fetch two versions of a bill (LegiScan), write data/bill_v1.txt, data/bill_v2.txt, data/meta.json
import argparse
import json
import logging
import os
import sys

from errors import FetchError, UnknownVersionError
from legiscan import LegiScanClient
from manager import LoadState, VersionsManager
from normalize import to_plain_text
from settings import Settings, configure_logging
from versions import find_version, pick_default_pair, version_content

logger = logging.getLogger(__name__)

DATA_DIR = "data"


def write_meta(label, left, right, bill_id, state):
    os.makedirs(DATA_DIR, exist_ok=True)
    meta = {
        "bill_id": label,
        "legiscan_id": bill_id,
        "state": state,
        "stage_a": left.name or left.id,
        "stage_b": right.name or right.id,
    }
    with open(os.path.join(DATA_DIR, "meta.json"), "w", encoding="utf-8") as f:
        f.write(json.dumps(meta, ensure_ascii=False, indent=2))


def main(argv=None):
    p = argparse.ArgumentParser(description="Download two versions of a bill for explorer.py")
    p.add_argument("--bill-id", required=True, help="LegiScan bill id")
    p.add_argument("--state", required=True, help="two-letter state code")
    p.add_argument("--v1", help="doc id of the older version (default: first)")
    p.add_argument("--v2", help="doc id of the newer version (default: second)")
    p.add_argument("--list", action="store_true", help="only list the available versions")
    args = p.parse_args(argv)

    settings = Settings.from_env()
    configure_logging(settings.log_level)
    client = LegiScanClient.from_settings(settings)

    try:
        bill = client.bill_record(args.bill_id, args.state)
    except FetchError as e:
        print(f"Could not load bill {args.bill_id}: {e}", file=sys.stderr)
        return 1

    mgr = VersionsManager(bill, client.fetch_versions)
    mgr.load()
    for level, msg in mgr.drain_notices():
        print(f"[{level}] {msg}")
    if mgr.state != LoadState.LOADED or not mgr.versions:
        print("No versions available for this bill", file=sys.stderr)
        return 1

    if args.list:
        for v in mgr.versions:
            print(f"{v.id}\t{v.name}\t{v.date or ''}")
        return 0

    d1, d2 = pick_default_pair(mgr.versions)
    try:
        left = find_version(mgr.versions, args.v1 or d1)
        right = find_version(mgr.versions, args.v2 or d2)
    except UnknownVersionError as e:
        print(f"{e}; use --list to see the available versions", file=sys.stderr)
        return 2

    os.makedirs(DATA_DIR, exist_ok=True)
    for name, v in (("bill_v1.txt", left), ("bill_v2.txt", right)):
        text = to_plain_text(version_content(v))
        if not text:
            logger.warning("version %s (%s) has no text", v.id, v.name)
        with open(os.path.join(DATA_DIR, name), "w", encoding="utf-8") as f:
            f.write(text)
    write_meta(bill.label, left, right, args.bill_id, args.state)
    print("Saved data/bill_v1.txt, data/bill_v2.txt, data/meta.json")
    return 0


if __name__ == "__main__":
    sys.exit(main())
