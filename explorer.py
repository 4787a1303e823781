# Build a static comparison page from data/bill_v1.txt and data/bill_v2.txt to output/index.html

import argparse
import json
import logging
import sys
from pathlib import Path

from comparison import DisplayMode, classify
from normalize import split_sections
from render import banners, page, render_outcome
from settings import Settings, configure_logging
from versions import BillVersion, validate

logger = logging.getLogger(__name__)

BILL_ID  = "BillTracer"
STAGE_A  = "Version 1"
STAGE_B  = "Version 2"

DATA_DIR   = Path("data")
OUTPUT_DIR = Path("output")
V1_PATH    = DATA_DIR / "bill_v1.txt"
V2_PATH    = DATA_DIR / "bill_v2.txt"


def read_meta(data_dir: Path) -> dict:
    meta = {"bill_id": BILL_ID, "stage_a": STAGE_A, "stage_b": STAGE_B}
    meta_path = data_dir / "meta.json"
    if meta_path.exists():
        try:
            meta.update(json.loads(meta_path.read_text(encoding="utf-8")))
        except json.JSONDecodeError as e:
            logger.warning("ignoring unreadable %s: %s", meta_path, e)
    return meta


def load_version(path: Path, version_id: str, name: str) -> BillVersion:
    text = path.read_text(encoding="utf-8", errors="ignore") if path.exists() else ""
    if not text:
        logger.warning("%s is missing or empty", path)
    return BillVersion(id=version_id, name=name, sections=tuple(split_sections(text)))


def build(data_dir: Path, output_dir: Path, mode: DisplayMode, limit: int) -> Path:
    meta = read_meta(data_dir)
    left = load_version(data_dir / V1_PATH.name, "v1", meta["stage_a"])
    right = load_version(data_dir / V2_PATH.name, "v2", meta["stage_b"])
    versions = [left, right]

    outcome = classify(versions, left.id, right.id, mode, limit)
    check = validate(versions)
    subtitle = f"Comparing {left.name} → {right.name} • {mode.value}"
    html_doc = page(meta["bill_id"], subtitle, render_outcome(outcome, left, right),
                    notices=banners(("warning", m) for m in check.messages),
                    app_version="explorer")
    output_dir.mkdir(parents=True, exist_ok=True)
    out = output_dir / "index.html"
    out.write_text(html_doc, encoding="utf-8")
    logger.info("wrote %s (%s)", out, outcome.kind)
    return out


def main(argv=None):
    p = argparse.ArgumentParser(description="Render a static comparison of two saved bill versions")
    p.add_argument("--data", type=Path, default=DATA_DIR)
    p.add_argument("--out", type=Path, default=OUTPUT_DIR)
    p.add_argument("--mode", default=DisplayMode.VISUAL_DIFF.value,
                   choices=[m.value for m in DisplayMode])
    args = p.parse_args(argv)

    settings = Settings.from_env()
    configure_logging(settings.log_level)
    out = build(args.data, args.out, DisplayMode.parse(args.mode), settings.diff_limit)
    print(f"Wrote {out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
