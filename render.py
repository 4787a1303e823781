# HTML views for comparison outcomes, shared by the web app and explorer.py
import datetime
import html
from typing import Iterable, List, Optional, Sequence, Tuple

from comparison import (DisplayMode, HtmlBestEffort, Identical, Modified, NoDifferences,
                        NoVersions, Outcome, SideBySide, SingleVersion, TooLarge)
from diffing import diff_stats, esc, segments_to_html
from statutory import StatutoryAmendment, render_statutory_diff
from versions import BillVersion

CSS = """
*{box-sizing:border-box}
body{font-family:system-ui,-apple-system,Segoe UI,Roboto,Arial;margin:0;color:#111827;background:#fff}
header{padding:14px 20px;border-bottom:1px solid #eef2f7;position:sticky;top:0;background:#fff;z-index:8}
main{padding:16px 24px}
h1{margin:0 0 6px 0;font-size:20px}
small.muted{color:#6b7280}
form.toolbar{display:flex;gap:8px;align-items:center;margin:8px 0;flex-wrap:wrap}
select,button{padding:8px 10px;font-size:15px}
.chip{display:inline-block;padding:2px 8px;border-radius:999px;font-size:12px;margin-right:6px;background:#f3f4f6;border:1px solid #e5e7eb}
.chip.Modified{background:#fff7d6;border-color:#f6e39c}
.chip.Html{background:#dbeafe;border-color:#bfdbfe}
.chip.TooLarge{background:#fef3c7;border-color:#fde68a}
.banner{padding:8px 12px;border-radius:8px;margin:8px 0;font-size:14px}
.banner.warning{background:#fffbeb;border:1px solid #fde68a;color:#92400e}
.banner.error{background:#fef2f2;border:1px solid #fecaca;color:#991b1b}
.banner.info,.banner.success{background:#eff6ff;border:1px solid #bfdbfe;color:#1e40af}
.counts span{margin-right:12px}
section.block{border:1px solid #eef2f7;border-radius:8px;margin:12px 0;overflow:hidden}
section.block h3{margin:0;padding:10px 12px;font-size:16px;background:#fafbff;border-bottom:1px solid #eef2f7}
section.block .body{padding:12px}
section.block pre{white-space:pre-wrap;word-wrap:break-word;font-family:ui-monospace,SFMono-Regular,Menlo,Consolas,monospace;margin:0}
.cols{display:grid;grid-template-columns:1fr 1fr;gap:16px}
.bill-text-content{max-height:70vh;overflow:auto}
ins{background:#dbffdb;text-decoration:underline}
del{background:#ffd9d9;text-decoration:line-through}
.empty{color:#6b7280}
"""


def banners(messages: Iterable[Tuple[str, str]]) -> str:
    return "".join(f"<div class='banner {esc(level)}'>{esc(msg)}</div>" for level, msg in messages)


def _block(title: str, chip: str, chip_class: str, body: str) -> str:
    return (f"<section class='block'><h3>{esc(title)} <span class='chip {chip_class}'>{esc(chip)}</span></h3>"
            f"<div class='body'>{body}</div></section>")


def render_outcome(outcome: Outcome, left: Optional[BillVersion] = None,
                   right: Optional[BillVersion] = None) -> str:
    """HTML fragment for one outcome; the caller supplies the page around it."""
    pair = f"{left.name if left else '?'} → {right.name if right else '?'}"
    warn = banners(("warning", w) for w in outcome.warnings)

    if isinstance(outcome, NoVersions):
        return "<p class='empty'>No versions available for comparison. Try refreshing the versions.</p>"
    if isinstance(outcome, SingleVersion):
        return (f"<p class='empty'>This bill only has one version ({esc(outcome.version.name)}). "
                f"Comparison is not available.</p>")
    if isinstance(outcome, Identical):
        return f"{warn}<p class='empty'>Both sides show the same version ({esc(outcome.version.name)}). Pick another version to compare.</p>"
    if isinstance(outcome, TooLarge):
        return warn + _block(pair, "Content Too Large", "TooLarge",
                             f"<p>This content is too large for visual diff comparison "
                             f"({max(outcome.left_size, outcome.right_size):,} characters, limit "
                             f"{outcome.limit:,}). Please use the side-by-side view instead.</p>")
    if isinstance(outcome, HtmlBestEffort):
        return warn + _block(pair, "HTML Content", "Html", f"<p>{esc(outcome.banner)}</p>{outcome.html}")
    if isinstance(outcome, NoDifferences):
        return f"{warn}<p class='empty'>No differences found between selected versions.</p>"
    if isinstance(outcome, Modified):
        st = diff_stats(outcome.segments)
        counts = (f"<div class='counts'><span>Added lines: <strong>{st['added']}</strong></span>"
                  f"<span>Removed lines: <strong>{st['removed']}</strong></span></div>")
        return warn + counts + _block(pair, "Modified", "Modified", f"<pre>{segments_to_html(outcome.segments)}</pre>")
    if isinstance(outcome, SideBySide):
        note = "" if outcome.same_content else "<div class='banner info'>Content has been modified between versions</div>"
        return (f"{warn}{note}<div class='cols'>"
                f"{_block(outcome.left_title, 'Version 1', '', outcome.left_rendered)}"
                f"{_block(outcome.right_title, 'Version 2', '', outcome.right_rendered)}</div>")
    raise TypeError(f"no view for outcome {outcome!r}")


def version_selector(versions: Sequence[BillVersion], left_id: str, right_id: str,
                     mode: DisplayMode) -> str:
    def options(selected: str) -> str:
        return "".join(
            f"<option value='{html.escape(v.id, quote=True)}' {'selected' if v.id == selected else ''}>"
            f"{esc(v.name)}{' (' + esc(v.date) + ')' if v.date else ''}</option>"
            for v in versions
        )
    modes = "".join(
        f"<option value='{m.value}' {'selected' if m == mode else ''}>{m.value}</option>" for m in DisplayMode
    )
    return (f"<form class='toolbar' method='get'>"
            f"<label>Version 1 <select name='left'>{options(left_id)}</select></label>"
            f"<label>Version 2 <select name='right'>{options(right_id)}</select></label>"
            f"<select name='mode'>{modes}</select>"
            f"<button type='submit'>Compare</button></form>")


def render_amendments(amendments: List[StatutoryAmendment]) -> str:
    if not amendments:
        return "<p class='empty'>This bill does not amend existing statutes.</p>"
    head = f"<h2>Found {len(amendments)} statutory amendment{'s' if len(amendments) != 1 else ''}</h2>"
    blocks = "".join(
        _block(f"{a.citation} {('- ' + a.act) if a.act else ''}", a.action, "Modified",
               f"<pre>{render_statutory_diff(a)}</pre>")
        for a in amendments
    )
    return head + blocks


def page(title: str, subtitle: str, body: str, toolbar: str = "", notices: str = "",
         app_version: str = "") -> str:
    now = datetime.datetime.now().strftime("%Y-%m-%d %H:%M")
    return f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <title>BillTracer - {esc(title)}</title>
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <style>{CSS}</style>
</head>
<body>
<header>
  <h1>{esc(title)}</h1>
  <small class="muted">{esc(subtitle)} • {esc(app_version)} • Generated {now}</small>
  {toolbar}
  {notices}
</header>
<main>
  {body}
</main>
</body>
</html>"""
