# Amendments to the Illinois Compiled Statutes found in a bill's text,
# shown as a redline through the diff renderer.
import re
from dataclasses import dataclass
from typing import List, Optional

from diffing import ADDED, REMOVED, UNCHANGED, DiffSegment, segments_to_html
from normalize import html_to_text, is_html

ILCS_RE  = re.compile(r"\((\d+)\s+ILCS\s+(\d+)/([\w.\-]+)\)")
AMEND_RE = re.compile(
    r"^\s*Section\s+\d+[A-Za-z\-]*\.\s+(?:The\s+)?(.+?)\s+is\s+amended\s+by\s+"
    r"(changing|adding|repealing)\s+(.+?)(?:\s+as\s+follows:?|\.\s*$)",
    re.MULTILINE | re.IGNORECASE,
)

# private-use markers survive tag stripping; they stand in for <u> and <s>
INS_OPEN, INS_CLOSE = "\ue000", "\ue001"
DEL_OPEN, DEL_CLOSE = "\ue002", "\ue003"
MARK_RE = re.compile(f"{INS_OPEN}(.*?){INS_CLOSE}|{DEL_OPEN}(.*?){DEL_CLOSE}", re.DOTALL)


@dataclass(frozen=True)
class StatutoryAmendment:
    id: str
    act: str
    citation: str
    action: str
    proposed_text: str


def flatten_marked(text: str) -> str:
    """Strip markup but keep additions/deletions as marker characters."""
    if not is_html(text):
        return text.replace("\r\n", "\n")
    s = re.sub(r"(?is)<u\b[^>]*>", INS_OPEN, text)
    s = re.sub(r"(?is)</u>", INS_CLOSE, s)
    s = re.sub(r"(?is)<(?:s|strike|del)\b[^>]*>", DEL_OPEN, s)
    s = re.sub(r"(?is)</(?:s|strike|del)>", DEL_CLOSE, s)
    return html_to_text(s)


def detect_statutory_amendments(text: str) -> bool:
    if not text:
        return False
    flat = flatten_marked(text)
    return bool(ILCS_RE.search(flat) or AMEND_RE.search(flat))


def extract_amendments(text: str) -> List[StatutoryAmendment]:
    flat = flatten_marked(text or "")
    clauses = list(AMEND_RE.finditer(flat))
    cites = list(ILCS_RE.finditer(flat))
    out: List[StatutoryAmendment] = []
    for i, m in enumerate(cites):
        end = cites[i+1].start() if i+1 < len(cites) else len(flat)
        nxt = next((c.start() for c in clauses if m.end() < c.start() < end), None)
        if nxt is not None:
            end = nxt
        owner = None
        for c in clauses:
            if c.start() < m.start():
                owner = c
        act    = owner.group(1).strip() if owner else ""
        action = owner.group(2).lower() if owner else "amending"
        chapter, act_no, section = m.groups()
        out.append(StatutoryAmendment(
            id=f"{chapter}-{act_no}-{section}-{i+1}",
            act=act,
            citation=f"{chapter} ILCS {act_no}/{section}",
            action=action,
            proposed_text=flat[m.end():end].strip(),
        ))
    return out


def marked_segments(proposed: str) -> List[DiffSegment]:
    segs: List[DiffSegment] = []
    pos = 0
    for m in MARK_RE.finditer(proposed):
        if m.start() > pos:
            segs.append(DiffSegment(UNCHANGED, proposed[pos:m.start()]))
        if m.group(1) is not None:
            segs.append(DiffSegment(ADDED, m.group(1)))
        else:
            segs.append(DiffSegment(REMOVED, m.group(2)))
        pos = m.end()
    if pos < len(proposed):
        segs.append(DiffSegment(UNCHANGED, proposed[pos:]))
    return segs


def render_statutory_diff(amendment: Optional[StatutoryAmendment]) -> str:
    if amendment is None:
        return ""
    return segments_to_html(marked_segments(amendment.proposed_text))
