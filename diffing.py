# Line-level diff between two normalized version texts
import difflib
import html
from dataclasses import dataclass
from typing import Dict, Iterable, List, Union

from settings import DEFAULT_DIFF_LIMIT

UNCHANGED = "unchanged"
ADDED     = "added"
REMOVED   = "removed"


@dataclass(frozen=True)
class DiffSegment:
    kind: str
    value: str

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind, "value": self.value}


class TooLargeForDiff:
    """Returned by diff_lines instead of segments when the size guard trips."""

    def __repr__(self) -> str:
        return "TOO_LARGE"


TOO_LARGE = TooLargeForDiff()


def split_lines(text: str) -> List[str]:
    """Split on "\\n" keeping the terminator, so "".join() gives back text."""
    if not text:
        return []
    parts = text.split("\n")
    lines = [p + "\n" for p in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def diff_lines(left: str, right: str, limit: int = DEFAULT_DIFF_LIMIT) -> Union[List[DiffSegment], TooLargeForDiff]:
    """Align left and right line by line.

    Each run of equal lines becomes one unchanged segment, each run only on
    one side becomes a removed or added segment. A replaced run is emitted as
    removed followed by added, never fused. Returns TOO_LARGE without aligning
    when the longer side is over `limit` characters.
    """
    if max(len(left), len(right)) > limit:
        return TOO_LARGE
    if not left and not right:
        return [DiffSegment(UNCHANGED, "")]
    if not left:
        return [DiffSegment(ADDED, right)]
    if not right:
        return [DiffSegment(REMOVED, left)]

    a = split_lines(left)
    b = split_lines(right)
    sm = difflib.SequenceMatcher(a=a, b=b, autojunk=False)
    out: List[DiffSegment] = []
    for tag, i1, i2, j1, j2 in sm.get_opcodes():
        A = "".join(a[i1:i2]); B = "".join(b[j1:j2])
        if tag == "equal":
            out.append(DiffSegment(UNCHANGED, A))
        elif tag == "delete":
            out.append(DiffSegment(REMOVED, A))
        elif tag == "insert":
            out.append(DiffSegment(ADDED, B))
        else:
            out.append(DiffSegment(REMOVED, A))
            out.append(DiffSegment(ADDED, B))
    return out


def left_text(segments: Iterable[DiffSegment]) -> str:
    return "".join(s.value for s in segments if s.kind != ADDED)


def right_text(segments: Iterable[DiffSegment]) -> str:
    return "".join(s.value for s in segments if s.kind != REMOVED)


def is_unchanged(segments: Iterable[DiffSegment]) -> bool:
    return all(s.kind == UNCHANGED for s in segments)


def diff_stats(segments: Iterable[DiffSegment]) -> Dict[str, int]:
    stats = {"added": 0, "removed": 0, "unchanged": 0}
    for s in segments:
        stats[s.kind] += len(split_lines(s.value))
    return stats


def esc(s: str) -> str: return html.escape(s, quote=False)


def segments_to_html(segments: Iterable[DiffSegment]) -> str:
    """Inline redline: removed text struck through, added text underlined."""
    out = []
    for s in segments:
        if not s.value:
            continue
        if s.kind == ADDED:
            out.append(f"<ins>{esc(s.value)}</ins>")
        elif s.kind == REMOVED:
            out.append(f"<del>{esc(s.value)}</del>")
        else:
            out.append(esc(s.value))
    return "".join(out)
