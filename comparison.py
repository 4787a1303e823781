# Pick how a pair of versions should be shown and build the model for it
import logging
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from diffing import TOO_LARGE, DiffSegment, diff_lines, is_unchanged
from normalize import is_html, normalize, to_plain_text
from settings import DEFAULT_DIFF_LIMIT
from versions import BillVersion, find_version, pick_default_pair, version_content

logger = logging.getLogger(__name__)


class DisplayMode(str, Enum):
    VISUAL_DIFF  = "visual-diff"
    SIDE_BY_SIDE = "side-by-side"

    @classmethod
    def parse(cls, value: Optional[str]) -> "DisplayMode":
        if not value:
            return cls.VISUAL_DIFF
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"unknown display mode: {value!r}") from None


class Outcome:
    """Base for everything classify() can return; `kind` is the switch key."""

    kind = ""

    def to_dict(self) -> Dict[str, Any]:
        d = {"kind": self.kind}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, tuple) and value and isinstance(value[0], DiffSegment):
                d[f.name] = [s.to_dict() for s in value]
            elif isinstance(value, BillVersion):
                d[f.name] = value.to_dict()
            else:
                d[f.name] = list(value) if isinstance(value, tuple) else value
        return d


@dataclass(frozen=True)
class NoVersions(Outcome):
    kind = "no_versions"
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SingleVersion(Outcome):
    kind = "single_version"
    version: BillVersion
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Identical(Outcome):
    kind = "identical"
    version: BillVersion
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class TooLarge(Outcome):
    kind = "too_large"
    left_size: int
    right_size: int
    limit: int
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class HtmlBestEffort(Outcome):
    kind = "html_best_effort"
    html: str
    source: str  # "left" or "right"
    banner: str = "HTML content is best viewed in side-by-side mode. Here's a formatted version:"
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Modified(Outcome):
    kind = "modified"
    segments: Tuple[DiffSegment, ...]
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class NoDifferences(Outcome):
    kind = "no_differences"
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SideBySide(Outcome):
    kind = "side_by_side"
    left_title: str
    right_title: str
    left_rendered: str
    right_rendered: str
    same_content: bool = False
    warnings: Tuple[str, ...] = ()


def present(left: BillVersion, right: BillVersion, warnings: Sequence[str] = ()) -> SideBySide:
    """Both full texts, each normalized on its own; no alignment."""
    lc, rc = version_content(left), version_content(right)
    return SideBySide(
        left_title=left.name or left.id,
        right_title=right.name or right.id,
        left_rendered=normalize(lc),
        right_rendered=normalize(rc),
        same_content=to_plain_text(lc) == to_plain_text(rc),
        warnings=tuple(warnings),
    )


def content_warnings(left: BillVersion, right: BillVersion,
                     left_text: str, right_text: str) -> List[str]:
    out = []
    if not left_text:
        out.append(f"Version '{left.name or left.id}' has no extractable text")
    if not right_text:
        out.append(f"Version '{right.name or right.id}' has no extractable text")
    return out


def classify(versions: Sequence[BillVersion],
             left_id: Optional[str] = None,
             right_id: Optional[str] = None,
             mode: DisplayMode = DisplayMode.VISUAL_DIFF,
             limit: int = DEFAULT_DIFF_LIMIT) -> Outcome:
    """Map the selected pair of versions to exactly one view variant.

    Raises UnknownVersionError when an id is not among `versions`.
    """
    if not versions:
        return NoVersions()
    if len(versions) == 1:
        return SingleVersion(version=versions[0])

    default_left, default_right = pick_default_pair(versions)
    left  = find_version(versions, left_id or default_left)
    right = find_version(versions, right_id or default_right)
    if left.id == right.id:
        return Identical(version=left)

    left_raw, right_raw = version_content(left), version_content(right)
    left_text, right_text = to_plain_text(left_raw), to_plain_text(right_raw)
    warnings = tuple(content_warnings(left, right, left_text, right_text))
    if warnings:
        logger.info("comparing %s -> %s with missing content: %s", left.id, right.id, "; ".join(warnings))

    if mode == DisplayMode.SIDE_BY_SIDE:
        return present(left, right, warnings)

    if max(len(left_text), len(right_text)) > limit:
        return TooLarge(left_size=len(left_text), right_size=len(right_text), limit=limit, warnings=warnings)

    if is_html(left_raw) or is_html(right_raw):
        # tag noise makes line diffs of raw markup meaningless
        if left_raw.strip():
            return HtmlBestEffort(html=normalize(left_raw), source="left", warnings=warnings)
        return HtmlBestEffort(html=normalize(right_raw), source="right", warnings=warnings)

    segments = diff_lines(left_text, right_text, limit)
    if segments is TOO_LARGE:
        return TooLarge(left_size=len(left_text), right_size=len(right_text), limit=limit, warnings=warnings)
    if is_unchanged(segments):
        return NoDifferences(warnings=warnings)
    return Modified(segments=tuple(segments), warnings=warnings)
